"""
Document vault service.

A Document row and its stored file are separate artifacts; this module keeps
them in step on upload and delete.
"""

from typing import Iterator, List, Optional, Tuple
import logging

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from api.services.audit import write_audit_log
from api.services.pipeline import get_application_or_404
from core.exceptions import NotFoundError, ValidationError
from core.middleware.authorization import check_document_delete
from core.storage.local import ALLOWED_TYPES_LABEL, AsyncReadable, DocumentStorage
from database.models.audit import AuditAction, EntityType
from database.models.documents import Document, DocType
from database.models.users import User

logger = logging.getLogger(__name__)

DEFAULT_MIME_TYPE = "application/octet-stream"


def _document_audit_value(document: Document) -> dict:
    return {
        "candidate_id": document.candidate_id,
        "application_id": document.application_id,
        "doc_type": document.doc_type.value,
        "original_filename": document.original_filename,
    }


async def upload_document(
    session: AsyncSession,
    storage: DocumentStorage,
    application_id: int,
    upload: AsyncReadable,
    original_filename: Optional[str],
    mime_type: Optional[str],
    doc_type: Optional[str] = None,
    uploaded_by: Optional[int] = None,
    ip_address: Optional[str] = None,
) -> Document:
    """
    Store a file against an application's candidate.

    Args:
        session: Database session
        storage: Document storage
        application_id: Owning application
        upload: File stream with an async read(size)
        original_filename: Client filename, kept for downloads
        mime_type: Declared content type, checked against the allow-list
        doc_type: Document type value; unknown values become "other"
        uploaded_by: Acting user ID
        ip_address: Client address for the audit entry

    Raises:
        NotFoundError: Application does not exist
        ValidationError: MIME type not allowed or file too large
    """
    application = await get_application_or_404(session, application_id)

    if not storage.validate_type(mime_type):
        raise ValidationError(
            f"File type not allowed. Accepted: {ALLOWED_TYPES_LABEL}",
            details={"field": "file", "mime_type": mime_type},
        )

    stored = await storage.save(upload, original_filename, mime_type, application.candidate_id)
    try:
        document = Document(
            candidate_id=application.candidate_id,
            application_id=application.id,
            doc_type=DocType.try_parse(doc_type) or DocType.OTHER,
            original_filename=original_filename or "upload",
            storage_path=stored.storage_path,
            file_size_bytes=stored.size_bytes,
            mime_type=stored.mime_type,
            uploaded_by_id=uploaded_by,
        )
        session.add(document)
        await session.flush()

        write_audit_log(
            session,
            EntityType.DOCUMENT,
            document.id,
            AuditAction.DOCUMENT_UPLOADED,
            new_value=_document_audit_value(document),
            performed_by_id=uploaded_by,
            ip_address=ip_address,
        )
        await session.commit()
    except Exception:
        await session.rollback()
        storage.delete(stored.storage_path)
        raise

    logger.info(
        f"Document {document.id} ({document.doc_type.value}) uploaded to application {application.id}"
    )
    return await get_document(session, document.id)


async def get_document(session: AsyncSession, document_id: int) -> Document:
    """
    Raises:
        NotFoundError: Document does not exist
    """
    result = await session.execute(
        select(Document)
        .options(selectinload(Document.uploaded_by))
        .where(Document.id == document_id)
        .execution_options(populate_existing=True)
    )
    document = result.scalar_one_or_none()
    if document is None:
        raise NotFoundError(f"Document {document_id} not found")
    return document


async def open_document(
    session: AsyncSession, storage: DocumentStorage, document_id: int
) -> Tuple[Document, Iterator[bytes]]:
    """
    Document record plus a chunk iterator over its file.

    Raises:
        NotFoundError: No such document, or its file is missing from storage
    """
    document = await get_document(session, document_id)
    return document, storage.retrieve(document.storage_path)


async def list_documents(session: AsyncSession, application_id: int) -> List[Document]:
    """Documents attached to an application, newest first."""
    await get_application_or_404(session, application_id)
    result = await session.execute(
        select(Document)
        .options(selectinload(Document.uploaded_by))
        .where(Document.application_id == application_id)
        .order_by(Document.uploaded_at.desc(), Document.id.desc())
    )
    return list(result.scalars().all())


async def delete_document(
    session: AsyncSession,
    storage: DocumentStorage,
    document_id: int,
    user: User,
    ip_address: Optional[str] = None,
) -> None:
    """
    Delete a document row and its file. Only the uploader or an admin may.

    The file is removed once the row deletion has committed.

    Raises:
        NotFoundError: Document does not exist
        AuthorizationError: User is neither the uploader nor an admin
    """
    document = await get_document(session, document_id)
    check_document_delete(user, document)

    storage_path = document.storage_path
    old_value = _document_audit_value(document)

    await session.execute(delete(Document).where(Document.id == document_id))
    write_audit_log(
        session,
        EntityType.DOCUMENT,
        document_id,
        AuditAction.DOCUMENT_DELETED,
        old_value=old_value,
        performed_by_id=user.id,
        ip_address=ip_address,
    )
    await session.commit()

    storage.delete(storage_path)
    logger.info(f"Document {document_id} deleted by user {user.id}")
