"""
Document vault endpoints.

Uploads are stored against the application's candidate. Downloads stream the
stored bytes back with the original filename.
"""

import logging
from typing import Optional
from urllib.parse import quote

from fastapi import APIRouter, Depends, File, Form, Request, UploadFile, status
from fastapi.responses import StreamingResponse
from sqlalchemy.ext.asyncio import AsyncSession

from api.dependencies import get_client_ip, get_storage, require_permission
from api.schemas.common import MessageResponse
from api.schemas.documents import DocumentResponse
from api.services import documents as document_service
from api.services.documents import DEFAULT_MIME_TYPE
from core.middleware.authorization import Permission
from core.storage.local import DocumentStorage
from database.engine import get_db
from database.models.users import User

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/ats", tags=["documents"])


@router.post(
    "/applications/{application_id}/documents",
    response_model=DocumentResponse,
    status_code=status.HTTP_201_CREATED,
)
async def upload_document(
    application_id: int,
    request: Request,
    file: UploadFile = File(...),
    doc_type: Optional[str] = Form(None),
    db: AsyncSession = Depends(get_db),
    storage: DocumentStorage = Depends(get_storage),
    current_user: User = Depends(require_permission(Permission.DOCUMENT_UPLOAD)),
):
    """
    Upload a file to an application.

    - **file**: PDF, DOC, DOCX, JPG or PNG
    - **doc_type**: resume, passport, visa_stamp, i797, ead, offer_letter or other
    """
    try:
        document = await document_service.upload_document(
            db,
            storage,
            application_id,
            file,
            file.filename,
            file.content_type,
            doc_type=doc_type,
            uploaded_by=current_user.id,
            ip_address=get_client_ip(request),
        )
    finally:
        await file.close()
    return DocumentResponse.model_validate(document)


@router.get(
    "/applications/{application_id}/documents",
    response_model=list[DocumentResponse],
)
async def list_documents(
    application_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_permission(Permission.DOCUMENT_READ)),
):
    documents = await document_service.list_documents(db, application_id)
    return [DocumentResponse.model_validate(document) for document in documents]


@router.get("/documents/{document_id}/download")
async def download_document(
    document_id: int,
    db: AsyncSession = Depends(get_db),
    storage: DocumentStorage = Depends(get_storage),
    current_user: User = Depends(require_permission(Permission.DOCUMENT_READ)),
):
    """Stream the stored file as an attachment."""
    document, chunks = await document_service.open_document(db, storage, document_id)
    logger.info(f"Document {document.id} downloaded by user {current_user.id}")
    return StreamingResponse(
        chunks,
        media_type=document.mime_type or DEFAULT_MIME_TYPE,
        headers={
            "Content-Disposition": f'attachment; filename="{quote(document.original_filename)}"'
        },
    )


@router.delete("/documents/{document_id}", response_model=MessageResponse)
async def delete_document(
    document_id: int,
    request: Request,
    db: AsyncSession = Depends(get_db),
    storage: DocumentStorage = Depends(get_storage),
    current_user: User = Depends(require_permission(Permission.DOCUMENT_DELETE)),
):
    """Delete a document. Only its uploader or an admin may."""
    await document_service.delete_document(
        db, storage, document_id, current_user, ip_address=get_client_ip(request)
    )
    return MessageResponse(message="Document deleted")
