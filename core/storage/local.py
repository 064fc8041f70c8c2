"""Local file storage for the document vault."""

import logging
import uuid
from dataclasses import dataclass
from pathlib import Path, PurePosixPath
from typing import Iterator, Optional, Protocol

from core.exceptions import NotFoundError, ValidationError

logger = logging.getLogger(__name__)

ALLOWED_MIME_TYPES: frozenset[str] = frozenset(
    {
        "application/pdf",
        "application/msword",
        "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
        "image/jpeg",
        "image/jpg",
        "image/png",
    }
)
ALLOWED_TYPES_LABEL = "PDF, DOC, DOCX, JPG, PNG"

DEFAULT_EXTENSION = ".bin"
CHUNK_SIZE = 64 * 1024


class AsyncReadable(Protocol):
    async def read(self, size: int = -1) -> bytes: ...


@dataclass(frozen=True)
class StoredFile:
    """Result of saving an upload."""

    storage_path: str  # POSIX path relative to the storage root
    size_bytes: int
    mime_type: str


class DocumentStorage:
    """
    Per-candidate file storage on the local filesystem.

    Layout: <root>/<candidate_id>/<uuid><ext>. Stored paths are relative to
    the root and always use forward slashes.
    """

    def __init__(self, root: str = "./uploads", max_file_size: Optional[int] = None):
        """
        Initialize local storage.

        Args:
            root: Base directory for uploaded files
            max_file_size: Reject uploads larger than this many bytes
        """
        self.root = Path(root).resolve()
        self.root.mkdir(parents=True, exist_ok=True)
        self.max_file_size = max_file_size

    @staticmethod
    def validate_type(mime_type: Optional[str]) -> bool:
        """Return True if the MIME type is on the allow-list."""
        if not mime_type:
            return False
        return mime_type.split(";", 1)[0].strip().lower() in ALLOWED_MIME_TYPES

    @staticmethod
    def extension_for(original_filename: Optional[str]) -> str:
        suffix = PurePosixPath((original_filename or "").replace("\\", "/")).suffix
        return suffix.lower() if suffix else DEFAULT_EXTENSION

    def resolve(self, storage_path: str) -> Path:
        """
        Map a stored relative path to an absolute path inside the root.

        Raises:
            NotFoundError: If the path escapes the storage root
        """
        candidate_path = (self.root / PurePosixPath(storage_path)).resolve()
        if candidate_path != self.root and self.root not in candidate_path.parents:
            raise NotFoundError("File not found on storage")
        return candidate_path

    async def save(
        self,
        upload: AsyncReadable,
        original_filename: Optional[str],
        mime_type: str,
        candidate_id: int,
    ) -> StoredFile:
        """
        Stream an upload to disk under the candidate's directory.

        Args:
            upload: Object with an async read(size) method (e.g. UploadFile)
            original_filename: Client-supplied filename, used for the extension only
            mime_type: Declared content type
            candidate_id: Owning candidate

        Returns:
            StoredFile with the relative path, size and MIME type

        Raises:
            ValidationError: If the upload exceeds max_file_size
        """
        candidate_dir = self.root / str(candidate_id)
        candidate_dir.mkdir(parents=True, exist_ok=True)

        filename = f"{uuid.uuid4().hex}{self.extension_for(original_filename)}"
        file_path = candidate_dir / filename

        size = 0
        try:
            with file_path.open("wb") as out:
                while chunk := await upload.read(CHUNK_SIZE):
                    size += len(chunk)
                    if self.max_file_size is not None and size > self.max_file_size:
                        raise ValidationError(
                            f"File exceeds maximum size of {self.max_file_size} bytes"
                        )
                    out.write(chunk)
        except BaseException:
            file_path.unlink(missing_ok=True)
            raise

        storage_path = PurePosixPath(str(candidate_id), filename).as_posix()
        logger.info(f"Saved upload for candidate {candidate_id} as {storage_path} ({size} bytes)")
        return StoredFile(storage_path=storage_path, size_bytes=size, mime_type=mime_type)

    def exists(self, storage_path: str) -> bool:
        try:
            return self.resolve(storage_path).is_file()
        except NotFoundError:
            return False

    def retrieve(self, storage_path: str) -> Iterator[bytes]:
        """
        Open a stored file for streaming.

        Raises:
            NotFoundError: If the file is not on disk
        """
        file_path = self.resolve(storage_path)
        if not file_path.is_file():
            raise NotFoundError("File not found on storage")
        return self._iter_file(file_path)

    @staticmethod
    def _iter_file(file_path: Path) -> Iterator[bytes]:
        with file_path.open("rb") as f:
            while chunk := f.read(CHUNK_SIZE):
                yield chunk

    def delete(self, storage_path: str) -> bool:
        """
        Delete a stored file. A missing file is not an error.

        Returns:
            True if a file was removed
        """
        try:
            file_path = self.resolve(storage_path)
        except NotFoundError:
            return False

        if not file_path.is_file():
            return False

        file_path.unlink()
        logger.info(f"Deleted stored file {storage_path}")
        return True
