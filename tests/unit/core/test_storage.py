"""
Tests for local document storage.
"""

import io

import pytest

from core.exceptions import NotFoundError, ValidationError
from core.storage.local import DEFAULT_EXTENSION, DocumentStorage


class FakeUpload:
    """Minimal async-readable upload."""

    def __init__(self, data: bytes):
        self._buffer = io.BytesIO(data)

    async def read(self, size: int = -1) -> bytes:
        return self._buffer.read(size)


class TestValidateType:
    """MIME allow-list."""

    @pytest.mark.parametrize("mime_type", [
        "application/pdf",
        "application/msword",
        "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
        "image/jpeg",
        "image/jpg",
        "image/png",
        "IMAGE/PNG",
        "application/pdf; charset=binary",
    ])
    def test_allowed(self, mime_type):
        assert DocumentStorage.validate_type(mime_type) is True

    @pytest.mark.parametrize("mime_type", [
        "text/plain",
        "application/x-msdownload",
        "image/gif",
        "",
        None,
    ])
    def test_rejected(self, mime_type):
        assert DocumentStorage.validate_type(mime_type) is False


class TestExtension:

    def test_keeps_lowercased_suffix(self):
        assert DocumentStorage.extension_for("Resume.PDF") == ".pdf"

    def test_windows_style_path(self):
        assert DocumentStorage.extension_for("C:\\Users\\me\\passport.png") == ".png"

    def test_missing_suffix_uses_default(self):
        assert DocumentStorage.extension_for("resume") == DEFAULT_EXTENSION
        assert DocumentStorage.extension_for(None) == DEFAULT_EXTENSION


class TestSaveAndRetrieve:

    @pytest.mark.asyncio
    async def test_save_writes_under_candidate_directory(self, storage, upload_dir):
        stored = await storage.save(FakeUpload(b"hello pdf"), "cv.pdf", "application/pdf", 42)

        assert stored.storage_path.startswith("42/")
        assert stored.storage_path.endswith(".pdf")
        assert stored.size_bytes == len(b"hello pdf")
        assert stored.mime_type == "application/pdf"
        assert (upload_dir / "42").is_dir()
        assert storage.exists(stored.storage_path)

    @pytest.mark.asyncio
    async def test_names_are_unique(self, storage):
        first = await storage.save(FakeUpload(b"a"), "cv.pdf", "application/pdf", 1)
        second = await storage.save(FakeUpload(b"b"), "cv.pdf", "application/pdf", 1)

        assert first.storage_path != second.storage_path

    @pytest.mark.asyncio
    async def test_retrieve_streams_exact_bytes(self, storage):
        payload = b"x" * (200 * 1024)  # spans several chunks
        stored = await storage.save(FakeUpload(payload), "big.pdf", "application/pdf", 7)

        assert b"".join(storage.retrieve(stored.storage_path)) == payload

    @pytest.mark.asyncio
    async def test_oversized_upload_is_rejected_and_removed(self, upload_dir):
        small = DocumentStorage(str(upload_dir), max_file_size=10)

        with pytest.raises(ValidationError):
            await small.save(FakeUpload(b"0123456789ABC"), "cv.pdf", "application/pdf", 3)

        assert list((upload_dir / "3").iterdir()) == []

    def test_retrieve_missing_file(self, storage):
        with pytest.raises(NotFoundError):
            storage.retrieve("99/does-not-exist.pdf")

    def test_path_traversal_is_refused(self, storage):
        with pytest.raises(NotFoundError):
            storage.resolve("../../etc/passwd")
        assert storage.exists("../../etc/passwd") is False


class TestDelete:

    @pytest.mark.asyncio
    async def test_delete_removes_file(self, storage):
        stored = await storage.save(FakeUpload(b"data"), "visa.jpg", "image/jpeg", 5)

        assert storage.delete(stored.storage_path) is True
        assert storage.exists(stored.storage_path) is False

    def test_delete_missing_file_is_not_an_error(self, storage):
        assert storage.delete("5/already-gone.jpg") is False
        assert storage.delete("../outside.txt") is False
