"""License file intake and storage."""

import re
import secrets
import time
from dataclasses import dataclass
from pathlib import Path

import structlog
from starlette.concurrency import run_in_threadpool
from starlette.datastructures import UploadFile

from doctor_registry.core.exceptions import (
    MissingFileException,
    StorageUnavailableException,
    UnsupportedMediaTypeException,
    ValidationFailedException,
)

logger = structlog.get_logger(__name__)

PDF_CONTENT_TYPE = "application/pdf"

_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9._-]+")


@dataclass(frozen=True)
class StoredLicenseFile:
    """A license file written to the upload directory."""

    path: str
    size: int


def safe_filename(filename: str) -> str:
    """Strip directories and unsafe characters from a client filename."""
    name = Path(filename.replace("\\", "/")).name
    name = _UNSAFE_CHARS.sub("_", name).strip("._")
    return name or "license.pdf"


def storage_name(filename: str) -> str:
    """Unique storage name: epoch milliseconds, a random suffix and the original name."""
    return f"{int(time.time() * 1000)}-{secrets.token_hex(4)}-{safe_filename(filename)}"


def single_upload(parts: list[UploadFile | str]) -> UploadFile | str | None:
    """
    Pick the one license part of a form.

    Raises:
        ValidationFailedException: If more than one part was submitted
    """
    if len(parts) > 1:
        message = "Only one license file is allowed"
        raise ValidationFailedException(
            message, errors=[{"field": "licenseFile", "message": message}]
        )
    return parts[0] if parts else None


def _too_large(max_size_bytes: int) -> ValidationFailedException:
    message = f"License file exceeds {max_size_bytes} bytes"
    return ValidationFailedException(
        message, errors=[{"field": "licenseFile", "message": message}]
    )


class LicenseFileStore:
    """Accepts uploaded PDF licenses and writes them under ``upload_dir``."""

    def __init__(self, upload_dir: str | Path, max_size_bytes: int | None = None):
        self.upload_dir = Path(upload_dir)
        self.max_size_bytes = max_size_bytes

    def check(self, upload: UploadFile | str | None) -> UploadFile:
        """Validate an upload before anything is written."""
        if not isinstance(upload, UploadFile) or not upload.filename:
            raise MissingFileException()

        if upload.content_type != PDF_CONTENT_TYPE:
            logger.info(
                "license_file_rejected",
                filename=upload.filename,
                content_type=upload.content_type,
            )
            raise UnsupportedMediaTypeException()

        if self.max_size_bytes is not None and (upload.size or 0) > self.max_size_bytes:
            raise _too_large(self.max_size_bytes)

        return upload

    async def store(self, upload: UploadFile | str | None) -> StoredLicenseFile:
        """
        Write an uploaded license file to disk.

        The upload directory is expected to exist already.

        Raises:
            MissingFileException: If no file was uploaded
            UnsupportedMediaTypeException: If the file is not a PDF
            ValidationFailedException: If the file is empty or too large
            StorageUnavailableException: If the upload directory is unusable
        """
        upload = self.check(upload)
        # Never buffer more than one byte past the limit
        limit = -1 if self.max_size_bytes is None else self.max_size_bytes + 1
        content = await upload.read(limit)

        if not content:
            raise ValidationFailedException(
                "License file is empty",
                errors=[{"field": "licenseFile", "message": "License file is empty"}],
            )
        if self.max_size_bytes is not None and len(content) > self.max_size_bytes:
            raise _too_large(self.max_size_bytes)

        path = self.upload_dir / storage_name(upload.filename)
        try:
            await run_in_threadpool(self._write, path, content)
        except OSError as e:
            logger.error("license_file_write_failed", path=str(path), error=str(e))
            raise StorageUnavailableException(
                f"Could not store license file: {e.strerror or e}"
            ) from e

        logger.info("license_file_stored", path=str(path), size=len(content))
        return StoredLicenseFile(path=str(path), size=len(content))

    async def discard(self, stored: StoredLicenseFile) -> None:
        """Remove a stored file whose record was not saved."""
        try:
            await run_in_threadpool(Path(stored.path).unlink, True)
        except OSError as e:
            logger.warning("license_file_discard_failed", path=stored.path, error=str(e))
            return
        logger.info("license_file_discarded", path=stored.path)

    @staticmethod
    def _write(path: Path, content: bytes) -> None:
        # Exclusive create, never overwrite another upload
        with path.open("xb") as fh:
            fh.write(content)
