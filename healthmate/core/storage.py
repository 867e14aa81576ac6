"""File object storage with public URLs."""

import os
import re
from pathlib import Path
from uuid import uuid4

import structlog
from starlette.concurrency import run_in_threadpool

from healthmate.config import settings
from healthmate.core.exceptions import ValidationException

logger = structlog.get_logger(__name__)

_UNSAFE = re.compile(r"[^A-Za-z0-9._-]+")


class FileStorage:
    """
    Stores uploaded objects under ``root/<bucket>/<owner>/`` and serves them
    below ``public_url``.
    """

    def __init__(
        self,
        root: str | Path | None = None,
        public_url: str | None = None,
        max_bytes: int | None = None,
    ):
        self.root = Path(root or settings.storage_dir)
        self.public_url = (public_url or settings.storage_public_url).rstrip("/")
        self.max_bytes = max_bytes or settings.max_upload_bytes

    @staticmethod
    def safe_name(filename: str | None) -> str:
        """Strip directories and unusual characters from a client filename."""
        name = Path(filename or "").name
        name = _UNSAFE.sub("_", name).strip("._")
        return name or "file"

    def _write(self, path: Path, content: bytes) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(content)

    async def upload(self, bucket: str, owner: str, filename: str | None, content: bytes) -> str:
        """
        Store ``content`` and return the object's storage path.

        Raises:
            ValidationException: If the object is empty or larger than allowed
        """
        if not content:
            raise ValidationException("Uploaded file is empty")
        if len(content) > self.max_bytes:
            raise ValidationException(f"File exceeds the {self.max_bytes} byte upload limit")

        object_path = f"{bucket}/{owner}/{uuid4().hex}_{self.safe_name(filename)}"
        await run_in_threadpool(self._write, self.root / object_path, content)

        logger.info("file_stored", bucket=bucket, owner=owner, size=len(content))
        return object_path

    def get_public_url(self, object_path: str) -> str:
        """Public URL for a stored object."""
        return f"{self.public_url}/{object_path}"

    def is_writable(self) -> bool:
        """True when uploads can be written below ``root``."""
        try:
            self.root.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            logger.error("storage_unavailable", root=str(self.root), error=str(e))
            return False
        return os.access(self.root, os.W_OK)


def get_file_storage() -> FileStorage:
    """Dependency returning storage built from settings."""
    return FileStorage()
