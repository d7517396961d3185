"""
Storage service for document blobs.

Blobs are opaque files kept under a base directory. Each saved blob is
addressed by a relative key ``<owner_id>/<file_name>`` which is what the
document record stores as ``file_path``.
"""

import logging
import shutil
import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import BinaryIO

from docdesk.core.exceptions import NotFoundError, UpstreamFailure

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StoredFile:
    """Handle returned after a blob is written."""

    file_name: str
    file_path: str
    file_size: int
    mime_type: str


class LocalStorageService:
    """
    Local filesystem storage service.

    Args:
        base_path: Directory that holds every blob.
    """

    def __init__(self, base_path: str | Path) -> None:
        self.base_path = Path(base_path).resolve()
        self.base_path.mkdir(parents=True, exist_ok=True)
        logger.info(f"Using local storage at: {self.base_path}")

    def generate_file_name(self, original_name: str) -> str:
        """Unique stored name keeping the original extension."""
        timestamp = datetime.now(timezone.utc).strftime("%Y%m%d_%H%M%S_%f")
        suffix = Path(original_name or "").suffix.lower()
        return f"document-{timestamp}-{uuid.uuid4().hex[:8]}{suffix}"

    def path_for(self, key: str) -> Path:
        """Absolute path of a key; keys may not escape the base directory."""
        path = (self.base_path / key).resolve()
        if not path.is_relative_to(self.base_path):
            raise NotFoundError("File not found on server")
        return path

    def save(
        self,
        data: BinaryIO,
        original_name: str,
        content_type: str,
        owner_id: int,
    ) -> StoredFile:
        """
        Write a blob to disk.

        Raises:
            UpstreamFailure: If the file cannot be written.
        """
        file_name = self.generate_file_name(original_name)
        key = f"{owner_id}/{file_name}"
        file_path = self.path_for(key)

        try:
            file_path.parent.mkdir(parents=True, exist_ok=True)
            with open(file_path, "wb") as f:
                shutil.copyfileobj(data, f)
            size = file_path.stat().st_size
        except OSError as e:
            logger.error(f"Failed to store file {original_name}: {e}")
            raise UpstreamFailure("File storage is unavailable")

        logger.info(f"File saved locally: {file_path} ({size} bytes)")
        return StoredFile(
            file_name=file_name,
            file_path=key,
            file_size=size,
            mime_type=content_type,
        )

    def exists(self, key: str) -> bool:
        try:
            return self.path_for(key).is_file()
        except NotFoundError:
            return False

    def delete(self, key: str) -> bool:
        """
        Delete a blob.

        Returns:
            bool: False if there was nothing to delete.

        Raises:
            UpstreamFailure: If the file exists but cannot be removed.
        """
        file_path = self.path_for(key)
        if not file_path.exists():
            return False
        try:
            file_path.unlink()
        except OSError as e:
            raise UpstreamFailure(f"Failed to delete file: {e}")
        logger.info(f"File deleted: {file_path}")
        return True
