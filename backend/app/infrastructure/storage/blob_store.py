"""
Blob Store

Stores uploaded media under MEDIA_ROOT and serves it from MEDIA_BASE_URL.
Keys look like ``uploads/{user_id}/{token}.{ext}``.
"""

import asyncio
import logging
import mimetypes
import secrets
from pathlib import Path
from typing import Optional

from app.config.settings import settings
from app.infrastructure.exceptions import ValidationError

logger = logging.getLogger(__name__)

DEFAULT_EXTENSION = "bin"


def extension_for(file_name: Optional[str] = None, content_type: Optional[str] = None) -> str:
    """
    Pick a file extension from a file name, falling back to the MIME subtype.

    >>> extension_for("clip.MP4")
    'mp4'
    >>> extension_for(content_type="image/png")
    'png'
    """
    if file_name and "." in file_name:
        ext = file_name.rsplit(".", 1)[1].strip().lower()
        if ext.isalnum():
            return ext
    if content_type and "/" in content_type:
        subtype = content_type.split(";", 1)[0].split("/", 1)[1].strip().lower()
        if subtype.isalnum():
            return subtype
        guessed = mimetypes.guess_extension(content_type.split(";", 1)[0].strip())
        if guessed:
            return guessed.lstrip(".")
    return DEFAULT_EXTENSION


def make_upload_key(user_id: int, ext: str) -> str:
    return f"uploads/{user_id}/{secrets.token_urlsafe(16)}.{ext}"


class LocalBlobStore:
    """Filesystem-backed blob store; writes run in a worker thread."""

    def __init__(self, root: Optional[str] = None, base_url: Optional[str] = None):
        self.root = Path(root or settings.media_root).resolve()
        self.base_url = (base_url or settings.media_base_url).rstrip("/")

    def _path_for(self, key: str) -> Path:
        path = (self.root / key).resolve()
        if self.root not in path.parents:
            raise ValidationError("Invalid upload key", details={"key": key})
        return path

    def _write(self, path: Path, data: bytes) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(data)

    async def put(self, key: str, data: bytes, content_type: Optional[str] = None) -> str:
        """
        Store ``data`` under ``key``.

        Returns:
            Public URL of the stored object
        """
        path = self._path_for(key)
        await asyncio.to_thread(self._write, path, data)
        logger.info(f"Stored {len(data)} bytes at {key} ({content_type or 'unknown type'})")
        return f"{self.base_url}/{key}"


_blob_store: Optional[LocalBlobStore] = None


def get_blob_store() -> LocalBlobStore:
    """Get or create the blob store singleton."""
    global _blob_store
    if _blob_store is None:
        _blob_store = LocalBlobStore()
    return _blob_store
