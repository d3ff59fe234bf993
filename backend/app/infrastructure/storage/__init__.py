"""Media storage."""

from app.infrastructure.storage.blob_store import (
    LocalBlobStore,
    extension_for,
    get_blob_store,
    make_upload_key,
)

__all__ = ["LocalBlobStore", "extension_for", "get_blob_store", "make_upload_key"]
