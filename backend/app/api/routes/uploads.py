"""
Upload API Routes

Two-step media upload: reserve a key, then send the raw bytes.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status

from app.api.dependencies import CurrentUserDep
from app.config.settings import get_settings
from app.domain.models import UploadResponse, UploadUrlRequest, UploadUrlResponse
from app.infrastructure.storage import (
    LocalBlobStore,
    extension_for,
    get_blob_store,
    make_upload_key,
)


logger = logging.getLogger(__name__)

router = APIRouter()

UPLOAD_ENDPOINT = "/api/uploads"


@router.post("/uploads/url", response_model=UploadUrlResponse)
async def get_upload_url(request: UploadUrlRequest, user: CurrentUserDep):
    """Reserve a storage key under the caller's upload prefix."""
    key = make_upload_key(user.id, extension_for(request.file_name, request.content_type))
    return UploadUrlResponse(key=key, upload_endpoint=UPLOAD_ENDPOINT)


@router.post("/uploads", response_model=UploadResponse)
async def upload_file(
    request: Request,
    user: CurrentUserDep,
    key: Optional[str] = Query(default=None),
    store: LocalBlobStore = Depends(get_blob_store),
):
    """
    Store the raw request body.

    Uses ``key`` when it was reserved for this user, otherwise a fresh
    key derived from the Content-Type.
    """
    max_bytes = get_settings().max_upload_bytes
    declared = request.headers.get("content-length")
    if declared and declared.isdigit() and int(declared) > max_bytes:
        raise HTTPException(
            status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
            detail=f"File exceeds the {max_bytes} byte limit"
        )

    data = await request.body()
    if not data:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Empty upload"
        )
    if len(data) > max_bytes:
        raise HTTPException(
            status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
            detail=f"File exceeds the {max_bytes} byte limit"
        )

    content_type = request.headers.get("content-type") or "application/octet-stream"
    prefix = f"uploads/{user.id}/"
    if key is None:
        key = make_upload_key(user.id, extension_for(content_type=content_type))
    elif not key.startswith(prefix) or ".." in key:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Upload key does not belong to the current user"
        )

    url = await store.put(key, data, content_type)
    return UploadResponse(success=True, url=url, key=key)
