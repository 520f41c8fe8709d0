"""
Upload side channel: audio and image blobs for chat messages.

The returned path is what clients put in a message's ``text`` with
``type`` set to audio or image.
"""

from __future__ import annotations

import asyncio

from fastapi import APIRouter, Depends, File, HTTPException, UploadFile

from app.adapters.blob_store import ALLOWED_IMAGE_TYPES
from app.core.app_state import AppState
from app.routers.utils.dependencies import get_app_state
from app.infra.logging_config import get_logger
from app.schemas.chat import UploadResult

logger = get_logger("uploads")

router = APIRouter(prefix="/api", tags=["uploads"])


async def _store_upload(state: AppState, kind: str, upload: UploadFile) -> UploadResult:
    limit = state.settings.max_upload_bytes
    data = await upload.read(limit + 1)
    if not data:
        raise HTTPException(status_code=400, detail="No file uploaded.")
    if len(data) > limit:
        raise HTTPException(status_code=413, detail="File too large.")
    url = await asyncio.to_thread(
        state.blob_store.save, kind, data, upload.content_type
    )
    return UploadResult(url=url)


@router.post("/upload-audio", response_model=UploadResult)
async def upload_audio(
    audio: UploadFile = File(...),
    state: AppState = Depends(get_app_state),
) -> UploadResult:
    """Store a recorded audio clip and return its retrieval path."""
    return await _store_upload(state, "audio", audio)


@router.post("/upload-image", response_model=UploadResult)
async def upload_image(
    image: UploadFile = File(...),
    state: AppState = Depends(get_app_state),
) -> UploadResult:
    """Store an image and return its retrieval path."""
    content_type = (image.content_type or "").split(";")[0].strip()
    if content_type not in ALLOWED_IMAGE_TYPES:
        logger.warning("Rejected image upload with type %r", image.content_type)
        raise HTTPException(status_code=400, detail="File type not allowed.")
    return await _store_upload(state, "image", image)
