"""Local filesystem blob store, served back through StaticFiles mounts."""

from __future__ import annotations

import mimetypes
import random
import time
from pathlib import Path
from typing import Dict, Optional

from app.adapters.base import BaseBlobStore
from app.infra.logging_config import get_logger

logger = get_logger("blob_store")

# kind -> (directory / URL prefix, default extension)
BLOB_KINDS: Dict[str, tuple[str, str]] = {
    "audio": ("audios", ".webm"),
    "image": ("images", ".png"),
}

ALLOWED_IMAGE_TYPES = {"image/jpeg", "image/png", "image/gif", "image/webp"}


class LocalBlobStore(BaseBlobStore):
    def __init__(self, media_root: str | Path) -> None:
        self.media_root = Path(media_root)

    def directory_for(self, kind: str) -> Path:
        if kind not in BLOB_KINDS:
            raise ValueError(f"Unsupported blob kind: {kind}")
        path = self.media_root / BLOB_KINDS[kind][0]
        path.mkdir(parents=True, exist_ok=True)
        return path

    def save(self, kind: str, data: bytes, content_type: Optional[str] = None) -> str:
        directory = self.directory_for(kind)
        filename = f"{int(time.time() * 1000)}-{random.randint(0, 10**9)}{self._extension(kind, content_type)}"
        (directory / filename).write_bytes(data)
        logger.info("Stored %s blob %s (%d bytes)", kind, filename, len(data))
        return f"/{BLOB_KINDS[kind][0]}/{filename}"

    @staticmethod
    def _extension(kind: str, content_type: Optional[str]) -> str:
        default = BLOB_KINDS[kind][1]
        if kind == "audio" or not content_type:
            # Browsers record webm/opus; the reported type is not reliable.
            return default
        return mimetypes.guess_extension(content_type.split(";")[0].strip()) or default
