"""
Blob store interface.

The chat core only ever sees the string a store returns; what sits behind
it (local disk, object storage) is the adapter's concern.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Optional


class BaseBlobStore(ABC):
    """Contract for binary media storage. Returns a stable retrieval path."""

    @abstractmethod
    def save(self, kind: str, data: bytes, content_type: Optional[str] = None) -> str:
        """Persist ``data`` under ``kind`` ('audio' or 'image'); return its URL path."""
        ...
