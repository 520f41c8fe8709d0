"""Blob storage adapters for chat media."""

from app.adapters.base import BaseBlobStore
from app.adapters.blob_store import LocalBlobStore

__all__ = ["BaseBlobStore", "LocalBlobStore"]
