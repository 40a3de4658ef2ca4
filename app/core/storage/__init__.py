"""Storage - blob persistence for uploaded files."""

from .blob_store import LocalBlobStore

__all__ = ['LocalBlobStore']
