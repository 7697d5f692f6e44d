from .base import BlobStore
from .local_store import LocalBlobStore

__all__ = [
    "BlobStore",
    "LocalBlobStore",
]
