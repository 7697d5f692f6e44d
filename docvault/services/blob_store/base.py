from __future__ import annotations

from abc import ABC, abstractmethod


class BlobStore(ABC):
    """Byte payload storage addressed by (bucket, key)."""

    @abstractmethod
    def ensure_bucket(self, bucket: str) -> None:
        raise NotImplementedError

    @abstractmethod
    def put(self, bucket: str, key: str, data: bytes, size: int, content_type: str) -> None:
        raise NotImplementedError

    @abstractmethod
    def get(self, bucket: str, key: str) -> bytes:
        raise NotImplementedError

    @abstractmethod
    def remove(self, bucket: str, key: str) -> None:
        raise NotImplementedError
