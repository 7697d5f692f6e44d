from __future__ import annotations

from dataclasses import asdict, dataclass
from enum import Enum
from typing import Optional


@dataclass(frozen=True)
class SniffResult:
    mime_type: str
    extension: str  # with leading dot, e.g. ".png"


@dataclass(frozen=True)
class VersionSlot:
    version: int
    prior_count: int


@dataclass
class DocumentRecord:
    doc_id: str
    logical_name: str
    storage_key: str
    version: int
    size_bytes: int
    mime_type: str
    extension: str
    is_current: bool
    created_at_ms: int

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass(frozen=True)
class UploadResult:
    record: DocumentRecord
    total_versions: int


@dataclass(frozen=True)
class DocumentBytes:
    filename: str
    content: bytes
    mime_type: str | None = None


@dataclass(frozen=True)
class DeleteResult:
    ok: bool
    doc_id: str
    blob_removed: bool = True
    promoted_doc_id: Optional[str] = None


class PreviewState(str, Enum):
    RECEIVED = "received"
    CLASSIFIED = "classified"
    RENDERING = "rendering"
    RENDERED = "rendered"
    FALLBACK = "fallback"


@dataclass(frozen=True)
class PreviewImage:
    content: bytes
    state: PreviewState
    media_type: str = "image/png"
    message: str | None = None

    @property
    def is_placeholder(self) -> bool:
        return self.state == PreviewState.FALLBACK
