"""Domain models for uploaded photos."""

from dataclasses import dataclass
from datetime import datetime
from uuid import UUID


@dataclass(frozen=True)
class PhotoRecord:
    """Represents a persisted photo owned by a user."""

    id: UUID
    owner_id: UUID
    storage_ref: str
    thumb_ref: str | None
    size_bytes: int
    content_type: str
    original_filename: str
    taken_at: datetime | None
    created_at: datetime
    deleted_at: datetime | None = None

    @property
    def storage_refs(self) -> list[str]:
        """Every storage object backing this photo."""
        refs = [self.storage_ref]
        if self.thumb_ref:
            refs.append(self.thumb_ref)
        return refs


@dataclass(frozen=True)
class PhotoView:
    """Photo metadata with a short-lived download URL."""

    id: UUID
    url: str
    original_filename: str
    size_bytes: int
    content_type: str
    taken_at: datetime | None
    created_at: datetime
