"""Domain models for page drafts and published pages."""

from dataclasses import dataclass
from datetime import datetime
from enum import StrEnum
from uuid import UUID

from memory_book.domain.themes import Theme


class DraftStatus(StrEnum):
    """Lifecycle states of a page draft."""

    DRAFT = "draft"
    APPROVED = "approved"
    REJECTED = "rejected"


@dataclass(frozen=True)
class DraftRecord:
    """Represents a persisted page draft."""

    id: UUID
    owner_id: UUID
    cluster_id: UUID
    title: str
    description: str
    theme: Theme
    background_ref: str | None
    status: DraftStatus
    date_range: str
    age_string: str
    kept_photo_ids: tuple[UUID, ...] | None
    created_at: datetime
    updated_at: datetime


@dataclass(frozen=True)
class DraftFields:
    """User-editable draft fields; None leaves a field unchanged."""

    title: str | None = None
    description: str | None = None
    theme: str | None = None

    def to_payload(self) -> dict[str, object]:
        """Return only the fields that carry a non-empty value."""
        payload: dict[str, object] = {}
        if self.title:
            payload["title"] = self.title
        if self.description:
            payload["description"] = self.description
        if self.theme:
            payload["theme"] = Theme.parse(self.theme)
        return payload


@dataclass(frozen=True)
class PagePhoto:
    """Photo reference on a rendered page; url is None when signing failed."""

    id: UUID
    url: str | None


@dataclass(frozen=True)
class PageView:
    """Rendered draft or published page."""

    id: UUID
    cluster_id: UUID
    title: str
    description: str
    theme: Theme
    status: DraftStatus
    photos: list[PagePhoto]
    original_photo_ids: list[UUID]
    background_url: str | None = None
    date_range: str | None = None
    age_string: str | None = None
