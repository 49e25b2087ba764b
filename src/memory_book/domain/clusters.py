"""Domain models for AI-proposed photo clusters."""

from dataclasses import dataclass
from datetime import datetime
from uuid import UUID

from memory_book.domain.themes import Theme


@dataclass(frozen=True)
class ClusterGroup:
    """A validated group of photo ids ready to be persisted as a cluster."""

    photo_ids: tuple[UUID, ...]
    title: str
    description: str
    theme: Theme


@dataclass(frozen=True)
class ClusterRecord:
    """Represents a persisted cluster and its original membership."""

    id: UUID
    owner_id: UUID
    photo_ids: tuple[UUID, ...]
    title: str
    description: str
    theme: Theme
    created_at: datetime
