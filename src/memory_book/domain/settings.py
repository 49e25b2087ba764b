"""Domain models for per-owner settings."""

from dataclasses import dataclass
from datetime import date
from uuid import UUID


@dataclass(frozen=True)
class UserSettings:
    """Settings used when building pages for an owner."""

    owner_id: UUID
    child_name: str | None = None
    child_birthday: date | None = None
