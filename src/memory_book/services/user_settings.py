"""User settings service."""

from dataclasses import dataclass
from datetime import date
from typing import Protocol
from uuid import UUID

from memory_book.domain.settings import UserSettings


class UserSettingsRepository(Protocol):
    """Persistence interface for per-owner settings."""

    def get_settings(self, owner_id: UUID) -> UserSettings | None:
        """Return the settings for an owner, if present."""

    def upsert_settings(self, settings: UserSettings) -> UserSettings:
        """Create or replace the settings for an owner."""


@dataclass
class UserSettingsService:
    """Service for reading and updating owner settings."""

    repository: UserSettingsRepository

    def get_settings(self, owner_id: UUID) -> UserSettings:
        """Return stored settings, or empty settings for new owners."""
        return self.repository.get_settings(owner_id) or UserSettings(
            owner_id=owner_id
        )

    def get_child_birthday(self, owner_id: UUID) -> date | None:
        """Return the child's birthday used for age labels."""
        return self.get_settings(owner_id).child_birthday

    def update_settings(
        self, owner_id: UUID, child_name: str | None, child_birthday: date | None
    ) -> UserSettings:
        """Persist the child's name and birthday."""
        cleaned_name = child_name.strip() if child_name else None
        return self.repository.upsert_settings(
            UserSettings(
                owner_id=owner_id,
                child_name=cleaned_name or None,
                child_birthday=child_birthday,
            )
        )
