"""Supabase repository for user settings."""

from dataclasses import dataclass
from datetime import UTC, date, datetime
from uuid import UUID

from supabase import Client

from memory_book.domain.settings import UserSettings
from memory_book.services.user_settings import UserSettingsRepository


@dataclass
class SupabaseUserSettingsRepository(UserSettingsRepository):
    """Supabase implementation for user settings."""

    client: Client

    def get_settings(self, owner_id: UUID) -> UserSettings | None:
        """Return the stored settings for an owner."""
        response = (
            self.client.table("user_settings")
            .select("user_id, child_name, child_birthday")
            .eq("user_id", str(owner_id))
            .limit(1)
            .execute()
        )
        if not response.data:
            return None
        return _parse_settings(response.data[0])

    def upsert_settings(self, settings: UserSettings) -> UserSettings:
        """Create or replace the owner's settings."""
        response = (
            self.client.table("user_settings")
            .upsert(
                {
                    "user_id": str(settings.owner_id),
                    "child_name": settings.child_name,
                    "child_birthday": (
                        settings.child_birthday.isoformat()
                        if settings.child_birthday
                        else None
                    ),
                    "updated_at": datetime.now(tz=UTC).isoformat(),
                },
                on_conflict="user_id",
            )
            .execute()
        )
        if not response.data:
            raise RuntimeError("Failed to save user settings")
        return _parse_settings(response.data[0])


def _parse_settings(row: dict[str, object]) -> UserSettings:
    birthday_raw = row.get("child_birthday")
    return UserSettings(
        owner_id=UUID(str(row["user_id"])),
        child_name=row.get("child_name") or None,
        child_birthday=(
            date.fromisoformat(birthday_raw[:10])
            if isinstance(birthday_raw, str) and birthday_raw
            else None
        ),
    )
