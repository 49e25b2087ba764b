"""Supabase-backed draft repository."""

from dataclasses import dataclass
from datetime import UTC, datetime
from enum import Enum
from uuid import UUID

from supabase import Client

from memory_book.domain.drafts import DraftRecord, DraftStatus
from memory_book.domain.themes import Theme
from memory_book.services.drafts import DraftRepository


@dataclass
class SupabaseDraftRepository(DraftRepository):
    """Supabase implementation for page drafts."""

    client: Client

    def create_draft(  # noqa: PLR0913
        self,
        owner_id: UUID,
        cluster_id: UUID,
        title: str,
        description: str,
        theme: Theme,
        background_ref: str | None,
        date_range: str,
        age_string: str,
    ) -> DraftRecord:
        """Create a draft row and return it."""
        response = (
            self.client.table("page_drafts")
            .insert(
                {
                    "user_id": str(owner_id),
                    "cluster_id": str(cluster_id),
                    "title": title,
                    "description": description,
                    "theme": theme.value,
                    "background_storage_path": background_ref,
                    "date_range": date_range,
                    "age_string": age_string,
                    "status": DraftStatus.DRAFT.value,
                }
            )
            .execute()
        )
        if not response.data:
            raise RuntimeError("Failed to create draft")
        return _parse_draft(response.data[0])

    def get_draft(self, owner_id: UUID, draft_id: UUID) -> DraftRecord | None:
        """Return an owned draft by id, if present."""
        response = (
            self.client.table("page_drafts")
            .select("*")
            .eq("id", str(draft_id))
            .eq("user_id", str(owner_id))
            .limit(1)
            .execute()
        )
        if not response.data:
            return None
        return _parse_draft(response.data[0])

    def list_drafts(self, owner_id: UUID, status: DraftStatus) -> list[DraftRecord]:
        """Return an owner's drafts in a status, newest first."""
        response = (
            self.client.table("page_drafts")
            .select("*")
            .eq("user_id", str(owner_id))
            .eq("status", status.value)
            .order("created_at", desc=True)
            .execute()
        )
        return [_parse_draft(row) for row in response.data or []]

    def update_draft(
        self,
        owner_id: UUID,
        draft_id: UUID,
        payload: dict[str, object],
        expected_status: DraftStatus,
        updated_before: datetime | None = None,
    ) -> DraftRecord | None:
        """Conditionally update a draft guarded by its current status."""
        query = (
            self.client.table("page_drafts")
            .update(
                {
                    **_serialize_payload(payload),
                    "updated_at": datetime.now(tz=UTC).isoformat(),
                }
            )
            .eq("id", str(draft_id))
            .eq("user_id", str(owner_id))
            .eq("status", expected_status.value)
        )
        if updated_before is not None:
            query = query.lt("updated_at", updated_before.isoformat())
        response = query.execute()
        if not response.data:
            return None
        return _parse_draft(response.data[0])

    def delete_draft(self, owner_id: UUID, draft_id: UUID) -> None:
        """Delete an owned draft."""
        self.client.table("page_drafts").delete().eq("id", str(draft_id)).eq(
            "user_id", str(owner_id)
        ).execute()

    def list_stale_drafts(self, updated_before: datetime) -> list[DraftRecord]:
        """Return open drafts last updated before a cutoff, across owners."""
        response = (
            self.client.table("page_drafts")
            .select("*")
            .eq("status", DraftStatus.DRAFT.value)
            .lt("updated_at", updated_before.isoformat())
            .execute()
        )
        return [_parse_draft(row) for row in response.data or []]


def _serialize_payload(payload: dict[str, object]) -> dict[str, object]:
    """Convert domain values in a change set into JSON-friendly values."""
    serialized: dict[str, object] = {}
    for key, value in payload.items():
        if isinstance(value, Enum):
            serialized[key] = value.value
        elif isinstance(value, list | tuple):
            serialized[key] = [str(item) for item in value]
        else:
            serialized[key] = value
    return serialized


def _parse_draft(row: dict[str, object]) -> DraftRecord:
    """Parse a draft row into a domain model."""
    kept_raw = row.get("kept_photo_ids")
    return DraftRecord(
        id=UUID(str(row["id"])),
        owner_id=UUID(str(row["user_id"])),
        cluster_id=UUID(str(row["cluster_id"])),
        title=str(row.get("title") or ""),
        description=str(row.get("description") or ""),
        theme=Theme.parse(row.get("theme")),
        background_ref=row.get("background_storage_path") or None,
        status=DraftStatus(str(row.get("status") or DraftStatus.DRAFT.value)),
        date_range=str(row.get("date_range") or ""),
        age_string=str(row.get("age_string") or ""),
        kept_photo_ids=(
            tuple(UUID(str(item)) for item in kept_raw)
            if isinstance(kept_raw, list)
            else None
        ),
        created_at=datetime.fromisoformat(str(row["created_at"])),
        updated_at=datetime.fromisoformat(str(row["updated_at"])),
    )
