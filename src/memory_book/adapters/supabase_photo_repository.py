"""Supabase-backed photo repository."""

from dataclasses import dataclass
from datetime import datetime
from uuid import UUID

from supabase import Client

from memory_book.domain.photos import PhotoRecord
from memory_book.services.photos import PhotoRepository

_PHOTO_COLUMNS = (
    "id, user_id, storage_path, thumb_storage_path, size_bytes, content_type, "
    "original_filename, taken_at, created_at, deleted_at"
)


@dataclass
class SupabasePhotoRepository(PhotoRepository):
    """Supabase implementation for photo metadata persistence."""

    client: Client

    def create_photo(  # noqa: PLR0913
        self,
        owner_id: UUID,
        storage_ref: str,
        thumb_ref: str | None,
        size_bytes: int,
        content_type: str,
        original_filename: str,
        taken_at: datetime | None,
    ) -> PhotoRecord:
        """Create a photo row and return it."""
        response = (
            self.client.table("photos")
            .insert(
                {
                    "user_id": str(owner_id),
                    "storage_path": storage_ref,
                    "thumb_storage_path": thumb_ref,
                    "size_bytes": size_bytes,
                    "content_type": content_type,
                    "original_filename": original_filename,
                    "taken_at": taken_at.isoformat() if taken_at else None,
                }
            )
            .execute()
        )
        if not response.data:
            raise RuntimeError("Failed to create photo metadata")
        return _parse_photo(response.data[0])

    def get_photos(
        self, owner_id: UUID, photo_ids: list[UUID], include_deleted: bool = False
    ) -> list[PhotoRecord]:
        """Return the owner's photos among the given ids, live ones by default."""
        if not photo_ids:
            return []
        query = (
            self.client.table("photos")
            .select(_PHOTO_COLUMNS)
            .eq("user_id", str(owner_id))
            .in_("id", [str(photo_id) for photo_id in photo_ids])
        )
        if not include_deleted:
            query = query.is_("deleted_at", "null")
        response = query.execute()
        return [_parse_photo(row) for row in response.data or []]

    def list_photos(self, owner_id: UUID) -> list[PhotoRecord]:
        """Return all live photos for an owner, newest first."""
        response = (
            self.client.table("photos")
            .select(_PHOTO_COLUMNS)
            .eq("user_id", str(owner_id))
            .is_("deleted_at", "null")
            .order("created_at", desc=True)
            .execute()
        )
        return [_parse_photo(row) for row in response.data or []]

    def delete_photo(self, owner_id: UUID, photo_id: UUID) -> None:
        """Hard-delete a photo row."""
        self.client.table("photos").delete().eq("id", str(photo_id)).eq(
            "user_id", str(owner_id)
        ).execute()

    def soft_delete_photo(
        self, owner_id: UUID, photo_id: UUID, deleted_at: datetime
    ) -> bool:
        """Mark a live photo deleted; return False when no live row matched."""
        response = (
            self.client.table("photos")
            .update({"deleted_at": deleted_at.isoformat()})
            .eq("id", str(photo_id))
            .eq("user_id", str(owner_id))
            .is_("deleted_at", "null")
            .execute()
        )
        return bool(response.data)


def _parse_photo(row: dict[str, object]) -> PhotoRecord:
    """Parse a photo row into a domain model."""
    return PhotoRecord(
        id=UUID(str(row["id"])),
        owner_id=UUID(str(row["user_id"])),
        storage_ref=str(row["storage_path"]),
        thumb_ref=row.get("thumb_storage_path") or None,
        size_bytes=int(row.get("size_bytes") or 0),
        content_type=str(row.get("content_type") or "image/jpeg"),
        original_filename=str(row.get("original_filename") or ""),
        taken_at=_parse_datetime(row.get("taken_at")),
        created_at=_parse_datetime(row.get("created_at")) or datetime.min,
        deleted_at=_parse_datetime(row.get("deleted_at")),
    )


def _parse_datetime(value: object) -> datetime | None:
    if isinstance(value, str) and value:
        return datetime.fromisoformat(value)
    return None
