"""Supabase-backed cluster repository."""

from dataclasses import dataclass
from datetime import datetime
from uuid import UUID

from supabase import Client, PostgrestAPIError

from memory_book.domain.clusters import ClusterGroup, ClusterRecord
from memory_book.domain.errors import ConflictError
from memory_book.domain.themes import Theme
from memory_book.services.clustering import ClusterRepository

_UNIQUE_VIOLATION = "23505"


@dataclass
class SupabaseClusterRepository(ClusterRepository):
    """Supabase implementation for clusters.

    Membership is stored twice: as an immutable ``photo_ids`` array on the
    cluster row, so deleting discarded photos never shrinks the original set,
    and as ``cluster_photos`` rows keyed by photo id, so a photo can be
    claimed by one cluster only.
    """

    client: Client

    def create_cluster(self, owner_id: UUID, group: ClusterGroup) -> ClusterRecord:
        """Create a cluster and claim its photos in one transaction."""
        try:
            response = self.client.rpc(
                "create_cluster",
                {
                    "p_user_id": str(owner_id),
                    "p_photo_ids": [str(photo_id) for photo_id in group.photo_ids],
                    "p_title": group.title,
                    "p_description": group.description,
                    "p_theme": group.theme.value,
                },
            ).execute()
        except PostgrestAPIError as exc:
            if exc.code == _UNIQUE_VIOLATION:
                raise ConflictError("Photos already clustered") from exc
            raise
        if not response.data:
            raise RuntimeError("Failed to create cluster")
        return _parse_cluster(response.data[0])

    def get_cluster(self, owner_id: UUID, cluster_id: UUID) -> ClusterRecord | None:
        """Return an owned cluster by id, if present."""
        response = (
            self.client.table("clusters")
            .select("*")
            .eq("id", str(cluster_id))
            .eq("user_id", str(owner_id))
            .limit(1)
            .execute()
        )
        if not response.data:
            return None
        return _parse_cluster(response.data[0])

    def find_clustered_photo_ids(
        self,
        owner_id: UUID,
        photo_ids: list[UUID],
        exclude_cluster_id: UUID | None = None,
    ) -> set[UUID]:
        """Return the subset of photo ids already members of another cluster."""
        if not photo_ids:
            return set()
        response = (
            self.client.table("cluster_photos")
            .select("photo_id, cluster_id")
            .eq("user_id", str(owner_id))
            .in_("photo_id", [str(photo_id) for photo_id in photo_ids])
            .execute()
        )
        return {
            UUID(str(row["photo_id"]))
            for row in response.data or []
            if exclude_cluster_id is None
            or UUID(str(row["cluster_id"])) != exclude_cluster_id
        }

    def delete_cluster(self, owner_id: UUID, cluster_id: UUID) -> None:
        """Delete an owned cluster; its membership rows cascade."""
        self.client.table("clusters").delete().eq("id", str(cluster_id)).eq(
            "user_id", str(owner_id)
        ).execute()


def _parse_cluster(row: dict[str, object]) -> ClusterRecord:
    """Parse a cluster row into a domain model."""
    return ClusterRecord(
        id=UUID(str(row["id"])),
        owner_id=UUID(str(row["user_id"])),
        photo_ids=tuple(UUID(str(member)) for member in row.get("photo_ids") or []),
        title=str(row.get("title") or ""),
        description=str(row.get("description") or ""),
        theme=Theme.parse(row.get("theme")),
        created_at=datetime.fromisoformat(str(row["created_at"])),
    )
