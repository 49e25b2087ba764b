"""Cluster persistence interface and classifier output repair."""

from collections.abc import Sequence
from typing import Protocol
from uuid import UUID

from memory_book.domain.classification import ClassifierOutput
from memory_book.domain.clusters import ClusterGroup, ClusterRecord
from memory_book.domain.themes import DEFAULT_THEME, Theme

FALLBACK_TITLE = "Precious Moments"
FALLBACK_DESCRIPTION = (
    "A beautiful collection of memories capturing the joy and wonder of these "
    "special moments. Each photo tells a story of love and growth."
)


class ClusterRepository(Protocol):
    """Persistence interface for photo clusters."""

    def create_cluster(self, owner_id: UUID, group: ClusterGroup) -> ClusterRecord:
        """Create a cluster with its original membership and return it.

        Raises ConflictError when any member already belongs to a cluster.
        """

    def get_cluster(self, owner_id: UUID, cluster_id: UUID) -> ClusterRecord | None:
        """Return an owned cluster by id, if present."""

    def find_clustered_photo_ids(
        self,
        owner_id: UUID,
        photo_ids: list[UUID],
        exclude_cluster_id: UUID | None = None,
    ) -> set[UUID]:
        """Return the subset of photo ids already members of another cluster."""

    def delete_cluster(self, owner_id: UUID, cluster_id: UUID) -> None:
        """Delete an owned cluster."""


def repair_groups(
    batch_ids: Sequence[UUID],
    classified_ids: Sequence[UUID],
    output: ClassifierOutput | None,
) -> list[ClusterGroup]:
    """Turn raw classifier groups into groups covering the batch exactly once.

    ``classified_ids`` are the ids in the order their images were sent to the
    classifier, so group indexes point into it. Out-of-range indexes are
    dropped, a photo claimed by several groups stays in the first one, empty
    groups are dropped, and every unclaimed photo of the batch lands in one
    generic "love" group. With no output at all that group is the whole batch.
    """
    groups: list[ClusterGroup] = []
    assigned: set[UUID] = set()
    for raw_group in output.groups if output else []:
        members: list[UUID] = []
        for index in raw_group.photo_indexes:
            if not 0 <= index < len(classified_ids):
                continue
            photo_id = classified_ids[index]
            if photo_id in assigned:
                continue
            assigned.add(photo_id)
            members.append(photo_id)
        if not members:
            continue
        groups.append(
            ClusterGroup(
                photo_ids=tuple(members),
                title=raw_group.title.strip() or FALLBACK_TITLE,
                description=raw_group.description.strip() or FALLBACK_DESCRIPTION,
                theme=Theme.parse(raw_group.theme),
            )
        )

    leftovers = tuple(photo_id for photo_id in batch_ids if photo_id not in assigned)
    if leftovers:
        groups.append(fallback_group(leftovers))
    return groups


def fallback_group(photo_ids: tuple[UUID, ...]) -> ClusterGroup:
    """Generic group used when the classifier cannot place photos."""
    return ClusterGroup(
        photo_ids=photo_ids,
        title=FALLBACK_TITLE,
        description=FALLBACK_DESCRIPTION,
        theme=DEFAULT_THEME,
    )
