"""Draft approval and reconciliation of discarded photos."""

import logging
from collections.abc import Iterable
from dataclasses import dataclass
from uuid import UUID

from memory_book.domain.clusters import ClusterRecord
from memory_book.domain.drafts import DraftFields, DraftRecord, DraftStatus, PageView
from memory_book.domain.errors import (
    ConflictError,
    NotFoundError,
    StorageError,
    ValidationError,
)
from memory_book.services.clustering import ClusterRepository
from memory_book.services.drafts import DraftRepository
from memory_book.services.pages import PageRenderer
from memory_book.services.photos import PhotoRepository
from memory_book.services.storage import ObjectStorage

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ApprovalPlan:
    """Outcome of an approval decision, before any side effect runs."""

    kept: tuple[UUID, ...]
    discarded: tuple[UUID, ...]
    changes: dict[str, object]


def plan_approval(
    draft: DraftRecord,
    cluster: ClusterRecord,
    final_fields: DraftFields,
    kept_photo_ids: Iterable[UUID],
) -> ApprovalPlan:
    """Decide which photos survive approval and how the draft changes.

    The cluster membership is authoritative: requested ids outside it are
    ignored, and every member not requested is discarded.
    """
    if draft.status != DraftStatus.DRAFT:
        raise ConflictError(f"Draft {draft.id} is already {draft.status}")
    if cluster.id != draft.cluster_id:
        raise NotFoundError(f"Cluster {draft.cluster_id} not found")
    requested = set(kept_photo_ids)
    kept = tuple(photo_id for photo_id in cluster.photo_ids if photo_id in requested)
    discarded = tuple(
        photo_id for photo_id in cluster.photo_ids if photo_id not in requested
    )
    if not kept:
        raise ValidationError("A page must keep at least one photo")
    changes: dict[str, object] = {
        **final_fields.to_payload(),
        "kept_photo_ids": list(kept),
        "status": DraftStatus.APPROVED,
    }
    return ApprovalPlan(kept=kept, discarded=discarded, changes=changes)


@dataclass
class ApprovalService:
    """Commits drafts to pages and deletes the photos curated out of them."""

    draft_repository: DraftRepository
    cluster_repository: ClusterRepository
    photo_repository: PhotoRepository
    storage: ObjectStorage
    page_renderer: PageRenderer

    def approve(
        self,
        owner_id: UUID,
        draft_id: UUID,
        final_fields: DraftFields,
        kept_photo_ids: Iterable[UUID],
    ) -> PageView:
        """Publish a draft with the kept photos.

        The status flip is a conditional write, so of two racing callers only
        one gets past it and deletes the discarded photos.
        """
        draft = self.draft_repository.get_draft(owner_id, draft_id)
        if draft is None:
            raise NotFoundError(f"Draft {draft_id} not found")
        cluster = self.cluster_repository.get_cluster(owner_id, draft.cluster_id)
        if cluster is None:
            raise NotFoundError(f"Cluster {draft.cluster_id} not found")

        plan = plan_approval(draft, cluster, final_fields, kept_photo_ids)
        approved = self.draft_repository.update_draft(
            owner_id, draft_id, plan.changes, expected_status=DraftStatus.DRAFT
        )
        if approved is None:
            raise ConflictError(
                f"Draft {draft_id} was approved or discarded concurrently"
            )
        logger.info(
            "Approved draft",
            extra={
                "draft_id": str(draft_id),
                "kept": len(plan.kept),
                "discarded": len(plan.discarded),
            },
        )

        self._delete_photos(owner_id, cluster.id, plan.discarded)
        return self.page_renderer.render(approved, cluster.photo_ids)

    def _delete_photos(
        self, owner_id: UUID, cluster_id: UUID, photo_ids: tuple[UUID, ...]
    ) -> None:
        if not photo_ids:
            return
        try:
            claimed = self.cluster_repository.find_clustered_photo_ids(
                owner_id, list(photo_ids), exclude_cluster_id=cluster_id
            )
        except Exception:
            logger.exception(
                "Failed to check membership of discarded photos, keeping them",
                extra={"cluster_id": str(cluster_id)},
            )
            return
        if claimed:
            logger.warning(
                "Keeping discarded photos claimed by another cluster",
                extra={"cluster_id": str(cluster_id), "count": len(claimed)},
            )
        deletable = [photo_id for photo_id in photo_ids if photo_id not in claimed]
        try:
            records = {
                photo.id: photo
                for photo in self.photo_repository.get_photos(
                    owner_id, deletable, include_deleted=True
                )
            }
        except Exception:
            logger.exception("Failed to load discarded photos, deleting rows only")
            records = {}

        for photo_id in deletable:
            record = records.get(photo_id)
            for ref in record.storage_refs if record else []:
                try:
                    self.storage.delete(ref)
                except StorageError:
                    logger.exception(
                        "Failed to delete photo object",
                        extra={"photo_id": str(photo_id), "ref": ref},
                    )
            try:
                self.photo_repository.delete_photo(owner_id, photo_id)
            except Exception:
                logger.exception(
                    "Failed to delete photo row", extra={"photo_id": str(photo_id)}
                )
