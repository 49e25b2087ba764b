"""Clustering of an uploaded batch into clusters and drafts."""

import asyncio
import logging
from collections.abc import Iterable
from dataclasses import dataclass
from uuid import UUID

from memory_book.domain.classification import ClassifierOutput
from memory_book.domain.clusters import ClusterRecord
from memory_book.domain.drafts import DraftRecord, PageView
from memory_book.domain.errors import (
    ConflictError,
    NotFoundError,
    StorageError,
    UpstreamUnavailable,
    ValidationError,
)
from memory_book.domain.photos import PhotoRecord
from memory_book.domain.temporal import describe_photo_dates
from memory_book.services.backgrounds import BackgroundService
from memory_book.services.classification import ClassificationService
from memory_book.services.clustering import ClusterRepository, repair_groups
from memory_book.services.drafts import DraftRepository
from memory_book.services.pages import PageRenderer
from memory_book.services.photos import PhotoRepository
from memory_book.services.storage import ObjectStorage
from memory_book.services.user_settings import UserSettingsService

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AnalysisResult:
    """Clusters and drafts created for one batch."""

    clusters: list[ClusterRecord]
    drafts: list[PageView]


@dataclass
class ClusterBuilder:  # noqa: PLR0902
    """Groups a batch of photos and creates one cluster and draft per group."""

    photo_repository: PhotoRepository
    cluster_repository: ClusterRepository
    draft_repository: DraftRepository
    storage: ObjectStorage
    classification_service: ClassificationService
    background_service: BackgroundService
    user_settings_service: UserSettingsService
    page_renderer: PageRenderer

    async def analyze(
        self, owner_id: UUID, photo_ids: Iterable[UUID]
    ) -> AnalysisResult:
        """Cluster a batch; always yields at least one cluster for a valid batch."""
        batch = list(dict.fromkeys(photo_ids))
        if not batch:
            raise ValidationError("No photo ids provided")
        photos = {
            photo.id: photo
            for photo in self.photo_repository.get_photos(owner_id, batch)
        }
        missing = [photo_id for photo_id in batch if photo_id not in photos]
        if missing:
            raise NotFoundError(f"Photos not found: {', '.join(map(str, missing))}")
        clustered = self.cluster_repository.find_clustered_photo_ids(owner_id, batch)
        if clustered:
            listed = ", ".join(sorted(map(str, clustered)))
            raise ConflictError(f"Photos already clustered: {listed}")

        classified_ids, images = self._download(batch, photos)
        output = await self._classify(owner_id, images)
        groups = repair_groups(batch, classified_ids, output)

        backgrounds = await asyncio.gather(
            *(
                self.background_service.create_background(
                    owner_id, group.theme, group.title, group.description
                )
                for group in groups
            )
        )
        birthday = self.user_settings_service.get_child_birthday(owner_id)

        clusters: list[ClusterRecord] = []
        records: list[DraftRecord] = []
        try:
            for group, background_ref in zip(groups, backgrounds, strict=True):
                cluster = self.cluster_repository.create_cluster(owner_id, group)
                clusters.append(cluster)
                dates = describe_photo_dates(
                    (photos[photo_id].taken_at for photo_id in group.photo_ids),
                    birthday,
                )
                records.append(
                    self.draft_repository.create_draft(
                        owner_id=owner_id,
                        cluster_id=cluster.id,
                        title=group.title,
                        description=group.description,
                        theme=group.theme,
                        background_ref=background_ref,
                        date_range=dates.date_range,
                        age_string=dates.age_string,
                    )
                )
        except ConflictError:
            logger.warning(
                "Photos were clustered by a concurrent batch, rolling back",
                extra={"owner_id": str(owner_id), "clusters_created": len(clusters)},
            )
            self._roll_back(owner_id, clusters, records, backgrounds)
            raise

        drafts = [
            self.page_renderer.render(draft, cluster.photo_ids)
            for draft, cluster in zip(records, clusters, strict=True)
        ]
        logger.info(
            "Clustered photo batch",
            extra={
                "owner_id": str(owner_id),
                "photos": len(batch),
                "clusters": len(clusters),
            },
        )
        return AnalysisResult(clusters=clusters, drafts=drafts)

    def _download(
        self, batch: list[UUID], photos: dict[UUID, PhotoRecord]
    ) -> tuple[list[UUID], list[bytes]]:
        classified_ids: list[UUID] = []
        images: list[bytes] = []
        for photo_id in batch:
            try:
                images.append(self.storage.download(photos[photo_id].storage_ref))
            except StorageError:
                logger.exception(
                    "Failed to download photo for analysis",
                    extra={"photo_id": str(photo_id)},
                )
                continue
            classified_ids.append(photo_id)
        return classified_ids, images

    async def _classify(
        self, owner_id: UUID, images: list[bytes]
    ) -> ClassifierOutput | None:
        if not images:
            return None
        try:
            return await self.classification_service.classify(images)
        except UpstreamUnavailable:
            logger.exception(
                "Classifier unavailable, falling back to a single cluster",
                extra={"owner_id": str(owner_id)},
            )
            return None

    def _roll_back(
        self,
        owner_id: UUID,
        clusters: list[ClusterRecord],
        records: list[DraftRecord],
        backgrounds: Iterable[str | None],
    ) -> None:
        for draft in records:
            self.draft_repository.delete_draft(owner_id, draft.id)
        for cluster in clusters:
            self.cluster_repository.delete_cluster(owner_id, cluster.id)
        for ref in backgrounds:
            if not ref:
                continue
            try:
                self.storage.delete(ref)
            except StorageError:
                logger.exception(
                    "Failed to delete background of rolled back batch",
                    extra={"ref": ref},
                )
