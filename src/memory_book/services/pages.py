"""Rendering of drafts and published pages."""

import logging
from collections.abc import Sequence
from dataclasses import dataclass
from uuid import UUID

from memory_book.domain.drafts import DraftRecord, PagePhoto, PageView
from memory_book.domain.errors import StorageError
from memory_book.services.photos import PhotoRepository
from memory_book.services.storage import ObjectStorage

logger = logging.getLogger(__name__)


@dataclass
class PageRenderer:
    """Turns draft records into page views with signed URLs."""

    photo_repository: PhotoRepository
    storage: ObjectStorage
    signed_url_ttl_seconds: int

    def render(
        self, draft: DraftRecord, original_photo_ids: Sequence[UUID]
    ) -> PageView:
        """Render a draft with its working photo set, or a page with its kept set."""
        selected = (
            list(draft.kept_photo_ids)
            if draft.kept_photo_ids is not None
            else list(original_photo_ids)
        )
        return PageView(
            id=draft.id,
            cluster_id=draft.cluster_id,
            title=draft.title,
            description=draft.description,
            theme=draft.theme,
            status=draft.status,
            photos=self._photos(draft.owner_id, selected),
            original_photo_ids=list(original_photo_ids),
            background_url=self._sign(draft.background_ref),
            date_range=draft.date_range or None,
            age_string=draft.age_string or None,
        )

    def _photos(self, owner_id: UUID, photo_ids: list[UUID]) -> list[PagePhoto]:
        if not photo_ids:
            return []
        records = {
            photo.id: photo
            for photo in self.photo_repository.get_photos(owner_id, photo_ids)
        }
        photos: list[PagePhoto] = []
        for photo_id in photo_ids:
            record = records.get(photo_id)
            if record is None:
                continue
            photos.append(PagePhoto(id=photo_id, url=self._sign(record.storage_ref)))
        return photos

    def _sign(self, ref: str | None) -> str | None:
        if not ref:
            return None
        try:
            return self.storage.signed_url(ref, self.signed_url_ttl_seconds)
        except StorageError:
            logger.exception("Failed to sign storage ref", extra={"ref": ref})
            return None
