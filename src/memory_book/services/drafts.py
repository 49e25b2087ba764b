"""Draft editing, curation and discarding."""

import logging
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from typing import Protocol
from uuid import UUID

from memory_book.domain.drafts import DraftFields, DraftRecord, DraftStatus, PageView
from memory_book.domain.errors import ConflictError, NotFoundError, ValidationError
from memory_book.domain.themes import Theme
from memory_book.services.clustering import ClusterRepository
from memory_book.services.pages import PageRenderer

logger = logging.getLogger(__name__)


class DraftRepository(Protocol):
    """Persistence interface for page drafts."""

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
        """Create a draft in status "draft" and return it."""

    def get_draft(self, owner_id: UUID, draft_id: UUID) -> DraftRecord | None:
        """Return an owned draft by id, if present."""

    def list_drafts(self, owner_id: UUID, status: DraftStatus) -> list[DraftRecord]:
        """Return an owner's drafts in a status, newest first."""

    def update_draft(
        self,
        owner_id: UUID,
        draft_id: UUID,
        payload: dict[str, object],
        expected_status: DraftStatus,
        updated_before: datetime | None = None,
    ) -> DraftRecord | None:
        """Apply changes only if the draft is still in the expected status.

        With ``updated_before`` the draft must also be untouched since then.
        Returns the updated draft, or None when no row matched.
        """

    def delete_draft(self, owner_id: UUID, draft_id: UUID) -> None:
        """Delete an owned draft."""

    def list_stale_drafts(self, updated_before: datetime) -> list[DraftRecord]:
        """Return drafts still in status "draft" last updated before a cutoff."""


@dataclass
class DraftService:
    """Application service for the editable side of the draft lifecycle."""

    repository: DraftRepository
    cluster_repository: ClusterRepository
    page_renderer: PageRenderer

    def get_draft(self, owner_id: UUID, draft_id: UUID) -> PageView:
        """Return a rendered draft or page."""
        return self._render(self._load(owner_id, draft_id))

    def list_drafts(self, owner_id: UUID) -> list[PageView]:
        """Return drafts awaiting approval."""
        drafts = self.repository.list_drafts(owner_id, DraftStatus.DRAFT)
        return [self._render(draft) for draft in drafts]

    def list_pages(self, owner_id: UUID) -> list[PageView]:
        """Return published pages."""
        drafts = self.repository.list_drafts(owner_id, DraftStatus.APPROVED)
        return [self._render(draft) for draft in drafts]

    def edit(self, owner_id: UUID, draft_id: UUID, fields: DraftFields) -> PageView:
        """Update title, description or theme of an open draft."""
        draft = self._load(owner_id, draft_id)
        if draft.status != DraftStatus.DRAFT:
            raise ValidationError(f"Draft is {draft.status}, only drafts can be edited")
        updated = self.repository.update_draft(
            owner_id, draft_id, fields.to_payload(), expected_status=DraftStatus.DRAFT
        )
        if updated is None:
            raise ValidationError("Draft is no longer editable")
        return self._render(updated)

    def curate(
        self, owner_id: UUID, draft_id: UUID, keep_photo_ids: Iterable[UUID]
    ) -> PageView:
        """Persist the user's working subset of the draft's photos.

        The subset is checked against the cluster only at approval time.
        """
        draft = self._load(owner_id, draft_id)
        if draft.status != DraftStatus.DRAFT:
            raise ValidationError(
                f"Draft is {draft.status}, only drafts can be curated"
            )
        kept = list(dict.fromkeys(keep_photo_ids))
        updated = self.repository.update_draft(
            owner_id,
            draft_id,
            {"kept_photo_ids": kept},
            expected_status=DraftStatus.DRAFT,
        )
        if updated is None:
            raise ValidationError("Draft is no longer editable")
        return self._render(updated)

    def discard(
        self, owner_id: UUID, draft_id: UUID, updated_before: datetime | None = None
    ) -> None:
        """Reject a draft and delete it with its cluster; photos are kept.

        With ``updated_before`` a draft edited after that moment is left alone.
        """
        draft = self._load(owner_id, draft_id)
        if draft.status == DraftStatus.APPROVED:
            raise ConflictError("Approved pages cannot be discarded")
        if draft.status == DraftStatus.DRAFT:
            rejected = self.repository.update_draft(
                owner_id,
                draft_id,
                {"status": DraftStatus.REJECTED},
                expected_status=DraftStatus.DRAFT,
                updated_before=updated_before,
            )
            if rejected is None:
                raise ConflictError("Draft changed state while being discarded")
        self.repository.delete_draft(owner_id, draft_id)
        self.cluster_repository.delete_cluster(owner_id, draft.cluster_id)
        logger.info(
            "Discarded draft",
            extra={"draft_id": str(draft_id), "cluster_id": str(draft.cluster_id)},
        )

    def sweep_stale(self, older_than: timedelta, now: datetime | None = None) -> int:
        """Discard drafts nobody touched within ``older_than``."""
        cutoff = (now or datetime.now(tz=UTC)) - older_than
        swept = 0
        for draft in self.repository.list_stale_drafts(cutoff):
            try:
                self.discard(draft.owner_id, draft.id, updated_before=cutoff)
            except (ConflictError, NotFoundError):
                logger.info(
                    "Skipped stale draft that changed state",
                    extra={"draft_id": str(draft.id)},
                )
                continue
            swept += 1
        logger.info("Swept stale drafts", extra={"count": swept})
        return swept

    def _load(self, owner_id: UUID, draft_id: UUID) -> DraftRecord:
        draft = self.repository.get_draft(owner_id, draft_id)
        if draft is None:
            raise NotFoundError(f"Draft {draft_id} not found")
        return draft

    def _render(self, draft: DraftRecord) -> PageView:
        cluster = self.cluster_repository.get_cluster(draft.owner_id, draft.cluster_id)
        original = cluster.photo_ids if cluster else ()
        return self.page_renderer.render(draft, original)
