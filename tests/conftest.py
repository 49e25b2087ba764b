"""Shared test fixtures."""

import threading
from collections.abc import Callable
from dataclasses import dataclass, field, replace
from datetime import UTC, datetime
from uuid import UUID, uuid4

import pytest

from memory_book.config import Settings
from memory_book.containers import AppContainer
from memory_book.domain.clusters import ClusterGroup, ClusterRecord
from memory_book.domain.drafts import DraftRecord, DraftStatus
from memory_book.domain.errors import ConflictError, StorageError
from memory_book.domain.photos import PhotoRecord
from memory_book.domain.settings import UserSettings
from memory_book.domain.themes import Theme
from memory_book.services.analysis import ClusterBuilder
from memory_book.services.approval import ApprovalService
from memory_book.services.backgrounds import BackgroundClient, BackgroundService
from memory_book.services.classification import (
    ClassificationService,
    ClassifierClient,
)
from memory_book.services.clustering import ClusterRepository
from memory_book.services.drafts import DraftRepository, DraftService
from memory_book.services.pages import PageRenderer
from memory_book.services.photos import PhotoRepository, PhotoService
from memory_book.services.storage import ObjectStorage
from memory_book.services.user_settings import (
    UserSettingsRepository,
    UserSettingsService,
)

JPEG_BYTES = b"\xff\xd8\xff\xe0fake-jpeg"
PNG_BYTES = b"\x89PNG\r\n\x1a\nfake-png"


@dataclass
class InMemoryPhotoRepository(PhotoRepository):
    """In-memory photo repository for tests."""

    photos: dict[UUID, PhotoRecord] = field(default_factory=dict)
    deleted: list[UUID] = field(default_factory=list)
    fail_on_create: bool = False

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
        if self.fail_on_create:
            raise RuntimeError("Failed to create photo metadata")
        photo = PhotoRecord(
            id=uuid4(),
            owner_id=owner_id,
            storage_ref=storage_ref,
            thumb_ref=thumb_ref,
            size_bytes=size_bytes,
            content_type=content_type,
            original_filename=original_filename,
            taken_at=taken_at,
            created_at=datetime.now(tz=UTC),
        )
        self.photos[photo.id] = photo
        return photo

    def get_photos(
        self, owner_id: UUID, photo_ids: list[UUID], include_deleted: bool = False
    ) -> list[PhotoRecord]:
        wanted = set(photo_ids)
        return [
            photo
            for photo in self.photos.values()
            if photo.id in wanted
            and photo.owner_id == owner_id
            and (include_deleted or photo.deleted_at is None)
        ]

    def list_photos(self, owner_id: UUID) -> list[PhotoRecord]:
        owned = [
            photo
            for photo in self.photos.values()
            if photo.owner_id == owner_id and photo.deleted_at is None
        ]
        return sorted(owned, key=lambda photo: photo.created_at, reverse=True)

    def delete_photo(self, owner_id: UUID, photo_id: UUID) -> None:
        photo = self.photos.get(photo_id)
        if photo is not None and photo.owner_id == owner_id:
            del self.photos[photo_id]
            self.deleted.append(photo_id)

    def soft_delete_photo(
        self, owner_id: UUID, photo_id: UUID, deleted_at: datetime
    ) -> bool:
        photo = self.photos.get(photo_id)
        if photo is None or photo.owner_id != owner_id or photo.deleted_at:
            return False
        self.photos[photo_id] = replace(photo, deleted_at=deleted_at)
        return True


@dataclass
class InMemoryClusterRepository(ClusterRepository):
    """In-memory cluster repository that keeps each photo in one cluster."""

    clusters: dict[UUID, ClusterRecord] = field(default_factory=dict)
    lock: threading.Lock = field(default_factory=threading.Lock)

    def create_cluster(self, owner_id: UUID, group: ClusterGroup) -> ClusterRecord:
        with self.lock:
            if self.find_clustered_photo_ids(owner_id, list(group.photo_ids)):
                raise ConflictError("Photos already clustered")
            cluster = ClusterRecord(
                id=uuid4(),
                owner_id=owner_id,
                photo_ids=group.photo_ids,
                title=group.title,
                description=group.description,
                theme=group.theme,
                created_at=datetime.now(tz=UTC),
            )
            self.clusters[cluster.id] = cluster
            return cluster

    def get_cluster(self, owner_id: UUID, cluster_id: UUID) -> ClusterRecord | None:
        cluster = self.clusters.get(cluster_id)
        if cluster is None or cluster.owner_id != owner_id:
            return None
        return cluster

    def find_clustered_photo_ids(
        self,
        owner_id: UUID,
        photo_ids: list[UUID],
        exclude_cluster_id: UUID | None = None,
    ) -> set[UUID]:
        members = {
            photo_id
            for cluster in self.clusters.values()
            if cluster.owner_id == owner_id and cluster.id != exclude_cluster_id
            for photo_id in cluster.photo_ids
        }
        return members & set(photo_ids)

    def delete_cluster(self, owner_id: UUID, cluster_id: UUID) -> None:
        cluster = self.clusters.get(cluster_id)
        if cluster is not None and cluster.owner_id == owner_id:
            del self.clusters[cluster_id]


@dataclass
class InMemoryDraftRepository(DraftRepository):
    """In-memory draft repository with an atomic conditional update."""

    drafts: dict[UUID, DraftRecord] = field(default_factory=dict)
    lock: threading.Lock = field(default_factory=threading.Lock)

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
        now = datetime.now(tz=UTC)
        draft = DraftRecord(
            id=uuid4(),
            owner_id=owner_id,
            cluster_id=cluster_id,
            title=title,
            description=description,
            theme=theme,
            background_ref=background_ref,
            status=DraftStatus.DRAFT,
            date_range=date_range,
            age_string=age_string,
            kept_photo_ids=None,
            created_at=now,
            updated_at=now,
        )
        self.drafts[draft.id] = draft
        return draft

    def get_draft(self, owner_id: UUID, draft_id: UUID) -> DraftRecord | None:
        draft = self.drafts.get(draft_id)
        if draft is None or draft.owner_id != owner_id:
            return None
        return draft

    def list_drafts(self, owner_id: UUID, status: DraftStatus) -> list[DraftRecord]:
        matching = [
            draft
            for draft in self.drafts.values()
            if draft.owner_id == owner_id and draft.status == status
        ]
        return sorted(matching, key=lambda draft: draft.created_at, reverse=True)

    def update_draft(
        self,
        owner_id: UUID,
        draft_id: UUID,
        payload: dict[str, object],
        expected_status: DraftStatus,
        updated_before: datetime | None = None,
    ) -> DraftRecord | None:
        with self.lock:
            draft = self.drafts.get(draft_id)
            if (
                draft is None
                or draft.owner_id != owner_id
                or draft.status != expected_status
                or (updated_before is not None and draft.updated_at >= updated_before)
            ):
                return None
            changes = dict(payload)
            if "kept_photo_ids" in changes:
                changes["kept_photo_ids"] = tuple(changes["kept_photo_ids"])
            updated = replace(draft, **changes, updated_at=datetime.now(tz=UTC))
            self.drafts[draft_id] = updated
            return updated

    def delete_draft(self, owner_id: UUID, draft_id: UUID) -> None:
        if self.get_draft(owner_id, draft_id) is not None:
            del self.drafts[draft_id]

    def list_stale_drafts(self, updated_before: datetime) -> list[DraftRecord]:
        return [
            draft
            for draft in self.drafts.values()
            if draft.status == DraftStatus.DRAFT and draft.updated_at < updated_before
        ]


@dataclass
class InMemoryUserSettingsRepository(UserSettingsRepository):
    """In-memory user settings repository for tests."""

    settings: dict[UUID, UserSettings] = field(default_factory=dict)

    def get_settings(self, owner_id: UUID) -> UserSettings | None:
        return self.settings.get(owner_id)

    def upsert_settings(self, settings: UserSettings) -> UserSettings:
        self.settings[settings.owner_id] = settings
        return settings


@dataclass
class FakeStorage(ObjectStorage):
    """Fake object storage that records deletions."""

    objects: dict[str, bytes] = field(default_factory=dict)
    deleted: list[str] = field(default_factory=list)
    failing_refs: set[str] = field(default_factory=set)
    fail_uploads: bool = False
    fail_deletes: bool = False

    def put(self, path: str, content: bytes, content_type: str) -> str:
        if self.fail_uploads:
            raise StorageError(f"Failed to upload {path}")
        self.objects[path] = content
        return path

    def download(self, ref: str) -> bytes:
        if ref in self.failing_refs or ref not in self.objects:
            raise StorageError(f"Failed to download {ref}")
        return self.objects[ref]

    def delete(self, ref: str) -> None:
        if self.fail_deletes or ref in self.failing_refs:
            raise StorageError(f"Failed to delete {ref}")
        self.objects.pop(ref, None)
        self.deleted.append(ref)

    def signed_url(self, ref: str, ttl_seconds: int) -> str:
        if ref in self.failing_refs:
            raise StorageError(f"Failed to sign {ref}")
        return f"https://storage.test/{ref}?ttl={ttl_seconds}"


@dataclass
class FakeClassifierClient(ClassifierClient):
    """Fake classifier returning a fixed payload or raising an error."""

    payload: dict[str, object] = field(default_factory=lambda: {"groups": []})
    error: Exception | None = None
    calls: list[list[str]] = field(default_factory=list)

    async def classify(  # noqa: PLR0913
        self,
        *,
        model: str,
        reasoning_effort: str | None,
        store: bool,
        image_data_urls: list[str],
        schema: dict[str, object],
        prompt: str,
    ) -> dict[str, object]:
        self.calls.append(image_data_urls)
        if self.error is not None:
            raise self.error
        return self.payload


@dataclass
class FakeBackgroundClient(BackgroundClient):
    """Fake image generator returning static PNG bytes."""

    content: bytes = PNG_BYTES
    error: Exception | None = None
    prompts: list[str] = field(default_factory=list)

    async def generate(self, *, model: str, prompt: str) -> bytes:
        self.prompts.append(prompt)
        if self.error is not None:
            raise self.error
        return self.content


def seed_photos(
    repository: InMemoryPhotoRepository,
    storage: FakeStorage,
    owner_id: UUID,
    taken_at: list[datetime | None],
) -> list[UUID]:
    """Create stored photos for an owner and return their ids in order."""
    photo_ids: list[UUID] = []
    for index, captured in enumerate(taken_at):
        ref = storage.put(f"photos/{owner_id}/{uuid4()}.jpg", JPEG_BYTES, "image/jpeg")
        photo = repository.create_photo(
            owner_id=owner_id,
            storage_ref=ref,
            thumb_ref=None,
            size_bytes=len(JPEG_BYTES),
            content_type="image/jpeg",
            original_filename=f"{index}.jpg",
            taken_at=captured,
        )
        photo_ids.append(photo.id)
    return photo_ids


@pytest.fixture
def settings() -> Settings:
    return Settings(
        supabase_url="https://example.supabase.co",
        supabase_service_key="test.service.key",
        admin_token="admin-token",
        openai_api_key="openai-key",
    )


@pytest.fixture
def owner_id() -> UUID:
    return uuid4()


@pytest.fixture
def storage() -> FakeStorage:
    return FakeStorage()


@pytest.fixture
def photo_repository() -> InMemoryPhotoRepository:
    return InMemoryPhotoRepository()


@pytest.fixture
def cluster_repository() -> InMemoryClusterRepository:
    return InMemoryClusterRepository()


@pytest.fixture
def draft_repository() -> InMemoryDraftRepository:
    return InMemoryDraftRepository()


@pytest.fixture
def user_settings_repository() -> InMemoryUserSettingsRepository:
    return InMemoryUserSettingsRepository()


@pytest.fixture
def classifier_client() -> FakeClassifierClient:
    return FakeClassifierClient()


@pytest.fixture
def background_client() -> FakeBackgroundClient:
    return FakeBackgroundClient()


@pytest.fixture
def make_photos(
    photo_repository: InMemoryPhotoRepository, storage: FakeStorage
) -> Callable[..., list[UUID]]:
    def _make(owner_id: UUID, taken_at: list[datetime | None]) -> list[UUID]:
        return seed_photos(photo_repository, storage, owner_id, taken_at)

    return _make


@pytest.fixture
def container(  # noqa: PLR0913
    settings: Settings,
    storage: FakeStorage,
    photo_repository: InMemoryPhotoRepository,
    cluster_repository: InMemoryClusterRepository,
    draft_repository: InMemoryDraftRepository,
    user_settings_repository: InMemoryUserSettingsRepository,
    classifier_client: FakeClassifierClient,
    background_client: FakeBackgroundClient,
) -> AppContainer:
    page_renderer = PageRenderer(
        photo_repository=photo_repository,
        storage=storage,
        signed_url_ttl_seconds=settings.signed_url_ttl_seconds,
    )
    user_settings_service = UserSettingsService(user_settings_repository)
    classification_service = ClassificationService(
        client=classifier_client,
        model=settings.openai_model,
        reasoning_effort=settings.openai_reasoning_effort,
        store=settings.openai_store,
        timeout_seconds=settings.classifier_timeout_seconds,
    )
    background_service = BackgroundService(
        client=background_client,
        storage=storage,
        model=settings.openai_image_model,
        timeout_seconds=settings.background_timeout_seconds,
    )
    cluster_builder = ClusterBuilder(
        photo_repository=photo_repository,
        cluster_repository=cluster_repository,
        draft_repository=draft_repository,
        storage=storage,
        classification_service=classification_service,
        background_service=background_service,
        user_settings_service=user_settings_service,
        page_renderer=page_renderer,
    )
    draft_service = DraftService(
        repository=draft_repository,
        cluster_repository=cluster_repository,
        page_renderer=page_renderer,
    )
    approval_service = ApprovalService(
        draft_repository=draft_repository,
        cluster_repository=cluster_repository,
        photo_repository=photo_repository,
        storage=storage,
        page_renderer=page_renderer,
    )
    photo_service = PhotoService(
        repository=photo_repository,
        storage=storage,
        signed_url_ttl_seconds=settings.signed_url_ttl_seconds,
    )

    async def close_resources() -> None:
        return None

    return AppContainer(
        settings=settings,
        photo_service=photo_service,
        cluster_builder=cluster_builder,
        draft_service=draft_service,
        approval_service=approval_service,
        user_settings_service=user_settings_service,
        close_resources=close_resources,
    )


def utc(year: int, month: int, day: int, hour: int = 12) -> datetime:
    """Shorthand for a UTC capture time."""
    return datetime(year, month, day, hour, tzinfo=UTC)
