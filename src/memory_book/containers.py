"""Dependency container wiring for the application."""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass

from supabase import create_client

from memory_book.adapters.openai_background_client import OpenAIBackgroundClient
from memory_book.adapters.openai_classifier_client import OpenAIClassifierClient
from memory_book.adapters.supabase_cluster_repository import SupabaseClusterRepository
from memory_book.adapters.supabase_draft_repository import SupabaseDraftRepository
from memory_book.adapters.supabase_photo_repository import SupabasePhotoRepository
from memory_book.adapters.supabase_storage import SupabaseObjectStorage
from memory_book.adapters.supabase_user_settings_repository import (
    SupabaseUserSettingsRepository,
)
from memory_book.config import Settings
from memory_book.services.analysis import ClusterBuilder
from memory_book.services.approval import ApprovalService
from memory_book.services.backgrounds import BackgroundService
from memory_book.services.classification import ClassificationService
from memory_book.services.drafts import DraftService
from memory_book.services.pages import PageRenderer
from memory_book.services.photos import PhotoService
from memory_book.services.user_settings import UserSettingsService


@dataclass
class AppContainer:
    """Holds application-wide dependencies."""

    settings: Settings
    photo_service: PhotoService
    cluster_builder: ClusterBuilder
    draft_service: DraftService
    approval_service: ApprovalService
    user_settings_service: UserSettingsService
    close_resources: Callable[[], Awaitable[None]]


def build_container(settings: Settings | None = None) -> AppContainer:
    """Create the default dependency container."""
    resolved_settings = settings or Settings()
    supabase_client = create_client(
        resolved_settings.supabase_url, resolved_settings.supabase_service_key
    )
    photo_repository = SupabasePhotoRepository(supabase_client)
    cluster_repository = SupabaseClusterRepository(supabase_client)
    draft_repository = SupabaseDraftRepository(supabase_client)
    user_settings_repository = SupabaseUserSettingsRepository(supabase_client)
    storage = SupabaseObjectStorage(
        client=supabase_client, bucket=resolved_settings.storage_bucket
    )

    classifier_client = OpenAIClassifierClient.create(
        api_key=resolved_settings.openai_api_key,
        timeout_seconds=resolved_settings.classifier_timeout_seconds,
    )
    background_client = OpenAIBackgroundClient.create(
        api_key=resolved_settings.openai_api_key,
        timeout_seconds=resolved_settings.background_timeout_seconds,
    )
    classification_service = ClassificationService(
        client=classifier_client,
        model=resolved_settings.openai_model,
        reasoning_effort=resolved_settings.openai_reasoning_effort,
        store=resolved_settings.openai_store,
        timeout_seconds=resolved_settings.classifier_timeout_seconds,
    )
    background_service = BackgroundService(
        client=background_client,
        storage=storage,
        model=resolved_settings.openai_image_model,
        timeout_seconds=resolved_settings.background_timeout_seconds,
        enabled=resolved_settings.background_generation_enabled,
    )
    page_renderer = PageRenderer(
        photo_repository=photo_repository,
        storage=storage,
        signed_url_ttl_seconds=resolved_settings.signed_url_ttl_seconds,
    )
    user_settings_service = UserSettingsService(user_settings_repository)
    photo_service = PhotoService(
        repository=photo_repository,
        storage=storage,
        signed_url_ttl_seconds=resolved_settings.signed_url_ttl_seconds,
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

    async def close_resources() -> None:
        await classifier_client.close()
        await background_client.close()

    return AppContainer(
        settings=resolved_settings,
        photo_service=photo_service,
        cluster_builder=cluster_builder,
        draft_service=draft_service,
        approval_service=approval_service,
        user_settings_service=user_settings_service,
        close_resources=close_resources,
    )
