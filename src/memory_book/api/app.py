"""FastAPI application factory."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from uuid import UUID

from fastapi import (
    Depends,
    FastAPI,
    File,
    Header,
    HTTPException,
    Request,
    UploadFile,
    status,
)
from fastapi.responses import JSONResponse

from memory_book.api.admin import router as admin_router
from memory_book.api.models import (
    AnalyzeRequest,
    ApproveRequest,
    CurateRequest,
    DraftEditRequest,
    SettingsRequest,
)
from memory_book.app_logging import configure_logging
from memory_book.containers import AppContainer
from memory_book.domain.drafts import DraftFields, PageView
from memory_book.domain.errors import (
    ConflictError,
    NotFoundError,
    StorageError,
    ValidationError,
)
from memory_book.domain.settings import UserSettings

_MAX_PHOTO_COUNT = 10
_MAX_FILE_SIZE = 5 << 20


async def require_owner(x_owner_id: str | None = Header(default=None)) -> UUID:
    """Return the owner id forwarded by the authentication layer."""
    if not x_owner_id:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED)
    try:
        return UUID(x_owner_id)
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED) from exc


def create_app(container: AppContainer) -> FastAPI:  # noqa: PLR0915
    """Create a FastAPI app configured with dependencies."""
    configure_logging(container.settings.log_level)
    logger = logging.getLogger(__name__)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        yield
        await app.state.container.close_resources()

    app = FastAPI(lifespan=lifespan)
    app.state.container = container

    app.include_router(admin_router)
    _register_error_handlers(app)

    @app.get("/health")
    async def health() -> dict[str, str]:
        """Simple health check endpoint."""
        return {"status": "ok"}

    @app.post("/photos")
    async def upload_photos(
        request: Request,
        photos: list[UploadFile] = File(...),
        owner_id: UUID = Depends(require_owner),
    ) -> dict[str, object]:
        """Store uploaded photos; invalid files are skipped."""
        state_container: AppContainer = request.app.state.container
        if len(photos) > _MAX_PHOTO_COUNT:
            raise ValidationError(
                f"Too many files. Maximum is {_MAX_PHOTO_COUNT} photos per upload"
            )
        uploaded = []
        for upload in photos:
            content = await upload.read()
            if not content or len(content) > _MAX_FILE_SIZE:
                logger.warning(
                    "Skipping empty or oversized upload",
                    extra={"upload_name": upload.filename, "size_bytes": len(content)},
                )
                continue
            uploaded.append(
                state_container.photo_service.ingest(
                    owner_id=owner_id,
                    filename=upload.filename or "photo.jpg",
                    content=content,
                    content_type=upload.content_type,
                )
            )
        if not uploaded:
            raise ValidationError("No valid images were uploaded")
        return {
            "success": True,
            "photos": [
                {"id": photo.id, "taken_at": photo.taken_at, "size": photo.size_bytes}
                for photo in uploaded
            ],
        }

    @app.get("/photos")
    async def list_photos(
        request: Request, owner_id: UUID = Depends(require_owner)
    ) -> dict[str, object]:
        """Return the owner's photos with signed URLs."""
        state_container: AppContainer = request.app.state.container
        return {"photos": state_container.photo_service.list_photos(owner_id)}

    @app.get("/photos/{photo_id}/url")
    async def get_photo_url(
        photo_id: UUID,
        request: Request,
        thumb: bool = False,
        owner_id: UUID = Depends(require_owner),
    ) -> dict[str, str]:
        """Return a signed URL for one photo or its thumbnail."""
        state_container: AppContainer = request.app.state.container
        url = state_container.photo_service.photo_url(owner_id, photo_id, thumb=thumb)
        return {"url": url}

    @app.delete("/photos/{photo_id}")
    async def delete_photo(
        photo_id: UUID, request: Request, owner_id: UUID = Depends(require_owner)
    ) -> dict[str, bool]:
        """Soft-delete a photo; its objects are kept for recovery."""
        state_container: AppContainer = request.app.state.container
        state_container.photo_service.soft_delete(owner_id, photo_id)
        return {"success": True}

    @app.post("/clusters")
    async def analyze_photos(
        payload: AnalyzeRequest,
        request: Request,
        owner_id: UUID = Depends(require_owner),
    ) -> dict[str, object]:
        """Group a batch of photos into clusters with one draft each."""
        state_container: AppContainer = request.app.state.container
        result = await state_container.cluster_builder.analyze(
            owner_id, payload.photo_ids
        )
        return {"clusters": result.clusters, "drafts": result.drafts}

    @app.get("/drafts")
    async def list_drafts(
        request: Request, owner_id: UUID = Depends(require_owner)
    ) -> dict[str, object]:
        """Return drafts awaiting approval."""
        state_container: AppContainer = request.app.state.container
        return {"drafts": state_container.draft_service.list_drafts(owner_id)}

    @app.get("/drafts/{draft_id}")
    async def get_draft(
        draft_id: UUID, request: Request, owner_id: UUID = Depends(require_owner)
    ) -> PageView:
        """Return a single draft or page."""
        state_container: AppContainer = request.app.state.container
        return state_container.draft_service.get_draft(owner_id, draft_id)

    @app.patch("/drafts/{draft_id}")
    async def edit_draft(
        draft_id: UUID,
        payload: DraftEditRequest,
        request: Request,
        owner_id: UUID = Depends(require_owner),
    ) -> PageView:
        """Edit the title, description or theme of a draft."""
        state_container: AppContainer = request.app.state.container
        return state_container.draft_service.edit(
            owner_id, draft_id, _draft_fields(payload)
        )

    @app.put("/drafts/{draft_id}/photos")
    async def curate_draft(
        draft_id: UUID,
        payload: CurateRequest,
        request: Request,
        owner_id: UUID = Depends(require_owner),
    ) -> PageView:
        """Save the photos the user currently keeps on a draft."""
        state_container: AppContainer = request.app.state.container
        return state_container.draft_service.curate(
            owner_id, draft_id, payload.keep_photo_ids
        )

    @app.post("/drafts/{draft_id}/approve")
    async def approve_draft(
        draft_id: UUID,
        payload: ApproveRequest,
        request: Request,
        owner_id: UUID = Depends(require_owner),
    ) -> PageView:
        """Publish a draft as a page and delete the photos left out."""
        state_container: AppContainer = request.app.state.container
        return state_container.approval_service.approve(
            owner_id, draft_id, _draft_fields(payload), payload.kept_photo_ids
        )

    @app.delete("/drafts/{draft_id}")
    async def discard_draft(
        draft_id: UUID, request: Request, owner_id: UUID = Depends(require_owner)
    ) -> dict[str, bool]:
        """Discard a draft and its cluster without deleting photos."""
        state_container: AppContainer = request.app.state.container
        state_container.draft_service.discard(owner_id, draft_id)
        return {"success": True}

    @app.get("/pages")
    async def list_pages(
        request: Request, owner_id: UUID = Depends(require_owner)
    ) -> dict[str, object]:
        """Return published pages."""
        state_container: AppContainer = request.app.state.container
        return {"pages": state_container.draft_service.list_pages(owner_id)}

    @app.get("/settings")
    async def get_settings(
        request: Request, owner_id: UUID = Depends(require_owner)
    ) -> UserSettings:
        """Return the owner's settings."""
        state_container: AppContainer = request.app.state.container
        return state_container.user_settings_service.get_settings(owner_id)

    @app.put("/settings")
    async def update_settings(
        payload: SettingsRequest,
        request: Request,
        owner_id: UUID = Depends(require_owner),
    ) -> UserSettings:
        """Update the child's name and birthday."""
        state_container: AppContainer = request.app.state.container
        return state_container.user_settings_service.update_settings(
            owner_id, payload.child_name, payload.child_birthday
        )

    return app


def _register_error_handlers(app: FastAPI) -> None:
    """Map domain errors to HTTP responses."""
    logger = logging.getLogger(__name__)

    def _error(status_code: int, exc: Exception) -> JSONResponse:
        return JSONResponse(
            status_code=status_code, content={"success": False, "error": str(exc)}
        )

    @app.exception_handler(ValidationError)
    async def handle_validation(_: Request, exc: ValidationError) -> JSONResponse:
        return _error(status.HTTP_400_BAD_REQUEST, exc)

    @app.exception_handler(NotFoundError)
    async def handle_not_found(_: Request, exc: NotFoundError) -> JSONResponse:
        return _error(status.HTTP_404_NOT_FOUND, exc)

    @app.exception_handler(ConflictError)
    async def handle_conflict(_: Request, exc: ConflictError) -> JSONResponse:
        return _error(status.HTTP_409_CONFLICT, exc)

    @app.exception_handler(StorageError)
    async def handle_storage(_: Request, exc: StorageError) -> JSONResponse:
        logger.error("Storage failure: %s", exc)
        return _error(status.HTTP_502_BAD_GATEWAY, exc)


def _draft_fields(payload: DraftEditRequest) -> DraftFields:
    return DraftFields(
        title=payload.title,
        description=payload.description,
        theme=payload.theme,
    )
