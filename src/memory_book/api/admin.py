"""Admin API endpoints with simple token auth."""

from __future__ import annotations

from datetime import timedelta
from typing import TYPE_CHECKING

from fastapi import APIRouter, Depends, Header, HTTPException, Query, Request, status

if TYPE_CHECKING:
    from memory_book.containers import AppContainer

router = APIRouter(prefix="/admin", tags=["admin"])


def _get_admin_token(request: Request) -> str:
    container: AppContainer = request.app.state.container
    return container.settings.admin_token


async def require_admin(
    x_admin_token: str | None = Header(default=None),
    admin_token: str = Depends(_get_admin_token),
) -> None:
    """Ensure requests include a valid admin token."""
    if not x_admin_token or x_admin_token != admin_token:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED)


@router.get("/health", dependencies=[Depends(require_admin)])
async def admin_health() -> dict[str, str]:
    """Admin health check endpoint."""
    return {"status": "ok"}


@router.post("/drafts/sweep", dependencies=[Depends(require_admin)])
async def sweep_stale_drafts(
    request: Request, older_than_hours: int | None = Query(default=None, ge=1)
) -> dict[str, int]:
    """Discard drafts left untouched longer than the configured TTL."""
    container: AppContainer = request.app.state.container
    hours = older_than_hours or container.settings.draft_ttl_hours
    swept = container.draft_service.sweep_stale(timedelta(hours=hours))
    return {"swept": swept}
