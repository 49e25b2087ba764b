"""Themed page background generation."""

import asyncio
import logging
from dataclasses import dataclass
from typing import Protocol
from uuid import UUID, uuid4

from memory_book.domain.errors import UpstreamUnavailable
from memory_book.domain.themes import Theme
from memory_book.services.storage import ObjectStorage

logger = logging.getLogger(__name__)


class BackgroundClient(Protocol):
    """Interface for image generation."""

    async def generate(self, *, model: str, prompt: str) -> bytes:
        """Return PNG bytes for a prompt."""


@dataclass
class BackgroundService:
    """Generates a background image and stores it for a draft."""

    client: BackgroundClient
    storage: ObjectStorage
    model: str
    timeout_seconds: float
    enabled: bool = True

    async def create_background(
        self, owner_id: UUID, theme: Theme, title: str, description: str
    ) -> str | None:
        """Return the storage ref of a new background, or None on any failure."""
        if not self.enabled:
            return None
        try:
            image = await self.generate(theme, title, description)
        except UpstreamUnavailable:
            logger.exception(
                "Background generation failed",
                extra={"owner_id": str(owner_id), "theme": theme.value},
            )
            return None
        path = f"backgrounds/{owner_id}/bg_{theme.value}_{uuid4().hex[:8]}.png"
        try:
            return self.storage.put(path, image, "image/png")
        except Exception:
            logger.exception("Failed to upload background", extra={"path": path})
            return None

    async def generate(self, theme: Theme, title: str, description: str) -> bytes:
        """Call the image model; raise UpstreamUnavailable on failure."""
        try:
            image = await asyncio.wait_for(
                self.client.generate(
                    model=self.model,
                    prompt=build_background_prompt(theme, title, description),
                ),
                timeout=self.timeout_seconds,
            )
        except TimeoutError as exc:
            raise UpstreamUnavailable("Background generation timed out") from exc
        except Exception as exc:
            raise UpstreamUnavailable(f"Background generation failed: {exc}") from exc
        if not image:
            raise UpstreamUnavailable("Background generation returned no image")
        return image


def build_background_prompt(theme: Theme, title: str, description: str) -> str:
    """Build the image prompt for a soft, text-free page background."""
    return (
        "A beautiful, soft, and subtle background for a baby memory book page.\n"
        f"Theme: {theme.value}\n"
        f"Page title: {title}\n"
        f"Page mood: {description}\n"
        f"Style: {theme.background_style}\n"
        "Requirements: very soft muted pastel colors, dreamy watercolor or soft "
        "gradient, abstract or semi-abstract, no text or letters anywhere, light "
        "enough for photos and text on top, landscape orientation."
    )
