"""Photo grouping via a multimodal LLM."""

import asyncio
import base64
from dataclasses import dataclass
from typing import Protocol

from memory_book.domain.classification import ClassifierOutput
from memory_book.domain.errors import UpstreamUnavailable
from memory_book.domain.themes import Theme

CLASSIFIER_SCHEMA: dict[str, object] = {
    "type": "object",
    "properties": {
        "groups": {
            "type": "array",
            "items": {
                "type": "object",
                "properties": {
                    "photo_indexes": {
                        "type": "array",
                        "items": {"type": "integer", "minimum": 0},
                    },
                    "title": {"type": "string"},
                    "description": {"type": "string"},
                    "theme": {"type": "string"},
                },
                "required": ["photo_indexes", "title", "description", "theme"],
                "additionalProperties": False,
            },
        }
    },
    "required": ["groups"],
    "additionalProperties": False,
}

CLASSIFIER_PROMPT = (
    "Analyze these baby photos and group them into meaningful clusters based on "
    "activity, setting, or moment type. Photos are numbered from 0 in the order "
    "they are attached. For each group return the photo indexes, a short sweet "
    'title (e.g. "First Steps", "Bath Time Fun"), a heartfelt description a '
    "parent would love to read (2-3 sentences), and a theme from: "
    f"{', '.join(theme.value for theme in Theme)}. "
    "Make sure every photo is included in exactly one group."
)


class ClassifierClient(Protocol):
    """Interface for LLM photo grouping."""

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
        """Return structured grouping data for the attached images."""


@dataclass
class ClassificationService:
    """Service that prepares grouping prompts and validates results."""

    client: ClassifierClient
    model: str
    reasoning_effort: str | None
    store: bool
    timeout_seconds: float

    async def classify(self, images: list[bytes]) -> ClassifierOutput:
        """Group images in a single call; raise UpstreamUnavailable on failure."""
        data_urls = [to_data_url(image) for image in images]
        try:
            raw = await asyncio.wait_for(
                self.client.classify(
                    model=self.model,
                    reasoning_effort=self.reasoning_effort,
                    store=self.store,
                    image_data_urls=data_urls,
                    schema=CLASSIFIER_SCHEMA,
                    prompt=CLASSIFIER_PROMPT,
                ),
                timeout=self.timeout_seconds,
            )
            return ClassifierOutput.model_validate(raw)
        except TimeoutError as exc:
            raise UpstreamUnavailable("Classifier timed out") from exc
        except Exception as exc:
            raise UpstreamUnavailable(f"Classifier failed: {exc}") from exc


def to_data_url(image_bytes: bytes) -> str:
    """Convert bytes to a base64 data URL for image input."""
    mime_type = detect_mime_type(image_bytes)
    encoded = base64.b64encode(image_bytes).decode("utf-8")
    return f"data:{mime_type};base64,{encoded}"


def detect_mime_type(image_bytes: bytes) -> str:
    """Infer a basic image MIME type from file signatures."""
    if image_bytes.startswith(b"\xff\xd8\xff"):
        return "image/jpeg"
    if image_bytes.startswith(b"\x89PNG\r\n\x1a\n"):
        return "image/png"
    if image_bytes.startswith((b"GIF87a", b"GIF89a")):
        return "image/gif"
    if image_bytes[:4] == b"RIFF" and image_bytes[8:12] == b"WEBP":
        return "image/webp"
    return "image/jpeg"
