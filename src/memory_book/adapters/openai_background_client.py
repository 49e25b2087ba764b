"""OpenAI Images API client for page backgrounds."""

import base64
from dataclasses import dataclass

import httpx
from openai import AsyncOpenAI

from memory_book.services.backgrounds import BackgroundClient


@dataclass
class OpenAIBackgroundClient(BackgroundClient):
    """Background client backed by OpenAI image generation."""

    client: AsyncOpenAI
    size: str = "1536x1024"

    @classmethod
    def create(cls, api_key: str, timeout_seconds: float) -> "OpenAIBackgroundClient":
        """Create an OpenAI image client."""
        return cls(
            client=AsyncOpenAI(
                api_key=api_key,
                timeout=httpx.Timeout(timeout_seconds, connect=10.0),
            )
        )

    async def generate(self, *, model: str, prompt: str) -> bytes:
        """Generate one landscape image and return its bytes."""
        response = await self.client.images.generate(
            model=model, prompt=prompt, size=self.size, n=1
        )
        if not response.data or not response.data[0].b64_json:
            raise RuntimeError("OpenAI returned no image data")
        return base64.b64decode(response.data[0].b64_json)

    async def close(self) -> None:
        """Close the underlying HTTP session."""
        await self.client.close()
