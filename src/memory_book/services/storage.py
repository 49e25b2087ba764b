"""Object storage interface."""

from typing import Protocol


class ObjectStorage(Protocol):
    """Interface for the blob store holding photos and backgrounds."""

    def put(self, path: str, content: bytes, content_type: str) -> str:
        """Store bytes at a path and return the storage reference."""

    def download(self, ref: str) -> bytes:
        """Return the bytes stored under a reference."""

    def delete(self, ref: str) -> None:
        """Delete the object stored under a reference."""

    def signed_url(self, ref: str, ttl_seconds: int) -> str:
        """Return a time-limited download URL for a reference."""
