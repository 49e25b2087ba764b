"""Supabase Storage adapter for photo and background objects."""

from dataclasses import dataclass

from supabase import Client

from memory_book.domain.errors import StorageError
from memory_book.services.storage import ObjectStorage


@dataclass
class SupabaseObjectStorage(ObjectStorage):
    """Object storage backed by a private Supabase Storage bucket."""

    client: Client
    bucket: str

    def put(self, path: str, content: bytes, content_type: str) -> str:
        """Upload bytes and return the object path as the reference."""
        try:
            self.client.storage.from_(self.bucket).upload(
                path,
                content,
                {
                    "content-type": content_type,
                    "cache-control": "private, max-age=31536000",
                    "upsert": "false",
                },
            )
        except Exception as exc:
            raise StorageError(f"Failed to upload {path}: {exc}") from exc
        return path

    def download(self, ref: str) -> bytes:
        """Download an object's bytes."""
        try:
            return self.client.storage.from_(self.bucket).download(ref)
        except Exception as exc:
            raise StorageError(f"Failed to download {ref}: {exc}") from exc

    def delete(self, ref: str) -> None:
        """Remove an object."""
        try:
            self.client.storage.from_(self.bucket).remove([ref])
        except Exception as exc:
            raise StorageError(f"Failed to delete {ref}: {exc}") from exc

    def signed_url(self, ref: str, ttl_seconds: int) -> str:
        """Create a signed download URL."""
        try:
            result = self.client.storage.from_(self.bucket).create_signed_url(
                ref, ttl_seconds
            )
        except Exception as exc:
            raise StorageError(f"Failed to sign {ref}: {exc}") from exc
        url = result.get("signedURL") or result.get("signedUrl")
        if not url:
            raise StorageError(f"Storage returned no signed URL for {ref}")
        return str(url)
