"""Photo ingest, listing and soft deletion."""

import logging
from dataclasses import dataclass
from datetime import UTC, datetime
from io import BytesIO
from pathlib import PurePosixPath
from typing import Protocol
from uuid import UUID, uuid4

from PIL import ExifTags, Image

from memory_book.domain.errors import NotFoundError, StorageError
from memory_book.domain.photos import PhotoRecord, PhotoView
from memory_book.services.classification import detect_mime_type
from memory_book.services.storage import ObjectStorage

logger = logging.getLogger(__name__)

_ALLOWED_CONTENT_TYPES = {
    "image/jpeg",
    "image/png",
    "image/gif",
    "image/webp",
    "image/heic",
}
_EXIF_DATETIME_FORMAT = "%Y:%m:%d %H:%M:%S"


class PhotoRepository(Protocol):
    """Persistence interface for photo metadata."""

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
        """Create a photo row and return it."""

    def get_photos(
        self, owner_id: UUID, photo_ids: list[UUID], include_deleted: bool = False
    ) -> list[PhotoRecord]:
        """Return the owner's photos among the given ids, live ones by default."""

    def list_photos(self, owner_id: UUID) -> list[PhotoRecord]:
        """Return all live photos for an owner, newest first."""

    def delete_photo(self, owner_id: UUID, photo_id: UUID) -> None:
        """Hard-delete a photo row."""

    def soft_delete_photo(
        self, owner_id: UUID, photo_id: UUID, deleted_at: datetime
    ) -> bool:
        """Mark a live photo deleted; return False when no live row matched."""


@dataclass
class PhotoService:
    """Stores uploaded photos and lists them with signed URLs."""

    repository: PhotoRepository
    storage: ObjectStorage
    signed_url_ttl_seconds: int

    def ingest(
        self,
        owner_id: UUID,
        filename: str,
        content: bytes,
        content_type: str | None = None,
    ) -> PhotoRecord:
        """Upload photo bytes and create the photo row.

        Storage failures propagate. If the row cannot be created the uploaded
        object is removed again.
        """
        resolved_type = (
            content_type
            if content_type in _ALLOWED_CONTENT_TYPES
            else detect_mime_type(content)
        )
        extension = PurePosixPath(filename).suffix.lower()
        path = f"photos/{owner_id}/{uuid4()}{extension}"
        storage_ref = self.storage.put(path, content, resolved_type)
        try:
            photo = self.repository.create_photo(
                owner_id=owner_id,
                storage_ref=storage_ref,
                thumb_ref=None,
                size_bytes=len(content),
                content_type=resolved_type,
                original_filename=filename,
                taken_at=extract_taken_at(content),
            )
        except Exception:
            logger.exception(
                "Failed to save photo row, removing upload",
                extra={"storage_ref": storage_ref},
            )
            try:
                self.storage.delete(storage_ref)
            except StorageError:
                logger.exception(
                    "Failed to remove upload after row failure",
                    extra={"storage_ref": storage_ref},
                )
            raise
        logger.info(
            "Uploaded photo",
            extra={"photo_id": str(photo.id), "size_bytes": photo.size_bytes},
        )
        return photo

    def list_photos(self, owner_id: UUID) -> list[PhotoView]:
        """Return the owner's photos with signed URLs."""
        return [self._to_view(photo) for photo in self.repository.list_photos(owner_id)]

    def photo_url(self, owner_id: UUID, photo_id: UUID, thumb: bool = False) -> str:
        """Sign the photo, or its thumbnail when asked for and present."""
        photos = self.repository.get_photos(owner_id, [photo_id])
        if not photos:
            raise NotFoundError(f"Photo {photo_id} not found")
        photo = photos[0]
        ref = photo.thumb_ref if thumb and photo.thumb_ref else photo.storage_ref
        return self.storage.signed_url(ref, self.signed_url_ttl_seconds)

    def soft_delete(self, owner_id: UUID, photo_id: UUID) -> None:
        """Hide a photo.

        The storage objects and any cluster membership stay, so the photo can
        be recovered and approval can still clean it up.
        """
        deleted = self.repository.soft_delete_photo(
            owner_id, photo_id, datetime.now(tz=UTC)
        )
        if not deleted:
            raise NotFoundError(f"Photo {photo_id} not found")
        logger.info("Soft-deleted photo", extra={"photo_id": str(photo_id)})

    def _to_view(self, photo: PhotoRecord) -> PhotoView:
        ref = photo.thumb_ref or photo.storage_ref
        return PhotoView(
            id=photo.id,
            url=self.storage.signed_url(ref, self.signed_url_ttl_seconds),
            original_filename=photo.original_filename,
            size_bytes=photo.size_bytes,
            content_type=photo.content_type,
            taken_at=photo.taken_at,
            created_at=photo.created_at,
        )


def extract_taken_at(content: bytes) -> datetime | None:
    """Read the capture time from EXIF metadata, if present."""
    try:
        with Image.open(BytesIO(content)) as image:
            exif = image.getexif()
            raw = exif.get_ifd(ExifTags.IFD.Exif).get(ExifTags.Base.DateTimeOriginal)
            if raw is None:
                raw = exif.get(ExifTags.Base.DateTime)
    except (OSError, ValueError):
        return None
    if isinstance(raw, bytes):
        raw = raw.decode("utf-8", errors="ignore")
    if not isinstance(raw, str):
        return None
    try:
        parsed = datetime.strptime(raw.strip(), _EXIF_DATETIME_FORMAT)
    except ValueError:
        return None
    return parsed.replace(tzinfo=UTC)
