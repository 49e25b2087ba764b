"""Request models for the memory book API."""

from datetime import date
from uuid import UUID

from pydantic import BaseModel, Field


class AnalyzeRequest(BaseModel):
    """Batch of uploaded photos to group into drafts."""

    photo_ids: list[UUID]


class DraftEditRequest(BaseModel):
    """Partial update of a draft's text and theme."""

    title: str | None = None
    description: str | None = None
    theme: str | None = None


class CurateRequest(BaseModel):
    """Working subset of a draft's photos."""

    keep_photo_ids: list[UUID] = Field(default_factory=list)


class ApproveRequest(DraftEditRequest):
    """Final fields and kept photos for publishing a draft."""

    kept_photo_ids: list[UUID] = Field(default_factory=list)


class SettingsRequest(BaseModel):
    """Child details used for age labels."""

    child_name: str | None = None
    child_birthday: date | None = None
