"""Models for classifier grouping results."""

from pydantic import BaseModel, Field


class ClassifierGroup(BaseModel):
    """Single group of photos proposed by the classifier."""

    photo_indexes: list[int] = Field(default_factory=list)
    title: str = ""
    description: str = ""
    theme: str = ""


class ClassifierOutput(BaseModel):
    """Structured output for photo grouping."""

    groups: list[ClassifierGroup]
