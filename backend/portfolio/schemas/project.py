"""Pydantic schemas for Project input and output."""

from __future__ import annotations

import re
from datetime import datetime
from typing import Annotated, Any
from uuid import UUID

from pydantic import AfterValidator, BaseModel, ConfigDict, Field, StringConstraints

_TAG_PATTERN = re.compile(r"^[a-zA-Z0-9\s\-_]+$")
_UNSAFE_PATTERNS = (
    re.compile(r"[<>]"),
    re.compile(r"javascript:", re.IGNORECASE),
    re.compile(r"on\w+\s*=", re.IGNORECASE),
)


def sanitize(value: str) -> str:
    """Strip markup and inline script handlers from free text."""
    for pattern in _UNSAFE_PATTERNS:
        value = pattern.sub("", value)
    return value


def _check_tag(value: str) -> str:
    if not _TAG_PATTERN.match(value):
        raise ValueError("Tag contains invalid characters")
    return value


Tag = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1, max_length=50), AfterValidator(_check_tag)]
Title = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1, max_length=255)]
Description = Annotated[str, StringConstraints(strip_whitespace=True, max_length=1000), AfterValidator(sanitize)]


class ProjectCreate(BaseModel):
    """Fields accepted when creating a project."""

    model_config = ConfigDict(extra="forbid")

    title: Title
    description: Description | None = None
    content: Any = None  # rich text JSON
    cover_image: str | None = Field(default=None, pattern=r"^https?://")
    tags: list[Tag] = Field(default_factory=list, max_length=20)
    tech_stack: list[Tag] = Field(default_factory=list, max_length=20)
    is_published: bool = False


class ProjectUpdate(BaseModel):
    """Partial update; only fields that were sent are applied."""

    model_config = ConfigDict(extra="forbid")

    title: Title | None = None
    description: Description | None = None
    content: Any = None
    cover_image: str | None = Field(default=None, pattern=r"^https?://")
    tags: list[Tag] | None = Field(default=None, max_length=20)
    tech_stack: list[Tag] | None = Field(default=None, max_length=20)
    is_published: bool | None = None


class ProjectRead(BaseModel):
    """Full project output (embedding omitted)."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    creator_id: UUID
    title: str
    description: str | None = None
    content: Any = None
    cover_image: str | None = None
    tags: list[str]
    tech_stack: list[str]
    is_published: bool
    view_count: int
    engagement_score: float
    created_at: datetime
    updated_at: datetime


class ProjectSummary(BaseModel):
    """Minimal project info for recommendation and trending lists."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    creator_id: UUID
    title: str
    description: str | None = None
    cover_image: str | None = None
    tags: list[str]
    tech_stack: list[str]
    view_count: int
    engagement_score: float
    created_at: datetime
