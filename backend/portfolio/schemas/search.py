"""Search document, query parameters and results."""

from __future__ import annotations

from typing import Annotated, Literal
from uuid import UUID

from pydantic import AfterValidator, BaseModel, ConfigDict, Field, StringConstraints, model_validator

from portfolio.schemas.project import Tag, sanitize

SortBy = Literal["relevance", "date", "popularity"]

# OpenSearch index.max_result_window default; deeper pages are rejected by the engine
MAX_RESULT_WINDOW = 10_000


class SearchDocument(BaseModel):
    """Denormalized projection of a published Project."""

    id: UUID
    title: str
    description: str = ""
    content: str = ""
    tags: list[str] = Field(default_factory=list)
    tech_stack: list[str] = Field(default_factory=list)
    creator_name: str
    created_at: int  # epoch milliseconds
    view_count: int = 0
    engagement_score: float = 0.0
    is_published: bool = True


class SearchQuery(BaseModel):
    model_config = ConfigDict(extra="forbid")

    query: Annotated[str, StringConstraints(strip_whitespace=True, max_length=200), AfterValidator(sanitize)] = ""
    tags: list[Tag] = Field(default_factory=list, max_length=10)
    tech_stack: list[Tag] = Field(default_factory=list, max_length=10)
    sort_by: SortBy = "relevance"
    page: int = Field(default=1, ge=1, le=1000)
    limit: int = Field(default=20, ge=1, le=50)

    @model_validator(mode="after")
    def check_result_window(self) -> "SearchQuery":
        if self.page * self.limit > MAX_RESULT_WINDOW:
            raise ValueError(f"page * limit must not exceed {MAX_RESULT_WINDOW}")
        return self


class SearchFacets(BaseModel):
    tags: dict[str, int] = Field(default_factory=dict)
    tech_stack: dict[str, int] = Field(default_factory=dict)


class SearchResults(BaseModel):
    results: list[SearchDocument]
    total_count: int
    facets: SearchFacets
    page: int
    limit: int
