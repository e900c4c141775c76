"""Domain models for search requests, results and diagnostics.

Value objects are immutable (frozen pydantic models). They carry no
infrastructure dependencies and are safe to hand to concurrent callers.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from docs_search_engine.domain.model import Breadcrumb


DEFAULT_LIMIT = 20


class SearchOptions(BaseModel):
    """Named query options.

    ``category`` matches when the document's category equals the value or is a
    member of the list. ``tags`` narrows results to documents carrying every
    listed tag. ``limit=None`` returns every match.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    category: str | tuple[str, ...] | None = None
    tags: tuple[str, ...] | None = None
    limit: int | None = Field(default=DEFAULT_LIMIT, ge=0)
    fuzzy: bool = False
    boost_recent: bool = False
    include_snippet: bool = True

    @field_validator("category", mode="before")
    @classmethod
    def _categories_as_tuple(cls, value: Any) -> Any:
        if isinstance(value, (list, set, frozenset)):
            return tuple(value)
        return value

    @field_validator("tags", mode="before")
    @classmethod
    def _tags_as_tuple(cls, value: Any) -> Any:
        if isinstance(value, str):
            return (value,)
        if isinstance(value, (list, set, frozenset)):
            return tuple(value)
        return value

    def matches_category(self, category: str) -> bool:
        if self.category is None:
            return True
        if isinstance(self.category, str):
            return category == self.category
        return category in self.category

    def matches_tags(self, tags: tuple[str, ...]) -> bool:
        if not self.tags:
            return True
        return all(tag in tags for tag in self.tags)


class SearchResult(BaseModel):
    """Value object for a single ranked search result."""

    model_config = ConfigDict(frozen=True)

    id: str
    title: str
    path: str
    category: str
    score: float
    tags: tuple[str, ...] = ()
    snippet: str | None = None
    breadcrumbs: tuple[Breadcrumb, ...] = ()
    last_modified: datetime | None = None


class TermScore(BaseModel):
    """Per-term breakdown of a document score."""

    model_config = ConfigDict(frozen=True)

    title_tf: int
    content_tf: int
    tags_tf: int
    idf: float
    title_score: float
    content_score: float
    tags_score: float
    total: float


class FieldContributions(BaseModel):
    """Score contributed by each field, summed over query terms."""

    model_config = ConfigDict(frozen=True)

    title: float = 0.0
    content: float = 0.0
    tags: float = 0.0


class ScoreExplanation(BaseModel):
    """Diagnostic view of how a document's score was computed."""

    model_config = ConfigDict(frozen=True)

    document_id: str
    document_title: str
    total_score: float
    term_scores: dict[str, TermScore] = Field(default_factory=dict)
    field_contributions: FieldContributions = Field(default_factory=FieldContributions)


class IndexStats(BaseModel):
    """Observability snapshot of an engine's index."""

    model_config = ConfigDict(frozen=True)

    document_count: int
    total_terms: int
    index_size: int
    last_updated: datetime | None = None
    started: bool = False


class DocumentFailure(BaseModel):
    """A single record rejected during indexing."""

    model_config = ConfigDict(frozen=True)

    position: int
    reason: str
    doc_id: str | None = None


class IndexingReport(BaseModel):
    """Outcome of a bulk indexing call (start, batch update, rebuild)."""

    model_config = ConfigDict(frozen=True)

    indexed: int = 0
    failures: tuple[DocumentFailure, ...] = ()

    @property
    def ok(self) -> bool:
        return not self.failures
