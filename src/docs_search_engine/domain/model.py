"""Domain model - the document record consumed by the search index.

Documents arrive from an external scanner as loosely typed records. This module
pins them down to an explicit, validated, immutable record so the index never
has to guess at field names or types.
"""

from __future__ import annotations

from collections.abc import Sequence
from datetime import date, datetime, time, timezone
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.dataclasses import dataclass


DEFAULT_CATEGORY = "uncategorized"


class SearchEngineError(Exception):
    """Base class for errors raised by the search engine."""


class MalformedDocumentError(SearchEngineError, ValueError):
    """Raised when a record cannot be turned into an indexable document."""

    def __init__(self, reason: str, *, doc_id: str | None = None) -> None:
        super().__init__(reason)
        self.reason = reason
        self.doc_id = doc_id


class EngineNotStartedError(SearchEngineError, RuntimeError):
    """Raised when an index mutation reaches an engine that was never started."""


class Breadcrumb(BaseModel):
    """One step of the navigation trail shown next to a search result."""

    model_config = ConfigDict(frozen=True)

    title: str
    path: str


@dataclass(frozen=True)
class Document:
    """Value object for a document as it enters the index.

    ``id`` is the primary key within an index. Everything else is optional at
    index time; ``content`` and ``path`` are needed for snippets and navigation.
    """

    id: str = Field(min_length=1)
    title: str = ""
    content: str = ""
    path: str = ""
    category: str = DEFAULT_CATEGORY
    tags: tuple[str, ...] = ()
    last_modified: datetime | None = None
    file_path: str = ""
    breadcrumbs: tuple[Breadcrumb, ...] = ()

    @field_validator("id")
    @classmethod
    def _id_not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("Document id must not be blank")
        return value

    @field_validator("title", "content", "path", "file_path", mode="before")
    @classmethod
    def _none_as_empty(cls, value: Any) -> Any:
        return "" if value is None else value

    @field_validator("category", mode="before")
    @classmethod
    def _default_category(cls, value: Any) -> Any:
        if value is None or (isinstance(value, str) and not value.strip()):
            return DEFAULT_CATEGORY
        return value

    @field_validator("tags", mode="before")
    @classmethod
    def _coerce_tags(cls, value: Any) -> Any:
        if value is None:
            return ()
        if isinstance(value, str):
            return (value,)
        if isinstance(value, Sequence) or isinstance(value, (set, frozenset)):
            return tuple(str(tag) for tag in value)
        return value

    @field_validator("last_modified", mode="before")
    @classmethod
    def _date_as_midnight(cls, value: Any) -> Any:
        if isinstance(value, date) and not isinstance(value, datetime):
            return datetime.combine(value, time(), tzinfo=timezone.utc)
        return value

    @field_validator("last_modified")
    @classmethod
    def _assume_utc(cls, value: datetime | None) -> datetime | None:
        if value is not None and value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value
