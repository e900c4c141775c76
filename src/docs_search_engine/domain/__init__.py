"""Domain layer - documents, query options and result value objects.

No infrastructure dependencies live here; everything is plain pydantic.
"""

from docs_search_engine.domain.model import (
    DEFAULT_CATEGORY,
    Breadcrumb,
    Document,
    EngineNotStartedError,
    MalformedDocumentError,
    SearchEngineError,
)
from docs_search_engine.domain.search import (
    DocumentFailure,
    FieldContributions,
    IndexingReport,
    IndexStats,
    ScoreExplanation,
    SearchOptions,
    SearchResult,
    TermScore,
)


__all__ = [
    "DEFAULT_CATEGORY",
    "Breadcrumb",
    "Document",
    "DocumentFailure",
    "EngineNotStartedError",
    "FieldContributions",
    "IndexStats",
    "IndexingReport",
    "MalformedDocumentError",
    "ScoreExplanation",
    "SearchEngineError",
    "SearchOptions",
    "SearchResult",
    "TermScore",
]
