"""Search Engine - long-lived, thread-safe owner of one documentation index.

Concurrency model:
- Writers (start, update, remove, batch, rebuild) serialize on one lock. Each
  copies the published index, mutates the copy and publishes it with a single
  reference assignment.
- Readers (search, stats, explain) grab the published reference without
  locking and use that snapshot for the whole call, so they see every
  mutation entirely or not at all and never wait for writers.

Lifecycle: idle -> ready. Searches on an idle engine return no results;
mutations raise ``EngineNotStartedError``.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from datetime import datetime, timezone
import logging
import threading
from typing import Any, NamedTuple

from docs_search_engine.adapters.scan_result import (
    PreparedDocuments,
    coerce_document,
    documents_from_scan_result,
    prepare_documents,
    scan_files,
)
from docs_search_engine.config import Settings
from docs_search_engine.domain.model import EngineNotStartedError, MalformedDocumentError
from docs_search_engine.domain.search import (
    IndexingReport,
    IndexStats,
    ScoreExplanation,
    SearchOptions,
    SearchResult,
)
from docs_search_engine.observability.context import bound_engine
from docs_search_engine.observability.logging import configure_logging
from docs_search_engine.observability.metrics import (
    INDEX_DOC_COUNT,
    INDEX_ERRORS,
    INDEX_MUTATIONS,
    SEARCH_LATENCY,
    SEARCH_REQUESTS,
    init_metrics,
    track_latency,
)
from docs_search_engine.observability.tracing import create_span, init_tracing
from docs_search_engine.search.analyzers import query_terms
from docs_search_engine.search.inverted_index import InvertedIndex, ScoredDocument
from docs_search_engine.search.snippet import build_snippet
from docs_search_engine.utils.breadcrumbs import build_breadcrumbs


logger = logging.getLogger(__name__)

SERVICE_NAME = "docs-search-engine"


class _Published(NamedTuple):
    index: InvertedIndex
    last_updated: datetime


class SearchEngine:
    """Coordinator for searching and maintaining one in-memory index.

    Interface Methods:
    - start(initial_documents) -> IndexingReport
    - search(query, options, **overrides) -> list[SearchResult]
    - update_document(document) / remove_document(doc_id)
    - batch_update(documents) -> IndexingReport
    - rebuild_index(scan_result) -> IndexingReport
    - get_stats() -> IndexStats
    - explain(query, doc_id) -> ScoreExplanation | None
    """

    def __init__(self, settings: Settings | None = None):
        self.settings = settings or Settings()
        self.name = self.settings.engine_name
        self._ranking = self.settings.ranking_engine()
        self._write_lock = threading.Lock()
        self._published: _Published | None = None

    @property
    def started(self) -> bool:
        return self._published is not None

    def _new_index(self) -> InvertedIndex:
        return InvertedIndex(ranking=self._ranking, fuzzy_max_distance=self.settings.fuzzy_max_distance)

    def _publish(self, index: InvertedIndex) -> None:
        # Caller holds the write lock
        self._published = _Published(index=index, last_updated=datetime.now(timezone.utc))
        INDEX_DOC_COUNT.labels(engine=self.name).set(index.document_count)

    def _current_for_write(self, operation: str) -> InvertedIndex:
        published = self._published
        if published is None:
            raise EngineNotStartedError(f"Search engine {self.name!r} must be started before {operation}")
        return published.index

    def _report(self, prepared: PreparedDocuments, indexed: int) -> IndexingReport:
        for failure in prepared.failures:
            INDEX_ERRORS.labels(engine=self.name, error_type="malformed_document").inc()
            logger.debug("Rejected document at position %d (%s)", failure.position, failure.doc_id)
        return IndexingReport(indexed=indexed, failures=tuple(prepared.failures))

    # -- lifecycle ----------------------------------------------------------

    def start(self, initial_documents: Any = ()) -> IndexingReport:
        """Build the initial index. Starting a running engine rebuilds it."""
        if self.started:
            logger.info("Search engine %s already started, rebuilding", self.name)
            return self.rebuild_index(initial_documents)
        return self._replace_index(initial_documents, operation="start")

    def rebuild_index(self, scan_result: Any) -> IndexingReport:
        """Replace the whole index with the documents of ``scan_result``.

        Accepts anything ``scan_files`` does: a mapping or object with
        ``files``, or a plain collection of documents.
        """
        self._current_for_write("rebuild_index")
        return self._replace_index(scan_result, operation="rebuild")

    def _replace_index(self, source: Any, *, operation: str) -> IndexingReport:
        with (
            bound_engine(self.name),
            create_span(f"search_engine.{operation}", attributes={"engine": self.name}) as span,
        ):
            prepared = documents_from_scan_result(source)
            with self._write_lock:
                fresh = self._new_index()
                for document in prepared.documents:
                    fresh.update(document)
                self._publish(fresh)

            INDEX_MUTATIONS.labels(engine=self.name, operation=operation).inc()
            span.set_attribute("index.document_count", fresh.document_count)
            span.set_attribute("index.rejected", len(prepared.failures))
            logger.info(
                "Search engine %s %s: %d documents, %d terms, %d rejected",
                self.name,
                "started" if operation == "start" else "rebuilt",
                fresh.document_count,
                len(fresh.terms),
                len(prepared.failures),
            )
            return self._report(prepared, len(prepared.documents))

    # -- writes -------------------------------------------------------------

    def update_document(self, document: Any) -> None:
        """Add or replace one document.

        Raises:
            EngineNotStartedError: The engine was never started.
            MalformedDocumentError: The record has no id or fails validation;
                the index is left untouched.
        """
        self._current_for_write("update_document")
        with bound_engine(self.name):
            try:
                validated = coerce_document(document)
            except MalformedDocumentError as exc:
                INDEX_ERRORS.labels(engine=self.name, error_type="malformed_document").inc()
                logger.warning("Rejected document update for %s: %s", self.name, exc.reason)
                raise

            with self._write_lock:
                index = self._current_for_write("update_document").copy()
                index.update(validated)
                self._publish(index)

            INDEX_MUTATIONS.labels(engine=self.name, operation="update").inc()
            logger.debug("Indexed document %s in %s", validated.id, self.name)

    def remove_document(self, doc_id: str) -> None:
        """Remove a document by id; unknown ids are ignored."""
        self._current_for_write("remove_document")
        with bound_engine(self.name):
            with self._write_lock:
                current = self._current_for_write("remove_document")
                if doc_id not in current:
                    logger.debug("Remove of unknown document %s ignored", doc_id)
                    return
                index = current.copy()
                index.remove(doc_id)
                self._publish(index)

            INDEX_MUTATIONS.labels(engine=self.name, operation="remove").inc()
            logger.debug("Removed document %s from %s", doc_id, self.name)

    def batch_update(self, documents: Iterable[Any]) -> IndexingReport:
        """Validate every item, then apply all valid ones as one published change.

        Items may be documents, mappings or paths to markdown files. Rejected
        items are reported, not raised.
        """
        self._current_for_write("batch_update")
        with bound_engine(self.name), create_span("search_engine.batch_update", attributes={"engine": self.name}):
            prepared = prepare_documents(scan_files(documents))
            if prepared.documents:
                with self._write_lock:
                    index = self._current_for_write("batch_update").copy()
                    for document in prepared.documents:
                        index.update(document)
                    self._publish(index)
                INDEX_MUTATIONS.labels(engine=self.name, operation="batch_update").inc()

            logger.info(
                "Batch update for %s: %d indexed, %d rejected",
                self.name,
                len(prepared.documents),
                len(prepared.failures),
            )
            return self._report(prepared, len(prepared.documents))

    # -- reads --------------------------------------------------------------

    @staticmethod
    def _option_values(
        options: SearchOptions | Mapping[str, Any] | None,
        overrides: dict[str, Any],
    ) -> dict[str, Any]:
        if options is None:
            values: dict[str, Any] = {}
        elif isinstance(options, SearchOptions):
            values = options.model_dump(exclude_unset=True)
        else:
            values = dict(options)
        values.update(overrides)
        return values

    def _to_result(self, item: ScoredDocument, terms: list[str], options: SearchOptions) -> SearchResult:
        snippet = None
        if options.include_snippet:
            snippet = build_snippet(
                item.content,
                item.matched_terms or terms,
                max_chars=self.settings.snippet_length,
                context=self.settings.snippet_context,
                style=self.settings.snippet_highlight,
            )
        return SearchResult(
            id=item.id,
            title=item.title,
            path=item.path,
            category=item.category,
            score=item.score,
            tags=item.tags,
            snippet=snippet,
            breadcrumbs=item.document.breadcrumbs or build_breadcrumbs(item.path, item.title),
            last_modified=item.last_modified,
        )

    def search(
        self,
        query: str,
        options: SearchOptions | Mapping[str, Any] | None = None,
        **overrides: Any,
    ) -> list[SearchResult]:
        """Search the current snapshot.

        Options can be passed as ``SearchOptions``, a mapping, keyword
        overrides, or any mix; unset values come from the engine settings.
        An unknown option name matches no documents. A known option with an
        invalid value raises ``pydantic.ValidationError``. Failures while
        executing the query are logged and yield no results.
        """
        values = self._option_values(options, overrides)
        unknown = sorted(set(values) - set(SearchOptions.model_fields))
        if unknown:
            logger.warning("Unknown search options %s for %s, no documents match", unknown, self.name)
            SEARCH_REQUESTS.labels(engine=self.name, status="no_match").inc()
            return []
        resolved = self.settings.search_options(**values)
        published = self._published
        if published is None:
            logger.debug("Search on idle engine %s", self.name)
            return []

        status = "success"
        with bound_engine(self.name), track_latency(SEARCH_LATENCY, engine=self.name):
            try:
                with create_span("search_engine.search", attributes={"engine": self.name}) as span:
                    terms = query_terms(query)
                    scored = published.index.search(query, resolved)
                    results = [self._to_result(item, terms, resolved) for item in scored]
                    span.set_attribute("search.term_count", len(terms))
                    span.set_attribute("search.result_count", len(results))
            except Exception as exc:
                status = "error"
                logger.error("Search failed for %s: %s", self.name, exc, exc_info=True)
                return []
            finally:
                SEARCH_REQUESTS.labels(engine=self.name, status=status).inc()
        return results

    def get_stats(self) -> IndexStats:
        published = self._published
        if published is None:
            return IndexStats(document_count=0, total_terms=0, index_size=0, last_updated=None, started=False)
        index = published.index
        return IndexStats(
            document_count=index.document_count,
            total_terms=len(index.terms),
            index_size=index.estimated_size_bytes,
            last_updated=published.last_updated,
            started=True,
        )

    def explain(self, query: str, doc_id: str) -> ScoreExplanation | None:
        """Explain a document's score for ``query``; ``None`` when idle or unknown."""
        published = self._published
        if published is None:
            return None
        return published.index.explain(query, doc_id)


def start_search_engine(documents: Any = (), settings: Settings | None = None) -> SearchEngine:
    """Create a search engine and index ``documents`` into it."""
    engine = SearchEngine(settings)
    engine.start(documents)
    return engine


def init_observability(settings: Settings | None = None) -> None:
    """Set up logging, metrics and tracing for an application hosting engines."""
    settings = settings or Settings()
    configure_logging(level=settings.log_level, json_output=settings.log_json)
    init_metrics(service_name=SERVICE_NAME)
    init_tracing(service_name=SERVICE_NAME)
    logger.debug("Observability initialized for %s", settings.engine_name)
