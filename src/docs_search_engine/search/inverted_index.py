"""In-memory inverted index over documentation pages.

The index keeps two maps:

* ``documents`` - doc id -> ``IndexedDocument`` (the record plus its analyzed
  title/content/tag terms, order and repeats preserved)
* ``terms`` - term -> ``frozenset`` of doc ids containing it in any field

Posting sets are immutable and replaced on every change, so ``copy()`` only
has to duplicate the two top-level dicts. A copy and its source never observe
each other's later mutations, which is what lets ``SearchEngine`` publish
copy-on-write snapshots to lock-free readers.

A term key exists iff at least one document still contains the term.
"""

from __future__ import annotations

from collections import Counter
from collections.abc import Iterable, Iterator, KeysView, Mapping
from dataclasses import dataclass, field
from datetime import datetime, timezone
import logging
import math
import sys
from typing import Any

from docs_search_engine.adapters.scan_result import coerce_document
from docs_search_engine.domain.model import Breadcrumb, Document
from docs_search_engine.domain.search import ScoreExplanation, SearchOptions
from docs_search_engine.search.analyzers import normalize, query_terms
from docs_search_engine.search.fuzzy import find_fuzzy_matches
from docs_search_engine.search.ranking import FieldTermCounts, RankingEngine


logger = logging.getLogger(__name__)

# Fuzzy substitutes score below exact matches
FUZZY_DISCOUNT = 0.8

# Rough per-entry overheads used by the size estimate
_POSTING_ENTRY_BYTES = 8
_POSTING_SET_BYTES = sys.getsizeof(frozenset())


def _terms_footprint(terms: tuple[str, ...]) -> int:
    return sys.getsizeof(terms) + sum(sys.getsizeof(term) for term in set(terms))


@dataclass(frozen=True, slots=True)
class IndexedDocument:
    """A document as stored in the index, with its analyzed terms."""

    document: Document
    title_terms: tuple[str, ...]
    content_terms: tuple[str, ...]
    tag_terms: tuple[str, ...]
    field_counts: FieldTermCounts = field(compare=False, repr=False)
    footprint: int = field(default=0, compare=False, repr=False)

    @classmethod
    def from_document(cls, document: Document) -> IndexedDocument:
        title_terms = tuple(normalize(document.title))
        content_terms = tuple(normalize(document.content))
        tag_terms = tuple(term for tag in document.tags for term in normalize(tag))
        footprint = (
            sys.getsizeof(document.id)
            + sys.getsizeof(document.title)
            + sys.getsizeof(document.content)
            + sys.getsizeof(document.path)
            + sys.getsizeof(document.category)
            + _terms_footprint(title_terms)
            + _terms_footprint(content_terms)
            + _terms_footprint(tag_terms)
        )
        return cls(
            document=document,
            title_terms=title_terms,
            content_terms=content_terms,
            tag_terms=tag_terms,
            field_counts=FieldTermCounts(
                title=Counter(title_terms),
                content=Counter(content_terms),
                tags=Counter(tag_terms),
            ),
            footprint=footprint,
        )

    @property
    def id(self) -> str:
        return self.document.id

    @property
    def title(self) -> str:
        return self.document.title

    @property
    def content(self) -> str:
        return self.document.content

    @property
    def path(self) -> str:
        return self.document.path

    @property
    def category(self) -> str:
        return self.document.category

    @property
    def tags(self) -> tuple[str, ...]:
        return self.document.tags

    @property
    def last_modified(self) -> datetime | None:
        return self.document.last_modified

    @property
    def breadcrumbs(self) -> tuple[Breadcrumb, ...]:
        return self.document.breadcrumbs

    def unique_terms(self) -> set[str]:
        return set(self.title_terms) | set(self.content_terms) | set(self.tag_terms)


@dataclass(frozen=True, slots=True)
class ScoredDocument:
    """A candidate document together with its relevance score."""

    document: IndexedDocument
    score: float
    matched_terms: tuple[str, ...] = ()

    @property
    def id(self) -> str:
        return self.document.id

    @property
    def title(self) -> str:
        return self.document.title

    @property
    def path(self) -> str:
        return self.document.path

    @property
    def category(self) -> str:
        return self.document.category

    @property
    def tags(self) -> tuple[str, ...]:
        return self.document.tags

    @property
    def content(self) -> str:
        return self.document.content

    @property
    def last_modified(self) -> datetime | None:
        return self.document.last_modified


class InvertedIndex:
    """Term -> document postings plus the document registry."""

    def __init__(
        self,
        *,
        ranking: RankingEngine | None = None,
        fuzzy_max_distance: int | None = None,
    ) -> None:
        self.documents: dict[str, IndexedDocument] = {}
        self.terms: dict[str, frozenset[str]] = {}
        self.ranking = ranking or RankingEngine()
        self.fuzzy_max_distance = fuzzy_max_distance
        self._size_bytes = 0

    @classmethod
    def build(
        cls,
        documents: Iterable[Document | Mapping[str, Any]],
        *,
        ranking: RankingEngine | None = None,
        fuzzy_max_distance: int | None = None,
    ) -> InvertedIndex:
        """Index a whole collection in one pass.

        Raises ``MalformedDocumentError`` on the first record without an id;
        callers that need per-record reporting validate through the adapter
        first.
        """
        index = cls(ranking=ranking, fuzzy_max_distance=fuzzy_max_distance)
        for document in documents:
            index.add(document)
        logger.debug("Built index with %d documents and %d terms", index.document_count, len(index.terms))
        return index

    @property
    def document_count(self) -> int:
        return len(self.documents)

    @property
    def estimated_size_bytes(self) -> int:
        return self._size_bytes

    def __len__(self) -> int:
        return len(self.documents)

    def __contains__(self, doc_id: object) -> bool:
        return doc_id in self.documents

    def __iter__(self) -> Iterator[IndexedDocument]:
        return iter(self.documents.values())

    def copy(self) -> InvertedIndex:
        """Return an independent index sharing the immutable postings and records."""
        clone = type(self)(ranking=self.ranking, fuzzy_max_distance=self.fuzzy_max_distance)
        clone.documents = dict(self.documents)
        clone.terms = dict(self.terms)
        clone._size_bytes = self._size_bytes
        return clone

    # -- mutation -----------------------------------------------------------

    def add(self, document: Document | Mapping[str, Any]) -> InvertedIndex:
        """Insert a document; an existing id is replaced (upsert)."""
        return self.update(document)

    def update(self, document: Document | Mapping[str, Any]) -> InvertedIndex:
        """Replace a document's stored fields and postings; unknown ids are added."""
        indexed = IndexedDocument.from_document(coerce_document(document))
        previous = self.documents.get(indexed.id)

        new_terms = indexed.unique_terms()
        old_terms = previous.unique_terms() if previous is not None else set()

        for term in old_terms - new_terms:
            self._drop_posting(term, indexed.id)
        for term in new_terms - old_terms:
            self._add_posting(term, indexed.id)

        if previous is not None:
            self._size_bytes -= previous.footprint
        self._size_bytes += indexed.footprint
        self.documents[indexed.id] = indexed
        return self

    def remove(self, doc_id: str) -> InvertedIndex:
        """Delete a document and its postings. Unknown ids are ignored."""
        previous = self.documents.pop(doc_id, None)
        if previous is None:
            return self
        for term in previous.unique_terms():
            self._drop_posting(term, doc_id)
        self._size_bytes -= previous.footprint
        return self

    def _add_posting(self, term: str, doc_id: str) -> None:
        postings = self.terms.get(term)
        if postings is None:
            self.terms[term] = frozenset((doc_id,))
            self._size_bytes += sys.getsizeof(term) + _POSTING_SET_BYTES + _POSTING_ENTRY_BYTES
            return
        self.terms[term] = postings | {doc_id}
        self._size_bytes += _POSTING_ENTRY_BYTES

    def _drop_posting(self, term: str, doc_id: str) -> None:
        postings = self.terms.get(term)
        if postings is None or doc_id not in postings:
            return
        remaining = postings - {doc_id}
        if remaining:
            self.terms[term] = remaining
            self._size_bytes -= _POSTING_ENTRY_BYTES
        else:
            del self.terms[term]
            self._size_bytes -= sys.getsizeof(term) + _POSTING_SET_BYTES + _POSTING_ENTRY_BYTES

    # -- lookup -------------------------------------------------------------

    def lookup(self, term: str) -> frozenset[str]:
        """Return the posting set for an already-normalized term."""
        return self.terms.get(term, frozenset())

    def document_frequency(self, term: str) -> int:
        return len(self.terms.get(term, ()))

    def document_frequencies(self, terms: Iterable[str]) -> dict[str, int]:
        return {term: self.document_frequency(term) for term in terms}

    def vocabulary(self) -> KeysView[str]:
        return self.terms.keys()

    def _resolve_terms(self, terms: list[str], *, fuzzy: bool) -> tuple[list[str], list[str]]:
        """Split query terms into exact hits and fuzzy substitutes for misses."""
        exact: list[str] = []
        substitutes: list[str] = []
        for term in terms:
            if term in self.terms:
                exact.append(term)
                continue
            if not fuzzy:
                continue
            matches = find_fuzzy_matches(term, self.terms.keys(), self.fuzzy_max_distance)
            if matches:
                closest, distance = matches[0]
                logger.debug("Fuzzy match %r -> %r (distance %d)", term, closest, distance)
                if closest not in exact and closest not in substitutes:
                    substitutes.append(closest)
        return exact, substitutes

    # -- query --------------------------------------------------------------

    def search(self, query: str, options: SearchOptions | None = None) -> list[ScoredDocument]:
        """Return documents matching any query term, best first.

        Filters narrow the candidate set before scoring. Documents whose score
        cannot be computed are skipped rather than failing the query.
        """
        options = options or SearchOptions()
        terms = query_terms(query)
        if not terms or not self.documents:
            return []

        exact, substitutes = self._resolve_terms(terms, fuzzy=options.fuzzy)
        if not exact and not substitutes:
            return []

        matched = (*exact, *substitutes)
        candidates: set[str] = set()
        for term in matched:
            candidates.update(self.terms[term])

        frequencies = self.document_frequencies(matched)
        total = self.document_count

        scored: list[ScoredDocument] = []
        for doc_id in sorted(candidates):
            indexed = self.documents[doc_id]
            if not options.matches_category(indexed.category) or not options.matches_tags(indexed.tags):
                continue
            try:
                score = self.ranking.score(indexed, exact, frequencies, total)
                if substitutes:
                    score += FUZZY_DISCOUNT * self.ranking.score(indexed, substitutes, frequencies, total)
            except (ArithmeticError, TypeError, ValueError) as exc:
                logger.warning("Skipping document %s: scoring failed: %s", doc_id, exc)
                continue
            if not math.isfinite(score):
                logger.warning("Skipping document %s: non-finite score %r", doc_id, score)
                continue
            present = indexed.unique_terms()
            scored.append(
                ScoredDocument(
                    document=indexed,
                    score=score,
                    matched_terms=tuple(term for term in matched if term in present),
                )
            )

        if options.boost_recent:
            now = datetime.now(timezone.utc)
            scored = [self.ranking.boost_recent_content(item, now) for item in scored]

        return self.ranking.sort_by_relevance(scored, options.limit)

    def explain(self, query: str, doc_id: str) -> ScoreExplanation | None:
        """Explain how ``doc_id`` scores for ``query``; ``None`` if it is not indexed."""
        indexed = self.documents.get(doc_id)
        if indexed is None:
            return None
        terms = query_terms(query)
        return self.ranking.explain_score(indexed, terms, self.document_frequencies(terms), self.document_count)


def build_index(
    documents: Iterable[Document | Mapping[str, Any]],
    *,
    ranking: RankingEngine | None = None,
    fuzzy_max_distance: int | None = None,
) -> InvertedIndex:
    """Build an index from a document collection."""
    return InvertedIndex.build(documents, ranking=ranking, fuzzy_max_distance=fuzzy_max_distance)
