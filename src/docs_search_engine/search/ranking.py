"""Field-weighted TF-IDF scoring and result ordering.

The scoring helpers stay independent of the index storage so they can be unit
tested with hand-built documents and document-frequency maps.

    score = sum over distinct query terms t and fields f of
            tf(t, f) * log(N / df(t)) * weight(f)

with ``weight(title) > weight(tags) > weight(content)``.
"""

from __future__ import annotations

from collections import Counter
from collections.abc import Iterable, Mapping, Sequence
import dataclasses
from dataclasses import dataclass
from datetime import datetime, timezone
import heapq
import math
from typing import Any, NamedTuple, Protocol, TypeVar

from pydantic import BaseModel

from docs_search_engine.domain.search import FieldContributions, ScoreExplanation, TermScore


_SECONDS_PER_DAY = 86_400.0

T = TypeVar("T")


class FieldTermCounts(NamedTuple):
    """Per-field term frequency maps for one document."""

    title: Mapping[str, int]
    content: Mapping[str, int]
    tags: Mapping[str, int]


class ScorableDocument(Protocol):
    """Anything carrying per-field term sequences can be scored."""

    title_terms: Sequence[str]
    content_terms: Sequence[str]
    tag_terms: Sequence[str]


@dataclass(frozen=True)
class FieldWeights:
    """Multipliers applied to term frequency per field."""

    title: float = 3.0
    tags: float = 2.0
    content: float = 1.0

    def __post_init__(self) -> None:
        if not self.title > self.tags > self.content > 0:
            msg = (
                "Field weights must satisfy title > tags > content > 0, got "
                f"title={self.title}, tags={self.tags}, content={self.content}"
            )
            raise ValueError(msg)


def calculate_idf(doc_freq: int | None, total_docs: int) -> float:
    """Return ``log(total_docs / doc_freq)``, guarded against bad inputs.

    An empty collection scores zero. A missing or non-positive document
    frequency is treated as 1. The result is never negative.
    """

    if total_docs <= 0:
        return 0.0
    df = doc_freq if doc_freq and doc_freq > 0 else 1
    return max(math.log(total_docs / df), 0.0)


def term_counts(document: ScorableDocument) -> FieldTermCounts:
    """Return field term counts, reusing precomputed ones when the document has them."""

    precomputed = getattr(document, "field_counts", None)
    if isinstance(precomputed, FieldTermCounts):
        return precomputed
    return FieldTermCounts(
        title=Counter(document.title_terms),
        content=Counter(document.content_terms),
        tags=Counter(document.tag_terms),
    )


def _distinct(terms: Iterable[str]) -> list[str]:
    seen: set[str] = set()
    ordered: list[str] = []
    for term in terms:
        if term in seen:
            continue
        seen.add(term)
        ordered.append(term)
    return ordered


def _score_of(item: Any) -> float:
    if isinstance(item, Mapping):
        return float(item["score"])
    return float(item.score)


def _last_modified_of(item: Any) -> datetime | None:
    if isinstance(item, Mapping):
        return item.get("last_modified")
    return getattr(item, "last_modified", None)


def _with_score(item: T, score: float) -> T:
    if isinstance(item, BaseModel):
        return item.model_copy(update={"score": score})
    if dataclasses.is_dataclass(item) and not isinstance(item, type):
        return dataclasses.replace(item, score=score)
    if isinstance(item, Mapping):
        return {**item, "score": score}  # type: ignore[return-value]
    msg = f"Cannot adjust score on {type(item).__name__}"
    raise TypeError(msg)


class RankingEngine:
    """Score, order and explain documents for a query."""

    def __init__(
        self,
        weights: FieldWeights | None = None,
        *,
        recency_max_boost: float = 0.5,
        recency_half_life_days: float = 30.0,
    ) -> None:
        if recency_max_boost < 0:
            raise ValueError("recency_max_boost must be >= 0")
        if recency_half_life_days <= 0:
            raise ValueError("recency_half_life_days must be > 0")
        self.weights = weights or FieldWeights()
        self.recency_max_boost = recency_max_boost
        self.recency_half_life_days = recency_half_life_days

    def score(
        self,
        document: ScorableDocument,
        query_terms: Iterable[str],
        document_frequency: Mapping[str, int],
        total_documents: int,
    ) -> float:
        """Return the weighted TF-IDF score of ``document`` for ``query_terms``."""

        if total_documents <= 0:
            return 0.0

        counts = term_counts(document)
        weights = self.weights
        total = 0.0
        for term in _distinct(query_terms):
            weighted_tf = (
                counts.title.get(term, 0) * weights.title
                + counts.tags.get(term, 0) * weights.tags
                + counts.content.get(term, 0) * weights.content
            )
            if weighted_tf <= 0:
                continue
            total += weighted_tf * calculate_idf(document_frequency.get(term), total_documents)
        return total

    def explain_score(
        self,
        document: ScorableDocument,
        query_terms: Iterable[str],
        document_frequency: Mapping[str, int],
        total_documents: int,
    ) -> ScoreExplanation:
        """Break a score down per query term and per field."""

        counts = term_counts(document)
        weights = self.weights
        term_scores: dict[str, TermScore] = {}
        for term in _distinct(query_terms):
            title_tf = counts.title.get(term, 0)
            content_tf = counts.content.get(term, 0)
            tags_tf = counts.tags.get(term, 0)
            idf = calculate_idf(document_frequency.get(term), total_documents)
            title_score = title_tf * weights.title * idf
            content_score = content_tf * weights.content * idf
            tags_score = tags_tf * weights.tags * idf
            term_scores[term] = TermScore(
                title_tf=title_tf,
                content_tf=content_tf,
                tags_tf=tags_tf,
                idf=idf,
                title_score=title_score,
                content_score=content_score,
                tags_score=tags_score,
                total=title_score + content_score + tags_score,
            )

        contributions = FieldContributions(
            title=sum(entry.title_score for entry in term_scores.values()),
            content=sum(entry.content_score for entry in term_scores.values()),
            tags=sum(entry.tags_score for entry in term_scores.values()),
        )
        return ScoreExplanation(
            document_id=str(getattr(document, "id", "")),
            document_title=str(getattr(document, "title", "")),
            total_score=sum(entry.total for entry in term_scores.values()),
            term_scores=term_scores,
            field_contributions=contributions,
        )

    def sort_by_relevance(self, items: Iterable[T], limit: int | None = None) -> list[T]:
        """Return items ordered by descending score, ties kept in input order."""

        ranked = list(items)
        if limit is not None and limit <= 0:
            return []
        if limit is not None and limit < len(ranked):
            return heapq.nlargest(limit, ranked, key=_score_of)
        return sorted(ranked, key=_score_of, reverse=True)

    def recency_factor(self, last_modified: datetime, now: datetime | None = None) -> float:
        """Return the score multiplier for content last modified at ``last_modified``."""

        reference = now or datetime.now(timezone.utc)
        if reference.tzinfo is None:
            reference = reference.replace(tzinfo=timezone.utc)
        if last_modified.tzinfo is None:
            last_modified = last_modified.replace(tzinfo=timezone.utc)
        age_days = max((reference - last_modified).total_seconds() / _SECONDS_PER_DAY, 0.0)
        return 1.0 + self.recency_max_boost * 0.5 ** (age_days / self.recency_half_life_days)

    def boost_recent_content(self, item: T, now: datetime | None = None) -> T:
        """Return a copy of ``item`` with its score scaled by recency.

        Items without ``last_modified`` come back unchanged.
        """

        last_modified = _last_modified_of(item)
        if last_modified is None:
            return item
        return _with_score(item, _score_of(item) * self.recency_factor(last_modified, now))
