"""Analyzer utilities for the in-memory search index.

Documents and queries go through the same analyzer so index lookups and query
terms are always comparable. The design mirrors Whoosh's composable
tokenizer/filter pipeline: a tokenizer yields ``Token`` objects and filters
transform the stream.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Iterator, Sequence
from dataclasses import dataclass
import re
from typing import Protocol


@dataclass
class Token:
    """Represents a token emitted by analyzers."""

    text: str
    position: int
    start_char: int
    end_char: int

    def copy_with(self, **updates: object) -> Token:
        data = {
            "text": self.text,
            "position": self.position,
            "start_char": self.start_char,
            "end_char": self.end_char,
        }
        data.update(updates)
        return Token(**data)  # type: ignore[arg-type]


class Analyzer(Protocol):
    """Protocol implemented by analyzers."""

    def __call__(self, text: str) -> list[Token]:  # pragma: no cover - interface definition
        ...


class Tokenizer(Protocol):
    """Protocol implemented by tokenizers."""

    def __call__(self, text: str) -> Iterator[Token]:  # pragma: no cover - interface definition
        ...


class TokenFilter(Protocol):
    """Protocol implemented by token filters."""

    def __call__(self, tokens: Iterable[Token]) -> Iterator[Token]:  # pragma: no cover - interface definition
        ...


# Letters and digits only: underscores and punctuation both act as separators
ALPHANUMERIC_PATTERN = r"[^\W_]+"

_NON_ALPHANUMERIC = re.compile(r"[\W_]+")


class RegexTokenizer:
    """Regex-based tokenizer that yields alphanumeric runs."""

    def __init__(self, pattern: str = ALPHANUMERIC_PATTERN, flags: int = re.UNICODE) -> None:
        self.pattern = re.compile(pattern, flags)

    def __call__(self, text: str) -> Iterator[Token]:
        for position, match in enumerate(self.pattern.finditer(text)):
            yield Token(
                text=match.group(0),
                position=position,
                start_char=match.start(),
                end_char=match.end(),
            )


class LowercaseFilter:
    """Filter that lowercases token text.

    Lowercasing can introduce combining marks ("İ" -> "i" + U+0307); those are
    stripped so terms stay alphanumeric.
    """

    def __call__(self, tokens: Iterable[Token]) -> Iterator[Token]:
        for token in tokens:
            lowered = token.text.lower()
            if not lowered.isalnum():
                lowered = _NON_ALPHANUMERIC.sub("", lowered)
            if lowered == token.text:
                yield token
            else:
                yield token.copy_with(text=lowered)


class AnalyzerPipeline:
    """Composable analyzer pipeline (tokenizer + filters)."""

    def __init__(self, tokenizer: Tokenizer, filters: Sequence[TokenFilter] | None = None) -> None:
        self.tokenizer = tokenizer
        self.filters = list(filters or [])

    def __call__(self, text: str) -> list[Token]:
        if not isinstance(text, str) or not text:
            return []
        stream: Iterable[Token] = self.tokenizer(text)
        for token_filter in self.filters:
            stream = token_filter(stream)
        tokens = [token for token in stream if token.text]
        for idx, token in enumerate(tokens):  # normalize positions post-filtering
            token.position = idx
        return tokens


class StandardAnalyzer:
    """Default analyzer: alphanumeric runs, lowercased, nothing dropped."""

    def __init__(self) -> None:
        self.pipeline = AnalyzerPipeline(RegexTokenizer(), [LowercaseFilter()])

    def __call__(self, text: str) -> list[Token]:
        return self.pipeline(text)


_ANALYZER_FACTORIES: dict[str, Callable[[], Analyzer]] = {
    "default": StandardAnalyzer,
    "standard": StandardAnalyzer,
}

_DEFAULT_ANALYZER = StandardAnalyzer()


def get_analyzer(name: str | None) -> Analyzer:
    """Return analyzer by name, defaulting to the standard analyzer."""

    if name is None:
        return _DEFAULT_ANALYZER
    normalized = name.lower()
    if normalized not in _ANALYZER_FACTORIES:
        msg = f"Unknown analyzer '{name}'. Available: {sorted(_ANALYZER_FACTORIES)}"
        raise ValueError(msg)
    return _ANALYZER_FACTORIES[normalized]()


def normalize(text: str | None) -> list[str]:
    """Split text into lowercase alphanumeric terms, keeping order and repeats.

    >>> normalize("Pattern-Matching & Pipes")
    ['pattern', 'matching', 'pipes']
    """

    if not isinstance(text, str):
        return []
    return [token.text for token in _DEFAULT_ANALYZER(text)]


def query_terms(text: str | None) -> list[str]:
    """Return normalized query terms with duplicates removed, first occurrence wins."""

    seen: set[str] = set()
    terms: list[str] = []
    for term in normalize(text):
        if term in seen:
            continue
        seen.add(term)
        terms.append(term)
    return terms
