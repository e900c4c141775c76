"""Result snippets: a short excerpt of the page around the first matched term.

- The excerpt starts on a sentence boundary when one is close to the match,
  otherwise on a word boundary
- It never cuts through a word at either end
- Truncated ends are marked with "..."
- Matched terms can be highlighted as ``[[term]]`` (plain) or
  ``<mark>term</mark>`` (html)
"""

from __future__ import annotations

from collections.abc import Iterable
import re


DEFAULT_MAX_CHARS = 200
DEFAULT_CONTEXT = 60
ELLIPSIS = "..."
HIGHLIGHT_STYLES = ("none", "plain", "html")

SENTENCE_END_PATTERN = re.compile(r"[.!?]\s+")
WHITESPACE_PATTERN = re.compile(r"\s+")


def term_pattern(terms: Iterable[str]) -> re.Pattern[str] | None:
    """Compile a case-insensitive pattern matching any of ``terms`` as whole tokens.

    Token boundaries follow the analyzer: letters and digits form tokens,
    everything else (including underscore) separates them.
    """
    unique = {term for term in terms if term}
    if not unique:
        return None
    alternatives = "|".join(re.escape(term) for term in sorted(unique, key=len, reverse=True))
    return re.compile(rf"(?<![^\W_])(?:{alternatives})(?![^\W_])", re.IGNORECASE)


def highlight(snippet: str, pattern: re.Pattern[str] | None, style: str = "plain", max_highlights: int = 3) -> str:
    if style == "none" or pattern is None or not snippet:
        return snippet
    if style == "html":
        return pattern.sub(lambda match: f"<mark>{match.group(0)}</mark>", snippet, count=max_highlights)
    return pattern.sub(lambda match: f"[[{match.group(0)}]]", snippet, count=max_highlights)


def _snap_start(text: str, start: int, limit: int) -> int:
    if start <= 0:
        return 0
    window = text[start:limit]
    sentence = SENTENCE_END_PATTERN.search(window)
    if sentence:
        return start + sentence.end()
    word = WHITESPACE_PATTERN.search(window)
    if word:
        return start + word.end()
    return start


def _snap_end(text: str, end: int, floor: int) -> int:
    if end >= len(text):
        return len(text)
    if not text[end].isspace():
        gaps = list(WHITESPACE_PATTERN.finditer(text, floor, end))
        if gaps:
            return gaps[-1].start()
    return end


def _leading_excerpt(text: str, max_chars: int) -> str:
    if len(text) <= max_chars:
        return text
    end = _snap_end(text, max_chars, max_chars // 2)
    return text[:end].rstrip() + ELLIPSIS


def build_snippet(
    text: str,
    terms: Iterable[str],
    *,
    max_chars: int = DEFAULT_MAX_CHARS,
    context: int = DEFAULT_CONTEXT,
    style: str = "none",
) -> str:
    """Build a display excerpt of ``text`` for the given query terms.

    Args:
        text: Page content.
        terms: Normalized query terms.
        max_chars: Target excerpt length (before ellipses and highlighting).
            A single match longer than this is still returned whole.
        context: Characters of lead-in kept before the match.
        style: ``"none"``, ``"plain"`` or ``"html"``.

    Returns:
        The excerpt containing the first matched term, or the start of the text
        when no term occurs in it. ``""`` for empty text.
    """
    if style not in HIGHLIGHT_STYLES:
        raise ValueError(f"Unknown highlight style {style!r}; expected one of {HIGHLIGHT_STYLES}")
    if max_chars <= 0:
        raise ValueError("max_chars must be positive")
    if not text:
        return ""

    flat = WHITESPACE_PATTERN.sub(" ", text).strip()
    pattern = term_pattern(terms)
    match = pattern.search(flat) if pattern else None
    if match is None:
        return _leading_excerpt(flat, max_chars)

    start = _snap_start(flat, max(0, match.start() - max(context, 0)), match.start())
    end = _snap_end(flat, min(len(flat), max(match.end(), start + max_chars)), match.end())

    excerpt = highlight(flat[start:end].strip(), pattern, style)
    prefix = ELLIPSIS if start > 0 else ""
    suffix = ELLIPSIS if end < len(flat) else ""
    return f"{prefix}{excerpt}{suffix}"
