"""Edit-distance tolerance for typo-tolerant term lookup.

Only plain Levenshtein distance is supported; there is no phonetic or
stemming-based expansion.

Tolerance by term length:
- 1-2 chars: exact only
- 3-5 chars: 1 edit
- 6+ chars: 2 edits
"""

from __future__ import annotations

from collections.abc import Iterable


def edit_distance(left: str, right: str, max_distance: int | None = None) -> int:
    """Return the Levenshtein distance between two strings.

    When ``max_distance`` is given the computation stops as soon as the
    distance is guaranteed to exceed it and returns ``max_distance + 1``.

    >>> edit_distance("kitten", "sitting")
    3
    >>> edit_distance("phoenix", "pheonix")
    2
    """
    if left == right:
        return 0
    if not left:
        return len(right)
    if not right:
        return len(left)

    # Shorter string on the columns keeps the rows small
    if len(left) > len(right):
        left, right = right, left

    if max_distance is not None and len(right) - len(left) > max_distance:
        return max_distance + 1

    previous = list(range(len(left) + 1))
    for row, right_char in enumerate(right, start=1):
        current = [row]
        for col, left_char in enumerate(left, start=1):
            cost = 0 if left_char == right_char else 1
            current.append(
                min(
                    previous[col] + 1,
                    current[col - 1] + 1,
                    previous[col - 1] + cost,
                )
            )
        if max_distance is not None and min(current) > max_distance:
            return max_distance + 1
        previous = current

    if max_distance is not None and previous[-1] > max_distance:
        return max_distance + 1
    return previous[-1]


def max_edit_distance(term_length: int) -> int:
    """Return the number of edits tolerated for a term of the given length."""
    if term_length <= 2:
        return 0
    if term_length <= 5:
        return 1
    return 2


def find_fuzzy_matches(
    term: str,
    vocabulary: Iterable[str],
    max_distance: int | None = None,
) -> list[tuple[str, int]]:
    """Return vocabulary terms within edit distance of ``term``.

    Results are ``(vocabulary_term, distance)`` pairs ordered by distance, then
    alphabetically. An exact match, when present, comes first with distance 0.
    """
    if not term:
        return []

    limit = max_edit_distance(len(term)) if max_distance is None else max_distance

    matches: list[tuple[str, int]] = []
    for candidate in vocabulary:
        if abs(len(candidate) - len(term)) > limit:
            continue
        distance = edit_distance(term, candidate, limit)
        if distance <= limit:
            matches.append((candidate, distance))

    matches.sort(key=lambda item: (item[1], item[0]))
    return matches
