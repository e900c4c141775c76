"""Unit tests for edit-distance helpers."""

import pytest

from docs_search_engine.search.fuzzy import edit_distance, find_fuzzy_matches, max_edit_distance


@pytest.mark.parametrize(
    ("left", "right", "expected"),
    [
        ("", "", 0),
        ("ecto", "", 4),
        ("", "ecto", 4),
        ("ecto", "ecto", 0),
        ("kitten", "sitting", 3),
        ("phoenix", "pheonix", 2),
        ("channel", "channels", 1),
    ],
)
def test_edit_distance(left, right, expected):
    assert edit_distance(left, right) == expected
    assert edit_distance(right, left) == expected


def test_edit_distance_stops_early_past_max_distance():
    assert edit_distance("phoenix", "database", max_distance=2) == 3
    assert edit_distance("a", "abcdef", max_distance=1) == 2


@pytest.mark.parametrize(("length", "expected"), [(1, 0), (2, 0), (3, 1), (5, 1), (6, 2), (12, 2)])
def test_max_edit_distance_scales_with_length(length, expected):
    assert max_edit_distance(length) == expected


def test_find_fuzzy_matches_orders_by_distance_then_term():
    vocabulary = ["phoenix", "phoenixes", "pheonix", "ecto", "phoenix"]

    matches = find_fuzzy_matches("phoenix", vocabulary)

    assert matches[0] == ("phoenix", 0)
    assert ("pheonix", 2) in matches
    assert ("phoenixes", 2) in matches
    assert all(term != "ecto" for term, _ in matches)
    assert [distance for _, distance in matches] == sorted(distance for _, distance in matches)


def test_find_fuzzy_matches_short_terms_require_exact_match():
    assert find_fuzzy_matches("io", ["id", "io", "ok"]) == [("io", 0)]


def test_find_fuzzy_matches_respects_explicit_distance():
    assert find_fuzzy_matches("ecto", ["acto", "ectos", "eta"], max_distance=0) == []
    assert find_fuzzy_matches("ecto", ["acto", "ectos"], max_distance=1) == [("acto", 1), ("ectos", 1)]


def test_find_fuzzy_matches_empty_term():
    assert find_fuzzy_matches("", ["anything"]) == []
