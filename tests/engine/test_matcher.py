from __future__ import annotations

import pytest

from serp_crawler.engine.matcher import (
    NO_MATCH_INDEX,
    best_sentence_index,
    find_best_match,
    match_percentage,
)


def test_match_percentage_counts_snippet_tokens() -> None:
    assert match_percentage("cat sat on mat", "A cat sat on the mat") == 100.0
    assert match_percentage("cat sat on mat", "A cat sat") == 50.0
    assert match_percentage("cat dog", "bird fish") == 0.0


def test_match_percentage_counts_duplicates_per_occurrence() -> None:
    assert match_percentage("the the cat", "the dog") == pytest.approx(200 / 3)


def test_match_percentage_is_case_sensitive() -> None:
    assert match_percentage("Cat Mat", "cat mat") == 0.0


def test_match_percentage_ignores_sentence_terminal_punctuation() -> None:
    assert match_percentage("cat sat on the mat", "A cat sat on the mat.") == 100.0
    assert match_percentage("what a day", "What a day!") == pytest.approx(200 / 3)
    # only the closing mark is dropped; inner punctuation still separates tokens
    assert match_percentage("cat mat", "cat, mat.") == 50.0
    assert match_percentage("cat sat", "A cat sat.  ") == 100.0


def test_match_percentage_zero_token_snippet_scores_zero() -> None:
    assert match_percentage("", "anything at all") == 0.0
    assert match_percentage("   \n", "anything at all") == 0.0


def test_match_percentage_grows_with_overlap() -> None:
    snippet = "alpha beta gamma delta"
    scores = [
        match_percentage(snippet, sentence)
        for sentence in ("", "alpha", "alpha beta", "alpha beta gamma", "alpha beta gamma delta")
    ]
    assert scores == sorted(scores)
    assert all(0 <= score <= 100 for score in scores)


def test_find_best_match_includes_neighbours() -> None:
    content = "A cat sat. A cat sat on the mat. The mat was red."
    match = find_best_match("cat sat on mat", content)
    assert match.best_index == 1
    assert match.best_sentence == "A cat sat on the mat."
    assert match.score == 100.0
    assert match.before == "A cat sat."
    assert match.after == "The mat was red."
    assert match.combined_paragraph == "A cat sat. A cat sat on the mat. The mat was red."


def test_find_best_match_boundaries_use_empty_neighbours() -> None:
    content = "Rust is fast. Python is friendly. Go is simple."
    first = find_best_match("Rust fast", content)
    assert first.best_index == 0
    assert first.before == ""
    assert first.combined_paragraph == "Rust is fast. Python is friendly."

    last = find_best_match("Go simple", content)
    assert last.best_index == 2
    assert last.after == ""
    assert last.combined_paragraph == "Python is friendly. Go is simple."


def test_find_best_match_first_sentence_wins_ties() -> None:
    content = "one apple here. two apple there. three apple everywhere."
    match = find_best_match("apple", content)
    assert match.best_index == 0


def test_find_best_match_without_overlap_picks_first_sentence() -> None:
    index, score = best_sentence_index("zebra", ["no match", "still none"])
    assert (index, score) == (0, 0.0)


def test_find_best_match_on_empty_content() -> None:
    match = find_best_match("anything", "   ")
    assert match.best_index == NO_MATCH_INDEX
    assert not match.found
    assert match.combined_paragraph == ""
    assert match.before == match.after == ""
