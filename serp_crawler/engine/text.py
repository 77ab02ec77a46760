"""Text clean-up helpers for search snippets and scraped page text."""

from __future__ import annotations

import re

_MONTHS = "Jan|Feb|Mar|Apr|May|Jun|Jul|Aug|Sep|Oct|Nov|Dec"
# Em dash, en dash, hyphen, and the em dash as it appears when UTF-8 is read as cp1252.
_RANGE_SEPARATOR = "(?:—|–|-|â€”)"
_DATE = rf"\d{{1,2}} (?:{_MONTHS}) \d{{4}}"
DATE_RANGE_PATTERN = re.compile(rf"^\s*{_DATE} {_RANGE_SEPARATOR} {_DATE}\s*")
ELLIPSIS = "..."

_LINE_BREAK = re.compile(r"\r?\n")
_WHITESPACE_RUN = re.compile(r"\s{2,}")
_SENTENCE_BOUNDARY = re.compile(r"(?<=[.!])\s+|\n")

MIN_LINE_TOKENS = 4


def _strip_once(text: str) -> str:
    cleaned = DATE_RANGE_PATTERN.sub("", text, count=1).strip()
    if cleaned.endswith(ELLIPSIS):
        cleaned = cleaned[: -len(ELLIPSIS)].strip()
    return cleaned


def normalize_snippet(raw: str) -> str:
    """Drop a leading ``15 Jan 2020 — 20 Feb 2021`` range and a trailing ellipsis.

    The removal is repeated until nothing changes, so the result is a fixed
    point and normalizing it again returns it unchanged.
    """

    current = (raw or "").strip()
    while True:
        cleaned = _strip_once(current)
        if cleaned == current:
            return cleaned
        current = cleaned


def normalize_page_text(raw: str) -> str:
    """Collapse scraped page text into a single line of prose.

    Lines with three or fewer whitespace-delimited tokens are treated as
    navigation or boilerplate and discarded.
    """

    lines = _LINE_BREAK.split(raw or "")
    kept = [line for line in lines if len(line.split()) >= MIN_LINE_TOKENS]
    return _WHITESPACE_RUN.sub(" ", " ".join(kept))


def split_sentences(text: str) -> list[str]:
    """Split on ``.``/``!`` followed by whitespace, or on a newline.

    The terminal punctuation stays attached to its sentence; blank segments
    are dropped.
    """

    return [segment for segment in _SENTENCE_BOUNDARY.split(text or "") if segment.strip()]


__all__ = [
    "DATE_RANGE_PATTERN",
    "normalize_page_text",
    "normalize_snippet",
    "split_sentences",
]
