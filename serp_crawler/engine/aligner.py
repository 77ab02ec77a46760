"""Narrow fetched page content to the paragraph matching each snippet."""

from __future__ import annotations

from typing import Iterable

from ..models import AlignedEntry, FetchedEntry
from .matcher import find_best_match


def choose_match_key(entry: FetchedEntry, query: str) -> str:
    """Use the snippet as the reference text, or the query when it is blank."""

    return entry.snippet if entry.snippet.strip() else query


def align_entry(entry: FetchedEntry, query: str) -> AlignedEntry:
    if not entry.has_content:
        return AlignedEntry.from_fetched(entry)
    match = find_best_match(choose_match_key(entry, query), entry.content)
    return AlignedEntry.from_fetched(entry, match.combined_paragraph)


def align_entries(entries: Iterable[FetchedEntry], query: str) -> list[AlignedEntry]:
    return [align_entry(entry, query) for entry in entries]


__all__ = ["align_entries", "align_entry", "choose_match_key"]
