"""Engine components: search → fetch → normalise → align → export."""

from .aligner import align_entries, align_entry, choose_match_key
from .batching import BatchReport, BatchRunner, ItemFailure, chunked
from .browser import BrowserSession
from .fetcher import (
    BrowserPageSource,
    BrowserSearchSource,
    HttpPageSource,
    PageContentSource,
    SearchResultSource,
)
from .matcher import MatchResult, find_best_match, match_percentage
from .parser import Parser
from .text import normalize_page_text, normalize_snippet, split_sentences

__all__ = [
    "BatchReport",
    "BatchRunner",
    "BrowserPageSource",
    "BrowserSearchSource",
    "BrowserSession",
    "HttpPageSource",
    "ItemFailure",
    "MatchResult",
    "PageContentSource",
    "Parser",
    "SearchResultSource",
    "align_entries",
    "align_entry",
    "choose_match_key",
    "chunked",
    "find_best_match",
    "match_percentage",
    "normalize_page_text",
    "normalize_snippet",
    "split_sentences",
]
