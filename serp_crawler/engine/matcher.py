"""Locate the paragraph of a page that best matches a search snippet."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence

from .text import split_sentences

NO_MATCH_INDEX = -1
SENTENCE_TERMINALS = ".!"


@dataclass(frozen=True, slots=True)
class MatchResult:
    """Best scoring sentence together with its immediate neighbours."""

    best_sentence: str
    best_index: int
    score: float
    before: str
    after: str
    combined_paragraph: str

    @property
    def found(self) -> bool:
        return self.best_index != NO_MATCH_INDEX


def tokenize(text: str) -> list[str]:
    return (text or "").split()


def match_percentage(snippet: str, sentence: str) -> float:
    """Percentage of snippet tokens that occur anywhere in ``sentence``.

    Duplicate snippet tokens are counted once per occurrence. The terminal
    punctuation left on ``sentence`` by the splitter is ignored, so a
    snippet ending in "mat" matches a sentence ending in "mat.". A snippet
    without tokens scores 0.
    """

    snippet_tokens = tokenize(snippet)
    if not snippet_tokens:
        return 0.0
    sentence_tokens = set(tokenize((sentence or "").rstrip().rstrip(SENTENCE_TERMINALS)))
    matched = sum(1 for token in snippet_tokens if token in sentence_tokens)
    return matched / len(snippet_tokens) * 100


def best_sentence_index(snippet: str, sentences: Sequence[str]) -> tuple[int, float]:
    best_index = NO_MATCH_INDEX
    best_score = 0.0
    for index, sentence in enumerate(sentences):
        score = match_percentage(snippet, sentence)
        # strict comparison: the earliest sentence keeps a tie
        if best_index == NO_MATCH_INDEX or score > best_score:
            best_index, best_score = index, score
    return best_index, best_score


def find_best_match(snippet: str, content: str) -> MatchResult:
    sentences = split_sentences(content)
    index, score = best_sentence_index(snippet, sentences)
    if index == NO_MATCH_INDEX:
        return MatchResult("", NO_MATCH_INDEX, 0.0, "", "", "")
    before = sentences[index - 1] if index > 0 else ""
    after = sentences[index + 1] if index + 1 < len(sentences) else ""
    best = sentences[index]
    combined = f"{before} {best} {after}".strip()
    return MatchResult(
        best_sentence=best,
        best_index=index,
        score=score,
        before=before,
        after=after,
        combined_paragraph=combined,
    )


__all__ = [
    "MatchResult",
    "NO_MATCH_INDEX",
    "best_sentence_index",
    "find_best_match",
    "match_percentage",
    "tokenize",
]
