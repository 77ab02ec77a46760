"""Records flowing through the search → fetch → align pipeline."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field, replace
from typing import Any

TEXT_NOT_FOUND = "Text Not Found"


@dataclass(frozen=True, slots=True)
class ResultEntry:
    """One organic search result as extracted from the results page."""

    header: str
    snippet: str
    link: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True, slots=True)
class FetchedEntry(ResultEntry):
    """Search result extended with the raw text of the linked page."""

    content: str = TEXT_NOT_FOUND

    @classmethod
    def from_result(cls, entry: ResultEntry, content: str | None) -> "FetchedEntry":
        text = (content or "").strip()
        return cls(
            header=entry.header,
            snippet=entry.snippet,
            link=entry.link,
            content=text or TEXT_NOT_FOUND,
        )

    @classmethod
    def not_found(cls, entry: ResultEntry) -> "FetchedEntry":
        return cls.from_result(entry, None)

    @property
    def has_content(self) -> bool:
        return self.content != TEXT_NOT_FOUND


@dataclass(frozen=True, slots=True)
class AlignedEntry(FetchedEntry):
    """Fetched entry whose content was narrowed to the best matching paragraph."""

    @classmethod
    def from_fetched(cls, entry: FetchedEntry, content: str | None = None) -> "AlignedEntry":
        return cls(
            header=entry.header,
            snippet=entry.snippet,
            link=entry.link,
            content=entry.content if content is None else content,
        )


@dataclass(frozen=True, slots=True)
class QueryResult:
    """All entries produced for one query, in search-result order."""

    query: str
    results: tuple[ResultEntry, ...] = field(default_factory=tuple)

    def to_dict(self) -> dict[str, Any]:
        return {"query": self.query, "results": [entry.to_dict() for entry in self.results]}

    def with_results(self, results: list[ResultEntry] | tuple[ResultEntry, ...]) -> "QueryResult":
        return replace(self, results=tuple(results))


__all__ = ["AlignedEntry", "FetchedEntry", "QueryResult", "ResultEntry", "TEXT_NOT_FOUND"]
