"""Destination for the query results of a run."""

from __future__ import annotations

from abc import ABC, abstractmethod
from types import TracebackType
from typing import Any, Iterable

from ...models import QueryResult


class BaseExporter(ABC):
    """Receives ``{query, results}`` records in query order.

    Used as a context manager, a clean exit flushes before closing; an
    exception skips the flush so a half-built document is never committed.
    """

    @abstractmethod
    def write(self, record: dict[str, Any]) -> None:
        ...

    def write_results(self, results: Iterable[QueryResult]) -> int:
        count = 0
        for result in results:
            self.write(result.to_dict())
            count += 1
        return count

    @abstractmethod
    def flush(self) -> None:
        ...

    def close(self) -> None:
        return None

    def __enter__(self) -> "BaseExporter":
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        traceback: TracebackType | None,
    ) -> None:
        try:
            if exc_type is None:
                self.flush()
        finally:
            self.close()


__all__ = ["BaseExporter"]
