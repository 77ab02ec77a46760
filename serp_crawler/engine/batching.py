"""Sequential batches of concurrently awaited work items."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from typing import Awaitable, Callable, Generic, Iterator, Sequence, TypeVar

import structlog

from ..errors import BatchAborted, ConfigError, ResourceError

T = TypeVar("T")
R = TypeVar("R")


def chunked(items: Sequence[T], size: int) -> Iterator[list[T]]:
    """Yield contiguous chunks of ``size`` items, keeping input order."""

    if size <= 0:
        raise ConfigError(f"Batch size must be a positive integer, got {size}")
    for start in range(0, len(items), size):
        yield list(items[start : start + size])


@dataclass(slots=True)
class ItemFailure:
    """A single work item that fell back to its substitute result."""

    item: object
    position: int
    batch: int
    error: str
    error_type: str


@dataclass(slots=True)
class BatchReport(Generic[R]):
    results: list[R] = field(default_factory=list)
    failures: list[ItemFailure] = field(default_factory=list)
    batch_sizes: list[int] = field(default_factory=list)

    @property
    def failed(self) -> int:
        return len(self.failures)


class BatchRunner(Generic[T, R]):
    """Run work items chunk by chunk with bounded parallelism.

    All items of a chunk are awaited together and the runner waits for every
    one of them to settle before starting the next chunk. A failing item is
    replaced by ``fallback(item, exc)``; its siblings are unaffected. A
    :class:`ResourceError` from any item means the shared resource is gone:
    the chunk is still settled, then :class:`BatchAborted` is raised with the
    results collected so far.
    """

    def __init__(
        self,
        batch_size: int,
        *,
        name: str = "batch",
        logger: structlog.BoundLogger | None = None,
    ) -> None:
        if not isinstance(batch_size, int) or isinstance(batch_size, bool) or batch_size <= 0:
            raise ConfigError(f"Batch size must be a positive integer, got {batch_size!r}")
        self.batch_size = batch_size
        self.name = name
        self.logger = logger or structlog.get_logger("serp_crawler.batching")

    async def run(
        self,
        items: Sequence[T],
        worker: Callable[[T], Awaitable[R]],
        fallback: Callable[[T, BaseException], R],
        describe: Callable[[T], str] = str,
    ) -> BatchReport[R]:
        report: BatchReport[R] = BatchReport()
        total_batches = -(-len(items) // self.batch_size)
        for batch_no, chunk in enumerate(chunked(items, self.batch_size), start=1):
            offset = len(report.results)
            report.batch_sizes.append(len(chunk))
            self.logger.debug(
                "batch_started",
                runner=self.name,
                batch=batch_no,
                batches=total_batches,
                size=len(chunk),
            )
            outcomes = await asyncio.gather(
                *(worker(item) for item in chunk), return_exceptions=True
            )
            resource_error: ResourceError | None = None
            for position, (item, outcome) in enumerate(zip(chunk, outcomes), start=offset):
                if not isinstance(outcome, BaseException):
                    report.results.append(outcome)
                    continue
                if isinstance(outcome, ResourceError) and resource_error is None:
                    resource_error = outcome
                self.logger.warning(
                    "item_failed",
                    runner=self.name,
                    batch=batch_no,
                    item=describe(item),
                    error=str(outcome) or type(outcome).__name__,
                    error_type=type(outcome).__name__,
                )
                report.failures.append(
                    ItemFailure(
                        item=item,
                        position=position,
                        batch=batch_no,
                        error=str(outcome) or type(outcome).__name__,
                        error_type=type(outcome).__name__,
                    )
                )
                report.results.append(fallback(item, outcome))
            if resource_error is not None:
                remaining = len(items) - len(report.results)
                self.logger.error(
                    "batch_aborted",
                    runner=self.name,
                    batch=batch_no,
                    remaining=remaining,
                    error=str(resource_error),
                )
                raise BatchAborted(
                    f"{self.name} aborted in batch {batch_no}: {resource_error}",
                    results=report.results,
                    remaining=remaining,
                    failures=report.failures,
                ) from resource_error
        self.logger.debug(
            "batches_completed",
            runner=self.name,
            items=len(items),
            failed=report.failed,
        )
        return report


__all__ = ["BatchReport", "BatchRunner", "ItemFailure", "chunked"]
