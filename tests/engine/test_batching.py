from __future__ import annotations

import asyncio

import pytest

from serp_crawler.engine.batching import BatchRunner, chunked
from serp_crawler.errors import BatchAborted, ConfigError, FetchError, ResourceError


def _fallback(item, exc):
    return f"fallback:{item}"


def test_chunked_preserves_order() -> None:
    assert list(chunked([1, 2, 3, 4, 5], 2)) == [[1, 2], [3, 4], [5]]
    assert list(chunked([], 3)) == []


@pytest.mark.parametrize("size", [0, -1])
def test_invalid_batch_size_raises_config_error(size: int) -> None:
    with pytest.raises(ConfigError):
        BatchRunner(size)
    with pytest.raises(ConfigError):
        list(chunked([1], size))


def test_runner_processes_batches_sequentially(logger) -> None:
    events: list[str] = []

    async def worker(item: str) -> str:
        events.append(f"start:{item}")
        await asyncio.sleep(0.01)
        events.append(f"end:{item}")
        return item.upper()

    runner = BatchRunner(2, logger=logger)
    report = asyncio.run(runner.run(["a", "b", "c", "d", "e"], worker, _fallback))

    assert report.batch_sizes == [2, 2, 1]
    assert report.results == ["A", "B", "C", "D", "E"]
    # every item of a batch ends before the next batch starts
    assert events.index("start:c") > max(events.index("end:a"), events.index("end:b"))
    assert events.index("start:e") > max(events.index("end:c"), events.index("end:d"))


def test_runner_keeps_input_order_regardless_of_latency(logger) -> None:
    delays = {"slow": 0.03, "medium": 0.02, "fast": 0.0}

    async def worker(item: str) -> str:
        await asyncio.sleep(delays[item])
        return item

    runner = BatchRunner(3, logger=logger)
    report = asyncio.run(runner.run(["slow", "medium", "fast"], worker, _fallback))
    assert report.results == ["slow", "medium", "fast"]


def test_runner_isolates_item_failures(logger) -> None:
    async def worker(item: int) -> int:
        if item == 2:
            raise FetchError("boom", target=str(item))
        return item * 10

    runner = BatchRunner(3, logger=logger)
    report = asyncio.run(runner.run([1, 2, 3, 4], worker, _fallback))

    assert report.results == [10, "fallback:2", 30, 40]
    assert report.failed == 1
    failure = report.failures[0]
    assert failure.item == 2
    assert failure.position == 1
    assert failure.batch == 1
    assert failure.error_type == "FetchError"


def test_runner_handles_empty_input(logger) -> None:
    async def worker(item):  # pragma: no cover - never awaited
        return item

    report = asyncio.run(BatchRunner(2, logger=logger).run([], worker, _fallback))
    assert report.results == []
    assert report.batch_sizes == []


def test_resource_error_aborts_after_chunk_settles(logger) -> None:
    seen: list[int] = []

    async def worker(item: int) -> int:
        seen.append(item)
        if item == 3:
            raise ResourceError("browser gone")
        return item

    runner = BatchRunner(2, logger=logger)
    with pytest.raises(BatchAborted) as excinfo:
        asyncio.run(runner.run([1, 2, 3, 4, 5], worker, _fallback))

    aborted = excinfo.value
    assert aborted.results == [1, 2, "fallback:3", 4]
    assert aborted.remaining == 1
    assert [failure.item for failure in aborted.failures] == [3]
    assert 5 not in seen
