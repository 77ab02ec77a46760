"""Shared fixtures: settings, repositories and in-memory fetch collaborators."""

from __future__ import annotations

import asyncio
from contextlib import asynccontextmanager
from pathlib import Path
from types import SimpleNamespace
from typing import Any, Callable, Iterable

import pytest
import structlog

from serp_crawler.config import ConfigLocator, ConfigRepository, PipelineConfig, Settings
from serp_crawler.errors import FetchError
from serp_crawler.models import ResultEntry


class FakeSession:
    """Stands in for BrowserSession; counts lifecycle calls."""

    def __init__(self, fail_start: Exception | None = None) -> None:
        self.fail_start = fail_start
        self.start_calls = 0
        self.close_calls = 0

    async def start(self) -> "FakeSession":
        self.start_calls += 1
        if self.fail_start is not None:
            raise self.fail_start
        return self

    async def close(self) -> None:
        self.close_calls += 1

    def is_connected(self) -> bool:
        return self.close_calls == 0


class FakeSearchSource:
    """Returns canned results per query; raises for configured failures."""

    def __init__(
        self,
        results: dict[str, list[ResultEntry]] | None = None,
        failures: dict[str, Exception] | None = None,
        delays: dict[str, float] | None = None,
    ) -> None:
        self.results = results or {}
        self.failures = failures or {}
        self.delays = delays or {}
        self.calls: list[str] = []

    async def fetch_results(self, query: str) -> list[ResultEntry]:
        self.calls.append(query)
        await asyncio.sleep(self.delays.get(query, 0))
        if query in self.failures:
            raise self.failures[query]
        return list(self.results.get(query, []))


class FakePageSource:
    """Returns canned page text per URL."""

    def __init__(
        self,
        pages: dict[str, str] | None = None,
        failures: dict[str, Exception] | None = None,
    ) -> None:
        self.pages = pages or {}
        self.failures = failures or {}
        self.calls: list[str] = []
        self.closed = False

    async def fetch_page_text(self, url: str) -> str:
        self.calls.append(url)
        await asyncio.sleep(0)
        if url in self.failures:
            raise self.failures[url]
        if url not in self.pages:
            raise FetchError(f"Page fetch failed for {url}", target=url)
        return self.pages[url]

    async def close(self) -> None:
        self.closed = True


class FakePage:
    """Minimal async Playwright page double."""

    def __init__(self, html: str = "", url: str = "https://example.com", error: Exception | None = None) -> None:
        self.html = html
        self.url = url
        self.error = error
        self.visited: list[str] = []
        self.waited_for: list[str] = []
        self.closed = False

    async def goto(self, url: str, **_kwargs: Any) -> None:
        self.visited.append(url)
        if self.error is not None:
            raise self.error

    async def wait_for_selector(self, selector: str, **_kwargs: Any) -> None:
        self.waited_for.append(selector)

    async def content(self) -> str:
        return self.html

    async def close(self) -> None:
        self.closed = True


class FakePageSession:
    """Session double handing out one prepared FakePage."""

    def __init__(self, page: FakePage, connected: bool = True) -> None:
        self._page = page
        self.connected = connected

    @asynccontextmanager
    async def page(self):
        try:
            yield self._page
        finally:
            await self._page.close()

    def is_connected(self) -> bool:
        return self.connected


@pytest.fixture
def logger() -> structlog.BoundLogger:
    return structlog.get_logger("tests")


@pytest.fixture
def make_settings() -> Callable[..., Settings]:
    def _builder(**pipeline: Any) -> Settings:
        return Settings(pipeline=PipelineConfig(**pipeline), enable_progress_bar=False)

    return _builder


@pytest.fixture
def make_entry() -> Callable[..., ResultEntry]:
    def _builder(index: int, snippet: str = "", link: str | None = "default") -> ResultEntry:
        if link == "default":
            link = f"https://example.com/{index}"
        return ResultEntry(header=f"Result {index}", snippet=snippet, link=link)

    return _builder


@pytest.fixture
def temp_config_repository(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Iterable[ConfigRepository]:
    monkeypatch.setenv("SERP_CRAWLER_HOME", str(tmp_path))
    locator = ConfigLocator(project_root=tmp_path)
    repository = ConfigRepository(locator)
    yield repository


@pytest.fixture
def fakes() -> SimpleNamespace:
    return SimpleNamespace(
        Session=FakeSession,
        SearchSource=FakeSearchSource,
        PageSource=FakePageSource,
        Page=FakePage,
        PageSession=FakePageSession,
    )
