"""Search-result and page-content sources backed by Playwright or httpx."""

from __future__ import annotations

from typing import Protocol

import httpx
import structlog
from playwright.async_api import Error as PlaywrightError

from ..config import PipelineConfig, SearchConfig
from ..errors import FetchError, ResourceError
from ..models import ResultEntry
from .browser import BrowserSession
from .parser import Parser
from .text import normalize_page_text


class SearchResultSource(Protocol):
    async def fetch_results(self, query: str) -> list[ResultEntry]:
        ...


class PageContentSource(Protocol):
    async def fetch_page_text(self, url: str) -> str:
        ...

    async def close(self) -> None:
        ...


class BrowserSearchSource:
    """Render the search page for a query and parse its organic results."""

    def __init__(
        self,
        session: BrowserSession,
        config: SearchConfig,
        parser: Parser | None = None,
        logger: structlog.BoundLogger | None = None,
    ) -> None:
        self.session = session
        self.config = config
        self.parser = parser or Parser()
        self.logger = logger or structlog.get_logger("serp_crawler.fetcher")

    async def fetch_results(self, query: str) -> list[ResultEntry]:
        url = self.config.search_url(query)
        async with self.session.page() as page:
            try:
                await page.goto(url, wait_until="domcontentloaded")
                await page.wait_for_selector(
                    self.config.selectors.container, timeout=self.config.wait_timeout_ms
                )
                html = await page.content()
                final_url = page.url
            except PlaywrightError as exc:
                if not self.session.is_connected():
                    raise ResourceError(f"Browser disconnected while searching: {exc}") from exc
                raise FetchError(f"Search failed for '{query}': {exc}", target=query) from exc
        entries = self.parser.parse_results(html, self.config.selectors, base_url=final_url)
        self.logger.info("search_results", query=query, results=len(entries))
        return entries

    async def close(self) -> None:
        return None


class BrowserPageSource:
    """Render a linked page in the shared browser and return its text."""

    def __init__(
        self,
        session: BrowserSession,
        parser: Parser | None = None,
        logger: structlog.BoundLogger | None = None,
    ) -> None:
        self.session = session
        self.parser = parser or Parser()
        self.logger = logger or structlog.get_logger("serp_crawler.fetcher")

    async def fetch_page_text(self, url: str) -> str:
        async with self.session.page() as page:
            try:
                await page.goto(url, wait_until="domcontentloaded")
                html = await page.content()
            except PlaywrightError as exc:
                if not self.session.is_connected():
                    raise ResourceError(f"Browser disconnected while fetching {url}: {exc}") from exc
                raise FetchError(f"Page fetch failed for {url}: {exc}", target=url) from exc
        return normalize_page_text(self.parser.extract_text(html)).strip()

    async def close(self) -> None:
        return None


class HttpPageSource:
    """Fetch linked pages over plain HTTP for sites that need no rendering."""

    def __init__(
        self,
        timeout: float = 20.0,
        user_agent: str | None = None,
        parser: Parser | None = None,
        client: httpx.AsyncClient | None = None,
        logger: structlog.BoundLogger | None = None,
    ) -> None:
        self.parser = parser or Parser()
        self.logger = logger or structlog.get_logger("serp_crawler.fetcher")
        self._client = client or httpx.AsyncClient(
            follow_redirects=True,
            timeout=timeout,
            headers={"User-Agent": user_agent} if user_agent else None,
        )

    @classmethod
    def from_config(cls, config: PipelineConfig, user_agent: str | None = None) -> "HttpPageSource":
        return cls(timeout=config.http_timeout, user_agent=user_agent)

    async def fetch_page_text(self, url: str) -> str:
        try:
            response = await self._client.get(url)
            response.raise_for_status()
        except httpx.HTTPError as exc:
            raise FetchError(f"Page fetch failed for {url}: {exc}", target=url) from exc
        return normalize_page_text(self.parser.extract_text(response.text)).strip()

    async def close(self) -> None:
        await self._client.aclose()


__all__ = [
    "BrowserPageSource",
    "BrowserSearchSource",
    "HttpPageSource",
    "PageContentSource",
    "SearchResultSource",
]
