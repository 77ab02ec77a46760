from __future__ import annotations

import asyncio

import httpx
import pytest
from playwright.async_api import Error as PlaywrightError

from serp_crawler.config import PipelineConfig, SearchConfig
from serp_crawler.engine.fetcher import BrowserPageSource, BrowserSearchSource, HttpPageSource
from serp_crawler.errors import FetchError, ResourceError

SERP_HTML = """
<html><body>
  <div class="N54PNb BToiNc cvP2Ce">
    <a jsname="UWckNb" href="https://example.com/cats"><h3 class="LC20lb MBeuO DKV0Md">Cats</h3></a>
    <div class="VwiC3b yXK7lf lVm3ye r025kc hJNv6b"><span>A cat sat on the mat...</span></div>
  </div>
</body></html>
"""

ARTICLE_HTML = """
<html><body>
  <nav>Menu</nav>
  <p>A cat sat on the mat today.</p>
  <p>The mat was red and soft.</p>
</body></html>
"""


def _http_source(handler) -> HttpPageSource:
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return HttpPageSource(client=client)


def test_browser_search_source_parses_rendered_results(fakes, logger) -> None:
    page = fakes.Page(html=SERP_HTML, url="https://www.google.com/search?q=cats")
    source = BrowserSearchSource(fakes.PageSession(page), SearchConfig(), logger=logger)

    entries = asyncio.run(source.fetch_results("cats on mats"))

    assert page.visited == ["https://www.google.com/search?q=cats%20on%20mats"]
    assert page.waited_for == ["div.N54PNb.BToiNc.cvP2Ce"]
    assert page.closed
    assert [(e.header, e.snippet, e.link) for e in entries] == [
        ("Cats", "A cat sat on the mat", "https://example.com/cats")
    ]


def test_browser_search_source_maps_navigation_errors(fakes, logger) -> None:
    page = fakes.Page(error=PlaywrightError("net::ERR_NAME_NOT_RESOLVED"))
    source = BrowserSearchSource(fakes.PageSession(page), SearchConfig(), logger=logger)

    with pytest.raises(FetchError) as excinfo:
        asyncio.run(source.fetch_results("cats"))
    assert excinfo.value.target == "cats"
    assert page.closed


def test_browser_error_after_disconnect_is_a_resource_error(fakes, logger) -> None:
    page = fakes.Page(error=PlaywrightError("Target closed"))
    session = fakes.PageSession(page, connected=False)

    with pytest.raises(ResourceError):
        asyncio.run(BrowserSearchSource(session, SearchConfig(), logger=logger).fetch_results("cats"))
    with pytest.raises(ResourceError):
        asyncio.run(BrowserPageSource(session, logger=logger).fetch_page_text("https://example.com"))


def test_browser_page_source_returns_normalized_text(fakes, logger) -> None:
    page = fakes.Page(html=ARTICLE_HTML)
    source = BrowserPageSource(fakes.PageSession(page), logger=logger)

    text = asyncio.run(source.fetch_page_text("https://example.com/cats"))

    # "Menu" is shorter than the minimum line length and is dropped
    assert text == "A cat sat on the mat today. The mat was red and soft."
    assert page.visited == ["https://example.com/cats"]
    assert page.closed


def test_browser_page_source_returns_empty_text_for_blank_pages(fakes, logger) -> None:
    page = fakes.Page(html="<html><body><p>Too short</p></body></html>")
    source = BrowserPageSource(fakes.PageSession(page), logger=logger)
    assert asyncio.run(source.fetch_page_text("https://example.com/empty")) == ""


def test_http_page_source_extracts_text() -> None:
    requested: list[str] = []

    def handler(request: httpx.Request) -> httpx.Response:
        requested.append(str(request.url))
        return httpx.Response(200, text=ARTICLE_HTML, headers={"Content-Type": "text/html"})

    async def scenario() -> str:
        source = _http_source(handler)
        try:
            return await source.fetch_page_text("https://example.com/cats")
        finally:
            await source.close()

    assert asyncio.run(scenario()) == "A cat sat on the mat today. The mat was red and soft."
    assert requested == ["https://example.com/cats"]


def test_http_page_source_wraps_http_errors() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(404, text="missing")

    async def scenario() -> None:
        source = _http_source(handler)
        try:
            await source.fetch_page_text("https://example.com/missing")
        finally:
            await source.close()

    with pytest.raises(FetchError) as excinfo:
        asyncio.run(scenario())
    assert excinfo.value.target == "https://example.com/missing"


def test_http_page_source_from_config_uses_timeout() -> None:
    async def scenario() -> float | None:
        source = HttpPageSource.from_config(PipelineConfig(http_timeout=7.5), user_agent="bot/1.0")
        try:
            return source._client.timeout.read
        finally:
            await source.close()

    assert asyncio.run(scenario()) == 7.5
