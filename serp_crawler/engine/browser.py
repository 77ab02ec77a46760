"""Shared Playwright browser session used by every fetch in a run."""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import Any, AsyncIterator

import structlog

from ..config import BrowserConfig
from ..errors import ResourceError

DEFAULT_LAUNCH_ARGS = [
    "--ignore-certificate-errors",
    "--ignore-certificate-errors-spki-list",
]


class BrowserSession:
    """One Chromium instance per run; each fetch borrows its own page.

    ``start`` and ``close`` are called once per run. ``page()`` may be entered
    concurrently by any number of tasks; the page is closed on every exit
    path.
    """

    def __init__(
        self,
        config: BrowserConfig | None = None,
        logger: structlog.BoundLogger | None = None,
    ) -> None:
        self.config = config or BrowserConfig()
        self.logger = logger or structlog.get_logger("serp_crawler.browser")
        self._playwright: Any = None
        self._browser: Any = None
        self._context: Any = None
        self._closed = False

    @property
    def started(self) -> bool:
        return self._context is not None

    def is_connected(self) -> bool:
        if self._closed or self._browser is None:
            return False
        return self._browser.is_connected()

    async def start(self) -> "BrowserSession":
        if self._closed:
            raise ResourceError("Browser session already closed")
        if self.started:
            return self
        try:
            from playwright.async_api import async_playwright
        except ImportError as exc:  # pragma: no cover
            raise ResourceError(
                "Browser support requires installing the 'playwright' package."
            ) from exc

        try:
            self._playwright = await async_playwright().start()
            self._browser = await self._playwright.chromium.launch(
                headless=self.config.headless,
                args=[*DEFAULT_LAUNCH_ARGS, *self.config.launch_args],
            )
            width, height = self.config.viewport
            self._context = await self._browser.new_context(
                user_agent=self.config.user_agent,
                viewport={"width": width, "height": height},
                ignore_https_errors=True,
            )
            self._context.set_default_navigation_timeout(self.config.navigation_timeout_ms)
        except Exception as exc:  # noqa: BLE001
            await self._shutdown()
            raise ResourceError(f"Failed to launch browser: {exc}") from exc
        self.logger.info(
            "browser_started", headless=self.config.headless, viewport=list(self.config.viewport)
        )
        return self

    @asynccontextmanager
    async def page(self) -> AsyncIterator[Any]:
        """Yield a fresh page and close it afterwards."""

        if not self.started or self._closed:
            raise ResourceError("Browser session is not running")
        if not self.is_connected():
            raise ResourceError("Browser disconnected")
        try:
            page = await self._context.new_page()
        except Exception as exc:  # noqa: BLE001
            raise ResourceError(f"Cannot open a new page: {exc}") from exc
        try:
            yield page
        finally:
            try:
                await page.close()
            except Exception as exc:  # noqa: BLE001
                self.logger.debug("page_close_failed", error=str(exc))

    async def close(self) -> None:
        """Release the browser; failures are logged, never raised."""

        if self._closed:
            return
        self._closed = True
        await self._shutdown()
        self.logger.info("browser_closed")

    async def _shutdown(self) -> None:
        for label, closer in (
            ("context", self._context.close if self._context is not None else None),
            ("browser", self._browser.close if self._browser is not None else None),
            ("playwright", self._playwright.stop if self._playwright is not None else None),
        ):
            if closer is None:
                continue
            try:
                await closer()
            except Exception as exc:  # noqa: BLE001
                self.logger.warning("browser_close_failed", part=label, error=str(exc))
        self._context = None
        self._browser = None
        self._playwright = None

    async def __aenter__(self) -> "BrowserSession":
        return await self.start()

    async def __aexit__(self, *_exc_info: object) -> None:
        await self.close()


__all__ = ["BrowserSession"]
