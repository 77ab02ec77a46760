"""Exception hierarchy shared by the pipeline."""

from __future__ import annotations

from typing import Any


class CrawlerError(Exception):
    """Base class for all pipeline errors."""


class ConfigError(CrawlerError):
    """Invalid batch size, settings file or query list."""


class FetchError(CrawlerError):
    """Navigation, timeout or rendering failure for one query or URL."""

    def __init__(self, message: str, *, target: str | None = None) -> None:
        super().__init__(message)
        self.target = target


class ResourceError(CrawlerError):
    """The shared browser session could not be started or became unusable."""


class BatchAborted(CrawlerError):
    """A whole chunk failed; ``results`` holds everything settled before it."""

    def __init__(
        self,
        message: str,
        *,
        results: list[Any],
        remaining: int,
        failures: list[Any] | None = None,
    ) -> None:
        super().__init__(message)
        self.results = results
        self.remaining = remaining
        self.failures = failures or []


__all__ = [
    "BatchAborted",
    "ConfigError",
    "CrawlerError",
    "FetchError",
    "ResourceError",
]
