"""Pydantic models describing browser, search and pipeline settings."""

from __future__ import annotations

from enum import Enum
from pathlib import Path
from typing import Any, Literal
from urllib.parse import quote

from pydantic import BaseModel, Field, ValidationError, field_validator, model_validator

from ..errors import ConfigError


class PipelineMode(str, Enum):
    """Pipeline variants."""

    CONTENT = "content"
    SNIPPETS = "snippets"


class PageSourceKind(str, Enum):
    """How linked pages are retrieved in content mode."""

    BROWSER = "browser"
    HTTP = "http"


DEFAULT_QUERY_BATCH_SIZE = {PipelineMode.CONTENT: 2, PipelineMode.SNIPPETS: 5}
DEFAULT_OUTPUT_PATH = {
    PipelineMode.CONTENT: Path("output-parallel.json"),
    PipelineMode.SNIPPETS: Path("output-snippets-google.json"),
}


class BrowserConfig(BaseModel):
    """Chromium launch options for the shared browser session."""

    headless: bool = True
    viewport: tuple[int, int] = (800, 3800)
    navigation_timeout_ms: int = 30000
    user_agent: str | None = None
    launch_args: list[str] = Field(default_factory=list)

    @field_validator("viewport", mode="before")
    @classmethod
    def _coerce_viewport(cls, value: Any) -> tuple[int, int]:
        if isinstance(value, dict):
            value = (value.get("width"), value.get("height"))
        if isinstance(value, (list, tuple)) and len(value) == 2:
            width, height = int(value[0]), int(value[1])
            if width <= 0 or height <= 0:
                raise ValueError("viewport dimensions must be positive")
            return (width, height)
        raise ValueError("viewport expects [width, height]")

    @field_validator("navigation_timeout_ms")
    @classmethod
    def _positive_timeout(cls, value: int) -> int:
        if value <= 0:
            raise ValueError("navigation_timeout_ms must be > 0")
        return value


class ResultSelectors(BaseModel):
    """CSS selectors locating organic results on the search page."""

    container: str = "div.N54PNb.BToiNc.cvP2Ce"
    header: str = "h3.LC20lb.MBeuO.DKV0Md"
    snippet: str = "div.VwiC3b.yXK7lf.lVm3ye.r025kc.hJNv6b span"
    link: str = 'a[jsname="UWckNb"]'
    link_attribute: str = "href"

    @model_validator(mode="after")
    def _non_empty(self) -> "ResultSelectors":
        for name in ("container", "header", "snippet", "link"):
            if not getattr(self, name).strip():
                raise ValueError(f"selector '{name}' cannot be empty")
        return self


class SearchConfig(BaseModel):
    """Search engine endpoint and result markup."""

    url_template: str = "https://www.google.com/search?q={query}"
    wait_timeout_ms: int = 30000
    selectors: ResultSelectors = Field(default_factory=ResultSelectors)

    @field_validator("url_template")
    @classmethod
    def _has_placeholder(cls, value: str) -> str:
        if "{query}" not in value:
            raise ValueError("url_template must contain a '{query}' placeholder")
        return value

    def search_url(self, query: str) -> str:
        return self.url_template.format(query=quote(query, safe="!~*'()"))


class PipelineConfig(BaseModel):
    """Batching and output controls for one pipeline run."""

    mode: PipelineMode = PipelineMode.CONTENT
    query_batch_size: int | None = None
    page_batch_size: int = 5
    page_source: PageSourceKind = PageSourceKind.BROWSER
    output_path: Path | None = None
    output_format: Literal["json", "jsonl"] = "json"
    http_timeout: float = 20.0

    @field_validator("output_path", mode="before")
    @classmethod
    def _coerce_path(cls, value: Any) -> Path | None:
        if value in (None, ""):
            return None
        return Path(value)

    @model_validator(mode="after")
    def _apply_mode_defaults(self) -> "PipelineConfig":
        if self.query_batch_size is None:
            self.query_batch_size = DEFAULT_QUERY_BATCH_SIZE[self.mode]
        if self.output_path is None:
            self.output_path = DEFAULT_OUTPUT_PATH[self.mode]
        if self.query_batch_size <= 0:
            raise ValueError("query_batch_size must be >= 1")
        if self.page_batch_size <= 0:
            raise ValueError("page_batch_size must be >= 1")
        return self

    def resolved_output_path(self, base_dir: Path) -> Path:
        """Return the output path relative to the project data directory."""

        path = Path(self.output_path)
        if not path.is_absolute():
            return (base_dir / path).resolve()
        return path


class Settings(BaseModel):
    """Top level settings document (``data/settings.yaml``)."""

    browser: BrowserConfig = Field(default_factory=BrowserConfig)
    search: SearchConfig = Field(default_factory=SearchConfig)
    pipeline: PipelineConfig = Field(default_factory=PipelineConfig)
    enable_progress_bar: bool = True

    def for_mode(self, mode: PipelineMode | str, **overrides: Any) -> "Settings":
        """Return a copy whose pipeline section is rebuilt for ``mode``.

        When the mode changes, batch size and output path fall back to the new
        mode's defaults unless given in ``overrides``. ``None`` overrides are
        ignored.
        """

        mode = PipelineMode(mode)
        if mode is self.pipeline.mode:
            payload = self.pipeline.model_dump()
        else:
            payload = self.pipeline.model_dump(exclude={"query_batch_size", "output_path"})
        payload["mode"] = mode
        payload.update({key: value for key, value in overrides.items() if value is not None})
        try:
            pipeline = PipelineConfig.model_validate(payload)
        except ValidationError as exc:
            raise ConfigError(f"Invalid pipeline settings: {exc}") from exc
        return self.model_copy(update={"pipeline": pipeline})


__all__ = [
    "BrowserConfig",
    "DEFAULT_OUTPUT_PATH",
    "DEFAULT_QUERY_BATCH_SIZE",
    "PageSourceKind",
    "PipelineConfig",
    "PipelineMode",
    "ResultSelectors",
    "SearchConfig",
    "Settings",
]
