"""Configuration package exports."""

from .loader import ConfigLocator, ConfigRepository, parse_queries
from .models import (
    BrowserConfig,
    PageSourceKind,
    PipelineConfig,
    PipelineMode,
    ResultSelectors,
    SearchConfig,
    Settings,
)

__all__ = [
    "BrowserConfig",
    "ConfigLocator",
    "ConfigRepository",
    "PageSourceKind",
    "PipelineConfig",
    "PipelineMode",
    "ResultSelectors",
    "SearchConfig",
    "Settings",
    "parse_queries",
]
