"""Logging setup: structlog events rendered as JSON lines by stdlib handlers.

Every record goes to ``logs/crawler.log`` (INFO and above) and stderr;
errors are duplicated into ``logs/error.log``. Each pipeline mode also gets
its own ``logs/pipelines/<mode>.log`` via :func:`pipeline_logger`.
"""

from __future__ import annotations

import logging
import logging.config
import os
from pathlib import Path
from typing import Any, Iterable

import structlog

ROOT_LOGGER = "serp_crawler"
JSON_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s"

_configured = False


def log_dir() -> Path:
    home = os.environ.get("SERP_CRAWLER_HOME")
    if home:
        return Path(home).expanduser().resolve() / "logs"
    return Path.cwd() / "logs"


def _file_handler(path: Path, level: str) -> dict[str, Any]:
    return {
        "class": "logging.FileHandler",
        "level": level,
        "filename": str(path),
        "formatter": "json",
        "encoding": "utf-8",
    }


def _dict_config(directory: Path, level: str) -> dict[str, Any]:
    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "json": {
                "()": "pythonjsonlogger.json.JsonFormatter",
                "fmt": JSON_FORMAT,
            }
        },
        "handlers": {
            # stdout is reserved for command output
            "console": {
                "class": "logging.StreamHandler",
                "level": level,
                "formatter": "json",
                "stream": "ext://sys.stderr",
            },
            "crawler_file": _file_handler(directory / "crawler.log", "INFO"),
            "error_file": _file_handler(directory / "error.log", "ERROR"),
        },
        "loggers": {
            ROOT_LOGGER: {
                "handlers": ["console", "crawler_file", "error_file"],
                "level": level,
                "propagate": False,
            },
        },
    }


def configure_logging(verbose: bool = False) -> structlog.BoundLogger:
    """Install handlers once; later calls only adjust the level."""

    global _configured
    level = "DEBUG" if verbose else "INFO"
    if _configured:
        logging.getLogger(ROOT_LOGGER).setLevel(level)
        return structlog.get_logger(ROOT_LOGGER)

    directory = log_dir()
    (directory / "pipelines").mkdir(parents=True, exist_ok=True)
    logging.config.dictConfig(_dict_config(directory, level))
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.filter_by_level,
            structlog.processors.TimeStamper(fmt="iso", key="timestamp"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            # event becomes the message, every other key a JSON field
            structlog.stdlib.render_to_log_kwargs,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )
    _configured = True
    return structlog.get_logger(ROOT_LOGGER)


def pipeline_logger(mode: str, verbose: bool = False) -> structlog.BoundLogger:
    """Logger bound to ``pipeline=mode`` whose records also land in the mode's file."""

    configure_logging(verbose)
    path = log_path(mode)
    path.parent.mkdir(parents=True, exist_ok=True)
    name = f"{ROOT_LOGGER}.pipeline.{mode}"
    std_logger = logging.getLogger(name)
    attached = {
        handler.baseFilename
        for handler in std_logger.handlers
        if isinstance(handler, logging.FileHandler)
    }
    if str(path) not in attached:
        handler = logging.FileHandler(path, encoding="utf-8")
        handler.setLevel(logging.INFO)
        parent_handlers = logging.getLogger(ROOT_LOGGER).handlers
        if parent_handlers:
            handler.setFormatter(parent_handlers[0].formatter)
        std_logger.addHandler(handler)
    return structlog.get_logger(name).bind(pipeline=mode)


def log_path(pipeline: str | None = None) -> Path:
    if pipeline:
        return log_dir() / "pipelines" / f"{pipeline}.log"
    return log_dir() / "crawler.log"


def available_pipeline_logs() -> Iterable[Path]:
    directory = log_dir() / "pipelines"
    if not directory.is_dir():
        return []
    return sorted(directory.glob("*.log"))


def tail_log(path: Path, line_count: int = 100) -> list[str]:
    """Return the last ``line_count`` lines of ``path`` (empty if missing)."""

    if line_count <= 0 or not path.exists():
        return []
    with path.open("r", encoding="utf-8", errors="ignore") as stream:
        return stream.readlines()[-line_count:]


__all__ = [
    "available_pipeline_logs",
    "configure_logging",
    "log_dir",
    "log_path",
    "pipeline_logger",
    "tail_log",
]
