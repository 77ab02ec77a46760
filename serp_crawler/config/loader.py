"""Configuration loading helpers for the SERP crawler."""

from __future__ import annotations

import json
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Iterable

import yaml
from pydantic import ValidationError

from ..errors import ConfigError
from .models import Settings

CONFIG_EXTENSIONS = (".yaml", ".yml", ".json")
QUERY_EXTENSIONS = CONFIG_EXTENSIONS + (".txt",)
SETTINGS_FILENAME = "settings.yaml"
HOME_ENV = "SERP_CRAWLER_HOME"


def _slugify(name: str) -> str:
    return "".join(ch.lower() if ch.isalnum() else "-" for ch in name).strip("-")


def _read_file(path: Path) -> Any:
    text = path.read_text(encoding="utf-8")
    try:
        if path.suffix in (".yaml", ".yml"):
            return yaml.safe_load(text)
        return json.loads(text)
    except (yaml.YAMLError, json.JSONDecodeError) as exc:
        raise ConfigError(f"Cannot parse configuration file {path}: {exc}") from exc


def _write_file(path: Path, payload: Any) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("w", encoding="utf-8") as stream:
        if path.suffix in (".yaml", ".yml"):
            yaml.safe_dump(payload, stream, allow_unicode=True, sort_keys=False)
        else:
            json.dump(payload, stream, indent=2, ensure_ascii=False)


def parse_queries(payload: Any, origin: str = "<memory>") -> list[str]:
    """Normalise a query document into a list of non-empty strings.

    Accepts a plain list or a mapping with a ``queries`` key.
    """

    if isinstance(payload, dict):
        payload = payload.get("queries")
    if not isinstance(payload, list):
        raise ConfigError(f"Query list must be a sequence of strings: {origin}")
    queries: list[str] = []
    for item in payload:
        if not isinstance(item, str):
            raise ConfigError(f"Query entries must be strings, got {item!r} in {origin}")
        if item.strip():
            queries.append(item.strip())
    return queries


@dataclass(slots=True)
class ConfigLocator:
    """Resolve data, query and log directories.

    The root is ``SERP_CRAWLER_HOME`` when set, else ``project_root``, else the
    current working directory.
    """

    project_root: Path | None = None
    data_dir: Path | None = None
    queries_dir: Path | None = None
    outputs_dir: Path | None = None
    logs_dir: Path | None = None

    def __post_init__(self) -> None:
        env_root = os.environ.get(HOME_ENV)
        if env_root:
            root = Path(env_root).expanduser().resolve()
        else:
            root = (self.project_root or Path.cwd()).resolve()
        self.project_root = root
        self.data_dir = (root / "data").resolve()
        self.queries_dir = (self.data_dir / "queries").resolve()
        self.outputs_dir = root
        self.logs_dir = (root / "logs").resolve()
        self.ensure_directories()

    def ensure_directories(self) -> None:
        for directory in (self.data_dir, self.queries_dir, self.logs_dir):
            directory.mkdir(parents=True, exist_ok=True)

    def settings_path(self) -> Path:
        return self.data_dir / SETTINGS_FILENAME


class ConfigRepository:
    """Repository encapsulating config IO and schema validation."""

    def __init__(self, locator: ConfigLocator | None = None) -> None:
        self.locator = locator or ConfigLocator()
        self._settings_cache: Settings | None = None

    # ------------------------------------------------------------------
    # Settings helpers
    # ------------------------------------------------------------------
    def load_settings(self) -> Settings:
        if self._settings_cache is not None:
            return self._settings_cache
        path = self.locator.settings_path()
        if path.exists():
            payload = _read_file(path) or {}
            if not isinstance(payload, dict):
                raise ConfigError(f"Configuration file must contain a mapping: {path}")
            try:
                settings = Settings.model_validate(payload)
            except ValidationError as exc:
                raise ConfigError(f"Invalid settings in {path}: {exc}") from exc
        else:
            settings = Settings()
            self.save_settings(settings)
        self._settings_cache = settings
        return settings

    def save_settings(self, settings: Settings) -> None:
        path = self.locator.settings_path()
        _write_file(path, settings.model_dump(mode="json"))
        self._settings_cache = settings

    # ------------------------------------------------------------------
    # Query list helpers
    # ------------------------------------------------------------------
    def query_path(self, name: str) -> Path:
        return self.locator.queries_dir / f"{_slugify(name)}.yaml"

    def list_query_files(self) -> Iterable[Path]:
        for path in sorted(self.locator.queries_dir.glob("*")):
            if path.is_file() and path.suffix in QUERY_EXTENSIONS:
                yield path

    def load_queries(self, identifier: str | Path) -> list[str]:
        path = Path(identifier)
        if not (path.suffix in QUERY_EXTENSIONS and path.is_file()):
            path = self.query_path(str(identifier))
        if not path.exists():
            raise ConfigError(f"Query list not found: {identifier}")
        if path.suffix == ".txt":
            lines = path.read_text(encoding="utf-8").splitlines()
            queries = [line.strip() for line in lines if line.strip() and not line.lstrip().startswith("#")]
        else:
            queries = parse_queries(_read_file(path), origin=str(path))
        if not queries:
            raise ConfigError(f"Query list is empty: {path}")
        return queries

    def save_queries(self, name: str, queries: list[str]) -> Path:
        path = self.query_path(name)
        _write_file(path, {"queries": parse_queries(queries, origin=name)})
        return path

    def output_path(self, settings: Settings) -> Path:
        return settings.pipeline.resolved_output_path(self.locator.outputs_dir)


__all__ = ["ConfigLocator", "ConfigRepository", "CONFIG_EXTENSIONS", "parse_queries"]
