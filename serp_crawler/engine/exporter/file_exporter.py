"""File based exporter writing a JSON document or JSON lines."""

from __future__ import annotations

import json
from pathlib import Path

from .base import BaseExporter


class FileExporter(BaseExporter):
    """Write query results to a local file.

    ``json`` buffers every record and rewrites the file as one array on
    ``flush``; ``jsonl`` appends one record per line as it arrives.
    """

    def __init__(self, path: Path, fmt: str = "json") -> None:
        if fmt not in {"json", "jsonl"}:
            raise ValueError(f"Unsupported output format: {fmt}")
        self.path = Path(path)
        self.format = fmt
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self._records: list[dict] = []
        self._file = self.path.open("w", encoding="utf-8") if fmt == "jsonl" else None

    def write(self, record: dict) -> None:
        if self._file is not None:
            json.dump(record, self._file, ensure_ascii=False)
            self._file.write("\n")
        else:
            self._records.append(record)

    def flush(self) -> None:
        if self._file is not None:
            self._file.flush()
            return
        tmp_path = self.path.with_name(self.path.name + ".tmp")
        tmp_path.write_text(json.dumps(self._records, ensure_ascii=False), encoding="utf-8")
        tmp_path.replace(self.path)

    def close(self) -> None:
        if self._file is not None:
            self._file.close()
            self._file = None


__all__ = ["FileExporter"]
