"""Rich progress bar tracking queries as they settle."""

from __future__ import annotations

from dataclasses import dataclass

from rich.console import Console
from rich.errors import LiveError
from rich.progress import (
    BarColumn,
    Progress,
    ProgressColumn,
    SpinnerColumn,
    Task,
    TaskID,
    TaskProgressColumn,
    TextColumn,
    TimeElapsedColumn,
)
from rich.text import Text

CURRENT_WIDTH = 48


@dataclass
class ProgressState:
    total: int
    succeeded: int = 0
    failed: int = 0
    entries: int = 0
    current: str | None = None

    @property
    def settled(self) -> int:
        return self.succeeded + self.failed


class QueryRateColumn(ProgressColumn):
    """Queries settled per second."""

    def render(self, task: Task) -> Text:
        speed = task.finished_speed or task.speed
        if speed is None:
            return Text("", style="progress.percentage")
        return Text(f"{speed:.2f} q/s", style="progress.percentage")


def _shorten(text: str, width: int = CURRENT_WIDTH) -> str:
    return text if len(text) <= width else text[: width - 1] + "…"


class ProgressReporter:
    """Per-query progress with success, failure and entry counters.

    Rendering is skipped when disabled or when stderr is not a terminal; the
    counters are kept either way so the caller can report them.
    """

    def __init__(self, enabled: bool = True, label: str = "queries") -> None:
        self.enabled = enabled
        self.label = label
        self.state: ProgressState | None = None
        self._progress: Progress | None = None
        self._task_id: TaskID | None = None

    def start(self, total: int) -> None:
        self.state = ProgressState(total=total)
        if not self.enabled:
            return
        console = Console(stderr=True)
        if not console.is_terminal:
            self.enabled = False
            return
        progress = Progress(
            SpinnerColumn(style="cyan"),
            TextColumn("[bold blue]{task.fields[label]}"),
            BarColumn(bar_width=None, complete_style="green", finished_style="green"),
            TaskProgressColumn(),
            TimeElapsedColumn(),
            QueryRateColumn(),
            TextColumn("[green]✓{task.fields[succeeded]:>3}", justify="right"),
            TextColumn("[red]✗{task.fields[failed]:>3}", justify="right"),
            TextColumn("[cyan]≡{task.fields[entries]:>4}", justify="right"),
            TextColumn("[dim]{task.fields[current]}"),
            console=console,
            expand=True,
            transient=True,
        )
        try:
            progress.start()
        except LiveError:
            # another live display owns the console
            self.enabled = False
            return
        self._progress = progress
        self._task_id = progress.add_task(
            self.label,
            total=total,
            label=self.label,
            succeeded=0,
            failed=0,
            entries=0,
            current="starting…",
        )

    def advance(self, success: bool = True, current: str | None = None, entries: int = 0) -> None:
        if self.state is None:
            raise RuntimeError("ProgressReporter.start must be called before advance")
        state = self.state
        if current:
            state.current = current
        if success:
            state.succeeded += 1
        else:
            state.failed += 1
        state.entries += entries
        if self._progress is None or self._task_id is None:
            return
        self._progress.update(
            self._task_id,
            advance=1,
            succeeded=state.succeeded,
            failed=state.failed,
            entries=state.entries,
            current=_shorten(state.current or ""),
        )

    def close(self) -> None:
        if self._progress is not None:
            self._progress.stop()
        self._progress = None
        self._task_id = None

    def summary(self) -> dict[str, int]:
        if self.state is None:
            return {"succeeded": 0, "failed": 0, "entries": 0}
        return {
            "succeeded": self.state.succeeded,
            "failed": self.state.failed,
            "entries": self.state.entries,
        }


__all__ = ["ProgressReporter", "ProgressState", "QueryRateColumn"]
