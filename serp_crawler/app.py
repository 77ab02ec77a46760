"""Typer CLI entrypoint for the SERP crawler."""

from __future__ import annotations

import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, List, Optional, Sequence

import typer
from rich import box
from rich.console import Console
from rich.table import Table

from .config import ConfigRepository, PageSourceKind, PipelineMode, Settings
from .errors import ConfigError, ResourceError
from .logging_conf import available_pipeline_logs, configure_logging, log_path, tail_log
from .orchestrator import FailureRecord, Orchestrator, RunSummary

app = typer.Typer(
    help="Search result snippet crawler with page content alignment.",
    no_args_is_help=True,
    rich_markup_mode=None,
)
queries_app = typer.Typer(
    name="queries",
    help="Manage stored query lists.",
    no_args_is_help=True,
    rich_markup_mode=None,
)
log_app = typer.Typer(
    name="log",
    help="Inspect log files.",
    no_args_is_help=True,
    rich_markup_mode=None,
)

console = Console()
err_console = Console(stderr=True)

OrchestratorFactory = Callable[[Settings, Path], Orchestrator]


def _default_orchestrator_factory(settings: Settings, output_path: Path) -> Orchestrator:
    return Orchestrator(settings, output_path=output_path)


@dataclass
class AppState:
    repository: ConfigRepository
    orchestrator_factory: OrchestratorFactory = _default_orchestrator_factory


def build_state(verbose: bool) -> AppState:
    repository = ConfigRepository()
    configure_logging(verbose=verbose)
    return AppState(repository=repository)


def _get_state(ctx: typer.Context) -> AppState:
    state = ctx.obj
    if state is None:
        state = build_state(verbose=False)
        ctx.obj = state
    return state


def _progress_default_enabled() -> bool:
    return bool(getattr(sys.stderr, "isatty", lambda: False)())


def _render_summary_table(summary: RunSummary) -> Table:
    table = Table(title=f"{summary.mode.value} run summary", box=box.SIMPLE_HEAD)
    table.add_column("Metric", style="cyan")
    table.add_column("Count", style="green", justify="right")
    counters = summary.counters()
    table.add_row("Queries", str(counters["queries"]))
    table.add_row("Entries", str(counters["entries"]))
    if summary.mode is PipelineMode.CONTENT:
        table.add_row("Aligned", str(counters["aligned"]))
        table.add_row("Text not found", str(counters["not_found"]))
    table.add_row("Failures", str(counters["failed"]))
    return table


def _render_failures_table(failures: Sequence[FailureRecord]) -> Table:
    table = Table(title=f"Failures · {len(failures)}", box=box.SIMPLE_HEAD)
    table.add_column("Stage", style="magenta", no_wrap=True)
    table.add_column("Target", style="yellow", overflow="fold")
    table.add_column("Reason", style="red", overflow="fold")
    for failure in failures:
        table.add_row(failure.stage, failure.target, failure.reason)
    return table


def _collect_queries(
    state: AppState, queries: Optional[List[str]], queries_file: Optional[str]
) -> list[str]:
    collected = [query.strip() for query in (queries or []) if query.strip()]
    if queries_file:
        collected.extend(state.repository.load_queries(queries_file))
    if not collected:
        raise ConfigError("No queries given; pass them as arguments or with --queries-file.")
    return collected


app.add_typer(queries_app, name="queries", help="Manage stored query lists.")
app.add_typer(log_app, name="log", help="Inspect log files.")


@app.callback()
def main(
    ctx: typer.Context,
    verbose: bool = typer.Option(False, "--verbose", help="Enable debug logging.", is_flag=True),
) -> None:
    ctx.obj = build_state(verbose)


@app.command("run", help="Search the queries and save the results.")
def run(
    ctx: typer.Context,
    queries: Optional[List[str]] = typer.Argument(None, help="Queries to search."),
    queries_file: Optional[str] = typer.Option(
        None, "--queries-file", "-f", help="Stored query list name or path (.yaml/.json/.txt)."
    ),
    mode: Optional[PipelineMode] = typer.Option(
        None, "--mode", "-m", help="content: visit links and align text; snippets: results only."
    ),
    batch_size: Optional[int] = typer.Option(
        None, "--batch-size", "-b", help="Queries processed concurrently per batch."
    ),
    page_batch_size: Optional[int] = typer.Option(
        None, "--page-batch-size", help="Links fetched concurrently per batch."
    ),
    page_source: Optional[PageSourceKind] = typer.Option(
        None, "--page-source", help="Fetch linked pages with the browser or plain HTTP."
    ),
    output: Optional[Path] = typer.Option(None, "--output", "-o", help="Output file path."),
    headed: bool = typer.Option(False, "--headed", help="Show the browser window.", is_flag=True),
    quiet: bool = typer.Option(False, "--quiet", help="Print a one-line result.", is_flag=True),
) -> None:
    state = _get_state(ctx)
    try:
        settings = state.repository.load_settings()
        settings = settings.for_mode(
            mode or settings.pipeline.mode,
            query_batch_size=batch_size,
            page_batch_size=page_batch_size,
            page_source=page_source,
            output_path=output,
        )
        if headed:
            settings = settings.model_copy(
                update={"browser": settings.browser.model_copy(update={"headless": False})}
            )
        collected = _collect_queries(state, queries, queries_file)
        output_path = state.repository.output_path(settings)
        orchestrator = state.orchestrator_factory(settings, output_path)
        progress_flag = settings.enable_progress_bar and _progress_default_enabled() and not quiet
        summary = orchestrator.run(collected, progress_enabled=progress_flag)
    except ConfigError as exc:
        err_console.print(f"Configuration error: {exc}", style="red")
        raise typer.Exit(code=2)
    except ResourceError as exc:
        err_console.print(f"Browser error: {exc}", style="red")
        raise typer.Exit(code=1)

    if summary.failures:
        err_console.print(_render_failures_table(summary.failures))
    destination = str(summary.output_path) if summary.output_path else "not written"
    if quiet:
        counters = summary.counters()
        console.print(
            f"Done: {counters['queries']} queries, {counters['entries']} entries, "
            f"{counters['failed']} failures -> {destination}"
        )
        return
    console.print(_render_summary_table(summary))
    console.print(f"Output: {destination}", style="dim")


@queries_app.command("list", help="List stored query files.")
def queries_list(ctx: typer.Context) -> None:
    state = _get_state(ctx)
    files = list(state.repository.list_query_files())
    if not files:
        console.print(
            f"No query lists under {state.repository.locator.queries_dir}.", style="yellow"
        )
        return
    table = Table(title=f"Query lists · {len(files)}", box=box.SIMPLE_HEAD)
    table.add_column("Name", style="cyan")
    table.add_column("Queries", style="green", justify="right")
    for path in files:
        try:
            count = str(len(state.repository.load_queries(path)))
        except ConfigError:
            count = "invalid"
        table.add_row(path.name, count)
    console.print(table)


@queries_app.command("add", help="Store a named query list.")
def queries_add(
    ctx: typer.Context,
    name: str = typer.Argument(..., help="Query list name."),
    queries: List[str] = typer.Argument(..., help="Queries to store."),
) -> None:
    state = _get_state(ctx)
    try:
        path = state.repository.save_queries(name, queries)
    except ConfigError as exc:
        err_console.print(str(exc), style="red")
        raise typer.Exit(code=2)
    console.print(f"Saved {len(queries)} queries to {path}.", style="green")


@log_app.command("list", help="List per-pipeline log files.")
def log_list() -> None:
    logs = list(available_pipeline_logs())
    if not logs:
        console.print("No pipeline logs yet.", style="dim")
        return
    table = Table(box=box.SIMPLE_HEAD)
    table.add_column("File", style="green")
    for path in logs:
        table.add_row(path.name)
    console.print(table)


@log_app.command("show", help="Show the tail of a log file.")
def log_show(
    pipeline: Optional[str] = typer.Option(
        None, "--pipeline", help="Pipeline mode (content/snippets); global log when omitted."
    ),
    tail: int = typer.Option(100, "--tail", min=0, help="Number of lines to show."),
) -> None:
    lines = tail_log(log_path(pipeline), tail)
    if not lines:
        console.print("No log entries yet.", style="dim")
        return
    console.print(f"{pipeline or 'global'} log · last {len(lines)} lines", style="cyan")
    console.print("".join(lines), markup=False, highlight=False)


def cli() -> None:
    app()


if __name__ == "__main__":  # pragma: no cover
    cli()
