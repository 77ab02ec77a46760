"""Run coordinator wiring search, page fetching, alignment and export."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Sequence

import structlog

from .config import PageSourceKind, PipelineMode, Settings
from .engine import (
    BatchRunner,
    BrowserPageSource,
    BrowserSearchSource,
    BrowserSession,
    HttpPageSource,
    ItemFailure,
    PageContentSource,
    Parser,
    SearchResultSource,
    align_entries,
)
from .engine.exporter import BaseExporter, FileExporter
from .errors import BatchAborted, FetchError, ResourceError
from .logging_conf import pipeline_logger
from .models import FetchedEntry, QueryResult, ResultEntry
from .ui import ProgressReporter


@dataclass(slots=True)
class FailureRecord:
    """One line of the diagnostic failure summary."""

    stage: str
    target: str
    reason: str

    @classmethod
    def from_item(cls, stage: str, failure: ItemFailure, target: str) -> "FailureRecord":
        return cls(stage=stage, target=target, reason=f"{failure.error_type}: {failure.error}")


@dataclass(slots=True)
class QueryOutcome:
    result: QueryResult
    failures: list[FailureRecord] = field(default_factory=list)


@dataclass(slots=True)
class RunSummary:
    """Everything a caller needs after a run: results, counters and failures."""

    mode: PipelineMode
    results: list[QueryResult] = field(default_factory=list)
    failures: list[FailureRecord] = field(default_factory=list)
    output_path: Path | None = None
    aborted: bool = False

    @property
    def queries(self) -> int:
        return len(self.results)

    @property
    def entries(self) -> int:
        return sum(len(result.results) for result in self.results)

    @property
    def aligned(self) -> int:
        return sum(
            1
            for result in self.results
            for entry in result.results
            if isinstance(entry, FetchedEntry) and entry.has_content
        )

    @property
    def not_found(self) -> int:
        return sum(
            1
            for result in self.results
            for entry in result.results
            if isinstance(entry, FetchedEntry) and not entry.has_content
        )

    def counters(self) -> dict[str, int]:
        return {
            "queries": self.queries,
            "entries": self.entries,
            "aligned": self.aligned,
            "not_found": self.not_found,
            "failed": len(self.failures),
        }


def _describe_entry(entry: ResultEntry) -> str:
    return entry.link or entry.header or "<no link>"


class PagesAborted(ResourceError):
    """The browser was lost while a query's pages were being fetched.

    ``fetched`` still has one entry per search result; pages that were never
    settled carry the ``Text Not Found`` sentinel.
    """

    def __init__(
        self, message: str, *, fetched: list[FetchedEntry], failures: list[FailureRecord]
    ) -> None:
        super().__init__(message)
        self.fetched = fetched
        self.failures = failures


class QueryAborted(ResourceError):
    """Browser loss inside a query; ``outcome`` is what that query produced."""

    def __init__(self, message: str, *, outcome: QueryOutcome) -> None:
        super().__init__(message)
        self.outcome = outcome


class Orchestrator:
    """Central coordinator managing the lifecycle of one pipeline run.

    Queries are processed in batches of ``query_batch_size``; in content mode
    the links of each query are fetched in batches of ``page_batch_size`` and
    every page is aligned against its snippet. A single browser session is
    shared by all fetches and closed once at the end of the run.
    """

    def __init__(
        self,
        settings: Settings,
        *,
        output_path: Path | None = None,
        session: BrowserSession | Any | None = None,
        search_source: SearchResultSource | None = None,
        page_source: PageContentSource | None = None,
        logger: structlog.BoundLogger | None = None,
    ) -> None:
        self.settings = settings
        self.pipeline = settings.pipeline
        self.mode = PipelineMode(self.pipeline.mode)
        self.output_path = Path(output_path or self.pipeline.output_path)
        self.logger = logger or pipeline_logger(self.mode.value).bind(component="orchestrator")
        self.parser = Parser()
        self._session = session
        self._search_source = search_source
        self._page_source = page_source
        # Built eagerly: an invalid batch size must fail before the browser starts.
        self.query_runner: BatchRunner[str, QueryOutcome] = BatchRunner(
            self.pipeline.query_batch_size, name="queries", logger=self.logger
        )
        self.page_runner: BatchRunner[ResultEntry, FetchedEntry] = BatchRunner(
            self.pipeline.page_batch_size, name="pages", logger=self.logger
        )

    # ------------------------------------------------------------------
    def run(self, queries: Sequence[str], progress_enabled: bool = False) -> RunSummary:
        return asyncio.run(self.arun(queries, progress=ProgressReporter(enabled=progress_enabled)))

    async def arun(
        self, queries: Sequence[str], progress: ProgressReporter | None = None
    ) -> RunSummary:
        queries = list(queries)
        progress = progress or ProgressReporter(enabled=False)
        summary = RunSummary(mode=self.mode)
        self.logger.info(
            "run_started",
            queries=len(queries),
            query_batch_size=self.query_runner.batch_size,
            page_batch_size=self.page_runner.batch_size,
        )
        session = self._session or BrowserSession(self.settings.browser, logger=self.logger)
        await session.start()
        page_source: PageContentSource | None = None
        try:
            search_source, page_source = self._build_sources(session)
            progress.start(len(queries))
            await self._collect(queries, search_source, page_source, progress, summary)
        finally:
            progress.close()
            if page_source is not None:
                await self._close_quietly(page_source)
            await session.close()
        self._export(summary)
        self.logger.info("run_finished", **summary.counters(), aborted=summary.aborted)
        return summary

    async def _collect(
        self,
        queries: list[str],
        search_source: SearchResultSource,
        page_source: PageContentSource | None,
        progress: ProgressReporter,
        summary: RunSummary,
    ) -> None:
        async def worker(query: str) -> QueryOutcome:
            try:
                outcome = await self.process_query(query, search_source, page_source)
            except Exception:
                progress.advance(success=False, current=query)
                raise
            progress.advance(success=True, current=query, entries=len(outcome.result.results))
            return outcome

        def fallback(query: str, exc: BaseException) -> QueryOutcome:
            if isinstance(exc, QueryAborted):
                return exc.outcome
            return QueryOutcome(result=QueryResult(query=query))

        try:
            report = await self.query_runner.run(queries, worker, fallback)
            outcomes: list[QueryOutcome] = report.results
            item_failures: list[ItemFailure] = report.failures
        except BatchAborted as exc:
            outcomes = list(exc.results)
            item_failures = list(exc.failures)
            skipped = queries[len(outcomes) :]
            outcomes.extend(QueryOutcome(result=QueryResult(query=query)) for query in skipped)
            summary.aborted = True
            summary.failures.append(FailureRecord("batch", "queries", str(exc)))
            summary.failures.extend(
                FailureRecord("query", query, "skipped after browser failure") for query in skipped
            )
        summary.failures.extend(
            FailureRecord.from_item("query", failure, str(failure.item)) for failure in item_failures
        )
        for outcome in outcomes:
            summary.results.append(outcome.result)
            summary.failures.extend(outcome.failures)

    async def process_query(
        self,
        query: str,
        search_source: SearchResultSource,
        page_source: PageContentSource | None,
    ) -> QueryOutcome:
        entries = await search_source.fetch_results(query)
        if self.mode is PipelineMode.SNIPPETS or page_source is None:
            return QueryOutcome(result=QueryResult(query=query, results=tuple(entries)))
        try:
            fetched, failures = await self.fetch_contents(entries, page_source)
        except PagesAborted as exc:
            outcome = self._aligned_outcome(query, exc.fetched, exc.failures)
            raise QueryAborted(str(exc), outcome=outcome) from exc
        return self._aligned_outcome(query, fetched, failures)

    @staticmethod
    def _aligned_outcome(
        query: str, fetched: Sequence[FetchedEntry], failures: list[FailureRecord]
    ) -> QueryOutcome:
        aligned = align_entries(fetched, query)
        return QueryOutcome(result=QueryResult(query=query, results=tuple(aligned)), failures=failures)

    async def fetch_contents(
        self, entries: Sequence[ResultEntry], page_source: PageContentSource
    ) -> tuple[list[FetchedEntry], list[FailureRecord]]:
        """Fetch every linked page; each entry yields exactly one FetchedEntry."""

        async def worker(entry: ResultEntry) -> FetchedEntry:
            if not entry.link:
                raise FetchError("Result has no link", target=entry.header)
            text = await page_source.fetch_page_text(entry.link)
            fetched = FetchedEntry.from_result(entry, text)
            if not fetched.has_content:
                self.logger.info("text_not_found", url=entry.link)
            return fetched

        def fallback(entry: ResultEntry, _exc: BaseException) -> FetchedEntry:
            return FetchedEntry.not_found(entry)

        try:
            report = await self.page_runner.run(entries, worker, fallback, describe=_describe_entry)
        except BatchAborted as exc:
            fetched: list[FetchedEntry] = list(exc.results)
            failures = self._page_failures(exc.failures)
            skipped = entries[len(fetched) :]
            fetched.extend(FetchedEntry.not_found(entry) for entry in skipped)
            failures.extend(
                FailureRecord("page", _describe_entry(entry), "skipped after browser failure")
                for entry in skipped
            )
            raise PagesAborted(str(exc), fetched=fetched, failures=failures) from exc
        return report.results, self._page_failures(report.failures)

    @staticmethod
    def _page_failures(failures: Sequence[ItemFailure]) -> list[FailureRecord]:
        return [
            FailureRecord.from_item("page", failure, _describe_entry(failure.item))  # type: ignore[arg-type]
            for failure in failures
        ]

    # ------------------------------------------------------------------
    def _build_sources(
        self, session: Any
    ) -> tuple[SearchResultSource, PageContentSource | None]:
        search_source = self._search_source or BrowserSearchSource(
            session, self.settings.search, parser=self.parser, logger=self.logger
        )
        if self.mode is PipelineMode.SNIPPETS:
            return search_source, None
        if self._page_source is not None:
            return search_source, self._page_source
        if self.pipeline.page_source is PageSourceKind.HTTP:
            page_source: PageContentSource = HttpPageSource.from_config(
                self.pipeline, user_agent=self.settings.browser.user_agent
            )
        else:
            page_source = BrowserPageSource(session, parser=self.parser, logger=self.logger)
        return search_source, page_source

    def _create_exporter(self) -> BaseExporter:
        return FileExporter(self.output_path, self.pipeline.output_format)

    def _export(self, summary: RunSummary) -> None:
        try:
            with self._create_exporter() as exporter:
                written = exporter.write_results(summary.results)
        except OSError as exc:
            self.logger.error("export_failed", path=str(self.output_path), error=str(exc))
            summary.failures.append(FailureRecord("export", str(self.output_path), str(exc)))
            return
        summary.output_path = self.output_path
        self.logger.info("results_saved", path=str(self.output_path), queries=written)

    async def _close_quietly(self, source: PageContentSource) -> None:
        try:
            await source.close()
        except Exception as exc:  # noqa: BLE001
            self.logger.warning("page_source_close_failed", error=str(exc))


__all__ = [
    "FailureRecord",
    "Orchestrator",
    "PagesAborted",
    "QueryAborted",
    "QueryOutcome",
    "RunSummary",
]
