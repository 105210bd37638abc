# plvr/crawler.py
#
# Season crawler: runs one task per season on a bounded worker pool and
# reports outcomes on two channels.
#
# Design decisions:
#   - Tasks run on a ThreadPoolExecutor with config.max_workers workers.
#     Seasons are independent, so completion order is unspecified and
#     consumers must not rely on it.
#   - Per-season flow: jitter wait -> dedup gate -> fetch -> classify ->
#     parse -> load -> history fact. A PipelineError at any step ends that
#     season as FAILED and is reported once on `errors`; sibling seasons keep
#     running.
#   - Channels are unbounded queue.Queue objects. `results` receives one
#     SeasonResult per loaded season and a final None sentinel; `errors`
#     receives SeasonError values (file-level parse and load problems of a
#     season that still completes are reported there too).
#   - Cancellation is cooperative through a threading.Event checked before
#     the jitter wait, woken during it, and checked again before the network
#     call. Work already past that point finishes normally.
#   - A skipped season (already in the history table) produces nothing on
#     either channel.
#
# Invariants:
#   - `done` is set only after the results sentinel has been queued.
#   - Every season passed to run() ends in exactly one SeasonOutcome.
from __future__ import annotations

import queue
import random
import threading
from collections import Counter
from collections.abc import Iterable, Mapping
from concurrent.futures import Future, ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field
from datetime import date
from enum import Enum

import httpx

from plvr.config import PlvrConfig
from plvr.errors import ErrorCode, ErrorData, PipelineError
from plvr.log import PipelineLog
from plvr.sources.plvr.classify import classify
from plvr.sources.plvr.download import SeasonFetcher, build_client
from plvr.sources.plvr.parse import parse_records
from plvr.sources.plvr.records import RecordKind
from plvr.sources.plvr.seasons import Season, enumerate_seasons
from plvr.storage.database import Database
from plvr.storage.history import HistoryGate
from plvr.storage.loader import Loader


class SeasonOutcome(str, Enum):
    SKIPPED = "skipped"
    DONE = "done"
    FAILED = "failed"
    CANCELLED = "cancelled"


@dataclass(frozen=True)
class SeasonResult:
    season: Season
    counts: Mapping[RecordKind, int]

    @property
    def total(self) -> int:
        return sum(self.counts.values())


@dataclass(frozen=True)
class SeasonError:
    season: Season
    error: ErrorData

    def __str__(self) -> str:
        return f"season {self.season}: {self.error}"


@dataclass
class RunSummary:
    """Per-season outcomes of one run."""

    outcomes: dict[Season, SeasonOutcome] = field(default_factory=dict)
    records_loaded: int = 0

    def count(self, outcome: SeasonOutcome) -> int:
        return sum(1 for value in self.outcomes.values() if value is outcome)

    def __str__(self) -> str:
        tally = Counter(self.outcomes.values())
        parts = ", ".join(f"{outcome.value}={tally.get(outcome, 0)}" for outcome in SeasonOutcome)
        return f"{len(self.outcomes)} season(s): {parts}; {self.records_loaded:,} record(s) loaded"


class Crawler:
    """Concurrent per-season ingestion."""

    def __init__(
        self,
        config: PlvrConfig,
        database: Database,
        logger: PipelineLog,
        *,
        client: httpx.Client | None = None,
        cancel: threading.Event | None = None,
        rng: random.Random | None = None,
    ) -> None:
        self.config = config
        self.results: queue.Queue[SeasonResult | None] = queue.Queue()
        self.errors: queue.Queue[SeasonError] = queue.Queue()
        self.done = threading.Event()
        self.cancel = cancel or threading.Event()
        self._log = logger
        self._owns_client = client is None
        self._client = client or build_client(config)
        self._fetcher = SeasonFetcher(config, self._client, logger, self.cancel, rng)
        self._gate = HistoryGate(database)
        self._loader = Loader(database, logger)

    def seasons(self, end: date | None = None) -> Iterable[Season]:
        return enumerate_seasons(self.config.start_date, end or date.today())

    def stop(self) -> None:
        """Request cancellation of the run."""
        self.cancel.set()

    def run(self, end: date | None = None) -> RunSummary:
        """Process every season from config.start_date up to ``end`` (default: today).

        Blocks until all tasks finish, then closes the results channel and
        sets ``done``.
        """
        summary = RunSummary()
        try:
            seasons = list(self.seasons(end))
            self._log(f"Crawling {len(seasons)} season(s) with {self.config.max_workers} worker(s)")
            with ThreadPoolExecutor(max_workers=self.config.max_workers, thread_name_prefix="plvr") as pool:
                futures: dict[Future[tuple[SeasonOutcome, int]], Season] = {
                    pool.submit(self._run_season, season): season for season in seasons
                }
                for future in as_completed(futures):
                    season = futures[future]
                    outcome, loaded = future.result()
                    summary.outcomes[season] = outcome
                    summary.records_loaded += loaded
                    self._log.debug(f"season {season} {outcome.value}")
        finally:
            self.results.put(None)
            self.done.set()
            if self._owns_client:
                self._client.close()
        self._log(f"Crawl finished: {summary}")
        return summary

    def _report(self, season: Season, error: ErrorData) -> None:
        self.errors.put(SeasonError(season=season, error=error))

    def _run_season(self, season: Season) -> tuple[SeasonOutcome, int]:
        if self.cancel.is_set():
            return SeasonOutcome.CANCELLED, 0
        try:
            return self._process(season)
        except PipelineError as exc:
            self._report(season, exc.data)
        except Exception as exc:  # noqa: BLE001
            self._report(
                season,
                ErrorData(
                    code=ErrorCode.INTERNAL,
                    message=f"{type(exc).__name__}: {exc}",
                    target=f"{__name__}.Crawler._run_season",
                ),
            )
        return SeasonOutcome.FAILED, 0

    def _process(self, season: Season) -> tuple[SeasonOutcome, int]:
        if self._fetcher.wait():
            return SeasonOutcome.CANCELLED, 0

        source_url = self.config.season_url(season)
        if self._gate.exists(season, source_url):
            self._log.debug(f"season {season} already ingested, skipping")
            return SeasonOutcome.SKIPPED, 0

        if self.cancel.is_set():
            return SeasonOutcome.CANCELLED, 0

        bundle = self._fetcher.fetch(season)
        entries = classify(bundle, self._log)
        del bundle

        counts: dict[RecordKind, int] = {kind: 0 for kind in RecordKind}
        rejected = False
        for entry in entries:
            source = f"{season}/{entry.name}"
            try:
                parsed = parse_records(entry.kind, entry.content)
            except PipelineError as exc:
                self._report(season, exc.data)
                continue

            date_errors = parsed.date_error_summary(source)
            if date_errors is not None:
                self._report(season, date_errors)

            report = self._loader.save_all(parsed.records, entry.region, season, source)
            counts[entry.kind] += report.inserted
            failure = report.error()
            if failure is not None:
                self._report(season, failure)
                rejected = True

        loaded = sum(counts.values())
        if rejected and not self.config.allow_partial_loads:
            removed = self._loader.discard_season(season)
            self._log(f"season {season} rejected, removed {removed:,} partially loaded row(s)")
            return SeasonOutcome.FAILED, 0

        self._loader.commit_season(season, source_url, loaded)
        self.results.put(SeasonResult(season=season, counts=counts))
        return SeasonOutcome.DONE, loaded
