# plvr/main.py
#
# Process entry point: open the store, run the crawler, consume its channels.
#
# Design decisions:
#   - run_pipeline is the single programmatic entry point. The crawler runs
#     on a background thread while the calling thread is the only consumer
#     of the results and errors channels: it logs every item and stops once
#     the results sentinel arrives.
#   - Errors are logged and never stop the run; a failed season is retried
#     on the next run (the dedup gate and the download cache make re-runs
#     cheap and idempotent).
#   - main() installs a SIGINT handler that sets the run-wide cancellation
#     Event. Seasons waiting on their jitter delay end as cancelled; work
#     already in flight finishes, then the process exits.
#
# Exit status: 0 when no season failed, 1 otherwise, 130 when interrupted.
from __future__ import annotations

import queue
import signal
import sys
import threading
from concurrent.futures import ThreadPoolExecutor
from datetime import date

import httpx

from plvr.config import PlvrConfig, load_config
from plvr.crawler import Crawler, RunSummary, SeasonOutcome
from plvr.log import PipelineLog
from plvr.storage.database import Database

_POLL_SECONDS = 0.2


def _drain_errors(crawler: Crawler, logger: PipelineLog) -> int:
    drained = 0
    while True:
        try:
            item = crawler.errors.get_nowait()
        except queue.Empty:
            return drained
        logger.error(str(item))
        drained += 1


def consume(crawler: Crawler, logger: PipelineLog) -> int:
    """Log channel items until the results channel is closed.

    Returns:
        Number of errors consumed.
    """
    errors = 0
    while True:
        errors += _drain_errors(crawler, logger)
        try:
            item = crawler.results.get(timeout=_POLL_SECONDS)
        except queue.Empty:
            continue
        if item is None:
            break
        per_kind = ", ".join(f"{kind.value}={count:,}" for kind, count in item.counts.items())
        logger(f"Season {item.season} loaded {item.total:,} record(s) ({per_kind})")
    crawler.done.wait()
    return errors + _drain_errors(crawler, logger)


def run_pipeline(
    config: PlvrConfig,
    *,
    end: date | None = None,
    logger: PipelineLog | None = None,
    client: httpx.Client | None = None,
    cancel: threading.Event | None = None,
) -> RunSummary:
    """Ingest every season from config.start_date up to ``end`` (default: today).

    Args:
        config: Crawler configuration.
        end:    Exclusive upper bound of the season range.
        logger: Logger to use; built from config when omitted.
        client: HTTP client for the remote endpoint; built from config when
            omitted.
        cancel: Run-wide cancellation Event, e.g. set by a signal handler.

    Returns:
        RunSummary with every season's outcome.
    """
    logger = logger or PipelineLog(verbose=config.verbose, log_file=config.log_file)
    logger(f"Opening store {config.duckdb_path}")
    with Database(config.duckdb_path) as database:
        database.apply_schema()
        crawler = Crawler(config, database, logger, client=client, cancel=cancel)
        with ThreadPoolExecutor(max_workers=1, thread_name_prefix="plvr-crawler") as runner:
            future = runner.submit(crawler.run, end)
            errors = consume(crawler, logger)
            summary = future.result()
    logger(f"Done: {summary}; {errors} error(s) reported")
    return summary


def main() -> int:
    config = load_config()
    logger = PipelineLog(verbose=config.verbose, log_file=config.log_file)
    cancel = threading.Event()

    def _on_interrupt(signum: int, frame: object) -> None:
        logger("Interrupt received, cancelling pending seasons...")
        cancel.set()

    signal.signal(signal.SIGINT, _on_interrupt)
    summary = run_pipeline(config, logger=logger, cancel=cancel)
    if cancel.is_set():
        return 130
    return 1 if summary.count(SeasonOutcome.FAILED) else 0


if __name__ == "__main__":
    sys.exit(main())
