# plvr/sources/plvr/download.py
#
# IO-only: resolve a season to its bundle bytes.
#
# Design decisions:
#   - Every task first waits a uniformly random delay in [0, max_jitter)
#     seconds on the run-wide cancellation Event. This is the only
#     throttling applied to the remote server and it is always interruptible.
#   - A cached archive at <data_dir>/downloaded/plvr/<season>/lvr_landcsv.zip
#     is authoritative; otherwise a single GET is issued (no retries).
#   - The whole bundle is buffered in memory; a season archive is a few MB.
#   - A successful download is written back to the cache path. A failed
#     write is logged with its own error code and does not fail the fetch.
#   - The HTTP request itself is not interruptible: cancellation is checked
#     before it starts.
from __future__ import annotations

import random
import threading

import httpx

from plvr.config import PlvrConfig
from plvr.errors import ErrorCode, ErrorData, PipelineError
from plvr.log import PipelineLog
from plvr.sources.plvr.seasons import Season

_TARGET = f"{__name__}.SeasonFetcher.fetch"


def build_client(config: PlvrConfig, transport: httpx.BaseTransport | None = None) -> httpx.Client:
    """HTTP client shared by all fetch calls of a run."""
    return httpx.Client(
        headers={"User-Agent": config.user_agent},
        timeout=config.download_timeout,
        follow_redirects=True,
        transport=transport,
    )


class SeasonFetcher:
    """Fetch season bundles from the local cache or the remote endpoint."""

    def __init__(
        self,
        config: PlvrConfig,
        client: httpx.Client,
        logger: PipelineLog,
        cancel: threading.Event,
        rng: random.Random | None = None,
    ) -> None:
        self._config = config
        self._client = client
        self._log = logger
        self._cancel = cancel
        self._rng = rng or random.Random()
        self._rng_lock = threading.Lock()

    def wait(self) -> bool:
        """Jitter wait for one task; True means the task must stop as cancelled."""
        if self._cancel.is_set():
            return True
        with self._rng_lock:
            delay = self._rng.random() * self._config.max_jitter_seconds
        return self._cancel.wait(delay)

    def fetch(self, season: Season) -> bytes:
        """Return the bundle bytes for ``season``.

        Raises:
            PipelineError: ReadZipFileFromLocalError, HttpRequestError or
                HttpStatusError.
        """
        path = self._config.cache_path(season)
        if path.exists():
            self._log.debug(f"found downloaded zip file {path}")
            try:
                return path.read_bytes()
            except OSError as exc:
                raise PipelineError(ErrorCode.READ_ZIP_FILE_FROM_LOCAL, str(exc), _TARGET) from exc

        url = self._config.season_url(season)
        self._log.debug(f"zip file not found, downloading it from {url}")
        try:
            response = self._client.get(url)
        except httpx.HTTPError as exc:
            raise PipelineError(ErrorCode.HTTP_REQUEST, f"{url}: {exc}", _TARGET) from exc

        if response.status_code != 200:
            raise PipelineError(
                ErrorCode.HTTP_STATUS,
                f"{url} returned HTTP {response.status_code}",
                _TARGET,
                inner=f"[{response.status_code}] body {response.text}",
            )

        body = response.content
        self._store(season, body)
        return body

    def _store(self, season: Season, body: bytes) -> None:
        path = self._config.cache_path(season)
        target = f"{__name__}.SeasonFetcher._store"
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            self._log.error(str(ErrorData(ErrorCode.CREATE_ZIP_FILE, str(exc), target)))
            return
        tmp_path = path.with_suffix(".part")
        try:
            tmp_path.write_bytes(body)
            tmp_path.replace(path)
        except OSError as exc:
            self._log.error(str(ErrorData(ErrorCode.COPY_ZIP_CONTENT_TO_FILE, str(exc), target)))
            tmp_path.unlink(missing_ok=True)
