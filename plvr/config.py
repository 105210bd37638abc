# plvr/config.py
#
# Crawler configuration loaded from environment variables.
#
# Design decisions:
#   - Frozen dataclass built once by load_config() and passed explicitly to
#     the crawler and every component. No component reads os.environ.
#   - .env files are honoured through python-dotenv before reading variables.
#   - Paths default to plvr/data relative to this file's directory.
#
# Invariants:
#   - max_workers and download_timeout are positive.
#   - max_jitter_seconds is non-negative.
#   - start_date is on or after 1912-01-01 (ROC era year 1).
#   - api_url contains the "{season}" placeholder.
from __future__ import annotations

import os
from dataclasses import dataclass
from datetime import date
from pathlib import Path

from dotenv import load_dotenv

from plvr.sources.plvr.seasons import Season

_PACKAGE_DIR = Path(__file__).parent

DEFAULT_API_URL = (
    "https://plvr.land.moi.gov.tw/DownloadSeason?season={season}&type=zip&fileName=lvr_landcsv.zip"
)
DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (X11; Linux x86_64) AppleWebKit/537.36 (KHTML, like Gecko) "
    "Chrome/110.0.0.0 Safari/537.36 Edg/110.0.1587.69"
)
ARCHIVE_NAME = "lvr_landcsv.zip"
START_DATE = date(2013, 1, 1)
EARLIEST_START_DATE = date(1912, 1, 1)

_TRUE = {"1", "true", "yes", "y", "on"}
_FALSE = {"0", "false", "no", "n", "off", ""}


@dataclass(frozen=True)
class PlvrConfig:
    """Immutable crawler configuration."""

    data_dir: Path
    duckdb_path: Path
    api_url: str = DEFAULT_API_URL
    start_date: date = START_DATE
    max_workers: int = 8
    max_jitter_seconds: float = 10.0
    download_timeout: float = 180.0
    user_agent: str = DEFAULT_USER_AGENT
    allow_partial_loads: bool = True
    verbose: bool = False
    log_file: Path | None = None

    def __post_init__(self) -> None:
        if self.max_workers <= 0:
            raise ValueError(f"max_workers must be positive, got {self.max_workers}")
        if self.max_jitter_seconds < 0:
            raise ValueError(f"max_jitter_seconds must be non-negative, got {self.max_jitter_seconds}")
        if self.download_timeout <= 0:
            raise ValueError(f"download_timeout must be positive, got {self.download_timeout}")
        if self.start_date < EARLIEST_START_DATE:
            raise ValueError(
                f"start_date must be on or after {EARLIEST_START_DATE.isoformat()}, got {self.start_date.isoformat()}"
            )
        if "{season}" not in self.api_url:
            raise ValueError(f"api_url must contain a {{season}} placeholder: {self.api_url}")

    @property
    def cache_dir(self) -> Path:
        """Root of the downloaded-bundle cache."""
        return self.data_dir / "downloaded" / "plvr"

    def cache_path(self, season: Season) -> Path:
        return self.cache_dir / season.token / ARCHIVE_NAME

    def season_url(self, season: Season) -> str:
        return self.api_url.format(season=season.token)


def _env_int(name: str, default: int) -> int:
    raw = os.environ.get(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError as exc:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from exc


def _env_float(name: str, default: float) -> float:
    raw = os.environ.get(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return float(raw)
    except ValueError as exc:
        raise ValueError(f"{name} must be a number, got {raw!r}") from exc


def _env_bool(name: str, default: bool) -> bool:
    raw = os.environ.get(name)
    if raw is None:
        return default
    value = raw.strip().lower()
    if value in _TRUE:
        return True
    if value in _FALSE:
        return False
    raise ValueError(f"{name} must be a boolean, got {raw!r}")


def _env_date(name: str, default: date) -> date:
    raw = os.environ.get(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return date.fromisoformat(raw.strip())
    except ValueError as exc:
        raise ValueError(f"{name} must be an ISO date (YYYY-MM-DD), got {raw!r}") from exc


def load_config() -> PlvrConfig:
    """Build PlvrConfig from environment variables (and a .env file, if any).

    Raises:
        ValueError: if a variable holds a value of the wrong type or outside
            its allowed range. The message names the variable.
    """
    load_dotenv()

    data_dir = Path(os.environ.get("PLVR_DATA_DIR", str(_PACKAGE_DIR / "data")))
    duckdb_path = Path(os.environ.get("PLVR_DUCKDB_PATH", str(data_dir / "plvr.duckdb")))
    log_file_raw = os.environ.get("PLVR_LOG_FILE", "").strip()

    return PlvrConfig(
        data_dir=data_dir,
        duckdb_path=duckdb_path,
        api_url=os.environ.get("PLVR_API_URL", DEFAULT_API_URL),
        start_date=_env_date("PLVR_START_DATE", START_DATE),
        max_workers=_env_int("PLVR_MAX_WORKERS", 8),
        max_jitter_seconds=_env_float("PLVR_MAX_JITTER_SECONDS", 10.0),
        download_timeout=_env_float("PLVR_DOWNLOAD_TIMEOUT", 180.0),
        user_agent=os.environ.get("PLVR_USER_AGENT", DEFAULT_USER_AGENT),
        allow_partial_loads=_env_bool("PLVR_ALLOW_PARTIAL_LOADS", True),
        verbose=_env_bool("PLVR_VERBOSE", False),
        log_file=Path(log_file_raw) if log_file_raw else None,
    )
