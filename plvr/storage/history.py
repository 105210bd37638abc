# plvr/storage/history.py
#
# Dedup gate over the ingestion history table.
#
# A season counts as ingested when a history row matches its token or the
# remote URL it resolves to. The gate only reads; history rows are written by
# Loader.commit_season once a season's records are stored.
from __future__ import annotations

import duckdb

from plvr.errors import ErrorCode, PipelineError
from plvr.sources.plvr.seasons import Season
from plvr.storage.database import Database

HISTORY_TABLE = "plvr_ingestion_history"

_EXISTS_SQL = f"SELECT 1 FROM {HISTORY_TABLE} WHERE season = ? OR source_url = ? LIMIT 1"


class HistoryGate:
    def __init__(self, database: Database) -> None:
        self._db = database

    def exists(self, season: Season, source_url: str) -> bool:
        """True if ``season`` (or its source URL) was already ingested.

        Raises:
            PipelineError: CheckRecordExistsError if the history cannot be read.
        """
        try:
            with self._db.cursor() as cur:
                row = cur.execute(_EXISTS_SQL, [season.token, source_url]).fetchone()
        except duckdb.Error as exc:
            raise PipelineError(
                ErrorCode.CHECK_RECORD_EXISTS,
                f"season {season}: {exc}",
                f"{__name__}.HistoryGate.exists",
            ) from exc
        return row is not None
