# plvr/storage/loader.py
#
# Persist parsed records and the season's history fact.
#
# Design decisions:
#   - One INSERT per record, each in its own (autocommit) transaction, so a
#     failing record never takes its neighbours down with it.
#   - save_all() keeps going after a failed insert and returns a LoadReport
#     with every failure. Whether a partial load is acceptable is decided by
#     the caller (the crawler, from PlvrConfig.allow_partial_loads).
#   - Insert SQL is generated from the record dataclass fields, which match
#     the column names in schema.sql one to one, plus the leading season and
#     city (region code) columns.
#   - The history fact is written last, only once a season's files are
#     stored; discard_season() removes a season's rows when its load is
#     rejected.
#
# Invariants:
#   - report.inserted + len(report.failures) == number of records given.
from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field

import duckdb

from plvr.errors import ErrorCode, ErrorData, PipelineError
from plvr.log import PipelineLog
from plvr.sources.plvr.records import SCHEMAS, Record, RecordSchema
from plvr.sources.plvr.seasons import Season
from plvr.storage.database import Database
from plvr.storage.history import HISTORY_TABLE

_SCHEMA_BY_CLASS: dict[type, RecordSchema] = {schema.record_cls: schema for schema in SCHEMAS.values()}


def _insert_sql(schema: RecordSchema) -> str:
    names = ("season", "city", *schema.record_cls.field_names())
    placeholders = ", ".join("?" for _ in names)
    return f"INSERT INTO {schema.table} ({', '.join(names)}) VALUES ({placeholders})"


_INSERT_SQL: dict[type, str] = {cls: _insert_sql(schema) for cls, schema in _SCHEMA_BY_CLASS.items()}


@dataclass
class LoadReport:
    """Outcome of loading one archive entry."""

    source: str
    inserted: int = 0
    failures: list[ErrorData] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.failures

    def error(self) -> ErrorData | None:
        """All insert failures of the file folded into one DbInsertionError."""
        if not self.failures:
            return None
        return ErrorData(
            code=ErrorCode.DB_INSERTION,
            message=f"{len(self.failures)} of {self.inserted + len(self.failures)} record(s) from {self.source} were not stored",
            target=f"{__name__}.Loader.save_all",
            details=tuple(self.failures),
        )


class Loader:
    def __init__(self, database: Database, logger: PipelineLog) -> None:
        self._db = database
        self._log = logger

    def save(
        self,
        record: Record,
        region: str,
        season: Season,
        *,
        cursor: duckdb.DuckDBPyConnection | None = None,
    ) -> ErrorData | None:
        """Insert one record. Returns None on success, a DbInsertionError otherwise."""
        sql = _INSERT_SQL[type(record)]
        values = [season.token, region, *(getattr(record, name) for name in record.field_names())]
        try:
            if cursor is not None:
                cursor.execute(sql, values)
            else:
                with self._db.cursor() as cur:
                    cur.execute(sql, values)
        except duckdb.Error as exc:
            return ErrorData(
                code=ErrorCode.DB_INSERTION,
                message=f"Error: {exc} on {record.describe(region)}",
                target=f"{__name__}.Loader.save",
            )
        return None

    def save_all(self, records: Iterable[Record], region: str, season: Season, source: str) -> LoadReport:
        """Insert every record of one file, collecting failures instead of stopping."""
        report = LoadReport(source=source)
        with self._db.cursor() as cur:
            for record in records:
                failure = self.save(record, region, season, cursor=cur)
                if failure is None:
                    report.inserted += 1
                else:
                    report.failures.append(failure)
        self._log.debug(f"{source}: inserted {report.inserted}, failed {len(report.failures)}")
        return report

    def commit_season(self, season: Season, source_url: str, records_loaded: int) -> None:
        """Record ``season`` as ingested.

        Raises:
            PipelineError: DbInsertionError if the history row cannot be written.
        """
        sql = (
            f"INSERT INTO {HISTORY_TABLE} (season, source_url, records_loaded) VALUES (?, ?, ?) "
            "ON CONFLICT (season) DO UPDATE SET source_url = excluded.source_url, "
            "records_loaded = excluded.records_loaded, ingested_at = now()"
        )
        try:
            with self._db.cursor() as cur:
                cur.execute(sql, [season.token, source_url, records_loaded])
        except duckdb.Error as exc:
            raise PipelineError(
                ErrorCode.DB_INSERTION,
                f"Error: {exc} on history of season {season}",
                f"{__name__}.Loader.commit_season",
            ) from exc

    def discard_season(self, season: Season) -> int:
        """Delete every record row of ``season``. Returns the number of rows removed."""
        removed = 0
        try:
            with self._db.cursor() as cur:
                for schema in SCHEMAS.values():
                    row = cur.execute(
                        f"DELETE FROM {schema.table} WHERE season = ? RETURNING 1", [season.token]
                    ).fetchall()
                    removed += len(row)
        except duckdb.Error as exc:
            raise PipelineError(
                ErrorCode.DB_INSERTION,
                f"Error: {exc} while discarding season {season}",
                f"{__name__}.Loader.discard_season",
            ) from exc
        return removed
