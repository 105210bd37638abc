# plvr/storage/database.py
#
# DuckDB handle shared by the dedup gate and the loader.
#
# Design decisions:
#   - One DuckDB connection per run. Worker threads never use it directly:
#     each operation takes its own cursor() (a duplicate connection onto the
#     same database), which is DuckDB's supported way to share a database
#     between threads.
#   - Schema is read from schema.sql at start-up (not imported as a module)
#     so the SQL file remains the single source of truth for table structure.
#     Every statement in it is idempotent.
from __future__ import annotations

import threading
from pathlib import Path

import duckdb

SCHEMA_PATH = Path(__file__).parent / "schema.sql"
MEMORY = ":memory:"


class Database:
    """Owner of the run's DuckDB connection."""

    def __init__(self, path: Path | str = MEMORY) -> None:
        self.path = str(path)
        if self.path != MEMORY:
            Path(self.path).parent.mkdir(parents=True, exist_ok=True)
        self._conn = duckdb.connect(self.path)
        self._lock = threading.Lock()

    def cursor(self) -> duckdb.DuckDBPyConnection:
        """New cursor for the calling thread; close it when done."""
        with self._lock:
            return self._conn.cursor()

    def apply_schema(self) -> None:
        schema_sql = SCHEMA_PATH.read_text(encoding="utf-8")
        with self._lock:
            self._conn.execute(schema_sql)

    def row_count(self, table: str, season: str | None = None) -> int:
        """Number of rows in ``table``, optionally restricted to one season."""
        with self.cursor() as cur:
            if season is None:
                row = cur.execute(f"SELECT count(*) FROM {table}").fetchone()
            else:
                row = cur.execute(f"SELECT count(*) FROM {table} WHERE season = ?", [season]).fetchone()
        return int(row[0]) if row else 0

    def close(self) -> None:
        with self._lock:
            self._conn.close()

    def __enter__(self) -> Database:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()
