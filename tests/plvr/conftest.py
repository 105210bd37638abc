# tests/plvr/conftest.py
#
# Shared fixtures: CSV bodies in the published two-header layout, in-memory
# season bundles, an isolated config under tmp_path and an in-memory DuckDB
# with the schema applied.
from __future__ import annotations

import io
import zipfile
from collections.abc import Callable, Generator, Mapping
from pathlib import Path

import pytest

from plvr.config import PlvrConfig
from plvr.log import PipelineLog
from plvr.sources.plvr.records import SCHEMAS, RecordKind
from plvr.storage.database import Database

TEST_API_URL = "https://plvr.test/DownloadSeason?season={season}&type=zip&fileName=lvr_landcsv.zip"

_SALE_ROW: dict[str, str] = {
    "serial_number": "RPOMNLQJJHIFFAA08CA",
    "district": "大安區",
    "transaction_type": "房地(土地+建物)",
    "address": "臺北市大安區信義路四段1號",
    "land_shifting_area_sqm": "20.5",
    "urban_land_use": "住",
    "transaction_date_raw": "1011019",
    "transaction_pen_number": "土地1建物1車位0",
    "floor": "五層",
    "total_floor": "十二層",
    "building_type": "住宅大樓(11層含以上有電梯)",
    "primary_use": "住家用",
    "primary_material": "鋼筋混凝土造",
    "construction_complete_date_raw": "0850312",
    "building_area_sqm": "116.41",
    "number_of_rooms": "3",
    "number_of_living_rooms": "2",
    "number_of_bathrooms": "2",
    "partitioned": "有",
    "has_management_organization": "有",
    "total_price": "25800000",
    "unit_price_per_sqm": "221635",
    "parking_price": "0",
    "main_building_area_sqm": "90.1",
    "elevator": "有",
}

_RENTAL_ROW: dict[str, str] = {
    "serial_number": "RPUNMLSJMHIFFAA37DA",
    "district": "中山區",
    "transaction_type": "租賃房屋",
    "transaction_date_raw": "1020105",
    "number_of_rooms": "1",
    "has_furniture": "有",
    "total_price": "18000",
}


@pytest.fixture
def sale_row() -> dict[str, str]:
    """A complete, valid sale row keyed by record field name."""
    return dict(_SALE_ROW)


@pytest.fixture
def rental_row() -> dict[str, str]:
    return dict(_RENTAL_ROW)


@pytest.fixture
def make_csv() -> Callable[..., bytes]:
    """Build a CSV body: localized header, English header, then data rows."""

    def _make(kind: RecordKind, rows: list[Mapping[str, str]]) -> bytes:
        columns = SCHEMAS[kind].columns
        lines = [
            ",".join(spec.label for spec in columns),
            ",".join(spec.field for spec in columns),
        ]
        for row in rows:
            lines.append(",".join(row.get(spec.field, "") for spec in columns))
        return ("\n".join(lines) + "\n").encode("utf-8")

    return _make


@pytest.fixture
def make_bundle() -> Callable[[Mapping[str, bytes]], bytes]:
    """Zip the given {entry name: content} mapping in memory."""

    def _make(entries: Mapping[str, bytes]) -> bytes:
        buffer = io.BytesIO()
        with zipfile.ZipFile(buffer, "w", compression=zipfile.ZIP_STORED) as archive:
            for name, content in entries.items():
                archive.writestr(name, content)
        return buffer.getvalue()

    return _make


@pytest.fixture
def logger() -> PipelineLog:
    return PipelineLog(verbose=True, stream=io.StringIO(), error_stream=io.StringIO())


@pytest.fixture
def config(tmp_path: Path) -> PlvrConfig:
    return PlvrConfig(
        data_dir=tmp_path / "data",
        duckdb_path=tmp_path / "plvr.duckdb",
        api_url=TEST_API_URL,
        max_workers=4,
        max_jitter_seconds=0,
        download_timeout=5,
    )


@pytest.fixture
def database() -> Generator[Database, None, None]:
    db = Database()
    db.apply_schema()
    yield db
    db.close()
