# tests/plvr/test_parse.py
#
# Tests for turning lvr_land CSV entries into typed records.
#
# Fixtures follow the published layout: localized header on the first line,
# English header on the second, data from the third line on.
from __future__ import annotations

from collections.abc import Callable
from datetime import date

import pytest

from plvr.errors import ErrorCode, PipelineError
from plvr.sources.plvr.parse import parse_records
from plvr.sources.plvr.records import SCHEMAS, NewHouseRecord, RecordKind, RentalRecord, SaleRecord

CsvMaker = Callable[..., bytes]


def test_single_sale_row_decodes_dates_and_integers(make_csv: CsvMaker, sale_row: dict[str, str]) -> None:
    """One data row gives one record with decoded dates and parsed integers."""
    result = parse_records(RecordKind.SALE, make_csv(RecordKind.SALE, [sale_row]))

    assert len(result.records) == 1
    record = result.records[0]
    assert isinstance(record, SaleRecord)
    assert record.serial_number == "RPOMNLQJJHIFFAA08CA"
    assert record.transaction_date_raw == "1011019"
    assert record.transaction_date == date(2012, 10, 19)
    assert record.construction_complete_date == date(1996, 3, 12)
    assert record.total_price == 25800000
    assert record.unit_price_per_sqm == 221635
    assert (record.number_of_rooms, record.number_of_living_rooms, record.number_of_bathrooms) == (3, 2, 2)
    assert record.building_area_sqm == "116.41"
    assert result.date_errors == []


def test_non_numeric_price_fails_whole_file(make_csv: CsvMaker, sale_row: dict[str, str]) -> None:
    rows = [
        sale_row,
        {**sale_row, "serial_number": "X2"},
        {**sale_row, "serial_number": "X3", "total_price": "about 2 million"},
    ]

    with pytest.raises(PipelineError) as excinfo:
        parse_records(RecordKind.SALE, make_csv(RecordKind.SALE, rows))

    assert excinfo.value.code is ErrorCode.UNMARSHAL_CSV
    assert "總價元" in excinfo.value.data.message
    assert "line 5" in excinfo.value.data.message


def test_english_header_line_is_not_a_record(make_csv: CsvMaker, sale_row: dict[str, str]) -> None:
    rows = [{**sale_row, "serial_number": "S1"}, {**sale_row, "serial_number": "S2"}]

    result = parse_records(RecordKind.SALE, make_csv(RecordKind.SALE, rows))

    assert [r.serial_number for r in result.records] == ["S1", "S2"]


def test_header_only_file_has_no_records(make_csv: CsvMaker) -> None:
    assert parse_records(RecordKind.SALE, make_csv(RecordKind.SALE, [])).records == []


def test_missing_header_label_fails_with_unmarshal_error(make_csv: CsvMaker, sale_row: dict[str, str]) -> None:
    lines = make_csv(RecordKind.SALE, [sale_row]).decode("utf-8").split("\n")
    lines[0] = lines[0].replace("備註", "附註")

    with pytest.raises(PipelineError) as excinfo:
        parse_records(RecordKind.SALE, "\n".join(lines).encode("utf-8"))

    assert excinfo.value.code is ErrorCode.UNMARSHAL_CSV
    assert "備註" in excinfo.value.data.message


def test_empty_cells_become_none_for_numbers_and_stay_empty_for_text(
    make_csv: CsvMaker, sale_row: dict[str, str]
) -> None:
    row = {**sale_row, "parking_price": "", "transaction_date_raw": "", "notes": ""}

    record = parse_records(RecordKind.SALE, make_csv(RecordKind.SALE, [row])).records[0]

    assert record.parking_price is None
    assert record.transaction_date is None
    assert record.transaction_date_raw == ""
    assert record.notes == ""


def test_bad_era_date_nulls_the_date_and_is_reported(make_csv: CsvMaker, sale_row: dict[str, str]) -> None:
    rows = [sale_row, {**sale_row, "serial_number": "BAD", "transaction_date_raw": "10110"}]

    result = parse_records(RecordKind.SALE, make_csv(RecordKind.SALE, rows))

    assert len(result.records) == 2
    assert result.records[1].transaction_date is None
    assert result.records[1].transaction_date_raw == "10110"
    assert len(result.date_errors) == 1
    assert "BAD" in result.date_errors[0].message

    summary = result.date_error_summary("102S1/a_lvr_land_a.csv")
    assert summary is not None
    assert summary.code is ErrorCode.ROC_ERA_FORMATTING
    assert len(summary.details) == 1
    assert "102S1/a_lvr_land_a.csv" in summary.message


def test_no_date_errors_means_no_summary(make_csv: CsvMaker, sale_row: dict[str, str]) -> None:
    result = parse_records(RecordKind.SALE, make_csv(RecordKind.SALE, [sale_row]))

    assert result.date_error_summary("102S1/a_lvr_land_a.csv") is None


def test_byte_order_mark_is_ignored(make_csv: CsvMaker, sale_row: dict[str, str]) -> None:
    raw = b"\xef\xbb\xbf" + make_csv(RecordKind.SALE, [sale_row])

    assert len(parse_records(RecordKind.SALE, raw).records) == 1


def test_rental_row(make_csv: CsvMaker, rental_row: dict[str, str]) -> None:
    record = parse_records(RecordKind.RENTAL, make_csv(RecordKind.RENTAL, [rental_row])).records[0]

    assert isinstance(record, RentalRecord)
    assert record.has_furniture == "有"
    assert record.total_price == 18000
    assert record.transaction_date == date(2013, 1, 5)


def test_new_house_row(make_csv: CsvMaker, sale_row: dict[str, str]) -> None:
    record = parse_records(RecordKind.NEW_HOUSE, make_csv(RecordKind.NEW_HOUSE, [sale_row])).records[0]

    assert isinstance(record, NewHouseRecord)
    assert record.total_price == 25800000


def test_every_record_field_has_a_column() -> None:
    """Each schema fills every field of its record class exactly once."""
    for schema in SCHEMAS.values():
        filled = [spec.field for spec in schema.columns]
        filled += [spec.decoded_field for spec in schema.columns if spec.decoded_field]
        assert sorted(filled) == sorted(schema.record_cls.field_names())


def test_field_counts_per_kind() -> None:
    assert len(SCHEMAS[RecordKind.SALE].columns) == 33
    assert len(SCHEMAS[RecordKind.NEW_HOUSE].columns) == 28
    assert len(SCHEMAS[RecordKind.RENTAL].columns) == 29


def test_trailing_blank_lines_are_not_records(make_csv: CsvMaker, sale_row: dict[str, str]) -> None:
    raw = make_csv(RecordKind.SALE, [sale_row, {**sale_row, "serial_number": "S2"}]) + b"\r\n\n"

    result = parse_records(RecordKind.SALE, raw)

    assert [r.serial_number for r in result.records] == ["RPOMNLQJJHIFFAA08CA", "S2"]


def test_header_only_file_without_final_newline(make_csv: CsvMaker) -> None:
    raw = make_csv(RecordKind.RENTAL, []).rstrip(b"\n")

    assert parse_records(RecordKind.RENTAL, raw).records == []
