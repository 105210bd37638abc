# plvr/sources/plvr/parse.py
#
# Parse one lvr_land CSV entry into typed records.
#
# Design decisions:
#   - Polars reads the file with every column as Utf8 (infer_schema_length=0)
#     so that numeric validation happens here, per declared column, and can
#     name the offending row instead of silently producing nulls.
#   - The header line and the number of non-data lines between header and
#     data come from the kind's RecordSchema (see records.py).
#   - Missing cells stay empty strings for TEXT columns (copied verbatim) and
#     become None for INT and ERA_DATE columns.
#   - A non-integer INT cell fails the whole file with UnmarshalCsvError.
#     An undecodable ERA_DATE cell only nulls that record's decoded date and
#     is returned in ParseResult.date_errors; the caller reports those as one
#     aggregated FormatError.
#
# Invariants:
#   - len(result.records) equals the number of data lines in the file.
#   - Header lines are never returned as records.
from __future__ import annotations

import io
from dataclasses import dataclass, field
from typing import Any

import polars as pl

from plvr.common.era_date import decode
from plvr.errors import ErrorCode, ErrorData, FormatError, PipelineError
from plvr.sources.plvr.records import SCHEMAS, FieldKind, Record, RecordKind, RecordSchema

_TARGET = f"{__name__}.parse_records"
_BOM = b"\xef\xbb\xbf"


@dataclass
class ParseResult:
    kind: RecordKind
    records: list[Record] = field(default_factory=list)
    date_errors: list[ErrorData] = field(default_factory=list)

    def date_error_summary(self, source: str) -> ErrorData | None:
        """Aggregate per-cell date failures into one ErrorData, or None."""
        if not self.date_errors:
            return None
        return ErrorData(
            code=ErrorCode.ROC_ERA_FORMATTING,
            message=f"{len(self.date_errors)} era date value(s) could not be decoded in {source}",
            target=_TARGET,
            details=tuple(self.date_errors),
        )


def _unmarshal_error(message: str) -> PipelineError:
    return PipelineError(ErrorCode.UNMARSHAL_CSV, message, _TARGET)


def _read_frame(raw: bytes, schema: RecordSchema) -> pl.DataFrame:
    if raw.startswith(_BOM):
        raw = raw[len(_BOM):]
    # A header-only body ending in a newline otherwise reads as one empty row.
    raw = raw.rstrip(b"\r\n")
    try:
        frame = pl.read_csv(
            io.BytesIO(raw),
            has_header=True,
            skip_rows=schema.header_row,
            skip_rows_after_header=schema.data_start - schema.header_row - 1,
            infer_schema_length=0,
            missing_utf8_is_empty_string=True,
            encoding="utf8",
        )
    except pl.exceptions.PolarsError as exc:
        raise _unmarshal_error(f"{schema.kind.value}: unreadable CSV: {exc}") from exc
    frame = frame.rename({name: name.strip() for name in frame.columns})
    if frame.width == 0:
        return frame
    return frame.filter(~pl.all_horizontal(pl.all().fill_null("") == ""))


def _parse_int_column(series: pl.Series, label: str, schema: RecordSchema) -> list[int | None]:
    text = series.str.strip_chars()
    parsed = text.cast(pl.Int64, strict=False)
    invalid = text.is_not_null() & (text != "") & parsed.is_null()
    if invalid.any():
        index = int(invalid.arg_true()[0])
        line = index + schema.data_start + 1
        raise _unmarshal_error(
            f"{schema.kind.value}: line {line}, column {label!r}: {text[index]!r} is not an integer"
        )
    return parsed.to_list()


def parse_records(kind: RecordKind, raw: bytes) -> ParseResult:
    """Parse the raw bytes of one archive entry into records of ``kind``.

    Args:
        kind: Record kind decided by the archive classifier.
        raw:  UTF-8 CSV bytes (optionally BOM-prefixed) with two header lines.

    Returns:
        ParseResult with one record per data line and any date decode failures.

    Raises:
        PipelineError: UnmarshalCsvError if the CSV cannot be read, a declared
            header label is missing, or any INT cell is not an integer.
    """
    schema = SCHEMAS[kind]
    frame = _read_frame(raw, schema)

    missing = [spec.label for spec in schema.columns if spec.label not in frame.columns]
    if missing:
        raise _unmarshal_error(f"{kind.value}: header is missing column(s) {missing}")

    values: dict[str, list[Any]] = {}
    for spec in schema.columns:
        if spec.kind is FieldKind.INT:
            values[spec.field] = _parse_int_column(frame[spec.label], spec.label, schema)
        else:
            values[spec.field] = frame[spec.label].to_list()

    result = ParseResult(kind=kind)
    date_specs = [(spec, spec.decoded_field) for spec in schema.columns if spec.decoded_field]

    for index in range(frame.height):
        row = {name: column[index] for name, column in values.items()}
        for spec, decoded_field in date_specs:
            text = (row[spec.field] or "").strip()
            row[decoded_field] = None
            if not text:
                continue
            try:
                row[decoded_field] = decode(text)
            except FormatError as exc:
                line = index + schema.data_start + 1
                result.date_errors.append(
                    ErrorData(
                        code=exc.data.code,
                        message=f"line {line}, serial {row.get('serial_number')}, column {spec.label!r}: {exc.data.message}",
                        target=exc.data.target,
                    )
                )
        result.records.append(schema.record_cls(**row))

    return result
