# plvr/common/era_date.py
#
# Conversion between compact ROC-era date strings and calendar dates.
#
# The source files encode dates as "<era-year>MMDD" where era-year is the
# common-era year minus 1911, e.g. "1011019" is 2012-10-19 and "891011" is
# 2000-10-11. The era-year part has no fixed width.
#
# Invariants:
#   - decode never validates month/day ranges. Out-of-range values roll over
#     the way calendar arithmetic does (month 13 -> January of the next year,
#     day 0 -> last day of the previous month).
#   - Only ASCII digits are accepted; signs and whitespace are format errors.
from __future__ import annotations

from datetime import date, timedelta

from plvr.errors import FormatError

ERA_OFFSET = 1911

_TARGET = f"{__name__}.decode"


def overflow_date(year: int, month: int, day: int) -> date:
    """Build a date, normalising month/day overflow instead of rejecting it.

    Raises:
        ValueError / OverflowError: if the normalised year leaves the range
            supported by ``datetime.date``.
    """
    year += (month - 1) // 12
    month = (month - 1) % 12 + 1
    return date(year, month, 1) + timedelta(days=day - 1)


def _digits(value: str, part: str, code: str) -> int:
    if not value or not (value.isascii() and value.isdigit()):
        raise FormatError(
            f"Incorrect ROC era format: {code}, {part} extracting error: {value!r} is not a number",
            _TARGET,
        )
    return int(value)


def decode(code: str) -> date:
    """Decode a compact ROC-era date string into a calendar date.

    Args:
        code: Digit string whose last four characters are MMDD, preceded by
            the era-year (e.g. "1011019", "891011").

    Returns:
        The corresponding common-era date.

    Raises:
        FormatError: if ``code`` is shorter than six characters, or the year,
            month or day part is not a non-negative integer.
    """
    if len(code) < 6:
        raise FormatError(
            f"Incorrect ROC era format {code}, expect length > 5, e.g, 1011019, 891011",
            _TARGET,
        )

    era_year = _digits(code[:-4], "year", code)
    month = _digits(code[-4:-2], "month", code)
    day = _digits(code[-2:], "day", code)

    try:
        return overflow_date(era_year + ERA_OFFSET, month, day)
    except (ValueError, OverflowError) as exc:
        raise FormatError(f"Incorrect ROC era format: {code}, {exc}", _TARGET) from exc


def encode(value: date) -> str:
    """Encode a calendar date as a compact ROC-era string (inverse of decode)."""
    era_year = value.year - ERA_OFFSET
    if era_year < 0:
        raise FormatError(f"Date {value.isoformat()} predates the ROC era", f"{__name__}.encode")
    return f"{era_year:02d}{value.month:02d}{value.day:02d}"
