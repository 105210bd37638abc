# plvr/sources/plvr/seasons.py
#
# Season identifiers and the quarterly season range.
#
# A season is an (era-year, quarter) pair rendered as "<era-year>S<quarter>",
# e.g. "102S1" for 2013 Q1. The token is both the cache directory name and
# the "season" query parameter of the download endpoint.
#
# Invariants:
#   - SeasonRange iterates lazily and is restartable: iterating twice yields
#     the same seasons for the same (start, end).
#   - Seasons are yielded in increasing chronological order without
#     duplicates; a season is included while its step date is before `end`.
from __future__ import annotations

import re
from collections.abc import Iterator
from dataclasses import dataclass
from datetime import date

from plvr.common.era_date import ERA_OFFSET, overflow_date

_TOKEN_RE = re.compile(r"^(\d+)S([1-4])$")


def month_to_quarter(month: int) -> int:
    """Map a calendar month (1-12) to its quarter (1-4)."""
    if not 1 <= month <= 12:
        raise ValueError(f"month out of range: {month}")
    return (month - 1) // 3 + 1


@dataclass(frozen=True, order=True)
class Season:
    era_year: int
    quarter: int

    def __post_init__(self) -> None:
        if not 1 <= self.quarter <= 4:
            raise ValueError(f"quarter must be 1-4, got {self.quarter}")
        if self.era_year < 0:
            raise ValueError(f"era year must be non-negative, got {self.era_year}")

    @classmethod
    def from_date(cls, value: date) -> Season:
        return cls(era_year=value.year - ERA_OFFSET, quarter=month_to_quarter(value.month))

    @classmethod
    def parse(cls, token: str) -> Season:
        """Parse a token such as "102S1"."""
        match = _TOKEN_RE.match(token.strip())
        if match is None:
            raise ValueError(f"invalid season token: {token!r}")
        return cls(era_year=int(match.group(1)), quarter=int(match.group(2)))

    @property
    def common_year(self) -> int:
        return self.era_year + ERA_OFFSET

    @property
    def token(self) -> str:
        return f"{self.era_year}S{self.quarter}"

    def __str__(self) -> str:
        return self.token


class SeasonRange:
    """Quarterly seasons from ``start`` (inclusive) up to ``end`` (exclusive)."""

    def __init__(self, start: date, end: date) -> None:
        self.start = start
        self.end = end

    def __iter__(self) -> Iterator[Season]:
        months = 0
        step = self.start
        while step < self.end:
            yield Season.from_date(step)
            months += 3
            step = overflow_date(self.start.year, self.start.month + months, self.start.day)

    def __repr__(self) -> str:
        return f"SeasonRange({self.start.isoformat()}, {self.end.isoformat()})"


def enumerate_seasons(start: date, end: date) -> SeasonRange:
    """Return the restartable sequence of seasons between start and end."""
    return SeasonRange(start, end)
