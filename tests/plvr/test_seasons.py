# tests/plvr/test_seasons.py
#
# Tests for season identifiers and the quarterly season range.
from __future__ import annotations

from datetime import date

import pytest

from plvr.sources.plvr.seasons import Season, enumerate_seasons, month_to_quarter


def test_first_three_seasons_of_2013() -> None:
    """2013-01-01 .. 2013-08-15 yields 2013 Q1, Q2 and Q3 in order."""
    seasons = list(enumerate_seasons(date(2013, 1, 1), date(2013, 8, 15)))

    assert seasons == [Season(102, 1), Season(102, 2), Season(102, 3)]
    assert [s.token for s in seasons] == ["102S1", "102S2", "102S3"]


def test_range_is_restartable() -> None:
    seasons = enumerate_seasons(date(2013, 1, 1), date(2014, 1, 1))

    assert list(seasons) == list(seasons)


def test_long_range_is_ordered_without_duplicates() -> None:
    seasons = list(enumerate_seasons(date(2013, 1, 1), date(2026, 10, 19)))

    assert seasons == sorted(seasons)
    assert len(set(seasons)) == len(seasons) == 56
    assert seasons[-1] == Season(115, 4)


def test_later_end_only_adds_trailing_seasons() -> None:
    earlier = list(enumerate_seasons(date(2013, 1, 1), date(2015, 5, 1)))
    later = list(enumerate_seasons(date(2013, 1, 1), date(2016, 2, 1)))

    assert later[: len(earlier)] == earlier
    assert len(later) > len(earlier)


def test_end_not_after_start_is_empty() -> None:
    assert list(enumerate_seasons(date(2013, 1, 1), date(2013, 1, 1))) == []
    assert list(enumerate_seasons(date(2013, 1, 1), date(2012, 1, 1))) == []


def test_start_inside_a_quarter() -> None:
    seasons = list(enumerate_seasons(date(2013, 2, 15), date(2013, 6, 1)))

    assert seasons == [Season(102, 1), Season(102, 2)]


@pytest.mark.parametrize(
    ("month", "quarter"),
    [(1, 1), (3, 1), (4, 2), (6, 2), (7, 3), (9, 3), (10, 4), (12, 4)],
)
def test_month_to_quarter(month: int, quarter: int) -> None:
    assert month_to_quarter(month) == quarter


def test_month_to_quarter_rejects_out_of_range() -> None:
    with pytest.raises(ValueError):
        month_to_quarter(13)


def test_season_from_date() -> None:
    assert Season.from_date(date(2013, 8, 15)) == Season(102, 3)
    assert Season.from_date(date(2013, 8, 15)).common_year == 2013


def test_season_parse_round_trips_token() -> None:
    assert Season.parse("112S4") == Season(112, 4)
    assert str(Season.parse("112S4")) == "112S4"


@pytest.mark.parametrize("token", ["112S5", "112Q1", "S1", "112s1", ""])
def test_season_parse_rejects_invalid_tokens(token: str) -> None:
    with pytest.raises(ValueError):
        Season.parse(token)


def test_season_rejects_bad_quarter() -> None:
    with pytest.raises(ValueError):
        Season(102, 0)
