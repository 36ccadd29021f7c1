from datetime import date

import pytest

from gastos_hormigas.core.months import MonthMarker


def test_of_uses_one_based_month():
    assert MonthMarker.of(date(2024, 2, 20)) == MonthMarker(2024, 2)


def test_from_legacy_zero_based_marker():
    assert MonthMarker.from_legacy("2024-0") == MonthMarker(2024, 1)
    assert MonthMarker.from_legacy("2023-11") == MonthMarker(2023, 12)


@pytest.mark.parametrize("value", ["2024", "2024-12", "2024--1", "abc-1", ""])
def test_from_legacy_rejects_bad_markers(value):
    with pytest.raises(ValueError):
        MonthMarker.from_legacy(value)


def test_last_day_handles_leap_years():
    assert MonthMarker(2024, 2).last_day == 29
    assert MonthMarker(2023, 2).last_day == 28
    assert MonthMarker(2024, 4).last_day == 30


def test_clamp_day():
    assert MonthMarker(2024, 2).clamp_day(31) == date(2024, 2, 29)
    assert MonthMarker(2024, 3).clamp_day(15) == date(2024, 3, 15)


def test_str_is_unambiguous():
    assert str(MonthMarker(2024, 2)) == "2024-02"
