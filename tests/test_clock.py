import calendar

import pytest

from sim7000sms.clock import is_leap_year, unix_time_in_seconds


@pytest.mark.parametrize(
    "year, expected",
    [(2000, True), (1900, False), (2024, True), (2023, False), (2100, False)],
)
def test_is_leap_year(year, expected):
    assert is_leap_year(year) is expected


def test_epoch_is_zero():
    assert unix_time_in_seconds(0, 0, 0, 1, 1, 1970) == 0


@pytest.mark.parametrize(
    "stamp",
    [
        (2025, 4, 2, 9, 49, 27),
        (2000, 2, 29, 23, 59, 59),
        (2024, 12, 31, 0, 0, 1),
        (1999, 1, 1, 12, 0, 0),
        (2038, 1, 19, 3, 14, 7),
    ],
)
def test_matches_calendar_timegm(stamp):
    year, month, day, hour, minute, sec = stamp
    expected = calendar.timegm((year, month, day, hour, minute, sec, 0, 0, 0))
    assert unix_time_in_seconds(sec, minute, hour, day, month, year) == expected


def test_consecutive_days_differ_by_one_day():
    first = unix_time_in_seconds(0, 0, 0, 28, 2, 2024)
    second = unix_time_in_seconds(0, 0, 0, 29, 2, 2024)
    assert second - first == 86400


def test_year_boundary_is_continuous():
    last = unix_time_in_seconds(59, 59, 23, 31, 12, 2023)
    first = unix_time_in_seconds(0, 0, 0, 1, 1, 2024)
    assert first - last == 1


@pytest.mark.parametrize("month", [0, 13])
def test_invalid_month_rejected(month):
    with pytest.raises(ValueError):
        unix_time_in_seconds(0, 0, 0, 1, month, 2025)