"""Conversion of calendar dates to Unix time."""

from __future__ import annotations

EPOCH_YEAR = 1970
SEC_PER_MIN = 60
SEC_PER_HOUR = 3600
SEC_PER_DAY = 86400

_DAYS_PER_MONTH = (
    (31, 28, 31, 30, 31, 30, 31, 31, 30, 31, 30, 31),
    (31, 29, 31, 30, 31, 30, 31, 31, 30, 31, 30, 31),
)
_DAYS_PER_YEAR = (365, 366)


def is_leap_year(year: int) -> bool:
    """Return True if ``year`` is a Gregorian leap year."""
    return (year % 4 == 0 and year % 100 != 0) or year % 400 == 0


def unix_time_in_seconds(
    sec: int, minute: int, hour: int, day: int, month: int, year: int
) -> int:
    """Return seconds since 1970-01-01 00:00:00 UTC, as an unsigned 32-bit value.

    ``month`` runs from 1 to 12 and ``day`` from 1.
    """
    if not 1 <= month <= 12:
        raise ValueError(f"month must be between 1 and 12, got {month}")

    days = sum(
        _DAYS_PER_YEAR[is_leap_year(y)] for y in range(EPOCH_YEAR, year)
    )
    days += sum(_DAYS_PER_MONTH[is_leap_year(year)][: month - 1])
    days += day - 1

    total = days * SEC_PER_DAY + hour * SEC_PER_HOUR + minute * SEC_PER_MIN + sec
    return total & 0xFFFFFFFF