"""Duration engine for manual time entries and the timer.

Times of day carry no timezone. An entry whose end is earlier than its
start ran past midnight.
"""

import datetime as dt
from decimal import Decimal
from typing import Union

from freelance_ledger.utils.converters import parse_date, parse_time, round2

SECONDS_PER_HOUR = Decimal("3600")
ONE_DAY = dt.timedelta(days=1)


def elapsed_between(start_time: dt.time, end_time: dt.time) -> dt.timedelta:
    """Time from ``start_time`` to the next occurrence of ``end_time``.

    >>> elapsed_between(dt.time(23, 0), dt.time(1, 0))
    datetime.timedelta(seconds=7200)
    """
    anchor = dt.date.min
    start = dt.datetime.combine(anchor, start_time)
    end = dt.datetime.combine(anchor, end_time)
    if end < start:
        end += ONE_DAY
    return end - start


def calculate_duration_minutes(start_time: dt.time, end_time: dt.time) -> int:
    """Whole minutes between two times of day, wrapping past midnight.

    Equal times give 0, never 24 hours.

    >>> calculate_duration_minutes(dt.time(9, 0), dt.time(17, 0))
    480
    """
    return int(elapsed_between(start_time, end_time).total_seconds()) // 60


def seconds_to_decimal_hours(seconds: Union[int, float]) -> Decimal:
    """Hours with two decimals (ROUND_HALF_UP); 5400 seconds is 1.50."""
    return round2(Decimal(str(seconds)) / SECONDS_PER_HOUR)


def timedelta_to_decimal_hours(td: dt.timedelta) -> Decimal:
    """
    >>> timedelta_to_decimal_hours(dt.timedelta(minutes=10))
    Decimal('0.17')
    """
    return seconds_to_decimal_hours(td.total_seconds())


def compute_duration(
    date: Union[str, dt.date],
    start_time: Union[str, dt.time],
    end_time: Union[str, dt.time],
) -> Decimal:
    """Hours worked on ``date`` between two "HH:MM" (or dt.time) values.

    The date is only checked for validity. Seconds are ignored, so the
    result is a whole number of minutes expressed in hours.

    Raises:
        ValueError: If the date or either time cannot be parsed

    Example:
        >>> compute_duration("2024-01-01", "23:00", "01:00")
        Decimal('2.00')
        >>> compute_duration("2024-01-01", "09:00", "17:30")
        Decimal('8.50')
    """
    parse_date(date)
    start = parse_time(start_time).replace(second=0, microsecond=0)
    end = parse_time(end_time).replace(second=0, microsecond=0)
    return timedelta_to_decimal_hours(elapsed_between(start, end))
