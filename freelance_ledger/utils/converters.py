"""Value conversion helpers shared by models, calculators and record adapters.

These helpers are dependency-free so that both the pydantic models and the
calculators can use them without import cycles.
"""

import datetime as dt
import re
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any, Optional, Union

MONEY_QUANTUM = Decimal("0.01")

_TIME_PATTERN = re.compile(r"^(\d{1,2}):(\d{2})(?::\d{2})?$")

Number = Union[int, float, str, Decimal]


def to_decimal(value: Number) -> Decimal:
    """Convert a numeric value to Decimal without float artefacts.

    Args:
        value: int, float, numeric string or Decimal

    Returns:
        The value as a Decimal

    Raises:
        ValueError: If the value cannot be converted

    Example:
        >>> to_decimal(0.1)
        Decimal('0.1')
        >>> to_decimal("12.50")
        Decimal('12.50')
    """
    if isinstance(value, Decimal):
        return value
    if isinstance(value, bool):
        raise ValueError(f"Cannot convert {value!r} to Decimal")
    try:
        result = Decimal(str(value).strip())
    except (InvalidOperation, TypeError) as e:
        raise ValueError(f"Cannot convert {value!r} to Decimal: {e}")
    if not result.is_finite():
        raise ValueError(f"Cannot convert {value!r} to Decimal: not finite")
    return result


def round2(value: Number) -> Decimal:
    """Round a monetary or hour value to 2 decimal places (ROUND_HALF_UP).

    Example:
        >>> round2(Decimal("2.675"))
        Decimal('2.68')
        >>> round2(25)
        Decimal('25.00')
    """
    return to_decimal(value).quantize(MONEY_QUANTUM, rounding=ROUND_HALF_UP)


def parse_time(value: Union[str, dt.time]) -> dt.time:
    """Parse a time of day in HH:MM or H:MM format.

    Seconds (HH:MM:SS) are accepted and dropped.

    Raises:
        ValueError: If the format or the ranges are invalid
    """
    if isinstance(value, dt.time):
        return value

    time_str = str(value).strip()
    match = _TIME_PATTERN.match(time_str)
    if not match:
        raise ValueError(f"Invalid time format: {time_str!r} (expected HH:MM)")

    hours = int(match.group(1))
    minutes = int(match.group(2))
    if hours > 23:
        raise ValueError(f"Invalid time format: hours must be 0-23, got {hours}")
    if minutes > 59:
        raise ValueError(f"Invalid time format: minutes must be 0-59, got {minutes}")

    return dt.time(hours, minutes)


def parse_date(value: Union[str, dt.date, dt.datetime]) -> dt.date:
    """Parse a date in ISO (YYYY-MM-DD), European (DD.MM.YYYY) or US format.

    ISO timestamps such as ``2024-03-01T10:00:00Z`` are truncated to the date.

    Raises:
        ValueError: If the date format is not recognized
    """
    if isinstance(value, dt.datetime):
        return value.date()
    if isinstance(value, dt.date):
        return value

    date_str = str(value).strip()
    if "T" in date_str:
        date_str = date_str.split("T", 1)[0]

    formats = [
        "%Y-%m-%d",  # ISO format: 2024-06-15
        "%d.%m.%Y",  # European format: 15.06.2024
        "%m/%d/%Y",  # US format: 06/15/2024
    ]
    for fmt in formats:
        try:
            return dt.datetime.strptime(date_str, fmt).date()
        except ValueError:
            continue

    raise ValueError(f"Invalid date format: {date_str!r}")


def parse_datetime(value: Any) -> Optional[dt.datetime]:
    """Parse an ISO timestamp as stored by the record layer, or None.

    Naive timestamps are taken to be UTC so that all results compare.
    """
    if value is None or value == "":
        return None
    if isinstance(value, dt.datetime):
        parsed = value
    else:
        text = str(value).strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            parsed = dt.datetime.fromisoformat(text)
        except ValueError:
            return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=dt.timezone.utc)
    return parsed


def format_time(value: dt.time) -> str:
    """Format a time of day as HH:MM."""
    return value.strftime("%H:%M")
