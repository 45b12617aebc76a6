"""Output formatting utilities for CLI."""

from decimal import Decimal
from typing import Any, List, Sequence, Union

import click

from freelance_ledger.utils.converters import round2

Number = Union[int, float, str, Decimal]

# icon, colour, bold
_MESSAGE_STYLES = {
    "success": ("✓", "green", True),
    "error": ("✗", "red", True),
    "warning": ("⚠", "yellow", True),
    "info": ("ℹ", "blue", False),
}


def _styled(kind: str, message: str) -> str:
    icon, colour, bold = _MESSAGE_STYLES[kind]
    return click.style(f"{icon} {message}", fg=colour, bold=bold)


def format_success(message: str) -> str:
    return _styled("success", message)


def format_error(message: str) -> str:
    return _styled("error", message)


def format_warning(message: str) -> str:
    return _styled("warning", message)


def format_info(message: str) -> str:
    return _styled("info", message)


def format_currency(amount: Number, symbol: str = "$") -> str:
    """Format money with a thousands separator and two decimals.

    Example:
        >>> format_currency(Decimal("1234.5"))
        '$1,234.50'
        >>> format_currency(-20)
        '-$20.00'
    """
    value = round2(amount)
    sign = "-" if value < 0 else ""
    return f"{sign}{symbol}{abs(value):,.2f}"


def format_hours(hours: Number) -> str:
    """Format hours with two decimals, e.g. ``8.50h``."""
    return f"{round2(hours):.2f}h"


def format_percent(rate: Number) -> str:
    """Format a rate as a percentage; 0.10 becomes ``10%``."""
    percent = round2(Decimal(str(rate)) * 100).normalize()
    return f"{percent:f}%"


def format_table(
    headers: Sequence[str], rows: Sequence[Sequence[Any]], max_width: int = 40
) -> str:
    """Render rows as a boxed plain-text table.

    Each column is as wide as its longest cell, capped at ``max_width``;
    longer cells are cut. Cells beyond the header count are dropped, and
    an empty header list renders nothing.
    """
    if not headers:
        return ""

    columns = len(headers)
    cells: List[List[str]] = [[str(value) for value in headers]]
    cells += [[str(value) for value in row[:columns]] for row in rows]
    widths = [
        min(max(len(line[i]) for line in cells if i < len(line)), max_width)
        for i in range(columns)
    ]

    rule = "+" + "+".join("-" * (width + 2) for width in widths) + "+"

    def line(values: List[str]) -> str:
        padded = [f" {value[:width]:<{width}} " for value, width in zip(values, widths)]
        return "|" + "|".join(padded) + "|"

    out = [rule, line(cells[0]), rule]
    if rows:
        out += [line(values) for values in cells[1:]]
        out.append(rule)
    return "\n".join(out)
