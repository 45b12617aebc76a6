"""Base model for all data models in the freelance ledger.

This module provides a base Pydantic model with common configuration
and the shared field validators used by the entity models.
"""

import datetime as dt
from decimal import Decimal
from typing import Any, List, Optional, Union

from pydantic import BaseModel, ConfigDict

from freelance_ledger.utils.converters import parse_date, to_decimal


class BaseDataModel(BaseModel):
    """Base class for all data models.

    Provides common configuration for:
    - Validation with type checking
    - Validation on assignment (form edits are validated as they happen)
    - Rejection of unknown fields (raw records go through the adapters first)
    - Arbitrary types support for dates, times, decimals

    Example:
        >>> class Contact(BaseDataModel):
        ...     name: str
        ...     email: str
        >>> contact = Contact(name="Alice", email="alice@example.com")
        >>> contact.model_dump()
        {'name': 'Alice', 'email': 'alice@example.com'}
    """

    model_config = ConfigDict(
        # Allow arbitrary types like Decimal, date, time
        arbitrary_types_allowed=True,
        # Validate on assignment to catch errors early
        validate_assignment=True,
        strict=False,
        # Raw storage records must be mapped by the record adapters
        extra="forbid",
        frozen=False,
    )


def coerce_decimal(v: Union[str, int, float, Decimal]) -> Decimal:
    """Convert numeric input to Decimal for precision.

    Used as a ``mode="before"`` field validator body.

    Raises:
        ValueError: If the value cannot be converted to Decimal
    """
    return to_decimal(v)


def coerce_optional_date(v: Any) -> Optional[dt.date]:
    """Parse optional date input; empty strings become None."""
    if v is None or v == "":
        return None
    return parse_date(v)


def strip_required(v: str, field_name: str) -> str:
    """Validate that a string field is not empty or whitespace only.

    Raises:
        ValueError: If the value is empty or whitespace only
    """
    if not v or not v.strip():
        raise ValueError(f"{field_name} cannot be empty or whitespace")
    return v.strip()


def coerce_tags(v: Any) -> List[str]:
    """Accept comma separated tag strings as stored by the record layer."""
    if v is None or v == "":
        return []
    if isinstance(v, str):
        return [tag.strip() for tag in v.split(",") if tag.strip()]
    return list(v)
