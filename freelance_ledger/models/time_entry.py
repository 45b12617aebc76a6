"""Time entry data model.

This module defines the TimeEntry model which represents a block of work
logged against a project, either manually or by stopping a timer.
"""

import datetime as dt
from decimal import Decimal
from typing import Any, Optional, Union

from pydantic import Field, field_validator

from freelance_ledger.models.base import BaseDataModel, coerce_decimal, strip_required
from freelance_ledger.utils.converters import (
    parse_date,
    parse_datetime,
    parse_time,
    round2,
)


class TimeEntry(BaseDataModel):
    """Represents time worked on a project.

    Attributes:
        id: Record id once persisted
        date: Date the work started
        start_time: Work start time
        end_time: Work end time (may be on the next day)
        duration: Hours worked, rounded to 2 decimals
        description: What was worked on
        project_id: Project the time is logged against
        created_on: Creation timestamp assigned by the record layer

    Example:
        >>> entry = TimeEntry(
        ...     date="2024-01-01",
        ...     start_time="09:00",
        ...     end_time="17:30",
        ...     duration="8.5",
        ...     description="API integration",
        ...     project_id=3,
        ... )
        >>> entry.duration
        Decimal('8.50')
    """

    id: Optional[int] = Field(None, description="Record id")
    date: dt.date = Field(..., description="Date of work")
    start_time: dt.time = Field(..., description="Work start time")
    end_time: dt.time = Field(..., description="Work end time")
    duration: Decimal = Field(..., ge=0, description="Hours worked")
    description: str = Field(..., min_length=1, description="Work description")
    project_id: int = Field(..., description="Project record id")
    created_on: Optional[dt.datetime] = Field(None, description="Creation time")

    @field_validator("date", mode="before")
    @classmethod
    def parse_entry_date(cls, v: Any) -> dt.date:
        """Accept ISO, European and US date strings."""
        return parse_date(v)

    @field_validator("start_time", "end_time", mode="before")
    @classmethod
    def parse_clock_time(cls, v: Union[str, dt.time]) -> dt.time:
        """Accept HH:MM strings."""
        return parse_time(v)

    @field_validator("duration", mode="before")
    @classmethod
    def convert_duration(cls, v: Union[str, int, float, Decimal]) -> Decimal:
        """Store hours as Decimal with 2 decimal precision."""
        return round2(coerce_decimal(v))

    @field_validator("description")
    @classmethod
    def validate_description(cls, v: str, info) -> str:
        """Validate that the description is not whitespace only."""
        return strip_required(v, info.field_name)

    @field_validator("created_on", mode="before")
    @classmethod
    def parse_created_on(cls, v: Any) -> Optional[dt.datetime]:
        """Parse the record layer's ISO timestamp."""
        return parse_datetime(v)
