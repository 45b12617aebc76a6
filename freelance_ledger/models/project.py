"""Project and task data models.

This module defines the Project model, which carries the hourly rate used
to value logged time, and the Task model for project to-dos.
"""

import datetime as dt
from decimal import Decimal
from typing import Any, List, Literal, Optional, Union

from pydantic import Field, field_validator, model_validator

from freelance_ledger.models.base import (
    BaseDataModel,
    coerce_decimal,
    coerce_optional_date,
    coerce_tags,
    strip_required,
)
from freelance_ledger.utils.converters import parse_date

ProjectStatus = Literal["planning", "in-progress", "completed", "on-hold"]
TaskStatus = Literal["not-started", "in-progress", "completed"]
TaskPriority = Literal["low", "medium", "high"]


class Project(BaseDataModel):
    """Represents a client project.

    Attributes:
        id: Record id once persisted
        name: Project name
        description: Optional description
        client_id: Client the project is for
        start_date: Project start
        due_date: Planned completion
        end_date: Actual completion
        status: planning, in-progress, completed or on-hold
        budget: Budget in currency units
        progress: Completion percentage (0-100)
        tags: Free-form labels
        hourly_rate: Rate used to value logged time

    Example:
        >>> project = Project(
        ...     name="Website Redesign",
        ...     client_id=1,
        ...     start_date="2024-01-08",
        ...     hourly_rate="85",
        ... )
        >>> project.hourly_rate
        Decimal('85')
    """

    id: Optional[int] = Field(None, description="Record id")
    name: str = Field(..., min_length=1, description="Project name")
    description: Optional[str] = Field(None, description="Description")
    client_id: int = Field(..., description="Client record id")
    start_date: dt.date = Field(default_factory=dt.date.today)
    due_date: Optional[dt.date] = Field(None, description="Planned completion")
    end_date: Optional[dt.date] = Field(None, description="Actual completion")
    status: ProjectStatus = Field("planning", description="Project status")
    budget: Decimal = Field(Decimal("0"), ge=0, description="Budget")
    progress: int = Field(0, ge=0, le=100, description="Completion percentage")
    tags: List[str] = Field(default_factory=list, description="Labels")
    hourly_rate: Decimal = Field(Decimal("0"), ge=0, description="Hourly rate")

    @field_validator("name")
    @classmethod
    def validate_not_empty(cls, v: str, info) -> str:
        """Validate that the name is not empty or whitespace only."""
        return strip_required(v, info.field_name)

    @field_validator("budget", "hourly_rate", mode="before")
    @classmethod
    def convert_to_decimal(cls, v: Union[str, int, float, Decimal]) -> Decimal:
        """Convert numeric values to Decimal for precision."""
        if v is None or v == "":
            return Decimal("0")
        return coerce_decimal(v)

    @field_validator("start_date", mode="before")
    @classmethod
    def parse_start_date(cls, v: Any) -> dt.date:
        """Missing start dates default to today."""
        if v is None or v == "":
            return dt.date.today()
        return parse_date(v)

    @field_validator("due_date", "end_date", mode="before")
    @classmethod
    def parse_optional_dates(cls, v: Any) -> Optional[dt.date]:
        """Accept ISO, European and US date strings."""
        return coerce_optional_date(v)

    @field_validator("tags", mode="before")
    @classmethod
    def split_tags(cls, v: Any) -> List[str]:
        """Accept comma separated strings as stored by the record layer."""
        return coerce_tags(v)

    @model_validator(mode="after")
    def validate_dates(self) -> "Project":
        """Validate that the project does not end before it starts.

        Raises:
            ValueError: If due_date or end_date precede start_date
        """
        for field_name in ("due_date", "end_date"):
            value = getattr(self, field_name)
            if value is not None and value < self.start_date:
                raise ValueError(
                    f"{field_name} ({value}) cannot be before "
                    f"start_date ({self.start_date})"
                )
        return self


class Task(BaseDataModel):
    """Represents a to-do item, optionally attached to a project.

    Attributes:
        id: Record id once persisted
        title: Short task title
        description: Optional details
        project_id: Project the task belongs to
        status: not-started, in-progress or completed
        priority: low, medium or high
        due_date: Date the task is due
    """

    id: Optional[int] = Field(None, description="Record id")
    title: str = Field(..., min_length=1, description="Task title")
    description: Optional[str] = Field(None, description="Details")
    project_id: Optional[int] = Field(None, description="Project record id")
    status: TaskStatus = Field("not-started", description="Task status")
    priority: TaskPriority = Field("medium", description="Task priority")
    due_date: dt.date = Field(default_factory=dt.date.today)

    @field_validator("title")
    @classmethod
    def validate_not_empty(cls, v: str, info) -> str:
        """Validate that the title is not empty or whitespace only."""
        return strip_required(v, info.field_name)

    @field_validator("due_date", mode="before")
    @classmethod
    def parse_due_date(cls, v: Any) -> dt.date:
        """Accept ISO, European and US date strings."""
        return parse_date(v)
