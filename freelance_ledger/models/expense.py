"""Expense data model.

This module defines the Expense model and the fixed list of expense
categories used for grouping and filtering.
"""

import datetime as dt
from decimal import Decimal
from enum import Enum
from typing import Any, Optional, Union

from pydantic import Field, field_validator

from freelance_ledger.models.base import BaseDataModel, coerce_decimal, strip_required
from freelance_ledger.utils.converters import parse_date, parse_datetime, round2


class ExpenseCategory(str, Enum):
    """Categories an expense can be filed under."""

    SOFTWARE = "Software"
    HARDWARE = "Hardware"
    OFFICE_SUPPLIES = "Office Supplies"
    TRAVEL = "Travel"
    MEALS = "Meals"
    SUBSCRIPTION = "Subscription"
    CONTRACTOR = "Contractor"
    MARKETING = "Marketing"
    OTHER = "Other"

    @classmethod
    def parse(cls, value: Union[str, "ExpenseCategory"]) -> "ExpenseCategory":
        """Look up a category by value, case-insensitively.

        Raises:
            ValueError: If the category is unknown
        """
        if isinstance(value, cls):
            return value
        text = str(value).strip().lower()
        for category in cls:
            if category.value.lower() == text:
                return category
        valid = ", ".join(c.value for c in cls)
        raise ValueError(f"Unknown expense category {value!r}. Must be one of: {valid}")


class Expense(BaseDataModel):
    """Represents money spent on a project.

    Attributes:
        id: Record id once persisted
        date: Date of the expense
        amount: Amount spent (must be > 0)
        category: Expense category
        description: What was bought
        receipt: Optional receipt reference (file name or URL)
        billable: Whether the expense is charged to the client
        reimbursable: Whether the expense is owed back to the freelancer
        project_id: Project the expense belongs to
        created_on: Creation timestamp assigned by the record layer

    Example:
        >>> expense = Expense(
        ...     date="2024-02-10",
        ...     amount="49.90",
        ...     category="Software",
        ...     description="IDE licence",
        ...     project_id=1,
        ... )
        >>> expense.billable, expense.reimbursable
        (True, False)
    """

    id: Optional[int] = Field(None, description="Record id")
    date: dt.date = Field(..., description="Date of expense")
    amount: Decimal = Field(..., gt=0, description="Amount spent")
    category: ExpenseCategory = Field(..., description="Expense category")
    description: str = Field(..., min_length=1, description="Description")
    receipt: Optional[str] = Field(None, description="Receipt reference")
    billable: bool = Field(True, description="Chargeable to the client")
    reimbursable: bool = Field(False, description="Owed back to the freelancer")
    project_id: int = Field(..., description="Project record id")
    created_on: Optional[dt.datetime] = Field(None, description="Creation time")

    @field_validator("date", mode="before")
    @classmethod
    def parse_expense_date(cls, v: Any) -> dt.date:
        """Accept ISO, European and US date strings."""
        return parse_date(v)

    @field_validator("amount", mode="before")
    @classmethod
    def convert_amount(cls, v: Union[str, int, float, Decimal]) -> Decimal:
        """Convert the amount to Decimal rounded to cents."""
        return round2(coerce_decimal(v))

    @field_validator("category", mode="before")
    @classmethod
    def parse_category(cls, v: Any) -> ExpenseCategory:
        """Accept category values regardless of case."""
        return ExpenseCategory.parse(v)

    @field_validator("description")
    @classmethod
    def validate_description(cls, v: str, info) -> str:
        """Validate that the description is not whitespace only."""
        return strip_required(v, info.field_name)

    @field_validator("receipt", mode="before")
    @classmethod
    def empty_receipt_is_none(cls, v: Any) -> Optional[str]:
        """Treat an empty receipt reference as no receipt."""
        if v is None or (isinstance(v, str) and not v.strip()):
            return None
        return str(v)

    @field_validator("created_on", mode="before")
    @classmethod
    def parse_created_on(cls, v: Any) -> Optional[dt.datetime]:
        """Parse the record layer's ISO timestamp."""
        return parse_datetime(v)
