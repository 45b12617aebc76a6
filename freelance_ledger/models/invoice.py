"""Invoice data models.

This module defines the LineItem and Invoice models together with the
InvoiceStatus enumeration. The arithmetic that keeps an invoice consistent
lives in ``freelance_ledger.calculators.invoice_calculator``; the models only
hold values and reject impossible states.
"""

import datetime as dt
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Any, List, Optional, Union

from pydantic import ConfigDict, Field, field_validator, model_validator

from freelance_ledger.models.base import (
    BaseDataModel,
    coerce_decimal,
    coerce_optional_date,
)
from freelance_ledger.utils.converters import parse_datetime, round2, to_decimal


class InvoiceStatus(str, Enum):
    """Lifecycle status of an invoice."""

    PENDING = "pending"
    PAID = "paid"
    OVERDUE = "overdue"


class LineItem(BaseDataModel):
    """A single billable row on an invoice.

    Line items are immutable values: the amount is always derived from
    quantity and rate when the item is built, so an edit produces a new item
    (see ``invoice_calculator.update_line_item``).

    Attributes:
        id: Record id once persisted
        description: What was delivered
        quantity: Number of units (must be > 0)
        rate: Price per unit (must be >= 0)
        amount: quantity × rate, rounded to 2 decimals

    Example:
        >>> item = LineItem(description="Design", quantity=2, rate="99.995")
        >>> item.amount
        Decimal('199.99')
    """

    model_config = ConfigDict(frozen=True)

    id: Optional[int] = Field(None, description="Record id")
    description: str = Field("", description="Service description")
    quantity: Decimal = Field(Decimal("1"), gt=0, description="Units billed")
    rate: Decimal = Field(Decimal("0"), ge=0, description="Price per unit")
    amount: Decimal = Field(Decimal("0.00"), description="quantity × rate")

    @model_validator(mode="before")
    @classmethod
    def derive_amount(cls, data: Any) -> Any:
        """Derive amount from quantity and rate, ignoring any amount passed in."""
        if not isinstance(data, dict):
            return data
        try:
            quantity = to_decimal(data.get("quantity", 1))
            rate = to_decimal(data.get("rate", 0))
        except ValueError:
            # Field validation reports the bad value
            return data
        return {**data, "amount": round2(quantity * rate)}

    @field_validator("quantity", "rate", "amount", mode="before")
    @classmethod
    def convert_to_decimal(cls, v: Union[str, int, float, Decimal]) -> Decimal:
        """Convert numeric values to Decimal for precision."""
        return coerce_decimal(v)


class Invoice(BaseDataModel):
    """Represents an invoice with its line items and payment state.

    Attributes:
        id: Record id once persisted
        invoice_number: Human readable number, ``INV-YYYY-NNN``
        client_id: Billed client
        project_id: Optional project the invoice belongs to
        issue_date: Date the invoice was issued
        due_date: Date payment is due
        status: pending, paid or overdue
        items: Ordered, non-empty list of line items
        subtotal: Sum of line item amounts
        tax: subtotal × tax rate
        total: subtotal + tax
        amount_paid: Cumulative payments received (0 <= amount_paid <= total)
        payment_date: Date of the most recent payment
        notes: Free text printed on the invoice
        created_on: Creation timestamp assigned by the record layer

    Example:
        >>> invoice = Invoice(
        ...     invoice_number="INV-2024-001",
        ...     client_id=1,
        ...     issue_date=dt.date(2024, 3, 1),
        ...     due_date=dt.date(2024, 3, 15),
        ...     items=[LineItem(description="Consulting", quantity=2, rate=100)],
        ... )
        >>> invoice.status
        <InvoiceStatus.PENDING: 'pending'>
    """

    id: Optional[int] = Field(None, description="Record id")
    invoice_number: str = Field(..., min_length=1, description="Invoice number")
    client_id: int = Field(..., description="Client record id")
    project_id: Optional[int] = Field(None, description="Project record id")
    issue_date: dt.date = Field(..., description="Issue date")
    due_date: dt.date = Field(..., description="Due date")
    status: InvoiceStatus = Field(InvoiceStatus.PENDING, description="Status")
    items: List[LineItem] = Field(..., min_length=1, description="Line items")
    subtotal: Decimal = Field(Decimal("0.00"), ge=0)
    tax: Decimal = Field(Decimal("0.00"), ge=0)
    total: Decimal = Field(Decimal("0.00"), ge=0)
    amount_paid: Decimal = Field(Decimal("0.00"), ge=0)
    payment_date: Optional[dt.date] = Field(None, description="Last payment date")
    notes: Optional[str] = Field(None, description="Notes")
    created_on: Optional[dt.datetime] = Field(None, description="Creation time")

    @field_validator("subtotal", "tax", "total", "amount_paid", mode="before")
    @classmethod
    def convert_to_decimal(cls, v: Union[str, int, float, Decimal]) -> Decimal:
        """Convert monetary values to Decimal rounded to cents."""
        try:
            return round2(coerce_decimal(v))
        except (InvalidOperation, ValueError) as e:
            raise ValueError(f"Invalid monetary value {v!r}: {e}")

    @field_validator("issue_date", "due_date", "payment_date", mode="before")
    @classmethod
    def parse_dates(cls, v: Any) -> Optional[dt.date]:
        """Accept ISO, European and US date strings."""
        return coerce_optional_date(v)

    @field_validator("created_on", mode="before")
    @classmethod
    def parse_created_on(cls, v: Any) -> Optional[dt.datetime]:
        """Parse the record layer's ISO timestamp."""
        return parse_datetime(v)

    @field_validator("invoice_number")
    @classmethod
    def validate_invoice_number(cls, v: str) -> str:
        """Strip whitespace; empty numbers are rejected."""
        if not v.strip():
            raise ValueError("invoice_number cannot be empty or whitespace")
        return v.strip()

    @model_validator(mode="after")
    def validate_payment_bounds(self) -> "Invoice":
        """Validate that payments never exceed the invoice total.

        Raises:
            ValueError: If amount_paid exceeds total
        """
        if self.amount_paid > self.total:
            raise ValueError(
                f"amount_paid ({self.amount_paid}) cannot exceed "
                f"total ({self.total})"
            )
        return self

    @property
    def balance_due(self) -> Decimal:
        """Amount still owed on the invoice."""
        return round2(self.total - self.amount_paid)

    @property
    def is_fully_paid(self) -> bool:
        """Whether cumulative payments cover the total."""
        return self.total > 0 and self.amount_paid >= self.total
