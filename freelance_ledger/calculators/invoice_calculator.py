"""Invoice computation and reconciliation engine.

This module implements the arithmetic and state rules behind invoices:
- Line item amounts (quantity × rate)
- Subtotal, tax and total derivation
- Line item editing with the at-least-one-item rule
- Partial payment tracking with the no-overpayment rule
- Status derivation (paid / overdue / pending)
- Invoice number generation (INV-YYYY-NNN)

All functions are pure: they never mutate their inputs and never touch the
record layer. Monetary values are rounded to 2 decimals after every step.
"""

import datetime as dt
import logging
import re
from dataclasses import dataclass
from decimal import Decimal
from typing import Any, List, NamedTuple, Optional, Sequence, Union

from pydantic import ValidationError as PydanticValidationError

from freelance_ledger.exceptions import ValidationError
from freelance_ledger.models.invoice import Invoice, InvoiceStatus, LineItem
from freelance_ledger.utils.converters import round2, to_decimal

logger = logging.getLogger(__name__)

DEFAULT_TAX_RATE = Decimal("0.10")

INVOICE_NUMBER_PREFIX = "INV"

EDITABLE_ITEM_FIELDS = ("description", "quantity", "rate")

_TRAILING_NUMBER = re.compile(r"(\d+)\s*$")


class InvoiceRef(NamedTuple):
    """The fields invoice numbering needs, without loading line items."""

    id: Optional[int]
    invoice_number: str
    created_on: Optional[dt.datetime] = None


InvoiceLike = Union[Invoice, InvoiceRef]


@dataclass(frozen=True)
class InvoiceTotals:
    """Derived monetary totals of an invoice.

    Attributes:
        subtotal: Sum of line item amounts
        tax: subtotal × tax rate, rounded to 2 decimals
        total: subtotal + tax

    Example:
        >>> InvoiceTotals(Decimal("250.00"), Decimal("25.00"), Decimal("275.00")).total
        Decimal('275.00')
    """

    subtotal: Decimal
    tax: Decimal
    total: Decimal


def calculate_line_amount(
    quantity: Union[int, float, str, Decimal], rate: Union[int, float, str, Decimal]
) -> Decimal:
    """Calculate a line item amount (quantity × rate).

    Example:
        >>> calculate_line_amount(2, "100")
        Decimal('200.00')
        >>> calculate_line_amount("1.5", "33.33")
        Decimal('50.00')
    """
    return round2(to_decimal(quantity) * to_decimal(rate))


def recompute_totals(
    items: Sequence[LineItem], tax_rate: Union[str, Decimal] = DEFAULT_TAX_RATE
) -> InvoiceTotals:
    """Derive subtotal, tax and total from a list of line items.

    Each item amount is recomputed from quantity and rate, so stale amounts
    on the input cannot leak into the totals.

    Args:
        items: Ordered line items
        tax_rate: Tax rate as a fraction (0.10 = 10%)

    Returns:
        InvoiceTotals with all values rounded to 2 decimals

    Example:
        >>> items = [
        ...     LineItem(description="Development", quantity=2, rate=100),
        ...     LineItem(description="Hosting", quantity=1, rate=50),
        ... ]
        >>> recompute_totals(items).total
        Decimal('275.00')
    """
    rate = to_decimal(tax_rate)
    if rate < 0 or rate > 1:
        raise ValueError(f"tax_rate must be between 0 and 1, got {rate}")

    subtotal = round2(
        sum(
            (calculate_line_amount(item.quantity, item.rate) for item in items),
            Decimal("0"),
        )
    )
    tax = round2(subtotal * rate)
    total = round2(subtotal + tax)

    logger.debug(
        f"Recomputed totals for {len(items)} item(s): "
        f"subtotal={subtotal} tax={tax} total={total}"
    )
    return InvoiceTotals(subtotal=subtotal, tax=tax, total=total)


def _rebuild(invoice: Invoice, **changes: Any) -> Invoice:
    """Build a validated copy of an invoice with some fields replaced."""
    return Invoice(**{**dict(invoice), **changes})


def apply_totals(
    invoice: Invoice, tax_rate: Union[str, Decimal] = DEFAULT_TAX_RATE
) -> Invoice:
    """Return a copy of the invoice with its totals recomputed from its items.

    Raises:
        ValidationError: If the recomputed total falls below the amount
            already paid
    """
    totals = recompute_totals(invoice.items, tax_rate)
    if invoice.amount_paid > totals.total:
        raise ValidationError(
            f"Invoice total ({totals.total}) cannot be less than the amount "
            f"already paid ({invoice.amount_paid})",
            field="items",
        )
    return _rebuild(
        invoice,
        subtotal=totals.subtotal,
        tax=totals.tax,
        total=totals.total,
    )


def new_line_item() -> LineItem:
    """Create the blank row a new invoice (or "Add item") starts with."""
    return LineItem(description="", quantity=Decimal("1"), rate=Decimal("0"))


def add_line_item(items: Sequence[LineItem]) -> List[LineItem]:
    """Append a blank line item."""
    return [*items, new_line_item()]


def update_line_item(
    items: Sequence[LineItem], index: int, field: str, value: Any
) -> List[LineItem]:
    """Change one field of one line item.

    Changing quantity or rate recomputes the amount; changing the
    description leaves it untouched.

    Args:
        items: Current line items
        index: Position of the item to change
        field: One of description, quantity, rate
        value: New value

    Returns:
        New list of line items

    Raises:
        ValidationError: If the index, field or value is invalid
    """
    _check_index(items, index)
    if field not in EDITABLE_ITEM_FIELDS:
        raise ValidationError(
            f"Cannot edit line item field '{field}'. "
            f"Editable fields: {', '.join(EDITABLE_ITEM_FIELDS)}",
            field=field,
        )

    current = items[index]
    if field == "description":
        updated = current.model_copy(update={"description": str(value)})
    else:
        data = current.model_dump()
        data[field] = value
        try:
            updated = LineItem(**data)
        except PydanticValidationError as e:
            message = e.errors()[0]["msg"]
            raise ValidationError(
                f"Invalid {field} for item {index + 1}: {message}", field=field
            )

    new_items = list(items)
    new_items[index] = updated
    return new_items


def remove_line_item(items: Sequence[LineItem], index: int) -> List[LineItem]:
    """Remove a line item; the last remaining item cannot be removed.

    Raises:
        ValidationError: If the index is invalid or only one item remains
    """
    _check_index(items, index)
    if len(items) <= 1:
        raise ValidationError("Invoice must have at least one item", field="items")

    new_items = list(items)
    del new_items[index]
    return new_items


def _check_index(items: Sequence[LineItem], index: int) -> None:
    if not 0 <= index < len(items):
        raise ValidationError(
            f"Line item {index} does not exist (invoice has {len(items)} item(s))",
            field="items",
        )


def derive_status(invoice: Invoice, today: Optional[dt.date] = None) -> InvoiceStatus:
    """Derive the status of an invoice from its payments and due date.

    Rule: ``paid`` when the total is fully covered, otherwise ``overdue``
    once the due date has passed, otherwise ``pending``.
    """
    today = today or dt.date.today()
    if invoice.is_fully_paid:
        return InvoiceStatus.PAID
    if invoice.due_date < today:
        return InvoiceStatus.OVERDUE
    return InvoiceStatus.PENDING


def refresh_status(invoice: Invoice, today: Optional[dt.date] = None) -> Invoice:
    """Return the invoice with its status re-derived, or the same invoice."""
    status = derive_status(invoice, today)
    if status == invoice.status:
        return invoice
    return _rebuild(invoice, status=status)


def record_payment(
    invoice: Invoice,
    amount: Union[int, float, str, Decimal],
    today: Optional[dt.date] = None,
) -> Invoice:
    """Record a payment against an invoice.

    Args:
        invoice: Invoice being paid
        amount: Payment amount; must be positive and at most the balance due
        today: Payment date (defaults to today)

    Returns:
        New invoice with amount_paid, payment_date and status updated

    Raises:
        ValidationError: If the amount is not a positive number or exceeds
            the remaining balance
    """
    today = today or dt.date.today()
    try:
        payment = round2(amount)
    except ValueError:
        raise ValidationError(
            f"amount must be a number, got {amount!r}", field="amount"
        )

    if payment <= 0:
        raise ValidationError("amount must be positive", field="amount")

    remaining = round2(invoice.total - invoice.amount_paid)
    if payment > remaining:
        raise ValidationError(
            f"amount exceeds remaining balance ({remaining})", field="amount"
        )

    paid = _rebuild(
        invoice,
        amount_paid=round2(invoice.amount_paid + payment),
        payment_date=today,
    )
    status = derive_status(paid, today)

    logger.debug(
        f"Recorded payment of {payment} on {invoice.invoice_number}: "
        f"paid {paid.amount_paid}/{paid.total}, status {status.value}"
    )
    return _rebuild(paid, status=status)


def parse_invoice_sequence(invoice_number: str) -> Optional[int]:
    """Extract the trailing sequence number from an invoice number.

    Example:
        >>> parse_invoice_sequence("INV-2024-005")
        5
        >>> parse_invoice_sequence("DRAFT") is None
        True
    """
    match = _TRAILING_NUMBER.search(invoice_number or "")
    if not match:
        return None
    return int(match.group(1))


def _latest_invoice(existing: Sequence[InvoiceLike]) -> InvoiceLike:
    """Most recently created invoice: by timestamp, then id, then position."""
    oldest = dt.datetime.min.replace(tzinfo=dt.timezone.utc)
    ranked = max(
        enumerate(existing),
        key=lambda pair: (
            pair[1].created_on or oldest,
            pair[1].id if pair[1].id is not None else -1,
            pair[0],
        ),
    )
    return ranked[1]


def generate_invoice_number(
    existing: Sequence[InvoiceLike],
    today: Optional[dt.date] = None,
    now: Optional[dt.datetime] = None,
) -> str:
    """Generate the next invoice number, ``INV-{year}-{seq:03d}``.

    The sequence continues from the most recently created invoice. With no
    invoices, or when the latest number has no numeric tail, a
    timestamp-derived number is used instead.

    Concurrent creation can yield duplicate numbers because the sequence is
    computed from the latest record the caller has seen.

    Args:
        existing: Previously created invoices (or InvoiceRefs)
        today: Date whose year is used (defaults to today)
        now: Timestamp for the fallback number (defaults to now)

    Returns:
        New invoice number
    """
    today = today or dt.date.today()
    year = today.year

    if existing:
        latest = _latest_invoice(existing)
        sequence = parse_invoice_sequence(latest.invoice_number)
        if sequence is not None:
            number = f"{INVOICE_NUMBER_PREFIX}-{year}-{sequence + 1:03d}"
            logger.debug(f"Next invoice number after {latest.invoice_number}: {number}")
            return number
        logger.warning(
            f"Could not parse sequence from '{latest.invoice_number}', "
            f"using timestamp-based number"
        )

    now = now or dt.datetime.now()
    return f"{INVOICE_NUMBER_PREFIX}-{year}-{now:%m%d%H%M%S}"
