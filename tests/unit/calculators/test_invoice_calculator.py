"""Unit tests for the invoice computation engine."""

import datetime as dt
from decimal import ROUND_HALF_UP, Decimal

import pytest

from freelance_ledger.calculators.invoice_calculator import (
    InvoiceRef,
    add_line_item,
    apply_totals,
    derive_status,
    generate_invoice_number,
    parse_invoice_sequence,
    recompute_totals,
    record_payment,
    refresh_status,
    remove_line_item,
    update_line_item,
)
from freelance_ledger.exceptions import ValidationError
from freelance_ledger.models.invoice import Invoice, InvoiceStatus, LineItem


def make_invoice(items=None, amount_paid=0, due_date=dt.date(2024, 3, 15), **kwargs):
    items = items or [
        LineItem(description="Development", quantity=2, rate=100),
        LineItem(description="Hosting", quantity=1, rate=50),
    ]
    invoice = Invoice(
        invoice_number=kwargs.pop("invoice_number", "INV-2024-001"),
        client_id=1,
        issue_date=dt.date(2024, 3, 1),
        due_date=due_date,
        items=items,
        **kwargs,
    )
    invoice = apply_totals(invoice)
    if amount_paid:
        invoice = invoice.model_copy(update={"amount_paid": Decimal(str(amount_paid))})
    return invoice


class TestRecomputeTotals:
    """Test subtotal, tax and total derivation."""

    def test_two_items(self):
        """Test 2×100 + 1×50 gives 250 / 25 / 275."""
        totals = recompute_totals(
            [
                LineItem(description="Development", quantity=2, rate=100),
                LineItem(description="Hosting", quantity=1, rate=50),
            ]
        )
        assert totals.subtotal == Decimal("250.00")
        assert totals.tax == Decimal("25.00")
        assert totals.total == Decimal("275.00")

    @pytest.mark.parametrize(
        "quantity,rate",
        [("1", "0.01"), ("3", "33.33"), ("1.5", "19.99"), ("7", "0"), ("0.25", "80")],
    )
    def test_total_is_subtotal_plus_rounded_tax(self, quantity, rate):
        """Test total == subtotal + tax and tax == round2(subtotal × 0.10)."""
        items = [
            LineItem(description="A", quantity=quantity, rate=rate),
            LineItem(description="B", quantity="2", rate="12.345"),
        ]
        totals = recompute_totals(items)
        assert totals.total == totals.subtotal + totals.tax
        expected_tax = (totals.subtotal * Decimal("0.10")).quantize(
            Decimal("0.01"), rounding=ROUND_HALF_UP
        )
        assert totals.tax == expected_tax
        assert totals.subtotal == sum(item.amount for item in items)

    def test_custom_tax_rate(self):
        """Test a tax rate supplied by configuration."""
        totals = recompute_totals(
            [LineItem(description="Work", quantity=1, rate=200)], Decimal("0.20")
        )
        assert totals.tax == Decimal("40.00")
        assert totals.total == Decimal("240.00")

    def test_tax_rounds_half_up(self):
        """Test that tax is rounded half up to cents."""
        items = [LineItem(description="Work", quantity=1, rate="0.05")]
        totals = recompute_totals(items)
        assert totals.tax == Decimal("0.01")

    def test_invalid_tax_rate(self):
        """Test that a tax rate outside 0..1 is rejected."""
        with pytest.raises(ValueError):
            recompute_totals([LineItem(description="Work", quantity=1, rate=1)], "1.5")

    def test_apply_totals_stores_values(self):
        """Test that apply_totals returns a copy carrying the totals."""
        invoice = make_invoice()
        assert (invoice.subtotal, invoice.tax, invoice.total) == (
            Decimal("250.00"),
            Decimal("25.00"),
            Decimal("275.00"),
        )

    def test_apply_totals_rejects_total_below_paid(self):
        """Test that shrinking items below the amount paid is rejected."""
        invoice = make_invoice(amount_paid=200)
        smaller = invoice.model_copy(
            update={"items": [LineItem(description="Small", quantity=1, rate=10)]}
        )
        with pytest.raises(ValidationError):
            apply_totals(smaller)


class TestLineItemEditing:
    """Test adding, updating and removing line items."""

    def test_add_appends_blank_item(self):
        """Test that a new item has quantity 1, rate 0 and amount 0."""
        items = add_line_item([LineItem(description="Work", quantity=1, rate=10)])
        assert len(items) == 2
        assert items[1].description == ""
        assert items[1].quantity == Decimal("1")
        assert items[1].amount == Decimal("0.00")

    def test_update_quantity_recomputes_amount(self):
        """Test that changing quantity recomputes the amount."""
        items = [LineItem(description="Work", quantity=1, rate=100)]
        updated = update_line_item(items, 0, "quantity", "3")
        assert updated[0].amount == Decimal("300.00")
        assert items[0].amount == Decimal("100.00")

    def test_update_rate_recomputes_amount(self):
        """Test that changing rate recomputes the amount."""
        items = [LineItem(description="Work", quantity=2, rate=100)]
        updated = update_line_item(items, 0, "rate", "12.5")
        assert updated[0].amount == Decimal("25.00")

    def test_update_description_keeps_amount(self):
        """Test that changing the description leaves the amount alone."""
        items = [LineItem(description="Work", quantity=2, rate=100)]
        updated = update_line_item(items, 0, "description", "Consulting")
        assert updated[0].description == "Consulting"
        assert updated[0].amount == Decimal("200.00")

    def test_update_unknown_field(self):
        """Test that only description, quantity and rate are editable."""
        items = [LineItem(description="Work", quantity=1, rate=1)]
        with pytest.raises(ValidationError):
            update_line_item(items, 0, "amount", "5")

    def test_update_invalid_quantity(self):
        """Test that a zero quantity is rejected."""
        items = [LineItem(description="Work", quantity=1, rate=1)]
        with pytest.raises(ValidationError):
            update_line_item(items, 0, "quantity", "0")

    def test_update_index_out_of_range(self):
        """Test that an unknown index is rejected."""
        with pytest.raises(ValidationError):
            update_line_item([LineItem(description="Work")], 3, "rate", "1")

    def test_remove_item(self):
        """Test removing one of two items."""
        items = [LineItem(description="A"), LineItem(description="B")]
        assert [i.description for i in remove_line_item(items, 0)] == ["B"]

    def test_remove_only_item_rejected(self):
        """Test that the only item cannot be removed."""
        items = [LineItem(description="Only", quantity=1, rate=10)]
        with pytest.raises(ValidationError, match="at least one item"):
            remove_line_item(items, 0)
        assert len(items) == 1


class TestRecordPayment:
    """Test partial payment tracking."""

    def test_partial_payment(self):
        """Test that a partial payment keeps the invoice pending."""
        invoice = make_invoice()
        paid = record_payment(invoice, "100", today=dt.date(2024, 3, 5))
        assert paid.amount_paid == Decimal("100.00")
        assert paid.payment_date == dt.date(2024, 3, 5)
        assert paid.status == InvoiceStatus.PENDING

    def test_exact_balance_marks_paid(self):
        """Test that paying 275 on a 275 invoice marks it paid."""
        invoice = make_invoice()
        paid = record_payment(invoice, Decimal("275"), today=dt.date(2024, 3, 5))
        assert paid.amount_paid == Decimal("275.00")
        assert paid.status == InvoiceStatus.PAID
        assert paid.balance_due == Decimal("0.00")

    def test_payments_accumulate(self):
        """Test that successive payments are monotonic and reach paid."""
        invoice = make_invoice()
        today = dt.date(2024, 3, 5)
        first = record_payment(invoice, 100, today)
        second = record_payment(first, 175, today)
        assert first.amount_paid < second.amount_paid <= second.total
        assert second.status == InvoiceStatus.PAID

    def test_overpayment_rejected(self):
        """Test paying 70 with 60 remaining is rejected and nothing changes."""
        invoice = Invoice(
            invoice_number="INV-2024-002",
            client_id=1,
            issue_date=dt.date(2024, 3, 1),
            due_date=dt.date(2024, 3, 15),
            items=[LineItem(description="Work", quantity=1, rate=100)],
            subtotal=100,
            tax=0,
            total=100,
            amount_paid=40,
        )
        with pytest.raises(ValidationError, match="exceeds remaining balance"):
            record_payment(invoice, 70)
        assert invoice.amount_paid == Decimal("40.00")

    @pytest.mark.parametrize("amount", [0, -5, "-0.01"])
    def test_non_positive_amount_rejected(self, amount):
        """Test that zero and negative amounts are rejected."""
        with pytest.raises(ValidationError, match="must be positive"):
            record_payment(make_invoice(), amount)

    def test_non_numeric_amount_rejected(self):
        """Test that a non-numeric amount is rejected."""
        with pytest.raises(ValidationError):
            record_payment(make_invoice(), "ten")


class TestDeriveStatus:
    """Test the single status derivation rule."""

    def test_pending_before_due_date(self):
        """Test an unpaid invoice before its due date is pending."""
        status = derive_status(make_invoice(), dt.date(2024, 3, 10))
        assert status == InvoiceStatus.PENDING

    def test_due_today_is_pending(self):
        """Test an invoice due today is not yet overdue."""
        status = derive_status(make_invoice(), dt.date(2024, 3, 15))
        assert status == InvoiceStatus.PENDING

    def test_overdue_after_due_date(self):
        """Test an unpaid invoice past its due date is overdue."""
        status = derive_status(make_invoice(), dt.date(2024, 3, 16))
        assert status == InvoiceStatus.OVERDUE

    def test_partially_paid_overdue(self):
        """Test a partially paid invoice past its due date is overdue."""
        invoice = make_invoice(amount_paid=100)
        assert derive_status(invoice, dt.date(2024, 4, 1)) == InvoiceStatus.OVERDUE

    def test_fully_paid_is_paid_even_when_late(self):
        """Test that a fully paid invoice stays paid after the due date."""
        invoice = make_invoice(amount_paid=275)
        assert derive_status(invoice, dt.date(2024, 6, 1)) == InvoiceStatus.PAID

    def test_refresh_status_returns_same_object_when_unchanged(self):
        """Test refresh_status avoids rebuilding an unchanged invoice."""
        invoice = make_invoice()
        assert refresh_status(invoice, dt.date(2024, 3, 1)) is invoice


class TestInvoiceNumbers:
    """Test invoice number generation."""

    def test_parse_sequence(self):
        """Test extracting the trailing sequence number."""
        assert parse_invoice_sequence("INV-2024-005") == 5
        assert parse_invoice_sequence("DRAFT") is None

    def test_next_number_from_latest(self):
        """Test INV-2024-005 is followed by INV-2024-006."""
        existing = [make_invoice(invoice_number="INV-2024-005")]
        assert generate_invoice_number(existing, today=dt.date(2024, 5, 1)) == (
            "INV-2024-006"
        )

    def test_latest_by_creation_time(self):
        """Test that the most recently created invoice is the reference."""
        utc = dt.timezone.utc
        existing = [
            InvoiceRef(2, "INV-2024-010", dt.datetime(2024, 1, 2, tzinfo=utc)),
            InvoiceRef(1, "INV-2024-003", dt.datetime(2024, 2, 1, tzinfo=utc)),
        ]
        assert generate_invoice_number(existing, today=dt.date(2024, 2, 2)) == (
            "INV-2024-004"
        )

    def test_list_order_without_timestamps(self):
        """Test falling back to ids when timestamps are missing."""
        existing = [InvoiceRef(1, "INV-2024-001"), InvoiceRef(2, "INV-2024-002")]
        assert generate_invoice_number(existing, today=dt.date(2024, 2, 2)) == (
            "INV-2024-003"
        )

    def test_year_comes_from_today(self):
        """Test that the year part follows the current date."""
        existing = [InvoiceRef(1, "INV-2023-041")]
        assert generate_invoice_number(existing, today=dt.date(2024, 1, 3)) == (
            "INV-2024-042"
        )

    def test_empty_uses_timestamp(self):
        """Test the timestamp-derived number when there are no invoices."""
        number = generate_invoice_number(
            [], today=dt.date(2024, 7, 1), now=dt.datetime(2024, 7, 1, 9, 30, 15)
        )
        assert number == "INV-2024-0701093015"

    def test_unparsable_latest_uses_timestamp(self):
        """Test the fallback when the latest number has no numeric tail."""
        number = generate_invoice_number([InvoiceRef(1, "CUSTOM")])
        assert number.startswith("INV-")
        assert len(number) > len("INV-")
