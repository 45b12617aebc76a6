"""
Invoice editing session.

Line item edits recompute the totals immediately, with the same engine and
tax rate the invoice service uses when saving, so the totals shown while
editing are the totals that get stored.
"""

import datetime as dt
import logging
from decimal import Decimal
from typing import Any, Dict, List, Optional, Tuple, Union

from freelance_ledger.calculators.invoice_calculator import (
    InvoiceTotals,
    add_line_item,
    new_line_item,
    recompute_totals,
    remove_line_item,
    update_line_item,
)
from freelance_ledger.exceptions import ValidationError
from freelance_ledger.models.invoice import Invoice, LineItem
from freelance_ledger.services.invoice_service import InvoiceService
from freelance_ledger.validators.form_validators import validate_invoice
from freelance_ledger.validators.validation_report import ValidationReport

logger = logging.getLogger(__name__)

DEFAULT_DUE_DAYS = 14

INVOICE_FIELDS = (
    "client_id",
    "project_id",
    "invoice_number",
    "issue_date",
    "due_date",
    "notes",
)


class InvoiceForm:
    """
    Create or edit an invoice with its line items.

    A new invoice starts with one blank item, today's issue date, a due date
    ``due_days`` later and the next invoice number.

    Attributes:
        values: Invoice fields as entered
        items: Line items being edited
        totals: Subtotal, tax and total of the current items
        errors: Field name to first error message from the last validation
        invoice: The stored invoice after a load or successful submit
    """

    def __init__(
        self,
        service: InvoiceService,
        due_days: int = DEFAULT_DUE_DAYS,
        today: Optional[dt.date] = None,
        invoice: Optional[Invoice] = None,
    ):
        self.service = service
        self.today = today or dt.date.today()
        self.errors: Dict[str, str] = {}
        if invoice is not None:
            self._load(invoice)
            return

        self.invoice: Optional[Invoice] = None
        self.values: Dict[str, Any] = {name: None for name in INVOICE_FIELDS}
        self.values.update(
            invoice_number=service.next_invoice_number(self.today),
            issue_date=self.today,
            due_date=self.today + dt.timedelta(days=due_days),
        )
        self.items: List[LineItem] = [new_line_item()]
        self._recompute()

    @classmethod
    def edit(
        cls, service: InvoiceService, invoice_id: int, today: Optional[dt.date] = None
    ) -> "InvoiceForm":
        """Open a form on a stored invoice.

        Raises:
            NotFoundError: If the invoice does not exist
        """
        return cls(service, today=today, invoice=service.get_invoice(invoice_id, today))

    @property
    def tax_rate(self) -> Decimal:
        return self.service.tax_rate

    @property
    def invoice_id(self) -> Optional[int]:
        return self.invoice.id if self.invoice else None

    def _load(self, invoice: Invoice) -> None:
        self.invoice = invoice
        self.values = {name: getattr(invoice, name) for name in INVOICE_FIELDS}
        self.items = list(invoice.items)
        self._recompute()

    def _recompute(self) -> None:
        self.totals: InvoiceTotals = recompute_totals(self.items, self.tax_rate)

    def set(self, name: str, value: Any) -> None:
        if name not in INVOICE_FIELDS:
            fields = ", ".join(INVOICE_FIELDS)
            raise KeyError(f"Unknown field '{name}'. Fields: {fields}")
        self.values[name] = value
        self.errors.pop(name, None)

    def add_item(self) -> None:
        """Append a blank line item."""
        self.items = add_line_item(self.items)
        self._recompute()

    def update_item(self, index: int, field: str, value: Any) -> None:
        """Change the description, quantity or rate of one line item.

        Raises:
            ValidationError: If the index, field or value is invalid
        """
        self.items = update_line_item(self.items, index, field, value)
        self.errors.pop("items", None)
        self._recompute()

    def remove_item(self, index: int) -> None:
        """Remove a line item.

        Raises:
            ValidationError: If it is the only item
        """
        self.items = remove_line_item(self.items, index)
        self._recompute()

    def validate(self) -> Tuple[ValidationReport, Dict[str, Any]]:
        report, cleaned = validate_invoice({**self.values, "items": self.items})
        self.errors = report.errors_by_field()
        return report, cleaned

    def submit(self) -> Invoice:
        """
        Validate and save the invoice with its items.

        Returns:
            The stored invoice

        Raises:
            ValidationError: If a field or item is invalid; nothing is sent
            RemoteOperationError: If the store call fails
        """
        report, cleaned = self.validate()
        report.raise_if_invalid()

        invoice = Invoice(
            invoice_number=cleaned["invoice_number"],
            client_id=cleaned["client_id"],
            project_id=cleaned["project_id"],
            issue_date=cleaned["issue_date"],
            due_date=cleaned["due_date"],
            notes=cleaned["notes"],
            items=[LineItem(**item) for item in cleaned["items"]],
        )
        if self.invoice is None:
            stored = self.service.create_invoice(invoice, self.today)
        else:
            stored = self.service.update_invoice(self.invoice.id, invoice, self.today)

        self._load(stored)
        logger.info(f"Invoice {stored.invoice_number} saved, total {stored.total}")
        return stored

    def pay(self, amount: Union[int, float, str, Decimal]) -> Invoice:
        """
        Record a payment on the stored invoice.

        Raises:
            ValidationError: If the invoice is unsaved or the amount invalid
            RemoteOperationError: If the store call fails
        """
        if self.invoice is None or self.invoice.id is None:
            raise ValidationError("Save the invoice before recording a payment")
        paid = self.service.record_payment(self.invoice.id, amount, self.today)
        self.invoice = paid
        return paid
