"""
Invoice persistence: invoices with their line items.

An invoice is stored as one ``invoice`` record plus one ``invoice_item``
record per line item. The record store has no transactions, so creation
is made all-or-nothing by deleting the invoice again when its items cannot
be stored.
"""

import datetime as dt
import logging
import math
from collections import defaultdict
from dataclasses import dataclass
from decimal import Decimal
from typing import Dict, List, Optional, Sequence, Union

from freelance_ledger.calculators.invoice_calculator import (
    DEFAULT_TAX_RATE,
    InvoiceRef,
    apply_totals,
    generate_invoice_number,
    record_payment,
    refresh_status,
)
from freelance_ledger.exceptions import RemoteOperationError, ValidationError
from freelance_ledger.models.invoice import Invoice, InvoiceStatus
from freelance_ledger.services import record_adapters as adapters
from freelance_ledger.services.entity_service import StoreGateway
from freelance_ledger.services.record_store import (
    FetchQuery,
    Operator,
    OrderBy,
    PagingInfo,
    Record,
    RecordStore,
    WhereCondition,
)
from freelance_ledger.utils.converters import parse_datetime
from freelance_ledger.utils.logging_utils import LogContext, log_operation

logger = logging.getLogger(__name__)

INVOICE_TABLE = "invoice"
ITEM_TABLE = "invoice_item"

DEFAULT_PAGE_SIZE = 10

# Model field -> stored field for sortable columns
SORT_FIELDS = {
    "issue_date": "issueDate",
    "due_date": "dueDate",
    "invoice_number": "invoiceNumber",
    "total": "total",
    "amount_paid": "amountPaid",
    "status": "status",
    "client_id": "clientId",
    "created_on": "CreatedOn",
}


@dataclass
class InvoicePage:
    """One page of an invoice listing.

    Attributes:
        invoices: Invoices on this page, with derived status
        total_count: Number of invoices matching the filters
        page: 1-based page number
        page_size: Invoices per page
    """

    invoices: List[Invoice]
    total_count: int
    page: int
    page_size: int

    @property
    def page_count(self) -> int:
        return max(1, math.ceil(self.total_count / self.page_size))


class InvoiceService:
    """
    Create, list, update, pay and delete invoices.

    Totals are always recomputed with the configured tax rate before an
    invoice is written, and statuses are derived on every read.
    """

    def __init__(
        self,
        store: RecordStore,
        tax_rate: Union[str, Decimal] = DEFAULT_TAX_RATE,
        page_size: int = DEFAULT_PAGE_SIZE,
        gateway: Optional[StoreGateway] = None,
    ):
        self.gateway = gateway or StoreGateway(store)
        self.tax_rate = Decimal(str(tax_rate))
        self.page_size = page_size

    def list_invoices(
        self,
        status: Optional[str] = None,
        search: Optional[str] = None,
        sort_field: str = "issue_date",
        sort_direction: str = "desc",
        page: int = 1,
        page_size: Optional[int] = None,
        today: Optional[dt.date] = None,
    ) -> InvoicePage:
        """
        List invoices with filtering, sorting and paging.

        Status filtering uses the derived status, so an unpaid invoice past
        its due date is listed as overdue even if it was stored as pending.

        Args:
            status: pending, paid, overdue, or None / "all" for every status
            search: Substring of the invoice number
            sort_field: One of SORT_FIELDS
            sort_direction: asc or desc
            page: 1-based page number
            page_size: Invoices per page (defaults to the service setting)
            today: Reference date for status derivation

        Raises:
            ValidationError: If the status or sort field is unknown
        """
        page_size = page_size or self.page_size
        if sort_field not in SORT_FIELDS:
            raise ValidationError(
                f"Cannot sort by '{sort_field}'. "
                f"Valid fields: {', '.join(SORT_FIELDS)}",
                field="sort_field",
            )
        wanted_status = None
        if status and status != "all":
            try:
                wanted_status = InvoiceStatus(status)
            except ValueError:
                valid = ", ".join(s.value for s in InvoiceStatus)
                raise ValidationError(
                    f"Unknown status '{status}'. Must be one of: all, {valid}",
                    field="status",
                )

        where = []
        if search:
            where.append(WhereCondition("invoiceNumber", Operator.CONTAINS, (search,)))
        order_by = [
            OrderBy(SORT_FIELDS[sort_field], sort_direction),
            OrderBy("Id", sort_direction),
        ]
        paging = PagingInfo.for_page(page, page_size)

        if wanted_status is None:
            records, total = self.gateway.fetch(
                INVOICE_TABLE,
                FetchQuery(where=where, order_by=order_by, paging=paging),
                "list invoices",
            )
            invoices = self._with_items(records, today, skip_invalid=True)
            total -= len(records) - len(invoices)
        else:
            records, _ = self.gateway.fetch(
                INVOICE_TABLE,
                FetchQuery(where=where, order_by=order_by),
                "list invoices",
            )
            matching = [
                inv
                for inv in self._with_items(records, today, skip_invalid=True)
                if inv.status == wanted_status
            ]
            total = len(matching)
            invoices = matching[paging.offset : paging.offset + paging.limit]

        logger.debug(f"Listed {len(invoices)}/{total} invoice(s), page {page}")
        return InvoicePage(invoices, total, max(page, 1), page_size)

    def get_invoice(self, invoice_id: int, today: Optional[dt.date] = None) -> Invoice:
        """
        Load an invoice with its items and derived status.

        Raises:
            NotFoundError: If the invoice does not exist
        """
        record = self.gateway.get(INVOICE_TABLE, invoice_id, "invoice")
        return self._with_items([record], today)[0]

    def next_invoice_number(self, today: Optional[dt.date] = None) -> str:
        """Generate the number for the next invoice."""
        records, _ = self.gateway.fetch(
            INVOICE_TABLE,
            FetchQuery(fields=["invoiceNumber", "CreatedOn"]),
            "load invoice numbers",
        )
        refs = [
            InvoiceRef(
                id=adapters.record_id(r),
                invoice_number=str(r.get("invoiceNumber") or ""),
                created_on=parse_datetime(r.get("CreatedOn")),
            )
            for r in records
        ]
        return generate_invoice_number(refs, today=today)

    @log_operation(level="INFO")
    def create_invoice(
        self, invoice: Invoice, today: Optional[dt.date] = None
    ) -> Invoice:
        """
        Store a new invoice and its line items.

        If the items cannot be stored, the invoice record is deleted again
        and the failure is reported.

        Returns:
            The stored invoice with ids, totals and derived status

        Raises:
            RemoteOperationError: If the invoice or its items cannot be stored
        """
        prepared = refresh_status(apply_totals(invoice, self.tax_rate), today)

        with LogContext(invoice_number=prepared.invoice_number):
            invoice_record = self.gateway.create(
                INVOICE_TABLE,
                [adapters.invoice_to_record(prepared)],
                "create invoice",
            )[0]
            invoice_id = adapters.record_id(invoice_record)

            try:
                item_records = self.gateway.create(
                    ITEM_TABLE,
                    [
                        adapters.line_item_to_record(item, invoice_id)
                        for item in prepared.items
                    ],
                    "create invoice items",
                )
            except RemoteOperationError as e:
                self._roll_back(invoice_id)
                raise RemoteOperationError(
                    f"Invoice {prepared.invoice_number} was not saved: {e.message}",
                    retryable=e.retryable,
                    operation="create invoice",
                ) from e

            created = adapters.invoice_from_record(invoice_record, item_records)
            logger.info(
                f"Created invoice {created.invoice_number} (id {invoice_id}) "
                f"with {len(item_records)} item(s), total {created.total}"
            )
            return created

    def _roll_back(self, invoice_id: int) -> None:
        try:
            self.gateway.delete(
                INVOICE_TABLE, [invoice_id], f"roll back invoice {invoice_id}"
            )
            logger.warning(f"Rolled back invoice {invoice_id} after item failure")
        except RemoteOperationError as e:
            logger.error(
                f"Could not roll back invoice {invoice_id}; "
                f"it is stored without items: {e.message}"
            )

    @log_operation(level="INFO")
    def update_invoice(
        self, invoice_id: int, invoice: Invoice, today: Optional[dt.date] = None
    ) -> Invoice:
        """
        Update an invoice and synchronise its line items.

        Items with an id are updated, items without one are created, and
        stored items missing from the invoice are deleted.

        Raises:
            NotFoundError: If the invoice does not exist
            ValidationError: If the new total is below the amount paid
            RemoteOperationError: If a store call fails
        """
        current = self.get_invoice(invoice_id, today)
        prepared = refresh_status(
            apply_totals(
                invoice.model_copy(
                    update={
                        "amount_paid": current.amount_paid,
                        "payment_date": current.payment_date,
                    }
                ),
                self.tax_rate,
            ),
            today,
        )

        with LogContext(invoice_number=prepared.invoice_number):
            stored_ids = {item.id for item in current.items}
            kept = [item for item in prepared.items if item.id in stored_ids]
            added = [item for item in prepared.items if item.id not in stored_ids]
            removed = stored_ids - {item.id for item in kept}

            invoice_record = self.gateway.update(
                INVOICE_TABLE,
                [{**adapters.invoice_to_record(prepared), "Id": invoice_id}],
                f"update invoice {invoice_id}",
            )[0]
            if kept:
                self.gateway.update(
                    ITEM_TABLE,
                    [adapters.line_item_to_record(i, invoice_id) for i in kept],
                    "update invoice items",
                )
            if added:
                self.gateway.create(
                    ITEM_TABLE,
                    [adapters.line_item_to_record(i, invoice_id) for i in added],
                    "create invoice items",
                )
            self.gateway.delete(ITEM_TABLE, sorted(removed), "delete invoice items")

            logger.info(
                f"Updated invoice {invoice_id}: {len(kept)} kept, "
                f"{len(added)} added, {len(removed)} removed"
            )
            return self._with_items([invoice_record], today)[0]

    @log_operation(level="INFO")
    def delete_invoice(self, invoice_id: int) -> None:
        """
        Delete an invoice and its line items.

        Raises:
            NotFoundError: If the invoice does not exist
        """
        self.gateway.get(INVOICE_TABLE, invoice_id, "invoice")
        item_ids = [adapters.record_id(r) for r in self._item_records([invoice_id])]
        self.gateway.delete(ITEM_TABLE, item_ids, "delete invoice items")
        self.gateway.delete(INVOICE_TABLE, [invoice_id], f"delete invoice {invoice_id}")
        logger.info(f"Deleted invoice {invoice_id} and {len(item_ids)} item(s)")

    @log_operation(level="INFO")
    def record_payment(
        self,
        invoice_id: int,
        amount: Union[int, float, str, Decimal],
        today: Optional[dt.date] = None,
    ) -> Invoice:
        """
        Record a payment and persist amount paid, payment date and status.

        The stored invoice is only changed after the payment passed
        validation.

        Raises:
            NotFoundError: If the invoice does not exist
            ValidationError: If the amount is invalid or exceeds the balance
        """
        invoice = self.get_invoice(invoice_id, today)
        paid = record_payment(invoice, amount, today)

        with LogContext(invoice_number=paid.invoice_number):
            self.gateway.update(
                INVOICE_TABLE,
                [
                    {
                        "Id": invoice_id,
                        "amountPaid": float(paid.amount_paid),
                        "paymentDate": paid.payment_date.isoformat(),
                        "status": paid.status.value,
                    }
                ],
                f"record payment on invoice {invoice_id}",
            )
            logger.info(
                f"Payment of {amount} recorded on {paid.invoice_number}: "
                f"{paid.amount_paid}/{paid.total} ({paid.status.value})"
            )
        return paid

    def _item_records(self, invoice_ids: Sequence[int]) -> List[Record]:
        if not invoice_ids:
            return []
        records, _ = self.gateway.fetch(
            ITEM_TABLE,
            FetchQuery(
                where=[
                    WhereCondition(
                        "invoiceId", Operator.EXACT_MATCH, tuple(invoice_ids)
                    )
                ],
                order_by=[OrderBy("Id", "asc")],
            ),
            "load invoice items",
        )
        return records

    def _with_items(
        self,
        records: Sequence[Record],
        today: Optional[dt.date],
        skip_invalid: bool = False,
    ) -> List[Invoice]:
        """Build invoices from their records and stored items.

        With ``skip_invalid`` an invoice whose stored data no longer makes a
        valid Invoice (for example one left without items by a failed
        rollback) is logged and left out instead of failing the whole batch.

        Raises:
            ValidationError: If a stored invoice is invalid and not skipped
        """
        ids = [adapters.record_id(r) for r in records]
        items_by_invoice: Dict[int, List[Record]] = defaultdict(list)
        for item in self._item_records(ids):
            items_by_invoice[int(item["invoiceId"])].append(item)

        invoices = []
        for record, invoice_id in zip(records, ids):
            try:
                invoice = adapters.invoice_from_record(
                    record, items_by_invoice[invoice_id]
                )
            except ValidationError as e:
                if not skip_invalid:
                    raise
                logger.warning(f"Skipping unreadable invoice {invoice_id}: {e.message}")
                continue
            invoices.append(refresh_status(invoice, today))
        return invoices
