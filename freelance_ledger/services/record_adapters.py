"""Mapping between stored records and the canonical models.

Stored records use the record layer's field names (``Id``, ``Name``,
camelCase fields) and JSON-friendly values; models use snake_case fields and
Decimal / date / time values. Every conversion goes through the explicit
functions in this module.
"""

import datetime as dt
from decimal import Decimal
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence, TypeVar

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from freelance_ledger.exceptions import ValidationError
from freelance_ledger.models import (
    Client,
    Expense,
    Invoice,
    LineItem,
    Project,
    Task,
    TimeEntry,
)
from freelance_ledger.utils.converters import format_time

Record = Dict[str, Any]
M = TypeVar("M", bound=BaseModel)


def record_id(record: Mapping[str, Any]) -> Optional[int]:
    """Record id regardless of ``Id`` / ``id`` casing."""
    value = record.get("Id", record.get("id"))
    if value is None or value == "":
        return None
    return int(value)


def _number(value: Optional[Decimal]) -> Optional[float]:
    return float(value) if value is not None else None


def _iso(value: Optional[dt.date]) -> Optional[str]:
    return value.isoformat() if value is not None else None


def _tags(tags: Sequence[str]) -> Optional[str]:
    return ",".join(tags) if tags else None


def _flag(value: Any, default: bool) -> bool:
    if value is None or value == "":
        return default
    if isinstance(value, str):
        return value.strip().lower() in ("true", "1", "yes")
    return bool(value)


def _build(
    model: Callable[..., M], entity: str, record: Mapping[str, Any], **fields: Any
) -> M:
    try:
        return model(**fields)
    except PydanticValidationError as e:
        error = e.errors()[0]
        location = ".".join(str(part) for part in error["loc"]) or entity
        raise ValidationError(
            f"Stored {entity} {record_id(record)} is invalid: "
            f"{location}: {error['msg']}",
            field=location,
        )


def client_to_record(client: Client) -> Record:
    return {
        "Name": client.name,
        "company": client.company,
        "email": client.email,
        "phone": client.phone,
        "status": client.status,
        "Tags": _tags(client.tags),
        "address": client.address,
        "lastContact": _iso(client.last_contact),
    }


def client_from_record(record: Mapping[str, Any]) -> Client:
    return _build(
        Client,
        "client",
        record,
        id=record_id(record),
        name=record.get("Name") or "",
        company=record.get("company"),
        email=record.get("email"),
        phone=_text(record.get("phone")),
        status=record.get("status") or "active",
        tags=record.get("Tags"),
        address=record.get("address"),
        last_contact=record.get("lastContact"),
    )


def project_to_record(project: Project) -> Record:
    return {
        "Name": project.name,
        "description": project.description,
        "clientId": project.client_id,
        "startDate": _iso(project.start_date),
        "dueDate": _iso(project.due_date),
        "endDate": _iso(project.end_date),
        "status": project.status,
        "budget": _number(project.budget),
        "progress": project.progress,
        "Tags": _tags(project.tags),
        "hourlyRate": _number(project.hourly_rate),
    }


def project_from_record(record: Mapping[str, Any]) -> Project:
    return _build(
        Project,
        "project",
        record,
        id=record_id(record),
        name=record.get("Name") or "",
        description=record.get("description"),
        client_id=record.get("clientId"),
        start_date=record.get("startDate"),
        due_date=record.get("dueDate"),
        end_date=record.get("endDate"),
        status=record.get("status") or "planning",
        budget=record.get("budget"),
        progress=int(record.get("progress") or 0),
        tags=record.get("Tags"),
        hourly_rate=record.get("hourlyRate"),
    )


def task_to_record(task: Task) -> Record:
    return {
        "Name": task.title,
        "description": task.description,
        "projectId": task.project_id,
        "status": task.status,
        "priority": task.priority,
        "dueDate": _iso(task.due_date),
    }


def task_from_record(record: Mapping[str, Any]) -> Task:
    return _build(
        Task,
        "task",
        record,
        id=record_id(record),
        title=record.get("Name") or "",
        description=record.get("description"),
        project_id=record.get("projectId"),
        status=record.get("status") or "not-started",
        priority=record.get("priority") or "medium",
        due_date=record.get("dueDate"),
    )


def time_entry_to_record(entry: TimeEntry) -> Record:
    return {
        "date": _iso(entry.date),
        "startTime": format_time(entry.start_time),
        "endTime": format_time(entry.end_time),
        "duration": _number(entry.duration),
        "description": entry.description,
        "projectId": entry.project_id,
    }


def time_entry_from_record(record: Mapping[str, Any]) -> TimeEntry:
    """Build a TimeEntry; the stored duration is kept as is."""
    return _build(
        TimeEntry,
        "time entry",
        record,
        id=record_id(record),
        date=record.get("date"),
        start_time=_text(record.get("startTime")),
        end_time=_text(record.get("endTime")),
        duration=record.get("duration") if record.get("duration") is not None else 0,
        description=record.get("description") or "",
        project_id=record.get("projectId"),
        created_on=record.get("CreatedOn"),
    )


def expense_to_record(expense: Expense) -> Record:
    return {
        "date": _iso(expense.date),
        "amount": _number(expense.amount),
        "category": expense.category.value,
        "description": expense.description,
        "receipt": expense.receipt,
        "billable": expense.billable,
        "reimbursable": expense.reimbursable,
        "projectId": expense.project_id,
    }


def expense_from_record(record: Mapping[str, Any]) -> Expense:
    return _build(
        Expense,
        "expense",
        record,
        id=record_id(record),
        date=record.get("date"),
        amount=record.get("amount"),
        category=record.get("category"),
        description=record.get("description") or "",
        receipt=record.get("receipt"),
        billable=_flag(record.get("billable"), True),
        reimbursable=_flag(record.get("reimbursable"), False),
        project_id=record.get("projectId"),
        created_on=record.get("CreatedOn"),
    )


def invoice_to_record(invoice: Invoice) -> Record:
    """Invoice fields only; line items are stored in their own table."""
    return {
        "Name": invoice.invoice_number,
        "invoiceNumber": invoice.invoice_number,
        "issueDate": _iso(invoice.issue_date),
        "dueDate": _iso(invoice.due_date),
        "status": invoice.status.value,
        "subtotal": _number(invoice.subtotal),
        "tax": _number(invoice.tax),
        "total": _number(invoice.total),
        "amountPaid": _number(invoice.amount_paid),
        "notes": invoice.notes,
        "paymentDate": _iso(invoice.payment_date),
        "clientId": invoice.client_id,
        "projectId": invoice.project_id,
    }


def invoice_from_record(
    record: Mapping[str, Any], item_records: Sequence[Mapping[str, Any]]
) -> Invoice:
    """Build an Invoice from its record and its line item records.

    Items are ordered by id, which is their creation order.
    """
    items = [
        line_item_from_record(item)
        for item in sorted(item_records, key=lambda r: record_id(r) or 0)
    ]
    return _build(
        Invoice,
        "invoice",
        record,
        id=record_id(record),
        invoice_number=record.get("invoiceNumber") or record.get("Name") or "",
        client_id=record.get("clientId"),
        project_id=record.get("projectId"),
        issue_date=record.get("issueDate"),
        due_date=record.get("dueDate"),
        status=record.get("status") or "pending",
        items=items,
        subtotal=record.get("subtotal") or 0,
        tax=record.get("tax") or 0,
        total=record.get("total") or 0,
        amount_paid=record.get("amountPaid") or 0,
        payment_date=record.get("paymentDate"),
        notes=record.get("notes"),
        created_on=record.get("CreatedOn"),
    )


def line_item_to_record(item: LineItem, invoice_id: int) -> Record:
    record = {
        "Name": item.description[:80],
        "description": item.description,
        "quantity": _number(item.quantity),
        "rate": _number(item.rate),
        "amount": _number(item.amount),
        "invoiceId": invoice_id,
    }
    if item.id is not None:
        record["Id"] = item.id
    return record


def line_item_from_record(record: Mapping[str, Any]) -> LineItem:
    return _build(
        LineItem,
        "invoice item",
        record,
        id=record_id(record),
        description=record.get("description") or "",
        quantity=record.get("quantity") if record.get("quantity") is not None else 1,
        rate=record.get("rate") if record.get("rate") is not None else 0,
    )


def _text(value: Any) -> Optional[str]:
    # Sheets return numeric-looking cells as numbers
    if value is None:
        return None
    return str(value)


ADAPTERS: Dict[str, tuple] = {
    "client": (client_to_record, client_from_record),
    "project": (project_to_record, project_from_record),
    "task": (task_to_record, task_from_record),
    "time_entry": (time_entry_to_record, time_entry_from_record),
    "expense": (expense_to_record, expense_from_record),
}


def from_records(table: str, records: Sequence[Mapping[str, Any]]) -> List[Any]:
    """Convert a batch of records of a simple (non-invoice) table."""
    _, from_record = ADAPTERS[table]
    return [from_record(record) for record in records]
