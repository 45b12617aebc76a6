"""Form-level validation for the entity forms.

Each ``validate_*`` function takes raw form input (strings as typed by the
user, or already parsed values), checks every field, and returns the
ValidationReport together with the cleaned values. Cross-field rules run
only on fields that passed their own checks, so each field reports at most
its first problem.
"""

import datetime as dt
from typing import Any, Dict, Mapping, Optional, Sequence, Tuple

from freelance_ledger.calculators.time_utils import compute_duration
from freelance_ledger.models.expense import ExpenseCategory
from freelance_ledger.utils.converters import round2, to_decimal
from freelance_ledger.validators.field_validators import FieldValidators, is_blank
from freelance_ledger.validators.validation_report import ValidationReport

Cleaned = Dict[str, Any]

INVALID_ITEMS_MESSAGE = "All items must have a description, quantity, and rate"
END_BEFORE_START_MESSAGE = "End time must be after start time"

CLIENT_STATUSES = ("active", "inactive", "lead")
PROJECT_STATUSES = ("planning", "in-progress", "completed", "on-hold")
TASK_STATUSES = ("not-started", "in-progress", "completed")
TASK_PRIORITIES = ("low", "medium", "high")


def _as_bool(value: Any, default: bool) -> bool:
    if value is None or value == "":
        return default
    if isinstance(value, str):
        return value.strip().lower() in ("1", "true", "yes", "y", "on")
    return bool(value)


def validate_time_entry(data: Mapping[str, Any]) -> Tuple[ValidationReport, Cleaned]:
    """Validate a time entry form.

    Duration is recomputed from the times unless the form carries an
    explicit duration (a record loaded for editing, or a timer draft).

    Args:
        data: date, start_time, end_time, description, project_id and an
            optional duration

    Returns:
        (report, cleaned values)
    """
    report = ValidationReport()
    fv = FieldValidators

    date = fv.validate_date(data.get("date"), "date", report)
    start = fv.validate_time(
        data.get("start_time"), "start_time", report, "Start time is required"
    )
    end = fv.validate_time(
        data.get("end_time"), "end_time", report, "End time is required"
    )
    description = fv.validate_required_text(
        data.get("description"), "description", report, "Description is required"
    )
    project_id = fv.validate_reference(
        data.get("project_id"), "project_id", report, "Please select a project"
    )

    duration = None
    if start is not None and end is not None:
        if is_blank(data.get("duration")):
            duration = compute_duration(date or dt.date.today(), start, end)
        else:
            try:
                duration = round2(to_decimal(data["duration"]))
            except ValueError:
                report.add_error(
                    "duration", "Duration must be a number", data["duration"]
                )
        if duration is not None and end <= start and duration <= 0:
            report.add_error("end_time", END_BEFORE_START_MESSAGE, data.get("end_time"))

    cleaned = {
        "date": date,
        "start_time": start,
        "end_time": end,
        "duration": duration,
        "description": description,
        "project_id": project_id,
    }
    return report, cleaned


def validate_expense(data: Mapping[str, Any]) -> Tuple[ValidationReport, Cleaned]:
    """Validate an expense form.

    Args:
        data: date, amount, category, description, project_id and optional
            receipt, billable, reimbursable

    Returns:
        (report, cleaned values)
    """
    report = ValidationReport()
    fv = FieldValidators

    cleaned = {
        "date": fv.validate_date(data.get("date"), "date", report),
        "amount": fv.validate_positive_amount(data.get("amount"), "amount", report),
        "category": fv.validate_choice(
            data.get("category"),
            "category",
            report,
            [c.value for c in ExpenseCategory],
            "Category is required",
        ),
        "description": fv.validate_required_text(
            data.get("description"), "description", report, "Description is required"
        ),
        "project_id": fv.validate_reference(
            data.get("project_id"), "project_id", report, "Please select a project"
        ),
        "receipt": None if is_blank(data.get("receipt")) else str(data["receipt"]),
        "billable": _as_bool(data.get("billable"), True),
        "reimbursable": _as_bool(data.get("reimbursable"), False),
    }
    return report, cleaned


def validate_invoice(data: Mapping[str, Any]) -> Tuple[ValidationReport, Cleaned]:
    """Validate an invoice form and its line items.

    Every item needs a description, a quantity above zero and a rate above
    zero; one combined message is reported for the items.

    Args:
        data: client_id, invoice_number, issue_date, due_date, items and
            optional project_id, notes. Items are mappings or LineItems.

    Returns:
        (report, cleaned values)
    """
    report = ValidationReport()
    fv = FieldValidators

    client_id = fv.validate_reference(
        data.get("client_id"), "client_id", report, "Please select a client"
    )
    invoice_number = fv.validate_required_text(
        data.get("invoice_number"),
        "invoice_number",
        report,
        "Invoice number is required",
    )
    issue_date = fv.validate_date(
        data.get("issue_date"), "issue_date", report, "Issue date is required"
    )
    due_date = fv.validate_date(
        data.get("due_date"), "due_date", report, "Due date is required"
    )
    if issue_date and due_date and due_date < issue_date:
        report.add_error("due_date", "Due date cannot be before issue date", due_date)

    items = _clean_items(data.get("items") or [], report)

    project_id = None
    if not is_blank(data.get("project_id")):
        project_id = fv.validate_reference(
            data.get("project_id"), "project_id", report, "Please select a project"
        )

    cleaned = {
        "client_id": client_id,
        "project_id": project_id,
        "invoice_number": invoice_number,
        "issue_date": issue_date,
        "due_date": due_date,
        "items": items,
        "notes": None if is_blank(data.get("notes")) else str(data["notes"]).strip(),
    }
    return report, cleaned


def _clean_items(items: Sequence[Any], report: ValidationReport) -> list:
    if not items:
        report.add_error("items", "Invoice must have at least one item", items)
        return []

    cleaned = []
    invalid = False
    for item in items:
        raw = item if isinstance(item, Mapping) else item.model_dump()
        try:
            quantity = to_decimal(raw.get("quantity", 0))
            rate = to_decimal(raw.get("rate", 0))
        except ValueError:
            invalid = True
            continue
        description = raw.get("description")
        if is_blank(description) or quantity <= 0 or rate <= 0:
            invalid = True
            continue
        cleaned.append(
            {
                "id": raw.get("id"),
                "description": str(description).strip(),
                "quantity": quantity,
                "rate": rate,
            }
        )

    if invalid:
        report.add_error("items", INVALID_ITEMS_MESSAGE, items)
    return cleaned


def validate_client(data: Mapping[str, Any]) -> Tuple[ValidationReport, Cleaned]:
    """Validate a client form."""
    report = ValidationReport()
    fv = FieldValidators

    name = fv.validate_required_text(
        data.get("name"), "name", report, "Name is required"
    )
    fv.validate_email(data.get("email"), "email", report)
    fv.validate_phone(data.get("phone"), "phone", report)
    status = "active"
    if not is_blank(data.get("status")):
        status = fv.validate_choice(
            data.get("status"), "status", report, CLIENT_STATUSES
        )

    cleaned = {
        "name": name,
        "company": data.get("company") or None,
        "email": data.get("email") or None,
        "phone": data.get("phone") or None,
        "status": status,
        "tags": data.get("tags") or [],
        "address": data.get("address") or None,
        "last_contact": fv.validate_optional_date(
            data.get("last_contact"), "last_contact", report
        ),
    }
    return report, cleaned


def validate_project(data: Mapping[str, Any]) -> Tuple[ValidationReport, Cleaned]:
    """Validate a project form."""
    report = ValidationReport()
    fv = FieldValidators

    name = fv.validate_required_text(
        data.get("name"), "name", report, "Project name is required"
    )
    client_id = fv.validate_reference(
        data.get("client_id"), "client_id", report, "Please select a client"
    )
    start_date = fv.validate_date(
        data.get("start_date") or dt.date.today(),
        "start_date",
        report,
        "Start date is required",
    )
    due_date = fv.validate_optional_date(data.get("due_date"), "due_date", report)
    if start_date and due_date and due_date < start_date:
        report.add_error("due_date", "Due date must be after start date", due_date)

    budget = fv.validate_non_negative_amount(
        data.get("budget"), "budget", report, "Budget must be a positive number"
    )
    hourly_rate = fv.validate_non_negative_amount(
        data.get("hourly_rate"),
        "hourly_rate",
        report,
        "Hourly rate must be a positive number",
    )
    status = "planning"
    if not is_blank(data.get("status")):
        status = fv.validate_choice(
            data.get("status"), "status", report, PROJECT_STATUSES
        )

    cleaned = {
        "name": name,
        "description": data.get("description") or None,
        "client_id": client_id,
        "start_date": start_date,
        "due_date": due_date,
        "status": status,
        "budget": budget,
        "hourly_rate": hourly_rate,
        "tags": data.get("tags") or [],
    }
    return report, cleaned


def validate_task(
    data: Mapping[str, Any], today: Optional[dt.date] = None
) -> Tuple[ValidationReport, Cleaned]:
    """Validate a task form; new tasks cannot be due in the past."""
    report = ValidationReport()
    fv = FieldValidators
    today = today or dt.date.today()

    due_date = fv.validate_date(
        data.get("due_date"), "due_date", report, "Due date is required"
    )
    if due_date and data.get("id") is None and due_date < today:
        report.add_error("due_date", "Due date cannot be in the past", due_date)

    project_id = None
    if not is_blank(data.get("project_id")):
        project_id = fv.validate_reference(
            data.get("project_id"), "project_id", report, "Project is required"
        )

    cleaned = {
        "title": fv.validate_required_text(
            data.get("title"), "title", report, "Title is required"
        ),
        "description": data.get("description") or None,
        "project_id": project_id,
        "status": fv.validate_choice(
            data.get("status") or "not-started", "status", report, TASK_STATUSES
        ),
        "priority": fv.validate_choice(
            data.get("priority") or "medium", "priority", report, TASK_PRIORITIES
        ),
        "due_date": due_date,
    }
    return report, cleaned
