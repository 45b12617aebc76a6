"""Forms for time entries, expenses, clients, projects and tasks."""

import datetime as dt
import logging
from typing import Any, Dict, Optional

from freelance_ledger.calculators.time_utils import compute_duration
from freelance_ledger.forms.base import EntityForm
from freelance_ledger.models import Client, Expense, Project, Task, TimeEntry
from freelance_ledger.services.entity_service import TimeEntryService
from freelance_ledger.timer import TimeEntryDraft
from freelance_ledger.utils.converters import format_time
from freelance_ledger.validators.form_validators import (
    validate_client,
    validate_expense,
    validate_project,
    validate_task,
    validate_time_entry,
)

logger = logging.getLogger(__name__)


class TimeEntryForm(EntityForm[TimeEntry]):
    """
    Log or edit a time entry.

    The duration follows the start and end times: it is recomputed whenever
    either changes, and cleared while one of them cannot be parsed. A record
    loaded from the store keeps its stored duration until a time is edited.
    """

    fields = ("date", "start_time", "end_time", "duration", "description", "project_id")
    validator = staticmethod(validate_time_entry)

    def defaults(self) -> Dict[str, Any]:
        values = super().defaults()
        values["date"] = dt.date.today().isoformat()
        return values

    @classmethod
    def from_draft(
        cls, service: TimeEntryService, draft: TimeEntryDraft
    ) -> "TimeEntryForm":
        """Open a new entry pre-filled from a stopped timer.

        The timer's duration excludes pauses, so it is kept as measured.
        """
        form = cls(service)
        form.values.update(draft.to_form_data())
        logger.debug(f"Time entry form filled from timer: {draft.duration}h")
        return form

    def on_change(self, name: str) -> None:
        if name not in ("start_time", "end_time", "date"):
            return
        start, end = self.values.get("start_time"), self.values.get("end_time")
        if not start or not end:
            self.values["duration"] = None
            return
        try:
            self.values["duration"] = compute_duration(
                self.values.get("date") or dt.date.today(), start, end
            )
        except ValueError:
            self.values["duration"] = None

    def build(self, cleaned: Dict[str, Any]) -> TimeEntry:
        return TimeEntry(**cleaned)

    def to_values(self, model: TimeEntry) -> Dict[str, Any]:
        return {
            "date": model.date.isoformat(),
            "start_time": format_time(model.start_time),
            "end_time": format_time(model.end_time),
            "duration": model.duration,
            "description": model.description,
            "project_id": model.project_id,
        }


class ExpenseForm(EntityForm[Expense]):
    fields = (
        "date",
        "amount",
        "category",
        "description",
        "receipt",
        "billable",
        "reimbursable",
        "project_id",
    )
    validator = staticmethod(validate_expense)

    def defaults(self) -> Dict[str, Any]:
        values = super().defaults()
        values.update(
            date=dt.date.today().isoformat(), billable=True, reimbursable=False
        )
        return values

    def build(self, cleaned: Dict[str, Any]) -> Expense:
        return Expense(**cleaned)

    def to_values(self, model: Expense) -> Dict[str, Any]:
        return {
            "date": model.date.isoformat(),
            "amount": model.amount,
            "category": model.category.value,
            "description": model.description,
            "receipt": model.receipt,
            "billable": model.billable,
            "reimbursable": model.reimbursable,
            "project_id": model.project_id,
        }


class ClientForm(EntityForm[Client]):
    fields = (
        "name",
        "company",
        "email",
        "phone",
        "status",
        "tags",
        "address",
        "last_contact",
    )
    validator = staticmethod(validate_client)

    def build(self, cleaned: Dict[str, Any]) -> Client:
        return Client(**cleaned)

    def to_values(self, model: Client) -> Dict[str, Any]:
        return model.model_dump(exclude={"id"})


class ProjectForm(EntityForm[Project]):
    fields = (
        "name",
        "description",
        "client_id",
        "start_date",
        "due_date",
        "status",
        "budget",
        "hourly_rate",
        "tags",
    )
    validator = staticmethod(validate_project)

    def build(self, cleaned: Dict[str, Any]) -> Project:
        # Progress and end date are not edited here; keep the stored ones
        stored = self.saved.model_dump(exclude={"id"}) if self.saved else {}
        return Project(**{**stored, **cleaned})

    def to_values(self, model: Project) -> Dict[str, Any]:
        return model.model_dump(include=set(self.fields))


class TaskForm(EntityForm[Task]):
    """Task form; a new task cannot be due in the past."""

    fields = ("title", "description", "project_id", "status", "priority", "due_date")

    def __init__(self, service, values=None, today: Optional[dt.date] = None):
        self.today = today
        super().__init__(service, values)

    def validate(self):
        report, cleaned = validate_task(
            {**self.values, "id": self.record_id}, self.today
        )
        self.errors = report.errors_by_field()
        return report, cleaned

    def build(self, cleaned: Dict[str, Any]) -> Task:
        return Task(**cleaned)

    def to_values(self, model: Task) -> Dict[str, Any]:
        return model.model_dump(include=set(self.fields))
