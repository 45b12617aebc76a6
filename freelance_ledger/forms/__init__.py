"""Form editing sessions that validate input and submit it to the services."""

from freelance_ledger.forms.base import EntityForm
from freelance_ledger.forms.entity_forms import (
    ClientForm,
    ExpenseForm,
    ProjectForm,
    TaskForm,
    TimeEntryForm,
)
from freelance_ledger.forms.invoice_form import InvoiceForm

__all__ = [
    "ClientForm",
    "EntityForm",
    "ExpenseForm",
    "InvoiceForm",
    "ProjectForm",
    "TaskForm",
    "TimeEntryForm",
]
