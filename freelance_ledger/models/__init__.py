"""Data models for the freelance ledger.

This package contains Pydantic models for all business entities:
- BaseDataModel: Base class with common configuration
- Client: A client the freelancer works for
- Project, Task: Client projects and their to-dos
- TimeEntry: Time logged against a project
- Expense, ExpenseCategory: Money spent on a project
- Invoice, LineItem, InvoiceStatus: Invoices and their billable rows
"""

from freelance_ledger.models.base import BaseDataModel
from freelance_ledger.models.client import Client
from freelance_ledger.models.expense import Expense, ExpenseCategory
from freelance_ledger.models.invoice import Invoice, InvoiceStatus, LineItem
from freelance_ledger.models.project import Project, Task
from freelance_ledger.models.time_entry import TimeEntry

__all__ = [
    "BaseDataModel",
    "Client",
    "Expense",
    "ExpenseCategory",
    "Invoice",
    "InvoiceStatus",
    "LineItem",
    "Project",
    "Task",
    "TimeEntry",
]
