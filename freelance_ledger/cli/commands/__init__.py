"""CLI commands."""

from freelance_ledger.cli.commands.client import client_group
from freelance_ledger.cli.commands.expense import expense_group
from freelance_ledger.cli.commands.invoice import invoice_group
from freelance_ledger.cli.commands.project import project_group
from freelance_ledger.cli.commands.task import task_group
from freelance_ledger.cli.commands.time import time_group

__all__ = [
    "client_group",
    "expense_group",
    "invoice_group",
    "project_group",
    "task_group",
    "time_group",
]
