"""Expense commands."""

from typing import Optional, Tuple

import click

from freelance_ledger.calculators.ledger_calculator import (
    calculate_total_expenses,
    get_expenses_by_category,
)
from freelance_ledger.cli.commands.common import (
    apply_edits,
    collect_edits,
    debug_option,
    get_state,
)
from freelance_ledger.cli.error_handlers import with_error_handling
from freelance_ledger.cli.utils.formatters import (
    format_currency,
    format_info,
    format_success,
    format_table,
)
from freelance_ledger.forms import ExpenseForm
from freelance_ledger.models.expense import ExpenseCategory

CATEGORY_CHOICES = [c.value for c in ExpenseCategory]


@click.group(name="expense")
def expense_group():
    """Record and review project expenses."""


@expense_group.command(name="add")
@click.option("--project-id", type=int, required=True, help="Project record id")
@click.option("--amount", type=str, required=True, help="Amount spent")
@click.option(
    "--category",
    type=click.Choice(CATEGORY_CHOICES, case_sensitive=False),
    required=True,
)
@click.option("--description", type=str, required=True)
@click.option(
    "--date", "expense_date", type=str, default=None, help="Date (default today)"
)
@click.option(
    "--receipt", type=str, default=None, help="Receipt file name or reference"
)
@click.option("--billable/--not-billable", default=True, show_default=True)
@click.option("--reimbursable/--not-reimbursable", default=False, show_default=True)
@debug_option
def add_expense(
    project_id: int,
    amount: str,
    category: str,
    description: str,
    expense_date: Optional[str],
    receipt: Optional[str],
    billable: bool,
    reimbursable: bool,
    debug: bool,
):
    """Add an expense to a project."""
    with with_error_handling(debug):
        state = get_state()
        services = state.services
        services.projects.get(project_id)
        values = {
            "project_id": project_id,
            "amount": amount,
            "category": ExpenseCategory.parse(category).value,
            "description": description,
            "receipt": receipt,
            "billable": billable,
            "reimbursable": reimbursable,
        }
        if expense_date:
            values["date"] = expense_date
        expense = ExpenseForm(services.expenses, values).submit()
        click.echo(
            format_success(
                f"Added {expense.category.value} expense of "
                f"{format_currency(expense.amount, state.config.currency_symbol)} "
                f"(id {expense.id})"
            )
        )


@expense_group.command(name="list")
@click.option(
    "--project-id", type=int, default=None, help="Only this project's expenses"
)
@click.option(
    "--category",
    type=click.Choice(["all"] + CATEGORY_CHOICES, case_sensitive=False),
    default="all",
    show_default=True,
)
@debug_option
def list_expenses(project_id: Optional[int], category: str, debug: bool):
    """List expenses, newest first."""
    with with_error_handling(debug):
        state = get_state()
        service = state.services.expenses
        if project_id is not None:
            expenses = service.for_project(project_id, category)
        else:
            where = {} if category == "all" else {
                "category": ExpenseCategory.parse(category).value
            }
            expenses = service.list_all(**where)

        if not expenses:
            click.echo(format_info("No expenses found."))
            return

        symbol = state.config.currency_symbol
        rows = [
            [
                str(e.id),
                e.date.isoformat(),
                e.category.value,
                format_currency(e.amount, symbol),
                "yes" if e.billable else "no",
                "yes" if e.reimbursable else "no",
                e.description,
            ]
            for e in expenses
        ]
        headers = [
            "ID", "Date", "Category", "Amount", "Billable", "Reimb.", "Description"
        ]
        click.echo(format_table(headers, rows))
        total = format_currency(calculate_total_expenses(expenses), symbol)
        click.echo(format_success(f"{len(expenses)} expense(s), {total}"))


@expense_group.command(name="edit")
@click.argument("expense_id", type=int)
@click.option("--project-id", type=int, default=None, help="Move to another project")
@click.option("--amount", type=str, default=None)
@click.option(
    "--category",
    type=click.Choice(CATEGORY_CHOICES, case_sensitive=False),
    default=None,
)
@click.option("--description", type=str, default=None)
@click.option("--date", "expense_date", type=str, default=None)
@click.option("--receipt", type=str, default=None)
@click.option("--billable/--not-billable", default=None)
@click.option("--reimbursable/--not-reimbursable", default=None)
@click.option(
    "--clear",
    multiple=True,
    type=click.Choice(["receipt"]),
    help="Empty a field (repeatable)",
)
@debug_option
def edit_expense(
    expense_id: int,
    project_id: Optional[int],
    amount: Optional[str],
    category: Optional[str],
    description: Optional[str],
    expense_date: Optional[str],
    receipt: Optional[str],
    billable: Optional[bool],
    reimbursable: Optional[bool],
    clear: Tuple[str, ...],
    debug: bool,
):
    """Change fields of an expense; unset options keep their value."""
    edits = collect_edits(
        {
            "project_id": project_id,
            "amount": amount,
            "category": ExpenseCategory.parse(category).value if category else None,
            "description": description,
            "date": expense_date,
            "receipt": receipt,
            "billable": billable,
            "reimbursable": reimbursable,
        },
        clear,
    )
    with with_error_handling(debug):
        state = get_state()
        services = state.services
        if project_id is not None:
            services.projects.get(project_id)
        form = ExpenseForm.edit(services.expenses, expense_id)
        apply_edits(form, edits)
        expense = form.submit()
        click.echo(
            format_success(
                f"Updated expense {expense.id}: {expense.category.value}, "
                f"{format_currency(expense.amount, state.config.currency_symbol)}"
            )
        )


@expense_group.command(name="delete")
@click.argument("expense_id", type=int)
@click.confirmation_option(prompt="Delete this expense?")
@debug_option
def delete_expense(expense_id: int, debug: bool):
    """Delete an expense."""
    with with_error_handling(debug):
        get_state().services.expenses.delete(expense_id)
        click.echo(format_success(f"Deleted expense {expense_id}"))


@expense_group.command(name="summary")
@click.argument("project_id", type=int)
@debug_option
def expense_summary(project_id: int, debug: bool):
    """Show a project's expenses by category."""
    with with_error_handling(debug):
        state = get_state()
        services = state.services
        project = services.projects.get(project_id)
        expenses = services.expenses.for_project(project_id)
        by_category = get_expenses_by_category(expenses)
        symbol = state.config.currency_symbol

        click.echo(click.style(f"Expenses for {project.name}", bold=True))
        if not by_category:
            click.echo(format_info("No expenses recorded."))
            return
        rows = [
            [category.value, format_currency(amount, symbol)]
            for category, amount in by_category.items()
        ]
        click.echo(format_table(["Category", "Amount"], rows))
        total = calculate_total_expenses(expenses)
        click.echo(format_success(f"Total {format_currency(total, symbol)}"))
