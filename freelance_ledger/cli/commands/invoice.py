"""Invoice commands."""

import datetime as dt
from typing import List, Optional, Tuple

import click

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
    format_percent,
    format_success,
    format_table,
)
from freelance_ledger.exceptions import ValidationError
from freelance_ledger.forms import InvoiceForm
from freelance_ledger.models.invoice import Invoice
from freelance_ledger.services.invoice_service import SORT_FIELDS
from freelance_ledger.utils.converters import parse_date

STATUS_COLORS = {"paid": "green", "pending": "yellow", "overdue": "red"}


def parse_item(value: str) -> Tuple[str, str, str]:
    """Split a ``DESCRIPTION:QUANTITY:RATE`` item option.

    The description may itself contain colons.

    Example:
        >>> parse_item("Design: homepage:2:100")
        ('Design: homepage', '2', '100')
    """
    parts = value.rsplit(":", 2)
    if len(parts) != 3 or not parts[0].strip():
        raise click.BadParameter(
            f"'{value}' is not DESCRIPTION:QUANTITY:RATE", param_hint="--item"
        )
    description, quantity, rate = (part.strip() for part in parts)
    return description, quantity, rate


def _status(invoice: Invoice) -> str:
    status = invoice.status.value
    return click.style(status, fg=STATUS_COLORS.get(status))


def _echo_invoice(invoice: Invoice, symbol: str, tax_rate) -> None:
    click.echo(click.style(f"Invoice {invoice.invoice_number}", bold=True))
    click.echo(f"  Client:     {invoice.client_id}")
    if invoice.project_id is not None:
        click.echo(f"  Project:    {invoice.project_id}")
    click.echo(f"  Issued:     {invoice.issue_date.isoformat()}")
    click.echo(f"  Due:        {invoice.due_date.isoformat()}")
    click.echo(f"  Status:     {_status(invoice)}")
    click.echo()
    rows = [
        [
            item.description,
            f"{item.quantity.normalize():f}",
            format_currency(item.rate, symbol),
            format_currency(item.amount, symbol),
        ]
        for item in invoice.items
    ]
    click.echo(format_table(["Description", "Qty", "Rate", "Amount"], rows))
    click.echo(f"  Subtotal:   {format_currency(invoice.subtotal, symbol)}")
    click.echo(
        f"  Tax ({format_percent(tax_rate)}):  {format_currency(invoice.tax, symbol)}"
    )
    click.echo(f"  Total:      {format_currency(invoice.total, symbol)}")
    click.echo(f"  Paid:       {format_currency(invoice.amount_paid, symbol)}")
    click.echo(f"  Balance:    {format_currency(invoice.balance_due, symbol)}")
    if invoice.payment_date:
        click.echo(f"  Last paid:  {invoice.payment_date.isoformat()}")
    if invoice.notes:
        click.echo(f"  Notes:      {invoice.notes}")


def _fill_items(form: InvoiceForm, items: List[Tuple[str, str, str]]) -> None:
    """Replace the form's line items with parsed ``--item`` values."""
    while len(form.items) > 1:
        form.remove_item(len(form.items) - 1)
    for index, (description, quantity, rate) in enumerate(items):
        if index > 0:
            form.add_item()
        form.update_item(index, "description", description)
        form.update_item(index, "quantity", quantity)
        form.update_item(index, "rate", rate)


@click.group(name="invoice")
def invoice_group():
    """Create, list, edit, pay and delete invoices."""


@invoice_group.command(name="create")
@click.option("--client-id", type=int, required=True, help="Client record id")
@click.option("--project-id", type=int, default=None, help="Project record id")
@click.option(
    "--item",
    "items",
    multiple=True,
    required=True,
    help="Line item as DESCRIPTION:QUANTITY:RATE (repeatable)",
)
@click.option("--issue-date", type=str, default=None, help="Issue date (default today)")
@click.option(
    "--due-date",
    type=str,
    default=None,
    help="Due date (default issue date + due days)",
)
@click.option("--number", type=str, default=None, help="Override the invoice number")
@click.option("--notes", type=str, default=None)
@debug_option
def create_invoice(
    client_id: int,
    project_id: Optional[int],
    items: Tuple[str, ...],
    issue_date: Optional[str],
    due_date: Optional[str],
    number: Optional[str],
    notes: Optional[str],
    debug: bool,
):
    """Create an invoice.

    Example:
        freelance-ledger invoice create --client-id 1 \\
            --item "Design:2:100" --item "Hosting:1:50"
    """
    parsed_items: List[Tuple[str, str, str]] = [parse_item(i) for i in items]

    with with_error_handling(debug):
        state = get_state()
        services = state.services
        services.clients.get(client_id)

        today = dt.date.today()
        due_days = state.config.invoice_due_days
        form = InvoiceForm(services.invoices, due_days=due_days, today=today)
        form.set("client_id", client_id)
        form.set("project_id", project_id)
        form.set("notes", notes)
        if number:
            form.set("invoice_number", number)
        if issue_date:
            try:
                issued = parse_date(issue_date)
            except ValueError:
                raise ValidationError(
                    f"Please enter a valid issue date, got {issue_date!r}",
                    field="issue_date",
                )
            form.set("issue_date", issued)
            form.set("due_date", issued + dt.timedelta(days=due_days))
        if due_date:
            form.set("due_date", due_date)

        _fill_items(form, parsed_items)
        invoice = form.submit()
        click.echo(
            format_success(
                f"Created invoice {invoice.invoice_number} (id {invoice.id}), "
                f"total {format_currency(invoice.total, state.config.currency_symbol)}"
            )
        )


@invoice_group.command(name="list")
@click.option(
    "--status",
    type=click.Choice(["all", "pending", "paid", "overdue"]),
    default="all",
    show_default=True,
)
@click.option("--search", type=str, default=None, help="Match the invoice number")
@click.option(
    "--sort",
    "sort_field",
    type=click.Choice(list(SORT_FIELDS)),
    default="issue_date",
    show_default=True,
)
@click.option(
    "--direction",
    type=click.Choice(["asc", "desc"]),
    default="desc",
    show_default=True,
)
@click.option("--page", type=click.IntRange(min=1), default=1, show_default=True)
@click.option("--page-size", type=click.IntRange(min=1), default=None)
@debug_option
def list_invoices(
    status: str,
    search: Optional[str],
    sort_field: str,
    direction: str,
    page: int,
    page_size: Optional[int],
    debug: bool,
):
    """List invoices with their derived status."""
    with with_error_handling(debug):
        state = get_state()
        result = state.services.invoices.list_invoices(
            status=status,
            search=search,
            sort_field=sort_field,
            sort_direction=direction,
            page=page,
            page_size=page_size,
        )
        if not result.invoices:
            click.echo(format_info("No invoices found."))
            return

        symbol = state.config.currency_symbol
        rows = [
            [
                str(inv.id),
                inv.invoice_number,
                str(inv.client_id),
                inv.issue_date.isoformat(),
                inv.due_date.isoformat(),
                format_currency(inv.total, symbol),
                format_currency(inv.amount_paid, symbol),
                inv.status.value,
            ]
            for inv in result.invoices
        ]
        headers = ["ID", "Number", "Client", "Issued", "Due", "Total", "Paid", "Status"]
        click.echo(format_table(headers, rows))
        click.echo(
            format_info(
                f"Page {result.page} of {result.page_count} "
                f"({result.total_count} invoice(s))"
            )
        )


@invoice_group.command(name="show")
@click.argument("invoice_id", type=int)
@debug_option
def show_invoice(invoice_id: int, debug: bool):
    """Show an invoice with its line items."""
    with with_error_handling(debug):
        state = get_state()
        invoice = state.services.invoices.get_invoice(invoice_id)
        _echo_invoice(invoice, state.config.currency_symbol, state.config.tax_rate)


@invoice_group.command(name="edit")
@click.argument("invoice_id", type=int)
@click.option("--client-id", type=int, default=None, help="Client record id")
@click.option("--project-id", type=int, default=None, help="Project record id")
@click.option(
    "--item",
    "items",
    multiple=True,
    help="Replace the line items: DESCRIPTION:QUANTITY:RATE (repeatable)",
)
@click.option("--issue-date", type=str, default=None)
@click.option("--due-date", type=str, default=None)
@click.option("--number", type=str, default=None, help="Invoice number")
@click.option("--notes", type=str, default=None)
@click.option(
    "--clear",
    multiple=True,
    type=click.Choice(["project_id", "notes"]),
    help="Empty a field (repeatable)",
)
@debug_option
def edit_invoice(
    invoice_id: int,
    client_id: Optional[int],
    project_id: Optional[int],
    items: Tuple[str, ...],
    issue_date: Optional[str],
    due_date: Optional[str],
    number: Optional[str],
    notes: Optional[str],
    clear: Tuple[str, ...],
    debug: bool,
):
    """Change an invoice; payments already recorded are kept.

    Example:
        freelance-ledger invoice edit 3 --due-date 2024-05-01 --clear notes
    """
    edits = collect_edits(
        {
            "client_id": client_id,
            "project_id": project_id,
            "issue_date": issue_date,
            "due_date": due_date,
            "invoice_number": number,
            "notes": notes,
            "items": [parse_item(i) for i in items] or None,
        },
        clear,
    )
    new_items = edits.pop("items", None)

    with with_error_handling(debug):
        state = get_state()
        services = state.services
        if client_id is not None:
            services.clients.get(client_id)
        form = InvoiceForm.edit(services.invoices, invoice_id)
        apply_edits(form, edits)
        if new_items:
            _fill_items(form, new_items)
        invoice = form.submit()
        click.echo(
            format_success(
                f"Updated invoice {invoice.invoice_number} (id {invoice.id}), "
                f"total {format_currency(invoice.total, state.config.currency_symbol)}"
            )
        )


@invoice_group.command(name="pay")
@click.argument("invoice_id", type=int)
@click.argument("amount", type=str)
@debug_option
def pay_invoice(invoice_id: int, amount: str, debug: bool):
    """Record a payment of AMOUNT on an invoice."""
    with with_error_handling(debug):
        state = get_state()
        form = InvoiceForm.edit(state.services.invoices, invoice_id)
        invoice = form.pay(amount)
        symbol = state.config.currency_symbol
        click.echo(
            format_success(
                f"Recorded payment on {invoice.invoice_number}: "
                f"{format_currency(invoice.amount_paid, symbol)} of "
                f"{format_currency(invoice.total, symbol)} paid ({_status(invoice)})"
            )
        )


@invoice_group.command(name="delete")
@click.argument("invoice_id", type=int)
@click.confirmation_option(prompt="Delete this invoice and its items?")
@debug_option
def delete_invoice(invoice_id: int, debug: bool):
    """Delete an invoice and its line items."""
    with with_error_handling(debug):
        get_state().services.invoices.delete_invoice(invoice_id)
        click.echo(format_success(f"Deleted invoice {invoice_id}"))
