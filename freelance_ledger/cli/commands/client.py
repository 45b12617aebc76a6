"""Client commands."""

from typing import Optional, Tuple

import click

from freelance_ledger.cli.commands.common import (
    apply_edits,
    collect_edits,
    debug_option,
    get_state,
)
from freelance_ledger.cli.error_handlers import with_error_handling
from freelance_ledger.cli.utils.formatters import (
    format_info,
    format_success,
    format_table,
)
from freelance_ledger.forms import ClientForm

CLEARABLE_FIELDS = ["company", "email", "phone", "address", "tags", "last_contact"]


@click.group(name="client")
def client_group():
    """Manage clients."""


@client_group.command(name="add")
@click.argument("name")
@click.option("--company", type=str, default=None, help="Company name")
@click.option("--email", type=str, default=None, help="Contact email")
@click.option("--phone", type=str, default=None, help="Contact phone")
@click.option(
    "--status",
    type=click.Choice(["active", "inactive", "lead"]),
    default="active",
    show_default=True,
)
@click.option("--tag", "tags", multiple=True, help="Label (repeatable)")
@click.option("--address", type=str, default=None, help="Postal address")
@debug_option
def add_client(
    name: str,
    company: Optional[str],
    email: Optional[str],
    phone: Optional[str],
    status: str,
    tags: Tuple[str, ...],
    address: Optional[str],
    debug: bool,
):
    """Add a client.

    Example:
        freelance-ledger client add "Ada Lovelace" --company "Engines Ltd"
    """
    with with_error_handling(debug):
        form = ClientForm(
            get_state().services.clients,
            {
                "name": name,
                "company": company,
                "email": email,
                "phone": phone,
                "status": status,
                "tags": list(tags),
                "address": address,
            },
        )
        client = form.submit()
        click.echo(format_success(f"Added client {client.name} (id {client.id})"))


@client_group.command(name="list")
@click.option("--search", type=str, default=None, help="Match name or company")
@debug_option
def list_clients(search: Optional[str], debug: bool):
    """List clients."""
    with with_error_handling(debug):
        service = get_state().services.clients
        if search:
            clients = service.search(search)
        else:
            clients, _ = service.list()

        if not clients:
            click.echo(format_info("No clients found."))
            return

        rows = [
            [str(c.id), c.name, c.company or "", c.email or "", c.status]
            for c in clients
        ]
        click.echo(format_table(["ID", "Name", "Company", "Email", "Status"], rows))
        click.echo(format_success(f"Found {len(clients)} client(s)"))


@client_group.command(name="edit")
@click.argument("client_id", type=int)
@click.option("--name", type=str, default=None)
@click.option("--company", type=str, default=None)
@click.option("--email", type=str, default=None)
@click.option("--phone", type=str, default=None)
@click.option(
    "--status", type=click.Choice(["active", "inactive", "lead"]), default=None
)
@click.option("--tag", "tags", multiple=True, help="Replace the labels (repeatable)")
@click.option("--address", type=str, default=None)
@click.option(
    "--last-contact", type=str, default=None, help="Last contact (YYYY-MM-DD)"
)
@click.option(
    "--clear",
    multiple=True,
    type=click.Choice(CLEARABLE_FIELDS),
    help="Empty a field (repeatable)",
)
@debug_option
def edit_client(
    client_id: int,
    name: Optional[str],
    company: Optional[str],
    email: Optional[str],
    phone: Optional[str],
    status: Optional[str],
    tags: Tuple[str, ...],
    address: Optional[str],
    last_contact: Optional[str],
    clear: Tuple[str, ...],
    debug: bool,
):
    """Change fields of a client; unset options keep their value.

    Example:
        freelance-ledger client edit 1 --email ada@example.com --clear phone
    """
    edits = collect_edits(
        {
            "name": name,
            "company": company,
            "email": email,
            "phone": phone,
            "status": status,
            "tags": list(tags) or None,
            "address": address,
            "last_contact": last_contact,
        },
        clear,
    )
    with with_error_handling(debug):
        form = ClientForm.edit(get_state().services.clients, client_id)
        apply_edits(form, edits)
        client = form.submit()
        click.echo(format_success(f"Updated client {client.name} (id {client.id})"))


@client_group.command(name="delete")
@click.argument("client_id", type=int)
@click.confirmation_option(prompt="Delete this client?")
@debug_option
def delete_client(client_id: int, debug: bool):
    """Delete a client; their projects and invoices are kept."""
    with with_error_handling(debug):
        get_state().services.clients.delete(client_id)
        click.echo(format_success(f"Deleted client {client_id}"))
