"""Project commands."""

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
    format_currency,
    format_hours,
    format_info,
    format_success,
    format_table,
)
from freelance_ledger.forms import ProjectForm

PROJECT_STATUSES = ["planning", "in-progress", "completed", "on-hold"]


@click.group(name="project")
def project_group():
    """Manage projects and view their summaries."""


@project_group.command(name="add")
@click.argument("name")
@click.option("--client-id", type=int, required=True, help="Client record id")
@click.option("--description", type=str, default=None)
@click.option("--start-date", type=str, default=None, help="Start date (YYYY-MM-DD)")
@click.option("--due-date", type=str, default=None, help="Due date (YYYY-MM-DD)")
@click.option("--budget", type=str, default=None, help="Project budget")
@click.option("--hourly-rate", type=str, default=None, help="Hourly rate")
@click.option(
    "--status",
    type=click.Choice(PROJECT_STATUSES),
    default="planning",
    show_default=True,
)
@click.option("--tag", "tags", multiple=True, help="Label (repeatable)")
@debug_option
def add_project(
    name: str,
    client_id: int,
    description: Optional[str],
    start_date: Optional[str],
    due_date: Optional[str],
    budget: Optional[str],
    hourly_rate: Optional[str],
    status: str,
    tags: Tuple[str, ...],
    debug: bool,
):
    """Add a project for a client.

    Example:
        freelance-ledger project add "Website" --client-id 1 --hourly-rate 85
    """
    with with_error_handling(debug):
        services = get_state().services
        services.clients.get(client_id)
        form = ProjectForm(
            services.projects,
            {
                "name": name,
                "client_id": client_id,
                "description": description,
                "start_date": start_date,
                "due_date": due_date,
                "budget": budget,
                "hourly_rate": hourly_rate,
                "status": status,
                "tags": list(tags),
            },
        )
        project = form.submit()
        click.echo(format_success(f"Added project {project.name} (id {project.id})"))


@project_group.command(name="list")
@click.option("--client-id", type=int, default=None, help="Only this client's projects")
@debug_option
def list_projects(client_id: Optional[int], debug: bool):
    """List projects."""
    with with_error_handling(debug):
        state = get_state()
        service = state.services.projects
        if client_id is not None:
            projects = service.for_client(client_id)
        else:
            projects, _ = service.list()

        if not projects:
            click.echo(format_info("No projects found."))
            return

        symbol = state.config.currency_symbol
        rows = [
            [
                str(p.id),
                p.name,
                str(p.client_id),
                p.status,
                p.start_date.isoformat(),
                format_currency(p.hourly_rate, symbol),
                format_currency(p.budget, symbol),
            ]
            for p in projects
        ]
        headers = ["ID", "Name", "Client", "Status", "Start", "Rate", "Budget"]
        click.echo(format_table(headers, rows))
        click.echo(format_success(f"Found {len(projects)} project(s)"))


@project_group.command(name="edit")
@click.argument("project_id", type=int)
@click.option("--name", type=str, default=None)
@click.option("--client-id", type=int, default=None, help="Move to another client")
@click.option("--description", type=str, default=None)
@click.option("--start-date", type=str, default=None, help="Start date (YYYY-MM-DD)")
@click.option("--due-date", type=str, default=None, help="Due date (YYYY-MM-DD)")
@click.option("--budget", type=str, default=None, help="Project budget")
@click.option("--hourly-rate", type=str, default=None, help="Hourly rate")
@click.option("--status", type=click.Choice(PROJECT_STATUSES), default=None)
@click.option("--tag", "tags", multiple=True, help="Replace the labels (repeatable)")
@click.option(
    "--clear",
    multiple=True,
    type=click.Choice(["description", "due_date"]),
    help="Empty a field (repeatable)",
)
@debug_option
def edit_project(
    project_id: int,
    name: Optional[str],
    client_id: Optional[int],
    description: Optional[str],
    start_date: Optional[str],
    due_date: Optional[str],
    budget: Optional[str],
    hourly_rate: Optional[str],
    status: Optional[str],
    tags: Tuple[str, ...],
    clear: Tuple[str, ...],
    debug: bool,
):
    """Change fields of a project; unset options keep their value.

    Example:
        freelance-ledger project edit 1 --hourly-rate 95 --clear due_date
    """
    edits = collect_edits(
        {
            "name": name,
            "client_id": client_id,
            "description": description,
            "start_date": start_date,
            "due_date": due_date,
            "budget": budget,
            "hourly_rate": hourly_rate,
            "status": status,
            "tags": list(tags) or None,
        },
        clear,
    )
    with with_error_handling(debug):
        services = get_state().services
        if client_id is not None:
            services.clients.get(client_id)
        form = ProjectForm.edit(services.projects, project_id)
        apply_edits(form, edits)
        project = form.submit()
        click.echo(
            format_success(f"Updated project {project.name} (id {project.id})")
        )


@project_group.command(name="delete")
@click.argument("project_id", type=int)
@click.confirmation_option(prompt="Delete this project?")
@debug_option
def delete_project(project_id: int, debug: bool):
    """Delete a project; its time entries and expenses are kept."""
    with with_error_handling(debug):
        get_state().services.projects.delete(project_id)
        click.echo(format_success(f"Deleted project {project_id}"))


@project_group.command(name="summary")
@click.argument("project_id", type=int)
@debug_option
def project_summary(project_id: int, debug: bool):
    """Show hours, billable amount and expenses of a project."""
    with with_error_handling(debug):
        state = get_state()
        summary = state.services.ledger.summarize(project_id)
        symbol = state.config.currency_symbol

        click.echo(click.style(f"Project: {summary.project_name}", bold=True))
        click.echo(f"  Time entries:       {summary.entry_count}")
        click.echo(f"  Total hours:        {format_hours(summary.total_hours)}")
        click.echo(
            f"  Hourly rate:        {format_currency(summary.hourly_rate, symbol)}"
        )
        click.echo(
            f"  Billable time:      {format_currency(summary.total_billable, symbol)}"
        )
        click.echo(
            f"  Total expenses:     {format_currency(summary.total_expenses, symbol)}"
        )
        click.echo(
            f"  Billable expenses:  "
            f"{format_currency(summary.billable_expenses, symbol)}"
        )
        click.echo(
            f"  Reimbursable:       "
            f"{format_currency(summary.reimbursable_expenses, symbol)}"
        )
        if summary.budget:
            click.echo(
                f"  Budget remaining:   "
                f"{format_currency(summary.budget_remaining, symbol)} "
                f"of {format_currency(summary.budget, symbol)}"
            )
        for category, amount in summary.expenses_by_category.items():
            name = getattr(category, "value", category)
            click.echo(f"    {name:<18}{format_currency(amount, symbol)}")
