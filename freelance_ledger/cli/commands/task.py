"""Task commands."""

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
from freelance_ledger.forms import TaskForm
from freelance_ledger.validators.form_validators import TASK_PRIORITIES, TASK_STATUSES


@click.group(name="task")
def task_group():
    """Keep a to-do list, optionally per project."""


@task_group.command(name="add")
@click.argument("title")
@click.option("--due-date", type=str, required=True, help="Due date (YYYY-MM-DD)")
@click.option("--project-id", type=int, default=None, help="Project record id")
@click.option("--description", type=str, default=None)
@click.option(
    "--priority",
    type=click.Choice(TASK_PRIORITIES),
    default="medium",
    show_default=True,
)
@debug_option
def add_task(
    title: str,
    due_date: str,
    project_id: Optional[int],
    description: Optional[str],
    priority: str,
    debug: bool,
):
    """Add a task; it cannot be due in the past.

    Example:
        freelance-ledger task add "Send mockups" --due-date 2024-03-01
    """
    with with_error_handling(debug):
        services = get_state().services
        if project_id is not None:
            services.projects.get(project_id)
        form = TaskForm(
            services.tasks,
            {
                "title": title,
                "due_date": due_date,
                "project_id": project_id,
                "description": description,
                "priority": priority,
            },
        )
        task = form.submit()
        click.echo(
            format_success(
                f"Added task {task.title} (id {task.id}), due "
                f"{task.due_date.isoformat()}"
            )
        )


@task_group.command(name="list")
@click.option("--project-id", type=int, default=None, help="Only this project's tasks")
@click.option(
    "--status",
    type=click.Choice(["all"] + list(TASK_STATUSES)),
    default="all",
    show_default=True,
)
@debug_option
def list_tasks(project_id: Optional[int], status: str, debug: bool):
    """List tasks, soonest due first."""
    with with_error_handling(debug):
        service = get_state().services.tasks
        filters = {}
        if project_id is not None:
            filters["projectId"] = project_id
        if status != "all":
            filters["status"] = status
        tasks = service.list_all(**filters)

        if not tasks:
            click.echo(format_info("No tasks found."))
            return

        rows = [
            [
                str(t.id),
                t.title,
                t.due_date.isoformat(),
                t.priority,
                t.status,
                "" if t.project_id is None else str(t.project_id),
            ]
            for t in tasks
        ]
        headers = ["ID", "Title", "Due", "Priority", "Status", "Project"]
        click.echo(format_table(headers, rows))
        click.echo(format_success(f"Found {len(tasks)} task(s)"))


@task_group.command(name="edit")
@click.argument("task_id", type=int)
@click.option("--title", type=str, default=None)
@click.option("--due-date", type=str, default=None, help="Due date (YYYY-MM-DD)")
@click.option("--project-id", type=int, default=None, help="Project record id")
@click.option("--description", type=str, default=None)
@click.option("--status", type=click.Choice(TASK_STATUSES), default=None)
@click.option("--priority", type=click.Choice(TASK_PRIORITIES), default=None)
@click.option(
    "--clear",
    multiple=True,
    type=click.Choice(["description", "project_id"]),
    help="Empty a field (repeatable)",
)
@debug_option
def edit_task(
    task_id: int,
    title: Optional[str],
    due_date: Optional[str],
    project_id: Optional[int],
    description: Optional[str],
    status: Optional[str],
    priority: Optional[str],
    clear: Tuple[str, ...],
    debug: bool,
):
    """Change a task; an existing task may stay overdue.

    Example:
        freelance-ledger task edit 2 --status completed
    """
    edits = collect_edits(
        {
            "title": title,
            "due_date": due_date,
            "project_id": project_id,
            "description": description,
            "status": status,
            "priority": priority,
        },
        clear,
    )
    with with_error_handling(debug):
        services = get_state().services
        if project_id is not None:
            services.projects.get(project_id)
        form = TaskForm.edit(services.tasks, task_id)
        apply_edits(form, edits)
        task = form.submit()
        click.echo(format_success(f"Updated task {task.title} (id {task.id})"))


@task_group.command(name="delete")
@click.argument("task_id", type=int)
@click.confirmation_option(prompt="Delete this task?")
@debug_option
def delete_task(task_id: int, debug: bool):
    """Delete a task."""
    with with_error_handling(debug):
        get_state().services.tasks.delete(task_id)
        click.echo(format_success(f"Deleted task {task_id}"))
