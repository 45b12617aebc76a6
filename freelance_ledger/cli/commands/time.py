"""Time tracking commands: manual entries and the live timer."""

from typing import Optional

import click

from freelance_ledger.cli.commands.common import (
    apply_edits,
    collect_edits,
    debug_option,
    get_state,
)
from freelance_ledger.cli.error_handlers import with_error_handling
from freelance_ledger.cli.utils.formatters import (
    format_hours,
    format_info,
    format_success,
    format_table,
    format_warning,
)
from freelance_ledger.exceptions import TimerStateError
from freelance_ledger.forms import TimeEntryForm
from freelance_ledger.timer import Timer

TIMER_ACTIONS = {"p": "pause", "r": "resume", "s": "stop", "c": "cancel"}


def format_elapsed(seconds: float) -> str:
    """Format elapsed seconds as HH:MM:SS."""
    total = int(seconds)
    hours, remainder = divmod(total, 3600)
    minutes, secs = divmod(remainder, 60)
    return f"{hours:02d}:{minutes:02d}:{secs:02d}"


@click.group(name="time")
def time_group():
    """Log time manually or with a live timer."""


@time_group.command(name="log")
@click.option("--project-id", type=int, required=True, help="Project record id")
@click.option(
    "--date", "entry_date", type=str, default=None, help="Date (default today)"
)
@click.option("--start", "start_time", type=str, required=True, help="Start time HH:MM")
@click.option("--end", "end_time", type=str, required=True, help="End time HH:MM")
@click.option("--description", type=str, required=True, help="What was done")
@debug_option
def log_time(
    project_id: int,
    entry_date: Optional[str],
    start_time: str,
    end_time: str,
    description: str,
    debug: bool,
):
    """Log a time entry.

    An end time before the start time is taken to be on the next day.

    Example:
        freelance-ledger time log --project-id 1 --start 09:00 --end 17:30 \\
            --description "API work"
    """
    with with_error_handling(debug):
        services = get_state().services
        services.projects.get(project_id)
        values = {
            "project_id": project_id,
            "start_time": start_time,
            "end_time": end_time,
            "description": description,
        }
        if entry_date:
            values["date"] = entry_date
        entry = TimeEntryForm(services.time_entries, values).submit()
        click.echo(
            format_success(
                f"Logged {format_hours(entry.duration)} on {entry.date.isoformat()} "
                f"(id {entry.id})"
            )
        )


@time_group.command(name="list")
@click.option(
    "--project-id", type=int, default=None, help="Only this project's entries"
)
@debug_option
def list_time(project_id: Optional[int], debug: bool):
    """List time entries, newest first."""
    with with_error_handling(debug):
        service = get_state().services.time_entries
        if project_id is not None:
            entries = service.for_project(project_id)
        else:
            entries, _ = service.list()

        if not entries:
            click.echo(format_info("No time entries found."))
            return

        rows = [
            [
                str(e.id),
                e.date.isoformat(),
                e.start_time.strftime("%H:%M"),
                e.end_time.strftime("%H:%M"),
                format_hours(e.duration),
                str(e.project_id),
                e.description,
            ]
            for e in entries
        ]
        headers = ["ID", "Date", "Start", "End", "Hours", "Project", "Description"]
        click.echo(format_table(headers, rows))
        total = sum(e.duration for e in entries)
        click.echo(format_success(f"{len(entries)} entries, {format_hours(total)}"))


@time_group.command(name="edit")
@click.argument("entry_id", type=int)
@click.option("--project-id", type=int, default=None, help="Move to another project")
@click.option("--date", "entry_date", type=str, default=None)
@click.option("--start", "start_time", type=str, default=None, help="Start time HH:MM")
@click.option("--end", "end_time", type=str, default=None, help="End time HH:MM")
@click.option("--description", type=str, default=None)
@debug_option
def edit_time(
    entry_id: int,
    project_id: Optional[int],
    entry_date: Optional[str],
    start_time: Optional[str],
    end_time: Optional[str],
    description: Optional[str],
    debug: bool,
):
    """Change a time entry; new start or end times recompute the duration."""
    edits = collect_edits(
        {
            "project_id": project_id,
            "date": entry_date,
            "start_time": start_time,
            "end_time": end_time,
            "description": description,
        }
    )
    with with_error_handling(debug):
        services = get_state().services
        if project_id is not None:
            services.projects.get(project_id)
        form = TimeEntryForm.edit(services.time_entries, entry_id)
        apply_edits(form, edits)
        entry = form.submit()
        click.echo(
            format_success(
                f"Updated time entry {entry.id}: {format_hours(entry.duration)} "
                f"on {entry.date.isoformat()}"
            )
        )


@time_group.command(name="delete")
@click.argument("entry_id", type=int)
@click.confirmation_option(prompt="Delete this time entry?")
@debug_option
def delete_time(entry_id: int, debug: bool):
    """Delete a time entry."""
    with with_error_handling(debug):
        get_state().services.time_entries.delete(entry_id)
        click.echo(format_success(f"Deleted time entry {entry_id}"))


@time_group.command(name="timer")
@click.argument("project_id", type=int)
@debug_option
def run_timer(project_id: int, debug: bool):
    """Track time on a project with a live timer.

    Commands while the timer runs: p = pause, r = resume, s = stop,
    c = cancel. After stopping, the entry is shown for confirmation before
    it is saved.
    """
    with with_error_handling(debug):
        state = get_state()
        services = state.services
        project = services.projects.get(project_id)

        def show_elapsed(seconds: float) -> None:
            click.echo(f"\r⏱  {format_elapsed(seconds)}", nl=False, err=True)

        timer = Timer(
            project_id=project_id,
            on_tick=show_elapsed,
            tick_seconds=state.config.timer_tick_seconds,
        )
        with timer:
            timer.start()
            click.echo(format_info(f"Timer started for {project.name}"))
            draft = None
            while draft is None:
                choice = click.prompt(
                    "\n[p]ause [r]esume [s]top [c]ancel",
                    type=click.Choice(list(TIMER_ACTIONS)),
                    show_choices=False,
                )
                action = TIMER_ACTIONS[choice]
                if action == "cancel":
                    timer.cancel()
                    click.echo(format_warning("Timer cancelled, nothing saved"))
                    return
                try:
                    if action == "pause":
                        timer.pause()
                        elapsed = format_elapsed(timer.elapsed_seconds)
                        click.echo(format_info(f"Paused at {elapsed}"))
                    elif action == "resume":
                        timer.resume()
                        click.echo(format_info("Resumed"))
                    else:
                        draft = timer.stop(project.name)
                except TimerStateError as e:
                    # Keys that do not fit the state leave the timer as it was
                    click.echo(format_warning(e.message), err=True)

        form = TimeEntryForm.from_draft(services.time_entries, draft)
        click.echo(
            f"\n{draft.date.isoformat()}  {form.values['start_time']} - "
            f"{form.values['end_time']}  {format_hours(draft.duration)}"
        )
        description = click.prompt("Description", default=draft.description)
        form.set("description", description)
        if not click.confirm("Save this time entry?", default=True):
            click.echo(format_warning("Time entry discarded"))
            return
        entry = form.submit()
        click.echo(
            format_success(f"Saved {format_hours(entry.duration)} (id {entry.id})")
        )
