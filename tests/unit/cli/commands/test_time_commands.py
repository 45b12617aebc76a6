"""Unit tests for the time tracking and expense commands."""

import datetime as dt
from decimal import Decimal
from unittest.mock import patch

import pytest

from freelance_ledger.cli import cli
from freelance_ledger.cli.commands.time import format_elapsed
from freelance_ledger.cli.error_handlers import (
    EXIT_NOT_FOUND,
    EXIT_TIMER,
    EXIT_VALIDATION,
)
from freelance_ledger.exceptions import TimerStateError
from freelance_ledger.models import Client, Project, TimeEntry
from freelance_ledger.timer import TimeEntryDraft


@pytest.fixture
def project(services):
    client = services.clients.create(Client(name="Ada Lovelace"))
    return services.projects.create(
        Project(name="Site", client_id=client.id, start_date=dt.date(2024, 1, 1))
    )


@pytest.fixture
def draft(project):
    return TimeEntryDraft(
        date=dt.date(2024, 3, 10),
        start_time=dt.time(9, 0),
        end_time=dt.time(10, 30),
        duration=Decimal("1.25"),
        description="Work on Site",
        project_id=project.id,
    )


class TestLogTime:
    """Test suite for manual time entries."""

    def test_log(self, runner, state, services, project):
        """Test logging a time entry with a computed duration."""
        result = runner.invoke(
            cli,
            [
                "time",
                "log",
                "--project-id",
                str(project.id),
                "--date",
                "2024-01-15",
                "--start",
                "09:00",
                "--end",
                "17:30",
                "--description",
                "API work",
            ],
            obj=state,
        )

        assert result.exit_code == 0, result.output
        assert "Logged 8.50h on 2024-01-15 (id 1)" in result.output
        assert services.time_entries.get(1).duration == Decimal("8.50")

    def test_log_overnight(self, runner, state, project):
        """Test an end time on the next day."""
        result = runner.invoke(
            cli,
            [
                "time",
                "log",
                "--project-id",
                str(project.id),
                "--start",
                "22:00",
                "--end",
                "01:00",
                "--description",
                "Release",
            ],
            obj=state,
        )
        assert result.exit_code == 0, result.output
        assert "Logged 3.00h" in result.output

    def test_log_bad_time(self, runner, state, project):
        """Test that a malformed time is a validation error."""
        result = runner.invoke(
            cli,
            [
                "time",
                "log",
                "--project-id",
                str(project.id),
                "--start",
                "9am",
                "--end",
                "17:00",
                "--description",
                "API work",
            ],
            obj=state,
        )
        assert result.exit_code == EXIT_VALIDATION

    def test_log_unknown_project(self, runner, state):
        """Test logging against a missing project."""
        result = runner.invoke(
            cli,
            [
                "time",
                "log",
                "--project-id",
                "9",
                "--start",
                "09:00",
                "--end",
                "10:00",
                "--description",
                "x",
            ],
            obj=state,
        )
        assert result.exit_code == EXIT_NOT_FOUND

    def test_list_empty(self, runner, state):
        """Test listing with no entries."""
        result = runner.invoke(cli, ["time", "list"], obj=state)
        assert result.exit_code == 0
        assert "No time entries found." in result.output

    def test_edit_end_time_recomputes_duration(self, runner, state, services, project):
        """Test that a new end time updates the stored duration."""
        entry = services.time_entries.create(
            TimeEntry(
                date="2024-01-15",
                start_time="09:00",
                end_time="10:30",
                duration="1.5",
                description="API work",
                project_id=project.id,
            )
        )

        result = runner.invoke(
            cli, ["time", "edit", str(entry.id), "--end", "12:00"], obj=state
        )

        assert result.exit_code == 0, result.output
        assert "Updated time entry 1: 3.00h on 2024-01-15" in result.output
        stored = services.time_entries.get(entry.id)
        assert stored.duration == Decimal("3")
        assert stored.description == "API work"

    def test_edit_without_changes(self, runner, state):
        """Test that an edit needs at least one option."""
        result = runner.invoke(cli, ["time", "edit", "1"], obj=state)
        assert result.exit_code == 2
        assert "Nothing to change" in result.output

    def test_edit_unknown_entry(self, runner, state):
        """Test editing a missing entry."""
        result = runner.invoke(
            cli, ["time", "edit", "9", "--description", "x"], obj=state
        )
        assert result.exit_code == EXIT_NOT_FOUND
        assert "Time entry 9 not found" in result.output

    def test_delete(self, runner, state, services, project):
        """Test deleting an entry after confirming."""
        entry = services.time_entries.create(
            TimeEntry(
                date="2024-01-15",
                start_time="09:00",
                end_time="10:00",
                duration="1",
                description="Call",
                project_id=project.id,
            )
        )

        result = runner.invoke(
            cli, ["time", "delete", str(entry.id)], input="y\n", obj=state
        )

        assert result.exit_code == 0, result.output
        assert f"Deleted time entry {entry.id}" in result.output
        assert services.time_entries.list() == ([], 0)



class TestTimerCommand:
    """Test suite for the interactive timer."""

    def test_stop_and_save(self, runner, state, services, project, draft):
        """Test stopping the timer and saving the entry."""
        with patch("freelance_ledger.cli.commands.time.Timer") as timer_cls:
            timer = timer_cls.return_value
            timer.__enter__.return_value = timer
            timer.stop.return_value = draft

            result = runner.invoke(
                cli, ["time", "timer", str(project.id)], input="s\n\ny\n", obj=state
            )

        assert result.exit_code == 0, result.output
        timer.start.assert_called_once()
        timer.stop.assert_called_once_with("Site")
        assert "09:00 - 10:30" in result.output
        assert "Saved 1.25h (id 1)" in result.output
        entry = services.time_entries.get(1)
        assert entry.description == "Work on Site"
        assert entry.duration == Decimal("1.25")

    def test_pause_resume_and_rename(self, runner, state, services, project, draft):
        """Test pausing, resuming and editing the description."""
        with patch("freelance_ledger.cli.commands.time.Timer") as timer_cls:
            timer = timer_cls.return_value
            timer.stop.return_value = draft
            timer.elapsed_seconds = 65

            result = runner.invoke(
                cli,
                ["time", "timer", str(project.id)],
                input="p\nr\ns\nHomepage\ny\n",
                obj=state,
            )

        assert result.exit_code == 0, result.output
        timer.pause.assert_called_once()
        timer.resume.assert_called_once()
        assert "Paused at 00:01:05" in result.output
        assert services.time_entries.get(1).description == "Homepage"

    def test_discard(self, runner, state, services, project, draft):
        """Test declining to save the stopped timer."""
        with patch("freelance_ledger.cli.commands.time.Timer") as timer_cls:
            timer_cls.return_value.stop.return_value = draft
            result = runner.invoke(
                cli, ["time", "timer", str(project.id)], input="s\n\nn\n", obj=state
            )

        assert result.exit_code == 0
        assert "Time entry discarded" in result.output
        assert services.time_entries.list() == ([], 0)

    def test_cancel(self, runner, state, services, project):
        """Test cancelling the timer."""
        with patch("freelance_ledger.cli.commands.time.Timer") as timer_cls:
            result = runner.invoke(
                cli, ["time", "timer", str(project.id)], input="c\n", obj=state
            )

        assert result.exit_code == 0
        timer_cls.return_value.cancel.assert_called_once()
        assert "nothing saved" in result.output
        assert services.time_entries.list() == ([], 0)

    def test_wrong_state_key_keeps_timer_running(
        self, runner, state, services, project, draft
    ):
        """Test that resuming a running timer warns and tracking continues."""
        with patch("freelance_ledger.cli.commands.time.Timer") as timer_cls:
            timer = timer_cls.return_value
            timer.resume.side_effect = TimerStateError(
                "Cannot resume a timer that is running"
            )
            timer.stop.return_value = draft
            result = runner.invoke(
                cli,
                ["time", "timer", str(project.id)],
                input="r\ns\n\ny\n",
                obj=state,
            )

        assert result.exit_code == 0, result.output
        assert "Cannot resume a timer that is running" in result.output
        timer.stop.assert_called_once_with("Site")
        assert "Saved 1.25h (id 1)" in result.output
        assert services.time_entries.get(1).duration == Decimal("1.25")

    def test_timer_start_failure(self, runner, state, project):
        """Test that a timer that cannot start has its own exit code."""
        with patch("freelance_ledger.cli.commands.time.Timer") as timer_cls:
            timer_cls.return_value.start.side_effect = TimerStateError(
                "Timer is already running"
            )
            result = runner.invoke(
                cli, ["time", "timer", str(project.id)], input="s\n", obj=state
            )

        assert result.exit_code == EXIT_TIMER
        assert "Timer is already running" in result.output

    def test_format_elapsed(self):
        """Test the elapsed time display."""
        assert format_elapsed(3725.9) == "01:02:05"


class TestExpenseCommands:
    """Test suite for the expense commands."""

    def add(self, runner, state, project, category, amount, *extra):
        return runner.invoke(
            cli,
            [
                "expense",
                "add",
                "--project-id",
                str(project.id),
                "--amount",
                amount,
                "--category",
                category,
                "--description",
                f"{category} purchase",
                *extra,
            ],
            obj=state,
        )

    def test_add_expense(self, runner, state, services, project):
        """Test adding an expense with a lower-case category."""
        result = self.add(runner, state, project, "travel", "42.5", "--reimbursable")

        assert result.exit_code == 0, result.output
        assert "Added Travel expense of $42.50 (id 1)" in result.output
        expense = services.expenses.get(1)
        assert expense.reimbursable is True
        assert expense.billable is True

    def test_add_expense_bad_amount(self, runner, state, project):
        """Test that a non-positive amount is rejected."""
        result = self.add(runner, state, project, "Travel", "0")
        assert result.exit_code == EXIT_VALIDATION

    def test_unknown_category(self, runner, state, project):
        """Test that click rejects an unknown category."""
        result = self.add(runner, state, project, "Snacks", "5")
        assert result.exit_code == 2

    def test_list_by_category(self, runner, state, project):
        """Test filtering the list by category."""
        self.add(runner, state, project, "Travel", "42.5")
        self.add(runner, state, project, "Software", "10")

        result = runner.invoke(
            cli,
            [
                "expense",
                "list",
                "--project-id",
                str(project.id),
                "--category",
                "software",
            ],
            obj=state,
        )

        assert result.exit_code == 0, result.output
        assert "Software purchase" in result.output
        assert "Travel purchase" not in result.output
        assert "1 expense(s), $10.00" in result.output

    def test_summary(self, runner, state, project):
        """Test the per-category summary."""
        self.add(runner, state, project, "Travel", "42.5")
        self.add(runner, state, project, "Travel", "7.5")
        self.add(runner, state, project, "Meals", "12")

        result = runner.invoke(cli, ["expense", "summary", str(project.id)], obj=state)

        assert result.exit_code == 0, result.output
        assert "Expenses for Site" in result.output
        assert "$50.00" in result.output
        assert "Total $62.00" in result.output

    def test_edit_expense(self, runner, state, services, project):
        """Test changing flags and category and clearing the receipt."""
        self.add(runner, state, project, "Travel", "42.5", "--receipt", "r.pdf")

        result = runner.invoke(
            cli,
            [
                "expense",
                "edit",
                "1",
                "--category",
                "meals",
                "--not-billable",
                "--clear",
                "receipt",
            ],
            obj=state,
        )

        assert result.exit_code == 0, result.output
        assert "Updated expense 1: Meals, $42.50" in result.output
        expense = services.expenses.get(1)
        assert expense.receipt is None
        assert expense.billable is False
        assert expense.description == "Travel purchase"

    def test_edit_expense_bad_amount(self, runner, state, services, project):
        """Test that an invalid amount leaves the expense unchanged."""
        self.add(runner, state, project, "Travel", "42.5")

        result = runner.invoke(
            cli, ["expense", "edit", "1", "--amount", "-3"], obj=state
        )

        assert result.exit_code == EXIT_VALIDATION
        assert services.expenses.get(1).amount == Decimal("42.50")

    def test_delete_expense(self, runner, state, services, project):
        """Test deleting an expense with --yes."""
        self.add(runner, state, project, "Travel", "42.5")

        result = runner.invoke(cli, ["expense", "delete", "1", "--yes"], obj=state)

        assert result.exit_code == 0, result.output
        assert "Deleted expense 1" in result.output
        assert services.expenses.list() == ([], 0)
