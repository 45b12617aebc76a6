"""Unit tests for the record adapters."""

import datetime as dt
from decimal import Decimal

import pytest

from freelance_ledger.exceptions import ValidationError
from freelance_ledger.models import Expense, ExpenseCategory, LineItem, TimeEntry
from freelance_ledger.services import record_adapters as adapters


class TestRecordId:
    """Test cases for record_id."""

    @pytest.mark.parametrize(
        "record,expected",
        [({"Id": 3}, 3), ({"id": "4"}, 4), ({"Id": ""}, None), ({}, None)],
    )
    def test_record_id(self, record, expected):
        """Test both casings and empty ids."""
        assert adapters.record_id(record) == expected


class TestClientAndProject:
    """Test cases for client and project records."""

    def test_client_from_record(self, sample_client_record):
        """Test storage names and comma separated tags."""
        client = adapters.client_from_record({"Id": 1, **sample_client_record})

        assert client.id == 1
        assert client.name == "Ada Lovelace"
        assert client.tags == ["vip", "design"]

    def test_client_to_record(self, sample_client_record):
        """Test that tags are joined again."""
        client = adapters.client_from_record(sample_client_record)
        record = adapters.client_to_record(client)

        assert record["Name"] == "Ada Lovelace"
        assert record["Tags"] == "vip,design"
        assert record["lastContact"] is None

    def test_numeric_phone_from_sheet(self):
        """Test that numeric cells are read as text."""
        client = adapters.client_from_record({"Name": "Ada", "phone": 5551234567})
        assert client.phone == "5551234567"

    def test_project_from_record(self, sample_project_record):
        """Test decimals and dates of a project record."""
        project = adapters.project_from_record({"Id": 2, **sample_project_record})

        assert project.client_id == 1
        assert project.hourly_rate == Decimal("85.0")
        assert project.due_date == dt.date(2024, 3, 31)
        assert project.progress == 40

    def test_project_to_record(self, sample_project_record):
        """Test JSON-friendly values."""
        project = adapters.project_from_record(sample_project_record)
        record = adapters.project_to_record(project)

        assert record["startDate"] == "2024-01-01"
        assert record["budget"] == 5000.0
        assert record["clientId"] == 1

    def test_invalid_record(self):
        """Test that a corrupt record names the entity and field."""
        with pytest.raises(ValidationError, match="Stored project 7 is invalid"):
            adapters.project_from_record({"Id": 7, "Name": "X", "clientId": "abc"})


class TestTimeAndExpense:
    """Test cases for time entry and expense records."""

    def test_time_entry_keeps_stored_duration(self):
        """Test that the duration is not recomputed from the times."""
        entry = adapters.time_entry_from_record(
            {
                "Id": 5,
                "date": "2024-01-15",
                "startTime": "09:00",
                "endTime": "10:00",
                "duration": 0.75,
                "description": "Call",
                "projectId": 2,
                "CreatedOn": "2024-01-15T10:00:00Z",
            }
        )
        assert entry.duration == Decimal("0.75")
        assert entry.created_on.tzinfo is not None

    def test_time_entry_to_record(self):
        """Test HH:MM times and float duration."""
        entry = TimeEntry(
            date="2024-01-15",
            start_time="9:05",
            end_time="17:30",
            duration="8.42",
            description="API",
            project_id=2,
        )
        record = adapters.time_entry_to_record(entry)

        assert record["startTime"] == "09:05"
        assert record["duration"] == 8.42
        assert "CreatedOn" not in record

    @pytest.mark.parametrize(
        "billable,expected", [("FALSE", False), ("true", True), (None, True)]
    )
    def test_expense_flags(self, billable, expected):
        """Test flags stored as text by a sheet."""
        expense = adapters.expense_from_record(
            {
                "date": "2024-02-01",
                "amount": 10,
                "category": "Travel",
                "description": "Train",
                "projectId": 1,
                "billable": billable,
            }
        )
        assert expense.billable is expected
        assert expense.reimbursable is False

    def test_expense_to_record(self):
        """Test the category value and float amount."""
        expense = Expense(
            date="2024-02-01",
            amount="10.5",
            category=ExpenseCategory.TRAVEL,
            description="Train",
            project_id=1,
        )
        record = adapters.expense_to_record(expense)
        assert record["category"] == "Travel"
        assert record["amount"] == 10.5

    def test_from_records(self):
        """Test batch conversion for a simple table."""
        tasks = adapters.from_records(
            "task", [{"Id": 1, "Name": "Copy", "dueDate": "2024-05-01"}]
        )
        assert tasks[0].title == "Copy"


class TestInvoiceRecords:
    """Test cases for invoice and line item records."""

    def test_invoice_from_record_orders_items(self):
        """Test that items are ordered by id."""
        invoice = adapters.invoice_from_record(
            {
                "Id": 1,
                "invoiceNumber": "INV-2024-001",
                "clientId": 3,
                "issueDate": "2024-03-01",
                "dueDate": "2024-03-15",
                "status": "pending",
                "subtotal": 300,
                "tax": 30,
                "total": 330,
                "amountPaid": None,
            },
            [
                {"Id": 8, "description": "B", "quantity": 1, "rate": 100},
                {"Id": 7, "description": "A", "quantity": 2, "rate": 100},
            ],
        )

        assert [item.description for item in invoice.items] == ["A", "B"]
        assert invoice.items[0].amount == Decimal("200.00")
        assert invoice.amount_paid == Decimal("0.00")
        assert invoice.total == Decimal("330.00")

    def test_line_item_to_record(self):
        """Test the item record and its owner reference."""
        item = LineItem(id=4, description="Design " * 20, quantity=2, rate=50)
        record = adapters.line_item_to_record(item, invoice_id=9)

        assert record["Id"] == 4
        assert record["invoiceId"] == 9
        assert record["amount"] == 100.0
        assert len(record["Name"]) == 80

    def test_new_line_item_has_no_id(self):
        """Test that unsaved items carry no Id."""
        record = adapters.line_item_to_record(LineItem(description="X"), 1)
        assert "Id" not in record
