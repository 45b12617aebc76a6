"""Unit tests for the store gateway and the entity services."""

import datetime as dt
from decimal import Decimal
from unittest.mock import Mock

import pytest
import requests.exceptions
from googleapiclient.errors import HttpError

from freelance_ledger.exceptions import NotFoundError, RemoteOperationError
from freelance_ledger.models import Client, Expense, Project, TimeEntry
from freelance_ledger.services.entity_service import (
    ClientService,
    ExpenseService,
    LedgerService,
    ProjectService,
    StoreGateway,
    TimeEntryService,
)
from freelance_ledger.services.record_store import (
    DeleteResult,
    MutationResult,
    RecordResult,
)


class TestStoreGateway:
    """Test cases for StoreGateway error mapping."""

    def test_http_error_mapped(self, store):
        """Test that a rejected request is not retryable."""
        gateway = StoreGateway(store)
        func = Mock(side_effect=HttpError(resp=Mock(status=403), content=b"{}"))

        with pytest.raises(RemoteOperationError) as exc_info:
            gateway.call("list clients", func)

        assert not exc_info.value.retryable
        assert isinstance(exc_info.value.__cause__, HttpError)

    def test_network_error_mapped(self, store):
        """Test that a network failure is retryable."""
        gateway = StoreGateway(store)
        func = Mock(side_effect=requests.exceptions.ConnectionError("down"))

        with pytest.raises(RemoteOperationError) as exc_info:
            gateway.call("create expense", func)

        assert exc_info.value.retryable
        assert exc_info.value.message == (
            "Failed to create expense: Network connection error"
        )

    def test_other_errors_propagate(self, store):
        """Test that programming errors are not disguised."""
        with pytest.raises(KeyError):
            StoreGateway(store).call("list", Mock(side_effect=KeyError("x")))

    def test_rejected_create(self):
        """Test a store that answers with a failed result."""
        backend = Mock()
        backend.create.return_value = MutationResult(
            success=False,
            results=[RecordResult(success=False, message="Row limit reached")],
        )

        with pytest.raises(RemoteOperationError, match="Row limit reached"):
            StoreGateway(backend).create("client", [{"Name": "Ada"}], "create client")

    def test_rejected_delete(self):
        """Test that a failed delete is not retryable."""
        backend = Mock()
        backend.delete.return_value = DeleteResult(success=False, message="locked")

        with pytest.raises(RemoteOperationError) as exc_info:
            StoreGateway(backend).delete("client", [1], "delete client 1")

        assert not exc_info.value.retryable

    def test_update_requires_id(self, store):
        """Test that updates must name their record."""
        with pytest.raises(ValueError, match="no Id"):
            StoreGateway(store).update("client", [{"Name": "Ada"}], "update client")

    def test_create_filters_fields(self):
        """Test that only updateable fields reach the store."""
        backend = Mock()
        backend.create.return_value = MutationResult(
            success=True, results=[RecordResult(success=True, data={"Id": 1})]
        )
        StoreGateway(backend).create(
            "client", [{"Name": "Ada", "Id": 5, "email": None}], "create client"
        )
        backend.create.assert_called_once_with("client", [{"Name": "Ada"}])

    def test_update_passes_cleared_fields(self):
        """Test that None values reach the store on update."""
        backend = Mock()
        backend.update.return_value = MutationResult(
            success=True, results=[RecordResult(success=True, data={"Id": 1})]
        )
        StoreGateway(backend).update(
            "client", [{"Id": 1, "Name": "Ada", "email": None}], "update client"
        )
        backend.update.assert_called_once_with(
            "client", [{"Id": 1, "Name": "Ada", "email": None}]
        )


class TestEntityServices:
    """Test cases for CRUD through the entity services."""

    def test_create_and_get(self, store):
        """Test that a created client can be loaded."""
        service = ClientService(store)
        created = service.create(Client(name="Ada", tags=["vip"]))

        assert created.id == 1
        assert service.get(1) == created

    def test_get_missing(self, store):
        """Test NotFoundError with the entity name."""
        with pytest.raises(NotFoundError, match="Client 3 not found"):
            ClientService(store).get(3)

    def test_update(self, store):
        """Test overwriting a record."""
        service = ClientService(store)
        service.create(Client(name="Ada"))
        updated = service.update(1, Client(name="Ada", company="Engines"))

        assert updated.company == "Engines"
        assert service.get(1).company == "Engines"

    def test_update_missing(self, store):
        """Test that updating a deleted record fails."""
        with pytest.raises(NotFoundError):
            ClientService(store).update(8, Client(name="Ada"))

    def test_update_clears_optional_fields(self, store):
        """Test that removing a receipt on edit is stored."""
        service = ExpenseService(store)
        expense = service.create(
            Expense(
                date="2024-02-01",
                amount=25,
                category="Software",
                description="Licence",
                receipt="r.pdf",
                project_id=1,
            )
        )

        service.update(expense.id, expense.model_copy(update={"receipt": None}))

        assert service.get(expense.id).receipt is None

    def test_delete(self, store):
        """Test deleting a record."""
        service = ClientService(store)
        service.create(Client(name="Ada"))
        service.delete(1)

        with pytest.raises(NotFoundError):
            service.delete(1)

    def test_list_default_order_and_total(self, store):
        """Test that clients are listed by name."""
        service = ClientService(store)
        for name in ("Grace", "Ada", "Linus"):
            service.create(Client(name=name))

        clients, total = service.list()
        assert [c.name for c in clients] == ["Ada", "Grace", "Linus"]
        assert total == 3

    def test_search_name_or_company(self, store):
        """Test search across name and company without duplicates."""
        service = ClientService(store)
        service.create(Client(name="Acme Labs", company="Acme"))
        service.create(Client(name="Ada", company="Acme Corp"))
        service.create(Client(name="Grace", company="Navy"))

        assert [c.name for c in service.search("acme")] == ["Acme Labs", "Ada"]

    def test_projects_for_client(self, store):
        """Test filtering projects by client."""
        service = ProjectService(store)
        service.create(Project(name="Site", client_id=1, start_date="2024-01-01"))
        service.create(Project(name="App", client_id=2, start_date="2024-01-01"))

        assert [p.name for p in service.for_client(2)] == ["App"]

    def test_expenses_for_project_by_category(self, store):
        """Test the category filter on project expenses."""
        service = ExpenseService(store)
        for category in ("Travel", "Meals", "Travel"):
            service.create(
                Expense(
                    date="2024-02-01",
                    amount=10,
                    category=category,
                    description="x",
                    project_id=1,
                )
            )

        assert len(service.for_project(1)) == 3
        assert len(service.for_project(1, "Travel")) == 2

    def test_store_failure_surfaces(self):
        """Test that a broken transport raises RemoteOperationError."""
        backend = Mock()
        backend.fetch.side_effect = OSError("disk unavailable")

        with pytest.raises(RemoteOperationError, match="Failed to list time entries"):
            TimeEntryService(backend).list()


class TestLedgerService:
    """Test cases for project summaries."""

    def test_summarize(self, store):
        """Test hours, billable amount and expenses of one project."""
        ledger = LedgerService(store)
        project = ledger.projects.create(
            Project(
                name="Site",
                client_id=1,
                start_date="2024-01-01",
                budget=2000,
                hourly_rate=85,
            )
        )
        ledger.time_entries.create(
            TimeEntry(
                date=dt.date(2024, 1, 2),
                start_time="09:00",
                end_time="17:00",
                duration=8,
                description="Build",
                project_id=project.id,
            )
        )
        ledger.expenses.create(
            Expense(
                date="2024-01-03",
                amount=100,
                category="Software",
                description="Licence",
                project_id=project.id,
            )
        )

        summary = ledger.summarize(project.id)

        assert summary.total_hours == Decimal("8.00")
        assert summary.total_billable == Decimal("680.00")
        assert summary.total_expenses == Decimal("100.00")

    def test_summarize_missing_project(self, store):
        """Test NotFoundError for an unknown project."""
        with pytest.raises(NotFoundError):
            LedgerService(store).summarize(99)
