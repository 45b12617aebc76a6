"""Unit tests for the in-memory record store."""

import json

import pytest

from freelance_ledger.services.memory_store import InMemoryRecordStore
from freelance_ledger.services.record_store import (
    FetchQuery,
    Operator,
    OrderBy,
    PagingInfo,
    RecordStore,
    WhereCondition,
)


@pytest.fixture
def clients(store):
    store.create(
        "client",
        [
            {"Name": "Charlie", "company": "Acme"},
            {"Name": "alice", "company": "Globex"},
            {"Name": "Bob", "company": "Acme"},
        ],
    )
    return store


class TestInMemoryRecordStore:
    """Test cases for InMemoryRecordStore."""

    def test_satisfies_protocol(self, store):
        """Test that the store implements RecordStore."""
        assert isinstance(store, RecordStore)

    def test_create_assigns_ids_and_timestamps(self, store):
        """Test system fields of created records."""
        result = store.create("client", [{"Name": "Ada"}, {"Name": "Grace"}])

        assert result.success
        first, second = result.records
        assert (first["Id"], second["Id"]) == (1, 2)
        assert first["CreatedOn"] == first["ModifiedOn"]
        assert first["CreatedOn"].endswith("+00:00")

    def test_create_ignores_system_and_unknown_fields(self, store):
        """Test that callers cannot choose ids."""
        created = store.create("client", [{"Id": 99, "Name": "Ada", "x": 1}]).records
        assert created[0]["Id"] == 1
        assert "x" not in created[0]

    def test_ids_never_reused(self, store):
        """Test that deleting the last record does not free its id."""
        store.create("task", [{"Name": "One"}])
        store.delete("task", [1])
        assert store.create("task", [{"Name": "Two"}]).records[0]["Id"] == 2

    def test_fetch_where_order_paging(self, clients):
        """Test a combined query and the total count."""
        query = FetchQuery(
            where=[WhereCondition("company", Operator.EXACT_MATCH, ("Acme",))],
            order_by=[OrderBy("Name", "asc")],
            paging=PagingInfo(limit=1, offset=1),
        )
        result = clients.fetch("client", query)

        assert result.total_count == 2
        assert [r["Name"] for r in result.data] == ["Charlie"]

    def test_fetch_fields(self, clients):
        """Test field selection."""
        result = clients.fetch("client", FetchQuery(fields=["Name"]))
        assert set(result.data[0]) == {"Id", "Name"}

    def test_fetch_returns_copies(self, clients):
        """Test that callers cannot mutate stored records."""
        clients.fetch("client", FetchQuery()).data[0]["Name"] = "Changed"
        assert clients.get_by_id("client", 1)["Name"] == "Charlie"

    def test_get_by_id_missing(self, store):
        """Test that a missing record returns None."""
        assert store.get_by_id("client", 42) is None

    def test_update(self, clients):
        """Test that updates merge fields and stamp ModifiedOn."""
        before = clients.get_by_id("client", 2)
        result = clients.update("client", [{"Id": 2, "company": "Initech"}])

        assert result.success
        updated = result.records[0]
        assert updated["Name"] == "alice"
        assert updated["company"] == "Initech"
        assert updated["CreatedOn"] == before["CreatedOn"]

    def test_update_missing_record(self, clients):
        """Test that a batch with an unknown id changes nothing."""
        result = clients.update("client", [{"Id": 1, "Name": "C"}, {"Id": 9}])

        assert not result.success
        assert result.records == []
        assert any("Record 9 not found" in f.message for f in result.failures)
        assert "nothing was updated" in result.message
        assert clients.get_by_id("client", 1)["Name"] == "Charlie"

    def test_update_clears_field(self, clients):
        """Test that a None value is stored, clearing the field."""
        result = clients.update("client", [{"Id": 1, "company": None}])

        assert result.success
        assert clients.get_by_id("client", 1)["company"] is None

    def test_delete_missing_record(self, clients):
        """Test that nothing is deleted when an id is unknown."""
        result = clients.delete("client", [1, 7])

        assert not result.success
        assert "7" in result.message
        assert clients.get_by_id("client", 1) is not None

    def test_unknown_table(self, store):
        """Test that every operation checks the table name."""
        with pytest.raises(KeyError):
            store.fetch("nope", FetchQuery())


class TestPersistence:
    """Test cases for JSON file persistence."""

    def test_round_trip_through_file(self, tmp_path):
        """Test that a new store sees the saved records and id counters."""
        path = tmp_path / "data" / "ledger.json"
        store = InMemoryRecordStore(path)
        store.create("expense", [{"amount": 12.5, "category": "Meals"}])
        store.create("expense", [{"amount": 3.0, "category": "Meals"}])
        store.delete("expense", [2])

        reopened = InMemoryRecordStore(path)

        assert reopened.get_by_id("expense", 1)["amount"] == 12.5
        assert reopened.get_by_id("expense", 2) is None
        assert reopened.create("expense", [{"amount": 1}]).records[0]["Id"] == 3

    def test_file_layout(self, tmp_path):
        """Test the stored JSON document."""
        path = tmp_path / "ledger.json"
        InMemoryRecordStore(path).create("client", [{"Name": "Ada"}])

        payload = json.loads(path.read_text())
        assert payload["tables"]["client"][0]["Name"] == "Ada"
        assert payload["next_ids"]["client"] == 2

    def test_unknown_table_in_file_ignored(self, tmp_path):
        """Test loading a file with a table this version does not know."""
        path = tmp_path / "ledger.json"
        path.write_text(json.dumps({"tables": {"trips": [{"Id": 1}]}}))

        store = InMemoryRecordStore(path)
        assert store.fetch("client", FetchQuery()).total_count == 0
