"""
Entity services: typed CRUD over the record store.

Each service owns one table. It converts models to records and back through
the record adapters, filters writes through the table's updateable
allowlist, and turns every store failure into RemoteOperationError (or
NotFoundError for a missing record).
"""

import logging
from typing import Any, Callable, Generic, List, Optional, Sequence, Tuple, TypeVar

import requests.exceptions
from googleapiclient.errors import HttpError

from freelance_ledger.calculators.ledger_calculator import (
    ProjectSummary,
    get_filtered_expenses,
    summarize_project,
)
from freelance_ledger.exceptions import NotFoundError, RemoteOperationError
from freelance_ledger.models import Client, Expense, Project, Task, TimeEntry
from freelance_ledger.services import record_adapters as adapters
from freelance_ledger.services.error_classifier import ErrorClassifier
from freelance_ledger.services.record_store import (
    DeleteResult,
    FetchQuery,
    MutationResult,
    Operator,
    OrderBy,
    PagingInfo,
    Record,
    RecordStore,
    WhereCondition,
)
from freelance_ledger.services.tables import filter_updateable, get_schema
from freelance_ledger.utils.logging_utils import LogContext, sanitize_sensitive_data

logger = logging.getLogger(__name__)

T = TypeVar("T")
R = TypeVar("R")

# Failures of the transport underneath a record store
STORE_ERRORS = (HttpError, requests.exceptions.RequestException, OSError)


class StoreGateway:
    """Runs record store calls and normalises their failures.

    Shared by the entity services and the invoice service.
    """

    def __init__(
        self, store: RecordStore, classifier: Optional[ErrorClassifier] = None
    ):
        self.store = store
        self.classifier = classifier or ErrorClassifier()

    def call(self, operation: str, func: Callable[..., R], *args: Any) -> R:
        """Invoke a store method, mapping transport errors.

        Raises:
            RemoteOperationError: If the transport fails
        """
        try:
            return func(*args)
        except STORE_ERRORS as e:
            error = self.classifier.to_remote_error(e, operation)
            logger.error(f"{error.message} (retryable={error.retryable})")
            raise error from e

    def fetch(
        self, table: str, query: FetchQuery, operation: str
    ) -> Tuple[List[Record], int]:
        result = self.call(operation, self.store.fetch, table, query)
        return result.data, result.total_count

    def get(self, table: str, record_id: int, entity: str) -> Record:
        """Fetch one record.

        Raises:
            NotFoundError: If the record does not exist
        """
        record = self.call(
            f"load {entity} {record_id}", self.store.get_by_id, table, record_id
        )
        if record is None:
            raise NotFoundError(entity, record_id)
        return record

    def create(
        self, table: str, records: Sequence[Record], operation: str
    ) -> List[Record]:
        payload = [filter_updateable(table, r) for r in records]
        logger.debug(f"{operation}: {sanitize_sensitive_data(payload)}")
        result = self.call(operation, self.store.create, table, payload)
        return self._check(result, operation, expected=len(payload))

    def update(
        self, table: str, records: Sequence[Record], operation: str
    ) -> List[Record]:
        payload = []
        for record in records:
            if record.get("Id") is None:
                raise ValueError(f"Cannot {operation}: record has no Id")
            payload.append(
                filter_updateable(table, record, keep_id=True, keep_none=True)
            )
        logger.debug(f"{operation}: {sanitize_sensitive_data(payload)}")
        result = self.call(operation, self.store.update, table, payload)
        return self._check(result, operation, expected=len(payload))

    def delete(self, table: str, record_ids: Sequence[int], operation: str) -> None:
        if not record_ids:
            return
        result: DeleteResult = self.call(
            operation, self.store.delete, table, list(record_ids)
        )
        if not result.success:
            raise RemoteOperationError(
                f"Failed to {operation}: {result.message or 'rejected by the store'}",
                retryable=False,
                operation=operation,
            )

    @staticmethod
    def _check(result: MutationResult, operation: str, expected: int) -> List[Record]:
        records = result.records
        if not result.success or len(records) != expected:
            reasons = [f.message for f in result.failures if f.message]
            detail = "; ".join(reasons) or result.message or "rejected by the store"
            raise RemoteOperationError(
                f"Failed to {operation}: {detail}", retryable=True, operation=operation
            )
        return records


class EntityService(Generic[T]):
    """
    CRUD service for one entity table.

    Subclasses set the table, the entity name used in messages, and the
    record adapters.
    """

    table: str = ""
    entity: str = ""
    plural: str = ""
    default_order: Tuple[OrderBy, ...] = (OrderBy("Id", "asc"),)
    to_record: Callable[[T], Record]
    from_record: Callable[[Record], T]

    def __init__(self, store: RecordStore, gateway: Optional[StoreGateway] = None):
        get_schema(self.table)
        self.gateway = gateway or StoreGateway(store)

    def list(
        self,
        where: Sequence[WhereCondition] = (),
        order_by: Sequence[OrderBy] = (),
        paging: Optional[PagingInfo] = None,
    ) -> Tuple[List[T], int]:
        """List records as models.

        Returns:
            (models on this page, total matching records)
        """
        query = FetchQuery(
            where=list(where),
            order_by=list(order_by or self.default_order),
            paging=paging,
        )
        plural = self.plural or f"{self.entity}s"
        records, total = self.gateway.fetch(self.table, query, f"list {plural}")
        return [self.from_record(r) for r in records], total

    def list_all(self, **filters: Any) -> List[T]:
        """All records whose storage fields equal the given values."""
        where = [
            WhereCondition(field, Operator.EXACT_MATCH, (value,))
            for field, value in filters.items()
        ]
        items, _ = self.list(where=where)
        return items

    def get(self, record_id: int) -> T:
        """Load one record.

        Raises:
            NotFoundError: If the record does not exist
        """
        return self.from_record(self.gateway.get(self.table, record_id, self.entity))

    def create(self, model: T) -> T:
        """Persist a new record and return it with its id."""
        with LogContext(table=self.table):
            created = self.gateway.create(
                self.table, [self.to_record(model)], f"create {self.entity}"
            )[0]
            result = self.from_record(created)
            logger.info(f"Created {self.entity} {getattr(result, 'id', None)}")
            return result

    def update(self, record_id: int, model: T) -> T:
        """Overwrite the updateable fields of a record.

        Raises:
            NotFoundError: If the record does not exist
        """
        self.gateway.get(self.table, record_id, self.entity)
        with LogContext(table=self.table, record_id=record_id):
            record = {**self.to_record(model), "Id": record_id}
            updated = self.gateway.update(
                self.table, [record], f"update {self.entity} {record_id}"
            )[0]
            logger.info(f"Updated {self.entity} {record_id}")
            return self.from_record(updated)

    def delete(self, record_id: int) -> None:
        """Delete a record.

        Raises:
            NotFoundError: If the record does not exist
        """
        self.gateway.get(self.table, record_id, self.entity)
        self.gateway.delete(
            self.table, [record_id], f"delete {self.entity} {record_id}"
        )
        logger.info(f"Deleted {self.entity} {record_id}")


class ClientService(EntityService[Client]):
    table = "client"
    entity = "client"
    default_order = (OrderBy("Name", "asc"),)
    to_record = staticmethod(adapters.client_to_record)
    from_record = staticmethod(adapters.client_from_record)

    def search(self, term: str) -> List[Client]:
        """Clients whose name or company contains a term."""
        by_name, _ = self.list(
            where=[WhereCondition("Name", Operator.CONTAINS, (term,))]
        )
        by_company, _ = self.list(
            where=[WhereCondition("company", Operator.CONTAINS, (term,))]
        )
        seen = {c.id for c in by_name}
        return by_name + [c for c in by_company if c.id not in seen]


class ProjectService(EntityService[Project]):
    table = "project"
    entity = "project"
    default_order = (OrderBy("startDate", "desc"),)
    to_record = staticmethod(adapters.project_to_record)
    from_record = staticmethod(adapters.project_from_record)

    def for_client(self, client_id: int) -> List[Project]:
        return self.list_all(clientId=client_id)


class TaskService(EntityService[Task]):
    table = "task"
    entity = "task"
    default_order = (OrderBy("dueDate", "asc"),)
    to_record = staticmethod(adapters.task_to_record)
    from_record = staticmethod(adapters.task_from_record)

    def for_project(self, project_id: int) -> List[Task]:
        return self.list_all(projectId=project_id)


class TimeEntryService(EntityService[TimeEntry]):
    table = "time_entry"
    entity = "time entry"
    plural = "time entries"
    default_order = (OrderBy("date", "desc"), OrderBy("startTime", "desc"))
    to_record = staticmethod(adapters.time_entry_to_record)
    from_record = staticmethod(adapters.time_entry_from_record)

    def for_project(self, project_id: int) -> List[TimeEntry]:
        return self.list_all(projectId=project_id)


class ExpenseService(EntityService[Expense]):
    table = "expense"
    entity = "expense"
    default_order = (OrderBy("date", "desc"),)
    to_record = staticmethod(adapters.expense_to_record)
    from_record = staticmethod(adapters.expense_from_record)

    def for_project(self, project_id: int, category: str = "all") -> List[Expense]:
        """Expenses of a project, optionally limited to one category."""
        return get_filtered_expenses(self.list_all(projectId=project_id), category)


class LedgerService:
    """Project-level reporting across time entries and expenses."""

    def __init__(self, store: RecordStore, gateway: Optional[StoreGateway] = None):
        gateway = gateway or StoreGateway(store)
        self.projects = ProjectService(store, gateway)
        self.time_entries = TimeEntryService(store, gateway)
        self.expenses = ExpenseService(store, gateway)

    def summarize(self, project_id: int) -> ProjectSummary:
        """Build the time and expense summary of one project.

        Raises:
            NotFoundError: If the project does not exist
        """
        with LogContext(project_id=project_id):
            project = self.projects.get(project_id)
            entries = self.time_entries.for_project(project_id)
            expenses = self.expenses.for_project(project_id)
            summary = summarize_project(project, entries, expenses)
            logger.info(
                f"Summarized project {project_id}: {summary.total_hours}h, "
                f"{summary.entry_count} entries"
            )
            return summary
