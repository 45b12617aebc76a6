"""Record access contract shared by every storage backend.

The entity services talk to storage only through the RecordStore protocol:
generic CRUD over named tables, with records as plain dictionaries keyed by
storage field names. Query and result types are plain dataclasses.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import (
    Any,
    Dict,
    List,
    Mapping,
    Optional,
    Protocol,
    Sequence,
    Tuple,
    runtime_checkable,
)

Record = Dict[str, Any]


class Operator(str, Enum):
    """Where-condition operators."""

    EXACT_MATCH = "ExactMatch"
    CONTAINS = "Contains"


@dataclass(frozen=True)
class WhereCondition:
    """Filter on one field; a record matches if any of the values match.

    ExactMatch compares values as text so that ``5`` and ``"5"`` match;
    Contains is a case-insensitive substring test.
    """

    field_name: str
    operator: Operator
    values: Tuple[Any, ...]

    def __post_init__(self):
        object.__setattr__(self, "operator", Operator(self.operator))
        object.__setattr__(self, "values", tuple(self.values))

    def matches(self, record: Mapping[str, Any]) -> bool:
        actual = record.get(self.field_name)
        if actual is None:
            return False
        if self.operator == Operator.CONTAINS:
            text = str(actual).lower()
            return any(str(value).lower() in text for value in self.values)
        return any(_same_value(actual, value) for value in self.values)


def _same_value(actual: Any, expected: Any) -> bool:
    if actual == expected:
        return True
    return as_text(actual) == as_text(expected)


def as_text(value: Any) -> str:
    # Sheets hand back 5.0 for a stored 5
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value).strip()


@dataclass(frozen=True)
class OrderBy:
    """Sort order on one field."""

    field: str
    direction: str = "asc"

    def __post_init__(self):
        direction = self.direction.lower()
        if direction not in ("asc", "desc"):
            raise ValueError(
                f"direction must be 'asc' or 'desc', got {self.direction!r}"
            )
        object.__setattr__(self, "direction", direction)

    @property
    def descending(self) -> bool:
        return self.direction == "desc"


@dataclass(frozen=True)
class PagingInfo:
    """Page window: at most ``limit`` records starting at ``offset``."""

    limit: int
    offset: int = 0

    def __post_init__(self):
        if self.limit < 1:
            raise ValueError(f"limit must be at least 1, got {self.limit}")
        if self.offset < 0:
            raise ValueError(f"offset cannot be negative, got {self.offset}")

    @classmethod
    def for_page(cls, page: int, limit: int) -> "PagingInfo":
        """Paging for a 1-based page number."""
        return cls(limit=limit, offset=(max(page, 1) - 1) * limit)


@dataclass
class FetchQuery:
    """Query for RecordStore.fetch; all where conditions must match."""

    fields: Optional[Sequence[str]] = None
    where: List[WhereCondition] = field(default_factory=list)
    order_by: List[OrderBy] = field(default_factory=list)
    paging: Optional[PagingInfo] = None


@dataclass
class FetchResult:
    """One page of records plus the number of records matching the query."""

    data: List[Record]
    total_count: int


@dataclass
class RecordResult:
    """Outcome for one record of a create or update call."""

    success: bool
    data: Optional[Record] = None
    message: Optional[str] = None


@dataclass
class MutationResult:
    """Outcome of a create or update call, one result per input record."""

    success: bool
    results: List[RecordResult] = field(default_factory=list)
    message: Optional[str] = None

    @property
    def records(self) -> List[Record]:
        """Stored records echoed back for every successful result."""
        return [r.data for r in self.results if r.success and r.data is not None]

    @property
    def failures(self) -> List[RecordResult]:
        return [r for r in self.results if not r.success]


@dataclass
class DeleteResult:
    """Outcome of a delete call."""

    success: bool
    message: Optional[str] = None


@runtime_checkable
class RecordStore(Protocol):
    """Generic CRUD interface to the record tables."""

    def fetch(self, table: str, query: FetchQuery) -> FetchResult:
        """Fetch the records of a table that match a query."""
        ...

    def get_by_id(
        self, table: str, record_id: int, fields: Optional[Sequence[str]] = None
    ) -> Optional[Record]:
        """Fetch one record, or None if it does not exist."""
        ...

    def create(self, table: str, records: Sequence[Record]) -> MutationResult:
        """Create records; ids and timestamps are assigned by the store."""
        ...

    def update(self, table: str, records: Sequence[Record]) -> MutationResult:
        """Update records; each must carry its ``Id``."""
        ...

    def delete(self, table: str, record_ids: Sequence[int]) -> DeleteResult:
        """Delete records by id."""
        ...


def select_fields(record: Record, fields: Optional[Sequence[str]]) -> Record:
    """Project a record onto the requested fields (``Id`` is always kept)."""
    if not fields:
        return dict(record)
    wanted = {"Id", *fields}
    return {key: value for key, value in record.items() if key in wanted}


def sort_records(records: List[Record], order_by: Sequence[OrderBy]) -> List[Record]:
    """Sort records by several fields; records lacking a field sort last.

    Numbers sort before text; text compares case-insensitively.
    """
    result = list(records)
    for order in reversed(order_by):
        present = [r for r in result if r.get(order.field) not in (None, "")]
        absent = [r for r in result if r.get(order.field) in (None, "")]
        present.sort(key=lambda r: _sort_key(r[order.field]), reverse=order.descending)
        result = present + absent
    return result


def _sort_key(value: Any) -> Tuple[int, Any, str]:
    if isinstance(value, bool):
        return (0, int(value), "")
    if isinstance(value, (int, float)):
        return (0, value, "")
    return (1, 0, str(value).lower())
