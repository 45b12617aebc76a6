"""Table schemas of the record store.

Every table lists the fields a fetch returns and the subset a create or
update may write. System fields (``Id``, ``CreatedOn``, ``ModifiedOn``) are
assigned by the store and are never writable.
"""

from dataclasses import dataclass
from typing import Any, Dict, Mapping, Tuple

SYSTEM_FIELDS = ("Id", "CreatedOn", "ModifiedOn")


@dataclass(frozen=True)
class TableSchema:
    """Field lists of one record table.

    Attributes:
        name: Table name used by the record store
        fields: Data fields in display order (system fields excluded)
        updateable: Fields a create or update may write
    """

    name: str
    fields: Tuple[str, ...]
    updateable: Tuple[str, ...]

    @property
    def all_fields(self) -> Tuple[str, ...]:
        """System fields followed by data fields."""
        return SYSTEM_FIELDS + self.fields


def _schema(name: str, *fields: str) -> TableSchema:
    return TableSchema(name=name, fields=fields, updateable=fields)


CLIENT = _schema(
    "client",
    "Name",
    "company",
    "email",
    "phone",
    "status",
    "Tags",
    "address",
    "lastContact",
)

PROJECT = _schema(
    "project",
    "Name",
    "description",
    "clientId",
    "startDate",
    "dueDate",
    "endDate",
    "status",
    "budget",
    "progress",
    "Tags",
    "hourlyRate",
)

TASK = _schema(
    "task",
    "Name",
    "description",
    "projectId",
    "status",
    "priority",
    "dueDate",
)

TIME_ENTRY = _schema(
    "time_entry",
    "date",
    "startTime",
    "endTime",
    "duration",
    "description",
    "projectId",
)

EXPENSE = _schema(
    "expense",
    "date",
    "amount",
    "category",
    "description",
    "receipt",
    "billable",
    "reimbursable",
    "projectId",
)

INVOICE = _schema(
    "invoice",
    "Name",
    "invoiceNumber",
    "issueDate",
    "dueDate",
    "status",
    "subtotal",
    "tax",
    "total",
    "amountPaid",
    "notes",
    "paymentDate",
    "clientId",
    "projectId",
)

INVOICE_ITEM = _schema(
    "invoice_item",
    "Name",
    "description",
    "quantity",
    "rate",
    "amount",
    "invoiceId",
)

TABLES: Dict[str, TableSchema] = {
    schema.name: schema
    for schema in (CLIENT, PROJECT, TASK, TIME_ENTRY, EXPENSE, INVOICE, INVOICE_ITEM)
}


def get_schema(table: str) -> TableSchema:
    """Look up a table schema.

    Raises:
        KeyError: If the table is unknown
    """
    try:
        return TABLES[table]
    except KeyError:
        raise KeyError(f"Unknown table '{table}'. Known tables: {', '.join(TABLES)}")


def filter_updateable(
    table: str,
    record: Mapping[str, Any],
    keep_id: bool = False,
    keep_none: bool = False,
) -> Dict[str, Any]:
    """Drop every field a client may not write.

    ``None`` values are dropped too unless ``keep_none`` is set. Updates
    keep them so that a cleared field is written as empty.

    Args:
        table: Table name
        record: Raw record fields
        keep_id: Keep ``Id`` (required for updates)
        keep_none: Keep fields whose value is None

    Example:
        >>> filter_updateable("invoice_item", {"Id": 4, "rate": 50, "CreatedOn": "x"})
        {'rate': 50}
        >>> filter_updateable("invoice", {"notes": None}, keep_none=True)
        {'notes': None}
    """
    schema = get_schema(table)
    allowed = set(schema.updateable)
    if keep_id:
        allowed.add("Id")
    return {
        key: value
        for key, value in record.items()
        if key in allowed and (keep_none or value is not None)
    }
