"""
Record store backed by a Google Sheets spreadsheet.

Each table lives in its own sheet (tab) named after the table. Row 1 holds
the headers (``Id``, ``CreatedOn``, ``ModifiedOn`` and the schema fields);
every further row is one record. Queries are evaluated in pandas on the
full sheet contents.
"""

import datetime as dt
import logging
from typing import Any, Dict, List, Optional, Sequence, Set

import pandas as pd

from freelance_ledger.services.google_sheets_service import GoogleSheetsService
from freelance_ledger.services.record_store import (
    DeleteResult,
    FetchQuery,
    FetchResult,
    MutationResult,
    Operator,
    Record,
    RecordResult,
    WhereCondition,
    as_text,
    select_fields,
    sort_records,
)
from freelance_ledger.services.tables import TableSchema, filter_updateable, get_schema

logger = logging.getLogger(__name__)

_ROW = "_row"


def column_letter(index: int) -> str:
    """Spreadsheet column letter for a 1-based column index.

    Example:
        >>> column_letter(1), column_letter(26), column_letter(28)
        ('A', 'Z', 'AB')
    """
    letters = ""
    while index > 0:
        index, remainder = divmod(index - 1, 26)
        letters = chr(65 + remainder) + letters
    return letters


def _cell_to_value(value: Any) -> Any:
    if value is None or (isinstance(value, float) and pd.isna(value)):
        return None
    if isinstance(value, str) and value == "":
        return None
    return value


def _value_to_cell(value: Any) -> Any:
    if value is None:
        return ""
    if isinstance(value, (dt.date, dt.datetime)):
        return value.isoformat()
    return value


class SheetsRecordStore:
    """
    RecordStore implementation on top of GoogleSheetsService.

    Sheets are created on first use. Ids are allocated as the highest
    existing id plus one, so two processes creating records at the same
    time can collide; the last write wins.
    """

    def __init__(self, sheets: GoogleSheetsService, spreadsheet_id: str):
        self.sheets = sheets
        self.spreadsheet_id = spreadsheet_id
        self._known_sheets: Optional[Set[str]] = None

    def _range(
        self, schema: TableSchema, first_row: int = 1, last_row: Optional[int] = None
    ) -> str:
        last_column = column_letter(len(schema.all_fields))
        end = f"{last_column}{last_row}" if last_row else last_column
        return f"'{schema.name}'!A{first_row}:{end}"

    def _ensure_sheet(self, schema: TableSchema) -> None:
        if self._known_sheets is None:
            self._known_sheets = set(self.sheets.get_sheet_titles(self.spreadsheet_id))
        if schema.name in self._known_sheets:
            return
        self.sheets.create_sheet(
            self.spreadsheet_id, schema.name, column_count=len(schema.all_fields)
        )
        self.sheets.write_values(
            self.spreadsheet_id, self._range(schema, 1, 1), [list(schema.all_fields)]
        )
        self._known_sheets.add(schema.name)
        logger.info(f"Created sheet for table {schema.name}")

    def _read_frame(self, schema: TableSchema) -> pd.DataFrame:
        """All rows of a table with a ``_row`` column holding the sheet row."""
        self._ensure_sheet(schema)
        df = self.sheets.read_sheet(self.spreadsheet_id, self._range(schema))
        df = df.reindex(columns=list(schema.all_fields))
        df[_ROW] = range(2, len(df) + 2)
        df = df[df["Id"].map(_cell_to_value).notna()]
        return df

    @staticmethod
    def _records(df: pd.DataFrame) -> List[Record]:
        records = []
        for row in df.drop(columns=[_ROW]).to_dict("records"):
            record = {key: _cell_to_value(value) for key, value in row.items()}
            record["Id"] = int(record["Id"])
            records.append(record)
        return records

    def _row_values(self, schema: TableSchema, record: Record) -> List[Any]:
        return [_value_to_cell(record.get(name)) for name in schema.all_fields]

    def fetch(self, table: str, query: FetchQuery) -> FetchResult:
        schema = get_schema(table)
        df = self._read_frame(schema)

        for condition in query.where:
            df = df[_condition_mask(df, condition)]

        records = sort_records(self._records(df), query.order_by)
        total = len(records)
        if query.paging is not None:
            start = query.paging.offset
            records = records[start : start + query.paging.limit]

        data = [select_fields(r, query.fields) for r in records]
        logger.debug(f"Fetched {len(data)}/{total} record(s) from sheet {table}")
        return FetchResult(data=data, total_count=total)

    def get_by_id(
        self, table: str, record_id: int, fields: Optional[Sequence[str]] = None
    ) -> Optional[Record]:
        query = FetchQuery(
            fields=fields,
            where=[WhereCondition("Id", Operator.EXACT_MATCH, (record_id,))],
        )
        data = self.fetch(table, query).data
        return data[0] if data else None

    def create(self, table: str, records: Sequence[Record]) -> MutationResult:
        schema = get_schema(table)
        df = self._read_frame(schema)
        next_id = int(pd.to_numeric(df["Id"]).max()) + 1 if len(df) else 1

        created: List[Record] = []
        now = dt.datetime.now(dt.timezone.utc).isoformat()
        for offset, record in enumerate(records):
            created.append(
                {
                    "Id": next_id + offset,
                    "CreatedOn": now,
                    "ModifiedOn": now,
                    **filter_updateable(table, record),
                }
            )

        if created:
            self.sheets.append_values(
                self.spreadsheet_id,
                self._range(schema),
                [self._row_values(schema, r) for r in created],
            )
        return MutationResult(
            success=True, results=[RecordResult(success=True, data=r) for r in created]
        )

    def update(self, table: str, records: Sequence[Record]) -> MutationResult:
        """Rewrite the rows of existing records.

        None values clear their cell. Nothing is written when any Id is
        unknown.
        """
        schema = get_schema(table)
        df = self._read_frame(schema)
        rows_by_id: Dict[int, int] = {}
        existing_by_id: Dict[int, Record] = {}
        for record, sheet_row in zip(self._records(df), df[_ROW]):
            rows_by_id[record["Id"]] = int(sheet_row)
            existing_by_id[record["Id"]] = record

        ids = [record.get("Id") for record in records]
        missing = [rid for rid in ids if rid is None or int(rid) not in rows_by_id]
        if missing:
            return MutationResult(
                success=False,
                results=[
                    RecordResult(
                        success=False,
                        message=(
                            f"Record {rid} not found in {table}"
                            if rid in missing
                            else f"Record {rid} not updated"
                        ),
                    )
                    for rid in ids
                ],
                message=(
                    f"Record(s) {', '.join(map(str, missing))} not found "
                    f"in {table}; nothing was updated"
                ),
            )

        results: List[RecordResult] = []
        now = dt.datetime.now(dt.timezone.utc).isoformat()
        for record in records:
            record_id = int(record["Id"])
            merged = {
                **existing_by_id[record_id],
                **filter_updateable(table, record, keep_none=True),
                "ModifiedOn": now,
            }
            row = rows_by_id[record_id]
            self.sheets.write_values(
                self.spreadsheet_id,
                self._range(schema, row, row),
                [self._row_values(schema, merged)],
            )
            results.append(RecordResult(success=True, data=merged))
        return MutationResult(success=True, results=results)

    def delete(self, table: str, record_ids: Sequence[int]) -> DeleteResult:
        schema = get_schema(table)
        df = self._read_frame(schema)
        records = self._records(df)
        existing = {r["Id"] for r in records}
        doomed = {int(rid) for rid in record_ids}
        missing = sorted(doomed - existing)
        if missing:
            ids = ", ".join(map(str, missing))
            return DeleteResult(
                success=False,
                message=f"Record(s) {ids} not found in {table}",
            )

        # Rewrite the data rows without the deleted records
        kept = [r for r in records if r["Id"] not in doomed]
        self.sheets.clear_sheet_range(
            self.spreadsheet_id, self._range(schema, first_row=2)
        )
        if kept:
            self.sheets.write_values(
                self.spreadsheet_id,
                self._range(schema, 2, len(kept) + 1),
                [self._row_values(schema, r) for r in kept],
            )
        return DeleteResult(success=True)


def _condition_mask(df: pd.DataFrame, condition: WhereCondition) -> pd.Series:
    column = df[condition.field_name] if condition.field_name in df else None
    if column is None:
        return pd.Series(False, index=df.index)
    present = column.map(_cell_to_value).notna()
    if condition.operator == Operator.CONTAINS:
        text = column.astype(str).str.lower()
        mask = pd.Series(False, index=df.index)
        for value in condition.values:
            mask |= text.str.contains(str(value).lower(), regex=False)
        return mask & present
    wanted = {as_text(value) for value in condition.values}
    return column.map(as_text).isin(wanted) & present

