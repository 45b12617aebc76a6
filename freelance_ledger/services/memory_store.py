"""
In-process record store with optional JSON file persistence.

This is the default backend for local use and the backend used by tests.
"""

import datetime as dt
import json
import logging
import os
import tempfile
import threading
from pathlib import Path
from typing import Dict, List, Optional, Sequence, Union

from freelance_ledger.services.record_store import (
    DeleteResult,
    FetchQuery,
    FetchResult,
    MutationResult,
    Record,
    RecordResult,
    select_fields,
    sort_records,
)
from freelance_ledger.services.tables import TABLES, filter_updateable, get_schema

logger = logging.getLogger(__name__)


def _timestamp() -> str:
    return dt.datetime.now(dt.timezone.utc).isoformat()


class InMemoryRecordStore:
    """
    RecordStore keeping every table in a dictionary.

    Features:
    - Integer ids assigned per table, never reused
    - CreatedOn / ModifiedOn stamped in UTC
    - Where / order / paging evaluated in Python
    - Optional persistence: the whole store is rewritten to a JSON file
      after every mutation (last write wins)

    All operations are serialised by a lock, so one store may be shared by
    the timer thread and the caller.
    """

    def __init__(self, path: Optional[Union[str, Path]] = None):
        """
        Initialize the store.

        Args:
            path: JSON file to load from and save to. None keeps data in
                memory only.
        """
        self.path = Path(path) if path else None
        self._lock = threading.RLock()
        self._tables: Dict[str, Dict[int, Record]] = {name: {} for name in TABLES}
        self._next_ids: Dict[str, int] = {name: 1 for name in TABLES}

        if self.path and self.path.exists():
            self._load()

    def fetch(self, table: str, query: FetchQuery) -> FetchResult:
        get_schema(table)
        with self._lock:
            records = [dict(r) for r in self._tables[table].values()]

        matching = [r for r in records if all(c.matches(r) for c in query.where)]
        matching = sort_records(matching, query.order_by)

        total = len(matching)
        if query.paging is not None:
            start = query.paging.offset
            matching = matching[start : start + query.paging.limit]

        data = [select_fields(r, query.fields) for r in matching]
        logger.debug(f"Fetched {len(data)}/{total} record(s) from {table}")
        return FetchResult(data=data, total_count=total)

    def get_by_id(
        self, table: str, record_id: int, fields: Optional[Sequence[str]] = None
    ) -> Optional[Record]:
        get_schema(table)
        with self._lock:
            record = self._tables[table].get(int(record_id))
            return select_fields(record, fields) if record is not None else None

    def create(self, table: str, records: Sequence[Record]) -> MutationResult:
        get_schema(table)
        results: List[RecordResult] = []
        with self._lock:
            for record in records:
                record_id = self._next_ids[table]
                self._next_ids[table] += 1
                now = _timestamp()
                stored = {
                    "Id": record_id,
                    **filter_updateable(table, record),
                    "CreatedOn": now,
                    "ModifiedOn": now,
                }
                self._tables[table][record_id] = stored
                results.append(RecordResult(success=True, data=dict(stored)))
            self._save()

        logger.debug(f"Created {len(results)} record(s) in {table}")
        return MutationResult(success=True, results=results)

    def update(self, table: str, records: Sequence[Record]) -> MutationResult:
        """Apply a batch of updates, or none of them if any Id is unknown."""
        get_schema(table)
        with self._lock:
            rows = self._tables[table]
            ids = [record.get("Id") for record in records]
            missing = [rid for rid in ids if rid is None or int(rid) not in rows]
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
            for record in records:
                existing = rows[int(record["Id"])]
                existing.update(filter_updateable(table, record, keep_none=True))
                existing["ModifiedOn"] = _timestamp()
                results.append(RecordResult(success=True, data=dict(existing)))
            self._save()

        return MutationResult(success=True, results=results)

    def delete(self, table: str, record_ids: Sequence[int]) -> DeleteResult:
        get_schema(table)
        with self._lock:
            rows = self._tables[table]
            missing = [rid for rid in record_ids if int(rid) not in rows]
            if missing:
                ids = ", ".join(map(str, missing))
                return DeleteResult(
                    success=False,
                    message=f"Record(s) {ids} not found in {table}",
                )
            for rid in {int(rid) for rid in record_ids}:
                del rows[rid]
            self._save()

        logger.debug(f"Deleted {len(record_ids)} record(s) from {table}")
        return DeleteResult(success=True)

    def _load(self) -> None:
        with open(self.path, encoding="utf-8") as f:
            payload = json.load(f)
        for name, rows in payload.get("tables", {}).items():
            if name not in self._tables:
                logger.warning(f"Ignoring unknown table '{name}' in {self.path}")
                continue
            self._tables[name] = {int(row["Id"]): row for row in rows}
        for name, next_id in payload.get("next_ids", {}).items():
            if name in self._next_ids:
                self._next_ids[name] = int(next_id)
        logger.info(f"Loaded record store from {self.path}")

    def _save(self) -> None:
        if self.path is None:
            return
        payload = {
            "tables": {
                name: list(rows.values()) for name, rows in self._tables.items()
            },
            "next_ids": self._next_ids,
        }
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_path = tempfile.mkstemp(dir=self.path.parent, suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(payload, f, indent=2, default=str)
            os.replace(tmp_path, self.path)
        except OSError:
            if os.path.exists(tmp_path):
                os.unlink(tmp_path)
            raise

