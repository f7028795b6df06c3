"""In-memory record store with snapshot-based atomic batches."""

import copy
import logging
from datetime import datetime
from decimal import Decimal
from typing import Any, Sequence

from finledger.exceptions import (
    EntityNotFoundError,
    InvariantViolationError,
    StoreFailureError,
    ViolationReason,
)
from finledger.store.base import (
    AdjustStep,
    DeleteStep,
    InsertStep,
    RecordStore,
    Step,
    UpdateStep,
)

logger = logging.getLogger(__name__)


class InMemoryRecordStore(RecordStore):
    """Dict-of-tables record store.

    ``run_atomic`` snapshots every table before applying the steps and
    restores the snapshot if any step fails, so a failed batch leaves no
    trace.
    """

    def __init__(self) -> None:
        self._tables: dict[str, dict[str, dict[str, Any]]] = {}

    def _table(self, table: str) -> dict[str, dict[str, Any]]:
        return self._tables.setdefault(table, {})

    def _require(self, table: str, record_id: str) -> dict[str, Any]:
        try:
            return self._table(table)[record_id]
        except KeyError:
            raise EntityNotFoundError(f"{table} record {record_id} not found") from None

    def get_record(self, table: str, record_id: str) -> dict[str, Any]:
        return dict(self._require(table, record_id))

    def list_records(
        self,
        table: str,
        filters: dict[str, Any] | None = None,
        order_by: str | None = None,
        descending: bool = False,
    ) -> list[dict[str, Any]]:
        rows = [dict(row) for row in self._table(table).values() if _matches(row, filters or {})]
        if order_by is not None:
            # None sorts first ascending, last descending
            rows.sort(
                key=lambda row: (row.get(order_by) is not None, row.get(order_by)),
                reverse=descending,
            )
        return rows

    def insert_record(self, table: str, fields: dict[str, Any]) -> dict[str, Any]:
        record_id = fields.get("id")
        if record_id is None:
            raise StoreFailureError(f"Cannot insert into {table} without an id")
        rows = self._table(table)
        if record_id in rows:
            raise StoreFailureError(f"Duplicate id {record_id} in {table}")
        row = dict(fields)
        now = datetime.now()
        if row.get("created_at") is None:
            row["created_at"] = now
        if row.get("updated_at") is None:
            row["updated_at"] = now
        rows[record_id] = row
        return dict(row)

    def update_record(self, table: str, record_id: str, fields: dict[str, Any]) -> dict[str, Any]:
        row = self._require(table, record_id)
        row.update({key: value for key, value in fields.items() if key != "id"})
        row["updated_at"] = datetime.now()
        return dict(row)

    def delete_record(self, table: str, record_id: str) -> None:
        self._require(table, record_id)
        del self._table(table)[record_id]

    def run_atomic(self, steps: Sequence[Step]) -> None:
        snapshot = copy.deepcopy(self._tables)
        try:
            for step in steps:
                self._apply(step)
        except Exception:
            self._tables = snapshot
            logger.debug("Rolled back atomic batch of %d steps", len(steps))
            raise

    def count_referencing(self, table: str, foreign_key: str, value: Any) -> int:
        return sum(1 for row in self._table(table).values() if row.get(foreign_key) == value)

    def _apply(self, step: Step) -> None:
        if isinstance(step, InsertStep):
            self.insert_record(step.table, step.fields)
        elif isinstance(step, UpdateStep):
            self.update_record(step.table, step.record_id, step.fields)
        elif isinstance(step, AdjustStep):
            self._adjust(step)
        elif isinstance(step, DeleteStep):
            self.delete_record(step.table, step.record_id)
        else:
            raise StoreFailureError(f"Unsupported step {type(step).__name__}")

    def _adjust(self, step: AdjustStep) -> None:
        row = self._require(step.table, step.record_id)
        updated = {
            column: Decimal(row.get(column) or 0) + delta for column, delta in step.deltas.items()
        }
        merged = {**row, **updated}
        for column, minimum in step.minimums.items():
            if merged[column] < minimum:
                raise InvariantViolationError(
                    f"{step.table}.{column} would drop below {minimum}",
                    ViolationReason.GUARD_FAILED,
                )
        for column, maximum in step.maximums.items():
            bound = merged[maximum] if isinstance(maximum, str) else maximum
            if merged[column] > bound:
                raise InvariantViolationError(
                    f"{step.table}.{column} would exceed {bound}",
                    ViolationReason.GUARD_FAILED,
                )
        self.update_record(step.table, step.record_id, {**updated, **step.set_fields})


def _matches(row: dict[str, Any], filters: dict[str, Any]) -> bool:
    for column, expected in filters.items():
        actual = row.get(column)
        if isinstance(expected, (list, tuple, set)):
            if actual not in expected:
                return False
        elif actual != expected:
            return False
    return True
