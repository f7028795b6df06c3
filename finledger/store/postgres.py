"""PostgreSQL record store built on psycopg 3."""

import logging
from typing import Any, Sequence

import psycopg
from psycopg import sql
from psycopg.rows import dict_row

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

SCHEMA = """
CREATE TABLE IF NOT EXISTS wallets (
    id TEXT PRIMARY KEY,
    user_id TEXT NOT NULL,
    name TEXT NOT NULL,
    balance_available NUMERIC(18, 2) NOT NULL CHECK (balance_available >= 0),
    balance_total NUMERIC(18, 2) NOT NULL CHECK (balance_total >= balance_available),
    interest_rate NUMERIC(5, 2) NOT NULL DEFAULT 0 CHECK (interest_rate BETWEEN 0 AND 100),
    interest_payment_frequency TEXT CHECK (interest_payment_frequency IN ('daily', 'monthly')),
    is_active BOOLEAN NOT NULL DEFAULT TRUE,
    created_at TIMESTAMP NOT NULL DEFAULT now(),
    updated_at TIMESTAMP NOT NULL DEFAULT now()
);

CREATE TABLE IF NOT EXISTS pockets (
    id TEXT PRIMARY KEY,
    wallet_id TEXT NOT NULL REFERENCES wallets (id) ON DELETE CASCADE,
    name TEXT NOT NULL,
    balance NUMERIC(18, 2) NOT NULL DEFAULT 0 CHECK (balance >= 0),
    created_at TIMESTAMP NOT NULL DEFAULT now(),
    updated_at TIMESTAMP NOT NULL DEFAULT now()
);

CREATE TABLE IF NOT EXISTS interest_accumulations (
    id TEXT PRIMARY KEY,
    pocket_id TEXT NOT NULL REFERENCES pockets (id) ON DELETE CASCADE,
    amount NUMERIC(18, 2) NOT NULL CHECK (amount >= 0),
    month INTEGER NOT NULL CHECK (month BETWEEN 1 AND 12),
    year INTEGER NOT NULL,
    created_at TIMESTAMP NOT NULL DEFAULT now(),
    updated_at TIMESTAMP NOT NULL DEFAULT now()
);

CREATE TABLE IF NOT EXISTS credit_cards (
    id TEXT PRIMARY KEY,
    user_id TEXT NOT NULL,
    name TEXT NOT NULL,
    credit_limit NUMERIC(18, 2) NOT NULL CHECK (credit_limit > 0),
    current_debt NUMERIC(18, 2) NOT NULL DEFAULT 0
        CHECK (current_debt >= 0 AND current_debt <= credit_limit),
    cashback_percentage NUMERIC(5, 2) NOT NULL DEFAULT 0
        CHECK (cashback_percentage BETWEEN 0 AND 100),
    pending_cashback NUMERIC(18, 2) NOT NULL DEFAULT 0 CHECK (pending_cashback >= 0),
    total_cashback_generated NUMERIC(18, 2) NOT NULL DEFAULT 0,
    cashback_destination_account_id TEXT REFERENCES wallets (id) ON DELETE SET NULL,
    is_active BOOLEAN NOT NULL DEFAULT TRUE,
    created_at TIMESTAMP NOT NULL DEFAULT now(),
    updated_at TIMESTAMP NOT NULL DEFAULT now()
);

CREATE TABLE IF NOT EXISTS categories (
    id TEXT PRIMARY KEY,
    user_id TEXT NOT NULL,
    name TEXT NOT NULL,
    color TEXT NOT NULL,
    category_type TEXT NOT NULL CHECK (category_type IN ('parent', 'child')),
    parent_id TEXT REFERENCES categories (id),
    created_at TIMESTAMP NOT NULL DEFAULT now(),
    updated_at TIMESTAMP NOT NULL DEFAULT now()
);

CREATE TABLE IF NOT EXISTS transactions (
    id TEXT PRIMARY KEY,
    user_id TEXT NOT NULL,
    transaction_type TEXT NOT NULL,
    amount NUMERIC(18, 2) NOT NULL,
    name TEXT NOT NULL,
    transaction_date DATE NOT NULL,
    category_id TEXT REFERENCES categories (id),
    notes TEXT,
    source_account_id TEXT,
    source_card_id TEXT,
    destination_account_id TEXT,
    destination_card_id TEXT,
    cashback_generated NUMERIC(18, 2) NOT NULL DEFAULT 0,
    cashback_transferred BOOLEAN NOT NULL DEFAULT FALSE,
    created_at TIMESTAMP NOT NULL DEFAULT now(),
    updated_at TIMESTAMP NOT NULL DEFAULT now()
);
"""


class PostgresRecordStore(RecordStore):
    """Record store backed by a PostgreSQL database.

    The connection runs in autocommit mode; ``run_atomic`` opens an explicit
    transaction so a batch either commits as a whole or rolls back.

    Parameters
    ----------
    conninfo : str
        libpq connection string (see ``PostgresConfig.connection_string``).
    connection : psycopg.Connection | None
        Existing connection to use instead of opening one.
    """

    def __init__(self, conninfo: str = "", connection: psycopg.Connection | None = None) -> None:
        if connection is None:
            try:
                connection = psycopg.connect(conninfo, row_factory=dict_row, autocommit=True)
            except psycopg.Error as e:
                raise StoreFailureError(f"Could not connect to PostgreSQL: {e}") from e
        self._conn = connection

    def create_schema(self) -> None:
        """Create the ledger tables if they do not exist."""
        self._execute(sql.SQL(SCHEMA))
        logger.info("Ledger schema ensured")

    def close(self) -> None:
        self._conn.close()

    def _execute(self, query: sql.Composable, params: Sequence[Any] | None = None) -> Any:
        logger.debug("SQL: %r params=%r", query, params)
        try:
            return self._conn.execute(query, params)
        except psycopg.Error as e:
            raise StoreFailureError(str(e)) from e

    def get_record(self, table: str, record_id: str) -> dict[str, Any]:
        query = sql.SQL("SELECT * FROM {} WHERE id = %s").format(sql.Identifier(table))
        row = self._execute(query, [record_id]).fetchone()
        if row is None:
            raise EntityNotFoundError(f"{table} record {record_id} not found")
        return dict(row)

    def list_records(
        self,
        table: str,
        filters: dict[str, Any] | None = None,
        order_by: str | None = None,
        descending: bool = False,
    ) -> list[dict[str, Any]]:
        query = sql.SQL("SELECT * FROM {}").format(sql.Identifier(table))
        params: list[Any] = []
        if filters:
            conditions = []
            for column, value in filters.items():
                if isinstance(value, (list, tuple, set)):
                    conditions.append(sql.SQL("{} = ANY(%s)").format(sql.Identifier(column)))
                    params.append(list(value))
                elif value is None:
                    conditions.append(sql.SQL("{} IS NULL").format(sql.Identifier(column)))
                else:
                    conditions.append(sql.SQL("{} = %s").format(sql.Identifier(column)))
                    params.append(value)
            query = query + sql.SQL(" WHERE ") + sql.SQL(" AND ").join(conditions)
        if order_by is not None:
            direction = sql.SQL(" DESC") if descending else sql.SQL(" ASC")
            query = query + sql.SQL(" ORDER BY {}").format(sql.Identifier(order_by)) + direction
        return [dict(row) for row in self._execute(query, params).fetchall()]

    def insert_record(self, table: str, fields: dict[str, Any]) -> dict[str, Any]:
        # Unset timestamps fall back to the column defaults
        columns = [
            column
            for column, value in fields.items()
            if not (column in ("created_at", "updated_at") and value is None)
        ]
        query = sql.SQL("INSERT INTO {} ({}) VALUES ({}) RETURNING *").format(
            sql.Identifier(table),
            sql.SQL(", ").join(sql.Identifier(c) for c in columns),
            sql.SQL(", ").join(sql.Placeholder() for _ in columns),
        )
        row = self._execute(query, [fields[c] for c in columns]).fetchone()
        return dict(row)

    def update_record(self, table: str, record_id: str, fields: dict[str, Any]) -> dict[str, Any]:
        columns = [column for column in fields if column not in ("id", "updated_at")]
        assignments = [sql.SQL("{} = %s").format(sql.Identifier(c)) for c in columns]
        assignments.append(sql.SQL("updated_at = now()"))
        query = sql.SQL("UPDATE {} SET {} WHERE id = %s RETURNING *").format(
            sql.Identifier(table),
            sql.SQL(", ").join(assignments),
        )
        row = self._execute(query, [fields[c] for c in columns] + [record_id]).fetchone()
        if row is None:
            raise EntityNotFoundError(f"{table} record {record_id} not found")
        return dict(row)

    def delete_record(self, table: str, record_id: str) -> None:
        query = sql.SQL("DELETE FROM {} WHERE id = %s").format(sql.Identifier(table))
        cursor = self._execute(query, [record_id])
        if cursor.rowcount == 0:
            raise EntityNotFoundError(f"{table} record {record_id} not found")

    def run_atomic(self, steps: Sequence[Step]) -> None:
        try:
            with self._conn.transaction():
                for step in steps:
                    self._apply(step)
        except psycopg.Error as e:
            raise StoreFailureError(str(e)) from e

    def count_referencing(self, table: str, foreign_key: str, value: Any) -> int:
        query = sql.SQL("SELECT count(*) AS n FROM {} WHERE {} = %s").format(
            sql.Identifier(table), sql.Identifier(foreign_key)
        )
        row = self._execute(query, [value]).fetchone()
        return int(row["n"])

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
        """Apply deltas in a single UPDATE whose WHERE clause carries the bounds."""

        def new_value(column: str) -> tuple[sql.Composable, list[Any]]:
            if column in step.deltas:
                return sql.SQL("({} + %s)").format(sql.Identifier(column)), [step.deltas[column]]
            return sql.Identifier(column), []

        assignments: list[sql.Composable] = []
        params: list[Any] = []
        for column, delta in step.deltas.items():
            assignments.append(sql.SQL("{} = {} + %s").format(sql.Identifier(column), sql.Identifier(column)))
            params.append(delta)
        for column, value in step.set_fields.items():
            assignments.append(sql.SQL("{} = %s").format(sql.Identifier(column)))
            params.append(value)
        assignments.append(sql.SQL("updated_at = now()"))

        conditions: list[sql.Composable] = [sql.SQL("id = %s")]
        params.append(step.record_id)
        for column, minimum in step.minimums.items():
            expr, expr_params = new_value(column)
            conditions.append(sql.SQL("{} >= %s").format(expr))
            params.extend(expr_params + [minimum])
        for column, maximum in step.maximums.items():
            expr, expr_params = new_value(column)
            if isinstance(maximum, str):
                bound, bound_params = new_value(maximum)
                conditions.append(sql.SQL("{} <= {}").format(expr, bound))
                params.extend(expr_params + bound_params)
            else:
                conditions.append(sql.SQL("{} <= %s").format(expr))
                params.extend(expr_params + [maximum])

        query = sql.SQL("UPDATE {} SET {} WHERE {} RETURNING id").format(
            sql.Identifier(step.table),
            sql.SQL(", ").join(assignments),
            sql.SQL(" AND ").join(conditions),
        )
        if self._execute(query, params).fetchone() is not None:
            return

        # Distinguish a missing row from a failed bound
        self.get_record(step.table, step.record_id)
        raise InvariantViolationError(
            f"{step.table} record {step.record_id} changed concurrently or would break its bounds",
            ViolationReason.GUARD_FAILED,
        )
