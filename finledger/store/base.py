"""Record store interface consumed by the ledger services."""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Sequence


@dataclass
class InsertStep:
    """Insert a new record."""

    table: str
    fields: dict[str, Any]


@dataclass
class UpdateStep:
    """Overwrite fields of an existing record."""

    table: str
    record_id: str
    fields: dict[str, Any]


@dataclass
class AdjustStep:
    """Apply relative deltas to numeric columns of one record.

    ``minimums`` and ``maximums`` bound the resulting values. A maximum may
    name another column of the same record (e.g. ``{"current_debt":
    "credit_limit"}``). Bounds are checked by the store inside the atomic
    group, so a concurrent writer cannot push a balance past them.
    """

    table: str
    record_id: str
    deltas: dict[str, Decimal]
    minimums: dict[str, Decimal] = field(default_factory=dict)
    maximums: dict[str, Decimal | str] = field(default_factory=dict)
    set_fields: dict[str, Any] = field(default_factory=dict)


@dataclass
class DeleteStep:
    """Delete a record."""

    table: str
    record_id: str


Step = InsertStep | UpdateStep | AdjustStep | DeleteStep


class RecordStore(ABC):
    """Generic record store with an all-or-nothing batch primitive.

    Records are plain dicts keyed by an ``id`` column. Implementations
    raise ``EntityNotFoundError`` for unknown ids, ``InvariantViolationError``
    when an ``AdjustStep`` bound fails, and ``StoreFailureError`` for
    backend failures.
    """

    @abstractmethod
    def get_record(self, table: str, record_id: str) -> dict[str, Any]:
        """Return a single record."""

    @abstractmethod
    def list_records(
        self,
        table: str,
        filters: dict[str, Any] | None = None,
        order_by: str | None = None,
        descending: bool = False,
    ) -> list[dict[str, Any]]:
        """Return records whose columns equal every value in ``filters``.

        A list or tuple filter value matches any of its members.
        """

    @abstractmethod
    def insert_record(self, table: str, fields: dict[str, Any]) -> dict[str, Any]:
        """Insert a record and return it as stored."""

    @abstractmethod
    def update_record(self, table: str, record_id: str, fields: dict[str, Any]) -> dict[str, Any]:
        """Update a record and return it as stored."""

    @abstractmethod
    def delete_record(self, table: str, record_id: str) -> None:
        """Delete a record."""

    @abstractmethod
    def run_atomic(self, steps: Sequence[Step]) -> None:
        """Apply every step or none of them."""

    @abstractmethod
    def count_referencing(self, table: str, foreign_key: str, value: Any) -> int:
        """Count records in ``table`` whose ``foreign_key`` equals ``value``."""

    def close(self) -> None:
        """Release backend resources."""
