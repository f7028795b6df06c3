"""Record stores backing the ledger services."""

from finledger.config import LedgerConfig
from finledger.store.base import (
    AdjustStep,
    DeleteStep,
    InsertStep,
    RecordStore,
    Step,
    UpdateStep,
)
from finledger.store.memory import InMemoryRecordStore

__all__ = [
    "AdjustStep",
    "DeleteStep",
    "InMemoryRecordStore",
    "InsertStep",
    "RecordStore",
    "Step",
    "UpdateStep",
    "create_store",
]


def create_store(config: LedgerConfig) -> RecordStore:
    """Build the record store selected by ``config.store.backend``."""
    if config.store.backend == "postgres":
        from finledger.store.postgres import PostgresRecordStore

        return PostgresRecordStore(config.postgres.connection_string)
    return InMemoryRecordStore()
