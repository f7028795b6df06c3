"""Domain models for the ledger."""

from finledger.models.base import Caller, RecordModel

__all__ = ["Caller", "RecordModel"]
