"""Balance-consistency rules for wallets, pockets, credit cards and categories."""

from finledger.exceptions import (
    ConfigurationError,
    EntityNotFoundError,
    InvariantViolationError,
    LedgerError,
    NotAuthenticatedError,
    ReferentialBlockError,
    StoreFailureError,
    ViolationReason,
)
from finledger.ledger import Ledger
from finledger.models.base import Caller

__all__ = [
    "Caller",
    "ConfigurationError",
    "EntityNotFoundError",
    "InvariantViolationError",
    "Ledger",
    "LedgerError",
    "NotAuthenticatedError",
    "ReferentialBlockError",
    "StoreFailureError",
    "ViolationReason",
]

__version__ = "0.1.0"
