"""Custom exception hierarchy for finledger."""

from enum import Enum


class ViolationReason(str, Enum):
    NON_POSITIVE_AMOUNT = "NON_POSITIVE_AMOUNT"
    AMOUNT_TOO_LARGE = "AMOUNT_TOO_LARGE"
    INSUFFICIENT_BALANCE = "INSUFFICIENT_BALANCE"
    INSUFFICIENT_POCKET_BALANCE = "INSUFFICIENT_POCKET_BALANCE"
    AMOUNT_EXCEEDS_DEBT = "AMOUNT_EXCEEDS_DEBT"
    NO_PENDING_CASHBACK = "NO_PENDING_CASHBACK"
    LIMIT_BELOW_DEBT = "LIMIT_BELOW_DEBT"
    INSUFFICIENT_CREDIT = "INSUFFICIENT_CREDIT"
    WALLET_HAS_BALANCE = "WALLET_HAS_BALANCE"
    CARD_HAS_DEBT = "CARD_HAS_DEBT"
    CARD_HAS_PENDING_CASHBACK = "CARD_HAS_PENDING_CASHBACK"
    MISSING_COLOR = "MISSING_COLOR"
    INVALID_FIELD = "INVALID_FIELD"
    BALANCE_MISMATCH = "BALANCE_MISMATCH"
    GUARD_FAILED = "GUARD_FAILED"


class LedgerError(Exception):
    """Base exception for all finledger errors."""


class NotAuthenticatedError(LedgerError):
    """Raised when an operation is invoked without a caller identity."""


class EntityNotFoundError(LedgerError):
    """Raised when a referenced entity does not exist."""


class InvariantViolationError(LedgerError):
    """Raised when a balance or hierarchy precondition fails.

    Parameters
    ----------
    message : str
        Human readable reason, suitable for display.
    reason : ViolationReason
        Machine readable reason so callers can tell violations apart.
    """

    def __init__(self, message: str, reason: ViolationReason = ViolationReason.INVALID_FIELD) -> None:
        super().__init__(message)
        self.reason = reason


class ReferentialBlockError(LedgerError):
    """Raised when a deletion is blocked by records that still reference the target."""

    def __init__(self, message: str, entity_id: str, blocked_by: str, count: int) -> None:
        super().__init__(message)
        self.entity_id = entity_id
        self.blocked_by = blocked_by  # "self" or "child"
        self.count = count


class StoreFailureError(LedgerError):
    """Raised when the backing record store fails to read or write."""


class ConfigurationError(LedgerError):
    """Raised when configuration is invalid or missing."""
