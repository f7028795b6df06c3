"""Wallet and pocket models."""

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal

from finledger.models.base import RecordModel
from finledger.models.ledger.enums import InterestFrequency


@dataclass
class Wallet(RecordModel):
    """Bank account holding loose funds plus the funds parked in its pockets.

    ``balance_total`` always equals ``balance_available`` plus the sum of
    the wallet's pocket balances.
    """

    TABLE = "wallets"
    PRIMARY_KEY = "wallet_id"
    ENUM_FIELDS = {"interest_payment_frequency": InterestFrequency}

    wallet_id: str
    user_id: str
    name: str
    balance_available: Decimal
    balance_total: Decimal
    interest_rate: Decimal = Decimal("0")
    interest_payment_frequency: InterestFrequency | None = None
    is_active: bool = True
    created_at: datetime | None = None
    updated_at: datetime | None = None

    def __post_init__(self) -> None:
        if self.interest_payment_frequency == InterestFrequency.NONE:
            self.interest_payment_frequency = None

    @property
    def balance_in_pockets(self) -> Decimal:
        """Funds committed to pockets."""
        return self.balance_total - self.balance_available


@dataclass
class Pocket(RecordModel):
    """Named sub-allocation of a single wallet's funds."""

    TABLE = "pockets"
    PRIMARY_KEY = "pocket_id"

    pocket_id: str
    wallet_id: str
    name: str
    balance: Decimal = Decimal("0")
    created_at: datetime | None = None
    updated_at: datetime | None = None


@dataclass
class InterestAccumulation(RecordModel):
    """Interest credited to a pocket for one calendar month.

    Rows are written by the interest accrual job; the ledger only sums them.
    """

    TABLE = "interest_accumulations"
    PRIMARY_KEY = "accumulation_id"

    accumulation_id: str
    pocket_id: str
    amount: Decimal
    month: int
    year: int
    created_at: datetime | None = None
    updated_at: datetime | None = None
