"""Credit card model."""

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal

from finledger.models.base import RecordModel


@dataclass
class CreditCard(RecordModel):
    """Credit card with a debt bounded by its limit and accrued cashback."""

    TABLE = "credit_cards"
    PRIMARY_KEY = "card_id"

    card_id: str
    user_id: str
    name: str
    credit_limit: Decimal
    current_debt: Decimal = Decimal("0")
    cashback_percentage: Decimal = Decimal("0")
    pending_cashback: Decimal = Decimal("0")
    total_cashback_generated: Decimal = Decimal("0")  # historical, never decreases
    cashback_destination_account_id: str | None = None
    is_active: bool = True
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @property
    def available_credit(self) -> Decimal:
        """Remaining spendable credit."""
        return self.credit_limit - self.current_debt
