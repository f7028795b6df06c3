"""Category and transaction models."""

from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal

from finledger.models.base import RecordModel
from finledger.models.ledger.enums import CategoryType, TransactionType


@dataclass
class Category(RecordModel):
    """Two-level category; children with a parent mirror the parent's color."""

    TABLE = "categories"
    PRIMARY_KEY = "category_id"
    ENUM_FIELDS = {"category_type": CategoryType}

    category_id: str
    user_id: str
    name: str
    color: str
    category_type: CategoryType
    parent_id: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @property
    def inherits_color(self) -> bool:
        return self.category_type == CategoryType.CHILD and self.parent_id is not None


@dataclass
class Transaction(RecordModel):
    """Income, expense or transfer record.

    Transactions are written by other parts of the application; the ledger
    only counts them when deciding whether a category may be deleted.
    """

    TABLE = "transactions"
    PRIMARY_KEY = "transaction_id"
    ENUM_FIELDS = {"transaction_type": TransactionType}

    transaction_id: str
    user_id: str
    transaction_type: TransactionType
    amount: Decimal
    name: str
    transaction_date: date
    category_id: str | None = None
    notes: str | None = None
    source_account_id: str | None = None
    source_card_id: str | None = None
    destination_account_id: str | None = None
    destination_card_id: str | None = None
    cashback_generated: Decimal = Decimal("0")
    cashback_transferred: bool = False
    created_at: datetime | None = None
    updated_at: datetime | None = None
