"""Enumeration types for ledger entities."""

from enum import Enum


class InterestFrequency(str, Enum):
    """How often a wallet pays interest.

    ``NONE`` is accepted as input only; wallets store it as ``None``.
    """

    NONE = "none"
    DAILY = "daily"
    MONTHLY = "monthly"


class CategoryType(str, Enum):
    PARENT = "parent"
    CHILD = "child"


class TransactionType(str, Enum):
    INCOME = "income"
    EXPENSE = "expense"
    TRANSFER = "transfer"
    CARD_PAYMENT = "card_payment"
