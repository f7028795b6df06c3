"""Ledger domain models."""

from finledger.models.ledger.category import Category, Transaction
from finledger.models.ledger.credit_card import CreditCard
from finledger.models.ledger.enums import CategoryType, InterestFrequency, TransactionType
from finledger.models.ledger.wallet import InterestAccumulation, Pocket, Wallet

__all__ = [
    "Category",
    "CategoryType",
    "CreditCard",
    "InterestAccumulation",
    "InterestFrequency",
    "Pocket",
    "Transaction",
    "TransactionType",
    "Wallet",
]
