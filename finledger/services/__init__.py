"""Ledger domain services."""

from finledger.services.base import TransferResult
from finledger.services.categories import CategoryService
from finledger.services.credit_cards import CreditCardService
from finledger.services.pockets import PocketService
from finledger.services.wallets import WalletService

__all__ = [
    "CategoryService",
    "CreditCardService",
    "PocketService",
    "TransferResult",
    "WalletService",
]
