"""Sample data generators."""

from finledger.generators.ledger import (
    CategoryGenerator,
    CreditCardGenerator,
    PocketGenerator,
    WalletGenerator,
)

__all__ = [
    "CategoryGenerator",
    "CreditCardGenerator",
    "PocketGenerator",
    "WalletGenerator",
]
