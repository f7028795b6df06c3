"""Facade bundling the ledger services over one record store."""

import logging

from finledger.config import LedgerConfig
from finledger.services import CategoryService, CreditCardService, PocketService, WalletService
from finledger.store import RecordStore, create_store

logger = logging.getLogger(__name__)


class Ledger:
    """Entry point for callers: ``ledger.wallets``, ``ledger.pockets``,
    ``ledger.cards`` and ``ledger.categories`` share a single store."""

    def __init__(self, store: RecordStore) -> None:
        self.store = store
        self.wallets = WalletService(store)
        self.pockets = PocketService(store)
        self.cards = CreditCardService(store)
        self.categories = CategoryService(store)

    @classmethod
    def from_config(cls, config: LedgerConfig) -> "Ledger":
        """Build a ledger on the store selected by ``config``."""
        logger.info("Using %s record store", config.store.backend)
        return cls(create_store(config))

    def close(self) -> None:
        self.store.close()
