"""Pytest configuration and fixtures."""

from decimal import Decimal

import pytest

from finledger import Caller, Ledger
from finledger.models.ledger import Category, CreditCard, Pocket, Wallet
from finledger.store import InMemoryRecordStore


@pytest.fixture
def seed() -> int:
    """Fixed seed for reproducible tests."""
    return 42


@pytest.fixture
def store() -> InMemoryRecordStore:
    """Fresh in-memory store for each test."""
    return InMemoryRecordStore()


@pytest.fixture
def ledger(store: InMemoryRecordStore) -> Ledger:
    return Ledger(store)


@pytest.fixture
def caller() -> Caller:
    return Caller(user_id="user-test-001")


@pytest.fixture
def other_caller() -> Caller:
    return Caller(user_id="user-test-002")


@pytest.fixture
def wallet(ledger: Ledger, caller: Caller) -> Wallet:
    """Wallet with 100000 available and no pockets."""
    return ledger.wallets.create_wallet(caller, "Cuenta Ahorros", balance_available=100000)


@pytest.fixture
def pocket(ledger: Ledger, caller: Caller, wallet: Wallet) -> Pocket:
    """Empty pocket in ``wallet``."""
    return ledger.pockets.create_pocket(caller, wallet.wallet_id, "Viajes")


@pytest.fixture
def card(ledger: Ledger, caller: Caller, store: InMemoryRecordStore) -> CreditCard:
    """Card with limit 500000 and debt 200000."""
    card = ledger.cards.create_card(caller, "Visa Oro", credit_limit=500000, cashback_percentage=1)
    store.update_record(CreditCard.TABLE, card.card_id, {"current_debt": Decimal("200000")})
    return ledger.cards.get_card(caller, card.card_id)


@pytest.fixture
def parent_category(ledger: Ledger, caller: Caller) -> Category:
    return ledger.categories.create_category(caller, "parent", "Hogar", color="#112233")
