"""Shared plumbing for ledger services."""

import uuid
from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Iterable, Mapping

from finledger.exceptions import EntityNotFoundError, InvariantViolationError, NotAuthenticatedError
from finledger.models.base import Caller
from finledger.models.ledger import Category, CreditCard, Pocket, Wallet
from finledger.store.base import RecordStore


@dataclass
class TransferResult:
    """Outcome of a transfer: the moved amount and the entities as stored afterwards."""

    amount: Decimal
    wallet: Wallet
    pocket: Pocket | None = None
    card: CreditCard | None = None


def new_id() -> str:
    return str(uuid.uuid4())


def require_caller(caller: Caller | None) -> Caller:
    if caller is None or not caller.user_id:
        raise NotAuthenticatedError("Not authenticated")
    return caller


def check_update_keys(updates: Mapping[str, Any], allowed: Iterable[str]) -> None:
    unknown = set(updates) - set(allowed)
    if unknown:
        raise InvariantViolationError(f"Fields cannot be updated: {', '.join(sorted(unknown))}")


class BaseService:
    """Base class for services operating on a record store.

    Entities owned by another user are reported as missing, the same way
    row-level security hides them.
    """

    def __init__(self, store: RecordStore) -> None:
        self.store = store

    def _get_wallet(self, caller: Caller, wallet_id: str) -> Wallet:
        wallet = Wallet.from_record(self.store.get_record(Wallet.TABLE, wallet_id))
        if wallet.user_id != caller.user_id:
            raise EntityNotFoundError(f"Wallet {wallet_id} not found")
        return wallet

    def _get_active_wallet(self, caller: Caller, wallet_id: str) -> Wallet:
        """Wallet that may still receive funds."""
        wallet = self._get_wallet(caller, wallet_id)
        if not wallet.is_active:
            raise InvariantViolationError(f"Wallet {wallet_id} is not active")
        return wallet

    def _get_pocket(self, caller: Caller, pocket_id: str) -> tuple[Pocket, Wallet]:
        pocket = Pocket.from_record(self.store.get_record(Pocket.TABLE, pocket_id))
        try:
            wallet = self._get_wallet(caller, pocket.wallet_id)
        except EntityNotFoundError:
            raise EntityNotFoundError(f"Pocket {pocket_id} not found") from None
        return pocket, wallet

    def _get_card(self, caller: Caller, card_id: str) -> CreditCard:
        card = CreditCard.from_record(self.store.get_record(CreditCard.TABLE, card_id))
        if card.user_id != caller.user_id:
            raise EntityNotFoundError(f"Credit card {card_id} not found")
        return card

    def _get_category(self, caller: Caller, category_id: str) -> Category:
        category = Category.from_record(self.store.get_record(Category.TABLE, category_id))
        if category.user_id != caller.user_id:
            raise EntityNotFoundError(f"Category {category_id} not found")
        return category
