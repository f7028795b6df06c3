"""Pocket operations: moving funds between a wallet and its pockets."""

import logging
from datetime import date
from decimal import Decimal
from typing import Any

from finledger.exceptions import InvariantViolationError
from finledger.logging import ledger_event
from finledger.models.base import Caller
from finledger.models.ledger import InterestAccumulation, Pocket
from finledger.services import invariants
from finledger.services.base import BaseService, TransferResult, new_id, require_caller

logger = logging.getLogger(__name__)


class PocketService(BaseService):
    """Create pockets and move funds in and out of them.

    Transfers never change the wallet's ``balance_total``: funds only move
    between the loose balance and the pocket buckets.
    """

    def create_pocket(self, caller: Caller | None, wallet_id: str, name: str) -> Pocket:
        """Create an empty pocket in one of the caller's wallets."""
        caller = require_caller(caller)
        name = invariants.validate_name(name, invariants.POCKET_NAME_LENGTH, "Pocket")
        self._get_active_wallet(caller, wallet_id)

        pocket = Pocket(pocket_id=new_id(), wallet_id=wallet_id, name=name, balance=invariants.ZERO)
        record = self.store.insert_record(Pocket.TABLE, pocket.to_record())
        logger.info("Created pocket %s in wallet %s", pocket.pocket_id, wallet_id)
        return Pocket.from_record(record)

    def get_pocket(self, caller: Caller | None, pocket_id: str) -> Pocket:
        pocket, _ = self._get_pocket(require_caller(caller), pocket_id)
        return pocket

    def list_pockets(self, caller: Caller | None, wallet_id: str) -> list[Pocket]:
        """List a wallet's pockets, oldest first."""
        caller = require_caller(caller)
        self._get_wallet(caller, wallet_id)
        records = self.store.list_records(Pocket.TABLE, {"wallet_id": wallet_id}, order_by="created_at")
        return [Pocket.from_record(r) for r in records]

    def rename_pocket(self, caller: Caller | None, pocket_id: str, name: str) -> Pocket:
        caller = require_caller(caller)
        name = invariants.validate_name(name, invariants.POCKET_NAME_LENGTH, "Pocket")
        self._get_pocket(caller, pocket_id)
        record = self.store.update_record(Pocket.TABLE, pocket_id, {"name": name})
        return Pocket.from_record(record)

    def deposit_to_pocket(self, caller: Caller | None, pocket_id: str, amount: Any) -> TransferResult:
        """Move ``amount`` from the wallet's available balance into the pocket."""
        caller = require_caller(caller)
        pocket, wallet = self._get_pocket(caller, pocket_id)
        plan = invariants.plan_pocket_deposit(wallet, pocket, amount)
        self.store.run_atomic(plan.steps)
        logger.info(
            "Moved %s from wallet %s to pocket %s",
            plan.amount,
            wallet.wallet_id,
            pocket_id,
            extra=ledger_event(wallet_id=wallet.wallet_id, pocket_id=pocket_id, amount=plan.amount),
        )
        return self._result(caller, plan.amount, pocket_id)

    def withdraw_from_pocket(self, caller: Caller | None, pocket_id: str, amount: Any) -> TransferResult:
        """Move ``amount`` from the pocket back to the wallet's available balance."""
        caller = require_caller(caller)
        pocket, wallet = self._get_pocket(caller, pocket_id)
        plan = invariants.plan_pocket_withdrawal(wallet, pocket, amount)
        self.store.run_atomic(plan.steps)
        logger.info(
            "Moved %s from pocket %s to wallet %s",
            plan.amount,
            pocket_id,
            wallet.wallet_id,
            extra=ledger_event(wallet_id=wallet.wallet_id, pocket_id=pocket_id, amount=-plan.amount),
        )
        return self._result(caller, plan.amount, pocket_id)

    def delete_pocket_with_transfer(self, caller: Caller | None, pocket_id: str) -> TransferResult:
        """Return the pocket's balance to its wallet and delete it, atomically."""
        caller = require_caller(caller)
        pocket, wallet = self._get_pocket(caller, pocket_id)
        plan = invariants.plan_pocket_settlement(wallet, pocket)
        self.store.run_atomic(plan.steps)
        logger.info("Deleted pocket %s, returned %s to wallet %s", pocket_id, plan.amount, wallet.wallet_id)
        return TransferResult(amount=plan.amount, wallet=self._get_wallet(caller, wallet.wallet_id))

    def monthly_interest(
        self, caller: Caller | None, wallet_id: str, month: int | None = None, year: int | None = None
    ) -> Decimal:
        """Total interest credited to the wallet's pockets in one month.

        Defaults to the current month.
        """
        caller = require_caller(caller)
        self._get_wallet(caller, wallet_id)
        today = date.today()
        month = month if month is not None else today.month
        year = year if year is not None else today.year
        if not 1 <= month <= 12:
            raise InvariantViolationError(f"Invalid month {month}")

        pocket_ids = [r["id"] for r in self.store.list_records(Pocket.TABLE, {"wallet_id": wallet_id})]
        if not pocket_ids:
            return invariants.ZERO
        records = self.store.list_records(
            InterestAccumulation.TABLE, {"pocket_id": pocket_ids, "month": month, "year": year}
        )
        return sum((InterestAccumulation.from_record(r).amount for r in records), invariants.ZERO)

    def _result(self, caller: Caller, amount: Any, pocket_id: str) -> TransferResult:
        pocket, wallet = self._get_pocket(caller, pocket_id)
        return TransferResult(amount=amount, wallet=wallet, pocket=pocket)
