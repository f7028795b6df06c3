"""Wallet lifecycle operations."""

import logging
from collections import Counter
from typing import Any, Mapping

from finledger.exceptions import InvariantViolationError
from finledger.models.base import Caller
from finledger.models.ledger import CreditCard, Pocket, Wallet
from finledger.services import invariants
from finledger.services.base import BaseService, check_update_keys, new_id, require_caller
from finledger.store.base import AdjustStep, DeleteStep, Step, UpdateStep

logger = logging.getLogger(__name__)

UPDATABLE_FIELDS = ("name", "interest_rate", "interest_payment_frequency", "balance_available")


class WalletService(BaseService):
    """Create, update, deactivate and delete wallets."""

    def create_wallet(
        self,
        caller: Caller | None,
        name: str,
        balance_available: Any = 0,
        interest_rate: Any = 0,
        interest_payment_frequency: str | None = None,
    ) -> Wallet:
        """Create an active wallet whose total equals its opening balance."""
        caller = require_caller(caller)
        name = invariants.validate_name(name, invariants.WALLET_NAME_LENGTH, "Wallet")
        balance = invariants.validate_opening_balance(balance_available)
        rate, frequency = invariants.validate_interest(interest_rate, interest_payment_frequency)

        wallet = Wallet(
            wallet_id=new_id(),
            user_id=caller.user_id,
            name=name,
            balance_available=balance,
            balance_total=balance,
            interest_rate=rate,
            interest_payment_frequency=frequency,
            is_active=True,
        )
        record = self.store.insert_record(Wallet.TABLE, wallet.to_record())
        logger.info("Created wallet %s with balance %s", wallet.wallet_id, balance)
        return Wallet.from_record(record)

    def get_wallet(self, caller: Caller | None, wallet_id: str) -> Wallet:
        return self._get_wallet(require_caller(caller), wallet_id)

    def list_wallets(self, caller: Caller | None, include_inactive: bool = False) -> list[Wallet]:
        """List the caller's wallets, newest first."""
        caller = require_caller(caller)
        filters: dict[str, Any] = {"user_id": caller.user_id}
        if not include_inactive:
            filters["is_active"] = True
        records = self.store.list_records(Wallet.TABLE, filters, order_by="created_at", descending=True)
        return [Wallet.from_record(r) for r in records]

    def pocket_counts(self, caller: Caller | None) -> dict[str, int]:
        """Number of pockets per wallet id, for every wallet of the caller."""
        caller = require_caller(caller)
        wallet_ids = [
            r["id"] for r in self.store.list_records(Wallet.TABLE, {"user_id": caller.user_id})
        ]
        if not wallet_ids:
            return {}
        pockets = self.store.list_records(Pocket.TABLE, {"wallet_id": wallet_ids})
        return dict(Counter(p["wallet_id"] for p in pockets))

    def update_wallet(self, caller: Caller | None, wallet_id: str, updates: Mapping[str, Any]) -> Wallet:
        """Update wallet settings.

        A new ``balance_available`` shifts ``balance_total`` by the same
        delta, so funds held in pockets are untouched.
        """
        caller = require_caller(caller)
        check_update_keys(updates, UPDATABLE_FIELDS)
        wallet = self._get_wallet(caller, wallet_id)

        fields: dict[str, Any] = {}
        if "name" in updates:
            fields["name"] = invariants.validate_name(updates["name"], invariants.WALLET_NAME_LENGTH, "Wallet")
        if "interest_rate" in updates or "interest_payment_frequency" in updates:
            rate, frequency = invariants.validate_interest(
                updates.get("interest_rate", wallet.interest_rate),
                updates.get("interest_payment_frequency", wallet.interest_payment_frequency),
            )
            fields["interest_rate"] = rate
            fields["interest_payment_frequency"] = frequency.value if frequency else None

        if "balance_available" in updates:
            if not wallet.is_active:
                raise InvariantViolationError(f"Wallet {wallet_id} is not active")
            new_balance = invariants.validate_opening_balance(updates["balance_available"])
            delta = new_balance - wallet.balance_available
            step = AdjustStep(
                Wallet.TABLE,
                wallet_id,
                deltas={"balance_available": delta, "balance_total": delta},
                minimums={"balance_available": invariants.ZERO},
                set_fields=fields,
            )
            self.store.run_atomic([step])
            logger.info("Adjusted wallet %s available balance by %s", wallet_id, delta)
            return self._get_wallet(caller, wallet_id)

        if not fields:
            return wallet
        record = self.store.update_record(Wallet.TABLE, wallet_id, fields)
        logger.info("Updated wallet %s: %s", wallet_id, ", ".join(sorted(fields)))
        return Wallet.from_record(record)

    def deactivate_wallet(self, caller: Caller | None, wallet_id: str) -> Wallet:
        """Hide a wallet; only allowed once it holds no funds.

        Cards that sent cashback to this wallet lose their destination, so
        no funds can reach it while it is hidden.
        """
        caller = require_caller(caller)
        wallet = self._get_wallet(caller, wallet_id)
        invariants.check_wallet_deletable(wallet)
        steps: list[Step] = self._unlink_cards(wallet_id)
        # Total must still be zero when the flag flips
        steps.append(
            AdjustStep(
                Wallet.TABLE,
                wallet_id,
                deltas={},
                minimums={"balance_total": invariants.ZERO},
                maximums={"balance_total": invariants.ZERO},
                set_fields={"is_active": False},
            )
        )
        self.store.run_atomic(steps)
        logger.info("Deactivated wallet %s and unlinked %d cards", wallet_id, len(steps) - 1)
        return self._get_wallet(caller, wallet_id)

    def delete_wallet(self, caller: Caller | None, wallet_id: str) -> None:
        """Delete an empty wallet together with its (empty) pockets.

        Cards that sent cashback to this wallet lose their destination.
        """
        caller = require_caller(caller)
        wallet = self._get_wallet(caller, wallet_id)
        try:
            invariants.check_wallet_deletable(wallet)
        except InvariantViolationError:
            logger.warning("Refused to delete wallet %s with balance %s", wallet_id, wallet.balance_total)
            raise

        pockets = [Pocket.from_record(r) for r in self.store.list_records(Pocket.TABLE, {"wallet_id": wallet_id})]
        invariants.check_wallet_balance(wallet, pockets)

        steps: list[Step] = [DeleteStep(Pocket.TABLE, p.pocket_id) for p in pockets]
        steps.extend(self._unlink_cards(wallet_id))
        steps.append(DeleteStep(Wallet.TABLE, wallet_id))
        self.store.run_atomic(steps)
        logger.info("Deleted wallet %s and %d pockets", wallet_id, len(pockets))

    def verify_balance(self, caller: Caller | None, wallet_id: str) -> Wallet:
        """Recompute the pocket sum and check it against the stored totals."""
        caller = require_caller(caller)
        wallet = self._get_wallet(caller, wallet_id)
        pockets = [Pocket.from_record(r) for r in self.store.list_records(Pocket.TABLE, {"wallet_id": wallet_id})]
        invariants.check_wallet_balance(wallet, pockets)
        return wallet

    def _unlink_cards(self, wallet_id: str) -> list[Step]:
        cards = self.store.list_records(CreditCard.TABLE, {"cashback_destination_account_id": wallet_id})
        return [UpdateStep(CreditCard.TABLE, c["id"], {"cashback_destination_account_id": None}) for c in cards]
