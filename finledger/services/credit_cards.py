"""Credit card operations: limits, payments and cashback settlement."""

import logging
from typing import Any, Mapping

from finledger.exceptions import InvariantViolationError
from finledger.logging import ledger_event
from finledger.models.base import Caller
from finledger.models.ledger import CreditCard
from finledger.services import invariants
from finledger.services.base import (
    BaseService,
    TransferResult,
    check_update_keys,
    new_id,
    require_caller,
)

logger = logging.getLogger(__name__)

UPDATABLE_FIELDS = ("name", "credit_limit", "cashback_percentage", "cashback_destination_account_id")


class CreditCardService(BaseService):
    """Manage credit cards and settle debt and cashback against wallets."""

    def create_card(
        self,
        caller: Caller | None,
        name: str,
        credit_limit: Any,
        cashback_percentage: Any = 0,
        cashback_destination_account_id: str | None = None,
    ) -> CreditCard:
        """Create a card with no debt and no cashback."""
        caller = require_caller(caller)
        name = invariants.validate_name(name, invariants.CARD_NAME_LENGTH, "Card")
        limit = invariants.validate_credit_limit(credit_limit)
        percentage = invariants.validate_percentage(cashback_percentage, "Cashback")
        if cashback_destination_account_id is not None:
            self._get_active_wallet(caller, cashback_destination_account_id)

        card = CreditCard(
            card_id=new_id(),
            user_id=caller.user_id,
            name=name,
            credit_limit=limit,
            current_debt=invariants.ZERO,
            cashback_percentage=percentage,
            pending_cashback=invariants.ZERO,
            total_cashback_generated=invariants.ZERO,
            cashback_destination_account_id=cashback_destination_account_id,
            is_active=True,
        )
        record = self.store.insert_record(CreditCard.TABLE, card.to_record())
        logger.info("Created card %s with limit %s", card.card_id, limit)
        return CreditCard.from_record(record)

    def get_card(self, caller: Caller | None, card_id: str) -> CreditCard:
        return self._get_card(require_caller(caller), card_id)

    def list_cards(self, caller: Caller | None) -> list[CreditCard]:
        """List the caller's active cards, newest first."""
        caller = require_caller(caller)
        records = self.store.list_records(
            CreditCard.TABLE,
            {"user_id": caller.user_id, "is_active": True},
            order_by="created_at",
            descending=True,
        )
        return [CreditCard.from_record(r) for r in records]

    def update_card(self, caller: Caller | None, card_id: str, updates: Mapping[str, Any]) -> CreditCard:
        """Update card settings; the limit may never drop below the current debt."""
        caller = require_caller(caller)
        check_update_keys(updates, UPDATABLE_FIELDS)
        card = self._get_card(caller, card_id)

        fields: dict[str, Any] = {}
        if "name" in updates:
            fields["name"] = invariants.validate_name(updates["name"], invariants.CARD_NAME_LENGTH, "Card")
        if "credit_limit" in updates:
            try:
                fields["credit_limit"] = invariants.check_credit_limit(card, updates["credit_limit"])
            except InvariantViolationError as e:
                logger.warning("Rejected limit change on card %s: %s", card_id, e)
                raise
        if "cashback_percentage" in updates:
            fields["cashback_percentage"] = invariants.validate_percentage(
                updates["cashback_percentage"], "Cashback"
            )
        if "cashback_destination_account_id" in updates:
            destination = updates["cashback_destination_account_id"]
            if destination is not None:
                self._get_active_wallet(caller, destination)
            fields["cashback_destination_account_id"] = destination

        if not fields:
            return card
        record = self.store.update_record(CreditCard.TABLE, card_id, fields)
        logger.info("Updated card %s: %s", card_id, ", ".join(sorted(fields)))
        return CreditCard.from_record(record)

    def verify_card(self, caller: Caller | None, card_id: str) -> CreditCard:
        """Check the stored debt and cashback against their bounds."""
        card = self._get_card(require_caller(caller), card_id)
        invariants.check_card_bounds(card)
        return card

    def delete_card(self, caller: Caller | None, card_id: str) -> None:
        """Delete a card that has neither debt nor pending cashback."""
        caller = require_caller(caller)
        card = self._get_card(caller, card_id)
        invariants.check_card_deletable(card)
        self.store.delete_record(CreditCard.TABLE, card_id)
        logger.info("Deleted card %s", card_id)

    def pay_card(self, caller: Caller | None, card_id: str, account_id: str, amount: Any) -> TransferResult:
        """Pay ``amount`` of the card's debt from a wallet's available balance.

        The cash leaves the wallet: both its available and total balances
        drop by ``amount``.
        """
        caller = require_caller(caller)
        wallet = self._get_wallet(caller, account_id)
        card = self._get_card(caller, card_id)
        try:
            plan = invariants.plan_card_payment(wallet, card, amount)
        except InvariantViolationError as e:
            logger.warning("Rejected payment on card %s: %s", card_id, e)
            raise
        self.store.run_atomic(plan.steps)
        logger.info(
            "Paid %s on card %s from wallet %s",
            plan.amount,
            card_id,
            account_id,
            extra=ledger_event(card_id=card_id, wallet_id=account_id, amount=plan.amount),
        )
        return TransferResult(
            amount=plan.amount,
            wallet=self._get_wallet(caller, account_id),
            card=self._get_card(caller, card_id),
        )

    def charge_card(self, caller: Caller | None, card_id: str, amount: Any) -> CreditCard:
        """Record a purchase: raise the debt and accrue cashback on it."""
        caller = require_caller(caller)
        card = self._get_card(caller, card_id)
        plan = invariants.plan_card_charge(card, amount)
        self.store.run_atomic(plan.steps)
        logger.info("Charged %s to card %s", plan.amount, card_id)
        return self._get_card(caller, card_id)

    def transfer_cashback(
        self, caller: Caller | None, card_id: str, account_id: str | None = None
    ) -> TransferResult:
        """Move all pending cashback into a wallet and return the amount moved.

        Without ``account_id`` the card's configured cashback destination is used.
        """
        caller = require_caller(caller)
        card = self._get_card(caller, card_id)
        destination = account_id or card.cashback_destination_account_id
        if destination is None:
            raise InvariantViolationError("A destination wallet is required to transfer cashback")
        wallet = self._get_active_wallet(caller, destination)
        plan = invariants.plan_cashback_transfer(wallet, card)
        self.store.run_atomic(plan.steps)
        logger.info(
            "Transferred cashback %s from card %s to wallet %s",
            plan.amount,
            card_id,
            destination,
            extra=ledger_event(card_id=card_id, wallet_id=destination, amount=plan.amount),
        )
        return TransferResult(
            amount=plan.amount,
            wallet=self._get_wallet(caller, destination),
            card=self._get_card(caller, card_id),
        )
