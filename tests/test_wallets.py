"""Tests for WalletService."""

from datetime import datetime
from decimal import Decimal
from unittest.mock import patch

import pytest

from finledger import Caller, Ledger
from finledger.exceptions import (
    EntityNotFoundError,
    InvariantViolationError,
    NotAuthenticatedError,
    ViolationReason,
)
from finledger.models.ledger import CreditCard, InterestFrequency, Pocket, Wallet
from finledger.store import InMemoryRecordStore


class TestCreateWallet:
    """Tests for wallet creation."""

    def test_create_wallet(self, ledger: Ledger, caller: Caller) -> None:
        wallet = ledger.wallets.create_wallet(caller, "  Nequi  ", balance_available="2500.50")

        assert wallet.name == "Nequi"
        assert wallet.user_id == caller.user_id
        assert wallet.balance_available == Decimal("2500.50")
        assert wallet.balance_total == Decimal("2500.50")
        assert wallet.is_active is True
        assert wallet.created_at is not None

    def test_create_with_interest(self, ledger: Ledger, caller: Caller) -> None:
        wallet = ledger.wallets.create_wallet(
            caller, "Lulo Ahorros", interest_rate="9.5", interest_payment_frequency="daily"
        )

        assert wallet.interest_rate == Decimal("9.5")
        assert wallet.interest_payment_frequency == InterestFrequency.DAILY

    def test_interest_without_frequency(self, ledger: Ledger, caller: Caller) -> None:
        with pytest.raises(InvariantViolationError):
            ledger.wallets.create_wallet(caller, "Lulo Ahorros", interest_rate=3)

    def test_negative_opening_balance(self, ledger: Ledger, caller: Caller) -> None:
        with pytest.raises(InvariantViolationError):
            ledger.wallets.create_wallet(caller, "Nequi", balance_available=-1)

    def test_requires_caller(self, ledger: Ledger) -> None:
        with pytest.raises(NotAuthenticatedError):
            ledger.wallets.create_wallet(None, "Nequi")

    def test_empty_user_id(self, ledger: Ledger) -> None:
        with pytest.raises(NotAuthenticatedError):
            ledger.wallets.create_wallet(Caller(user_id=""), "Nequi")


class TestReadWallets:
    """Tests for reads and ownership."""

    def test_other_user_cannot_see_wallet(self, ledger: Ledger, wallet: Wallet, other_caller: Caller) -> None:
        with pytest.raises(EntityNotFoundError):
            ledger.wallets.get_wallet(other_caller, wallet.wallet_id)

    def test_list_newest_first(
        self, ledger: Ledger, caller: Caller, other_caller: Caller, store: InMemoryRecordStore
    ) -> None:
        older = ledger.wallets.create_wallet(caller, "Davivienda")
        newer = ledger.wallets.create_wallet(caller, "Bancolombia")
        ledger.wallets.create_wallet(other_caller, "Nu Ahorros")
        store.update_record(Wallet.TABLE, older.wallet_id, {"created_at": datetime(2024, 1, 1)})
        store.update_record(Wallet.TABLE, newer.wallet_id, {"created_at": datetime(2024, 6, 1)})

        wallets = ledger.wallets.list_wallets(caller)

        assert [w.wallet_id for w in wallets] == [newer.wallet_id, older.wallet_id]

    def test_list_hides_inactive(self, ledger: Ledger, caller: Caller) -> None:
        empty = ledger.wallets.create_wallet(caller, "Vacia")
        ledger.wallets.deactivate_wallet(caller, empty.wallet_id)

        assert ledger.wallets.list_wallets(caller) == []
        assert len(ledger.wallets.list_wallets(caller, include_inactive=True)) == 1

    def test_pocket_counts(self, ledger: Ledger, caller: Caller, wallet: Wallet) -> None:
        other = ledger.wallets.create_wallet(caller, "Davivienda")
        ledger.pockets.create_pocket(caller, wallet.wallet_id, "Viajes")
        ledger.pockets.create_pocket(caller, wallet.wallet_id, "Salud")

        counts = ledger.wallets.pocket_counts(caller)

        assert counts == {wallet.wallet_id: 2}
        assert other.wallet_id not in counts

    def test_pocket_counts_without_wallets(self, ledger: Ledger, caller: Caller) -> None:
        assert ledger.wallets.pocket_counts(caller) == {}


class TestUpdateWallet:
    """Tests for wallet updates."""

    def test_rename(self, ledger: Ledger, caller: Caller, wallet: Wallet) -> None:
        updated = ledger.wallets.update_wallet(caller, wallet.wallet_id, {"name": "Cuenta Nomina"})

        assert updated.name == "Cuenta Nomina"
        assert updated.balance_total == wallet.balance_total

    def test_unknown_field_rejected(self, ledger: Ledger, caller: Caller, wallet: Wallet) -> None:
        with pytest.raises(InvariantViolationError, match="balance_total"):
            ledger.wallets.update_wallet(caller, wallet.wallet_id, {"balance_total": 5})

    def test_balance_edit_shifts_total(self, ledger: Ledger, caller: Caller, wallet: Wallet, pocket: Pocket) -> None:
        """Test pockets keep their funds when the loose balance is edited."""
        ledger.pockets.deposit_to_pocket(caller, pocket.pocket_id, 30000)

        updated = ledger.wallets.update_wallet(
            caller, wallet.wallet_id, {"balance_available": 50000, "name": "Ahorros"}
        )

        assert updated.balance_available == Decimal("50000")
        assert updated.balance_total == Decimal("80000")
        assert updated.name == "Ahorros"
        ledger.wallets.verify_balance(caller, wallet.wallet_id)

    def test_interest_update(self, ledger: Ledger, caller: Caller, wallet: Wallet) -> None:
        updated = ledger.wallets.update_wallet(
            caller, wallet.wallet_id, {"interest_rate": 4, "interest_payment_frequency": "monthly"}
        )

        assert updated.interest_rate == Decimal("4")
        assert updated.interest_payment_frequency == InterestFrequency.MONTHLY

    def test_interest_rate_alone_needs_frequency(self, ledger: Ledger, caller: Caller, wallet: Wallet) -> None:
        with pytest.raises(InvariantViolationError):
            ledger.wallets.update_wallet(caller, wallet.wallet_id, {"interest_rate": 4})

    def test_empty_update_is_noop(self, ledger: Ledger, caller: Caller, wallet: Wallet) -> None:
        assert ledger.wallets.update_wallet(caller, wallet.wallet_id, {}) == wallet


class TestDeleteWallet:
    """Tests for deactivation and deletion."""

    def test_deactivate_with_balance(self, ledger: Ledger, caller: Caller, wallet: Wallet) -> None:
        with pytest.raises(InvariantViolationError) as exc_info:
            ledger.wallets.deactivate_wallet(caller, wallet.wallet_id)

        assert exc_info.value.reason == ViolationReason.WALLET_HAS_BALANCE

    def test_delete_with_balance(self, ledger: Ledger, caller: Caller, wallet: Wallet) -> None:
        with pytest.raises(InvariantViolationError) as exc_info:
            ledger.wallets.delete_wallet(caller, wallet.wallet_id)

        assert exc_info.value.reason == ViolationReason.WALLET_HAS_BALANCE
        assert ledger.wallets.get_wallet(caller, wallet.wallet_id).balance_total == Decimal("100000")

    def test_delete_removes_pockets_and_unlinks_cards(
        self, ledger: Ledger, caller: Caller, store: InMemoryRecordStore
    ) -> None:
        empty = ledger.wallets.create_wallet(caller, "Vacia")
        pocket = ledger.pockets.create_pocket(caller, empty.wallet_id, "Viajes")
        card = ledger.cards.create_card(
            caller, "Visa Oro", credit_limit=1000, cashback_destination_account_id=empty.wallet_id
        )

        ledger.wallets.delete_wallet(caller, empty.wallet_id)

        with pytest.raises(EntityNotFoundError):
            ledger.wallets.get_wallet(caller, empty.wallet_id)
        with pytest.raises(EntityNotFoundError):
            store.get_record(Pocket.TABLE, pocket.pocket_id)
        assert store.get_record(CreditCard.TABLE, card.card_id)["cashback_destination_account_id"] is None

    def test_other_user_cannot_delete(self, ledger: Ledger, caller: Caller, other_caller: Caller) -> None:
        empty = ledger.wallets.create_wallet(caller, "Vacia")

        with pytest.raises(EntityNotFoundError):
            ledger.wallets.delete_wallet(other_caller, empty.wallet_id)
        assert ledger.wallets.get_wallet(caller, empty.wallet_id).wallet_id == empty.wallet_id


class TestVerifyBalance:
    """Tests for the balance consistency check."""

    def test_detects_drift(
        self, ledger: Ledger, caller: Caller, wallet: Wallet, store: InMemoryRecordStore
    ) -> None:
        store.update_record(Wallet.TABLE, wallet.wallet_id, {"balance_total": Decimal("99999")})

        with pytest.raises(InvariantViolationError) as exc_info:
            ledger.wallets.verify_balance(caller, wallet.wallet_id)

        assert exc_info.value.reason == ViolationReason.BALANCE_MISMATCH


class TestInactiveWallet:
    """Tests keeping funds out of deactivated wallets."""

    def test_deactivate_unlinks_cards(self, ledger: Ledger, caller: Caller) -> None:
        empty = ledger.wallets.create_wallet(caller, "Vacia")
        card = ledger.cards.create_card(
            caller, "Visa Oro", credit_limit=1000, cashback_destination_account_id=empty.wallet_id
        )

        deactivated = ledger.wallets.deactivate_wallet(caller, empty.wallet_id)

        assert deactivated.is_active is False
        assert ledger.cards.get_card(caller, card.card_id).cashback_destination_account_id is None

    def test_balance_edit_rejected(self, ledger: Ledger, caller: Caller) -> None:
        empty = ledger.wallets.create_wallet(caller, "Vacia")
        ledger.wallets.deactivate_wallet(caller, empty.wallet_id)

        with pytest.raises(InvariantViolationError, match="not active"):
            ledger.wallets.update_wallet(caller, empty.wallet_id, {"balance_available": 5000})

        assert ledger.wallets.get_wallet(caller, empty.wallet_id).balance_total == Decimal("0")

    def test_rename_still_allowed(self, ledger: Ledger, caller: Caller) -> None:
        empty = ledger.wallets.create_wallet(caller, "Vacia")
        ledger.wallets.deactivate_wallet(caller, empty.wallet_id)

        assert ledger.wallets.update_wallet(caller, empty.wallet_id, {"name": "Cerrada"}).name == "Cerrada"

    def test_funds_arriving_before_flag_block_deactivation(
        self, ledger: Ledger, caller: Caller, store: InMemoryRecordStore
    ) -> None:
        """Test the zero-total check is repeated inside the atomic batch."""
        empty = ledger.wallets.create_wallet(caller, "Vacia")
        original = store.run_atomic

        def credit_then_run(steps):
            store.update_record(
                Wallet.TABLE, empty.wallet_id, {"balance_available": Decimal("10"), "balance_total": Decimal("10")}
            )
            return original(steps)

        with patch.object(store, "run_atomic", side_effect=credit_then_run):
            with pytest.raises(InvariantViolationError) as exc_info:
                ledger.wallets.deactivate_wallet(caller, empty.wallet_id)

        assert exc_info.value.reason == ViolationReason.GUARD_FAILED
        assert ledger.wallets.get_wallet(caller, empty.wallet_id).is_active is True
