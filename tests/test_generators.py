"""Tests for sample data generators."""

from decimal import Decimal

from finledger import Caller, Ledger
from finledger.generators import (
    CategoryGenerator,
    CreditCardGenerator,
    PocketGenerator,
    WalletGenerator,
)
from finledger.models.ledger import CategoryType


class TestWalletGenerator:
    """Tests for WalletGenerator."""

    def test_generate_wallet_inputs(self, seed: int) -> None:
        """Test generated inputs respect the wallet rules."""
        gen = WalletGenerator(seed=seed)

        for _ in range(20):
            spec = gen.generate()
            assert 3 <= len(spec["name"]) <= 50
            assert spec["balance_available"] >= 0
            if spec["interest_rate"] > 0:
                assert spec["interest_payment_frequency"] in ("daily", "monthly")
            else:
                assert spec["interest_payment_frequency"] is None

    def test_reproducible(self, seed: int) -> None:
        """Test same seed gives same inputs."""
        gen_a, gen_b = WalletGenerator(seed=seed), WalletGenerator(seed=seed)
        first = [gen_a.generate() for _ in range(5)]
        second = [gen_b.generate() for _ in range(5)]

        assert first == second

    def test_accepted_by_service(self, seed: int, ledger: Ledger, caller: Caller) -> None:
        """Test generated inputs create valid wallets."""
        gen = WalletGenerator(seed=seed)

        for _ in range(10):
            wallet = ledger.wallets.create_wallet(caller, **gen.generate())
            assert wallet.balance_total == wallet.balance_available


class TestPocketGenerator:
    """Tests for PocketGenerator."""

    def test_batch_names_distinct(self, seed: int) -> None:
        gen = PocketGenerator(seed=seed)
        names = [p["name"] for p in gen.generate_batch(5)]

        assert len(names) == 5
        assert len(set(names)) == 5

    def test_batch_capped(self, seed: int) -> None:
        gen = PocketGenerator(seed=seed)

        assert len(list(gen.generate_batch(100))) == len(PocketGenerator.NAMES)


class TestCreditCardGenerator:
    """Tests for CreditCardGenerator."""

    def test_generate_card_inputs(self, seed: int) -> None:
        gen = CreditCardGenerator(seed=seed)
        spec = gen.generate("wallet-1")

        assert spec["credit_limit"] > 0
        assert 0 <= spec["cashback_percentage"] <= 100
        assert spec["cashback_destination_account_id"] == "wallet-1"
        assert len(spec["name"]) <= 50

    def test_purchases_within_limit(self, seed: int) -> None:
        """Test purchases never add up past the limit."""
        gen = CreditCardGenerator(seed=seed)
        limit = Decimal("3000000")

        purchases = list(gen.generate_purchases(limit, 50))

        assert all(p >= 1000 for p in purchases)
        assert sum(purchases) <= limit

    def test_purchases_accepted_by_service(self, seed: int, ledger: Ledger, caller: Caller) -> None:
        gen = CreditCardGenerator(seed=seed)
        card = ledger.cards.create_card(caller, **gen.generate())

        for amount in gen.generate_purchases(card.credit_limit, 8):
            card = ledger.cards.charge_card(caller, card.card_id, amount)

        assert card.current_debt <= card.credit_limit


class TestCategoryGenerator:
    """Tests for CategoryGenerator."""

    def test_parents_have_colors(self, seed: int) -> None:
        gen = CategoryGenerator(seed=seed)
        parents = list(gen.generate_parents())

        assert len(parents) == len(CategoryGenerator.TAXONOMY)
        for spec in parents:
            assert spec["category_type"] == CategoryType.PARENT
            assert spec["color"].startswith("#")
            assert len(spec["color"]) == 7

    def test_children_inherit_color(self, seed: int, ledger: Ledger, caller: Caller) -> None:
        """Test generated children take their parent's color."""
        gen = CategoryGenerator(seed=seed)

        for spec in gen.generate_parents():
            parent = ledger.categories.create_category(caller, **spec)
            for child_spec in gen.generate_children(parent.name, parent.category_id):
                child = ledger.categories.create_category(caller, **child_spec)
                assert child.color == parent.color
                assert child.parent_id == parent.category_id

    def test_unknown_parent_has_no_children(self, seed: int) -> None:
        gen = CategoryGenerator(seed=seed)

        assert list(gen.generate_children("Desconocido", "cat-1")) == []
