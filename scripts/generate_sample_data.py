#!/usr/bin/env python3
"""Seed a ledger with sample data and dump it as JSON.

Every record is created through the ledger services, so the sample data
satisfies the same balance invariants as user input: money is moved into
pockets, cards are charged and partly paid, cashback is settled.
"""

import argparse
import json
import logging
import sys
from decimal import ROUND_DOWN, Decimal
from pathlib import Path
from typing import Any

# Add project root to path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from finledger import Caller, InvariantViolationError, Ledger
from finledger.config import LedgerConfig
from finledger.generators import (
    CategoryGenerator,
    CreditCardGenerator,
    PocketGenerator,
    WalletGenerator,
)
from finledger.logging import setup_logging
from finledger.serialization import to_dict

logger = logging.getLogger(__name__)


def seed_wallets(ledger: Ledger, caller: Caller, num_wallets: int, seed: int) -> list[Any]:
    """Create wallets with pockets and park part of each balance in them."""
    wallet_gen = WalletGenerator(seed=seed)
    pocket_gen = PocketGenerator(seed=seed)

    wallets = []
    for _ in range(num_wallets):
        wallet = ledger.wallets.create_wallet(caller, **wallet_gen.generate())
        for spec in pocket_gen.generate_batch(pocket_gen.random.randint(0, 3)):
            pocket = ledger.pockets.create_pocket(caller, wallet.wallet_id, **spec)
            share = (wallet.balance_available / 4).quantize(Decimal("1"), rounding=ROUND_DOWN)
            if share > 0:
                wallet = ledger.pockets.deposit_to_pocket(caller, pocket.pocket_id, share).wallet
        wallets.append(wallet)
    logger.info("Seeded %d wallets", len(wallets))
    return wallets


def seed_cards(ledger: Ledger, caller: Caller, wallets: list[Any], num_cards: int, seed: int) -> list[Any]:
    """Create cards, charge purchases, pay part of the debt and settle cashback."""
    card_gen = CreditCardGenerator(seed=seed)

    cards = []
    for i in range(num_cards):
        destination = wallets[i % len(wallets)].wallet_id if wallets else None
        card = ledger.cards.create_card(caller, **card_gen.generate(destination))
        for amount in card_gen.generate_purchases(card.credit_limit, card_gen.random.randint(1, 8)):
            card = ledger.cards.charge_card(caller, card.card_id, amount)

        if destination is not None:
            wallet = ledger.wallets.get_wallet(caller, destination)
            payment = min(wallet.balance_available, card.current_debt / 2).quantize(Decimal("1"), rounding=ROUND_DOWN)
            if payment > 0:
                card = ledger.cards.pay_card(caller, card.card_id, destination, payment).card
            try:
                card = ledger.cards.transfer_cashback(caller, card.card_id).card
            except InvariantViolationError as e:
                logger.info("Skipped cashback for card %s: %s", card.card_id, e)
        cards.append(card)
    logger.info("Seeded %d credit cards", len(cards))
    return cards


def seed_categories(ledger: Ledger, caller: Caller, seed: int) -> list[Any]:
    """Create the sample parent/child taxonomy."""
    category_gen = CategoryGenerator(seed=seed)

    categories = []
    for spec in category_gen.generate_parents():
        parent = ledger.categories.create_category(caller, **spec)
        categories.append(parent)
        for child_spec in category_gen.generate_children(parent.name, parent.category_id):
            categories.append(ledger.categories.create_category(caller, **child_spec))
    logger.info("Seeded %d categories", len(categories))
    return categories


def save_json(records: list[Any], filename: str, output_dir: Path) -> None:
    """Save records to a JSON file."""
    filepath = output_dir / filename
    with open(filepath, "w", encoding="utf-8") as f:
        json.dump([to_dict(r) for r in records], f, indent=2, ensure_ascii=False)
    print(f"Saved {len(records)} records to {filepath}")


def main() -> None:
    """Seed a ledger and write one JSON file per entity type."""
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("--wallets", type=int, default=4)
    parser.add_argument("--cards", type=int, default=2)
    parser.add_argument("--user-id", default="sample-user")
    parser.add_argument("--output-dir", type=Path, default=project_root / "local")
    args = parser.parse_args()

    config = LedgerConfig.from_env()
    setup_logging(config.log_level, config.log_format)
    seed = config.seed if config.seed is not None else 42

    ledger = Ledger.from_config(config)
    if config.store.backend == "postgres":
        ledger.store.create_schema()
    caller = Caller(user_id=args.user_id)
    args.output_dir.mkdir(exist_ok=True)

    try:
        wallets = seed_wallets(ledger, caller, args.wallets, seed)
        cards = seed_cards(ledger, caller, wallets, args.cards, seed)
        categories = seed_categories(ledger, caller, seed)

        wallets = ledger.wallets.list_wallets(caller)
        pockets = [p for w in wallets for p in ledger.pockets.list_pockets(caller, w.wallet_id)]
        for wallet in wallets:
            ledger.wallets.verify_balance(caller, wallet.wallet_id)

        save_json(wallets, "wallets.json", args.output_dir)
        save_json(pockets, "pockets.json", args.output_dir)
        save_json(cards, "credit_cards.json", args.output_dir)
        save_json(categories, "categories.json", args.output_dir)
    finally:
        ledger.close()


if __name__ == "__main__":
    main()
