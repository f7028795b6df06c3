"""Balance and hierarchy rules checked before any ledger write.

Every check either returns normalized values (or a ``TransferPlan`` of
store steps) or raises ``InvariantViolationError`` with a distinct
``ViolationReason``. Nothing here touches the store, so all checks run
before the first write of an operation.

Transfer plans express each side as an ``AdjustStep`` (a relative delta)
with bounds, so the store re-validates the balances inside the same atomic
batch that applies them.
"""

import re
from dataclasses import dataclass, field
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any, Iterable

from finledger.exceptions import InvariantViolationError, ViolationReason
from finledger.models.ledger import (
    CategoryType,
    CreditCard,
    InterestFrequency,
    Pocket,
    Wallet,
)
from finledger.serialization import to_decimal
from finledger.store.base import AdjustStep, DeleteStep, Step

ZERO = Decimal("0")
CENT = Decimal("0.01")
MAX_AMOUNT = Decimal("999999999999")
MAX_PERCENTAGE = Decimal("100")
HEX_COLOR = re.compile(r"^#[0-9A-Fa-f]{6}$")

WALLET_NAME_LENGTH = (3, 50)
CARD_NAME_LENGTH = (3, 50)
POCKET_NAME_LENGTH = (2, 50)
CATEGORY_NAME_LENGTH = (2, 50)


@dataclass
class TransferPlan:
    """Approved two-sided balance adjustment, ready for ``run_atomic``."""

    amount: Decimal
    steps: list[Step] = field(default_factory=list)


# Field rules


def as_amount(value: Any) -> Decimal:
    """Coerce user input to a finite Decimal."""
    try:
        value = to_decimal(value)
    except (TypeError, InvalidOperation):
        raise InvariantViolationError(f"Invalid amount {value!r}") from None
    if not value.is_finite():
        raise InvariantViolationError(f"Invalid amount {value!r}")
    return value


def validate_name(name: str, bounds: tuple[int, int], label: str) -> str:
    """Strip ``name`` and check its length against ``bounds``."""
    if name is None:
        raise InvariantViolationError(f"{label} name is required")
    if not isinstance(name, str):
        raise InvariantViolationError(f"{label} name must be text")
    name = name.strip()
    min_len, max_len = bounds
    if not name:
        raise InvariantViolationError(f"{label} name is required")
    if len(name) < min_len:
        raise InvariantViolationError(f"{label} name must have at least {min_len} characters")
    if len(name) > max_len:
        raise InvariantViolationError(f"{label} name cannot exceed {max_len} characters")
    return name


def validate_color(color: str) -> str:
    if not isinstance(color, str) or not HEX_COLOR.match(color):
        raise InvariantViolationError(f"Invalid color {color!r} (expected #RRGGBB)")
    return color.upper()


def validate_percentage(value: Any, label: str) -> Decimal:
    value = as_amount(value)
    if value < ZERO:
        raise InvariantViolationError(f"{label} cannot be negative")
    if value > MAX_PERCENTAGE:
        raise InvariantViolationError(f"{label} cannot exceed 100%")
    return value


def validate_interest(rate: Any, frequency: InterestFrequency | str | None) -> tuple[Decimal, InterestFrequency | None]:
    """Check the interest rate and require a payment frequency when it is positive."""
    rate = validate_percentage(rate, "Interest rate")
    if frequency is not None:
        try:
            frequency = InterestFrequency(frequency)
        except ValueError:
            raise InvariantViolationError(f"Unknown interest payment frequency {frequency!r}") from None
        if frequency == InterestFrequency.NONE:
            frequency = None
    if rate > ZERO and frequency is None:
        raise InvariantViolationError("An interest payment frequency is required when the rate is positive")
    return rate, frequency


def validate_opening_balance(value: Any) -> Decimal:
    value = as_amount(value)
    if value < ZERO:
        raise InvariantViolationError("Balance cannot be negative")
    if value > MAX_AMOUNT:
        raise InvariantViolationError("Balance is too large", ViolationReason.AMOUNT_TOO_LARGE)
    return value


def validate_credit_limit(value: Any) -> Decimal:
    value = as_amount(value)
    if value <= ZERO:
        raise InvariantViolationError("Credit limit must be greater than 0")
    if value > MAX_AMOUNT:
        raise InvariantViolationError("Credit limit is too large", ViolationReason.AMOUNT_TOO_LARGE)
    return value


# Amount bounds


def check_positive_amount(amount: Any) -> Decimal:
    amount = as_amount(amount)
    if amount <= ZERO:
        raise InvariantViolationError("Amount must be greater than 0", ViolationReason.NON_POSITIVE_AMOUNT)
    if amount > MAX_AMOUNT:
        raise InvariantViolationError("Amount is too large", ViolationReason.AMOUNT_TOO_LARGE)
    return amount


def check_amount(amount: Any, available: Decimal, reason: ViolationReason, message: str) -> Decimal:
    """Require ``0 < amount <= available``."""
    amount = check_positive_amount(amount)
    if amount > available:
        raise InvariantViolationError(message, reason)
    return amount


# Entity guards


def check_wallet_deletable(wallet: Wallet) -> None:
    if wallet.balance_total != ZERO:
        raise InvariantViolationError(
            "Cannot remove a wallet with a balance; it must be at 0", ViolationReason.WALLET_HAS_BALANCE
        )


def check_card_deletable(card: CreditCard) -> None:
    if card.current_debt > ZERO:
        raise InvariantViolationError(
            "Cannot delete a card with debt; it must be at 0", ViolationReason.CARD_HAS_DEBT
        )
    if card.pending_cashback > ZERO:
        raise InvariantViolationError(
            "Transfer the pending cashback before deleting the card",
            ViolationReason.CARD_HAS_PENDING_CASHBACK,
        )


def check_credit_limit(card: CreditCard, new_limit: Any) -> Decimal:
    new_limit = validate_credit_limit(new_limit)
    if new_limit < card.current_debt:
        raise InvariantViolationError(
            "Credit limit cannot be lower than the current debt", ViolationReason.LIMIT_BELOW_DEBT
        )
    return new_limit


def check_category_color(
    category_type: CategoryType | str,
    color: str | None,
    parent_id: str | None,
) -> str | None:
    """Return the normalized color, or None when it will be inherited."""
    category_type = CategoryType(category_type)
    if category_type == CategoryType.CHILD and parent_id is not None:
        return None
    if not color:
        if category_type == CategoryType.PARENT:
            message = "Color is required for parent categories"
        else:
            message = "Color is required for categories without a parent"
        raise InvariantViolationError(message, ViolationReason.MISSING_COLOR)
    return validate_color(color)


def check_wallet_balance(wallet: Wallet, pockets: Iterable[Pocket]) -> None:
    """Verify ``balance_total == balance_available + sum(pocket balances)``."""
    in_pockets = sum((p.balance for p in pockets), ZERO)
    expected = wallet.balance_available + in_pockets
    if wallet.balance_total != expected:
        raise InvariantViolationError(
            f"Wallet {wallet.wallet_id} total {wallet.balance_total} does not match "
            f"available {wallet.balance_available} plus pockets {in_pockets}",
            ViolationReason.BALANCE_MISMATCH,
        )


def check_card_bounds(card: CreditCard) -> None:
    """Verify ``0 <= current_debt <= credit_limit`` and ``pending_cashback >= 0``."""
    if not ZERO <= card.current_debt <= card.credit_limit:
        raise InvariantViolationError(
            f"Card {card.card_id} debt {card.current_debt} is outside [0, {card.credit_limit}]",
            ViolationReason.BALANCE_MISMATCH,
        )
    if card.pending_cashback < ZERO:
        raise InvariantViolationError(
            f"Card {card.card_id} has negative pending cashback", ViolationReason.BALANCE_MISMATCH
        )


# Transfer planners


def plan_pocket_deposit(wallet: Wallet, pocket: Pocket, amount: Any) -> TransferPlan:
    """Move loose wallet funds into a pocket; ``balance_total`` is unchanged."""
    amount = check_amount(
        amount,
        wallet.balance_available,
        ViolationReason.INSUFFICIENT_BALANCE,
        "Insufficient balance in the wallet",
    )
    return TransferPlan(
        amount=amount,
        steps=[
            AdjustStep(
                Wallet.TABLE,
                wallet.wallet_id,
                deltas={"balance_available": -amount},
                minimums={"balance_available": ZERO},
            ),
            AdjustStep(Pocket.TABLE, pocket.pocket_id, deltas={"balance": amount}),
        ],
    )


def plan_pocket_withdrawal(wallet: Wallet, pocket: Pocket, amount: Any) -> TransferPlan:
    """Move pocket funds back to the wallet's loose balance."""
    amount = check_amount(
        amount,
        pocket.balance,
        ViolationReason.INSUFFICIENT_POCKET_BALANCE,
        "Insufficient balance in the pocket",
    )
    return TransferPlan(
        amount=amount,
        steps=[
            AdjustStep(
                Pocket.TABLE,
                pocket.pocket_id,
                deltas={"balance": -amount},
                minimums={"balance": ZERO},
            ),
            AdjustStep(Wallet.TABLE, wallet.wallet_id, deltas={"balance_available": amount}),
        ],
    )


def plan_pocket_settlement(wallet: Wallet, pocket: Pocket) -> TransferPlan:
    """Return a pocket's balance to its wallet and delete the pocket.

    The pocket is first drained to exactly zero, which fails if its balance
    changed after it was read.
    """
    amount = pocket.balance
    steps: list[Step] = []
    if amount > ZERO:
        steps.append(
            AdjustStep(
                Pocket.TABLE,
                pocket.pocket_id,
                deltas={"balance": -amount},
                minimums={"balance": ZERO},
                maximums={"balance": ZERO},
            )
        )
        steps.append(AdjustStep(Wallet.TABLE, wallet.wallet_id, deltas={"balance_available": amount}))
    steps.append(DeleteStep(Pocket.TABLE, pocket.pocket_id))
    return TransferPlan(amount=amount, steps=steps)


def plan_card_payment(wallet: Wallet, card: CreditCard, amount: Any) -> TransferPlan:
    """Pay card debt with loose wallet funds; the cash leaves the wallet."""
    amount = check_amount(
        amount,
        wallet.balance_available,
        ViolationReason.INSUFFICIENT_BALANCE,
        "Insufficient balance in the wallet",
    )
    if amount > card.current_debt:
        raise InvariantViolationError(
            "Amount cannot be greater than the current debt", ViolationReason.AMOUNT_EXCEEDS_DEBT
        )
    return TransferPlan(
        amount=amount,
        steps=[
            AdjustStep(
                Wallet.TABLE,
                wallet.wallet_id,
                deltas={"balance_available": -amount, "balance_total": -amount},
                minimums={"balance_available": ZERO},
            ),
            AdjustStep(
                CreditCard.TABLE,
                card.card_id,
                deltas={"current_debt": -amount},
                minimums={"current_debt": ZERO},
            ),
        ],
    )


def plan_cashback_transfer(wallet: Wallet, card: CreditCard) -> TransferPlan:
    """Move all pending cashback into the wallet's loose balance."""
    amount = card.pending_cashback
    if amount <= ZERO:
        raise InvariantViolationError(
            "There is no pending cashback to transfer", ViolationReason.NO_PENDING_CASHBACK
        )
    return TransferPlan(
        amount=amount,
        steps=[
            AdjustStep(
                CreditCard.TABLE,
                card.card_id,
                deltas={"pending_cashback": -amount},
                minimums={"pending_cashback": ZERO},
            ),
            AdjustStep(
                Wallet.TABLE,
                wallet.wallet_id,
                deltas={"balance_available": amount, "balance_total": amount},
            ),
        ],
    )


def plan_card_charge(card: CreditCard, amount: Any) -> TransferPlan:
    """Add a purchase to the card's debt and accrue its cashback.

    The cashback is ``amount * cashback_percentage / 100`` rounded to cents;
    it is added to both ``pending_cashback`` and ``total_cashback_generated``.
    """
    if not card.is_active:
        raise InvariantViolationError(f"Card {card.card_id} is not active")
    amount = check_amount(
        amount,
        card.available_credit,
        ViolationReason.INSUFFICIENT_CREDIT,
        "Amount exceeds the card's available credit",
    )
    cashback = (amount * card.cashback_percentage / MAX_PERCENTAGE).quantize(CENT, rounding=ROUND_HALF_UP)
    deltas = {"current_debt": amount}
    if cashback > ZERO:
        deltas["pending_cashback"] = cashback
        deltas["total_cashback_generated"] = cashback
    return TransferPlan(
        amount=amount,
        steps=[
            AdjustStep(
                CreditCard.TABLE,
                card.card_id,
                deltas=deltas,
                maximums={"current_debt": "credit_limit"},
            )
        ],
    )
