"""
Quantity-tier policy — shipping fee by total item count.

    < 10 items   → 10,000 (standard)
    10–49 items  → 5,000 (discounted)
    50–99 items  → free
    ≥ 100 items  → free + priority delivery
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal

from kungfu import LazyCoroResult, Result, Ok, Error

from mealcart._types import Money
from mealcart.cart import CartSnapshot
from mealcart.lift import from_result
from mealcart.shipping._types import (
    NextTier,
    PolicyKind,
    QuoteBasis,
    ShippingError,
    ShippingErrorKind,
    ShippingQuote,
)


@dataclass(frozen=True, slots=True)
class Tier:
    """Inclusive item-count range with its fee. max_qty None means unbounded."""

    min_qty: int
    max_qty: int | None
    fee: Money
    label: str

    def contains(self, quantity: int) -> bool:
        if quantity < self.min_qty:
            return False
        return self.max_qty is None or quantity <= self.max_qty


# Highest threshold first: the first tier that contains the count wins.
SHIPPING_TIERS: tuple[Tier, ...] = (
    Tier(100, None, Decimal(0), "Free + priority"),
    Tier(50, 99, Decimal(0), "Free"),
    Tier(10, 49, Decimal(5000), "Discounted"),
    Tier(1, 9, Decimal(10000), "Standard"),
)


def find_tier(quantity: int, tiers: tuple[Tier, ...] = SHIPPING_TIERS) -> Tier | None:
    for tier in tiers:
        if tier.contains(quantity):
            return tier
    return None


def next_tier(quantity: int, tiers: tuple[Tier, ...] = SHIPPING_TIERS) -> NextTier | None:
    """
    The tier directly above the current one, if it is strictly cheaper.

    Never points at a tier that would not lower the fee (50 → 100 is free
    to free, so no hint there).
    """
    current = find_tier(quantity, tiers)
    if current is None:
        return None
    idx = tiers.index(current)
    if idx == 0:
        return None
    above = tiers[idx - 1]
    if above.fee >= current.fee:
        return None
    return NextTier(above.min_qty - quantity, above.label, above.fee)


def format_fee(fee: Money) -> str:
    """Display form: "Free" or "Rp 12,000"."""
    if fee == 0:
        return "Free"
    return f"Rp {fee:,}"


class QuantityTierPolicy:
    """Local, synchronous strategy. The destination is recorded but unused."""

    def __init__(self, tiers: tuple[Tier, ...] = SHIPPING_TIERS) -> None:
        self._tiers = tiers

    @property
    def kind(self) -> PolicyKind:
        return PolicyKind.QUANTITY_TIER

    def quote(self, cart: CartSnapshot, destination: str) -> Result[ShippingQuote, ShippingError]:
        quantity = cart.item_count
        tier = find_tier(quantity, self._tiers)
        if tier is None:
            return Error(
                ShippingError(
                    ShippingErrorKind.INVALID_INPUT,
                    f"No shipping tier for {quantity} items",
                )
            )

        return Ok(
            ShippingQuote(
                cost=tier.fee,
                is_free=tier.fee == 0,
                policy=PolicyKind.QUANTITY_TIER,
                basis=QuoteBasis.of(cart, destination),
                label=tier.label,
                next_tier=next_tier(quantity, self._tiers),
            )
        )

    def compute_shipping(
        self,
        cart: CartSnapshot,
        destination: str,
    ) -> LazyCoroResult[ShippingQuote, ShippingError]:
        return from_result(self.quote(cart, destination))


__all__ = (
    "Tier",
    "SHIPPING_TIERS",
    "find_tier",
    "next_tier",
    "format_fee",
    "QuantityTierPolicy",
)
