"""
Shipping types — quotes, the inputs they are bound to, strategy protocols.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from enum import Enum, auto
from typing import Protocol

from mealcart._types import Lazy, Money
from mealcart.cart import CartSnapshot

# ═══════════════════════════════════════════════════════════════════════════════
# Quote Basis — What a Quote Was Computed Against
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True, slots=True)
class QuoteBasis:
    """
    Inputs a quote depends on.

    A quote is only valid for the exact basis it was computed against;
    any change to subtotal, item count or destination needs a new quote.
    """

    subtotal: Money
    item_count: int
    destination: str

    @classmethod
    def of(cls, cart: CartSnapshot, destination: str) -> QuoteBasis:
        return cls(cart.total, cart.item_count, destination.strip())

    @property
    def cache_key(self) -> str:
        return f"quote:{self.subtotal}:{self.item_count}:{self.destination}"


# ═══════════════════════════════════════════════════════════════════════════════
# Quote
# ═══════════════════════════════════════════════════════════════════════════════


class PolicyKind(Enum):
    """Which strategy produced a quote."""

    QUANTITY_TIER = auto()
    DISTANCE_METERED = auto()


@dataclass(frozen=True, slots=True)
class NextTier:
    """How many more items unlock a strictly cheaper tier."""

    items_needed: int
    label: str
    fee: Money


@dataclass(frozen=True, slots=True)
class ShippingQuote:
    """Computed shipping cost, bound to its basis."""

    cost: Money
    is_free: bool
    policy: PolicyKind
    basis: QuoteBasis
    label: str
    distance_km: Decimal | None = None
    eta_text: str | None = None
    destination_label: str | None = None
    next_tier: NextTier | None = None

    def is_valid_for(self, cart: CartSnapshot, destination: str) -> bool:
        return self.basis == QuoteBasis.of(cart, destination)


# ═══════════════════════════════════════════════════════════════════════════════
# Errors
# ═══════════════════════════════════════════════════════════════════════════════


class ShippingErrorKind(Enum):
    """Kinds of shipping errors."""

    INVALID_INPUT = auto()  # Nothing to ship (empty cart)
    INVALID_ADDRESS = auto()  # Blank destination, rejected before any call
    ADDRESS_NOT_FOUND = auto()  # Distance service rejected the destination


@dataclass(frozen=True, slots=True)
class ShippingError:
    """
    Shipping computation error.

    upstream carries the distance service's own message when there is one.
    """

    kind: ShippingErrorKind
    message: str
    upstream: str | None = None


# ═══════════════════════════════════════════════════════════════════════════════
# Distance Service — External Collaborator
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True, slots=True)
class DistanceReading:
    """Distance service answer for one destination."""

    distance_km: Decimal
    duration_text: str
    destination_label: str | None = None


@dataclass(frozen=True, slots=True)
class DistanceFailure:
    """Distance service rejection (address not found, network error)."""

    message: str


class DistanceService(Protocol):
    """Geocoding/routing collaborator used by the distance-metered policy."""

    def measure(self, destination: str) -> Lazy[DistanceReading, DistanceFailure]:
        ...


# ═══════════════════════════════════════════════════════════════════════════════
# Shipping Policy — Strategy Protocol
# ═══════════════════════════════════════════════════════════════════════════════


class ShippingPolicy(Protocol):
    """
    Shipping cost strategy.

    Example:
        policy: ShippingPolicy = QuantityTierPolicy()
        result = await policy.compute_shipping(cart.snapshot(), "Jl. Sudirman 1")
    """

    @property
    def kind(self) -> PolicyKind:
        ...

    def compute_shipping(
        self,
        cart: CartSnapshot,
        destination: str,
    ) -> Lazy[ShippingQuote, ShippingError]:
        ...


# ═══════════════════════════════════════════════════════════════════════════════
# Exports
# ═══════════════════════════════════════════════════════════════════════════════

__all__ = (
    "QuoteBasis",
    "PolicyKind",
    "NextTier",
    "ShippingQuote",
    "ShippingErrorKind",
    "ShippingError",
    "DistanceReading",
    "DistanceFailure",
    "DistanceService",
    "ShippingPolicy",
)
