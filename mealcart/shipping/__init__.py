"""
Shipping — cost strategies and quote tracking.

    from mealcart import shipping as S

    policy = S.DistanceMeteredPolicy(S.DistanceClient(base_url))
    match await policy.compute_shipping(store.snapshot(), address):
        case Ok(quote):
            S.format_fee(quote.cost)
        case Error(e):
            e.kind, e.upstream

A quote is bound to the subtotal, item count and destination it was
computed against; quote.is_valid_for() rejects it once any of them change.
"""

from mealcart.shipping._types import (
    QuoteBasis,
    PolicyKind,
    NextTier,
    ShippingQuote,
    ShippingErrorKind,
    ShippingError,
    DistanceReading,
    DistanceFailure,
    DistanceService,
    ShippingPolicy,
)
from mealcart.shipping._tiers import (
    Tier,
    SHIPPING_TIERS,
    find_tier,
    next_tier,
    format_fee,
    QuantityTierPolicy,
)
from mealcart.shipping._distance import DistanceRates, DistanceMeteredPolicy
from mealcart.shipping._client import DistanceClient, DistanceResponse, DistanceRejected
from mealcart.shipping._quotes import LocalTier, TaggedQuote, QuoteBook
from mealcart.shipping._quotes import Tier as CacheTier

__all__ = (
    # Types
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
    # Quantity tiers
    "Tier",
    "SHIPPING_TIERS",
    "find_tier",
    "next_tier",
    "format_fee",
    "QuantityTierPolicy",
    # Distance
    "DistanceRates",
    "DistanceMeteredPolicy",
    "DistanceClient",
    "DistanceResponse",
    "DistanceRejected",
    # Quote book
    "CacheTier",
    "LocalTier",
    "TaggedQuote",
    "QuoteBook",
)
