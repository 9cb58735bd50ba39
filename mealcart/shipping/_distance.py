"""
Distance-metered policy — per-km rate with a free-shipping threshold.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from decimal import Decimal

from kungfu import LazyCoroResult, Result, Ok, Error

from mealcart._types import Money, ZERO, to_money
from mealcart.cart import CartSnapshot
from mealcart.shipping._types import (
    DistanceService,
    PolicyKind,
    QuoteBasis,
    ShippingError,
    ShippingErrorKind,
    ShippingQuote,
)

logger = logging.getLogger(__name__)


# ═══════════════════════════════════════════════════════════════════════════════
# Rates — Fluent Configuration
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True, slots=True)
class DistanceRates:
    """
    Rate configuration for the distance-metered policy.

    Example:
        rates = DistanceRates().with_rate(3500).with_free_threshold(750000)

    Note: Immutable — each method returns new DistanceRates.
    """

    rate_per_km: Money = Decimal(3000)
    free_threshold: Money = Decimal(500000)

    def with_rate(self, rate_per_km: Money | int | str) -> DistanceRates:
        """Set the price per kilometre."""
        return DistanceRates(
            rate_per_km=to_money(rate_per_km),
            free_threshold=self.free_threshold,
        )

    def with_free_threshold(self, threshold: Money | int | str) -> DistanceRates:
        """Order subtotal from which shipping is free."""
        return DistanceRates(
            rate_per_km=self.rate_per_km,
            free_threshold=to_money(threshold),
        )


# ═══════════════════════════════════════════════════════════════════════════════
# Policy
# ═══════════════════════════════════════════════════════════════════════════════


class DistanceMeteredPolicy:
    """
    Cost = distance_km * rate_per_km, free when the subtotal reaches the threshold.

    The threshold is only applied after the distance call succeeds, so a
    free quote still reports distance and ETA.
    """

    def __init__(
        self,
        service: DistanceService,
        rates: DistanceRates | None = None,
    ) -> None:
        self._service = service
        self._rates = rates if rates is not None else DistanceRates()

    @property
    def kind(self) -> PolicyKind:
        return PolicyKind.DISTANCE_METERED

    @property
    def rates(self) -> DistanceRates:
        return self._rates

    def compute_shipping(
        self,
        cart: CartSnapshot,
        destination: str,
    ) -> LazyCoroResult[ShippingQuote, ShippingError]:
        service = self._service
        rates = self._rates

        async def execute() -> Result[ShippingQuote, ShippingError]:
            basis = QuoteBasis.of(cart, destination)
            if not basis.destination:
                return Error(
                    ShippingError(
                        ShippingErrorKind.INVALID_ADDRESS,
                        "Destination address is required",
                    )
                )

            measured = await service.measure(basis.destination)
            match measured:
                case Error(failure):
                    logger.info(
                        "Distance lookup failed for %r: %s",
                        basis.destination,
                        failure.message,
                    )
                    return Error(
                        ShippingError(
                            ShippingErrorKind.ADDRESS_NOT_FOUND,
                            "Address not found",
                            upstream=failure.message,
                        )
                    )
                case Ok(reading):
                    is_free = basis.subtotal >= rates.free_threshold
                    cost = ZERO if is_free else reading.distance_km * rates.rate_per_km
                    return Ok(
                        ShippingQuote(
                            cost=cost,
                            is_free=is_free,
                            policy=PolicyKind.DISTANCE_METERED,
                            basis=basis,
                            label="Free shipping" if is_free else "Distance rate",
                            distance_km=reading.distance_km,
                            eta_text=reading.duration_text,
                            destination_label=reading.destination_label,
                        )
                    )

        return LazyCoroResult(execute)


__all__ = ("DistanceRates", "DistanceMeteredPolicy")
