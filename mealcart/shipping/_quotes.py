"""
Quote book — ticketed shipping requests with an LRU cache of computed quotes.

Shipping is recomputed whenever the cart or address changes, and a slow
distance call can finish after a newer one. Every request gets a ticket;
only the newest finished ticket can become the current quote.
"""

from __future__ import annotations

import logging
from collections import OrderedDict
from dataclasses import dataclass
from typing import Protocol

from kungfu import Result, Ok, Error

from mealcart.cart import CartSnapshot
from mealcart.shipping._types import (
    QuoteBasis,
    ShippingError,
    ShippingPolicy,
    ShippingQuote,
)

logger = logging.getLogger(__name__)


# ═══════════════════════════════════════════════════════════════════════════════
# Tier Protocol — Quote Cache Backend
# ═══════════════════════════════════════════════════════════════════════════════


class Tier[T](Protocol):
    """
    Cache tier protocol.

    Implement this to share quotes across processes (Redis, Memcached, etc.)
    """

    @property
    def name(self) -> str:
        """Tier name for debugging."""
        ...

    async def get(self, key: str) -> T | None:
        """Get value. Returns None on miss."""
        ...

    async def set(self, key: str, value: T) -> None:
        ...

    async def delete(self, key: str) -> bool:
        """Delete key. Returns True if existed."""
        ...


class LocalTier[T]:
    """
    In-memory LRU cache tier.

    Example:
        tier = LocalTier[ShippingQuote](max_size=64)
    """

    def __init__(self, max_size: int = 128) -> None:
        if max_size < 1:
            raise ValueError("max_size must be at least 1")
        self._max_size = max_size
        self._cache: OrderedDict[str, T] = OrderedDict()

    @property
    def name(self) -> str:
        return "local"

    def __len__(self) -> int:
        return len(self._cache)

    async def get(self, key: str) -> T | None:
        if key not in self._cache:
            return None
        self._cache.move_to_end(key)
        return self._cache[key]

    async def set(self, key: str, value: T) -> None:
        if key in self._cache:
            self._cache.move_to_end(key)
        elif len(self._cache) >= self._max_size:
            # Evict least recently used
            self._cache.popitem(last=False)
        self._cache[key] = value

    async def delete(self, key: str) -> bool:
        return self._cache.pop(key, None) is not None


# ═══════════════════════════════════════════════════════════════════════════════
# Quote Book
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True, slots=True)
class TaggedQuote:
    """
    Outcome of one request.

    current is False when a newer request finished first; the result is
    still returned but never replaces the current quote.
    """

    ticket: int
    basis: QuoteBasis
    result: Result[ShippingQuote, ShippingError]
    current: bool
    cached: bool = False


class QuoteBook:
    """
    Tracks the current shipping quote for one checkout page.

    Example:
        book = QuoteBook()
        tagged = await book.request(policy, store.snapshot(), address)
        quote = book.current_for(store.snapshot(), address)
    """

    def __init__(self, cache: Tier[ShippingQuote] | None = None) -> None:
        self._cache: Tier[ShippingQuote] = cache if cache is not None else LocalTier()
        self._issued = 0
        self._applied = 0
        self._current: ShippingQuote | None = None

    @property
    def current(self) -> ShippingQuote | None:
        return self._current

    async def request(
        self,
        policy: ShippingPolicy,
        cart: CartSnapshot,
        destination: str,
    ) -> TaggedQuote:
        self._issued += 1
        ticket = self._issued
        basis = QuoteBasis.of(cart, destination)
        key = f"{policy.kind.name}:{basis.cache_key}"

        cached = await self._cache.get(key)
        if cached is not None:
            logger.debug("Quote cache hit for %s", key)
            result: Result[ShippingQuote, ShippingError] = Ok(cached)
        else:
            result = await policy.compute_shipping(cart, destination)
            match result:
                case Ok(fresh):
                    await self._cache.set(key, fresh)
                case Error(_):
                    pass

        if ticket <= self._applied:
            logger.debug("Discarding quote ticket %d, ticket %d already applied", ticket, self._applied)
            return TaggedQuote(ticket, basis, result, current=False, cached=cached is not None)

        self._applied = ticket
        match result:
            case Ok(quote):
                self._current = quote
            case Error(_):
                self._current = None

        return TaggedQuote(ticket, basis, result, current=True, cached=cached is not None)

    def current_for(self, cart: CartSnapshot, destination: str) -> ShippingQuote | None:
        """Current quote, only if it was computed for exactly these inputs."""
        quote = self._current
        if quote is None or not quote.is_valid_for(cart, destination):
            return None
        return quote

    def invalidate(self) -> None:
        """Drop the current quote. Requests already in flight become stale."""
        self._current = None
        self._applied = self._issued


__all__ = (
    "Tier",
    "LocalTier",
    "TaggedQuote",
    "QuoteBook",
)
