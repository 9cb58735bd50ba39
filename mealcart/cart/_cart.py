"""
CartStore — the customer's cart as an explicit service object.

Every mutation builds the next immutable snapshot, persists it through
the injected CartStorage and only then swaps it in. A failed save
leaves the in-memory cart exactly as it was.

    match await CartStore.open(MemoryStorage()):
        case Ok(store):
            await store.add_item(nasi_goreng, 2, notes="no chili", addons=[egg])
            store.total()
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Iterable
from decimal import Decimal

from kungfu import Result, Ok, Error

from mealcart._types import Money
from mealcart.cart._codec import decode_cart, encode_cart
from mealcart.cart._store import CartStorage
from mealcart.cart._types import (
    AddOn,
    CartError,
    CartLine,
    CartSnapshot,
    ItemKey,
    MenuItem,
    merge_lines,
    unique_addons,
)

logger = logging.getLogger(__name__)

DEFAULT_STORE_NAME = "mealcart-cart"


# ═══════════════════════════════════════════════════════════════════════════════
# Validation
# ═══════════════════════════════════════════════════════════════════════════════


def _check_quantity(quantity: int) -> CartError | None:
    if not isinstance(quantity, int) or isinstance(quantity, bool):
        return CartError.validation(f"Quantity must be an integer, got {quantity!r}")
    if quantity < 1:
        return CartError.validation(f"Quantity must be at least 1, got {quantity}")
    return None


def _check_price(price: object, label: str) -> CartError | None:
    if not isinstance(price, Decimal):
        return CartError.validation(f"Price for {label} must be a Decimal, got {price!r}")
    if not price.is_finite():
        return CartError.validation(f"Price for {label} must be finite, got {price}")
    if price < 0:
        return CartError.validation(f"Negative price for {label}")
    return None


def _check_prices(item: MenuItem, addons: Iterable[AddOn]) -> CartError | None:
    if (err := _check_price(item.price, item.menu_id)) is not None:
        return err
    for addon in addons:
        if (err := _check_price(addon.price, f"add-on {addon.menu_id}")) is not None:
            return err
    return None


# ═══════════════════════════════════════════════════════════════════════════════
# CartStore
# ═══════════════════════════════════════════════════════════════════════════════


class CartStore:
    """
    Single-writer cart with write-through persistence.

    Mutations are serialized by a lock and return once the new state is
    durable, so a read after an awaited mutation always sees it.
    """

    def __init__(
        self,
        storage: CartStorage,
        name: str = DEFAULT_STORE_NAME,
        snapshot: CartSnapshot | None = None,
    ) -> None:
        self._storage = storage
        self._name = name
        self._snapshot = snapshot if snapshot is not None else CartSnapshot()
        self._lock = asyncio.Lock()
        self._checkout_owner: object | None = None

    @classmethod
    async def open(
        cls,
        storage: CartStorage,
        name: str = DEFAULT_STORE_NAME,
    ) -> Result[CartStore, CartError]:
        """Restore the cart persisted under name (empty if nothing stored)."""
        loaded = await storage.load(name)
        match loaded:
            case Error(e):
                return Error(CartError.storage(f"Failed to load cart: {e.message}"))
            case Ok(None):
                return Ok(cls(storage, name))
            case Ok(payload):
                match decode_cart(payload):
                    case Ok(snapshot):
                        logger.debug(
                            "Restored cart %s with %d lines", name, len(snapshot.lines)
                        )
                        return Ok(cls(storage, name, snapshot))
                    case Error(err):
                        return Error(err)

    # ───────────────────────────────────────────────────────────────────────────
    # Reads
    # ───────────────────────────────────────────────────────────────────────────

    @property
    def name(self) -> str:
        return self._name

    @property
    def lines(self) -> tuple[CartLine, ...]:
        return self._snapshot.lines

    def snapshot(self) -> CartSnapshot:
        return self._snapshot

    def find(self, key: ItemKey) -> CartLine | None:
        return self._snapshot.find(key)

    def total(self) -> Money:
        """Σ (price + addons_total) * quantity over all lines."""
        return self._snapshot.total

    def item_count(self) -> int:
        return self._snapshot.item_count

    # ───────────────────────────────────────────────────────────────────────────
    # Mutations
    # ───────────────────────────────────────────────────────────────────────────

    async def add_item(
        self,
        menu_item: MenuItem,
        quantity: int = 1,
        notes: str = "",
        addons: Iterable[AddOn] = (),
    ) -> Result[CartLine, CartError]:
        """
        Add a configured item.

        Merges into the line with the same (menu item, notes, add-on set)
        by adding quantities; otherwise appends a new line.
        """
        if (err := _check_quantity(quantity)) is not None:
            return Error(err)
        selected = unique_addons(addons)
        if (err := _check_prices(menu_item, selected)) is not None:
            return Error(err)

        incoming = CartLine(menu_item, quantity, notes, selected)

        async with self._lock:
            key = incoming.key
            lines = list(self._snapshot.lines)
            for idx, line in enumerate(lines):
                if line.key == key:
                    lines[idx] = line.with_quantity(line.quantity + quantity)
                    result = lines[idx]
                    break
            else:
                lines.append(incoming)
                result = incoming

            saved = await self._commit(CartSnapshot(tuple(lines)))
            match saved:
                case Ok(_):
                    return Ok(result)
                case Error(e):
                    return Error(e)

    async def add_plain(
        self,
        menu_item: MenuItem,
        quantity: int = 1,
    ) -> Result[CartLine, CartError]:
        """Add the item with no notes and no add-ons."""
        return await self.add_item(menu_item, quantity)

    async def update_quantity(
        self,
        key: ItemKey,
        quantity: int,
    ) -> Result[CartLine, CartError]:
        """
        Set a line's quantity.

        quantity < 1 is a caller error: removal goes through remove_item.
        """
        if (err := _check_quantity(quantity)) is not None:
            return Error(err)

        async with self._lock:
            lines = list(self._snapshot.lines)
            for idx, line in enumerate(lines):
                if line.key == key:
                    lines[idx] = line.with_quantity(quantity)
                    updated = lines[idx]
                    break
            else:
                return Error(CartError.not_found(key))

            saved = await self._commit(CartSnapshot(tuple(lines)))
            match saved:
                case Ok(_):
                    return Ok(updated)
                case Error(e):
                    return Error(e)

    async def update_notes(
        self,
        key: ItemKey,
        notes: str,
    ) -> Result[CartLine, CartError]:
        """
        Change a line's notes.

        Notes are part of identity, so the line is re-keyed. If another
        line already has the new key, the two merge at the edited position.
        """
        async with self._lock:
            lines = list(self._snapshot.lines)
            for idx, line in enumerate(lines):
                if line.key == key:
                    lines[idx] = line.with_notes(notes)
                    new_key = lines[idx].key
                    break
            else:
                return Error(CartError.not_found(key))

            # Move the edited line first so merge_lines keeps its position.
            edited = lines.pop(idx)
            others = [line for line in lines if line.key == new_key]
            rest = [line for line in lines if line.key != new_key]
            merged = merge_lines([edited, *others])[0]
            rest.insert(min(idx, len(rest)), merged)

            saved = await self._commit(CartSnapshot(tuple(rest)))
            match saved:
                case Ok(_):
                    return Ok(merged)
                case Error(e):
                    return Error(e)

    async def remove_item(self, key: ItemKey) -> Result[bool, CartError]:
        """Delete the line. Returns Ok(False) when it did not exist."""
        async with self._lock:
            remaining = tuple(line for line in self._snapshot.lines if line.key != key)
            if len(remaining) == len(self._snapshot.lines):
                return Ok(False)

            saved = await self._commit(CartSnapshot(remaining))
            match saved:
                case Ok(_):
                    return Ok(True)
                case Error(e):
                    return Error(e)

    async def clear(self) -> Result[None, CartError]:
        """Empty the cart. Only the checkout success path calls this."""
        async with self._lock:
            return await self._commit(CartSnapshot())

    # ───────────────────────────────────────────────────────────────────────────
    # Checkout claim
    # ───────────────────────────────────────────────────────────────────────────

    @property
    def checkout_owner(self) -> object | None:
        """The checkout currently submitting or awaiting payment for this cart."""
        return self._checkout_owner

    def claim_checkout(self, owner: object) -> bool:
        """
        Reserve the cart for one checkout.

        Returns False if another owner holds it. Claiming again as the
        current owner succeeds.
        """
        if self._checkout_owner is not None and self._checkout_owner is not owner:
            return False
        self._checkout_owner = owner
        return True

    def release_checkout(self, owner: object) -> None:
        """Drop the claim. A release by anyone but the owner is ignored."""
        if self._checkout_owner is owner:
            self._checkout_owner = None

    # ───────────────────────────────────────────────────────────────────────────
    # Persistence
    # ───────────────────────────────────────────────────────────────────────────

    async def _commit(self, snapshot: CartSnapshot) -> Result[None, CartError]:
        saved = await self._storage.save(self._name, encode_cart(snapshot))
        match saved:
            case Ok(_):
                self._snapshot = snapshot
                return Ok(None)
            case Error(e):
                logger.error("Cart %s was not persisted: %s", self._name, e.message)
                return Error(CartError.storage(f"Failed to save cart: {e.message}"))


__all__ = ("DEFAULT_STORE_NAME", "CartStore")
