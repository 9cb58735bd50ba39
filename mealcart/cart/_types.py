"""
Cart types — menu input, line identity, derived totals.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from enum import Enum, auto

from mealcart._types import Money, ZERO

# ═══════════════════════════════════════════════════════════════════════════════
# Menu Input — read-only data from the catalog
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True, slots=True)
class MenuItem:
    """A dish from the menu. Price is in currency units."""

    menu_id: str
    name: str
    price: Money
    image: str | None = None


@dataclass(frozen=True, slots=True)
class AddOn:
    """Optional priced modifier. Same shape as MenuItem."""

    menu_id: str
    name: str
    price: Money
    image: str | None = None


# ═══════════════════════════════════════════════════════════════════════════════
# ItemKey — Line Identity
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True, slots=True)
class ItemKey:
    """
    Identity of a cart line: menu item + notes + add-on set.

    The same dish ordered plain and with add-ons are different lines.
    addon_ids is always sorted so the key does not depend on selection order.
    """

    menu_id: str
    notes: str
    addon_ids: tuple[str, ...]

    @classmethod
    def of(cls, menu_id: str, notes: str, addons: Iterable[AddOn]) -> ItemKey:
        return cls(menu_id, notes, tuple(sorted({a.menu_id for a in addons})))

    def __str__(self) -> str:
        return f"{self.menu_id}-{self.notes}-{','.join(self.addon_ids)}"


def unique_addons(addons: Iterable[AddOn]) -> tuple[AddOn, ...]:
    """Collapse duplicates by menu_id, keeping first-seen display order."""
    seen: set[str] = set()
    result: list[AddOn] = []
    for addon in addons:
        if addon.menu_id in seen:
            continue
        seen.add(addon.menu_id)
        result.append(addon)
    return tuple(result)


# ═══════════════════════════════════════════════════════════════════════════════
# CartLine — Immutable Line With Derived Totals
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True, slots=True)
class CartLine:
    """
    One configured item in the cart.

    Totals are properties over the line data, so they cannot drift
    from the add-ons or quantity they are derived from.
    """

    item: MenuItem
    quantity: int
    notes: str = ""
    addons: tuple[AddOn, ...] = ()

    @property
    def key(self) -> ItemKey:
        return ItemKey.of(self.item.menu_id, self.notes, self.addons)

    @property
    def addons_total(self) -> Money:
        return sum((a.price for a in self.addons), ZERO)

    @property
    def unit_total(self) -> Money:
        """Price of one unit including add-ons."""
        return self.item.price + self.addons_total

    @property
    def line_total(self) -> Money:
        return self.unit_total * self.quantity

    def with_quantity(self, quantity: int) -> CartLine:
        return CartLine(self.item, quantity, self.notes, self.addons)

    def with_notes(self, notes: str) -> CartLine:
        return CartLine(self.item, self.quantity, notes, self.addons)


# ═══════════════════════════════════════════════════════════════════════════════
# CartSnapshot — Immutable View of the Cart
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True, slots=True)
class CartSnapshot:
    """
    Point-in-time copy of the cart.

    Invariant: no two lines share a key (enforced by CartStore and merge_lines).
    """

    lines: tuple[CartLine, ...] = ()

    @property
    def total(self) -> Money:
        return sum((line.line_total for line in self.lines), ZERO)

    @property
    def item_count(self) -> int:
        return sum(line.quantity for line in self.lines)

    @property
    def is_empty(self) -> bool:
        return not self.lines

    def find(self, key: ItemKey) -> CartLine | None:
        for line in self.lines:
            if line.key == key:
                return line
        return None


def merge_lines(lines: Iterable[CartLine]) -> tuple[CartLine, ...]:
    """Merge lines sharing a key into the first occurrence (quantities add)."""
    merged: dict[ItemKey, CartLine] = {}
    for line in lines:
        existing = merged.get(line.key)
        if existing is None:
            merged[line.key] = line
        else:
            merged[line.key] = existing.with_quantity(existing.quantity + line.quantity)
    return tuple(merged.values())


# ═══════════════════════════════════════════════════════════════════════════════
# Errors
# ═══════════════════════════════════════════════════════════════════════════════


class CartErrorKind(Enum):
    """Kinds of cart errors."""

    VALIDATION = auto()  # Bad caller input (quantity < 1, negative price)
    NOT_FOUND = auto()  # No line with the given key
    STORAGE = auto()  # Durable storage failed or holds a corrupt payload


@dataclass(frozen=True, slots=True)
class CartError:
    """Cart operation error."""

    kind: CartErrorKind
    message: str

    @classmethod
    def validation(cls, message: str) -> CartError:
        return cls(CartErrorKind.VALIDATION, message)

    @classmethod
    def not_found(cls, key: ItemKey) -> CartError:
        return cls(CartErrorKind.NOT_FOUND, f"No cart line for key: {key}")

    @classmethod
    def storage(cls, message: str) -> CartError:
        return cls(CartErrorKind.STORAGE, message)


# ═══════════════════════════════════════════════════════════════════════════════
# Exports
# ═══════════════════════════════════════════════════════════════════════════════

__all__ = (
    "MenuItem",
    "AddOn",
    "ItemKey",
    "unique_addons",
    "CartLine",
    "CartSnapshot",
    "merge_lines",
    "CartErrorKind",
    "CartError",
)
