"""
Cart codec — JSON payload for durable storage.

Only line data is written. addons_total / line_total are derived
and recomputed after loading.
"""

from __future__ import annotations

import json
from decimal import Decimal, InvalidOperation
from typing import Any

from kungfu import Result, Ok, Error

from mealcart.cart._types import (
    AddOn,
    CartError,
    CartLine,
    CartSnapshot,
    MenuItem,
    merge_lines,
    unique_addons,
)

FORMAT_VERSION = 1


# ═══════════════════════════════════════════════════════════════════════════════
# Encode
# ═══════════════════════════════════════════════════════════════════════════════


def _encode_item(item: MenuItem | AddOn) -> dict[str, Any]:
    return {
        "menu_id": item.menu_id,
        "name": item.name,
        "price": str(item.price),
        "image": item.image,
    }


def encode_cart(snapshot: CartSnapshot) -> str:
    """Serialize a cart snapshot to the storage payload."""
    return json.dumps(
        {
            "version": FORMAT_VERSION,
            "lines": [
                {
                    "item": _encode_item(line.item),
                    "quantity": line.quantity,
                    "notes": line.notes,
                    "addons": [_encode_item(a) for a in line.addons],
                }
                for line in snapshot.lines
            ],
        },
        ensure_ascii=False,
    )


# ═══════════════════════════════════════════════════════════════════════════════
# Decode
# ═══════════════════════════════════════════════════════════════════════════════


class _CorruptPayload(ValueError):
    pass


def _decode_price(raw: Any) -> Decimal:
    try:
        price = Decimal(str(raw))
    except InvalidOperation as e:
        raise _CorruptPayload(f"bad price {raw!r}") from e
    if not price.is_finite() or price < 0:
        raise _CorruptPayload(f"bad price {raw!r}")
    return price


def _decode_menu_item(raw: dict[str, Any]) -> MenuItem:
    return MenuItem(
        menu_id=str(raw["menu_id"]),
        name=str(raw["name"]),
        price=_decode_price(raw["price"]),
        image=raw.get("image"),
    )


def _decode_addon(raw: dict[str, Any]) -> AddOn:
    return AddOn(
        menu_id=str(raw["menu_id"]),
        name=str(raw["name"]),
        price=_decode_price(raw["price"]),
        image=raw.get("image"),
    )


def _decode_line(raw: dict[str, Any]) -> CartLine:
    quantity = raw["quantity"]
    if not isinstance(quantity, int) or isinstance(quantity, bool) or quantity < 1:
        raise _CorruptPayload(f"bad quantity {quantity!r}")
    return CartLine(
        item=_decode_menu_item(raw["item"]),
        quantity=quantity,
        notes=str(raw.get("notes", "")),
        addons=unique_addons(_decode_addon(a) for a in raw.get("addons", [])),
    )


def decode_cart(payload: str) -> Result[CartSnapshot, CartError]:
    """
    Parse a storage payload.

    Lines that collide on key are merged, so a hand-edited or legacy
    payload still satisfies the one-line-per-key invariant.
    """
    try:
        doc = json.loads(payload)
        if not isinstance(doc, dict):
            raise _CorruptPayload("payload is not an object")
        version = doc.get("version")
        if version != FORMAT_VERSION:
            raise _CorruptPayload(f"unsupported version {version!r}")
        lines = [_decode_line(raw) for raw in doc.get("lines", [])]
    except (ValueError, KeyError, TypeError) as e:
        return Error(CartError.storage(f"Corrupt cart payload: {e}"))

    return Ok(CartSnapshot(merge_lines(lines)))


__all__ = ("FORMAT_VERSION", "encode_cart", "decode_cart")
