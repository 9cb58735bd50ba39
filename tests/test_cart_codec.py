"""Tests for the cart storage payload."""

import json
from decimal import Decimal

import pytest
from kungfu import Error, Ok

from mealcart.cart import (
    AddOn,
    CartErrorKind,
    CartLine,
    CartSnapshot,
    MenuItem,
    decode_cart,
    encode_cart,
)

NASI = MenuItem("m1", "Nasi Goreng", Decimal("25000.50"), image="nasi.jpg")
EGG = AddOn("a1", "Telur", Decimal(5000))


def _line(quantity: int, notes: str = "") -> dict:
    return {
        "item": {"menu_id": "m1", "name": "Nasi Goreng", "price": "25000", "image": None},
        "quantity": quantity,
        "notes": notes,
        "addons": [],
    }


def test_encode_writes_only_line_data():
    """Derived totals never reach storage."""
    doc = json.loads(encode_cart(CartSnapshot((CartLine(NASI, 2, "pedas", (EGG,)),))))

    assert doc["version"] == 1
    [line] = doc["lines"]
    assert line["item"]["price"] == "25000.50"
    assert line["addons"][0]["menu_id"] == "a1"
    assert "line_total" not in line
    assert "addons_total" not in line


def test_decode_restores_equal_snapshot():
    snapshot = CartSnapshot((CartLine(NASI, 2, "pedas", (EGG,)),))

    match decode_cart(encode_cart(snapshot)):
        case Ok(decoded):
            assert decoded == snapshot
            assert decoded.total == Decimal("60001.00")
        case Error(e):
            pytest.fail(f"unexpected error: {e}")


def test_decode_merges_colliding_lines():
    payload = json.dumps({"version": 1, "lines": [_line(1), _line(2), _line(1, "pedas")]})

    match decode_cart(payload):
        case Ok(decoded):
            assert [line.quantity for line in decoded.lines] == [3, 1]
        case Error(e):
            pytest.fail(f"unexpected error: {e}")


@pytest.mark.parametrize(
    "payload",
    [
        "not json",
        "[]",
        json.dumps({"version": 2, "lines": []}),
        json.dumps({"version": 1, "lines": [_line(0)]}),
        json.dumps({"version": 1, "lines": [{**_line(1), "quantity": "2"}]}),
        json.dumps({"version": 1, "lines": [{"quantity": 1}]}),
        json.dumps(
            {
                "version": 1,
                "lines": [{**_line(1), "item": {**_line(1)["item"], "price": "-5"}}],
            }
        ),
        json.dumps(
            {
                "version": 1,
                "lines": [{**_line(1), "item": {**_line(1)["item"], "price": "NaN"}}],
            }
        ),
    ],
)
def test_decode_rejects_corrupt_payloads(payload):
    match decode_cart(payload):
        case Error(e):
            assert e.kind == CartErrorKind.STORAGE
        case Ok(decoded):
            pytest.fail(f"corrupt payload decoded: {decoded}")
