"""Tests for the checkout summary graph."""

from decimal import Decimal

import pytest
from kungfu import Error, Ok

from mealcart.cart import AddOn, CartLine, CartSnapshot, MenuItem
from mealcart import graph as G
from mealcart.checkout import SubtotalNode, SummaryInput, summarize
from mealcart.shipping import QuantityTierPolicy

NASI = MenuItem("m1", "Nasi Goreng", Decimal(25000))
EGG = AddOn("a1", "Telur", Decimal(5000))


async def tier_quote(cart: CartSnapshot):
    match await QuantityTierPolicy().compute_shipping(cart, "Jl. Braga"):
        case Ok(quote):
            return quote
        case Error(e):
            raise AssertionError(f"quote failed: {e}")


@pytest.mark.asyncio
async def test_grand_total_is_subtotal_plus_shipping():
    cart = CartSnapshot((CartLine(NASI, 2, addons=(EGG,)),))

    summary = await summarize(cart, await tier_quote(cart))

    assert summary.subtotal == Decimal(60000)
    assert summary.shipping == Decimal(10000)
    assert summary.grand_total == Decimal(70000)
    assert summary.item_count == 2


@pytest.mark.asyncio
async def test_without_quote_shipping_is_unknown():
    cart = CartSnapshot((CartLine(NASI, 1),))

    summary = await summarize(cart, None)

    assert summary.shipping is None
    assert summary.grand_total == Decimal(25000)


@pytest.mark.asyncio
async def test_quote_for_another_cart_is_not_added():
    cart = CartSnapshot((CartLine(NASI, 1),))
    stale = await tier_quote(cart)
    grown = CartSnapshot((CartLine(NASI, 12),))

    summary = await summarize(grown, stale)

    assert summary.shipping is None
    assert summary.grand_total == Decimal(300000)


@pytest.mark.asyncio
async def test_compose_keys_inputs_by_type():
    cart = CartSnapshot((CartLine(NASI, 3),))

    by_type = await G.compose(SubtotalNode, SummaryInput(cart, None))
    explicit = await G.evaluate(SubtotalNode, {SummaryInput: SummaryInput(cart, None)})

    assert by_type.subtotal == explicit.subtotal == Decimal(75000)
    assert by_type.item_count == 3
