"""
Summary — cart page totals as a node graph.

    SummaryInputNode ─┬─ SubtotalNode ─┬─ GrandTotalNode
                      └─ ShippingNode ─┘
"""

from dataclasses import dataclass

from mealcart import graph as G
from mealcart._types import Money, ZERO
from mealcart.cart import CartSnapshot
from mealcart.checkout._types import CheckoutSummary
from mealcart.shipping import ShippingQuote


@dataclass(frozen=True, slots=True)
class SummaryInput:
    cart: CartSnapshot
    quote: ShippingQuote | None


@G.node
class SummaryInputNode:
    """Entry point: wraps the cart and the quote being shown."""

    def __init__(self, data: SummaryInput) -> None:
        self.data = data

    @classmethod
    def __compose__(cls, data: SummaryInput) -> "SummaryInputNode":
        return cls(data)


@G.node
class SubtotalNode:
    def __init__(self, subtotal: Money, item_count: int) -> None:
        self.subtotal = subtotal
        self.item_count = item_count

    @classmethod
    async def __compose__(cls, source: SummaryInputNode) -> "SubtotalNode":
        cart = source.data.cart
        return cls(cart.total, cart.item_count)


@G.node
class ShippingNode:
    """Shipping cost, only from a quote computed for this exact cart."""

    def __init__(self, cost: Money | None) -> None:
        self.cost = cost

    @classmethod
    async def __compose__(cls, source: SummaryInputNode) -> "ShippingNode":
        quote = source.data.quote
        if quote is None:
            return cls(None)
        if quote.basis.subtotal != source.data.cart.total:
            return cls(None)
        if quote.basis.item_count != source.data.cart.item_count:
            return cls(None)
        return cls(quote.cost)


@G.node
class GrandTotalNode:
    """Subtotal + shipping."""

    def __init__(self, summary: CheckoutSummary) -> None:
        self.summary = summary

    @classmethod
    async def __compose__(cls, subtotal: SubtotalNode, shipping: ShippingNode) -> "GrandTotalNode":
        shipping_cost = shipping.cost if shipping.cost is not None else ZERO
        return cls(
            CheckoutSummary(
                subtotal=subtotal.subtotal,
                shipping=shipping.cost,
                grand_total=subtotal.subtotal + shipping_cost,
                item_count=subtotal.item_count,
            )
        )


async def summarize(cart: CartSnapshot, quote: ShippingQuote | None) -> CheckoutSummary:
    """Evaluate the graph for one cart/quote pair."""
    result = await G.compose(GrandTotalNode, SummaryInput(cart, quote))
    return result.summary


__all__ = (
    "SummaryInput",
    "SummaryInputNode",
    "SubtotalNode",
    "ShippingNode",
    "GrandTotalNode",
    "summarize",
)
