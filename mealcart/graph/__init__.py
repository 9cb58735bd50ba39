"""
Graph — small computation graphs over nodnod.

    from mealcart import graph as G

    @G.node
    class SubtotalNode:
        @classmethod
        async def __compose__(cls, source: SummaryInputNode) -> "SubtotalNode":
            return cls(source.data.cart.total, source.data.cart.item_count)

    result = await G.compose(GrandTotalNode, SummaryInput(cart, quote))
"""

from nodnod import scalar_node as node

from mealcart.graph._run import TypedScope, evaluate, compose

__all__ = (
    "node",
    "TypedScope",
    "evaluate",
    "compose",
)
