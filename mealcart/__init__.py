"""
mealcart — cart and checkout engine for a food-ordering storefront.

    from mealcart import cart as K       # Cart store and persistence
    from mealcart import shipping as S   # Shipping strategies and quotes
    from mealcart import checkout as CO  # Order and payment state machine
"""

from mealcart import lift
from mealcart import graph
from mealcart import cart
from mealcart import shipping
from mealcart import checkout
from mealcart._types import (
    Lazy,
    Money,
    ZERO,
    to_money,
)

__version__ = "0.1.0"

__all__ = (
    "lift",
    "graph",
    "cart",
    "shipping",
    "checkout",
    "Lazy",
    "Money",
    "ZERO",
    "to_money",
)
