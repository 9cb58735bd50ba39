"""
Cart — configured items with write-through persistence.

    from mealcart import cart as K

    match await K.CartStore.open(K.MemoryStorage()):
        case Ok(store):
            await store.add_item(item, 2, notes="extra spicy", addons=[cheese])
            store.total(), store.item_count()

Line identity is (menu item, notes, add-on set): identical configurations
merge, anything else is a separate line.
"""

from mealcart.cart._types import (
    MenuItem,
    AddOn,
    ItemKey,
    CartLine,
    CartSnapshot,
    CartError,
    CartErrorKind,
    merge_lines,
    unique_addons,
)
from mealcart.cart._store import (
    CartStorage,
    StorageError,
    FunctionalStorage,
    storage_from,
    MemoryStorage,
)
from mealcart.cart._codec import encode_cart, decode_cart
from mealcart.cart._cart import CartStore, DEFAULT_STORE_NAME
from mealcart.cart._sqlalchemy import SQLAlchemyStorage, CartSnapshotTable

__all__ = (
    # Types
    "MenuItem",
    "AddOn",
    "ItemKey",
    "CartLine",
    "CartSnapshot",
    "CartError",
    "CartErrorKind",
    "merge_lines",
    "unique_addons",
    # Storage
    "CartStorage",
    "StorageError",
    "FunctionalStorage",
    "storage_from",
    "MemoryStorage",
    "SQLAlchemyStorage",
    "CartSnapshotTable",
    # Codec
    "encode_cart",
    "decode_cart",
    # Store
    "CartStore",
    "DEFAULT_STORE_NAME",
)
