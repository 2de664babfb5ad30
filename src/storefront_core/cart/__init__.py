"""Cart and wishlist stores, persistence and services."""

from storefront_core.cart.persistence import (
    MemorySnapshotStorage,
    RedisSnapshotStorage,
    SnapshotStorage,
    load_cart,
    load_wishlist,
    save_cart,
    save_wishlist,
)
from storefront_core.cart.service import CartService, WishlistService, check_stock
from storefront_core.cart.store import CartStore
from storefront_core.cart.wishlist import WishlistStore

__all__ = [
    "CartService",
    "CartStore",
    "MemorySnapshotStorage",
    "RedisSnapshotStorage",
    "SnapshotStorage",
    "WishlistService",
    "WishlistStore",
    "check_stock",
    "load_cart",
    "load_wishlist",
    "save_cart",
    "save_wishlist",
]
