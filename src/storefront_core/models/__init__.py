"""Data models for the storefront core."""

from storefront_core.models.cart import (
    SNAPSHOT_VERSION,
    CartLine,
    CartSnapshot,
    LineKey,
    WishlistEntry,
    WishlistSnapshot,
)
from storefront_core.models.filters import FilterSpec, PriceRange, SortOption
from storefront_core.models.order import CartTotals, CustomerDetails, OrderDraft, OrderItemDraft
from storefront_core.models.product import Product

__all__ = [
    "SNAPSHOT_VERSION",
    "CartLine",
    "CartSnapshot",
    "CartTotals",
    "CustomerDetails",
    "FilterSpec",
    "LineKey",
    "OrderDraft",
    "OrderItemDraft",
    "PriceRange",
    "Product",
    "SortOption",
    "WishlistEntry",
    "WishlistSnapshot",
]
