"""Wishlist store: at most one saved entry per product."""

import logging

from storefront_core.cart.store import CartStore
from storefront_core.models.cart import WishlistEntry, WishlistSnapshot
from storefront_core.models.product import Product

logger = logging.getLogger(__name__)


class WishlistStore:
    """Saved products keyed by product id, in the order they were saved."""

    def __init__(self, entries: list[WishlistEntry] | None = None) -> None:
        self._entries: dict[str, WishlistEntry] = {}
        for entry in entries or []:
            self._entries.setdefault(entry.product_id, entry.model_copy())

    @property
    def items(self) -> list[WishlistEntry]:
        return list(self._entries.values())

    def __len__(self) -> int:
        return len(self._entries)

    def total_items(self) -> int:
        return len(self._entries)

    def is_in_wishlist(self, product_id: str) -> bool:
        return product_id in self._entries

    def get_item(self, product_id: str) -> WishlistEntry | None:
        return self._entries.get(product_id)

    def add_item(self, product: Product) -> bool:
        """
        Save a product.

        Returns:
            False if the product was already saved (nothing changes).
        """
        if product.id in self._entries:
            logger.debug(f"Product already in wishlist: {product.id}")
            return False
        self._entries[product.id] = WishlistEntry(
            product_id=product.id,
            name=product.name,
            slug=product.slug,
            price=product.price,
            currency=product.currency,
            image=product.image,
            category=product.category,
            subcategory=product.subcategory,
            in_stock=product.in_stock,
        )
        return True

    def remove_item(self, product_id: str) -> bool:
        """Remove a saved product. Returns whether anything was removed."""
        return self._entries.pop(product_id, None) is not None

    def toggle_item(self, product: Product) -> bool:
        """Flip membership. Returns True if the product is now saved."""
        if self.remove_item(product.id):
            return False
        self.add_item(product)
        return True

    def clear(self) -> None:
        self._entries.clear()

    def move_to_cart(self, product_id: str, cart: CartStore) -> bool:
        """
        Move a saved product into the cart with quantity 1.

        The cart line takes the price saved in the wishlist entry.

        Returns:
            False if the product was not in the wishlist.
        """
        entry = self._entries.get(product_id)
        if entry is None:
            return False
        cart.add_item(entry.to_product(), quantity=1)
        del self._entries[product_id]
        return True

    def to_snapshot(self) -> WishlistSnapshot:
        return WishlistSnapshot(items=[entry.model_copy() for entry in self._entries.values()])

    @classmethod
    def from_snapshot(cls, snapshot: WishlistSnapshot) -> "WishlistStore":
        return cls(snapshot.items)
