"""Cart aggregation store.

A plain in-memory object: one line per (product_id, size, color), price
snapshots taken at first add, integer totals. Persistence is explicit
through snapshots; nothing is saved implicitly.
"""

import logging
from collections.abc import Iterator

from storefront_core.models.cart import CartLine, CartSnapshot, LineKey
from storefront_core.models.product import Product

logger = logging.getLogger(__name__)


class CartStore:
    """
    Shopping cart lines plus transient display state.

    Missing lines are never an error: remove/update/increment/decrement on
    an identity that is not in the cart do nothing. Quantity and stock
    validation is the caller's job.
    """

    def __init__(self, lines: list[CartLine] | None = None) -> None:
        # dicts keep insertion order, which is the display order
        self._lines: dict[LineKey, CartLine] = {}
        for line in lines or []:
            existing = self._lines.get(line.key)
            if existing is not None:
                existing.quantity += line.quantity
            else:
                self._lines[line.key] = line.model_copy()
        self.is_open = False

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    @property
    def lines(self) -> list[CartLine]:
        return list(self._lines.values())

    def __len__(self) -> int:
        return len(self._lines)

    def __iter__(self) -> Iterator[CartLine]:
        return iter(self.lines)

    def get_line(
        self, product_id: str, size: str | None = None, color: str | None = None
    ) -> CartLine | None:
        return self._lines.get((product_id, size, color))

    def is_in_cart(
        self, product_id: str, size: str | None = None, color: str | None = None
    ) -> bool:
        return (product_id, size, color) in self._lines

    def get_item_quantity(
        self, product_id: str, size: str | None = None, color: str | None = None
    ) -> int:
        line = self.get_line(product_id, size, color)
        return line.quantity if line else 0

    def get_total_items(self) -> int:
        """Sum of quantities across lines."""
        return sum(line.quantity for line in self._lines.values())

    def get_subtotal(self) -> int:
        """Sum of price * quantity in minor units."""
        return sum(line.line_total for line in self._lines.values())

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def add_item(
        self,
        product: Product,
        quantity: int = 1,
        size: str | None = None,
        color: str | None = None,
    ) -> CartLine:
        """
        Add a product variant, merging into an existing line if present.

        A merge only sums quantities; the line keeps the price it was
        first added at.
        """
        key = (product.id, size, color)
        line = self._lines.get(key)
        if line is not None:
            line.quantity += quantity
            logger.debug(f"Updated cart line {key}: x{line.quantity}")
            return line

        line = CartLine(
            product_id=product.id,
            name=product.name,
            slug=product.slug,
            sku=product.sku,
            image=product.image,
            currency=product.currency,
            price=product.price,
            size=size,
            color=color,
            quantity=quantity,
            in_stock=product.in_stock,
        )
        self._lines[key] = line
        logger.debug(f"Added cart line {key}: x{quantity}")
        return line

    def remove_item(
        self, product_id: str, size: str | None = None, color: str | None = None
    ) -> None:
        self._lines.pop((product_id, size, color), None)

    def update_quantity(
        self,
        product_id: str,
        quantity: int,
        size: str | None = None,
        color: str | None = None,
    ) -> None:
        """Set a line's quantity; zero or less removes the line."""
        if quantity <= 0:
            self.remove_item(product_id, size, color)
            return
        line = self._lines.get((product_id, size, color))
        if line is not None:
            line.quantity = quantity

    def increment_quantity(
        self, product_id: str, size: str | None = None, color: str | None = None
    ) -> None:
        line = self._lines.get((product_id, size, color))
        if line is not None:
            line.quantity += 1

    def decrement_quantity(
        self, product_id: str, size: str | None = None, color: str | None = None
    ) -> None:
        """Decrease by one; a line at quantity 1 is removed."""
        line = self._lines.get((product_id, size, color))
        if line is None:
            return
        if line.quantity <= 1:
            self.remove_item(product_id, size, color)
        else:
            line.quantity -= 1

    def clear_cart(self) -> None:
        self._lines.clear()

    # ------------------------------------------------------------------
    # Display state (not persisted)
    # ------------------------------------------------------------------

    def open_cart(self) -> None:
        self.is_open = True

    def close_cart(self) -> None:
        self.is_open = False

    def toggle_cart(self) -> None:
        self.is_open = not self.is_open

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    def to_snapshot(self) -> CartSnapshot:
        return CartSnapshot(items=[line.model_copy() for line in self._lines.values()])

    @classmethod
    def from_snapshot(cls, snapshot: CartSnapshot) -> "CartStore":
        return cls(snapshot.items)
