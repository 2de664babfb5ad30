"""Cart, wishlist and persisted snapshot models."""

from datetime import datetime, timezone
from typing import Literal

from pydantic import BaseModel, Field

from storefront_core.models.product import Product

# Bump when the persisted document layout changes
SNAPSHOT_VERSION = 1

LineKey = tuple[str, str | None, str | None]


class CartLine(BaseModel):
    """One cart entry, identified by (product_id, size, color)."""

    product_id: str
    name: str
    slug: str | None = None
    sku: str | None = None
    image: str | None = None
    currency: str = "NGN"
    price: int = Field(ge=0, description="Unit price snapshot in minor units, taken at first add")
    size: str | None = None
    color: str | None = None
    quantity: int = Field(ge=1)
    in_stock: bool = True

    @property
    def key(self) -> LineKey:
        return (self.product_id, self.size, self.color)

    @property
    def line_total(self) -> int:
        return self.price * self.quantity


class WishlistEntry(BaseModel):
    """Saved product, at most one per product id."""

    product_id: str
    name: str
    slug: str | None = None
    price: int = Field(ge=0)
    currency: str = "NGN"
    image: str | None = None
    category: str | None = None
    subcategory: str | None = None
    in_stock: bool = True
    added_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    def to_product(self) -> Product:
        """Product view of the saved entry, priced at the saved snapshot."""
        return Product(
            id=self.product_id,
            name=self.name,
            slug=self.slug,
            price=self.price,
            currency=self.currency,
            image=self.image,
            category=self.category,
            subcategory=self.subcategory,
            in_stock=self.in_stock,
        )


class CartSnapshot(BaseModel):
    """Persisted cart document."""

    version: Literal[1] = SNAPSHOT_VERSION
    items: list[CartLine] = Field(default_factory=list)


class WishlistSnapshot(BaseModel):
    """Persisted wishlist document."""

    version: Literal[1] = SNAPSHOT_VERSION
    items: list[WishlistEntry] = Field(default_factory=list)
