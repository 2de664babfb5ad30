"""Filter options derived from the loaded product set."""

from collections import Counter
from collections.abc import Sequence

from pydantic import BaseModel, Field

from storefront_core.models.product import Product


class CategoryFacet(BaseModel):
    """A category with its subcategories and product count."""

    name: str
    product_count: int = 0
    subcategories: list[str] = Field(default_factory=list)


class CatalogFacets(BaseModel):
    """Options the filter sidebar can offer for a product set."""

    categories: list[CategoryFacet] = Field(default_factory=list)
    colors: list[str] = Field(default_factory=list)
    sizes: list[str] = Field(default_factory=list)
    tags: dict[str, int] = Field(default_factory=dict)
    min_price: int | None = None
    max_price: int | None = None


def build_facets(products: Sequence[Product]) -> CatalogFacets:
    """
    Collect categories, colors, sizes, tag counts and the price span.

    Lists keep first-seen order across the input so size ladders
    (XS, S, M, L) come out the way merchandisers entered them.
    """
    categories: dict[str, CategoryFacet] = {}
    colors: dict[str, None] = {}
    sizes: dict[str, None] = {}
    tags: Counter[str] = Counter()

    for product in products:
        if product.category:
            facet = categories.setdefault(product.category, CategoryFacet(name=product.category))
            facet.product_count += 1
            if product.subcategory and product.subcategory not in facet.subcategories:
                facet.subcategories.append(product.subcategory)
        if product.color:
            colors.setdefault(product.color, None)
        for size in product.size:
            sizes.setdefault(size, None)
        tags.update(product.tags)

    prices = [product.price for product in products]
    return CatalogFacets(
        categories=list(categories.values()),
        colors=list(colors),
        sizes=list(sizes),
        tags=dict(tags.most_common()),
        min_price=min(prices) if prices else None,
        max_price=max(prices) if prices else None,
    )
