"""Catalog query engine: filter, search and sort an in-memory product list.

Everything here is pure and synchronous. Filter content never raises; a
filter that cannot match anything simply yields an empty result.
"""

from collections.abc import Callable, Sequence
from datetime import datetime, timezone

from storefront_core.catalog.search import search
from storefront_core.models.filters import FilterSpec, SortOption
from storefront_core.models.product import Product

Predicate = Callable[[Product], bool]

# Products without a timestamp sort as the oldest
_EPOCH = datetime.min.replace(tzinfo=timezone.utc)


def build_predicates(spec: FilterSpec) -> list[Predicate]:
    """
    Predicates for every active filter dimension.

    Each predicate looks at one dimension only, so the order in which they
    are applied never changes which products pass.
    """
    predicates: list[Predicate] = []

    if spec.category:
        category = spec.category
        predicates.append(lambda p: p.category == category)

    if spec.subcategory:
        subcategory = spec.subcategory
        predicates.append(lambda p: p.subcategory == subcategory)

    if spec.colors:
        colors = spec.colors
        predicates.append(lambda p: p.color in colors)

    if spec.sizes:
        sizes = spec.sizes
        # Sizeless products never intersect a non-empty size selection
        predicates.append(lambda p: any(s in sizes for s in p.size))

    if spec.price_range is not None:
        price_range = spec.price_range
        predicates.append(lambda p: price_range.contains(p.price))

    return predicates


def apply_filters(products: Sequence[Product], spec: FilterSpec) -> list[Product]:
    """Keep products passing every structured filter (search excluded)."""
    predicates = build_predicates(spec)
    return [p for p in products if all(pred(p) for pred in predicates)]


def _created(product: Product) -> datetime:
    return product.created_at or _EPOCH


def sort_products(products: Sequence[Product], sort: SortOption) -> list[Product]:
    """Order products by a sort policy. Every policy is stable for equal keys."""
    if sort == SortOption.PRICE_LOW:
        return sorted(products, key=lambda p: p.price)
    if sort == SortOption.PRICE_HIGH:
        return sorted(products, key=lambda p: p.price, reverse=True)
    if sort == SortOption.NEWEST:
        return sorted(products, key=_created, reverse=True)
    if sort == SortOption.POPULAR:
        return sorted(products, key=lambda p: p.views_count, reverse=True)
    # Featured first, then newest; reverse keeps ties in input order
    return sorted(products, key=lambda p: (p.featured, _created(p)), reverse=True)


def query(products: Sequence[Product], spec: FilterSpec | None = None) -> list[Product]:
    """
    Produce the visible, ordered result set for a filter specification.

    When a search is active and the sort is left at the default, results
    are ordered by relevance. Any explicit sort overrides relevance.

    Args:
        products: Full product list. Not mutated.
        spec: Filter specification; None means no filters, default sort.

    Returns:
        New list of matching products.
    """
    spec = spec or FilterSpec()
    candidates = apply_filters(products, spec)

    if spec.has_search:
        ranked = [product for product, _ in search(candidates, spec.search_query)]
        if spec.sort == SortOption.FEATURED:
            return ranked
        return sort_products(ranked, spec.sort)

    return sort_products(candidates, spec.sort)


def active_filter_count(spec: FilterSpec) -> int:
    """Number of active filter selections, for the filter badge."""
    return spec.active_filter_count
