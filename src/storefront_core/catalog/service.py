"""Catalog service: owns the loaded product list and memoizes queries."""

import logging
import time
from collections import OrderedDict

from storefront_core.catalog.facets import CatalogFacets, build_facets
from storefront_core.catalog.query import query
from storefront_core.catalog.sources import ProductSource
from storefront_core.exceptions import ProductNotFoundError, ServiceNotReadyError
from storefront_core.models.filters import FilterSpec
from storefront_core.models.product import Product
from storefront_core.observability.metrics import MetricsRegistry, get_metrics
from storefront_core.observability.tracing import traced

logger = logging.getLogger(__name__)


class CatalogService:
    """
    In-memory catalog backed by a product source.

    Query results are memoized by ``(version, spec)``. Every refresh bumps
    the version, so results computed against an older product list are
    never served again.
    """

    def __init__(
        self,
        source: ProductSource,
        cache_size: int = 256,
        metrics: MetricsRegistry | None = None,
    ) -> None:
        """
        Initialize the catalog service.

        Args:
            source: Where products are loaded from.
            cache_size: Maximum number of memoized query results.
            metrics: Metrics registry (global registry if not provided).
        """
        self.source = source
        self.cache_size = cache_size
        self.metrics = metrics or get_metrics()
        self.version = 0
        self._products: tuple[Product, ...] = ()
        self._by_id: dict[str, Product] = {}
        self._by_slug: dict[str, Product] = {}
        self._cache: OrderedDict[tuple[int, FilterSpec], tuple[Product, ...]] = OrderedDict()
        self._loaded = False

    @property
    def is_loaded(self) -> bool:
        return self._loaded

    @property
    def products(self) -> list[Product]:
        self._ensure_loaded()
        return list(self._products)

    @traced("catalog.refresh")
    async def refresh(self) -> int:
        """
        Reload products from the source.

        Returns:
            Number of products loaded.
        """
        products = await self.source.fetch_products()
        self.load(products)
        self.metrics.record_refresh(self.source.name)
        return len(products)

    def load(self, products: list[Product]) -> None:
        """Replace the product list and invalidate memoized results."""
        self._products = tuple(products)
        self._by_id = {p.id: p for p in products}
        self._by_slug = {p.slug: p for p in products if p.slug}
        self._cache.clear()
        self.version += 1
        self._loaded = True
        logger.info(f"Catalog loaded: {len(products)} products (version {self.version})")

    def search(self, spec: FilterSpec | None = None) -> list[Product]:
        """Run a memoized catalog query."""
        self._ensure_loaded()
        spec = spec or FilterSpec()
        key = (self.version, spec)

        cached = self._cache.get(key)
        if cached is not None:
            self._cache.move_to_end(key)
            self.metrics.record_cache(hit=True)
            return list(cached)

        self.metrics.record_cache(hit=False)
        start = time.perf_counter()
        result = tuple(query(self._products, spec))
        self.metrics.record_query(spec.sort.value, time.perf_counter() - start, len(result))

        self._cache[key] = result
        if len(self._cache) > self.cache_size:
            self._cache.popitem(last=False)
        return list(result)

    def get_product(self, product_id: str) -> Product:
        """Look up a product by id or raise ProductNotFoundError."""
        self._ensure_loaded()
        product = self._by_id.get(product_id)
        if product is None:
            raise ProductNotFoundError(product_id)
        return product

    def find_product(self, product_id: str) -> Product | None:
        self._ensure_loaded()
        return self._by_id.get(product_id)

    def get_product_by_slug(self, slug: str) -> Product:
        self._ensure_loaded()
        product = self._by_slug.get(slug)
        if product is None:
            raise ProductNotFoundError(slug)
        return product

    def facets(self) -> CatalogFacets:
        self._ensure_loaded()
        return build_facets(self._products)

    def related_products(self, product_id: str, limit: int = 4) -> list[Product]:
        """
        Products related to the given one.

        Same-category products come first, then products sharing at least
        one tag; both groups newest first. The product itself is excluded.
        """
        product = self.get_product(product_id)
        others = [p for p in self._products if p.id != product.id]
        tags = set(product.tags)

        same_category = [p for p in others if product.category and p.category == product.category]
        seen = {p.id for p in same_category}
        shared_tags = [p for p in others if p.id not in seen and tags.intersection(p.tags)]

        ordered = query(same_category, FilterSpec(sort="newest")) + query(
            shared_tags, FilterSpec(sort="newest")
        )
        return ordered[:limit]

    def _ensure_loaded(self) -> None:
        if not self._loaded:
            raise ServiceNotReadyError("Catalog not loaded")
