"""Server-held carts and wishlists with per-owner serialized writes."""

import asyncio
import logging
import time
from collections import OrderedDict
from collections.abc import AsyncIterator, Awaitable, Callable
from contextlib import asynccontextmanager
from typing import Generic, TypeVar

from storefront_core.cart.persistence import (
    SnapshotStorage,
    load_cart,
    load_wishlist,
    save_cart,
    save_wishlist,
)
from storefront_core.cart.store import CartStore
from storefront_core.cart.wishlist import WishlistStore
from storefront_core.catalog.service import CatalogService
from storefront_core.exceptions import (
    InsufficientStockError,
    PersistenceError,
    StorefrontValidationError,
)
from storefront_core.models.product import Product
from storefront_core.observability.context import owner_context
from storefront_core.observability.metrics import MetricsRegistry, get_metrics
from storefront_core.observability.tracing import add_span_attribute, traced

logger = logging.getLogger(__name__)

T = TypeVar("T")
S = TypeVar("S")

# Called with (product_id, delta) when a product is saved (+1) or unsaved (-1)
FavoriteCallback = Callable[[str, int], Awaitable[None]]


def check_stock(product: Product, requested_total: int) -> None:
    """
    Raise InsufficientStockError if a line total cannot be fulfilled.

    Products flagged out of stock always fail. A known ``stock_quantity``
    caps the total quantity of the product's line.
    """
    if not product.in_stock:
        raise InsufficientStockError(product.id, requested_total, None)
    if product.stock_quantity is not None and requested_total > product.stock_quantity:
        raise InsufficientStockError(product.id, requested_total, product.stock_quantity)


class OwnerLocks:
    """
    One asyncio.Lock per owner id.

    A lock exists only while some task holds or waits on it, so the table
    never outgrows the number of in-flight requests.
    """

    def __init__(self) -> None:
        self._locks: dict[str, asyncio.Lock] = {}
        self._users: dict[str, int] = {}

    @asynccontextmanager
    async def hold(self, owner_id: str) -> AsyncIterator[None]:
        lock = self._locks.get(owner_id)
        if lock is None:
            lock = self._locks[owner_id] = asyncio.Lock()
        self._users[owner_id] = self._users.get(owner_id, 0) + 1
        try:
            async with lock:
                yield
        finally:
            self._users[owner_id] -= 1
            if not self._users[owner_id]:
                del self._users[owner_id]
                del self._locks[owner_id]

    def __len__(self) -> int:
        return len(self._locks)


class OwnerCache(Generic[S]):
    """
    Bounded LRU of loaded stores keyed by owner id.

    Entries older than ``ttl_seconds`` count as missing, so a document that
    expired in storage (or was rewritten by another instance) is reloaded.
    """

    def __init__(self, max_size: int = 1024, ttl_seconds: float | None = 300.0) -> None:
        self.max_size = max_size
        self.ttl_seconds = ttl_seconds
        self._entries: OrderedDict[str, tuple[float, S]] = OrderedDict()

    def get(self, owner_id: str) -> S | None:
        entry = self._entries.get(owner_id)
        if entry is None:
            return None
        stored_at, store = entry
        if self.ttl_seconds is not None and time.monotonic() - stored_at >= self.ttl_seconds:
            del self._entries[owner_id]
            return None
        self._entries.move_to_end(owner_id)
        return store

    def put(self, owner_id: str, store: S) -> None:
        self._entries[owner_id] = (time.monotonic(), store)
        self._entries.move_to_end(owner_id)
        while len(self._entries) > self.max_size:
            evicted, _ = self._entries.popitem(last=False)
            logger.debug(f"Evicted cached store for {evicted}")

    def pop(self, owner_id: str) -> None:
        self._entries.pop(owner_id, None)

    def __contains__(self, owner_id: str) -> bool:
        return owner_id in self._entries

    def __len__(self) -> int:
        return len(self._entries)


class CartService:
    """
    Carts keyed by owner (session or customer id).

    Every mutation runs load -> mutate -> save while holding that owner's
    lock, so concurrent requests for one owner are applied one at a time and
    two adds of the same variant always merge into one line. Reads are
    served from a bounded cache that is replaced on each successful write
    and dropped when a write fails.
    """

    def __init__(
        self,
        storage: SnapshotStorage,
        catalog: CatalogService,
        metrics: MetricsRegistry | None = None,
        cache_size: int = 1024,
        cache_ttl_seconds: float | None = 300.0,
    ) -> None:
        """
        Initialize the cart service.

        Args:
            storage: Snapshot storage backend.
            catalog: Catalog used to resolve product ids.
            metrics: Metrics registry (global registry if not provided).
            cache_size: Maximum carts kept in memory.
            cache_ttl_seconds: Age after which a cached cart is reloaded.
        """
        self.storage = storage
        self.catalog = catalog
        self.metrics = metrics or get_metrics()
        self._locks = OwnerLocks()
        self._cache: OwnerCache[CartStore] = OwnerCache(cache_size, cache_ttl_seconds)

    async def get_cart(self, owner_id: str) -> CartStore:
        """Return a copy of the owner's cart."""
        cart = self._cache.get(owner_id)
        if cart is None:
            async with self._locks.hold(owner_id):
                cart = await self._cached(owner_id)
        return _copy_cart(cart)

    @traced("cart.add_item")
    async def add_item(
        self,
        owner_id: str,
        product_id: str,
        quantity: int = 1,
        size: str | None = None,
        color: str | None = None,
        enforce_stock: bool = True,
    ) -> CartStore:
        """Add a catalog product variant to the owner's cart, merging with its line."""
        product = self.catalog.get_product(product_id)
        return await self.add_product(owner_id, product, quantity, size, color, enforce_stock)

    async def add_product(
        self,
        owner_id: str,
        product: Product,
        quantity: int = 1,
        size: str | None = None,
        color: str | None = None,
        enforce_stock: bool = True,
    ) -> CartStore:
        """Add an already resolved product; the line is priced from ``product``."""
        if quantity <= 0:
            raise StorefrontValidationError("Quantity must be at least 1")

        def mutate(cart: CartStore) -> None:
            if enforce_stock:
                check_stock(product, cart.get_item_quantity(product.id, size, color) + quantity)
            cart.add_item(product, quantity, size, color)

        return await self._mutate(owner_id, "add_item", mutate)

    async def remove_item(
        self, owner_id: str, product_id: str, size: str | None = None, color: str | None = None
    ) -> CartStore:
        return await self._mutate(
            owner_id, "remove_item", lambda cart: cart.remove_item(product_id, size, color)
        )

    async def update_quantity(
        self,
        owner_id: str,
        product_id: str,
        quantity: int,
        size: str | None = None,
        color: str | None = None,
        enforce_stock: bool = True,
    ) -> CartStore:
        """Set a line's quantity; zero or less removes it."""

        def mutate(cart: CartStore) -> None:
            if enforce_stock and quantity > 0 and cart.is_in_cart(product_id, size, color):
                product = self.catalog.find_product(product_id)
                if product is not None:
                    check_stock(product, quantity)
            cart.update_quantity(product_id, quantity, size, color)

        return await self._mutate(owner_id, "update_quantity", mutate)

    async def increment_quantity(
        self,
        owner_id: str,
        product_id: str,
        size: str | None = None,
        color: str | None = None,
        enforce_stock: bool = True,
    ) -> CartStore:
        def mutate(cart: CartStore) -> None:
            current = cart.get_item_quantity(product_id, size, color)
            if enforce_stock and current:
                product = self.catalog.find_product(product_id)
                if product is not None:
                    check_stock(product, current + 1)
            cart.increment_quantity(product_id, size, color)

        return await self._mutate(owner_id, "increment_quantity", mutate)

    async def decrement_quantity(
        self, owner_id: str, product_id: str, size: str | None = None, color: str | None = None
    ) -> CartStore:
        return await self._mutate(
            owner_id,
            "decrement_quantity",
            lambda cart: cart.decrement_quantity(product_id, size, color),
        )

    async def clear_cart(self, owner_id: str) -> CartStore:
        return await self._mutate(owner_id, "clear_cart", lambda cart: cart.clear_cart())

    async def _cached(self, owner_id: str) -> CartStore:
        # Caller holds the owner's lock
        cart = self._cache.get(owner_id)
        if cart is None:
            cart = await load_cart(self.storage, owner_id)
            self._cache.put(owner_id, cart)
        return cart

    async def _mutate(
        self, owner_id: str, operation: str, mutate: Callable[[CartStore], None]
    ) -> CartStore:
        add_span_attribute("cart.operation", operation)
        with owner_context(owner_id):
            async with self._locks.hold(owner_id):
                working = _copy_cart(await self._cached(owner_id))
                mutate(working)
                try:
                    await save_cart(self.storage, owner_id, working)
                except PersistenceError:
                    self._cache.pop(owner_id)
                    self.metrics.record_storage_error("cart", "write")
                    logger.error(f"Cart write failed during {operation}", exc_info=True)
                    raise
                self._cache.put(owner_id, working)
            self.metrics.record_cart_operation("cart", operation)
            logger.info(
                f"Cart {operation}",
                extra={"lines": len(working), "total_items": working.get_total_items()},
            )
        return _copy_cart(working)


class WishlistService:
    """Wishlists keyed by owner, with the same write discipline as carts."""

    def __init__(
        self,
        storage: SnapshotStorage,
        catalog: CatalogService,
        carts: CartService | None = None,
        on_favorite: FavoriteCallback | None = None,
        metrics: MetricsRegistry | None = None,
        cache_size: int = 1024,
        cache_ttl_seconds: float | None = 300.0,
    ) -> None:
        """
        Initialize the wishlist service.

        Args:
            storage: Snapshot storage backend.
            catalog: Catalog used to resolve product ids.
            carts: Cart service, required for move_to_cart.
            on_favorite: Optional hook forwarding favorite counter changes.
            metrics: Metrics registry (global registry if not provided).
            cache_size: Maximum wishlists kept in memory.
            cache_ttl_seconds: Age after which a cached wishlist is reloaded.
        """
        self.storage = storage
        self.catalog = catalog
        self.carts = carts
        self.on_favorite = on_favorite
        self.metrics = metrics or get_metrics()
        self._locks = OwnerLocks()
        self._cache: OwnerCache[WishlistStore] = OwnerCache(cache_size, cache_ttl_seconds)

    async def get_wishlist(self, owner_id: str) -> WishlistStore:
        wishlist = self._cache.get(owner_id)
        if wishlist is None:
            async with self._locks.hold(owner_id):
                wishlist = await self._cached(owner_id)
        return _copy_wishlist(wishlist)

    async def add_item(self, owner_id: str, product_id: str) -> WishlistStore:
        product = self.catalog.get_product(product_id)
        wishlist, added = await self._mutate(owner_id, "add_item", lambda w: w.add_item(product))
        if added:
            await self._notify(product_id, 1)
        return wishlist

    async def remove_item(self, owner_id: str, product_id: str) -> WishlistStore:
        wishlist, removed = await self._mutate(
            owner_id, "remove_item", lambda w: w.remove_item(product_id)
        )
        if removed:
            await self._notify(product_id, -1)
        return wishlist

    async def toggle_item(self, owner_id: str, product_id: str) -> WishlistStore:
        product = self.catalog.get_product(product_id)
        wishlist, saved = await self._mutate(
            owner_id, "toggle_item", lambda w: w.toggle_item(product)
        )
        await self._notify(product_id, 1 if saved else -1)
        return wishlist

    async def clear(self, owner_id: str) -> WishlistStore:
        wishlist, _ = await self._mutate(owner_id, "clear", lambda w: w.clear())
        return wishlist

    async def move_to_cart(self, owner_id: str, product_id: str) -> WishlistStore:
        """
        Move a saved product into the owner's cart.

        The cart line is built from the saved entry, so it keeps the saved
        price and works for products that have left the catalog. The cart is
        written first; if that fails the wishlist is untouched.
        """
        if self.carts is None:
            raise RuntimeError("WishlistService.move_to_cart needs a CartService")

        with owner_context(owner_id):
            async with self._locks.hold(owner_id):
                working = _copy_wishlist(await self._cached(owner_id))
                entry = working.get_item(product_id)
                if entry is None:
                    return working
                await self.carts.add_product(
                    owner_id, entry.to_product(), quantity=1, enforce_stock=False
                )
                working.remove_item(product_id)
                await self._save(owner_id, working)
            self._record("move_to_cart", working)
        await self._notify(product_id, -1)
        return _copy_wishlist(working)

    async def _notify(self, product_id: str, delta: int) -> None:
        if self.on_favorite is None:
            return
        try:
            await self.on_favorite(product_id, delta)
        except Exception:
            logger.warning(f"Favorite counter update failed for {product_id}", exc_info=True)

    async def _cached(self, owner_id: str) -> WishlistStore:
        wishlist = self._cache.get(owner_id)
        if wishlist is None:
            wishlist = await load_wishlist(self.storage, owner_id)
            self._cache.put(owner_id, wishlist)
        return wishlist

    async def _save(self, owner_id: str, working: WishlistStore) -> None:
        # Caller holds the owner's lock
        try:
            await save_wishlist(self.storage, owner_id, working)
        except PersistenceError:
            self._cache.pop(owner_id)
            self.metrics.record_storage_error("wishlist", "write")
            raise
        self._cache.put(owner_id, working)

    def _record(self, operation: str, working: WishlistStore) -> None:
        self.metrics.record_cart_operation("wishlist", operation)
        logger.info(f"Wishlist {operation}", extra={"entries": len(working)})

    async def _mutate(
        self, owner_id: str, operation: str, mutate: Callable[[WishlistStore], T]
    ) -> tuple[WishlistStore, T]:
        with owner_context(owner_id):
            async with self._locks.hold(owner_id):
                working = _copy_wishlist(await self._cached(owner_id))
                result = mutate(working)
                await self._save(owner_id, working)
            self._record(operation, working)
        return _copy_wishlist(working), result


def _copy_cart(cart: CartStore) -> CartStore:
    return CartStore.from_snapshot(cart.to_snapshot())


def _copy_wishlist(wishlist: WishlistStore) -> WishlistStore:
    return WishlistStore.from_snapshot(wishlist.to_snapshot())
