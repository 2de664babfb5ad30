"""Snapshot storage for carts and wishlists.

One JSON document per store per owner, under namespaced keys:
- {namespace}:cart:{owner_id}
- {namespace}:wishlist:{owner_id}

Documents carry a schema version. Loading never fails: a missing, corrupted
or unknown-version document yields an empty store and a warning.
"""

import logging
from abc import ABC, abstractmethod

import redis.asyncio as redis
from pydantic import ValidationError

from storefront_core.cart.store import CartStore
from storefront_core.cart.wishlist import WishlistStore
from storefront_core.exceptions import PersistenceError
from storefront_core.models.cart import CartSnapshot, WishlistSnapshot

logger = logging.getLogger(__name__)


class SnapshotStorage(ABC):
    """Durable key-value storage for JSON documents."""

    def __init__(self, namespace: str = "storefront") -> None:
        self.namespace = namespace

    def cart_key(self, owner_id: str) -> str:
        return f"{self.namespace}:cart:{owner_id}"

    def wishlist_key(self, owner_id: str) -> str:
        return f"{self.namespace}:wishlist:{owner_id}"

    @abstractmethod
    async def get(self, key: str) -> str | None:
        """Return the stored document, or None if absent."""
        ...

    @abstractmethod
    async def set(self, key: str, value: str) -> None:
        """Store a document, replacing any previous one."""
        ...

    @abstractmethod
    async def delete(self, key: str) -> None:
        """Delete a document; deleting an absent key is fine."""
        ...

    async def check(self) -> bool:
        """Whether the backend is reachable."""
        return True

    async def close(self) -> None:
        """Release backend resources."""


class MemorySnapshotStorage(SnapshotStorage):
    """Process-local storage (development, tests)."""

    def __init__(self, namespace: str = "storefront") -> None:
        super().__init__(namespace)
        self._data: dict[str, str] = {}

    async def get(self, key: str) -> str | None:
        return self._data.get(key)

    async def set(self, key: str, value: str) -> None:
        self._data[key] = value

    async def delete(self, key: str) -> None:
        self._data.pop(key, None)


class RedisSnapshotStorage(SnapshotStorage):
    """Redis-backed storage; documents expire after ``ttl_seconds`` untouched."""

    def __init__(
        self,
        redis_client: redis.Redis,
        namespace: str = "storefront",
        ttl_seconds: int | None = 30 * 24 * 3600,
    ) -> None:
        """
        Initialize the storage.

        Args:
            redis_client: Async Redis client.
            namespace: Key prefix.
            ttl_seconds: Expiry refreshed on every write (None = keep forever).
        """
        super().__init__(namespace)
        self.redis = redis_client
        self.ttl_seconds = ttl_seconds

    async def get(self, key: str) -> str | None:
        data = await self.redis.get(key)
        if isinstance(data, bytes):
            data = data.decode()
        return data

    async def set(self, key: str, value: str) -> None:
        await self.redis.set(key, value, ex=self.ttl_seconds)

    async def delete(self, key: str) -> None:
        await self.redis.delete(key)

    async def check(self) -> bool:
        try:
            await self.redis.ping()
            return True
        except (redis.RedisError, OSError):
            return False

    async def close(self) -> None:
        await self.redis.aclose()


async def _read(storage: SnapshotStorage, key: str) -> str | None:
    try:
        return await storage.get(key)
    except (redis.RedisError, OSError) as e:
        logger.warning(f"Snapshot read failed for {key}, starting empty: {e}")
        return None


async def _write(storage: SnapshotStorage, key: str, document: str) -> None:
    try:
        await storage.set(key, document)
    except (redis.RedisError, OSError) as e:
        raise PersistenceError(f"Could not save {key}", detail=str(e)) from e


async def load_cart(storage: SnapshotStorage, owner_id: str) -> CartStore:
    """Load an owner's cart, or an empty cart if nothing usable is stored."""
    key = storage.cart_key(owner_id)
    document = await _read(storage, key)
    if document is None:
        return CartStore()
    try:
        return CartStore.from_snapshot(CartSnapshot.model_validate_json(document))
    except ValidationError as e:
        logger.warning(f"Discarding unreadable cart document {key}: {e.error_count()} errors")
        return CartStore()


async def save_cart(storage: SnapshotStorage, owner_id: str, cart: CartStore) -> None:
    """Persist an owner's cart; an empty cart deletes the document."""
    key = storage.cart_key(owner_id)
    if len(cart) == 0:
        await _delete(storage, key)
        return
    await _write(storage, key, cart.to_snapshot().model_dump_json())


async def load_wishlist(storage: SnapshotStorage, owner_id: str) -> WishlistStore:
    """Load an owner's wishlist, or an empty one if nothing usable is stored."""
    key = storage.wishlist_key(owner_id)
    document = await _read(storage, key)
    if document is None:
        return WishlistStore()
    try:
        return WishlistStore.from_snapshot(WishlistSnapshot.model_validate_json(document))
    except ValidationError as e:
        logger.warning(f"Discarding unreadable wishlist document {key}: {e.error_count()} errors")
        return WishlistStore()


async def save_wishlist(storage: SnapshotStorage, owner_id: str, wishlist: WishlistStore) -> None:
    """Persist an owner's wishlist; an empty wishlist deletes the document."""
    key = storage.wishlist_key(owner_id)
    if len(wishlist) == 0:
        await _delete(storage, key)
        return
    await _write(storage, key, wishlist.to_snapshot().model_dump_json())


async def _delete(storage: SnapshotStorage, key: str) -> None:
    try:
        await storage.delete(key)
    except (redis.RedisError, OSError) as e:
        raise PersistenceError(f"Could not delete {key}", detail=str(e)) from e
