"""Product sources: the boundary where external records become Products."""

import asyncio
import json
import logging
from abc import ABC, abstractmethod
from collections.abc import Iterable
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from storefront_core.exceptions import CatalogSourceError
from storefront_core.models.product import Product

logger = logging.getLogger(__name__)


def normalize_records(records: Iterable[Any]) -> list[Product]:
    """
    Validate raw records once, at the boundary.

    Soft-deleted records (non-null ``deleted_at``) are dropped. Records that
    fail validation are logged and skipped so one bad row never empties the
    storefront.
    """
    products: list[Product] = []
    for index, record in enumerate(records):
        if not isinstance(record, dict):
            logger.warning(
                "Skipping non-object product record",
                extra={"index": index, "record_type": type(record).__name__},
            )
            continue
        if record.get("deleted_at") is not None:
            continue
        try:
            products.append(Product.from_record(record))
        except ValidationError as e:
            logger.warning(
                "Skipping invalid product record",
                extra={"index": index, "product_id": record.get("id"), "errors": e.error_count()},
            )
    return products


class ProductSource(ABC):
    """Where the catalog's product list comes from."""

    name: str = "abstract"

    @abstractmethod
    async def fetch_products(self) -> list[Product]:
        """Fetch the full, normalized product list."""
        ...


class StaticProductSource(ProductSource):
    """Products held in memory (seed data, tests)."""

    name = "static"

    def __init__(self, records: Iterable[dict[str, Any] | Product]) -> None:
        self._records = list(records)

    async def fetch_products(self) -> list[Product]:
        products: list[Product] = []
        for record in self._records:
            if isinstance(record, Product):
                products.append(record)
            else:
                products.extend(normalize_records([record]))
        return products


class JsonFileProductSource(ProductSource):
    """
    Products exported to a JSON file.

    Accepts either a bare list of records or ``{"products": [...]}``.
    """

    name = "json_file"

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)

    def _read(self) -> Any:
        with open(self.path, encoding="utf-8") as f:
            return json.load(f)

    async def fetch_products(self) -> list[Product]:
        try:
            data = await asyncio.to_thread(self._read)
        except (OSError, json.JSONDecodeError) as e:
            logger.error(f"Failed to read product export {self.path}: {e}")
            raise CatalogSourceError(
                f"Product export unreadable: {self.path}", detail="Catalog source unavailable"
            ) from e

        records = data.get("products", []) if isinstance(data, dict) else data
        if not isinstance(records, list):
            raise CatalogSourceError(
                f"Product export has no record list: {self.path}",
                detail="Catalog source unavailable",
            )
        products = normalize_records(records)
        logger.info(f"Loaded {len(products)} products from {self.path}")
        return products
