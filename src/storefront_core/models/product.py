"""Product model and data-source boundary normalization."""

from datetime import datetime, timezone
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

# Raw records from the hosted database mix snake_case and camelCase keys.
FIELD_ALIASES: dict[str, str] = {
    "inStock": "in_stock",
    "createdAt": "created_at",
    "viewsCount": "views_count",
    "favoritesCount": "favorites_count",
    "stockQuantity": "stock_quantity",
    "lowStockThreshold": "low_stock_threshold",
}

NULLABLE_DEFAULTED = ("size", "tags", "in_stock", "featured", "views_count", "favorites_count", "currency")


class Product(BaseModel):
    """
    Catalog product, read-only from the engine's point of view.

    Prices are integer minor units (kobo). ``in_stock`` is an explicit flag
    and is never reconciled with ``stock_quantity``.
    """

    model_config = ConfigDict(
        frozen=True,
        extra="ignore",
        json_schema_extra={
            "examples": [
                {
                    "id": "p1",
                    "name": "Tailored Trench Coat",
                    "slug": "tailored-trench-coat",
                    "category": "ready-to-wear",
                    "subcategory": "women",
                    "price": 8500000,
                    "color": "mocha",
                    "size": ["XS", "S", "M", "L"],
                    "tags": ["new", "best-seller"],
                    "in_stock": True,
                }
            ]
        },
    )

    id: str = Field(description="Stable product identifier")
    name: str = Field(description="Display name, searched fuzzily")
    slug: str | None = Field(default=None, description="URL handle")
    sku: str | None = None
    description: str | None = None
    material: str | None = None
    image: str | None = None

    # Categorization
    category: str | None = None
    subcategory: str | None = None
    color: str | None = Field(default=None, description="Single color tag")
    size: list[str] = Field(default_factory=list, description="Ordered size tags; empty = sizeless")
    tags: list[str] = Field(default_factory=list, description="Badge labels such as 'new'")

    # Pricing
    price: int = Field(ge=0, description="Price in minor currency units")
    currency: str = Field(default="NGN")

    # Inventory
    stock_quantity: int | None = Field(default=None, ge=0)
    low_stock_threshold: int | None = Field(default=None, ge=0)
    in_stock: bool = True

    # Ranking signals
    created_at: datetime | None = None
    featured: bool = False
    views_count: int = Field(default=0, ge=0)
    favorites_count: int = Field(default=0, ge=0)

    @model_validator(mode="before")
    @classmethod
    def _normalize_record(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        record = dict(data)
        for alias, field_name in FIELD_ALIASES.items():
            if alias in record:
                value = record.pop(alias)
                if record.get(field_name) is None:
                    record[field_name] = value
        if isinstance(record.get("size"), str):
            record["size"] = [record["size"]]
        # Explicit nulls fall back to field defaults
        for key in NULLABLE_DEFAULTED:
            if key in record and record[key] is None:
                del record[key]
        return record

    @field_validator("created_at")
    @classmethod
    def _ensure_aware(cls, value: datetime | None) -> datetime | None:
        # Naive timestamps are taken as UTC so sorting never compares naive with aware
        if value is not None and value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value

    @classmethod
    def from_record(cls, record: dict[str, Any]) -> "Product":
        """Validate one raw record from the external data source."""
        return cls.model_validate(record)

    @property
    def is_sizeless(self) -> bool:
        return not self.size

    @property
    def is_new(self) -> bool:
        return "new" in self.tags

    @property
    def is_best_seller(self) -> bool:
        return "best-seller" in self.tags

    @property
    def is_low_stock(self) -> bool:
        """True when a known quantity is positive but at or below the threshold."""
        if self.stock_quantity is None or self.low_stock_threshold is None:
            return False
        return 0 < self.stock_quantity <= self.low_stock_threshold
