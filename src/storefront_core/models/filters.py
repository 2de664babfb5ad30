"""Filter specification models for catalog queries."""

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


class SortOption(str, Enum):
    """Listing sort policies."""

    PRICE_LOW = "price-low"
    PRICE_HIGH = "price-high"
    NEWEST = "newest"
    POPULAR = "popular"
    FEATURED = "featured"

    @classmethod
    def parse(cls, value: str | None) -> "SortOption":
        """Map a raw value to a sort option, defaulting to FEATURED."""
        if not value:
            return cls.FEATURED
        try:
            return cls(value.strip())
        except ValueError:
            return cls.FEATURED


class PriceRange(BaseModel):
    """Closed price interval in minor units. ``max=None`` means no upper bound."""

    model_config = ConfigDict(frozen=True)

    min: int = 0
    max: int | None = None

    @model_validator(mode="after")
    def check_bounds(self) -> "PriceRange":
        # min <= max whenever max is set
        if self.max is not None and self.min > self.max:
            raise ValueError(f"price range min {self.min} is above max {self.max}")
        return self

    @property
    def is_unbounded(self) -> bool:
        return self.max is None

    def contains(self, price: int) -> bool:
        if price < self.min:
            return False
        return self.max is None or price <= self.max


class FilterSpec(BaseModel):
    """
    Combined category/subcategory/color/size/price/search/sort choices.

    Immutable and hashable so it can key memoized query results. The
    ``with_*`` and ``toggle_*`` helpers return new specs.
    """

    model_config = ConfigDict(frozen=True)

    category: str | None = None
    subcategory: str | None = None
    colors: frozenset[str] = Field(default_factory=frozenset)
    sizes: frozenset[str] = Field(default_factory=frozenset)
    price_range: PriceRange | None = None
    search_query: str = ""
    sort: SortOption = SortOption.FEATURED

    @field_validator("category", "subcategory")
    @classmethod
    def _blank_to_none(cls, value: str | None) -> str | None:
        if value is None or not value.strip():
            return None
        return value

    @field_validator("colors", "sizes", mode="before")
    @classmethod
    def _clean_tokens(cls, value: object) -> object:
        if value is None:
            return frozenset()
        if isinstance(value, str):
            value = [value]
        if isinstance(value, (list, tuple, set, frozenset)):
            return frozenset(str(v).strip() for v in value if str(v).strip())
        return value

    @field_validator("search_query")
    @classmethod
    def _trim_query(cls, value: str) -> str:
        return value.strip()

    @property
    def has_search(self) -> bool:
        return bool(self.search_query)

    @property
    def active_filter_count(self) -> int:
        """Badge count: one per scalar filter, one per selected color and size."""
        count = 0
        if self.category:
            count += 1
        if self.subcategory:
            count += 1
        count += len(self.colors)
        count += len(self.sizes)
        if self.price_range is not None:
            count += 1
        return count

    def with_category(self, category: str | None, *, reset_subcategory: bool = False) -> "FilterSpec":
        """
        Set or clear the category.

        The subcategory is kept unless ``reset_subcategory`` is passed.
        """
        update: dict[str, object] = {"category": category}
        if reset_subcategory:
            update["subcategory"] = None
        return self._updated(**update)

    def with_subcategory(self, subcategory: str | None) -> "FilterSpec":
        return self._updated(subcategory=subcategory)

    def toggle_color(self, color: str) -> "FilterSpec":
        return self._updated(colors=self.colors ^ {color})

    def toggle_size(self, size: str) -> "FilterSpec":
        return self._updated(sizes=self.sizes ^ {size})

    def with_price_range(self, price_range: PriceRange | None) -> "FilterSpec":
        return self._updated(price_range=price_range)

    def with_search(self, search_query: str) -> "FilterSpec":
        return self._updated(search_query=search_query)

    def with_sort(self, sort: SortOption | str) -> "FilterSpec":
        if not isinstance(sort, SortOption):
            sort = SortOption.parse(sort)
        return self._updated(sort=sort)

    def cleared(self) -> "FilterSpec":
        """Drop every filter dimension, keeping search and sort."""
        return FilterSpec(search_query=self.search_query, sort=self.sort)

    def _updated(self, **changes: object) -> "FilterSpec":
        # Revalidate so trimming and blank handling apply to changed fields too
        return FilterSpec.model_validate({**self.model_dump(), **changes})
