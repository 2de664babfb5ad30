"""Query-string codec for shareable filter state.

Encoding is canonical: fixed key order, set values sorted and comma-joined,
absent dimensions omitted. Decoding never raises; anything malformed turns
into "no filter" for that dimension.
"""

import logging
from collections.abc import Mapping
from urllib.parse import parse_qsl, urlencode

from storefront_core.models.filters import FilterSpec, PriceRange, SortOption

logger = logging.getLogger(__name__)

# Every key this codec owns, in canonical order
FILTER_KEYS = (
    "category",
    "subcategory",
    "color",
    "size",
    "priceMin",
    "priceMax",
    "search",
    "sort",
)

# Serializable stand-in for an unbounded upper price
UNBOUNDED_SENTINEL = "Infinity"
_UNBOUNDED_ALIASES = {"infinity", "inf"}


def _join(values: frozenset[str]) -> str:
    return ",".join(sorted(values))


def _split(raw: str | None) -> frozenset[str]:
    if not raw:
        return frozenset()
    return frozenset(part.strip() for part in raw.split(",") if part.strip())


def _parse_price(raw: str | None) -> int | None:
    if raw is None:
        return None
    try:
        return int(raw.strip())
    except ValueError:
        return None


def filter_params(spec: FilterSpec) -> list[tuple[str, str]]:
    """Canonical (key, value) pairs for a spec, absent dimensions omitted."""
    params: list[tuple[str, str]] = []
    if spec.category:
        params.append(("category", spec.category))
    if spec.subcategory:
        params.append(("subcategory", spec.subcategory))
    if spec.colors:
        params.append(("color", _join(spec.colors)))
    if spec.sizes:
        params.append(("size", _join(spec.sizes)))
    if spec.price_range is not None:
        price_range = spec.price_range
        params.append(("priceMin", str(price_range.min)))
        params.append(
            ("priceMax", UNBOUNDED_SENTINEL if price_range.max is None else str(price_range.max))
        )
    if spec.search_query:
        params.append(("search", spec.search_query))
    if spec.sort != SortOption.FEATURED:
        params.append(("sort", spec.sort.value))
    return params


def encode_filters(spec: FilterSpec) -> str:
    """Encode a spec as a canonical query string (no leading '?')."""
    return urlencode(filter_params(spec))


def merge_into_query(existing: str, spec: FilterSpec) -> str:
    """
    Write a spec into an existing query string.

    Keys the codec owns are set when present and deleted when absent;
    unrelated keys (tracking parameters and the like) keep their position.
    """
    kept = [
        (key, value)
        for key, value in parse_qsl(existing.lstrip("?"), keep_blank_values=True)
        if key not in FILTER_KEYS
    ]
    return urlencode(kept + filter_params(spec))


def _decode_price_range(params: Mapping[str, str]) -> PriceRange | None:
    raw_min = params.get("priceMin")
    raw_max = params.get("priceMax")
    if not raw_min or not raw_max:
        return None

    minimum = _parse_price(raw_min)
    if minimum is None:
        logger.debug("Ignoring malformed priceMin %r", raw_min)
        return None

    if raw_max.strip().lower() in _UNBOUNDED_ALIASES:
        return PriceRange(min=minimum, max=None)

    maximum = _parse_price(raw_max)
    if maximum is None or maximum < minimum:
        logger.debug("Ignoring malformed price range %r..%r", raw_min, raw_max)
        return None
    return PriceRange(min=minimum, max=maximum)


def decode_filters(source: str | Mapping[str, str]) -> FilterSpec:
    """
    Rebuild a spec from a query string or an already-parsed mapping.

    Unknown category/color/size tokens are kept as-is (they just match
    nothing). Unknown sort values fall back to featured.
    """
    if isinstance(source, str):
        params: Mapping[str, str] = dict(parse_qsl(source.lstrip("?"), keep_blank_values=True))
    else:
        params = source

    return FilterSpec(
        category=params.get("category") or None,
        subcategory=params.get("subcategory") or None,
        colors=_split(params.get("color")),
        sizes=_split(params.get("size")),
        price_range=_decode_price_range(params),
        search_query=params.get("search") or "",
        sort=SortOption.parse(params.get("sort")),
    )
