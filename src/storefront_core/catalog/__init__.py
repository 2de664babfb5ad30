"""Catalog query engine, search, URL state and product sources."""

from storefront_core.catalog.facets import CatalogFacets, CategoryFacet, build_facets
from storefront_core.catalog.query import active_filter_count, query, sort_products
from storefront_core.catalog.search import score, search
from storefront_core.catalog.service import CatalogService
from storefront_core.catalog.sources import (
    JsonFileProductSource,
    ProductSource,
    StaticProductSource,
)
from storefront_core.catalog.url_state import decode_filters, encode_filters, merge_into_query

__all__ = [
    "CatalogFacets",
    "CatalogService",
    "CategoryFacet",
    "JsonFileProductSource",
    "ProductSource",
    "StaticProductSource",
    "active_filter_count",
    "build_facets",
    "decode_filters",
    "encode_filters",
    "merge_into_query",
    "query",
    "score",
    "search",
    "sort_products",
]
