"""Catalog API routes."""

from typing import Any

from fastapi import APIRouter, Depends, Query, Request
from pydantic import BaseModel, Field

from storefront_core.api.dependencies import get_catalog
from storefront_core.api.middleware import verify_api_key
from storefront_core.catalog.facets import CatalogFacets
from storefront_core.catalog.service import CatalogService
from storefront_core.catalog.url_state import decode_filters, encode_filters
from storefront_core.models.product import Product

router = APIRouter()


class HealthResponse(BaseModel):
    """Health check response."""

    status: str
    version: str
    catalog: dict[str, Any] | None = None


class ProductListResponse(BaseModel):
    """One page of a catalog query."""

    items: list[Product]
    count: int = Field(description="Products on this page")
    total: int = Field(description="Products matching the filters")
    catalog_total: int = Field(description="Products in the catalog")
    active_filter_count: int
    query: str = Field(description="Canonical query string for the applied filters")
    offset: int = 0
    limit: int | None = None


class RefreshResponse(BaseModel):
    """Catalog reload result."""

    products: int
    version: int


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Health check",
    description="Check if the service is healthy and the catalog is loaded.",
)
async def health_check(request: Request) -> HealthResponse:
    """
    Health check endpoint.

    Returns service status and catalog size/version when loaded.
    """
    from storefront_core.config import get_settings

    settings = get_settings()
    catalog: CatalogService | None = getattr(request.app.state, "catalog", None)

    stats = None
    if catalog is not None and catalog.is_loaded:
        stats = {"products": len(catalog.products), "version": catalog.version}

    return HealthResponse(
        status="healthy",
        version=settings.api_version,
        catalog=stats,
    )


@router.get(
    "/v1/products",
    response_model=ProductListResponse,
    summary="Query the catalog",
    description=(
        "Filter, search and sort products. Accepts the storefront's shareable "
        "query string: category, subcategory, color, size, priceMin, priceMax, "
        "search, sort."
    ),
)
async def list_products(
    request: Request,
    offset: int = Query(default=0, ge=0),
    limit: int | None = Query(default=None, ge=1, le=200),
    _api_key: str = Depends(verify_api_key),
    catalog: CatalogService = Depends(get_catalog),
) -> ProductListResponse:
    """
    Run a catalog query.

    Malformed filter values never fail the request; they are dropped
    (price range) or simply match nothing (unknown tokens).
    """
    spec = decode_filters(request.query_params)
    results = catalog.search(spec)
    page = results[offset : offset + limit] if limit else results[offset:]

    return ProductListResponse(
        items=page,
        count=len(page),
        total=len(results),
        catalog_total=len(catalog.products),
        active_filter_count=spec.active_filter_count,
        query=encode_filters(spec),
        offset=offset,
        limit=limit,
    )


@router.get(
    "/v1/products/facets",
    response_model=CatalogFacets,
    summary="Filter options",
    description="Categories, colors, sizes, tags and price span of the catalog.",
)
async def get_facets(
    _api_key: str = Depends(verify_api_key),
    catalog: CatalogService = Depends(get_catalog),
) -> CatalogFacets:
    return catalog.facets()


@router.get(
    "/v1/products/by-slug/{slug}",
    response_model=Product,
    summary="Get product by slug",
)
async def get_product_by_slug(
    slug: str,
    _api_key: str = Depends(verify_api_key),
    catalog: CatalogService = Depends(get_catalog),
) -> Product:
    return catalog.get_product_by_slug(slug)


@router.get(
    "/v1/products/{product_id}",
    response_model=Product,
    summary="Get product",
)
async def get_product(
    product_id: str,
    _api_key: str = Depends(verify_api_key),
    catalog: CatalogService = Depends(get_catalog),
) -> Product:
    return catalog.get_product(product_id)


@router.get(
    "/v1/products/{product_id}/related",
    response_model=list[Product],
    summary="Related products",
    description="Same-category products first, then products sharing a tag.",
)
async def get_related_products(
    product_id: str,
    limit: int = Query(default=4, ge=1, le=24),
    _api_key: str = Depends(verify_api_key),
    catalog: CatalogService = Depends(get_catalog),
) -> list[Product]:
    return catalog.related_products(product_id, limit=limit)


@router.post(
    "/v1/catalog/refresh",
    response_model=RefreshResponse,
    summary="Reload the catalog",
    description="Fetch products from the configured source and invalidate cached queries.",
)
async def refresh_catalog(
    _api_key: str = Depends(verify_api_key),
    catalog: CatalogService = Depends(get_catalog),
) -> RefreshResponse:
    count = await catalog.refresh()
    return RefreshResponse(products=count, version=catalog.version)
