"""FastAPI application server."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import redis.asyncio as redis
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

from storefront_core.api.cart_routes import router as cart_router
from storefront_core.api.middleware import RequestLoggingMiddleware, SecurityHeadersMiddleware
from storefront_core.api.routes import router
from storefront_core.cart.persistence import (
    MemorySnapshotStorage,
    RedisSnapshotStorage,
    SnapshotStorage,
)
from storefront_core.cart.service import CartService, WishlistService
from storefront_core.catalog.service import CatalogService
from storefront_core.catalog.sources import (
    JsonFileProductSource,
    ProductSource,
    StaticProductSource,
)
from storefront_core.config import Settings, get_settings
from storefront_core.exceptions import CatalogSourceError, StorefrontError
from storefront_core.observability.logging import configure_logging
from storefront_core.observability.telemetry import (
    TelemetryConfig,
    init_telemetry,
    shutdown_telemetry,
)

logger = logging.getLogger(__name__)


def create_storage(settings: Settings) -> SnapshotStorage:
    """Build the configured cart/wishlist snapshot storage."""
    if settings.storage_backend == "redis":
        client = redis.from_url(settings.redis_url, decode_responses=True)
        ttl = settings.cart_ttl_days * 24 * 3600 if settings.cart_ttl_days > 0 else None
        return RedisSnapshotStorage(client, namespace=settings.storage_namespace, ttl_seconds=ttl)
    return MemorySnapshotStorage(namespace=settings.storage_namespace)


def create_product_source(settings: Settings) -> ProductSource:
    """Build the configured catalog source (empty catalog when no file is set)."""
    if settings.products_file:
        return JsonFileProductSource(settings.products_file)
    return StaticProductSource([])


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """
    Application lifespan manager.

    Initializes and shuts down all components:
    - Structured logging
    - OpenTelemetry tracing
    - Snapshot storage (memory or Redis)
    - Catalog, cart and wishlist services
    """
    settings = get_settings()

    configure_logging(level=settings.log_level, json_format=settings.log_json)

    logger.info("Starting Storefront Core...")

    if settings.service_environment == "production":
        if settings.api_key in ("", "dev-api-key"):
            logger.warning("Production: API_KEY is default or empty. Set a strong API_KEY.")
        if "*" in settings.cors_origins:
            logger.warning(
                "Production: CORS_ORIGINS allows all origins (*). Restrict to your front-end domains."
            )
        if settings.storage_backend == "memory":
            logger.warning("Production: carts are kept in memory and lost on restart.")

    if settings.enable_tracing:
        init_telemetry(
            TelemetryConfig(
                service_name=settings.service_name,
                service_version=settings.api_version,
                environment=settings.service_environment,
                otlp_endpoint=settings.otlp_endpoint,
            )
        )
        logger.info("OpenTelemetry initialized")

    storage = create_storage(settings)
    if await storage.check():
        logger.info(f"Snapshot storage ready ({settings.storage_backend})")
    else:
        logger.warning(f"Snapshot storage not reachable ({settings.storage_backend})")

    catalog = CatalogService(create_product_source(settings), cache_size=settings.query_cache_size)
    try:
        await catalog.refresh()
    except CatalogSourceError:
        # /ready reports 503 until a refresh succeeds
        logger.error("Catalog not loaded at startup", exc_info=True)

    cache_options = {
        "cache_size": settings.owner_cache_size,
        "cache_ttl_seconds": settings.owner_cache_ttl_seconds,
    }
    carts = CartService(storage, catalog, **cache_options)
    app.state.storage = storage
    app.state.catalog = catalog
    app.state.carts = carts
    app.state.wishlists = WishlistService(storage, catalog, carts=carts, **cache_options)

    logger.info("Storefront Core ready")

    yield

    logger.info("Shutting down Storefront Core...")

    await storage.close()
    shutdown_telemetry()
    logger.info("Shutdown complete")


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = get_settings()

    app = FastAPI(
        title=settings.api_title,
        version=settings.api_version,
        description=(
            "Storefront Core API. Catalog filtering, search and sorting with "
            "shareable query strings, plus server-held carts and wishlists."
        ),
        lifespan=lifespan,
    )

    @app.exception_handler(StorefrontError)
    async def storefront_error_handler(request: Request, exc: StorefrontError):
        from starlette.responses import JSONResponse

        return JSONResponse(
            status_code=exc.status_code,
            content={"detail": exc.detail},
        )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_middleware(SecurityHeadersMiddleware)
    app.add_middleware(RequestLoggingMiddleware)

    app.include_router(router)
    app.include_router(cart_router)

    # Readiness probe; no auth required
    @app.get("/ready", include_in_schema=False)
    async def ready(request: Request):
        """Readiness: 200 if the catalog is loaded and storage is reachable, 503 otherwise."""
        catalog = getattr(request.app.state, "catalog", None)
        storage = getattr(request.app.state, "storage", None)
        catalog_ok = catalog is not None and catalog.is_loaded
        storage_ok = storage is not None and await storage.check()
        payload = {
            "status": "ready" if catalog_ok and storage_ok else "not_ready",
            "catalog": "ok" if catalog_ok else "error",
            "storage": "ok" if storage_ok else "error",
        }
        if catalog_ok and storage_ok:
            return payload
        from starlette.responses import JSONResponse

        return JSONResponse(status_code=503, content=payload)

    if settings.enable_metrics:

        @app.get("/metrics", include_in_schema=False)
        async def metrics():
            """Prometheus metrics endpoint."""
            from prometheus_client import CONTENT_TYPE_LATEST, generate_latest
            from starlette.responses import Response

            return Response(
                content=generate_latest(),
                media_type=CONTENT_TYPE_LATEST,
            )

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "storefront_core.api.server:app",
        host="0.0.0.0",
        port=8000,
        reload=True,
    )
