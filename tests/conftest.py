"""Pytest configuration and fixtures."""

import os
import sys
from pathlib import Path

import pytest

# Add src to path for imports
src_path = Path(__file__).parent.parent / "src"
sys.path.insert(0, str(src_path))

# Set test environment variables
os.environ.setdefault("API_KEY", "test-api-key")
os.environ.setdefault("STORAGE_BACKEND", "memory")
os.environ.setdefault("LOG_JSON", "false")


@pytest.fixture(scope="session")
def project_root() -> Path:
    """Get the project root directory."""
    return Path(__file__).parent.parent


@pytest.fixture
def product_records() -> list[dict]:
    """Raw product rows as the hosted database returns them (mixed key styles)."""
    return [
        {
            "id": "p1",
            "name": "Tailored Trench Coat",
            "slug": "tailored-trench-coat",
            "sku": "RTW-001",
            "category": "ready-to-wear",
            "subcategory": "women",
            "price": 8_500_000,
            "color": "mocha",
            "size": ["XS", "S", "M", "L"],
            "tags": ["new", "best-seller"],
            "material": "wool gabardine",
            "description": "Double-breasted trench in Italian wool",
            "in_stock": True,
            "stock_quantity": 5,
            "low_stock_threshold": 2,
            "created_at": "2024-03-01T10:00:00Z",
            "featured": True,
            "views_count": 120,
        },
        {
            "id": "p2",
            "name": "Silk Slip Dress",
            "slug": "silk-slip-dress",
            "category": "ready-to-wear",
            "subcategory": "women",
            "price": 4_200_000,
            "color": "ivory",
            "size": ["S", "M"],
            "tags": ["new"],
            "material": "silk",
            "inStock": True,
            "createdAt": "2024-05-10T09:00:00Z",
            "viewsCount": 300,
        },
        {
            "id": "p3",
            "name": "Leather Tote",
            "slug": "leather-tote",
            "category": "bags",
            "subcategory": "totes",
            "price": 6_000_000,
            "color": "black",
            "size": [],
            "tags": ["best-seller"],
            "material": "calf leather",
            "in_stock": True,
            "created_at": "2024-01-15T12:00:00Z",
            "featured": True,
            "views_count": 50,
        },
        {
            "id": "p4",
            "name": "Cashmere Scarf",
            "slug": "cashmere-scarf",
            "category": "accessories",
            "subcategory": "scarves",
            "price": 1_500_000,
            "color": "mocha",
            "size": None,
            "tags": None,
            "in_stock": False,
            "created_at": None,
            "views_count": 10,
        },
        {
            "id": "p5",
            "name": "Wool Blazer",
            "slug": "wool-blazer",
            "category": "ready-to-wear",
            "subcategory": "men",
            "price": 7_000_000,
            "color": "black",
            "size": ["M", "L", "XL"],
            "tags": [],
            "material": "wool",
            "in_stock": True,
            "stock_quantity": 3,
            "created_at": "2024-04-20T08:00:00Z",
            "views_count": 300,
        },
    ]


@pytest.fixture
def products(product_records: list[dict]) -> list:
    """Validated sample products, in catalog order."""
    from storefront_core.catalog.sources import normalize_records

    return normalize_records(product_records)


@pytest.fixture
def product_map(products: list) -> dict:
    """Sample products by id."""
    return {product.id: product for product in products}


@pytest.fixture
def metrics():
    """Metrics registry isolated from the process-wide Prometheus registry."""
    from prometheus_client import CollectorRegistry

    from storefront_core.observability.metrics import MetricsRegistry

    return MetricsRegistry(CollectorRegistry())


@pytest.fixture
def catalog(products: list, metrics):
    """Loaded catalog service over the sample products."""
    from storefront_core.catalog.service import CatalogService
    from storefront_core.catalog.sources import StaticProductSource

    service = CatalogService(StaticProductSource(products), metrics=metrics)
    service.load(products)
    return service
