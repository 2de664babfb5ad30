"""Integration tests for the API."""

import json
import logging

import pytest
from fastapi.testclient import TestClient

from storefront_core.api.middleware import owner_id_from_path
from storefront_core.api.server import app
from storefront_core.catalog.sources import JsonFileProductSource
from storefront_core.config import get_settings
from storefront_core.observability.logging import StructuredLogFormatter


@pytest.fixture
def client(products) -> TestClient:
    """Create a test client (use context manager so lifespan runs) with the sample catalog."""
    with TestClient(app) as c:
        c.app.state.catalog.load(products)
        yield c


@pytest.fixture
def auth_headers() -> dict:
    """Headers with Bearer token for protected routes."""
    return {"Authorization": f"Bearer {get_settings().api_key}"}


class TestHealthEndpoints:
    """Tests for health and readiness."""

    def test_health_check(self, client: TestClient) -> None:
        """Test health check returns catalog stats."""
        response = client.get("/health")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "healthy"
        assert data["catalog"]["products"] == 5

    def test_ready(self, client: TestClient) -> None:
        """Test readiness with the in-memory backend."""
        response = client.get("/ready")

        assert response.status_code == 200
        assert response.json()["storage"] == "ok"

    def test_response_headers(self, client: TestClient) -> None:
        """Test request id and security headers are set."""
        response = client.get("/health", headers={"X-Request-ID": "req-42"})

        assert response.headers["X-Request-ID"] == "req-42"
        assert response.headers["X-Content-Type-Options"] == "nosniff"


class TestCatalogEndpoints:
    """Tests for catalog queries."""

    def test_requires_auth(self, client: TestClient) -> None:
        """Test catalog routes need an API key."""
        assert client.get("/v1/products").status_code == 401
        assert (
            client.get("/v1/products", headers={"Authorization": "Bearer wrong"}).status_code
            == 401
        )

    def test_list_all(self, client: TestClient, auth_headers: dict) -> None:
        """Test an unfiltered query returns the featured ordering."""
        response = client.get("/v1/products", headers=auth_headers)

        assert response.status_code == 200
        data = response.json()
        assert [p["id"] for p in data["items"]] == ["p1", "p3", "p2", "p5", "p4"]
        assert data["total"] == 5
        assert data["active_filter_count"] == 0
        assert data["query"] == ""

    def test_filters_from_query_string(self, client: TestClient, auth_headers: dict) -> None:
        """Test the shareable query string drives the result."""
        response = client.get(
            "/v1/products?sort=price-low&category=ready-to-wear&utm_source=ig",
            headers=auth_headers,
        )

        data = response.json()
        assert [p["id"] for p in data["items"]] == ["p2", "p5", "p1"]
        assert data["query"] == "category=ready-to-wear&sort=price-low"
        assert data["active_filter_count"] == 1

    def test_price_and_colors(self, client: TestClient, auth_headers: dict) -> None:
        """Test multi-value and price parameters."""
        response = client.get(
            "/v1/products",
            params={"color": "black,mocha", "priceMin": "0", "priceMax": "7000000"},
            headers=auth_headers,
        )

        assert {p["id"] for p in response.json()["items"]} == {"p3", "p4", "p5"}

    def test_malformed_price_is_ignored(self, client: TestClient, auth_headers: dict) -> None:
        """Test a bad price range is dropped instead of failing."""
        response = client.get(
            "/v1/products",
            params={"priceMin": "lots", "priceMax": "100"},
            headers=auth_headers,
        )

        assert response.status_code == 200
        assert response.json()["total"] == 5

    def test_search(self, client: TestClient, auth_headers: dict) -> None:
        """Test typo-tolerant search."""
        response = client.get("/v1/products", params={"search": "trensh"}, headers=auth_headers)

        assert [p["id"] for p in response.json()["items"]] == ["p1"]

    def test_pagination(self, client: TestClient, auth_headers: dict) -> None:
        """Test offset and limit slice the result."""
        response = client.get(
            "/v1/products", params={"offset": 1, "limit": 2}, headers=auth_headers
        )

        data = response.json()
        assert [p["id"] for p in data["items"]] == ["p3", "p2"]
        assert data["count"] == 2
        assert data["total"] == 5

    def test_facets(self, client: TestClient, auth_headers: dict) -> None:
        """Test facet options."""
        response = client.get("/v1/products/facets", headers=auth_headers)

        assert response.status_code == 200
        assert response.json()["sizes"] == ["XS", "S", "M", "L", "XL"]

    def test_get_product(self, client: TestClient, auth_headers: dict) -> None:
        """Test product lookups."""
        assert client.get("/v1/products/p3", headers=auth_headers).json()["name"] == "Leather Tote"
        assert (
            client.get("/v1/products/by-slug/wool-blazer", headers=auth_headers).json()["id"]
            == "p5"
        )

    def test_get_product_not_found(self, client: TestClient, auth_headers: dict) -> None:
        """Test unknown products map to 404."""
        response = client.get("/v1/products/missing", headers=auth_headers)

        assert response.status_code == 404
        assert "missing" in response.json()["detail"]

    def test_related(self, client: TestClient, auth_headers: dict) -> None:
        """Test related products."""
        response = client.get("/v1/products/p1/related", headers=auth_headers)

        assert [p["id"] for p in response.json()] == ["p2", "p5", "p3"]

    def test_refresh(self, client: TestClient, auth_headers: dict) -> None:
        """Test refresh reloads from the configured source."""
        version = client.app.state.catalog.version

        response = client.post("/v1/catalog/refresh", headers=auth_headers)

        assert response.status_code == 200
        assert response.json()["version"] == version + 1

    def test_refresh_unreadable_source(
        self, client: TestClient, auth_headers: dict, tmp_path
    ) -> None:
        """Test an unreadable export is a 503 and the loaded catalog stays."""
        client.app.state.catalog.source = JsonFileProductSource(tmp_path / "absent.json")

        response = client.post("/v1/catalog/refresh", headers=auth_headers)

        assert response.status_code == 503
        assert client.get("/v1/products", headers=auth_headers).json()["total"] == 5


class TestCartEndpoints:
    """Tests for cart routes."""

    def test_add_and_get(self, client: TestClient, auth_headers: dict) -> None:
        """Test adding items and reading totals back."""
        response = client.post(
            "/v1/carts/sess-1/items",
            json={"product_id": "p2", "quantity": 2, "size": "M"},
            headers=auth_headers,
        )

        assert response.status_code == 200
        data = response.json()
        assert data["items"][0]["quantity"] == 2
        assert data["totals"]["subtotal"] == 8_400_000
        assert data["totals"]["shipping_fee"] == 0
        assert data["formatted"]["total"] == "₦84,000"

        response = client.get("/v1/carts/sess-1", headers=auth_headers)
        assert response.json()["totals"]["total_items"] == 2

    def test_shipping_below_threshold(self, client: TestClient, auth_headers: dict) -> None:
        """Test the flat shipping fee below the free-shipping threshold."""
        response = client.post(
            "/v1/carts/sess-1/items", json={"product_id": "p2", "size": "S"}, headers=auth_headers
        )

        totals = response.json()["totals"]
        assert totals["shipping_fee"] == 200_000
        assert totals["free_shipping_remaining"] == 800_000

    def test_out_of_stock(self, client: TestClient, auth_headers: dict) -> None:
        """Test out-of-stock products are rejected with 409."""
        response = client.post(
            "/v1/carts/sess-1/items", json={"product_id": "p4"}, headers=auth_headers
        )

        assert response.status_code == 409

    def test_unknown_product(self, client: TestClient, auth_headers: dict) -> None:
        """Test unknown products are rejected with 404."""
        response = client.post(
            "/v1/carts/sess-1/items", json={"product_id": "missing"}, headers=auth_headers
        )

        assert response.status_code == 404

    def test_invalid_quantity(self, client: TestClient, auth_headers: dict) -> None:
        """Test request validation for quantities."""
        response = client.post(
            "/v1/carts/sess-1/items",
            json={"product_id": "p3", "quantity": 0},
            headers=auth_headers,
        )

        assert response.status_code == 422

    def test_quantity_changes(self, client: TestClient, auth_headers: dict) -> None:
        """Test patch, increment, decrement and delete."""
        client.post("/v1/carts/sess-1/items", json={"product_id": "p3"}, headers=auth_headers)

        response = client.patch(
            "/v1/carts/sess-1/items", json={"product_id": "p3", "quantity": 3}, headers=auth_headers
        )
        assert response.json()["items"][0]["quantity"] == 3

        response = client.post(
            "/v1/carts/sess-1/items/increment", json={"product_id": "p3"}, headers=auth_headers
        )
        assert response.json()["items"][0]["quantity"] == 4

        response = client.post(
            "/v1/carts/sess-1/items/decrement", json={"product_id": "p3"}, headers=auth_headers
        )
        assert response.json()["items"][0]["quantity"] == 3

        response = client.delete(
            "/v1/carts/sess-1/items", params={"product_id": "p3"}, headers=auth_headers
        )
        assert response.json()["items"] == []

    def test_clear(self, client: TestClient, auth_headers: dict) -> None:
        """Test clearing the cart."""
        client.post("/v1/carts/sess-1/items", json={"product_id": "p3"}, headers=auth_headers)

        response = client.delete("/v1/carts/sess-1", headers=auth_headers)

        assert response.json()["totals"]["total"] == 0

    def test_order_draft(self, client: TestClient, auth_headers: dict) -> None:
        """Test building an order draft from the cart."""
        client.post("/v1/carts/sess-1/items", json={"product_id": "p3"}, headers=auth_headers)

        response = client.post(
            "/v1/carts/sess-1/order-draft",
            json={
                "first_name": "Ada",
                "last_name": "Obi",
                "email": "ada@example.com",
                "phone": "+2348000000000",
                "address": "12 Marina Road",
                "city": "Lagos",
                "state": "Lagos",
            },
            headers=auth_headers,
        )

        assert response.status_code == 200
        data = response.json()
        assert data["total"] == 6_000_000
        assert data["items"][0]["product_id"] == "p3"
        assert data["payment_status"] == "pending"

    def test_order_draft_empty_cart(self, client: TestClient, auth_headers: dict) -> None:
        """Test an empty cart cannot be checked out."""
        response = client.post(
            "/v1/carts/sess-empty/order-draft",
            json={
                "first_name": "Ada",
                "last_name": "Obi",
                "email": "ada@example.com",
                "phone": "+2348000000000",
                "address": "12 Marina Road",
                "city": "Lagos",
                "state": "Lagos",
            },
            headers=auth_headers,
        )

        assert response.status_code == 400


class TestWishlistEndpoints:
    """Tests for wishlist routes."""

    def test_save_toggle_and_remove(self, client: TestClient, auth_headers: dict) -> None:
        """Test wishlist membership changes."""
        response = client.post(
            "/v1/wishlists/sess-1/items", json={"product_id": "p1"}, headers=auth_headers
        )
        assert response.json()["total_items"] == 1

        response = client.post("/v1/wishlists/sess-1/items/p3/toggle", headers=auth_headers)
        assert [e["product_id"] for e in response.json()["items"]] == ["p1", "p3"]

        response = client.delete("/v1/wishlists/sess-1/items/p1", headers=auth_headers)
        assert [e["product_id"] for e in response.json()["items"]] == ["p3"]

        response = client.delete("/v1/wishlists/sess-1", headers=auth_headers)
        assert response.json()["total_items"] == 0

    def test_move_to_cart(self, client: TestClient, auth_headers: dict) -> None:
        """Test moving a saved product into the cart."""
        client.post("/v1/wishlists/sess-1/items", json={"product_id": "p2"}, headers=auth_headers)

        response = client.post(
            "/v1/wishlists/sess-1/items/p2/move-to-cart", headers=auth_headers
        )
        assert response.json()["items"] == []

        cart = client.get("/v1/carts/sess-1", headers=auth_headers).json()
        assert [line["product_id"] for line in cart["items"]] == ["p2"]


class _JsonCapture(logging.Handler):
    """Collects records rendered by the structured formatter."""

    def __init__(self) -> None:
        super().__init__()
        self.setFormatter(StructuredLogFormatter())
        self.entries: list[dict] = []

    def emit(self, record: logging.LogRecord) -> None:
        self.entries.append(json.loads(self.format(record)))


@pytest.fixture
def request_logs():
    """Structured records from the request logging middleware."""
    handler = _JsonCapture()
    middleware_logger = logging.getLogger("storefront_core.api.middleware")
    middleware_logger.addHandler(handler)
    yield handler.entries
    middleware_logger.removeHandler(handler)


class TestMiddleware:
    """Tests for request logging and response headers."""

    @pytest.mark.parametrize(
        ("path", "owner_id"),
        [
            ("/v1/carts/sess-1", "sess-1"),
            ("/v1/carts/sess-1/items/increment", "sess-1"),
            ("/v1/wishlists/cust-7/items/p1/toggle", "cust-7"),
            ("/v1/products/p1", None),
            ("/v1/carts", None),
        ],
    )
    def test_owner_id_from_path(self, path: str, owner_id: str | None) -> None:
        """Test owner ids are read from cart and wishlist paths only."""
        assert owner_id_from_path(path) == owner_id

    def test_request_logs_carry_owner(
        self, client: TestClient, auth_headers: dict, request_logs: list
    ) -> None:
        """Test started and completed lines of a cart request include the owner."""
        client.get("/v1/carts/sess-42", headers=auth_headers)

        lines = [
            e for e in request_logs if e["message"] in ("Request started", "Request completed")
        ]
        assert [e["message"] for e in lines] == ["Request started", "Request completed"]
        assert all(e["owner_id"] == "sess-42" for e in lines)

    def test_catalog_request_logs_have_no_owner(
        self, client: TestClient, auth_headers: dict, request_logs: list
    ) -> None:
        """Test requests outside carts and wishlists are not attributed to an owner."""
        client.get("/v1/products", headers=auth_headers)

        assert request_logs
        assert all("owner_id" not in e for e in request_logs)

    def test_cart_responses_not_cached(self, client: TestClient, auth_headers: dict) -> None:
        """Test personal responses are marked no-store."""
        cart = client.get("/v1/wishlists/sess-1", headers=auth_headers)
        catalog = client.get("/v1/products", headers=auth_headers)

        assert cart.headers["Cache-Control"] == "no-store"
        assert "Cache-Control" not in catalog.headers

    def test_malformed_authorization(self, client: TestClient) -> None:
        """Test a scheme without a token is rejected."""
        response = client.get("/v1/products", headers={"Authorization": "Bearer"})

        assert response.status_code == 401
