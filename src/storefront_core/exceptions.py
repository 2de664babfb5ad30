"""Domain exceptions for the storefront API.

These map to consistent HTTP responses when handled by the global exception handler.
The catalog engine itself never raises; these cover lookups, stock and storage.
"""


class StorefrontError(Exception):
    """Base exception for storefront domain errors."""

    def __init__(
        self,
        message: str,
        *,
        status_code: int = 500,
        detail: str | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.detail = detail or message


class ServiceNotReadyError(StorefrontError):
    """Raised when the catalog or a service is not initialized."""

    def __init__(self, message: str = "Service not initialized", detail: str | None = None) -> None:
        super().__init__(message, status_code=503, detail=detail or message)


class StorefrontValidationError(StorefrontError):
    """Raised when request input is invalid."""

    def __init__(self, message: str, detail: str | None = None) -> None:
        super().__init__(message, status_code=400, detail=detail or message)


class ProductNotFoundError(StorefrontError):
    """Raised when a product id or slug does not resolve."""

    def __init__(self, product_id: str, detail: str | None = None) -> None:
        self.product_id = product_id
        message = f"Product not found: {product_id}"
        super().__init__(message, status_code=404, detail=detail or message)


class InsufficientStockError(StorefrontError):
    """Raised when a requested quantity cannot be satisfied."""

    def __init__(self, product_id: str, requested: int, available: int | None) -> None:
        self.product_id = product_id
        self.requested = requested
        self.available = available
        if available is None:
            message = f"Product {product_id} is out of stock"
        else:
            message = (
                f"Insufficient stock for product {product_id}: "
                f"requested {requested}, available {available}"
            )
        super().__init__(message, status_code=409)


class EmptyCartError(StorefrontError):
    """Raised when an order draft is requested for an empty cart."""

    def __init__(self, owner_id: str | None = None) -> None:
        message = "Cart is empty" if owner_id is None else f"Cart is empty for {owner_id}"
        super().__init__(message, status_code=400)


class PersistenceError(StorefrontError):
    """Raised when a cart or wishlist document cannot be written."""

    def __init__(self, message: str, detail: str | None = None) -> None:
        super().__init__(message, status_code=503, detail=detail or message)


class CatalogSourceError(StorefrontError):
    """Raised when the product source cannot be read."""

    def __init__(self, message: str, detail: str | None = None) -> None:
        super().__init__(message, status_code=503, detail=detail or message)
