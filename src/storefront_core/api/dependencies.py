"""Request-scoped access to the services created at startup."""

from fastapi import Request

from storefront_core.cart.service import CartService, WishlistService
from storefront_core.catalog.service import CatalogService
from storefront_core.exceptions import ServiceNotReadyError


def get_catalog(request: Request) -> CatalogService:
    """Get the catalog service from app state."""
    catalog = getattr(request.app.state, "catalog", None)
    if catalog is None:
        raise ServiceNotReadyError("Catalog service not initialized")
    return catalog


def get_cart_service(request: Request) -> CartService:
    """Get the cart service from app state."""
    carts = getattr(request.app.state, "carts", None)
    if carts is None:
        raise ServiceNotReadyError("Cart service not initialized")
    return carts


def get_wishlist_service(request: Request) -> WishlistService:
    """Get the wishlist service from app state."""
    wishlists = getattr(request.app.state, "wishlists", None)
    if wishlists is None:
        raise ServiceNotReadyError("Wishlist service not initialized")
    return wishlists
