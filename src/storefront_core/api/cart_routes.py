"""Cart and wishlist API routes."""

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, ConfigDict, Field

from storefront_core.api.dependencies import get_cart_service, get_wishlist_service
from storefront_core.api.middleware import verify_api_key
from storefront_core.cart.service import CartService, WishlistService
from storefront_core.cart.store import CartStore
from storefront_core.cart.wishlist import WishlistStore
from storefront_core.checkout import build_order_draft, compute_totals
from storefront_core.models.cart import CartLine, WishlistEntry
from storefront_core.models.order import CartTotals, CustomerDetails, OrderDraft
from storefront_core.money import format_price

router = APIRouter(dependencies=[Depends(verify_api_key)])


class LineRef(BaseModel):
    """Identity of a cart line."""

    product_id: str
    size: str | None = None
    color: str | None = None


class AddItemRequest(LineRef):
    """Request body for adding a product variant."""

    model_config = ConfigDict(
        json_schema_extra={
            "examples": [{"product_id": "p1", "quantity": 2, "size": "M", "color": "mocha"}]
        }
    )

    quantity: int = Field(default=1, gt=0)


class UpdateQuantityRequest(LineRef):
    """Request body for setting a line quantity (0 or less removes the line)."""

    quantity: int


class CartResponse(BaseModel):
    """Cart lines with derived totals."""

    owner_id: str
    items: list[CartLine]
    totals: CartTotals
    formatted: dict[str, str] = Field(description="Display strings for the totals")


class WishlistItemRequest(BaseModel):
    """Request body for saving a product."""

    product_id: str


class WishlistResponse(BaseModel):
    """Saved products."""

    owner_id: str
    items: list[WishlistEntry]
    total_items: int


def _cart_response(owner_id: str, cart: CartStore) -> CartResponse:
    totals = compute_totals(cart)
    return CartResponse(
        owner_id=owner_id,
        items=cart.lines,
        totals=totals,
        formatted={
            "subtotal": format_price(totals.subtotal, totals.currency),
            "shipping_fee": format_price(totals.shipping_fee, totals.currency),
            "total": format_price(totals.total, totals.currency),
            "free_shipping_remaining": format_price(
                totals.free_shipping_remaining, totals.currency
            ),
        },
    )


def _wishlist_response(owner_id: str, wishlist: WishlistStore) -> WishlistResponse:
    return WishlistResponse(
        owner_id=owner_id,
        items=wishlist.items,
        total_items=wishlist.total_items(),
    )


# ---------------------------------------------------------------------------
# Cart
# ---------------------------------------------------------------------------


@router.get("/v1/carts/{owner_id}", response_model=CartResponse, summary="Get cart")
async def get_cart(
    owner_id: str,
    carts: CartService = Depends(get_cart_service),
) -> CartResponse:
    return _cart_response(owner_id, await carts.get_cart(owner_id))


@router.post(
    "/v1/carts/{owner_id}/items",
    response_model=CartResponse,
    summary="Add to cart",
    description="Adds a variant; an existing line for the same product, size and color is merged.",
)
async def add_cart_item(
    owner_id: str,
    body: AddItemRequest,
    carts: CartService = Depends(get_cart_service),
) -> CartResponse:
    cart = await carts.add_item(owner_id, body.product_id, body.quantity, body.size, body.color)
    return _cart_response(owner_id, cart)


@router.patch(
    "/v1/carts/{owner_id}/items",
    response_model=CartResponse,
    summary="Set line quantity",
)
async def update_cart_item(
    owner_id: str,
    body: UpdateQuantityRequest,
    carts: CartService = Depends(get_cart_service),
) -> CartResponse:
    cart = await carts.update_quantity(
        owner_id, body.product_id, body.quantity, body.size, body.color
    )
    return _cart_response(owner_id, cart)


@router.post(
    "/v1/carts/{owner_id}/items/increment",
    response_model=CartResponse,
    summary="Increase line quantity by one",
)
async def increment_cart_item(
    owner_id: str,
    body: LineRef,
    carts: CartService = Depends(get_cart_service),
) -> CartResponse:
    cart = await carts.increment_quantity(owner_id, body.product_id, body.size, body.color)
    return _cart_response(owner_id, cart)


@router.post(
    "/v1/carts/{owner_id}/items/decrement",
    response_model=CartResponse,
    summary="Decrease line quantity by one",
    description="A line at quantity 1 is removed.",
)
async def decrement_cart_item(
    owner_id: str,
    body: LineRef,
    carts: CartService = Depends(get_cart_service),
) -> CartResponse:
    cart = await carts.decrement_quantity(owner_id, body.product_id, body.size, body.color)
    return _cart_response(owner_id, cart)


@router.delete(
    "/v1/carts/{owner_id}/items",
    response_model=CartResponse,
    summary="Remove line",
    description="Removing a line that is not in the cart is a no-op.",
)
async def remove_cart_item(
    owner_id: str,
    product_id: str = Query(),
    size: str | None = Query(default=None),
    color: str | None = Query(default=None),
    carts: CartService = Depends(get_cart_service),
) -> CartResponse:
    cart = await carts.remove_item(owner_id, product_id, size, color)
    return _cart_response(owner_id, cart)


@router.delete("/v1/carts/{owner_id}", response_model=CartResponse, summary="Clear cart")
async def clear_cart(
    owner_id: str,
    carts: CartService = Depends(get_cart_service),
) -> CartResponse:
    return _cart_response(owner_id, await carts.clear_cart(owner_id))


@router.post(
    "/v1/carts/{owner_id}/order-draft",
    response_model=OrderDraft,
    summary="Build order draft",
    description="Order record and items for the current cart, ready for the payment flow.",
)
async def create_order_draft(
    owner_id: str,
    customer: CustomerDetails,
    carts: CartService = Depends(get_cart_service),
) -> OrderDraft:
    cart = await carts.get_cart(owner_id)
    return build_order_draft(cart, customer)


# ---------------------------------------------------------------------------
# Wishlist
# ---------------------------------------------------------------------------


@router.get("/v1/wishlists/{owner_id}", response_model=WishlistResponse, summary="Get wishlist")
async def get_wishlist(
    owner_id: str,
    wishlists: WishlistService = Depends(get_wishlist_service),
) -> WishlistResponse:
    return _wishlist_response(owner_id, await wishlists.get_wishlist(owner_id))


@router.post(
    "/v1/wishlists/{owner_id}/items",
    response_model=WishlistResponse,
    summary="Save product",
    description="Saving an already saved product changes nothing.",
)
async def add_wishlist_item(
    owner_id: str,
    body: WishlistItemRequest,
    wishlists: WishlistService = Depends(get_wishlist_service),
) -> WishlistResponse:
    return _wishlist_response(owner_id, await wishlists.add_item(owner_id, body.product_id))


@router.post(
    "/v1/wishlists/{owner_id}/items/{product_id}/toggle",
    response_model=WishlistResponse,
    summary="Toggle saved product",
)
async def toggle_wishlist_item(
    owner_id: str,
    product_id: str,
    wishlists: WishlistService = Depends(get_wishlist_service),
) -> WishlistResponse:
    return _wishlist_response(owner_id, await wishlists.toggle_item(owner_id, product_id))


@router.post(
    "/v1/wishlists/{owner_id}/items/{product_id}/move-to-cart",
    response_model=WishlistResponse,
    summary="Move saved product to cart",
)
async def move_wishlist_item_to_cart(
    owner_id: str,
    product_id: str,
    wishlists: WishlistService = Depends(get_wishlist_service),
) -> WishlistResponse:
    return _wishlist_response(owner_id, await wishlists.move_to_cart(owner_id, product_id))


@router.delete(
    "/v1/wishlists/{owner_id}/items/{product_id}",
    response_model=WishlistResponse,
    summary="Remove saved product",
)
async def remove_wishlist_item(
    owner_id: str,
    product_id: str,
    wishlists: WishlistService = Depends(get_wishlist_service),
) -> WishlistResponse:
    return _wishlist_response(owner_id, await wishlists.remove_item(owner_id, product_id))


@router.delete(
    "/v1/wishlists/{owner_id}", response_model=WishlistResponse, summary="Clear wishlist"
)
async def clear_wishlist(
    owner_id: str,
    wishlists: WishlistService = Depends(get_wishlist_service),
) -> WishlistResponse:
    return _wishlist_response(owner_id, await wishlists.clear(owner_id))
