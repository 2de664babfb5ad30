"""Cart totals and order drafts for the checkout flow.

Payment happens in the external gateway; this module only prepares the
amount to charge and the order record written once payment succeeds.
"""

from storefront_core.cart.store import CartStore
from storefront_core.config import Settings, get_settings
from storefront_core.exceptions import EmptyCartError
from storefront_core.models.order import CartTotals, CustomerDetails, OrderDraft, OrderItemDraft


def compute_totals(cart: CartStore, settings: Settings | None = None) -> CartTotals:
    """
    Subtotal, shipping and total for a cart, in minor units.

    Shipping is free once the subtotal reaches the configured threshold;
    an empty cart pays no shipping.
    """
    settings = settings or get_settings()
    subtotal = cart.get_subtotal()
    total_items = cart.get_total_items()

    if total_items == 0:
        shipping_fee = 0
        remaining = settings.free_shipping_threshold
    elif subtotal >= settings.free_shipping_threshold:
        shipping_fee = 0
        remaining = 0
    else:
        shipping_fee = settings.shipping_fee
        remaining = settings.free_shipping_threshold - subtotal

    tax = 0
    discount = 0
    return CartTotals(
        subtotal=subtotal,
        shipping_fee=shipping_fee,
        tax=tax,
        discount=discount,
        total=subtotal + shipping_fee + tax - discount,
        currency=settings.currency,
        total_items=total_items,
        free_shipping_remaining=remaining,
    )


def build_order_draft(
    cart: CartStore,
    customer: CustomerDetails,
    totals: CartTotals | None = None,
    settings: Settings | None = None,
) -> OrderDraft:
    """
    Build the order record and its items from the current cart.

    Raises:
        EmptyCartError: If the cart has no lines.
    """
    if len(cart) == 0:
        raise EmptyCartError(customer.customer_id)

    totals = totals or compute_totals(cart, settings)
    items = [
        OrderItemDraft(
            product_id=line.product_id,
            product_name=line.name,
            product_sku=line.sku,
            product_image=line.image,
            quantity=line.quantity,
            size=line.size,
            color=line.color,
            unit_price=line.price,
            total_price=line.line_total,
        )
        for line in cart.lines
    ]

    return OrderDraft(
        currency=totals.currency,
        subtotal=totals.subtotal,
        shipping_fee=totals.shipping_fee,
        tax=totals.tax,
        discount=totals.discount,
        total=totals.total,
        customer_id=customer.customer_id,
        customer_name=customer.full_name,
        customer_email=str(customer.email),
        customer_phone=customer.phone,
        shipping_address_line1=customer.address,
        shipping_address_line2=customer.apartment,
        shipping_city=customer.city,
        shipping_state=customer.state,
        shipping_postal_code=customer.postal_code,
        shipping_country=customer.country,
        customer_notes=customer.notes,
        items=items,
    )
