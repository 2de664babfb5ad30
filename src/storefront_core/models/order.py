"""Checkout totals and order draft models."""

from pydantic import BaseModel, EmailStr, Field


class CartTotals(BaseModel):
    """Derived monetary totals for a cart, all in minor units."""

    subtotal: int = 0
    shipping_fee: int = 0
    tax: int = 0
    discount: int = 0
    total: int = 0
    currency: str = "NGN"
    total_items: int = 0
    free_shipping_remaining: int = Field(
        default=0,
        description="Amount still needed to qualify for free shipping (0 once qualified)",
    )

    @property
    def qualifies_for_free_shipping(self) -> bool:
        return self.total_items > 0 and self.free_shipping_remaining == 0


class CustomerDetails(BaseModel):
    """Contact and shipping details collected at checkout."""

    first_name: str
    last_name: str
    email: EmailStr
    phone: str
    address: str
    apartment: str | None = None
    city: str
    state: str
    postal_code: str | None = None
    country: str = "Nigeria"
    notes: str | None = None
    customer_id: str | None = None

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()


class OrderItemDraft(BaseModel):
    """Order item written alongside the order record."""

    product_id: str
    product_name: str
    product_sku: str | None = None
    product_image: str | None = None
    quantity: int = Field(ge=1)
    size: str | None = None
    color: str | None = None
    unit_price: int = Field(ge=0)
    total_price: int = Field(ge=0)


class OrderDraft(BaseModel):
    """
    Order record handed to the data source once the payment gateway confirms.

    Status fields start as pending; the payment flow owns every transition.
    """

    status: str = "pending"
    payment_status: str = "pending"
    currency: str = "NGN"
    subtotal: int
    shipping_fee: int
    tax: int = 0
    discount: int = 0
    total: int

    customer_id: str | None = None
    customer_name: str
    customer_email: str
    customer_phone: str
    shipping_address_line1: str
    shipping_address_line2: str | None = None
    shipping_city: str
    shipping_state: str
    shipping_postal_code: str | None = None
    shipping_country: str
    customer_notes: str | None = None

    items: list[OrderItemDraft] = Field(default_factory=list)
