"""Shopping cart model type definitions for database operations."""

from datetime import datetime
from decimal import Decimal
from typing import TypedDict


class CartItem(TypedDict):
    """Structure for a single item in a cart.

    Stored as part of the items JSONB array. The price is the one seen by the
    buyer when the item was added and is re-validated before payment.
    """

    product_id: int
    product_name: str
    price: Decimal
    quantity: int
    picture_url: str
    brand: str
    type: str


class AppCoupon(TypedDict, total=False):
    """Coupon row, also copied onto the cart when applied."""

    code: str
    name: str
    amount_off: Decimal | None
    percent_off: Decimal | None
    active: bool


class ShoppingCart(TypedDict):
    """Cart table row representation."""

    id: str
    items: list[CartItem]
    delivery_method_id: int | None
    payment_reference: str | None
    coupon: AppCoupon | None
    expires_at: datetime
