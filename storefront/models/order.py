"""Order model type definitions for database operations."""

from datetime import datetime
from decimal import Decimal
from typing import Literal, TypedDict
from uuid import UUID

from storefront.models.catalog import DeliveryMethod


# Order status values matching database enum
OrderStatus = Literal["pending", "payment_received", "payment_mismatch", "refunded"]


class ShippingAddress(TypedDict, total=False):
    """Structure for the shipping_address JSONB column."""

    name: str
    line1: str
    line2: str | None
    city: str
    state: str
    postal_code: str
    country: str


class OrderItem(TypedDict):
    """Snapshot of an ordered product, stored in the order_items JSONB array."""

    product_id: int
    product_name: str
    picture_url: str
    price: Decimal
    quantity: int


class PaymentSummary(TypedDict):
    """Masked card details reported by the gateway for a successful charge."""

    last4: str
    brand: str
    exp_month: int
    exp_year: int


class Order(TypedDict):
    """Order table row representation."""

    id: UUID
    buyer_email: str
    order_date: datetime
    shipping_address: ShippingAddress
    delivery_method: DeliveryMethod
    order_items: list[OrderItem]
    subtotal: Decimal
    discount: Decimal
    payment_reference: str
    payment_summary: PaymentSummary | None
    status: OrderStatus
    updated_at: datetime


class OrderUpdate(TypedDict, total=False):
    """Data written back to an order after payment confirmation or refund."""

    status: OrderStatus
    payment_summary: PaymentSummary
    updated_at: str
