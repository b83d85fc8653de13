"""Order Pydantic schemas for API request/response models."""

from datetime import datetime
from decimal import Decimal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, computed_field

from storefront.models.order import OrderStatus
from storefront.schemas.common import Money
from storefront.schemas.payment import DeliveryMethodSchema


class ShippingAddressSchema(BaseModel):
    """Schema for a shipping address."""

    model_config = ConfigDict(from_attributes=True)

    name: str = Field(min_length=1, description="Recipient name")
    line1: str = Field(min_length=1, description="Address line 1")
    line2: str | None = Field(default=None, description="Address line 2")
    city: str = Field(min_length=1, description="City")
    state: str = Field(min_length=1, description="State or province")
    postal_code: str = Field(min_length=1, description="Postal code")
    country: str = Field(min_length=1, description="Country")

    def format(self) -> str:
        """Single-line address for display."""
        line2 = f", {self.line2}" if self.line2 else ""
        return (
            f"{self.name}, {self.line1}{line2}, {self.city}, "
            f"{self.state}, {self.postal_code}, {self.country}"
        )


class PaymentSummarySchema(BaseModel):
    """Masked card details of the charge that paid an order."""

    model_config = ConfigDict(from_attributes=True)

    last4: str = Field(description="Last four card digits")
    brand: str = Field(description="Card brand")
    exp_month: int = Field(description="Expiry month")
    exp_year: int = Field(description="Expiry year")

    @computed_field  # type: ignore[prop-decorator]
    @property
    def display(self) -> str:
        """Masked card line, e.g. "VISA **** **** **** 4081, Exp: 12/2030"."""
        return f"{self.brand.upper()} **** **** **** {self.last4}, Exp: {self.exp_month}/{self.exp_year}"


class OrderItemSchema(BaseModel):
    """Schema for an ordered product snapshot."""

    model_config = ConfigDict(from_attributes=True)

    product_id: int = Field(description="Product ID")
    product_name: str = Field(description="Product name at order time")
    picture_url: str = Field(default="", description="Product image URL")
    price: Money = Field(description="Unit price at order time")
    quantity: int = Field(ge=1, description="Quantity ordered")


class OrderCreate(BaseModel):
    """Schema for creating an order via POST /orders."""

    model_config = ConfigDict(from_attributes=True)

    cart_id: str = Field(min_length=1, description="Cart to turn into an order")
    delivery_method_id: int = Field(description="Chosen delivery method")
    shipping_address: ShippingAddressSchema = Field(description="Where to ship the order")


class OrderResponse(BaseModel):
    """Schema for order API responses and order notifications."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID = Field(description="Order unique identifier")
    buyer_email: str = Field(description="Buyer email")
    order_date: datetime = Field(description="Creation timestamp")
    shipping_address: ShippingAddressSchema = Field(description="Shipping address")
    delivery_method: DeliveryMethodSchema = Field(description="Delivery method snapshot")
    order_items: list[OrderItemSchema] = Field(description="Ordered items")
    subtotal: Money = Field(description="Sum of item prices")
    discount: Money = Field(default=Decimal(0), description="Coupon discount")
    payment_reference: str = Field(description="Gateway transaction reference")
    payment_summary: PaymentSummarySchema | None = Field(default=None, description="Card used")
    status: OrderStatus = Field(description="Order status")

    @computed_field  # type: ignore[prop-decorator]
    @property
    def shipping_price(self) -> Money:
        return self.delivery_method.price

    @computed_field  # type: ignore[prop-decorator]
    @property
    def total(self) -> Money:
        return self.subtotal - self.discount + self.delivery_method.price


class OrderListResponse(BaseModel):
    """Schema for order list API responses."""

    model_config = ConfigDict(from_attributes=True)

    items: list[OrderResponse] = Field(description="List of orders")


class RefundResponse(BaseModel):
    """Schema for refund API responses."""

    model_config = ConfigDict(from_attributes=True)

    message: str = Field(description="Gateway refund result")
    order: OrderResponse = Field(description="Order after the refund attempt")
