"""Database model type definitions."""

from storefront.models.cart import AppCoupon, CartItem, ShoppingCart
from storefront.models.catalog import DeliveryMethod, Product
from storefront.models.order import (
    Order,
    OrderItem,
    OrderStatus,
    OrderUpdate,
    PaymentSummary,
    ShippingAddress,
)

__all__ = [
    "AppCoupon",
    "CartItem",
    "ShoppingCart",
    "DeliveryMethod",
    "Product",
    "Order",
    "OrderItem",
    "OrderStatus",
    "OrderUpdate",
    "PaymentSummary",
    "ShippingAddress",
]
