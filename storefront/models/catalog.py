"""Catalog model type definitions for database operations."""

from decimal import Decimal
from typing import TypedDict


class Product(TypedDict):
    """Product table row representation."""

    id: int
    name: str
    description: str
    price: Decimal
    picture_url: str
    type: str
    brand: str
    quantity_in_stock: int


class DeliveryMethod(TypedDict):
    """Delivery method table row representation.

    Also stored as a snapshot inside each order's delivery_method JSONB column.
    """

    id: int
    short_name: str
    delivery_time: str
    description: str
    price: Decimal
