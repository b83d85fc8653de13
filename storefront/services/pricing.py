"""Money arithmetic shared by payment initiation, order creation and reconciliation.

All totals are computed in minor currency units (cents, kobo) as integers.
Prices arrive from the database as numeric values in major units and are
converted through Decimal, never through float arithmetic.
"""

from collections.abc import Iterable, Mapping
from decimal import ROUND_HALF_UP, Decimal
from typing import Any

MINOR_UNITS_PER_MAJOR = Decimal(100)


def to_decimal(value: Any) -> Decimal:
    """Convert a numeric column value (str, int, float or Decimal) to Decimal."""
    if isinstance(value, Decimal):
        return value
    if value is None:
        return Decimal(0)
    return Decimal(str(value))


def to_minor_units(amount: Any) -> int:
    """Convert a major-unit amount to integer minor units."""
    minor = to_decimal(amount) * MINOR_UNITS_PER_MAJOR
    return int(minor.quantize(Decimal(1), rounding=ROUND_HALF_UP))


def from_minor_units(amount: int) -> Decimal:
    """Convert integer minor units back to a two-place major-unit Decimal."""
    return (Decimal(amount) / MINOR_UNITS_PER_MAJOR).quantize(Decimal("0.01"))


def calculate_subtotal(items: Iterable[Mapping[str, Any]]) -> int:
    """Sum price * quantity over cart or order items, in minor units."""
    return sum(to_minor_units(item["price"]) * int(item["quantity"]) for item in items)


def apply_discount(coupon: Mapping[str, Any] | None, amount: int) -> int:
    """Apply a coupon to an amount in minor units.

    The flat amount comes off first, then the percentage of what remains.
    The result never goes below zero.

    Args:
        coupon: Coupon with optional amount_off (major units) and percent_off.
        amount: Amount in minor units.

    Returns:
        int: Discounted amount in minor units.
    """
    if not coupon:
        return amount

    if coupon.get("amount_off"):
        amount -= to_minor_units(coupon["amount_off"])

    if coupon.get("percent_off"):
        discount = Decimal(amount) * to_decimal(coupon["percent_off"]) / MINOR_UNITS_PER_MAJOR
        amount -= int(discount)

    return max(amount, 0)


def order_total_minor_units(order: Mapping[str, Any]) -> int:
    """Recompute an order's total from its own snapshot.

    subtotal(order_items) - discount + delivery price, in minor units.
    """
    subtotal = calculate_subtotal(order.get("order_items") or [])
    discount = to_minor_units(order.get("discount") or 0)
    delivery_method = order.get("delivery_method") or {}
    shipping = to_minor_units(delivery_method.get("price") or 0)
    return subtotal - discount + shipping
