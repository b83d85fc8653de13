"""Coupon lookup and application service."""

import logging
import re

from storefront.core.supabase import get_supabase_client
from storefront.models.cart import AppCoupon, ShoppingCart
from storefront.services.cart_service import CartService

logger = logging.getLogger(__name__)

# Letters, digits and hyphens only, so a code can never act as a LIKE pattern
COUPON_CODE_PATTERN = re.compile(r"^[A-Za-z0-9-]{1,50}$")


class InvalidCouponError(Exception):
    """The coupon code is unknown or inactive."""

    def __init__(self, code: str) -> None:
        self.code = code
        super().__init__(f"Invalid coupon code: {code}")


class CouponService:
    """Service for validating coupons and attaching them to carts."""

    def __init__(self, cart_service: CartService | None = None) -> None:
        """Initialize coupon service.

        Args:
            cart_service: Optional cart service for testing.
        """
        self.client = get_supabase_client()
        self.cart_service = cart_service or CartService()

    async def validate_coupon(self, code: str) -> AppCoupon | None:
        """Look up an active coupon by code, ignoring case.

        Args:
            code: Coupon code entered by the buyer.

        Returns:
            dict | None: The coupon or None if unknown, inactive or malformed.
        """
        code = code.strip()
        if not COUPON_CODE_PATTERN.match(code):
            logger.warning("Rejected malformed coupon code %r", code[:50])
            return None

        response = (
            self.client.table("coupons")
            .select("code, name, amount_off, percent_off, active")
            .ilike("code", code)
            .eq("active", True)
            .limit(1)
            .execute()
        )

        return response.data[0] if response and response.data else None

    async def apply_coupon(self, cart_id: str, code: str) -> ShoppingCart:
        """Attach a coupon to a cart.

        The cart's payment reference is cleared because the amount to pay
        changes; payment has to be re-initiated.

        Raises:
            InvalidCouponError: If the code is unknown or inactive.
            CartNotFoundError: If the cart does not exist.
        """
        coupon = await self.validate_coupon(code)
        if not coupon:
            raise InvalidCouponError(code)

        cart = await self.cart_service.require_cart(cart_id)
        cart["coupon"] = {
            "code": coupon["code"],
            "name": coupon.get("name") or "",
            "amount_off": coupon.get("amount_off"),
            "percent_off": coupon.get("percent_off"),
        }
        cart["payment_reference"] = None

        logger.info("Applied coupon %s to cart %s", coupon["code"], cart_id)
        return await self.cart_service.set_cart(cart)

    async def remove_coupon(self, cart_id: str) -> ShoppingCart:
        """Detach any coupon from a cart.

        Raises:
            CartNotFoundError: If the cart does not exist.
        """
        cart = await self.cart_service.require_cart(cart_id)
        if cart.get("coupon"):
            cart["coupon"] = None
            cart["payment_reference"] = None
            cart = await self.cart_service.set_cart(cart)
        return cart
