"""Shopping cart persistence service."""

import logging
from datetime import datetime, timedelta, timezone
from typing import Any

from storefront.core.config import get_settings
from storefront.core.supabase import get_supabase_client
from storefront.models.cart import ShoppingCart
from storefront.services.pricing import to_minor_units

logger = logging.getLogger(__name__)

CART_FIELDS = ("id", "items", "delivery_method_id", "payment_reference", "coupon")


class CartNotFoundError(Exception):
    """The requested cart does not exist or has expired."""

    def __init__(self, cart_id: str) -> None:
        self.cart_id = cart_id
        super().__init__(f"Cart {cart_id} not found")


class CartService:
    """Service for storing ephemeral shopping carts keyed by an opaque id."""

    def __init__(self) -> None:
        """Initialize cart service with Supabase client."""
        self.client = get_supabase_client()
        self.settings = get_settings()

    @staticmethod
    def _is_expired(cart: dict[str, Any]) -> bool:
        expires_at = cart.get("expires_at")
        if not expires_at:
            return False
        if isinstance(expires_at, str):
            expires_at = datetime.fromisoformat(expires_at.replace("Z", "+00:00"))
        return expires_at < datetime.now(timezone.utc)

    async def get_cart(self, cart_id: str) -> ShoppingCart | None:
        """Get a cart by ID.

        Expired carts are deleted and reported as missing.

        Args:
            cart_id: The cart's opaque ID.

        Returns:
            dict | None: The cart data or None if not found.
        """
        response = (
            self.client.table("carts")
            .select("*")
            .eq("id", cart_id)
            .maybe_single()
            .execute()
        )

        cart = response.data if response and response.data else None
        if cart and self._is_expired(cart):
            logger.info("Cart %s has expired", cart_id)
            await self.delete_cart(cart_id)
            return None

        return cart

    async def require_cart(self, cart_id: str) -> ShoppingCart:
        """Get a cart or raise CartNotFoundError."""
        cart = await self.get_cart(cart_id)
        if not cart:
            raise CartNotFoundError(cart_id)
        return cart

    async def set_cart(self, cart: dict[str, Any]) -> dict[str, Any]:
        """Create or replace a cart and push its expiry forward.

        Args:
            cart: Cart data (id, items, delivery_method_id, payment_reference, coupon).

        Returns:
            dict: The stored cart.
        """
        expires_at = datetime.now(timezone.utc) + timedelta(days=self.settings.cart_expiry_days)
        row = {field: cart.get(field) for field in CART_FIELDS}
        row["items"] = row["items"] or []
        row["expires_at"] = expires_at.isoformat()

        response = self.client.table("carts").upsert(row).execute()

        return response.data[0] if response.data else row

    @staticmethod
    def _priced_contents(cart: dict[str, Any]) -> tuple[list[tuple[int, int, int]], int | None]:
        items = sorted(
            (int(item["product_id"]), int(item["quantity"]), to_minor_units(item["price"]))
            for item in cart.get("items") or []
        )
        return items, cart.get("delivery_method_id")

    async def save_client_cart(self, cart: dict[str, Any]) -> ShoppingCart:
        """Store a cart sent by the storefront client.

        The coupon and payment reference are never taken from the client:
        the coupon only changes through CouponService, and the reference only
        through payment initiation. The stored reference is dropped when the
        items or delivery method change, because the amount it was issued
        for no longer applies.

        Args:
            cart: Cart data as sent by the client.

        Returns:
            dict: The stored cart.
        """
        stored = await self.get_cart(cart["id"])
        cart = {**cart, "coupon": None, "payment_reference": None}

        if stored:
            cart["coupon"] = stored.get("coupon")
            if self._priced_contents(stored) == self._priced_contents(cart):
                cart["payment_reference"] = stored.get("payment_reference")
            elif stored.get("payment_reference"):
                logger.info("Cart %s changed after payment was initiated; reference cleared", cart["id"])

        return await self.set_cart(cart)

    async def delete_cart(self, cart_id: str) -> bool:
        """Delete a cart.

        Returns:
            bool: True if a cart was deleted.
        """
        response = self.client.table("carts").delete().eq("id", cart_id).execute()
        return bool(response.data)

    async def delete_cart_by_payment_reference(self, payment_reference: str) -> int:
        """Delete the cart(s) that initiated a payment.

        Returns:
            int: Number of carts deleted.
        """
        response = (
            self.client.table("carts")
            .delete()
            .eq("payment_reference", payment_reference)
            .execute()
        )
        return len(response.data) if response.data else 0
