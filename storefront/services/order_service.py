"""Order creation, lookup and refund business logic service."""

import logging
from datetime import datetime, timezone
from uuid import UUID

from storefront.core.supabase import get_supabase_client
from storefront.models.cart import ShoppingCart
from storefront.models.order import Order, OrderItem, OrderUpdate
from storefront.schemas.order import OrderCreate
from storefront.services.cart_service import CartService
from storefront.services.catalog_service import CatalogError, CatalogService
from storefront.services.payment_service import PaymentService
from storefront.services.pricing import (
    apply_discount,
    calculate_subtotal,
    from_minor_units,
)

logger = logging.getLogger(__name__)


class OrderStateError(Exception):
    """The order is not in a state that allows the requested change."""


class OrderService:
    """Service for orders created from carts before payment."""

    def __init__(
        self,
        cart_service: CartService | None = None,
        catalog_service: CatalogService | None = None,
        payment_service: PaymentService | None = None,
    ) -> None:
        """Initialize order service.

        Args:
            cart_service: Optional cart service for testing.
            catalog_service: Optional catalog service for testing.
            payment_service: Optional payment service, only needed for refunds.
        """
        self.client = get_supabase_client()
        self.cart_service = cart_service or CartService()
        self.catalog_service = catalog_service or CatalogService()
        self._payment_service = payment_service

    @property
    def payment_service(self) -> PaymentService:
        """Get payment service."""
        if self._payment_service is None:
            self._payment_service = PaymentService(
                cart_service=self.cart_service,
                catalog_service=self.catalog_service,
            )
        return self._payment_service

    async def _build_order_items(self, cart: ShoppingCart) -> list[OrderItem]:
        """Snapshot cart items.

        Prices come from the cart, where payment initiation last refreshed them
        from the catalog, so the order total matches the amount the gateway
        was asked to charge.
        """
        items = cart.get("items") or []
        if not items:
            raise CatalogError("Cart is empty")

        products = await self.catalog_service.get_products([int(item["product_id"]) for item in items])

        order_items = []
        for item in items:
            product = products.get(int(item["product_id"]))
            if product is None:
                raise CatalogError(f"Product {item['product_id']} in cart not found")
            order_items.append(
                {
                    "product_id": int(product["id"]),
                    "product_name": product["name"],
                    "picture_url": product.get("picture_url") or "",
                    "price": item["price"],
                    "quantity": int(item["quantity"]),
                }
            )
        return order_items

    async def create_order(self, buyer_email: str, data: OrderCreate) -> Order:
        """Create a pending order from a cart whose payment has been initiated.

        An existing pending order for the same payment reference is replaced
        in place, so retrying checkout does not create duplicates.

        Args:
            buyer_email: Email of the authenticated buyer.
            data: Cart, delivery method and shipping address.

        Returns:
            dict: The stored order.

        Raises:
            CartNotFoundError: If the cart does not exist.
            CatalogError: If the cart is empty or references unknown products/delivery method.
            OrderStateError: If payment was not initiated, was initiated with another
                delivery method, or the order is already paid.
        """
        cart = await self.cart_service.require_cart(data.cart_id)

        payment_reference = cart.get("payment_reference")
        if not payment_reference:
            raise OrderStateError("Payment has not been initiated for this cart")

        # The charged amount was priced with the cart's delivery method
        if data.delivery_method_id != cart.get("delivery_method_id"):
            raise OrderStateError("Delivery method differs from the one payment was initiated with")

        delivery_method = await self.catalog_service.require_delivery_method(data.delivery_method_id)
        order_items = await self._build_order_items(cart)

        subtotal = calculate_subtotal(order_items)
        discount = subtotal - apply_discount(cart.get("coupon"), subtotal)

        order_data = {
            "buyer_email": buyer_email,
            "shipping_address": data.shipping_address.model_dump(mode="json"),
            "delivery_method": {
                "id": int(delivery_method["id"]),
                "short_name": delivery_method["short_name"],
                "delivery_time": delivery_method["delivery_time"],
                "description": delivery_method.get("description") or "",
                "price": delivery_method["price"],
            },
            "order_items": order_items,
            "subtotal": float(from_minor_units(subtotal)),
            "discount": float(from_minor_units(discount)),
            "payment_reference": payment_reference,
            "status": "pending",
        }

        existing = await self.get_order_by_payment_reference(payment_reference)
        if existing:
            if existing["status"] != "pending":
                raise OrderStateError("An order for this payment has already been completed")

            order_data["updated_at"] = datetime.now(timezone.utc).isoformat()
            response = (
                self.client.table("orders")
                .update(order_data)
                .eq("id", existing["id"])
                .eq("status", "pending")
                .execute()
            )
            if not response.data:
                raise OrderStateError("An order for this payment has already been completed")

            logger.info("Order %s updated for payment %s", existing["id"], payment_reference)
            return response.data[0]

        response = self.client.table("orders").insert(order_data).execute()
        order = response.data[0]
        logger.info("Order %s created for payment %s", order["id"], payment_reference)
        return order

    async def get_order(self, order_id: UUID) -> Order | None:
        """Get an order by ID.

        Args:
            order_id: The order's UUID.

        Returns:
            dict | None: The order data or None if not found.
        """
        response = (
            self.client.table("orders")
            .select("*")
            .eq("id", str(order_id))
            .maybe_single()
            .execute()
        )

        return response.data if response and response.data else None

    async def get_order_for_buyer(self, order_id: UUID, buyer_email: str) -> Order | None:
        """Get an order only if it belongs to the buyer."""
        response = (
            self.client.table("orders")
            .select("*")
            .eq("id", str(order_id))
            .eq("buyer_email", buyer_email)
            .maybe_single()
            .execute()
        )

        return response.data if response and response.data else None

    async def get_orders_for_buyer(self, buyer_email: str) -> list[Order]:
        """Get all orders of a buyer, newest first.

        Args:
            buyer_email: The buyer's email.

        Returns:
            list[dict]: List of order data.
        """
        response = (
            self.client.table("orders")
            .select("*")
            .eq("buyer_email", buyer_email)
            .order("order_date", desc=True)
            .execute()
        )

        return response.data or []

    async def get_order_by_payment_reference(self, payment_reference: str) -> Order | None:
        """Get the order (with its items) created for a payment reference.

        Args:
            payment_reference: Gateway transaction reference.

        Returns:
            dict | None: The order data or None if not found.
        """
        response = (
            self.client.table("orders")
            .select("*")
            .eq("payment_reference", payment_reference)
            .maybe_single()
            .execute()
        )

        return response.data if response and response.data else None

    async def update_order_if_pending(
        self,
        order_id: UUID | str,
        update_data: OrderUpdate,
    ) -> Order | None:
        """Write status and payment fields only while the order is still pending.

        This is a compare-and-set: if another writer already moved the order
        out of pending, nothing is written.

        Returns:
            dict | None: The updated order, or None if it was no longer pending.
        """
        response = (
            self.client.table("orders")
            .update(update_data)
            .eq("id", str(order_id))
            .eq("status", "pending")
            .execute()
        )

        return response.data[0] if response.data else None

    async def refund_order(self, order_id: UUID) -> tuple[str, Order]:
        """Refund a paid order through the gateway.

        Args:
            order_id: The order's UUID.

        Returns:
            tuple: (gateway result message, order after the attempt)

        Raises:
            LookupError: If the order does not exist.
            OrderStateError: If the order has not been paid.
        """
        order = await self.get_order(order_id)
        if not order:
            raise LookupError(f"Order {order_id} not found")

        if order["status"] != "payment_received":
            raise OrderStateError(f"Only paid orders can be refunded (status: {order['status']})")

        succeeded, message = await self.payment_service.refund_payment(order["payment_reference"])
        if not succeeded:
            return message, order

        response = (
            self.client.table("orders")
            .update(
                {
                    "status": "refunded",
                    "updated_at": datetime.now(timezone.utc).isoformat(),
                }
            )
            .eq("id", str(order_id))
            .eq("status", "payment_received")
            .execute()
        )

        if response.data:
            logger.info("Order %s marked as refunded", order_id)
            return message, response.data[0]

        return message, order
