"""Payment gateway webhook verification and order reconciliation."""

import hashlib
import hmac
import logging
from datetime import datetime, timezone
from enum import Enum
from typing import Any

from pydantic import ValidationError

from storefront.core.config import get_settings
from storefront.core.notifications import NotificationHub, get_notification_hub
from storefront.models.order import Order, OrderUpdate
from storefront.schemas.order import OrderResponse
from storefront.schemas.payment import CHARGE_SUCCESS_EVENT, ChargeSuccessData, PaystackEvent
from storefront.services.cart_service import CartService
from storefront.services.order_service import OrderService
from storefront.services.pricing import order_total_minor_units

logger = logging.getLogger(__name__)


class ReconciliationOutcome(str, Enum):
    """What processing a webhook event did."""

    RECEIVED = "received"
    MISMATCH = "mismatch"
    DUPLICATE = "duplicate"
    ORDER_NOT_FOUND = "order_not_found"
    INVALID_PAYLOAD = "invalid_payload"
    IGNORED = "ignored"


class InvalidSignatureError(Exception):
    """The webhook signature is missing or does not match the body."""


def compute_signature(payload: bytes, secret: str) -> str:
    """HMAC-SHA512 of the raw body keyed with the secret, as lowercase hex."""
    return hmac.new(secret.encode("utf-8"), payload, hashlib.sha512).hexdigest()


class WebhookService:
    """Service for confirming payments reported by Paystack webhooks.

    The order must already exist in pending state, created at checkout
    under the transaction reference. Confirmation moves it to a terminal
    state exactly once, however many times the gateway delivers the event.
    """

    def __init__(
        self,
        order_service: OrderService | None = None,
        cart_service: CartService | None = None,
        hub: NotificationHub | None = None,
    ) -> None:
        """Initialize webhook service.

        Args:
            order_service: Optional order service for testing.
            cart_service: Optional cart service for testing.
            hub: Optional notification hub for testing.
        """
        self.settings = get_settings()
        self.cart_service = cart_service or CartService()
        self.order_service = order_service or OrderService(cart_service=self.cart_service)
        self.hub = hub or get_notification_hub()

    def verify_signature(self, payload: bytes, signature: str | None) -> None:
        """Check the signature header against the untouched raw body.

        Args:
            payload: Raw request body bytes, before any JSON parsing.
            signature: Value of the x-paystack-signature header.

        Raises:
            InvalidSignatureError: If the header is missing or does not match.
        """
        secret = self.settings.paystack_secret_key
        if not secret:
            logger.error("Paystack secret key not configured; cannot verify webhooks")
            raise InvalidSignatureError("Webhook secret is not configured")

        if not signature:
            logger.warning("Paystack webhook received without signature header")
            raise InvalidSignatureError("Missing signature")

        expected = compute_signature(payload, secret).encode()
        # Headers are latin-1 decoded; compare bytes so non-ASCII input is a mismatch
        if not hmac.compare_digest(expected, signature.strip().encode("latin-1", errors="replace")):
            logger.warning("Paystack webhook signature verification failed")
            raise InvalidSignatureError("Invalid signature")

    @staticmethod
    def parse_event(payload: bytes) -> PaystackEvent:
        """Parse a verified body into the event envelope.

        Raises:
            ValueError: If the body is not a JSON object with an event field.
        """
        return PaystackEvent.model_validate_json(payload)

    async def handle_event(self, event: PaystackEvent) -> ReconciliationOutcome:
        """Dispatch a verified event. Only charge.success is acted upon."""
        if event.event == CHARGE_SUCCESS_EVENT:
            return await self.handle_charge_success(event.data)

        logger.debug("Ignoring Paystack event: %s", event.event)
        return ReconciliationOutcome.IGNORED

    async def handle_charge_success(self, data: dict[str, Any] | None) -> ReconciliationOutcome:
        """Reconcile a successful charge with its pending order.

        Args:
            data: The event's data object, None when the event carried none.

        Returns:
            ReconciliationOutcome: What happened to the order.
        """
        try:
            charge = ChargeSuccessData.model_validate(data)
        except ValidationError as e:
            logger.error(
                "Paystack charge.success event is missing required data: %s",
                e.errors(include_url=False),
            )
            return ReconciliationOutcome.INVALID_PAYLOAD

        order = await self.order_service.get_order_by_payment_reference(charge.reference)
        if not order:
            logger.critical("CRITICAL: Order with payment reference %s not found", charge.reference)
            return ReconciliationOutcome.ORDER_NOT_FOUND

        if order["status"] != "pending":
            logger.info(
                "Order %s already reconciled (status: %s), ignoring repeated charge %s",
                order["id"],
                order["status"],
                charge.reference,
            )
            return ReconciliationOutcome.DUPLICATE

        expected_amount = order_total_minor_units(order)
        if expected_amount == charge.amount:
            new_status = "payment_received"
        else:
            new_status = "payment_mismatch"
            logger.warning(
                "Payment mismatch for order %s. Expected %d, but received %d",
                order["id"],
                expected_amount,
                charge.amount,
            )

        update_data: OrderUpdate = {
            "status": new_status,
            "payment_summary": {
                "last4": charge.authorization.last4,
                "brand": charge.authorization.card_type,
                "exp_month": charge.authorization.exp_month,
                "exp_year": charge.authorization.exp_year,
            },
            "updated_at": datetime.now(timezone.utc).isoformat(),
        }

        updated = await self.order_service.update_order_if_pending(order["id"], update_data)
        if not updated:
            logger.info("Order %s was reconciled concurrently, skipping", order["id"])
            return ReconciliationOutcome.DUPLICATE

        logger.info("Order %s marked as %s", order["id"], new_status)

        await self._notify_buyer(updated)

        if new_status == "payment_received":
            await self._discard_cart(charge.reference)
            return ReconciliationOutcome.RECEIVED

        return ReconciliationOutcome.MISMATCH

    async def _notify_buyer(self, order: Order) -> None:
        """Push the finalized order to the buyer. Failures never propagate."""
        try:
            payload = OrderResponse.model_validate(order).model_dump(mode="json")
            await self.hub.send_order_complete(order["buyer_email"], payload)
        except Exception as e:
            logger.warning("Order complete notification for %s failed: %s", order.get("id"), str(e))

    async def _discard_cart(self, payment_reference: str) -> None:
        """Delete the cart that was paid for. Failures never propagate."""
        try:
            deleted = await self.cart_service.delete_cart_by_payment_reference(payment_reference)
            if deleted:
                logger.debug("Deleted %d cart(s) for payment %s", deleted, payment_reference)
        except Exception as e:
            logger.warning("Failed to delete cart for payment %s: %s", payment_reference, str(e))
