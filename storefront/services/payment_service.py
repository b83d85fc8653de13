"""Payment initiation and refund business logic service."""

import logging
import uuid

from storefront.core.config import get_settings
from storefront.core.paystack import PaystackClient, PaystackError, get_paystack_client
from storefront.models.cart import ShoppingCart
from storefront.services.cart_service import CartService
from storefront.services.catalog_service import CatalogService
from storefront.services.pricing import apply_discount, calculate_subtotal, to_minor_units

logger = logging.getLogger(__name__)


class PaymentService:
    """Service for opening gateway transactions for carts and refunding them."""

    def __init__(
        self,
        cart_service: CartService | None = None,
        catalog_service: CatalogService | None = None,
        gateway: PaystackClient | None = None,
    ) -> None:
        """Initialize payment service.

        Args:
            cart_service: Optional cart service for testing.
            catalog_service: Optional catalog service for testing.
            gateway: Optional Paystack client for testing.
        """
        self.settings = get_settings()
        self.cart_service = cart_service or CartService()
        self.catalog_service = catalog_service or CatalogService()
        self.gateway = gateway or get_paystack_client()

    async def get_shipping_price(self, cart: ShoppingCart) -> int:
        """Shipping price of the cart's delivery method in minor units (0 if none chosen).

        Raises:
            CatalogError: If the delivery method does not exist.
        """
        delivery_method_id = cart.get("delivery_method_id")
        if delivery_method_id is None:
            return 0

        delivery_method = await self.catalog_service.require_delivery_method(delivery_method_id)
        return to_minor_units(delivery_method["price"])

    async def calculate_amount(self, cart: ShoppingCart) -> int:
        """Amount to charge for a cart, in minor units.

        Item prices are refreshed from the catalog first, so the cart passed
        in is updated in place.

        Raises:
            CatalogError: If a product or the delivery method does not exist.
        """
        shipping = await self.get_shipping_price(cart)
        cart["items"] = await self.catalog_service.refresh_item_prices(cart.get("items") or [])

        subtotal = calculate_subtotal(cart["items"])
        if cart.get("coupon"):
            subtotal = apply_discount(cart["coupon"], subtotal)

        return subtotal + shipping

    async def create_or_update_payment_transaction(
        self,
        cart_id: str,
        buyer_email: str,
    ) -> ShoppingCart:
        """Open a gateway transaction for a cart and store its reference on the cart.

        A new transaction is opened on every call; the previous reference on
        the cart, if any, is replaced.

        Args:
            cart_id: The cart to charge.
            buyer_email: Email of the authenticated buyer.

        Returns:
            dict: The updated cart carrying payment_reference.

        Raises:
            CartNotFoundError: If the cart does not exist.
            CatalogError: If the cart references unknown products or delivery method.
            PaystackError: If the gateway rejects the transaction or stays unavailable.
        """
        cart = await self.cart_service.require_cart(cart_id)
        amount = await self.calculate_amount(cart)

        reference = str(uuid.uuid4())
        logger.info(
            "Initializing payment for cart %s: amount=%d %s, reference=%s",
            cart_id,
            amount,
            self.settings.paystack_currency,
            reference,
        )

        transaction = self.gateway.initialize_transaction(
            email=buyer_email,
            amount=amount,
            reference=reference,
            currency=self.settings.paystack_currency,
        )

        cart["payment_reference"] = transaction.get("reference") or reference
        return await self.cart_service.set_cart(cart)

    async def refund_payment(self, transaction_reference: str) -> tuple[bool, str]:
        """Ask the gateway to refund a transaction in full.

        Args:
            transaction_reference: Reference of the charged transaction.

        Returns:
            tuple: (succeeded, human-readable result message)
        """
        try:
            self.gateway.refund(transaction_reference)
        except PaystackError as e:
            logger.error("Refund of %s failed: %s", transaction_reference, e.message)
            return False, f"Refund failed: {e.message}"

        logger.info("Refund of %s initiated", transaction_reference)
        return True, "Refund initiated successfully"
