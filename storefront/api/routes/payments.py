"""Payment API routes: transaction initiation, delivery methods and the Paystack webhook."""

import logging

from fastapi import APIRouter, HTTPException, Request, status

from storefront.api.deps import CurrentBuyer
from storefront.api.middleware.error_handler import BadRequestError, NotFoundError, PaymentGatewayError
from storefront.core.paystack import PaystackError
from storefront.schemas.cart import ShoppingCartSchema
from storefront.schemas.payment import DeliveryMethodSchema
from storefront.services.cart_service import CartNotFoundError
from storefront.services.catalog_service import CatalogError, CatalogService
from storefront.services.payment_service import PaymentService
from storefront.services.webhook_service import InvalidSignatureError, WebhookService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/payments", tags=["payments"])

SIGNATURE_HEADER = "x-paystack-signature"


@router.get(
    "/delivery-methods",
    response_model=list[DeliveryMethodSchema],
    summary="List delivery methods",
)
async def get_delivery_methods() -> list[DeliveryMethodSchema]:
    """List all delivery methods, cheapest first."""
    methods = await CatalogService().list_delivery_methods()
    return [DeliveryMethodSchema.model_validate(method) for method in methods]


@router.post(
    "/webhook",
    status_code=status.HTTP_200_OK,
    summary="Handle Paystack webhooks",
    description="Receives Paystack webhook events. Requires a valid x-paystack-signature.",
)
async def paystack_webhook(request: Request) -> dict[str, str]:
    """Handle Paystack webhook events.

    The signature is checked against the raw body before anything is parsed.
    Only charge.success is processed; every verified event is acknowledged
    with 200 so Paystack does not redeliver it.

    Args:
        request: FastAPI request object for reading raw body and headers.

    Returns:
        dict: Acknowledgment message.

    Raises:
        HTTPException: 401 if the signature is missing or invalid, 400 if the body is not JSON.
    """
    payload = await request.body()
    service = WebhookService()

    try:
        service.verify_signature(payload, request.headers.get(SIGNATURE_HEADER))
    except InvalidSignatureError as e:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid signature",
        ) from e

    try:
        event = service.parse_event(payload)
    except ValueError as e:
        logger.error("Verified Paystack webhook body is not a valid event: %s", str(e))
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Malformed event payload",
        ) from e

    logger.info("Processing Paystack webhook event: %s", event.event)
    outcome = await service.handle_event(event)
    logger.info("Paystack webhook event %s processed: %s", event.event, outcome.value)

    return {"status": "received"}


@router.post(
    "/{cart_id}",
    response_model=ShoppingCartSchema,
    summary="Create or update payment transaction",
    description="Opens a Paystack transaction for the cart and stores its reference on the cart.",
)
async def create_or_update_payment_transaction(
    cart_id: str,
    buyer: CurrentBuyer,
) -> ShoppingCartSchema:
    """Initiate payment for a cart.

    The frontend opens the Paystack popup with the returned payment_reference.

    Args:
        cart_id: The cart to charge.
        buyer: Authenticated buyer; their email is sent to the gateway.

    Returns:
        ShoppingCartSchema: The cart carrying the new payment reference.

    Raises:
        NotFoundError: 404 if the cart does not exist.
        BadRequestError: 400 if it references unknown items.
        PaymentGatewayError: 502 if Paystack fails or rejects the transaction.
    """
    service = PaymentService()

    try:
        cart = await service.create_or_update_payment_transaction(cart_id, buyer_email=buyer.email)
    except CartNotFoundError as e:
        raise NotFoundError(str(e)) from e
    except CatalogError as e:
        raise BadRequestError(str(e)) from e
    except PaystackError as e:
        raise PaymentGatewayError(
            f"Paystack transaction failed: {e.message}",
            gateway_status=e.status_code,
        ) from e

    return ShoppingCartSchema.model_validate(cart)
