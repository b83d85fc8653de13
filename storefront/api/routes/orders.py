"""Order API routes."""

from uuid import UUID

from fastapi import APIRouter, status

from storefront.api.deps import AdminUser, CurrentBuyer
from storefront.api.middleware.error_handler import BadRequestError, ConflictError, NotFoundError
from storefront.schemas.order import (
    OrderCreate,
    OrderListResponse,
    OrderResponse,
    RefundResponse,
)
from storefront.services.cart_service import CartNotFoundError
from storefront.services.catalog_service import CatalogError
from storefront.services.order_service import OrderService, OrderStateError

router = APIRouter(prefix="/orders", tags=["orders"])


@router.post(
    "",
    response_model=OrderResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create order",
    description="Creates a pending order from a cart whose payment has been initiated.",
)
async def create_order(data: OrderCreate, buyer: CurrentBuyer) -> OrderResponse:
    """Create (or refresh) the pending order for a cart.

    Args:
        data: Cart, delivery method and shipping address.
        buyer: Authenticated buyer.

    Returns:
        OrderResponse: The pending order.

    Raises:
        NotFoundError: 404 if the cart is missing.
        BadRequestError: 400 for invalid cart contents.
        ConflictError: 409 if the payment was not initiated or the order is already paid.
    """
    service = OrderService()

    try:
        order = await service.create_order(buyer.email, data)
    except CartNotFoundError as e:
        raise NotFoundError(str(e)) from e
    except CatalogError as e:
        raise BadRequestError(str(e)) from e
    except OrderStateError as e:
        raise ConflictError(str(e)) from e

    return OrderResponse.model_validate(order)


@router.get(
    "",
    response_model=OrderListResponse,
    summary="List my orders",
)
async def list_orders(buyer: CurrentBuyer) -> OrderListResponse:
    """List all orders of the authenticated buyer."""
    orders = await OrderService().get_orders_for_buyer(buyer.email)
    return OrderListResponse(items=[OrderResponse.model_validate(order) for order in orders])


@router.get(
    "/{order_id}",
    response_model=OrderResponse,
    summary="Get order by ID",
    description="Returns a single order. Only accessible by the buyer who placed it.",
)
async def get_order(order_id: UUID, buyer: CurrentBuyer) -> OrderResponse:
    """Get one of the buyer's orders.

    Raises:
        NotFoundError: 404 if the order does not exist or belongs to someone else.
    """
    order = await OrderService().get_order_for_buyer(order_id, buyer.email)
    if not order:
        raise NotFoundError("Order not found")
    return OrderResponse.model_validate(order)


@router.post(
    "/{order_id}/refund",
    response_model=RefundResponse,
    summary="Refund order",
    description="Refunds a paid order through Paystack. Admin only.",
)
async def refund_order(order_id: UUID, admin: AdminUser) -> RefundResponse:
    """Refund a paid order.

    Raises:
        NotFoundError: 404 if the order does not exist.
        ConflictError: 409 if the order has not been paid.
    """
    try:
        message, order = await OrderService().refund_order(order_id)
    except LookupError as e:
        raise NotFoundError("Order not found") from e
    except OrderStateError as e:
        raise ConflictError(str(e)) from e

    return RefundResponse(message=message, order=OrderResponse.model_validate(order))
