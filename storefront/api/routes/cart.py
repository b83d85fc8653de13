"""Shopping cart and coupon API routes."""

from fastapi import APIRouter, status

from storefront.api.middleware.error_handler import BadRequestError, NotFoundError
from storefront.schemas.cart import AppCouponSchema, ShoppingCartSchema
from storefront.services.cart_service import CartNotFoundError, CartService
from storefront.services.coupon_service import CouponService, InvalidCouponError

router = APIRouter(prefix="/cart", tags=["cart"])


@router.get(
    "/{cart_id}",
    response_model=ShoppingCartSchema,
    summary="Get cart",
    description="Returns the cart, or an empty cart with this ID if none is stored.",
)
async def get_cart(cart_id: str) -> ShoppingCartSchema:
    """Get a cart by ID.

    Args:
        cart_id: Opaque cart ID generated by the client.

    Returns:
        ShoppingCartSchema: The stored cart or an empty one.
    """
    cart = await CartService().get_cart(cart_id)
    if not cart:
        return ShoppingCartSchema(id=cart_id)
    return ShoppingCartSchema.model_validate(cart)


@router.post(
    "",
    response_model=ShoppingCartSchema,
    summary="Save cart",
    description="Creates or replaces the cart with the given ID.",
)
async def update_cart(cart: ShoppingCartSchema) -> ShoppingCartSchema:
    """Create or replace a cart.

    Any coupon or payment reference in the body is ignored; the stored
    cart keeps its own.

    Args:
        cart: The full cart to store.

    Returns:
        ShoppingCartSchema: The stored cart.
    """
    stored = await CartService().save_client_cart(cart.model_dump(mode="json"))
    return ShoppingCartSchema.model_validate(stored)


@router.delete(
    "/{cart_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete cart",
)
async def delete_cart(cart_id: str) -> None:
    """Delete a cart.

    Raises:
        NotFoundError: 404 if the cart does not exist.
    """
    if not await CartService().delete_cart(cart_id):
        raise NotFoundError("Cart not found")


@router.post(
    "/{cart_id}/coupon/{code}",
    response_model=ShoppingCartSchema,
    summary="Apply coupon",
    description="Applies a coupon to the cart. Payment must be re-initiated afterwards.",
)
async def apply_coupon(cart_id: str, code: str) -> ShoppingCartSchema:
    """Apply a coupon code to a cart.

    Raises:
        BadRequestError: 400 if the code is invalid.
        NotFoundError: 404 if the cart does not exist.
    """
    service = CouponService()
    try:
        cart = await service.apply_coupon(cart_id, code)
    except InvalidCouponError as e:
        raise BadRequestError(str(e)) from e
    except CartNotFoundError as e:
        raise NotFoundError(str(e)) from e

    return ShoppingCartSchema.model_validate(cart)


@router.delete(
    "/{cart_id}/coupon",
    response_model=ShoppingCartSchema,
    summary="Remove coupon",
)
async def remove_coupon(cart_id: str) -> ShoppingCartSchema:
    """Remove any coupon from a cart.

    Raises:
        NotFoundError: 404 if the cart does not exist.
    """
    try:
        cart = await CouponService().remove_coupon(cart_id)
    except CartNotFoundError as e:
        raise NotFoundError(str(e)) from e

    return ShoppingCartSchema.model_validate(cart)


# Coupons router - mounted separately at /coupons
coupons_router = APIRouter(prefix="/coupons", tags=["coupons"])


@coupons_router.get(
    "/{code}",
    response_model=AppCouponSchema,
    summary="Validate coupon",
    description="Returns the coupon if the code is active.",
)
async def validate_coupon(code: str) -> AppCouponSchema:
    """Validate a coupon code.

    Raises:
        BadRequestError: 400 if the code is unknown or inactive.
    """
    coupon = await CouponService().validate_coupon(code)
    if not coupon:
        raise BadRequestError("Invalid coupon code")
    return AppCouponSchema.model_validate(coupon)
