"""Shopping cart and coupon Pydantic schemas."""

from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field, model_validator

from storefront.schemas.common import Money


class CartItemSchema(BaseModel):
    """Schema for a single cart line item."""

    model_config = ConfigDict(from_attributes=True)

    product_id: int = Field(ge=1, description="Product ID")
    product_name: str = Field(min_length=1, description="Product name")
    price: Money = Field(gt=Decimal(0), description="Unit price in major currency units")
    quantity: int = Field(ge=1, description="Quantity in cart")
    picture_url: str = Field(default="", description="Product image URL")
    brand: str = Field(default="", description="Product brand")
    type: str = Field(default="", description="Product type")


class AppCouponSchema(BaseModel):
    """Schema for a coupon applied to a cart."""

    model_config = ConfigDict(from_attributes=True)

    code: str = Field(min_length=1, description="Coupon code")
    name: str = Field(default="", description="Display name")
    amount_off: Money | None = Field(default=None, ge=Decimal(0), description="Flat discount in major units")
    percent_off: Money | None = Field(
        default=None,
        ge=Decimal(0),
        le=Decimal(100),
        description="Percentage discount",
    )

    @model_validator(mode="after")
    def require_some_discount(self) -> "AppCouponSchema":
        """A coupon must discount something."""
        if self.amount_off is None and self.percent_off is None:
            raise ValueError("Coupon must have amount_off or percent_off")
        return self


class ShoppingCartSchema(BaseModel):
    """Schema for a shopping cart, used for both requests and responses."""

    model_config = ConfigDict(from_attributes=True)

    id: str = Field(min_length=1, max_length=100, description="Opaque cart identifier")
    items: list[CartItemSchema] = Field(default_factory=list, description="Cart line items")
    delivery_method_id: int | None = Field(default=None, description="Selected delivery method")
    payment_reference: str | None = Field(default=None, description="Gateway transaction reference")
    coupon: AppCouponSchema | None = Field(default=None, description="Applied coupon")
