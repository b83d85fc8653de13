"""Payment gateway and webhook Pydantic schemas."""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationInfo, field_validator

from storefront.schemas.common import Money

CHARGE_SUCCESS_EVENT = "charge.success"


class DeliveryMethodSchema(BaseModel):
    """Schema for a delivery method, also embedded in orders."""

    model_config = ConfigDict(from_attributes=True)

    id: int = Field(description="Delivery method ID")
    short_name: str = Field(description="Short display name")
    delivery_time: str = Field(description="Expected delivery time")
    description: str = Field(default="", description="Description")
    price: Money = Field(description="Shipping price in major currency units")


class PaystackEvent(BaseModel):
    """Envelope of a Paystack webhook delivery.

    Only the discriminator is interpreted here; the data object is validated
    per event type.
    """

    model_config = ConfigDict(extra="allow")

    event: str = Field(description="Event type, e.g. charge.success")
    data: dict[str, Any] | None = Field(default=None, description="Event payload")

    @field_validator("data", mode="before")
    @classmethod
    def drop_non_object_data(cls, value: Any) -> Any:
        return value if isinstance(value, dict) else None


class CardAuthorization(BaseModel):
    """Card details of a successful charge.

    Paystack sends most of these as strings, and null or empty values for
    some non-card channels; those fall back to neutral placeholders.
    """

    model_config = ConfigDict(extra="ignore", str_strip_whitespace=True)

    last4: str = Field(default="0000", description="Last four card digits")
    card_type: str = Field(default="Unknown", description="Card brand")
    exp_month: int = Field(default=0, description="Expiry month")
    exp_year: int = Field(default=0, description="Expiry year")

    @field_validator("last4", "card_type", "exp_month", "exp_year", mode="before")
    @classmethod
    def default_when_blank(cls, value: Any, info: ValidationInfo) -> Any:
        if value is None or (isinstance(value, str) and not value.strip()):
            return cls.model_fields[info.field_name].default
        if info.field_name in ("last4", "card_type"):
            return str(value)
        return value


class ChargeSuccessData(BaseModel):
    """Fields of a charge.success event needed for reconciliation."""

    model_config = ConfigDict(extra="ignore")

    reference: str = Field(min_length=1, description="Transaction reference")
    amount: int = Field(ge=0, description="Amount paid in minor currency units")
    authorization: CardAuthorization = Field(description="Card authorization details")
