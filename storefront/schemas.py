"""
Pydantic request models, one per operation.

``parse_request`` turns a raw payload into the typed model or raises
``ValidationError`` listing every violated field at once.
"""
from __future__ import annotations

from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field, PositiveInt, field_validator
from pydantic import ValidationError as PydanticValidationError

from .errors import ValidationError
from .model import OrderStatus, PaymentMethod


# Integer column ceiling shared by every quantity column
MAX_QUANTITY = 2_147_483_647


class _Request(BaseModel):
    model_config = ConfigDict(extra="ignore", str_strip_whitespace=True)


def _upper(v):
    return v.strip().upper() if isinstance(v, str) else v


# ---------------------------------------------------------------------------
# Identity / catalog
# ---------------------------------------------------------------------------
class RegisterRequest(_Request):
    email: str = Field(min_length=3, max_length=255, pattern=r"^[^@\s]+@[^@\s]+$")
    password: str = Field(min_length=6)
    name: str = Field(min_length=1, max_length=180)

    @field_validator("email")
    @classmethod
    def lower_email(cls, v: str) -> str:
        return v.lower()


class LoginRequest(_Request):
    email: str = Field(min_length=1)
    password: str = Field(min_length=1)

    @field_validator("email")
    @classmethod
    def lower_email(cls, v: str) -> str:
        return v.lower()


class ProductCreateRequest(_Request):
    name: str = Field(min_length=1, max_length=255)
    description: str | None = None
    price: Decimal = Field(ge=0, max_digits=12, decimal_places=2, allow_inf_nan=False)
    stock_quantity: int = Field(default=0, ge=0, le=MAX_QUANTITY)


# ---------------------------------------------------------------------------
# Cart
# ---------------------------------------------------------------------------
class AddCartItemRequest(_Request):
    user_id: PositiveInt
    product_id: PositiveInt
    quantity: PositiveInt = Field(default=1, le=MAX_QUANTITY)


class UpdateCartItemRequest(_Request):
    user_id: PositiveInt
    product_id: PositiveInt
    quantity: PositiveInt = Field(le=MAX_QUANTITY)


class RemoveCartItemRequest(_Request):
    user_id: PositiveInt
    product_id: PositiveInt


# ---------------------------------------------------------------------------
# Orders
# ---------------------------------------------------------------------------
class CheckoutRequest(_Request):
    user_id: PositiveInt


class PaymentRequest(_Request):
    order_id: PositiveInt
    method: PaymentMethod
    # fits Payment.amount_paid Numeric(12, 2)
    amount: Decimal = Field(gt=0, max_digits=12, decimal_places=2, allow_inf_nan=False)

    @field_validator("method", mode="before")
    @classmethod
    def normalize_method(cls, v):
        # case-insensitive match, stored upper case
        return _upper(v)


class StatusUpdateRequest(_Request):
    order_id: PositiveInt
    status: OrderStatus

    @field_validator("status", mode="before")
    @classmethod
    def normalize_status(cls, v):
        return _upper(v)


def _field_name(loc) -> str:
    return ".".join(str(p) for p in loc) or "body"


def parse_request(model: type[BaseModel], payload):
    if payload is None:
        payload = {}
    if not isinstance(payload, dict):
        raise ValidationError.single("body", "must be a JSON object")
    try:
        return model.model_validate(payload)
    except PydanticValidationError as e:
        raise ValidationError(
            [{"field": _field_name(err["loc"]), "message": err["msg"]} for err in e.errors()]
        ) from None
