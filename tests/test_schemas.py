from decimal import Decimal

import pytest

from storefront.errors import ValidationError
from storefront.model import OrderStatus, PaymentMethod
from storefront.schemas import (
    MAX_QUANTITY,
    AddCartItemRequest,
    PaymentRequest,
    ProductCreateRequest,
    RegisterRequest,
    StatusUpdateRequest,
    UpdateCartItemRequest,
    parse_request,
)


def test_payment_request_normalizes_method():
    req = parse_request(PaymentRequest, {"order_id": "3", "method": "mobile_banking", "amount": "10.5"})
    assert req.order_id == 3
    assert req.method is PaymentMethod.MOBILE_BANKING
    assert req.amount == Decimal("10.5")


def test_status_request_accepts_lower_case():
    req = parse_request(StatusUpdateRequest, {"order_id": 1, "status": "cancelled"})
    assert req.status is OrderStatus.CANCELLED


def test_all_violations_are_listed():
    with pytest.raises(ValidationError) as exc:
        parse_request(RegisterRequest, {"email": "nope", "password": "123"})
    assert {f["field"] for f in exc.value.fields} == {"email", "password", "name"}
    assert "email" in exc.value.message


def test_cart_quantity_defaults_to_one():
    req = parse_request(AddCartItemRequest, {"user_id": 1, "product_id": 2})
    assert req.quantity == 1


@pytest.mark.parametrize("payload", [None, {}])
def test_missing_body_reports_required_fields(payload):
    with pytest.raises(ValidationError) as exc:
        parse_request(ProductCreateRequest, payload)
    assert {f["field"] for f in exc.value.fields} == {"name", "price"}


def test_body_must_be_an_object():
    with pytest.raises(ValidationError) as exc:
        parse_request(PaymentRequest, ["QRIS", 10])
    assert exc.value.fields == [{"field": "body", "message": "must be a JSON object"}]


@pytest.mark.parametrize("model", [AddCartItemRequest, UpdateCartItemRequest])
def test_cart_quantity_fits_an_integer_column(model):
    req = parse_request(model, {"user_id": 1, "product_id": 2, "quantity": MAX_QUANTITY})
    assert req.quantity == MAX_QUANTITY

    with pytest.raises(ValidationError) as exc:
        parse_request(model, {"user_id": 1, "product_id": 2, "quantity": 10**20})
    assert [f["field"] for f in exc.value.fields] == ["quantity"]


def test_product_stock_fits_an_integer_column():
    with pytest.raises(ValidationError) as exc:
        parse_request(ProductCreateRequest, {"name": "Kopi", "price": "1", "stock_quantity": MAX_QUANTITY + 1})
    assert [f["field"] for f in exc.value.fields] == ["stock_quantity"]


def test_payment_amount_up_to_ten_billion():
    req = parse_request(PaymentRequest, {"order_id": 1, "method": "VA", "amount": "9999999999.99"})
    assert req.amount == Decimal("9999999999.99")


@pytest.mark.parametrize("amount", ["1e20", "10000000000.00", "0.001", "12.345"])
def test_payment_amount_must_fit_money_column(amount):
    with pytest.raises(ValidationError) as exc:
        parse_request(PaymentRequest, {"order_id": 1, "method": "VA", "amount": amount})
    assert [f["field"] for f in exc.value.fields] == ["amount"]
