# storefront/errors.py
"""
Error taxonomy shared by the orchestrators and the HTTP layer.

    ValidationError  -> 400  malformed input, raised before storage is touched
    NotFound         -> 404  referenced row is absent
    ConflictError    -> 400  business-rule rejection (empty cart, stock, state, amount)
    TransientError   -> 503  lock timeout / deadlock / lost connection, safe to retry
    FatalError       -> 500  constraint violation that validation should have prevented
"""
from __future__ import annotations

import structlog
from flask import jsonify
from werkzeug.exceptions import HTTPException

from .utils.api import api_error

logger = structlog.get_logger(__name__)


class ShopError(Exception):
    code = "error"
    http_status = 500

    def __init__(self, message: str, **details):
        super().__init__(message)
        self.message = message
        self.details = details

    def as_api(self) -> dict:
        return {"error": self.code, **self.details}


class ValidationError(ShopError):
    code = "validation_error"
    http_status = 400

    def __init__(self, fields: list[dict]):
        names = ", ".join(f["field"] for f in fields) or "request"
        super().__init__(f"invalid request: {names}", fields=fields)
        self.fields = fields

    @classmethod
    def single(cls, field: str, message: str) -> "ValidationError":
        return cls([{"field": field, "message": message}])


class NotFound(ShopError):
    code = "not_found"
    http_status = 404

    def __init__(self, entity: str, entity_id):
        super().__init__(f"{entity} {entity_id} not found", entity=entity, id=entity_id)
        self.entity = entity
        self.entity_id = entity_id


class ConflictError(ShopError):
    code = "conflict"
    http_status = 400


class EmptyCart(ConflictError):
    code = "empty_cart"

    def __init__(self, user_id: int):
        super().__init__("cart is empty", user_id=user_id)


class InsufficientStock(ConflictError):
    code = "insufficient_stock"

    def __init__(self, product_id: int, requested: int, available: int):
        super().__init__(
            f"insufficient stock for product {product_id}: requested {requested}, available {available}",
            product_id=product_id,
            requested=requested,
            available=available,
        )
        self.product_id = product_id


class InvalidState(ConflictError):
    code = "invalid_state"

    def __init__(self, order_id: int, status: str, expected: str):
        super().__init__(
            f"order {order_id} is {status}, expected {expected}",
            order_id=order_id,
            order_status=status,
            expected=expected,
        )
        self.status = status


class InsufficientPayment(ConflictError):
    code = "insufficient_payment"

    def __init__(self, order_id: int, amount, total):
        super().__init__(
            f"payment {amount} is less than order total {total}",
            order_id=order_id,
            amount=str(amount),
            total_amount=str(total),
        )


class TransientError(ShopError):
    code = "transient_error"
    http_status = 503

    def __init__(self, message: str = "storage temporarily unavailable, please retry", **details):
        super().__init__(message, **details)


class FatalError(ShopError):
    code = "fatal_error"
    http_status = 500


class ConstraintViolation(FatalError):
    code = "constraint_violation"


def register_error_handlers(app):
    @app.errorhandler(ShopError)
    def handle_shop_error(e: ShopError):
        if e.http_status >= 500:
            logger.error("request.failed", error=e.code, message=e.message, **e.details)
        r = jsonify(api_error(e.message, e.as_api()))
        r.status_code = e.http_status
        if isinstance(e, TransientError):
            r.headers["Retry-After"] = "1"
        return r

    @app.errorhandler(HTTPException)
    def handle_http_error(e: HTTPException):
        r = jsonify(api_error(e.description or e.name, {"error": e.name.lower().replace(" ", "_")}))
        r.status_code = e.code or 500
        return r

    @app.errorhandler(Exception)
    def handle_unexpected(e: Exception):
        logger.exception("request.unhandled_error", error=type(e).__name__)
        r = jsonify(api_error("internal server error", {"error": "internal_error"}))
        r.status_code = 500
        return r
