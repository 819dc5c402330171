# storefront/cart/routes.py
from __future__ import annotations

import structlog
from flask import request, jsonify
from flask_jwt_extended import jwt_required

from . import bp
from ..schemas import AddCartItemRequest, UpdateCartItemRequest, RemoveCartItemRequest, parse_request
from ..services import get_services
from ..utils.api import api_ok
from ..utils.decorators import current_user_id

logger = structlog.get_logger(__name__)


# ---- standard API response format ------------------------------------------
def ok(msg, data=None, status=200):
    r = jsonify(api_ok(msg, data)); r.status_code = status; return r


def _body() -> dict:
    data = request.get_json(silent=True)
    return data if isinstance(data, dict) else {}


def _cart_view(user_id: int) -> dict:
    svc = get_services()
    with svc.storage.session() as s:
        return svc.cart.view(s, user_id)


# ---- endpoints -------------------------------------------------------------

@bp.get("")
@jwt_required()
def get_cart():
    return ok("cart", _cart_view(current_user_id()))


@bp.post("/items")
@jwt_required()
def add_item():
    """
    Body: { "product_id": int, "quantity" | "qty": int }
    Adds to the existing quantity when the product is already in the cart.
    """
    data = _body()
    req = parse_request(AddCartItemRequest, {
        "user_id": current_user_id(),
        "product_id": data.get("product_id"),
        "quantity": data.get("quantity", data.get("qty", 1)),
    })
    svc = get_services()
    svc.storage.run(svc.cart.upsert, req.user_id, req.product_id, req.quantity)
    logger.info("cart.item_added", user_id=req.user_id, product_id=req.product_id, quantity=req.quantity)
    return ok("item added", _cart_view(req.user_id), status=201)


@bp.put("/items/<int:product_id>")
@bp.patch("/items/<int:product_id>")
@jwt_required()
def update_item(product_id: int):
    """Body: { "quantity": int }  (absolute quantity, >= 1)"""
    data = _body()
    req = parse_request(UpdateCartItemRequest, {
        "user_id": current_user_id(),
        "product_id": product_id,
        "quantity": data.get("quantity", data.get("qty")),
    })
    svc = get_services()
    svc.storage.run(svc.cart.set_quantity, req.user_id, req.product_id, req.quantity)
    logger.info("cart.item_updated", user_id=req.user_id, product_id=req.product_id, quantity=req.quantity)
    return ok("item updated", _cart_view(req.user_id))


@bp.delete("/items/<int:product_id>")
@jwt_required()
def remove_item(product_id: int):
    req = parse_request(RemoveCartItemRequest, {"user_id": current_user_id(), "product_id": product_id})
    svc = get_services()
    svc.storage.run(svc.cart.remove, req.user_id, req.product_id)
    logger.info("cart.item_removed", user_id=req.user_id, product_id=req.product_id)
    return ok("item removed", _cart_view(req.user_id))
