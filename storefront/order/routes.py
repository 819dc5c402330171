# storefront/order/routes.py
from flask import request, jsonify
from flask_jwt_extended import jwt_required

from . import bp
from ..errors import NotFound
from ..services import get_services
from ..utils.api import api_ok
from ..utils.decorators import current_user_id, role_required


def ok(msg, data=None, status=200):
    r = jsonify(api_ok(msg, data)); r.status_code = status; return r


def _body() -> dict:
    data = request.get_json(silent=True)
    return data if isinstance(data, dict) else {}


@bp.post("")
@jwt_required()
def checkout():
    """Checkout the caller's cart. Body is ignored; the cart is the input."""
    result = get_services().checkout.checkout(current_user_id())
    resp = ok("order created", result.as_api(), status=201)
    resp.headers["X-Order-Id"] = str(result.order_id)
    return resp


@bp.get("/<int:order_id>")
@jwt_required()
def get_order(order_id: int):
    uid = current_user_id()
    svc = get_services()
    with svc.storage.session() as s:
        order = svc.orders.get_order(s, order_id)
        # other users' orders look exactly like missing ones
        if order.user_id != uid:
            raise NotFound("order", order_id)
        return ok("order", {"order": order.as_api()})


@bp.post("/<int:order_id>/payments")
@jwt_required()
def pay(order_id: int):
    """Body: { "method": "QRIS" | "MOBILE_BANKING" | "VA" | "DANA", "amount": number }"""
    data = _body()
    result = get_services().payment.pay(order_id, data.get("method"), data.get("amount"))
    return ok("payment recorded", result.as_api(), status=201)


@bp.post("/<int:order_id>/status")
@role_required("admin", message="Only admins can change order status")
def update_status(order_id: int):
    """Body: { "status": "PENDING" | "PROCESSING" | "SHIPPED" | "COMPLETED" | "CANCELLED" }"""
    data = get_services().order_status.update_status(order_id, _body().get("status"))
    return ok("order status updated", {"order": data["order"]})
