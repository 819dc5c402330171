from flask import request, jsonify

from . import bp
from ..errors import NotFound
from ..model import Product
from ..schemas import ProductCreateRequest, parse_request
from ..services import get_services
from ..utils.api import api_ok
from ..utils.decorators import role_required


def ok(msg, data=None, status=200):
    r = jsonify(api_ok(msg, data)); r.status_code = status; return r


@bp.get("")
def list_products():
    """Products that still have stock."""
    with get_services().storage.session() as s:
        rows = (
            s.query(Product)
            .filter(Product.stock_quantity > 0)
            .order_by(Product.name.asc(), Product.id.asc())
            .all()
        )
        return ok("products", {"items": [p.as_api() for p in rows]})


@bp.get("/<int:product_id>")
def get_product(product_id: int):
    with get_services().storage.session() as s:
        p = s.get(Product, product_id)
        if not p:
            raise NotFound("product", product_id)
        return ok("product", {"product": p.as_api()})


@bp.post("")
@role_required("admin", message="Only admins can create products")
def create_product():
    req = parse_request(ProductCreateRequest, request.get_json(silent=True))
    with get_services().storage.transaction() as s:
        p = Product(
            name=req.name,
            description=req.description,
            price=req.price,
            stock_quantity=req.stock_quantity,
        )
        s.add(p)
        s.flush()
        s.refresh(p)
        data = {"product": p.as_api()}
    return ok("product created", data, status=201)
