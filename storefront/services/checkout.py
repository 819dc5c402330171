# storefront/services/checkout.py
"""
Checkout: turn a user's cart into a PENDING order in one transaction.

Lock order is fixed: user row -> cart lines -> product rows by ascending id,
so two checkouts touching overlapping products queue instead of deadlocking.
Stock is validated against the values read under those locks, never an
earlier snapshot, and prices come from the product rows, never the client.
"""
from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal

import structlog

from ..errors import ConflictError, EmptyCart, InsufficientStock, NotFound
from ..model import OrderStatus, User
from ..schemas import CheckoutRequest, parse_request
from ..utils.money import round_money
from .cart_store import CartStore
from .inventory import InventoryLedger
from .order_repository import OrderHeader, OrderLineDraft, OrderRepository

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class CheckoutResult:
    order_id: int
    total_amount: Decimal
    status: str

    def as_api(self):
        return {
            "orderId": self.order_id,
            "totalAmount": str(self.total_amount),
            "status": self.status,
        }


class CheckoutOrchestrator:
    def __init__(self, storage, cart=None, inventory=None, orders=None):
        self._storage = storage
        self._cart = cart or CartStore()
        self._inventory = inventory or InventoryLedger()
        self._orders = orders or OrderRepository()

    def checkout(self, user_id) -> CheckoutResult:
        req = parse_request(CheckoutRequest, {"user_id": user_id})
        log = logger.bind(user_id=req.user_id)
        try:
            result = self._storage.run(self._checkout, req.user_id)
        except (NotFound, ConflictError) as e:
            log.info("checkout.rejected", error=e.code, message=e.message)
            raise
        log.info("checkout.completed", order_id=result.order_id, total_amount=str(result.total_amount))
        return result

    def _checkout(self, session, user_id: int) -> CheckoutResult:
        user = session.get(User, user_id, with_for_update=True)
        if user is None:
            raise NotFound("user", user_id)

        lines = self._cart.lock_and_read_lines(session, user_id)
        if not lines:
            raise EmptyCart(user_id)

        stock = self._inventory.lock_and_read_stock(session, [l.product_id for l in lines])

        drafts = []
        for line in lines:
            level = stock.get(line.product_id)
            if level is None:
                raise NotFound("product", line.product_id)
            if line.quantity > level.stock:
                raise InsufficientStock(line.product_id, line.quantity, level.stock)
            drafts.append(OrderLineDraft(line.product_id, line.quantity, level.price))

        total = round_money(sum((d.subtotal for d in drafts), Decimal("0")))
        order_id = self._orders.create_order(
            session, OrderHeader(user_id=user_id, total_amount=total), drafts
        )

        for d in drafts:
            self._inventory.decrement(session, d.product_id, d.quantity)

        self._cart.clear_all(session, user_id)

        return CheckoutResult(order_id=order_id, total_amount=total, status=OrderStatus.PENDING.value)
