# storefront/services/order_repository.py
"""Order persistence. No business rules here; the orchestrators validate."""
from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal

from sqlalchemy import update
from sqlalchemy.orm import Session
from sqlalchemy.sql import func

from ..errors import ConstraintViolation, NotFound
from ..model import Order, OrderLine, OrderStatus
from ..utils.money import round_money


@dataclass(frozen=True)
class OrderHeader:
    user_id: int
    total_amount: Decimal
    status: OrderStatus = OrderStatus.PENDING


@dataclass(frozen=True)
class OrderLineDraft:
    product_id: int
    quantity: int
    unit_price: Decimal

    @property
    def subtotal(self) -> Decimal:
        return round_money(self.unit_price * self.quantity)


class OrderRepository:
    def create_order(self, session: Session, header: OrderHeader, lines) -> int:
        lines = list(lines)
        if not lines:
            raise ConstraintViolation("an order needs at least one line", user_id=header.user_id)

        order = Order(
            user_id=header.user_id,
            total_amount=round_money(header.total_amount),
            status=OrderStatus(header.status).value,
        )
        order.lines = [
            OrderLine(
                product_id=l.product_id,
                quantity=l.quantity,
                unit_price=round_money(l.unit_price),
                subtotal=l.subtotal,
            )
            for l in lines
        ]
        session.add(order)
        session.flush()
        return order.id

    def get_order(self, session: Session, order_id: int, *, for_update: bool = False) -> Order:
        q = session.query(Order).filter(Order.id == order_id)
        if for_update:
            q = q.with_for_update().populate_existing()
        order = q.one_or_none()
        if order is None:
            raise NotFound("order", order_id)
        return order

    def update_status(self, session: Session, order_id: int, new_status: OrderStatus) -> None:
        result = session.execute(
            update(Order)
            .where(Order.id == order_id)
            .values(status=OrderStatus(new_status).value, updated_at=func.now())
            .execution_options(synchronize_session="fetch")
        )
        if result.rowcount != 1:
            raise NotFound("order", order_id)
