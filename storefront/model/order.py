# storefront/model/order.py
from enum import Enum

from sqlalchemy.sql import func
from ..extensions import db


class OrderStatus(str, Enum):
    PENDING = "PENDING"
    PROCESSING = "PROCESSING"
    SHIPPED = "SHIPPED"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"


# the only status from which a payment is accepted, and where it leads
PAYABLE_STATUS = OrderStatus.PENDING
PAID_STATUS = OrderStatus.PROCESSING


class Order(db.Model):
    __tablename__ = "orders"

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)
    total_amount = db.Column(db.Numeric(12, 2), nullable=False)
    status = db.Column(db.String(20), nullable=False, default=OrderStatus.PENDING.value, index=True)

    created_at = db.Column(db.DateTime, server_default=func.now(), index=True)
    updated_at = db.Column(db.DateTime, onupdate=func.now(), server_default=func.now())

    # selectin keeps FOR UPDATE on the order row free of outer joins
    lines = db.relationship(
        "OrderLine",
        backref="order",
        cascade="all, delete-orphan",
        lazy="selectin",
        order_by="OrderLine.id.asc()",
    )
    payments = db.relationship(
        "Payment",
        backref="order",
        lazy="selectin",
        order_by="Payment.id.asc()",
    )

    def as_api(self, with_lines=True):
        data = {
            "id": self.id,
            "user_id": self.user_id,
            "total_amount": str(self.total_amount),
            "status": self.status,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }
        if with_lines:
            data["items"] = [line.as_api() for line in self.lines]
            data["payments"] = [p.as_api() for p in self.payments]
        return data


class OrderLine(db.Model):
    __tablename__ = "order_line"

    id = db.Column(db.Integer, primary_key=True)
    order_id = db.Column(db.Integer, db.ForeignKey("orders.id"), nullable=False, index=True)
    product_id = db.Column(db.Integer, db.ForeignKey("product.id"), nullable=False, index=True)

    quantity = db.Column(db.Integer, nullable=False)
    unit_price = db.Column(db.Numeric(12, 2), nullable=False)
    subtotal = db.Column(db.Numeric(12, 2), nullable=False)

    def as_api(self):
        return {
            "product_id": self.product_id,
            "quantity": self.quantity,
            "unit_price": str(self.unit_price),
            "subtotal": str(self.subtotal),
        }
