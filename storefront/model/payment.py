# storefront/model/payment.py
from enum import Enum

from sqlalchemy.sql import func
from ..extensions import db


class PaymentMethod(str, Enum):
    QRIS = "QRIS"
    MOBILE_BANKING = "MOBILE_BANKING"
    VA = "VA"
    DANA = "DANA"


class PaymentStatus(str, Enum):
    SETTLED = "SETTLED"


class Payment(db.Model):
    __tablename__ = "payment"

    id = db.Column(db.Integer, primary_key=True)
    order_id = db.Column(db.Integer, db.ForeignKey("orders.id"), nullable=False, index=True)
    method = db.Column(db.String(32), nullable=False)
    amount_paid = db.Column(db.Numeric(12, 2), nullable=False)
    status = db.Column(db.String(20), nullable=False, default=PaymentStatus.SETTLED.value)
    created_at = db.Column(db.DateTime, server_default=func.now())

    def as_api(self):
        return {
            "id": self.id,
            "order_id": self.order_id,
            "method": self.method,
            "amount_paid": str(self.amount_paid),
            "status": self.status,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }
