# storefront/services/payment_ledger.py
from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal

from sqlalchemy import func
from sqlalchemy.orm import Session

from ..model import Payment, PaymentMethod, PaymentStatus
from ..utils.money import round_money


@dataclass(frozen=True)
class PaymentRecord:
    order_id: int
    method: PaymentMethod
    amount: Decimal
    status: PaymentStatus = PaymentStatus.SETTLED


class PaymentLedger:
    def insert_payment(self, session: Session, record: PaymentRecord) -> int:
        payment = Payment(
            order_id=record.order_id,
            method=PaymentMethod(record.method).value,
            amount_paid=round_money(record.amount),
            status=PaymentStatus(record.status).value,
        )
        session.add(payment)
        session.flush()
        return payment.id

    def count_for_order(self, session: Session, order_id: int) -> int:
        return session.query(func.count(Payment.id)).filter(Payment.order_id == order_id).scalar() or 0
