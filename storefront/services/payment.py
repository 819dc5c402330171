# storefront/services/payment.py
"""
Payment: accept a payment for a PENDING order and move it to PROCESSING.

The order row stays locked (FOR UPDATE) from the status check until commit,
so two concurrent payments for one order run one after the other and the
second sees PROCESSING and is rejected.
"""
from __future__ import annotations

from dataclasses import dataclass

import structlog

from ..errors import ConflictError, InsufficientPayment, InvalidState, NotFound
from ..model.order import PAID_STATUS, PAYABLE_STATUS
from ..schemas import PaymentRequest, parse_request
from .order_repository import OrderRepository
from .payment_ledger import PaymentLedger, PaymentRecord

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class PaymentResult:
    payment_id: int
    order_id: int
    status: str

    def as_api(self):
        return {
            "paymentId": self.payment_id,
            "orderId": self.order_id,
            "status": self.status,
        }


class PaymentOrchestrator:
    def __init__(self, storage, orders=None, payments=None):
        self._storage = storage
        self._orders = orders or OrderRepository()
        self._payments = payments or PaymentLedger()

    def pay(self, order_id, method, amount) -> PaymentResult:
        req = parse_request(PaymentRequest, {"order_id": order_id, "method": method, "amount": amount})
        log = logger.bind(order_id=req.order_id, method=req.method.value)
        try:
            result = self._storage.run(self._pay, req)
        except (NotFound, ConflictError) as e:
            log.info("payment.rejected", error=e.code, message=e.message)
            raise
        log.info("payment.recorded", payment_id=result.payment_id, amount=str(req.amount))
        return result

    def _pay(self, session, req: PaymentRequest) -> PaymentResult:
        order = self._orders.get_order(session, req.order_id, for_update=True)

        if order.status != PAYABLE_STATUS.value:
            raise InvalidState(order.id, order.status, PAYABLE_STATUS.value)
        if req.amount < order.total_amount:
            raise InsufficientPayment(order.id, req.amount, order.total_amount)

        payment_id = self._payments.insert_payment(
            session, PaymentRecord(order_id=order.id, method=req.method, amount=req.amount)
        )
        self._orders.update_status(session, order.id, PAID_STATUS)

        return PaymentResult(payment_id=payment_id, order_id=order.id, status=PAID_STATUS.value)
