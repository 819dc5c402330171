# storefront/services/order_status.py
"""Admin status override: any status in OrderStatus, no lifecycle rules beyond membership."""
from __future__ import annotations

import structlog

from ..schemas import StatusUpdateRequest, parse_request
from .order_repository import OrderRepository

logger = structlog.get_logger(__name__)


class OrderStatusService:
    def __init__(self, storage, orders=None):
        self._storage = storage
        self._orders = orders or OrderRepository()

    def update_status(self, order_id, status) -> dict:
        req = parse_request(StatusUpdateRequest, {"order_id": order_id, "status": status})
        data = self._storage.run(self._update, req)
        logger.info("order.status_updated", order_id=req.order_id, previous=data["previous_status"], status=req.status.value)
        return data

    def _update(self, session, req: StatusUpdateRequest) -> dict:
        order = self._orders.get_order(session, req.order_id, for_update=True)
        previous = order.status
        self._orders.update_status(session, order.id, req.status)
        session.refresh(order)
        return {"order": order.as_api(), "previous_status": previous}
