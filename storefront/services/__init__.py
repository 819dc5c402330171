# storefront/services/__init__.py
from dataclasses import dataclass

from flask import current_app

from .cart_store import CartStore
from .checkout import CheckoutOrchestrator, CheckoutResult
from .inventory import InventoryLedger
from .order_repository import OrderRepository
from .order_status import OrderStatusService
from .payment import PaymentOrchestrator, PaymentResult
from .payment_ledger import PaymentLedger


@dataclass
class Services:
    storage: object
    cart: CartStore
    orders: OrderRepository
    checkout: CheckoutOrchestrator
    payment: PaymentOrchestrator
    order_status: OrderStatusService


def build_services(storage) -> Services:
    cart = CartStore()
    inventory = InventoryLedger()
    orders = OrderRepository()
    payments = PaymentLedger()
    return Services(
        storage=storage,
        cart=cart,
        orders=orders,
        checkout=CheckoutOrchestrator(storage, cart=cart, inventory=inventory, orders=orders),
        payment=PaymentOrchestrator(storage, orders=orders, payments=payments),
        order_status=OrderStatusService(storage, orders=orders),
    )


def get_services() -> Services:
    return current_app.extensions["storefront"]


__all__ = [
    "Services",
    "build_services",
    "get_services",
    "CartStore",
    "InventoryLedger",
    "OrderRepository",
    "PaymentLedger",
    "CheckoutOrchestrator",
    "CheckoutResult",
    "PaymentOrchestrator",
    "PaymentResult",
    "OrderStatusService",
]
