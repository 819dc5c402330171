# ------ storefront/model/__init__.py ------

from .user import User
from .product import Product
from .cart import CartLine
from .order import Order, OrderLine, OrderStatus
from .payment import Payment, PaymentMethod, PaymentStatus

__all__ = [
    "User",
    "Product",
    "CartLine",
    "Order",
    "OrderLine",
    "OrderStatus",
    "Payment",
    "PaymentMethod",
    "PaymentStatus",
]
