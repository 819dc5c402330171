# storefront/services/inventory.py
"""Inventory ledger: stock reads and decrements inside a caller-owned transaction."""
from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal

from sqlalchemy import update
from sqlalchemy.orm import Session
from sqlalchemy.sql import func

from ..errors import ConstraintViolation
from ..model import Product


@dataclass(frozen=True)
class StockLevel:
    product_id: int
    price: Decimal
    stock: int


class InventoryLedger:
    def lock_and_read_stock(self, session: Session, product_ids) -> dict[int, StockLevel]:
        """Lock the product rows (ascending id) and return their live price and stock."""
        ids = sorted(set(product_ids))
        if not ids:
            return {}
        products = (
            session.query(Product)
            .filter(Product.id.in_(ids))
            .order_by(Product.id.asc())
            .with_for_update()
            .populate_existing()
            .all()
        )
        return {
            p.id: StockLevel(product_id=p.id, price=Decimal(str(p.price)), stock=int(p.stock_quantity))
            for p in products
        }

    def decrement(self, session: Session, product_id: int, qty: int) -> None:
        if qty <= 0:
            raise ConstraintViolation(f"decrement quantity must be positive, got {qty}", product_id=product_id)
        result = session.execute(
            update(Product)
            .where(Product.id == product_id, Product.stock_quantity >= qty)
            .values(stock_quantity=Product.stock_quantity - qty, updated_at=func.now())
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            raise ConstraintViolation(
                f"stock for product {product_id} would go negative",
                product_id=product_id,
                quantity=qty,
            )
