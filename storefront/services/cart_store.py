# storefront/services/cart_store.py
"""
Cart store. ``lock_and_read_lines`` and ``clear_all`` take part in the
checkout transaction; the remaining operations are plain cart CRUD.
"""
from __future__ import annotations

from dataclasses import dataclass

from sqlalchemy.orm import Session
from sqlalchemy.sql import func

from ..errors import NotFound, ValidationError
from ..model import CartLine, Product, User
from ..schemas import MAX_QUANTITY
from ..utils.money import round_money


@dataclass(frozen=True)
class CartItem:
    product_id: int
    quantity: int


class CartStore:
    # ---- checkout participation ------------------------------------------
    def lock_and_read_lines(self, session: Session, user_id: int) -> list[CartItem]:
        rows = (
            session.query(CartLine.product_id, CartLine.quantity)
            .filter(CartLine.user_id == user_id)
            .order_by(CartLine.product_id.asc())
            .with_for_update()
            .all()
        )
        return [CartItem(product_id=pid, quantity=int(qty)) for pid, qty in rows]

    def clear_all(self, session: Session, user_id: int) -> int:
        return (
            session.query(CartLine)
            .filter(CartLine.user_id == user_id)
            .delete(synchronize_session=False)
        )

    # ---- cart CRUD -------------------------------------------------------
    def _lock_user(self, session: Session, user_id: int) -> User:
        # serializes cart writes per user and keeps the user -> cart -> product lock order
        user = session.get(User, user_id, with_for_update=True)
        if user is None:
            raise NotFound("user", user_id)
        return user

    def upsert(self, session: Session, user_id: int, product_id: int, delta_qty: int) -> CartLine:
        """Add ``delta_qty`` to the existing line or insert a new one."""
        self._lock_user(session, user_id)
        if session.get(Product, product_id) is None:
            raise NotFound("product", product_id)

        line = (
            session.query(CartLine)
            .filter(CartLine.user_id == user_id, CartLine.product_id == product_id)
            .one_or_none()
        )
        if line:
            merged = int(line.quantity) + int(delta_qty)
            if merged > MAX_QUANTITY:
                raise ValidationError.single("quantity", f"cart quantity may not exceed {MAX_QUANTITY}")
            line.quantity = merged
        else:
            line = CartLine(user_id=user_id, product_id=product_id, quantity=delta_qty)
            session.add(line)
        session.flush()
        return line

    def set_quantity(self, session: Session, user_id: int, product_id: int, qty: int) -> None:
        self._lock_user(session, user_id)
        updated = (
            session.query(CartLine)
            .filter(CartLine.user_id == user_id, CartLine.product_id == product_id)
            .update({"quantity": qty, "updated_at": func.now()}, synchronize_session=False)
        )
        if not updated:
            raise NotFound("cart item", product_id)

    def remove(self, session: Session, user_id: int, product_id: int) -> None:
        self._lock_user(session, user_id)
        deleted = (
            session.query(CartLine)
            .filter(CartLine.user_id == user_id, CartLine.product_id == product_id)
            .delete(synchronize_session=False)
        )
        if not deleted:
            raise NotFound("cart item", product_id)

    def view(self, session: Session, user_id: int) -> dict:
        """Cart lines joined with live product data, newest first."""
        rows = (
            session.query(CartLine, Product)
            .join(Product, Product.id == CartLine.product_id)
            .filter(CartLine.user_id == user_id)
            .order_by(CartLine.created_at.desc(), CartLine.id.desc())
            .all()
        )
        items = []
        total = round_money(0)
        for line, product in rows:
            subtotal = round_money(product.price * line.quantity)
            total += subtotal
            items.append({
                "product_id": product.id,
                "name": product.name,
                "price": str(round_money(product.price)),
                "stock_quantity": product.stock_quantity,
                "quantity": line.quantity,
                "subtotal": str(subtotal),
            })
        return {"items": items, "total_amount": str(round_money(total))}
