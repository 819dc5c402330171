# storefront/model/cart.py
from sqlalchemy.sql import func
from ..extensions import db


class CartLine(db.Model):
    """One pending product in a shopper's cart. Price is read live from Product at checkout."""
    __tablename__ = "cart_line"
    __table_args__ = (
        db.UniqueConstraint("user_id", "product_id", name="uq_cart_line_user_product"),
    )

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)
    product_id = db.Column(db.Integer, db.ForeignKey("product.id"), nullable=False, index=True)
    quantity = db.Column(db.Integer, nullable=False, default=1)

    created_at = db.Column(db.DateTime, server_default=func.now())
    updated_at = db.Column(db.DateTime, onupdate=func.now(), server_default=func.now())
