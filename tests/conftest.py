import itertools
from decimal import Decimal

import pytest
from flask_jwt_extended import create_access_token
from sqlalchemy import func

from storefront import create_app
from storefront.config import TestConfig
from storefront.model import CartLine, Order, Payment, Product, User


@pytest.fixture
def app(tmp_path):
    # file-backed SQLite so worker threads share one database
    app = create_app(TestConfig, SQLALCHEMY_DATABASE_URI=f"sqlite:///{tmp_path / 'storefront.db'}")
    yield app
    app.extensions["storefront"].storage.engine.dispose()


@pytest.fixture
def services(app):
    return app.extensions["storefront"]


@pytest.fixture
def storage(services):
    return services.storage


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def make_user(storage):
    counter = itertools.count(1)

    def _make(role="user"):
        n = next(counter)
        with storage.transaction() as s:
            user = User(email=f"user{n}@example.com", name=f"User {n}", password_hash="x", role=role)
            s.add(user)
            s.flush()
            return user.id

    return _make


@pytest.fixture
def make_product(storage):
    counter = itertools.count(1)

    def _make(price="100.00", stock=5, name=None):
        n = next(counter)
        with storage.transaction() as s:
            product = Product(name=name or f"Product {n}", price=Decimal(str(price)), stock_quantity=stock)
            s.add(product)
            s.flush()
            return product.id

    return _make


@pytest.fixture
def add_to_cart(services):
    def _add(user_id, product_id, qty):
        services.storage.run(services.cart.upsert, user_id, product_id, qty)

    return _add


@pytest.fixture
def auth_headers(app):
    def _headers(user_id):
        with app.app_context():
            token = create_access_token(identity=str(user_id))
        return {"Authorization": f"Bearer {token}"}

    return _headers


class Probe:
    """Read-only helpers for asserting on persisted state."""

    def __init__(self, storage):
        self.storage = storage

    def stock(self, product_id):
        with self.storage.session() as s:
            return s.get(Product, product_id).stock_quantity

    def cart_count(self, user_id):
        with self.storage.session() as s:
            return s.query(func.count(CartLine.id)).filter(CartLine.user_id == user_id).scalar()

    def order_count(self):
        with self.storage.session() as s:
            return s.query(func.count(Order.id)).scalar()

    def payment_count(self, order_id=None):
        with self.storage.session() as s:
            q = s.query(func.count(Payment.id))
            if order_id is not None:
                q = q.filter(Payment.order_id == order_id)
            return q.scalar()

    def order(self, order_id):
        with self.storage.session() as s:
            order = s.get(Order, order_id)
            return order.as_api() if order else None


@pytest.fixture
def probe(storage):
    return Probe(storage)
