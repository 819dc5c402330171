"""Competing checkouts and payments from several threads."""
import threading
from decimal import Decimal

import pytest

from storefront.errors import InsufficientStock, InvalidState

pytestmark = pytest.mark.concurrency


def run_concurrently(fns):
    """Start every callable at the same moment; return (results, errors) in call order."""
    barrier = threading.Barrier(len(fns))
    results = [None] * len(fns)
    errors = [None] * len(fns)

    def worker(i, fn):
        barrier.wait()
        try:
            results[i] = fn()
        except Exception as e:
            errors[i] = e

    threads = [threading.Thread(target=worker, args=(i, fn)) for i, fn in enumerate(fns)]
    for t in threads:
        t.start()
    for t in threads:
        t.join(timeout=30)
    return results, errors


def test_two_shoppers_race_for_the_same_stock(services, make_user, make_product, add_to_cart, probe):
    pid = make_product(stock=5)
    u1, u2 = make_user(), make_user()
    add_to_cart(u1, pid, 3)
    add_to_cart(u2, pid, 3)

    results, errors = run_concurrently([
        lambda: services.checkout.checkout(u1),
        lambda: services.checkout.checkout(u2),
    ])

    succeeded = [r for r in results if r is not None]
    assert len(succeeded) == 1
    assert [type(e) for e in errors if e is not None] == [InsufficientStock]
    assert probe.stock(pid) == 2
    assert probe.order_count() == 1

    loser = u2 if results[0] is not None else u1
    assert probe.cart_count(loser) == 1


@pytest.mark.parametrize("shoppers,stock,qty", [(6, 10, 3), (8, 7, 1), (5, 4, 2)])
def test_never_oversells(services, make_user, make_product, add_to_cart, probe, shoppers, stock, qty):
    pid = make_product(price="1.50", stock=stock)
    users = [make_user() for _ in range(shoppers)]
    for u in users:
        add_to_cart(u, pid, qty)

    results, errors = run_concurrently([lambda u=u: services.checkout.checkout(u) for u in users])

    assert all(e is None or isinstance(e, InsufficientStock) for e in errors)
    sold = qty * sum(1 for r in results if r is not None)
    assert sold <= stock
    assert sold == (stock // qty) * qty
    assert probe.stock(pid) == stock - sold
    assert probe.stock(pid) >= 0


def test_concurrent_payments_apply_once(services, make_user, make_product, add_to_cart, probe):
    user = make_user()
    pid = make_product(price="20", stock=5)
    add_to_cart(user, pid, 2)
    order = services.checkout.checkout(user)

    results, errors = run_concurrently([
        lambda: services.payment.pay(order.order_id, "QRIS", Decimal("40")),
        lambda: services.payment.pay(order.order_id, "DANA", Decimal("40")),
        lambda: services.payment.pay(order.order_id, "VA", Decimal("40")),
    ])

    assert sum(1 for r in results if r is not None) == 1
    assert all(isinstance(e, InvalidState) for e in errors if e is not None)
    assert probe.payment_count(order.order_id) == 1
    assert probe.order(order.order_id)["status"] == "PROCESSING"
