"""Transaction boundaries, error translation and the bounded retry."""
import pytest
from sqlalchemy.exc import OperationalError

from storefront.errors import ConstraintViolation, TransientError
from storefront.model import Product, User
from storefront.storage import is_transient


class Cancelled(BaseException):
    pass


class _PgError(Exception):
    def __init__(self, pgcode):
        super().__init__("pg error")
        self.pgcode = pgcode


def _op_error(orig):
    return OperationalError("SELECT 1", {}, orig)


class TestIsTransient:
    @pytest.mark.parametrize("orig", [
        Exception("database is locked"),
        Exception("Deadlock found when trying to get lock"),
        Exception(1205, "Lock wait timeout exceeded; try restarting transaction"),
        Exception(1213, "x"),
        _PgError("40P01"),
        _PgError("55P03"),
        _PgError("40001"),
    ])
    def test_retryable(self, orig):
        assert is_transient(_op_error(orig))

    @pytest.mark.parametrize("orig", [Exception("syntax error near SELEC"), _PgError("42601")])
    def test_not_retryable(self, orig):
        assert not is_transient(_op_error(orig))


class TestTransaction:
    def test_commits_on_success(self, storage, probe):
        with storage.transaction() as s:
            s.add(Product(name="kept", price=1, stock_quantity=3))
        with storage.session() as s:
            assert s.query(Product).filter_by(name="kept").count() == 1

    def test_rolls_back_on_error(self, storage):
        with pytest.raises(RuntimeError):
            with storage.transaction() as s:
                s.add(Product(name="lost", price=1, stock_quantity=3))
                s.flush()
                raise RuntimeError("boom")
        with storage.session() as s:
            assert s.query(Product).filter_by(name="lost").count() == 0

    def test_rolls_back_on_cancellation(self, storage):
        with pytest.raises(Cancelled):
            with storage.transaction() as s:
                s.add(Product(name="cancelled", price=1, stock_quantity=3))
                s.flush()
                raise Cancelled()
        with storage.session() as s:
            assert s.query(Product).filter_by(name="cancelled").count() == 0

    def test_integrity_error_becomes_constraint_violation(self, storage, make_user):
        make_user()
        with pytest.raises(ConstraintViolation):
            with storage.transaction() as s:
                s.add(User(email="user1@example.com", name="dup", password_hash="x"))

    def test_reads_do_not_wait_for_an_open_write(self, storage, make_product):
        pid = make_product(stock=3)
        with storage.transaction() as s:
            s.get(Product, pid).stock_quantity = 2
            s.flush()
            with storage.session() as r:
                assert r.get(Product, pid).stock_quantity == 3
        with storage.session() as r:
            assert r.get(Product, pid).stock_quantity == 2

    def test_negative_stock_is_refused_by_the_table(self, storage, make_product):
        pid = make_product(stock=1)
        with pytest.raises(ConstraintViolation):
            with storage.transaction() as s:
                s.get(Product, pid).stock_quantity = -1


class TestRun:
    def test_retries_once_then_succeeds(self, storage):
        calls = []

        def flaky(session):
            calls.append(1)
            if len(calls) == 1:
                raise _op_error(Exception("database is locked"))
            return "done"

        assert storage.run(flaky) == "done"
        assert len(calls) == 2

    def test_gives_up_after_one_retry(self, storage):
        calls = []

        def always_locked(session):
            calls.append(1)
            raise TransientError()

        with pytest.raises(TransientError):
            storage.run(always_locked)
        assert len(calls) == 2

    def test_business_errors_are_not_retried(self, storage):
        calls = []

        def rejects(session):
            calls.append(1)
            raise ValueError("nope")

        with pytest.raises(ValueError):
            storage.run(rejects)
        assert len(calls) == 1
