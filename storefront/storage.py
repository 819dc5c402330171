# storefront/storage.py
"""
Explicit storage handle handed to the orchestrators at startup.

Every checkout/payment runs inside ``Storage.transaction()``: one database
transaction that commits on success and rolls back on any exception
(including cancellation), with driver errors translated into
``TransientError`` (safe to retry) or ``ConstraintViolation``.
"""
from __future__ import annotations

import time
from contextlib import contextmanager

import structlog
from sqlalchemy import event, text
from sqlalchemy.exc import DBAPIError, IntegrityError
from sqlalchemy.orm import Session, sessionmaker

from .errors import ConstraintViolation, TransientError

logger = structlog.get_logger(__name__)

# serialization_failure, deadlock_detected, lock_not_available, query_canceled
PG_RETRY_CODES = {"40001", "40P01", "55P03", "57014"}
# lock wait timeout, deadlock, server gone away, lost connection
MYSQL_RETRY_CODES = {1205, 1213, 2006, 2013}
_RETRY_MESSAGES = (
    "deadlock",
    "lock wait timeout",
    "lock timeout",
    "could not serialize access",
    "database is locked",
    "database table is locked",
)


def _sqlstate(exc):
    orig = getattr(exc, "orig", None)
    return getattr(orig, "pgcode", None) or getattr(orig, "sqlstate", None)


def is_transient(exc: Exception) -> bool:
    if isinstance(exc, DBAPIError) and exc.connection_invalidated:
        return True
    if _sqlstate(exc) in PG_RETRY_CODES:
        return True
    orig = getattr(exc, "orig", None)
    args = getattr(orig, "args", None) or ()
    if args and args[0] in MYSQL_RETRY_CODES:
        return True
    msg = str(orig if orig is not None else exc).lower()
    return any(k in msg for k in _RETRY_MESSAGES)


def _sqlite_on_connect(dbapi_connection, connection_record):
    # let SQLAlchemy emit BEGIN itself
    dbapi_connection.isolation_level = None
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def _sqlite_on_begin(conn):
    # reads stay DEFERRED; only Storage.transaction() asks for the write lock up front
    mode = conn.get_execution_options().get("sqlite_begin", "DEFERRED")
    conn.exec_driver_sql(f"BEGIN {mode}")


def _serialize_sqlite_writers(engine):
    """SQLite has no row locks: write transactions take the write lock at BEGIN so they queue up."""
    if not event.contains(engine, "connect", _sqlite_on_connect):
        event.listen(engine, "connect", _sqlite_on_connect)
        event.listen(engine, "begin", _sqlite_on_begin)
    # drop connections opened before the listeners existed
    engine.dispose()


class Storage:
    def __init__(self, engine, lock_timeout: float = 5.0, retries: int = 1, backoff: float = 0.05):
        self.engine = engine
        self.lock_timeout = lock_timeout
        self.retries = retries
        self.backoff = backoff
        self._sessionmaker = sessionmaker(bind=engine, expire_on_commit=False)
        if engine.dialect.name == "sqlite":
            _serialize_sqlite_writers(engine)
        self._write_sessionmaker = sessionmaker(
            bind=engine.execution_options(sqlite_begin="IMMEDIATE"), expire_on_commit=False
        )

    @property
    def dialect(self) -> str:
        return self.engine.dialect.name

    def create_all(self):
        from .extensions import db
        db.metadata.create_all(self.engine)

    def _apply_lock_timeout(self, session: Session):
        if self.dialect == "postgresql":
            ms = int(self.lock_timeout * 1000)
            session.execute(text(f"SET LOCAL lock_timeout = '{ms}ms'"))
        elif self.dialect in ("mysql", "mariadb"):
            seconds = max(1, int(round(self.lock_timeout)))
            session.execute(text(f"SET SESSION innodb_lock_wait_timeout = {seconds}"))
        # sqlite: busy timeout is set on the connection (connect_args["timeout"])

    @contextmanager
    def session(self):
        """Read-only session; nothing is committed."""
        session = self._sessionmaker()
        try:
            yield session
        finally:
            session.close()

    @contextmanager
    def transaction(self):
        session = self._write_sessionmaker()
        try:
            self._apply_lock_timeout(session)
            yield session
            session.commit()
        except IntegrityError as e:
            session.rollback()
            raise ConstraintViolation(f"constraint violated: {e.orig}") from e
        except DBAPIError as e:
            session.rollback()
            if is_transient(e):
                raise TransientError(detail=type(getattr(e, "orig", e)).__name__) from e
            raise
        except BaseException:
            session.rollback()
            raise
        finally:
            session.close()

    def run(self, fn, *args, **kwargs):
        """Run ``fn(session, *args, **kwargs)`` in one transaction, retrying transient failures."""
        attempt = 0
        while True:
            try:
                with self.transaction() as session:
                    return fn(session, *args, **kwargs)
            except TransientError:
                if attempt >= self.retries:
                    raise
                attempt += 1
                logger.warning("storage.retry", operation=getattr(fn, "__name__", repr(fn)), attempt=attempt)
                time.sleep(self.backoff * attempt)
