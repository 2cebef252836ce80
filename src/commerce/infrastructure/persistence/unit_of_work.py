"""SQLAlchemy Unit of Work: one session and transaction per ``with`` block."""

from __future__ import annotations

import logging

from sqlalchemy.exc import DBAPIError, IntegrityError, OperationalError
from sqlalchemy.orm import Session, sessionmaker

from commerce.domain.exceptions import ConflictError, TransientPersistenceError
from commerce.domain.repository.unit_of_work import UnitOfWork
from commerce.infrastructure.persistence.sql_cart_repository import SqlCartRepository
from commerce.infrastructure.persistence.sql_coupon_repository import SqlCouponRepository
from commerce.infrastructure.persistence.sql_inventory_repository import (
    SqlInventoryLogRepository,
)
from commerce.infrastructure.persistence.sql_order_repository import (
    SqlOrderRepository,
    SqlOrderSequenceRepository,
)
from commerce.infrastructure.persistence.sql_product_repository import (
    SqlProductRepository,
)

logger = logging.getLogger(__name__)

# PostgreSQL serialization failure, deadlock, lock not available.
PG_RETRY_ERRCODES = {"40001", "40P01", "55P03"}


def _pgcode(exc: DBAPIError) -> str | None:
    orig = exc.orig
    return getattr(orig, "pgcode", None) or getattr(orig, "sqlstate", None)


def translate_db_error(exc: DBAPIError) -> Exception:
    """Map a driver error to the exception the application understands."""
    if isinstance(exc, OperationalError) or _pgcode(exc) in PG_RETRY_ERRCODES:
        return TransientPersistenceError(str(exc.orig))
    if isinstance(exc, IntegrityError):
        return ConflictError("The change conflicts with existing data")
    return exc


class SqlAlchemyUnitOfWork(UnitOfWork):
    """Not thread-safe: use one instance per thread or request."""

    def __init__(self, session_factory: sessionmaker) -> None:
        self._session_factory = session_factory
        self._session: Session | None = None

    def __enter__(self) -> SqlAlchemyUnitOfWork:
        self._session = self._session_factory()
        self.products = SqlProductRepository(self._session)
        self.inventory_logs = SqlInventoryLogRepository(self._session)
        self.carts = SqlCartRepository(self._session)
        self.coupons = SqlCouponRepository(self._session)
        self.orders = SqlOrderRepository(self._session)
        self.order_sequences = SqlOrderSequenceRepository(self._session)
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        try:
            self.rollback()
        finally:
            self._session.close()
            self._session = None
        if isinstance(exc, DBAPIError):
            translated = translate_db_error(exc)
            if translated is not exc:
                logger.debug("Translated %s to %s", type(exc).__name__, type(translated).__name__)
                raise translated from exc

    def commit(self) -> None:
        try:
            self._session.commit()
        except DBAPIError as exc:
            translated = translate_db_error(exc)
            if translated is exc:
                raise
            raise translated from exc

    def rollback(self) -> None:
        self._session.rollback()
