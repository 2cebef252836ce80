"""Composition root — wires concrete implementations to domain interfaces.

This is the only place in the codebase that knows about *all* layers.
Every other module depends only on abstractions.
"""

from __future__ import annotations

from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker

from commerce.application.retry import RetryPolicy
from commerce.domain.model.value_objects import Money
from commerce.domain.service.pricing import PricingPolicy
from commerce.infrastructure import settings
from commerce.infrastructure.persistence.database import (
    build_engine,
    build_session_factory,
    init_db,
)
from commerce.infrastructure.persistence.unit_of_work import SqlAlchemyUnitOfWork

_database_url: str = settings.DATABASE_URL
_engine: Engine | None = None
_session_factory: sessionmaker | None = None


def configure(database_url: str | None = None) -> None:
    """Point the application at *database_url* (defaults to settings)."""
    global _database_url, _engine, _session_factory
    if _engine is not None:
        _engine.dispose()
    _database_url = database_url or settings.DATABASE_URL
    _engine = None
    _session_factory = None


def engine() -> Engine:
    global _engine
    if _engine is None:
        _engine = build_engine(_database_url, echo=settings.SQL_ECHO)
    return _engine


def create_schema() -> None:
    init_db(engine())


def unit_of_work() -> SqlAlchemyUnitOfWork:
    global _session_factory
    if _session_factory is None:
        _session_factory = build_session_factory(engine())
    return SqlAlchemyUnitOfWork(_session_factory)


def pricing_policy() -> PricingPolicy:
    return PricingPolicy(
        shipping_cost=Money(settings.SHIPPING_COST), tax_rate=settings.TAX_RATE
    )


def retry_policy() -> RetryPolicy:
    return RetryPolicy(
        max_attempts=settings.CHECKOUT_MAX_ATTEMPTS,
        backoff_seconds=settings.CHECKOUT_BACKOFF_SECONDS,
    )
