"""Domain-level exceptions.

All business rule violations are expressed as subclasses of DomainException
so callers can catch them uniformly.  Each subclass carries a closed
``ErrorKind`` tag; transport layers branch on ``exc.kind``, never on the
message text.

``TransientPersistenceError`` is deliberately *not* a DomainException: it
signals infrastructure noise (lock timeouts, serialization failures) that
the order orchestrator retries, while business failures are never retried.
"""

from __future__ import annotations

from enum import Enum


class ErrorKind(Enum):
    VALIDATION = "VALIDATION"
    NOT_FOUND = "NOT_FOUND"
    STOCK = "STOCK"
    COUPON = "COUPON"
    AUTHORIZATION = "AUTHORIZATION"
    STATE_TRANSITION = "STATE_TRANSITION"
    CONFLICT = "CONFLICT"


class DomainException(Exception):
    """Base class for all domain errors."""

    kind: ErrorKind = ErrorKind.VALIDATION


class ValidationError(DomainException):
    """Malformed input or a violated invariant."""

    kind = ErrorKind.VALIDATION


class CartEmptyError(ValidationError):
    """Checkout was attempted with an empty cart."""


class NotFoundError(DomainException):
    """A requested entity does not exist."""

    kind = ErrorKind.NOT_FOUND


class StockError(DomainException):
    """Insufficient or unavailable stock."""

    kind = ErrorKind.STOCK

    def __init__(
        self,
        message: str,
        product_id: str | None = None,
        available: int | None = None,
    ) -> None:
        super().__init__(message)
        self.product_id = product_id
        self.available = available


class CouponError(DomainException):
    """Coupon invalid, expired, exhausted or minimum purchase unmet."""

    kind = ErrorKind.COUPON


class AuthorizationError(DomainException):
    """Acting on another user's resource."""

    kind = ErrorKind.AUTHORIZATION


class StateTransitionError(DomainException):
    """Illegal order-status change."""

    kind = ErrorKind.STATE_TRANSITION


class ConflictError(DomainException):
    """Unique-constraint violation (duplicate SKU, coupon code, ...)."""

    kind = ErrorKind.CONFLICT


class TransientPersistenceError(Exception):
    """Lock timeout, deadlock or serialization failure; safe to retry."""
