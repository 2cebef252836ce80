"""Unit of Work — one atomic transaction scope over every repository.

Use as a context manager.  Nothing is persisted unless ``commit()`` is
called inside the ``with`` block; leaving the block without committing
(including via an exception) rolls everything back.  A unit of work can
be entered again after it exits, which starts a fresh transaction.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from commerce.domain.repository.cart_repository import CartRepository
from commerce.domain.repository.coupon_repository import CouponRepository
from commerce.domain.repository.inventory_repository import InventoryLogRepository
from commerce.domain.repository.order_repository import (
    OrderRepository,
    OrderSequenceRepository,
)
from commerce.domain.repository.product_repository import ProductRepository


class UnitOfWork(ABC):

    products: ProductRepository
    inventory_logs: InventoryLogRepository
    carts: CartRepository
    coupons: CouponRepository
    orders: OrderRepository
    order_sequences: OrderSequenceRepository

    def __enter__(self) -> UnitOfWork:
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.rollback()

    @abstractmethod
    def commit(self) -> None:
        """Make every change in this scope durable."""

    @abstractmethod
    def rollback(self) -> None:
        """Discard every uncommitted change in this scope."""
