"""Abstract repositories for Order aggregate and order numbering."""

from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import date, datetime

from commerce.domain.model.order import Order, OrderStatus, PaymentStatus
from commerce.domain.repository.queries import OrderQuery, Page


class OrderRepository(ABC):

    @abstractmethod
    def add(self, order: Order) -> None:
        """Persist a new order with its items and assign ``order.id``."""

    @abstractmethod
    def get_by_id(self, order_id: int) -> Order | None:
        """Return an order by its ID, or None if not found."""

    @abstractmethod
    def get_by_number(self, order_number: str) -> Order | None:
        """Return an order by its order number, or None if not found."""

    @abstractmethod
    def update_status(
        self,
        order_id: int,
        expected: OrderStatus,
        new_status: OrderStatus,
        updated_at: datetime,
    ) -> bool:
        """Set *new_status* only if the stored status is still *expected*."""

    @abstractmethod
    def update_payment_status(
        self, order_id: int, payment_status: PaymentStatus, updated_at: datetime
    ) -> None:
        """Overwrite the payment status."""

    @abstractmethod
    def search(self, query: OrderQuery) -> Page[Order]:
        """Orders matching *query*, newest first."""


class OrderSequenceRepository(ABC):

    @abstractmethod
    def next_value(self, day: date) -> int:
        """Atomically advance and return the order counter for *day*."""
