"""Application service: administrative status changes.

Operators move orders along the status table (PENDING -> PROCESSING ->
SHIPPED -> DELIVERED, or to CANCELLED before shipping).  Payment status
is set independently of order status.
"""

from __future__ import annotations

import logging

from commerce.application.dto import OrderDTO
from commerce.application.mappers import order_to_dto
from commerce.domain.clock import Clock, utc_now
from commerce.domain.exceptions import NotFoundError, ValidationError
from commerce.domain.model.order import OrderStatus, PaymentStatus
from commerce.domain.repository.unit_of_work import UnitOfWork
from commerce.domain.service.order_lifecycle_service import OrderLifecycleService
from commerce.domain.service.stock_ledger_service import StockLedgerService

logger = logging.getLogger(__name__)


def parse_order_status(raw: str) -> OrderStatus:
    try:
        return OrderStatus(raw.strip().upper())
    except ValueError as exc:
        raise ValidationError(f"Unknown order status '{raw}'") from exc


def parse_payment_status(raw: str) -> PaymentStatus:
    try:
        return PaymentStatus(raw.strip().upper())
    except ValueError as exc:
        raise ValidationError(f"Unknown payment status '{raw}'") from exc


class UpdateOrderStatusHandler:

    def __init__(self, uow: UnitOfWork, clock: Clock = utc_now) -> None:
        self._uow = uow
        self._clock = clock

    def handle(self, order_id: int, status: str) -> OrderDTO:
        new_status = parse_order_status(status)
        now = self._clock()
        with self._uow as uow:
            order = uow.orders.get_by_id(order_id)
            if order is None:
                raise NotFoundError(f"Order #{order_id} not found")

            lifecycle = OrderLifecycleService(
                uow.orders, StockLedgerService(uow.products, uow.inventory_logs)
            )
            lifecycle.transition(order, new_status, now)
            uow.commit()
        return order_to_dto(order)


class UpdatePaymentStatusHandler:

    def __init__(self, uow: UnitOfWork, clock: Clock = utc_now) -> None:
        self._uow = uow
        self._clock = clock

    def handle(self, order_id: int, payment_status: str) -> OrderDTO:
        new_status = parse_payment_status(payment_status)
        now = self._clock()
        with self._uow as uow:
            order = uow.orders.get_by_id(order_id)
            if order is None:
                raise NotFoundError(f"Order #{order_id} not found")

            order.update_payment_status(new_status, now)
            uow.orders.update_payment_status(order.id, new_status, now)
            uow.commit()

        logger.info("Order %s payment status -> %s", order.order_number, new_status.value)
        return order_to_dto(order)
