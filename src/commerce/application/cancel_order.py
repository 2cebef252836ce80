"""Application service: Cancel Order use case.

A customer may cancel their own order while it is PENDING or
PROCESSING.  Cancelling returns every item's quantity to stock with a
RETURN ledger entry, in the same transaction as the status change.
"""

from __future__ import annotations

from commerce.application.dto import OrderDTO
from commerce.application.mappers import order_to_dto
from commerce.domain.clock import Clock, utc_now
from commerce.domain.exceptions import NotFoundError
from commerce.domain.model.order import OrderStatus
from commerce.domain.repository.unit_of_work import UnitOfWork
from commerce.domain.service.order_lifecycle_service import OrderLifecycleService
from commerce.domain.service.stock_ledger_service import StockLedgerService


class CancelOrderHandler:

    def __init__(self, uow: UnitOfWork, clock: Clock = utc_now) -> None:
        self._uow = uow
        self._clock = clock

    def handle(self, order_id: int, user_id: str) -> OrderDTO:
        now = self._clock()
        with self._uow as uow:
            order = uow.orders.get_by_id(order_id)
            if order is None:
                raise NotFoundError(f"Order #{order_id} not found")

            order.ensure_customer_can_cancel(user_id)

            lifecycle = OrderLifecycleService(
                uow.orders, StockLedgerService(uow.products, uow.inventory_logs)
            )
            lifecycle.transition(order, OrderStatus.CANCELLED, now)
            uow.commit()
        return order_to_dto(order)
