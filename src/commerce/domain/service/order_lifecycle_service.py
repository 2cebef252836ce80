"""Domain service: Order lifecycle.

Applies status transitions to persisted orders.  The status write is
conditional on the status the caller read, so two concurrent
cancellations cannot both restock.  Cancelling returns every item's
quantity to stock through the ledger.
"""

from __future__ import annotations

import logging
from datetime import datetime

from commerce.domain.exceptions import StateTransitionError
from commerce.domain.model.inventory import InventoryLogType
from commerce.domain.model.order import Order, OrderStatus
from commerce.domain.repository.order_repository import OrderRepository
from commerce.domain.service.stock_ledger_service import StockLedgerService

logger = logging.getLogger(__name__)


class OrderLifecycleService:

    def __init__(
        self,
        order_repo: OrderRepository,
        stock_ledger: StockLedgerService,
    ) -> None:
        self._order_repo = order_repo
        self._stock_ledger = stock_ledger

    def transition(self, order: Order, new_status: OrderStatus, now: datetime) -> Order:
        previous = order.status
        order.transition_to(new_status, now)

        if not self._order_repo.update_status(order.id, previous, new_status, now):
            raise StateTransitionError(
                f"Order {order.order_number} was modified concurrently; "
                f"it is no longer {previous.value}"
            )

        if new_status is OrderStatus.CANCELLED:
            self._restock(order, now)

        logger.info(
            "Order %s moved %s -> %s",
            order.order_number, previous.value, new_status.value,
        )
        return order

    def _restock(self, order: Order, now: datetime) -> None:
        for item in order.items:
            self._stock_ledger.record_by_id(
                item.product_id,
                InventoryLogType.RETURN,
                item.quantity.value,
                f"Order {order.order_number} cancelled",
                now,
            )
