"""Application services: order queries."""

from __future__ import annotations

from collections import Counter
from datetime import datetime
from decimal import ROUND_HALF_UP, Decimal

from commerce.application.dto import OrderDTO, OrderPageDTO, OrderStatsDTO
from commerce.application.mappers import order_to_dto
from commerce.domain.exceptions import AuthorizationError, NotFoundError
from commerce.domain.model.order import Order
from commerce.domain.model.value_objects import CENT, Money
from commerce.domain.repository.queries import OrderQuery
from commerce.domain.repository.unit_of_work import UnitOfWork


class ShowOrderHandler:

    def __init__(self, uow: UnitOfWork) -> None:
        self._uow = uow

    def handle(self, order_id: int, user_id: str | None = None) -> OrderDTO:
        """Return one order.  When *user_id* is given it must own the order."""
        with self._uow as uow:
            order = uow.orders.get_by_id(order_id)
        return order_to_dto(self._check(order, f"#{order_id}", user_id))

    def handle_by_number(self, order_number: str, user_id: str | None = None) -> OrderDTO:
        with self._uow as uow:
            order = uow.orders.get_by_number(order_number)
        return order_to_dto(self._check(order, order_number, user_id))

    @staticmethod
    def _check(order: Order | None, label: str, user_id: str | None) -> Order:
        if order is None:
            raise NotFoundError(f"Order {label} not found")
        if user_id is not None and order.user_id != user_id:
            raise AuthorizationError("Unauthorized")
        return order


class ListOrdersHandler:

    def __init__(self, uow: UnitOfWork) -> None:
        self._uow = uow

    def handle(self, query: OrderQuery) -> OrderPageDTO:
        with self._uow as uow:
            page = uow.orders.search(query)
        return OrderPageDTO(
            orders=[order_to_dto(order) for order in page.items],
            page=page.page,
            limit=page.limit,
            total=page.total,
            total_pages=page.total_pages,
        )


class OrderStatsHandler:
    """Counts by status and revenue over non-cancelled orders."""

    def __init__(self, uow: UnitOfWork) -> None:
        self._uow = uow

    def handle(
        self, start: datetime | None = None, end: datetime | None = None
    ) -> OrderStatsDTO:
        with self._uow as uow:
            orders = uow.orders.search(OrderQuery(start=start, end=end, limit=None)).items

        by_status = Counter(order.status.value for order in orders)
        by_payment = Counter(order.payment_status.value for order in orders)

        revenue = Money.zero()
        billable = [o for o in orders if not o.is_cancelled]
        for order in billable:
            revenue = revenue + order.total
        average = (
            Money((revenue.amount / Decimal(len(billable))).quantize(
                CENT, rounding=ROUND_HALF_UP
            ))
            if billable
            else Money.zero()
        )

        return OrderStatsDTO(
            total_orders=len(orders),
            by_status=dict(by_status),
            by_payment_status=dict(by_payment),
            total_revenue=str(revenue),
            average_order_value=str(average),
        )
