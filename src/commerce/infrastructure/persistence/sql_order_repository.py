"""SQLAlchemy implementations of OrderRepository and OrderSequenceRepository."""

from __future__ import annotations

from datetime import date, datetime

from sqlalchemy import func, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, selectinload

from commerce.domain.exceptions import TransientPersistenceError
from commerce.domain.model.order import (
    Order,
    OrderItem,
    OrderPricing,
    OrderStatus,
    PaymentStatus,
)
from commerce.domain.model.value_objects import (
    Money,
    PaymentMethod,
    Quantity,
    ShippingAddress,
)
from commerce.domain.repository.order_repository import (
    OrderRepository,
    OrderSequenceRepository,
)
from commerce.domain.repository.queries import OrderQuery, Page
from commerce.infrastructure.persistence.models import (
    OrderItemModel,
    OrderModel,
    OrderSequenceModel,
)


def _to_domain(row: OrderModel) -> Order:
    return Order(
        id=row.id,
        order_number=row.order_number,
        user_id=row.user_id,
        items=[
            OrderItem(
                product_id=item.product_id,
                product_name=item.product_name,
                quantity=Quantity(item.quantity),
                unit_price=Money(item.unit_price),
            )
            for item in row.items
        ],
        pricing=OrderPricing(
            subtotal=Money(row.subtotal),
            discount=Money(row.discount),
            shipping_cost=Money(row.shipping_cost),
            tax=Money(row.tax),
            total=Money(row.total),
        ),
        payment_method=PaymentMethod(row.payment_method),
        shipping_address=ShippingAddress.from_dict(row.shipping_address),
        status=OrderStatus(row.status),
        payment_status=PaymentStatus(row.payment_status),
        coupon_id=row.coupon_id,
        coupon_code=row.coupon_code,
        notes=row.notes,
        created_at=row.created_at,
        updated_at=row.updated_at,
    )


class SqlOrderRepository(OrderRepository):

    def __init__(self, session: Session) -> None:
        self._session = session

    def add(self, order: Order) -> None:
        pricing = order.pricing
        row = OrderModel(
            order_number=order.order_number,
            user_id=order.user_id,
            status=order.status.value,
            payment_status=order.payment_status.value,
            payment_method=order.payment_method.value,
            subtotal=pricing.subtotal.amount,
            discount=pricing.discount.amount,
            shipping_cost=pricing.shipping_cost.amount,
            tax=pricing.tax.amount,
            total=pricing.total.amount,
            coupon_id=order.coupon_id,
            coupon_code=order.coupon_code,
            shipping_address=order.shipping_address.to_dict(),
            notes=order.notes,
            created_at=order.created_at,
            updated_at=order.updated_at,
            items=[
                OrderItemModel(
                    product_id=item.product_id,
                    product_name=item.product_name,
                    quantity=item.quantity.value,
                    unit_price=item.unit_price.amount,
                )
                for item in order.items
            ],
        )
        self._session.add(row)
        self._session.flush()
        order.id = row.id

    def get_by_id(self, order_id: int) -> Order | None:
        return self._first(select(OrderModel).where(OrderModel.id == order_id))

    def get_by_number(self, order_number: str) -> Order | None:
        return self._first(select(OrderModel).where(OrderModel.order_number == order_number))

    def update_status(
        self,
        order_id: int,
        expected: OrderStatus,
        new_status: OrderStatus,
        updated_at: datetime,
    ) -> bool:
        result = self._session.execute(
            update(OrderModel)
            .where(OrderModel.id == order_id)
            .where(OrderModel.status == expected.value)
            .values(status=new_status.value, updated_at=updated_at)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1

    def update_payment_status(
        self, order_id: int, payment_status: PaymentStatus, updated_at: datetime
    ) -> None:
        self._session.execute(
            update(OrderModel)
            .where(OrderModel.id == order_id)
            .values(payment_status=payment_status.value, updated_at=updated_at)
            .execution_options(synchronize_session=False)
        )

    def search(self, query: OrderQuery) -> Page[Order]:
        conditions = []
        if query.user_id is not None:
            conditions.append(OrderModel.user_id == query.user_id)
        if query.status is not None:
            conditions.append(OrderModel.status == query.status.value)
        if query.payment_status is not None:
            conditions.append(OrderModel.payment_status == query.payment_status.value)
        if query.start is not None:
            conditions.append(OrderModel.created_at >= query.start)
        if query.end is not None:
            conditions.append(OrderModel.created_at <= query.end)

        total = self._session.scalar(
            select(func.count()).select_from(OrderModel).where(*conditions)
        )
        stmt = (
            select(OrderModel)
            .where(*conditions)
            .options(selectinload(OrderModel.items))
            .order_by(OrderModel.created_at.desc(), OrderModel.id.desc())
            .offset(query.offset)
            .limit(query.limit)
        )
        return Page(
            items=[_to_domain(row) for row in self._session.scalars(stmt)],
            total=total or 0,
            page=query.page,
            limit=query.limit,
        )

    def _first(self, stmt) -> Order | None:
        row = self._session.scalars(
            stmt.options(selectinload(OrderModel.items)).execution_options(
                populate_existing=True
            )
        ).first()
        return _to_domain(row) if row else None


class SqlOrderSequenceRepository(OrderSequenceRepository):
    """Per-day counters incremented in place.

    The first order of a day inserts the counter row.  If a concurrent
    transaction inserted it first, the insert fails and the whole
    checkout is retried, which then takes the update path.
    """

    def __init__(self, session: Session) -> None:
        self._session = session

    def next_value(self, day: date) -> int:
        result = self._session.execute(
            update(OrderSequenceModel)
            .where(OrderSequenceModel.day == day)
            .values(last_value=OrderSequenceModel.last_value + 1)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 1:
            return self._session.scalar(
                select(OrderSequenceModel.last_value).where(OrderSequenceModel.day == day)
            )

        try:
            with self._session.begin_nested():
                self._session.add(OrderSequenceModel(day=day, last_value=1))
        except IntegrityError as exc:
            raise TransientPersistenceError(
                f"Order sequence for {day} was created concurrently"
            ) from exc
        return 1
