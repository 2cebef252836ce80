"""SQLAlchemy implementation of CartRepository."""

from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.orm import Session

from commerce.domain.model.cart import Cart, CartItem
from commerce.domain.repository.cart_repository import CartRepository
from commerce.infrastructure.persistence.models import CartItemModel, CartModel


def _to_domain(row: CartModel) -> Cart:
    return Cart(
        id=row.id,
        user_id=row.user_id,
        items=[
            CartItem(id=item.id, product_id=item.product_id, quantity=item.quantity)
            for item in row.items
        ],
        coupon_id=row.coupon_id,
    )


class SqlCartRepository(CartRepository):

    def __init__(self, session: Session) -> None:
        self._session = session

    def get_by_user(self, user_id: str) -> Cart | None:
        row = self._session.scalars(
            select(CartModel).where(CartModel.user_id == user_id)
        ).first()
        return _to_domain(row) if row else None

    def get_by_user_for_update(self, user_id: str) -> Cart | None:
        row = self._session.scalars(
            select(CartModel)
            .where(CartModel.user_id == user_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        ).first()
        if row is None:
            return None
        # Lines are read only once the lock is held.
        self._session.expire(row, ["items"])
        return _to_domain(row)

    def get_by_item_id(self, item_id: str) -> Cart | None:
        item = self._session.get(CartItemModel, item_id)
        if item is None:
            return None
        return _to_domain(self._session.get(CartModel, item.cart_id))

    def add(self, cart: Cart) -> None:
        self._session.add(CartModel(id=cart.id, user_id=cart.user_id, coupon_id=cart.coupon_id))
        self._session.flush()
        self.save(cart)

    def save(self, cart: Cart) -> None:
        """Sync the stored lines with the aggregate.

        Lines are matched by id; removed lines are deleted, and each
        product keeps a single row.
        """
        row = self._session.get(CartModel, cart.id)
        row.coupon_id = cart.coupon_id

        wanted = {item.id: item for item in cart.items}
        for existing in list(row.items):
            if existing.id not in wanted:
                row.items.remove(existing)
        self._session.flush()

        current = {existing.id: existing for existing in row.items}
        for position, item in enumerate(cart.items):
            stored = current.get(item.id)
            if stored is None:
                row.items.append(
                    CartItemModel(
                        id=item.id,
                        product_id=item.product_id,
                        quantity=item.quantity,
                        position=position,
                    )
                )
            else:
                stored.quantity = item.quantity
                stored.position = position
        self._session.flush()
