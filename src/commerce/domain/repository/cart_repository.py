"""Abstract repository for Cart aggregate."""

from __future__ import annotations

from abc import ABC, abstractmethod

from commerce.domain.model.cart import Cart


class CartRepository(ABC):

    @abstractmethod
    def get_by_user(self, user_id: str) -> Cart | None:
        """Return the user's cart, or None if it was never created."""

    @abstractmethod
    def get_by_user_for_update(self, user_id: str) -> Cart | None:
        """Row-lock the user's cart, then load its current lines."""

    @abstractmethod
    def get_by_item_id(self, item_id: str) -> Cart | None:
        """Return the cart holding the given line item, whoever owns it."""

    @abstractmethod
    def add(self, cart: Cart) -> None:
        """Persist a new cart."""

    @abstractmethod
    def save(self, cart: Cart) -> None:
        """Persist the cart's current items and coupon."""
