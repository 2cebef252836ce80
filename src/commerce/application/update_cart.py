"""Application services: cart item management.

Stock checks here are advisory.  The authoritative check happens again
under row locks when the order is placed.
"""

from __future__ import annotations

from commerce.application.dto import CartDTO
from commerce.application.show_cart import cart_to_dto, get_or_create_cart
from commerce.domain.exceptions import AuthorizationError, NotFoundError
from commerce.domain.model.cart import Cart
from commerce.domain.model.product import Product
from commerce.domain.repository.unit_of_work import UnitOfWork


def require_product(uow: UnitOfWork, product_id: str) -> Product:
    product = uow.products.get_by_id(product_id)
    if product is None:
        raise NotFoundError(f"Product with ID '{product_id}' not found")
    return product


def require_owned_cart(uow: UnitOfWork, item_id: str, user_id: str) -> Cart:
    """Find the cart holding *item_id* and check it belongs to *user_id*."""
    cart = uow.carts.get_by_item_id(item_id)
    if cart is None:
        raise NotFoundError("Cart item not found")
    if cart.user_id != user_id:
        raise AuthorizationError("Unauthorized")
    return cart


class AddToCartHandler:

    def __init__(self, uow: UnitOfWork) -> None:
        self._uow = uow

    def handle(self, user_id: str, product_id: str, quantity: int) -> CartDTO:
        with self._uow as uow:
            product = require_product(uow, product_id)
            cart = get_or_create_cart(uow, user_id)
            cart.add_item(product, quantity)
            uow.carts.save(cart)
            result = cart_to_dto(uow, cart)
            uow.commit()
        return result


class UpdateCartItemHandler:

    def __init__(self, uow: UnitOfWork) -> None:
        self._uow = uow

    def handle(self, user_id: str, item_id: str, quantity: int) -> CartDTO:
        with self._uow as uow:
            cart = require_owned_cart(uow, item_id, user_id)
            item = cart.find_item(item_id)
            product = require_product(uow, item.product_id)  # type: ignore[union-attr]
            cart.update_item_quantity(item_id, product, quantity)
            uow.carts.save(cart)
            result = cart_to_dto(uow, cart)
            uow.commit()
        return result


class RemoveCartItemHandler:

    def __init__(self, uow: UnitOfWork) -> None:
        self._uow = uow

    def handle(self, user_id: str, item_id: str) -> CartDTO:
        with self._uow as uow:
            cart = require_owned_cart(uow, item_id, user_id)
            cart.remove_item(item_id)
            uow.carts.save(cart)
            result = cart_to_dto(uow, cart)
            uow.commit()
        return result


class ClearCartHandler:

    def __init__(self, uow: UnitOfWork) -> None:
        self._uow = uow

    def handle(self, user_id: str) -> CartDTO:
        """Remove every item and the attached coupon."""
        with self._uow as uow:
            cart = get_or_create_cart(uow, user_id)
            cart.clear()
            uow.carts.save(cart)
            result = cart_to_dto(uow, cart)
            uow.commit()
        return result
