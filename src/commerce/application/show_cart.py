"""Application service: Show Cart use case, plus helpers shared by the
cart handlers."""

from __future__ import annotations

from commerce.application.dto import CartDTO, CartItemDTO
from commerce.domain.model.cart import Cart
from commerce.domain.model.coupon import Coupon
from commerce.domain.model.product import Product
from commerce.domain.repository.unit_of_work import UnitOfWork


def get_or_create_cart(uow: UnitOfWork, user_id: str) -> Cart:
    """Return the user's cart, creating an empty one on first use."""
    cart = uow.carts.get_by_user(user_id)
    if cart is None:
        cart = Cart.create(user_id)
        uow.carts.add(cart)
    return cart


def load_cart_products(uow: UnitOfWork, cart: Cart) -> dict[str, Product]:
    products: dict[str, Product] = {}
    for item in cart.items:
        product = uow.products.get_by_id(item.product_id)
        if product is not None:
            products[product.id] = product
    return products


def load_cart_coupon(uow: UnitOfWork, cart: Cart) -> Coupon | None:
    return uow.coupons.get_by_id(cart.coupon_id) if cart.coupon_id else None


def cart_to_dto(uow: UnitOfWork, cart: Cart) -> CartDTO:
    products = load_cart_products(uow, cart)
    coupon = load_cart_coupon(uow, cart)
    priced = [item for item in cart.items if item.product_id in products]
    totals = Cart(
        id=cart.id, user_id=cart.user_id, items=priced, coupon_id=cart.coupon_id
    ).compute_totals(products, coupon)

    return CartDTO(
        id=cart.id,
        user_id=cart.user_id,
        items=[
            CartItemDTO(
                id=item.id,
                product_id=item.product_id,
                product_name=products[item.product_id].name,
                quantity=item.quantity,
                unit_price=str(products[item.product_id].unit_price),
                line_total=str(products[item.product_id].unit_price * item.quantity),
            )
            for item in priced
        ],
        item_count=totals.item_count,
        subtotal=str(totals.subtotal),
        discount=str(totals.discount),
        total=str(totals.total),
        coupon_code=coupon.code if coupon else None,
        free_shipping=totals.free_shipping,
    )


class ShowCartHandler:

    def __init__(self, uow: UnitOfWork) -> None:
        self._uow = uow

    def handle(self, user_id: str) -> CartDTO:
        with self._uow as uow:
            cart = get_or_create_cart(uow, user_id)
            result = cart_to_dto(uow, cart)
            uow.commit()
        return result
