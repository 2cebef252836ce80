"""Application services: attach and detach a cart coupon.

Attaching runs the full eligibility check against the cart's current
subtotal but does not redeem the coupon; redemption happens when the
order is placed.
"""

from __future__ import annotations

from commerce.application.dto import CartDTO
from commerce.application.show_cart import (
    cart_to_dto,
    get_or_create_cart,
    load_cart_products,
)
from commerce.domain.clock import Clock, utc_now
from commerce.domain.repository.unit_of_work import UnitOfWork
from commerce.domain.service.coupon_service import CouponService


class ApplyCouponHandler:

    def __init__(self, uow: UnitOfWork, clock: Clock = utc_now) -> None:
        self._uow = uow
        self._clock = clock

    def handle(self, user_id: str, code: str) -> CartDTO:
        with self._uow as uow:
            cart = get_or_create_cart(uow, user_id)
            coupons = CouponService(uow.coupons)
            coupon = coupons.require_by_code(code)

            subtotal = cart.subtotal(load_cart_products(uow, cart))
            coupons.check(coupon, user_id, subtotal, self._clock())

            cart.attach_coupon(coupon)
            uow.carts.save(cart)
            result = cart_to_dto(uow, cart)
            uow.commit()
        return result


class RemoveCouponHandler:

    def __init__(self, uow: UnitOfWork) -> None:
        self._uow = uow

    def handle(self, user_id: str) -> CartDTO:
        with self._uow as uow:
            cart = get_or_create_cart(uow, user_id)
            cart.detach_coupon()
            uow.carts.save(cart)
            result = cart_to_dto(uow, cart)
            uow.commit()
        return result
