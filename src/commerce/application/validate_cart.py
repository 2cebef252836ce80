"""Application service: pre-checkout cart validation (query).

Reports every problem at once instead of failing on the first one.
"""

from __future__ import annotations

from commerce.application.dto import CheckoutValidationDTO
from commerce.application.show_cart import load_cart_coupon, load_cart_products
from commerce.domain.clock import Clock, utc_now
from commerce.domain.repository.unit_of_work import UnitOfWork
from commerce.domain.service.coupon_service import CouponService


class ValidateCartHandler:

    def __init__(self, uow: UnitOfWork, clock: Clock = utc_now) -> None:
        self._uow = uow
        self._clock = clock

    def handle(self, user_id: str) -> CheckoutValidationDTO:
        with self._uow as uow:
            cart = uow.carts.get_by_user(user_id)
            if cart is None or cart.is_empty:
                return CheckoutValidationDTO(valid=False, errors=["Cart is empty"])

            products = load_cart_products(uow, cart)
            errors = cart.checkout_problems(products)

            if cart.coupon_id is not None:
                coupon = load_cart_coupon(uow, cart)
                if coupon is None:
                    errors.append("Applied coupon is no longer valid")
                elif all(item.product_id in products for item in cart.items):
                    reason = CouponService(uow.coupons).ineligibility(
                        coupon, user_id, cart.subtotal(products), self._clock()
                    )
                    if reason is not None:
                        errors.append(reason)

        return CheckoutValidationDTO(valid=not errors, errors=errors)
