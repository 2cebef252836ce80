"""Application service: Validate Coupon use case (query).

Answers "would this code work for this user and total right now?"
without reserving or redeeming anything.
"""

from __future__ import annotations

from commerce.application.dto import CouponValidationDTO
from commerce.domain.clock import Clock, utc_now
from commerce.domain.model.value_objects import Money
from commerce.domain.repository.unit_of_work import UnitOfWork
from commerce.domain.service.coupon_service import CouponService


class ValidateCouponHandler:

    def __init__(self, uow: UnitOfWork, clock: Clock = utc_now) -> None:
        self._uow = uow
        self._clock = clock

    def handle(self, code: str, user_id: str, order_total: str) -> CouponValidationDTO:
        total = Money.of(order_total)
        with self._uow as uow:
            result = CouponService(uow.coupons).validate(code, user_id, total, self._clock())
        return CouponValidationDTO(
            valid=result.valid,
            discount=str(result.discount) if result.discount is not None else None,
            message=result.message,
        )
