"""Domain service: Coupon validation and redemption.

Validation is read-only and fails closed with a specific reason.
Redemption advances ``used_count`` through the repository's conditional
increment, so two transactions racing for the last use cannot both win.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime

from commerce.domain.exceptions import CouponError
from commerce.domain.model.coupon import (
    USAGE_LIMIT_REACHED,
    Coupon,
    CouponUsage,
    normalize_code,
)
from commerce.domain.model.value_objects import Money
from commerce.domain.repository.coupon_repository import CouponRepository

logger = logging.getLogger(__name__)

INVALID_CODE = "Invalid coupon code"


@dataclass(frozen=True)
class CouponValidation:
    valid: bool
    discount: Money | None = None
    message: str | None = None
    coupon: Coupon | None = None


class CouponService:

    def __init__(self, coupon_repo: CouponRepository) -> None:
        self._coupon_repo = coupon_repo

    def validate(
        self, code: str, user_id: str, order_total: Money, now: datetime
    ) -> CouponValidation:
        """Evaluate *code* for a user and order total without side effects."""
        coupon = self._coupon_repo.get_by_code(normalize_code(code)) if code else None
        if coupon is None:
            return CouponValidation(valid=False, message=INVALID_CODE)

        reason = self.ineligibility(coupon, user_id, order_total, now)
        if reason is not None:
            return CouponValidation(valid=False, message=reason, coupon=coupon)

        return CouponValidation(
            valid=True,
            discount=coupon.compute_discount(order_total),
            coupon=coupon,
        )

    def require_by_code(self, code: str) -> Coupon:
        coupon = self._coupon_repo.get_by_code(normalize_code(code)) if code else None
        if coupon is None:
            raise CouponError(INVALID_CODE)
        return coupon

    def check(
        self, coupon: Coupon, user_id: str, order_total: Money, now: datetime
    ) -> Money:
        """Raise CouponError if ineligible, otherwise return the discount."""
        reason = self.ineligibility(coupon, user_id, order_total, now)
        if reason is not None:
            raise CouponError(reason)
        return coupon.compute_discount(order_total)

    def apply(
        self,
        coupon: Coupon,
        user_id: str,
        order_id: int | None,
        now: datetime,
    ) -> CouponUsage:
        """Record one redemption inside the caller's transaction.

        The limit check and the increment are a single conditional write.
        """
        if not self._coupon_repo.try_increment_usage(coupon.id):
            logger.info("Coupon %s refused: usage limit reached", coupon.code)
            raise CouponError(USAGE_LIMIT_REACHED)

        usage = self._coupon_repo.add_usage(
            CouponUsage(
                id=None,
                coupon_id=coupon.id,
                user_id=user_id,
                order_id=order_id,
                used_at=now,
            )
        )
        logger.info("Coupon %s redeemed by user %s", coupon.code, user_id)
        return usage

    def ineligibility(
        self, coupon: Coupon, user_id: str, order_total: Money, now: datetime
    ) -> str | None:
        """First rule that rules the coupon out for this user, or None."""
        usage_count = (
            self._coupon_repo.count_usages(coupon.id, user_id)
            if coupon.per_user_limit is not None
            else 0
        )
        return coupon.ineligibility_reason(order_total, now, usage_count)
