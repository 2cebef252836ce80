"""Application services: coupon administration."""

from __future__ import annotations

import logging
from datetime import datetime
from decimal import Decimal, InvalidOperation

from commerce.application.dto import CouponDTO, CouponStatsDTO, CouponUsageDTO
from commerce.application.mappers import coupon_to_dto, format_timestamp
from commerce.domain.clock import Clock, utc_now
from commerce.domain.exceptions import ConflictError, ValidationError
from commerce.domain.model.coupon import Coupon, DiscountType, normalize_code
from commerce.domain.model.value_objects import Money
from commerce.domain.repository.unit_of_work import UnitOfWork

logger = logging.getLogger(__name__)


def parse_discount_type(raw: str) -> DiscountType:
    try:
        return DiscountType(raw.strip().upper())
    except ValueError as exc:
        raise ValidationError(f"Unknown discount type '{raw}'") from exc


def parse_decimal(raw: str | int | Decimal, label: str) -> Decimal:
    try:
        value = Decimal(str(raw))
    except InvalidOperation as exc:
        raise ValidationError(f"Invalid {label}: {raw!r}") from exc
    if not value.is_finite():
        raise ValidationError(f"Invalid {label}: {raw!r}")
    return value


class CreateCouponHandler:

    def __init__(self, uow: UnitOfWork) -> None:
        self._uow = uow

    def handle(
        self,
        code: str,
        discount_type: str,
        discount_value: str,
        valid_from: datetime,
        valid_until: datetime,
        description: str = "",
        min_purchase_amount: str | None = None,
        max_discount_amount: str | None = None,
        usage_limit: int | None = None,
        per_user_limit: int | None = None,
    ) -> CouponDTO:
        """Create a coupon.  Codes are stored upper-case and must be unique."""
        coupon = Coupon.create(
            code=code,
            discount_type=parse_discount_type(discount_type),
            discount_value=parse_decimal(discount_value, "discount value"),
            valid_from=valid_from,
            valid_until=valid_until,
            description=description,
            min_purchase_amount=Money.of(min_purchase_amount) if min_purchase_amount else None,
            max_discount_amount=Money.of(max_discount_amount) if max_discount_amount else None,
            usage_limit=usage_limit,
            per_user_limit=per_user_limit,
        )
        with self._uow as uow:
            if uow.coupons.get_by_code(normalize_code(code)) is not None:
                raise ConflictError(f"Coupon code '{coupon.code}' already exists")
            uow.coupons.add(coupon)
            uow.commit()

        logger.info("Coupon %s created", coupon.code)
        return coupon_to_dto(coupon)


class ListCouponsHandler:

    def __init__(self, uow: UnitOfWork) -> None:
        self._uow = uow

    def handle(self) -> list[CouponDTO]:
        with self._uow as uow:
            return [coupon_to_dto(c) for c in uow.coupons.list_all()]


class DeactivateExpiredCouponsHandler:

    def __init__(self, uow: UnitOfWork, clock: Clock = utc_now) -> None:
        self._uow = uow
        self._clock = clock

    def handle(self) -> int:
        with self._uow as uow:
            count = uow.coupons.deactivate_expired(self._clock())
            uow.commit()
        logger.info("Deactivated %d expired coupons", count)
        return count


class CouponStatsHandler:

    def __init__(self, uow: UnitOfWork, clock: Clock = utc_now) -> None:
        self._uow = uow
        self._clock = clock

    def handle(self) -> CouponStatsDTO:
        now = self._clock()
        with self._uow as uow:
            coupons = uow.coupons.list_all()
        return CouponStatsDTO(
            total=len(coupons),
            active=sum(
                1 for c in coupons
                if c.is_active and c.valid_from <= now <= c.valid_until
            ),
            expired=sum(1 for c in coupons if c.is_expired(now)),
            used=sum(1 for c in coupons if c.used_count > 0),
            unused=sum(1 for c in coupons if c.used_count == 0),
        )


class TopCouponsHandler:
    """Most redeemed coupons first; ties by code."""

    def __init__(self, uow: UnitOfWork) -> None:
        self._uow = uow

    def handle(self, limit: int = 10) -> list[CouponDTO]:
        if limit < 1:
            raise ValidationError("Limit must be at least 1")
        with self._uow as uow:
            coupons = uow.coupons.list_all()
        coupons.sort(key=lambda c: (-c.used_count, c.code))
        return [coupon_to_dto(c) for c in coupons[:limit]]


class UserCouponUsageHandler:

    def __init__(self, uow: UnitOfWork) -> None:
        self._uow = uow

    def handle(self, user_id: str) -> list[CouponUsageDTO]:
        with self._uow as uow:
            usages = uow.coupons.list_usages_for_user(user_id)
            codes = {c.id: c.code for c in uow.coupons.list_all()}
        return [
            CouponUsageDTO(
                coupon_code=codes.get(usage.coupon_id, usage.coupon_id),
                order_id=usage.order_id,
                used_at=format_timestamp(usage.used_at),
            )
            for usage in usages
        ]
