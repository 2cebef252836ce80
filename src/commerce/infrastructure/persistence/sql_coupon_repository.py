"""SQLAlchemy implementation of CouponRepository."""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal

from sqlalchemy import func, or_, select, update
from sqlalchemy.orm import Session

from commerce.domain.model.coupon import Coupon, CouponUsage, DiscountType
from commerce.domain.model.value_objects import Money
from commerce.domain.repository.coupon_repository import CouponRepository
from commerce.infrastructure.persistence.models import CouponModel, CouponUsageModel


def _money(value: Decimal | None) -> Money | None:
    return Money(value) if value is not None else None


def _to_domain(row: CouponModel) -> Coupon:
    return Coupon(
        id=row.id,
        code=row.code,
        discount_type=DiscountType(row.discount_type),
        discount_value=Decimal(row.discount_value),
        valid_from=row.valid_from,
        valid_until=row.valid_until,
        description=row.description,
        min_purchase_amount=_money(row.min_purchase_amount),
        max_discount_amount=_money(row.max_discount_amount),
        usage_limit=row.usage_limit,
        per_user_limit=row.per_user_limit,
        used_count=row.used_count,
        is_active=row.is_active,
    )


class SqlCouponRepository(CouponRepository):

    def __init__(self, session: Session) -> None:
        self._session = session

    def get_by_id(self, coupon_id: str) -> Coupon | None:
        row = self._session.get(CouponModel, coupon_id, populate_existing=True)
        return _to_domain(row) if row else None

    def get_by_code(self, code: str) -> Coupon | None:
        row = self._session.scalars(
            select(CouponModel)
            .where(CouponModel.code == code)
            .execution_options(populate_existing=True)
        ).first()
        return _to_domain(row) if row else None

    def get_for_update(self, coupon_id: str) -> Coupon | None:
        row = self._session.scalars(
            select(CouponModel)
            .where(CouponModel.id == coupon_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        ).first()
        return _to_domain(row) if row else None

    def list_all(self) -> list[Coupon]:
        rows = self._session.scalars(select(CouponModel).order_by(CouponModel.code))
        return [_to_domain(row) for row in rows]

    def add(self, coupon: Coupon) -> None:
        self._session.add(
            CouponModel(
                id=coupon.id,
                code=coupon.code,
                description=coupon.description,
                discount_type=coupon.discount_type.value,
                discount_value=coupon.discount_value,
                min_purchase_amount=(
                    coupon.min_purchase_amount.amount if coupon.min_purchase_amount else None
                ),
                max_discount_amount=(
                    coupon.max_discount_amount.amount if coupon.max_discount_amount else None
                ),
                usage_limit=coupon.usage_limit,
                per_user_limit=coupon.per_user_limit,
                used_count=coupon.used_count,
                valid_from=coupon.valid_from,
                valid_until=coupon.valid_until,
                is_active=coupon.is_active,
            )
        )
        self._session.flush()

    def count_usages(self, coupon_id: str, user_id: str) -> int:
        return self._session.scalar(
            select(func.count())
            .select_from(CouponUsageModel)
            .where(CouponUsageModel.coupon_id == coupon_id)
            .where(CouponUsageModel.user_id == user_id)
        ) or 0

    def list_usages_for_user(self, user_id: str) -> list[CouponUsage]:
        rows = self._session.scalars(
            select(CouponUsageModel)
            .where(CouponUsageModel.user_id == user_id)
            .order_by(CouponUsageModel.used_at.desc(), CouponUsageModel.id.desc())
        )
        return [
            CouponUsage(
                id=row.id,
                coupon_id=row.coupon_id,
                user_id=row.user_id,
                order_id=row.order_id,
                used_at=row.used_at,
            )
            for row in rows
        ]

    def try_increment_usage(self, coupon_id: str) -> bool:
        result = self._session.execute(
            update(CouponModel)
            .where(CouponModel.id == coupon_id)
            .where(
                or_(
                    CouponModel.usage_limit.is_(None),
                    CouponModel.used_count < CouponModel.usage_limit,
                )
            )
            .values(used_count=CouponModel.used_count + 1)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1

    def add_usage(self, usage: CouponUsage) -> CouponUsage:
        row = CouponUsageModel(
            coupon_id=usage.coupon_id,
            user_id=usage.user_id,
            order_id=usage.order_id,
            used_at=usage.used_at,
        )
        self._session.add(row)
        self._session.flush()
        return CouponUsage(
            id=row.id,
            coupon_id=row.coupon_id,
            user_id=row.user_id,
            order_id=row.order_id,
            used_at=usage.used_at,
        )

    def deactivate_expired(self, now: datetime) -> int:
        result = self._session.execute(
            update(CouponModel)
            .where(CouponModel.is_active.is_(True))
            .where(CouponModel.valid_until < now)
            .values(is_active=False)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount
