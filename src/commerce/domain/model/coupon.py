"""Coupon aggregate — a named discount rule with usage accounting."""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from enum import Enum

from commerce.domain.clock import utc_now
from commerce.domain.exceptions import ValidationError
from commerce.domain.model.value_objects import Money


class DiscountType(Enum):
    PERCENTAGE = "PERCENTAGE"
    FIXED_AMOUNT = "FIXED_AMOUNT"
    FREE_SHIPPING = "FREE_SHIPPING"


USAGE_LIMIT_REACHED = "Coupon usage limit reached"


@dataclass
class Coupon:
    """Discount rule.

    Invariant: ``used_count <= usage_limit`` whenever a limit is set.
    ``used_count`` is only ever advanced by the repository's conditional
    increment, never by assigning to this object.
    """

    id: str
    code: str
    discount_type: DiscountType
    discount_value: Decimal
    valid_from: datetime
    valid_until: datetime
    description: str = ""
    min_purchase_amount: Money | None = None
    max_discount_amount: Money | None = None
    usage_limit: int | None = None
    per_user_limit: int | None = None
    used_count: int = 0
    is_active: bool = True

    # --- Factory (used for NEW coupons only) ----------------------------------

    @staticmethod
    def create(
        code: str,
        discount_type: DiscountType,
        discount_value: Decimal,
        valid_from: datetime,
        valid_until: datetime,
        description: str = "",
        min_purchase_amount: Money | None = None,
        max_discount_amount: Money | None = None,
        usage_limit: int | None = None,
        per_user_limit: int | None = None,
    ) -> Coupon:
        if not code or not code.strip():
            raise ValidationError("Coupon code is required")
        if discount_type is not DiscountType.FREE_SHIPPING and discount_value <= 0:
            raise ValidationError("Discount value must be greater than 0")
        if discount_type is DiscountType.PERCENTAGE and discount_value > 100:
            raise ValidationError("Percentage discount cannot exceed 100%")
        if valid_from >= valid_until:
            raise ValidationError("Start date must be before end date")
        for label, limit in (("Usage limit", usage_limit), ("Per-user limit", per_user_limit)):
            if limit is not None and limit < 1:
                raise ValidationError(f"{label} must be at least 1")

        return Coupon(
            id=uuid.uuid4().hex,
            code=normalize_code(code),
            discount_type=discount_type,
            discount_value=discount_value,
            valid_from=valid_from,
            valid_until=valid_until,
            description=description,
            min_purchase_amount=min_purchase_amount,
            max_discount_amount=max_discount_amount,
            usage_limit=usage_limit,
            per_user_limit=per_user_limit,
        )

    # --- Eligibility ----------------------------------------------------------

    @property
    def grants_free_shipping(self) -> bool:
        return self.discount_type is DiscountType.FREE_SHIPPING

    @property
    def is_exhausted(self) -> bool:
        return self.usage_limit is not None and self.used_count >= self.usage_limit

    def is_expired(self, now: datetime) -> bool:
        return now > self.valid_until

    def ineligibility_reason(
        self,
        order_total: Money,
        now: datetime,
        user_usage_count: int = 0,
    ) -> str | None:
        """Return why this coupon cannot be used, or None if it can.

        Checks run in a fixed order so the first failing rule is the one
        reported.
        """
        if not self.is_active:
            return "Coupon is not active"
        if now < self.valid_from:
            return "Coupon is not yet valid"
        if self.is_expired(now):
            return "Coupon has expired"
        if self.is_exhausted:
            return USAGE_LIMIT_REACHED
        if self.min_purchase_amount is not None and order_total < self.min_purchase_amount:
            return f"Minimum purchase of {self.min_purchase_amount} required"
        if self.per_user_limit is not None and user_usage_count >= self.per_user_limit:
            return "You have already used this coupon the maximum number of times"
        return None

    # --- Discount -------------------------------------------------------------

    def compute_discount(self, order_total: Money) -> Money:
        """Discount for *order_total*; never more than the total itself.

        FREE_SHIPPING yields zero here; the shipping waiver is applied
        by order pricing.
        """
        if self.discount_type is DiscountType.PERCENTAGE:
            discount = order_total.scaled(self.discount_value / Decimal(100))
            if self.max_discount_amount is not None and discount > self.max_discount_amount:
                discount = self.max_discount_amount
        elif self.discount_type is DiscountType.FIXED_AMOUNT:
            discount = Money.of(self.discount_value).scaled(Decimal(1))
        else:
            discount = Money.zero()

        if discount > order_total:
            return order_total
        return discount


@dataclass(frozen=True)
class CouponUsage:
    """One redemption.  ``order_id`` is None for redemptions outside checkout."""

    id: int | None
    coupon_id: str
    user_id: str
    order_id: int | None
    used_at: datetime = field(default_factory=utc_now)


def normalize_code(code: str) -> str:
    return code.strip().upper()
