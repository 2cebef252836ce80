"""Abstract repository for Coupon aggregate and its usage records."""

from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import datetime

from commerce.domain.model.coupon import Coupon, CouponUsage


class CouponRepository(ABC):

    @abstractmethod
    def get_by_id(self, coupon_id: str) -> Coupon | None:
        """Return a coupon by its ID, or None if not found."""

    @abstractmethod
    def get_by_code(self, code: str) -> Coupon | None:
        """Return a coupon by its (normalized) code, or None."""

    @abstractmethod
    def get_for_update(self, coupon_id: str) -> Coupon | None:
        """Load and row-lock a coupon for the rest of the transaction."""

    @abstractmethod
    def list_all(self) -> list[Coupon]:
        """Return every coupon."""

    @abstractmethod
    def add(self, coupon: Coupon) -> None:
        """Persist a new coupon."""

    @abstractmethod
    def count_usages(self, coupon_id: str, user_id: str) -> int:
        """How many times *user_id* has redeemed the coupon."""

    @abstractmethod
    def list_usages_for_user(self, user_id: str) -> list[CouponUsage]:
        """Every redemption by *user_id*, newest first."""

    @abstractmethod
    def try_increment_usage(self, coupon_id: str) -> bool:
        """Increment ``used_count`` only while it is below ``usage_limit``.

        One conditional write; returns False when the limit is reached.
        """

    @abstractmethod
    def add_usage(self, usage: CouponUsage) -> CouponUsage:
        """Record a redemption and return it with its assigned id."""

    @abstractmethod
    def deactivate_expired(self, now: datetime) -> int:
        """Deactivate active coupons past ``valid_until``; return the count."""
