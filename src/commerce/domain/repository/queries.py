"""Typed query specifications for read operations."""

from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import datetime
from typing import Generic, TypeVar

from commerce.domain.exceptions import ValidationError
from commerce.domain.model.inventory import InventoryLogType
from commerce.domain.model.order import OrderStatus, PaymentStatus

T = TypeVar("T")


@dataclass(frozen=True)
class _Paging:
    page: int = 1
    limit: int | None = 20

    def __post_init__(self) -> None:
        if self.page < 1:
            raise ValidationError("Page must be at least 1")
        if self.limit is not None and self.limit < 1:
            raise ValidationError("Limit must be at least 1")

    @property
    def offset(self) -> int:
        return 0 if self.limit is None else (self.page - 1) * self.limit


@dataclass(frozen=True)
class InventoryLogQuery(_Paging):
    product_id: str | None = None
    type: InventoryLogType | None = None
    start: datetime | None = None
    end: datetime | None = None
    limit: int | None = 50


@dataclass(frozen=True)
class OrderQuery(_Paging):
    user_id: str | None = None
    status: OrderStatus | None = None
    payment_status: PaymentStatus | None = None
    start: datetime | None = None
    end: datetime | None = None


@dataclass(frozen=True)
class Page(Generic[T]):
    items: list[T]
    total: int
    page: int
    limit: int | None

    @property
    def total_pages(self) -> int:
        if self.limit is None:
            return 1 if self.total else 0
        return math.ceil(self.total / self.limit)
