"""Builders for domain objects used across the test suite."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from decimal import Decimal

from commerce.domain.model.coupon import Coupon, DiscountType
from commerce.domain.model.product import Product
from commerce.domain.model.value_objects import Money, ShippingAddress

NOW = datetime(2025, 10, 18, 12, 0, tzinfo=timezone.utc)


def fixed_clock(now: datetime = NOW):
    return lambda: now


ADDRESS = ShippingAddress(
    street="1 Main St",
    city="Springfield",
    state="IL",
    postal_code="62701",
    country="US",
)


def make_product(
    id: str = "p1",
    name: str = "Widget",
    price: str = "1000.00",
    stock: int = 5,
    sale_price: str | None = None,
    is_active: bool = True,
) -> Product:
    return Product(
        id=id,
        name=name,
        sku=f"SKU-{id.upper()}",
        price=Money.of(price),
        stock_quantity=stock,
        sale_price=Money.of(sale_price) if sale_price else None,
        is_active=is_active,
    )


def make_coupon(
    id: str = "c1",
    code: str = "SAVE10",
    discount_type: DiscountType = DiscountType.PERCENTAGE,
    value: str = "10",
    usage_limit: int | None = None,
    per_user_limit: int | None = None,
    used_count: int = 0,
    min_purchase: str | None = None,
    max_discount: str | None = None,
    is_active: bool = True,
    valid_from: datetime = NOW - timedelta(days=1),
    valid_until: datetime = NOW + timedelta(days=30),
) -> Coupon:
    return Coupon(
        id=id,
        code=code,
        discount_type=discount_type,
        discount_value=Decimal(value),
        valid_from=valid_from,
        valid_until=valid_until,
        min_purchase_amount=Money.of(min_purchase) if min_purchase else None,
        max_discount_amount=Money.of(max_discount) if max_discount else None,
        usage_limit=usage_limit,
        per_user_limit=per_user_limit,
        used_count=used_count,
        is_active=is_active,
    )
