"""Domain -> DTO mapping shared by the use-case handlers."""

from __future__ import annotations

from datetime import datetime

from commerce.application.dto import (
    CouponDTO,
    InventoryLogDTO,
    OrderDTO,
    OrderItemDTO,
    ProductDTO,
)
from commerce.domain.model.coupon import Coupon
from commerce.domain.model.inventory import InventoryLog
from commerce.domain.model.order import Order
from commerce.domain.model.product import Product


def format_timestamp(value: datetime) -> str:
    return value.strftime("%Y-%m-%d %H:%M UTC")


def product_to_dto(product: Product) -> ProductDTO:
    return ProductDTO(
        id=product.id,
        name=product.name,
        sku=product.sku,
        price=str(product.price),
        sale_price=str(product.sale_price) if product.sale_price else None,
        unit_price=str(product.unit_price),
        stock_quantity=product.stock_quantity,
        is_active=product.is_active,
        image_url=product.image_url,
    )


def log_to_dto(entry: InventoryLog) -> InventoryLogDTO:
    return InventoryLogDTO(
        id=entry.id,  # type: ignore[arg-type]
        product_id=entry.product_id,
        type=entry.type.value,
        quantity=entry.quantity,
        reason=entry.reason,
        created_at=format_timestamp(entry.created_at),
    )


def coupon_to_dto(coupon: Coupon) -> CouponDTO:
    return CouponDTO(
        id=coupon.id,
        code=coupon.code,
        discount_type=coupon.discount_type.value,
        discount_value=str(coupon.discount_value),
        used_count=coupon.used_count,
        usage_limit=coupon.usage_limit,
        per_user_limit=coupon.per_user_limit,
        valid_from=format_timestamp(coupon.valid_from),
        valid_until=format_timestamp(coupon.valid_until),
        is_active=coupon.is_active,
    )


def order_to_dto(order: Order) -> OrderDTO:
    pricing = order.pricing
    return OrderDTO(
        id=order.id,  # type: ignore[arg-type]
        order_number=order.order_number,
        user_id=order.user_id,
        status=order.status.value,
        payment_status=order.payment_status.value,
        payment_method=order.payment_method.value,
        items=[
            OrderItemDTO(
                product_id=item.product_id,
                product_name=item.product_name,
                quantity=item.quantity.value,
                unit_price=str(item.unit_price),
                line_total=str(item.line_total),
            )
            for item in order.items
        ],
        subtotal=str(pricing.subtotal),
        discount=str(pricing.discount),
        shipping_cost=str(pricing.shipping_cost),
        tax=str(pricing.tax),
        total=str(pricing.total),
        coupon_code=order.coupon_code,
        shipping_address=order.shipping_address.to_dict(),
        notes=order.notes,
        created_at=format_timestamp(order.created_at),
    )
