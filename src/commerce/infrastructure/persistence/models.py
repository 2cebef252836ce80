"""SQLAlchemy table mappings.

These are persistence shapes only; repositories translate them to and
from the domain dataclasses.
"""

from __future__ import annotations

from datetime import timezone

from sqlalchemy import (
    JSON,
    Boolean,
    CheckConstraint,
    Column,
    Date,
    DateTime,
    ForeignKey,
    Integer,
    Numeric,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship
from sqlalchemy.types import TypeDecorator

from commerce.infrastructure.persistence.database import Base


class UTCDateTime(TypeDecorator):
    """Timezone-aware UTC datetimes on every backend.

    SQLite stores datetimes without an offset, so values are normalized
    to UTC on the way in and tagged as UTC on the way out.
    """

    impl = DateTime(timezone=True)
    cache_ok = True

    def process_bind_param(self, value, dialect):
        if value is not None and value.tzinfo is not None:
            value = value.astimezone(timezone.utc)
        return value

    def process_result_value(self, value, dialect):
        if value is not None and value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        return value


Money = Numeric(12, 2, asdecimal=True)


class ProductModel(Base):
    __tablename__ = "products"

    id = Column(String(32), primary_key=True)
    name = Column(String(200), nullable=False)
    sku = Column(String(64), nullable=False, unique=True)
    price = Column(Money, nullable=False)
    sale_price = Column(Money, nullable=True)
    stock_quantity = Column(Integer, nullable=False, default=0)
    is_active = Column(Boolean, nullable=False, default=True)
    image_url = Column(String(500), nullable=True)

    __table_args__ = (
        CheckConstraint("stock_quantity >= 0", name="ck_products_stock_non_negative"),
    )


class InventoryLogModel(Base):
    __tablename__ = "inventory_logs"

    id = Column(Integer, primary_key=True, autoincrement=True)
    product_id = Column(String(32), ForeignKey("products.id"), nullable=False, index=True)
    type = Column(String(20), nullable=False)
    quantity = Column(Integer, nullable=False)
    reason = Column(String(500), nullable=False)
    created_at = Column(UTCDateTime, nullable=False, index=True)


class CouponModel(Base):
    __tablename__ = "coupons"

    id = Column(String(32), primary_key=True)
    code = Column(String(64), nullable=False, unique=True)
    description = Column(String(500), nullable=False, default="")
    discount_type = Column(String(20), nullable=False)
    discount_value = Column(Money, nullable=False)
    min_purchase_amount = Column(Money, nullable=True)
    max_discount_amount = Column(Money, nullable=True)
    usage_limit = Column(Integer, nullable=True)
    per_user_limit = Column(Integer, nullable=True)
    used_count = Column(Integer, nullable=False, default=0)
    valid_from = Column(UTCDateTime, nullable=False)
    valid_until = Column(UTCDateTime, nullable=False)
    is_active = Column(Boolean, nullable=False, default=True)

    __table_args__ = (
        CheckConstraint(
            "usage_limit IS NULL OR used_count <= usage_limit",
            name="ck_coupons_used_within_limit",
        ),
    )


class CartModel(Base):
    __tablename__ = "carts"

    id = Column(String(32), primary_key=True)
    user_id = Column(String(64), nullable=False, unique=True)
    coupon_id = Column(String(32), ForeignKey("coupons.id"), nullable=True)

    items = relationship(
        "CartItemModel",
        cascade="all, delete-orphan",
        order_by="CartItemModel.position",
    )


class CartItemModel(Base):
    __tablename__ = "cart_items"

    id = Column(String(32), primary_key=True)
    cart_id = Column(
        String(32), ForeignKey("carts.id", ondelete="CASCADE"), nullable=False, index=True
    )
    product_id = Column(String(32), ForeignKey("products.id"), nullable=False)
    quantity = Column(Integer, nullable=False)
    position = Column(Integer, nullable=False, default=0)

    __table_args__ = (
        UniqueConstraint("cart_id", "product_id", name="uq_cart_items_cart_product"),
        CheckConstraint("quantity >= 1", name="ck_cart_items_quantity_positive"),
    )


class OrderModel(Base):
    __tablename__ = "orders"

    id = Column(Integer, primary_key=True, autoincrement=True)
    order_number = Column(String(32), nullable=False, unique=True)
    user_id = Column(String(64), nullable=False, index=True)
    status = Column(String(20), nullable=False, index=True)
    payment_status = Column(String(20), nullable=False)
    payment_method = Column(String(32), nullable=False)
    subtotal = Column(Money, nullable=False)
    discount = Column(Money, nullable=False)
    shipping_cost = Column(Money, nullable=False)
    tax = Column(Money, nullable=False)
    total = Column(Money, nullable=False)
    coupon_id = Column(String(32), ForeignKey("coupons.id"), nullable=True)
    coupon_code = Column(String(64), nullable=True)
    shipping_address = Column(JSON, nullable=False)
    notes = Column(Text, nullable=True)
    created_at = Column(UTCDateTime, nullable=False, index=True)
    updated_at = Column(UTCDateTime, nullable=False)

    items = relationship(
        "OrderItemModel",
        cascade="all, delete-orphan",
        order_by="OrderItemModel.id",
    )


class OrderItemModel(Base):
    __tablename__ = "order_items"

    id = Column(Integer, primary_key=True, autoincrement=True)
    order_id = Column(Integer, ForeignKey("orders.id", ondelete="CASCADE"), nullable=False, index=True)
    product_id = Column(String(32), ForeignKey("products.id"), nullable=False)
    product_name = Column(String(200), nullable=False)
    quantity = Column(Integer, nullable=False)
    unit_price = Column(Money, nullable=False)


class CouponUsageModel(Base):
    __tablename__ = "coupon_usages"

    id = Column(Integer, primary_key=True, autoincrement=True)
    coupon_id = Column(String(32), ForeignKey("coupons.id"), nullable=False)
    user_id = Column(String(64), nullable=False)
    order_id = Column(Integer, ForeignKey("orders.id"), nullable=True)
    used_at = Column(UTCDateTime, nullable=False)

    __table_args__ = (
        UniqueConstraint("coupon_id", "order_id", name="uq_coupon_usages_coupon_order"),
    )


class OrderSequenceModel(Base):
    __tablename__ = "order_sequences"

    day = Column(Date, primary_key=True)
    last_value = Column(Integer, nullable=False)
