"""Application service: Create Order use case.

Turns the user's cart into an immutable order in one unit of work:
stock re-validation, price snapshot, pricing, order number, stock
decrement with SALE entries, coupon redemption and cart clearing all
commit together or not at all.

The transaction is retried on transient persistence conflicts only.
Nothing inside it waits on external I/O.
"""

from __future__ import annotations

import logging
from datetime import datetime

from commerce.application.dto import OrderDTO
from commerce.application.mappers import order_to_dto
from commerce.application.retry import RetryPolicy
from commerce.domain.clock import Clock, utc_now
from commerce.domain.exceptions import CartEmptyError, CouponError, StockError
from commerce.domain.model.cart import Cart
from commerce.domain.model.coupon import Coupon
from commerce.domain.model.inventory import InventoryLogType
from commerce.domain.model.order import Order, OrderItem, items_subtotal
from commerce.domain.model.product import Product
from commerce.domain.model.value_objects import (
    PaymentMethod,
    Quantity,
    ShippingAddress,
)
from commerce.domain.repository.unit_of_work import UnitOfWork
from commerce.domain.service.coupon_service import CouponService
from commerce.domain.service.order_numbering import OrderNumberGenerator
from commerce.domain.service.pricing import PricingPolicy
from commerce.domain.service.stock_ledger_service import StockLedgerService

logger = logging.getLogger(__name__)


class CreateOrderHandler:

    def __init__(
        self,
        uow: UnitOfWork,
        pricing: PricingPolicy | None = None,
        retry_policy: RetryPolicy | None = None,
        clock: Clock = utc_now,
    ) -> None:
        self._uow = uow
        self._pricing = pricing or PricingPolicy()
        self._retry_policy = retry_policy or RetryPolicy()
        self._clock = clock

    def handle(
        self,
        user_id: str,
        shipping_address: ShippingAddress,
        payment_method: PaymentMethod,
        notes: str | None = None,
    ) -> OrderDTO:
        """Place an order from the user's cart.

        Raises CartEmptyError, StockError or CouponError on business
        failures; none of them leaves any trace in persistence.
        """
        order = self._retry_policy.run(
            self._place_order, user_id, shipping_address, payment_method, notes
        )
        logger.info(
            "Order %s placed by user %s (total %s)",
            order.order_number, user_id, order.total,
        )
        return order_to_dto(order)

    # --- Transaction body -----------------------------------------------------

    def _place_order(
        self,
        user_id: str,
        shipping_address: ShippingAddress,
        payment_method: PaymentMethod,
        notes: str | None,
    ) -> Order:
        now = self._clock()
        with self._uow as uow:
            # 1. Cart, locked before any product so a double submit waits here
            cart = uow.carts.get_by_user_for_update(user_id)
            if cart is None or cart.is_empty:
                raise CartEmptyError("Cart is empty")

            # 2. Lock products and re-validate against committed stock
            products = uow.products.get_many_for_update(
                [item.product_id for item in cart.items]
            )
            self._ensure_stock(cart, products)

            # 3. Price snapshot
            items = [
                OrderItem(
                    product_id=item.product_id,
                    product_name=products[item.product_id].name,
                    quantity=Quantity(item.quantity),
                    unit_price=products[item.product_id].unit_price,
                )
                for item in cart.items
            ]

            # 4. Coupon and pricing
            coupon_service = CouponService(uow.coupons)
            coupon = self._lock_coupon(uow, cart, coupon_service, items, user_id, now)
            pricing = self._pricing.price(items, coupon)

            # 5. Order number
            order_number = OrderNumberGenerator(uow.order_sequences).next_number(
                now.date()
            )

            # 6. Order and items
            order = Order.create(
                order_number=order_number,
                user_id=user_id,
                items=items,
                pricing=pricing,
                payment_method=payment_method,
                shipping_address=shipping_address,
                coupon_id=coupon.id if coupon else None,
                coupon_code=coupon.code if coupon else None,
                notes=notes,
                now=now,
            )
            uow.orders.add(order)

            # 7. Stock and ledger
            ledger = StockLedgerService(uow.products, uow.inventory_logs)
            for item in order.items:
                ledger.record(
                    products[item.product_id],
                    InventoryLogType.SALE,
                    -item.quantity.value,
                    f"Order {order_number}",
                    now,
                )

            # 8. Coupon usage
            if coupon is not None:
                coupon_service.apply(coupon, user_id, order.id, now)

            # 9. Clear cart
            cart.clear()
            uow.carts.save(cart)

            uow.commit()
        return order

    # --- Internal helpers -----------------------------------------------------

    @staticmethod
    def _ensure_stock(cart: Cart, products: dict[str, Product]) -> None:
        for item in cart.items:
            product = products.get(item.product_id)
            if product is None:
                raise StockError(
                    f"Product '{item.product_id}' is no longer available",
                    product_id=item.product_id,
                    available=0,
                )
            product.ensure_purchasable(item.quantity)

    @staticmethod
    def _lock_coupon(
        uow: UnitOfWork,
        cart: Cart,
        coupon_service: CouponService,
        items: list[OrderItem],
        user_id: str,
        now: datetime,
    ) -> Coupon | None:
        """Re-validate the attached coupon under a row lock.

        The lock serializes concurrent redemptions of the same coupon, so
        the per-user count read here stays accurate until commit.
        """
        if cart.coupon_id is None:
            return None
        coupon = uow.coupons.get_for_update(cart.coupon_id)
        if coupon is None:
            raise CouponError("Applied coupon is no longer valid")

        coupon_service.check(coupon, user_id, items_subtotal(items), now)
        return coupon
