"""Domain service: Order pricing.

Turns frozen order items and an optional coupon into the money
breakdown stored on the order.  Shipping is a flat fee waived by a
FREE_SHIPPING coupon; tax is a flat rate on the discounted subtotal.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal

from commerce.domain.model.coupon import Coupon
from commerce.domain.model.order import OrderItem, OrderPricing, items_subtotal
from commerce.domain.model.value_objects import Money

BASE_SHIPPING_COST = Money(Decimal("10.00"))
TAX_RATE = Decimal("0.10")


@dataclass(frozen=True)
class PricingPolicy:

    shipping_cost: Money = field(default=BASE_SHIPPING_COST)
    tax_rate: Decimal = TAX_RATE

    def price(self, items: list[OrderItem], coupon: Coupon | None = None) -> OrderPricing:
        subtotal = items_subtotal(items)
        discount = coupon.compute_discount(subtotal) if coupon else Money.zero()
        shipping = Money.zero() if coupon and coupon.grants_free_shipping else self.shipping_cost
        taxable = subtotal - discount
        tax = taxable.scaled(self.tax_rate)

        return OrderPricing(
            subtotal=subtotal,
            discount=discount,
            shipping_cost=shipping,
            tax=tax,
            total=taxable + shipping + tax,
        )
