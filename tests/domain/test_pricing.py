"""Unit tests for order pricing and order numbering."""

from datetime import date
from decimal import Decimal

from commerce.domain.model.coupon import DiscountType
from commerce.domain.model.order import OrderItem
from commerce.domain.model.value_objects import Money, Quantity
from commerce.domain.service.order_numbering import (
    OrderNumberGenerator,
    format_order_number,
)
from commerce.domain.service.pricing import PricingPolicy
from tests.factories import make_coupon
from tests.fakes import FakeOrderSequenceRepository


def _items(*lines: tuple[str, int]) -> list[OrderItem]:
    return [
        OrderItem(
            product_id=f"p{i}",
            product_name=f"Item {i}",
            quantity=Quantity(qty),
            unit_price=Money.of(price),
        )
        for i, (price, qty) in enumerate(lines)
    ]


class TestPricingPolicy:

    def test_no_coupon(self):
        pricing = PricingPolicy().price(_items(("50.00", 2)))
        assert pricing.subtotal == Money.of("100.00")
        assert pricing.discount == Money.zero()
        assert pricing.shipping_cost == Money.of("10.00")
        assert pricing.tax == Money.of("10.00")
        assert pricing.total == Money.of("120.00")

    def test_percentage_coupon(self):
        pricing = PricingPolicy().price(_items(("1000.00", 2)), make_coupon(value="10"))
        assert pricing.subtotal == Money.of("2000.00")
        assert pricing.discount == Money.of("200.00")
        assert pricing.tax == Money.of("180.00")
        assert pricing.shipping_cost == Money.of("10.00")
        assert pricing.total == Money.of("1990.00")

    def test_free_shipping_waives_shipping(self):
        coupon = make_coupon(discount_type=DiscountType.FREE_SHIPPING, value="0")
        pricing = PricingPolicy().price(_items(("20.00", 1)), coupon)
        assert pricing.shipping_cost == Money.zero()
        assert pricing.total == Money.of("22.00")

    def test_fixed_discount_larger_than_subtotal(self):
        coupon = make_coupon(discount_type=DiscountType.FIXED_AMOUNT, value="50")
        pricing = PricingPolicy().price(_items(("20.00", 1)), coupon)
        assert pricing.discount == Money.of("20.00")
        assert pricing.tax == Money.zero()
        assert pricing.total == Money.of("10.00")

    def test_tax_rounds_half_up(self):
        pricing = PricingPolicy(tax_rate=Decimal("0.075")).price(_items(("0.10", 1)))
        assert pricing.tax == Money.of("0.01")

    def test_configurable_shipping(self):
        pricing = PricingPolicy(shipping_cost=Money.of("4.99")).price(_items(("1.00", 1)))
        assert pricing.shipping_cost == Money.of("4.99")


class TestOrderNumbers:

    def test_format(self):
        assert format_order_number(date(2025, 10, 18), 7) == "ORD251018-0007"

    def test_sequence_restarts_each_day(self):
        generator = OrderNumberGenerator(FakeOrderSequenceRepository())
        assert generator.next_number(date(2025, 10, 18)) == "ORD251018-0001"
        assert generator.next_number(date(2025, 10, 18)) == "ORD251018-0002"
        assert generator.next_number(date(2025, 10, 19)) == "ORD251019-0001"
