"""Unit tests for domain value objects."""

from decimal import Decimal

import pytest

from commerce.domain.exceptions import ValidationError
from commerce.domain.model.value_objects import Money, Quantity, ShippingAddress


# ── Money ────────────────────────────────────────────────────────────────────


class TestMoney:

    def test_creation(self):
        m = Money(Decimal("10.50"))
        assert m.amount == Decimal("10.50")
        assert m.currency == "USD"

    def test_of_factory_from_string(self):
        m = Money.of("25.99")
        assert m.amount == Decimal("25.99")

    def test_of_factory_from_int(self):
        m = Money.of(10)
        assert m.amount == Decimal("10")

    def test_negative_amount_rejected(self):
        with pytest.raises(ValidationError, match="cannot be negative"):
            Money(Decimal("-1"))

    @pytest.mark.parametrize("raw", ["Infinity", "-Infinity", "NaN", float("inf")])
    def test_non_finite_amount_rejected(self, raw):
        with pytest.raises(ValidationError, match="must be finite"):
            Money.of(raw)

    def test_amount_beyond_column_range_rejected(self):
        with pytest.raises(ValidationError, match="cannot exceed"):
            Money.of("1e40")
        assert Money.of("9999999999.99").amount == Decimal("9999999999.99")

    def test_scaling_by_non_finite_factor_rejected(self):
        with pytest.raises(ValidationError, match="Cannot scale"):
            Money.of("10").scaled(Decimal("Infinity"))

    def test_addition(self):
        result = Money.of("10") + Money.of("5.50")
        assert result == Money.of("15.50")

    def test_subtraction(self):
        result = Money.of("10") - Money.of("3")
        assert result == Money.of("7")

    def test_subtraction_going_negative_rejected(self):
        with pytest.raises(ValidationError, match="negative amount"):
            Money.of("5") - Money.of("10")

    def test_multiplication_by_int(self):
        result = Money.of("7.50") * 3
        assert result == Money.of("22.50")

    def test_currency_mismatch_rejected(self):
        with pytest.raises(ValidationError, match="Cannot combine"):
            Money(Decimal("10"), "USD") + Money(Decimal("5"), "EUR")

    def test_str_formatting(self):
        assert str(Money.of("15")) == "$15.00"
        assert str(Money.of("9.5")) == "$9.50"

    def test_scaled_rounds_half_up_to_cents(self):
        assert Money.of("0.05").scaled(Decimal("0.5")) == Money.of("0.03")
        assert Money.of("1800.00").scaled(Decimal("0.10")) == Money.of("180.00")

    def test_minus_floor_zero_clamps(self):
        assert Money.of("5").minus_floor_zero(Money.of("8")) == Money.of("0.00")
        assert Money.of("8").minus_floor_zero(Money.of("5")) == Money.of("3")

    def test_comparison_operators(self):
        assert Money.of("5") < Money.of("10")
        assert Money.of("10") > Money.of("5")
        assert Money.of("10") >= Money.of("10")
        assert Money.of("10") <= Money.of("10")


# ── Quantity ─────────────────────────────────────────────────────────────────


class TestQuantity:

    def test_valid_quantity(self):
        q = Quantity(5)
        assert q.value == 5

    def test_zero_rejected(self):
        with pytest.raises(ValidationError, match="must be positive"):
            Quantity(0)

    def test_negative_rejected(self):
        with pytest.raises(ValidationError, match="must be positive"):
            Quantity(-3)

    def test_bool_rejected(self):
        with pytest.raises(ValidationError, match="must be an integer"):
            Quantity(True)

    def test_str(self):
        assert str(Quantity(7)) == "7"


# ── ShippingAddress ──────────────────────────────────────────────────────────


class TestShippingAddress:

    RAW = {
        "street": "1 Main St",
        "city": "Springfield",
        "state": "IL",
        "postal_code": "62701",
        "country": "US",
    }

    def test_from_dict_and_back(self):
        address = ShippingAddress.from_dict(self.RAW)
        assert address.city == "Springfield"
        assert address.to_dict() == self.RAW

    def test_blank_field_rejected(self):
        with pytest.raises(ValidationError, match="city is required"):
            ShippingAddress.from_dict({**self.RAW, "city": "  "})

    def test_missing_field_rejected(self):
        raw = dict(self.RAW)
        del raw["postal_code"]
        with pytest.raises(ValidationError, match="postal_code is required"):
            ShippingAddress.from_dict(raw)
