"""Unit tests for the Product aggregate."""

import pytest

from commerce.domain.exceptions import StockError, ValidationError
from commerce.domain.model.product import Product
from commerce.domain.model.value_objects import Money
from tests.factories import make_product


class TestProductCreate:

    def test_normalizes_sku_and_starts_empty(self):
        product = Product.create(" Widget ", " wid-1 ", Money.of("9.99"))
        assert product.name == "Widget"
        assert product.sku == "WID-1"
        assert product.stock_quantity == 0
        assert len(product.id) == 32

    def test_zero_price_rejected(self):
        with pytest.raises(ValidationError, match="greater than zero"):
            Product.create("Widget", "W1", Money.of("0"))

    def test_name_required(self):
        with pytest.raises(ValidationError, match="name is required"):
            Product.create(" ", "W1", Money.of("1"))


class TestPricing:

    def test_unit_price_prefers_sale_price(self):
        assert make_product(price="10", sale_price="8").unit_price == Money.of("8")
        assert make_product(price="10").unit_price == Money.of("10")

    def test_clear_sale_price(self):
        product = make_product(price="10", sale_price="8")
        product.set_sale_price(None)
        assert product.unit_price == Money.of("10")


class TestPurchasable:

    def test_enough_stock(self):
        make_product(stock=3).ensure_purchasable(3)

    def test_insufficient_stock_names_product_and_available(self):
        with pytest.raises(StockError, match="Insufficient stock for Widget. Only 2 available") as exc_info:
            make_product(stock=2).ensure_purchasable(3)
        assert exc_info.value.product_id == "p1"
        assert exc_info.value.available == 2

    def test_inactive_product(self):
        with pytest.raises(StockError, match="no longer available"):
            make_product(is_active=False).ensure_purchasable(1)
