"""Integration tests for product and coupon administration."""

from datetime import timedelta

import pytest

from commerce.application.add_product import AddProductHandler, ListProductsHandler
from commerce.application.manage_coupons import (
    CouponStatsHandler,
    CreateCouponHandler,
    DeactivateExpiredCouponsHandler,
    ListCouponsHandler,
    TopCouponsHandler,
    UserCouponUsageHandler,
)
from commerce.application.update_product import UpdateProductHandler
from commerce.application.validate_coupon import ValidateCouponHandler
from commerce.domain.exceptions import ConflictError, NotFoundError, ValidationError
from commerce.domain.model.coupon import CouponUsage
from commerce.domain.model.inventory import InventoryLogType
from tests.factories import NOW, fixed_clock, make_coupon, make_product
from tests.fakes import FakeUnitOfWork


class TestAddProduct:

    def test_initial_stock_goes_through_ledger(self):
        uow = FakeUnitOfWork()
        dto = AddProductHandler(uow, clock=fixed_clock()).handle(
            "Widget", "wid-1", "9.99", initial_stock=12
        )
        assert dto.sku == "WID-1"
        assert dto.stock_quantity == 12
        (entry,) = uow.inventory_logs.all()
        assert (entry.type, entry.quantity, entry.reason) == (
            InventoryLogType.RESTOCK, 12, "Initial stock"
        )

    def test_without_stock_writes_no_entry(self):
        uow = FakeUnitOfWork()
        AddProductHandler(uow).handle("Widget", "W1", "9.99")
        assert uow.inventory_logs.all() == []

    def test_duplicate_sku(self):
        uow = FakeUnitOfWork(products=[make_product()])
        with pytest.raises(ConflictError, match="SKU-P1"):
            AddProductHandler(uow).handle("Other", "sku-p1", "1.00")

    def test_negative_initial_stock(self):
        with pytest.raises(ValidationError):
            AddProductHandler(FakeUnitOfWork()).handle("Widget", "W1", "9.99", initial_stock=-1)

    def test_list(self):
        uow = FakeUnitOfWork(products=[make_product("p2", "Zed"), make_product("p1", "Abe")])
        assert [p.name for p in ListProductsHandler(uow).handle()] == ["Abe", "Zed"]


class TestUpdateProduct:

    def test_updates_catalog_fields_but_not_stock(self):
        uow = FakeUnitOfWork(products=[make_product(price="10.00", stock=7)])
        dto = UpdateProductHandler(uow).handle(
            "p1", name="Widget Pro", price="12.00", sale_price="11.00", is_active=False
        )
        assert dto.name == "Widget Pro"
        assert dto.unit_price == "$11.00"
        assert not dto.is_active
        assert uow.products.stock_of("p1") == 7

    def test_clear_sale_price(self):
        uow = FakeUnitOfWork(products=[make_product(price="10.00", sale_price="8.00")])
        dto = UpdateProductHandler(uow).handle("p1", clear_sale_price=True)
        assert dto.sale_price is None
        assert dto.unit_price == "$10.00"

    def test_unknown_product(self):
        with pytest.raises(NotFoundError):
            UpdateProductHandler(FakeUnitOfWork()).handle("nope", name="x")


class TestCreateCoupon:

    def _create(self, uow: FakeUnitOfWork, code: str = "welcome", **kwargs):
        return CreateCouponHandler(uow).handle(
            code, "percentage", "15", NOW, NOW + timedelta(days=7), **kwargs
        )

    def test_stores_upper_case_code(self):
        uow = FakeUnitOfWork()
        dto = self._create(uow, usage_limit=100)
        assert dto.code == "WELCOME"
        assert dto.discount_type == "PERCENTAGE"
        assert dto.usage_limit == 100
        assert uow.coupons.get_by_code("WELCOME") is not None

    def test_duplicate_code(self):
        uow = FakeUnitOfWork()
        self._create(uow)
        with pytest.raises(ConflictError):
            self._create(uow, code="WELCOME ")

    def test_percentage_over_100(self):
        with pytest.raises(ValidationError, match="cannot exceed 100"):
            CreateCouponHandler(FakeUnitOfWork()).handle(
                "X", "PERCENTAGE", "150", NOW, NOW + timedelta(days=1)
            )

    def test_window_must_be_ordered(self):
        with pytest.raises(ValidationError, match="before end date"):
            CreateCouponHandler(FakeUnitOfWork()).handle("X", "FIXED_AMOUNT", "5", NOW, NOW)

    def test_bad_discount_value(self):
        with pytest.raises(ValidationError, match="Invalid discount value"):
            CreateCouponHandler(FakeUnitOfWork()).handle(
                "X", "FIXED_AMOUNT", "five", NOW, NOW + timedelta(days=1)
            )

    def test_non_finite_discount_value(self):
        with pytest.raises(ValidationError, match="Invalid discount value"):
            CreateCouponHandler(FakeUnitOfWork()).handle(
                "X", "PERCENTAGE", "NaN", NOW, NOW + timedelta(days=1)
            )

    def test_unknown_type(self):
        with pytest.raises(ValidationError, match="Unknown discount type"):
            CreateCouponHandler(FakeUnitOfWork()).handle(
                "X", "BOGO", "5", NOW, NOW + timedelta(days=1)
            )


class TestValidateCoupon:

    def test_valid(self):
        uow = FakeUnitOfWork(coupons=[make_coupon(max_discount="15.00")])
        result = ValidateCouponHandler(uow, clock=fixed_clock()).handle("SAVE10", "u1", "200.00")
        assert result.valid
        assert result.discount == "$15.00"
        assert result.message is None

    def test_not_yet_valid(self):
        uow = FakeUnitOfWork(coupons=[make_coupon(valid_from=NOW + timedelta(days=1))])
        result = ValidateCouponHandler(uow, clock=fixed_clock()).handle("SAVE10", "u1", "50")
        assert not result.valid
        assert result.message == "Coupon is not yet valid"

    def test_inactive(self):
        uow = FakeUnitOfWork(coupons=[make_coupon(is_active=False)])
        result = ValidateCouponHandler(uow, clock=fixed_clock()).handle("SAVE10", "u1", "50")
        assert result.message == "Coupon is not active"

    @pytest.mark.parametrize("total", ["Infinity", "1e40", "NaN"])
    def test_unusable_order_total(self, total):
        uow = FakeUnitOfWork(coupons=[make_coupon()])
        with pytest.raises(ValidationError):
            ValidateCouponHandler(uow, clock=fixed_clock()).handle("SAVE10", "u1", total)


class TestCouponAdministration:

    def _setup(self) -> FakeUnitOfWork:
        return FakeUnitOfWork(coupons=[
            make_coupon("c1", "LIVE", used_count=2),
            make_coupon("c2", "OLD", valid_until=NOW - timedelta(days=1)),
            make_coupon("c3", "SOON", valid_from=NOW + timedelta(days=1)),
        ])

    def test_deactivate_expired(self):
        uow = self._setup()
        assert DeactivateExpiredCouponsHandler(uow, clock=fixed_clock()).handle() == 1
        assert not uow.coupons.get_by_code("OLD").is_active
        assert uow.coupons.get_by_code("LIVE").is_active

    def test_stats(self):
        stats = CouponStatsHandler(self._setup(), clock=fixed_clock()).handle()
        assert (stats.total, stats.active, stats.expired) == (3, 1, 1)
        assert (stats.used, stats.unused) == (1, 2)

    def test_list_sorted_by_code(self):
        codes = [c.code for c in ListCouponsHandler(self._setup()).handle()]
        assert codes == ["LIVE", "OLD", "SOON"]

    def test_top_coupons(self):
        uow = self._setup()
        codes = [c.code for c in TopCouponsHandler(uow).handle(limit=2)]
        assert codes == ["LIVE", "OLD"]

    def test_user_usage_newest_first(self):
        uow = self._setup()
        uow.coupons.add_usage(CouponUsage(None, "c1", "u1", 7, NOW - timedelta(days=1)))
        uow.coupons.add_usage(CouponUsage(None, "c3", "u1", None, NOW))
        uow.coupons.add_usage(CouponUsage(None, "c1", "u2", 8, NOW))

        usages = UserCouponUsageHandler(uow).handle("u1")

        assert [(u.coupon_code, u.order_id) for u in usages] == [("SOON", None), ("LIVE", 7)]
