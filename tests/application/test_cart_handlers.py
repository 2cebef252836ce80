"""Integration tests for the cart use cases."""

from datetime import timedelta

import pytest

from commerce.application.apply_coupon import ApplyCouponHandler, RemoveCouponHandler
from commerce.application.dto import CartItemSpec
from commerce.application.merge_guest_cart import MergeGuestCartHandler
from commerce.application.retry import RetryPolicy
from commerce.application.show_cart import ShowCartHandler
from commerce.application.update_cart import (
    AddToCartHandler,
    ClearCartHandler,
    RemoveCartItemHandler,
    UpdateCartItemHandler,
)
from commerce.application.validate_cart import ValidateCartHandler
from commerce.domain.exceptions import (
    AuthorizationError,
    CouponError,
    NotFoundError,
    StockError,
    ValidationError,
)
from commerce.domain.model.coupon import DiscountType
from tests.factories import NOW, fixed_clock, make_coupon, make_product
from tests.fakes import FakeUnitOfWork


def _setup() -> FakeUnitOfWork:
    return FakeUnitOfWork(
        products=[
            make_product("p1", "Widget", price="10.00", stock=5),
            make_product("p2", "Gadget", price="25.00", stock=1),
        ],
        coupons=[
            make_coupon(),
            make_coupon("c2", "BIG", min_purchase="100.00"),
            make_coupon("c3", "SHIPFREE", DiscountType.FREE_SHIPPING, value="0"),
        ],
    )


class TestShowCart:

    def test_creates_empty_cart_on_first_use(self):
        uow = _setup()
        dto = ShowCartHandler(uow).handle("u1")
        assert dto.items == []
        assert dto.total == "$0.00"
        assert uow.carts.get_by_user("u1") is not None


class TestAddToCart:

    def test_adds_and_prices_line(self):
        uow = _setup()
        dto = AddToCartHandler(uow).handle("u1", "p1", 2)
        (item,) = dto.items
        assert item.line_total == "$20.00"
        assert dto.subtotal == "$20.00"
        assert dto.item_count == 2

    def test_same_product_merges_into_one_line(self):
        uow = _setup()
        handler = AddToCartHandler(uow)
        handler.handle("u1", "p1", 2)
        dto = handler.handle("u1", "p1", 3)
        assert len(dto.items) == 1
        assert dto.items[0].quantity == 5

    def test_merge_beyond_stock(self):
        uow = _setup()
        handler = AddToCartHandler(uow)
        handler.handle("u1", "p1", 4)
        with pytest.raises(StockError, match="Only 1 additional items available"):
            handler.handle("u1", "p1", 2)
        assert uow.carts.get_by_user("u1").items[0].quantity == 4

    def test_unknown_product(self):
        with pytest.raises(NotFoundError):
            AddToCartHandler(_setup()).handle("u1", "nope", 1)

    def test_quantity_must_be_positive(self):
        with pytest.raises(ValidationError):
            AddToCartHandler(_setup()).handle("u1", "p1", 0)


class TestChangeCartItems:

    def test_update_quantity(self):
        uow = _setup()
        item_id = AddToCartHandler(uow).handle("u1", "p1", 1).items[0].id
        dto = UpdateCartItemHandler(uow).handle("u1", item_id, 4)
        assert dto.items[0].quantity == 4

    def test_update_beyond_stock(self):
        uow = _setup()
        item_id = AddToCartHandler(uow).handle("u1", "p2", 1).items[0].id
        with pytest.raises(StockError, match="Only 1 available"):
            UpdateCartItemHandler(uow).handle("u1", item_id, 2)

    def test_other_users_item_is_off_limits(self):
        uow = _setup()
        item_id = AddToCartHandler(uow).handle("u1", "p1", 1).items[0].id
        with pytest.raises(AuthorizationError, match="Unauthorized"):
            UpdateCartItemHandler(uow).handle("u2", item_id, 2)
        with pytest.raises(AuthorizationError):
            RemoveCartItemHandler(uow).handle("u2", item_id)

    def test_remove_item(self):
        uow = _setup()
        item_id = AddToCartHandler(uow).handle("u1", "p1", 1).items[0].id
        dto = RemoveCartItemHandler(uow).handle("u1", item_id)
        assert dto.items == []

    def test_remove_unknown_item(self):
        with pytest.raises(NotFoundError, match="Cart item not found"):
            RemoveCartItemHandler(_setup()).handle("u1", "missing")

    def test_clear_drops_items_and_coupon(self):
        uow = _setup()
        AddToCartHandler(uow).handle("u1", "p1", 2)
        ApplyCouponHandler(uow, clock=fixed_clock()).handle("u1", "SAVE10")
        dto = ClearCartHandler(uow).handle("u1")
        assert dto.items == []
        assert dto.coupon_code is None


class TestCartCoupon:

    def test_apply_discounts_cart_total(self):
        uow = _setup()
        AddToCartHandler(uow).handle("u1", "p1", 2)
        dto = ApplyCouponHandler(uow, clock=fixed_clock()).handle("u1", "save10")
        assert dto.coupon_code == "SAVE10"
        assert dto.discount == "$2.00"
        assert dto.total == "$18.00"

    def test_apply_does_not_redeem(self):
        uow = _setup()
        AddToCartHandler(uow).handle("u1", "p1", 2)
        ApplyCouponHandler(uow, clock=fixed_clock()).handle("u1", "SAVE10")
        assert uow.coupons.get_by_id("c1").used_count == 0

    def test_apply_below_minimum_purchase(self):
        uow = _setup()
        AddToCartHandler(uow).handle("u1", "p1", 1)
        with pytest.raises(CouponError, match="Minimum purchase"):
            ApplyCouponHandler(uow, clock=fixed_clock()).handle("u1", "BIG")
        assert uow.carts.get_by_user("u1").coupon_id is None

    def test_apply_unknown_code(self):
        with pytest.raises(CouponError, match="Invalid coupon code"):
            ApplyCouponHandler(_setup(), clock=fixed_clock()).handle("u1", "NOPE")

    def test_free_shipping_flag(self):
        uow = _setup()
        AddToCartHandler(uow).handle("u1", "p1", 1)
        dto = ApplyCouponHandler(uow, clock=fixed_clock()).handle("u1", "SHIPFREE")
        assert dto.free_shipping
        assert dto.discount == "$0.00"

    def test_remove_coupon(self):
        uow = _setup()
        AddToCartHandler(uow).handle("u1", "p1", 2)
        ApplyCouponHandler(uow, clock=fixed_clock()).handle("u1", "SAVE10")
        dto = RemoveCouponHandler(uow).handle("u1")
        assert dto.coupon_code is None
        assert dto.total == "$20.00"


class TestValidateCart:

    def test_valid_cart(self):
        uow = _setup()
        AddToCartHandler(uow).handle("u1", "p1", 2)
        result = ValidateCartHandler(uow, clock=fixed_clock()).handle("u1")
        assert result.valid
        assert result.errors == []

    def test_empty_cart(self):
        result = ValidateCartHandler(_setup()).handle("u1")
        assert not result.valid
        assert result.errors == ["Cart is empty"]

    def test_reports_every_problem(self):
        uow = _setup()
        AddToCartHandler(uow).handle("u1", "p1", 5)
        AddToCartHandler(uow).handle("u1", "p2", 1)
        gadget = uow.products.get_by_id("p2")
        gadget.is_active = False
        uow.products.save(gadget)
        uow.products.apply_stock_delta("p1", -3)

        result = ValidateCartHandler(uow, clock=fixed_clock()).handle("u1")

        assert not result.valid
        assert result.errors == [
            "Widget: Only 2 available, but 5 in cart",
            "Gadget is no longer available",
        ]

    def test_expired_coupon(self):
        uow = _setup()
        AddToCartHandler(uow).handle("u1", "p1", 2)
        ApplyCouponHandler(uow, clock=fixed_clock()).handle("u1", "SAVE10")
        later = fixed_clock(NOW + timedelta(days=60))
        result = ValidateCartHandler(uow, clock=later).handle("u1")
        assert not result.valid
        assert result.errors == ["Coupon has expired"]


class TestMergeGuestCart:

    def test_best_effort_merge(self):
        uow = _setup()
        report = MergeGuestCartHandler(uow).handle("u1", [
            CartItemSpec("p1", 2),
            CartItemSpec("p2", 3),
            CartItemSpec("ghost", 1),
        ])
        assert [r.key for r in report.successful] == ["p1"]
        assert [(r.key, r.error_kind) for r in report.failed] == [
            ("p2", "STOCK"),
            ("ghost", "NOT_FOUND"),
        ]
        cart = uow.carts.get_by_user("u1")
        assert [(i.product_id, i.quantity) for i in cart.items] == [("p1", 2)]

    def test_locked_product_is_reported_as_transient(self):
        uow = _setup()
        uow.products.locked_ids.add("p2")
        handler = MergeGuestCartHandler(uow, retry_policy=RetryPolicy(max_attempts=2, backoff_seconds=0))

        report = handler.handle("u1", [CartItemSpec("p2", 1), CartItemSpec("p1", 2)])

        assert [r.key for r in report.successful] == ["p1"]
        assert [(r.key, r.error_kind) for r in report.failed] == [("p2", "TRANSIENT")]
        cart = uow.carts.get_by_user("u1")
        assert [(i.product_id, i.quantity) for i in cart.items] == [("p1", 2)]
