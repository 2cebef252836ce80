"""Tests against a real SQLite database file.

Every test gets a fresh database under pytest's tmp_path.  Handlers run
through SqlAlchemyUnitOfWork exactly as the CLI wires them.
"""

import threading
from datetime import timedelta

import pytest
from sqlalchemy import delete
from sqlalchemy.exc import IntegrityError, OperationalError

from commerce.application.add_product import AddProductHandler
from commerce.application.apply_coupon import ApplyCouponHandler
from commerce.application.cancel_order import CancelOrderHandler
from commerce.application.create_order import CreateOrderHandler
from commerce.application.manage_coupons import CreateCouponHandler, UserCouponUsageHandler
from commerce.application.retry import RetryPolicy
from commerce.application.show_inventory import VerifyLedgerHandler
from commerce.application.show_order import ShowOrderHandler
from commerce.application.update_cart import AddToCartHandler
from commerce.domain.exceptions import (
    ConflictError,
    CouponError,
    StockError,
    TransientPersistenceError,
)
from commerce.domain.model.inventory import InventoryLogType
from commerce.domain.model.product import Product
from commerce.domain.model.value_objects import Money, PaymentMethod
from commerce.infrastructure.persistence.database import (
    build_engine,
    build_session_factory,
    init_db,
)
from commerce.infrastructure.persistence.models import CartItemModel
from commerce.infrastructure.persistence.sql_cart_repository import SqlCartRepository
from commerce.infrastructure.persistence.unit_of_work import (
    SqlAlchemyUnitOfWork,
    translate_db_error,
)
from tests.factories import ADDRESS, NOW, fixed_clock


@pytest.fixture
def session_factory(tmp_path):
    engine = build_engine(f"sqlite:///{tmp_path}/commerce.db")
    init_db(engine)
    yield build_session_factory(engine)
    engine.dispose()


@pytest.fixture
def uow_factory(session_factory):
    return lambda: SqlAlchemyUnitOfWork(session_factory)


def _seed(uow_factory, stock: int = 5, usage_limit: int | None = None) -> str:
    """One $1000.00 product and a 10% coupon; returns the product id."""
    product = AddProductHandler(uow_factory(), clock=fixed_clock()).handle(
        "Widget", "WID-1", "1000.00", initial_stock=stock
    )
    CreateCouponHandler(uow_factory()).handle(
        "SAVE10", "PERCENTAGE", "10", NOW - timedelta(days=1), NOW + timedelta(days=30),
        usage_limit=usage_limit,
    )
    return product.id


def _fill_cart(uow_factory, user_id: str, product_id: str, quantity: int, coupon: bool = True):
    AddToCartHandler(uow_factory()).handle(user_id, product_id, quantity)
    if coupon:
        ApplyCouponHandler(uow_factory(), clock=fixed_clock()).handle(user_id, "SAVE10")


def _checkout(uow_factory, user_id: str = "u1"):
    handler = CreateOrderHandler(
        uow_factory(),
        retry_policy=RetryPolicy(max_attempts=5, backoff_seconds=0),
        clock=fixed_clock(),
    )
    return handler.handle(user_id, ADDRESS, PaymentMethod.CREDIT_CARD)


class TestCheckout:

    def test_commits_everything_together(self, uow_factory):
        product_id = _seed(uow_factory)
        _fill_cart(uow_factory, "u1", product_id, 2)

        dto = _checkout(uow_factory)

        assert dto.order_number == "ORD251018-0001"
        assert dto.total == "$1990.00"
        with uow_factory() as uow:
            assert uow.products.get_by_id(product_id).stock_quantity == 3
            entries = uow.inventory_logs.list_for_product(product_id)
            assert [(e.type, e.quantity) for e in entries] == [
                (InventoryLogType.RESTOCK, 5),
                (InventoryLogType.SALE, -2),
            ]
            coupon = uow.coupons.get_by_code("SAVE10")
            assert coupon.used_count == 1
            assert uow.coupons.count_usages(coupon.id, "u1") == 1
            assert uow.carts.get_by_user("u1").is_empty

        stored = ShowOrderHandler(uow_factory()).handle_by_number(dto.order_number, "u1")
        assert stored.items[0].unit_price == "$1000.00"
        assert stored.shipping_address["city"] == "Springfield"
        assert VerifyLedgerHandler(uow_factory()).handle(product_id).consistent
        (usage,) = UserCouponUsageHandler(uow_factory()).handle("u1")
        assert (usage.coupon_code, usage.order_id) == ("SAVE10", dto.id)

    def test_failure_leaves_no_trace(self, uow_factory):
        product_id = _seed(uow_factory, stock=5)
        _fill_cart(uow_factory, "u1", product_id, 2)
        with uow_factory() as uow:
            uow.products.apply_stock_delta(product_id, -4)
            uow.commit()

        with pytest.raises(StockError):
            _checkout(uow_factory)

        with uow_factory() as uow:
            assert uow.products.get_by_id(product_id).stock_quantity == 1
            assert uow.orders.get_by_number("ORD251018-0001") is None
            assert uow.coupons.get_by_code("SAVE10").used_count == 0
            assert not uow.carts.get_by_user("u1").is_empty

    def test_order_numbers_count_up(self, uow_factory):
        product_id = _seed(uow_factory)
        numbers = []
        for _ in range(2):
            _fill_cart(uow_factory, "u1", product_id, 1, coupon=False)
            numbers.append(_checkout(uow_factory).order_number)
        assert numbers == ["ORD251018-0001", "ORD251018-0002"]

    def test_cancel_restocks(self, uow_factory):
        product_id = _seed(uow_factory)
        _fill_cart(uow_factory, "u1", product_id, 2)
        dto = _checkout(uow_factory)

        CancelOrderHandler(uow_factory(), clock=fixed_clock()).handle(dto.id, "u1")

        with uow_factory() as uow:
            assert uow.products.get_by_id(product_id).stock_quantity == 5
            assert uow.orders.get_by_id(dto.id).is_cancelled
        assert VerifyLedgerHandler(uow_factory()).handle(product_id).consistent


class TestConcurrentCheckout:

    def _race(self, uow_factory, users: list[str]) -> tuple[list, list]:
        barrier = threading.Barrier(len(users))
        successes, failures = [], []
        lock = threading.Lock()

        def place(user_id: str) -> None:
            barrier.wait()
            try:
                dto = _checkout(uow_factory, user_id)
            except (CouponError, StockError) as exc:
                with lock:
                    failures.append(exc)
            else:
                with lock:
                    successes.append(dto)

        threads = [threading.Thread(target=place, args=(u,)) for u in users]
        for t in threads:
            t.start()
        for t in threads:
            t.join(timeout=60)
        return successes, failures

    def test_last_coupon_use_goes_to_one_buyer(self, uow_factory):
        product_id = _seed(uow_factory, stock=10, usage_limit=1)
        for user in ("u1", "u2"):
            _fill_cart(uow_factory, user, product_id, 1)

        successes, failures = self._race(uow_factory, ["u1", "u2"])

        assert len(successes) == 1
        assert [type(e) for e in failures] == [CouponError]
        with uow_factory() as uow:
            assert uow.coupons.get_by_code("SAVE10").used_count == 1
            assert uow.products.get_by_id(product_id).stock_quantity == 9

    def test_last_unit_goes_to_one_buyer(self, uow_factory):
        product_id = _seed(uow_factory, stock=1)
        for user in ("u1", "u2"):
            _fill_cart(uow_factory, user, product_id, 1, coupon=False)

        successes, failures = self._race(uow_factory, ["u1", "u2"])

        assert len(successes) == 1
        assert [type(e) for e in failures] == [StockError]
        with uow_factory() as uow:
            assert uow.products.get_by_id(product_id).stock_quantity == 0
        assert VerifyLedgerHandler(uow_factory()).handle(product_id).consistent

    def test_same_day_order_numbers_are_unique(self, uow_factory):
        product_id = _seed(uow_factory, stock=50)
        users = [f"u{n}" for n in range(1, 7)]
        for user in users:
            _fill_cart(uow_factory, user, product_id, 1, coupon=False)

        successes, failures = self._race(uow_factory, users)

        assert failures == []
        assert sorted(dto.order_number for dto in successes) == [
            f"ORD251018-{n:04d}" for n in range(1, 7)
        ]
        with uow_factory() as uow:
            assert uow.products.get_by_id(product_id).stock_quantity == 44
        assert VerifyLedgerHandler(uow_factory()).handle(product_id).consistent


class TestUnitOfWork:

    def test_nothing_persists_without_commit(self, uow_factory):
        with uow_factory() as uow:
            uow.products.add(Product.create("Widget", "W1", Money.of("1.00")))
        with uow_factory() as uow:
            assert uow.products.get_by_sku("W1") is None

    def test_duplicate_sku(self, uow_factory):
        AddProductHandler(uow_factory()).handle("Widget", "W1", "1.00")
        with pytest.raises(ConflictError):
            AddProductHandler(uow_factory()).handle("Widget again", "w1", "2.00")

    def test_translates_driver_errors(self):
        locked = OperationalError("UPDATE products", {}, Exception("database is locked"))
        duplicate = IntegrityError("INSERT INTO products", {}, Exception("UNIQUE constraint failed"))
        assert isinstance(translate_db_error(locked), TransientPersistenceError)
        assert isinstance(translate_db_error(duplicate), ConflictError)


class TestCartRepository:

    def test_locked_read_reloads_lines(self, uow_factory, session_factory):
        product_id = _seed(uow_factory)
        _fill_cart(uow_factory, "u1", product_id, 2, coupon=False)

        with session_factory() as session:
            carts = SqlCartRepository(session)
            assert len(carts.get_by_user("u1").items) == 1
            session.execute(
                delete(CartItemModel).execution_options(synchronize_session=False)
            )
            assert carts.get_by_user_for_update("u1").is_empty

    def test_locked_read_of_missing_cart(self, session_factory):
        with session_factory() as session:
            assert SqlCartRepository(session).get_by_user_for_update("nobody") is None
