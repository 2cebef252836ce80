"""Unit tests for the stock ledger and order lifecycle services."""

import pytest

from commerce.domain.exceptions import (
    NotFoundError,
    StateTransitionError,
    StockError,
    ValidationError,
)
from commerce.domain.model.inventory import InventoryLogType
from commerce.domain.model.order import Order, OrderItem, OrderStatus
from commerce.domain.model.value_objects import Money, PaymentMethod, Quantity
from commerce.domain.service.order_lifecycle_service import OrderLifecycleService
from commerce.domain.service.pricing import PricingPolicy
from commerce.domain.service.stock_ledger_service import StockLedgerService
from tests.factories import ADDRESS, NOW, make_product
from tests.fakes import (
    FakeInventoryLogRepository,
    FakeOrderRepository,
    FakeProductRepository,
)


def _ledger(stock: int = 3) -> tuple[StockLedgerService, FakeProductRepository, FakeInventoryLogRepository]:
    products = FakeProductRepository([make_product(stock=stock)])
    logs = FakeInventoryLogRepository()
    return StockLedgerService(products, logs), products, logs


class TestRecord:

    def test_applies_delta_and_logs_once(self):
        ledger, products, logs = _ledger(stock=3)
        movement = ledger.record_by_id("p1", InventoryLogType.RESTOCK, 10, "Supplier", NOW)
        assert movement.product.stock_quantity == 13
        assert products.stock_of("p1") == 13
        assert [(e.type, e.quantity) for e in logs.all()] == [(InventoryLogType.RESTOCK, 10)]

    def test_refuses_negative_stock(self):
        ledger, products, logs = _ledger(stock=3)
        with pytest.raises(StockError, match="Only 3 available"):
            ledger.record_by_id("p1", InventoryLogType.ADJUSTMENT, -5, "Count", NOW)
        assert products.stock_of("p1") == 3
        assert logs.all() == []

    def test_stale_snapshot_cannot_oversell(self):
        ledger, products, _ = _ledger(stock=3)
        stale = products.get_by_id("p1")
        ledger.record(stale, InventoryLogType.SALE, -2, "first", NOW)
        with pytest.raises(StockError, match="Only 1 available"):
            ledger.record(stale, InventoryLogType.SALE, -2, "second", NOW)

    def test_sign_rule_checked_before_stock(self):
        ledger, products, logs = _ledger(stock=3)
        with pytest.raises(ValidationError, match="must be negative"):
            ledger.record_by_id("p1", InventoryLogType.SALE, 2, "oops", NOW)
        assert products.stock_of("p1") == 3
        assert logs.all() == []

    def test_unknown_product(self):
        ledger, _, _ = _ledger()
        with pytest.raises(NotFoundError):
            ledger.record_by_id("nope", InventoryLogType.RESTOCK, 1, "x", NOW)


class TestVerify:

    def test_consistent_when_stock_came_through_ledger(self):
        products = FakeProductRepository([make_product(stock=0)])
        ledger = StockLedgerService(products, FakeInventoryLogRepository())
        ledger.record_by_id("p1", InventoryLogType.RESTOCK, 5, "Initial", NOW)
        ledger.record_by_id("p1", InventoryLogType.SALE, -2, "ORD251018-0001", NOW)
        check = ledger.verify("p1")
        assert check.consistent
        assert (check.recorded_stock, check.replayed_stock, check.entry_count) == (3, 3, 2)

    def test_detects_stock_without_ledger_entries(self):
        ledger, _, _ = _ledger(stock=3)
        check = ledger.verify("p1")
        assert not check.consistent
        assert check.replayed_stock == 0


class TestOrderLifecycle:

    def _setup(self):
        products = FakeProductRepository([make_product(stock=3)])
        logs = FakeInventoryLogRepository()
        orders = FakeOrderRepository()
        items = [OrderItem("p1", "Widget", Quantity(2), Money.of("1000.00"))]
        order = Order.create(
            "ORD251018-0001", "u1", items, PricingPolicy().price(items),
            PaymentMethod.CREDIT_CARD, ADDRESS, now=NOW,
        )
        orders.add(order)
        service = OrderLifecycleService(orders, StockLedgerService(products, logs))
        return service, orders, products, logs

    def test_cancel_restocks_with_return_entries(self):
        service, orders, products, logs = self._setup()
        service.transition(orders.get_by_id(1), OrderStatus.CANCELLED, NOW)
        assert orders.get_by_id(1).status is OrderStatus.CANCELLED
        assert products.stock_of("p1") == 5
        (entry,) = logs.all()
        assert entry.type is InventoryLogType.RETURN
        assert entry.quantity == 2
        assert entry.reason == "Order ORD251018-0001 cancelled"

    def test_concurrent_cancel_restocks_once(self):
        service, orders, products, _ = self._setup()
        first = orders.get_by_id(1)
        second = orders.get_by_id(1)
        service.transition(first, OrderStatus.CANCELLED, NOW)
        with pytest.raises(StateTransitionError, match="modified concurrently"):
            service.transition(second, OrderStatus.CANCELLED, NOW)
        assert products.stock_of("p1") == 5

    def test_forward_move_does_not_touch_stock(self):
        service, orders, products, logs = self._setup()
        service.transition(orders.get_by_id(1), OrderStatus.PROCESSING, NOW)
        assert products.stock_of("p1") == 3
        assert logs.all() == []
