"""Application services: inventory analytics read from the stock ledger.

Movement, turnover and restock figures come from ledger entries; summary
and valuation come from current product stock.  Stock is valued at list
price, ignoring sale prices.  All reports are read-only.
"""

from __future__ import annotations

import math
from collections import defaultdict
from datetime import datetime, timedelta
from decimal import ROUND_HALF_UP, Decimal

from commerce.application.dto import (
    InventorySummaryDTO,
    MovementTotalDTO,
    RestockRecommendationDTO,
    StockMovementDTO,
    TurnoverItemDTO,
    TurnoverReportDTO,
    ValuationItemDTO,
    ValuationReportDTO,
)
from commerce.application.mappers import log_to_dto
from commerce.application.show_inventory import DEFAULT_LOW_STOCK_THRESHOLD
from commerce.domain.clock import Clock, utc_now
from commerce.domain.exceptions import ValidationError
from commerce.domain.model.inventory import InventoryLog, InventoryLogType
from commerce.domain.model.value_objects import CENT, Money
from commerce.domain.repository.queries import InventoryLogQuery
from commerce.domain.repository.unit_of_work import UnitOfWork

DEFAULT_ANALYSIS_DAYS = 30
RESTOCK_COVER_DAYS = 30
NO_SALES_DAYS_LEFT = 999
PRIORITY_ORDER = {"HIGH": 0, "MEDIUM": 1, "LOW": 2}


def _two_places(value: Decimal) -> float:
    return float(value.quantize(CENT, rounding=ROUND_HALF_UP))


def _check_days(days: int) -> None:
    if days < 1:
        raise ValidationError("Days must be at least 1")


def _units_sold(entries: list[InventoryLog]) -> dict[str, list[int]]:
    """Units per SALE entry, grouped by product."""
    sold: dict[str, list[int]] = defaultdict(list)
    for entry in entries:
        sold[entry.product_id].append(abs(entry.quantity))
    return sold


def _sales_since(uow: UnitOfWork, days: int, clock: Clock) -> list[InventoryLog]:
    query = InventoryLogQuery(
        type=InventoryLogType.SALE,
        start=clock() - timedelta(days=days),
        limit=None,
    )
    return uow.inventory_logs.search(query).items


class StockMovementHandler:
    """Ledger entries in a window, with per-type counts and absolute units."""

    def __init__(self, uow: UnitOfWork) -> None:
        self._uow = uow

    def handle(
        self,
        start: datetime | None = None,
        end: datetime | None = None,
        product_id: str | None = None,
    ) -> StockMovementDTO:
        query = InventoryLogQuery(product_id=product_id, start=start, end=end, limit=None)
        with self._uow as uow:
            entries = uow.inventory_logs.search(query).items

        counts: dict[str, int] = defaultdict(int)
        units: dict[str, int] = defaultdict(int)
        for entry in entries:
            counts[entry.type.value] += 1
            units[entry.type.value] += abs(entry.quantity)

        return StockMovementDTO(
            logs=[log_to_dto(entry) for entry in entries],
            by_type={
                kind: MovementTotalDTO(count=counts[kind], total_quantity=units[kind])
                for kind in sorted(counts)
            },
        )


class InventoryTurnoverHandler:

    def __init__(self, uow: UnitOfWork, clock: Clock = utc_now) -> None:
        self._uow = uow
        self._clock = clock

    def handle(self, days: int = DEFAULT_ANALYSIS_DAYS) -> TurnoverReportDTO:
        """Annualized turnover for every product sold in the last *days*.

        Average stock is approximated as current stock plus half of what
        was sold in the window.
        """
        _check_days(days)
        with self._uow as uow:
            sold = _units_sold(_sales_since(uow, days, self._clock))
            products = {p.id: p for p in uow.products.list_all()}

        items = []
        revenue = Money.zero()
        for product_id, quantities in sold.items():
            product = products.get(product_id)
            if product is None:
                continue
            total_sold = sum(quantities)
            average_stock = Decimal(product.stock_quantity) + Decimal(total_sold) / 2
            rate = (
                Decimal(total_sold) / average_stock * Decimal(365) / Decimal(days)
                if average_stock > 0
                else Decimal(0)
            )
            item_revenue = product.price * total_sold
            revenue = revenue + item_revenue
            items.append(
                TurnoverItemDTO(
                    product_id=product.id,
                    product_name=product.name,
                    sku=product.sku,
                    current_stock=product.stock_quantity,
                    total_sold=total_sold,
                    sales_count=len(quantities),
                    turnover_rate=_two_places(rate),
                    revenue=str(item_revenue),
                )
            )

        items.sort(key=lambda i: (-i.turnover_rate, i.product_name))
        average = (
            _two_places(Decimal(str(sum(i.turnover_rate for i in items))) / len(items))
            if items
            else 0.0
        )
        return TurnoverReportDTO(
            days=days,
            items=items,
            average_turnover_rate=average,
            total_revenue=str(revenue),
        )


class InventorySummaryHandler:

    def __init__(self, uow: UnitOfWork) -> None:
        self._uow = uow

    def handle(
        self, low_stock_threshold: int = DEFAULT_LOW_STOCK_THRESHOLD
    ) -> InventorySummaryDTO:
        with self._uow as uow:
            products = uow.products.list_all()

        value = Money.zero()
        for product in products:
            value = value + product.price * product.stock_quantity
        active = [p for p in products if p.is_active]

        return InventorySummaryDTO(
            total_products=len(products),
            active_products=len(active),
            inactive_products=len(products) - len(active),
            total_stock_quantity=sum(p.stock_quantity for p in products),
            total_inventory_value=str(value),
            low_stock_count=sum(
                1 for p in active if 0 < p.stock_quantity <= low_stock_threshold
            ),
            out_of_stock_count=sum(1 for p in active if p.stock_quantity == 0),
        )


class InventoryValuationHandler:
    """Stock value of every active product, by name."""

    def __init__(self, uow: UnitOfWork) -> None:
        self._uow = uow

    def handle(self) -> ValuationReportDTO:
        with self._uow as uow:
            products = [p for p in uow.products.list_all() if p.is_active]

        items = []
        total = Money.zero()
        for product in products:
            line_value = product.price * product.stock_quantity
            total = total + line_value
            items.append(
                ValuationItemDTO(
                    product_id=product.id,
                    product_name=product.name,
                    sku=product.sku,
                    unit_price=str(product.price),
                    quantity=product.stock_quantity,
                    total_value=str(line_value),
                )
            )

        average = (
            Money((total.amount / len(items)).quantize(CENT, rounding=ROUND_HALF_UP))
            if items
            else Money.zero()
        )
        return ValuationReportDTO(
            items=items,
            total_quantity=sum(i.quantity for i in items),
            total_value=str(total),
            average_value=str(average),
        )


class RestockRecommendationsHandler:

    def __init__(self, uow: UnitOfWork, clock: Clock = utc_now) -> None:
        self._uow = uow
        self._clock = clock

    def handle(
        self,
        threshold: int = DEFAULT_LOW_STOCK_THRESHOLD,
        days: int = DEFAULT_ANALYSIS_DAYS,
    ) -> list[RestockRecommendationDTO]:
        """Low-stock products with a suggested order covering 30 days of sales.

        Products that sold nothing in the window report 999 days of stock
        left.  Results are ordered by priority, then fewest days left.
        """
        _check_days(days)
        with self._uow as uow:
            products = uow.products.list_low_stock(threshold)
            sold = _units_sold(_sales_since(uow, days, self._clock))

        recommendations = []
        for product in products:
            daily = Decimal(sum(sold.get(product.id, []))) / Decimal(days)
            days_left = (
                math.floor(Decimal(product.stock_quantity) / daily)
                if daily > 0
                else NO_SALES_DAYS_LEFT
            )
            if days_left < 7:
                priority = "HIGH"
            elif days_left < 14:
                priority = "MEDIUM"
            else:
                priority = "LOW"
            recommendations.append(
                RestockRecommendationDTO(
                    product_id=product.id,
                    product_name=product.name,
                    sku=product.sku,
                    current_stock=product.stock_quantity,
                    average_daily_sales=_two_places(daily),
                    days_of_stock_left=days_left,
                    recommended_quantity=math.ceil(daily * RESTOCK_COVER_DAYS),
                    priority=priority,
                )
            )

        recommendations.sort(
            key=lambda r: (PRIORITY_ORDER[r.priority], r.days_of_stock_left)
        )
        return recommendations
