"""Application services: inventory queries (ledger, alerts, audit)."""

from __future__ import annotations

from commerce.application.dto import (
    InventoryAlertDTO,
    InventoryLogPageDTO,
    LedgerCheckDTO,
)
from commerce.application.mappers import log_to_dto
from commerce.domain.repository.queries import InventoryLogQuery
from commerce.domain.repository.unit_of_work import UnitOfWork
from commerce.domain.service.stock_ledger_service import StockLedgerService

DEFAULT_LOW_STOCK_THRESHOLD = 10


class ShowInventoryLogsHandler:

    def __init__(self, uow: UnitOfWork) -> None:
        self._uow = uow

    def handle(self, query: InventoryLogQuery) -> InventoryLogPageDTO:
        with self._uow as uow:
            page = uow.inventory_logs.search(query)
        return InventoryLogPageDTO(
            logs=[log_to_dto(entry) for entry in page.items],
            page=page.page,
            limit=page.limit,
            total=page.total,
            total_pages=page.total_pages,
        )


class InventoryAlertsHandler:
    """Active products at or below the threshold, lowest stock first."""

    def __init__(self, uow: UnitOfWork) -> None:
        self._uow = uow

    def handle(self, threshold: int = DEFAULT_LOW_STOCK_THRESHOLD) -> list[InventoryAlertDTO]:
        with self._uow as uow:
            products = uow.products.list_low_stock(threshold)
        return [
            InventoryAlertDTO(
                product_id=product.id,
                product_name=product.name,
                current_stock=product.stock_quantity,
                threshold=threshold,
                alert_type="OUT_OF_STOCK" if product.stock_quantity == 0 else "LOW_STOCK",
            )
            for product in products
        ]


class VerifyLedgerHandler:

    def __init__(self, uow: UnitOfWork) -> None:
        self._uow = uow

    def handle(self, product_id: str) -> LedgerCheckDTO:
        """Replay a product's ledger and compare it with recorded stock."""
        with self._uow as uow:
            check = StockLedgerService(uow.products, uow.inventory_logs).verify(product_id)
        return LedgerCheckDTO(
            product_id=check.product_id,
            recorded_stock=check.recorded_stock,
            replayed_stock=check.replayed_stock,
            entry_count=check.entry_count,
            consistent=check.consistent,
        )
