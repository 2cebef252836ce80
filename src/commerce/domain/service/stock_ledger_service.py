"""Domain service: Stock Ledger.

The only code path that changes ``Product.stock_quantity``.  Each call
performs exactly one conditional stock update and appends exactly one
ledger entry, inside the caller's unit of work, so replaying a
product's entries always reproduces its stock.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime

from commerce.domain.exceptions import NotFoundError, StockError
from commerce.domain.model.inventory import InventoryLog, InventoryLogType, replay
from commerce.domain.model.product import Product
from commerce.domain.repository.inventory_repository import InventoryLogRepository
from commerce.domain.repository.product_repository import ProductRepository

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StockMovement:
    product: Product
    entry: InventoryLog


@dataclass(frozen=True)
class LedgerCheck:
    product_id: str
    recorded_stock: int
    replayed_stock: int
    entry_count: int

    @property
    def consistent(self) -> bool:
        return self.recorded_stock == self.replayed_stock


class StockLedgerService:

    def __init__(
        self,
        product_repo: ProductRepository,
        log_repo: InventoryLogRepository,
    ) -> None:
        self._product_repo = product_repo
        self._log_repo = log_repo

    def record(
        self,
        product: Product,
        log_type: InventoryLogType,
        quantity: int,
        reason: str,
        now: datetime,
    ) -> StockMovement:
        """Apply a signed stock change and log it.

        Validates the entry first so a malformed request never touches
        stock.  The stock update refuses to go below zero even if
        *product* is a stale snapshot.
        """
        entry = InventoryLog.record(product.id, log_type, quantity, reason, now)

        new_stock = self._product_repo.apply_stock_delta(product.id, quantity)
        if new_stock is None:
            current = self._product_repo.get_by_id(product.id)
            available = current.stock_quantity if current else 0
            raise StockError(
                f"Insufficient stock for {product.name}. Only {available} available",
                product_id=product.id,
                available=available,
            )

        saved = self._log_repo.append(entry)
        product.stock_quantity = new_stock
        logger.info(
            "Stock %s %+d for %s (%s) -> %d",
            log_type.value, quantity, product.sku, reason, new_stock,
        )
        return StockMovement(product=product, entry=saved)

    def record_by_id(
        self,
        product_id: str,
        log_type: InventoryLogType,
        quantity: int,
        reason: str,
        now: datetime,
    ) -> StockMovement:
        product = self._product_repo.get_by_id(product_id)
        if product is None:
            raise NotFoundError(f"Product with ID '{product_id}' not found")
        return self.record(product, log_type, quantity, reason, now)

    def verify(self, product_id: str) -> LedgerCheck:
        """Replay the product's ledger and compare it with recorded stock."""
        product = self._product_repo.get_by_id(product_id)
        if product is None:
            raise NotFoundError(f"Product with ID '{product_id}' not found")
        entries = self._log_repo.list_for_product(product_id)
        return LedgerCheck(
            product_id=product_id,
            recorded_stock=product.stock_quantity,
            replayed_stock=replay(entries),
            entry_count=len(entries),
        )
