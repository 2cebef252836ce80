"""Application service: reconcile recorded stock with a physical count.

Each product is reconciled in its own transaction: the product row is
locked, the difference is computed against the locked value, and a
single ADJUSTMENT entry brings stock in line.  Lock timeouts are retried
per product.  An unknown product, a failed adjustment or a product that
stays locked is reported as a discrepancy and the batch goes on.
"""

from __future__ import annotations

import logging

from commerce.application.dto import (
    DiscrepancyDTO,
    DiscrepancyReportDTO,
    PhysicalCount,
)
from commerce.application.retry import RetryPolicy
from commerce.domain.clock import Clock, utc_now
from commerce.domain.exceptions import DomainException, TransientPersistenceError
from commerce.domain.model.inventory import InventoryLogType
from commerce.domain.repository.unit_of_work import UnitOfWork
from commerce.domain.service.stock_ledger_service import StockLedgerService

logger = logging.getLogger(__name__)


class ReconcileInventoryHandler:

    def __init__(
        self,
        uow: UnitOfWork,
        retry_policy: RetryPolicy | None = None,
        clock: Clock = utc_now,
    ) -> None:
        self._uow = uow
        self._retry_policy = retry_policy or RetryPolicy()
        self._clock = clock

    def handle(self, counts: list[PhysicalCount]) -> DiscrepancyReportDTO:
        discrepancies: list[DiscrepancyDTO] = []
        for count in counts:
            try:
                discrepancy = self._retry_policy.run(self._reconcile_one, count)
            except (DomainException, TransientPersistenceError) as exc:
                logger.warning("Reconciliation of %s failed: %s", count.product_id, exc)
                discrepancy = DiscrepancyDTO(product_id=count.product_id, error=str(exc))
            if discrepancy is not None:
                discrepancies.append(discrepancy)

        return DiscrepancyReportDTO(reconciled=len(counts), discrepancies=discrepancies)

    def _reconcile_one(self, count: PhysicalCount) -> DiscrepancyDTO | None:
        if count.actual_count < 0:
            return DiscrepancyDTO(
                product_id=count.product_id, error="Actual count cannot be negative"
            )

        with self._uow as uow:
            product = uow.products.get_many_for_update([count.product_id]).get(
                count.product_id
            )
            if product is None:
                return DiscrepancyDTO(product_id=count.product_id, error="Product not found")

            system_count = product.stock_quantity
            difference = count.actual_count - system_count
            if difference == 0:
                return None

            StockLedgerService(uow.products, uow.inventory_logs).record(
                product,
                InventoryLogType.ADJUSTMENT,
                difference,
                f"Inventory reconciliation: System={system_count}, "
                f"Actual={count.actual_count}",
                self._clock(),
            )
            uow.commit()

        logger.info(
            "Reconciled %s: system=%d actual=%d",
            product.sku, system_count, count.actual_count,
        )
        return DiscrepancyDTO(
            product_id=product.id,
            product_name=product.name,
            sku=product.sku,
            system_count=system_count,
            actual_count=count.actual_count,
            difference=difference,
            adjusted=True,
        )
