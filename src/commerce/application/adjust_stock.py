"""Application services: manual stock adjustments.

Each adjustment changes stock through the ledger, so it always leaves
exactly one log entry behind.  Bulk adjustments run one transaction per
item, retry lock timeouts, and report failures instead of aborting.
"""

from __future__ import annotations

import logging

from commerce.application.dto import (
    BatchReport,
    ItemResult,
    StockAdjustmentDTO,
    StockAdjustmentSpec,
)
from commerce.application.mappers import log_to_dto, product_to_dto
from commerce.application.retry import RetryPolicy
from commerce.domain.clock import Clock, utc_now
from commerce.domain.exceptions import (
    DomainException,
    TransientPersistenceError,
    ValidationError,
)
from commerce.domain.model.inventory import InventoryLogType
from commerce.domain.repository.unit_of_work import UnitOfWork
from commerce.domain.service.stock_ledger_service import StockLedgerService

logger = logging.getLogger(__name__)


def parse_log_type(raw: str) -> InventoryLogType:
    try:
        return InventoryLogType(raw.strip().upper())
    except ValueError as exc:
        raise ValidationError(f"Unknown inventory log type '{raw}'") from exc


class AdjustStockHandler:

    def __init__(self, uow: UnitOfWork, clock: Clock = utc_now) -> None:
        self._uow = uow
        self._clock = clock

    def handle(
        self, product_id: str, quantity: int, log_type: str, reason: str
    ) -> StockAdjustmentDTO:
        """Apply a signed stock change.

        Raises ValidationError for a delta whose sign does not match its
        type and StockError if stock would go negative.
        """
        entry_type = parse_log_type(log_type)
        with self._uow as uow:
            ledger = StockLedgerService(uow.products, uow.inventory_logs)
            movement = ledger.record_by_id(
                product_id, entry_type, quantity, reason, self._clock()
            )
            uow.commit()
        return StockAdjustmentDTO(
            product=product_to_dto(movement.product),
            log=log_to_dto(movement.entry),
        )


class BulkAdjustStockHandler:

    def __init__(
        self,
        uow: UnitOfWork,
        retry_policy: RetryPolicy | None = None,
        clock: Clock = utc_now,
    ) -> None:
        self._adjust = AdjustStockHandler(uow, clock)
        self._retry_policy = retry_policy or RetryPolicy()

    def handle(self, adjustments: list[StockAdjustmentSpec]) -> BatchReport:
        report = BatchReport()
        for spec in adjustments:
            try:
                result = self._retry_policy.run(
                    self._adjust.handle,
                    spec.product_id, spec.quantity, spec.type, spec.reason,
                )
            except (DomainException, TransientPersistenceError) as exc:
                logger.warning("Stock adjustment for %s failed: %s", spec.product_id, exc)
                report.failed.append(ItemResult.from_error(spec.product_id, exc))
            else:
                report.successful.append(ItemResult.ok(spec.product_id, detail=result))
        return report
