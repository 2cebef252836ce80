"""Application service: merge a guest cart into a user's cart.

Best effort: each item is added in its own transaction, and an item
that fails (unknown product, out of stock, a lock that never clears) is
reported without stopping the rest.
"""

from __future__ import annotations

import logging

from commerce.application.dto import BatchReport, CartItemSpec, ItemResult
from commerce.application.retry import RetryPolicy
from commerce.application.update_cart import AddToCartHandler
from commerce.domain.exceptions import DomainException, TransientPersistenceError
from commerce.domain.repository.unit_of_work import UnitOfWork

logger = logging.getLogger(__name__)


class MergeGuestCartHandler:

    def __init__(self, uow: UnitOfWork, retry_policy: RetryPolicy | None = None) -> None:
        self._add = AddToCartHandler(uow)
        self._retry_policy = retry_policy or RetryPolicy()

    def handle(self, user_id: str, items: list[CartItemSpec]) -> BatchReport:
        report = BatchReport()
        for spec in items:
            try:
                self._retry_policy.run(
                    self._add.handle, user_id, spec.product_id, spec.quantity
                )
            except (DomainException, TransientPersistenceError) as exc:
                logger.warning(
                    "Guest cart item %s not merged for user %s: %s",
                    spec.product_id, user_id, exc,
                )
                report.failed.append(ItemResult.from_error(spec.product_id, exc))
            else:
                report.successful.append(
                    ItemResult.ok(spec.product_id, detail=spec.quantity)
                )
        return report
