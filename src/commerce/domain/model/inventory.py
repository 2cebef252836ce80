"""Inventory ledger entries.

Every change to a product's stock is recorded as one immutable
``InventoryLog`` entry carrying a signed delta.  Replaying a product's
entries from the first one reproduces its current stock exactly.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Iterable

from commerce.domain.clock import utc_now
from commerce.domain.exceptions import ValidationError


class InventoryLogType(Enum):
    RESTOCK = "RESTOCK"
    SALE = "SALE"
    RETURN = "RETURN"
    DAMAGED = "DAMAGED"
    ADJUSTMENT = "ADJUSTMENT"


_INBOUND = frozenset({InventoryLogType.RESTOCK, InventoryLogType.RETURN})
_OUTBOUND = frozenset({InventoryLogType.SALE, InventoryLogType.DAMAGED})


def validate_delta(log_type: InventoryLogType, quantity: int) -> None:
    """Enforce the sign convention for each entry type.

    RESTOCK and RETURN add stock, SALE and DAMAGED remove it,
    ADJUSTMENT may go either way but must change something.
    """
    if isinstance(quantity, bool) or not isinstance(quantity, int):
        raise ValidationError(
            f"Stock quantity must be an integer, got {type(quantity).__name__}"
        )
    if quantity == 0:
        raise ValidationError("Stock adjustment quantity cannot be zero")
    if log_type in _INBOUND and quantity < 0:
        raise ValidationError(
            f"Quantity must be positive for {log_type.value} entries"
        )
    if log_type in _OUTBOUND and quantity > 0:
        raise ValidationError(
            f"Quantity must be negative for {log_type.value} entries"
        )


@dataclass(frozen=True)
class InventoryLog:
    """One signed stock movement.  ``id`` is assigned by the repository."""

    id: int | None
    product_id: str
    type: InventoryLogType
    quantity: int
    reason: str
    created_at: datetime = field(default_factory=utc_now)

    @staticmethod
    def record(
        product_id: str,
        log_type: InventoryLogType,
        quantity: int,
        reason: str,
        created_at: datetime | None = None,
    ) -> InventoryLog:
        """Build a new, validated ledger entry."""
        validate_delta(log_type, quantity)
        if not reason or not reason.strip():
            raise ValidationError("A reason is required for every stock change")
        return InventoryLog(
            id=None,
            product_id=product_id,
            type=log_type,
            quantity=quantity,
            reason=reason.strip(),
            created_at=created_at or utc_now(),
        )


def replay(entries: Iterable[InventoryLog]) -> int:
    """Fold ledger entries (oldest first) into a stock level.

    Raises ValidationError if the running balance ever dips below zero,
    which would mean the ledger itself is corrupt.
    """
    balance = 0
    for entry in entries:
        balance += entry.quantity
        if balance < 0:
            raise ValidationError(
                f"Ledger for product '{entry.product_id}' goes negative "
                f"at entry #{entry.id}"
            )
    return balance
