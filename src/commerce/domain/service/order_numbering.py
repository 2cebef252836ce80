"""Domain service: human-readable order numbers.

Numbers look like ``ORD251018-0001``.  The sequence restarts every
calendar day and comes from an atomically incremented per-day counter,
so concurrent checkouts on the same day never share a number.
"""

from __future__ import annotations

from datetime import date

from commerce.domain.repository.order_repository import OrderSequenceRepository

ORDER_NUMBER_PREFIX = "ORD"


def format_order_number(day: date, sequence: int) -> str:
    return f"{ORDER_NUMBER_PREFIX}{day:%y%m%d}-{sequence:04d}"


class OrderNumberGenerator:

    def __init__(self, sequence_repo: OrderSequenceRepository) -> None:
        self._sequence_repo = sequence_repo

    def next_number(self, day: date) -> str:
        return format_order_number(day, self._sequence_repo.next_value(day))
