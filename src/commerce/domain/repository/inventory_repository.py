"""Abstract repository for the append-only inventory ledger."""

from __future__ import annotations

from abc import ABC, abstractmethod

from commerce.domain.model.inventory import InventoryLog
from commerce.domain.repository.queries import InventoryLogQuery, Page


class InventoryLogRepository(ABC):

    @abstractmethod
    def append(self, entry: InventoryLog) -> InventoryLog:
        """Store a new entry and return it with its assigned id."""

    @abstractmethod
    def list_for_product(self, product_id: str) -> list[InventoryLog]:
        """Every entry for a product, oldest first."""

    @abstractmethod
    def search(self, query: InventoryLogQuery) -> Page[InventoryLog]:
        """Entries matching *query*, newest first."""
