"""Abstract repository for Product aggregate.

Defined in the domain layer so the domain never depends on
infrastructure. Concrete implementations (SQL, in-memory) live in the
infrastructure layer and in the test fakes.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from commerce.domain.model.product import Product


class ProductRepository(ABC):

    @abstractmethod
    def get_by_id(self, product_id: str) -> Product | None:
        """Return a product by its ID, or None if not found."""

    @abstractmethod
    def get_by_sku(self, sku: str) -> Product | None:
        """Return a product by its SKU, or None if not found."""

    @abstractmethod
    def get_many_for_update(self, product_ids: list[str]) -> dict[str, Product]:
        """Load and row-lock products, always in ascending id order.

        A fixed lock order keeps concurrent checkouts over overlapping
        products from deadlocking each other.
        """

    @abstractmethod
    def list_all(self) -> list[Product]:
        """Return every product in the catalog."""

    @abstractmethod
    def list_low_stock(self, threshold: int) -> list[Product]:
        """Active products with stock at or below *threshold*, lowest first."""

    @abstractmethod
    def add(self, product: Product) -> None:
        """Persist a new product."""

    @abstractmethod
    def save(self, product: Product) -> None:
        """Persist catalog fields of an existing product.

        Never writes ``stock_quantity``; stock only moves through
        ``apply_stock_delta``.
        """

    @abstractmethod
    def apply_stock_delta(self, product_id: str, delta: int) -> int | None:
        """Atomically add *delta* to stock unless that would go below zero.

        Returns the new stock level, or None if the update was refused.
        """
