"""Application service: Add Product use case."""

from __future__ import annotations

import logging

from commerce.application.dto import ProductDTO
from commerce.application.mappers import product_to_dto
from commerce.domain.clock import Clock, utc_now
from commerce.domain.exceptions import ConflictError, ValidationError
from commerce.domain.model.inventory import InventoryLogType
from commerce.domain.model.product import Product
from commerce.domain.model.value_objects import Money
from commerce.domain.repository.unit_of_work import UnitOfWork
from commerce.domain.service.stock_ledger_service import StockLedgerService

logger = logging.getLogger(__name__)


class AddProductHandler:

    def __init__(self, uow: UnitOfWork, clock: Clock = utc_now) -> None:
        self._uow = uow
        self._clock = clock

    def handle(
        self,
        name: str,
        sku: str,
        price: str,
        sale_price: str | None = None,
        initial_stock: int = 0,
        image_url: str | None = None,
    ) -> ProductDTO:
        """Add a new product to the catalog.

        Initial stock is booked as a RESTOCK entry so the product's
        ledger replays from zero.
        """
        if initial_stock < 0:
            raise ValidationError("Initial stock cannot be negative")

        product = Product.create(
            name=name,
            sku=sku,
            price=Money.of(price),
            sale_price=Money.of(sale_price) if sale_price else None,
            image_url=image_url,
        )
        with self._uow as uow:
            if uow.products.get_by_sku(product.sku) is not None:
                raise ConflictError(f"Product with SKU '{product.sku}' already exists")
            uow.products.add(product)
            if initial_stock > 0:
                StockLedgerService(uow.products, uow.inventory_logs).record(
                    product,
                    InventoryLogType.RESTOCK,
                    initial_stock,
                    "Initial stock",
                    self._clock(),
                )
            uow.commit()

        logger.info("Product %s (%s) added", product.sku, product.name)
        return product_to_dto(product)


class ListProductsHandler:

    def __init__(self, uow: UnitOfWork) -> None:
        self._uow = uow

    def handle(self) -> list[ProductDTO]:
        with self._uow as uow:
            return [product_to_dto(p) for p in uow.products.list_all()]
