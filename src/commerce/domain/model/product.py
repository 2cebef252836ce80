"""Product aggregate.

Products live independently of orders. They have their own lifecycle:
prices change, products are activated and retired from the catalog.
Stock is only ever changed through the inventory ledger.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass

from commerce.domain.exceptions import StockError, ValidationError
from commerce.domain.model.value_objects import Money


@dataclass
class Product:
    """A product in the catalog.

    This is an aggregate root. ``stock_quantity`` is never assigned
    directly by callers; it mirrors the sum of the product's ledger
    entries and the repository changes it with conditional updates.
    """

    id: str
    name: str
    sku: str
    price: Money
    stock_quantity: int = 0
    sale_price: Money | None = None
    is_active: bool = True
    image_url: str | None = None

    @staticmethod
    def create(
        name: str,
        sku: str,
        price: Money,
        sale_price: Money | None = None,
        image_url: str | None = None,
    ) -> Product:
        """Create a new catalog entry with no stock."""
        if not name or not name.strip():
            raise ValidationError("Product name is required")
        if not sku or not sku.strip():
            raise ValidationError("Product SKU is required")
        product = Product(
            id=uuid.uuid4().hex,
            name=name.strip(),
            sku=sku.strip().upper(),
            price=price,
            image_url=image_url,
        )
        product.update_price(price)
        product.set_sale_price(sale_price)
        return product

    @property
    def unit_price(self) -> Money:
        """The price charged right now: sale price if set, else list price."""
        return self.sale_price if self.sale_price is not None else self.price

    def ensure_purchasable(self, quantity: int) -> None:
        """Raise StockError unless *quantity* units can be sold right now."""
        if not self.is_active:
            raise StockError(
                f"Product {self.name} is no longer available",
                product_id=self.id,
                available=0,
            )
        if self.stock_quantity < quantity:
            raise StockError(
                f"Insufficient stock for {self.name}. "
                f"Only {self.stock_quantity} available",
                product_id=self.id,
                available=self.stock_quantity,
            )

    def update_price(self, new_price: Money) -> None:
        """Change the list price.

        This does NOT affect any existing orders because orders
        capture a price snapshot at creation time.
        """
        if new_price.amount <= 0:
            raise ValidationError("Product price must be greater than zero")
        self.price = new_price

    def set_sale_price(self, sale_price: Money | None) -> None:
        if sale_price is not None and sale_price.amount <= 0:
            raise ValidationError("Sale price must be greater than zero")
        self.sale_price = sale_price

    def rename(self, name: str) -> None:
        if not name or not name.strip():
            raise ValidationError("Product name is required")
        self.name = name.strip()

    def activate(self) -> None:
        self.is_active = True

    def deactivate(self) -> None:
        self.is_active = False
