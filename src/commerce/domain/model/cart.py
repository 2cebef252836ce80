"""Cart aggregate — a user's staging area before checkout.

One cart per user, created lazily and never deleted.  Line items are
unique per product; adding a product that is already in the cart merges
into the existing line.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from typing import Mapping

from commerce.domain.exceptions import NotFoundError, StockError
from commerce.domain.model.coupon import Coupon
from commerce.domain.model.product import Product
from commerce.domain.model.value_objects import Money, Quantity


@dataclass
class CartItem:
    id: str
    product_id: str
    quantity: int


@dataclass(frozen=True)
class CartTotals:
    subtotal: Money
    discount: Money
    total: Money
    item_count: int
    free_shipping: bool = False


@dataclass
class Cart:
    """Aggregate root for a user's cart.

    Operations that need product data take the Product as an argument;
    the cart itself only stores product ids and quantities.
    """

    id: str
    user_id: str
    items: list[CartItem] = field(default_factory=list)
    coupon_id: str | None = None

    @staticmethod
    def create(user_id: str) -> Cart:
        return Cart(id=uuid.uuid4().hex, user_id=user_id)

    # --- Item management ------------------------------------------------------

    def add_item(self, product: Product, quantity: int) -> CartItem:
        """Add *quantity* units, merging into an existing line if present."""
        qty = Quantity(quantity).value
        if not product.is_active:
            raise StockError(
                f"Product {product.name} is not available",
                product_id=product.id,
                available=0,
            )

        existing = self.item_for_product(product.id)
        if existing is None:
            if product.stock_quantity < qty:
                raise StockError(
                    f"Insufficient stock. Only {product.stock_quantity} available",
                    product_id=product.id,
                    available=product.stock_quantity,
                )
            item = CartItem(id=uuid.uuid4().hex, product_id=product.id, quantity=qty)
            self.items.append(item)
            return item

        combined = existing.quantity + qty
        if product.stock_quantity < combined:
            additional = max(product.stock_quantity - existing.quantity, 0)
            raise StockError(
                f"Cannot add {qty} more. Only {additional} additional items available",
                product_id=product.id,
                available=product.stock_quantity,
            )
        existing.quantity = combined
        return existing

    def update_item_quantity(self, item_id: str, product: Product, quantity: int) -> CartItem:
        qty = Quantity(quantity).value
        item = self._require_item(item_id)
        if product.stock_quantity < qty:
            raise StockError(
                f"Insufficient stock. Only {product.stock_quantity} available",
                product_id=product.id,
                available=product.stock_quantity,
            )
        item.quantity = qty
        return item

    def remove_item(self, item_id: str) -> None:
        item = self._require_item(item_id)
        self.items.remove(item)

    def clear(self) -> None:
        """Remove every line and detach the coupon."""
        self.items = []
        self.coupon_id = None

    # --- Coupon ---------------------------------------------------------------

    def attach_coupon(self, coupon: Coupon) -> None:
        self.coupon_id = coupon.id

    def detach_coupon(self) -> None:
        self.coupon_id = None

    # --- Queries --------------------------------------------------------------

    @property
    def is_empty(self) -> bool:
        return not self.items

    @property
    def item_count(self) -> int:
        return sum(item.quantity for item in self.items)

    def find_item(self, item_id: str) -> CartItem | None:
        for item in self.items:
            if item.id == item_id:
                return item
        return None

    def item_for_product(self, product_id: str) -> CartItem | None:
        for item in self.items:
            if item.product_id == product_id:
                return item
        return None

    def compute_totals(
        self,
        products: Mapping[str, Product],
        coupon: Coupon | None = None,
    ) -> CartTotals:
        """Subtotal at current unit prices, minus the coupon discount."""
        subtotal = self.subtotal(products)
        discount = coupon.compute_discount(subtotal) if coupon else Money.zero()
        return CartTotals(
            subtotal=subtotal,
            discount=discount,
            total=subtotal.minus_floor_zero(discount),
            item_count=self.item_count,
            free_shipping=bool(coupon and coupon.grants_free_shipping),
        )

    def subtotal(self, products: Mapping[str, Product]) -> Money:
        result = Money.zero()
        for item in self.items:
            result = result + products[item.product_id].unit_price * item.quantity
        return result

    def checkout_problems(self, products: Mapping[str, Product]) -> list[str]:
        """Every item-level reason this cart cannot be checked out.

        Never raises for business problems; the caller shows all of them
        at once.
        """
        if self.is_empty:
            return ["Cart is empty"]

        problems: list[str] = []
        for item in self.items:
            product = products.get(item.product_id)
            if product is None or not product.is_active:
                name = product.name if product else item.product_id
                problems.append(f"{name} is no longer available")
                continue
            if product.stock_quantity < item.quantity:
                problems.append(
                    f"{product.name}: Only {product.stock_quantity} available, "
                    f"but {item.quantity} in cart"
                )
        return problems

    # --- Internal helpers -----------------------------------------------------

    def _require_item(self, item_id: str) -> CartItem:
        item = self.find_item(item_id)
        if item is None:
            raise NotFoundError("Cart item not found")
        return item
