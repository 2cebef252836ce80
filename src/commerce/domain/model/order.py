"""Order aggregate — the immutable record of a completed checkout.

After creation only ``status`` and ``payment_status`` change.  Status
moves along a fixed transition table; payment status is an independent
axis with no automatic coupling.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum

from commerce.domain.clock import utc_now
from commerce.domain.exceptions import (
    AuthorizationError,
    StateTransitionError,
    ValidationError,
)
from commerce.domain.model.value_objects import (
    Money,
    PaymentMethod,
    Quantity,
    ShippingAddress,
)


class OrderStatus(Enum):
    PENDING = "PENDING"
    PROCESSING = "PROCESSING"
    SHIPPED = "SHIPPED"
    DELIVERED = "DELIVERED"
    CANCELLED = "CANCELLED"


class PaymentStatus(Enum):
    PENDING = "PENDING"
    PAID = "PAID"
    FAILED = "FAILED"
    REFUNDED = "REFUNDED"


ALLOWED_TRANSITIONS: dict[OrderStatus, frozenset[OrderStatus]] = {
    OrderStatus.PENDING: frozenset({OrderStatus.PROCESSING, OrderStatus.CANCELLED}),
    OrderStatus.PROCESSING: frozenset({OrderStatus.SHIPPED, OrderStatus.CANCELLED}),
    OrderStatus.SHIPPED: frozenset({OrderStatus.DELIVERED}),
    OrderStatus.DELIVERED: frozenset(),
    OrderStatus.CANCELLED: frozenset(),
}


@dataclass(frozen=True)
class OrderItem:
    """Snapshot of a product at order time.

    Name and unit price are copied, so later catalog edits never change
    an existing order.
    """

    product_id: str
    product_name: str
    quantity: Quantity
    unit_price: Money

    @property
    def line_total(self) -> Money:
        return self.unit_price * self.quantity.value


def items_subtotal(items: list[OrderItem]) -> Money:
    subtotal = Money.zero()
    for item in items:
        subtotal = subtotal + item.line_total
    return subtotal


@dataclass(frozen=True)
class OrderPricing:
    """Money breakdown of an order.

    Invariants: ``total == subtotal - discount + shipping_cost + tax`` and
    ``discount <= subtotal``.  Money itself cannot be negative.
    """

    subtotal: Money
    discount: Money
    shipping_cost: Money
    tax: Money
    total: Money

    def __post_init__(self) -> None:
        if self.discount > self.subtotal:
            raise ValidationError("Discount cannot exceed subtotal")
        expected = self.subtotal - self.discount + self.shipping_cost + self.tax
        if expected != self.total:
            raise ValidationError(
                f"Order total {self.total} does not match its components ({expected})"
            )


# ---------------------------------------------------------------------------
# Constants for business rules
# ---------------------------------------------------------------------------
MAX_LINE_ITEMS = 100


@dataclass
class Order:
    """Aggregate root for placed orders.

    Use the ``Order.create()`` factory for new orders; it enforces all
    business rules.  The ``__init__`` is intentionally simple so the
    repository can reconstitute persisted orders without re-validating.
    """

    id: int | None
    order_number: str
    user_id: str
    items: list[OrderItem]
    pricing: OrderPricing
    payment_method: PaymentMethod
    shipping_address: ShippingAddress
    status: OrderStatus = OrderStatus.PENDING
    payment_status: PaymentStatus = PaymentStatus.PENDING
    coupon_id: str | None = None
    coupon_code: str | None = None
    notes: str | None = None
    created_at: datetime = field(default_factory=utc_now)
    updated_at: datetime = field(default_factory=utc_now)

    # --- Factory (used for NEW orders only) -----------------------------------

    @staticmethod
    def create(
        order_number: str,
        user_id: str,
        items: list[OrderItem],
        pricing: OrderPricing,
        payment_method: PaymentMethod,
        shipping_address: ShippingAddress,
        coupon_id: str | None = None,
        coupon_code: str | None = None,
        notes: str | None = None,
        now: datetime | None = None,
    ) -> Order:
        """Create a new order, enforcing all invariants."""
        if not user_id:
            raise ValidationError("Order requires a user")
        if not items:
            raise ValidationError("Order must contain at least one item")
        if len(items) > MAX_LINE_ITEMS:
            raise ValidationError(f"Maximum {MAX_LINE_ITEMS} items per order")

        if items_subtotal(items) != pricing.subtotal:
            raise ValidationError("Order subtotal does not match its items")

        created = now or utc_now()
        return Order(
            id=None,
            order_number=order_number,
            user_id=user_id,
            items=list(items),
            pricing=pricing,
            payment_method=payment_method,
            shipping_address=shipping_address,
            coupon_id=coupon_id,
            coupon_code=coupon_code,
            notes=notes.strip() if notes and notes.strip() else None,
            created_at=created,
            updated_at=created,
        )

    # --- State transitions ----------------------------------------------------

    def can_transition_to(self, new_status: OrderStatus) -> bool:
        return new_status in ALLOWED_TRANSITIONS[self.status]

    def transition_to(self, new_status: OrderStatus, now: datetime | None = None) -> None:
        """Move to *new_status* if the transition table allows it."""
        if not self.can_transition_to(new_status):
            raise StateTransitionError(
                f"Cannot update order {self.order_number} from "
                f"{self.status.value} to {new_status.value}"
            )
        self.status = new_status
        self.updated_at = now or utc_now()

    def ensure_customer_can_cancel(self, user_id: str) -> None:
        """Customers may cancel their own orders while PENDING or PROCESSING.

        Shipped or delivered orders go through support instead.
        """
        if self.user_id != user_id:
            raise AuthorizationError("Unauthorized")
        if self.is_cancelled:
            raise StateTransitionError("Order is already cancelled")
        if self.status is OrderStatus.DELIVERED:
            raise StateTransitionError("Cannot cancel delivered order")
        if self.status is OrderStatus.SHIPPED:
            raise StateTransitionError(
                "Cannot cancel shipped order. Please contact support."
            )

    def update_payment_status(
        self, payment_status: PaymentStatus, now: datetime | None = None
    ) -> None:
        self.payment_status = payment_status
        self.updated_at = now or utc_now()

    # --- Computed properties --------------------------------------------------

    @property
    def total(self) -> Money:
        return self.pricing.total

    @property
    def is_cancelled(self) -> bool:
        return self.status is OrderStatus.CANCELLED
