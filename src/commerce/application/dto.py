"""Data Transfer Objects — plain containers that cross layer boundaries.

DTOs carry data between the CLI and application layers without
exposing domain internals to the outside world.  Money is rendered as
display strings (e.g. "$15.00").
"""

from __future__ import annotations

from dataclasses import dataclass, field

from commerce.domain.exceptions import DomainException

TRANSIENT_ERROR_KIND = "TRANSIENT"


# --- Inputs -------------------------------------------------------------------


@dataclass(frozen=True)
class CartItemSpec:
    """Input: a product and quantity to put in a cart."""

    product_id: str
    quantity: int


@dataclass(frozen=True)
class StockAdjustmentSpec:
    """Input: one manual stock change."""

    product_id: str
    quantity: int
    type: str
    reason: str


@dataclass(frozen=True)
class PhysicalCount:
    """Input: a counted quantity for reconciliation."""

    product_id: str
    actual_count: int


# --- Products & inventory -----------------------------------------------------


@dataclass(frozen=True)
class ProductDTO:
    id: str
    name: str
    sku: str
    price: str
    sale_price: str | None
    unit_price: str
    stock_quantity: int
    is_active: bool
    image_url: str | None


@dataclass(frozen=True)
class InventoryLogDTO:
    id: int
    product_id: str
    type: str
    quantity: int
    reason: str
    created_at: str


@dataclass(frozen=True)
class InventoryLogPageDTO:
    logs: list[InventoryLogDTO]
    page: int
    limit: int | None
    total: int
    total_pages: int


@dataclass(frozen=True)
class StockAdjustmentDTO:
    product: ProductDTO
    log: InventoryLogDTO


@dataclass(frozen=True)
class DiscrepancyDTO:
    product_id: str
    product_name: str | None = None
    sku: str | None = None
    system_count: int | None = None
    actual_count: int | None = None
    difference: int | None = None
    adjusted: bool = False
    error: str | None = None


@dataclass(frozen=True)
class DiscrepancyReportDTO:
    reconciled: int
    discrepancies: list[DiscrepancyDTO]

    @property
    def discrepancies_found(self) -> int:
        return len(self.discrepancies)


@dataclass(frozen=True)
class InventoryAlertDTO:
    product_id: str
    product_name: str
    current_stock: int
    threshold: int
    alert_type: str  # LOW_STOCK | OUT_OF_STOCK


@dataclass(frozen=True)
class LedgerCheckDTO:
    product_id: str
    recorded_stock: int
    replayed_stock: int
    entry_count: int
    consistent: bool


# --- Inventory reports --------------------------------------------------------


@dataclass(frozen=True)
class MovementTotalDTO:
    count: int
    total_quantity: int


@dataclass(frozen=True)
class StockMovementDTO:
    logs: list[InventoryLogDTO]
    by_type: dict[str, MovementTotalDTO]

    @property
    def total_movements(self) -> int:
        return len(self.logs)


@dataclass(frozen=True)
class TurnoverItemDTO:
    product_id: str
    product_name: str
    sku: str
    current_stock: int
    total_sold: int
    sales_count: int
    turnover_rate: float
    revenue: str


@dataclass(frozen=True)
class TurnoverReportDTO:
    days: int
    items: list[TurnoverItemDTO]
    average_turnover_rate: float
    total_revenue: str


@dataclass(frozen=True)
class InventorySummaryDTO:
    total_products: int
    active_products: int
    inactive_products: int
    total_stock_quantity: int
    total_inventory_value: str
    low_stock_count: int
    out_of_stock_count: int


@dataclass(frozen=True)
class ValuationItemDTO:
    product_id: str
    product_name: str
    sku: str
    unit_price: str
    quantity: int
    total_value: str


@dataclass(frozen=True)
class ValuationReportDTO:
    items: list[ValuationItemDTO]
    total_quantity: int
    total_value: str
    average_value: str


@dataclass(frozen=True)
class RestockRecommendationDTO:
    product_id: str
    product_name: str
    sku: str
    current_stock: int
    average_daily_sales: float
    days_of_stock_left: int
    recommended_quantity: int
    priority: str  # HIGH | MEDIUM | LOW


# --- Batch results ------------------------------------------------------------


@dataclass(frozen=True)
class ItemResult:
    """Outcome of one item in a best-effort batch."""

    key: str
    success: bool
    error_kind: str | None = None
    message: str | None = None
    detail: object | None = None

    @staticmethod
    def ok(key: str, detail: object | None = None) -> ItemResult:
        return ItemResult(key=key, success=True, detail=detail)

    @staticmethod
    def from_error(key: str, exc: Exception) -> ItemResult:
        """Domain errors keep their kind; anything else failed transiently."""
        if isinstance(exc, DomainException):
            kind = exc.kind.value
        else:
            kind = TRANSIENT_ERROR_KIND
        return ItemResult(key=key, success=False, error_kind=kind, message=str(exc))


@dataclass(frozen=True)
class BatchReport:
    successful: list[ItemResult] = field(default_factory=list)
    failed: list[ItemResult] = field(default_factory=list)

    @property
    def total(self) -> int:
        return len(self.successful) + len(self.failed)


# --- Carts & coupons ----------------------------------------------------------


@dataclass(frozen=True)
class CartItemDTO:
    id: str
    product_id: str
    product_name: str
    quantity: int
    unit_price: str
    line_total: str


@dataclass(frozen=True)
class CartDTO:
    id: str
    user_id: str
    items: list[CartItemDTO]
    item_count: int
    subtotal: str
    discount: str
    total: str
    coupon_code: str | None
    free_shipping: bool


@dataclass(frozen=True)
class CheckoutValidationDTO:
    valid: bool
    errors: list[str]


@dataclass(frozen=True)
class CouponDTO:
    id: str
    code: str
    discount_type: str
    discount_value: str
    used_count: int
    usage_limit: int | None
    per_user_limit: int | None
    valid_from: str
    valid_until: str
    is_active: bool


@dataclass(frozen=True)
class CouponValidationDTO:
    valid: bool
    discount: str | None = None
    message: str | None = None


@dataclass(frozen=True)
class CouponStatsDTO:
    total: int
    active: int
    expired: int
    used: int
    unused: int


@dataclass(frozen=True)
class CouponUsageDTO:
    coupon_code: str
    order_id: int | None
    used_at: str


# --- Orders -------------------------------------------------------------------


@dataclass(frozen=True)
class OrderItemDTO:
    product_id: str
    product_name: str
    quantity: int
    unit_price: str
    line_total: str


@dataclass(frozen=True)
class OrderDTO:
    """Output: a complete order snapshot."""

    id: int
    order_number: str
    user_id: str
    status: str
    payment_status: str
    payment_method: str
    items: list[OrderItemDTO]
    subtotal: str
    discount: str
    shipping_cost: str
    tax: str
    total: str
    coupon_code: str | None
    shipping_address: dict[str, str]
    notes: str | None
    created_at: str


@dataclass(frozen=True)
class OrderPageDTO:
    orders: list[OrderDTO]
    page: int
    limit: int | None
    total: int
    total_pages: int


@dataclass(frozen=True)
class OrderStatsDTO:
    total_orders: int
    by_status: dict[str, int]
    by_payment_status: dict[str, int]
    total_revenue: str
    average_order_value: str
