"""CLI commands for the Order aggregate."""

from __future__ import annotations

from datetime import datetime

import click

from commerce.application.cancel_order import CancelOrderHandler
from commerce.application.create_order import CreateOrderHandler
from commerce.application.dto import OrderDTO
from commerce.application.show_order import (
    ListOrdersHandler,
    OrderStatsHandler,
    ShowOrderHandler,
)
from commerce.application.update_order_status import (
    UpdateOrderStatusHandler,
    UpdatePaymentStatusHandler,
    parse_order_status,
    parse_payment_status,
)
from commerce.domain.exceptions import DomainException, TransientPersistenceError
from commerce.domain.model.order import OrderStatus, PaymentStatus
from commerce.domain.model.value_objects import PaymentMethod, ShippingAddress
from commerce.domain.repository.queries import OrderQuery
from commerce.infrastructure.bootstrap import pricing_policy, retry_policy, unit_of_work
from commerce.infrastructure.cli.common import as_utc
from commerce.infrastructure.cli.errors import TRANSIENT_EXIT_CODE, CommandError

_ORDER_STATUSES = [s.value for s in OrderStatus]
_PAYMENT_STATUSES = [s.value for s in PaymentStatus]


def _display_order(dto: OrderDTO) -> None:
    """Shared formatting for displaying an order."""
    click.echo(f"Order {dto.order_number} (#{dto.id})  status={dto.status}  payment={dto.payment_status}")
    click.echo(f"User:     {dto.user_id}")
    click.echo(f"Created:  {dto.created_at}")
    click.echo(f"Payment:  {dto.payment_method}")
    if dto.coupon_code:
        click.echo(f"Coupon:   {dto.coupon_code}")
    click.echo()
    click.echo(f"  {'Product':<20} {'Qty':>5} {'Price':>10} {'Total':>10}")
    click.echo(f"  {'-'*47}")
    for item in dto.items:
        click.echo(
            f"  {item.product_name:<20} {item.quantity:>5} {item.unit_price:>10} {item.line_total:>10}"
        )
    click.echo(f"  {'-'*47}")
    for label, value in (
        ("Subtotal", dto.subtotal),
        ("Discount", dto.discount),
        ("Shipping", dto.shipping_cost),
        ("Tax", dto.tax),
        ("Order Total", dto.total),
    ):
        click.echo(f"  {label:<27} {value:>20}")


@click.command("create")
@click.option("--user", "user_id", required=True, help="User placing the order.")
@click.option("--street", required=True)
@click.option("--city", required=True)
@click.option("--state", required=True)
@click.option("--postal-code", required=True)
@click.option("--country", required=True)
@click.option(
    "--payment-method",
    required=True,
    type=click.Choice([m.value for m in PaymentMethod], case_sensitive=False),
)
@click.option("--notes", default=None, help="Free-text delivery notes.")
def order_create(
    user_id: str,
    street: str,
    city: str,
    state: str,
    postal_code: str,
    country: str,
    payment_method: str,
    notes: str | None,
) -> None:
    """Place an order from the user's cart."""
    handler = CreateOrderHandler(
        uow=unit_of_work(),
        pricing=pricing_policy(),
        retry_policy=retry_policy(),
    )

    try:
        address = ShippingAddress(street, city, state, postal_code, country)
        dto = handler.handle(
            user_id=user_id,
            shipping_address=address,
            payment_method=PaymentMethod(payment_method.upper()),
            notes=notes,
        )
    except DomainException as exc:
        raise CommandError.from_domain(exc)
    except TransientPersistenceError as exc:
        raise CommandError(f"Checkout could not complete, try again: {exc}", TRANSIENT_EXIT_CODE)

    click.echo(f"Order {dto.order_number} placed (total {dto.total})")
    click.echo()
    _display_order(dto)


@click.command("show")
@click.option("--id", "order_id", type=int, default=None, help="Order ID to display.")
@click.option("--number", "order_number", default=None, help="Order number to display.")
@click.option("--user", "user_id", default=None, help="Only show the order if this user owns it.")
def order_show(order_id: int | None, order_number: str | None, user_id: str | None) -> None:
    """Show details of an existing order."""
    if (order_id is None) == (order_number is None):
        raise click.UsageError("Pass exactly one of --id or --number.")
    handler = ShowOrderHandler(unit_of_work())

    try:
        if order_id is not None:
            dto = handler.handle(order_id, user_id=user_id)
        else:
            dto = handler.handle_by_number(order_number, user_id=user_id)
    except DomainException as exc:
        raise CommandError.from_domain(exc)

    _display_order(dto)


@click.command("cancel")
@click.option("--id", "order_id", required=True, type=int, help="Order ID to cancel.")
@click.option("--user", "user_id", required=True, help="User who owns the order.")
def order_cancel(order_id: int, user_id: str) -> None:
    """Cancel an order and return its items to stock."""
    handler = CancelOrderHandler(unit_of_work())

    try:
        dto = handler.handle(order_id, user_id)
    except DomainException as exc:
        raise CommandError.from_domain(exc)

    click.echo(f"Order {dto.order_number} cancelled.")


@click.command("status")
@click.option("--id", "order_id", required=True, type=int, help="Order ID.")
@click.option(
    "--to", "status", required=True,
    type=click.Choice(_ORDER_STATUSES, case_sensitive=False),
)
def order_status(order_id: int, status: str) -> None:
    """Move an order to a new status (admin)."""
    handler = UpdateOrderStatusHandler(unit_of_work())

    try:
        dto = handler.handle(order_id, status)
    except DomainException as exc:
        raise CommandError.from_domain(exc)

    click.echo(f"Order {dto.order_number} is now {dto.status}.")


@click.command("payment")
@click.option("--id", "order_id", required=True, type=int, help="Order ID.")
@click.option(
    "--to", "payment_status", required=True,
    type=click.Choice(_PAYMENT_STATUSES, case_sensitive=False),
)
def order_payment(order_id: int, payment_status: str) -> None:
    """Record a payment status for an order (admin)."""
    handler = UpdatePaymentStatusHandler(unit_of_work())

    try:
        dto = handler.handle(order_id, payment_status)
    except DomainException as exc:
        raise CommandError.from_domain(exc)

    click.echo(f"Order {dto.order_number} payment is now {dto.payment_status}.")


@click.command("list")
@click.option("--user", "user_id", default=None, help="Only this user's orders.")
@click.option("--status", default=None, type=click.Choice(_ORDER_STATUSES, case_sensitive=False))
@click.option(
    "--payment-status", default=None,
    type=click.Choice(_PAYMENT_STATUSES, case_sensitive=False),
)
@click.option("--from", "start", type=click.DateTime(), default=None)
@click.option("--until", "end", type=click.DateTime(), default=None)
@click.option("--page", type=int, default=1, show_default=True)
@click.option("--limit", type=int, default=20, show_default=True)
def order_list(
    user_id: str | None,
    status: str | None,
    payment_status: str | None,
    start: datetime | None,
    end: datetime | None,
    page: int,
    limit: int,
) -> None:
    """List orders, newest first."""
    try:
        query = OrderQuery(
            page=page,
            limit=limit,
            user_id=user_id,
            status=parse_order_status(status) if status else None,
            payment_status=parse_payment_status(payment_status) if payment_status else None,
            start=as_utc(start),
            end=as_utc(end),
        )
        result = ListOrdersHandler(unit_of_work()).handle(query)
    except DomainException as exc:
        raise CommandError.from_domain(exc)

    if not result.orders:
        click.echo("No orders found.")
        return

    click.echo(f"{'Number':<16} {'User':<12} {'Status':<11} {'Payment':<9} {'Total':>12}")
    click.echo("-" * 64)
    for o in result.orders:
        click.echo(
            f"{o.order_number:<16} {o.user_id:<12} {o.status:<11} {o.payment_status:<9} {o.total:>12}"
        )
    click.echo(f"Page {result.page} of {result.total_pages} ({result.total} orders)")


@click.command("stats")
@click.option("--from", "start", type=click.DateTime(), default=None)
@click.option("--until", "end", type=click.DateTime(), default=None)
def order_stats(start: datetime | None, end: datetime | None) -> None:
    """Order counts and revenue."""
    stats = OrderStatsHandler(unit_of_work()).handle(as_utc(start), as_utc(end))

    click.echo(f"Orders:          {stats.total_orders}")
    click.echo(f"Revenue:         {stats.total_revenue}")
    click.echo(f"Average order:   {stats.average_order_value}")
    for status, count in sorted(stats.by_status.items()):
        click.echo(f"  {status:<12} {count:>6}")
    click.echo("Payment:")
    for status, count in sorted(stats.by_payment_status.items()):
        click.echo(f"  {status:<12} {count:>6}")
