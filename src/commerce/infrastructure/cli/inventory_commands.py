"""CLI commands for inventory management."""

from __future__ import annotations

from datetime import datetime

import click

from commerce.application.adjust_stock import (
    AdjustStockHandler,
    BulkAdjustStockHandler,
    parse_log_type,
)
from commerce.application.dto import PhysicalCount, StockAdjustmentSpec
from commerce.application.inventory_reports import (
    InventorySummaryHandler,
    InventoryTurnoverHandler,
    InventoryValuationHandler,
    RestockRecommendationsHandler,
    StockMovementHandler,
)
from commerce.application.reconcile_inventory import ReconcileInventoryHandler
from commerce.application.show_inventory import (
    InventoryAlertsHandler,
    ShowInventoryLogsHandler,
    VerifyLedgerHandler,
)
from commerce.domain.exceptions import DomainException
from commerce.domain.model.inventory import InventoryLogType
from commerce.domain.repository.queries import InventoryLogQuery
from commerce.infrastructure import settings
from commerce.infrastructure.bootstrap import retry_policy, unit_of_work
from commerce.infrastructure.cli.common import as_utc, echo_batch_report, load_json_list
from commerce.infrastructure.cli.errors import CommandError

_LOG_TYPES = [t.value for t in InventoryLogType]


@click.command("adjust")
@click.option("--product", "product_id", required=True, help="Product ID.")
@click.option("--quantity", required=True, type=int, help="Signed stock change.")
@click.option("--type", "log_type", required=True, type=click.Choice(_LOG_TYPES, case_sensitive=False))
@click.option("--reason", required=True, help="Why stock changed.")
def inventory_adjust(product_id: str, quantity: int, log_type: str, reason: str) -> None:
    """Apply a manual stock change."""
    handler = AdjustStockHandler(unit_of_work())

    try:
        result = handler.handle(product_id, quantity, log_type, reason)
    except DomainException as exc:
        raise CommandError.from_domain(exc)

    click.echo(
        f"{result.product.name}: {result.log.type} {result.log.quantity:+d} "
        f"-> stock {result.product.stock_quantity}"
    )


@click.command("bulk-adjust")
@click.option(
    "--file", "path", required=True, type=click.Path(exists=True, dir_okay=False),
    help='JSON list of {"product_id", "quantity", "type", "reason"}.',
)
def inventory_bulk_adjust(path: str) -> None:
    """Apply many stock changes; failures do not stop the batch."""
    try:
        specs = [
            StockAdjustmentSpec(
                product_id=str(row["product_id"]),
                quantity=int(row["quantity"]),
                type=str(row["type"]),
                reason=str(row["reason"]),
            )
            for row in load_json_list(path)
        ]
    except (KeyError, TypeError, ValueError) as exc:
        raise click.BadParameter(f"Invalid adjustment in {path}: {exc}")

    handler = BulkAdjustStockHandler(unit_of_work(), retry_policy=retry_policy())
    echo_batch_report(handler.handle(specs))


@click.command("reconcile")
@click.option(
    "--file", "path", required=True, type=click.Path(exists=True, dir_okay=False),
    help='JSON list of {"product_id": ..., "actual_count": ...}.',
)
def inventory_reconcile(path: str) -> None:
    """Bring stock in line with a physical count."""
    try:
        counts = [
            PhysicalCount(product_id=str(row["product_id"]), actual_count=int(row["actual_count"]))
            for row in load_json_list(path)
        ]
    except (KeyError, TypeError, ValueError) as exc:
        raise click.BadParameter(f"Invalid count in {path}: {exc}")

    handler = ReconcileInventoryHandler(unit_of_work(), retry_policy=retry_policy())
    report = handler.handle(counts)

    click.echo(f"Reconciled {report.reconciled} products, {report.discrepancies_found} discrepancies")
    for d in report.discrepancies:
        if d.error:
            click.echo(f"  {d.product_id}: {d.error}")
        else:
            click.echo(
                f"  {d.sku:<12} system={d.system_count} actual={d.actual_count} "
                f"({d.difference:+d})"
            )


@click.command("logs")
@click.option("--product", "product_id", default=None, help="Only this product.")
@click.option("--type", "log_type", default=None, type=click.Choice(_LOG_TYPES, case_sensitive=False))
@click.option("--from", "start", type=click.DateTime(), default=None)
@click.option("--until", "end", type=click.DateTime(), default=None)
@click.option("--page", type=int, default=1, show_default=True)
@click.option("--limit", type=int, default=50, show_default=True)
def inventory_logs(
    product_id: str | None,
    log_type: str | None,
    start: datetime | None,
    end: datetime | None,
    page: int,
    limit: int,
) -> None:
    """Show ledger entries, newest first."""
    try:
        query = InventoryLogQuery(
            page=page,
            limit=limit,
            product_id=product_id,
            type=parse_log_type(log_type) if log_type else None,
            start=as_utc(start),
            end=as_utc(end),
        )
        result = ShowInventoryLogsHandler(unit_of_work()).handle(query)
    except DomainException as exc:
        raise CommandError.from_domain(exc)

    if not result.logs:
        click.echo("No inventory entries found.")
        return

    click.echo(f"{'ID':>6} {'When':<21} {'Product':<32} {'Type':<11} {'Qty':>6}  Reason")
    click.echo("-" * 100)
    for log in result.logs:
        click.echo(
            f"{log.id:>6} {log.created_at:<21} {log.product_id:<32} "
            f"{log.type:<11} {log.quantity:>+6d}  {log.reason}"
        )
    click.echo(f"Page {result.page} of {result.total_pages} ({result.total} entries)")


@click.command("alerts")
@click.option("--threshold", type=int, default=None, help="Low-stock threshold.")
def inventory_alerts(threshold: int | None) -> None:
    """List active products that are low on or out of stock."""
    limit = settings.LOW_STOCK_THRESHOLD if threshold is None else threshold
    alerts = InventoryAlertsHandler(unit_of_work()).handle(limit)

    if not alerts:
        click.echo("No inventory alerts.")
        return

    for alert in alerts:
        click.echo(f"{alert.alert_type:<13} {alert.product_name:<20} {alert.current_stock:>6}")


@click.command("verify")
@click.option("--product", "product_id", required=True, help="Product ID.")
def inventory_verify(product_id: str) -> None:
    """Replay a product's ledger and compare it with recorded stock."""
    try:
        check = VerifyLedgerHandler(unit_of_work()).handle(product_id)
    except DomainException as exc:
        raise CommandError.from_domain(exc)

    state = "consistent" if check.consistent else "INCONSISTENT"
    click.echo(
        f"{check.product_id}: recorded={check.recorded_stock} "
        f"replayed={check.replayed_stock} entries={check.entry_count} ({state})"
    )
    if not check.consistent:
        raise click.exceptions.Exit(1)


@click.command("movement")
@click.option("--product", "product_id", default=None, help="Only this product.")
@click.option("--from", "start", type=click.DateTime(), default=None)
@click.option("--until", "end", type=click.DateTime(), default=None)
def inventory_movement(product_id: str | None, start: datetime | None, end: datetime | None) -> None:
    """Summarize ledger movements by type."""
    report = StockMovementHandler(unit_of_work()).handle(as_utc(start), as_utc(end), product_id)

    click.echo(f"Movements: {report.total_movements}")
    for kind, totals in report.by_type.items():
        click.echo(f"  {kind:<11} {totals.count:>5} entries {totals.total_quantity:>7} units")


@click.command("turnover")
@click.option("--days", type=int, default=30, show_default=True)
def inventory_turnover(days: int) -> None:
    """Annualized turnover of products sold recently."""
    try:
        report = InventoryTurnoverHandler(unit_of_work()).handle(days)
    except DomainException as exc:
        raise CommandError.from_domain(exc)

    if not report.items:
        click.echo(f"No sales in the last {report.days} days.")
        return

    click.echo(f"{'SKU':<12} {'Product':<20} {'Sold':>6} {'Stock':>6} {'Rate':>8} {'Revenue':>12}")
    click.echo("-" * 70)
    for item in report.items:
        click.echo(
            f"{item.sku:<12} {item.product_name:<20} {item.total_sold:>6} "
            f"{item.current_stock:>6} {item.turnover_rate:>8.2f} {item.revenue:>12}"
        )
    click.echo(f"Average rate {report.average_turnover_rate:.2f}, revenue {report.total_revenue}")


@click.command("summary")
@click.option("--threshold", type=int, default=None, help="Low-stock threshold.")
def inventory_summary(threshold: int | None) -> None:
    """Product counts and total stock value."""
    limit = settings.LOW_STOCK_THRESHOLD if threshold is None else threshold
    summary = InventorySummaryHandler(unit_of_work()).handle(limit)
    click.echo(
        f"Products:     {summary.total_products} "
        f"({summary.active_products} active, {summary.inactive_products} inactive)"
    )
    click.echo(f"Units:        {summary.total_stock_quantity}")
    click.echo(f"Value:        {summary.total_inventory_value}")
    click.echo(f"Low stock:    {summary.low_stock_count}")
    click.echo(f"Out of stock: {summary.out_of_stock_count}")


@click.command("valuation")
def inventory_valuation() -> None:
    """Stock value per active product at list price."""
    report = InventoryValuationHandler(unit_of_work()).handle()

    for item in report.items:
        click.echo(
            f"{item.sku:<12} {item.product_name:<20} {item.quantity:>6} x "
            f"{item.unit_price:>10} = {item.total_value:>12}"
        )
    click.echo(f"Total {report.total_value} ({report.total_quantity} units, average {report.average_value})")


@click.command("restock")
@click.option("--threshold", type=int, default=None, help="Low-stock threshold.")
@click.option("--days", type=int, default=30, show_default=True, help="Sales window.")
def inventory_restock(threshold: int | None, days: int) -> None:
    """Suggest restock quantities for low-stock products."""
    limit = settings.LOW_STOCK_THRESHOLD if threshold is None else threshold
    try:
        recommendations = RestockRecommendationsHandler(unit_of_work()).handle(limit, days)
    except DomainException as exc:
        raise CommandError.from_domain(exc)

    if not recommendations:
        click.echo("Nothing to restock.")
        return

    for r in recommendations:
        click.echo(
            f"{r.priority:<6} {r.sku:<12} stock={r.current_stock:<5} "
            f"days left={r.days_of_stock_left:<4} order {r.recommended_quantity}"
        )
