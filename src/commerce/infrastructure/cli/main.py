import click

from commerce.infrastructure import bootstrap, settings
from commerce.infrastructure.cli.cart_commands import (
    cart_add,
    cart_apply_coupon,
    cart_clear,
    cart_merge,
    cart_remove,
    cart_remove_coupon,
    cart_show,
    cart_update,
    cart_validate,
)
from commerce.infrastructure.cli.coupon_commands import (
    coupon_create,
    coupon_deactivate_expired,
    coupon_list,
    coupon_stats,
    coupon_top,
    coupon_usage,
    coupon_validate,
)
from commerce.infrastructure.cli.inventory_commands import (
    inventory_adjust,
    inventory_alerts,
    inventory_bulk_adjust,
    inventory_logs,
    inventory_movement,
    inventory_reconcile,
    inventory_restock,
    inventory_summary,
    inventory_turnover,
    inventory_valuation,
    inventory_verify,
)
from commerce.infrastructure.cli.order_commands import (
    order_cancel,
    order_create,
    order_list,
    order_payment,
    order_show,
    order_stats,
    order_status,
)
from commerce.infrastructure.cli.product_commands import (
    product_add,
    product_list,
    product_update,
)
from commerce.infrastructure.log_config import configure_logging


@click.group()
@click.option(
    "--database-url",
    envvar="DATABASE_URL",
    default=None,
    help="SQLAlchemy database URL (default from settings).",
)
@click.option("--log-level", default=None, help="Logging level (default from settings).")
def cli(database_url: str | None, log_level: str | None) -> None:
    """Commerce: carts, coupons, inventory and orders."""
    configure_logging(log_level or settings.LOG_LEVEL)
    bootstrap.configure(database_url)


@cli.group()
def order() -> None:
    """Manage orders."""


@cli.group()
def cart() -> None:
    """Manage shopping carts."""


@cli.group()
def inventory() -> None:
    """Manage inventory."""


@cli.group()
def coupon() -> None:
    """Manage coupons."""


@cli.group()
def product() -> None:
    """Manage products."""


@cli.group()
def db() -> None:
    """Database maintenance."""


@db.command("init")
def db_init() -> None:
    """Create the database schema."""
    bootstrap.create_schema()
    click.echo("Database schema created.")


# Register subcommands
order.add_command(order_cancel)
order.add_command(order_create)
order.add_command(order_list)
order.add_command(order_payment)
order.add_command(order_show)
order.add_command(order_stats)
order.add_command(order_status)
cart.add_command(cart_add)
cart.add_command(cart_apply_coupon)
cart.add_command(cart_clear)
cart.add_command(cart_merge)
cart.add_command(cart_remove)
cart.add_command(cart_remove_coupon)
cart.add_command(cart_show)
cart.add_command(cart_update)
cart.add_command(cart_validate)
inventory.add_command(inventory_adjust)
inventory.add_command(inventory_alerts)
inventory.add_command(inventory_bulk_adjust)
inventory.add_command(inventory_logs)
inventory.add_command(inventory_movement)
inventory.add_command(inventory_reconcile)
inventory.add_command(inventory_restock)
inventory.add_command(inventory_summary)
inventory.add_command(inventory_turnover)
inventory.add_command(inventory_valuation)
inventory.add_command(inventory_verify)
coupon.add_command(coupon_create)
coupon.add_command(coupon_deactivate_expired)
coupon.add_command(coupon_list)
coupon.add_command(coupon_stats)
coupon.add_command(coupon_top)
coupon.add_command(coupon_usage)
coupon.add_command(coupon_validate)
product.add_command(product_add)
product.add_command(product_list)
product.add_command(product_update)
