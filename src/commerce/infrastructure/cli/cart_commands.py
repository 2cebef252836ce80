"""CLI commands for the Cart aggregate."""

from __future__ import annotations

import click

from commerce.application.apply_coupon import ApplyCouponHandler, RemoveCouponHandler
from commerce.application.dto import CartDTO, CartItemSpec
from commerce.application.merge_guest_cart import MergeGuestCartHandler
from commerce.application.show_cart import ShowCartHandler
from commerce.application.update_cart import (
    AddToCartHandler,
    ClearCartHandler,
    RemoveCartItemHandler,
    UpdateCartItemHandler,
)
from commerce.application.validate_cart import ValidateCartHandler
from commerce.domain.exceptions import DomainException
from commerce.infrastructure.bootstrap import retry_policy, unit_of_work
from commerce.infrastructure.cli.common import echo_batch_report, load_json_list
from commerce.infrastructure.cli.errors import CommandError

user_option = click.option("--user", "user_id", required=True, help="Cart owner.")


def _display_cart(dto: CartDTO) -> None:
    if not dto.items:
        click.echo("Cart is empty.")
        return

    click.echo(f"  {'Item':<32} {'Product':<20} {'Qty':>5} {'Price':>10} {'Total':>10}")
    click.echo(f"  {'-'*80}")
    for item in dto.items:
        click.echo(
            f"  {item.id:<32} {item.product_name:<20} {item.quantity:>5} "
            f"{item.unit_price:>10} {item.line_total:>10}"
        )
    click.echo(f"  {'-'*80}")
    click.echo(f"  {'Items':<27} {dto.item_count:>20}")
    click.echo(f"  {'Subtotal':<27} {dto.subtotal:>20}")
    if dto.coupon_code:
        click.echo(f"  {'Coupon ' + dto.coupon_code:<27} {'-' + dto.discount:>20}")
        if dto.free_shipping:
            click.echo("  Free shipping applies.")
    click.echo(f"  {'Total':<27} {dto.total:>20}")


@click.command("show")
@user_option
def cart_show(user_id: str) -> None:
    """Show the user's cart."""
    _display_cart(ShowCartHandler(unit_of_work()).handle(user_id))


@click.command("add")
@user_option
@click.option("--product", "product_id", required=True, help="Product ID.")
@click.option("--quantity", type=int, default=1, show_default=True)
def cart_add(user_id: str, product_id: str, quantity: int) -> None:
    """Add a product to the cart."""
    try:
        dto = AddToCartHandler(unit_of_work()).handle(user_id, product_id, quantity)
    except DomainException as exc:
        raise CommandError.from_domain(exc)
    _display_cart(dto)


@click.command("update")
@user_option
@click.option("--item", "item_id", required=True, help="Cart item ID.")
@click.option("--quantity", type=int, required=True)
def cart_update(user_id: str, item_id: str, quantity: int) -> None:
    """Change the quantity of a cart item."""
    try:
        dto = UpdateCartItemHandler(unit_of_work()).handle(user_id, item_id, quantity)
    except DomainException as exc:
        raise CommandError.from_domain(exc)
    _display_cart(dto)


@click.command("remove")
@user_option
@click.option("--item", "item_id", required=True, help="Cart item ID.")
def cart_remove(user_id: str, item_id: str) -> None:
    """Remove an item from the cart."""
    try:
        dto = RemoveCartItemHandler(unit_of_work()).handle(user_id, item_id)
    except DomainException as exc:
        raise CommandError.from_domain(exc)
    _display_cart(dto)


@click.command("clear")
@user_option
def cart_clear(user_id: str) -> None:
    """Remove every item and the coupon."""
    ClearCartHandler(unit_of_work()).handle(user_id)
    click.echo("Cart cleared.")


@click.command("apply-coupon")
@user_option
@click.option("--code", required=True, help="Coupon code.")
def cart_apply_coupon(user_id: str, code: str) -> None:
    """Attach a coupon to the cart."""
    try:
        dto = ApplyCouponHandler(unit_of_work()).handle(user_id, code)
    except DomainException as exc:
        raise CommandError.from_domain(exc)
    _display_cart(dto)


@click.command("remove-coupon")
@user_option
def cart_remove_coupon(user_id: str) -> None:
    """Detach the cart's coupon."""
    _display_cart(RemoveCouponHandler(unit_of_work()).handle(user_id))


@click.command("validate")
@user_option
def cart_validate(user_id: str) -> None:
    """Check whether the cart can be checked out."""
    result = ValidateCartHandler(unit_of_work()).handle(user_id)
    if result.valid:
        click.echo("Cart is ready for checkout.")
        return
    for error in result.errors:
        click.echo(f"- {error}")
    raise click.exceptions.Exit(1)


@click.command("merge")
@user_option
@click.option(
    "--file", "path", required=True, type=click.Path(exists=True, dir_okay=False),
    help='JSON list of {"product_id": ..., "quantity": ...}.',
)
def cart_merge(user_id: str, path: str) -> None:
    """Merge guest cart items into the user's cart."""
    try:
        specs = [
            CartItemSpec(product_id=str(row["product_id"]), quantity=int(row["quantity"]))
            for row in load_json_list(path)
        ]
    except (KeyError, TypeError, ValueError) as exc:
        raise click.BadParameter(f"Invalid cart item in {path}: {exc}")

    handler = MergeGuestCartHandler(unit_of_work(), retry_policy=retry_policy())
    echo_batch_report(handler.handle(user_id, specs))
