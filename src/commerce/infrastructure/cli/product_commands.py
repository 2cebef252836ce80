"""CLI commands for the Product aggregate."""

from __future__ import annotations

import click

from commerce.application.add_product import AddProductHandler, ListProductsHandler
from commerce.application.update_product import UpdateProductHandler
from commerce.domain.exceptions import DomainException
from commerce.infrastructure.bootstrap import unit_of_work
from commerce.infrastructure.cli.errors import CommandError


@click.command("add")
@click.option("--name", required=True, help="Product name.")
@click.option("--sku", required=True, help="Unique stock keeping unit.")
@click.option("--price", required=True, help="Price (e.g. 15.00).")
@click.option("--sale-price", default=None, help="Optional sale price.")
@click.option("--stock", "initial_stock", type=int, default=0, show_default=True)
@click.option("--image-url", default=None)
def product_add(
    name: str,
    sku: str,
    price: str,
    sale_price: str | None,
    initial_stock: int,
    image_url: str | None,
) -> None:
    """Add a new product to the catalog."""
    handler = AddProductHandler(unit_of_work())

    try:
        product = handler.handle(
            name=name,
            sku=sku,
            price=price,
            sale_price=sale_price,
            initial_stock=initial_stock,
            image_url=image_url,
        )
    except DomainException as exc:
        raise CommandError.from_domain(exc)

    click.echo(
        f"Product {product.id} '{product.name}' ({product.sku}) added at "
        f"{product.unit_price} with {product.stock_quantity} in stock"
    )


@click.command("list")
def product_list() -> None:
    """List all products in the catalog."""
    products = ListProductsHandler(unit_of_work()).handle()

    if not products:
        click.echo("No products found.")
        return

    click.echo(f"{'ID':<32} {'SKU':<12} {'Name':<20} {'Price':>10} {'Stock':>6}")
    click.echo("-" * 84)
    for p in products:
        name = p.name if p.is_active else f"{p.name} (inactive)"
        click.echo(f"{p.id:<32} {p.sku:<12} {name:<20} {p.unit_price:>10} {p.stock_quantity:>6}")


@click.command("update")
@click.option("--id", "product_id", required=True, help="Product ID.")
@click.option("--name", default=None)
@click.option("--price", default=None, help="New price (e.g. 29.99).")
@click.option("--sale-price", default=None)
@click.option("--clear-sale-price", is_flag=True, default=False)
@click.option("--active/--inactive", "is_active", default=None)
@click.option("--image-url", default=None)
def product_update(
    product_id: str,
    name: str | None,
    price: str | None,
    sale_price: str | None,
    clear_sale_price: bool,
    is_active: bool | None,
    image_url: str | None,
) -> None:
    """Update a product's catalog fields (never its stock)."""
    handler = UpdateProductHandler(unit_of_work())

    try:
        product = handler.handle(
            product_id=product_id,
            name=name,
            price=price,
            sale_price=sale_price,
            clear_sale_price=clear_sale_price,
            is_active=is_active,
            image_url=image_url,
        )
    except DomainException as exc:
        raise CommandError.from_domain(exc)

    click.echo(f"Product {product.id} updated: {product.name} at {product.unit_price}")
