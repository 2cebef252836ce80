"""CLI commands for coupons."""

from __future__ import annotations

from datetime import datetime

import click

from commerce.application.manage_coupons import (
    CouponStatsHandler,
    CreateCouponHandler,
    DeactivateExpiredCouponsHandler,
    ListCouponsHandler,
    TopCouponsHandler,
    UserCouponUsageHandler,
)
from commerce.application.validate_coupon import ValidateCouponHandler
from commerce.domain.exceptions import DomainException
from commerce.domain.model.coupon import DiscountType
from commerce.infrastructure.bootstrap import unit_of_work
from commerce.infrastructure.cli.common import as_utc
from commerce.infrastructure.cli.errors import CommandError


@click.command("create")
@click.option("--code", required=True)
@click.option(
    "--type", "discount_type", required=True,
    type=click.Choice([t.value for t in DiscountType], case_sensitive=False),
)
@click.option("--value", "discount_value", default="0", show_default=True, help="Percent or amount.")
@click.option("--from", "valid_from", required=True, type=click.DateTime())
@click.option("--until", "valid_until", required=True, type=click.DateTime())
@click.option("--description", default="")
@click.option("--min-purchase", default=None, help="Minimum order subtotal.")
@click.option("--max-discount", default=None, help="Cap for percentage discounts.")
@click.option("--usage-limit", type=int, default=None)
@click.option("--per-user-limit", type=int, default=None)
def coupon_create(
    code: str,
    discount_type: str,
    discount_value: str,
    valid_from: datetime,
    valid_until: datetime,
    description: str,
    min_purchase: str | None,
    max_discount: str | None,
    usage_limit: int | None,
    per_user_limit: int | None,
) -> None:
    """Create a coupon."""
    handler = CreateCouponHandler(unit_of_work())

    try:
        dto = handler.handle(
            code=code,
            discount_type=discount_type,
            discount_value=discount_value,
            valid_from=as_utc(valid_from),
            valid_until=as_utc(valid_until),
            description=description,
            min_purchase_amount=min_purchase,
            max_discount_amount=max_discount,
            usage_limit=usage_limit,
            per_user_limit=per_user_limit,
        )
    except DomainException as exc:
        raise CommandError.from_domain(exc)

    click.echo(f"Coupon {dto.code} created ({dto.discount_type} {dto.discount_value})")


@click.command("list")
def coupon_list() -> None:
    """List all coupons."""
    coupons = ListCouponsHandler(unit_of_work()).handle()

    if not coupons:
        click.echo("No coupons found.")
        return

    click.echo(f"{'Code':<16} {'Type':<14} {'Value':>8} {'Used':>10} {'Active':<6} Valid until")
    click.echo("-" * 80)
    for c in coupons:
        used = f"{c.used_count}/{c.usage_limit}" if c.usage_limit else str(c.used_count)
        click.echo(
            f"{c.code:<16} {c.discount_type:<14} {c.discount_value:>8} {used:>10} "
            f"{'yes' if c.is_active else 'no':<6} {c.valid_until}"
        )


@click.command("validate")
@click.option("--code", required=True)
@click.option("--user", "user_id", required=True)
@click.option("--total", "order_total", required=True, help="Order subtotal (e.g. 120.00).")
def coupon_validate(code: str, user_id: str, order_total: str) -> None:
    """Check whether a coupon would apply, without using it."""
    try:
        result = ValidateCouponHandler(unit_of_work()).handle(code, user_id, order_total)
    except DomainException as exc:
        raise CommandError.from_domain(exc)

    if result.valid:
        click.echo(f"Valid: discount {result.discount}")
        return
    click.echo(f"Invalid: {result.message}")
    raise click.exceptions.Exit(1)


@click.command("stats")
def coupon_stats() -> None:
    """Coupon counts."""
    stats = CouponStatsHandler(unit_of_work()).handle()
    click.echo(f"Total:   {stats.total}")
    click.echo(f"Active:  {stats.active}")
    click.echo(f"Expired: {stats.expired}")
    click.echo(f"Used:    {stats.used}")
    click.echo(f"Unused:  {stats.unused}")


@click.command("deactivate-expired")
def coupon_deactivate_expired() -> None:
    """Deactivate every coupon past its end date."""
    count = DeactivateExpiredCouponsHandler(unit_of_work()).handle()
    click.echo(f"Deactivated {count} expired coupons.")


@click.command("top")
@click.option("--limit", type=int, default=10, show_default=True)
def coupon_top(limit: int) -> None:
    """Most redeemed coupons."""
    try:
        coupons = TopCouponsHandler(unit_of_work()).handle(limit)
    except DomainException as exc:
        raise CommandError.from_domain(exc)

    for c in coupons:
        click.echo(f"{c.code:<16} {c.used_count:>6} uses  {c.discount_type} {c.discount_value}")


@click.command("usage")
@click.option("--user", "user_id", required=True)
def coupon_usage(user_id: str) -> None:
    """Coupons redeemed by a user, newest first."""
    usages = UserCouponUsageHandler(unit_of_work()).handle(user_id)

    if not usages:
        click.echo(f"User {user_id} has not used any coupons.")
        return

    for u in usages:
        order = f"order {u.order_id}" if u.order_id is not None else "no order"
        click.echo(f"{u.used_at}  {u.coupon_code:<16} {order}")
