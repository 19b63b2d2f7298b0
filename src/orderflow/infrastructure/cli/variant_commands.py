"""CLI commands for catalog variants."""

from __future__ import annotations

import click

from orderflow.application.add_variant import AddVariantHandler
from orderflow.application.list_variants import ListVariantsHandler
from orderflow.application.update_variant_price import UpdateVariantPriceHandler
from orderflow.domain.exceptions import DomainException
from orderflow.infrastructure.bootstrap import inventory_store, variant_repository


@click.command("add")
@click.option("--id", "variant_id", required=True, help="Variant ID.")
@click.option("--sku", required=True, help="Stock keeping unit.")
@click.option("--name", required=True, help="Display name.")
@click.option("--price", required=True, help="Unit price (e.g. 150000).")
def variant_add(variant_id: str, sku: str, name: str, price: str) -> None:
    """Add a new variant to the catalog."""
    handler = AddVariantHandler(variant_repo=variant_repository())

    try:
        variant = handler.handle(variant_id=variant_id, sku=sku, name=name, price=price)
    except DomainException as exc:
        raise click.ClickException(str(exc))

    click.echo(f"Variant '{variant.id}' ({variant.sku}) added at {variant.unit_price}")


@click.command("list")
def variant_list() -> None:
    """List all variants with their stock per branch."""
    handler = ListVariantsHandler(
        variant_repo=variant_repository(),
        inventory_store=inventory_store(),
    )
    variants = handler.handle()

    if not variants:
        click.echo("No variants found.")
        return

    click.echo(f"{'ID':<10} {'SKU':<14} {'Name':<24} {'Price':>18} {'On hand':>8}")
    click.echo("-" * 78)
    for v in variants:
        click.echo(
            f"{v.id:<10} {v.sku:<14} {v.name:<24} {str(v.unit_price):>18} {v.total_on_hand:>8}"
        )
        for branch_id, qty in sorted(v.inventory.items()):
            click.echo(f"{'':<10} branch {branch_id:<20} {qty:>5}")


@click.command("set-price")
@click.option("--id", "variant_id", required=True, help="Variant ID.")
@click.option("--price", required=True, help="New unit price.")
def variant_set_price(variant_id: str, price: str) -> None:
    """Change a variant's price. Existing orders keep their snapshot."""
    handler = UpdateVariantPriceHandler(variant_repo=variant_repository())

    try:
        variant = handler.handle(variant_id, price)
    except DomainException as exc:
        raise click.ClickException(str(exc))

    click.echo(f"Variant '{variant.id}' now costs {variant.unit_price}")
