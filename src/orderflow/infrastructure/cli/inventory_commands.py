"""CLI commands for branch inventory management."""

from __future__ import annotations

import click

from orderflow.application.set_inventory import SetInventoryHandler
from orderflow.application.show_inventory import ShowInventoryHandler
from orderflow.domain.exceptions import DomainException
from orderflow.infrastructure.bootstrap import inventory_store, variant_repository


@click.command("set")
@click.option("--variant", "variant_id", required=True, help="Variant ID.")
@click.option("--branch", "branch_id", required=True, help="Branch ID.")
@click.option("--quantity", required=True, type=int, help="Units on hand at the branch.")
def inventory_set(variant_id: str, branch_id: str, quantity: int) -> None:
    """Set the stock level of a variant at one branch."""
    handler = SetInventoryHandler(
        inventory_store=inventory_store(),
        variant_repo=variant_repository(),
    )

    try:
        handler.handle(variant_id=variant_id, branch_id=branch_id, quantity=quantity)
    except DomainException as exc:
        raise click.ClickException(str(exc))

    click.echo(f"Inventory for '{variant_id}' at branch '{branch_id}' set to {quantity}")


@click.command("show")
@click.option("--variant", "variant_id", default=None, help="Only this variant.")
def inventory_show(variant_id: str | None) -> None:
    """Show current stock per variant and branch."""
    handler = ShowInventoryHandler(inventory_store=inventory_store())
    lines = handler.handle(variant_id=variant_id)

    if not lines:
        click.echo("No inventory records found.")
        return

    click.echo(f"{'Variant':<20} {'Branch':<20} {'Quantity':>10}")
    click.echo("-" * 52)
    for line in lines:
        click.echo(f"{line.variant_id:<20} {line.branch_id:<20} {line.quantity:>10}")
