from __future__ import annotations

import click

from orderflow.infrastructure.cli.inventory_commands import inventory_set, inventory_show
from orderflow.infrastructure.cli.order_commands import (
    order_carrier_update,
    order_list,
    order_place,
    order_ship,
    order_show,
    order_status,
    order_sync,
    order_track,
    order_update,
)
from orderflow.infrastructure.cli.variant_commands import (
    variant_add,
    variant_list,
    variant_set_price,
)
from orderflow.infrastructure.logging import configure_logging


@click.group()
@click.option("--log-level", default=None, help="Override the configured log level.")
def cli(log_level: str | None) -> None:
    """orderflow — order lifecycle and branch inventory"""
    configure_logging(log_level)


@cli.group()
def order() -> None:
    """Manage orders."""


@cli.group()
def variant() -> None:
    """Manage catalog variants."""


@cli.group()
def inventory() -> None:
    """Manage branch inventory."""


# Register subcommands
order.add_command(order_carrier_update)
order.add_command(order_list)
order.add_command(order_place)
order.add_command(order_ship)
order.add_command(order_show)
order.add_command(order_status)
order.add_command(order_sync)
order.add_command(order_track)
order.add_command(order_update)
variant.add_command(variant_add)
variant.add_command(variant_list)
variant.add_command(variant_set_price)
inventory.add_command(inventory_set)
inventory.add_command(inventory_show)
