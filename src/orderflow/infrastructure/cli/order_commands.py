"""CLI commands for the Order aggregate."""

from __future__ import annotations

import json

import click

from orderflow.application.change_status import ChangeStatusHandler
from orderflow.application.create_shipment import CreateShipmentHandler
from orderflow.application.dto import OrderDTO, OrderItemSpec
from orderflow.application.list_orders import ListOrdersHandler
from orderflow.application.place_order import PlaceOrderHandler
from orderflow.application.show_order import ShowOrderHandler
from orderflow.application.sync_carrier_status import SyncCarrierStatusHandler
from orderflow.application.track_shipment import TrackShipmentHandler
from orderflow.application.update_order import UpdateOrderHandler
from orderflow.domain.exceptions import DomainException
from orderflow.domain.model.order import OrderStatus, PaymentStatus
from orderflow.domain.model.value_objects import ShippingAddress
from orderflow.infrastructure.bootstrap import (
    carrier_webhook_token,
    inventory_store,
    order_number_prefix,
    order_repository,
    shipping_carrier,
    variant_repository,
)
from orderflow.infrastructure.carrier.http_carrier import parse_status_webhook

_STATUS_CHOICE = click.Choice([s.value for s in OrderStatus], case_sensitive=False)
_PAYMENT_CHOICE = click.Choice([s.value for s in PaymentStatus], case_sensitive=False)


def _parse_items(raw: str) -> list[OrderItemSpec]:
    """Parse 'V1:3,V2:5' into OrderItemSpec list."""
    specs: list[OrderItemSpec] = []
    for pair in raw.split(","):
        pair = pair.strip()
        if ":" not in pair:
            raise click.BadParameter(
                f"Invalid item format '{pair}'. Expected 'VariantId:Quantity'."
            )
        variant_id, qty_str = pair.rsplit(":", 1)
        try:
            qty = int(qty_str)
        except ValueError:
            raise click.BadParameter(
                f"Invalid quantity '{qty_str}' for variant '{variant_id}'."
            )
        specs.append(OrderItemSpec(variant_id=variant_id.strip(), quantity=qty))
    return specs


def _require_carrier():
    carrier = shipping_carrier()
    if carrier is None:
        raise click.ClickException("No shipping carrier is configured (set ORDERFLOW_CARRIER_BASE_URL)")
    return carrier


def _echo_warnings(dto: OrderDTO) -> None:
    for warning in dto.warnings:
        click.secho(f"Warning: {warning}", fg="yellow", err=True)


def _display_order(dto: OrderDTO) -> None:
    """Shared formatting for displaying an order."""
    click.echo(f"Order #{dto.id} {dto.order_number}  (status={dto.status}, version={dto.version})")
    click.echo(f"Payment:  {dto.payment_status}")
    click.echo(f"Ship to:  {dto.shipping_address}")
    if dto.tracking_code:
        click.echo(f"Tracking: {dto.tracking_code}")
    if dto.status_reason:
        click.echo(f"Reason:   {dto.status_reason}")
    if dto.notes:
        click.echo(f"Notes:    {dto.notes}")
    click.echo(f"Created:  {dto.created_at}")
    click.echo()

    click.echo(f"  {'Variant':<12} {'Branch':<10} {'Qty':>5} {'Price':>18} {'Total':>18}")
    click.echo(f"  {'-'*67}")
    for item in dto.items:
        click.echo(
            f"  {item.variant_id:<12} {item.branch_id:<10} {item.quantity:>5} "
            f"{item.unit_price:>18} {item.line_total:>18}"
        )
    click.echo(f"  {'-'*67}")
    click.echo(f"  {'Subtotal':<30} {dto.subtotal:>37}")
    click.echo(f"  {'Tax':<30} {dto.tax:>37}")
    click.echo(f"  {'Shipping':<30} {dto.shipping_fee:>37}")
    click.echo(f"  {'Voucher':<30} {dto.voucher_discount:>37}")
    click.echo(f"  {'Final price':<30} {dto.final_price:>37}")

    if dto.history:
        click.echo()
        click.echo("History:")
        for change in dto.history:
            suffix = f" ({change.reason})" if change.reason else ""
            click.echo(f"  {change.timestamp}  {change.status:<11} {change.description}{suffix}")


@click.command("place")
@click.option("--items", required=True, help="Items as 'VariantId:Qty,VariantId:Qty'.")
@click.option("--name", "full_name", required=True, help="Recipient name.")
@click.option("--phone", required=True, help="Recipient phone.")
@click.option("--address", required=True, help="Street address.")
@click.option("--ward", required=True)
@click.option("--district", required=True)
@click.option("--province", required=True)
@click.option("--tax", default=None, help="Tax amount.")
@click.option("--shipping-fee", default=None, help="Shipping fee amount.")
@click.option("--voucher-discount", default=None, help="Voucher discount amount.")
@click.option("--notes", default="", help="Customer note.")
def order_place(
    items: str,
    full_name: str,
    phone: str,
    address: str,
    ward: str,
    district: str,
    province: str,
    tax: str | None,
    shipping_fee: str | None,
    voucher_discount: str | None,
    notes: str,
) -> None:
    """Place a new order (reserves stock at one branch per line)."""
    specs = _parse_items(items)

    handler = PlaceOrderHandler(
        order_repo=order_repository(),
        variant_repo=variant_repository(),
        inventory_store=inventory_store(),
        order_number_prefix=order_number_prefix(),
    )

    try:
        shipping_address = ShippingAddress(
            full_name=full_name,
            phone=phone,
            address_line1=address,
            ward=ward,
            district=district,
            province=province,
        )
        dto = handler.handle(
            item_specs=specs,
            shipping_address=shipping_address,
            tax=tax,
            shipping_fee=shipping_fee,
            voucher_discount=voucher_discount,
            notes=notes,
        )
    except DomainException as exc:
        raise click.ClickException(str(exc))

    click.echo(f"Order #{dto.id} placed  (status={dto.status})")
    click.echo()
    _display_order(dto)


@click.command("show")
@click.option("--id", "order_id", required=True, type=int, help="Order ID to display.")
def order_show(order_id: int) -> None:
    """Show details of an existing order."""
    handler = ShowOrderHandler(order_repo=order_repository())

    try:
        dto = handler.handle(order_id)
    except DomainException as exc:
        raise click.ClickException(str(exc))

    _display_order(dto)


@click.command("list")
@click.option("--status", default=None, type=_STATUS_CHOICE, help="Only orders in this status.")
def order_list(status: str | None) -> None:
    """List orders."""
    handler = ListOrdersHandler(order_repo=order_repository())

    try:
        orders = handler.handle(status=status)
    except DomainException as exc:
        raise click.ClickException(str(exc))

    if not orders:
        click.echo("No orders found.")
        return

    click.echo(f"{'ID':<6} {'Number':<16} {'Status':<11} {'Payment':<9} {'Final price':>20}")
    click.echo("-" * 66)
    for dto in orders:
        click.echo(
            f"{dto.id:<6} {dto.order_number:<16} {dto.status:<11} "
            f"{dto.payment_status:<9} {dto.final_price:>20}"
        )


@click.command("status")
@click.option("--id", "order_id", required=True, type=int, help="Order ID.")
@click.option("--to", "target", required=True, type=_STATUS_CHOICE, help="Target status.")
@click.option("--reason", default=None, help="Required for cancelled and returned.")
def order_status(order_id: int, target: str, reason: str | None) -> None:
    """Move an order to another status."""
    handler = ChangeStatusHandler(
        order_repo=order_repository(),
        inventory_store=inventory_store(),
        carrier=shipping_carrier(),
    )

    try:
        dto = handler.handle(order_id, target, reason)
    except DomainException as exc:
        raise click.ClickException(str(exc))

    click.echo(f"Order #{dto.id} is now {dto.status} (version {dto.version}).")
    _echo_warnings(dto)


@click.command("update")
@click.option("--id", "order_id", required=True, type=int, help="Order ID.")
@click.option("--notes", default=None, help="Replace the order note.")
@click.option("--payment-status", default=None, type=_PAYMENT_CHOICE)
@click.option("--tracking-code", default=None, help="Carrier tracking code.")
@click.option("--name", "full_name", default=None, help="New recipient name.")
@click.option("--phone", default=None, help="New recipient phone.")
@click.option("--address", default=None, help="New street address.")
@click.option("--ward", default=None)
@click.option("--district", default=None)
@click.option("--province", default=None)
def order_update(
    order_id: int,
    notes: str | None,
    payment_status: str | None,
    tracking_code: str | None,
    full_name: str | None,
    phone: str | None,
    address: str | None,
    ward: str | None,
    district: str | None,
    province: str | None,
) -> None:
    """Edit non-status fields of an order.

    A new shipping address replaces the old one whole, so all six
    address options must be given together.
    """
    address_parts = {
        "--name": full_name,
        "--phone": phone,
        "--address": address,
        "--ward": ward,
        "--district": district,
        "--province": province,
    }
    given = [flag for flag, value in address_parts.items() if value is not None]
    if given and len(given) != len(address_parts):
        missing = ", ".join(flag for flag in address_parts if flag not in given)
        raise click.UsageError(f"A new address also needs: {missing}")

    patch = {
        key: value
        for key, value in {
            "notes": notes,
            "payment_status": payment_status,
            "tracking_code": tracking_code,
        }.items()
        if value is not None
    }
    handler = UpdateOrderHandler(order_repo=order_repository())

    try:
        if given:
            patch["shipping_address"] = ShippingAddress(
                full_name=full_name,
                phone=phone,
                address_line1=address,
                ward=ward,
                district=district,
                province=province,
            )
        dto = handler.handle(order_id, patch)
    except DomainException as exc:
        raise click.ClickException(str(exc))

    click.echo(f"Order #{dto.id} updated (version {dto.version}).")


@click.command("track")
@click.option("--id", "order_id", required=True, type=int, help="Order ID.")
def order_track(order_id: int) -> None:
    """Ask the carrier where an order's shipment is."""
    handler = TrackShipmentHandler(order_repo=order_repository(), carrier=_require_carrier())

    try:
        info = handler.handle(order_id)
    except DomainException as exc:
        raise click.ClickException(str(exc))

    click.echo(f"Shipment {info.tracking_code}: {info.status_name} ({info.status_code})")
    if info.expected_delivery:
        click.echo(f"Expected delivery: {info.expected_delivery}")
    for event in info.events:
        where = f" @ {event.location}" if event.location else ""
        click.echo(f"  {event.action_time}  {event.status_name}{where}")


@click.command("ship")
@click.option("--id", "order_id", required=True, type=int, help="Order ID.")
def order_ship(order_id: int) -> None:
    """Create the carrier shipment for a confirmed order."""
    handler = CreateShipmentHandler(
        order_repo=order_repository(),
        inventory_store=inventory_store(),
        carrier=_require_carrier(),
    )

    try:
        dto = handler.handle(order_id)
    except DomainException as exc:
        raise click.ClickException(str(exc))

    click.echo(f"Order #{dto.id} shipped as {dto.tracking_code} (status={dto.status}).")


@click.command("sync")
@click.option("--id", "order_id", required=True, type=int, help="Order ID.")
def order_sync(order_id: int) -> None:
    """Pull the shipment status from the carrier and apply it."""
    handler = SyncCarrierStatusHandler(
        order_repo=order_repository(),
        inventory_store=inventory_store(),
        carrier=_require_carrier(),
    )

    try:
        dto = handler.refresh(order_id)
    except DomainException as exc:
        raise click.ClickException(str(exc))

    click.echo(f"Order #{dto.id} is {dto.status} (version {dto.version}).")


@click.command("carrier-update")
@click.option(
    "--payload",
    required=True,
    type=click.File("r", encoding="utf-8"),
    help="Status report posted by the carrier ('-' for stdin).",
)
def order_carrier_update(payload) -> None:
    """Apply a status report pushed by the carrier."""
    try:
        raw = json.load(payload)
    except ValueError as exc:
        raise click.ClickException(f"Carrier report is not valid JSON: {exc}")

    handler = SyncCarrierStatusHandler(
        order_repo=order_repository(),
        inventory_store=inventory_store(),
        carrier=shipping_carrier(),
    )

    try:
        update = parse_status_webhook(raw, carrier_webhook_token())
        dto = handler.handle(update)
    except DomainException as exc:
        raise click.ClickException(str(exc))

    click.echo(
        f"Order #{dto.id} is {dto.status} after carrier status {update.status_code}."
    )
