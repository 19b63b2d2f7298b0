"""Data Transfer Objects — plain containers that cross layer boundaries.

DTOs carry data between the CLI and application layers without
exposing domain internals to the outside world.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from orderflow.domain.model.order import Order

_TIME_FORMAT = "%Y-%m-%d %H:%M UTC"


@dataclass(frozen=True)
class OrderItemSpec:
    """Input: what the customer asked for (variant + quantity)."""

    variant_id: str
    quantity: int


@dataclass(frozen=True)
class OrderLineItemDTO:
    """Output: a single line item as displayed to the user."""

    variant_id: str
    sku: str
    quantity: int
    branch_id: str
    unit_price: str  # formatted, e.g. "150,000.00 VND"
    line_total: str


@dataclass(frozen=True)
class StatusChangeDTO:
    status: str
    description: str
    timestamp: str
    reason: str


@dataclass(frozen=True)
class OrderDTO:
    """Output: a complete order as displayed to the user."""

    id: int
    order_number: str
    status: str
    payment_status: str
    version: int
    items: list[OrderLineItemDTO]
    shipping_address: str
    subtotal: str
    tax: str
    shipping_fee: str
    voucher_discount: str
    total_price: str
    final_price: str
    tracking_code: str | None
    status_reason: str | None
    notes: str
    created_at: str
    updated_at: str
    history: list[StatusChangeDTO] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)


def to_order_dto(order: Order, warnings: list[str] | None = None) -> OrderDTO:
    return OrderDTO(
        id=order.id,  # type: ignore[arg-type]
        order_number=order.order_number,
        status=order.status.value,
        payment_status=order.payment_status.value,
        version=order.version,
        items=[
            OrderLineItemDTO(
                variant_id=item.variant_id,
                sku=item.sku,
                quantity=item.quantity.value,
                branch_id=item.branch_id,
                unit_price=str(item.unit_price),
                line_total=str(item.line_total),
            )
            for item in order.items
        ],
        shipping_address=order.shipping_address.one_line(),
        subtotal=str(order.subtotal),
        tax=str(order.tax),
        shipping_fee=str(order.shipping_fee),
        voucher_discount=str(order.voucher_discount),
        total_price=str(order.total_price),
        final_price=str(order.final_price),
        tracking_code=order.tracking_code,
        status_reason=order.status_reason,
        notes=order.notes,
        created_at=order.created_at.strftime(_TIME_FORMAT),
        updated_at=order.updated_at.strftime(_TIME_FORMAT),
        history=[
            StatusChangeDTO(
                status=change.status.value,
                description=change.description,
                timestamp=change.timestamp.strftime(_TIME_FORMAT),
                reason=change.reason,
            )
            for change in order.history
        ],
        warnings=list(warnings or []),
    )
