"""Order aggregate — the core of the domain.

The Order is an aggregate root that owns its line items and its status
history. The transition graph lives here; the state machine service is
the only caller that moves an order along it.
"""

from __future__ import annotations

import random
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum

from orderflow.domain.exceptions import InvalidTransition, MissingReason, ValidationError
from orderflow.domain.model.value_objects import Money, Quantity, ShippingAddress


class OrderStatus(Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    PROCESSING = "processing"
    SHIPPING = "shipping"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"
    RETURNED = "returned"


class PaymentStatus(Enum):
    PENDING = "pending"
    PAID = "paid"
    FAILED = "failed"
    REFUNDED = "refunded"


# ---------------------------------------------------------------------------
# Transition graph
# ---------------------------------------------------------------------------
ALLOWED_TRANSITIONS: dict[OrderStatus, frozenset[OrderStatus]] = {
    OrderStatus.PENDING: frozenset({OrderStatus.CONFIRMED, OrderStatus.CANCELLED}),
    OrderStatus.CONFIRMED: frozenset({OrderStatus.PROCESSING, OrderStatus.CANCELLED}),
    OrderStatus.PROCESSING: frozenset({OrderStatus.SHIPPING, OrderStatus.CANCELLED}),
    OrderStatus.SHIPPING: frozenset({OrderStatus.DELIVERED, OrderStatus.CANCELLED}),
    OrderStatus.DELIVERED: frozenset({OrderStatus.RETURNED}),
    OrderStatus.CANCELLED: frozenset(),
    OrderStatus.RETURNED: frozenset(),
}

# Delivered still accepts a return, but no further fulfilment moves.
TERMINAL_STATUSES = frozenset(
    {OrderStatus.DELIVERED, OrderStatus.CANCELLED, OrderStatus.RETURNED}
)

# Statuses that need a reason and give stock back to the branches.
STOCK_RESTORING_STATUSES = frozenset({OrderStatus.CANCELLED, OrderStatus.RETURNED})

STATUS_DESCRIPTIONS: dict[OrderStatus, str] = {
    OrderStatus.PENDING: "Order placed",
    OrderStatus.CONFIRMED: "Order confirmed",
    OrderStatus.PROCESSING: "Order is being prepared",
    OrderStatus.SHIPPING: "Order handed to the carrier",
    OrderStatus.DELIVERED: "Order delivered",
    OrderStatus.CANCELLED: "Order cancelled",
    OrderStatus.RETURNED: "Order returned",
}

MAX_LINE_ITEMS = 50


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def generate_order_number(
    prefix: str,
    now: datetime | None = None,
    rng: random.Random | None = None,
) -> str:
    """Build a human-facing order number: ``<prefix><yymmdd><4 digits>``."""
    now = now or _utcnow()
    rng = rng or random.Random()
    return f"{prefix}{now:%y%m%d}{rng.randrange(10000):04d}"


@dataclass(frozen=True)
class OrderLineItem:
    """A quantity of one variant drawn from exactly one branch.

    Frozen: the branch is bound when stock is reserved at placement and
    never changes afterwards, nor does the price snapshot.
    """

    variant_id: str
    sku: str
    quantity: Quantity
    unit_price: Money  # locked at placement time
    branch_id: str

    def __post_init__(self) -> None:
        if not self.branch_id:
            raise ValidationError(f"Line for {self.variant_id} has no branch assigned")

    @property
    def line_total(self) -> Money:
        return self.unit_price * self.quantity.value


@dataclass(frozen=True)
class StatusChange:
    """One entry of the order's tracking timeline."""

    status: OrderStatus
    description: str
    timestamp: datetime
    reason: str = ""


@dataclass
class Order:
    """Aggregate root for customer orders.

    Use the ``Order.create()`` factory for new orders — it enforces all
    business rules.  The ``__init__`` is intentionally simple so the
    repository can reconstitute persisted orders without re-validating.
    """

    id: int | None
    order_number: str
    items: list[OrderLineItem]
    shipping_address: ShippingAddress
    status: OrderStatus = OrderStatus.PENDING
    payment_status: PaymentStatus = PaymentStatus.PENDING
    tax: Money = field(default_factory=Money.zero)
    shipping_fee: Money = field(default_factory=Money.zero)
    voucher_discount: Money = field(default_factory=Money.zero)
    tracking_code: str | None = None
    status_reason: str | None = None
    notes: str = ""
    version: int = 1
    inventory_restored: bool = False
    history: list[StatusChange] = field(default_factory=list)
    created_at: datetime = field(default_factory=_utcnow)
    updated_at: datetime = field(default_factory=_utcnow)

    # --- Factory (used for NEW orders only) -----------------------------------

    @staticmethod
    def create(
        order_number: str,
        items: list[OrderLineItem],
        shipping_address: ShippingAddress,
        tax: Money | None = None,
        shipping_fee: Money | None = None,
        voucher_discount: Money | None = None,
        notes: str = "",
    ) -> Order:
        """Create a new pending order, enforcing all invariants."""
        if not items:
            raise ValidationError("Order must contain at least one item")
        if len(items) > MAX_LINE_ITEMS:
            raise ValidationError(f"Maximum {MAX_LINE_ITEMS} items per order")

        currency = items[0].unit_price.currency
        currencies = {item.unit_price.currency for item in items}
        currencies.update(
            m.currency for m in (tax, shipping_fee, voucher_discount) if m is not None
        )
        if len(currencies) > 1:
            raise ValidationError(
                f"Order mixes currencies: {', '.join(sorted(currencies))}"
            )

        now = _utcnow()
        order = Order(
            id=None,
            order_number=order_number,
            items=list(items),
            shipping_address=shipping_address,
            tax=tax or Money.zero(currency),
            shipping_fee=shipping_fee or Money.zero(currency),
            voucher_discount=voucher_discount or Money.zero(currency),
            notes=notes.strip(),
            created_at=now,
            updated_at=now,
        )
        order.history.append(
            StatusChange(
                status=OrderStatus.PENDING,
                description=STATUS_DESCRIPTIONS[OrderStatus.PENDING],
                timestamp=now,
            )
        )
        return order

    # --- State transitions ----------------------------------------------------

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATUSES

    def allowed_targets(self) -> frozenset[OrderStatus]:
        return ALLOWED_TRANSITIONS[self.status]

    def check_transition(self, target: OrderStatus, reason: str | None) -> None:
        """Raise if ``target`` cannot be reached from here with ``reason``.

        Never mutates the order.
        """
        if target not in self.allowed_targets():
            raise InvalidTransition(self.status.value, target.value)
        if target in STOCK_RESTORING_STATUSES and not (reason and reason.strip()):
            raise MissingReason(target.value)

    def apply_transition(
        self,
        target: OrderStatus,
        reason: str | None = None,
        at: datetime | None = None,
    ) -> bool:
        """Move to ``target`` and bump the version.

        Returns True when this transition is the one that must give the
        order's stock back. The idempotency marker is set in the same step,
        so a later call can never ask for a second restoration.
        """
        self.check_transition(target, reason)
        at = at or _utcnow()
        reason = reason.strip() if reason else ""

        must_restore = (
            target in STOCK_RESTORING_STATUSES and not self.inventory_restored
        )
        if must_restore:
            self.inventory_restored = True

        self.status = target
        if target in STOCK_RESTORING_STATUSES:
            self.status_reason = reason
        self.history.append(
            StatusChange(
                status=target,
                description=STATUS_DESCRIPTIONS[target],
                timestamp=at,
                reason=reason,
            )
        )
        self.version += 1
        self.updated_at = at
        return must_restore

    # --- Non-status updates ---------------------------------------------------

    def apply_patch(
        self,
        notes: str | None = None,
        shipping_address: ShippingAddress | None = None,
        payment_status: PaymentStatus | None = None,
        tracking_code: str | None = None,
        at: datetime | None = None,
    ) -> None:
        """Administrative edit of fields that are not the order status.

        Terminal orders only accept a new note.
        """
        if all(v is None for v in (notes, shipping_address, payment_status, tracking_code)):
            raise ValidationError("Nothing to update")
        if self.is_terminal and any(
            v is not None for v in (shipping_address, payment_status, tracking_code)
        ):
            raise ValidationError(
                f"Order #{self.id} is {self.status.value}; only notes can be changed"
            )

        if notes is not None:
            self.notes = notes.strip()
        if shipping_address is not None:
            self.shipping_address = shipping_address
        if payment_status is not None:
            self.payment_status = payment_status
        if tracking_code is not None:
            self.tracking_code = tracking_code.strip() or None

        self.version += 1
        self.updated_at = at or _utcnow()

    # --- Computed properties --------------------------------------------------

    @property
    def subtotal(self) -> Money:
        result = Money.zero(self.tax.currency)
        for item in self.items:
            result = result + item.line_total
        return result

    @property
    def total_price(self) -> Money:
        return self.subtotal + self.tax + self.shipping_fee

    @property
    def final_price(self) -> Money:
        return self.total_price.minus_floored(self.voucher_discount)

    @property
    def total_units(self) -> int:
        return sum(item.quantity.value for item in self.items)
