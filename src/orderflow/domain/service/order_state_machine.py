"""Domain service: Order State Machine.

The only component that changes an order's status.  A transition is
validated against the stored order and then applied as one unit: for
cancellations and returns the stock goes back to the branches first,
and the order (status, idempotency marker, version) is committed under
an optimistic version check.  If the commit fails, the restored stock
is withdrawn again, so either every effect happens or none does.  Only
a committed cancellation tells the carrier about the shipment.

The carrier is never allowed to undo a committed transition.  Its
answer is returned next to the order, and a failed call becomes a
``CarrierSyncFailure`` warning instead of an exception.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from orderflow.domain.exceptions import (
    CarrierSyncFailure,
    ConcurrentModification,
    EntityNotFoundError,
)
from orderflow.domain.model.order import Order, OrderLineItem, OrderStatus
from orderflow.domain.repository.order_repository import OrderRepository
from orderflow.domain.service.inventory_allocator import InventoryAllocator
from orderflow.domain.service.shipping_carrier import (
    CarrierOutcome,
    CancelResult,
    ShippingCarrier,
)

logger = logging.getLogger(__name__)


@dataclass
class TransitionResult:
    order: Order
    carrier_result: CancelResult | None = None
    warnings: list[CarrierSyncFailure] = field(default_factory=list)


class OrderStateMachine:

    def __init__(
        self,
        order_repo: OrderRepository,
        allocator: InventoryAllocator,
        carrier: ShippingCarrier | None = None,
    ) -> None:
        self._order_repo = order_repo
        self._allocator = allocator
        self._carrier = carrier

    def transition(
        self,
        order_id: int,
        target: OrderStatus,
        reason: str | None,
        expected_version: int,
        notify_carrier: bool = True,
    ) -> TransitionResult:
        """Move an order to ``target``.

        Raises InvalidTransition, MissingReason or ConcurrentModification
        without touching the order or the inventory.  Any failure while
        restoring stock or committing the order leaves both as they were.
        ``notify_carrier=False`` skips the carrier cancel call, for
        transitions the carrier itself reported.
        """
        order = self._order_repo.get_by_id(order_id)
        if order is None:
            raise EntityNotFoundError(f"Order #{order_id} not found")

        order.check_transition(target, reason)
        if order.version != expected_version:
            raise ConcurrentModification(order_id, expected_version, order.version)

        previous = order.status
        must_restore = order.apply_transition(target, reason)

        restored: list[OrderLineItem] = []
        try:
            if must_restore:
                for line in order.items:
                    self._allocator.restore(line.variant_id, line.branch_id, line.quantity.value)
                    restored.append(line)
            self._order_repo.save(order, expected_version=expected_version)
        except Exception:
            if restored:
                logger.warning(
                    "Order #%s %s -> %s not committed; withdrawing %d restored line(s)",
                    order_id, previous.value, target.value, len(restored),
                )
                self._withdraw(restored)
            raise

        logger.info(
            "Order #%s %s -> %s (version %d)",
            order_id, previous.value, target.value, order.version,
        )
        if restored:
            logger.info("Restored stock for %d line(s) of order #%s", len(restored), order_id)

        result = TransitionResult(order=order)
        if notify_carrier and target is OrderStatus.CANCELLED and order.tracking_code:
            self._notify_carrier(order, result)
        return result

    # --- Internal helpers -----------------------------------------------------

    def _withdraw(self, lines: list[OrderLineItem]) -> None:
        for line in lines:
            self._allocator.withdraw(line.variant_id, line.branch_id, line.quantity.value)

    def _notify_carrier(self, order: Order, result: TransitionResult) -> None:
        tracking_code = order.tracking_code or ""
        if self._carrier is None:
            result.warnings.append(
                CarrierSyncFailure(tracking_code, "no carrier configured")
            )
            logger.warning(
                "Order #%s cancelled but no carrier is configured for %s",
                order.id, tracking_code,
            )
            return

        cancel = self._carrier.cancel(tracking_code, order.status_reason or "")
        result.carrier_result = cancel
        if cancel.outcome is CarrierOutcome.ERROR:
            result.warnings.append(CarrierSyncFailure(tracking_code, cancel.detail))
            logger.warning(
                "Carrier cancel failed for order #%s (%s): %s",
                order.id, tracking_code, cancel.detail,
            )
        else:
            logger.info(
                "Carrier cancel for order #%s (%s): %s",
                order.id, tracking_code, cancel.outcome.value,
            )
