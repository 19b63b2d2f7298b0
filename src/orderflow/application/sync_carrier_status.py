"""Application service: Sync Carrier Status use case.

Applies a shipment status reported by the carrier (pushed through its
webhook, or fetched on demand) to the order it belongs to.  Every move
goes through ``ChangeStatusHandler``, so the state machine validates
each step and restores stock for carrier-side cancellations and
returns.  A report that would need an illegal move is logged and
ignored.
"""

from __future__ import annotations

import logging

from orderflow.application.change_status import ChangeStatusHandler
from orderflow.application.dto import OrderDTO, to_order_dto
from orderflow.domain.exceptions import EntityNotFoundError, ValidationError
from orderflow.domain.model.order import Order, OrderStatus
from orderflow.domain.repository.inventory_repository import InventoryStore
from orderflow.domain.repository.order_repository import OrderRepository
from orderflow.domain.service.shipping_carrier import CarrierStatusUpdate, ShippingCarrier

logger = logging.getLogger(__name__)

FULFILMENT_PATH = (
    OrderStatus.PENDING,
    OrderStatus.CONFIRMED,
    OrderStatus.PROCESSING,
    OrderStatus.SHIPPING,
    OrderStatus.DELIVERED,
)


def plan_steps(order: Order, target: OrderStatus) -> list[OrderStatus]:
    """The transitions that carry ``order`` to ``target``; empty if none do."""
    if target is order.status:
        return []
    allowed = order.allowed_targets()
    if target in allowed:
        return [target]
    # Sent back before it was ever delivered: a cancellation for us.
    if target is OrderStatus.RETURNED and OrderStatus.CANCELLED in allowed:
        return [OrderStatus.CANCELLED]
    if target in FULFILMENT_PATH and order.status in FULFILMENT_PATH:
        start = FULFILMENT_PATH.index(order.status)
        end = FULFILMENT_PATH.index(target)
        if start < end:
            return list(FULFILMENT_PATH[start + 1:end + 1])
    return []


class SyncCarrierStatusHandler:

    def __init__(
        self,
        order_repo: OrderRepository,
        inventory_store: InventoryStore,
        carrier: ShippingCarrier | None = None,
    ) -> None:
        self._order_repo = order_repo
        self._carrier = carrier
        self._change_status = ChangeStatusHandler(order_repo, inventory_store, carrier)

    def handle(self, update: CarrierStatusUpdate) -> OrderDTO:
        order = self._order_repo.get_by_tracking_code(update.tracking_code)
        if order is None:
            raise EntityNotFoundError(f"No order has tracking code {update.tracking_code}")
        return self._apply(order, update)

    def refresh(self, order_id: int) -> OrderDTO:
        """Ask the carrier for the shipment's current status and apply it."""
        order = self._order_repo.get_by_id(order_id)
        if order is None:
            raise EntityNotFoundError(f"Order #{order_id} not found")
        if not order.tracking_code:
            raise ValidationError(f"Order #{order_id} does not have a tracking code")
        if self._carrier is None:
            raise ValidationError("No shipping carrier is configured")

        info = self._carrier.track(order.tracking_code)
        return self._apply(
            order,
            CarrierStatusUpdate(
                tracking_code=info.tracking_code,
                status_code=info.status_code,
                status_name=info.status_name,
                order_status=info.order_status,
            ),
        )

    def _apply(self, order: Order, update: CarrierStatusUpdate) -> OrderDTO:
        target = update.order_status
        if target is None:
            logger.info(
                "Carrier status %s for %s does not move order #%s",
                update.status_code, update.tracking_code, order.id,
            )
            return to_order_dto(order)

        steps = plan_steps(order, target)
        if not steps:
            if target is not order.status:
                logger.warning(
                    "Ignoring carrier status %s for order #%s: cannot move from %s to %s",
                    update.status_code, order.id, order.status.value, target.value,
                )
            return to_order_dto(order)

        reason = f"Carrier status {update.status_code}"
        if update.status_name:
            reason = f"{reason}: {update.status_name}"

        order_id = order.id
        dto = to_order_dto(order)
        for step in steps:
            dto = self._change_status.handle(order_id, step.value, reason, notify_carrier=False)
        return dto
