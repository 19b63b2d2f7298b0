"""Application service: Change Order Status use case.

Hands the request to the state machine using the order's *current*
version.  If another writer commits first, the order is re-read and
the transition attempted exactly once more against the fresh copy;
a second conflict is reported to the caller.
"""

from __future__ import annotations

import logging

from orderflow.application.dto import OrderDTO, to_order_dto
from orderflow.domain.exceptions import (
    ConcurrentModification,
    EntityNotFoundError,
    ValidationError,
)
from orderflow.domain.model.order import OrderStatus
from orderflow.domain.repository.inventory_repository import InventoryStore
from orderflow.domain.repository.order_repository import OrderRepository
from orderflow.domain.service.inventory_allocator import InventoryAllocator
from orderflow.domain.service.order_state_machine import OrderStateMachine
from orderflow.domain.service.shipping_carrier import ShippingCarrier

logger = logging.getLogger(__name__)


def parse_status(raw: str) -> OrderStatus:
    try:
        return OrderStatus(raw.strip().lower())
    except ValueError as exc:
        allowed = ", ".join(s.value for s in OrderStatus)
        raise ValidationError(f"Unknown order status '{raw}' (expected one of: {allowed})") from exc


class ChangeStatusHandler:

    def __init__(
        self,
        order_repo: OrderRepository,
        inventory_store: InventoryStore,
        carrier: ShippingCarrier | None = None,
    ) -> None:
        self._order_repo = order_repo
        self._state_machine = OrderStateMachine(
            order_repo, InventoryAllocator(inventory_store), carrier
        )

    def handle(
        self,
        order_id: int,
        target_status: str,
        reason: str | None = None,
        notify_carrier: bool = True,
    ) -> OrderDTO:
        target = parse_status(target_status)

        try:
            result = self._state_machine.transition(
                order_id, target, reason, self._current_version(order_id),
                notify_carrier=notify_carrier,
            )
        except ConcurrentModification as exc:
            logger.warning("%s; retrying once with the latest version", exc)
            result = self._state_machine.transition(
                order_id, target, reason, self._current_version(order_id),
                notify_carrier=notify_carrier,
            )

        return to_order_dto(result.order, warnings=[str(w) for w in result.warnings])

    def _current_version(self, order_id: int) -> int:
        order = self._order_repo.get_by_id(order_id)
        if order is None:
            raise EntityNotFoundError(f"Order #{order_id} not found")
        return order.version
