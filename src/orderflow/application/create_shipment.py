"""Application service: Create Shipment use case.

Registers a confirmed or processing order with the carrier and binds
the returned tracking code to the order.  A confirmed order then moves
on to processing through the state machine.  If the tracking code
cannot be stored, the fresh carrier shipment is cancelled again so no
orphan shipment is left behind.
"""

from __future__ import annotations

import logging

from orderflow.application.change_status import ChangeStatusHandler
from orderflow.application.dto import OrderDTO, to_order_dto
from orderflow.domain.exceptions import EntityNotFoundError, ValidationError
from orderflow.domain.model.order import Order, OrderStatus, PaymentStatus
from orderflow.domain.model.value_objects import Money
from orderflow.domain.repository.inventory_repository import InventoryStore
from orderflow.domain.repository.order_repository import OrderRepository
from orderflow.domain.service.shipping_carrier import ShipmentRequest, ShippingCarrier

logger = logging.getLogger(__name__)

SHIPPABLE_STATUSES = frozenset({OrderStatus.CONFIRMED, OrderStatus.PROCESSING})


def shipment_request_for(order: Order) -> ShipmentRequest:
    """Describe an order to the carrier. Paid orders collect nothing on delivery."""
    if order.payment_status is PaymentStatus.PAID:
        collect = Money.zero(order.final_price.currency)
    else:
        collect = order.final_price
    return ShipmentRequest(
        reference=order.order_number,
        recipient=order.shipping_address,
        description=", ".join(f"{item.sku} x{item.quantity}" for item in order.items),
        total_units=order.total_units,
        declared_value=order.final_price,
        collect_amount=collect,
        note=order.notes,
    )


class CreateShipmentHandler:

    def __init__(
        self,
        order_repo: OrderRepository,
        inventory_store: InventoryStore,
        carrier: ShippingCarrier,
    ) -> None:
        self._order_repo = order_repo
        self._carrier = carrier
        self._change_status = ChangeStatusHandler(order_repo, inventory_store, carrier)

    def handle(self, order_id: int) -> OrderDTO:
        """Create the carrier shipment for an order.

        Raises CarrierSyncFailure when the carrier refuses; the order is
        left untouched in that case.
        """
        order = self._order_repo.get_by_id(order_id)
        if order is None:
            raise EntityNotFoundError(f"Order #{order_id} not found")
        if order.tracking_code:
            raise ValidationError(
                f"Order #{order_id} already has tracking code {order.tracking_code}"
            )
        if order.status not in SHIPPABLE_STATUSES:
            raise ValidationError(
                f"Order #{order_id} is {order.status.value}; "
                "only confirmed or processing orders can be shipped"
            )

        tracking_code = self._carrier.create_shipment(shipment_request_for(order))

        expected_version = order.version
        order.apply_patch(tracking_code=tracking_code)
        try:
            self._order_repo.save(order, expected_version=expected_version)
        except Exception:
            logger.warning(
                "Could not bind shipment %s to order #%s; cancelling it at the carrier",
                tracking_code, order_id,
            )
            self._carrier.cancel(tracking_code, "Order could not be updated")
            raise

        logger.info("Order #%s shipped with tracking code %s", order_id, tracking_code)
        if order.status is OrderStatus.CONFIRMED:
            return self._change_status.handle(
                order_id, OrderStatus.PROCESSING.value, notify_carrier=False
            )
        return to_order_dto(order)
