"""Application service: Track Shipment use case (query against the carrier)."""

from __future__ import annotations

from orderflow.domain.exceptions import EntityNotFoundError, ValidationError
from orderflow.domain.repository.order_repository import OrderRepository
from orderflow.domain.service.shipping_carrier import ShippingCarrier, TrackingInfo


class TrackShipmentHandler:

    def __init__(self, order_repo: OrderRepository, carrier: ShippingCarrier) -> None:
        self._order_repo = order_repo
        self._carrier = carrier

    def handle(self, order_id: int) -> TrackingInfo:
        """Ask the carrier where the order's shipment is.

        Raises CarrierSyncFailure if the carrier cannot answer.
        """
        order = self._order_repo.get_by_id(order_id)
        if order is None:
            raise EntityNotFoundError(f"Order #{order_id} not found")
        if not order.tracking_code:
            raise ValidationError(f"Order #{order_id} does not have a tracking code")
        return self._carrier.track(order.tracking_code)
