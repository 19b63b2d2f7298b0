"""Port to the external shipping carrier.

The domain needs three things from a carrier: create a shipment for an
order, cancel it, and report where it is.  Status reports are
translated by the adapter into the order status they imply, so the
rest of the system never sees carrier status codes.  Concrete adapters
live in the infrastructure layer.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum

from orderflow.domain.model.order import OrderStatus
from orderflow.domain.model.value_objects import Money, ShippingAddress


class CarrierOutcome(Enum):
    CANCELLED = "cancelled"
    ALREADY_CANCELLED = "already_cancelled"
    ERROR = "error"

    @property
    def succeeded(self) -> bool:
        return self is not CarrierOutcome.ERROR


@dataclass(frozen=True)
class CancelResult:
    """Classified answer to a cancel request."""

    outcome: CarrierOutcome
    detail: str = ""


@dataclass(frozen=True)
class TrackingEvent:
    action_time: str
    status: str
    status_name: str
    location: str = ""
    reason: str = ""


@dataclass(frozen=True)
class TrackingInfo:
    tracking_code: str
    status_code: str
    status_name: str
    expected_delivery: str = ""
    events: tuple[TrackingEvent, ...] = field(default_factory=tuple)
    order_status: OrderStatus | None = None


@dataclass(frozen=True)
class ShipmentRequest:
    """What the carrier needs to pick up and deliver one order."""

    reference: str
    recipient: ShippingAddress
    description: str
    total_units: int
    declared_value: Money
    collect_amount: Money
    note: str = ""


@dataclass(frozen=True)
class CarrierStatusUpdate:
    """A status report pushed by the carrier for one shipment.

    ``order_status`` is None when the report does not move the order.
    """

    tracking_code: str
    status_code: str
    status_name: str
    order_status: OrderStatus | None
    note: str = ""


class ShippingCarrier(ABC):

    @abstractmethod
    def create_shipment(self, request: ShipmentRequest) -> str:
        """Register a shipment and return its tracking code.

        Raises CarrierSyncFailure when the carrier refuses or cannot be reached.
        """

    @abstractmethod
    def cancel(self, tracking_code: str, note: str) -> CancelResult:
        """Ask the carrier to cancel a shipment.

        Must not raise for carrier-side or transport failures; those are
        classified as ``CarrierOutcome.ERROR``.
        """

    @abstractmethod
    def track(self, tracking_code: str) -> TrackingInfo:
        """Return the carrier's view of a shipment.

        Raises CarrierSyncFailure when the carrier cannot answer.
        """
