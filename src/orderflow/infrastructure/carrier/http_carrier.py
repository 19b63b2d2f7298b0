"""HTTP adapter for the shipping carrier's partner API.

Speaks the carrier's JSON protocol: a ``Token`` header obtained from
``/user/Login``, shipment creation through ``/order/createOrder``,
cancellation through ``/order/UpdateOrder`` with operation code 4, and
shipment detail through ``/order/GetOrderDetailByOrderNumber``.  Status
reports pushed by the carrier are parsed by ``parse_status_webhook``.
Every call is bounded by the configured timeout.  A 401 triggers one
fresh login and one repeat of the call, nothing more.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

import httpx

from orderflow.domain.exceptions import CarrierSyncFailure, ValidationError
from orderflow.domain.model.order import OrderStatus
from orderflow.domain.service.shipping_carrier import (
    CancelResult,
    CarrierOutcome,
    CarrierStatusUpdate,
    ShipmentRequest,
    ShippingCarrier,
    TrackingEvent,
    TrackingInfo,
)
from orderflow.infrastructure.logging import get_logger

logger = get_logger(__name__)

CANCEL_OPERATION = 4
DEFAULT_CANCEL_NOTE = "Cancelled by system"

# Lower-cased fragments the carrier uses when a shipment is already void.
ALREADY_CANCELLED_MARKERS = (
    "already cancel",
    "has been cancel",
    "đã hủy",
    "đã bị hủy",
    "da huy",
)


def classify_cancel_response(status_code: int, body: Any) -> CancelResult:
    """Map a raw carrier answer onto cancelled / already_cancelled / error."""
    if not isinstance(body, dict):
        return CancelResult(CarrierOutcome.ERROR, f"HTTP {status_code}: unreadable body")

    message = str(body.get("message") or "")
    if any(marker in message.lower() for marker in ALREADY_CANCELLED_MARKERS):
        return CancelResult(CarrierOutcome.ALREADY_CANCELLED, message)
    if status_code == 200 and body.get("status") == 200 and not body.get("error"):
        return CancelResult(CarrierOutcome.CANCELLED, message)
    return CancelResult(
        CarrierOutcome.ERROR, f"HTTP {status_code}: {message or 'unknown carrier error'}"
    )


# Carrier status codes that move an order. Codes not listed here (shipment
# accepted, waiting for pickup) leave the order alone.
DELIVERED_CODES = frozenset({501})
RETURNED_CODES = frozenset({504})
CANCELLED_CODES = frozenset({107, 201, 503})
IN_TRANSIT_RANGES = ((105, 106), (200, 200), (202, 499), (500, 500), (502, 502), (505, 515))


def order_status_for(status_code: Any) -> OrderStatus | None:
    """The order status a carrier status code implies, or None."""
    try:
        code = int(status_code)
    except (TypeError, ValueError):
        return None
    if code in DELIVERED_CODES:
        return OrderStatus.DELIVERED
    if code in RETURNED_CODES:
        return OrderStatus.RETURNED
    if code in CANCELLED_CODES:
        return OrderStatus.CANCELLED
    if any(low <= code <= high for low, high in IN_TRANSIT_RANGES):
        return OrderStatus.SHIPPING
    return None


def parse_status_webhook(payload: Any, expected_token: str = "") -> CarrierStatusUpdate:
    """Validate a pushed status report and translate it.

    The carrier posts ``{"DATA": {...}, "TOKEN": "..."}``.  When
    ``expected_token`` is set the report must carry it.
    """
    if not isinstance(payload, dict):
        raise ValidationError("Carrier webhook payload must be a JSON object")
    if expected_token and payload.get("TOKEN") != expected_token:
        raise ValidationError("Invalid carrier webhook token")
    if not expected_token:
        logger.warning("Carrier webhook token is not configured; accepting report unverified")

    data = payload.get("DATA")
    if not isinstance(data, dict) or not data.get("ORDER_NUMBER"):
        raise ValidationError("Carrier webhook payload is missing DATA.ORDER_NUMBER")

    return CarrierStatusUpdate(
        tracking_code=str(data["ORDER_NUMBER"]),
        status_code=str(data.get("ORDER_STATUS", "")),
        status_name=str(data.get("STATUS_NAME") or ""),
        order_status=order_status_for(data.get("ORDER_STATUS")),
        note=str(data.get("NOTE") or ""),
    )


@dataclass(frozen=True)
class SenderProfile:
    """The shop's pickup details, sent with every new shipment."""

    name: str = ""
    phone: str = ""
    address: str = ""
    ward_code: str = ""
    district_code: str = ""
    province_code: str = ""


class HttpShippingCarrier(ShippingCarrier):

    def __init__(
        self,
        base_url: str,
        username: str = "",
        password: str = "",
        token: str = "",
        timeout: float = 10.0,
        sender: SenderProfile | None = None,
        service_code: str = "LCOD",
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._username = username
        self._password = password
        self._token = token
        self._timeout = timeout
        self._sender = sender or SenderProfile()
        self._service_code = service_code
        self._transport = transport

    # --- ShippingCarrier interface --------------------------------------------

    def create_shipment(self, request: ShipmentRequest) -> str:
        logger.info("Creating carrier shipment for %s", request.reference)
        try:
            response = self._post("/order/createOrder", self._shipment_payload(request))
        except httpx.HTTPError as exc:
            logger.warning("Carrier shipment for %s failed: %s", request.reference, exc)
            raise CarrierSyncFailure(request.reference, f"{type(exc).__name__}: {exc}") from exc

        body = self._json(response)
        data = body.get("data") if isinstance(body, dict) else None
        if (
            not isinstance(data, dict)
            or response.status_code != 200
            or body.get("status") != 200
            or not data.get("ORDER_NUMBER")
        ):
            message = body.get("message") if isinstance(body, dict) else None
            raise CarrierSyncFailure(
                request.reference,
                f"HTTP {response.status_code}: {message or 'no tracking code returned'}",
            )

        tracking_code = str(data["ORDER_NUMBER"])
        logger.info("Carrier shipment %s created for %s", tracking_code, request.reference)
        return tracking_code

    def cancel(self, tracking_code: str, note: str) -> CancelResult:
        payload = {
            "TYPE": CANCEL_OPERATION,
            "ORDER_NUMBER": tracking_code,
            "NOTE": note or DEFAULT_CANCEL_NOTE,
        }
        logger.info("Cancelling carrier shipment %s", tracking_code)
        try:
            response = self._post("/order/UpdateOrder", payload)
        except CarrierSyncFailure as exc:
            return CancelResult(CarrierOutcome.ERROR, exc.detail)
        except httpx.HTTPError as exc:
            logger.warning("Carrier cancel for %s failed: %s", tracking_code, exc)
            return CancelResult(CarrierOutcome.ERROR, f"{type(exc).__name__}: {exc}")

        return classify_cancel_response(response.status_code, self._json(response))

    def track(self, tracking_code: str) -> TrackingInfo:
        logger.info("Fetching carrier detail for %s", tracking_code)
        try:
            response = self._post(
                "/order/GetOrderDetailByOrderNumber", {"ORDER_NUMBER": tracking_code}
            )
        except httpx.HTTPError as exc:
            logger.warning("Carrier tracking for %s failed: %s", tracking_code, exc)
            raise CarrierSyncFailure(tracking_code, f"{type(exc).__name__}: {exc}") from exc

        body = self._json(response)
        if (
            response.status_code != 200
            or not isinstance(body, dict)
            or body.get("status") != 200
            or not isinstance(body.get("data"), dict)
        ):
            message = body.get("message") if isinstance(body, dict) else None
            raise CarrierSyncFailure(
                tracking_code, f"HTTP {response.status_code}: {message or 'no tracking data'}"
            )
        return self._to_tracking_info(tracking_code, body["data"])

    # --- Transport ------------------------------------------------------------

    def login(self) -> str:
        """Exchange the configured credentials for a fresh token."""
        if not self._username or not self._password:
            raise CarrierSyncFailure("", "carrier username or password is not configured")

        with self._client() as client:
            response = client.post(
                "/user/Login", json={"USERNAME": self._username, "PASSWORD": self._password}
            )
        body = self._json(response)
        token = None
        if isinstance(body, dict) and body.get("status") == 200:
            token = (body.get("data") or {}).get("token")
        if not token:
            message = body.get("message") if isinstance(body, dict) else None
            raise CarrierSyncFailure("", f"carrier login failed: {message or response.status_code}")

        logger.info("Logged in to carrier as %s", self._username)
        self._token = token
        return token

    def _post(self, path: str, payload: dict) -> httpx.Response:
        if not self._base_url:
            raise CarrierSyncFailure(str(payload.get("ORDER_NUMBER", "")), "carrier is not configured")
        if not self._token:
            self.login()

        response = self._send(path, payload)
        if response.status_code == 401 and self._username and self._password:
            logger.info("Carrier token rejected, logging in again")
            self.login()
            response = self._send(path, payload)
        return response

    def _send(self, path: str, payload: dict) -> httpx.Response:
        with self._client() as client:
            return client.post(path, json=payload, headers={"Token": self._token})

    def _client(self) -> httpx.Client:
        return httpx.Client(
            base_url=self._base_url, timeout=self._timeout, transport=self._transport
        )

    # --- Parsing --------------------------------------------------------------

    @staticmethod
    def _json(response: httpx.Response) -> Any:
        try:
            return response.json()
        except ValueError:
            return None

    @staticmethod
    def _to_tracking_info(tracking_code: str, data: dict) -> TrackingInfo:
        events = tuple(
            TrackingEvent(
                action_time=str(log.get("action_time", "")),
                status=str(log.get("status", "")),
                status_name=str(log.get("status_name", "")),
                location=str(log.get("location") or ""),
                reason=str(log.get("reason") or ""),
            )
            for log in data.get("listOrderLogs") or []
        )
        return TrackingInfo(
            tracking_code=str(data.get("ORDER_NUMBER") or tracking_code),
            status_code=str(data.get("ORDER_STATUS", "")),
            status_name=str(data.get("ORDER_STATUS_NAME", "")),
            expected_delivery=str(data.get("EXPECTED_DELIVERY") or ""),
            events=events,
            order_status=order_status_for(data.get("ORDER_STATUS")),
        )

    def _shipment_payload(self, request: ShipmentRequest) -> dict:
        recipient = request.recipient
        street = recipient.address_line1
        if recipient.address_line2:
            street = f"{street}, {recipient.address_line2}"
        value = int(request.declared_value.amount)
        collect = int(request.collect_amount.amount)
        return {
            "ORDER_NUMBER": request.reference,
            "SENDER_FULLNAME": self._sender.name,
            "SENDER_ADDRESS": self._sender.address,
            "SENDER_PHONE": self._sender.phone,
            "SENDER_WARD": self._sender.ward_code,
            "SENDER_DISTRICT": self._sender.district_code,
            "SENDER_PROVINCE": self._sender.province_code,
            "RECEIVER_FULLNAME": recipient.full_name,
            "RECEIVER_ADDRESS": street,
            "RECEIVER_PHONE": recipient.phone,
            "RECEIVER_WARD": recipient.ward_code,
            "RECEIVER_DISTRICT": recipient.district_code,
            "RECEIVER_PROVINCE": recipient.province_code,
            "PRODUCT_NAME": request.description,
            "PRODUCT_DESCRIPTION": request.description,
            "PRODUCT_QUANTITY": request.total_units,
            "PRODUCT_PRICE": value,
            "MONEY_COLLECTION": collect,
            "MONEY_TOTAL": value,
            "ORDER_PAYMENT": 1 if collect else 2,
            "ORDER_SERVICE": self._service_code,
            "ORDER_NOTE": request.note,
        }
