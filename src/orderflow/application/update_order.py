"""Application service: Update Order use case (administrative patch).

Edits fields that are not the order status.  Status changes must go
through ``ChangeStatusHandler`` so the state machine sees every one.
"""

from __future__ import annotations

from orderflow.application.dto import OrderDTO, to_order_dto
from orderflow.domain.exceptions import EntityNotFoundError, ValidationError
from orderflow.domain.model.order import PaymentStatus
from orderflow.domain.model.value_objects import ShippingAddress
from orderflow.domain.repository.order_repository import OrderRepository

_PATCHABLE_FIELDS = frozenset({"notes", "shipping_address", "payment_status", "tracking_code"})


class UpdateOrderHandler:

    def __init__(self, order_repo: OrderRepository) -> None:
        self._order_repo = order_repo

    def handle(self, order_id: int, patch: dict) -> OrderDTO:
        """Apply a partial update.

        ``patch`` may hold ``notes``, ``shipping_address`` (a
        ShippingAddress), ``payment_status`` (its string value) and
        ``tracking_code``.  A ``status`` key is rejected.
        """
        if "status" in patch:
            raise ValidationError("Order status cannot be patched; use a status change")
        unknown = set(patch) - _PATCHABLE_FIELDS
        if unknown:
            raise ValidationError(f"Unknown order fields: {', '.join(sorted(unknown))}")

        order = self._order_repo.get_by_id(order_id)
        if order is None:
            raise EntityNotFoundError(f"Order #{order_id} not found")

        address = patch.get("shipping_address")
        if address is not None and not isinstance(address, ShippingAddress):
            raise ValidationError("shipping_address must be a complete address")

        expected_version = order.version
        order.apply_patch(
            notes=patch.get("notes"),
            shipping_address=address,
            payment_status=self._payment_status(patch.get("payment_status")),
            tracking_code=patch.get("tracking_code"),
        )
        self._order_repo.save(order, expected_version=expected_version)
        return to_order_dto(order)

    @staticmethod
    def _payment_status(raw: str | None) -> PaymentStatus | None:
        if raw is None:
            return None
        try:
            return PaymentStatus(raw.strip().lower())
        except ValueError as exc:
            raise ValidationError(f"Unknown payment status '{raw}'") from exc
