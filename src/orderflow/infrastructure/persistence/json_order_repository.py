"""JSON-file-backed implementation of OrderRepository."""

from __future__ import annotations

from dataclasses import asdict
from datetime import datetime
from decimal import Decimal
from pathlib import Path

from orderflow.domain.exceptions import ConcurrentModification
from orderflow.domain.model.order import (
    Order,
    OrderLineItem,
    OrderStatus,
    PaymentStatus,
    StatusChange,
)
from orderflow.domain.model.value_objects import Money, Quantity, ShippingAddress
from orderflow.domain.repository.order_repository import OrderRepository
from orderflow.infrastructure.persistence.json_file import JsonFile


class JsonOrderRepository(OrderRepository):

    def __init__(self, file_path: Path) -> None:
        self._file = JsonFile(file_path)

    # --- OrderRepository interface --------------------------------------------

    def next_id(self) -> int:
        with self._file.locked():
            return self._next_id(self._file.read())

    def get_by_id(self, order_id: int) -> Order | None:
        with self._file.locked():
            records = self._file.read()
        for raw in records:
            if raw["id"] == order_id:
                return self._to_domain(raw)
        return None

    def get_by_tracking_code(self, tracking_code: str) -> Order | None:
        with self._file.locked():
            records = self._file.read()
        for raw in records:
            if raw.get("tracking_code") == tracking_code:
                return self._to_domain(raw)
        return None

    def list_all(self, status: OrderStatus | None = None) -> list[Order]:
        with self._file.locked():
            records = self._file.read()
        return [
            self._to_domain(raw)
            for raw in records
            if status is None or raw["status"] == status.value
        ]

    def save(self, order: Order, expected_version: int | None = None) -> None:
        with self._file.locked():
            orders = self._file.read()

            if order.id is None:
                order.id = self._next_id(orders)

            # Upsert: replace if exists, otherwise append
            for i, raw in enumerate(orders):
                if raw["id"] == order.id:
                    if expected_version is not None and raw["version"] != expected_version:
                        raise ConcurrentModification(order.id, expected_version, raw["version"])
                    orders[i] = self._to_raw(order)
                    break
            else:
                orders.append(self._to_raw(order))

            self._file.write(orders)

    # --- Serialization --------------------------------------------------------

    @staticmethod
    def _to_raw(order: Order) -> dict:
        return {
            "id": order.id,
            "order_number": order.order_number,
            "status": order.status.value,
            "payment_status": order.payment_status.value,
            "version": order.version,
            "tracking_code": order.tracking_code,
            "status_reason": order.status_reason,
            "notes": order.notes,
            "inventory_restored": order.inventory_restored,
            "currency": order.tax.currency,
            "tax": str(order.tax.amount),
            "shipping_fee": str(order.shipping_fee.amount),
            "voucher_discount": str(order.voucher_discount.amount),
            "shipping_address": asdict(order.shipping_address),
            "created_at": order.created_at.isoformat(),
            "updated_at": order.updated_at.isoformat(),
            "items": [
                {
                    "variant_id": item.variant_id,
                    "sku": item.sku,
                    "quantity": item.quantity.value,
                    "unit_price": str(item.unit_price.amount),
                    "currency": item.unit_price.currency,
                    "branch_id": item.branch_id,
                }
                for item in order.items
            ],
            "history": [
                {
                    "status": change.status.value,
                    "description": change.description,
                    "timestamp": change.timestamp.isoformat(),
                    "reason": change.reason,
                }
                for change in order.history
            ],
        }

    @staticmethod
    def _to_domain(raw: dict) -> Order:
        currency = raw["currency"]
        items = [
            OrderLineItem(
                variant_id=i["variant_id"],
                sku=i["sku"],
                quantity=Quantity(i["quantity"]),
                unit_price=Money(Decimal(i["unit_price"]), i.get("currency", currency)),
                branch_id=i["branch_id"],
            )
            for i in raw["items"]
        ]
        history = [
            StatusChange(
                status=OrderStatus(h["status"]),
                description=h["description"],
                timestamp=datetime.fromisoformat(h["timestamp"]),
                reason=h.get("reason", ""),
            )
            for h in raw.get("history", [])
        ]
        return Order(
            id=raw["id"],
            order_number=raw["order_number"],
            items=items,
            shipping_address=ShippingAddress(**raw["shipping_address"]),
            status=OrderStatus(raw["status"]),
            payment_status=PaymentStatus(raw["payment_status"]),
            tax=Money(Decimal(raw["tax"]), currency),
            shipping_fee=Money(Decimal(raw["shipping_fee"]), currency),
            voucher_discount=Money(Decimal(raw["voucher_discount"]), currency),
            tracking_code=raw.get("tracking_code"),
            status_reason=raw.get("status_reason"),
            notes=raw.get("notes", ""),
            version=raw["version"],
            inventory_restored=raw.get("inventory_restored", False),
            history=history,
            created_at=datetime.fromisoformat(raw["created_at"]),
            updated_at=datetime.fromisoformat(raw["updated_at"]),
        )

    # --- File helpers ---------------------------------------------------------

    @staticmethod
    def _next_id(orders: list[dict]) -> int:
        if not orders:
            return 1
        return max(o["id"] for o in orders) + 1

