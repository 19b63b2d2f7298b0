"""Application service: Place Order use case.

Reserves stock for every requested line, one branch per line, and
persists a new pending order.  Reservation is the authoritative stock
commitment.  If any line cannot be served, the lines already reserved
for this order are given back before the failure is reported, so a
rejected order leaves inventory exactly as it found it.
"""

from __future__ import annotations

import logging

from orderflow.application.dto import OrderDTO, OrderItemSpec, to_order_dto
from orderflow.domain.exceptions import EntityNotFoundError
from orderflow.domain.model.order import Order, OrderLineItem, generate_order_number
from orderflow.domain.model.value_objects import Money, Quantity, ShippingAddress
from orderflow.domain.repository.inventory_repository import InventoryStore
from orderflow.domain.repository.order_repository import OrderRepository
from orderflow.domain.repository.variant_repository import VariantRepository
from orderflow.domain.service.inventory_allocator import InventoryAllocator

logger = logging.getLogger(__name__)


class PlaceOrderHandler:

    def __init__(
        self,
        order_repo: OrderRepository,
        variant_repo: VariantRepository,
        inventory_store: InventoryStore,
        order_number_prefix: str = "OF",
    ) -> None:
        self._order_repo = order_repo
        self._variant_repo = variant_repo
        self._allocator = InventoryAllocator(inventory_store)
        self._order_number_prefix = order_number_prefix

    def handle(
        self,
        item_specs: list[OrderItemSpec],
        shipping_address: ShippingAddress,
        tax: str | None = None,
        shipping_fee: str | None = None,
        voucher_discount: str | None = None,
        notes: str = "",
    ) -> OrderDTO:
        """Place a new order.

        Steps:
        1. Resolve every variant and validate quantities (no stock touched).
        2. Reserve each line at a single branch, rolling back on failure.
        3. Let the Order aggregate validate the rest and persist it.
        """
        resolved = []
        for spec in item_specs:
            variant = self._variant_repo.get_by_id(spec.variant_id)
            if variant is None:
                raise EntityNotFoundError(f"Variant not found: '{spec.variant_id}'")
            resolved.append((variant, Quantity(spec.quantity)))

        reserved: list[OrderLineItem] = []
        try:
            for variant, qty in resolved:
                branch_id = self._allocator.reserve(variant.id, qty.value)
                reserved.append(
                    OrderLineItem(
                        variant_id=variant.id,
                        sku=variant.sku,
                        quantity=qty,
                        unit_price=variant.unit_price,  # <-- price snapshot
                        branch_id=branch_id,
                    )
                )

            currency = resolved[0][0].unit_price.currency if resolved else None
            order = Order.create(
                order_number=generate_order_number(self._order_number_prefix),
                items=reserved,
                shipping_address=shipping_address,
                tax=self._money(tax, currency),
                shipping_fee=self._money(shipping_fee, currency),
                voucher_discount=self._money(voucher_discount, currency),
                notes=notes,
            )
            self._order_repo.save(order)
        except Exception:
            self._rollback(reserved)
            raise

        logger.info(
            "Placed order #%s (%s) with %d line(s), final price %s",
            order.id, order.order_number, len(order.items), order.final_price,
        )
        return to_order_dto(order)

    # --- Internal helpers -----------------------------------------------------

    def _rollback(self, reserved: list[OrderLineItem]) -> None:
        if not reserved:
            return
        logger.warning("Rolling back %d reservation(s) of a rejected order", len(reserved))
        self._allocator.restore_lines(reserved)

    @staticmethod
    def _money(raw: str | None, currency: str | None) -> Money | None:
        if raw is None:
            return None
        if currency is None:
            return Money.of(raw)
        return Money.of(raw, currency)
