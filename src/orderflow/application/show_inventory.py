"""Application service: Show Inventory use case (query)."""

from __future__ import annotations

from dataclasses import dataclass

from orderflow.domain.repository.inventory_repository import InventoryStore


@dataclass(frozen=True)
class InventoryLineDTO:
    variant_id: str
    branch_id: str
    quantity: int


class ShowInventoryHandler:

    def __init__(self, inventory_store: InventoryStore) -> None:
        self._inventory_store = inventory_store

    def handle(self, variant_id: str | None = None) -> list[InventoryLineDTO]:
        cells = self._inventory_store.list_all()
        return [
            InventoryLineDTO(
                variant_id=cell.variant_id,
                branch_id=cell.branch_id,
                quantity=cell.quantity,
            )
            for cell in sorted(cells, key=lambda c: (c.variant_id, c.branch_id))
            if variant_id is None or cell.variant_id == variant_id
        ]
