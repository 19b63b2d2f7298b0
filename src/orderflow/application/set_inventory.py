"""Application service: Set Inventory use case."""

from __future__ import annotations

from orderflow.domain.exceptions import EntityNotFoundError, ValidationError
from orderflow.domain.repository.inventory_repository import InventoryStore
from orderflow.domain.repository.variant_repository import VariantRepository


class SetInventoryHandler:

    def __init__(
        self,
        inventory_store: InventoryStore,
        variant_repo: VariantRepository,
    ) -> None:
        self._inventory_store = inventory_store
        self._variant_repo = variant_repo

    def handle(self, variant_id: str, branch_id: str, quantity: int) -> None:
        """Set the on-hand quantity of a variant at one branch."""
        if self._variant_repo.get_by_id(variant_id) is None:
            raise EntityNotFoundError(f"Variant not found: '{variant_id}'")
        if not branch_id or not branch_id.strip():
            raise ValidationError("Branch id is required")
        if quantity < 0:
            raise ValidationError("Inventory quantity cannot be negative")
        self._inventory_store.set_level(variant_id, branch_id.strip(), quantity)
