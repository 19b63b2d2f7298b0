"""Application service: List Variants use case (query)."""

from __future__ import annotations

from orderflow.domain.model.variant import Variant
from orderflow.domain.repository.inventory_repository import InventoryStore
from orderflow.domain.repository.variant_repository import VariantRepository


class ListVariantsHandler:

    def __init__(self, variant_repo: VariantRepository, inventory_store: InventoryStore) -> None:
        self._variant_repo = variant_repo
        self._inventory_store = inventory_store

    def handle(self) -> list[Variant]:
        """Every variant, with its per-branch stock snapshot filled in."""
        variants = self._variant_repo.list_all()
        for variant in variants:
            variant.inventory = self._inventory_store.branch_levels(variant.id)
        return variants
