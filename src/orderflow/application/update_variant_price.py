"""Application service: Update Variant Price use case."""

from __future__ import annotations

from orderflow.domain.exceptions import EntityNotFoundError
from orderflow.domain.model.value_objects import Money
from orderflow.domain.model.variant import Variant
from orderflow.domain.repository.variant_repository import VariantRepository


class UpdateVariantPriceHandler:

    def __init__(self, variant_repo: VariantRepository) -> None:
        self._variant_repo = variant_repo

    def handle(self, variant_id: str, new_price: str) -> Variant:
        """Change a variant's unit price.

        Orders already placed keep the price they captured.
        """
        variant = self._variant_repo.get_by_id(variant_id)
        if variant is None:
            raise EntityNotFoundError(f"Variant '{variant_id}' not found")

        variant.update_price(Money.of(new_price, variant.unit_price.currency))
        self._variant_repo.save(variant)
        return variant
