"""Application service: Add Variant use case."""

from __future__ import annotations

from orderflow.domain.exceptions import ValidationError
from orderflow.domain.model.value_objects import Money
from orderflow.domain.model.variant import Variant
from orderflow.domain.repository.variant_repository import VariantRepository


class AddVariantHandler:

    def __init__(self, variant_repo: VariantRepository) -> None:
        self._variant_repo = variant_repo

    def handle(self, variant_id: str, sku: str, name: str, price: str) -> Variant:
        """Add a new variant to the catalog."""
        if self._variant_repo.get_by_id(variant_id) is not None:
            raise ValidationError(f"Variant '{variant_id}' already exists")
        if self._variant_repo.get_by_sku(sku) is not None:
            raise ValidationError(f"SKU '{sku}' is already used by another variant")

        unit_price = Money.of(price)
        if unit_price.amount <= 0:
            raise ValidationError("Variant price must be greater than zero")

        variant = Variant(
            id=variant_id.strip(), sku=sku.strip(), name=name.strip(), unit_price=unit_price
        )
        self._variant_repo.save(variant)
        return variant
