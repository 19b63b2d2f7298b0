"""JSON-file-backed implementation of VariantRepository."""

from __future__ import annotations

from decimal import Decimal
from pathlib import Path

from orderflow.domain.model.value_objects import Money
from orderflow.domain.model.variant import Variant
from orderflow.domain.repository.variant_repository import VariantRepository
from orderflow.infrastructure.persistence.json_file import JsonFile


class JsonVariantRepository(VariantRepository):

    def __init__(self, file_path: Path) -> None:
        self._file = JsonFile(file_path)

    # --- VariantRepository interface ------------------------------------------

    def get_by_id(self, variant_id: str) -> Variant | None:
        return self._load().get(variant_id)

    def get_by_sku(self, sku: str) -> Variant | None:
        for variant in self._load().values():
            if variant.sku.lower() == sku.lower():
                return variant
        return None

    def list_all(self) -> list[Variant]:
        return list(self._load().values())

    def save(self, variant: Variant) -> None:
        with self._file.locked():
            variants = self._to_domain(self._file.read())
            variants[variant.id] = variant
            self._file.write(self._to_raw(variants))

    # --- Serialization helpers ------------------------------------------------

    def _load(self) -> dict[str, Variant]:
        with self._file.locked():
            raw = self._file.read()
        return self._to_domain(raw)

    @staticmethod
    def _to_domain(raw: list[dict]) -> dict[str, Variant]:
        return {
            item["id"]: Variant(
                id=item["id"],
                sku=item["sku"],
                name=item["name"],
                unit_price=Money(Decimal(item["unit_price"]), item["currency"]),
            )
            for item in raw
        }

    @staticmethod
    def _to_raw(variants: dict[str, Variant]) -> list[dict]:
        return [
            {
                "id": v.id,
                "sku": v.sku,
                "name": v.name,
                "unit_price": str(v.unit_price.amount),
                "currency": v.unit_price.currency,
            }
            for v in variants.values()
        ]
