"""Variant — a purchasable product configuration.

Variants live independently of orders. Their price may change over time;
orders capture a price snapshot at placement.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from orderflow.domain.exceptions import ValidationError
from orderflow.domain.model.value_objects import Money


@dataclass
class Variant:
    """A sellable size/colour/shade combination of a product.

    ``inventory`` is a read snapshot (branch id -> units on hand) filled in
    by queries. The inventory store is the only authority on stock.
    """

    id: str
    sku: str
    name: str
    unit_price: Money
    inventory: dict[str, int] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if not self.id or not self.id.strip():
            raise ValidationError("Variant id is required")
        if not self.sku or not self.sku.strip():
            raise ValidationError("Variant SKU is required")

    @property
    def total_on_hand(self) -> int:
        return sum(self.inventory.values())

    def update_price(self, new_price: Money) -> None:
        """Change the unit price. Existing orders keep their snapshot."""
        if new_price.amount <= 0:
            raise ValidationError("Variant price must be greater than zero")
        self.unit_price = new_price
