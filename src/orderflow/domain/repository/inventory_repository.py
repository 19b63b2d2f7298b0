"""Abstract Branch Inventory Store.

The single source of truth for stock. Every mutation of a
(variant, branch) cell goes through one of the atomic primitives
below; callers never read a level, compute, and write it back.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from orderflow.domain.model.inventory import BranchStock


class InventoryStore(ABC):

    @abstractmethod
    def branch_levels(self, variant_id: str) -> dict[str, int]:
        """Return ``{branch_id: quantity}`` for every branch stocking the variant."""

    @abstractmethod
    def list_all(self) -> list[BranchStock]:
        """Return every inventory cell."""

    @abstractmethod
    def decrement_if_available(self, variant_id: str, branch_id: str, quantity: int) -> bool:
        """Atomically take ``quantity`` units if the cell still holds them.

        Returns False, leaving the cell untouched, when it does not.
        """

    @abstractmethod
    def increment(self, variant_id: str, branch_id: str, quantity: int) -> int:
        """Atomically add ``quantity`` units and return the new level."""

    @abstractmethod
    def set_level(self, variant_id: str, branch_id: str, quantity: int) -> None:
        """Overwrite a cell (stock counts, initial load)."""
