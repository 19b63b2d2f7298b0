"""BranchStock — one (variant, branch) inventory cell.

Each cell knows how many units of a variant a branch currently holds.
Placement takes units out; cancellation and returns put them back.
"""

from __future__ import annotations

from dataclasses import dataclass

from orderflow.domain.exceptions import ValidationError


@dataclass
class BranchStock:
    """Stock level of a single variant at a single branch.

    Invariant: ``quantity`` is always >= 0.
    """

    variant_id: str
    branch_id: str
    quantity: int = 0

    def __post_init__(self) -> None:
        if self.quantity < 0:
            raise ValidationError(
                f"Stock for {self.variant_id}@{self.branch_id} cannot be negative"
            )

    def can_cover(self, quantity: int) -> bool:
        return self.quantity >= quantity

    def take(self, quantity: int) -> None:
        """Remove units for an order.

        Raises ValidationError if the branch does not hold enough.
        """
        if quantity <= 0:
            raise ValidationError("Take quantity must be positive")
        if quantity > self.quantity:
            raise ValidationError(
                f"Branch {self.branch_id} holds only {self.quantity} "
                f"of {self.variant_id} (need {quantity})"
            )
        self.quantity -= quantity

    def put_back(self, quantity: int) -> None:
        """Return units to the branch (cancellation, return, rollback)."""
        if quantity <= 0:
            raise ValidationError("Restore quantity must be positive")
        self.quantity += quantity
