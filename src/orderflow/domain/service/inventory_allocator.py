"""Domain service: Inventory Allocator.

Decides which branch fulfils a requested quantity of a variant and
commits the decrement against the inventory store.  A line is always
served by a single branch; quantities are never split across branches
even when the branches together would have enough.

Contention is handled optimistically: the branch is chosen from a
snapshot of levels, then taken with the store's conditional decrement.
If another request got there first, the snapshot is re-read and the
choice made again.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable

from orderflow.domain.exceptions import InsufficientStock, ValidationError
from orderflow.domain.model.order import OrderLineItem
from orderflow.domain.model.value_objects import Quantity
from orderflow.domain.repository.inventory_repository import InventoryStore

logger = logging.getLogger(__name__)

MAX_CONTENDED_ATTEMPTS = 8


def choose_branch(levels: dict[str, int], quantity: int) -> str | None:
    """Pick the branch that should serve ``quantity`` units, or None.

    Among branches holding at least ``quantity``, the one with the most
    stock wins; ties go to the lowest branch id.
    """
    candidates = [
        (branch_id, available)
        for branch_id, available in levels.items()
        if available >= quantity
    ]
    if not candidates:
        return None
    branch_id, _ = min(candidates, key=lambda c: (-c[1], c[0]))
    return branch_id


class InventoryAllocator:

    def __init__(self, store: InventoryStore) -> None:
        self._store = store

    def reserve(self, variant_id: str, desired_qty: int) -> str:
        """Take ``desired_qty`` units of a variant from one branch.

        Returns the chosen branch id. Raises InsufficientStock when no
        single branch can cover the quantity.
        """
        qty = Quantity(desired_qty).value

        for _ in range(MAX_CONTENDED_ATTEMPTS):
            branch_id = choose_branch(self._store.branch_levels(variant_id), qty)
            if branch_id is None:
                raise InsufficientStock(variant_id, qty)
            if self._store.decrement_if_available(variant_id, branch_id, qty):
                logger.debug("Reserved %d x %s at branch %s", qty, variant_id, branch_id)
                return branch_id
            logger.debug("Lost race for %s at branch %s, re-reading levels", variant_id, branch_id)

        logger.warning(
            "Giving up reserving %d x %s after %d contended attempts",
            qty, variant_id, MAX_CONTENDED_ATTEMPTS,
        )
        raise InsufficientStock(variant_id, qty)

    def restore(self, variant_id: str, branch_id: str, qty: int) -> None:
        """Give ``qty`` units back to the branch they were taken from."""
        if qty <= 0:
            raise ValidationError("Restore quantity must be positive")
        if not branch_id:
            raise ValidationError(f"Cannot restore {variant_id} without a branch")
        level = self._store.increment(variant_id, branch_id, qty)
        logger.debug("Restored %d x %s at branch %s (now %d)", qty, variant_id, branch_id, level)

    def restore_lines(self, lines: Iterable[OrderLineItem]) -> None:
        """Restore every line to its own branch."""
        for line in lines:
            self.restore(line.variant_id, line.branch_id, line.quantity.value)

    def withdraw(self, variant_id: str, branch_id: str, qty: int) -> bool:
        """Take back units handed out by ``restore`` when the caller rolls back.

        Returns False if the branch no longer holds them.
        """
        taken = self._store.decrement_if_available(variant_id, branch_id, qty)
        if not taken:
            logger.error(
                "Could not withdraw %d x %s at branch %s; stock stays overstated",
                qty, variant_id, branch_id,
            )
        return taken
