"""Advisory cart holds.

Tracks, per shopping session, how many units of a variant the session
already has in its cart against each branch.  The numbers only feed an
"available to add" hint shown before checkout; they never block another
session and are not consulted when stock is actually reserved.
"""

from __future__ import annotations

from collections import defaultdict

from orderflow.domain.exceptions import ValidationError
from orderflow.domain.repository.inventory_repository import InventoryStore


class CartHoldLedger:

    def __init__(self, store: InventoryStore) -> None:
        self._store = store
        # session -> (branch, variant) -> units held
        self._held: dict[str, dict[tuple[str, str], int]] = defaultdict(dict)

    def held(self, session_id: str, variant_id: str, branch_id: str) -> int:
        return self._held.get(session_id, {}).get((branch_id, variant_id), 0)

    def available_to_add(self, session_id: str, variant_id: str, branch_id: str) -> int:
        """Branch level minus what this session already holds, floored at zero."""
        level = self._store.branch_levels(variant_id).get(branch_id, 0)
        return max(level - self.held(session_id, variant_id, branch_id), 0)

    def availability(self, session_id: str, variant_id: str) -> dict[str, int]:
        """``available_to_add`` for every branch stocking the variant."""
        return {
            branch_id: max(level - self.held(session_id, variant_id, branch_id), 0)
            for branch_id, level in self._store.branch_levels(variant_id).items()
        }

    def hold(self, session_id: str, variant_id: str, branch_id: str, quantity: int) -> int:
        """Record ``quantity`` more units in the session's cart.

        Raises ValidationError when the branch does not currently show
        enough for this session. Returns the session's new hold.
        """
        if quantity <= 0:
            raise ValidationError("Hold quantity must be positive")
        available = self.available_to_add(session_id, variant_id, branch_id)
        if quantity > available:
            raise ValidationError(
                f"Only {available} of {variant_id} can be added from branch {branch_id}"
            )
        key = (branch_id, variant_id)
        session = self._held[session_id]
        session[key] = session.get(key, 0) + quantity
        return session[key]

    def release(self, session_id: str, variant_id: str, branch_id: str, quantity: int) -> int:
        """Drop up to ``quantity`` units from the session's hold."""
        key = (branch_id, variant_id)
        session = self._held.get(session_id)
        if not session or key not in session:
            return 0
        remaining = max(session[key] - quantity, 0)
        if remaining:
            session[key] = remaining
        else:
            del session[key]
        return remaining

    def clear_session(self, session_id: str) -> None:
        """Forget a session's holds (checkout finished or cart abandoned)."""
        self._held.pop(session_id, None)
