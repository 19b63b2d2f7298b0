"""JSON-file-backed implementation of InventoryStore.

Every read-modify-write of a cell happens while the file is locked, which
makes ``decrement_if_available`` and ``increment`` atomic for all threads
and processes sharing the data directory.
"""

from __future__ import annotations

from pathlib import Path

from orderflow.domain.exceptions import ValidationError
from orderflow.domain.model.inventory import BranchStock
from orderflow.domain.repository.inventory_repository import InventoryStore
from orderflow.infrastructure.persistence.json_file import JsonFile


class JsonInventoryStore(InventoryStore):

    def __init__(self, file_path: Path) -> None:
        self._file = JsonFile(file_path)

    # --- InventoryStore interface ---------------------------------------------

    def branch_levels(self, variant_id: str) -> dict[str, int]:
        with self._file.locked():
            cells = self._load()
        return {
            cell.branch_id: cell.quantity
            for cell in cells.values()
            if cell.variant_id == variant_id
        }

    def list_all(self) -> list[BranchStock]:
        with self._file.locked():
            return list(self._load().values())

    def decrement_if_available(self, variant_id: str, branch_id: str, quantity: int) -> bool:
        with self._file.locked():
            cells = self._load()
            cell = cells.get((variant_id, branch_id))
            if cell is None or not cell.can_cover(quantity):
                return False
            cell.take(quantity)
            self._persist(cells)
            return True

    def increment(self, variant_id: str, branch_id: str, quantity: int) -> int:
        with self._file.locked():
            cells = self._load()
            cell = cells.setdefault(
                (variant_id, branch_id), BranchStock(variant_id=variant_id, branch_id=branch_id)
            )
            cell.put_back(quantity)
            self._persist(cells)
            return cell.quantity

    def set_level(self, variant_id: str, branch_id: str, quantity: int) -> None:
        if quantity < 0:
            raise ValidationError("Inventory quantity cannot be negative")
        with self._file.locked():
            cells = self._load()
            cells[(variant_id, branch_id)] = BranchStock(
                variant_id=variant_id, branch_id=branch_id, quantity=quantity
            )
            self._persist(cells)

    # --- Serialization (call with the file locked) ----------------------------

    def _load(self) -> dict[tuple[str, str], BranchStock]:
        return {
            (r["variant_id"], r["branch_id"]): BranchStock(
                variant_id=r["variant_id"],
                branch_id=r["branch_id"],
                quantity=r["quantity"],
            )
            for r in self._file.read()
        }

    def _persist(self, cells: dict[tuple[str, str], BranchStock]) -> None:
        self._file.write(
            [
                {
                    "variant_id": cell.variant_id,
                    "branch_id": cell.branch_id,
                    "quantity": cell.quantity,
                }
                for cell in cells.values()
            ]
        )
