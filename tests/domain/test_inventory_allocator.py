"""Tests for branch selection and reservation."""

import threading

import pytest

from orderflow.domain.exceptions import InsufficientStock, ValidationError
from orderflow.domain.service.inventory_allocator import InventoryAllocator, choose_branch
from tests.builders import make_line
from tests.fakes import FakeInventoryStore


class TestChooseBranch:

    def test_most_stock_wins(self):
        assert choose_branch({"A": 3, "B": 5}, 4) == "B"

    def test_ties_go_to_lowest_branch_id(self):
        assert choose_branch({"HCM": 5, "DN": 5, "HN": 5}, 2) == "DN"

    def test_branch_with_exact_quantity_qualifies(self):
        assert choose_branch({"A": 4, "B": 1}, 4) == "A"

    def test_none_when_no_branch_covers(self):
        assert choose_branch({"A": 3, "B": 5}, 6) is None

    def test_none_when_no_branches(self):
        assert choose_branch({}, 1) is None


class TestReserve:

    def test_decrements_only_the_chosen_branch(self):
        store = FakeInventoryStore({("V1", "A"): 3, ("V1", "B"): 5})
        allocator = InventoryAllocator(store)

        assert allocator.reserve("V1", 4) == "B"
        assert store.level("V1", "A") == 3
        assert store.level("V1", "B") == 1

    def test_never_splits_across_branches(self):
        store = FakeInventoryStore({("V1", "A"): 3, ("V1", "B"): 5})
        allocator = InventoryAllocator(store)

        with pytest.raises(InsufficientStock, match="V1"):
            allocator.reserve("V1", 6)
        assert store.level("V1", "A") == 3
        assert store.level("V1", "B") == 5

    def test_unknown_variant_is_insufficient(self):
        allocator = InventoryAllocator(FakeInventoryStore())
        with pytest.raises(InsufficientStock):
            allocator.reserve("NOPE", 1)

    @pytest.mark.parametrize("qty", [0, -2])
    def test_non_positive_quantity_rejected(self, qty):
        store = FakeInventoryStore({("V1", "A"): 3})
        with pytest.raises(ValidationError):
            InventoryAllocator(store).reserve("V1", qty)
        assert store.level("V1", "A") == 3

    def test_lost_race_falls_back_to_next_branch(self):
        store = FakeInventoryStore({("V1", "A"): 2, ("V1", "B"): 3})
        original = store.decrement_if_available
        calls = []

        def racing_decrement(variant_id, branch_id, quantity):
            if not calls:
                # Another request empties B between the read and the write.
                store.set_level(variant_id, "B", 0)
            calls.append(branch_id)
            return original(variant_id, branch_id, quantity)

        store.decrement_if_available = racing_decrement
        assert InventoryAllocator(store).reserve("V1", 2) == "A"
        assert calls == ["B", "A"]
        assert store.level("V1", "A") == 0

    def test_concurrent_reservations_of_last_unit(self):
        store = FakeInventoryStore({("V1", "A"): 1})
        allocator = InventoryAllocator(store)
        barrier = threading.Barrier(8)
        outcomes: list[str] = []
        lock = threading.Lock()

        def worker():
            barrier.wait()
            try:
                allocator.reserve("V1", 1)
                result = "ok"
            except InsufficientStock:
                result = "short"
            with lock:
                outcomes.append(result)

        threads = [threading.Thread(target=worker) for _ in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert outcomes.count("ok") == 1
        assert outcomes.count("short") == 7
        assert store.level("V1", "A") == 0


class TestRestore:

    def test_restore_goes_to_original_branch(self):
        store = FakeInventoryStore({("V1", "A"): 0, ("V1", "B"): 9})
        InventoryAllocator(store).restore("V1", "A", 2)
        assert store.level("V1", "A") == 2
        assert store.level("V1", "B") == 9

    def test_restore_recreates_missing_cell(self):
        store = FakeInventoryStore()
        InventoryAllocator(store).restore("V1", "HN", 3)
        assert store.level("V1", "HN") == 3

    def test_restore_requires_positive_quantity(self):
        with pytest.raises(ValidationError):
            InventoryAllocator(FakeInventoryStore()).restore("V1", "A", 0)

    def test_restore_requires_branch(self):
        with pytest.raises(ValidationError, match="without a branch"):
            InventoryAllocator(FakeInventoryStore()).restore("V1", "", 1)

    def test_restore_lines(self):
        store = FakeInventoryStore({("V1", "A"): 1, ("V2", "B"): 0})
        InventoryAllocator(store).restore_lines(
            [make_line("V1", qty=2, branch_id="A"), make_line("V2", qty=5, branch_id="B")]
        )
        assert store.level("V1", "A") == 3
        assert store.level("V2", "B") == 5


class TestWithdraw:

    def test_withdraw_takes_units_back(self):
        store = FakeInventoryStore({("V1", "A"): 5})
        assert InventoryAllocator(store).withdraw("V1", "A", 2) is True
        assert store.level("V1", "A") == 3

    def test_withdraw_reports_units_already_gone(self, caplog):
        store = FakeInventoryStore({("V1", "A"): 1})
        with caplog.at_level("ERROR"):
            assert InventoryAllocator(store).withdraw("V1", "A", 2) is False
        assert store.level("V1", "A") == 1
        assert "stock stays overstated" in caplog.text
