"""Tests for the JSON-file repositories, against a temporary data directory."""

import threading

import pytest

from orderflow.domain.exceptions import ConcurrentModification, ValidationError
from orderflow.domain.model.order import OrderStatus, PaymentStatus
from orderflow.domain.model.value_objects import Money
from orderflow.domain.model.variant import Variant
from orderflow.infrastructure.persistence.json_inventory_repository import JsonInventoryStore
from orderflow.infrastructure.persistence.json_order_repository import JsonOrderRepository
from orderflow.infrastructure.persistence.json_variant_repository import JsonVariantRepository
from tests.builders import make_line, make_order


class TestJsonOrderRepository:

    def test_creates_file_and_assigns_ids(self, tmp_path):
        repo = JsonOrderRepository(tmp_path / "data" / "orders.json")
        assert repo.next_id() == 1

        first, second = make_order(), make_order()
        repo.save(first)
        repo.save(second)
        assert (first.id, second.id) == (1, 2)
        assert repo.next_id() == 3

    def test_reload_keeps_every_field(self, tmp_path):
        path = tmp_path / "orders.json"
        order = make_order(make_line("V1", qty=2, price="150000", branch_id="HN"))
        order.tax = Money.of("15000")
        order.voucher_discount = Money.of("5000")
        order.apply_patch(notes="call first", payment_status=PaymentStatus.PAID, tracking_code="VTP1")
        order.apply_transition(OrderStatus.CANCELLED, "customer request")
        JsonOrderRepository(path).save(order)

        loaded = JsonOrderRepository(path).get_by_id(order.id)
        assert loaded.status is OrderStatus.CANCELLED
        assert loaded.payment_status is PaymentStatus.PAID
        assert loaded.version == 3
        assert loaded.inventory_restored is True
        assert loaded.status_reason == "customer request"
        assert loaded.tracking_code == "VTP1"
        assert loaded.items[0].branch_id == "HN"
        assert loaded.items[0].unit_price == Money.of("150000")
        assert loaded.final_price == order.final_price
        assert loaded.shipping_address == order.shipping_address
        assert [h.status for h in loaded.history] == [OrderStatus.PENDING, OrderStatus.CANCELLED]
        assert loaded.history[-1].reason == "customer request"
        assert loaded.created_at == order.created_at

    def test_version_check(self, tmp_path):
        repo = JsonOrderRepository(tmp_path / "orders.json")
        order = make_order()
        repo.save(order)

        fresh = repo.get_by_id(order.id)
        fresh.apply_transition(OrderStatus.CONFIRMED)
        repo.save(fresh, expected_version=1)

        stale = repo.get_by_id(order.id)
        stale.version = 1
        with pytest.raises(ConcurrentModification):
            repo.save(stale, expected_version=1)
        assert repo.get_by_id(order.id).status is OrderStatus.CONFIRMED

    def test_list_filter(self, tmp_path):
        repo = JsonOrderRepository(tmp_path / "orders.json")
        repo.save(make_order())
        confirmed = make_order()
        confirmed.apply_transition(OrderStatus.CONFIRMED)
        repo.save(confirmed)

        assert [o.id for o in repo.list_all(OrderStatus.CONFIRMED)] == [2]
        assert len(repo.list_all()) == 2

    def test_missing_order(self, tmp_path):
        assert JsonOrderRepository(tmp_path / "orders.json").get_by_id(7) is None


class TestJsonVariantRepository:

    def test_round_trip_and_sku_lookup(self, tmp_path):
        path = tmp_path / "variants.json"
        JsonVariantRepository(path).save(
            Variant(id="V1", sku="LIP-RED", name="Lipstick Red", unit_price=Money.of("150000"))
        )
        repo = JsonVariantRepository(path)
        assert repo.get_by_id("V1").unit_price == Money.of("150000")
        assert repo.get_by_sku("lip-red").id == "V1"
        assert repo.get_by_sku("NOPE") is None
        assert [v.id for v in repo.list_all()] == ["V1"]


class TestJsonInventoryStore:

    def test_levels_persist(self, tmp_path):
        path = tmp_path / "inventory.json"
        store = JsonInventoryStore(path)
        store.set_level("V1", "HN", 3)
        store.set_level("V1", "HCM", 5)
        store.set_level("V2", "HN", 1)

        reopened = JsonInventoryStore(path)
        assert reopened.branch_levels("V1") == {"HN": 3, "HCM": 5}
        assert len(reopened.list_all()) == 3

    def test_conditional_decrement(self, tmp_path):
        store = JsonInventoryStore(tmp_path / "inventory.json")
        store.set_level("V1", "HN", 3)
        assert store.decrement_if_available("V1", "HN", 4) is False
        assert store.decrement_if_available("V1", "HN", 3) is True
        assert store.branch_levels("V1") == {"HN": 0}
        assert store.decrement_if_available("V1", "DN", 1) is False

    def test_increment_creates_cell(self, tmp_path):
        store = JsonInventoryStore(tmp_path / "inventory.json")
        assert store.increment("V1", "DN", 2) == 2
        assert store.increment("V1", "DN", 1) == 3

    def test_negative_level_rejected(self, tmp_path):
        with pytest.raises(ValidationError):
            JsonInventoryStore(tmp_path / "inventory.json").set_level("V1", "HN", -1)

    def test_concurrent_decrements_never_oversell(self, tmp_path):
        store = JsonInventoryStore(tmp_path / "inventory.json")
        store.set_level("V1", "HN", 5)
        barrier = threading.Barrier(10)
        wins = []

        def worker():
            barrier.wait()
            if store.decrement_if_available("V1", "HN", 1):
                wins.append(1)

        threads = [threading.Thread(target=worker) for _ in range(10)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert len(wins) == 5
        assert store.branch_levels("V1") == {"HN": 0}
