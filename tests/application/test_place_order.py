"""Integration tests for the PlaceOrder use case.

Uses in-memory fakes, no file I/O.
"""

import pytest

from orderflow.application.dto import OrderItemSpec
from orderflow.application.place_order import PlaceOrderHandler
from orderflow.application.update_variant_price import UpdateVariantPriceHandler
from orderflow.domain.exceptions import EntityNotFoundError, InsufficientStock, ValidationError
from orderflow.domain.model.value_objects import Money
from orderflow.domain.model.variant import Variant
from tests.builders import make_address
from tests.fakes import FakeInventoryStore, FakeOrderRepository, FakeVariantRepository


class UnwritableOrderRepository(FakeOrderRepository):

    def save(self, order, expected_version=None):
        raise OSError("No space left on device")


def _setup(levels=None):
    variants = [
        Variant(id="V1", sku="LIP-RED", name="Lipstick Red", unit_price=Money.of("150000")),
        Variant(id="V2", sku="LIP-NUDE", name="Lipstick Nude", unit_price=Money.of("120000")),
    ]
    store = FakeInventoryStore(
        levels if levels is not None else {("V1", "HN"): 3, ("V1", "HCM"): 5, ("V2", "HN"): 2}
    )
    order_repo = FakeOrderRepository()
    variant_repo = FakeVariantRepository(variants)
    handler = PlaceOrderHandler(order_repo, variant_repo, store, order_number_prefix="YM")
    return handler, order_repo, variant_repo, store


class TestPlaceOrderHappyPath:

    def test_places_pending_order(self):
        handler, order_repo, _, _ = _setup()
        dto = handler.handle([OrderItemSpec("V1", 2), OrderItemSpec("V2", 1)], make_address())

        assert dto.id == 1
        assert dto.status == "pending"
        assert dto.version == 1
        assert dto.order_number.startswith("YM")
        assert dto.subtotal == "420,000.00 VND"
        assert order_repo.get_by_id(1) is not None

    def test_each_line_bound_to_one_branch(self):
        handler, _, _, store = _setup()
        dto = handler.handle([OrderItemSpec("V1", 4)], make_address())

        assert dto.items[0].branch_id == "HCM"
        assert store.level("V1", "HCM") == 1
        assert store.level("V1", "HN") == 3

    def test_charges_and_voucher(self):
        handler, _, _, _ = _setup()
        dto = handler.handle(
            [OrderItemSpec("V1", 1)],
            make_address(),
            tax="15000",
            shipping_fee="30000",
            voucher_discount="20000",
        )
        assert dto.total_price == "195,000.00 VND"
        assert dto.final_price == "175,000.00 VND"

    def test_price_snapshot_survives_price_change(self):
        handler, order_repo, variant_repo, _ = _setup()
        handler.handle([OrderItemSpec("V1", 1)], make_address())

        UpdateVariantPriceHandler(variant_repo).handle("V1", "999000")
        assert variant_repo.get_by_id("V1").unit_price == Money.of("999000")
        assert order_repo.get_by_id(1).items[0].unit_price == Money.of("150000")

    def test_history_has_placement_entry(self):
        handler, _, _, _ = _setup()
        dto = handler.handle([OrderItemSpec("V1", 1)], make_address())
        assert [h.status for h in dto.history] == ["pending"]


class TestPlaceOrderFailures:

    def test_unknown_variant_touches_no_stock(self):
        handler, order_repo, _, store = _setup()
        with pytest.raises(EntityNotFoundError, match="'V9'"):
            handler.handle([OrderItemSpec("V1", 1), OrderItemSpec("V9", 1)], make_address())
        assert store.level("V1", "HCM") == 5
        assert order_repo.list_all() == []

    def test_zero_quantity_rejected(self):
        handler, _, _, store = _setup()
        with pytest.raises(ValidationError):
            handler.handle([OrderItemSpec("V1", 0)], make_address())
        assert store.level("V1", "HCM") == 5

    def test_insufficient_stock_rolls_back_earlier_lines(self):
        handler, order_repo, _, store = _setup()
        with pytest.raises(InsufficientStock) as exc_info:
            handler.handle([OrderItemSpec("V1", 2), OrderItemSpec("V2", 3)], make_address())

        assert exc_info.value.variant_id == "V2"
        assert store.level("V1", "HCM") == 5
        assert store.level("V1", "HN") == 3
        assert store.level("V2", "HN") == 2
        assert order_repo.list_all() == []

    def test_quantity_not_split_across_branches(self):
        handler, _, _, store = _setup()
        with pytest.raises(InsufficientStock):
            handler.handle([OrderItemSpec("V1", 7)], make_address())
        assert store.level("V1", "HN") == 3
        assert store.level("V1", "HCM") == 5

    def test_empty_order_rejected(self):
        handler, _, _, _ = _setup()
        with pytest.raises(ValidationError, match="at least one item"):
            handler.handle([], make_address())

    def test_aggregate_rejection_rolls_back(self):
        handler, _, _, store = _setup({("V1", "HN"): 100})
        with pytest.raises(ValidationError, match="Maximum 50 items"):
            handler.handle([OrderItemSpec("V1", 1)] * 51, make_address())
        assert store.level("V1", "HN") == 100

    def test_storage_error_rolls_back_every_line(self):
        _, _, variant_repo, store = _setup()
        order_repo = UnwritableOrderRepository()
        handler = PlaceOrderHandler(order_repo, variant_repo, store, order_number_prefix="YM")

        with pytest.raises(OSError, match="No space left"):
            handler.handle([OrderItemSpec("V1", 4), OrderItemSpec("V2", 2)], make_address())

        assert store.level("V1", "HCM") == 5
        assert store.level("V1", "HN") == 3
        assert store.level("V2", "HN") == 2
        assert order_repo.list_all() == []
