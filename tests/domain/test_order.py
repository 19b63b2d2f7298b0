"""Unit tests for the Order aggregate and its transition graph."""

import random
from datetime import datetime, timezone

import pytest

from orderflow.domain.exceptions import InvalidTransition, MissingReason, ValidationError
from orderflow.domain.model.order import (
    ALLOWED_TRANSITIONS,
    Order,
    OrderStatus,
    PaymentStatus,
    generate_order_number,
)
from orderflow.domain.model.value_objects import Money
from tests.builders import make_address, make_line, make_order


class TestOrderCreation:

    def test_happy_path(self):
        order = make_order(make_line(qty=2, price="50000"))
        assert order.status == OrderStatus.PENDING
        assert order.payment_status == PaymentStatus.PENDING
        assert order.version == 1
        assert order.subtotal == Money.of("100000")

    def test_id_is_none_for_new_orders(self):
        assert make_order().id is None  # assigned by repository

    def test_history_starts_with_pending(self):
        order = make_order()
        assert [h.status for h in order.history] == [OrderStatus.PENDING]

    def test_no_items_rejected(self):
        with pytest.raises(ValidationError, match="at least one item"):
            Order.create("OF1", [], make_address())

    def test_51_items_rejected(self):
        items = [make_line(variant_id=f"V{i}") for i in range(51)]
        with pytest.raises(ValidationError, match="Maximum 50 items"):
            Order.create("OF1", items, make_address())

    def test_mixed_currencies_rejected(self):
        with pytest.raises(ValidationError, match="mixes currencies"):
            Order.create("OF1", [make_line()], make_address(), tax=Money.of("1", "USD"))

    def test_line_without_branch_rejected(self):
        with pytest.raises(ValidationError, match="no branch assigned"):
            make_line(branch_id="")


class TestOrderPricing:

    def test_totals(self):
        order = Order.create(
            "OF1",
            [make_line(qty=3, price="100000"), make_line("V2", qty=1, price="50000")],
            make_address(),
            tax=Money.of("35000"),
            shipping_fee=Money.of("30000"),
            voucher_discount=Money.of("15000"),
        )
        assert order.subtotal == Money.of("350000")
        assert order.total_price == Money.of("415000")
        assert order.final_price == Money.of("400000")
        assert order.total_units == 4

    def test_voucher_larger_than_total_floors_at_zero(self):
        order = Order.create(
            "OF1", [make_line(price="1000")], make_address(),
            voucher_discount=Money.of("5000"),
        )
        assert order.final_price == Money.zero()


class TestTransitionGraph:

    @pytest.mark.parametrize("source,target", [
        (OrderStatus.PENDING, OrderStatus.CONFIRMED),
        (OrderStatus.CONFIRMED, OrderStatus.PROCESSING),
        (OrderStatus.PROCESSING, OrderStatus.SHIPPING),
        (OrderStatus.SHIPPING, OrderStatus.DELIVERED),
        (OrderStatus.DELIVERED, OrderStatus.RETURNED),
        (OrderStatus.PENDING, OrderStatus.CANCELLED),
        (OrderStatus.CONFIRMED, OrderStatus.CANCELLED),
        (OrderStatus.PROCESSING, OrderStatus.CANCELLED),
        (OrderStatus.SHIPPING, OrderStatus.CANCELLED),
    ])
    def test_allowed_edges(self, source, target):
        order = make_order()
        order.status = source
        order.apply_transition(target, reason="customer request")
        assert order.status == target

    def test_every_other_pair_rejected(self):
        for source in OrderStatus:
            for target in OrderStatus:
                if target in ALLOWED_TRANSITIONS[source]:
                    continue
                order = make_order()
                order.status = source
                with pytest.raises(InvalidTransition):
                    order.check_transition(target, "reason")

    def test_terminal_statuses_have_no_exit_but_return(self):
        assert ALLOWED_TRANSITIONS[OrderStatus.CANCELLED] == frozenset()
        assert ALLOWED_TRANSITIONS[OrderStatus.RETURNED] == frozenset()
        assert ALLOWED_TRANSITIONS[OrderStatus.DELIVERED] == {OrderStatus.RETURNED}

    def test_delivered_only_reachable_from_shipping(self):
        sources = [s for s, targets in ALLOWED_TRANSITIONS.items() if OrderStatus.DELIVERED in targets]
        assert sources == [OrderStatus.SHIPPING]

    def test_skipping_ahead_rejected(self):
        order = make_order()
        with pytest.raises(InvalidTransition, match="'pending' to 'delivered'"):
            order.apply_transition(OrderStatus.DELIVERED)
        assert order.status == OrderStatus.PENDING
        assert order.version == 1


class TestApplyTransition:

    def test_bumps_version_and_records_history(self):
        order = make_order()
        order.apply_transition(OrderStatus.CONFIRMED)
        assert order.version == 2
        assert order.history[-1].status == OrderStatus.CONFIRMED
        assert order.history[-1].description == "Order confirmed"

    @pytest.mark.parametrize("reason", [None, "", "   "])
    def test_cancel_requires_reason(self, reason):
        order = make_order()
        with pytest.raises(MissingReason):
            order.apply_transition(OrderStatus.CANCELLED, reason)
        assert order.status == OrderStatus.PENDING
        assert order.version == 1

    def test_cancel_sets_reason_and_restore_marker(self):
        order = make_order()
        must_restore = order.apply_transition(OrderStatus.CANCELLED, "  out of stock  ")
        assert must_restore is True
        assert order.inventory_restored is True
        assert order.status_reason == "out of stock"

    def test_restore_marker_already_set_means_no_second_restore(self):
        order = make_order()
        order.status = OrderStatus.DELIVERED
        order.inventory_restored = True
        assert order.apply_transition(OrderStatus.RETURNED, "damaged") is False

    def test_forward_moves_do_not_restore(self):
        order = make_order()
        assert order.apply_transition(OrderStatus.CONFIRMED) is False
        assert order.inventory_restored is False


class TestApplyPatch:

    def test_patch_fields_and_bump_version(self):
        order = make_order()
        order.apply_patch(
            notes=" leave at door ",
            payment_status=PaymentStatus.PAID,
            tracking_code="VTP123",
        )
        assert order.notes == "leave at door"
        assert order.payment_status == PaymentStatus.PAID
        assert order.tracking_code == "VTP123"
        assert order.version == 2
        assert order.status == OrderStatus.PENDING

    def test_empty_patch_rejected(self):
        with pytest.raises(ValidationError, match="Nothing to update"):
            make_order().apply_patch()

    def test_terminal_order_accepts_notes_only(self):
        order = make_order()
        order.apply_transition(OrderStatus.CANCELLED, "duplicate")
        order.apply_patch(notes="refund by bank transfer")
        with pytest.raises(ValidationError, match="only notes"):
            order.apply_patch(shipping_address=make_address(province="Da Nang"))


class TestOrderNumber:

    def test_format(self):
        number = generate_order_number(
            "OF", datetime(2026, 10, 19, tzinfo=timezone.utc), random.Random(7)
        )
        assert number.startswith("OF261019")
        assert len(number) == len("OF261019") + 4
        assert number[-4:].isdigit()
