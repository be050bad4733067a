"""Unit tests for the Order aggregate and its status machine."""

import random
import re
from datetime import datetime, timezone

import pytest

from marketplace.domain.exceptions import InvalidStatus, ValidationError
from marketplace.domain.model.order import (
    Order,
    OrderLineItem,
    OrderStatus,
    generate_order_number,
)
from marketplace.domain.model.value_objects import (
    Money,
    PaymentMethod,
    Quantity,
    ShippingAddress,
)


def _make_item(
    product_id: str = "1", store_id: str = "S1", qty: int = 1, price: str = "15.00"
) -> OrderLineItem:
    """Helper to build a valid line item."""
    return OrderLineItem(
        product_id=product_id,
        store_id=store_id,
        quantity=Quantity(qty),
        unit_price=Money.of(price),
    )


def _make_order(items: list[OrderLineItem] | None = None, **kwargs) -> Order:
    return Order.create(
        buyer_id=kwargs.pop("buyer_id", "buyer-1"),
        items=items if items is not None else [_make_item()],
        shipping_address=ShippingAddress(country="CR"),
        payment_method=PaymentMethod.CREDIT_CARD,
        **kwargs,
    )


class TestOrderCreation:

    def test_happy_path(self):
        order = _make_order([_make_item(qty=2, price="10.00")])
        assert order.buyer_id == "buyer-1"
        assert order.status == OrderStatus.PENDING
        assert order.total == Money.of("20.00")

    def test_order_number_is_none_for_new_orders(self):
        assert _make_order().order_number is None  # assigned by repository

    def test_total_includes_shipping_and_tax(self):
        order = _make_order(
            [_make_item(qty=3, price="15.00"), _make_item("2", qty=5, price="25.00")],
            shipping_cost=Money.of("5.00"),
            tax=Money.of("2.50"),
        )
        assert order.subtotal == Money.of("170.00")
        assert order.total == Money.of("177.50")

    def test_no_items_rejected(self):
        with pytest.raises(ValidationError, match="at least one item"):
            _make_order([])

    def test_51_items_rejected(self):
        items = [_make_item(str(i), price="1.00") for i in range(51)]
        with pytest.raises(ValidationError, match="Maximum 50 items"):
            _make_order(items)

    def test_blank_buyer_rejected(self):
        with pytest.raises(ValidationError, match="Buyer"):
            _make_order(buyer_id="  ")


class TestOrderStores:

    def test_store_ids_in_first_seen_order(self):
        order = _make_order([
            _make_item("1", "S2"),
            _make_item("2", "S1"),
            _make_item("3", "S2"),
        ])
        assert order.store_ids == ["S2", "S1"]

    def test_store_subtotal(self):
        order = _make_order([
            _make_item("1", "S1", qty=2, price="10.00"),
            _make_item("2", "S2", qty=1, price="7.00"),
            _make_item("3", "S1", qty=1, price="5.00"),
        ])
        assert order.store_subtotal("S1") == Money.of("25.00")
        assert [i.product_id for i in order.items_for_store("S1")] == ["1", "3"]


class TestOrderStatusMachine:

    def test_same_status_is_a_no_op(self):
        order = _make_order()
        assert order.transition_to("pending") is False

    def test_pending_can_jump_to_shipped(self):
        order = _make_order()
        now = datetime(2024, 5, 1, tzinfo=timezone.utc)
        assert order.transition_to("shipped", tracking_number="TRK1", carrier="DHL", now=now)
        assert order.status == OrderStatus.SHIPPED
        assert order.shipped_date == now
        assert order.tracking_number == "TRK1"
        assert order.carrier == "DHL"

    def test_delivered_stamps_date(self):
        order = _make_order()
        order.transition_to("delivered")
        assert order.delivered_date is not None

    def test_delivered_is_terminal(self):
        order = _make_order()
        order.transition_to("delivered")
        with pytest.raises(InvalidStatus, match="Cannot move"):
            order.transition_to("confirmed")

    def test_cancelled_is_terminal(self):
        order = _make_order()
        order.cancel("buyer-1", "changed my mind")
        with pytest.raises(InvalidStatus):
            order.transition_to("processing")

    def test_cancel_records_actor_and_reason(self):
        order = _make_order()
        order.cancel("buyer-1", "changed my mind")
        assert order.cancelled_by == "buyer-1"
        assert order.cancel_reason == "changed my mind"
        assert order.cancelled_date is not None

    def test_unknown_status_rejected(self):
        with pytest.raises(InvalidStatus, match="Invalid order status"):
            _make_order().transition_to("lost")


class TestOrderLineItem:

    def test_line_total(self):
        assert _make_item(qty=3, price="15.00").total == Money.of("45.00")

    def test_line_item_is_immutable(self):
        item = _make_item()
        with pytest.raises(AttributeError):
            item.unit_price = Money.of("1.00")  # type: ignore[misc]


class TestOrderNumber:

    def test_format(self):
        number = generate_order_number(random.Random(7))
        assert re.fullmatch(r"ORD-\d+-\d{3}", number)
