"""Tests for what happens to an order after checkout: status changes,
cancellation side effects, refunds and reconciliation."""

import pytest

from marketplace.application.create_order import CreateOrderHandler
from marketplace.application.dto import OrderItemSpec, OrderRequest
from marketplace.application.reconcile_orders import ReconcileOrdersHandler
from marketplace.application.refund_order_line import RefundOrderLineHandler
from marketplace.application.show_order import ShowOrderHandler
from marketplace.application.update_order_status import UpdateOrderStatusHandler
from marketplace.domain.exceptions import (
    EntityNotFoundError,
    InternalError,
    InvalidStatus,
    ValidationError,
)
from marketplace.domain.model.product import Product
from marketplace.domain.model.purchase import LedgerStatus
from marketplace.domain.model.store import Store
from marketplace.domain.model.value_objects import Money, ShippingAddress
from marketplace.domain.service.ledger_writer import LedgerWriter
from tests.fakes import (
    FakeOrderRepository,
    FakePurchaseRepository,
    FakeProductRepository,
    FakeSaleRepository,
    FakeStoreRepository,
    RecordingNotifier,
)


class _Lifecycle:
    """An order with two lines from two stores, plus every handler."""

    def __init__(self) -> None:
        self.products = FakeProductRepository([
            Product(id="1", name="Widget", price=Money.of("100.00"), store_id="S1", stock=10),
            Product(id="2", name="Gadget", price=Money.of("20.00"), store_id="S2", stock=10),
        ])
        stores = FakeStoreRepository([
            Store(id="S1", owner_id="owner-1", name="First"),
            Store(id="S2", owner_id="owner-2", name="Second"),
        ])
        self.orders = FakeOrderRepository()
        self.purchases = FakePurchaseRepository()
        self.sales = FakeSaleRepository()
        writer = LedgerWriter(
            self.orders, self.products, stores, self.purchases, self.sales, RecordingNotifier()
        )
        dto = CreateOrderHandler(writer, self.products).handle(
            OrderRequest(
                buyer_id="buyer-1",
                items=(OrderItemSpec("1", 2), OrderItemSpec("2", 3)),
                shipping_address=ShippingAddress(country="CR"),
                payment_method="paypal",
            )
        )
        self.order_number = dto.order_number
        self.status = UpdateOrderStatusHandler(
            self.orders, self.products, self.purchases, self.sales
        )
        self.refund = RefundOrderLineHandler(self.orders, self.purchases, self.sales)
        self.reconcile = ReconcileOrdersHandler(self.orders, self.purchases, self.sales)


class TestUpdateOrderStatus:

    def test_pending_to_shipped_with_tracking(self):
        world = _Lifecycle()
        dto = world.status.handle(
            world.order_number, "shipped", tracking_number="TRK-9", carrier="UPS"
        )
        assert dto.status == "shipped"
        assert dto.tracking_number == "TRK-9"
        assert dto.shipped_date is not None

    def test_cancel_restores_stock_and_cancels_ledger(self):
        world = _Lifecycle()
        world.status.handle(world.order_number, "cancelled", actor_id="buyer-1", reason="late")

        assert world.products.get_by_id("1").stock == 10
        assert world.products.get_by_id("1").sales_count == 0
        assert world.products.get_by_id("2").stock == 10
        for row in world.purchases.list_all() + world.sales.list_all():
            assert row.status == LedgerStatus.CANCELLED

        order = world.orders.get_by_id(world.order_number)
        assert order.cancelled_by == "buyer-1"
        assert order.cancel_reason == "late"

    def test_cancel_leaves_refunded_rows_alone(self):
        world = _Lifecycle()
        world.refund.handle(world.order_number, "2")
        world.status.handle(world.order_number, "cancelled")

        statuses = {s.product_id: s.status for s in world.sales.list_all()}
        assert statuses == {"1": LedgerStatus.CANCELLED, "2": LedgerStatus.REFUNDED}

    def test_cancel_keeps_refunded_line_stock_out(self):
        world = _Lifecycle()
        world.refund.handle(world.order_number, "1")
        world.status.handle(world.order_number, "cancelled")

        assert world.products.get_by_id("1").stock == 8
        assert world.products.get_by_id("2").stock == 10

    def test_second_cancel_restores_nothing(self):
        world = _Lifecycle()
        world.status.handle(world.order_number, "cancelled")
        world.status.handle(world.order_number, "cancelled")

        assert world.products.get_by_id("1").stock == 10
        assert world.products.get_by_id("2").stock == 10

    def test_failed_ledger_sync_flags_cancelled_order(self, monkeypatch):
        world = _Lifecycle()

        def broken_save(sale):
            raise InternalError("disk full")

        monkeypatch.setattr(world.sales, "save", broken_save)
        with pytest.raises(InternalError):
            world.status.handle(world.order_number, "cancelled")

        order = world.orders.get_by_id(world.order_number)
        assert order.status.value == "cancelled"
        assert order.needs_reconciliation is True
        assert world.products.get_by_id("1").stock == 10

        monkeypatch.undo()
        world.status.handle(world.order_number, "cancelled")
        assert world.products.get_by_id("1").stock == 10

    def test_cancel_with_missing_product_still_succeeds(self):
        world = _Lifecycle()
        world.products.delete("2")
        dto = world.status.handle(world.order_number, "cancelled")
        assert dto.status == "cancelled"
        assert world.products.get_by_id("1").stock == 10

    def test_delivered_cannot_go_back(self):
        world = _Lifecycle()
        world.status.handle(world.order_number, "delivered")
        with pytest.raises(InvalidStatus):
            world.status.handle(world.order_number, "confirmed")

    def test_same_status_is_no_op(self):
        world = _Lifecycle()
        dto = world.status.handle(world.order_number, "pending")
        assert dto.status == "pending"

    def test_unknown_order(self):
        world = _Lifecycle()
        with pytest.raises(EntityNotFoundError):
            world.status.handle("ORD-0-000", "shipped")


class TestRefundOrderLine:

    def test_full_refund_of_one_line(self):
        world = _Lifecycle()
        world.refund.handle(world.order_number, "1", reason="broken")

        [sale] = [s for s in world.sales.list_all() if s.product_id == "1"]
        [purchase] = [p for p in world.purchases.list_all() if p.product_id == "1"]
        assert sale.status == LedgerStatus.REFUNDED
        assert sale.refund_amount == Money.of("200.00")
        assert sale.refund_reason == "broken"
        assert purchase.status == LedgerStatus.REFUNDED
        assert world.products.get_by_id("1").stock == 8

    def test_partial_refund(self):
        world = _Lifecycle()
        world.refund.handle(world.order_number, "1", amount="50.00")
        [sale] = [s for s in world.sales.list_all() if s.product_id == "1"]
        assert sale.refund_amount == Money.of("50.00")

    def test_refund_above_total_writes_nothing(self):
        world = _Lifecycle()
        with pytest.raises(ValidationError, match="exceeds"):
            world.refund.handle(world.order_number, "1", amount="500.00")
        assert all(s.status == LedgerStatus.COMPLETED for s in world.sales.list_all())

    def test_product_not_in_order(self):
        world = _Lifecycle()
        with pytest.raises(EntityNotFoundError, match="not found in order"):
            world.refund.handle(world.order_number, "99")

    def test_refund_twice_rejected(self):
        world = _Lifecycle()
        world.refund.handle(world.order_number, "1")
        with pytest.raises(ValidationError, match="Cannot refund"):
            world.refund.handle(world.order_number, "1")


class TestShowOrder:

    def test_show(self):
        world = _Lifecycle()
        dto = ShowOrderHandler(world.orders).handle(world.order_number)
        assert dto.total == "$260.00"
        assert dto.payment_method == "paypal"

    def test_missing(self):
        world = _Lifecycle()
        with pytest.raises(EntityNotFoundError):
            ShowOrderHandler(world.orders).handle("ORD-0-000")


class TestReconcileOrders:

    def test_balanced_orders_are_clean(self):
        world = _Lifecycle()
        assert world.reconcile.handle() == []

    def test_missing_sale_reported(self):
        world = _Lifecycle()
        sale = world.sales.list_all()[0]
        del world.sales._store[sale.id]

        [issue] = world.reconcile.handle()
        assert issue.order_number == world.order_number
        assert issue.line_count == 2
        assert issue.purchase_count == 2
        assert issue.sale_count == 1

    def test_flagged_order_reported(self):
        world = _Lifecycle()
        world.orders.get_by_id(world.order_number).needs_reconciliation = True
        [issue] = world.reconcile.handle()
        assert issue.flagged is True
