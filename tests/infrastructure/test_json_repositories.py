"""Tests for the JSON-file repositories, against a temporary directory."""

import json
import threading
from datetime import datetime, timezone

import pytest

from marketplace.domain.exceptions import (
    EntityNotFoundError,
    InsufficientStock,
    InternalError,
    ValidationError,
)
from marketplace.domain.model.cart import Cart
from marketplace.domain.model.order import Order, OrderLineItem, OrderStatus
from marketplace.domain.model.product import Product
from marketplace.domain.model.sale import Sale
from marketplace.domain.model.value_objects import (
    Money,
    PaymentMethod,
    Quantity,
    Rate,
    ShippingAddress,
)
from marketplace.infrastructure.persistence.json_cart_repository import JsonCartRepository
from marketplace.infrastructure.persistence.json_ledger_repository import JsonSaleRepository
from marketplace.infrastructure.persistence.json_order_repository import JsonOrderRepository
from marketplace.infrastructure.persistence.json_product_repository import (
    JsonProductRepository,
)


def _order(key: str | None = None) -> Order:
    return Order.create(
        buyer_id="buyer-1",
        items=[OrderLineItem("1", "S1", Quantity(2), Money.of("12.50"))],
        shipping_address=ShippingAddress(country="CR", district="Centro"),
        payment_method=PaymentMethod.BANK_TRANSFER,
        shipping_cost=Money.of("3.00"),
        idempotency_key=key,
    )


class TestJsonProductRepository:

    def test_creates_missing_file(self, tmp_path):
        JsonProductRepository(tmp_path / "nested" / "products.json")
        assert json.loads((tmp_path / "nested" / "products.json").read_text()) == []

    def test_save_and_reload(self, tmp_path):
        repo = JsonProductRepository(tmp_path / "products.json")
        repo.save(Product("1", "Widget", Money.of("9.99"), "S1", stock=4, category="tools"))
        again = JsonProductRepository(tmp_path / "products.json").get_by_id("1")
        assert again.price == Money.of("9.99")
        assert again.stock == 4
        assert again.category == "tools"

    def test_decrement_is_conditional(self, tmp_path):
        repo = JsonProductRepository(tmp_path / "products.json")
        repo.save(Product("1", "Widget", Money.of("9.99"), "S1", stock=2))
        repo.decrement_stock("1", 2)
        with pytest.raises(InsufficientStock):
            repo.decrement_stock("1", 1)
        product = repo.get_by_id("1")
        assert product.stock == 0
        assert product.sales_count == 2

    def test_concurrent_decrements_never_oversell(self, tmp_path):
        path = tmp_path / "products.json"
        JsonProductRepository(path).save(Product("1", "Widget", Money.of("1.00"), "S1", stock=5))
        failures: list[Exception] = []

        def take() -> None:
            try:
                JsonProductRepository(path).decrement_stock("1", 1)
            except InsufficientStock as exc:
                failures.append(exc)

        threads = [threading.Thread(target=take) for _ in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert JsonProductRepository(path).get_by_id("1").stock == 0
        assert len(failures) == 3

    def test_restore_unknown_product(self, tmp_path):
        repo = JsonProductRepository(tmp_path / "products.json")
        with pytest.raises(EntityNotFoundError):
            repo.restore_stock("404", 1)

    def test_corrupt_file_is_internal_error(self, tmp_path):
        path = tmp_path / "products.json"
        path.write_text("{not json")
        with pytest.raises(InternalError, match="Cannot read"):
            JsonProductRepository(path).list_all()


class TestJsonOrderRepository:

    def test_save_assigns_number_and_round_trips(self, tmp_path):
        repo = JsonOrderRepository(tmp_path / "orders.json")
        order = _order()
        repo.save(order)
        assert order.order_number.startswith("ORD-")

        loaded = repo.get_by_id(order.order_number)
        assert loaded.total == Money.of("28.00")
        assert loaded.shipping_address.district == "Centro"
        assert loaded.status == OrderStatus.PENDING

    def test_regenerates_colliding_numbers(self, tmp_path):
        numbers = iter(["ORD-1-001", "ORD-1-001", "ORD-1-002"])
        repo = JsonOrderRepository(tmp_path / "orders.json", number_factory=lambda: next(numbers))
        first, second = _order(), _order()
        repo.save(first)
        repo.save(second)
        assert (first.order_number, second.order_number) == ("ORD-1-001", "ORD-1-002")

    def test_gives_up_after_max_attempts(self, tmp_path):
        repo = JsonOrderRepository(
            tmp_path / "orders.json", number_factory=lambda: "ORD-1-001", max_attempts=3
        )
        repo.save(_order())
        with pytest.raises(InternalError, match="unique order number"):
            repo.save(_order())

    def test_idempotency_key_is_unique(self, tmp_path):
        repo = JsonOrderRepository(tmp_path / "orders.json")
        repo.save(_order("k-1"))
        assert repo.get_by_idempotency_key("k-1") is not None
        with pytest.raises(ValidationError, match="already used"):
            repo.save(_order("k-1"))

    def test_status_fields_persist(self, tmp_path):
        repo = JsonOrderRepository(tmp_path / "orders.json")
        order = _order()
        repo.save(order)
        order.cancel("system", "Checkout failed: boom")
        order.needs_reconciliation = True
        repo.save(order)

        loaded = repo.get_by_id(order.order_number)
        assert loaded.status == OrderStatus.CANCELLED
        assert loaded.cancelled_by == "system"
        assert loaded.needs_reconciliation is True
        assert len(repo.list_all()) == 1


class TestJsonLedgerAndCart:

    def test_sale_keeps_recorded_commission(self, tmp_path):
        repo = JsonSaleRepository(tmp_path / "sales.json")
        sale = Sale.create(
            id="ORD-1-001-S1",
            order_number="ORD-1-001",
            store_id="S1",
            seller_id="owner-1",
            buyer_id="buyer-1",
            product_id="1",
            quantity=3,
            unit_price=Money.of("33.33"),
            payment_method=PaymentMethod.CASH,
            commission_rate=Rate.of("0.07"),
        )
        sale.process_refund(Money.of("10.00"), "late", now=datetime(2024, 3, 1, tzinfo=timezone.utc))
        repo.save(sale)

        loaded = repo.get_by_id("ORD-1-001-S1")
        assert loaded.commission_rate == Rate.of("0.07")
        assert loaded.platform_commission == Money.of("7.00")
        assert loaded.net_amount == Money.of("92.99")
        assert loaded.refund_amount == Money.of("10.00")
        assert loaded.refund_date == datetime(2024, 3, 1, tzinfo=timezone.utc)
        assert repo.list_by_seller("owner-1") == [loaded]

    def test_cart_round_trip(self, tmp_path):
        repo = JsonCartRepository(tmp_path / "carts.json")
        cart = repo.get_or_create("b1")
        cart.add_item("1", 2, Money.of("4.25"))
        repo.save(cart)

        loaded = repo.get_by_buyer("b1")
        assert loaded.total_amount == Money.of("8.50")
        assert repo.get_by_buyer("b2") is None
        assert isinstance(loaded, Cart)
