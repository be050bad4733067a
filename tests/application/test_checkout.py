"""Integration tests for cart checkout."""

import threading

import pytest

from marketplace.application.cart_service import CartService
from marketplace.application.checkout import CheckoutHandler
from marketplace.application.locks import KeyedLock
from marketplace.domain.exceptions import (
    InsufficientStock,
    InternalError,
    StockUpdateFailed,
    ValidationError,
)
from marketplace.domain.model.product import Product
from marketplace.domain.model.store import Store
from marketplace.domain.model.value_objects import Money, ShippingAddress
from marketplace.domain.service.ledger_writer import LedgerWriter
from tests.fakes import (
    FakeCartRepository,
    FakeOrderRepository,
    FakePurchaseRepository,
    FakeProductRepository,
    FakeSaleRepository,
    FakeStoreRepository,
    RecordingNotifier,
)

ADDRESS = ShippingAddress(country="CR")


class _SaleRepoFailingOnce(FakeSaleRepository):

    def __init__(self) -> None:
        super().__init__()
        self.failed = False

    def save(self, sale) -> None:
        if not self.failed:
            self.failed = True
            raise OSError("disk full")
        super().save(sale)


def _setup(stock: int = 10, sales: FakeSaleRepository | None = None):
    products = FakeProductRepository([
        Product(id="1", name="Widget", price=Money.of("100.00"), store_id="S1", stock=stock),
        Product(id="2", name="Gadget", price=Money.of("20.00"), store_id="S2", stock=stock),
    ])
    stores = FakeStoreRepository([
        Store(id="S1", owner_id="owner-1", name="First"),
        Store(id="S2", owner_id="owner-2", name="Second"),
    ])
    carts = FakeCartRepository()
    orders = FakeOrderRepository()
    purchases = FakePurchaseRepository()
    if sales is None:
        sales = FakeSaleRepository()
    locks = KeyedLock()
    writer = LedgerWriter(orders, products, stores, purchases, sales, RecordingNotifier())
    checkout = CheckoutHandler(carts, products, orders, writer, locks)
    cart_service = CartService(carts, products, locks)
    return checkout, cart_service, carts, products, orders, sales


class TestCheckout:

    def test_multi_store_cart_becomes_one_order(self):
        checkout, cart, carts, products, orders, sales = _setup()
        cart.add_item("b1", "1", 2)
        cart.add_item("b1", "2", 1)

        [dto] = checkout.handle("b1", ADDRESS, "debit_card")

        assert dto.total == "$220.00"
        assert {i.store_id for i in dto.items} == {"S1", "S2"}
        assert len(sales.list_by_order(dto.order_number)) == 2
        assert carts.get_by_buyer("b1").is_empty
        assert products.get_by_id("1").stock == 8

    def test_uses_cart_price_snapshot(self):
        checkout, cart, _, products, _, _ = _setup()
        cart.add_item("b1", "1", 1)
        products.get_by_id("1").update_price(Money.of("150.00"))

        [dto] = checkout.handle("b1", ADDRESS, "cash")
        assert dto.subtotal == "$100.00"

    def test_empty_cart_rejected(self):
        checkout, *_ = _setup()
        with pytest.raises(ValidationError, match="Cart is empty"):
            checkout.handle("b1", ADDRESS, "cash")

    def test_missing_address_rejected(self):
        checkout, cart, *_ = _setup()
        cart.add_item("b1", "1", 1)
        with pytest.raises(ValidationError, match="address"):
            checkout.handle("b1", None, "cash")

    def test_failed_checkout_keeps_cart(self):
        checkout, cart, carts, products, _, _ = _setup()
        cart.add_item("b1", "1", 2)
        products.get_by_id("1").set_stock(1)

        with pytest.raises(InsufficientStock):
            checkout.handle("b1", ADDRESS, "cash")
        assert carts.get_by_buyer("b1").quantity_of("1") == 2


class TestCheckoutIdempotency:

    def test_replay_after_cart_cleared_returns_original(self):
        checkout, cart, _, products, orders, _ = _setup()
        cart.add_item("b1", "1", 1)

        [first] = checkout.handle("b1", ADDRESS, "cash", idempotency_key="chk-1")
        [again] = checkout.handle("b1", ADDRESS, "cash", idempotency_key="chk-1")

        assert again.order_number == first.order_number
        assert len(orders.list_all()) == 1
        assert products.get_by_id("1").stock == 9

    def test_retry_after_failed_checkout_places_new_order(self):
        checkout, cart, carts, products, orders, _ = _setup(sales=_SaleRepoFailingOnce())
        cart.add_item("b1", "1", 1)

        with pytest.raises(InternalError):
            checkout.handle("b1", ADDRESS, "cash", idempotency_key="chk-2")
        assert carts.get_by_buyer("b1").quantity_of("1") == 1
        assert products.get_by_id("1").stock == 10

        [dto] = checkout.handle("b1", ADDRESS, "cash", idempotency_key="chk-2")

        assert dto.status == "pending"
        assert len(orders.list_all()) == 2
        assert carts.get_by_buyer("b1").is_empty
        assert products.get_by_id("1").stock == 9


class TestCheckoutConcurrency:

    def test_last_unit_sold_once(self):
        checkout, cart, _, products, orders, _ = _setup(stock=1)
        cart.add_item("b1", "1", 1)
        cart.add_item("b2", "1", 1)

        barrier = threading.Barrier(2)
        results: dict[str, object] = {}

        def buy(buyer: str) -> None:
            barrier.wait()
            try:
                results[buyer] = checkout.handle(buyer, ADDRESS, "cash")
            except (InsufficientStock, StockUpdateFailed) as exc:
                results[buyer] = exc

        threads = [threading.Thread(target=buy, args=(b,)) for b in ("b1", "b2")]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        winners = [r for r in results.values() if isinstance(r, list)]
        assert len(winners) == 1
        assert products.get_by_id("1").stock == 0
        assert products.get_by_id("1").sales_count == 1
