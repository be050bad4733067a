"""Unit tests for the Cart and Product aggregates."""

import pytest

from marketplace.domain.exceptions import (
    InsufficientStock,
    LineNotFound,
    ValidationError,
)
from marketplace.domain.model.cart import Cart
from marketplace.domain.model.product import Product
from marketplace.domain.model.value_objects import Money


class TestCart:

    def test_add_merges_quantity_and_refreshes_price(self):
        cart = Cart(buyer_id="b1")
        cart.add_item("1", 2, Money.of("10.00"))
        cart.add_item("1", 3, Money.of("12.00"))
        assert len(cart.items) == 1
        assert cart.quantity_of("1") == 5
        assert cart.total_amount == Money.of("60.00")

    def test_total_is_derived_from_lines(self):
        cart = Cart(buyer_id="b1")
        cart.add_item("1", 2, Money.of("10.00"))
        cart.add_item("2", 1, Money.of("4.50"))
        assert cart.total_amount == Money.of("24.50")
        assert cart.total_items == 3

    def test_add_zero_rejected(self):
        with pytest.raises(ValidationError):
            Cart(buyer_id="b1").add_item("1", 0, Money.of("1.00"))

    def test_update_to_zero_removes_line(self):
        cart = Cart(buyer_id="b1")
        cart.add_item("1", 2, Money.of("10.00"))
        cart.update_quantity("1", 0)
        assert cart.is_empty

    def test_update_missing_line_rejected(self):
        with pytest.raises(LineNotFound):
            Cart(buyer_id="b1").update_quantity("9", 1)

    def test_clear(self):
        cart = Cart(buyer_id="b1")
        cart.add_item("1", 2, Money.of("10.00"))
        cart.clear()
        assert cart.total_amount == Money.zero()


class TestProductStock:

    def _product(self, stock: int = 5) -> Product:
        return Product(id="1", name="Widget", price=Money.of("10.00"), store_id="S1", stock=stock)

    def test_take_moves_stock_to_sales(self):
        product = self._product()
        product.take(3)
        assert product.stock == 2
        assert product.sales_count == 3

    def test_take_more_than_stock_rejected(self):
        product = self._product(stock=3)
        with pytest.raises(InsufficientStock) as excinfo:
            product.take(5)
        assert excinfo.value.product_id == "1"
        assert product.stock == 3

    def test_put_back_floors_sales_at_zero(self):
        product = self._product()
        product.put_back(2)
        assert product.stock == 7
        assert product.sales_count == 0

    def test_price_must_be_positive(self):
        with pytest.raises(ValidationError, match="greater than zero"):
            self._product().update_price(Money.zero())
