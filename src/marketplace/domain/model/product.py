"""Product aggregate.

Products live in the catalog, independently of orders. The settlement
pipeline only reads them and moves two counters: ``stock`` goes down and
``sales_count`` goes up when an order is written, and the reverse happens
when an order is cancelled.
"""

from __future__ import annotations

from dataclasses import dataclass

from marketplace.domain.exceptions import InsufficientStock, ValidationError
from marketplace.domain.model.value_objects import Money


@dataclass
class Product:
    """A product in the catalog.

    Invariants:
    - ``stock`` is never negative
    - ``sales_count`` is never negative
    """

    id: str
    name: str
    price: Money
    store_id: str
    stock: int = 0
    sales_count: int = 0
    is_active: bool = True
    category: str | None = None

    def update_price(self, new_price: Money) -> None:
        """Change the product price.

        This does NOT affect any existing orders or carts already
        checked out, because they capture a price snapshot.
        """
        if new_price.amount <= 0:
            raise ValidationError("Product price must be greater than zero")
        self.price = new_price

    def set_stock(self, quantity: int) -> None:
        if quantity < 0:
            raise ValidationError("Stock cannot be negative")
        self.stock = quantity

    def take(self, quantity: int) -> None:
        """Remove sold units from stock and count them as sales."""
        if quantity <= 0:
            raise ValidationError("Stock decrement must be positive")
        if quantity > self.stock:
            raise InsufficientStock(
                f"Insufficient stock for {self.name} "
                f"(need {quantity}, have {self.stock})",
                product_id=self.id,
            )
        self.stock -= quantity
        self.sales_count += quantity

    def put_back(self, quantity: int) -> None:
        """Return units from a cancelled order to stock."""
        if quantity <= 0:
            raise ValidationError("Stock restore must be positive")
        self.stock += quantity
        self.sales_count = max(0, self.sales_count - quantity)
