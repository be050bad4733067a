"""Cart aggregate — one per buyer, holds line items until checkout."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone

from marketplace.domain.exceptions import LineNotFound, ValidationError
from marketplace.domain.model.value_objects import Money


def _now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class CartItem:
    product_id: str
    quantity: int
    price: Money  # catalog price when the line was last touched
    added_at: datetime = field(default_factory=_now)

    @property
    def total(self) -> Money:
        return self.price * self.quantity


@dataclass
class Cart:
    """Aggregate root for a buyer's cart.

    ``total_amount`` is derived from the lines on every read, so it can
    never drift from them.
    """

    buyer_id: str
    items: list[CartItem] = field(default_factory=list)
    last_modified: datetime = field(default_factory=_now)

    # --- Mutations ------------------------------------------------------------

    def add_item(self, product_id: str, quantity: int, price: Money) -> None:
        """Upsert a line, summing quantity and refreshing the price."""
        if quantity < 1:
            raise ValidationError("Quantity must be at least 1")
        existing = self.find(product_id)
        if existing is not None:
            existing.quantity += quantity
            existing.price = price
        else:
            self.items.append(CartItem(product_id=product_id, quantity=quantity, price=price))
        self._touch()

    def update_quantity(self, product_id: str, quantity: int) -> None:
        """Replace a line's quantity; zero or less removes it."""
        if self.find(product_id) is None:
            raise LineNotFound(f"Product '{product_id}' is not in the cart")
        if quantity <= 0:
            self.remove_item(product_id)
            return
        self.find(product_id).quantity = quantity  # type: ignore[union-attr]
        self._touch()

    def remove_item(self, product_id: str) -> None:
        self.items = [item for item in self.items if item.product_id != product_id]
        self._touch()

    def clear(self) -> None:
        self.items = []
        self._touch()

    # --- Queries --------------------------------------------------------------

    def find(self, product_id: str) -> CartItem | None:
        for item in self.items:
            if item.product_id == product_id:
                return item
        return None

    def quantity_of(self, product_id: str) -> int:
        item = self.find(product_id)
        return item.quantity if item else 0

    @property
    def total_amount(self) -> Money:
        result = Money.zero()
        for item in self.items:
            result = result + item.total
        return result

    @property
    def total_items(self) -> int:
        return sum(item.quantity for item in self.items)

    @property
    def is_empty(self) -> bool:
        return not self.items

    def _touch(self) -> None:
        self.last_modified = _now()
