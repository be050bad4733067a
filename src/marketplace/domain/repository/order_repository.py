"""Abstract repository for Order aggregate.

The repository owns order-number generation: ``save`` assigns a fresh
number to new orders, regenerating on collision.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from marketplace.domain.model.order import Order


class OrderRepository(ABC):

    @abstractmethod
    def next_order_number(self) -> str:
        """Generate an order number not used by any stored order."""

    @abstractmethod
    def get_by_id(self, order_number: str) -> Order | None:
        """Return an order by its number, or None if not found."""

    @abstractmethod
    def get_by_idempotency_key(self, key: str) -> Order | None:
        """Return the order created with this idempotency key, or None."""

    @abstractmethod
    def list_all(self) -> list[Order]:
        """Return every order."""

    @abstractmethod
    def save(self, order: Order) -> None:
        """Persist a new or updated order."""

    def list_by_buyer(self, buyer_id: str) -> list[Order]:
        return [o for o in self.list_all() if o.buyer_id == buyer_id]

    def list_by_store(self, store_id: str) -> list[Order]:
        return [o for o in self.list_all() if store_id in o.store_ids]
