"""Abstract repositories for the Purchase and Sale ledgers."""

from __future__ import annotations

from abc import ABC, abstractmethod

from marketplace.domain.model.purchase import Purchase
from marketplace.domain.model.sale import Sale


class PurchaseRepository(ABC):

    @abstractmethod
    def get_by_id(self, purchase_id: str) -> Purchase | None:
        """Return a purchase by its ID, or None if not found."""

    @abstractmethod
    def list_all(self) -> list[Purchase]:
        """Return every purchase."""

    @abstractmethod
    def save(self, purchase: Purchase) -> None:
        """Persist a new or updated purchase."""

    def list_by_order(self, order_number: str) -> list[Purchase]:
        return [p for p in self.list_all() if p.order_number == order_number]

    def list_by_buyer(self, buyer_id: str) -> list[Purchase]:
        return [p for p in self.list_all() if p.buyer_id == buyer_id]


class SaleRepository(ABC):

    @abstractmethod
    def get_by_id(self, sale_id: str) -> Sale | None:
        """Return a sale by its ID, or None if not found."""

    @abstractmethod
    def list_all(self) -> list[Sale]:
        """Return every sale."""

    @abstractmethod
    def save(self, sale: Sale) -> None:
        """Persist a new or updated sale."""

    def list_by_order(self, order_number: str) -> list[Sale]:
        return [s for s in self.list_all() if s.order_number == order_number]

    def list_by_seller(self, seller_id: str) -> list[Sale]:
        return [s for s in self.list_all() if s.seller_id == seller_id]
