"""Abstract repository for Product aggregate.

Defined in the domain layer so the domain never depends on
infrastructure. Concrete implementations (JSON, SQL, in-memory)
live in the infrastructure layer.

The stock methods are the catalog's outbound contract: each one must be
a single atomic read-check-write, so concurrent checkouts can never
drive stock below zero.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from marketplace.domain.model.product import Product


class ProductRepository(ABC):

    @abstractmethod
    def get_by_id(self, product_id: str) -> Product | None:
        """Return a product by its ID, or None if not found."""

    @abstractmethod
    def get_by_name(self, name: str) -> Product | None:
        """Return a product by its exact name, or None if not found."""

    @abstractmethod
    def list_all(self) -> list[Product]:
        """Return every product in the catalog."""

    @abstractmethod
    def save(self, product: Product) -> None:
        """Persist a new or updated product."""

    @abstractmethod
    def decrement_stock(self, product_id: str, quantity: int) -> Product:
        """Atomically take ``quantity`` from stock and add it to sales.

        Raises InsufficientStock if stock is lower than ``quantity`` and
        EntityNotFoundError if the product is gone.
        """

    @abstractmethod
    def restore_stock(self, product_id: str, quantity: int) -> Product:
        """Atomically put ``quantity`` back into stock and out of sales."""
