"""Abstract repository for Store aggregate."""

from __future__ import annotations

from abc import ABC, abstractmethod

from marketplace.domain.model.store import Store


class StoreRepository(ABC):

    @abstractmethod
    def get_by_id(self, store_id: str) -> Store | None:
        """Return a store by its ID, or None if not found."""

    @abstractmethod
    def list_all(self) -> list[Store]:
        """Return every store."""

    @abstractmethod
    def save(self, store: Store) -> None:
        """Persist a new or updated store."""
