"""Application service: Add Store use case."""

from __future__ import annotations

from marketplace.domain.exceptions import ValidationError
from marketplace.domain.model.store import Store
from marketplace.domain.repository.store_repository import StoreRepository


class AddStoreHandler:

    def __init__(self, store_repo: StoreRepository) -> None:
        self._store_repo = store_repo

    def handle(self, name: str, owner_id: str) -> Store:
        if not name or not name.strip():
            raise ValidationError("Store name is required")
        if not owner_id or not owner_id.strip():
            raise ValidationError("Store owner is required")

        stores = self._store_repo.list_all()
        next_id = str(max((int(s.id) for s in stores), default=0) + 1)

        store = Store(id=next_id, owner_id=owner_id.strip(), name=name.strip())
        self._store_repo.save(store)
        return store
