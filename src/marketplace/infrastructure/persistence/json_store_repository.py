"""JSON-file-backed implementation of StoreRepository."""

from __future__ import annotations

from pathlib import Path

from marketplace.domain.model.store import Store
from marketplace.domain.repository.store_repository import StoreRepository
from marketplace.infrastructure.persistence.json_file import JsonFile


class JsonStoreRepository(StoreRepository):

    def __init__(self, file_path: Path) -> None:
        self._file = JsonFile(file_path)

    def get_by_id(self, store_id: str) -> Store | None:
        for raw in self._file.load():
            if raw["id"] == store_id:
                return Store(id=raw["id"], owner_id=raw["owner_id"], name=raw["name"])
        return None

    def list_all(self) -> list[Store]:
        return [
            Store(id=raw["id"], owner_id=raw["owner_id"], name=raw["name"])
            for raw in self._file.load()
        ]

    def save(self, store: Store) -> None:
        self._file.upsert(
            "id", {"id": store.id, "owner_id": store.owner_id, "name": store.name}
        )
