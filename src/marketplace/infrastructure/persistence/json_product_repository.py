"""JSON-file-backed implementation of ProductRepository."""

from __future__ import annotations

from pathlib import Path

from marketplace.domain.exceptions import EntityNotFoundError
from marketplace.domain.model.product import Product
from marketplace.domain.repository.product_repository import ProductRepository
from marketplace.infrastructure.persistence.codecs import money_from_raw, money_to_raw
from marketplace.infrastructure.persistence.json_file import JsonFile


class JsonProductRepository(ProductRepository):

    def __init__(self, file_path: Path) -> None:
        self._file = JsonFile(file_path)

    # --- ProductRepository interface ------------------------------------------

    def get_by_id(self, product_id: str) -> Product | None:
        return self._load().get(product_id)

    def get_by_name(self, name: str) -> Product | None:
        for product in self._load().values():
            if product.name.lower() == name.lower():
                return product
        return None

    def list_all(self) -> list[Product]:
        return list(self._load().values())

    def save(self, product: Product) -> None:
        self._file.upsert("id", self._to_raw(product))

    def decrement_stock(self, product_id: str, quantity: int) -> Product:
        with self._file.locked():
            product = self._require(product_id)
            product.take(quantity)
            self.save(product)
            return product

    def restore_stock(self, product_id: str, quantity: int) -> Product:
        with self._file.locked():
            product = self._require(product_id)
            product.put_back(quantity)
            self.save(product)
            return product

    # --- Serialization helpers ------------------------------------------------

    def _require(self, product_id: str) -> Product:
        product = self.get_by_id(product_id)
        if product is None:
            raise EntityNotFoundError(f"Product with ID '{product_id}' not found")
        return product

    def _load(self) -> dict[str, Product]:
        return {raw["id"]: self._to_domain(raw) for raw in self._file.load()}

    @staticmethod
    def _to_raw(p: Product) -> dict:
        return {
            "id": p.id,
            "name": p.name,
            "price": money_to_raw(p.price),
            "store_id": p.store_id,
            "stock": p.stock,
            "sales_count": p.sales_count,
            "is_active": p.is_active,
            "category": p.category,
        }

    @staticmethod
    def _to_domain(raw: dict) -> Product:
        return Product(
            id=raw["id"],
            name=raw["name"],
            price=money_from_raw(raw["price"]),
            store_id=raw["store_id"],
            stock=raw.get("stock", 0),
            sales_count=raw.get("sales_count", 0),
            is_active=raw.get("is_active", True),
            category=raw.get("category"),
        )
