"""Application service: Add Product use case.

Catalog maintenance is owned by another service; this handler exists
so a local catalog can be seeded for the settlement pipeline.
"""

from __future__ import annotations

from marketplace.domain.exceptions import EntityNotFoundError, ValidationError
from marketplace.domain.model.product import Product
from marketplace.domain.model.value_objects import Money
from marketplace.domain.repository.product_repository import ProductRepository
from marketplace.domain.repository.store_repository import StoreRepository


class AddProductHandler:

    def __init__(self, product_repo: ProductRepository, store_repo: StoreRepository) -> None:
        self._product_repo = product_repo
        self._store_repo = store_repo

    def handle(
        self,
        name: str,
        price: str,
        store_id: str,
        stock: int = 0,
        category: str | None = None,
    ) -> Product:
        """Add a new product to a store's catalog."""
        if not name or not name.strip():
            raise ValidationError("Product name is required")

        if self._store_repo.get_by_id(store_id) is None:
            raise EntityNotFoundError(f"Store '{store_id}' not found")

        existing = self._product_repo.get_by_name(name)
        if existing is not None:
            raise ValidationError(f"Product '{name}' already exists")

        if stock < 0:
            raise ValidationError("Stock cannot be negative")

        # Auto-assign ID based on existing products
        all_products = self._product_repo.list_all()
        if all_products:
            next_id = str(max(int(p.id) for p in all_products) + 1)
        else:
            next_id = "1"

        product = Product(
            id=next_id,
            name=name.strip(),
            price=Money.of(price),
            store_id=store_id,
            stock=stock,
            category=category,
        )
        self._product_repo.save(product)
        return product
