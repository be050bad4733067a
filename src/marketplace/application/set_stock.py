"""Application service: Set Stock use case."""

from __future__ import annotations

from marketplace.domain.exceptions import EntityNotFoundError
from marketplace.domain.repository.product_repository import ProductRepository


class SetStockHandler:

    def __init__(self, product_repo: ProductRepository) -> None:
        self._product_repo = product_repo

    def handle(self, product_id: str, quantity: int) -> None:
        """Set the stock level for a product."""
        product = self._product_repo.get_by_id(product_id)
        if product is None:
            raise EntityNotFoundError(f"Product with ID '{product_id}' not found")

        product.set_stock(quantity)
        self._product_repo.save(product)
