"""Application service: the buyer's cart.

Every mutation is a read-modify-write of a single buyer-scoped record,
so each one runs while holding that buyer's lock. Two sessions of the
same buyer therefore never overwrite each other's changes.
"""

from __future__ import annotations

from dataclasses import dataclass

import structlog

from marketplace.application.dto import CartDTO, cart_to_dto
from marketplace.application.locks import KeyedLock
from marketplace.domain.exceptions import (
    InsufficientStock,
    LineNotFound,
    ProductUnavailable,
    ValidationError,
)
from marketplace.domain.model.cart import Cart, CartItem
from marketplace.domain.model.product import Product
from marketplace.domain.model.value_objects import Money
from marketplace.domain.repository.cart_repository import CartRepository
from marketplace.domain.repository.product_repository import ProductRepository

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class StoreGroup:
    """Cart lines from one store, with their subtotal."""

    store_id: str
    items: list[CartItem]
    subtotal: Money


class CartService:

    def __init__(
        self,
        cart_repo: CartRepository,
        product_repo: ProductRepository,
        locks: KeyedLock | None = None,
    ) -> None:
        self._cart_repo = cart_repo
        self._product_repo = product_repo
        self._locks = locks or KeyedLock()

    # --- Mutations ------------------------------------------------------------

    def add_item(self, buyer_id: str, product_id: str, quantity: int) -> CartDTO:
        """Add ``quantity`` of a product, merging with an existing line."""
        if quantity < 1:
            raise ValidationError("Quantity must be at least 1")
        with self._locks.hold(buyer_id):
            cart = self._cart_repo.get_or_create(buyer_id)
            product = self._available_product(product_id)
            self._check_stock(product, cart.quantity_of(product_id) + quantity)
            cart.add_item(product_id, quantity, product.price)
            self._cart_repo.save(cart)
        logger.debug("cart_item_added", buyer_id=buyer_id, product_id=product_id, quantity=quantity)
        return cart_to_dto(cart)

    def update_quantity(self, buyer_id: str, product_id: str, quantity: int) -> CartDTO:
        """Set a line's quantity; zero or less removes the line."""
        with self._locks.hold(buyer_id):
            cart = self._cart_repo.get_or_create(buyer_id)
            if cart.find(product_id) is None:
                raise LineNotFound(f"Product '{product_id}' is not in the cart")
            if quantity > 0:
                self._check_stock(self._available_product(product_id), quantity)
            cart.update_quantity(product_id, quantity)
            self._cart_repo.save(cart)
        return cart_to_dto(cart)

    def remove_item(self, buyer_id: str, product_id: str) -> CartDTO:
        with self._locks.hold(buyer_id):
            cart = self._cart_repo.get_or_create(buyer_id)
            cart.remove_item(product_id)
            self._cart_repo.save(cart)
        return cart_to_dto(cart)

    def clear(self, buyer_id: str) -> CartDTO:
        with self._locks.hold(buyer_id):
            cart = self._cart_repo.get_or_create(buyer_id)
            cart.clear()
            self._cart_repo.save(cart)
        return cart_to_dto(cart)

    # --- Queries --------------------------------------------------------------

    def get_cart(self, buyer_id: str) -> CartDTO:
        """Return the cart, dropping lines whose product is gone or inactive."""
        with self._locks.hold(buyer_id):
            cart = self._cart_repo.get_or_create(buyer_id)
            stale = [
                item.product_id
                for item in cart.items
                if not self._is_active(item.product_id)
            ]
            if stale:
                for product_id in stale:
                    cart.remove_item(product_id)
                self._cart_repo.save(cart)
                logger.info("cart_pruned", buyer_id=buyer_id, removed=stale)
        return cart_to_dto(cart)

    def group_by_store(self, buyer_id: str) -> list[StoreGroup]:
        """Partition the cart by owning store.

        Used for checkout review and per-store notices only; checkout
        still produces a single order. Lines whose product no longer
        exists are skipped.
        """
        cart = self._cart_repo.get_by_buyer(buyer_id) or Cart(buyer_id=buyer_id)
        groups: dict[str, list[CartItem]] = {}
        for item in cart.items:
            product = self._product_repo.get_by_id(item.product_id)
            if product is None:
                continue
            groups.setdefault(product.store_id, []).append(item)

        result: list[StoreGroup] = []
        for store_id, items in groups.items():
            subtotal = Money.zero()
            for item in items:
                subtotal = subtotal + item.total
            result.append(StoreGroup(store_id=store_id, items=items, subtotal=subtotal))
        return result

    # --- Internal helpers -----------------------------------------------------

    def _available_product(self, product_id: str) -> Product:
        product = self._product_repo.get_by_id(product_id)
        if product is None or not product.is_active:
            raise ProductUnavailable(f"Product {product_id} is not available")
        return product

    def _is_active(self, product_id: str) -> bool:
        product = self._product_repo.get_by_id(product_id)
        return product is not None and product.is_active

    @staticmethod
    def _check_stock(product: Product, quantity: int) -> None:
        if quantity > product.stock:
            raise InsufficientStock(
                f"Insufficient stock for {product.name}. Only {product.stock} available",
                product_id=product.id,
            )
