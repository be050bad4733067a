"""Abstract repository for Cart aggregate."""

from __future__ import annotations

from abc import ABC, abstractmethod

from marketplace.domain.model.cart import Cart


class CartRepository(ABC):

    @abstractmethod
    def get_by_buyer(self, buyer_id: str) -> Cart | None:
        """Return the buyer's cart, or None if they never had one."""

    @abstractmethod
    def save(self, cart: Cart) -> None:
        """Persist a new or updated cart."""

    def get_or_create(self, buyer_id: str) -> Cart:
        cart = self.get_by_buyer(buyer_id)
        if cart is None:
            cart = Cart(buyer_id=buyer_id)
            self.save(cart)
        return cart
