"""JSON-file-backed implementation of CartRepository."""

from __future__ import annotations

from pathlib import Path

from marketplace.domain.model.cart import Cart, CartItem
from marketplace.domain.repository.cart_repository import CartRepository
from marketplace.infrastructure.persistence.codecs import (
    dt_from_raw,
    dt_to_raw,
    money_from_raw,
    money_to_raw,
)
from marketplace.infrastructure.persistence.json_file import JsonFile


class JsonCartRepository(CartRepository):

    def __init__(self, file_path: Path) -> None:
        self._file = JsonFile(file_path)

    def get_by_buyer(self, buyer_id: str) -> Cart | None:
        for raw in self._file.load():
            if raw["buyer_id"] == buyer_id:
                return self._to_domain(raw)
        return None

    def save(self, cart: Cart) -> None:
        self._file.upsert("buyer_id", self._to_raw(cart))

    @staticmethod
    def _to_raw(cart: Cart) -> dict:
        return {
            "buyer_id": cart.buyer_id,
            "items": [
                {
                    "product_id": item.product_id,
                    "quantity": item.quantity,
                    "price": money_to_raw(item.price),
                    "added_at": dt_to_raw(item.added_at),
                }
                for item in cart.items
            ],
            "total_amount": money_to_raw(cart.total_amount),
            "last_modified": dt_to_raw(cart.last_modified),
        }

    @staticmethod
    def _to_domain(raw: dict) -> Cart:
        return Cart(
            buyer_id=raw["buyer_id"],
            items=[
                CartItem(
                    product_id=i["product_id"],
                    quantity=i["quantity"],
                    price=money_from_raw(i["price"]),
                    added_at=dt_from_raw(i["added_at"]),  # type: ignore[arg-type]
                )
                for i in raw["items"]
            ],
            last_modified=dt_from_raw(raw["last_modified"]),  # type: ignore[arg-type]
        )
