"""JSON-file-backed implementation of OrderRepository."""

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path

from marketplace.domain.exceptions import InternalError, ValidationError
from marketplace.domain.model.order import (
    Order,
    OrderLineItem,
    OrderStatus,
    generate_order_number,
)
from marketplace.domain.model.value_objects import (
    PaymentMethod,
    PaymentStatus,
    Quantity,
    ShippingAddress,
)
from marketplace.domain.repository.order_repository import OrderRepository
from marketplace.infrastructure.persistence.codecs import (
    dt_from_raw,
    dt_to_raw,
    money_from_raw,
    money_to_raw,
)
from marketplace.infrastructure.persistence.json_file import JsonFile


class JsonOrderRepository(OrderRepository):

    def __init__(
        self,
        file_path: Path,
        number_factory: Callable[[], str] = generate_order_number,
        max_attempts: int = 10,
    ) -> None:
        self._file = JsonFile(file_path)
        self._number_factory = number_factory
        self._max_attempts = max_attempts

    # --- OrderRepository interface --------------------------------------------

    def next_order_number(self) -> str:
        taken = {raw["order_number"] for raw in self._file.load()}
        for _ in range(self._max_attempts):
            candidate = self._number_factory()
            if candidate not in taken:
                return candidate
        raise InternalError(
            f"Could not generate a unique order number after {self._max_attempts} attempts"
        )

    def get_by_id(self, order_number: str) -> Order | None:
        for raw in self._file.load():
            if raw["order_number"] == order_number:
                return self._to_domain(raw)
        return None

    def get_by_idempotency_key(self, key: str) -> Order | None:
        for raw in self._file.load():
            if raw.get("idempotency_key") == key:
                return self._to_domain(raw)
        return None

    def list_all(self) -> list[Order]:
        return [self._to_domain(raw) for raw in self._file.load()]

    def save(self, order: Order) -> None:
        with self._file.locked():
            if order.order_number is None:
                if order.idempotency_key and self.get_by_idempotency_key(order.idempotency_key):
                    raise ValidationError(
                        f"Idempotency key '{order.idempotency_key}' already used"
                    )
                order.order_number = self.next_order_number()
            self._file.upsert("order_number", self._to_raw(order))

    # --- Serialization --------------------------------------------------------

    @staticmethod
    def _to_raw(order: Order) -> dict:
        # subtotal/total are written for other readers; they are always
        # recomputed from the lines on load.
        return {
            "order_number": order.order_number,
            "buyer_id": order.buyer_id,
            "ordered_at": dt_to_raw(order.ordered_at),
            "status": order.status.value,
            "items": [
                {
                    "product_id": item.product_id,
                    "store_id": item.store_id,
                    "quantity": item.quantity.value,
                    "unit_price": money_to_raw(item.unit_price),
                    "total": money_to_raw(item.total),
                }
                for item in order.items
            ],
            "shipping_address": order.shipping_address.to_dict(),
            "payment_method": order.payment_method.value,
            "payment_status": order.payment_status.value,
            "subtotal": money_to_raw(order.subtotal),
            "shipping_cost": money_to_raw(order.shipping_cost),
            "tax": money_to_raw(order.tax),
            "total": money_to_raw(order.total),
            "idempotency_key": order.idempotency_key,
            "notes": order.notes,
            "tracking_number": order.tracking_number,
            "carrier": order.carrier,
            "estimated_delivery_date": dt_to_raw(order.estimated_delivery_date),
            "shipped_date": dt_to_raw(order.shipped_date),
            "delivered_date": dt_to_raw(order.delivered_date),
            "cancelled_date": dt_to_raw(order.cancelled_date),
            "cancelled_by": order.cancelled_by,
            "cancel_reason": order.cancel_reason,
            "needs_reconciliation": order.needs_reconciliation,
        }

    @staticmethod
    def _to_domain(raw: dict) -> Order:
        items = [
            OrderLineItem(
                product_id=i["product_id"],
                store_id=i["store_id"],
                quantity=Quantity(i["quantity"]),
                unit_price=money_from_raw(i["unit_price"]),
            )
            for i in raw["items"]
        ]
        return Order(
            order_number=raw["order_number"],
            buyer_id=raw["buyer_id"],
            items=items,
            shipping_address=ShippingAddress.from_dict(raw["shipping_address"]),
            payment_method=PaymentMethod(raw["payment_method"]),
            payment_status=PaymentStatus(raw["payment_status"]),
            shipping_cost=money_from_raw(raw["shipping_cost"]),
            tax=money_from_raw(raw["tax"]),
            status=OrderStatus(raw["status"]),
            ordered_at=dt_from_raw(raw["ordered_at"]),  # type: ignore[arg-type]
            idempotency_key=raw.get("idempotency_key"),
            notes=raw.get("notes"),
            tracking_number=raw.get("tracking_number"),
            carrier=raw.get("carrier"),
            estimated_delivery_date=dt_from_raw(raw.get("estimated_delivery_date")),
            shipped_date=dt_from_raw(raw.get("shipped_date")),
            delivered_date=dt_from_raw(raw.get("delivered_date")),
            cancelled_date=dt_from_raw(raw.get("cancelled_date")),
            cancelled_by=raw.get("cancelled_by"),
            cancel_reason=raw.get("cancel_reason"),
            needs_reconciliation=raw.get("needs_reconciliation", False),
        )
