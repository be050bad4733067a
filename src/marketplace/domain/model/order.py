"""Order aggregate — the buyer-facing record of one checkout.

The Order is an aggregate root that owns its line items. A single order
may span several stores; each line records the store it was bought from.
Totals are always derived from the lines and never taken from input.
"""

from __future__ import annotations

import random
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum

from marketplace.domain.exceptions import InvalidStatus, ValidationError
from marketplace.domain.model.value_objects import (
    Money,
    PaymentMethod,
    PaymentStatus,
    Quantity,
    ShippingAddress,
)


class OrderStatus(Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    PROCESSING = "processing"
    SHIPPED = "shipped"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"

    @property
    def is_terminal(self) -> bool:
        return self in (OrderStatus.DELIVERED, OrderStatus.CANCELLED)

    @staticmethod
    def parse(raw: str | OrderStatus) -> OrderStatus:
        if isinstance(raw, OrderStatus):
            return raw
        try:
            return OrderStatus(raw)
        except ValueError as exc:
            raise InvalidStatus(f"Invalid order status: {raw!r}") from exc


@dataclass(frozen=True)
class OrderLineItem:
    """Captures the price snapshot of a product at order-creation time.

    Immutable: the unit price never follows later catalog price changes.
    """

    product_id: str
    store_id: str
    quantity: Quantity
    unit_price: Money  # locked at order-creation time

    @property
    def total(self) -> Money:
        return self.unit_price * self.quantity.value


# ---------------------------------------------------------------------------
# Constants for business rules
# ---------------------------------------------------------------------------
MAX_LINE_ITEMS = 50
SYSTEM_ACTOR = "system"


def generate_order_number(rng: random.Random | None = None) -> str:
    """Return a human-readable order number ``ORD-<millis>-<3 digits>``."""
    millis = int(time.time() * 1000)
    suffix = (rng or random).randrange(1000)
    return f"ORD-{millis}-{suffix:03d}"


@dataclass
class Order:
    """Aggregate root for marketplace orders.

    Use the ``Order.create()`` factory for new orders — it enforces all
    business rules.  The ``__init__`` is intentionally simple so the
    repository can reconstitute persisted orders without re-validating.
    ``order_number`` stays ``None`` until the repository assigns one.
    """

    order_number: str | None
    buyer_id: str
    items: list[OrderLineItem]
    shipping_address: ShippingAddress
    payment_method: PaymentMethod
    payment_status: PaymentStatus = PaymentStatus.PENDING
    shipping_cost: Money = field(default_factory=Money.zero)
    tax: Money = field(default_factory=Money.zero)
    status: OrderStatus = OrderStatus.PENDING
    ordered_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    idempotency_key: str | None = None
    notes: str | None = None
    tracking_number: str | None = None
    carrier: str | None = None
    estimated_delivery_date: datetime | None = None
    shipped_date: datetime | None = None
    delivered_date: datetime | None = None
    cancelled_date: datetime | None = None
    cancelled_by: str | None = None
    cancel_reason: str | None = None
    needs_reconciliation: bool = False

    # --- Factory (used for NEW orders only) -----------------------------------

    @staticmethod
    def create(
        buyer_id: str,
        items: list[OrderLineItem],
        shipping_address: ShippingAddress,
        payment_method: PaymentMethod,
        payment_status: PaymentStatus = PaymentStatus.PENDING,
        shipping_cost: Money | None = None,
        tax: Money | None = None,
        idempotency_key: str | None = None,
        notes: str | None = None,
    ) -> Order:
        """Create a new order, enforcing all invariants."""
        if not buyer_id or not buyer_id.strip():
            raise ValidationError("Buyer is required")

        if not items:
            raise ValidationError("Order must contain at least one item")

        if len(items) > MAX_LINE_ITEMS:
            raise ValidationError(f"Maximum {MAX_LINE_ITEMS} items per order")

        return Order(
            order_number=None,
            buyer_id=buyer_id.strip(),
            items=list(items),
            shipping_address=shipping_address,
            payment_method=payment_method,
            payment_status=payment_status,
            shipping_cost=shipping_cost or Money.zero(),
            tax=tax or Money.zero(),
            idempotency_key=idempotency_key,
            notes=notes,
        )

    # --- State transitions ----------------------------------------------------

    def transition_to(
        self,
        target: str | OrderStatus,
        actor_id: str | None = None,
        reason: str | None = None,
        tracking_number: str | None = None,
        carrier: str | None = None,
        now: datetime | None = None,
    ) -> bool:
        """Move the order to ``target``.

        Returns False when the order is already in ``target`` (nothing
        changes), True otherwise. Terminal orders cannot move.

        Stock restoration and ledger sync on cancellation are NOT done
        here; the application handler coordinates them.
        """
        target = OrderStatus.parse(target)
        if target == self.status:
            return False
        if self.status.is_terminal:
            raise InvalidStatus(
                f"Cannot move order {self.order_number} from "
                f"{self.status.value} to {target.value}"
            )

        now = now or datetime.now(timezone.utc)
        if target == OrderStatus.SHIPPED:
            self.shipped_date = now
            if tracking_number:
                self.tracking_number = tracking_number
            if carrier:
                self.carrier = carrier
        elif target == OrderStatus.DELIVERED:
            self.delivered_date = now
        elif target == OrderStatus.CANCELLED:
            self.cancelled_date = now
            self.cancelled_by = actor_id
            self.cancel_reason = reason
        self.status = target
        return True

    def cancel(self, actor_id: str | None, reason: str | None) -> bool:
        return self.transition_to(OrderStatus.CANCELLED, actor_id=actor_id, reason=reason)

    # --- Computed properties --------------------------------------------------

    @property
    def subtotal(self) -> Money:
        result = Money.zero()
        for item in self.items:
            result = result + item.total
        return result

    @property
    def total(self) -> Money:
        return self.subtotal + self.shipping_cost + self.tax

    @property
    def store_ids(self) -> list[str]:
        """Distinct stores in first-seen order."""
        seen: list[str] = []
        for item in self.items:
            if item.store_id not in seen:
                seen.append(item.store_id)
        return seen

    def store_subtotal(self, store_id: str) -> Money:
        result = Money.zero()
        for item in self.items:
            if item.store_id == store_id:
                result = result + item.total
        return result

    def items_for_store(self, store_id: str) -> list[OrderLineItem]:
        return [item for item in self.items if item.store_id == store_id]
