"""Purchase — the buyer-side ledger row, one per order line item."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum

from marketplace.domain.exceptions import ValidationError
from marketplace.domain.model.value_objects import Money, PaymentMethod, PaymentStatus


class LedgerStatus(Enum):
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    REFUNDED = "refunded"


def purchase_id(order_number: str, position: int) -> str:
    return f"{order_number}-P{position}"


@dataclass
class Purchase:
    id: str
    order_number: str
    buyer_id: str
    product_id: str
    store_id: str
    quantity: int
    unit_price: Money
    total_amount: Money
    payment_method: PaymentMethod
    payment_status: PaymentStatus = PaymentStatus.COMPLETED
    status: LedgerStatus = LedgerStatus.COMPLETED
    purchase_date: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    notes: str | None = None

    def cancel(self, reason: str | None = None) -> None:
        if self.status == LedgerStatus.REFUNDED:
            raise ValidationError(f"Purchase {self.id} is already refunded")
        self.status = LedgerStatus.CANCELLED
        self.notes = reason or "Purchase cancelled"

    def refund(self, reason: str | None = None) -> None:
        if self.status != LedgerStatus.COMPLETED:
            raise ValidationError(
                f"Cannot refund purchase {self.id} in {self.status.value} status"
            )
        self.status = LedgerStatus.REFUNDED
        self.payment_status = PaymentStatus.REFUNDED
        self.notes = reason or "Purchase refunded"
