"""Sale — the seller-side ledger row, one per order line item.

A Sale carries the payout math: the platform keeps
``total_amount * commission_rate`` (rounded half-up to cents) and the
seller is owed the rest.

Commission is recorded history. It is computed once, in ``Sale.create``,
and no operation changes the rate or total afterwards, so the stored
figures always satisfy::

    platform_commission == round(total_amount * commission_rate)
    net_amount == total_amount - platform_commission
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone

from marketplace.domain.exceptions import ValidationError
from marketplace.domain.model.purchase import LedgerStatus
from marketplace.domain.model.value_objects import (
    DEFAULT_COMMISSION_RATE,
    Money,
    PaymentMethod,
    PaymentStatus,
    Rate,
)


def sale_id(order_number: str, position: int) -> str:
    return f"{order_number}-S{position}"


@dataclass
class Sale:
    id: str
    order_number: str
    store_id: str
    seller_id: str
    buyer_id: str
    product_id: str
    quantity: int
    unit_price: Money
    total_amount: Money
    commission_rate: Rate
    platform_commission: Money
    net_amount: Money
    payment_method: PaymentMethod
    payment_status: PaymentStatus = PaymentStatus.COMPLETED
    status: LedgerStatus = LedgerStatus.COMPLETED
    sale_date: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    notes: str | None = None
    refund_reason: str | None = None
    refund_amount: Money = field(default_factory=Money.zero)
    refund_date: datetime | None = None

    @staticmethod
    def create(
        id: str,
        order_number: str,
        store_id: str,
        seller_id: str,
        buyer_id: str,
        product_id: str,
        quantity: int,
        unit_price: Money,
        payment_method: PaymentMethod,
        payment_status: PaymentStatus = PaymentStatus.COMPLETED,
        commission_rate: Rate = DEFAULT_COMMISSION_RATE,
    ) -> Sale:
        """Build a completed sale and compute its commission split."""
        if quantity < 1:
            raise ValidationError("Sale quantity must be at least 1")
        total = unit_price * quantity
        commission = total.fraction(commission_rate)
        return Sale(
            id=id,
            order_number=order_number,
            store_id=store_id,
            seller_id=seller_id,
            buyer_id=buyer_id,
            product_id=product_id,
            quantity=quantity,
            unit_price=unit_price,
            total_amount=total,
            commission_rate=commission_rate,
            platform_commission=commission,
            net_amount=total - commission,
            payment_method=payment_method,
            payment_status=payment_status,
        )

    def cancel(self, reason: str | None = None) -> None:
        if self.status == LedgerStatus.REFUNDED:
            raise ValidationError(f"Sale {self.id} is already refunded")
        self.status = LedgerStatus.CANCELLED
        self.notes = reason or "Sale cancelled"

    def process_refund(
        self,
        amount: Money | None,
        reason: str | None,
        now: datetime | None = None,
    ) -> None:
        """Refund all or part of the sale.

        The commission figures are left as recorded; the refund is
        tracked separately in ``refund_amount``.
        """
        if self.status != LedgerStatus.COMPLETED:
            raise ValidationError(
                f"Cannot refund sale {self.id} in {self.status.value} status"
            )
        amount = amount or self.total_amount
        if amount > self.total_amount:
            raise ValidationError(
                f"Refund {amount} exceeds sale total {self.total_amount}"
            )
        self.status = LedgerStatus.REFUNDED
        self.payment_status = PaymentStatus.REFUNDED
        self.refund_amount = amount
        self.refund_reason = reason
        self.refund_date = now or datetime.now(timezone.utc)
