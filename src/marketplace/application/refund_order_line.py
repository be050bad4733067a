"""Application service: Refund Order Line use case.

Refunds one line of an order on both sides of the ledger: the buyer's
Purchase becomes ``refunded`` and the store's Sale records the refund
amount and date. Stock is not touched, and a later cancel of the order
leaves the refunded line's stock out of the catalog as well.
"""

from __future__ import annotations

from marketplace.application.locks import KeyedLock
from marketplace.domain.exceptions import EntityNotFoundError, ValidationError
from marketplace.domain.model.value_objects import Money
from marketplace.domain.repository.ledger_repository import (
    PurchaseRepository,
    SaleRepository,
)
from marketplace.domain.repository.order_repository import OrderRepository


class RefundOrderLineHandler:

    def __init__(
        self,
        order_repo: OrderRepository,
        purchase_repo: PurchaseRepository,
        sale_repo: SaleRepository,
        locks: KeyedLock | None = None,
    ) -> None:
        self._order_repo = order_repo
        self._purchase_repo = purchase_repo
        self._sale_repo = sale_repo
        self._locks = locks or KeyedLock()

    def handle(
        self,
        order_number: str,
        product_id: str,
        reason: str | None = None,
        amount: str | None = None,
    ) -> None:
        """Refund the line for ``product_id``; ``amount`` defaults to its total."""
        with self._locks.hold(order_number):
            self._refund(order_number, product_id, reason, amount)

    def _refund(
        self, order_number: str, product_id: str, reason: str | None, amount: str | None
    ) -> None:
        if self._order_repo.get_by_id(order_number) is None:
            raise EntityNotFoundError(f"Order {order_number} not found")

        purchases = [
            p for p in self._purchase_repo.list_by_order(order_number)
            if p.product_id == product_id
        ]
        sales = [
            s for s in self._sale_repo.list_by_order(order_number)
            if s.product_id == product_id
        ]
        if not purchases or not sales:
            raise EntityNotFoundError(
                f"Product '{product_id}' not found in order {order_number}"
            )

        refund = Money.of(amount) if amount is not None else None
        # Validate both sides before writing either one.
        for sale in sales:
            if refund is not None and refund > sale.total_amount:
                raise ValidationError(
                    f"Refund {refund} exceeds sale total {sale.total_amount}"
                )

        for sale in sales:
            sale.process_refund(refund, reason)
        for purchase in purchases:
            purchase.refund(reason)
        for sale in sales:
            self._sale_repo.save(sale)
        for purchase in purchases:
            self._purchase_repo.save(purchase)
