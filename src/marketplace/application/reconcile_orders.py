"""Application service: Reconcile Orders (query).

Finds orders whose ledger does not match their line items: fewer (or
more) Purchase/Sale rows than lines, or orders the ledger writer flagged
because a compensation step failed. Read-only; repair is manual.
"""

from __future__ import annotations

from dataclasses import dataclass

import structlog

from marketplace.domain.model.order import SYSTEM_ACTOR, Order, OrderStatus
from marketplace.domain.repository.ledger_repository import (
    PurchaseRepository,
    SaleRepository,
)
from marketplace.domain.repository.order_repository import OrderRepository

logger = structlog.get_logger(__name__)


def _compensated(order: Order) -> bool:
    """A checkout the ledger writer rolled back cleanly."""
    return order.status == OrderStatus.CANCELLED and order.cancelled_by == SYSTEM_ACTOR


@dataclass(frozen=True)
class ReconciliationIssue:
    order_number: str
    status: str
    line_count: int
    purchase_count: int
    sale_count: int
    flagged: bool


class ReconcileOrdersHandler:

    def __init__(
        self,
        order_repo: OrderRepository,
        purchase_repo: PurchaseRepository,
        sale_repo: SaleRepository,
    ) -> None:
        self._order_repo = order_repo
        self._purchase_repo = purchase_repo
        self._sale_repo = sale_repo

    def handle(self) -> list[ReconciliationIssue]:
        purchase_counts: dict[str, int] = {}
        for purchase in self._purchase_repo.list_all():
            purchase_counts[purchase.order_number] = purchase_counts.get(purchase.order_number, 0) + 1
        sale_counts: dict[str, int] = {}
        for sale in self._sale_repo.list_all():
            sale_counts[sale.order_number] = sale_counts.get(sale.order_number, 0) + 1

        issues: list[ReconciliationIssue] = []
        for order in self._order_repo.list_all():
            number = order.order_number or ""
            lines = len(order.items)
            purchases = purchase_counts.get(number, 0)
            sales = sale_counts.get(number, 0)
            balanced = purchases == lines and sales == lines
            if not order.needs_reconciliation and (balanced or _compensated(order)):
                continue
            issues.append(
                ReconciliationIssue(
                    order_number=number,
                    status=order.status.value,
                    line_count=lines,
                    purchase_count=purchases,
                    sale_count=sales,
                    flagged=order.needs_reconciliation,
                )
            )

        if issues:
            logger.warning("orders_need_reconciliation", count=len(issues))
        return issues
