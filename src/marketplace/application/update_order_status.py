"""Application service: Update Order Status use case.

Drives the Order state machine. Entering ``cancelled`` is the one
transition with side effects outside the aggregate: stock goes back to
the catalog and every Purchase and Sale of the order is cancelled too.

Status changes for one order are serialized on the order number, and the
cancelled order is saved before any stock moves. A repeated or concurrent
cancel therefore finds the order already cancelled and restores nothing.
Lines that were refunded before the cancel keep their stock out of the
catalog, matching their ``refunded`` ledger rows.
"""

from __future__ import annotations

import structlog

from marketplace.application.dto import OrderDTO, order_to_dto
from marketplace.application.locks import KeyedLock
from marketplace.domain.exceptions import EntityNotFoundError
from marketplace.domain.model.order import Order, OrderStatus
from marketplace.domain.model.purchase import LedgerStatus, purchase_id
from marketplace.domain.repository.ledger_repository import (
    PurchaseRepository,
    SaleRepository,
)
from marketplace.domain.repository.order_repository import OrderRepository
from marketplace.domain.repository.product_repository import ProductRepository

logger = structlog.get_logger(__name__)


class UpdateOrderStatusHandler:

    def __init__(
        self,
        order_repo: OrderRepository,
        product_repo: ProductRepository,
        purchase_repo: PurchaseRepository,
        sale_repo: SaleRepository,
        locks: KeyedLock | None = None,
    ) -> None:
        self._order_repo = order_repo
        self._product_repo = product_repo
        self._purchase_repo = purchase_repo
        self._sale_repo = sale_repo
        self._locks = locks or KeyedLock()

    def handle(
        self,
        order_number: str,
        status: str,
        actor_id: str | None = None,
        reason: str | None = None,
        tracking_number: str | None = None,
        carrier: str | None = None,
    ) -> OrderDTO:
        with self._locks.hold(order_number):
            order = self._order_repo.get_by_id(order_number)
            if order is None:
                raise EntityNotFoundError(f"Order {order_number} not found")

            previous = order.status
            changed = order.transition_to(
                status,
                actor_id=actor_id,
                reason=reason,
                tracking_number=tracking_number,
                carrier=carrier,
            )
            if not changed:
                return order_to_dto(order)

            self._order_repo.save(order)
            if order.status == OrderStatus.CANCELLED:
                self._release(order, order_number, reason)

        logger.info(
            "order_status_changed",
            order_number=order_number,
            old=previous.value,
            new=order.status.value,
            actor_id=actor_id,
        )
        return order_to_dto(order)

    def _release(self, order: Order, order_number: str, reason: str | None) -> None:
        """Put stock back and cancel the ledger rows of a cancelled order.

        A failure here leaves the order cancelled but flagged for
        reconciliation, then re-raises.
        """
        try:
            self._restore_stock(order, order_number)
            self._cancel_ledger(order_number, reason)
        except Exception:
            logger.exception("cancel_side_effects_failed", order_number=order_number)
            order.needs_reconciliation = True
            self._order_repo.save(order)
            raise

    def _restore_stock(self, order: Order, order_number: str) -> None:
        for position, line in enumerate(order.items, start=1):
            purchase = self._purchase_repo.get_by_id(purchase_id(order_number, position))
            if purchase is not None and purchase.status == LedgerStatus.REFUNDED:
                continue
            try:
                self._product_repo.restore_stock(line.product_id, line.quantity.value)
            except EntityNotFoundError:
                logger.warning(
                    "cancel_restock_skipped",
                    order_number=order_number,
                    product_id=line.product_id,
                )

    def _cancel_ledger(self, order_number: str, reason: str | None) -> None:
        note = reason or f"Order {order_number} cancelled"
        for purchase in self._purchase_repo.list_by_order(order_number):
            if purchase.status == LedgerStatus.COMPLETED:
                purchase.cancel(note)
                self._purchase_repo.save(purchase)
        for sale in self._sale_repo.list_by_order(order_number):
            if sale.status == LedgerStatus.COMPLETED:
                sale.cancel(note)
                self._sale_repo.save(sale)
