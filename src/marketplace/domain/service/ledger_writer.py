"""Domain service: Ledger Writer.

Turns a validated Order into the full set of settlement records:

  1. validate every line against the catalog (no mutation yet)
  2. persist the Order (the repository assigns its number)
  3. per line, in order: take stock, write the Purchase, write the Sale
  4. notify each store represented in the order

Steps 2-3 run as a saga. If any line fails, every applied step is
compensated (stock put back, written ledger rows cancelled) and the
Order is cancelled by the system actor and gives up its idempotency key,
so retrying the request writes a new order. If compensation itself fails
the Order is flagged ``needs_reconciliation`` so the reconciliation job
can find it.
"""

from __future__ import annotations

from dataclasses import dataclass

import structlog

from marketplace.domain.exceptions import (
    DomainException,
    InsufficientStock,
    InternalError,
    ProductUnavailable,
    StockUpdateFailed,
    ValidationError,
)
from marketplace.domain.model.order import SYSTEM_ACTOR, Order, OrderLineItem
from marketplace.domain.model.product import Product
from marketplace.domain.model.purchase import Purchase, purchase_id
from marketplace.domain.model.sale import Sale, sale_id
from marketplace.domain.model.store import Store
from marketplace.domain.model.value_objects import (
    DEFAULT_COMMISSION_RATE,
    Rate,
)
from marketplace.domain.repository.ledger_repository import (
    PurchaseRepository,
    SaleRepository,
)
from marketplace.domain.repository.order_repository import OrderRepository
from marketplace.domain.repository.product_repository import ProductRepository
from marketplace.domain.repository.store_repository import StoreRepository
from marketplace.domain.service.notifications import NotificationService

logger = structlog.get_logger(__name__)


@dataclass
class _Applied:
    """What the fan-out has written so far, for compensation."""

    taken: list[OrderLineItem]
    purchases: list[Purchase]
    sales: list[Sale]


class LedgerWriter:

    def __init__(
        self,
        order_repo: OrderRepository,
        product_repo: ProductRepository,
        store_repo: StoreRepository,
        purchase_repo: PurchaseRepository,
        sale_repo: SaleRepository,
        notifier: NotificationService,
        commission_rate: Rate = DEFAULT_COMMISSION_RATE,
    ) -> None:
        self._order_repo = order_repo
        self._product_repo = product_repo
        self._store_repo = store_repo
        self._purchase_repo = purchase_repo
        self._sale_repo = sale_repo
        self._notifier = notifier
        self._commission_rate = commission_rate

    def write(self, order: Order) -> Order:
        """Persist ``order`` and its ledger records, or nothing at all.

        An order carrying an idempotency key that was already used
        returns the existing order without writing anything.
        """
        if order.order_number is not None:
            raise ValidationError("Order has already been written")

        if order.idempotency_key:
            existing = self._order_repo.get_by_idempotency_key(order.idempotency_key)
            if existing is not None:
                logger.info(
                    "order_replayed",
                    order_number=existing.order_number,
                    idempotency_key=order.idempotency_key,
                )
                return existing

        # Phase 1: validate against the catalog. Fails before any mutation.
        stores = self._validate(order)

        # Phase 2: persist the order, then fan out per line.
        self._order_repo.save(order)
        number = order.order_number
        if number is None:
            raise InternalError("Order repository did not assign an order number")
        log = logger.bind(order_number=number, buyer_id=order.buyer_id)
        log.info("order_created", lines=len(order.items), total=str(order.total.amount))

        applied = _Applied(taken=[], purchases=[], sales=[])
        try:
            for position, line in enumerate(order.items, start=1):
                self._settle_line(order, number, position, line, stores[line.store_id], applied)
        except Exception as exc:
            log.warning("order_fan_out_failed", error=str(exc), written=len(applied.purchases))
            self._compensate(order, applied, str(exc))
            if isinstance(exc, DomainException):
                raise
            raise InternalError(
                f"Storage failure while writing order {number}: {exc}"
            ) from exc

        self._notify_stores(order, number, stores)
        return order

    # --- Phase 1 --------------------------------------------------------------

    def _validate(self, order: Order) -> dict[str, Store]:
        """Check every line and return the stores involved, keyed by ID."""
        needed: dict[str, int] = {}
        products: dict[str, Product] = {}
        stores: dict[str, Store] = {}

        for line in order.items:
            product = products.get(line.product_id) or self._product_repo.get_by_id(
                line.product_id
            )
            if product is None or not product.is_active:
                raise ProductUnavailable(f"Product {line.product_id} is not available")
            if product.store_id != line.store_id:
                raise ValidationError(
                    f"Product {product.id} is not sold by store {line.store_id}"
                )
            products[product.id] = product

            needed[product.id] = needed.get(product.id, 0) + line.quantity.value
            if product.stock < needed[product.id]:
                raise InsufficientStock(
                    f"Insufficient stock for {product.name} "
                    f"(need {needed[product.id]}, have {product.stock})",
                    product_id=product.id,
                )

            if line.store_id not in stores:
                store = self._store_repo.get_by_id(line.store_id)
                if store is None:
                    raise ProductUnavailable(
                        f"Product {line.product_id} belongs to an unknown store"
                    )
                stores[line.store_id] = store

        return stores

    # --- Phase 2 --------------------------------------------------------------

    def _settle_line(
        self,
        order: Order,
        number: str,
        position: int,
        line: OrderLineItem,
        store: Store,
        applied: _Applied,
    ) -> None:
        qty = line.quantity.value

        # Re-checked here: another checkout may have taken the stock since
        # phase 1 ran.
        try:
            self._product_repo.decrement_stock(line.product_id, qty)
        except InsufficientStock as exc:
            raise StockUpdateFailed(
                f"Stock for product {line.product_id} changed during checkout: {exc}"
            ) from exc
        applied.taken.append(line)

        purchase = Purchase(
            id=purchase_id(number, position),
            order_number=number,
            buyer_id=order.buyer_id,
            product_id=line.product_id,
            store_id=line.store_id,
            quantity=qty,
            unit_price=line.unit_price,
            total_amount=line.total,
            payment_method=order.payment_method,
            payment_status=order.payment_status,
        )
        self._purchase_repo.save(purchase)
        applied.purchases.append(purchase)

        sale = Sale.create(
            id=sale_id(number, position),
            order_number=number,
            store_id=line.store_id,
            seller_id=store.owner_id,
            buyer_id=order.buyer_id,
            product_id=line.product_id,
            quantity=qty,
            unit_price=line.unit_price,
            payment_method=order.payment_method,
            payment_status=order.payment_status,
            commission_rate=self._commission_rate,
        )
        self._sale_repo.save(sale)
        applied.sales.append(sale)

    def _compensate(self, order: Order, applied: _Applied, reason: str) -> None:
        """Undo what the fan-out wrote and cancel the order."""
        log = logger.bind(order_number=order.order_number)
        failures = 0

        for line in reversed(applied.taken):
            try:
                self._product_repo.restore_stock(line.product_id, line.quantity.value)
            except Exception:
                log.exception("compensation_stock_restore_failed", product_id=line.product_id)
                failures += 1

        note = f"Checkout failed: {reason}"
        for purchase in applied.purchases:
            try:
                purchase.cancel(note)
                self._purchase_repo.save(purchase)
            except Exception:
                log.exception("compensation_purchase_cancel_failed", purchase_id=purchase.id)
                failures += 1
        for sale in applied.sales:
            try:
                sale.cancel(note)
                self._sale_repo.save(sale)
            except Exception:
                log.exception("compensation_sale_cancel_failed", sale_id=sale.id)
                failures += 1

        order.cancel(SYSTEM_ACTOR, note)
        order.needs_reconciliation = failures > 0
        # The key is released so a retry with it starts a fresh checkout.
        released_key = order.idempotency_key
        order.idempotency_key = None
        try:
            self._order_repo.save(order)
        except Exception:
            log.exception("compensation_order_save_failed")
            failures += 1
        if failures:
            log.error("order_needs_reconciliation", failures=failures)
        else:
            log.info("order_compensated", released_idempotency_key=released_key)

    def _notify_stores(self, order: Order, number: str, stores: dict[str, Store]) -> None:
        for store_id in order.store_ids:
            amount = order.store_subtotal(store_id)
            try:
                self._notifier.notify_store_of_order(
                    stores[store_id].owner_id, number, amount
                )
            except Exception:
                # The order is committed at this point.
                logger.exception(
                    "store_notification_failed",
                    order_number=number,
                    store_id=store_id,
                )
