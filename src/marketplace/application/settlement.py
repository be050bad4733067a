"""Application services: settlement queries (read side).

Aggregations over the Purchase ledger (buyer side), the Sale ledger
(seller side) and Orders, consumed by reporting screens. Nothing here
writes. Joined catalog data (product name, category, store name) may be
missing because catalog records can disappear; such fields come back as
None, and rollups keyed by product skip the missing ones.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Generic, TypeVar

from marketplace.application.dto import OrderDTO, OrderLineItemDTO, order_to_dto
from marketplace.domain.exceptions import EntityNotFoundError, ValidationError
from marketplace.domain.model.order import OrderStatus
from marketplace.domain.model.purchase import LedgerStatus, Purchase
from marketplace.domain.model.sale import Sale
from marketplace.domain.model.value_objects import Money
from marketplace.domain.repository.ledger_repository import (
    PurchaseRepository,
    SaleRepository,
)
from marketplace.domain.repository.order_repository import OrderRepository
from marketplace.domain.repository.product_repository import ProductRepository
from marketplace.domain.repository.store_repository import StoreRepository

T = TypeVar("T")

MONTHS_OF_HISTORY = 12
TOP_PRODUCTS = 10


# ---------------------------------------------------------------------------
# Pagination
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Page(Generic[T]):
    items: list[T]
    page: int
    limit: int
    total: int

    @property
    def total_pages(self) -> int:
        return math.ceil(self.total / self.limit)


def paginate(rows: list[T], page: int, limit: int) -> Page[T]:
    """Offset pagination over an already sorted list."""
    if page < 1:
        raise ValidationError("Page must be at least 1")
    if limit < 1:
        raise ValidationError("Limit must be at least 1")
    start = (page - 1) * limit
    return Page(items=rows[start:start + limit], page=page, limit=limit, total=len(rows))


def _ledger_status(raw: str | None) -> LedgerStatus | None:
    if raw is None:
        return None
    try:
        return LedgerStatus(raw)
    except ValueError as exc:
        raise ValidationError(f"Invalid status filter: {raw!r}") from exc


def _average(total: Money, count: int) -> Money:
    if count == 0:
        return Money.zero()
    return Money(total.amount / Decimal(count)).rounded()


# ---------------------------------------------------------------------------
# Result types
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class PurchaseView:
    purchase: Purchase
    product_name: str | None
    store_name: str | None


@dataclass(frozen=True)
class SaleView:
    sale: Sale
    product_name: str | None
    store_name: str | None


@dataclass(frozen=True)
class MonthlyPoint:
    year: int
    month: int
    count: int
    amount: Money
    net_amount: Money | None = None


@dataclass(frozen=True)
class PurchaseTotals:
    count: int
    amount: Money
    quantity: int
    average: Money


@dataclass(frozen=True)
class PurchaseStats:
    general: PurchaseTotals
    by_status: dict[str, int]
    monthly: list[MonthlyPoint]


@dataclass(frozen=True)
class SalesTotals:
    count: int
    revenue: Money
    net_revenue: Money
    commission: Money
    quantity: int
    average: Money


@dataclass(frozen=True)
class StatusBucket:
    count: int
    revenue: Money


@dataclass(frozen=True)
class ProductRollup:
    product_id: str
    product_name: str
    quantity: int
    revenue: Money


@dataclass(frozen=True)
class CategoryRollup:
    category: str | None
    quantity: int
    revenue: Money


@dataclass(frozen=True)
class SalesStats:
    general: SalesTotals
    by_status: dict[str, StatusBucket]
    monthly: list[MonthlyPoint]
    top_products: list[ProductRollup]
    by_category: list[CategoryRollup]


@dataclass(frozen=True)
class StoreOrderView:
    order_number: str
    buyer_id: str
    status: str
    ordered_at: datetime
    items: list[OrderLineItemDTO]
    store_subtotal: Money
    store_item_count: int


@dataclass(frozen=True)
class StoreOrders:
    page: Page[StoreOrderView]
    total_revenue: Money
    total_items: int


# ---------------------------------------------------------------------------
# Monthly series
# ---------------------------------------------------------------------------


def _monthly(
    rows: list[tuple[datetime, Money, Money | None]],
) -> list[MonthlyPoint]:
    """Bucket ``(date, amount, net)`` rows by calendar month, newest first."""
    buckets: dict[tuple[int, int], list[tuple[Money, Money | None]]] = {}
    for when, amount, net in rows:
        buckets.setdefault((when.year, when.month), []).append((amount, net))

    points: list[MonthlyPoint] = []
    for (year, month) in sorted(buckets, reverse=True)[:MONTHS_OF_HISTORY]:
        entries = buckets[(year, month)]
        amount = Money.zero()
        net: Money | None = None
        for value, row_net in entries:
            amount = amount + value
            if row_net is not None:
                net = (net or Money.zero()) + row_net
        points.append(
            MonthlyPoint(year=year, month=month, count=len(entries), amount=amount, net_amount=net)
        )
    return points


def _purchase_view(
    purchase: Purchase, product_repo: ProductRepository, store_repo: StoreRepository
) -> PurchaseView:
    product = product_repo.get_by_id(purchase.product_id)
    store = store_repo.get_by_id(purchase.store_id)
    return PurchaseView(
        purchase=purchase,
        product_name=product.name if product else None,
        store_name=store.name if store else None,
    )


def _sale_view(
    sale: Sale, product_repo: ProductRepository, store_repo: StoreRepository
) -> SaleView:
    product = product_repo.get_by_id(sale.product_id)
    store = store_repo.get_by_id(sale.store_id)
    return SaleView(
        sale=sale,
        product_name=product.name if product else None,
        store_name=store.name if store else None,
    )


# ---------------------------------------------------------------------------
# Buyer side
# ---------------------------------------------------------------------------


class PurchaseHistoryQuery:

    def __init__(
        self,
        purchase_repo: PurchaseRepository,
        product_repo: ProductRepository,
        store_repo: StoreRepository,
    ) -> None:
        self._purchase_repo = purchase_repo
        self._product_repo = product_repo
        self._store_repo = store_repo

    def handle(
        self,
        buyer_id: str,
        page: int = 1,
        limit: int = 10,
        status: str | None = None,
    ) -> Page[PurchaseView]:
        wanted = _ledger_status(status)
        rows = [
            p for p in self._purchase_repo.list_by_buyer(buyer_id)
            if wanted is None or p.status == wanted
        ]
        rows.sort(key=lambda p: p.purchase_date, reverse=True)
        result = paginate(rows, page, limit)

        views = [_purchase_view(p, self._product_repo, self._store_repo) for p in result.items]
        return Page(items=views, page=result.page, limit=result.limit, total=result.total)


class PurchaseDetailsQuery:
    """One purchase, visible only to the buyer who made it."""

    def __init__(
        self,
        purchase_repo: PurchaseRepository,
        product_repo: ProductRepository,
        store_repo: StoreRepository,
    ) -> None:
        self._purchase_repo = purchase_repo
        self._product_repo = product_repo
        self._store_repo = store_repo

    def handle(self, purchase_id: str, buyer_id: str) -> PurchaseView:
        purchase = self._purchase_repo.get_by_id(purchase_id)
        # Someone else's purchase reads the same as a missing one.
        if purchase is None or purchase.buyer_id != buyer_id:
            raise EntityNotFoundError(f"Purchase {purchase_id} not found")
        return _purchase_view(purchase, self._product_repo, self._store_repo)


class PurchaseStatsQuery:

    def __init__(self, purchase_repo: PurchaseRepository) -> None:
        self._purchase_repo = purchase_repo

    def handle(self, buyer_id: str) -> PurchaseStats:
        purchases = self._purchase_repo.list_by_buyer(buyer_id)

        amount = Money.zero()
        quantity = 0
        by_status: dict[str, int] = {}
        for p in purchases:
            amount = amount + p.total_amount
            quantity += p.quantity
            by_status[p.status.value] = by_status.get(p.status.value, 0) + 1

        return PurchaseStats(
            general=PurchaseTotals(
                count=len(purchases),
                amount=amount,
                quantity=quantity,
                average=_average(amount, len(purchases)),
            ),
            by_status=by_status,
            monthly=_monthly([(p.purchase_date, p.total_amount, None) for p in purchases]),
        )


class OrderHistoryQuery:

    def __init__(self, order_repo: OrderRepository) -> None:
        self._order_repo = order_repo

    def handle(
        self,
        buyer_id: str,
        page: int = 1,
        limit: int = 10,
        status: str | None = None,
    ) -> Page[OrderDTO]:
        wanted = OrderStatus.parse(status) if status is not None else None
        rows = [
            o for o in self._order_repo.list_by_buyer(buyer_id)
            if wanted is None or o.status == wanted
        ]
        rows.sort(key=lambda o: o.ordered_at, reverse=True)
        result = paginate(rows, page, limit)
        return Page(
            items=[order_to_dto(o) for o in result.items],
            page=result.page,
            limit=result.limit,
            total=result.total,
        )


# ---------------------------------------------------------------------------
# Seller side
# ---------------------------------------------------------------------------


class SalesHistoryQuery:

    def __init__(
        self,
        sale_repo: SaleRepository,
        product_repo: ProductRepository,
        store_repo: StoreRepository,
    ) -> None:
        self._sale_repo = sale_repo
        self._product_repo = product_repo
        self._store_repo = store_repo

    def handle(
        self,
        seller_id: str,
        page: int = 1,
        limit: int = 10,
        status: str | None = None,
        store_id: str | None = None,
    ) -> Page[SaleView]:
        wanted = _ledger_status(status)
        rows = [
            s for s in self._sale_repo.list_by_seller(seller_id)
            if (wanted is None or s.status == wanted)
            and (store_id is None or s.store_id == store_id)
        ]
        rows.sort(key=lambda s: s.sale_date, reverse=True)
        result = paginate(rows, page, limit)

        views = [_sale_view(s, self._product_repo, self._store_repo) for s in result.items]
        return Page(items=views, page=result.page, limit=result.limit, total=result.total)


class SaleDetailsQuery:
    """One sale, visible only to the seller it was recorded for."""

    def __init__(
        self,
        sale_repo: SaleRepository,
        product_repo: ProductRepository,
        store_repo: StoreRepository,
    ) -> None:
        self._sale_repo = sale_repo
        self._product_repo = product_repo
        self._store_repo = store_repo

    def handle(self, sale_id: str, seller_id: str) -> SaleView:
        sale = self._sale_repo.get_by_id(sale_id)
        if sale is None or sale.seller_id != seller_id:
            raise EntityNotFoundError(f"Sale {sale_id} not found")
        return _sale_view(sale, self._product_repo, self._store_repo)


class SalesStatsQuery:

    def __init__(self, sale_repo: SaleRepository, product_repo: ProductRepository) -> None:
        self._sale_repo = sale_repo
        self._product_repo = product_repo

    def handle(self, seller_id: str) -> SalesStats:
        sales = self._sale_repo.list_by_seller(seller_id)

        revenue = Money.zero()
        net = Money.zero()
        commission = Money.zero()
        quantity = 0
        by_status: dict[str, StatusBucket] = {}
        for s in sales:
            revenue = revenue + s.total_amount
            net = net + s.net_amount
            commission = commission + s.platform_commission
            quantity += s.quantity
            bucket = by_status.get(s.status.value, StatusBucket(0, Money.zero()))
            by_status[s.status.value] = StatusBucket(
                count=bucket.count + 1, revenue=bucket.revenue + s.total_amount
            )

        return SalesStats(
            general=SalesTotals(
                count=len(sales),
                revenue=revenue,
                net_revenue=net,
                commission=commission,
                quantity=quantity,
                average=_average(revenue, len(sales)),
            ),
            by_status=by_status,
            monthly=_monthly([(s.sale_date, s.total_amount, s.net_amount) for s in sales]),
            top_products=self._top_products(sales),
            by_category=self._by_category(sales),
        )

    def _top_products(self, sales: list[Sale]) -> list[ProductRollup]:
        totals: dict[str, tuple[int, Money]] = {}
        for s in sales:
            qty, amount = totals.get(s.product_id, (0, Money.zero()))
            totals[s.product_id] = (qty + s.quantity, amount + s.total_amount)

        rollups: list[ProductRollup] = []
        for product_id, (qty, amount) in totals.items():
            product = self._product_repo.get_by_id(product_id)
            if product is None:
                continue
            rollups.append(
                ProductRollup(
                    product_id=product_id,
                    product_name=product.name,
                    quantity=qty,
                    revenue=amount,
                )
            )
        rollups.sort(key=lambda r: r.quantity, reverse=True)
        return rollups[:TOP_PRODUCTS]

    def _by_category(self, sales: list[Sale]) -> list[CategoryRollup]:
        totals: dict[str | None, tuple[int, Money]] = {}
        for s in sales:
            product = self._product_repo.get_by_id(s.product_id)
            category = product.category if product else None
            qty, amount = totals.get(category, (0, Money.zero()))
            totals[category] = (qty + s.quantity, amount + s.total_amount)

        rollups = [
            CategoryRollup(category=category, quantity=qty, revenue=amount)
            for category, (qty, amount) in totals.items()
        ]
        rollups.sort(key=lambda r: r.revenue.amount, reverse=True)
        return rollups


class StoreOrdersQuery:
    """Orders that contain at least one line from a store, store view only."""

    def __init__(self, order_repo: OrderRepository) -> None:
        self._order_repo = order_repo

    def handle(
        self,
        store_id: str,
        page: int = 1,
        limit: int = 10,
        status: str | None = None,
        start: datetime | None = None,
        end: datetime | None = None,
    ) -> StoreOrders:
        wanted = OrderStatus.parse(status) if status is not None else None
        orders = [
            o for o in self._order_repo.list_by_store(store_id)
            if (wanted is None or o.status == wanted)
            and (start is None or o.ordered_at >= start)
            and (end is None or o.ordered_at <= end)
        ]
        orders.sort(key=lambda o: o.ordered_at, reverse=True)

        views: list[StoreOrderView] = []
        total_revenue = Money.zero()
        total_items = 0
        for order in orders:
            lines = order.items_for_store(store_id)
            subtotal = order.store_subtotal(store_id)
            total_revenue = total_revenue + subtotal
            total_items += len(lines)
            full = order_to_dto(order)
            views.append(
                StoreOrderView(
                    order_number=full.order_number,
                    buyer_id=order.buyer_id,
                    status=order.status.value,
                    ordered_at=order.ordered_at,
                    items=[i for i in full.items if i.store_id == store_id],
                    store_subtotal=subtotal,
                    store_item_count=len(lines),
                )
            )

        return StoreOrders(
            page=paginate(views, page, limit),
            total_revenue=total_revenue,
            total_items=total_items,
        )
