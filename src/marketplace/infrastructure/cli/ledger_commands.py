"""CLI commands for the purchase and sale ledgers."""

from __future__ import annotations

from datetime import datetime

import click

from marketplace.application.reconcile_orders import ReconcileOrdersHandler
from marketplace.application.settlement import (
    MonthlyPoint,
    PurchaseDetailsQuery,
    PurchaseHistoryQuery,
    PurchaseStatsQuery,
    SaleDetailsQuery,
    SalesHistoryQuery,
    SalesStatsQuery,
    StoreOrdersQuery,
)
from marketplace.domain.exceptions import DomainException
from marketplace.domain.model.purchase import LedgerStatus
from marketplace.infrastructure.bootstrap import (
    order_repository,
    product_repository,
    purchase_repository,
    sale_repository,
    store_repository,
)
from marketplace.infrastructure.cli.errors import to_click

LEDGER_STATUSES = click.Choice([s.value for s in LedgerStatus])


def _display_monthly(points: list[MonthlyPoint]) -> None:
    if not points:
        return
    click.echo("Monthly:")
    for point in points:
        line = f"  {point.year}-{point.month:02d}  {point.count:>4}  {str(point.amount):>12}"
        if point.net_amount is not None:
            line += f"  net {point.net_amount}"
        click.echo(line)


@click.command("list")
@click.option("--buyer", required=True, help="Buyer ID.")
@click.option("--status", default=None, type=LEDGER_STATUSES)
@click.option("--page", default=1, type=int, show_default=True)
@click.option("--limit", default=10, type=int, show_default=True)
def purchase_list(buyer: str, status: str | None, page: int, limit: int) -> None:
    """List a buyer's purchases, newest first."""
    query = PurchaseHistoryQuery(
        purchase_repo=purchase_repository(),
        product_repo=product_repository(),
        store_repo=store_repository(),
    )

    try:
        result = query.handle(buyer, page=page, limit=limit, status=status)
    except DomainException as exc:
        raise to_click(exc)

    if not result.items:
        click.echo("No purchases found.")
        return
    for view in result.items:
        p = view.purchase
        click.echo(
            f"{p.id:<28} {view.product_name or p.product_id:<20} "
            f"{view.store_name or p.store_id:<16} {p.quantity:>4} "
            f"{str(p.total_amount):>12} {p.status.value}"
        )
    click.echo(f"Page {result.page}/{result.total_pages} ({result.total} purchases)")


@click.command("show")
@click.option("--id", "purchase_id", required=True, help="Purchase ID.")
@click.option("--buyer", required=True, help="Buyer ID.")
def purchase_show(purchase_id: str, buyer: str) -> None:
    """Show one of a buyer's purchases."""
    query = PurchaseDetailsQuery(
        purchase_repo=purchase_repository(),
        product_repo=product_repository(),
        store_repo=store_repository(),
    )

    try:
        view = query.handle(purchase_id, buyer)
    except DomainException as exc:
        raise to_click(exc)

    p = view.purchase
    click.echo(f"Purchase {p.id}  (status={p.status.value})")
    click.echo(f"Order:    {p.order_number}")
    click.echo(f"Product:  {view.product_name or p.product_id}")
    click.echo(f"Store:    {view.store_name or p.store_id}")
    click.echo(f"Quantity: {p.quantity} x {p.unit_price} = {p.total_amount}")
    click.echo(f"Payment:  {p.payment_method.value} ({p.payment_status.value})")
    click.echo(f"Date:     {p.purchase_date:%Y-%m-%d %H:%M}")
    if p.notes:
        click.echo(f"Notes:    {p.notes}")


@click.command("stats")
@click.option("--buyer", required=True, help="Buyer ID.")
def purchase_stats(buyer: str) -> None:
    """Show a buyer's spending summary."""
    stats = PurchaseStatsQuery(purchase_repo=purchase_repository()).handle(buyer)

    g = stats.general
    click.echo(f"Purchases: {g.count}  Items: {g.quantity}")
    click.echo(f"Spent:     {g.amount}  (avg {g.average})")
    for status, count in sorted(stats.by_status.items()):
        click.echo(f"  {status:<10} {count:>4}")
    _display_monthly(stats.monthly)


@click.command("list")
@click.option("--seller", required=True, help="Seller (store owner) ID.")
@click.option("--store", "store_id", default=None, help="Restrict to one store.")
@click.option("--status", default=None, type=LEDGER_STATUSES)
@click.option("--page", default=1, type=int, show_default=True)
@click.option("--limit", default=10, type=int, show_default=True)
def sale_list(
    seller: str, store_id: str | None, status: str | None, page: int, limit: int
) -> None:
    """List a seller's sales, newest first."""
    query = SalesHistoryQuery(
        sale_repo=sale_repository(),
        product_repo=product_repository(),
        store_repo=store_repository(),
    )

    try:
        result = query.handle(seller, page=page, limit=limit, status=status, store_id=store_id)
    except DomainException as exc:
        raise to_click(exc)

    if not result.items:
        click.echo("No sales found.")
        return
    for view in result.items:
        s = view.sale
        click.echo(
            f"{s.id:<28} {view.product_name or s.product_id:<20} {s.quantity:>4} "
            f"{str(s.total_amount):>12} {str(s.platform_commission):>10} "
            f"{str(s.net_amount):>12} {s.status.value}"
        )
    click.echo(f"Page {result.page}/{result.total_pages} ({result.total} sales)")


@click.command("show")
@click.option("--id", "sale_id", required=True, help="Sale ID.")
@click.option("--seller", required=True, help="Seller (store owner) ID.")
def sale_show(sale_id: str, seller: str) -> None:
    """Show one of a seller's sales with its commission split."""
    query = SaleDetailsQuery(
        sale_repo=sale_repository(),
        product_repo=product_repository(),
        store_repo=store_repository(),
    )

    try:
        view = query.handle(sale_id, seller)
    except DomainException as exc:
        raise to_click(exc)

    s = view.sale
    click.echo(f"Sale {s.id}  (status={s.status.value})")
    click.echo(f"Order:      {s.order_number}  buyer {s.buyer_id}")
    click.echo(f"Product:    {view.product_name or s.product_id}")
    click.echo(f"Store:      {view.store_name or s.store_id}")
    click.echo(f"Quantity:   {s.quantity} x {s.unit_price} = {s.total_amount}")
    click.echo(f"Commission: {s.platform_commission} ({s.commission_rate})")
    click.echo(f"Net:        {s.net_amount}")
    click.echo(f"Date:       {s.sale_date:%Y-%m-%d %H:%M}")
    if s.refund_date:
        reason = s.refund_reason or "no reason given"
        click.echo(f"Refunded:   {s.refund_amount} on {s.refund_date:%Y-%m-%d} ({reason})")


@click.command("stats")
@click.option("--seller", required=True, help="Seller (store owner) ID.")
def sale_stats(seller: str) -> None:
    """Show a seller's revenue, commission and top products."""
    stats = SalesStatsQuery(
        sale_repo=sale_repository(),
        product_repo=product_repository(),
    ).handle(seller)

    g = stats.general
    click.echo(f"Sales: {g.count}  Items: {g.quantity}")
    click.echo(f"Revenue:    {g.revenue}  (avg {g.average})")
    click.echo(f"Commission: {g.commission}")
    click.echo(f"Net:        {g.net_revenue}")
    for status, bucket in sorted(stats.by_status.items()):
        click.echo(f"  {status:<10} {bucket.count:>4} {str(bucket.revenue):>12}")
    _display_monthly(stats.monthly)
    if stats.top_products:
        click.echo("Top products:")
        for rollup in stats.top_products:
            click.echo(f"  {rollup.product_name:<20} {rollup.quantity:>5} {str(rollup.revenue):>12}")
    if stats.by_category:
        click.echo("By category:")
        for rollup in stats.by_category:
            click.echo(
                f"  {rollup.category or '(none)':<20} {rollup.quantity:>5} {str(rollup.revenue):>12}"
            )


@click.command("store-orders")
@click.option("--store", "store_id", required=True, help="Store ID.")
@click.option("--status", default=None, help="Order status filter.")
@click.option("--start", default=None, type=click.DateTime(), help="Ordered on or after.")
@click.option("--end", default=None, type=click.DateTime(), help="Ordered on or before.")
@click.option("--page", default=1, type=int, show_default=True)
@click.option("--limit", default=10, type=int, show_default=True)
def sale_store_orders(
    store_id: str,
    status: str | None,
    start: datetime | None,
    end: datetime | None,
    page: int,
    limit: int,
) -> None:
    """List orders containing a store's products."""
    query = StoreOrdersQuery(order_repo=order_repository())

    try:
        result = query.handle(
            store_id,
            page=page,
            limit=limit,
            status=status,
            start=start.astimezone() if start else None,
            end=end.astimezone() if end else None,
        )
    except DomainException as exc:
        raise to_click(exc)

    if not result.page.items:
        click.echo("No orders found.")
        return
    for view in result.page.items:
        click.echo(
            f"{view.order_number:<24} {view.buyer_id:<12} {view.status:<11} "
            f"{view.store_item_count:>4} {str(view.store_subtotal):>12}"
        )
    click.echo(
        f"Page {result.page.page}/{result.page.total_pages} "
        f"({result.page.total} orders, {result.total_items} lines, {result.total_revenue})"
    )


@click.command("reconcile")
def reconcile() -> None:
    """Report orders whose ledger rows do not match their lines."""
    handler = ReconcileOrdersHandler(
        order_repo=order_repository(),
        purchase_repo=purchase_repository(),
        sale_repo=sale_repository(),
    )
    issues = handler.handle()

    if not issues:
        click.echo("All orders reconciled.")
        return
    for issue in issues:
        flag = " flagged" if issue.flagged else ""
        click.echo(
            f"{issue.order_number:<24} {issue.status:<11} lines={issue.line_count} "
            f"purchases={issue.purchase_count} sales={issue.sale_count}{flag}"
        )
