"""CLI commands for the Order aggregate."""

from __future__ import annotations

import click

from marketplace.application.create_order import CreateOrderHandler
from marketplace.application.dto import OrderDTO, OrderItemSpec, OrderRequest
from marketplace.application.refund_order_line import RefundOrderLineHandler
from marketplace.application.settlement import OrderHistoryQuery
from marketplace.application.show_order import ShowOrderHandler
from marketplace.application.update_order_status import UpdateOrderStatusHandler
from marketplace.domain.exceptions import DomainException
from marketplace.domain.model.order import OrderStatus
from marketplace.domain.model.value_objects import PaymentMethod, ShippingAddress
from marketplace.infrastructure.bootstrap import (
    ledger_writer,
    order_locks,
    order_repository,
    product_repository,
    purchase_repository,
    sale_repository,
)
from marketplace.infrastructure.cli.errors import to_click

PAYMENT_METHODS = click.Choice([m.value for m in PaymentMethod])


def shipping_options(func):
    """Shared shipping/payment options for order-creating commands."""
    options = [
        click.option("--country", required=True, help="Shipping country."),
        click.option("--province", default="", help="Province."),
        click.option("--canton", default="", help="Canton."),
        click.option("--district", default="", help="District."),
        click.option("--mailbox", default="", help="Mailbox number."),
        click.option("--postal-code", default="", help="Postal code."),
        click.option("--payment", "payment_method", required=True, type=PAYMENT_METHODS),
        click.option("--payment-status", default="pending", show_default=True),
        click.option("--shipping-cost", default="0", show_default=True),
        click.option("--tax", default="0", show_default=True),
        click.option("--idempotency-key", default=None, help="Replay-safe request key."),
    ]
    for option in reversed(options):
        func = option(func)
    return func


def address_from(**kwargs) -> ShippingAddress:
    return ShippingAddress(
        country=kwargs["country"],
        province=kwargs["province"],
        canton=kwargs["canton"],
        district=kwargs["district"],
        mailbox=kwargs["mailbox"],
        postal_code=kwargs["postal_code"],
    )


def _parse_items(raw: str) -> list[OrderItemSpec]:
    """Parse 'ProductId:Qty[:Price],...' into OrderItemSpec list."""
    items: list[OrderItemSpec] = []
    for pair in raw.split(","):
        parts = [p.strip() for p in pair.strip().split(":")]
        if len(parts) not in (2, 3):
            raise click.BadParameter(
                f"Invalid item format '{pair}'. Expected 'ProductId:Quantity[:Price]'."
            )
        try:
            qty = int(parts[1])
        except ValueError:
            raise click.BadParameter(
                f"Invalid quantity '{parts[1]}' for product '{parts[0]}'."
            )
        price = parts[2] if len(parts) == 3 else None
        items.append(OrderItemSpec(product_id=parts[0], quantity=qty, unit_price=price))
    return items


def display_order(dto: OrderDTO) -> None:
    """Shared formatting for displaying an order."""
    click.echo(f"Order {dto.order_number}  (status={dto.status})")
    click.echo(f"Buyer:    {dto.buyer_id}")
    click.echo(f"Ordered:  {dto.ordered_at}")
    click.echo(f"Payment:  {dto.payment_method} ({dto.payment_status})")
    if dto.shipped_date:
        click.echo(f"Shipped:  {dto.shipped_date}  {dto.carrier or ''} {dto.tracking_number or ''}")
    if dto.delivered_date:
        click.echo(f"Delivered: {dto.delivered_date}")
    if dto.cancelled_date:
        click.echo(f"Cancelled: {dto.cancelled_date}  ({dto.cancel_reason or 'no reason given'})")
    click.echo()

    click.echo(f"  {'Product':<10} {'Store':<8} {'Qty':>5} {'Price':>10} {'Total':>10}")
    click.echo(f"  {'-'*47}")
    for item in dto.items:
        click.echo(
            f"  {item.product_id:<10} {item.store_id:<8} {item.quantity:>5} "
            f"{item.unit_price:>10} {item.line_total:>10}"
        )
    click.echo(f"  {'-'*47}")
    click.echo(f"  {'Subtotal':<27} {dto.subtotal:>20}")
    click.echo(f"  {'Shipping':<27} {dto.shipping_cost:>20}")
    click.echo(f"  {'Tax':<27} {dto.tax:>20}")
    click.echo(f"  {'Order Total':<27} {dto.total:>20}")


@click.command("create")
@click.option("--buyer", required=True, help="Buyer ID.")
@click.option("--items", required=True, help="Items as 'ProductId:Qty[:Price],...'.")
@shipping_options
def order_create(buyer: str, items: str, **kwargs) -> None:
    """Create an order directly, without a cart."""
    lines = _parse_items(items)

    handler = CreateOrderHandler(
        ledger_writer=ledger_writer(),
        product_repo=product_repository(),
    )

    try:
        request = OrderRequest(
            buyer_id=buyer,
            items=tuple(lines),
            shipping_address=address_from(**kwargs),
            payment_method=kwargs["payment_method"],
            payment_status=kwargs["payment_status"],
            shipping_cost=kwargs["shipping_cost"],
            tax=kwargs["tax"],
            idempotency_key=kwargs["idempotency_key"],
        )
        dto = handler.handle(request)
    except DomainException as exc:
        raise to_click(exc)

    display_order(dto)


@click.command("show")
@click.option("--id", "order_number", required=True, help="Order number to display.")
def order_show(order_number: str) -> None:
    """Show details of an existing order."""
    handler = ShowOrderHandler(order_repo=order_repository())

    try:
        dto = handler.handle(order_number)
    except DomainException as exc:
        raise to_click(exc)

    display_order(dto)


@click.command("list")
@click.option("--buyer", required=True, help="Buyer ID.")
@click.option("--status", default=None, type=click.Choice([s.value for s in OrderStatus]))
@click.option("--page", default=1, type=int, show_default=True)
@click.option("--limit", default=10, type=int, show_default=True)
def order_list(buyer: str, status: str | None, page: int, limit: int) -> None:
    """List a buyer's orders, newest first."""
    query = OrderHistoryQuery(order_repo=order_repository())

    try:
        result = query.handle(buyer, page=page, limit=limit, status=status)
    except DomainException as exc:
        raise to_click(exc)

    if not result.items:
        click.echo("No orders found.")
        return
    for dto in result.items:
        click.echo(f"{dto.order_number:<24} {dto.status:<11} {dto.ordered_at:<18} {dto.total:>12}")
    click.echo(f"Page {result.page}/{result.total_pages} ({result.total} orders)")


@click.command("status")
@click.option("--id", "order_number", required=True, help="Order number.")
@click.option("--to", "status", required=True, help="Target status.")
@click.option("--actor", default=None, help="Who is making the change.")
@click.option("--reason", default=None, help="Cancellation reason.")
@click.option("--tracking-number", default=None)
@click.option("--carrier", default=None)
def order_status(
    order_number: str,
    status: str,
    actor: str | None,
    reason: str | None,
    tracking_number: str | None,
    carrier: str | None,
) -> None:
    """Move an order to a new status (cancelling restores stock)."""
    handler = UpdateOrderStatusHandler(
        order_repo=order_repository(),
        product_repo=product_repository(),
        purchase_repo=purchase_repository(),
        sale_repo=sale_repository(),
        locks=order_locks(),
    )

    try:
        dto = handler.handle(
            order_number,
            status,
            actor_id=actor,
            reason=reason,
            tracking_number=tracking_number,
            carrier=carrier,
        )
    except DomainException as exc:
        raise to_click(exc)

    click.echo(f"Order {dto.order_number} is now {dto.status}.")


@click.command("refund")
@click.option("--id", "order_number", required=True, help="Order number.")
@click.option("--product", "product_id", required=True, help="Product ID of the line.")
@click.option("--reason", default=None)
@click.option("--amount", default=None, help="Refund amount (defaults to line total).")
def order_refund(
    order_number: str, product_id: str, reason: str | None, amount: str | None
) -> None:
    """Refund one line of an order."""
    handler = RefundOrderLineHandler(
        order_repo=order_repository(),
        purchase_repo=purchase_repository(),
        sale_repo=sale_repository(),
        locks=order_locks(),
    )

    try:
        handler.handle(order_number, product_id, reason=reason, amount=amount)
    except DomainException as exc:
        raise to_click(exc)

    click.echo(f"Refunded product {product_id} on order {order_number}.")
