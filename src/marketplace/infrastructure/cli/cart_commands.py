"""CLI commands for the buyer's cart and checkout."""

from __future__ import annotations

import click

from marketplace.application.cart_service import CartService
from marketplace.application.checkout import CheckoutHandler
from marketplace.application.dto import CartDTO
from marketplace.domain.exceptions import DomainException
from marketplace.infrastructure.bootstrap import (
    cart_locks,
    cart_repository,
    ledger_writer,
    order_repository,
    product_repository,
)
from marketplace.infrastructure.cli.errors import to_click
from marketplace.infrastructure.cli.order_commands import (
    address_from,
    display_order,
    shipping_options,
)


def _service() -> CartService:
    return CartService(
        cart_repo=cart_repository(),
        product_repo=product_repository(),
        locks=cart_locks(),
    )


def _display_cart(dto: CartDTO) -> None:
    if not dto.items:
        click.echo(f"Cart for {dto.buyer_id} is empty.")
        return
    click.echo(f"Cart for {dto.buyer_id}")
    click.echo(f"  {'Product':<10} {'Qty':>5} {'Price':>10} {'Total':>10}")
    click.echo(f"  {'-'*38}")
    for item in dto.items:
        click.echo(f"  {item.product_id:<10} {item.quantity:>5} {item.price:>10} {item.line_total:>10}")
    click.echo(f"  {'-'*38}")
    click.echo(f"  {'Items':<10} {dto.total_items:>5} {'':>10} {dto.total_amount:>10}")


@click.command("add")
@click.option("--buyer", required=True, help="Buyer ID.")
@click.option("--product", "product_id", required=True, help="Product ID.")
@click.option("--quantity", default=1, type=int, show_default=True)
def cart_add(buyer: str, product_id: str, quantity: int) -> None:
    """Add a product to the cart."""
    try:
        dto = _service().add_item(buyer, product_id, quantity)
    except DomainException as exc:
        raise to_click(exc)
    _display_cart(dto)


@click.command("update")
@click.option("--buyer", required=True, help="Buyer ID.")
@click.option("--product", "product_id", required=True, help="Product ID.")
@click.option("--quantity", required=True, type=int, help="New quantity; 0 removes.")
def cart_update(buyer: str, product_id: str, quantity: int) -> None:
    """Change the quantity of a cart line."""
    try:
        dto = _service().update_quantity(buyer, product_id, quantity)
    except DomainException as exc:
        raise to_click(exc)
    _display_cart(dto)


@click.command("remove")
@click.option("--buyer", required=True, help="Buyer ID.")
@click.option("--product", "product_id", required=True, help="Product ID.")
def cart_remove(buyer: str, product_id: str) -> None:
    """Remove a product from the cart."""
    _display_cart(_service().remove_item(buyer, product_id))


@click.command("clear")
@click.option("--buyer", required=True, help="Buyer ID.")
def cart_clear(buyer: str) -> None:
    """Empty the cart."""
    _display_cart(_service().clear(buyer))


@click.command("show")
@click.option("--buyer", required=True, help="Buyer ID.")
@click.option("--by-store", is_flag=True, default=False, help="Group lines by store.")
def cart_show(buyer: str, by_store: bool) -> None:
    """Show the cart."""
    service = _service()
    if not by_store:
        _display_cart(service.get_cart(buyer))
        return

    groups = service.group_by_store(buyer)
    if not groups:
        click.echo(f"Cart for {buyer} is empty.")
        return
    for group in groups:
        click.echo(f"Store {group.store_id}: {len(group.items)} line(s), subtotal {group.subtotal}")
        for item in group.items:
            click.echo(f"  {item.product_id:<10} {item.quantity:>5} {str(item.price):>10}")


@click.command("checkout")
@click.option("--buyer", required=True, help="Buyer ID.")
@shipping_options
def cart_checkout(buyer: str, **kwargs) -> None:
    """Turn the cart into an order."""
    handler = CheckoutHandler(
        cart_repo=cart_repository(),
        product_repo=product_repository(),
        order_repo=order_repository(),
        ledger_writer=ledger_writer(),
        locks=cart_locks(),
    )

    try:
        orders = handler.handle(
            buyer,
            shipping_address=address_from(**kwargs),
            payment_method=kwargs["payment_method"],
            payment_status=kwargs["payment_status"],
            shipping_cost=kwargs["shipping_cost"],
            tax=kwargs["tax"],
            idempotency_key=kwargs["idempotency_key"],
        )
    except DomainException as exc:
        raise to_click(exc)

    for dto in orders:
        display_order(dto)
