"""CLI commands for the catalog (products and stores)."""

from __future__ import annotations

import click

from marketplace.application.add_product import AddProductHandler
from marketplace.application.add_store import AddStoreHandler
from marketplace.application.set_stock import SetStockHandler
from marketplace.application.update_product import UpdateProductHandler
from marketplace.domain.exceptions import DomainException
from marketplace.infrastructure.bootstrap import product_repository, store_repository
from marketplace.infrastructure.cli.errors import to_click


@click.command("add")
@click.option("--name", required=True, help="Product name.")
@click.option("--price", required=True, help="Price (e.g. 15.00).")
@click.option("--store", "store_id", required=True, help="Owning store ID.")
@click.option("--stock", default=0, type=int, show_default=True, help="Units in stock.")
@click.option("--category", default=None, help="Catalog category.")
def product_add(name: str, price: str, store_id: str, stock: int, category: str | None) -> None:
    """Add a new product to a store's catalog."""
    handler = AddProductHandler(product_repo=product_repository(), store_repo=store_repository())

    try:
        product = handler.handle(
            name=name, price=price, store_id=store_id, stock=stock, category=category
        )
    except DomainException as exc:
        raise to_click(exc)

    click.echo(f"Product #{product.id} '{product.name}' added at {product.price}")


@click.command("list")
def product_list() -> None:
    """List all products in the catalog."""
    repo = product_repository()
    products = repo.list_all()

    if not products:
        click.echo("No products found.")
        return

    click.echo(f"{'ID':<6} {'Name':<20} {'Store':<6} {'Price':>10} {'Stock':>7} {'Sold':>6} {'Active':>7}")
    click.echo("-" * 68)
    for p in products:
        click.echo(
            f"{p.id:<6} {p.name:<20} {p.store_id:<6} {str(p.price):>10} "
            f"{p.stock:>7} {p.sales_count:>6} {'yes' if p.is_active else 'no':>7}"
        )


@click.command("update")
@click.option("--id", "product_id", required=True, help="Product ID.")
@click.option("--price", default=None, help="New price (e.g. 29.99).")
@click.option("--active/--inactive", default=None, help="Enable or disable the product.")
def product_update(product_id: str, price: str | None, active: bool | None) -> None:
    """Update a product's price or activity flag."""
    if price is None and active is None:
        raise click.UsageError("Nothing to update: pass --price and/or --active/--inactive")

    handler = UpdateProductHandler(product_repo=product_repository())

    try:
        handler.handle(product_id=product_id, new_price=price, active=active)
    except DomainException as exc:
        raise to_click(exc)

    click.echo(f"Product #{product_id} updated.")


@click.command("stock")
@click.option("--id", "product_id", required=True, help="Product ID.")
@click.option("--quantity", required=True, type=int, help="Units in stock.")
def product_stock(product_id: str, quantity: int) -> None:
    """Set the stock level for a product."""
    handler = SetStockHandler(product_repo=product_repository())

    try:
        handler.handle(product_id=product_id, quantity=quantity)
    except DomainException as exc:
        raise to_click(exc)

    click.echo(f"Stock for product #{product_id} set to {quantity}")


@click.command("add")
@click.option("--name", required=True, help="Store name.")
@click.option("--owner", "owner_id", required=True, help="Owner user ID.")
def store_add(name: str, owner_id: str) -> None:
    """Register a store."""
    handler = AddStoreHandler(store_repo=store_repository())

    try:
        store = handler.handle(name=name, owner_id=owner_id)
    except DomainException as exc:
        raise to_click(exc)

    click.echo(f"Store #{store.id} '{store.name}' added for owner {store.owner_id}")


@click.command("list")
def store_list() -> None:
    """List all stores."""
    stores = store_repository().list_all()
    if not stores:
        click.echo("No stores found.")
        return

    click.echo(f"{'ID':<6} {'Name':<24} {'Owner':<12}")
    click.echo("-" * 44)
    for s in stores:
        click.echo(f"{s.id:<6} {s.name:<24} {s.owner_id:<12}")
