import click

from marketplace.infrastructure.bootstrap import settings
from marketplace.infrastructure.cli.cart_commands import (
    cart_add,
    cart_checkout,
    cart_clear,
    cart_remove,
    cart_show,
    cart_update,
)
from marketplace.infrastructure.cli.ledger_commands import (
    purchase_list,
    purchase_show,
    purchase_stats,
    reconcile,
    sale_list,
    sale_show,
    sale_stats,
    sale_store_orders,
)
from marketplace.infrastructure.cli.order_commands import (
    order_create,
    order_list,
    order_refund,
    order_show,
    order_status,
)
from marketplace.infrastructure.cli.product_commands import (
    product_add,
    product_list,
    product_stock,
    product_update,
    store_add,
    store_list,
)
from marketplace.infrastructure.logging import configure_logging


@click.group()
def cli() -> None:
    """Marketplace: multi-store orders and settlement"""
    configure_logging(settings())


@cli.group()
def product() -> None:
    """Manage products."""


@cli.group()
def store() -> None:
    """Manage stores."""


@cli.group()
def cart() -> None:
    """Manage a buyer's cart."""


@cli.group()
def order() -> None:
    """Manage orders."""


@cli.group()
def purchase() -> None:
    """Buyer-side ledger."""


@cli.group()
def sale() -> None:
    """Seller-side ledger."""


# Register subcommands
product.add_command(product_add)
product.add_command(product_list)
product.add_command(product_update)
product.add_command(product_stock)
store.add_command(store_add)
store.add_command(store_list)
cart.add_command(cart_add)
cart.add_command(cart_update)
cart.add_command(cart_remove)
cart.add_command(cart_clear)
cart.add_command(cart_show)
cart.add_command(cart_checkout)
order.add_command(order_create)
order.add_command(order_show)
order.add_command(order_list)
order.add_command(order_status)
order.add_command(order_refund)
purchase.add_command(purchase_list)
purchase.add_command(purchase_show)
purchase.add_command(purchase_stats)
sale.add_command(sale_list)
sale.add_command(sale_show)
sale.add_command(sale_stats)
sale.add_command(sale_store_orders)
cli.add_command(reconcile)
