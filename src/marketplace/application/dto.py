"""Data Transfer Objects — plain containers that cross layer boundaries.

DTOs carry data between the CLI and application layers without
exposing domain internals to the outside world. Inputs arrive as loose
strings and ints; ``OrderRequest`` is the one typed shape the order
use cases accept.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from marketplace.domain.model.cart import Cart
from marketplace.domain.model.order import Order
from marketplace.domain.model.value_objects import ShippingAddress

_TIMESTAMP = "%Y-%m-%d %H:%M UTC"


@dataclass(frozen=True)
class OrderItemSpec:
    """Input: one requested line (product, store, quantity, unit price).

    ``unit_price`` may be omitted, in which case the catalog's current
    price is used.
    """

    product_id: str
    quantity: int
    store_id: str | None = None
    unit_price: str | None = None


@dataclass(frozen=True)
class OrderRequest:
    """Input: everything needed to create one order."""

    buyer_id: str
    items: tuple[OrderItemSpec, ...]
    shipping_address: ShippingAddress
    payment_method: str
    payment_status: str = "pending"
    shipping_cost: str = "0"
    tax: str = "0"
    idempotency_key: str | None = None
    notes: str | None = None


@dataclass(frozen=True)
class OrderLineItemDTO:
    """Output: a single line item as displayed to the user."""

    product_id: str
    store_id: str
    quantity: int
    unit_price: str  # formatted, e.g. "$15.00"
    line_total: str


@dataclass(frozen=True)
class OrderDTO:
    """Output: a complete order as displayed to the user."""

    order_number: str
    buyer_id: str
    status: str
    payment_method: str
    payment_status: str
    items: list[OrderLineItemDTO]
    subtotal: str
    shipping_cost: str
    tax: str
    total: str
    ordered_at: str
    shipped_date: str | None = None
    delivered_date: str | None = None
    cancelled_date: str | None = None
    cancel_reason: str | None = None
    tracking_number: str | None = None
    carrier: str | None = None


@dataclass(frozen=True)
class CartLineDTO:
    product_id: str
    quantity: int
    price: str
    line_total: str


@dataclass(frozen=True)
class CartDTO:
    buyer_id: str
    items: list[CartLineDTO] = field(default_factory=list)
    total_amount: str = "$0.00"
    total_items: int = 0


def order_to_dto(order: Order) -> OrderDTO:
    return OrderDTO(
        order_number=order.order_number,  # type: ignore[arg-type]
        buyer_id=order.buyer_id,
        status=order.status.value,
        payment_method=order.payment_method.value,
        payment_status=order.payment_status.value,
        items=[
            OrderLineItemDTO(
                product_id=item.product_id,
                store_id=item.store_id,
                quantity=item.quantity.value,
                unit_price=str(item.unit_price),
                line_total=str(item.total),
            )
            for item in order.items
        ],
        subtotal=str(order.subtotal),
        shipping_cost=str(order.shipping_cost),
        tax=str(order.tax),
        total=str(order.total),
        ordered_at=order.ordered_at.strftime(_TIMESTAMP),
        shipped_date=order.shipped_date.strftime(_TIMESTAMP) if order.shipped_date else None,
        delivered_date=(
            order.delivered_date.strftime(_TIMESTAMP) if order.delivered_date else None
        ),
        cancelled_date=(
            order.cancelled_date.strftime(_TIMESTAMP) if order.cancelled_date else None
        ),
        cancel_reason=order.cancel_reason,
        tracking_number=order.tracking_number,
        carrier=order.carrier,
    )


def cart_to_dto(cart: Cart) -> CartDTO:
    return CartDTO(
        buyer_id=cart.buyer_id,
        items=[
            CartLineDTO(
                product_id=item.product_id,
                quantity=item.quantity,
                price=str(item.price),
                line_total=str(item.total),
            )
            for item in cart.items
        ],
        total_amount=str(cart.total_amount),
        total_items=cart.total_items,
    )
