"""Application service: Create Order use case.

Normalizes an ``OrderRequest`` into an Order aggregate (all input
validation happens here and in the domain constructors, before any
side effect) and hands it to the Ledger Writer.
"""

from __future__ import annotations

from marketplace.application.dto import OrderDTO, OrderRequest, order_to_dto
from marketplace.domain.exceptions import ProductUnavailable, ValidationError
from marketplace.domain.model.order import Order, OrderLineItem
from marketplace.domain.model.value_objects import (
    Money,
    PaymentMethod,
    PaymentStatus,
    Quantity,
)
from marketplace.domain.repository.product_repository import ProductRepository
from marketplace.domain.service.ledger_writer import LedgerWriter


def build_order(request: OrderRequest, product_repo: ProductRepository) -> Order:
    """Turn a loosely-typed request into a validated Order aggregate.

    Missing store IDs and unit prices are filled from the catalog.
    """
    if not request.items:
        raise ValidationError("Order must contain at least one item")

    line_items: list[OrderLineItem] = []
    for wanted in request.items:
        store_id = wanted.store_id
        unit_price = Money.of(wanted.unit_price) if wanted.unit_price is not None else None
        if store_id is None or unit_price is None:
            product = product_repo.get_by_id(wanted.product_id)
            if product is None:
                raise ProductUnavailable(f"Product {wanted.product_id} is not available")
            store_id = store_id or product.store_id
            unit_price = unit_price or product.price
        line_items.append(
            OrderLineItem(
                product_id=wanted.product_id,
                store_id=store_id,
                quantity=Quantity(wanted.quantity),
                unit_price=unit_price,
            )
        )

    return Order.create(
        buyer_id=request.buyer_id,
        items=line_items,
        shipping_address=request.shipping_address,
        payment_method=PaymentMethod.parse(request.payment_method),
        payment_status=PaymentStatus.parse(request.payment_status),
        shipping_cost=Money.of(request.shipping_cost),
        tax=Money.of(request.tax),
        idempotency_key=request.idempotency_key,
        notes=request.notes,
    )


class CreateOrderHandler:

    def __init__(
        self,
        ledger_writer: LedgerWriter,
        product_repo: ProductRepository,
    ) -> None:
        self._ledger_writer = ledger_writer
        self._product_repo = product_repo

    def handle(self, request: OrderRequest) -> OrderDTO:
        """Create an order with its Purchase and Sale records."""
        order = build_order(request, self._product_repo)
        order = self._ledger_writer.write(order)
        return order_to_dto(order)
