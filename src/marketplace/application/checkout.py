"""Application service: Checkout use case (cart-driven order creation).

Reads the buyer's cart, builds one order spanning every store in it,
writes it through the Ledger Writer, and clears the cart only after
the write succeeded. The whole sequence holds the buyer's cart lock.
"""

from __future__ import annotations

from marketplace.application.dto import OrderDTO, order_to_dto
from marketplace.application.locks import KeyedLock
from marketplace.domain.exceptions import ProductUnavailable, ValidationError
from marketplace.domain.model.order import Order, OrderLineItem
from marketplace.domain.model.value_objects import (
    Money,
    PaymentMethod,
    PaymentStatus,
    Quantity,
    ShippingAddress,
)
from marketplace.domain.repository.cart_repository import CartRepository
from marketplace.domain.repository.order_repository import OrderRepository
from marketplace.domain.repository.product_repository import ProductRepository
from marketplace.domain.service.ledger_writer import LedgerWriter


class CheckoutHandler:

    def __init__(
        self,
        cart_repo: CartRepository,
        product_repo: ProductRepository,
        order_repo: OrderRepository,
        ledger_writer: LedgerWriter,
        locks: KeyedLock,
    ) -> None:
        self._cart_repo = cart_repo
        self._product_repo = product_repo
        self._order_repo = order_repo
        self._ledger_writer = ledger_writer
        self._locks = locks

    def handle(
        self,
        buyer_id: str,
        shipping_address: ShippingAddress | None,
        payment_method: str,
        payment_status: str = "pending",
        shipping_cost: str = "0",
        tax: str = "0",
        idempotency_key: str | None = None,
    ) -> list[OrderDTO]:
        """Check out the buyer's cart.

        Returns a one-element list: a checkout always produces a single
        order, even when the cart spans several stores.
        """
        if shipping_address is None:
            raise ValidationError("Shipping address is required")

        with self._locks.hold(buyer_id):
            if idempotency_key:
                existing = self._order_repo.get_by_idempotency_key(idempotency_key)
                if existing is not None:
                    return [order_to_dto(existing)]

            cart = self._cart_repo.get_by_buyer(buyer_id)
            if cart is None or cart.is_empty:
                raise ValidationError("Cart is empty")

            line_items: list[OrderLineItem] = []
            for item in cart.items:
                product = self._product_repo.get_by_id(item.product_id)
                if product is None:
                    raise ProductUnavailable(
                        f"Product {item.product_id} is no longer available"
                    )
                line_items.append(
                    OrderLineItem(
                        product_id=item.product_id,
                        store_id=product.store_id,
                        quantity=Quantity(item.quantity),
                        unit_price=item.price,
                    )
                )

            order = Order.create(
                buyer_id=buyer_id,
                items=line_items,
                shipping_address=shipping_address,
                payment_method=PaymentMethod.parse(payment_method),
                payment_status=PaymentStatus.parse(payment_status),
                shipping_cost=Money.of(shipping_cost),
                tax=Money.of(tax),
                idempotency_key=idempotency_key,
            )
            order = self._ledger_writer.write(order)

            cart.clear()
            self._cart_repo.save(cart)

        return [order_to_dto(order)]
