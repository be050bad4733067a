"""Composition root — wires concrete implementations to domain interfaces.

This is the only place in the codebase that knows about *all* layers.
Every other module depends only on abstractions.
"""

from __future__ import annotations

from functools import lru_cache

from marketplace.application.locks import KeyedLock
from marketplace.domain.model.value_objects import Rate
from marketplace.domain.service.ledger_writer import LedgerWriter
from marketplace.infrastructure.config import Settings, get_settings
from marketplace.infrastructure.notifications.log_notifier import LogNotificationService
from marketplace.infrastructure.persistence.json_cart_repository import JsonCartRepository
from marketplace.infrastructure.persistence.json_ledger_repository import (
    JsonPurchaseRepository,
    JsonSaleRepository,
)
from marketplace.infrastructure.persistence.json_order_repository import (
    JsonOrderRepository,
)
from marketplace.infrastructure.persistence.json_product_repository import (
    JsonProductRepository,
)
from marketplace.infrastructure.persistence.json_store_repository import (
    JsonStoreRepository,
)


@lru_cache(maxsize=1)
def settings() -> Settings:
    return get_settings()


@lru_cache(maxsize=1)
def cart_locks() -> KeyedLock:
    return KeyedLock()


@lru_cache(maxsize=1)
def order_locks() -> KeyedLock:
    return KeyedLock()


def product_repository() -> JsonProductRepository:
    return JsonProductRepository(settings().data_dir / "products.json")


def store_repository() -> JsonStoreRepository:
    return JsonStoreRepository(settings().data_dir / "stores.json")


def order_repository() -> JsonOrderRepository:
    return JsonOrderRepository(
        settings().data_dir / "orders.json",
        max_attempts=settings().order_number_attempts,
    )


def purchase_repository() -> JsonPurchaseRepository:
    return JsonPurchaseRepository(settings().data_dir / "purchases.json")


def sale_repository() -> JsonSaleRepository:
    return JsonSaleRepository(settings().data_dir / "sales.json")


def cart_repository() -> JsonCartRepository:
    return JsonCartRepository(settings().data_dir / "carts.json")


def ledger_writer() -> LedgerWriter:
    return LedgerWriter(
        order_repo=order_repository(),
        product_repo=product_repository(),
        store_repo=store_repository(),
        purchase_repo=purchase_repository(),
        sale_repo=sale_repository(),
        notifier=LogNotificationService(),
        commission_rate=Rate(settings().commission_rate),
    )
