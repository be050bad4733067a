"""JSON-file-backed implementations of the Purchase and Sale ledgers."""

from __future__ import annotations

from pathlib import Path

from marketplace.domain.model.purchase import LedgerStatus, Purchase
from marketplace.domain.model.sale import Sale
from marketplace.domain.model.value_objects import PaymentMethod, PaymentStatus
from marketplace.domain.repository.ledger_repository import (
    PurchaseRepository,
    SaleRepository,
)
from marketplace.infrastructure.persistence.codecs import (
    dt_from_raw,
    dt_to_raw,
    money_from_raw,
    money_to_raw,
    rate_from_raw,
)
from marketplace.infrastructure.persistence.json_file import JsonFile


class JsonPurchaseRepository(PurchaseRepository):

    def __init__(self, file_path: Path) -> None:
        self._file = JsonFile(file_path)

    def get_by_id(self, purchase_id: str) -> Purchase | None:
        for raw in self._file.load():
            if raw["id"] == purchase_id:
                return self._to_domain(raw)
        return None

    def list_all(self) -> list[Purchase]:
        return [self._to_domain(raw) for raw in self._file.load()]

    def save(self, purchase: Purchase) -> None:
        self._file.upsert("id", self._to_raw(purchase))

    @staticmethod
    def _to_raw(p: Purchase) -> dict:
        return {
            "id": p.id,
            "order_number": p.order_number,
            "buyer_id": p.buyer_id,
            "product_id": p.product_id,
            "store_id": p.store_id,
            "quantity": p.quantity,
            "unit_price": money_to_raw(p.unit_price),
            "total_amount": money_to_raw(p.total_amount),
            "payment_method": p.payment_method.value,
            "payment_status": p.payment_status.value,
            "status": p.status.value,
            "purchase_date": dt_to_raw(p.purchase_date),
            "notes": p.notes,
        }

    @staticmethod
    def _to_domain(raw: dict) -> Purchase:
        return Purchase(
            id=raw["id"],
            order_number=raw["order_number"],
            buyer_id=raw["buyer_id"],
            product_id=raw["product_id"],
            store_id=raw["store_id"],
            quantity=raw["quantity"],
            unit_price=money_from_raw(raw["unit_price"]),
            total_amount=money_from_raw(raw["total_amount"]),
            payment_method=PaymentMethod(raw["payment_method"]),
            payment_status=PaymentStatus(raw["payment_status"]),
            status=LedgerStatus(raw["status"]),
            purchase_date=dt_from_raw(raw["purchase_date"]),  # type: ignore[arg-type]
            notes=raw.get("notes"),
        )


class JsonSaleRepository(SaleRepository):

    def __init__(self, file_path: Path) -> None:
        self._file = JsonFile(file_path)

    def get_by_id(self, sale_id: str) -> Sale | None:
        for raw in self._file.load():
            if raw["id"] == sale_id:
                return self._to_domain(raw)
        return None

    def list_all(self) -> list[Sale]:
        return [self._to_domain(raw) for raw in self._file.load()]

    def save(self, sale: Sale) -> None:
        self._file.upsert("id", self._to_raw(sale))

    @staticmethod
    def _to_raw(s: Sale) -> dict:
        return {
            "id": s.id,
            "order_number": s.order_number,
            "store_id": s.store_id,
            "seller_id": s.seller_id,
            "buyer_id": s.buyer_id,
            "product_id": s.product_id,
            "quantity": s.quantity,
            "unit_price": money_to_raw(s.unit_price),
            "total_amount": money_to_raw(s.total_amount),
            "commission_rate": str(s.commission_rate.value),
            "platform_commission": money_to_raw(s.platform_commission),
            "net_amount": money_to_raw(s.net_amount),
            "payment_method": s.payment_method.value,
            "payment_status": s.payment_status.value,
            "status": s.status.value,
            "sale_date": dt_to_raw(s.sale_date),
            "notes": s.notes,
            "refund_reason": s.refund_reason,
            "refund_amount": money_to_raw(s.refund_amount),
            "refund_date": dt_to_raw(s.refund_date),
        }

    @staticmethod
    def _to_domain(raw: dict) -> Sale:
        return Sale(
            id=raw["id"],
            order_number=raw["order_number"],
            store_id=raw["store_id"],
            seller_id=raw["seller_id"],
            buyer_id=raw["buyer_id"],
            product_id=raw["product_id"],
            quantity=raw["quantity"],
            unit_price=money_from_raw(raw["unit_price"]),
            total_amount=money_from_raw(raw["total_amount"]),
            commission_rate=rate_from_raw(raw["commission_rate"]),
            platform_commission=money_from_raw(raw["platform_commission"]),
            net_amount=money_from_raw(raw["net_amount"]),
            payment_method=PaymentMethod(raw["payment_method"]),
            payment_status=PaymentStatus(raw["payment_status"]),
            status=LedgerStatus(raw["status"]),
            sale_date=dt_from_raw(raw["sale_date"]),  # type: ignore[arg-type]
            notes=raw.get("notes"),
            refund_reason=raw.get("refund_reason"),
            refund_amount=money_from_raw(raw["refund_amount"]),
            refund_date=dt_from_raw(raw.get("refund_date")),
        )
