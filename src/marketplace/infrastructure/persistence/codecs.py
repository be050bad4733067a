"""Helpers for turning value objects into JSON-safe values and back."""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal

from marketplace.domain.model.value_objects import Money, Rate


def money_to_raw(money: Money) -> dict:
    return {"amount": str(money.amount), "currency": money.currency}


def money_from_raw(raw: dict) -> Money:
    return Money(Decimal(raw["amount"]), raw.get("currency", "USD"))


def rate_from_raw(raw: str) -> Rate:
    return Rate(Decimal(raw))


def dt_to_raw(value: datetime | None) -> str | None:
    return value.isoformat() if value is not None else None


def dt_from_raw(raw: str | None) -> datetime | None:
    return datetime.fromisoformat(raw) if raw else None
