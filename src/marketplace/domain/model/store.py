"""Store aggregate — an independent seller on the marketplace."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass
class Store:
    id: str
    owner_id: str
    name: str
