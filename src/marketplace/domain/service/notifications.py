"""Notification port — how the core tells stores about new orders.

Delivery (email, websocket, push) is an external service. The core only
sees this interface, injected into the ledger writer.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from marketplace.domain.model.value_objects import Money


class NotificationService(ABC):

    @abstractmethod
    def notify_store_of_order(
        self, store_owner_id: str, order_number: str, amount: Money
    ) -> None:
        """Tell a store owner they received (part of) an order."""
