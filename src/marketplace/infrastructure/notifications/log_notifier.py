"""Notification adapter that records store notices in the log.

Stands in for the real delivery service when running the CLI locally.
"""

from __future__ import annotations

import structlog

from marketplace.domain.model.value_objects import Money
from marketplace.domain.service.notifications import NotificationService

logger = structlog.get_logger(__name__)


class LogNotificationService(NotificationService):

    def notify_store_of_order(
        self, store_owner_id: str, order_number: str, amount: Money
    ) -> None:
        logger.info(
            "store_order_received",
            store_owner_id=store_owner_id,
            order_number=order_number,
            amount=str(amount.amount),
            currency=amount.currency,
        )
