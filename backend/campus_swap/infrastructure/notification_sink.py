"""SQL Notification Sink — persists notifications into the inbox table.

Invariants:
    - Each notify() runs in its own transaction, never the caller's
    - Payload stored as the JSON shape produced by NotificationPayload.to_data()
    - Errors propagate to the caller; dropping them is the caller's decision
"""

import logging

from campus_swap.core.domain_types import NotificationType, StudentId
from campus_swap.infrastructure.database import DatabaseSessionManager
from campus_swap.models.notification import Notification

logger = logging.getLogger(__name__)


class SqlNotificationSink:
    def __init__(self, manager: DatabaseSessionManager):
        self.manager = manager

    async def notify(
        self,
        recipient_id: StudentId,
        type: NotificationType,
        title: str,
        message: str,
        payload: dict,
    ) -> None:
        async with self.manager.transaction() as db:
            db.add(Notification(
                student_id=recipient_id,
                type=type.value,
                title=title,
                message=message,
                data=payload,
            ))
        logger.debug(
            f"Notification {type.value} stored",
            extra={"student_id": recipient_id, "notification_type": type.value},
        )
