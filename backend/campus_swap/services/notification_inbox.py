"""Notification Inbox — read side of notifications plus the read flag.

Invariants:
    - A student only ever sees or flips their own notifications
    - read is the only mutable field
"""

from dataclasses import dataclass

from campus_swap.core.domain_types import NotificationId, StudentId
from campus_swap.core.errors import ErrorContext, ForbiddenError, ResourceNotFoundError
from campus_swap.core.records import NotificationRecord
from campus_swap.core.repository_protocols import NotificationRepository


@dataclass(frozen=True)
class InboxPage:
    notifications: list[NotificationRecord]
    unread_count: int


class NotificationInbox:

    def __init__(self, repository: NotificationRepository, limit: int = 50):
        self.repository = repository
        self.limit = limit

    async def list_notifications(
        self, student_id: StudentId, unread_only: bool = False,
        timeout: float | None = None,
    ) -> InboxPage:
        notifications = await self.repository.list_for(
            student_id, unread_only, self.limit, timeout,
        )
        unread = await self.repository.count_unread(student_id, timeout)
        return InboxPage(notifications=notifications, unread_count=unread)

    async def mark_read(
        self, notification_id: NotificationId, student_id: StudentId,
        timeout: float | None = None,
    ) -> None:
        notification = await self.repository.get(notification_id, timeout)
        if notification is None:
            raise ResourceNotFoundError("Notification", str(notification_id))
        if notification.recipient_id != student_id:
            raise ForbiddenError(
                "You can only update your own notifications",
                ErrorContext(student_id=str(student_id)),
            )
        await self.repository.mark_read(notification_id, timeout)

    async def mark_all_read(
        self, student_id: StudentId, timeout: float | None = None,
    ) -> int:
        return await self.repository.mark_all_read(student_id, timeout)
