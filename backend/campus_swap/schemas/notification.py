"""Notification Schemas — inbox listing and the moderation removal result."""

from datetime import datetime
from typing import Any
from uuid import UUID

from campus_swap.core.domain_types import NotificationType, ProductStatus
from campus_swap.core.notification_payloads import parse_payload
from campus_swap.core.records import NotificationRecord
from campus_swap.schemas.base import CamelModel


class NotificationOut(CamelModel):
    id: UUID
    student_id: UUID
    type: NotificationType
    title: str
    message: str
    data: dict[str, Any]
    read: bool
    created_at: datetime | None = None

    @classmethod
    def from_record(cls, record: NotificationRecord) -> "NotificationOut":
        return cls(
            id=record.id,
            student_id=record.recipient_id,
            type=record.type,
            title=record.title,
            message=record.message,
            data=parse_payload(record.type, record.payload).to_data(),
            read=record.read,
            created_at=record.created_at,
        )


class NotificationList(CamelModel):
    notifications: list[NotificationOut]
    unread_count: int


class MarkAllReadResult(CamelModel):
    success: bool = True
    updated: int


class RemovedProduct(CamelModel):
    success: bool = True
    product_id: UUID
    status: ProductStatus
