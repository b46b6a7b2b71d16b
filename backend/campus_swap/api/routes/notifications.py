"""Notification Routes — the actor's inbox and its read flags."""

from uuid import UUID

from fastapi import APIRouter, Depends, Query

from campus_swap.api.dependencies import current_student, get_inbox
from campus_swap.core.domain_types import NotificationId, StudentId
from campus_swap.schemas.notification import (
    MarkAllReadResult, NotificationList, NotificationOut,
)
from campus_swap.services.notification_inbox import NotificationInbox

router = APIRouter(prefix="/api/v1/notifications", tags=["notifications"])


@router.get("", response_model=NotificationList)
async def list_notifications(
    unread_only: bool = Query(False, alias="unreadOnly"),
    actor: StudentId = Depends(current_student),
    inbox: NotificationInbox = Depends(get_inbox),
):
    page = await inbox.list_notifications(actor, unread_only)
    return NotificationList(
        notifications=[NotificationOut.from_record(n) for n in page.notifications],
        unread_count=page.unread_count,
    )


@router.patch("/read-all", response_model=MarkAllReadResult)
async def mark_all_read(
    actor: StudentId = Depends(current_student),
    inbox: NotificationInbox = Depends(get_inbox),
):
    updated = await inbox.mark_all_read(actor)
    return MarkAllReadResult(updated=updated)


@router.patch("/{notification_id}/read")
async def mark_read(
    notification_id: UUID,
    actor: StudentId = Depends(current_student),
    inbox: NotificationInbox = Depends(get_inbox),
):
    await inbox.mark_read(NotificationId(notification_id), actor)
    return {"success": True}
