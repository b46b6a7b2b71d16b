"""Notification Inbox — notifications persisted by the SQL sink and read back.

Tests cover:
    - Engine events land in the recipient's inbox with the stored payload shape
    - Unread filtering and unread count
    - Read flag flips only for the owner
"""

from uuid import uuid4

import pytest

from campus_swap.core.domain_types import NotificationId, NotificationType
from campus_swap.core.errors import ForbiddenError, ResourceNotFoundError
from campus_swap.services.notification_inbox import NotificationInbox


@pytest.fixture
def inbox(notifications):
    return NotificationInbox(notifications, limit=10)


async def test_request_lands_in_receiver_inbox(sql_engine, inbox, seed):
    exchange = await sql_engine.create(seed.alice, seed.p2, seed.p1)

    page = await inbox.list_notifications(seed.bob)
    assert page.unread_count == 1
    [notification] = page.notifications
    assert notification.type == NotificationType.EXCHANGE_REQUEST
    assert notification.title == "New Exchange Request"
    assert notification.payload == {"exchangeId": str(exchange.id)}

    assert (await inbox.list_notifications(seed.alice)).notifications == []


async def test_newest_first(sql_engine, inbox, seed):
    exchange = await sql_engine.create(seed.alice, seed.p2, seed.p1)
    await sql_engine.accept(exchange.id, seed.bob)
    await sql_engine.create(seed.carol, seed.p3, seed.p4)

    page = await inbox.list_notifications(seed.alice)
    assert [n.type for n in page.notifications] == [
        NotificationType.EXCHANGE_REQUEST, NotificationType.EXCHANGE_ACCEPTED,
    ]


async def test_mark_read_and_unread_filter(sql_engine, inbox, seed):
    await sql_engine.create(seed.alice, seed.p2, seed.p1)
    await sql_engine.create(seed.carol, seed.p2, seed.p4)
    page = await inbox.list_notifications(seed.bob)
    assert page.unread_count == 2

    await inbox.mark_read(page.notifications[0].id, seed.bob)

    unread = await inbox.list_notifications(seed.bob, unread_only=True)
    assert unread.unread_count == 1
    assert [n.id for n in unread.notifications] == [page.notifications[1].id]


async def test_cannot_mark_someone_elses_notification(sql_engine, inbox, seed):
    await sql_engine.create(seed.alice, seed.p2, seed.p1)
    [notification] = (await inbox.list_notifications(seed.bob)).notifications
    with pytest.raises(ForbiddenError):
        await inbox.mark_read(notification.id, seed.alice)


async def test_mark_unknown_notification(inbox, seed):
    with pytest.raises(ResourceNotFoundError):
        await inbox.mark_read(NotificationId(uuid4()), seed.bob)


async def test_mark_all_read(sql_engine, inbox, seed):
    await sql_engine.create(seed.alice, seed.p2, seed.p1)
    await sql_engine.create(seed.carol, seed.p2, seed.p4)

    assert await inbox.mark_all_read(seed.bob) == 2
    assert (await inbox.list_notifications(seed.bob)).unread_count == 0
    assert await inbox.mark_all_read(seed.bob) == 0
