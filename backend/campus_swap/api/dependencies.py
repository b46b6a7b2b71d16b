"""Request-scoped dependencies — actor identity and service construction.

Invariants:
    - The actor is read from the X-Student-Id header set by the auth gateway;
      nothing downstream reads identity from anywhere else
    - Services are built per request over the process-wide DatabaseSessionManager
    - Admin routes compare X-Admin-Token against settings.admin_token in constant time
"""

import hmac
from uuid import UUID

from fastapi import Depends, Header

from campus_swap.config import Settings, get_settings
from campus_swap.core.domain_types import StudentId
from campus_swap.core.errors import ForbiddenError, UnauthenticatedError
from campus_swap.infrastructure.database import DatabaseSessionManager, get_db_manager
from campus_swap.infrastructure.notification_sink import SqlNotificationSink
from campus_swap.infrastructure.sql_store import (
    SqlMessageRepository, SqlNotificationRepository, SqlPersistenceStore,
)
from campus_swap.services.exchange_engine import ExchangeEngine
from campus_swap.services.exchange_messaging import ExchangeMessaging
from campus_swap.services.notification_inbox import NotificationInbox
from campus_swap.services.product_moderation import ProductModeration


async def current_student(
    x_student_id: str | None = Header(None, alias="X-Student-Id"),
) -> StudentId:
    if not x_student_id:
        raise UnauthenticatedError()
    try:
        return StudentId(UUID(x_student_id))
    except ValueError:
        raise UnauthenticatedError()


async def require_admin(
    x_admin_token: str | None = Header(None, alias="X-Admin-Token"),
    settings: Settings = Depends(get_settings),
) -> None:
    if not x_admin_token:
        raise UnauthenticatedError()
    if not hmac.compare_digest(x_admin_token, settings.admin_token):
        raise ForbiddenError("Admin access required")


def get_store(
    manager: DatabaseSessionManager = Depends(get_db_manager),
    settings: Settings = Depends(get_settings),
) -> SqlPersistenceStore:
    return SqlPersistenceStore(manager, settings.store_timeout_seconds)


def get_sink(
    manager: DatabaseSessionManager = Depends(get_db_manager),
) -> SqlNotificationSink:
    return SqlNotificationSink(manager)


def get_engine(
    store: SqlPersistenceStore = Depends(get_store),
    sink: SqlNotificationSink = Depends(get_sink),
    settings: Settings = Depends(get_settings),
) -> ExchangeEngine:
    return ExchangeEngine(store, sink, settings.notification_timeout_seconds)


def get_messaging(
    manager: DatabaseSessionManager = Depends(get_db_manager),
    store: SqlPersistenceStore = Depends(get_store),
    sink: SqlNotificationSink = Depends(get_sink),
    settings: Settings = Depends(get_settings),
) -> ExchangeMessaging:
    return ExchangeMessaging(
        store,
        SqlMessageRepository(manager, settings.store_timeout_seconds),
        sink,
        settings.notification_timeout_seconds,
    )


def get_inbox(
    manager: DatabaseSessionManager = Depends(get_db_manager),
    settings: Settings = Depends(get_settings),
) -> NotificationInbox:
    return NotificationInbox(
        SqlNotificationRepository(manager, settings.store_timeout_seconds),
        settings.notification_inbox_limit,
    )


def get_moderation(
    store: SqlPersistenceStore = Depends(get_store),
    sink: SqlNotificationSink = Depends(get_sink),
    settings: Settings = Depends(get_settings),
) -> ProductModeration:
    return ProductModeration(store, sink, settings.notification_timeout_seconds)
