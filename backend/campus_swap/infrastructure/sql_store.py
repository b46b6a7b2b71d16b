"""SQL Persistence Store — SQLAlchemy implementation of the core store protocols.

Invariants:
    - Every call runs under a bounded timeout; expiry raises UnavailableError
    - Status writes are compare-and-swap UPDATEs (WHERE status = :expected);
      the returned bool reports whether the row matched
    - lock_products locks rows in id order so concurrent accepts cannot deadlock
    - A unique violation on the pending-pair index surfaces as ConflictError
    - ORM objects never leave this module: callers receive core records

Design Decisions:
    - SELECT ... FOR UPDATE on PostgreSQL; on SQLite the whole transaction already
      holds the write lock (BEGIN IMMEDIATE), and FOR UPDATE is dropped by the dialect
    - Latest chat message fetched per page with one extra query, not per row
"""

import asyncio
import logging
from dataclasses import replace
from typing import Awaitable, Callable, TypeVar
from uuid import UUID

from sqlalchemy import func, or_, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import raiseload

from campus_swap.core.domain_types import (
    ExchangeId, ExchangeListFilter, ExchangeStatus, MessageId, NotificationId,
    NotificationType, ProductId, ProductStatus, StudentId,
)
from campus_swap.core.errors import ConflictError, ErrorContext, UnavailableError
from campus_swap.core.records import (
    ExchangeRecord, MessageRecord, NewExchange, NotificationRecord,
    ProductRecord, StudentRecord,
)
from campus_swap.infrastructure.database import DatabaseSessionManager
from campus_swap.models.exchange_request import ExchangeRequest
from campus_swap.models.message import Message
from campus_swap.models.notification import Notification
from campus_swap.models.product import Product
from campus_swap.models.student import Student

logger = logging.getLogger(__name__)

T = TypeVar("T")


# ─── ORM -> record mapping ───────────────────────────────────────

def student_record(student: Student) -> StudentRecord:
    return StudentRecord(
        id=StudentId(student.id),
        name=student.name,
        matric_number=student.matric_number,
        image_url=student.image_url,
    )


def product_record(product: Product, resolved: bool = True) -> ProductRecord:
    return ProductRecord(
        id=ProductId(product.id),
        owner_id=StudentId(product.student_id),
        title=product.title,
        status=ProductStatus(product.status),
        monetary_worth=product.monetary_worth,
        owner=student_record(product.owner) if resolved else None,
    )


def message_record(message: Message) -> MessageRecord:
    return MessageRecord(
        id=MessageId(message.id),
        exchange_id=ExchangeId(message.exchange_request_id),
        sender_id=StudentId(message.sender_id),
        recipient_id=StudentId(message.recipient_id),
        content=message.content,
        read=message.read,
        created_at=message.created_at,
        sender=student_record(message.sender),
        recipient=student_record(message.recipient),
    )


def exchange_record(
    exchange: ExchangeRequest,
    resolved: bool = True,
    latest_message: MessageRecord | None = None,
) -> ExchangeRecord:
    record = ExchangeRecord(
        id=ExchangeId(exchange.id),
        requester_id=StudentId(exchange.requester_id),
        receiver_id=StudentId(exchange.receiver_id),
        requested_product_id=ProductId(exchange.requested_product_id),
        offered_product_id=ProductId(exchange.offered_product_id),
        status=ExchangeStatus(exchange.status),
        message=exchange.message,
        created_at=exchange.created_at,
        updated_at=exchange.updated_at,
        latest_message=latest_message,
    )
    if not resolved:
        return record
    return replace(
        record,
        requester=student_record(exchange.requester),
        receiver=student_record(exchange.receiver),
        requested_product=product_record(exchange.requested_product),
        offered_product=product_record(exchange.offered_product),
    )


def notification_record(notification: Notification) -> NotificationRecord:
    return NotificationRecord(
        id=NotificationId(notification.id),
        recipient_id=StudentId(notification.student_id),
        type=NotificationType(notification.type),
        title=notification.title,
        message=notification.message,
        payload=dict(notification.data or {}),
        read=notification.read,
        created_at=notification.created_at,
    )


# ─── Timeout wrapper ─────────────────────────────────────────────

async def run_bounded(
    coro: Awaitable[T], timeout: float | None, operation: str,
) -> T:
    """Await coro under timeout; expiry becomes a retryable UnavailableError."""
    try:
        return await asyncio.wait_for(coro, timeout)
    except asyncio.TimeoutError:
        logger.error(f"Store {operation} timed out after {timeout}s")
        raise UnavailableError("timed out", operation)


# ─── Transactional handle ────────────────────────────────────────

class SqlTransaction:
    """Transaction handle over one AsyncSession inside session.begin()."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def lock_products(
        self, product_ids: list[ProductId],
    ) -> dict[ProductId, ProductRecord]:
        ordered = sorted(set(product_ids), key=str)
        result = await self.db.execute(
            select(Product)
            .where(Product.id.in_(ordered))
            .order_by(Product.id)
            .options(raiseload("*"))
            .with_for_update()
        )
        return {
            ProductId(p.id): product_record(p, resolved=False)
            for p in result.scalars().all()
        }

    async def lock_exchange(self, exchange_id: ExchangeId) -> ExchangeRecord | None:
        result = await self.db.execute(
            select(ExchangeRequest)
            .where(ExchangeRequest.id == exchange_id)
            .options(raiseload("*"))
            .with_for_update()
        )
        exchange = result.scalar_one_or_none()
        return exchange_record(exchange, resolved=False) if exchange else None

    async def find_pending(
        self, requester_id: StudentId, requested_product_id: ProductId,
    ) -> ExchangeRecord | None:
        result = await self.db.execute(
            select(ExchangeRequest)
            .where(ExchangeRequest.requester_id == requester_id)
            .where(ExchangeRequest.requested_product_id == requested_product_id)
            .where(ExchangeRequest.status == ExchangeStatus.PENDING.value)
            .options(raiseload("*"))
            .limit(1)
        )
        exchange = result.scalar_one_or_none()
        return exchange_record(exchange, resolved=False) if exchange else None

    async def create_exchange(self, data: NewExchange) -> ExchangeId:
        exchange = ExchangeRequest(
            requester_id=data.requester_id,
            receiver_id=data.receiver_id,
            requested_product_id=data.requested_product_id,
            offered_product_id=data.offered_product_id,
            message=data.message,
            status=ExchangeStatus.PENDING.value,
        )
        self.db.add(exchange)
        try:
            await self.db.flush()
        except IntegrityError as e:
            logger.warning(
                f"Pending-pair collision on insert: {e.orig}",
                extra={"student_id": data.requester_id},
            )
            raise ConflictError(
                "You already have a pending request for this product",
                ErrorContext(student_id=str(data.requester_id)),
            )
        return ExchangeId(exchange.id)

    async def set_product_status(
        self, product_id: ProductId, expected: ProductStatus, new: ProductStatus,
    ) -> bool:
        result = await self.db.execute(
            update(Product)
            .where(Product.id == product_id)
            .where(Product.status == expected.value)
            .values(status=new.value)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1

    async def set_exchange_status(
        self, exchange_id: ExchangeId, expected: ExchangeStatus, new: ExchangeStatus,
    ) -> bool:
        result = await self.db.execute(
            update(ExchangeRequest)
            .where(ExchangeRequest.id == exchange_id)
            .where(ExchangeRequest.status == expected.value)
            .values(status=new.value)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1


# ─── Store ───────────────────────────────────────────────────────

class _SqlRepository:
    def __init__(self, manager: DatabaseSessionManager, default_timeout: float = 5.0):
        self.manager = manager
        self.default_timeout = default_timeout

    def _timeout(self, timeout: float | None) -> float:
        return self.default_timeout if timeout is None else timeout


class SqlPersistenceStore(_SqlRepository):
    """Exchange/product store over DatabaseSessionManager."""

    async def get_product(
        self, product_id: ProductId, timeout: float | None = None,
    ) -> ProductRecord | None:
        async def _get() -> ProductRecord | None:
            async with self.manager.session() as db:
                product = await db.get(Product, product_id)
                return product_record(product) if product else None

        return await run_bounded(_get(), self._timeout(timeout), "get_product")

    async def get_exchange(
        self, exchange_id: ExchangeId, timeout: float | None = None,
    ) -> ExchangeRecord | None:
        async def _get() -> ExchangeRecord | None:
            async with self.manager.session() as db:
                exchange = await db.get(ExchangeRequest, exchange_id)
                if exchange is None:
                    return None
                latest = await _latest_messages(db, [exchange.id])
                return exchange_record(exchange, latest_message=latest.get(exchange.id))

        return await run_bounded(_get(), self._timeout(timeout), "get_exchange")

    async def run_transaction(
        self,
        fn: Callable[[SqlTransaction], Awaitable[T]],
        timeout: float | None = None,
    ) -> T:
        async def _run() -> T:
            async with self.manager.transaction() as db:
                return await fn(SqlTransaction(db))

        return await run_bounded(_run(), self._timeout(timeout), "transaction")

    async def list_exchanges_for(
        self,
        student_id: StudentId,
        filter: ExchangeListFilter = ExchangeListFilter.ALL,
        status: ExchangeStatus | None = None,
        timeout: float | None = None,
    ) -> list[ExchangeRecord]:
        async def _list() -> list[ExchangeRecord]:
            query = select(ExchangeRequest).order_by(ExchangeRequest.created_at.desc())
            if filter == ExchangeListFilter.SENT:
                query = query.where(ExchangeRequest.requester_id == student_id)
            elif filter == ExchangeListFilter.RECEIVED:
                query = query.where(ExchangeRequest.receiver_id == student_id)
            else:
                query = query.where(or_(
                    ExchangeRequest.requester_id == student_id,
                    ExchangeRequest.receiver_id == student_id,
                ))
            if status is not None:
                query = query.where(ExchangeRequest.status == status.value)
            return await self._fetch_exchanges(query)

        return await run_bounded(_list(), self._timeout(timeout), "list_exchanges")

    async def list_all_exchanges(
        self,
        status: ExchangeStatus | None = None,
        timeout: float | None = None,
    ) -> list[ExchangeRecord]:
        """Every exchange, newest first (admin view)."""
        async def _list() -> list[ExchangeRecord]:
            query = select(ExchangeRequest).order_by(ExchangeRequest.created_at.desc())
            if status is not None:
                query = query.where(ExchangeRequest.status == status.value)
            return await self._fetch_exchanges(query)

        return await run_bounded(_list(), self._timeout(timeout), "list_all_exchanges")

    async def _fetch_exchanges(self, query) -> list[ExchangeRecord]:
        async with self.manager.session() as db:
            exchanges = (await db.execute(query)).scalars().all()
            latest = await _latest_messages(db, [e.id for e in exchanges])
            return [
                exchange_record(e, latest_message=latest.get(e.id))
                for e in exchanges
            ]


async def _latest_messages(
    db: AsyncSession, exchange_ids: list[UUID],
) -> dict[UUID, MessageRecord]:
    """Newest chat message per exchange, keyed by exchange id."""
    if not exchange_ids:
        return {}
    newest = (
        select(
            Message.exchange_request_id,
            func.max(Message.created_at).label("created_at"),
        )
        .where(Message.exchange_request_id.in_(exchange_ids))
        .group_by(Message.exchange_request_id)
        .subquery()
    )
    result = await db.execute(
        select(Message).join(
            newest,
            (Message.exchange_request_id == newest.c.exchange_request_id)
            & (Message.created_at == newest.c.created_at),
        )
    )
    return {m.exchange_request_id: message_record(m) for m in result.scalars().all()}


# ─── Chat and inbox repositories ─────────────────────────────────

class SqlMessageRepository(_SqlRepository):
    """Per-exchange chat persistence."""

    async def add_message(
        self, exchange_id: ExchangeId, sender_id: StudentId,
        recipient_id: StudentId, content: str, timeout: float | None = None,
    ) -> MessageRecord:
        async def _add() -> MessageRecord:
            async with self.manager.transaction() as db:
                message = Message(
                    exchange_request_id=exchange_id,
                    sender_id=sender_id,
                    recipient_id=recipient_id,
                    content=content,
                )
                db.add(message)
                await db.flush()
                await db.refresh(message, ["sender", "recipient"])
                return message_record(message)

        return await run_bounded(
            _add(), self._timeout(timeout), "add_message",
        )

    async def list_messages(
        self, exchange_id: ExchangeId, timeout: float | None = None,
    ) -> list[MessageRecord]:
        async def _list() -> list[MessageRecord]:
            async with self.manager.session() as db:
                result = await db.execute(
                    select(Message)
                    .where(Message.exchange_request_id == exchange_id)
                    .order_by(Message.created_at.asc())
                )
                return [message_record(m) for m in result.scalars().all()]

        return await run_bounded(
            _list(), self._timeout(timeout), "list_messages",
        )

    async def mark_messages_read(
        self, exchange_id: ExchangeId, recipient_id: StudentId,
        timeout: float | None = None,
    ) -> int:
        async def _mark() -> int:
            async with self.manager.transaction() as db:
                result = await db.execute(
                    update(Message)
                    .where(Message.exchange_request_id == exchange_id)
                    .where(Message.recipient_id == recipient_id)
                    .where(Message.read.is_(False))
                    .values(read=True)
                    .execution_options(synchronize_session=False)
                )
                return result.rowcount

        return await run_bounded(
            _mark(), self._timeout(timeout), "mark_messages_read",
        )


class SqlNotificationRepository(_SqlRepository):
    """Notification inbox reads and read-flag updates."""

    async def list_for(
        self, recipient_id: StudentId, unread_only: bool, limit: int,
        timeout: float | None = None,
    ) -> list[NotificationRecord]:
        async def _list() -> list[NotificationRecord]:
            query = (
                select(Notification)
                .where(Notification.student_id == recipient_id)
                .order_by(Notification.created_at.desc())
                .limit(limit)
            )
            if unread_only:
                query = query.where(Notification.read.is_(False))
            async with self.manager.session() as db:
                result = await db.execute(query)
                return [notification_record(n) for n in result.scalars().all()]

        return await run_bounded(
            _list(), self._timeout(timeout), "list_notifications",
        )

    async def count_unread(
        self, recipient_id: StudentId, timeout: float | None = None,
    ) -> int:
        async def _count() -> int:
            async with self.manager.session() as db:
                result = await db.execute(
                    select(func.count())
                    .select_from(Notification)
                    .where(Notification.student_id == recipient_id)
                    .where(Notification.read.is_(False))
                )
                return int(result.scalar_one())

        return await run_bounded(
            _count(), self._timeout(timeout), "count_unread",
        )

    async def get(
        self, notification_id: NotificationId, timeout: float | None = None,
    ) -> NotificationRecord | None:
        async def _get() -> NotificationRecord | None:
            async with self.manager.session() as db:
                notification = await db.get(Notification, notification_id)
                return notification_record(notification) if notification else None

        return await run_bounded(
            _get(), self._timeout(timeout), "get_notification",
        )

    async def mark_read(
        self, notification_id: NotificationId, timeout: float | None = None,
    ) -> None:
        async def _mark() -> None:
            async with self.manager.transaction() as db:
                await db.execute(
                    update(Notification)
                    .where(Notification.id == notification_id)
                    .values(read=True)
                    .execution_options(synchronize_session=False)
                )

        await run_bounded(
            _mark(), self._timeout(timeout), "mark_notification_read",
        )

    async def mark_all_read(
        self, recipient_id: StudentId, timeout: float | None = None,
    ) -> int:
        async def _mark() -> int:
            async with self.manager.transaction() as db:
                result = await db.execute(
                    update(Notification)
                    .where(Notification.student_id == recipient_id)
                    .where(Notification.read.is_(False))
                    .values(read=True)
                    .execution_options(synchronize_session=False)
                )
                return result.rowcount

        return await run_bounded(
            _mark(), self._timeout(timeout), "mark_all_notifications_read",
        )
