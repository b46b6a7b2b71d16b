"""Boundary Protocols — contracts between core and shell.

Invariants:
    - Core NEVER imports from shell — dependency arrows point inward only
    - All IO operations accessed through Protocol types
    - Every status write goes through a compare-and-swap method (expected -> new);
      there is no blind status overwrite in any contract
    - Every store call accepts a timeout; expiry surfaces as UnavailableError

Design Decisions:
    - Protocol over ABC: structural subtyping, no inheritance hierarchy
    - Async in Protocol: boundary methods are async because implementations do IO,
      but the rules in core/ that decide what to write are never async themselves
"""

from typing import Awaitable, Callable, Protocol, TypeVar

from campus_swap.core.domain_types import (
    ExchangeId, ExchangeListFilter, ExchangeStatus, NotificationId,
    NotificationType, ProductId, ProductStatus, StudentId,
)
from campus_swap.core.records import (
    ExchangeRecord, MessageRecord, NewExchange, NotificationRecord, ProductRecord,
)

T = TypeVar("T")


class Transaction(Protocol):
    """Transactional handle passed to run_transaction callbacks.

    Reads through lock_* take row locks (or the backend's equivalent) so that
    the check-then-set sequences in the engine are atomic.
    """
    async def lock_products(
        self, product_ids: list[ProductId],
    ) -> dict[ProductId, ProductRecord]: ...
    async def lock_exchange(self, exchange_id: ExchangeId) -> ExchangeRecord | None: ...
    async def find_pending(
        self, requester_id: StudentId, requested_product_id: ProductId,
    ) -> ExchangeRecord | None: ...
    async def create_exchange(self, data: NewExchange) -> ExchangeId: ...
    async def set_product_status(
        self, product_id: ProductId, expected: ProductStatus, new: ProductStatus,
    ) -> bool: ...
    async def set_exchange_status(
        self, exchange_id: ExchangeId, expected: ExchangeStatus, new: ExchangeStatus,
    ) -> bool: ...


class PersistenceStore(Protocol):
    """Contract for exchange/product persistence — implemented by shell."""
    async def get_product(
        self, product_id: ProductId, timeout: float | None = None,
    ) -> ProductRecord | None: ...
    async def get_exchange(
        self, exchange_id: ExchangeId, timeout: float | None = None,
    ) -> ExchangeRecord | None: ...
    async def run_transaction(
        self, fn: Callable[[Transaction], Awaitable[T]], timeout: float | None = None,
    ) -> T: ...
    async def list_exchanges_for(
        self,
        student_id: StudentId,
        filter: ExchangeListFilter = ExchangeListFilter.ALL,
        status: ExchangeStatus | None = None,
        timeout: float | None = None,
    ) -> list[ExchangeRecord]: ...
    async def list_all_exchanges(
        self,
        status: ExchangeStatus | None = None,
        timeout: float | None = None,
    ) -> list[ExchangeRecord]: ...


class MessageRepository(Protocol):
    """Contract for per-exchange chat persistence — implemented by shell."""
    async def add_message(
        self, exchange_id: ExchangeId, sender_id: StudentId,
        recipient_id: StudentId, content: str, timeout: float | None = None,
    ) -> MessageRecord: ...
    async def list_messages(
        self, exchange_id: ExchangeId, timeout: float | None = None,
    ) -> list[MessageRecord]: ...
    async def mark_messages_read(
        self, exchange_id: ExchangeId, recipient_id: StudentId,
        timeout: float | None = None,
    ) -> int: ...


class NotificationRepository(Protocol):
    """Contract for the notification inbox — implemented by shell."""
    async def list_for(
        self, recipient_id: StudentId, unread_only: bool, limit: int,
        timeout: float | None = None,
    ) -> list[NotificationRecord]: ...
    async def count_unread(
        self, recipient_id: StudentId, timeout: float | None = None,
    ) -> int: ...
    async def get(
        self, notification_id: NotificationId, timeout: float | None = None,
    ) -> NotificationRecord | None: ...
    async def mark_read(
        self, notification_id: NotificationId, timeout: float | None = None,
    ) -> None: ...
    async def mark_all_read(
        self, recipient_id: StudentId, timeout: float | None = None,
    ) -> int: ...


class NotificationSink(Protocol):
    """Best-effort delivery of typed events. Failures never roll back the caller."""
    async def notify(
        self,
        recipient_id: StudentId,
        type: NotificationType,
        title: str,
        message: str,
        payload: dict,
    ) -> None: ...
