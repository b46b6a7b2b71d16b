"""Domain Records — immutable snapshots the store hands to the core.

Invariants:
    - Records are frozen: the core never mutates what the store returned
    - ExchangeRecord.receiver_id is always the owner of the requested product
    - Resolved associations (parties, products, latest message) are optional:
      the transactional handle returns bare rows, read paths return them resolved

Design Decisions:
    - Dataclasses over ORM objects: core stays free of SQLAlchemy and of lazy-loading
"""

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Any

from campus_swap.core.domain_types import (
    ExchangeId, ExchangeStatus, MessageId, NotificationId, NotificationType,
    ProductId, ProductStatus, StudentId,
)


@dataclass(frozen=True)
class StudentRecord:
    id: StudentId
    name: str
    matric_number: str
    image_url: str | None = None


@dataclass(frozen=True)
class ProductRecord:
    id: ProductId
    owner_id: StudentId
    title: str
    status: ProductStatus
    monetary_worth: Decimal
    owner: StudentRecord | None = None

    @property
    def is_available(self) -> bool:
        return self.status == ProductStatus.AVAILABLE


@dataclass(frozen=True)
class MessageRecord:
    id: MessageId
    exchange_id: ExchangeId
    sender_id: StudentId
    recipient_id: StudentId
    content: str
    read: bool
    created_at: datetime
    sender: StudentRecord | None = None
    recipient: StudentRecord | None = None


@dataclass(frozen=True)
class ExchangeRecord:
    """ExchangeRequest snapshot with its associations resolved for display."""
    id: ExchangeId
    requester_id: StudentId
    receiver_id: StudentId
    requested_product_id: ProductId
    offered_product_id: ProductId
    status: ExchangeStatus
    message: str | None
    created_at: datetime
    updated_at: datetime
    requester: StudentRecord | None = None
    receiver: StudentRecord | None = None
    requested_product: ProductRecord | None = None
    offered_product: ProductRecord | None = None
    latest_message: MessageRecord | None = None

    def is_party(self, student_id: StudentId) -> bool:
        return student_id in (self.requester_id, self.receiver_id)

    def counterparty_of(self, student_id: StudentId) -> StudentId:
        """The other side of the negotiation. Caller must check is_party first."""
        if student_id == self.requester_id:
            return self.receiver_id
        return self.requester_id


@dataclass(frozen=True)
class NewExchange:
    """Validated data for an exchange insert."""
    requester_id: StudentId
    receiver_id: StudentId
    requested_product_id: ProductId
    offered_product_id: ProductId
    message: str | None = None


@dataclass(frozen=True)
class NotificationRecord:
    id: NotificationId
    recipient_id: StudentId
    type: NotificationType
    title: str
    message: str
    payload: dict[str, Any] = field(default_factory=dict)
    read: bool = False
    created_at: datetime | None = None
