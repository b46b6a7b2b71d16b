"""Notification Payloads — typed events emitted as side effects of negotiation.

Invariants:
    - Each NotificationType has exactly one payload variant (checked at import)
    - A NotificationEvent's payload variant always matches its type
    - Titles and messages are built here, never by callers
    - All functions are pure (no IO, no async, no DB)

Design Decisions:
    - Tagged union of frozen dataclasses over a free-form dict: each variant
      carries only the fields it needs; to_data() is the stored JSON shape
"""

from dataclasses import dataclass
from typing import Any, Union
from uuid import UUID

from campus_swap.core.domain_types import ExchangeId, NotificationType, StudentId


@dataclass(frozen=True)
class ExchangePayload:
    """Points at the exchange the notification is about."""
    exchange_id: ExchangeId

    def to_data(self) -> dict[str, Any]:
        return {"exchangeId": str(self.exchange_id)}

    @classmethod
    def from_data(cls, data: dict[str, Any]) -> "ExchangePayload":
        return cls(exchange_id=ExchangeId(UUID(str(data["exchangeId"]))))


@dataclass(frozen=True)
class ProductDeletedPayload:
    """Moderation removal of a listing."""
    product_title: str
    reason: str

    def to_data(self) -> dict[str, Any]:
        return {"productTitle": self.product_title, "reason": self.reason}

    @classmethod
    def from_data(cls, data: dict[str, Any]) -> "ProductDeletedPayload":
        return cls(product_title=data["productTitle"], reason=data["reason"])


NotificationPayload = Union[ExchangePayload, ProductDeletedPayload]

PAYLOAD_TYPES: dict[NotificationType, type] = {
    NotificationType.EXCHANGE_REQUEST: ExchangePayload,
    NotificationType.EXCHANGE_ACCEPTED: ExchangePayload,
    NotificationType.EXCHANGE_REJECTED: ExchangePayload,
    NotificationType.MESSAGE: ExchangePayload,
    NotificationType.PRODUCT_DELETED: ProductDeletedPayload,
}

_missing = set(NotificationType) - set(PAYLOAD_TYPES)
if _missing:
    raise RuntimeError(
        f"No payload variant for notification types: {sorted(t.value for t in _missing)}",
    )


@dataclass(frozen=True)
class NotificationEvent:
    recipient_id: StudentId
    type: NotificationType
    title: str
    message: str
    payload: NotificationPayload

    def __post_init__(self) -> None:
        expected = PAYLOAD_TYPES[self.type]
        if not isinstance(self.payload, expected):
            raise TypeError(
                f"{self.type.value} requires {expected.__name__}, "
                f"got {type(self.payload).__name__}",
            )


def parse_payload(
    notification_type: NotificationType, data: dict[str, Any],
) -> NotificationPayload:
    """Rebuild the typed payload from its stored JSON shape."""
    return PAYLOAD_TYPES[notification_type].from_data(data)


# ─── Event builders ─────────────────────────────────────────────

def exchange_requested(
    receiver_id: StudentId, requester_name: str, product_title: str,
    exchange_id: ExchangeId,
) -> NotificationEvent:
    return NotificationEvent(
        recipient_id=receiver_id,
        type=NotificationType.EXCHANGE_REQUEST,
        title="New Exchange Request",
        message=f"{requester_name} wants to exchange for your {product_title}",
        payload=ExchangePayload(exchange_id),
    )


def exchange_accepted(
    requester_id: StudentId, receiver_name: str, product_title: str,
    exchange_id: ExchangeId,
) -> NotificationEvent:
    return NotificationEvent(
        recipient_id=requester_id,
        type=NotificationType.EXCHANGE_ACCEPTED,
        title="Exchange Accepted",
        message=f"{receiver_name} accepted your exchange request for {product_title}",
        payload=ExchangePayload(exchange_id),
    )


def exchange_rejected(
    requester_id: StudentId, receiver_name: str, product_title: str,
    exchange_id: ExchangeId,
) -> NotificationEvent:
    return NotificationEvent(
        recipient_id=requester_id,
        type=NotificationType.EXCHANGE_REJECTED,
        title="Exchange Rejected",
        message=f"{receiver_name} rejected your exchange request for {product_title}",
        payload=ExchangePayload(exchange_id),
    )


def new_message(
    recipient_id: StudentId, sender_name: str, exchange_id: ExchangeId,
) -> NotificationEvent:
    return NotificationEvent(
        recipient_id=recipient_id,
        type=NotificationType.MESSAGE,
        title="New Message",
        message=f"You have a new message from {sender_name}",
        payload=ExchangePayload(exchange_id),
    )


def product_deleted(
    owner_id: StudentId, product_title: str, reason: str = "Moderation",
) -> NotificationEvent:
    return NotificationEvent(
        recipient_id=owner_id,
        type=NotificationType.PRODUCT_DELETED,
        title="Product Removed",
        message=(
            f'Your product "{product_title}" was deleted by admin. '
            f"Reason: {reason}"
        ),
        payload=ProductDeletedPayload(product_title=product_title, reason=reason),
    )
