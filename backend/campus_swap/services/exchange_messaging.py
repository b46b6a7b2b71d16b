"""Exchange Messaging — chat between the two parties of an exchange.

Invariants:
    - Only the requester and the receiver may read or post
    - The recipient of a message is always the other party
    - Reading the thread marks messages addressed to the reader as read
    - A `message` notification goes to the recipient after the message is stored
"""

import logging

from campus_swap.core.domain_types import ExchangeId, StudentId
from campus_swap.core.enforce_exchange import normalize_chat_content
from campus_swap.core.errors import ErrorContext, ForbiddenError, ResourceNotFoundError
from campus_swap.core.notification_payloads import new_message
from campus_swap.core.records import ExchangeRecord, MessageRecord, StudentRecord
from campus_swap.core.repository_protocols import (
    MessageRepository, NotificationSink, PersistenceStore,
)
from campus_swap.services.notification_delivery import deliver_best_effort

logger = logging.getLogger(__name__)


class ExchangeMessaging:

    def __init__(
        self,
        store: PersistenceStore,
        messages: MessageRepository,
        sink: NotificationSink,
        notification_timeout: float = 2.0,
    ):
        self.store = store
        self.messages = messages
        self.sink = sink
        self.notification_timeout = notification_timeout

    async def send_message(
        self,
        exchange_id: ExchangeId,
        sender_id: StudentId,
        content: str,
        timeout: float | None = None,
    ) -> MessageRecord:
        content = normalize_chat_content(content)
        exchange = await self._party_exchange(exchange_id, sender_id, timeout)
        recipient_id = exchange.counterparty_of(sender_id)
        message = await self.messages.add_message(
            exchange_id, sender_id, recipient_id, content, timeout,
        )
        logger.info(
            "Message posted",
            extra={"exchange_id": exchange_id, "student_id": sender_id},
        )
        sender = _party(exchange, sender_id)
        await deliver_best_effort(
            self.sink,
            new_message(recipient_id, sender.name if sender else "", exchange_id),
            self.notification_timeout,
        )
        return message

    async def list_messages(
        self,
        exchange_id: ExchangeId,
        reader_id: StudentId,
        timeout: float | None = None,
    ) -> list[MessageRecord]:
        """Thread oldest first; flips read on messages addressed to the reader."""
        await self._party_exchange(exchange_id, reader_id, timeout)
        messages = await self.messages.list_messages(exchange_id, timeout)
        await self.messages.mark_messages_read(exchange_id, reader_id, timeout)
        return messages

    async def _party_exchange(
        self, exchange_id: ExchangeId, student_id: StudentId, timeout: float | None,
    ) -> ExchangeRecord:
        exchange = await self.store.get_exchange(exchange_id, timeout)
        if exchange is None:
            raise ResourceNotFoundError("Exchange request", str(exchange_id))
        if not exchange.is_party(student_id):
            raise ForbiddenError(
                "Only the parties to this exchange can use its chat",
                ErrorContext(exchange_id=str(exchange_id), student_id=str(student_id)),
            )
        return exchange


def _party(exchange: ExchangeRecord, student_id: StudentId) -> StudentRecord | None:
    if student_id == exchange.requester_id:
        return exchange.requester
    return exchange.receiver
