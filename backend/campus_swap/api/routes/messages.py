"""Exchange Chat Routes — messages between the two parties of an exchange."""

from uuid import UUID

from fastapi import APIRouter, Depends, status

from campus_swap.api.dependencies import current_student, get_messaging
from campus_swap.core.domain_types import ExchangeId, StudentId
from campus_swap.schemas.exchange import (
    MessageCreate, MessageEnvelope, MessageList, MessageOut,
)
from campus_swap.services.exchange_messaging import ExchangeMessaging

router = APIRouter(prefix="/api/v1/exchanges", tags=["messages"])


@router.get("/{exchange_id}/messages", response_model=MessageList)
async def list_messages(
    exchange_id: UUID,
    actor: StudentId = Depends(current_student),
    messaging: ExchangeMessaging = Depends(get_messaging),
):
    messages = await messaging.list_messages(ExchangeId(exchange_id), actor)
    return MessageList(messages=[MessageOut.model_validate(m) for m in messages])


@router.post(
    "/{exchange_id}/messages",
    response_model=MessageEnvelope,
    status_code=status.HTTP_201_CREATED,
)
async def send_message(
    exchange_id: UUID,
    body: MessageCreate,
    actor: StudentId = Depends(current_student),
    messaging: ExchangeMessaging = Depends(get_messaging),
):
    message = await messaging.send_message(ExchangeId(exchange_id), actor, body.content)
    return MessageEnvelope(message=MessageOut.model_validate(message))
