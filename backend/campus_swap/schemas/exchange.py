"""Exchange Schemas — request bodies and display shapes for exchange requests.

Invariants:
    - ExchangeCreate never carries requester or receiver: the requester is the
      authenticated actor and the receiver is derived from the requested product
    - ExchangeActionRequest.action is the closed ExchangeAction enum
    - Responses are built from core records via model_validate(from_attributes)
"""

from datetime import datetime
from uuid import UUID

from pydantic import Field, field_validator

from campus_swap.core.domain_types import ExchangeAction, ExchangeStatus, ProductStatus
from campus_swap.core.enforce_exchange import MAX_MESSAGE_LENGTH, MAX_NOTE_LENGTH
from campus_swap.schemas.base import CamelModel


class ExchangeCreate(CamelModel):
    """Swap proposal — both products required, note optional."""
    requested_product_id: UUID
    offered_product_id: UUID
    message: str | None = Field(None, max_length=MAX_NOTE_LENGTH)


class ExchangeActionRequest(CamelModel):
    action: ExchangeAction


class StudentSummary(CamelModel):
    id: UUID
    name: str
    matric_number: str
    image_url: str | None = None


class ProductSummary(CamelModel):
    id: UUID
    owner_id: UUID
    title: str
    status: ProductStatus
    monetary_worth: float
    owner: StudentSummary | None = None


class MessageOut(CamelModel):
    id: UUID
    exchange_id: UUID
    sender_id: UUID
    recipient_id: UUID
    content: str
    read: bool
    created_at: datetime
    sender: StudentSummary | None = None
    recipient: StudentSummary | None = None


class MessageCreate(CamelModel):
    content: str = Field(min_length=1, max_length=MAX_MESSAGE_LENGTH)

    @field_validator("content")
    @classmethod
    def strip_content(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("content cannot be empty or whitespace")
        return v


class ExchangeOut(CamelModel):
    id: UUID
    requester_id: UUID
    receiver_id: UUID
    requested_product_id: UUID
    offered_product_id: UUID
    status: ExchangeStatus
    message: str | None = None
    created_at: datetime
    updated_at: datetime
    requester: StudentSummary | None = None
    receiver: StudentSummary | None = None
    requested_product: ProductSummary | None = None
    offered_product: ProductSummary | None = None
    latest_message: MessageOut | None = None


class ExchangeEnvelope(CamelModel):
    success: bool = True
    exchange: ExchangeOut


class ExchangeList(CamelModel):
    exchanges: list[ExchangeOut]


class MessageEnvelope(CamelModel):
    success: bool = True
    message: MessageOut


class MessageList(CamelModel):
    messages: list[MessageOut]
