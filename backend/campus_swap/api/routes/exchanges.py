"""Exchange Routes — HTTP adapter over the ExchangeEngine.

Invariants:
    - The requester/actor is always the authenticated student (current_student)
    - Engine errors propagate to the global SwapError handler unchanged
    - Responses wrap records as {"success": true, "exchange": {...}} or {"exchanges": [...]}
"""

import logging
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status

from campus_swap.api.dependencies import current_student, get_engine
from campus_swap.core.domain_types import (
    ExchangeId, ExchangeListFilter, ExchangeStatus, ProductId, StudentId,
)
from campus_swap.schemas.exchange import (
    ExchangeActionRequest, ExchangeCreate, ExchangeEnvelope, ExchangeList, ExchangeOut,
)
from campus_swap.services.exchange_engine import ExchangeEngine

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/exchanges", tags=["exchanges"])


@router.post(
    "", response_model=ExchangeEnvelope, status_code=status.HTTP_201_CREATED,
)
async def create_exchange(
    body: ExchangeCreate,
    actor: StudentId = Depends(current_student),
    engine: ExchangeEngine = Depends(get_engine),
):
    """Propose a swap of one of the actor's products for another student's."""
    exchange = await engine.create(
        actor,
        ProductId(body.requested_product_id),
        ProductId(body.offered_product_id),
        body.message,
    )
    return ExchangeEnvelope(exchange=ExchangeOut.model_validate(exchange))


@router.get("", response_model=ExchangeList)
async def list_exchanges(
    list_type: ExchangeListFilter = Query(ExchangeListFilter.ALL, alias="type"),
    status_filter: ExchangeStatus | None = Query(None, alias="status"),
    actor: StudentId = Depends(current_student),
    engine: ExchangeEngine = Depends(get_engine),
):
    """Exchanges the actor sent, received, or both; newest first."""
    exchanges = await engine.list_for(actor, list_type, status_filter)
    return ExchangeList(
        exchanges=[ExchangeOut.model_validate(e) for e in exchanges],
    )


@router.get("/{exchange_id}", response_model=ExchangeEnvelope)
async def get_exchange(
    exchange_id: UUID,
    actor: StudentId = Depends(current_student),
    engine: ExchangeEngine = Depends(get_engine),
):
    exchange = await engine.get(ExchangeId(exchange_id), actor)
    return ExchangeEnvelope(exchange=ExchangeOut.model_validate(exchange))


@router.patch("/{exchange_id}", response_model=ExchangeEnvelope)
async def apply_exchange_action(
    exchange_id: UUID,
    body: ExchangeActionRequest,
    actor: StudentId = Depends(current_student),
    engine: ExchangeEngine = Depends(get_engine),
):
    """accept / reject (receiver), cancel (requester), complete (either party)."""
    exchange = await engine.transition(ExchangeId(exchange_id), actor, body.action)
    return ExchangeEnvelope(exchange=ExchangeOut.model_validate(exchange))
