"""Moderation Routes — admin removal of listings and the all-exchanges view (X-Admin-Token)."""

from uuid import UUID

from fastapi import APIRouter, Depends, Query

from campus_swap.api.dependencies import get_engine, get_moderation, require_admin
from campus_swap.core.domain_types import ExchangeStatus, ProductId
from campus_swap.schemas.exchange import ExchangeList, ExchangeOut
from campus_swap.schemas.notification import RemovedProduct
from campus_swap.services.exchange_engine import ExchangeEngine
from campus_swap.services.product_moderation import ProductModeration

router = APIRouter(
    prefix="/api/v1/moderation",
    tags=["moderation"],
    dependencies=[Depends(require_admin)],
)


@router.get("/exchanges", response_model=ExchangeList)
async def list_all_exchanges(
    status_filter: ExchangeStatus | None = Query(None, alias="status"),
    engine: ExchangeEngine = Depends(get_engine),
):
    """Every exchange on the platform, newest first."""
    exchanges = await engine.list_all(status_filter)
    return ExchangeList(
        exchanges=[ExchangeOut.model_validate(e) for e in exchanges],
    )


@router.delete("/products/{product_id}", response_model=RemovedProduct)
async def remove_product(
    product_id: UUID,
    reason: str | None = Query(None, max_length=500),
    moderation: ProductModeration = Depends(get_moderation),
):
    product = await moderation.remove_product(ProductId(product_id), reason)
    return RemovedProduct(product_id=product.id, status=product.status)
