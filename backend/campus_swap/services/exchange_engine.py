"""Exchange Negotiation Engine — owns the ExchangeRequest lifecycle.

Invariants:
    - Every precondition and authorization check runs before the first write
    - accept writes the exchange and both products in ONE transaction; products move
      available -> exchanged by compare-and-swap, and a lost race aborts with ConflictError
    - create re-checks availability and the pending-pair rule inside its transaction
    - Notifications are emitted only after commit and never roll anything back
    - The actor is always an explicit argument, never ambient request state
    - The engine never retries; UnavailableError is surfaced for the caller to retry

Design Decisions:
    - Exchange row locked before product rows: two accepts sharing a product serialize
      on the product locks, and the loser sees exchanged under its CAS
    - Returned records are re-read after commit so parties and products are resolved
"""

import logging

from campus_swap.core.domain_types import (
    ExchangeAction, ExchangeId, ExchangeListFilter, ExchangeStatus,
    ProductId, ProductStatus, StudentId,
)
from campus_swap.core.enforce_exchange import build_new_exchange
from campus_swap.core.errors import (
    ConflictError, ErrorContext, ForbiddenError, InvalidStateError,
    RequestValidationFailed, ResourceNotFoundError,
)
from campus_swap.core.exchange_transitions import mutates_products, plan_transition
from campus_swap.core.notification_payloads import (
    NotificationEvent, exchange_accepted, exchange_rejected, exchange_requested,
)
from campus_swap.core.records import ExchangeRecord
from campus_swap.core.repository_protocols import (
    NotificationSink, PersistenceStore, Transaction,
)
from campus_swap.services.notification_delivery import deliver_best_effort

logger = logging.getLogger(__name__)


class ExchangeEngine:
    """create / transition / get / list over a PersistenceStore."""

    def __init__(
        self,
        store: PersistenceStore,
        sink: NotificationSink,
        notification_timeout: float = 2.0,
    ):
        self.store = store
        self.sink = sink
        self.notification_timeout = notification_timeout

    # ─── create ──────────────────────────────────────────────────

    async def create(
        self,
        requester_id: StudentId,
        requested_product_id: ProductId,
        offered_product_id: ProductId,
        message: str | None = None,
        timeout: float | None = None,
    ) -> ExchangeRecord:
        """Propose a swap. The new exchange is pending and addressed to the owner."""

        async def _insert(tx: Transaction) -> ExchangeId:
            products = await tx.lock_products([requested_product_id, offered_product_id])
            existing = await tx.find_pending(requester_id, requested_product_id)
            data = build_new_exchange(
                requester_id,
                requested_product_id,
                offered_product_id,
                products.get(requested_product_id),
                products.get(offered_product_id),
                existing,
                message,
            )
            return await tx.create_exchange(data)

        exchange_id = await self.store.run_transaction(_insert, timeout)
        exchange = await self._load(exchange_id, timeout)
        logger.info(
            "Exchange request created",
            extra={
                "exchange_id": exchange.id,
                "student_id": requester_id,
                "action": "create",
            },
        )
        await self._emit(exchange_requested(
            exchange.receiver_id,
            exchange.requester.name,
            exchange.requested_product.title,
            exchange.id,
        ))
        return exchange

    # ─── transition ──────────────────────────────────────────────

    async def transition(
        self,
        exchange_id: ExchangeId,
        actor_id: StudentId,
        action: ExchangeAction | str,
        timeout: float | None = None,
    ) -> ExchangeRecord:
        """Apply accept / reject / cancel / complete on behalf of actor_id."""
        action = _parse_action(action)

        async def _apply(tx: Transaction) -> ExchangeStatus:
            exchange = await tx.lock_exchange(exchange_id)
            if exchange is None:
                raise ResourceNotFoundError("Exchange request", str(exchange_id))
            expected, target = plan_transition(exchange, actor_id, action)
            if not await tx.set_exchange_status(exchange_id, expected, target):
                raise InvalidStateError(
                    "This request has already been processed",
                    context=ErrorContext(exchange_id=str(exchange_id), action=action.value),
                )
            if mutates_products(action):
                await _claim_products(tx, exchange)
            return target

        target = await self.store.run_transaction(_apply, timeout)
        exchange = await self._load(exchange_id, timeout)
        logger.info(
            f"Exchange moved to {target.value}",
            extra={
                "exchange_id": exchange_id,
                "student_id": actor_id,
                "action": action.value,
            },
        )
        event = _event_for(action, exchange)
        if event is not None:
            await self._emit(event)
        return exchange

    async def accept(self, exchange_id: ExchangeId, actor_id: StudentId,
                     timeout: float | None = None) -> ExchangeRecord:
        return await self.transition(exchange_id, actor_id, ExchangeAction.ACCEPT, timeout)

    async def reject(self, exchange_id: ExchangeId, actor_id: StudentId,
                     timeout: float | None = None) -> ExchangeRecord:
        return await self.transition(exchange_id, actor_id, ExchangeAction.REJECT, timeout)

    async def cancel(self, exchange_id: ExchangeId, actor_id: StudentId,
                     timeout: float | None = None) -> ExchangeRecord:
        return await self.transition(exchange_id, actor_id, ExchangeAction.CANCEL, timeout)

    async def complete(self, exchange_id: ExchangeId, actor_id: StudentId,
                       timeout: float | None = None) -> ExchangeRecord:
        return await self.transition(exchange_id, actor_id, ExchangeAction.COMPLETE, timeout)

    # ─── reads ───────────────────────────────────────────────────

    async def get(
        self, exchange_id: ExchangeId, actor_id: StudentId, timeout: float | None = None,
    ) -> ExchangeRecord:
        """Exchange detail, visible to its two parties only."""
        exchange = await self._load(exchange_id, timeout)
        if not exchange.is_party(actor_id):
            raise ForbiddenError(
                "You are not a party to this exchange",
                ErrorContext(exchange_id=str(exchange_id), student_id=str(actor_id)),
            )
        return exchange

    async def list_for(
        self,
        student_id: StudentId,
        filter: ExchangeListFilter = ExchangeListFilter.ALL,
        status: ExchangeStatus | None = None,
        timeout: float | None = None,
    ) -> list[ExchangeRecord]:
        return await self.store.list_exchanges_for(student_id, filter, status, timeout)

    async def list_all(
        self, status: ExchangeStatus | None = None, timeout: float | None = None,
    ) -> list[ExchangeRecord]:
        """Admin view across all students. Callers gate access."""
        return await self.store.list_all_exchanges(status, timeout)

    # ─── internals ───────────────────────────────────────────────

    async def _load(self, exchange_id: ExchangeId, timeout: float | None) -> ExchangeRecord:
        exchange = await self.store.get_exchange(exchange_id, timeout)
        if exchange is None:
            raise ResourceNotFoundError("Exchange request", str(exchange_id))
        return exchange

    async def _emit(self, event: NotificationEvent) -> None:
        await deliver_best_effort(self.sink, event, self.notification_timeout)


async def _claim_products(tx: Transaction, exchange: ExchangeRecord) -> None:
    """Flip both products available -> exchanged, or abort the transaction."""
    product_ids = [exchange.requested_product_id, exchange.offered_product_id]
    await tx.lock_products(product_ids)
    for product_id in product_ids:
        claimed = await tx.set_product_status(
            product_id, ProductStatus.AVAILABLE, ProductStatus.EXCHANGED,
        )
        if not claimed:
            raise ConflictError(
                "One of the products is no longer available for exchange",
                ErrorContext(exchange_id=str(exchange.id), action="accept"),
            )


def _event_for(action: ExchangeAction, exchange: ExchangeRecord) -> NotificationEvent | None:
    """Notification owed to the requester after a committed transition, if any."""
    if action == ExchangeAction.ACCEPT:
        return exchange_accepted(
            exchange.requester_id,
            exchange.receiver.name,
            exchange.requested_product.title,
            exchange.id,
        )
    if action == ExchangeAction.REJECT:
        return exchange_rejected(
            exchange.requester_id,
            exchange.receiver.name,
            exchange.requested_product.title,
            exchange.id,
        )
    return None


def _parse_action(action: ExchangeAction | str) -> ExchangeAction:
    try:
        return ExchangeAction(action)
    except ValueError:
        raise RequestValidationFailed(f"Invalid action: {action}", "action")
