"""Exchange Engine — lifecycle scenarios against the SQL store.

Tests cover:
    - create -> accept -> complete, with both products flipped to exchanged
    - Duplicate pending request -> Conflict
    - Outsider accept -> Forbidden, double accept -> InvalidState
    - Two accepts racing for one product: exactly one wins, the other sees Conflict
    - A pending exchange whose product went elsewhere cannot be accepted later
    - Notification failure or slowness never rolls back the transition
    - Listing by side and status, detail visible to parties only
"""

import asyncio
from uuid import uuid4

import pytest

from campus_swap.core.domain_types import (
    ExchangeAction, ExchangeId, ExchangeListFilter, ExchangeStatus,
    ProductId, ProductStatus,
)
from campus_swap.core.errors import (
    ConflictError, ForbiddenError, InvalidStateError,
    RequestValidationFailed, ResourceNotFoundError,
)
from campus_swap.services.exchange_engine import ExchangeEngine

from fake_sinks import FailingSink, SlowSink


async def test_create_addresses_product_owner(engine, seed, sink):
    exchange = await engine.create(seed.alice, seed.p2, seed.p1, "  Swap for my calculator?  ")

    assert exchange.status == ExchangeStatus.PENDING
    assert exchange.requester_id == seed.alice
    assert exchange.receiver_id == seed.bob
    assert exchange.message == "Swap for my calculator?"
    assert exchange.requester.name == "Alice"
    assert exchange.requested_product.title == "Desk Lamp"
    assert exchange.offered_product.status == ProductStatus.AVAILABLE

    assert len(sink.sent) == 1
    assert sink.sent[0]["recipient_id"] == seed.bob
    assert sink.sent[0]["message"] == "Alice wants to exchange for your Desk Lamp"
    assert sink.sent[0]["payload"] == {"exchangeId": str(exchange.id)}


async def test_full_lifecycle_flips_products(engine, store, seed, sink):
    exchange = await engine.create(seed.alice, seed.p2, seed.p1)

    accepted = await engine.accept(exchange.id, seed.bob)
    assert accepted.status == ExchangeStatus.ACCEPTED
    assert (await store.get_product(seed.p1)).status == ProductStatus.EXCHANGED
    assert (await store.get_product(seed.p2)).status == ProductStatus.EXCHANGED
    assert sink.sent[-1]["recipient_id"] == seed.alice
    assert sink.sent[-1]["title"] == "Exchange Accepted"

    completed = await engine.complete(exchange.id, seed.alice)
    assert completed.status == ExchangeStatus.COMPLETED
    assert (await store.get_product(seed.p1)).status == ProductStatus.EXCHANGED


async def test_duplicate_pending_request_conflicts(engine, seed):
    await engine.create(seed.alice, seed.p2, seed.p1)
    with pytest.raises(ConflictError):
        await engine.create(seed.alice, seed.p2, seed.p3)


async def test_racing_creates_for_same_product(engine, seed):
    """Two proposals from Alice for P2 at once: one pending row, one Conflict."""
    results = await asyncio.gather(
        engine.create(seed.alice, seed.p2, seed.p1),
        engine.create(seed.alice, seed.p2, seed.p3),
        return_exceptions=True,
    )

    created = [r for r in results if not isinstance(r, Exception)]
    conflicts = [r for r in results if isinstance(r, ConflictError)]
    assert len(created) == 1
    assert len(conflicts) == 1

    pending = await engine.list_for(seed.alice, status=ExchangeStatus.PENDING)
    assert [e.id for e in pending] == [created[0].id]


async def test_new_request_allowed_after_cancel(engine, seed):
    first = await engine.create(seed.alice, seed.p2, seed.p1)
    await engine.cancel(first.id, seed.alice)

    second = await engine.create(seed.alice, seed.p2, seed.p1)
    assert second.id != first.id
    assert second.status == ExchangeStatus.PENDING


async def test_create_rejects_foreign_offer(engine, seed):
    with pytest.raises(ForbiddenError, match="only offer your own"):
        await engine.create(seed.alice, seed.p2, seed.p4)
    assert await engine.list_for(seed.alice) == []
    assert await engine.list_for(seed.carol) == []


async def test_create_rejects_unknown_product(engine, seed):
    with pytest.raises(ResourceNotFoundError):
        await engine.create(seed.alice, seed.p2, ProductId(uuid4()))


async def test_outsider_cannot_accept(engine, seed):
    exchange = await engine.create(seed.alice, seed.p2, seed.p1)
    with pytest.raises(ForbiddenError):
        await engine.accept(exchange.id, seed.carol)
    assert (await engine.get(exchange.id, seed.alice)).status == ExchangeStatus.PENDING


async def test_double_accept_is_invalid_state(engine, seed):
    exchange = await engine.create(seed.alice, seed.p2, seed.p1)
    await engine.accept(exchange.id, seed.bob)
    with pytest.raises(InvalidStateError, match="already been processed"):
        await engine.accept(exchange.id, seed.bob)


async def test_complete_requires_accept(engine, seed):
    exchange = await engine.create(seed.alice, seed.p2, seed.p1)
    with pytest.raises(InvalidStateError, match="must be accepted first"):
        await engine.complete(exchange.id, seed.bob)


async def test_cancel_only_from_pending(engine, seed):
    exchange = await engine.create(seed.alice, seed.p2, seed.p1)
    await engine.accept(exchange.id, seed.bob)
    with pytest.raises(InvalidStateError):
        await engine.cancel(exchange.id, seed.alice)


async def test_reject_leaves_products_available(engine, store, seed, sink):
    exchange = await engine.create(seed.alice, seed.p2, seed.p1)
    rejected = await engine.reject(exchange.id, seed.bob)

    assert rejected.status == ExchangeStatus.REJECTED
    assert (await store.get_product(seed.p1)).status == ProductStatus.AVAILABLE
    assert (await store.get_product(seed.p2)).status == ProductStatus.AVAILABLE
    assert sink.sent[-1]["type"].value == "exchange_rejected"


async def test_unknown_action_is_validation_error(engine, seed):
    exchange = await engine.create(seed.alice, seed.p2, seed.p1)
    with pytest.raises(RequestValidationFailed):
        await engine.transition(exchange.id, seed.bob, "approve")


async def test_transition_on_missing_exchange_is_not_found(engine, seed):
    with pytest.raises(ResourceNotFoundError):
        await engine.accept(ExchangeId(uuid4()), seed.bob)


async def test_racing_accepts_share_one_product(engine, store, seed):
    """Alice and Carol both ask Bob for P2; Bob accepts both at once."""
    from_alice = await engine.create(seed.alice, seed.p2, seed.p1)
    from_carol = await engine.create(seed.carol, seed.p2, seed.p4)

    results = await asyncio.gather(
        engine.accept(from_alice.id, seed.bob),
        engine.accept(from_carol.id, seed.bob),
        return_exceptions=True,
    )

    accepted = [r for r in results if not isinstance(r, Exception)]
    conflicts = [r for r in results if isinstance(r, ConflictError)]
    assert len(accepted) == 1
    assert len(conflicts) == 1
    assert (await store.get_product(seed.p2)).status == ProductStatus.EXCHANGED

    loser = from_carol if accepted[0].id == from_alice.id else from_alice
    assert (await store.get_exchange(loser.id)).status == ExchangeStatus.PENDING


async def test_stale_pending_exchange_cannot_be_accepted(engine, store, seed):
    from_alice = await engine.create(seed.alice, seed.p2, seed.p1)
    from_carol = await engine.create(seed.carol, seed.p2, seed.p4)
    await engine.accept(from_alice.id, seed.bob)

    with pytest.raises(ConflictError, match="no longer available"):
        await engine.accept(from_carol.id, seed.bob)

    stale = await store.get_exchange(from_carol.id)
    assert stale.status == ExchangeStatus.PENDING
    assert (await store.get_product(seed.p4)).status == ProductStatus.AVAILABLE


async def test_cyclic_pending_pair_second_accept_conflicts(engine, seed):
    """A asks for B's item and B asks for A's item with the same two products."""
    a_to_b = await engine.create(seed.alice, seed.p2, seed.p1)
    b_to_a = await engine.create(seed.bob, seed.p1, seed.p2)

    await engine.accept(a_to_b.id, seed.bob)
    with pytest.raises(ConflictError):
        await engine.accept(b_to_a.id, seed.alice)


async def test_failed_notification_does_not_roll_back(store, seed):
    engine = ExchangeEngine(store, FailingSink())
    exchange = await engine.create(seed.alice, seed.p2, seed.p1)
    accepted = await engine.transition(exchange.id, seed.bob, ExchangeAction.ACCEPT)

    assert accepted.status == ExchangeStatus.ACCEPTED
    assert (await store.get_exchange(exchange.id)).status == ExchangeStatus.ACCEPTED


async def test_slow_notification_is_dropped(store, seed):
    engine = ExchangeEngine(store, SlowSink(), notification_timeout=0.05)
    exchange = await engine.create(seed.alice, seed.p2, seed.p1)
    assert (await store.get_exchange(exchange.id)).status == ExchangeStatus.PENDING


async def test_list_by_side_and_status(engine, seed):
    sent = await engine.create(seed.alice, seed.p2, seed.p1)
    received = await engine.create(seed.carol, seed.p3, seed.p4)
    await engine.reject(received.id, seed.alice)

    everything = await engine.list_for(seed.alice)
    assert [e.id for e in everything] == [received.id, sent.id]

    only_sent = await engine.list_for(seed.alice, ExchangeListFilter.SENT)
    assert [e.id for e in only_sent] == [sent.id]

    only_received = await engine.list_for(seed.alice, ExchangeListFilter.RECEIVED)
    assert [e.id for e in only_received] == [received.id]

    pending = await engine.list_for(seed.alice, status=ExchangeStatus.PENDING)
    assert [e.id for e in pending] == [sent.id]


async def test_get_is_visible_to_parties_only(engine, seed):
    exchange = await engine.create(seed.alice, seed.p2, seed.p1)
    assert (await engine.get(exchange.id, seed.bob)).id == exchange.id
    with pytest.raises(ForbiddenError):
        await engine.get(exchange.id, seed.carol)


async def test_list_all_covers_every_student(engine, seed):
    first = await engine.create(seed.alice, seed.p2, seed.p1)
    second = await engine.create(seed.carol, seed.p3, seed.p4)
    await engine.reject(second.id, seed.alice)

    assert [e.id for e in await engine.list_all()] == [second.id, first.id]
    rejected = await engine.list_all(ExchangeStatus.REJECTED)
    assert [e.id for e in rejected] == [second.id]
