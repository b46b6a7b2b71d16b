"""HTTP routes — exchange, chat, inbox, and moderation endpoints end to end.

Tests cover:
    - Identity comes from X-Student-Id; missing or malformed -> 401
    - camelCase request and response bodies
    - Domain errors map to 400/403/404/409 with the error envelope
    - Admin removal requires X-Admin-Token
"""

from uuid import uuid4

from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient

from campus_swap.api.error_handlers import register_error_handlers
from campus_swap.core.errors import UnavailableError

ADMIN = {"X-Admin-Token": "test-admin-token"}


def _as(student_id) -> dict:
    return {"X-Student-Id": str(student_id)}


async def _propose(client, seed, message=None):
    body = {
        "requestedProductId": str(seed.p2),
        "offeredProductId": str(seed.p1),
    }
    if message is not None:
        body["message"] = message
    return await client.post("/api/v1/exchanges", json=body, headers=_as(seed.alice))


async def test_create_exchange(client, seed):
    res = await _propose(client, seed, "Would you swap?")

    assert res.status_code == 201
    body = res.json()
    assert body["success"] is True
    exchange = body["exchange"]
    assert exchange["status"] == "pending"
    assert exchange["receiverId"] == str(seed.bob)
    assert exchange["message"] == "Would you swap?"
    assert exchange["requestedProduct"]["title"] == "Desk Lamp"
    assert exchange["requestedProduct"]["monetaryWorth"] == 3000.0
    assert exchange["requester"]["matricNumber"] == "U2020/001"


async def test_missing_identity_is_401(client, seed):
    res = await client.get("/api/v1/exchanges")
    assert res.status_code == 401
    assert res.json()["error"]["code"] == "UNAUTHENTICATED"


async def test_malformed_identity_is_401(client, seed):
    res = await client.get("/api/v1/exchanges", headers={"X-Student-Id": "not-a-uuid"})
    assert res.status_code == 401


async def test_duplicate_request_is_409(client, seed):
    await _propose(client, seed)
    res = await _propose(client, seed)
    assert res.status_code == 409
    assert res.json()["error"]["code"] == "CONFLICT"


async def test_missing_product_field_is_400(client, seed):
    res = await client.post(
        "/api/v1/exchanges",
        json={"requestedProductId": str(seed.p2)},
        headers=_as(seed.alice),
    )
    assert res.status_code == 400
    assert res.json()["error"]["code"] == "VALIDATION_ERROR"


async def test_accept_and_complete(client, seed):
    exchange_id = (await _propose(client, seed)).json()["exchange"]["id"]

    res = await client.patch(
        f"/api/v1/exchanges/{exchange_id}", json={"action": "accept"}, headers=_as(seed.bob),
    )
    assert res.status_code == 200
    exchange = res.json()["exchange"]
    assert exchange["status"] == "accepted"
    assert exchange["offeredProduct"]["status"] == "exchanged"

    res = await client.patch(
        f"/api/v1/exchanges/{exchange_id}", json={"action": "complete"},
        headers=_as(seed.alice),
    )
    assert res.json()["exchange"]["status"] == "completed"


async def test_outsider_accept_is_403(client, seed):
    exchange_id = (await _propose(client, seed)).json()["exchange"]["id"]
    res = await client.patch(
        f"/api/v1/exchanges/{exchange_id}", json={"action": "accept"},
        headers=_as(seed.carol),
    )
    assert res.status_code == 403
    assert res.json()["error"]["message"] == "Only the receiver can accept or reject"


async def test_second_accept_is_400(client, seed):
    exchange_id = (await _propose(client, seed)).json()["exchange"]["id"]
    url = f"/api/v1/exchanges/{exchange_id}"
    await client.patch(url, json={"action": "accept"}, headers=_as(seed.bob))
    res = await client.patch(url, json={"action": "reject"}, headers=_as(seed.bob))
    assert res.status_code == 400
    assert res.json()["error"]["code"] == "INVALID_STATE"


async def test_unknown_action_is_400(client, seed):
    exchange_id = (await _propose(client, seed)).json()["exchange"]["id"]
    res = await client.patch(
        f"/api/v1/exchanges/{exchange_id}", json={"action": "approve"},
        headers=_as(seed.bob),
    )
    assert res.status_code == 400


async def test_unknown_exchange_is_404(client, seed):
    res = await client.get(f"/api/v1/exchanges/{uuid4()}", headers=_as(seed.alice))
    assert res.status_code == 404


async def test_list_filters(client, seed):
    await _propose(client, seed)

    sent = await client.get("/api/v1/exchanges?type=sent", headers=_as(seed.alice))
    received = await client.get("/api/v1/exchanges?type=received", headers=_as(seed.alice))
    bob_pending = await client.get(
        "/api/v1/exchanges?type=received&status=pending", headers=_as(seed.bob),
    )

    assert len(sent.json()["exchanges"]) == 1
    assert received.json()["exchanges"] == []
    assert len(bob_pending.json()["exchanges"]) == 1


async def test_chat_round_trip(client, seed):
    exchange_id = (await _propose(client, seed)).json()["exchange"]["id"]
    url = f"/api/v1/exchanges/{exchange_id}/messages"

    res = await client.post(url, json={"content": "Hi Bob"}, headers=_as(seed.alice))
    assert res.status_code == 201
    assert res.json()["message"]["recipientId"] == str(seed.bob)

    res = await client.get(url, headers=_as(seed.bob))
    assert [m["content"] for m in res.json()["messages"]] == ["Hi Bob"]

    res = await client.get(url, headers=_as(seed.carol))
    assert res.status_code == 403


async def test_blank_chat_message_is_400(client, seed):
    exchange_id = (await _propose(client, seed)).json()["exchange"]["id"]
    res = await client.post(
        f"/api/v1/exchanges/{exchange_id}/messages",
        json={"content": "   "},
        headers=_as(seed.alice),
    )
    assert res.status_code == 400


async def test_notification_inbox(client, seed):
    await _propose(client, seed)

    res = await client.get("/api/v1/notifications", headers=_as(seed.bob))
    body = res.json()
    assert body["unreadCount"] == 1
    [notification] = body["notifications"]
    assert notification["type"] == "exchange_request"
    assert "exchangeId" in notification["data"]

    res = await client.patch(
        f"/api/v1/notifications/{notification['id']}/read", headers=_as(seed.alice),
    )
    assert res.status_code == 403

    res = await client.patch(
        f"/api/v1/notifications/{notification['id']}/read", headers=_as(seed.bob),
    )
    assert res.json() == {"success": True}

    res = await client.get(
        "/api/v1/notifications?unreadOnly=true", headers=_as(seed.bob),
    )
    assert res.json()["notifications"] == []


async def test_mark_all_read(client, seed):
    await _propose(client, seed)
    res = await client.patch("/api/v1/notifications/read-all", headers=_as(seed.bob))
    assert res.json()["updated"] == 1


async def test_moderation_requires_admin_token(client, seed):
    url = f"/api/v1/moderation/products/{seed.p2}"
    assert (await client.delete(url)).status_code == 401
    assert (await client.delete(url, headers={"X-Admin-Token": "wrong"})).status_code == 403


async def test_moderation_removes_product(client, seed):
    res = await client.delete(
        f"/api/v1/moderation/products/{seed.p2}?reason=Spam", headers=ADMIN,
    )
    assert res.status_code == 200
    assert res.json() == {"success": True, "productId": str(seed.p2), "status": "deleted"}

    res = await client.get("/api/v1/notifications", headers=_as(seed.bob))
    [notification] = res.json()["notifications"]
    assert notification["type"] == "product_deleted"
    assert notification["data"] == {"productTitle": "Desk Lamp", "reason": "Spam"}


async def test_health(client):
    res = await client.get("/api/v1/health/")
    assert res.status_code == 200
    res = await client.get("/api/v1/health/ready")
    assert res.json()["status"] == "ready"


async def test_unavailable_carries_retry_after():
    app = FastAPI()
    register_error_handlers(app)

    @app.get("/flaky")
    async def flaky():
        raise UnavailableError("timed out", "transaction", retry_after_ms=2500)

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as c:
        res = await c.get("/flaky")

    assert res.status_code == 503
    assert res.headers["Retry-After"] == "3"
    assert res.json()["error"]["retryable"] is True


async def test_admin_exchange_view_requires_token(client, seed):
    assert (await client.get("/api/v1/moderation/exchanges")).status_code == 401
    res = await client.get(
        "/api/v1/moderation/exchanges", headers={"X-Admin-Token": "wrong"},
    )
    assert res.status_code == 403


async def test_admin_exchange_view_lists_newest_first(client, seed):
    first = (await _propose(client, seed)).json()["exchange"]
    res = await client.post(
        "/api/v1/exchanges",
        json={"requestedProductId": str(seed.p3), "offeredProductId": str(seed.p4)},
        headers=_as(seed.carol),
    )
    second = res.json()["exchange"]

    res = await client.get("/api/v1/moderation/exchanges", headers=ADMIN)
    assert res.status_code == 200
    exchanges = res.json()["exchanges"]
    assert [e["id"] for e in exchanges] == [second["id"], first["id"]]
    assert exchanges[0]["requester"]["name"] == "Carol"
    assert exchanges[0]["requestedProduct"]["title"] == "Physics Textbook"

    res = await client.get(
        "/api/v1/moderation/exchanges?status=accepted", headers=ADMIN,
    )
    assert res.json()["exchanges"] == []
