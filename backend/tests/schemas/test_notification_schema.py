"""Notification schema — stored payloads are read back through their typed variant."""

from uuid import uuid4

import pytest

from campus_swap.core.domain_types import NotificationId, NotificationType, StudentId
from campus_swap.core.records import NotificationRecord
from campus_swap.schemas.notification import NotificationOut


def _record(type, payload):
    return NotificationRecord(
        id=NotificationId(uuid4()),
        recipient_id=StudentId(uuid4()),
        type=type,
        title="t",
        message="m",
        payload=payload,
    )


def test_exchange_payload_keeps_only_its_fields():
    exchange_id = str(uuid4())
    out = NotificationOut.from_record(_record(
        NotificationType.EXCHANGE_ACCEPTED,
        {"exchangeId": exchange_id, "legacy": "ignored"},
    ))
    assert out.data == {"exchangeId": exchange_id}


def test_product_deleted_payload_round_trips():
    data = {"productTitle": "Desk Lamp", "reason": "Spam"}
    out = NotificationOut.from_record(_record(NotificationType.PRODUCT_DELETED, data))
    assert out.data == data
    assert out.model_dump(by_alias=True)["studentId"] is not None


def test_payload_missing_its_key_is_rejected():
    with pytest.raises(KeyError):
        NotificationOut.from_record(_record(NotificationType.MESSAGE, {}))
