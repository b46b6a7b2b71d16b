"""Best-effort notification delivery shared by every service that emits events.

Invariants:
    - Called only after the producing transaction has committed
    - A failed or slow delivery is logged at WARNING and dropped, never retried
    - Cancellation of the calling task still propagates
"""

import asyncio
import logging

from campus_swap.core.notification_payloads import NotificationEvent
from campus_swap.core.repository_protocols import NotificationSink

logger = logging.getLogger(__name__)


async def deliver_best_effort(
    sink: NotificationSink, event: NotificationEvent, timeout: float,
) -> bool:
    """Hand event to the sink. Returns False when delivery was dropped."""
    try:
        await asyncio.wait_for(
            sink.notify(
                event.recipient_id,
                event.type,
                event.title,
                event.message,
                event.payload.to_data(),
            ),
            timeout,
        )
        return True
    except Exception as e:
        logger.warning(
            f"Dropped {event.type.value} notification: {e}",
            exc_info=True,
            extra={
                "student_id": event.recipient_id,
                "notification_type": event.type.value,
            },
        )
        return False
