"""Exchange Creation Rules — pure preconditions for a new ExchangeRequest.

Invariants:
    - Both products exist (NotFound), both are available (InvalidState)
    - The requester owns the offered product and does not own the requested one (Forbidden)
    - At most one pending request per (requester, requested product) (Conflict)
    - receiver_id is derived from the requested product's owner, never from input
    - All functions are PURE: checks run again inside the create transaction
      against freshly locked rows

Design Decisions:
    - Raise typed errors rather than return error dicts: the engine propagates them
      unchanged to the HTTP layer
"""

from campus_swap.core.domain_types import ProductId, StudentId
from campus_swap.core.errors import (
    ConflictError, ErrorContext, ForbiddenError, InvalidStateError,
    RequestValidationFailed, ResourceNotFoundError,
)
from campus_swap.core.records import ExchangeRecord, NewExchange, ProductRecord

MAX_NOTE_LENGTH = 1000
MAX_MESSAGE_LENGTH = 2000


def check_products_exist(
    requested_product_id: ProductId,
    offered_product_id: ProductId,
    requested: ProductRecord | None,
    offered: ProductRecord | None,
) -> tuple[ProductRecord, ProductRecord]:
    if requested is None:
        raise ResourceNotFoundError("Product", str(requested_product_id))
    if offered is None:
        raise ResourceNotFoundError("Product", str(offered_product_id))
    return requested, offered


def check_products_available(requested: ProductRecord, offered: ProductRecord) -> None:
    for product in (requested, offered):
        if not product.is_available:
            raise InvalidStateError(
                "Products must be available for exchange",
                current_status=product.status.value,
            )


def check_ownership(
    requester_id: StudentId, requested: ProductRecord, offered: ProductRecord,
) -> None:
    ctx = ErrorContext(student_id=str(requester_id))
    if offered.owner_id != requester_id:
        raise ForbiddenError("You can only offer your own products", ctx)
    if requested.owner_id == requester_id:
        raise ForbiddenError("You cannot request your own product", ctx)


def check_no_pending_duplicate(existing: ExchangeRecord | None) -> None:
    if existing is not None:
        raise ConflictError(
            "You already have a pending request for this product",
            ErrorContext(exchange_id=str(existing.id)),
        )


def normalize_note(message: str | None) -> str | None:
    """Strip the optional proposal note; blank becomes None."""
    if message is None:
        return None
    message = message.strip()
    if len(message) > MAX_NOTE_LENGTH:
        raise RequestValidationFailed(
            f"Message must be at most {MAX_NOTE_LENGTH} characters", "message",
        )
    return message or None


def normalize_chat_content(content: str) -> str:
    """Strip chat content; blank content is rejected."""
    content = (content or "").strip()
    if not content:
        raise RequestValidationFailed("Message content is required", "content")
    if len(content) > MAX_MESSAGE_LENGTH:
        raise RequestValidationFailed(
            f"Message content must be at most {MAX_MESSAGE_LENGTH} characters",
            "content",
        )
    return content


def build_new_exchange(
    requester_id: StudentId,
    requested_product_id: ProductId,
    offered_product_id: ProductId,
    requested: ProductRecord | None,
    offered: ProductRecord | None,
    existing_pending: ExchangeRecord | None,
    message: str | None = None,
) -> NewExchange:
    """Run every create precondition in order; first failure wins."""
    requested, offered = check_products_exist(
        requested_product_id, offered_product_id, requested, offered,
    )
    check_products_available(requested, offered)
    check_ownership(requester_id, requested, offered)
    check_no_pending_duplicate(existing_pending)
    return NewExchange(
        requester_id=requester_id,
        receiver_id=requested.owner_id,
        requested_product_id=requested.id,
        offered_product_id=offered.id,
        message=normalize_note(message),
    )
