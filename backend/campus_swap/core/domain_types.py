"""Domain Types — rich types that replace bare primitives across the codebase.

Invariants:
    - StudentId, ProductId, ExchangeId, MessageId, NotificationId wrap UUIDs
    - All lifecycle states encoded as closed Enums — no raw string matching
    - ExchangeStatus values match the `status` column of exchange_requests

Design Decisions:
    - NewType over dataclass wrappers: zero runtime cost, full type-checker support
    - str Enums: serialize to JSON without custom encoders
"""

from enum import Enum
from typing import NewType
from uuid import UUID


# ─── Identity Types ──────────────────────────────────────────────

StudentId = NewType("StudentId", UUID)
ProductId = NewType("ProductId", UUID)
ExchangeId = NewType("ExchangeId", UUID)
MessageId = NewType("MessageId", UUID)
NotificationId = NewType("NotificationId", UUID)


# ─── Enums ───────────────────────────────────────────────────────

class ProductStatus(str, Enum):
    """Listing lifecycle — only AVAILABLE products may enter a new exchange."""
    AVAILABLE = "available"
    EXCHANGED = "exchanged"
    SOLD = "sold"
    DELETED = "deleted"


class ExchangeStatus(str, Enum):
    """ExchangeRequest lifecycle states — maps to DB `status` column."""
    PENDING = "pending"
    ACCEPTED = "accepted"
    REJECTED = "rejected"
    CANCELLED = "cancelled"
    COMPLETED = "completed"


class ExchangeAction(str, Enum):
    """Actions a party may apply to an existing exchange."""
    ACCEPT = "accept"
    REJECT = "reject"
    CANCEL = "cancel"
    COMPLETE = "complete"


class NotificationType(str, Enum):
    """Notification kinds emitted by the engine and its collaborators."""
    EXCHANGE_REQUEST = "exchange_request"
    EXCHANGE_ACCEPTED = "exchange_accepted"
    EXCHANGE_REJECTED = "exchange_rejected"
    MESSAGE = "message"
    PRODUCT_DELETED = "product_deleted"


class ExchangeListFilter(str, Enum):
    """Which side of the negotiation a listing covers."""
    ALL = "all"
    SENT = "sent"
    RECEIVED = "received"


class ProductCategory(str, Enum):
    ELECTRONICS = "Electronics"
    BOOKS = "Books"
    FURNITURE = "Furniture"
    CLOTHING = "Clothing"
    SPORTS_EQUIPMENT = "Sports Equipment"
    MUSICAL_INSTRUMENTS = "Musical Instruments"
    STATIONERY = "Stationery"
    KITCHEN_ITEMS = "Kitchen Items"
    DECORATIONS = "Decorations"
    OTHER = "Other"


class ProductCondition(str, Enum):
    BRAND_NEW = "Brand New"
    LIKE_NEW = "Like New"
    GOOD = "Good"
    FAIR = "Fair"
    POOR = "Poor"
