"""ExchangeRequest ORM — a proposed swap of one student's product for another's.

Invariants:
    - receiver_id is the owner of requested_product_id at creation time
    - requester_id != receiver_id
    - status transitions follow core/exchange_transitions.py; never re-enters pending
    - At most one pending row per (requester_id, requested_product_id):
      enforced by the partial unique index uq_exchange_pending_pair

Design Decisions:
    - Partial unique index over an application-level lock: concurrent creates from
      the same requester collide in the database, surfacing as ConflictError
    - Parties and products loaded with selectin: the read paths always display them
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import String, Text, DateTime, ForeignKey, Index, CheckConstraint, text
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy.dialects.postgresql import UUID

from campus_swap.core.domain_types import ExchangeStatus
from campus_swap.db.base import Base

PENDING_PAIR_INDEX = "uq_exchange_pending_pair"
_PENDING_ONLY = text("status = 'pending'")


class ExchangeRequest(Base):
    __tablename__ = "exchange_requests"
    __table_args__ = (
        Index(
            PENDING_PAIR_INDEX, "requester_id", "requested_product_id",
            unique=True,
            postgresql_where=_PENDING_ONLY,
            sqlite_where=_PENDING_ONLY,
        ),
        Index("ix_exchange_requests_receiver", "receiver_id", "created_at"),
        Index("ix_exchange_requests_requester", "requester_id", "created_at"),
        CheckConstraint(
            "requester_id <> receiver_id", name="ck_exchange_no_self_exchange",
        ),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4,
    )
    requester_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("students.id", ondelete="CASCADE"),
        nullable=False,
    )
    receiver_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("students.id", ondelete="CASCADE"),
        nullable=False,
    )
    requested_product_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("products.id", ondelete="CASCADE"),
        nullable=False,
    )
    offered_product_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("products.id", ondelete="CASCADE"),
        nullable=False,
    )
    status: Mapped[str] = mapped_column(
        String(20), nullable=False, default=ExchangeStatus.PENDING.value,
    )
    message: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    requester: Mapped["Student"] = relationship(
        "Student", foreign_keys=[requester_id], lazy="selectin",
    )
    receiver: Mapped["Student"] = relationship(
        "Student", foreign_keys=[receiver_id], lazy="selectin",
    )
    requested_product: Mapped["Product"] = relationship(
        "Product", foreign_keys=[requested_product_id], lazy="selectin",
    )
    offered_product: Mapped["Product"] = relationship(
        "Product", foreign_keys=[offered_product_id], lazy="selectin",
    )
