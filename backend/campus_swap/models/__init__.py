"""ORM Models — SQLAlchemy declarative models for all domain entities.

Invariants:
    - All models inherit from Base (db/base.py)
    - Status columns store the `.value` of the core enums

Design Decisions:
    - One file per entity for locality
    - All models imported here so SQLAlchemy resolves string-based relationship()
      references before any query runs
"""

from campus_swap.models.student import Student  # noqa: F401
from campus_swap.models.product import Product  # noqa: F401
from campus_swap.models.exchange_request import ExchangeRequest  # noqa: F401
from campus_swap.models.message import Message  # noqa: F401
from campus_swap.models.notification import Notification  # noqa: F401
