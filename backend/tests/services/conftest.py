"""Service test fixtures — file-backed SQLite store, seeded students, fake sinks.

Invariants:
    - Every test gets a fresh database file under tmp_path
    - The manager is a real DatabaseSessionManager, so BEGIN IMMEDIATE serialization
      and error mapping are the ones production code runs with
    - db_manager module global patched for the HTTP client, restored afterwards

Design Decisions:
    - File database over :memory:: concurrent transactions need separate connections,
      and an in-memory database is private to one connection
"""

from decimal import Decimal
from types import SimpleNamespace

import pytest
from httpx import ASGITransport, AsyncClient

from campus_swap.core.domain_types import ProductId, StudentId
from campus_swap.db.base import Base
from campus_swap.infrastructure.database import DatabaseSessionManager
from campus_swap.infrastructure.notification_sink import SqlNotificationSink
from campus_swap.infrastructure.sql_store import (
    SqlMessageRepository, SqlNotificationRepository, SqlPersistenceStore,
)
from campus_swap.models.product import Product
from campus_swap.models.student import Student
from campus_swap.services.exchange_engine import ExchangeEngine
import campus_swap.infrastructure.database as db_module
from campus_swap.main import app

from fake_sinks import RecordingSink


@pytest.fixture
async def db_manager(tmp_path):
    manager = DatabaseSessionManager(f"sqlite+aiosqlite:///{tmp_path / 'swap.db'}")
    async with manager.engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield manager
    await manager.dispose()


@pytest.fixture
async def seed(db_manager):
    """Alice owns P1 and P3, Bob owns P2, Carol owns P4."""
    alice = Student(matric_number="U2020/001", email="alice@uni.edu", name="Alice")
    bob = Student(matric_number="U2020/002", email="bob@uni.edu", name="Bob")
    carol = Student(matric_number="U2020/003", email="carol@uni.edu", name="Carol")
    async with db_manager.transaction() as db:
        db.add_all([alice, bob, carol])
        await db.flush()
        p1 = Product(student_id=alice.id, title="Scientific Calculator",
                     monetary_worth=Decimal("5000"))
        p2 = Product(student_id=bob.id, title="Desk Lamp",
                     monetary_worth=Decimal("3000"))
        p3 = Product(student_id=alice.id, title="Physics Textbook",
                     monetary_worth=Decimal("4500"))
        p4 = Product(student_id=carol.id, title="Electric Kettle",
                     monetary_worth=Decimal("6000"))
        db.add_all([p1, p2, p3, p4])
        await db.flush()
    return SimpleNamespace(
        alice=StudentId(alice.id),
        bob=StudentId(bob.id),
        carol=StudentId(carol.id),
        p1=ProductId(p1.id),
        p2=ProductId(p2.id),
        p3=ProductId(p3.id),
        p4=ProductId(p4.id),
    )


@pytest.fixture
def store(db_manager):
    return SqlPersistenceStore(db_manager)


@pytest.fixture
def messages(db_manager):
    return SqlMessageRepository(db_manager)


@pytest.fixture
def notifications(db_manager):
    return SqlNotificationRepository(db_manager)


@pytest.fixture
def sink():
    return RecordingSink()


@pytest.fixture
def engine(store, sink):
    return ExchangeEngine(store, sink, notification_timeout=0.5)


@pytest.fixture
def sql_engine(store, db_manager):
    """Engine writing notifications into the real inbox table."""
    return ExchangeEngine(store, SqlNotificationSink(db_manager))


@pytest.fixture
async def client(db_manager, seed):
    """FastAPI test client over the seeded test database."""
    original_manager = db_module.db_manager
    db_module.db_manager = db_manager

    async with AsyncClient(
        transport=ASGITransport(app=app), base_url="http://test",
    ) as c:
        yield c

    db_module.db_manager = original_manager