"""Shared fixtures: an in-memory ledger database per test."""

import os

os.environ.setdefault("DATABASE_URL", "sqlite+pysqlite:///:memory:")
os.environ.setdefault("WEBSOCKET_ENABLED", "false")

from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, List, Tuple

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine, event
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from storeledger.db.dependencies import get_db
from storeledger.domain.accounting.chart import seed_chart_of_accounts
from storeledger.domain.accounting.enums import OrderStatus, PaymentMethod
from storeledger.domain.accounting.posting_service import OrderItem, OrderSnapshot
from storeledger.main import app
from storeledger.models import Base, Product
from storeledger.services.notifications import get_event_publisher


class RecordingEventPublisher:
    """Keeps published events for assertions."""

    def __init__(self):
        self.events: List[Tuple[str, Dict[str, Any]]] = []

    def publish(self, topic: str, payload: Dict[str, Any]) -> None:
        self.events.append((topic, payload))

    def topics(self) -> List[str]:
        return [topic for topic, _ in self.events]


@pytest.fixture
def engine():
    """Fresh in-memory SQLite database with SAVEPOINT support."""
    engine = create_engine(
        "sqlite+pysqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    # pysqlite's own transaction handling breaks nested transactions
    @event.listens_for(engine, "connect")
    def do_connect(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine, "begin")
    def do_begin(conn):
        conn.exec_driver_sql("BEGIN")

    Base.metadata.create_all(bind=engine)
    try:
        yield engine
    finally:
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture
def db(engine) -> Session:
    """Provide database session for tests."""
    TestingSession = sessionmaker(bind=engine, autocommit=False, autoflush=False)
    db = TestingSession()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture
def ledger(db: Session) -> Session:
    """Session with the default chart of accounts loaded."""
    seed_chart_of_accounts(db)
    return db


@pytest.fixture
def publisher() -> RecordingEventPublisher:
    return RecordingEventPublisher()


@pytest.fixture
def client(ledger: Session, publisher: RecordingEventPublisher):
    """API client sharing the test session."""

    def override_get_db():
        yield ledger

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_event_publisher] = lambda: publisher
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


@pytest.fixture
def products(ledger: Session) -> Dict[str, Product]:
    """Two stocked products, one with a known average cost."""
    tee = Product(id="TEE-01", name="T-shirt", price=Decimal("200000"), average_cost=Decimal("120000"), stock=10)
    mug = Product(id="MUG-01", name="Mug", price=Decimal("50000"), average_cost=None, stock=1)
    ledger.add_all([tee, mug])
    ledger.commit()
    return {"tee": tee, "mug": mug}


@pytest.fixture
def make_order():
    """Factory for order snapshots."""

    def _make_order(
        order_id: str = "1001",
        total: str = "500000",
        payment_method: PaymentMethod = PaymentMethod.BANK_TRANSFER,
        status: OrderStatus = OrderStatus.CONFIRMED,
        created_at: datetime = datetime(2025, 3, 10, 9, 30),
        shipped_at: datetime | None = None,
        items: List[OrderItem] | None = None,
        **customer,
    ) -> OrderSnapshot:
        return OrderSnapshot(
            id=order_id,
            total=Decimal(total),
            payment_method=payment_method,
            status=status,
            created_at=created_at,
            shipped_at=shipped_at,
            items=items or [],
            **customer,
        )

    return _make_order
