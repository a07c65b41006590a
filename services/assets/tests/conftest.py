import json

import httpx
import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from shared.core import InMemoryEventBus
from services.assets.app.api.dependencies import get_event_bus, get_notification_client
from services.assets.app.application.low_stock import LowStockPolicy
from services.assets.app.application.service import AssetService
from services.assets.app.application.transfer import TransferService
from services.assets.app.domain.models import Asset, Base, HistoryEvent
from services.assets.app.infrastructure.asset_store import AssetStore
from services.assets.app.infrastructure.db import get_db
from services.assets.app.infrastructure.notification import NotificationClient
from services.assets.app.main import app

NOTIFY_URL = "http://notifications.test/api/notifications"


class RecordingSink:
    """Stands in for the notification API and remembers what it was sent."""

    def __init__(self):
        self.requests = []
        self.status_code = 201
        self.error = None

    def __call__(self, request: httpx.Request) -> httpx.Response:
        if self.error is not None:
            raise self.error
        self.requests.append(request)
        return httpx.Response(self.status_code, json={"ok": self.status_code < 400})

    def payloads(self):
        return [json.loads(r.content) for r in self.requests]


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(bind=engine, autoflush=False, autocommit=False, expire_on_commit=False)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def store(db):
    return AssetStore(db)


@pytest.fixture
def bus():
    return InMemoryEventBus()


@pytest.fixture
def sink():
    return RecordingSink()


@pytest.fixture
def notifier(sink):
    return NotificationClient(NOTIFY_URL, "test-secret", timeout=2.0, transport=httpx.MockTransport(sink))


@pytest.fixture
def policy(notifier, bus):
    return LowStockPolicy(notifier, bus, threshold=5, admin_id="admin1", admin_email="admin@email.com")


@pytest.fixture
def transfer_service(store, bus, policy):
    return TransferService(store, bus, policy)


@pytest.fixture
def asset_service(store, bus):
    return AssetService(store, bus)


@pytest.fixture
def make_asset(store):
    def _make(custom_id="LAP-001", quantity=10, location="Main Building", department="Engineering",
              status="active", assigned_user=None, **extra):
        asset = Asset(
            custom_id=custom_id,
            name=extra.pop("name", "MacBook Pro"),
            type=extra.pop("type", "laptop"),
            value=extra.pop("value", 1500.0),
            quantity=quantity,
            location=location,
            department=department,
            status=status,
            assigned_user=assigned_user,
            specifications=extra.pop("specifications", {"ram": "16GB", "storage": "512GB"}),
            history=[],
        )
        asset.record(HistoryEvent.CREATED, f"Initial batch of {quantity} created at {location}")
        store.create_asset(asset)
        store.commit()
        return asset
    return _make


@pytest.fixture
def client(session_factory, bus, notifier):
    def _get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = _get_db
    app.dependency_overrides[get_event_bus] = lambda: bus
    app.dependency_overrides[get_notification_client] = lambda: notifier
    yield TestClient(app)
    app.dependency_overrides.clear()
