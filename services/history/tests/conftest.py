import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine, select
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from shared.core import InMemoryEventBus
from services.history.app.application.projector import HistoryProjector
from services.history.app.domain.models import Base, HistoryEntry
from services.history.app.infrastructure.db import get_db
from services.history.app.main import app


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
def bus():
    return InMemoryEventBus()


@pytest.fixture
def projector(session_factory, bus):
    projector = HistoryProjector(session_factory, bus)
    projector.start()
    return projector


@pytest.fixture
def ledger(session_factory):
    """Rows for one asset, oldest first."""
    def _rows(asset_id=None):
        with session_factory() as session:
            stmt = select(HistoryEntry).order_by(HistoryEntry.id)
            if asset_id is not None:
                stmt = stmt.where(HistoryEntry.asset_id == asset_id)
            return session.scalars(stmt).all()
    return _rows


@pytest.fixture
def client(session_factory):
    def _get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = _get_db
    yield TestClient(app)
    app.dependency_overrides.clear()
