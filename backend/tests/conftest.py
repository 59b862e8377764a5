import os

# Tests never talk to PostgreSQL; point the app at SQLite before it is imported
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("CREATE_TABLES", "false")

import pytest
from datetime import datetime, timezone
from decimal import Decimal
from types import SimpleNamespace
from unittest.mock import AsyncMock
from httpx import AsyncClient, ASGITransport
from sqlalchemy import event
from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker, AsyncSession
from sqlalchemy.pool import StaticPool

from app.main import app
from app.db.database import Base, get_session
from app.models import Product
from app.routers.products import get_product_service


def candidate(name="Widget", description=None, price="9.99"):
    """Unsaved product payload as the service receives it."""
    return SimpleNamespace(
        name=name,
        description=description,
        price=Decimal(price) if isinstance(price, str) else price,
    )


def make_product(id=1, name="Widget", description="A blue widget", price="9.99"):
    now = datetime(2025, 1, 1, 12, 0, tzinfo=timezone.utc)
    return Product(
        id=id, name=name, description=description, price=Decimal(price),
        created_at=now, updated_at=now
    )


@pytest.fixture
async def engine():
    """Fresh in-memory SQLite database per test."""
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )

    # PostgreSQL LIKE is case-sensitive, SQLite's is not unless asked
    @event.listens_for(engine.sync_engine, "connect")
    def _case_sensitive_like(dbapi_connection, _connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA case_sensitive_like = ON")
        cursor.close()

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
async def session(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
async def client(session_factory):
    """Async test client backed by the in-memory database."""
    async def override_get_session():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_session] = override_get_session

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test"
    ) as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest.fixture
def mock_service():
    """Product service with every coroutine mocked."""
    mock = AsyncMock()
    mock.get_all_products = AsyncMock(return_value=[])
    return mock


@pytest.fixture
async def mock_client(mock_service):
    """Async test client whose routes use the mocked service."""
    app.dependency_overrides[get_product_service] = lambda: mock_service

    # Unhandled errors are rendered as 500 instead of propagating into the test
    async with AsyncClient(
        transport=ASGITransport(app=app, raise_app_exceptions=False),
        base_url="http://test"
    ) as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest.fixture
def new_candidate():
    return candidate


@pytest.fixture
def new_product():
    return make_product
