from unittest.mock import AsyncMock

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from app.core.redis_client import get_redis
from app.db.database import create_ledger_tables, get_db
from app.ledger.store import InMemoryStateStore
from app.schemas.registry_schema import House, Owner
from main import app as fastapi_app

TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


@pytest.fixture
def store():
    """A fresh in-memory ledger for each test."""
    return InMemoryStateStore()


@pytest.fixture
def alice():
    return Owner(id="Alice")


@pytest.fixture
def bob():
    return Owner(id="Bob")


@pytest.fixture
def house1():
    return House.model_validate_json(
        '{"Id":"1", "Address":"seoul", "OwnerId":"Alice", "Price":"3000", "Timestamp":"2018-01-01T12:34:56Z"}'
    )


@pytest.fixture
def house2():
    return House.model_validate_json(
        '{"Id":"2", "Address":"bucheon", "OwnerId":"Alice", "Price":"2000", "Timestamp":"2018-01-01T12:34:56Z"}'
    )


@pytest.fixture
async def engine():
    engine = create_async_engine(TEST_DATABASE_URL, poolclass=StaticPool)
    await create_ledger_tables(engine)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)


@pytest.fixture
def redis_mock():
    redis = AsyncMock()
    redis.set = AsyncMock(return_value=True)
    return redis


@pytest.fixture
async def client(session_factory, redis_mock):
    async def override_get_db():
        async with session_factory() as session:
            yield session

    async def override_get_redis():
        return redis_mock

    fastapi_app.dependency_overrides[get_db] = override_get_db
    fastapi_app.dependency_overrides[get_redis] = override_get_redis
    async with AsyncClient(transport=ASGITransport(app=fastapi_app), base_url="http://test") as ac:
        yield ac
    fastapi_app.dependency_overrides.clear()
