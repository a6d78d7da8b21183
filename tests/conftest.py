from datetime import datetime, timezone

import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from incidentlens.config import settings
from incidentlens.database import get_db
from incidentlens.main import create_app
from incidentlens.models.base import Base

engine = create_async_engine(settings.TEST_DATABASE_URL, echo=False)
test_session_factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture(autouse=True)
async def setup_database():
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)


async def override_get_db():
    async with test_session_factory() as session:
        yield session


@pytest_asyncio.fixture
async def app():
    app = create_app()
    app.dependency_overrides[get_db] = override_get_db
    return app


@pytest_asyncio.fixture
async def client(app):
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as c:
        yield c


@pytest_asyncio.fixture
async def db_session():
    async with test_session_factory() as session:
        yield session


def incident_payload(**overrides) -> dict:
    payload = {
        "time": datetime(2024, 1, 1, 10, 0, tzinfo=timezone.utc).isoformat(),
        "service": "metro",
        "source": "twitter",
        "subservice": "Linea 3",
        "priority": 4,
        "category": "delay",
        "sentiment_analysis": "negative",
        "summary": "Line 3 trains delayed by 20 minutes",
        "original": "Linea 3 con retrasos de 20 minutos",
        "keywords": ["delay", "linea 3"],
    }
    payload.update(overrides)
    return payload


@pytest_asyncio.fixture
async def create_incident(client: AsyncClient):
    async def _create(**overrides) -> dict:
        response = await client.post("/api/v1/incidents", json=incident_payload(**overrides))
        assert response.status_code == 201
        return response.json()["data"]

    return _create
