import os

os.environ.setdefault("LOG_TO_FILE", "false")
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///./clinic_inventory_test.db")

import pytest
from typing import AsyncGenerator
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool
from app import models  # noqa: F401  registers the tables on Base.metadata
from app.core.database import get_async_session
from app.core.security import create_access_token
from app.models.base import Base
from main import app


@pytest.fixture
async def test_engine(tmp_path):
    """Fresh SQLite database file per test"""
    engine = create_async_engine(
        f"sqlite+aiosqlite:///{tmp_path / 'test.db'}",
        poolclass=NullPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest.fixture
def session_factory(test_engine):
    return async_sessionmaker(test_engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
async def db_session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    async with session_factory() as session:
        yield session


@pytest.fixture
async def client(session_factory) -> AsyncGenerator[AsyncClient, None]:
    """Create test client bound to the per-test database"""

    async def override_get_db() -> AsyncGenerator[AsyncSession, None]:
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_async_session] = override_get_db
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()


@pytest.fixture
def make_headers():
    """Build bearer headers for a token carrying the given (resource, action) pairs"""

    def _make(*permissions, user_id: str = "user-1", **token_kwargs) -> dict:
        token = create_access_token(
            user_id,
            permissions=[{"resource": resource, "action": action} for resource, action in permissions],
            **token_kwargs,
        )
        return {"Authorization": f"Bearer {token}"}

    return _make


@pytest.fixture
def auth_headers(make_headers) -> dict:
    """Headers for a platform administrator"""
    return make_headers(("system", "admin"))


@pytest.fixture
def pharmacy_item_factory(client: AsyncClient, auth_headers: dict):
    counter = {"n": 0}

    async def _create(**overrides) -> dict:
        counter["n"] += 1
        payload = {
            "name": f"Timolol Eye Drops {counter['n']}",
            "sku": f"PH-{counter['n']:04d}",
            "category": "Glaucoma",
            "purchase_price": "80.00",
            "selling_price": "120.00",
            "mrp": "130.00",
            "reorder_level": 5,
            "stock_quantity": 0,
            "dosage_form": "drops",
            "strength": "0.5%",
        }
        payload.update(overrides)
        response = await client.post("/api/v1/inventory/pharmacy-item/", json=payload, headers=auth_headers)
        assert response.status_code == 201, response.text
        return response.json()

    return _create


@pytest.fixture
def optical_item_factory(client: AsyncClient, auth_headers: dict):
    counter = {"n": 0}

    async def _create(**overrides) -> dict:
        counter["n"] += 1
        payload = {
            "name": f"Titanium Frame {counter['n']}",
            "sku": f"OP-{counter['n']:04d}",
            "category": "Frames",
            "optical_type": "frames",
            "brand": "Lumen",
            "purchase_price": "900.00",
            "selling_price": "1500.00",
            "mrp": "1600.00",
            "reorder_level": 2,
            "stock_quantity": 0,
        }
        payload.update(overrides)
        response = await client.post("/api/v1/inventory/optical-item/", json=payload, headers=auth_headers)
        assert response.status_code == 201, response.text
        return response.json()

    return _create
