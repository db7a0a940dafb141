"""Shared fixtures: a fresh SQLite file database per test."""
from contextlib import asynccontextmanager

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlalchemy.orm import sessionmaker

from ecoreport.api import create_app
from ecoreport.db import Base, get_db
from ecoreport.models import all_models  # noqa: F401
from ecoreport.services.user_service import create_user


@pytest_asyncio.fixture
async def engine(tmp_path):
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
def unit_of_work(session_factory):
    """Same commit/rollback contract as the request-scoped session."""

    @asynccontextmanager
    async def _uow():
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    return _uow


@pytest_asyncio.fixture
async def db(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
def make_user(unit_of_work):
    async def _make(email: str, name: str = "") -> int:
        async with unit_of_work() as s:
            user = await create_user(s, email, name)
            return user.id

    return _make


@pytest_asyncio.fixture
async def client(session_factory):
    app = create_app()

    async def _get_db():
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db] = _get_db
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client


@pytest.fixture
def login(client):
    async def _login(email: str, name: str = "") -> dict:
        resp = await client.post("/api/v1/auth/login", json={"email": email, "name": name})
        assert resp.status_code == 200
        return {"Authorization": f"Bearer {resp.json()['token']}"}

    return _login
