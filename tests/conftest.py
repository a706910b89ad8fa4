import os

# Settings are read at import time, so the test environment must exist first
os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite://")

from datetime import datetime

import pytest
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker
from sqlalchemy.pool import StaticPool
from sqlmodel import SQLModel
from fastapi import FastAPI

from app import models  # noqa: F401
from app.api.deps import get_now
from app.api.v1.api import api_router
from app.core.config import settings
from app.core.exception_handlers import register_exception_handlers
from app.core.rate_limit import limiter
from app.db.session import get_db

# Disable rate limiting globally for tests
limiter.enabled = False


class Clock:
    """
    Settable request clock shared by a test and the app under test.
    """
    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now


@pytest.fixture
def clock():
    return Clock(datetime(2023, 12, 25))


@pytest.fixture
async def engine():
    # One in-memory database per test; StaticPool keeps it on a single connection
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
async def session(engine):
    TestingSessionLocal = async_sessionmaker(autocommit=False, autoflush=False, expire_on_commit=False, bind=engine)
    async with TestingSessionLocal() as session:
        yield session


@pytest.fixture
async def client(session, clock):
    # Create a fresh app for each test to avoid middleware/loop issues
    new_app = FastAPI()
    register_exception_handlers(new_app)
    new_app.include_router(api_router, prefix=settings.API_V1_STR)

    async def override_get_db():
        yield session

    new_app.dependency_overrides[get_db] = override_get_db
    new_app.dependency_overrides[get_now] = clock

    async with AsyncClient(transport=ASGITransport(app=new_app), base_url="http://test") as c:
        yield c
