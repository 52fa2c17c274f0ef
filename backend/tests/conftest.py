"""Shared fixtures: an in-memory SQLite database per test."""

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from database import Base
from middleware.rate_limit import limiter
from models import Account
from services.snapshot_store import SnapshotStore

limiter.enabled = False


@pytest_asyncio.fixture
async def db_session():
    engine = create_async_engine("sqlite+aiosqlite://")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    session_factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    async with session_factory() as session:
        yield session

    await engine.dispose()


@pytest.fixture
def store(db_session: AsyncSession) -> SnapshotStore:
    return SnapshotStore(db_session, timeout=5)


@pytest_asyncio.fixture
async def account(db_session: AsyncSession) -> Account:
    account = Account(
        id="acc-1",
        name="Alice",
        username="alice",
        server_url="https://mastodon.example",
        timezone="UTC",
    )
    db_session.add(account)
    await db_session.commit()
    return account
