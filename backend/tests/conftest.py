"""Pytest configuration and shared fixtures."""

import os

# Point settings at SQLite before any dealrank module builds the engine.
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("ENVIRONMENT", "test")

from datetime import datetime, timedelta, timezone
from decimal import Decimal
from typing import Callable, Optional, Sequence
from uuid import UUID, uuid4

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from dealrank.models import Base, Deal, DealUpvote
from dealrank.repositories.deal_store import SQLAlchemyDealStore

# Fixed evaluation instant shared by every test
NOW = datetime(2026, 10, 18, 12, 0, 0, tzinfo=timezone.utc)


def build_deal(
    *,
    title: str = "Test deal",
    merchant: str = "Test Merchant",
    description: str = "",
    category: str = "food",
    amount: float = 100,
    discount: float = 10,
    location: Optional[str] = None,
    created_days_ago: float = 0,
    valid_days: float = 30,
    upvote_ages: Sequence[timedelta] = (),
    upvoter_ids: Optional[Sequence[UUID]] = None,
    creator_id: Optional[UUID] = None,
    now: datetime = NOW,
) -> Deal:
    """Build a transient Deal (with upvotes) relative to now.

    upvote_ages gives how long ago each upvote was cast.
    """
    created_at = now - timedelta(days=created_days_ago)
    deal = Deal(
        id=uuid4(),
        title=title,
        merchant=merchant,
        description=description,
        category=category,
        amount=Decimal(str(amount)),
        discount=Decimal(str(discount)),
        location=location,
        created_at=created_at,
        updated_at=created_at,
        valid_until=now + timedelta(days=valid_days),
        creator_id=creator_id or uuid4(),
    )
    voters = list(upvoter_ids) if upvoter_ids is not None else [uuid4() for _ in upvote_ages]
    deal.upvotes = [
        DealUpvote(id=uuid4(), user_id=voter, deal_id=deal.id, created_at=now - age)
        for voter, age in zip(voters, upvote_ages)
    ]
    return deal


def upvotes(count: int, age: timedelta = timedelta(days=60)) -> list:
    """count upvote ages, all the same age (old by default)."""
    return [age] * count


@pytest.fixture
def now() -> datetime:
    return NOW


@pytest.fixture
def deal_factory() -> Callable[..., Deal]:
    return build_deal


@pytest.fixture
def clock() -> Callable[[], datetime]:
    return lambda: NOW


@pytest_asyncio.fixture
async def test_db():
    """Create an in-memory SQLite database for testing."""
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        poolclass=StaticPool,
        echo=False,
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    SessionLocal = async_sessionmaker(
        engine, class_=AsyncSession, expire_on_commit=False
    )

    async with SessionLocal() as session:
        yield session

    await engine.dispose()


@pytest_asyncio.fixture
async def store(test_db: AsyncSession) -> SQLAlchemyDealStore:
    return SQLAlchemyDealStore(test_db)


@pytest_asyncio.fixture
async def save_deals(test_db: AsyncSession):
    """Persist transient deals (and their upvotes) built with build_deal."""

    async def _save(*deals: Deal) -> list:
        test_db.add_all(deals)
        await test_db.commit()
        return list(deals)

    return _save
