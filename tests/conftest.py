"""
Shared fixtures: a throwaway SQLite database per test (via aiosqlite) and
small factories for users and predictions.

No PostgreSQL required -- the UserStats upsert has a SQLite dialect path.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Optional

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from guessometer.db.models import Base, Prediction, User


@pytest_asyncio.fixture
async def engine(tmp_path):
    eng = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}")
    async with eng.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield eng
    await eng.dispose()


@pytest_asyncio.fixture
async def session_factory(engine):
    return async_sessionmaker(
        engine, class_=AsyncSession, expire_on_commit=False, autoflush=False
    )


@pytest_asyncio.fixture
async def session(session_factory):
    async with session_factory() as s:
        yield s


@pytest.fixture
def add_user(session):
    async def _add(
        user_id: str = "alice",
        email: Optional[str] = None,
        display_name: Optional[str] = None,
    ) -> User:
        user = User(
            id=user_id,
            email=email or f"{user_id}@example.com",
            display_name=display_name or user_id.title(),
        )
        session.add(user)
        await session.commit()
        return user

    return _add


@pytest.fixture
def add_prediction(session):
    async def _add(
        user_id: str = "alice",
        confidence: int = 50,
        outcome: str = "pending",
        is_public: bool = True,
        created_at: Optional[datetime] = None,
        text: str = "It will rain tomorrow",
    ) -> Prediction:
        now = datetime.now(timezone.utc)
        prediction = Prediction(
            user_id=user_id,
            prediction_text=text,
            category="general",
            confidence_level=confidence,
            target_date=now + timedelta(days=30),
            outcome=outcome,
            is_public=is_public,
            created_at=created_at or now,
        )
        session.add(prediction)
        await session.commit()
        return prediction

    return _add
