"""Pytest configuration and shared fixtures for all tests."""

import itertools
import os

# Minimal environment for tests
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("LOG_LEVEL", "DEBUG")

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import (
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import StaticPool

from triangle_engine.models import Base, Participant, Triangle
from triangle_engine.repositories.participant_repository import (
    ParticipantRepository,
)
from triangle_engine.repositories.plan_repository import PlanRepository
from triangle_engine.repositories.triangle_repository import TriangleRepository


@pytest_asyncio.fixture
async def engine():
    """In-memory SQLite engine with the schema created."""
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest_asyncio.fixture
async def session(engine):
    """Session with the default plan catalog seeded."""
    session_maker = async_sessionmaker(
        engine, class_=AsyncSession, expire_on_commit=False
    )
    async with session_maker() as session:
        await PlanRepository(session).upsert_defaults()
        await session.commit()
        yield session


@pytest.fixture
def make_participant(session):
    """Factory creating committed participants."""
    counter = itertools.count(1)

    async def _make(
        tier: str = "King",
        upline_id: str | None = None,
        display_name: str | None = None,
        referral_code: str | None = None,
        **fields,
    ) -> Participant:
        n = next(counter)
        participant = await ParticipantRepository(session).create(
            display_name=display_name or f"participant{n}",
            tier=tier,
            upline_id=upline_id,
            referral_code=referral_code or f"TST{n:06d}",
            **fields,
        )
        await session.commit()
        return participant

    return _make


@pytest.fixture
def seed_tree(session, make_participant):
    """Factory creating a triangle with its first ``filled`` slots occupied."""

    async def _seed(
        tier: str = "King", filled: int = 0
    ) -> tuple[Triangle, list[Participant]]:
        repo = TriangleRepository(session)
        triangle = await repo.create_with_positions(tier)
        await session.commit()

        occupants = []
        for _ in range(filled):
            participant = await make_participant(tier=tier)
            position = await repo.get_next_open_position(triangle.id)
            assert await repo.reserve_position(position, participant.id)
            occupants.append(participant)
        await session.commit()

        return triangle, occupants

    return _seed
