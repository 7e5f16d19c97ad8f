"""
Shared test fixtures.

Uses an in-memory SQLite database (via aiosqlite) for the ``kv_store``
table, so tests run without Docker / PostgreSQL / Redis.  Redis is an
``AsyncMock`` whose ``SET NX`` always succeeds, and the identity provider
is an in-process fake keyed by bearer token.
"""

from datetime import datetime, timedelta, timezone
from typing import Any, AsyncGenerator, Optional
from unittest.mock import AsyncMock

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import (
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import StaticPool

from uniride.config import Settings
from uniride.domain.entities import UserProfile
from uniride.domain.enums import UserType, VerificationStatus
from uniride.domain.errors import InvalidInput, Unauthenticated
from uniride.infrastructure.database import Base
from uniride.infrastructure.identity import IdentityProvider
from uniride.infrastructure.kv_store import SqlKVStore
from uniride.infrastructure.locks import LockFactory
from uniride.infrastructure.repositories import UserRepository
from uniride.services.rides import RideService

TEST_DB_URL = "sqlite+aiosqlite:///:memory:"
START = datetime(2026, 10, 19, 8, 0, tzinfo=timezone.utc)


class FixedClock:
    """Deterministic clock; every reading moves one second forward."""

    def __init__(self, start: datetime = START):
        self.now = start

    def __call__(self) -> datetime:
        current = self.now
        self.now += timedelta(seconds=1)
        return current

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


class FakeIdentityProvider(IdentityProvider):
    """Token ``token-<id>`` belongs to user ``<id>``."""

    def __init__(self):
        self.created: dict[str, dict[str, Any]] = {}

    async def verify_token(self, token: str) -> str:
        if not token.startswith("token-"):
            raise Unauthenticated("Invalid access token")
        return token.removeprefix("token-")

    async def create_user(self, email: str, password: str, metadata: dict[str, Any]) -> str:
        if any(u["email"] == email for u in self.created.values()):
            raise InvalidInput("A user with this email address has already been registered")
        user_id = f"u{len(self.created) + 1}"
        self.created[user_id] = {"email": email, **metadata}
        return user_id


def auth(user_id: str) -> dict[str, str]:
    return {"Authorization": f"Bearer token-{user_id}"}


async def make_user(
    store: SqlKVStore,
    user_id: str,
    *,
    user_type: UserType = UserType.PASSENGER,
    batch: str = "2021",
    rating: float = 0.0,
    total_rides: int = 0,
    points: int = 0,
    name: Optional[str] = None,
) -> UserProfile:
    profile = UserProfile(
        id=user_id,
        email=f"{user_id}@eng.jfn.ac.lk",
        name=name or user_id.title(),
        student_id=f"{batch}/E/{user_id}",
        batch=batch,
        department="Computer",
        user_type=user_type,
        rating=rating,
        total_rides=total_rides,
        points=points,
        verified=True,
        verification_status=VerificationStatus.VERIFIED,
        created_at=START,
    )
    await UserRepository(store).save(profile)
    await store.commit()
    return profile


# ── Fixtures ──────────────────────────────────────────────────────────


@pytest_asyncio.fixture
async def session_factory() -> AsyncGenerator[async_sessionmaker, None]:
    """Create tables on a fresh in-memory DB, then drop everything."""
    engine = create_async_engine(TEST_DB_URL, echo=False, poolclass=StaticPool)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest_asyncio.fixture
async def db_session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    async with session_factory() as session:
        yield session


@pytest.fixture
def store(db_session) -> SqlKVStore:
    return SqlKVStore(db_session)


@pytest.fixture
def clock() -> FixedClock:
    return FixedClock()


@pytest.fixture
def test_settings() -> Settings:
    return Settings(database_url=TEST_DB_URL)


@pytest.fixture
def mock_redis() -> AsyncMock:
    redis = AsyncMock()
    redis.set = AsyncMock(return_value=True)
    redis.eval = AsyncMock(return_value=1)
    return redis


@pytest.fixture
def locks(mock_redis) -> LockFactory:
    return LockFactory(mock_redis, ttl_seconds=10, wait_seconds=0)


@pytest.fixture
def ride_service(store, locks, clock, test_settings) -> RideService:
    return RideService(store, locks, clock, test_settings)
