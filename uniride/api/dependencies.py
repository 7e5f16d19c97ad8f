"""FastAPI dependency injection helpers."""

from typing import Optional

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from uniride.config import Settings, settings
from uniride.domain.errors import Unauthenticated
from uniride.infrastructure.database import async_session_factory
from uniride.infrastructure.identity import IdentityProvider
from uniride.infrastructure.kv_store import KVStore, SqlKVStore
from uniride.infrastructure.locks import LockFactory
from uniride.infrastructure.redis_client import get_redis
from uniride.services.accounts import AccountService
from uniride.services.clock import Clock, utc_now
from uniride.services.rides import RideService

_bearer = HTTPBearer(auto_error=False)


async def get_db() -> AsyncSession:  # type: ignore[misc]
    """Yield an async DB session; commit on success, rollback on error."""
    async with async_session_factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


def get_settings() -> Settings:
    return settings


def get_clock() -> Clock:
    return utc_now


async def get_store(db: AsyncSession = Depends(get_db)) -> KVStore:
    return SqlKVStore(db)


async def get_lock_factory(
    config: Settings = Depends(get_settings),
) -> LockFactory:
    return LockFactory(
        await get_redis(),
        ttl_seconds=config.lock_ttl_seconds,
        wait_seconds=config.lock_wait_seconds,
    )


def get_identity(request: Request) -> IdentityProvider:
    return request.app.state.identity


async def get_current_user_id(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(_bearer),
    identity: IdentityProvider = Depends(get_identity),
) -> str:
    """Resolve the bearer token to a user id via the identity provider."""
    if credentials is None or not credentials.credentials:
        raise Unauthenticated()
    return await identity.verify_token(credentials.credentials)


def get_ride_service(
    store: KVStore = Depends(get_store),
    locks: LockFactory = Depends(get_lock_factory),
    clock: Clock = Depends(get_clock),
    config: Settings = Depends(get_settings),
) -> RideService:
    return RideService(store, locks, clock, config)


def get_account_service(
    store: KVStore = Depends(get_store),
    identity: IdentityProvider = Depends(get_identity),
    clock: Clock = Depends(get_clock),
    config: Settings = Depends(get_settings),
) -> AccountService:
    return AccountService(store, identity, clock, config)
