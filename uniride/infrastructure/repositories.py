"""
Repository Pattern -- maps domain entities onto the key-value store.

Each repository receives a ``KVStore`` and owns one key family:

* ``user:<id>``                       -- profile
* ``user_email:<email>``              -- email -> user id
* ``ride:<id>``                       -- ride record (offer or request)
* ``user_rides:<user>:<ride>``        -- rides a user authored or joined
* ``daily_requests:<user>:<date>``    -- passenger request counter
* ``rating:<ride>:<rater>``           -- rating record
"""

from __future__ import annotations

from typing import Optional

from .kv_store import KVStore
from uniride.domain.entities import (
    RatingRecord,
    Ride,
    UserProfile,
    ride_from_record,
)


class UserRepository:
    PREFIX = "user:"
    EMAIL_PREFIX = "user_email:"

    def __init__(self, store: KVStore):
        self.store = store

    async def get_by_id(self, user_id: str) -> Optional[UserProfile]:
        record = await self.store.get(f"{self.PREFIX}{user_id}")
        return UserProfile.from_record(record) if record else None

    async def get_id_by_email(self, email: str) -> Optional[str]:
        return await self.store.get(f"{self.EMAIL_PREFIX}{email.lower()}")

    async def save(self, profile: UserProfile) -> UserProfile:
        await self.store.set(f"{self.PREFIX}{profile.id}", profile.to_record())
        await self.store.set(f"{self.EMAIL_PREFIX}{profile.email.lower()}", profile.id)
        return profile

    async def list_all(self) -> list[UserProfile]:
        records = await self.store.get_by_prefix(self.PREFIX)
        return [UserProfile.from_record(r) for r in records if isinstance(r, dict)]


class RideRepository:
    PREFIX = "ride:"
    INDEX_PREFIX = "user_rides:"

    def __init__(self, store: KVStore):
        self.store = store

    async def get_by_id(self, ride_id: str) -> Optional[Ride]:
        record = await self.store.get(f"{self.PREFIX}{ride_id}")
        return ride_from_record(record) if record else None

    async def save(self, ride: Ride) -> Ride:
        await self.store.set(f"{self.PREFIX}{ride.id}", ride.to_record())
        return ride

    async def list_all(self) -> list[Ride]:
        records = await self.store.get_by_prefix(self.PREFIX)
        return [ride_from_record(r) for r in records]

    async def link_user(self, user_id: str, ride_id: str) -> None:
        """Record that *user_id* authored or joined *ride_id*."""
        await self.store.set(f"{self.INDEX_PREFIX}{user_id}:{ride_id}", ride_id)

    async def get_for_user(self, user_id: str) -> list[Ride]:
        ride_ids = await self.store.get_by_prefix(f"{self.INDEX_PREFIX}{user_id}:")
        rides: list[Ride] = []
        for ride_id in ride_ids:
            ride = await self.get_by_id(ride_id)
            if ride:
                rides.append(ride)
        return rides


class DailyRequestCounter:
    """Per-user-per-day counter; a new day simply starts a new key."""

    PREFIX = "daily_requests:"

    def __init__(self, store: KVStore):
        self.store = store

    def _key(self, user_id: str, day: str) -> str:
        return f"{self.PREFIX}{user_id}:{day}"

    async def get(self, user_id: str, day: str) -> int:
        return int(await self.store.get(self._key(user_id, day)) or 0)

    async def increment(self, user_id: str, day: str) -> int:
        count = await self.get(user_id, day) + 1
        await self.store.set(self._key(user_id, day), count)
        return count


class RatingRepository:
    PREFIX = "rating:"

    def __init__(self, store: KVStore):
        self.store = store

    async def get(self, ride_id: str, rater_id: str) -> Optional[RatingRecord]:
        record = await self.store.get(f"{self.PREFIX}{ride_id}:{rater_id}")
        return RatingRecord.from_record(record) if record else None

    async def save(self, rating: RatingRecord) -> RatingRecord:
        """Last write wins per (ride, rater)."""
        await self.store.set(
            f"{self.PREFIX}{rating.ride_id}:{rating.rater_id}", rating.to_record()
        )
        return rating
