"""
Ride use-cases
==============

Posting offers and requests, the ranked feed, joining, the driver's
accept/reject decision and ratings.

Concurrency safety
------------------
Every read-modify-write runs under a Redis lock keyed by the entity it
mutates and commits before the lock is released:

* ``ride:<id>``            -- join, accept / reject
* ``user:<id>``            -- rating aggregation on the driver profile
* ``daily_requests:<id>``  -- passenger quota check + increment
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Callable, Optional

from uniride.config import Settings
from uniride.domain.entities import (
    Passenger,
    RatingRecord,
    Ride,
    RideOffer,
    RideRequest,
    UserProfile,
)
from uniride.domain.enums import PassengerAction, UserType, VehicleType
from uniride.domain.errors import (
    Forbidden,
    InvalidInput,
    InvalidType,
    NotFound,
    Unauthorized,
)
from uniride.domain.quota import check_request_quota, is_quota_limited, quota_day
from uniride.domain.ranking import rank_rides
from uniride.domain.rating import validate_stars
from uniride.infrastructure.kv_store import KVStore
from uniride.infrastructure.locks import DistributedLock
from uniride.infrastructure.repositories import (
    DailyRequestCounter,
    RatingRepository,
    RideRepository,
    UserRepository,
)
from uniride.services.clock import Clock

logger = logging.getLogger(__name__)

LockProvider = Callable[[str], DistributedLock]


class RideService:
    def __init__(
        self,
        store: KVStore,
        lock: LockProvider,
        clock: Clock,
        settings: Settings,
    ):
        self.store = store
        self.lock = lock
        self.clock = clock
        self.settings = settings
        self.users = UserRepository(store)
        self.rides = RideRepository(store)
        self.counter = DailyRequestCounter(store)
        self.ratings = RatingRepository(store)

    # ── Posting ───────────────────────────────────────────────────────

    async def post_offer(
        self,
        user_id: str,
        *,
        from_location: str,
        to_location: str,
        departure_time: str,
        available_seats: int,
        vehicle: VehicleType,
        notes: Optional[str] = None,
    ) -> RideOffer:
        profile = await self.users.get_by_id(user_id)
        if profile is None or profile.user_type != UserType.HYBRID:
            raise Forbidden()
        _check_route(from_location, to_location)
        if not 1 <= available_seats <= self.settings.max_offer_seats:
            raise InvalidInput(
                f"Available seats must be between 1 and {self.settings.max_offer_seats}"
            )

        now = self.clock()
        offer = RideOffer(
            id=f"ride_{_millis(now)}_{user_id}",
            author_id=user_id,
            author_name=profile.name,
            author_batch=profile.batch,
            from_location=from_location,
            to_location=to_location,
            departure_time=departure_time,
            notes=notes,
            available_seats=available_seats,
            vehicle=vehicle,
            driver_rating=profile.rating,
            created_at=now,
        )
        await self.rides.save(offer)
        await self.rides.link_user(user_id, offer.id)
        await self.store.commit()
        logger.info("Offer %s posted by %s", offer.id, user_id)
        return offer

    async def post_request(
        self,
        user_id: str,
        *,
        from_location: str,
        to_location: str,
        departure_time: str,
        urgent: bool = False,
        notes: Optional[str] = None,
    ) -> RideRequest:
        profile = await self._profile(user_id)
        _check_route(from_location, to_location)

        if is_quota_limited(profile.user_type):
            async with self.lock(f"daily_requests:{user_id}"):
                return await self._create_request(
                    profile, from_location, to_location, departure_time, urgent, notes
                )
        return await self._create_request(
            profile, from_location, to_location, departure_time, urgent, notes
        )

    async def _create_request(
        self,
        profile: UserProfile,
        from_location: str,
        to_location: str,
        departure_time: str,
        urgent: bool,
        notes: Optional[str],
    ) -> RideRequest:
        now = self.clock()
        day = quota_day(now)
        limited = is_quota_limited(profile.user_type)
        if limited:
            posted = await self.counter.get(profile.id, day)
            check_request_quota(
                profile.user_type, posted, self.settings.daily_request_limit
            )

        request = RideRequest(
            id=f"request_{_millis(now)}_{profile.id}",
            author_id=profile.id,
            author_name=profile.name,
            author_batch=profile.batch,
            from_location=from_location,
            to_location=to_location,
            departure_time=departure_time,
            notes=notes,
            urgent=urgent,
            created_at=now,
        )
        await self.rides.save(request)
        await self.rides.link_user(profile.id, request.id)
        if limited:
            await self.counter.increment(profile.id, day)
        await self.store.commit()
        logger.info("Request %s posted by %s", request.id, profile.id)
        return request

    # ── Reading ───────────────────────────────────────────────────────

    async def feed(self, user_id: str) -> list[Ride]:
        viewer = await self._profile(user_id)
        return rank_rides(await self.rides.list_all(), viewer)

    async def my_rides(self, user_id: str) -> list[Ride]:
        return await self.rides.get_for_user(user_id)

    # ── Joining ───────────────────────────────────────────────────────

    async def join(self, user_id: str, ride_id: str) -> RideOffer:
        async with self.lock(f"ride:{ride_id}"):
            ride = await self.rides.get_by_id(ride_id)
            if ride is None or not ride.is_active:
                raise NotFound("Ride not found or no longer active")
            if not isinstance(ride, RideOffer):
                raise InvalidType()

            profile = await self._profile(user_id)
            ride.add_passenger(
                Passenger(id=user_id, name=profile.name, batch=profile.batch),
                self.clock(),
            )
            await self.rides.save(ride)
            await self.rides.link_user(user_id, ride.id)
            await self.store.commit()
        logger.info("User %s asked to join %s", user_id, ride_id)
        return ride

    async def set_passenger_status(
        self,
        user_id: str,
        ride_id: str,
        passenger_id: str,
        action: PassengerAction,
    ) -> RideOffer:
        async with self.lock(f"ride:{ride_id}"):
            ride = await self.rides.get_by_id(ride_id)
            if ride is None:
                raise NotFound("Ride not found")
            if ride.author_id != user_id:
                raise Unauthorized()
            if not isinstance(ride, RideOffer):
                raise InvalidType("Only ride offers have passengers")

            ride.set_passenger_status(passenger_id, action, self.clock())
            await self.rides.save(ride)
            await self.store.commit()
        logger.info(
            "Passenger %s on %s: %s by driver %s",
            passenger_id, ride_id, action.value, user_id,
        )
        return ride

    # ── Rating ────────────────────────────────────────────────────────

    async def rate_ride(
        self,
        user_id: str,
        ride_id: str,
        stars: object,
        review: Optional[str] = None,
    ) -> RatingRecord:
        """
        Store the rating and fold it into the ride author's profile.

        Re-rating the same ride overwrites the stored record but is
        aggregated again as an extra ride.
        """
        value = validate_stars(stars)
        ride = await self.rides.get_by_id(ride_id)
        if ride is None:
            raise NotFound("Ride not found")

        now = self.clock()
        record = RatingRecord(
            ride_id=ride_id,
            rater_id=user_id,
            target_id=ride.author_id,
            rating=value,
            review=review,
            created_at=now,
        )
        async with self.lock(f"user:{ride.author_id}"):
            await self.ratings.save(record)
            author = await self.users.get_by_id(ride.author_id)
            if author is not None:
                author.apply_rating(value, self.settings.points_per_star, now)
                await self.users.save(author)
            await self.store.commit()
        logger.info("Ride %s rated %d by %s", ride_id, value, user_id)
        return record

    # ── Helpers ───────────────────────────────────────────────────────

    async def _profile(self, user_id: str) -> UserProfile:
        profile = await self.users.get_by_id(user_id)
        if profile is None:
            raise NotFound("User profile not found")
        return profile


def _check_route(from_location: str, to_location: str) -> None:
    if from_location.strip().lower() == to_location.strip().lower():
        raise InvalidInput("Pickup and destination cannot be the same")


def _millis(now: datetime) -> int:
    return int(now.timestamp() * 1000)
