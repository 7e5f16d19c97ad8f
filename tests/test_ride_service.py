"""
Service-level tests for posting, quota, joining, passenger decisions and
rating aggregation, run against the SQLite-backed KV store.
"""

import pytest
import pytest_asyncio

from uniride.domain.entities import RideOffer
from uniride.domain.enums import PassengerAction, PassengerStatus, UserType, VehicleType
from uniride.domain.errors import (
    Forbidden,
    InvalidInput,
    InvalidRating,
    InvalidTransition,
    InvalidType,
    NotFound,
    RateLimited,
    RideFull,
    SelfJoin,
    Unauthorized,
)
from uniride.infrastructure.repositories import RatingRepository, UserRepository
from tests.conftest import make_user


async def post_offer(service, user_id, seats=2, **kw):
    fields = dict(
        from_location="Main Gate", to_location="Library", departure_time="Now",
        available_seats=seats, vehicle=VehicleType.BIKE,
    )
    fields.update(kw)
    return await service.post_offer(user_id, **fields)


async def post_request(service, user_id, **kw):
    fields = dict(from_location="Hostel", to_location="Canteen", departure_time="in 5 minutes")
    fields.update(kw)
    return await service.post_request(user_id, **fields)


@pytest_asyncio.fixture
async def people(store):
    return {
        "driver": await make_user(store, "driver", user_type=UserType.HYBRID, rating=4.6, total_rides=12),
        "p1": await make_user(store, "p1"),
        "p2": await make_user(store, "p2"),
        "p3": await make_user(store, "p3"),
    }


# ── Posting ───────────────────────────────────────────────────────────


class TestPosting:
    @pytest.mark.asyncio
    async def test_offer_snapshots_driver_rating(self, ride_service, people):
        offer = await post_offer(ride_service, "driver")
        assert offer.id.startswith("ride_") and offer.id.endswith("_driver")
        assert offer.driver_rating == 4.6
        assert offer.passengers == []
        assert [r.id for r in await ride_service.my_rides("driver")] == [offer.id]

    @pytest.mark.asyncio
    async def test_passenger_cannot_offer(self, ride_service, people):
        with pytest.raises(Forbidden):
            await post_offer(ride_service, "p1")

    @pytest.mark.asyncio
    async def test_same_pickup_and_destination_rejected(self, ride_service, people):
        with pytest.raises(InvalidInput):
            await post_offer(ride_service, "driver", to_location="main gate ")

    @pytest.mark.asyncio
    async def test_seat_limit(self, ride_service, people):
        with pytest.raises(InvalidInput):
            await post_offer(ride_service, "driver", seats=5)

    @pytest.mark.asyncio
    async def test_request_defaults_to_not_urgent(self, ride_service, people):
        req = await post_request(ride_service, "p1")
        assert req.id.startswith("request_")
        assert req.is_urgent is False

    @pytest.mark.asyncio
    async def test_request_needs_profile(self, ride_service, people):
        with pytest.raises(NotFound):
            await post_request(ride_service, "ghost")


class TestDailyQuota:
    @pytest.mark.asyncio
    async def test_third_passenger_request_same_day_fails(self, ride_service, people):
        await post_request(ride_service, "p1")
        await post_request(ride_service, "p1")
        with pytest.raises(RateLimited):
            await post_request(ride_service, "p1")

    @pytest.mark.asyncio
    async def test_quota_resets_next_day(self, ride_service, people, clock):
        await post_request(ride_service, "p1")
        await post_request(ride_service, "p1")
        clock.advance(days=1)
        await post_request(ride_service, "p1")

    @pytest.mark.asyncio
    async def test_quota_is_per_user(self, ride_service, people):
        await post_request(ride_service, "p1")
        await post_request(ride_service, "p1")
        await post_request(ride_service, "p2")

    @pytest.mark.asyncio
    async def test_hybrid_users_are_never_limited(self, ride_service, people):
        for _ in range(5):
            await post_request(ride_service, "driver")


# ── Join / accept / reject ────────────────────────────────────────────


class TestJoin:
    @pytest.mark.asyncio
    async def test_join_adds_pending_passenger_and_indexes(self, ride_service, people):
        offer = await post_offer(ride_service, "driver")
        ride = await ride_service.join("p1", offer.id)
        assert [(p.id, p.status) for p in ride.passengers] == [("p1", PassengerStatus.PENDING)]
        assert ride.passengers[0].name == "P1"
        assert [r.id for r in await ride_service.my_rides("p1")] == [offer.id]

    @pytest.mark.asyncio
    async def test_join_missing_ride(self, ride_service, people):
        with pytest.raises(NotFound):
            await ride_service.join("p1", "ride_0_nobody")

    @pytest.mark.asyncio
    async def test_join_request_is_invalid(self, ride_service, people):
        req = await post_request(ride_service, "p2")
        with pytest.raises(InvalidType):
            await ride_service.join("p1", req.id)

    @pytest.mark.asyncio
    async def test_join_own_ride(self, ride_service, people):
        offer = await post_offer(ride_service, "driver")
        with pytest.raises(SelfJoin):
            await ride_service.join("driver", offer.id)

    @pytest.mark.asyncio
    async def test_join_full_ride(self, ride_service, people):
        offer = await post_offer(ride_service, "driver", seats=2)
        await ride_service.join("p1", offer.id)
        await ride_service.join("p2", offer.id)
        with pytest.raises(RideFull):
            await ride_service.join("p3", offer.id)
        stored = await ride_service.rides.get_by_id(offer.id)
        assert len(stored.passengers) == 2

    @pytest.mark.asyncio
    async def test_joined_ride_leaves_the_feed(self, ride_service, people):
        offer = await post_offer(ride_service, "driver")
        assert [r.id for r in await ride_service.feed("p1")] == [offer.id]
        await ride_service.join("p1", offer.id)
        assert await ride_service.feed("p1") == []


class TestPassengerDecision:
    @pytest.mark.asyncio
    async def test_driver_accepts(self, ride_service, people):
        offer = await post_offer(ride_service, "driver")
        await ride_service.join("p1", offer.id)
        await ride_service.join("p2", offer.id)
        ride = await ride_service.set_passenger_status(
            "driver", offer.id, "p1", PassengerAction.ACCEPT
        )
        assert {p.id: p.status for p in ride.passengers} == {
            "p1": PassengerStatus.ACCEPTED,
            "p2": PassengerStatus.PENDING,
        }

    @pytest.mark.asyncio
    async def test_rejection_frees_the_seat(self, ride_service, people):
        offer = await post_offer(ride_service, "driver", seats=1)
        await ride_service.join("p1", offer.id)
        await ride_service.set_passenger_status("driver", offer.id, "p1", PassengerAction.REJECT)
        ride = await ride_service.join("p2", offer.id)
        assert [p.id for p in ride.passengers] == ["p1", "p2"]

    @pytest.mark.asyncio
    async def test_only_author_decides(self, ride_service, people):
        offer = await post_offer(ride_service, "driver")
        await ride_service.join("p1", offer.id)
        with pytest.raises(Unauthorized):
            await ride_service.set_passenger_status("p2", offer.id, "p1", PassengerAction.ACCEPT)

    @pytest.mark.asyncio
    async def test_unknown_passenger(self, ride_service, people):
        offer = await post_offer(ride_service, "driver")
        with pytest.raises(NotFound):
            await ride_service.set_passenger_status(
                "driver", offer.id, "p9", PassengerAction.ACCEPT
            )

    @pytest.mark.asyncio
    async def test_same_action_twice_is_a_no_op(self, ride_service, people):
        offer = await post_offer(ride_service, "driver")
        await ride_service.join("p1", offer.id)
        await ride_service.set_passenger_status("driver", offer.id, "p1", PassengerAction.ACCEPT)
        ride = await ride_service.set_passenger_status(
            "driver", offer.id, "p1", PassengerAction.ACCEPT
        )
        assert ride.passengers[0].status == PassengerStatus.ACCEPTED

    @pytest.mark.asyncio
    async def test_terminal_status_cannot_flip(self, ride_service, people):
        offer = await post_offer(ride_service, "driver")
        await ride_service.join("p1", offer.id)
        await ride_service.set_passenger_status("driver", offer.id, "p1", PassengerAction.ACCEPT)
        with pytest.raises(InvalidTransition):
            await ride_service.set_passenger_status(
                "driver", offer.id, "p1", PassengerAction.REJECT
            )


# ── Rating ────────────────────────────────────────────────────────────


class TestRating:
    @pytest.mark.asyncio
    async def test_rating_updates_driver_profile(self, ride_service, store):
        await make_user(store, "driver", user_type=UserType.HYBRID, rating=4.0, total_rides=4, points=40)
        await make_user(store, "p1")
        offer = await post_offer(ride_service, "driver")

        record = await ride_service.rate_ride("p1", offer.id, 5, "Smooth ride")

        assert record.target_id == "driver"
        driver = await UserRepository(store).get_by_id("driver")
        assert (driver.rating, driver.total_rides, driver.points) == (4.2, 5, 90)
        stored = await RatingRepository(store).get(offer.id, "p1")
        assert stored.rating == 5 and stored.review == "Smooth ride"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("stars", [0, 6, 2.5])
    async def test_invalid_rating_leaves_profile_untouched(self, ride_service, store, people, stars):
        offer = await post_offer(ride_service, "driver")
        with pytest.raises(InvalidRating):
            await ride_service.rate_ride("p1", offer.id, stars)
        driver = await UserRepository(store).get_by_id("driver")
        assert (driver.rating, driver.total_rides) == (4.6, 12)
        assert await RatingRepository(store).get(offer.id, "p1") is None

    @pytest.mark.asyncio
    async def test_rating_missing_ride(self, ride_service, people):
        with pytest.raises(NotFound):
            await ride_service.rate_ride("p1", "ride_0_nobody", 4)

    @pytest.mark.asyncio
    async def test_rerating_overwrites_record_but_counts_twice(self, ride_service, store):
        # Current behaviour: a corrected rating is folded in as an extra ride.
        await make_user(store, "driver", user_type=UserType.HYBRID)
        await make_user(store, "p1")
        offer = await post_offer(ride_service, "driver")

        await ride_service.rate_ride("p1", offer.id, 5)
        await ride_service.rate_ride("p1", offer.id, 3)

        stored = await RatingRepository(store).get(offer.id, "p1")
        assert stored.rating == 3
        driver = await UserRepository(store).get_by_id("driver")
        assert (driver.rating, driver.total_rides, driver.points) == (4.0, 2, 80)

    @pytest.mark.asyncio
    async def test_offer_snapshot_is_not_refreshed(self, ride_service, people):
        offer = await post_offer(ride_service, "driver")
        await ride_service.rate_ride("p1", offer.id, 1)
        stored = await ride_service.rides.get_by_id(offer.id)
        assert isinstance(stored, RideOffer)
        assert stored.driver_rating == 4.6
