"""
Ride Feed Visibility & Priority Ranking
=======================================

Filtering (applied in order)
----------------------------
1. Only ``active`` rides are shown.
2. Passenger-type viewers only see offers.
3. Rides the viewer authored or already joined are hidden.

Ordering (stable, comparator precedence)
----------------------------------------
1. Author shares the viewer's batch.
2. Urgent requests.
3. Between two offers, higher driver rating snapshot.
4. Most recent ``created_at``.

The rating key only applies when *both* rides are offers, so the order
cannot be expressed as a single sort key; a comparator is used instead.
That comparator is not transitive once offers and requests mix (an old
high-rated offer, a newer request and a newest low-rated offer form a
cycle), so rides are first put in a canonical order: newest first, then
by id.  The feed then depends only on the set of rides, never on the
order the store returned them in.

Complexity: O(N log N) for N active rides.
"""

from __future__ import annotations

from datetime import datetime, timezone
from functools import cmp_to_key
from typing import Iterable

from .entities import Ride, RideOffer, UserProfile
from .enums import RideType, UserType

_EPOCH = datetime.min.replace(tzinfo=timezone.utc)


def is_visible(ride: Ride, viewer: UserProfile) -> bool:
    if not ride.is_active:
        return False
    if viewer.user_type == UserType.PASSENGER and ride.ride_type != RideType.OFFER:
        return False
    return not ride.has_member(viewer.id)


def _compare(a: Ride, b: Ride, batch: str) -> int:
    a_same, b_same = a.author_batch == batch, b.author_batch == batch
    if a_same != b_same:
        return -1 if a_same else 1

    if a.is_urgent != b.is_urgent:
        return -1 if a.is_urgent else 1

    if isinstance(a, RideOffer) and isinstance(b, RideOffer):
        if a.driver_rating != b.driver_rating:
            return -1 if a.driver_rating > b.driver_rating else 1

    a_created = a.created_at or _EPOCH
    b_created = b.created_at or _EPOCH
    if a_created != b_created:
        return -1 if a_created > b_created else 1
    return 0


def rank_rides(rides: Iterable[Ride], viewer: UserProfile) -> list[Ride]:
    """Visible rides for *viewer*, highest priority first."""
    visible = [ride for ride in rides if is_visible(ride, viewer)]
    visible.sort(key=lambda ride: ride.id)
    visible.sort(key=lambda ride: ride.created_at or _EPOCH, reverse=True)
    return sorted(visible, key=cmp_to_key(lambda a, b: _compare(a, b, viewer.batch)))
