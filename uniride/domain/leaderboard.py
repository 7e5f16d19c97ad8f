"""
Leaderboard of riders.

Hybrid users with at least one rated ride, ordered by points, then rating,
then total rides (all descending), truncated to the top *limit*.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable

from .entities import UserProfile
from .enums import Badge, UserType


@dataclass(frozen=True)
class LeaderboardEntry:
    rank: int
    id: str
    name: str
    batch: str
    rating: float
    total_rides: int
    points: int
    badge: Badge


def build_leaderboard(
    profiles: Iterable[UserProfile], limit: int = 50
) -> list[LeaderboardEntry]:
    riders = [
        p for p in profiles if p.user_type == UserType.HYBRID and p.total_rides > 0
    ]
    riders.sort(key=lambda p: (-p.points, -p.rating, -p.total_rides))
    return [
        LeaderboardEntry(
            rank=position,
            id=rider.id,
            name=rider.name,
            batch=rider.batch,
            rating=rider.rating,
            total_rides=rider.total_rides,
            points=rider.points,
            badge=rider.badge,
        )
        for position, rider in enumerate(riders[:limit], start=1)
    ]
