"""
Leaderboard / health endpoints
==============================

GET /api/v1/leaderboard -- top riders by points, rating, rides
GET /api/v1/health      -- simple health check
"""

from datetime import datetime, timezone

from fastapi import APIRouter, Depends, Request

from uniride.api.dependencies import get_settings, get_store
from uniride.api.middleware import RATE_LIMIT, limiter
from uniride.api.schemas import (
    HealthResponse,
    LeaderboardEntryResponse,
    LeaderboardResponse,
)
from uniride.config import Settings
from uniride.domain.leaderboard import build_leaderboard
from uniride.infrastructure.kv_store import KVStore
from uniride.infrastructure.repositories import UserRepository

router = APIRouter(tags=["leaderboard"])


@router.get(
    "/leaderboard",
    response_model=LeaderboardResponse,
    summary="Top riders",
)
@limiter.limit(RATE_LIMIT)
async def get_leaderboard(
    request: Request,
    store: KVStore = Depends(get_store),
    config: Settings = Depends(get_settings),
):
    profiles = await UserRepository(store).list_all()
    entries = build_leaderboard(profiles, limit=config.leaderboard_size)
    return LeaderboardResponse(
        leaderboard=[
            LeaderboardEntryResponse(
                rank=e.rank,
                id=e.id,
                name=e.name,
                batch=e.batch,
                rating=e.rating,
                total_rides=e.total_rides,
                points=e.points,
                badge=e.badge,
            )
            for e in entries
        ]
    )


@router.get("/health", response_model=HealthResponse, summary="Health check")
async def health(config: Settings = Depends(get_settings)):
    prefix = config.api_prefix
    return HealthResponse(
        timestamp=datetime.now(timezone.utc),
        endpoints={
            "signup": f"{prefix}/auth/signup",
            "profile": f"{prefix}/auth/profile",
            "rides": f"{prefix}/rides",
            "leaderboard": f"{prefix}/leaderboard",
        },
    )
