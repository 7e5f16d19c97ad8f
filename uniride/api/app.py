"""
FastAPI application factory.

* Registers routes for auth, rides and the leaderboard.
* Opens the identity-provider client on startup; closes it, the DB
  engine and the Redis pool on shutdown.
* Applies CORS, rate-limiting middleware and domain-error mapping.
* Swagger / OpenAPI UI available at ``/docs``.
"""

from contextlib import asynccontextmanager
import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from uniride.api.middleware import (
    domain_error_handler,
    limiter,
    unhandled_error_handler,
)
from uniride.api.routes import auth, leaderboard, rides
from uniride.config import settings
from uniride.domain.errors import DomainError
from uniride.infrastructure.database import engine
from uniride.infrastructure.identity import SupabaseIdentityProvider
from uniride.infrastructure.redis_client import close_redis

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Open the identity client on startup; release pools on shutdown."""
    app.state.identity = SupabaseIdentityProvider.from_settings(settings)
    logger.info("Uni-Ride API started (prefix=%s)", settings.api_prefix)
    yield
    await app.state.identity.aclose()
    await close_redis()
    await engine.dispose()
    logger.info("Uni-Ride API stopped")


def create_app() -> FastAPI:
    app = FastAPI(
        title="Uni-Ride API",
        description=(
            "Campus ride sharing for university students.  Riders post "
            "offers, passengers post requests and join offers; the feed is "
            "ranked by batch, urgency, driver rating and recency."
        ),
        version="1.0.0",
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization"],
    )

    # Rate limiter
    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

    # Errors
    app.add_exception_handler(DomainError, domain_error_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)

    # Routers
    app.include_router(auth.router, prefix=settings.api_prefix)
    app.include_router(rides.router, prefix=settings.api_prefix)
    app.include_router(leaderboard.router, prefix=settings.api_prefix)

    return app
