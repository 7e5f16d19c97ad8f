"""Daily posting quota for passenger-type users."""

from __future__ import annotations

from datetime import datetime, timezone

from .enums import UserType
from .errors import RateLimited


def quota_day(now: datetime) -> str:
    """Calendar day (UTC, ``YYYY-MM-DD``) a posting counts against."""
    return now.astimezone(timezone.utc).date().isoformat()


def is_quota_limited(user_type: UserType) -> bool:
    return user_type == UserType.PASSENGER


def check_request_quota(user_type: UserType, posted_today: int, limit: int) -> None:
    """Raise ``RateLimited`` if another request would exceed today's quota."""
    if is_quota_limited(user_type) and posted_today >= limit:
        raise RateLimited(f"Daily request limit reached ({limit} requests per day)")
