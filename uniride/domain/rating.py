"""
Rating aggregation and badge tiers.

Running average
---------------
  new_rating = (old_rating x old_total + stars) / (old_total + 1)

rounded half-up to one decimal place.  The update assumes ``old_total``
counts exactly the ratings already folded in.

Badges
------
Evaluated top-down, first match wins:

  Hero      >= 100 rides and rating >= 4.8
  Champion  >=  50 rides and rating >= 4.5
  Expert    >=  25 rides and rating >= 4.0
  Speedster >=  10 rides
  Beginner  otherwise
"""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal

from .enums import Badge
from .errors import InvalidRating

MIN_STARS = 1
MAX_STARS = 5

# (badge, min total rides, min rating) -- order matters
BADGE_TIERS: list[tuple[Badge, int, float]] = [
    (Badge.HERO, 100, 4.8),
    (Badge.CHAMPION, 50, 4.5),
    (Badge.EXPERT, 25, 4.0),
    (Badge.SPEEDSTER, 10, 0.0),
]


def validate_stars(value: object) -> int:
    """Return *value* as an int star count, or raise ``InvalidRating``."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise InvalidRating()
    if isinstance(value, float) and not value.is_integer():
        raise InvalidRating()
    if not MIN_STARS <= value <= MAX_STARS:
        raise InvalidRating()
    return int(value)


def round_rating(value: float) -> float:
    return float(Decimal(value).quantize(Decimal("0.1"), rounding=ROUND_HALF_UP))


def running_average(current: float, count: int, stars: int) -> float:
    return round_rating((current * count + stars) / (count + 1))


def derive_badge(total_rides: int, rating: float) -> Badge:
    for badge, min_rides, min_rating in BADGE_TIERS:
        if total_rides >= min_rides and rating >= min_rating:
            return badge
    return Badge.BEGINNER
