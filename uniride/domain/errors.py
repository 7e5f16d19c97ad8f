"""
Domain errors.

Every error carries the HTTP status the API layer answers with, so route
handlers never translate exceptions themselves.
"""

from __future__ import annotations


class DomainError(Exception):
    status_code = 500
    default_message = "Internal server error"

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class Unauthenticated(DomainError):
    status_code = 401
    default_message = "No access token provided"


class Forbidden(DomainError):
    status_code = 403
    default_message = "Only verified riders can post ride offers"


class NotFound(DomainError):
    status_code = 404
    default_message = "Not found"


class Unauthorized(NotFound):
    """Caller is not the ride's author; reported like a missing ride."""

    default_message = "Ride not found or unauthorized"


class InvalidInput(DomainError):
    status_code = 400
    default_message = "Invalid input"


class InvalidRating(InvalidInput):
    default_message = "Rating must be between 1 and 5"


class InvalidType(InvalidInput):
    default_message = "Can only join ride offers"


class SelfJoin(InvalidInput):
    default_message = "Cannot join your own ride"


class AlreadyJoined(InvalidInput):
    default_message = "You have already asked to join this ride"


class RideFull(InvalidInput):
    default_message = "Ride is full"


class EmailTaken(InvalidInput):
    default_message = "An account with this email already exists"


class InvalidTransition(DomainError):
    status_code = 409
    default_message = "Passenger status can no longer be changed"


class Conflict(DomainError):
    status_code = 409
    default_message = "Resource is busy, please retry"


class RateLimited(DomainError):
    status_code = 429
    default_message = "Daily request limit reached"
