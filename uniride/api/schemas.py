"""Pydantic request / response schemas for the REST API.

Wire format is camelCase (``studentId``, ``departureTime``...) to match the
mobile client; Python code uses the snake_case field names.
"""

from __future__ import annotations

from datetime import datetime
from typing import Annotated, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from uniride.domain.enums import (
    Badge,
    PassengerStatus,
    RideStatus,
    UserType,
    VehicleType,
    VerificationStatus,
)


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# ── Requests ──────────────────────────────────────────────────────────


class SignupRequest(CamelModel):
    email: str = Field(..., min_length=3, max_length=255)
    password: str = Field(..., min_length=6)
    name: str = Field(..., min_length=1, max_length=120)
    student_id: str = Field(..., min_length=1, max_length=32)
    batch: str = Field(..., min_length=1, max_length=16)
    department: str = Field(..., min_length=1, max_length=120)
    user_type: UserType


class ProfileUpdateRequest(CamelModel):
    name: Optional[str] = Field(None, min_length=1, max_length=120)
    student_id: Optional[str] = Field(None, min_length=1, max_length=32)
    batch: Optional[str] = Field(None, min_length=1, max_length=16)
    department: Optional[str] = Field(None, min_length=1, max_length=120)


class OfferCreateRequest(CamelModel):
    from_location: str = Field(..., alias="from", min_length=1)
    to_location: str = Field(..., alias="to", min_length=1)
    departure_time: str = Field(..., min_length=1)
    available_seats: int = Field(1, ge=1)
    vehicle: VehicleType = VehicleType.BICYCLE
    notes: Optional[str] = Field(None, max_length=500)


class RequestCreateRequest(CamelModel):
    from_location: str = Field(..., alias="from", min_length=1)
    to_location: str = Field(..., alias="to", min_length=1)
    departure_time: str = Field(..., min_length=1)
    is_urgent: bool = False
    notes: Optional[str] = Field(None, max_length=500)


class RateRequest(CamelModel):
    # Range is checked by the domain so out-of-range answers 400, not 422
    rating: float
    review: Optional[str] = Field(None, max_length=1000)


# ── Responses ─────────────────────────────────────────────────────────


class UserResponse(CamelModel):
    id: str
    email: str
    name: str
    student_id: str
    batch: str
    department: str
    user_type: UserType
    rating: float
    total_rides: int
    points: int
    verified: bool
    verification_status: VerificationStatus
    badge: Badge
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class PassengerResponse(CamelModel):
    id: str
    name: str
    batch: str
    status: PassengerStatus
    joined_at: Optional[datetime] = None


class _RideFields(CamelModel):
    id: str
    author_id: str
    author_name: str
    author_batch: str
    from_location: str = Field(..., alias="from")
    to_location: str = Field(..., alias="to")
    departure_time: str
    notes: Optional[str] = None
    status: RideStatus
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class OfferResponse(_RideFields):
    type: Literal["offer"] = "offer"
    available_seats: int
    vehicle: VehicleType
    driver_rating: float
    passengers: list[PassengerResponse] = []


class RequestResponse(_RideFields):
    type: Literal["request"] = "request"
    is_urgent: bool = False
    responses: list[dict] = []


RideResponse = Annotated[
    Union[OfferResponse, RequestResponse], Field(discriminator="type")
]


class SignupResponse(CamelModel):
    message: str
    user: UserResponse
    needs_verification: bool


class UserEnvelope(CamelModel):
    user: UserResponse


class OfferEnvelope(CamelModel):
    message: str
    ride: OfferResponse


class RequestEnvelope(CamelModel):
    message: str
    request: RequestResponse


class RideListResponse(CamelModel):
    rides: list[RideResponse]


class MessageResponse(CamelModel):
    message: str


class LeaderboardEntryResponse(CamelModel):
    rank: int
    id: str
    name: str
    batch: str
    rating: float
    total_rides: int
    points: int
    badge: Badge


class LeaderboardResponse(CamelModel):
    leaderboard: list[LeaderboardEntryResponse]


class HealthResponse(BaseModel):
    status: str = "healthy"
    timestamp: datetime
    endpoints: dict[str, str] = {}


class ErrorResponse(BaseModel):
    error: str


def error_responses(*status_codes: int) -> dict[int, dict]:
    """OpenAPI ``responses`` entries for errors rendered as ``{"error": ...}``."""
    return {code: {"model": ErrorResponse} for code in status_codes}
