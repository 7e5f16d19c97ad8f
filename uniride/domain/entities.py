"""
Domain entities with business logic.

Patterns used
-------------
- **Tagged union** for rides: ``RideOffer`` and ``RideRequest`` share the
  ``Ride`` base and are told apart by ``ride_type`` / the ``type`` field of
  the stored record.
- **State Pattern** on ``Passenger``: enforces the join lifecycle
  (pending -> accepted | rejected).
- ``RideOffer.add_passenger`` encapsulates the seat-capacity invariant.

Entities serialise to camelCase records (``to_record`` / ``*_from_record``),
which is the shape persisted in the KV store and returned to clients.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, ClassVar, Optional

from .enums import (
    ACTION_TARGETS,
    PASSENGER_TRANSITIONS,
    Badge,
    PassengerAction,
    PassengerStatus,
    RideStatus,
    RideType,
    UserType,
    VehicleType,
    VerificationStatus,
)
from .errors import (
    AlreadyJoined,
    InvalidTransition,
    NotFound,
    RideFull,
    SelfJoin,
)
from .rating import derive_badge, running_average


def _iso(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value else None


def _parse_iso(value: Any) -> Optional[datetime]:
    if not value:
        return None
    if isinstance(value, datetime):
        return value
    # Records written by JS clients end in "Z"
    return datetime.fromisoformat(str(value).replace("Z", "+00:00"))


# ── Users ─────────────────────────────────────────────────────────────


@dataclass
class UserProfile:
    id: str
    email: str
    name: str
    student_id: str = ""
    batch: str = ""
    department: str = ""
    user_type: UserType = UserType.PASSENGER
    rating: float = 0.0
    total_rides: int = 0
    points: int = 0
    verified: bool = False
    verification_status: VerificationStatus = VerificationStatus.PENDING
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @classmethod
    def new(
        cls,
        *,
        id: str,
        email: str,
        name: str,
        student_id: str,
        batch: str,
        department: str,
        user_type: UserType,
        now: datetime,
    ) -> "UserProfile":
        """Fresh profile. Passengers are verified on signup, riders wait for review."""
        is_passenger = user_type == UserType.PASSENGER
        return cls(
            id=id,
            email=email,
            name=name,
            student_id=student_id,
            batch=batch,
            department=department,
            user_type=user_type,
            verified=is_passenger,
            verification_status=(
                VerificationStatus.VERIFIED if is_passenger else VerificationStatus.PENDING
            ),
            created_at=now,
        )

    @property
    def badge(self) -> Badge:
        return derive_badge(self.total_rides, self.rating)

    def apply_rating(self, stars: int, points_per_star: int, now: datetime) -> None:
        """Fold one more rating into the running average."""
        self.rating = running_average(self.rating, self.total_rides, stars)
        self.total_rides += 1
        self.points += stars * points_per_star
        self.updated_at = now

    def to_record(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "email": self.email,
            "name": self.name,
            "studentId": self.student_id,
            "batch": self.batch,
            "department": self.department,
            "userType": self.user_type.value,
            "rating": self.rating,
            "totalRides": self.total_rides,
            "points": self.points,
            "verified": self.verified,
            "verificationStatus": self.verification_status.value,
            "createdAt": _iso(self.created_at),
            "updatedAt": _iso(self.updated_at),
        }

    @classmethod
    def from_record(cls, record: dict[str, Any]) -> "UserProfile":
        return cls(
            id=record["id"],
            email=record["email"],
            name=record.get("name", ""),
            student_id=record.get("studentId", ""),
            batch=str(record.get("batch", "")),
            department=record.get("department", ""),
            user_type=UserType(record.get("userType", UserType.PASSENGER.value)),
            rating=float(record.get("rating") or 0),
            total_rides=int(record.get("totalRides") or 0),
            points=int(record.get("points") or 0),
            verified=bool(record.get("verified", False)),
            verification_status=VerificationStatus(
                record.get("verificationStatus", VerificationStatus.PENDING.value)
            ),
            created_at=_parse_iso(record.get("createdAt")),
            updated_at=_parse_iso(record.get("updatedAt")),
        )


# ── Rides ─────────────────────────────────────────────────────────────


@dataclass
class Passenger:
    id: str
    name: str
    batch: str
    status: PassengerStatus = PassengerStatus.PENDING
    joined_at: Optional[datetime] = None

    def apply(self, action: PassengerAction) -> bool:
        """Apply *action*; returns False when the entry is already there."""
        target = ACTION_TARGETS[action]
        if self.status == target:
            return False
        if target not in PASSENGER_TRANSITIONS.get(self.status, set()):
            raise InvalidTransition(
                f"Cannot change passenger from {self.status.value} to {target.value}"
            )
        self.status = target
        return True

    def to_record(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "batch": self.batch,
            "status": self.status.value,
            "joinedAt": _iso(self.joined_at),
        }

    @classmethod
    def from_record(cls, record: dict[str, Any]) -> "Passenger":
        return cls(
            id=record["id"],
            name=record.get("name", ""),
            batch=str(record.get("batch", "")),
            status=PassengerStatus(record.get("status", PassengerStatus.PENDING.value)),
            joined_at=_parse_iso(record.get("joinedAt")),
        )


@dataclass(kw_only=True)
class Ride:
    ride_type: ClassVar[RideType]

    id: str
    author_id: str
    author_name: str
    author_batch: str
    from_location: str
    to_location: str
    departure_time: str
    notes: Optional[str] = None
    status: RideStatus = RideStatus.ACTIVE
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @property
    def is_active(self) -> bool:
        return self.status == RideStatus.ACTIVE

    @property
    def is_urgent(self) -> bool:
        return False

    def has_member(self, user_id: str) -> bool:
        """True if *user_id* authored the ride or already joined it."""
        return self.author_id == user_id

    def to_record(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "type": self.ride_type.value,
            "authorId": self.author_id,
            "authorName": self.author_name,
            "authorBatch": self.author_batch,
            "from": self.from_location,
            "to": self.to_location,
            "departureTime": self.departure_time,
            "notes": self.notes,
            "status": self.status.value,
            "createdAt": _iso(self.created_at),
            "updatedAt": _iso(self.updated_at),
        }

    @staticmethod
    def _common_fields(record: dict[str, Any]) -> dict[str, Any]:
        return {
            "id": record["id"],
            "author_id": record["authorId"],
            "author_name": record.get("authorName", ""),
            "author_batch": str(record.get("authorBatch", "")),
            "from_location": record.get("from", ""),
            "to_location": record.get("to", ""),
            "departure_time": record.get("departureTime", ""),
            "notes": record.get("notes"),
            "status": RideStatus(record.get("status", RideStatus.ACTIVE.value)),
            "created_at": _parse_iso(record.get("createdAt")),
            "updated_at": _parse_iso(record.get("updatedAt")),
        }


@dataclass(kw_only=True)
class RideOffer(Ride):
    ride_type: ClassVar[RideType] = RideType.OFFER

    available_seats: int
    vehicle: VehicleType
    driver_rating: float = 0.0
    passengers: list[Passenger] = field(default_factory=list)

    def has_member(self, user_id: str) -> bool:
        return super().has_member(user_id) or self.find_passenger(user_id) is not None

    @property
    def occupied_seats(self) -> int:
        return sum(
            1 for p in self.passengers if p.status != PassengerStatus.REJECTED
        )

    def find_passenger(self, passenger_id: str) -> Optional[Passenger]:
        for passenger in self.passengers:
            if passenger.id == passenger_id:
                return passenger
        return None

    def add_passenger(self, passenger: Passenger, now: datetime) -> None:
        """Queue *passenger* as pending if a seat is still free, else raise."""
        if passenger.id == self.author_id:
            raise SelfJoin()
        if self.find_passenger(passenger.id) is not None:
            raise AlreadyJoined()
        if self.occupied_seats >= self.available_seats:
            raise RideFull()
        passenger.status = PassengerStatus.PENDING
        passenger.joined_at = passenger.joined_at or now
        self.passengers.append(passenger)
        self.updated_at = now

    def set_passenger_status(
        self, passenger_id: str, action: PassengerAction, now: datetime
    ) -> Passenger:
        passenger = self.find_passenger(passenger_id)
        if passenger is None:
            raise NotFound("Passenger not found on this ride")
        if passenger.apply(action):
            self.updated_at = now
        return passenger

    def to_record(self) -> dict[str, Any]:
        record = super().to_record()
        record.update(
            availableSeats=self.available_seats,
            vehicle=self.vehicle.value,
            driverRating=self.driver_rating,
            passengers=[p.to_record() for p in self.passengers],
        )
        return record

    @classmethod
    def from_record(cls, record: dict[str, Any]) -> "RideOffer":
        return cls(
            **cls._common_fields(record),
            available_seats=int(record.get("availableSeats") or 0),
            vehicle=VehicleType(record.get("vehicle", VehicleType.BICYCLE.value)),
            driver_rating=float(record.get("driverRating") or 0),
            passengers=[Passenger.from_record(p) for p in record.get("passengers") or []],
        )


@dataclass(kw_only=True)
class RideRequest(Ride):
    ride_type: ClassVar[RideType] = RideType.REQUEST

    urgent: bool = False
    responses: list[dict[str, Any]] = field(default_factory=list)

    @property
    def is_urgent(self) -> bool:
        return self.urgent

    def to_record(self) -> dict[str, Any]:
        record = super().to_record()
        record.update(isUrgent=self.urgent, responses=list(self.responses))
        return record

    @classmethod
    def from_record(cls, record: dict[str, Any]) -> "RideRequest":
        return cls(
            **cls._common_fields(record),
            urgent=bool(record.get("isUrgent", False)),
            responses=list(record.get("responses") or []),
        )


def ride_from_record(record: dict[str, Any]) -> Ride:
    """Rebuild the right ``Ride`` variant from its ``type`` tag."""
    ride_type = RideType(record.get("type"))
    if ride_type == RideType.OFFER:
        return RideOffer.from_record(record)
    return RideRequest.from_record(record)


# ── Ratings ───────────────────────────────────────────────────────────


@dataclass(frozen=True)
class RatingRecord:
    ride_id: str
    rater_id: str
    target_id: str
    rating: int
    review: Optional[str] = None
    created_at: Optional[datetime] = None

    def to_record(self) -> dict[str, Any]:
        return {
            "rideId": self.ride_id,
            "raterId": self.rater_id,
            "targetId": self.target_id,
            "rating": self.rating,
            "review": self.review,
            "createdAt": _iso(self.created_at),
        }

    @classmethod
    def from_record(cls, record: dict[str, Any]) -> "RatingRecord":
        return cls(
            ride_id=record["rideId"],
            rater_id=record["raterId"],
            target_id=record["targetId"],
            rating=int(record["rating"]),
            review=record.get("review"),
            created_at=_parse_iso(record.get("createdAt")),
        )
