"""Domain enumerations and state-transition rules."""

import enum


class UserType(str, enum.Enum):
    PASSENGER = "passenger"
    HYBRID = "hybrid"


class VerificationStatus(str, enum.Enum):
    VERIFIED = "verified"
    PENDING = "pending"


class RideType(str, enum.Enum):
    OFFER = "offer"
    REQUEST = "request"


class RideStatus(str, enum.Enum):
    ACTIVE = "active"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class VehicleType(str, enum.Enum):
    BICYCLE = "bicycle"
    BIKE = "bike"
    CAR = "car"


class PassengerStatus(str, enum.Enum):
    PENDING = "pending"
    ACCEPTED = "accepted"
    REJECTED = "rejected"


class PassengerAction(str, enum.Enum):
    ACCEPT = "accept"
    REJECT = "reject"


# State machine: maps current passenger status -> set of valid next statuses
PASSENGER_TRANSITIONS: dict[PassengerStatus, set[PassengerStatus]] = {
    PassengerStatus.PENDING: {PassengerStatus.ACCEPTED, PassengerStatus.REJECTED},
    PassengerStatus.ACCEPTED: set(),
    PassengerStatus.REJECTED: set(),
}

ACTION_TARGETS: dict[PassengerAction, PassengerStatus] = {
    PassengerAction.ACCEPT: PassengerStatus.ACCEPTED,
    PassengerAction.REJECT: PassengerStatus.REJECTED,
}


class Badge(str, enum.Enum):
    BEGINNER = "Beginner"
    SPEEDSTER = "Speedster"
    EXPERT = "Expert"
    CHAMPION = "Champion"
    HERO = "Hero"
