"""
Ride endpoints
==============

POST /api/v1/rides/offer                               -- post a ride offer (riders)
POST /api/v1/rides/request                             -- post a ride request
GET  /api/v1/rides                                     -- ranked feed for the caller
GET  /api/v1/rides/my                                  -- rides the caller posted or joined
POST /api/v1/rides/{ride_id}/join                      -- ask to join an offer
POST /api/v1/rides/{ride_id}/passenger/{pid}/{action}  -- accept / reject a joiner
POST /api/v1/rides/{ride_id}/rate                      -- rate a ride's author
"""

from fastapi import APIRouter, Depends, Request

from uniride.api.dependencies import get_current_user_id, get_ride_service
from uniride.api.middleware import RATE_LIMIT, limiter
from uniride.api.schemas import (
    ErrorResponse,
    MessageResponse,
    OfferCreateRequest,
    OfferEnvelope,
    RateRequest,
    RequestCreateRequest,
    RequestEnvelope,
    RideListResponse,
    error_responses,
)
from uniride.domain.enums import PassengerAction
from uniride.services.rides import RideService

router = APIRouter(
    prefix="/rides",
    tags=["rides"],
    responses=error_responses(400, 401, 404, 409),
)


@router.post(
    "/offer",
    response_model=OfferEnvelope,
    summary="Post a ride offer",
    responses={
        403: {"model": ErrorResponse, "description": "Only hybrid users may offer rides."}
    },
)
@limiter.limit(RATE_LIMIT)
async def post_offer(
    request: Request,
    body: OfferCreateRequest,
    user_id: str = Depends(get_current_user_id),
    service: RideService = Depends(get_ride_service),
):
    offer = await service.post_offer(
        user_id,
        from_location=body.from_location,
        to_location=body.to_location,
        departure_time=body.departure_time,
        available_seats=body.available_seats,
        vehicle=body.vehicle,
        notes=body.notes,
    )
    return {"message": "Ride offer posted successfully", "ride": offer.to_record()}


@router.post(
    "/request",
    response_model=RequestEnvelope,
    summary="Post a ride request",
    responses={
        429: {"model": ErrorResponse, "description": "Passenger daily request limit reached."}
    },
)
@limiter.limit(RATE_LIMIT)
async def post_request(
    request: Request,
    body: RequestCreateRequest,
    user_id: str = Depends(get_current_user_id),
    service: RideService = Depends(get_ride_service),
):
    ride_request = await service.post_request(
        user_id,
        from_location=body.from_location,
        to_location=body.to_location,
        departure_time=body.departure_time,
        urgent=body.is_urgent,
        notes=body.notes,
    )
    return {
        "message": "Ride request posted successfully",
        "request": ride_request.to_record(),
    }


@router.get(
    "",
    response_model=RideListResponse,
    summary="Ranked ride feed",
    description=(
        "Active rides the caller may join or answer, same batch first, "
        "then urgent, then higher-rated drivers, then newest."
    ),
)
@limiter.limit(RATE_LIMIT)
async def list_rides(
    request: Request,
    user_id: str = Depends(get_current_user_id),
    service: RideService = Depends(get_ride_service),
):
    rides = await service.feed(user_id)
    return {"rides": [r.to_record() for r in rides]}


@router.get("/my", response_model=RideListResponse, summary="Caller's rides")
@limiter.limit(RATE_LIMIT)
async def my_rides(
    request: Request,
    user_id: str = Depends(get_current_user_id),
    service: RideService = Depends(get_ride_service),
):
    rides = await service.my_rides(user_id)
    return {"rides": [r.to_record() for r in rides]}


@router.post(
    "/{ride_id}/join",
    response_model=OfferEnvelope,
    summary="Ask to join a ride offer",
)
@limiter.limit(RATE_LIMIT)
async def join_ride(
    request: Request,
    ride_id: str,
    user_id: str = Depends(get_current_user_id),
    service: RideService = Depends(get_ride_service),
):
    ride = await service.join(user_id, ride_id)
    return {"message": "Join request sent successfully", "ride": ride.to_record()}


@router.post(
    "/{ride_id}/passenger/{passenger_id}/{action}",
    response_model=OfferEnvelope,
    summary="Accept or reject a passenger",
)
@limiter.limit(RATE_LIMIT)
async def set_passenger_status(
    request: Request,
    ride_id: str,
    passenger_id: str,
    action: PassengerAction,
    user_id: str = Depends(get_current_user_id),
    service: RideService = Depends(get_ride_service),
):
    ride = await service.set_passenger_status(user_id, ride_id, passenger_id, action)
    return {
        "message": f"Passenger {action.value}ed successfully",
        "ride": ride.to_record(),
    }


@router.post("/{ride_id}/rate", response_model=MessageResponse, summary="Rate a ride")
@limiter.limit(RATE_LIMIT)
async def rate_ride(
    request: Request,
    ride_id: str,
    body: RateRequest,
    user_id: str = Depends(get_current_user_id),
    service: RideService = Depends(get_ride_service),
):
    await service.rate_ride(user_id, ride_id, body.rating, body.review)
    return {"message": "Rating submitted successfully"}
