"""
Voyage Backend - Trip Routes (trip service)
============================================

    GET    /trips                         all trips (admin)
    POST   /trips                         create
    GET    /trips/me                      my trips
    POST   /trips/share/{tripId}          share: snapshot + code (owner)
    POST   /trips/import/{code}           import a shared trip
    GET    /trips/{tripId}                trip with its steps (owner or admin)
    PATCH  /trips/{tripId}                rename (owner)
    DELETE /trips/{tripId}                delete (owner or admin)
    GET    /trips/{tripId}/steps          steps in order
    POST   /trips/{tripId}/steps          add a step (owner)
    GET    /trips/{tripId}/steps/{stepId}
    PATCH  /trips/{tripId}/steps/{stepId} edit or move (owner)
    DELETE /trips/{tripId}/steps/{stepId} remove (owner)

Every route needs a bearer token; identity comes from its claims only.
"""

import logging
from typing import List

from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from voyage.database import get_db_session
from voyage.dependencies import get_token_claims, require_admin
from voyage.models.trip import Trip
from voyage.schemas.common import ErrorResponse
from voyage.schemas.trip import (
    ShareResponse,
    StepCreate,
    StepResponse,
    StepUpdate,
    TripCreate,
    TripDetailResponse,
    TripResponse,
    TripUpdate,
)
from voyage.security import TokenClaims
from voyage.services.trip_service import trip_service

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/trips",
    tags=["Trips"],
    responses={
        401: {"description": "Missing or invalid token", "model": ErrorResponse},
    },
)

TRIP_ERRORS = {
    403: {"description": "Trip belongs to another user", "model": ErrorResponse},
    404: {"description": "Unknown trip", "model": ErrorResponse},
}


async def _detail(db: AsyncSession, trip: Trip) -> TripDetailResponse:
    steps = await trip_service.list_steps(db, trip.id)
    return TripDetailResponse(
        **TripResponse.model_validate(trip).model_dump(),
        steps=[StepResponse.model_validate(step) for step in steps],
    )


# ── Trips ─────────────────────────────────────────────────────────────────

@router.get(
    "",
    response_model=List[TripResponse],
    responses={403: {"description": "Administrator role required", "model": ErrorResponse}},
    summary="List all trips",
)
async def list_trips(
    claims: TokenClaims = Depends(require_admin),
    db: AsyncSession = Depends(get_db_session),
):
    return await trip_service.list_trips(db)


@router.post(
    "",
    response_model=TripDetailResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a trip",
)
async def create_trip(
    payload: TripCreate,
    claims: TokenClaims = Depends(get_token_claims),
    db: AsyncSession = Depends(get_db_session),
) -> TripDetailResponse:
    trip = await trip_service.create_trip(db, claims.user_id, payload.name)
    return await _detail(db, trip)


@router.get("/me", response_model=List[TripResponse], summary="List my trips")
async def list_my_trips(
    claims: TokenClaims = Depends(get_token_claims),
    db: AsyncSession = Depends(get_db_session),
):
    return await trip_service.list_trips(db, owner_id=claims.user_id)


# ── Sharing ───────────────────────────────────────────────────────────────

@router.post(
    "/share/{trip_id}",
    response_model=ShareResponse,
    status_code=status.HTTP_201_CREATED,
    responses=TRIP_ERRORS,
    summary="Share a trip",
    description=(
        "Freezes the trip into a snapshot and returns a code other users can "
        "import until it expires. Later edits do not reach the snapshot."
    ),
)
async def share_trip(
    trip_id: int,
    claims: TokenClaims = Depends(get_token_claims),
    db: AsyncSession = Depends(get_db_session),
) -> ShareResponse:
    trip = await trip_service.get_owned_trip(db, trip_id, claims)
    share = await trip_service.share_trip(db, trip, claims)
    return ShareResponse(
        code=share.code,
        trip_id=share.snapshot_trip_id,
        source_trip_id=share.source_trip_id,
        expires_at=share.expires_at,
    )


@router.post(
    "/import/{code}",
    response_model=TripDetailResponse,
    status_code=status.HTTP_201_CREATED,
    responses={
        404: {"description": "Unknown share code", "model": ErrorResponse},
        410: {"description": "Share code expired", "model": ErrorResponse},
    },
    summary="Import a shared trip",
)
async def import_trip(
    code: str,
    claims: TokenClaims = Depends(get_token_claims),
    db: AsyncSession = Depends(get_db_session),
) -> TripDetailResponse:
    trip = await trip_service.import_trip(db, code, claims)
    return await _detail(db, trip)


# ── Single Trip ───────────────────────────────────────────────────────────

@router.get("/{trip_id}", response_model=TripDetailResponse, responses=TRIP_ERRORS, summary="Get a trip")
async def get_trip(
    trip_id: int,
    claims: TokenClaims = Depends(get_token_claims),
    db: AsyncSession = Depends(get_db_session),
) -> TripDetailResponse:
    trip = await trip_service.get_readable_trip(db, trip_id, claims)
    return await _detail(db, trip)


@router.patch(
    "/{trip_id}",
    response_model=TripDetailResponse,
    responses={**TRIP_ERRORS, 409: {"description": "Name already used", "model": ErrorResponse}},
    summary="Rename a trip",
)
async def rename_trip(
    trip_id: int,
    payload: TripUpdate,
    claims: TokenClaims = Depends(get_token_claims),
    db: AsyncSession = Depends(get_db_session),
) -> TripDetailResponse:
    trip = await trip_service.get_owned_trip(db, trip_id, claims)
    trip = await trip_service.rename_trip(db, trip, payload.name)
    return await _detail(db, trip)


@router.delete(
    "/{trip_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    responses=TRIP_ERRORS,
    summary="Delete a trip",
)
async def delete_trip(
    trip_id: int,
    claims: TokenClaims = Depends(get_token_claims),
    db: AsyncSession = Depends(get_db_session),
) -> Response:
    trip = await trip_service.get_readable_trip(db, trip_id, claims)
    await trip_service.delete_trip(db, trip)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# ── Steps ─────────────────────────────────────────────────────────────────

@router.get(
    "/{trip_id}/steps",
    response_model=List[StepResponse],
    responses=TRIP_ERRORS,
    summary="List a trip's steps",
)
async def list_steps(
    trip_id: int,
    claims: TokenClaims = Depends(get_token_claims),
    db: AsyncSession = Depends(get_db_session),
):
    trip = await trip_service.get_readable_trip(db, trip_id, claims)
    return await trip_service.list_steps(db, trip.id)


@router.post(
    "/{trip_id}/steps",
    response_model=StepResponse,
    status_code=status.HTTP_201_CREATED,
    responses=TRIP_ERRORS,
    summary="Add a step",
)
async def add_step(
    trip_id: int,
    payload: StepCreate,
    claims: TokenClaims = Depends(get_token_claims),
    db: AsyncSession = Depends(get_db_session),
):
    trip = await trip_service.get_owned_trip(db, trip_id, claims)
    return await trip_service.add_step(db, trip, payload)


@router.get(
    "/{trip_id}/steps/{step_id}",
    response_model=StepResponse,
    responses=TRIP_ERRORS,
    summary="Get a step",
)
async def get_step(
    trip_id: int,
    step_id: int,
    claims: TokenClaims = Depends(get_token_claims),
    db: AsyncSession = Depends(get_db_session),
):
    trip = await trip_service.get_readable_trip(db, trip_id, claims)
    return await trip_service.get_step(db, trip, step_id)


@router.patch(
    "/{trip_id}/steps/{step_id}",
    response_model=StepResponse,
    responses=TRIP_ERRORS,
    summary="Edit or move a step",
)
async def update_step(
    trip_id: int,
    step_id: int,
    payload: StepUpdate,
    claims: TokenClaims = Depends(get_token_claims),
    db: AsyncSession = Depends(get_db_session),
):
    trip = await trip_service.get_owned_trip(db, trip_id, claims)
    return await trip_service.update_step(db, trip, step_id, payload)


@router.delete(
    "/{trip_id}/steps/{step_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    responses=TRIP_ERRORS,
    summary="Remove a step",
)
async def delete_step(
    trip_id: int,
    step_id: int,
    claims: TokenClaims = Depends(get_token_claims),
    db: AsyncSession = Depends(get_db_session),
) -> Response:
    trip = await trip_service.get_owned_trip(db, trip_id, claims)
    await trip_service.delete_step(db, trip, step_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
