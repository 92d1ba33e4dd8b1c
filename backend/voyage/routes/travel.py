"""
Voyage Backend - Travel Routes (travel service)
================================================

    GET  /travel/list        search every provider (query parameters)
    GET  /travel             stored bookings (admin)
    POST /travel             store the offer the user picked
    GET  /travel/{travelId}  one booking (admin)
    PUT  /verify/{travelId}  reconcile a booking with its provider
"""

import logging
from typing import Annotated, List

from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from voyage.database import get_db_session
from voyage.dependencies import get_token_claims, require_admin
from voyage.schemas.common import ErrorResponse
from voyage.schemas.travel import TravelCreate, TravelFind, TravelResponse, TravelSearch
from voyage.security import TokenClaims
from voyage.services.travel_service import travel_service

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Travel"])

UPSTREAM_ERRORS = {
    502: {"description": "Provider unreachable or not configured", "model": ErrorResponse},
    503: {"description": "Provider circuit breaker open", "model": ErrorResponse},
}


@router.get(
    "/travel/list",
    response_model=List[TravelFind],
    responses={400: {"description": "Invalid search", "model": ErrorResponse}},
    summary="Search transport offers",
    description=(
        "Queries every configured provider concurrently. Providers that fail "
        "are skipped. Results are sorted by price, then departure."
    ),
)
async def search_travels(query: Annotated[TravelSearch, Query()]) -> List[TravelFind]:
    return await travel_service.search(query)


@router.get(
    "/travel",
    response_model=List[TravelResponse],
    responses={
        401: {"description": "Missing or invalid token", "model": ErrorResponse},
        403: {"description": "Administrator role required", "model": ErrorResponse},
    },
    summary="List stored bookings",
)
async def list_travels(
    claims: TokenClaims = Depends(require_admin),
    db: AsyncSession = Depends(get_db_session),
):
    return await travel_service.list_travels(db)


@router.post(
    "/travel",
    response_model=TravelResponse,
    status_code=status.HTTP_201_CREATED,
    responses={
        401: {"description": "Missing or invalid token", "model": ErrorResponse},
        409: {"description": "Booking already stored", "model": ErrorResponse},
    },
    summary="Store a booking",
)
async def create_travel(
    payload: TravelCreate,
    claims: TokenClaims = Depends(get_token_claims),
    db: AsyncSession = Depends(get_db_session),
):
    return await travel_service.create_travel(db, payload, claims)


@router.get(
    "/travel/{travel_id}",
    response_model=TravelResponse,
    responses={
        403: {"description": "Administrator role required", "model": ErrorResponse},
        404: {"description": "Unknown booking", "model": ErrorResponse},
    },
    summary="Get a booking",
)
async def get_travel(
    travel_id: int,
    claims: TokenClaims = Depends(require_admin),
    db: AsyncSession = Depends(get_db_session),
):
    return await travel_service.get_travel(db, travel_id)


@router.put(
    "/verify/{travel_id}",
    response_model=TravelResponse,
    responses={
        200: {"description": "Booking matches the provider"},
        201: {"description": "Booking updated from the provider", "model": TravelResponse},
        404: {"description": "Unknown booking, or the offer no longer exists", "model": ErrorResponse},
        **UPSTREAM_ERRORS,
    },
    summary="Verify a booking with its provider",
)
async def verify_travel(
    travel_id: int,
    response: Response,
    claims: TokenClaims = Depends(get_token_claims),
    db: AsyncSession = Depends(get_db_session),
):
    travel, modified = await travel_service.verify_travel(db, travel_id)
    if modified:
        response.status_code = status.HTTP_201_CREATED
    return travel
