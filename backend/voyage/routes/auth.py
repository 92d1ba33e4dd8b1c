"""
Voyage Backend - Authentication Routes (user service)
======================================================

    POST /api/auth/register   create an account (guest)
    POST /api/auth/login      exchange credentials for a bearer token (guest)

Login returns the token both in the body and in the Authorization response
header, so clients can use either.
"""

import logging

from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from voyage.database import get_db_session
from voyage.schemas.common import ErrorResponse
from voyage.schemas.user import LoginRequest, TokenResponse, UserRegister, UserResponse
from voyage.services.user_service import user_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/auth", tags=["Auth"])


@router.post(
    "/register",
    response_model=UserResponse,
    status_code=status.HTTP_201_CREATED,
    responses={
        400: {"description": "Missing field, invalid email or weak password", "model": ErrorResponse},
        409: {"description": "Email already registered", "model": ErrorResponse},
    },
    summary="Register a new user",
)
async def register(
    payload: UserRegister,
    db: AsyncSession = Depends(get_db_session),
):
    return await user_service.register(db, payload)


@router.post(
    "/login",
    response_model=TokenResponse,
    responses={
        400: {"description": "Missing email or password", "model": ErrorResponse},
        401: {"description": "Invalid email or password", "model": ErrorResponse},
    },
    summary="Log in and receive a bearer token",
)
async def login(
    payload: LoginRequest,
    response: Response,
    db: AsyncSession = Depends(get_db_session),
) -> TokenResponse:
    user, token = await user_service.authenticate(db, payload.email, payload.password)
    response.headers["Authorization"] = f"Bearer {token}"
    return TokenResponse(
        token=token,
        expires_in=user_service.token_lifetime_seconds,
        user=UserResponse.model_validate(user),
    )
