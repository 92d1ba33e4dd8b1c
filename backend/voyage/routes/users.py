"""
Voyage Backend - User Management Routes (user service)
=======================================================

Self-service (any authenticated user):
    GET    /api/users/me
    PATCH  /api/users/me          password change needs oldPassword
    DELETE /api/users/me

Administration (stored role must be "admin"):
    GET    /api/users             POST   /api/users
    GET    /api/users/roles
    GET    /api/users/{userId}    PATCH|PUT /api/users/{userId}
    DELETE /api/users/{userId}
    PUT    /api/users/{userId}/role
    DELETE /api/users/{userId}/role

The user service owns the accounts, so unlike the other services it loads
the caller from the database: a deleted account or a revoked admin role
takes effect before the token expires.
"""

import logging
from typing import List

from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from voyage.database import get_db_session
from voyage.dependencies import get_token_claims
from voyage.exceptions import PermissionDeniedError
from voyage.models.user import User
from voyage.schemas.common import ErrorResponse
from voyage.schemas.user import (
    RoleResponse,
    RoleUpdate,
    UserCreate,
    UserResponse,
    UserRoleResponse,
    UserUpdate,
)
from voyage.security import ROLE_USER, ROLES, TokenClaims
from voyage.services.user_service import user_service

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/api/users",
    tags=["Users"],
    responses={
        401: {"description": "Missing or invalid token", "model": ErrorResponse},
    },
)

ADMIN_ONLY = {403: {"description": "Administrator role required", "model": ErrorResponse}}
USER_NOT_FOUND = {404: {"description": "Unknown user", "model": ErrorResponse}}


# ── Dependencies ──────────────────────────────────────────────────────────

async def get_current_user(
    claims: TokenClaims = Depends(get_token_claims),
    db: AsyncSession = Depends(get_db_session),
) -> User:
    return await user_service.get_authenticated_user(db, claims)


async def get_current_admin(user: User = Depends(get_current_user)) -> User:
    if not user.is_admin:
        raise PermissionDeniedError("Administrator role required")
    return user


# ── Collection ────────────────────────────────────────────────────────────

@router.get("", response_model=List[UserResponse], responses=ADMIN_ONLY, summary="List users")
async def list_users(
    admin: User = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db_session),
):
    return await user_service.list_users(db)


@router.post(
    "",
    response_model=UserResponse,
    status_code=status.HTTP_201_CREATED,
    responses={**ADMIN_ONLY, 409: {"description": "Email already registered", "model": ErrorResponse}},
    summary="Create a user",
)
async def create_user(
    payload: UserCreate,
    admin: User = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db_session),
):
    return await user_service.register(db, payload)


@router.get("/roles", response_model=List[RoleResponse], responses=ADMIN_ONLY, summary="List roles")
async def list_roles(admin: User = Depends(get_current_admin)) -> List[RoleResponse]:
    return [RoleResponse(id=role_id, name=name) for role_id, name in sorted(ROLES.items())]


# ── Current User ──────────────────────────────────────────────────────────

@router.get("/me", response_model=UserResponse, summary="Get my profile")
async def get_me(user: User = Depends(get_current_user)):
    return user


@router.patch(
    "/me",
    response_model=UserResponse,
    responses={
        400: {"description": "Invalid field, or password without oldPassword", "model": ErrorResponse},
        409: {"description": "Email already registered", "model": ErrorResponse},
    },
    summary="Update my profile",
)
async def update_me(
    payload: UserUpdate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
):
    return await user_service.update_user(db, user, payload, require_old_password=True)


@router.delete("/me", status_code=status.HTTP_204_NO_CONTENT, summary="Delete my account")
async def delete_me(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> Response:
    await user_service.delete_user(db, user)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# ── Single User (admin) ───────────────────────────────────────────────────

@router.get(
    "/{user_id}",
    response_model=UserResponse,
    responses={**ADMIN_ONLY, **USER_NOT_FOUND},
    summary="Get a user",
)
async def get_user(
    user_id: int,
    admin: User = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db_session),
):
    return await user_service.get_user(db, user_id)


@router.api_route(
    "/{user_id}",
    methods=["PATCH", "PUT"],
    response_model=UserResponse,
    responses={**ADMIN_ONLY, **USER_NOT_FOUND},
    summary="Update a user",
)
async def update_user(
    user_id: int,
    payload: UserUpdate,
    admin: User = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db_session),
):
    target = await user_service.get_user(db, user_id)
    return await user_service.update_user(db, target, payload, require_old_password=False)


@router.delete(
    "/{user_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    responses={**ADMIN_ONLY, **USER_NOT_FOUND},
    summary="Delete a user",
)
async def delete_user(
    user_id: int,
    admin: User = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db_session),
) -> Response:
    target = await user_service.get_user(db, user_id)
    await user_service.delete_user(db, target)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# ── Roles ─────────────────────────────────────────────────────────────────

@router.put(
    "/{user_id}/role",
    response_model=UserRoleResponse,
    responses={**ADMIN_ONLY, **USER_NOT_FOUND},
    summary="Set a user's role",
)
async def set_role(
    user_id: int,
    payload: RoleUpdate,
    admin: User = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db_session),
) -> UserRoleResponse:
    user = await user_service.set_role(db, user_id, payload.role)
    return UserRoleResponse(id=user.id, role=user.role)


@router.delete(
    "/{user_id}/role",
    response_model=UserRoleResponse,
    responses={**ADMIN_ONLY, **USER_NOT_FOUND},
    summary="Reset a user's role to user",
)
async def reset_role(
    user_id: int,
    admin: User = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db_session),
) -> UserRoleResponse:
    user = await user_service.set_role(db, user_id, ROLE_USER)
    return UserRoleResponse(id=user.id, role=user.role)
