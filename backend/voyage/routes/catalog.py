"""
Voyage Backend - Catalog Routes (sleep, eat, drink, enjoy services)
====================================================================

The four catalog services expose the same five endpoints under their own
prefix; build_catalog_router() creates one router per service.

    GET  /{resource}/list          search (query parameters)
    GET  /{resource}               all records
    GET  /{resource}/verify/{id}   does the record still exist?
    GET  /{resource}/{id}          one record
    POST /{resource}               create (admin)
"""

import logging
from typing import Annotated, List, Type

from fastapi import APIRouter, Depends, Query, status
from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession

from voyage.database import get_db_session
from voyage.dependencies import require_admin
from voyage.schemas.catalog import (
    EnjoyCreate,
    EnjoyResponse,
    EnjoySearch,
    SleepCreate,
    SleepResponse,
    SleepSearch,
    VenueCreate,
    VenueResponse,
    VenueSearch,
)
from voyage.schemas.common import ErrorResponse, VerifyResponse
from voyage.security import TokenClaims
from voyage.services.catalog_service import (
    CatalogService,
    drink_service,
    eat_service,
    enjoy_service,
    sleep_service,
)

logger = logging.getLogger(__name__)

NOT_FOUND = {404: {"description": "Unknown record", "model": ErrorResponse}}


def build_catalog_router(
    prefix: str,
    tag: str,
    service: CatalogService,
    create_schema: Type[BaseModel],
    response_schema: Type[BaseModel],
    search_schema: Type[BaseModel],
) -> APIRouter:
    router = APIRouter(prefix=prefix, tags=[tag])
    resource = service.resource

    @router.get(
        "/list",
        response_model=List[response_schema],
        responses={400: {"description": "Invalid search", "model": ErrorResponse}},
        summary=f"Search {tag.lower()}",
    )
    async def search(
        query: Annotated[search_schema, Query()],
        db: AsyncSession = Depends(get_db_session),
    ):
        return await service.search(db, query)

    @router.get("", response_model=List[response_schema], summary=f"List every {resource}")
    async def list_all(db: AsyncSession = Depends(get_db_session)):
        return await service.list_all(db)

    @router.get(
        "/verify/{item_id}",
        response_model=VerifyResponse,
        responses=NOT_FOUND,
        summary=f"Check that a {resource} still exists",
    )
    async def verify(item_id: int, db: AsyncSession = Depends(get_db_session)):
        return await service.verify(db, item_id)

    @router.get(
        "/{item_id}",
        response_model=response_schema,
        responses=NOT_FOUND,
        summary=f"Get a {resource}",
    )
    async def get_one(item_id: int, db: AsyncSession = Depends(get_db_session)):
        return await service.get(db, item_id)

    @router.post(
        "",
        response_model=response_schema,
        status_code=status.HTTP_201_CREATED,
        responses={
            401: {"description": "Missing or invalid token", "model": ErrorResponse},
            403: {"description": "Administrator role required", "model": ErrorResponse},
        },
        summary=f"Create a {resource}",
    )
    async def create(
        payload: create_schema,
        claims: TokenClaims = Depends(require_admin),
        db: AsyncSession = Depends(get_db_session),
    ):
        return await service.create(db, payload)

    return router


sleep_router = build_catalog_router(
    "/sleep", "Sleep", sleep_service, SleepCreate, SleepResponse, SleepSearch
)
eat_router = build_catalog_router(
    "/eat", "Eat", eat_service, VenueCreate, VenueResponse, VenueSearch
)
drink_router = build_catalog_router(
    "/drink", "Drink", drink_service, VenueCreate, VenueResponse, VenueSearch
)
enjoy_router = build_catalog_router(
    "/enjoy", "Enjoy", enjoy_service, EnjoyCreate, EnjoyResponse, EnjoySearch
)
