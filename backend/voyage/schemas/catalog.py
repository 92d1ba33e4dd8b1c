"""
Voyage Backend - Catalog Schemas (sleep, eat, drink, enjoy)
============================================================

Create/response bodies and /list query parameters of the four catalog
services. Eat and drink share the venue shapes.
"""

import datetime as dt
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

from voyage.schemas.common import UTCDateTime


class CatalogModel(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)


class CatalogRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    created_at: UTCDateTime


# ── Sleep ─────────────────────────────────────────────────────────────────

class SleepCreate(CatalogModel):
    title: str = Field(min_length=1, max_length=200, examples=["Hotel Ibis"])
    type: str = Field(min_length=1, max_length=50, examples=["Hotel"])
    photo_url: str = Field(min_length=1, max_length=500)
    city: str = Field(min_length=1, max_length=120, examples=["Paris"])
    zip: str = Field(min_length=1, max_length=20, examples=["75001"])
    country: str = Field(min_length=1, max_length=80, examples=["France"])
    nb_adults: int = Field(ge=0)
    nb_children: int = Field(ge=0)
    avis: float = Field(ge=0, le=5)
    description: str
    service: str = Field(min_length=1, max_length=200)
    checkin: UTCDateTime
    checkout: UTCDateTime
    price: float = Field(ge=0)

    @model_validator(mode="after")
    def check_stay(self) -> "SleepCreate":
        if self.checkout <= self.checkin:
            raise ValueError("checkout must be after checkin")
        return self


class SleepResponse(SleepCreate, CatalogRead):
    pass


class SleepSearch(CatalogModel):
    """Query parameters of GET /sleep/list."""
    city: str = Field(min_length=1)
    nb_adults: int = Field(ge=0)
    nb_children: int = Field(ge=0)
    checkin: UTCDateTime
    checkout: UTCDateTime
    min_price: Optional[float] = Field(default=None, ge=0)
    max_price: Optional[float] = Field(default=None, ge=0)


# ── Eat / Drink ───────────────────────────────────────────────────────────

class VenueCreate(CatalogModel):
    title: str = Field(min_length=1, max_length=200)
    photo_url: str = Field(min_length=1, max_length=500)
    address: str = Field(min_length=1, max_length=300)
    city: str = Field(min_length=1, max_length=120)
    avis: float = Field(ge=0, le=5)
    nb_adults: int = Field(ge=0)
    nb_children: int = Field(ge=0)
    description: str
    date: dt.date


class VenueResponse(VenueCreate, CatalogRead):
    pass


class VenueSearch(CatalogModel):
    """Query parameters of GET /eat/list and GET /drink/list."""
    city: str = Field(min_length=1)
    nb_adults: int = Field(ge=0)
    nb_children: int = Field(ge=0)
    date: dt.date
    min_avis: Optional[float] = Field(default=None, ge=0, le=5)
    max_avis: Optional[float] = Field(default=None, ge=0, le=5)


# ── Enjoy ─────────────────────────────────────────────────────────────────

class EnjoyCreate(CatalogModel):
    title: str = Field(min_length=1, max_length=200)
    address: str = Field(min_length=1, max_length=300)
    city: str = Field(min_length=1, max_length=120)
    url: str = Field(min_length=1, max_length=500)
    photo_url: str = Field(min_length=1, max_length=500)
    date: UTCDateTime
    duration: str = Field(min_length=1, max_length=50, examples=["2h"])
    price: float = Field(ge=0)
    service: str = Field(min_length=1, max_length=200)
    description: str
    max_attendees: Optional[int] = Field(default=None, ge=1)


class EnjoyResponse(EnjoyCreate, CatalogRead):
    pass


class EnjoySearch(CatalogModel):
    """Query parameters of GET /enjoy/list."""
    city: str = Field(min_length=1)
    nb_adults: int = Field(ge=0)
    nb_children: int = Field(ge=0)
    date: dt.date
    min_price: Optional[float] = Field(default=None, ge=0)
    max_price: Optional[float] = Field(default=None, ge=0)
