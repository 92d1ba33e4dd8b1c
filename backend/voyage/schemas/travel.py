"""
Voyage Backend - Travel Service Schemas
========================================

What:  Search parameters, provider offers and stored bookings.

    TravelSearch  → query string of GET /travel/list (forwarded to providers)
    TravelFind    → one offer as returned by a provider search
    TravelCreate  → body of POST /travel (the offer the user picked)
    TravelResponse→ a stored booking
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from voyage.schemas.common import UTCDateTime


class TravelSearch(BaseModel):
    """Query parameters of GET /travel/list."""
    model_config = ConfigDict(str_strip_whitespace=True)

    from_city: str = Field(min_length=1, max_length=120, examples=["Nantes"])
    to_city: str = Field(min_length=1, max_length=120, examples=["Paris"])
    departure: UTCDateTime = Field(examples=["2020-01-01T12:00:00Z"])
    arrival: UTCDateTime = Field(examples=["2020-01-01T15:00:00Z"])
    nb_adults: int = Field(ge=0, le=50)
    nb_children: int = Field(ge=0, le=50)

    min_avis: Optional[float] = Field(default=None, ge=0, le=5)
    max_avis: Optional[float] = Field(default=None, ge=0, le=5)
    min_price: Optional[float] = Field(default=None, ge=0)
    max_price: Optional[float] = Field(default=None, ge=0)

    def provider_params(self) -> dict:
        """The subset of the search a provider understands."""
        return {
            "from_city": self.from_city,
            "to_city": self.to_city,
            "departure": self.departure.isoformat(),
            "arrival": self.arrival.isoformat(),
            "nb_adults": self.nb_adults,
            "nb_children": self.nb_children,
        }


class TravelBase(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    from_city: str = Field(min_length=1, max_length=120, examples=["Nantes"])
    from_airport: str = Field(min_length=1, max_length=10, examples=["NTE"])
    to_city: str = Field(min_length=1, max_length=120, examples=["Paris"])
    to_airport: str = Field(min_length=1, max_length=10, examples=["CDG"])
    departure: UTCDateTime
    arrival: UTCDateTime
    avis: float = Field(ge=0, le=5, examples=[4.5])
    travel_id: str = Field(min_length=1, max_length=64, examples=["AF1234"])
    travel_url: str = Field(min_length=1, max_length=500)
    service: str = Field(min_length=1, max_length=64, examples=["AIRFRANCE"])


class TravelFind(TravelBase):
    """
    An offer from a provider.

    Providers may leave out `service`; the client fills in the provider name.
    """
    price: float = Field(ge=0)
    nb_adults: int = Field(default=1, ge=0)
    nb_children: int = Field(default=0, ge=0)
    cabin: str = Field(default="Economy", max_length=50)


class TravelCreate(TravelBase):
    price: Optional[float] = Field(default=None, ge=0)


class TravelResponse(TravelCreate):
    model_config = ConfigDict(from_attributes=True)

    id: int
    created_by: Optional[int] = None
    created_at: UTCDateTime
    verified_at: Optional[UTCDateTime] = None
