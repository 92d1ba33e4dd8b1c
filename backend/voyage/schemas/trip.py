"""
Voyage Backend - Trip Service Schemas
======================================

Request/response models for trips, steps and share codes.
"""

from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

from voyage.schemas.common import UTCDateTime

StepKind = Literal["travel", "sleep", "eat", "drink", "enjoy"]


# ── Trips ─────────────────────────────────────────────────────────────────

class TripCreate(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    name: str = Field(min_length=1, max_length=200, examples=["Voyage en Italie"])


class TripUpdate(TripCreate):
    pass


class TripResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    owner_id: int
    imported_from: Optional[int] = None
    created_at: UTCDateTime
    updated_at: UTCDateTime


# ── Steps ─────────────────────────────────────────────────────────────────

class StepCreate(BaseModel):
    """
    Body of POST /trips/{id}/steps.

    Without `position` the step is appended; with it, the step is inserted
    there and the following steps shift down.
    """
    model_config = ConfigDict(str_strip_whitespace=True)

    kind: StepKind
    title: str = Field(min_length=1, max_length=200)
    reference_id: Optional[int] = Field(
        default=None, ge=1, description="Id of the booked record in the owning service"
    )
    starts_at: Optional[UTCDateTime] = None
    ends_at: Optional[UTCDateTime] = None
    notes: Optional[str] = Field(default=None, max_length=5000)
    position: Optional[int] = Field(default=None, ge=1)

    @model_validator(mode="after")
    def check_window(self) -> "StepCreate":
        if self.starts_at and self.ends_at and self.ends_at < self.starts_at:
            raise ValueError("ends_at must not be before starts_at")
        return self


class StepUpdate(BaseModel):
    """Body of PATCH /trips/{id}/steps/{stepId}; only sent fields change."""
    model_config = ConfigDict(str_strip_whitespace=True)

    kind: Optional[StepKind] = None
    title: Optional[str] = Field(default=None, min_length=1, max_length=200)
    reference_id: Optional[int] = Field(default=None, ge=1)
    starts_at: Optional[UTCDateTime] = None
    ends_at: Optional[UTCDateTime] = None
    notes: Optional[str] = Field(default=None, max_length=5000)
    position: Optional[int] = Field(default=None, ge=1)


class StepResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    trip_id: int
    position: int
    kind: StepKind
    reference_id: Optional[int] = None
    title: str
    starts_at: Optional[UTCDateTime] = None
    ends_at: Optional[UTCDateTime] = None
    notes: Optional[str] = None


class TripDetailResponse(TripResponse):
    steps: List[StepResponse] = Field(default_factory=list)


# ── Sharing ───────────────────────────────────────────────────────────────

class ShareResponse(BaseModel):
    """Result of POST /trips/share/{id}."""
    code: str = Field(description="Code to pass to POST /trips/import/{code}")
    trip_id: int = Field(description="Id of the frozen snapshot")
    source_trip_id: int
    expires_at: UTCDateTime
