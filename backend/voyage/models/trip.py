"""
Voyage Backend - Trip SQLAlchemy Models
========================================

What:  ORM models owned by the trip service: trips, their ordered steps and
       share codes.

Trip lifecycle:
    1. Created by its owner (POST /trips)
    2. Steps added, edited, reordered and removed
    3. Shared: the trip and its steps are copied into a hidden snapshot
       (is_snapshot=True) and a TripShare row holds the random code
    4. Imported: another user copies the snapshot into a trip of their own
       (imported_from points to the source trip)

Snapshots never appear in trip listings; they only exist so that an import
sees the trip as it was when the code was issued.

Steps are queried explicitly by trip_id (no ORM relationship), so no lazy
loads happen under the async session.
"""

from datetime import datetime
from typing import Optional

from sqlalchemy import Boolean, DateTime, ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from voyage.database import Base, utcnow

# Booking families a step may point to; each matches the service owning the record.
STEP_KINDS = ("travel", "sleep", "eat", "drink", "enjoy")


class Trip(Base):
    """An itinerary owned by one user."""

    __tablename__ = "trips"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(200), nullable=False)

    # User ids come from token claims; the users table lives in another service
    owner_id: Mapped[int] = mapped_column(Integer, nullable=False)

    is_snapshot: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    imported_from: Mapped[Optional[int]] = mapped_column(Integer, nullable=True, default=None)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )

    __table_args__ = (
        Index("idx_trips_owner", "owner_id"),
    )

    def __repr__(self) -> str:
        return f"<Trip(id={self.id}, name='{self.name}', owner_id={self.owner_id})>"


class TripStep(Base):
    """
    One stop of a trip.

    Positions of a trip's steps are always the contiguous range 1..n;
    TripService renumbers on insert, move and delete.
    """

    __tablename__ = "trip_steps"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    trip_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("trips.id", ondelete="CASCADE"), nullable=False
    )
    position: Mapped[int] = mapped_column(Integer, nullable=False)

    kind: Mapped[str] = mapped_column(String(20), nullable=False)
    reference_id: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)

    title: Mapped[str] = mapped_column(String(200), nullable=False)
    starts_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    ends_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    __table_args__ = (
        Index("idx_trip_steps_trip_position", "trip_id", "position"),
    )

    def __repr__(self) -> str:
        return f"<TripStep(id={self.id}, trip_id={self.trip_id}, position={self.position})>"


class TripShare(Base):
    """A time-limited code that lets other users import a snapshot."""

    __tablename__ = "trip_shares"

    code: Mapped[str] = mapped_column(String(64), primary_key=True)
    snapshot_trip_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("trips.id", ondelete="CASCADE"), nullable=False
    )
    source_trip_id: Mapped[int] = mapped_column(Integer, nullable=False)
    created_by: Mapped[int] = mapped_column(Integer, nullable=False)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )
    expires_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    def __repr__(self) -> str:
        return f"<TripShare(code='{self.code}', snapshot_trip_id={self.snapshot_trip_id})>"
