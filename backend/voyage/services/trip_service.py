"""
Voyage Backend - Trip Service (Itineraries, Steps, Sharing)
============================================================

What:  Trip CRUD, ordered step management, copy-on-share and import.
How:   Stateless service receiving the request's AsyncSession. Ownership
       comes from token claims; the trip service never calls the user
       service.

Step ordering:
    The steps of a trip always hold positions 1..n without gaps. Every
    insert, move or delete loads the trip's steps in order, edits the Python
    list and writes the positions back.

Sharing flow:
    POST /trips/share/{id}
        → copy trip + steps into a hidden snapshot (is_snapshot=True)
        → store TripShare(code, snapshot, expires_at = now + TTL)
    POST /trips/import/{code}
        → unknown code: 404, expired: 410
        → copy the snapshot into a new trip owned by the caller
    Edits made to the source after sharing never reach the snapshot.
"""

import logging
import secrets
from datetime import timedelta
from typing import List, Optional

from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from voyage.config import settings
from voyage.database import as_utc, utcnow
from voyage.exceptions import (
    ConflictError,
    NotFoundError,
    PermissionDeniedError,
    ShareCodeExpiredError,
    ValidationError,
)
from voyage.models.trip import Trip, TripShare, TripStep
from voyage.schemas.trip import StepCreate, StepUpdate
from voyage.security import TokenClaims

logger = logging.getLogger(__name__)

# Columns copied when a trip is duplicated (share and import)
STEP_COPY_FIELDS = ("position", "kind", "reference_id", "title", "starts_at", "ends_at", "notes")


class TripService:
    """Business logic for trips and their steps."""

    # ── Trips ─────────────────────────────────────────────────────────────

    async def list_trips(self, db: AsyncSession, owner_id: Optional[int] = None) -> List[Trip]:
        """All visible trips, or only those of one owner. Snapshots are never listed."""
        query = select(Trip).where(Trip.is_snapshot.is_(False))
        if owner_id is not None:
            query = query.where(Trip.owner_id == owner_id)
        result = await db.execute(query.order_by(Trip.id))
        return list(result.scalars().all())

    async def create_trip(self, db: AsyncSession, owner_id: int, name: str) -> Trip:
        trip = Trip(name=name, owner_id=owner_id)
        db.add(trip)
        await db.flush()
        logger.info("Trip %d created by user %d", trip.id, owner_id)
        return trip

    async def get_trip(self, db: AsyncSession, trip_id: int) -> Trip:
        trip = await db.get(Trip, trip_id)
        if trip is None or trip.is_snapshot:
            raise NotFoundError(resource="trip", resource_id=trip_id)
        return trip

    async def get_readable_trip(self, db: AsyncSession, trip_id: int, claims: TokenClaims) -> Trip:
        """Trip the caller may read or delete: owner or administrator."""
        trip = await self.get_trip(db, trip_id)
        if trip.owner_id != claims.user_id and not claims.is_admin:
            raise PermissionDeniedError("This trip belongs to another user")
        return trip

    async def get_owned_trip(self, db: AsyncSession, trip_id: int, claims: TokenClaims) -> Trip:
        """Trip the caller may modify: owner only."""
        trip = await self.get_trip(db, trip_id)
        if trip.owner_id != claims.user_id:
            raise PermissionDeniedError("Only the owner can modify this trip")
        return trip

    async def rename_trip(self, db: AsyncSession, trip: Trip, name: str) -> Trip:
        """
        Raises:
            ConflictError: the owner already has another trip with that name
        """
        result = await db.execute(
            select(func.count(Trip.id)).where(
                Trip.owner_id == trip.owner_id,
                Trip.name == name,
                Trip.id != trip.id,
                Trip.is_snapshot.is_(False),
            )
        )
        if result.scalar():
            raise ConflictError(
                message=f"You already have a trip named '{name}'",
                context={"field": "name"},
            )
        trip.name = name
        trip.updated_at = utcnow()
        await db.flush()
        return trip

    async def delete_trip(self, db: AsyncSession, trip: Trip) -> None:
        # Explicit step delete: SQLite does not enforce ON DELETE CASCADE by default
        await db.execute(delete(TripStep).where(TripStep.trip_id == trip.id))
        await db.delete(trip)
        await db.flush()
        logger.info("Trip %d deleted", trip.id)

    # ── Steps ─────────────────────────────────────────────────────────────

    async def list_steps(self, db: AsyncSession, trip_id: int) -> List[TripStep]:
        result = await db.execute(
            select(TripStep)
            .where(TripStep.trip_id == trip_id)
            .order_by(TripStep.position, TripStep.id)
        )
        return list(result.scalars().all())

    async def get_step(self, db: AsyncSession, trip: Trip, step_id: int) -> TripStep:
        step = await db.get(TripStep, step_id)
        if step is None or step.trip_id != trip.id:
            raise NotFoundError(resource="step", resource_id=step_id)
        return step

    @staticmethod
    def _renumber(steps: List[TripStep]) -> None:
        for index, step in enumerate(steps, start=1):
            step.position = index

    @staticmethod
    def _clamp(position: Optional[int], upper: int) -> int:
        """Target index (0-based) for a 1-based position; None or past the end appends."""
        if position is None or position > upper:
            return upper
        return position - 1

    async def add_step(self, db: AsyncSession, trip: Trip, data: StepCreate) -> TripStep:
        steps = await self.list_steps(db, trip.id)
        step = TripStep(
            trip_id=trip.id,
            position=0,
            kind=data.kind,
            reference_id=data.reference_id,
            title=data.title,
            starts_at=data.starts_at,
            ends_at=data.ends_at,
            notes=data.notes,
        )
        steps.insert(self._clamp(data.position, len(steps)), step)
        self._renumber(steps)
        db.add(step)
        trip.updated_at = utcnow()
        await db.flush()
        logger.info("Step %d added to trip %d at position %d", step.id, trip.id, step.position)
        return step

    async def update_step(
        self, db: AsyncSession, trip: Trip, step_id: int, data: StepUpdate
    ) -> TripStep:
        """
        Applies a partial update; a new `position` moves the step.

        Raises:
            ValidationError: the resulting ends_at precedes starts_at
        """
        step = await self.get_step(db, trip, step_id)
        changes = data.model_dump(exclude_unset=True)
        position = changes.pop("position", None)

        for field in ("kind", "title"):
            if changes.get(field) is not None:
                setattr(step, field, changes[field])
        for field in ("reference_id", "starts_at", "ends_at", "notes"):
            if field in changes:
                setattr(step, field, changes[field])

        starts_at, ends_at = as_utc(step.starts_at), as_utc(step.ends_at)
        if starts_at and ends_at and ends_at < starts_at:
            raise ValidationError("ends_at must not be before starts_at", field="ends_at")

        if position is not None and position != step.position:
            steps = [s for s in await self.list_steps(db, trip.id) if s.id != step.id]
            steps.insert(self._clamp(position, len(steps)), step)
            self._renumber(steps)

        trip.updated_at = utcnow()
        await db.flush()
        return step

    async def delete_step(self, db: AsyncSession, trip: Trip, step_id: int) -> None:
        step = await self.get_step(db, trip, step_id)
        remaining = [s for s in await self.list_steps(db, trip.id) if s.id != step.id]
        await db.delete(step)
        self._renumber(remaining)
        trip.updated_at = utcnow()
        await db.flush()

    # ── Sharing ───────────────────────────────────────────────────────────

    async def _copy_trip(
        self,
        db: AsyncSession,
        source: Trip,
        owner_id: int,
        is_snapshot: bool,
        imported_from: Optional[int],
    ) -> Trip:
        """Duplicates a trip and its steps (new ids, same order)."""
        copy = Trip(
            name=source.name,
            owner_id=owner_id,
            is_snapshot=is_snapshot,
            imported_from=imported_from,
        )
        db.add(copy)
        await db.flush()

        for step in await self.list_steps(db, source.id):
            db.add(TripStep(trip_id=copy.id, **{f: getattr(step, f) for f in STEP_COPY_FIELDS}))
        await db.flush()
        return copy

    async def share_trip(self, db: AsyncSession, trip: Trip, claims: TokenClaims) -> TripShare:
        """Freezes the trip into a snapshot and issues a time-limited share code."""
        snapshot = await self._copy_trip(
            db, trip, owner_id=trip.owner_id, is_snapshot=True, imported_from=trip.id
        )
        now = utcnow()
        share = TripShare(
            code=secrets.token_urlsafe(16),
            snapshot_trip_id=snapshot.id,
            source_trip_id=trip.id,
            created_by=claims.user_id,
            created_at=now,
            expires_at=now + timedelta(hours=settings.share_code_ttl_hours),
        )
        db.add(share)
        await db.flush()
        logger.info(
            "Trip %d shared as snapshot %d (expires %s)",
            trip.id,
            snapshot.id,
            share.expires_at.isoformat(),
        )
        return share

    async def import_trip(self, db: AsyncSession, code: str, claims: TokenClaims) -> Trip:
        """
        Copies a shared snapshot into a new trip owned by the caller.

        Raises:
            NotFoundError: unknown code, or its snapshot is gone (→ 404)
            ShareCodeExpiredError: the code's window has passed (→ 410)
        """
        share = await db.get(TripShare, code)
        if share is None:
            raise NotFoundError(resource="share code")

        expires_at = as_utc(share.expires_at)
        if expires_at <= utcnow():
            raise ShareCodeExpiredError(expired_at=expires_at)

        snapshot = await db.get(Trip, share.snapshot_trip_id)
        if snapshot is None:
            raise NotFoundError(resource="share code")

        trip = await self._copy_trip(
            db,
            snapshot,
            owner_id=claims.user_id,
            is_snapshot=False,
            imported_from=share.source_trip_id,
        )
        logger.info("User %d imported trip %d as %d", claims.user_id, share.source_trip_id, trip.id)
        return trip


# ── Singleton Instance ────────────────────────────────────────────────────
trip_service = TripService()
