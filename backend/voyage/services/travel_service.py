"""
Voyage Backend - Travel Service (Search Aggregation and Bookings)
==================================================================

What:  Aggregated transport search over every provider, booking storage and
       booking verification.
How:   Provider calls go through ProviderClient (retries + breakers);
       bookings live in the travels table.
Who:   Called by voyage.routes.travel.

Verification (PUT /verify/{id}):
    ┌──────────┐    ┌─────────────────────┐    ┌──────────────────────────┐
    │ Booking  │───▶│ GET provider offer  │───▶│ 404 → NotFoundError      │
    │ (DB)     │    │ (travel_id)         │    │ same → unchanged (200)   │
    └──────────┘    └─────────────────────┘    │ diff → write back (201)  │
                                               └──────────────────────────┘
"""

import asyncio
import logging
from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from voyage.database import as_utc, utcnow
from voyage.exceptions import ConflictError, NotFoundError, ValidationError, VoyageError
from voyage.models.travel import PROVIDER_FIELDS, Travel
from voyage.schemas.travel import TravelCreate, TravelFind, TravelSearch
from voyage.security import TokenClaims
from voyage.services.provider_client import ProviderClient, provider_client

logger = logging.getLogger(__name__)


def _check_bounds(low: Optional[float], high: Optional[float], field: str) -> None:
    if low is not None and high is not None and low > high:
        raise ValidationError(f"min_{field} must not exceed max_{field}", field=f"min_{field}")


def _within(value: Optional[float], low: Optional[float], high: Optional[float]) -> bool:
    if value is None:
        return low is None and high is None
    if low is not None and value < low:
        return False
    if high is not None and value > high:
        return False
    return True


def _same(stored: Any, current: Any) -> bool:
    if isinstance(stored, datetime) and isinstance(current, datetime):
        return as_utc(stored) == as_utc(current)
    return stored == current


class TravelService:
    """
    Business logic of the travel service.

    Args:
        client: provider client; the module singleton unless a test injects one
    """

    def __init__(self, client: Optional[ProviderClient] = None):
        self.client = client or provider_client

    # ── Search ────────────────────────────────────────────────────────────

    async def search(self, query: TravelSearch) -> List[TravelFind]:
        """
        Queries every provider concurrently and merges the offers.

        A provider that fails (after its retries) or whose breaker is open is
        logged and left out; the others still answer.

        Returns:
            Offers within the price/rating bounds, cheapest first, then by
            departure time.

        Raises:
            ValidationError: a min bound exceeds its max bound (→ 400)
        """
        _check_bounds(query.min_price, query.max_price, "price")
        _check_bounds(query.min_avis, query.max_avis, "avis")

        names = self.client.names
        if not names:
            logger.warning("Travel search with no provider configured")
            return []

        params = query.provider_params()
        results = await asyncio.gather(
            *(self.client.search(name, params) for name in names),
            return_exceptions=True,
        )

        offers: List[TravelFind] = []
        for name, result in zip(names, results):
            if isinstance(result, VoyageError):
                logger.warning("Skipping provider %s: %s", name, result.message)
                continue
            if isinstance(result, BaseException):
                raise result
            offers.extend(result)

        matching = [
            offer
            for offer in offers
            if _within(offer.price, query.min_price, query.max_price)
            and _within(offer.avis, query.min_avis, query.max_avis)
        ]
        matching.sort(key=lambda offer: (offer.price, offer.departure))
        logger.info(
            "Travel search %s → %s: %d offers from %d providers (%d after filters)",
            query.from_city,
            query.to_city,
            len(offers),
            len(names),
            len(matching),
        )
        return matching

    # ── Bookings ──────────────────────────────────────────────────────────

    async def create_travel(
        self, db: AsyncSession, data: TravelCreate, claims: TokenClaims
    ) -> Travel:
        """
        Stores a booking.

        Raises:
            ConflictError: (travel_id, service) is already stored (→ 409)
        """
        service = data.service.upper()
        existing = await db.execute(
            select(Travel.id).where(Travel.travel_id == data.travel_id, Travel.service == service)
        )
        if existing.scalar_one_or_none() is not None:
            raise ConflictError(
                message=f"Travel '{data.travel_id}' from {service} is already booked",
                context={"travel_id": data.travel_id, "service": service},
            )

        values = data.model_dump()
        values["service"] = service
        travel = Travel(**values, created_by=claims.user_id)
        db.add(travel)
        try:
            await db.flush()
        except IntegrityError:
            raise ConflictError(message=f"Travel '{data.travel_id}' from {service} is already booked")
        logger.info("Travel %d stored (%s %s)", travel.id, service, data.travel_id)
        return travel

    async def list_travels(self, db: AsyncSession) -> List[Travel]:
        result = await db.execute(select(Travel).order_by(Travel.id))
        return list(result.scalars().all())

    async def get_travel(self, db: AsyncSession, travel_id: int) -> Travel:
        travel = await db.get(Travel, travel_id)
        if travel is None:
            raise NotFoundError(resource="travel", resource_id=travel_id)
        return travel

    async def verify_travel(self, db: AsyncSession, travel_id: int) -> Tuple[Travel, bool]:
        """
        Reconciles a booking with its provider.

        Returns:
            (booking, modified) where modified tells whether provider data
            differed and was written back.

        Raises:
            NotFoundError: unknown booking, or the provider no longer has the offer
            UpstreamServiceError / CircuitBreakerOpenError: provider unavailable
        """
        travel = await self.get_travel(db, travel_id)
        offer = await self.client.get_offer(travel.service, travel.travel_id)
        if offer is None:
            logger.info("Travel %d no longer exists at %s", travel.id, travel.service)
            raise NotFoundError(resource="travel offer", resource_id=travel.travel_id)

        changes: Dict[str, Any] = {}
        for field in PROVIDER_FIELDS:
            current = getattr(offer, field)
            if not _same(getattr(travel, field), current):
                changes[field] = current

        for field, value in changes.items():
            setattr(travel, field, value)
        travel.verified_at = utcnow()
        await db.flush()

        if changes:
            logger.info("Travel %d updated from provider: %s", travel.id, ", ".join(sorted(changes)))
        return travel, bool(changes)


# ── Singleton Instance ────────────────────────────────────────────────────
travel_service = TravelService()
