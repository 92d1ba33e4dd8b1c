"""
Voyage Backend - Catalog Services (sleep, eat, drink, enjoy)
=============================================================

What:  Storage, lookup, verification and search for the four catalog
       services.
How:   CatalogService holds the operations every catalog shares (list, get,
       verify, create); each subclass only adds its search filters and
       ordering.

Search rules:
    sleep        city, capacity, stay window covers [checkin, checkout], price
    eat / drink  city, capacity, exact date, rating
    enjoy        city, same UTC day, price, attendees within max_attendees
"""

import logging
from datetime import datetime, time, timedelta, timezone
from typing import Generic, List, Type, TypeVar

from pydantic import BaseModel
from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from voyage.exceptions import NotFoundError, ValidationError
from voyage.models import Drink, Eat, Enjoy, Sleep
from voyage.schemas.catalog import EnjoySearch, SleepSearch, VenueSearch
from voyage.schemas.common import VerifyResponse

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT")


def check_bounds(low, high, field: str) -> None:
    if low is not None and high is not None and low > high:
        raise ValidationError(f"min_{field} must not exceed max_{field}", field=f"min_{field}")


class CatalogService(Generic[ModelT]):
    """
    Shared catalog operations over one ORM model.

    Args:
        model:    the ORM class (Sleep, Eat, ...)
        resource: name used in messages and logs
    """

    def __init__(self, model: Type[ModelT], resource: str):
        self.model = model
        self.resource = resource

    async def list_all(self, db: AsyncSession) -> List[ModelT]:
        result = await db.execute(select(self.model).order_by(self.model.id))
        return list(result.scalars().all())

    async def get(self, db: AsyncSession, item_id: int) -> ModelT:
        item = await db.get(self.model, item_id)
        if item is None:
            raise NotFoundError(resource=self.resource, resource_id=item_id)
        return item

    async def verify(self, db: AsyncSession, item_id: int) -> VerifyResponse:
        """Confirms a previously fetched record still exists (404 otherwise)."""
        item = await self.get(db, item_id)
        return VerifyResponse(id=item.id, message=f"The {self.resource} still exists")

    async def create(self, db: AsyncSession, data: BaseModel) -> ModelT:
        item = self.model(**data.model_dump())
        db.add(item)
        await db.flush()
        logger.info("%s %d created", self.resource.capitalize(), item.id)
        return item

    def _city_filter(self, city: str):
        return func.lower(self.model.city) == city.strip().lower()

    async def _run(self, db: AsyncSession, query) -> List[ModelT]:
        result = await db.execute(query)
        items = list(result.scalars().all())
        logger.debug("%s search returned %d results", self.resource, len(items))
        return items


class SleepService(CatalogService[Sleep]):
    def __init__(self):
        super().__init__(Sleep, "sleep")

    async def search(self, db: AsyncSession, query: SleepSearch) -> List[Sleep]:
        """
        Raises:
            ValidationError: checkout not after checkin, or min_price > max_price
        """
        if query.checkout <= query.checkin:
            raise ValidationError("checkout must be after checkin", field="checkout")
        check_bounds(query.min_price, query.max_price, "price")

        stmt = select(Sleep).where(
            self._city_filter(query.city),
            Sleep.nb_adults >= query.nb_adults,
            Sleep.nb_children >= query.nb_children,
            Sleep.checkin <= query.checkin,
            Sleep.checkout >= query.checkout,
        )
        if query.min_price is not None:
            stmt = stmt.where(Sleep.price >= query.min_price)
        if query.max_price is not None:
            stmt = stmt.where(Sleep.price <= query.max_price)
        return await self._run(db, stmt.order_by(Sleep.price, Sleep.id))


class VenueService(CatalogService[ModelT]):
    """Restaurants and bars share one search."""

    async def search(self, db: AsyncSession, query: VenueSearch) -> List[ModelT]:
        check_bounds(query.min_avis, query.max_avis, "avis")
        model = self.model
        stmt = select(model).where(
            self._city_filter(query.city),
            model.nb_adults >= query.nb_adults,
            model.nb_children >= query.nb_children,
            model.date == query.date,
        )
        if query.min_avis is not None:
            stmt = stmt.where(model.avis >= query.min_avis)
        if query.max_avis is not None:
            stmt = stmt.where(model.avis <= query.max_avis)
        return await self._run(db, stmt.order_by(model.avis.desc(), model.id))


class EnjoyService(CatalogService[Enjoy]):
    def __init__(self):
        super().__init__(Enjoy, "event")

    async def search(self, db: AsyncSession, query: EnjoySearch) -> List[Enjoy]:
        check_bounds(query.min_price, query.max_price, "price")
        day_start = datetime.combine(query.date, time.min, tzinfo=timezone.utc)
        attendees = query.nb_adults + query.nb_children

        stmt = select(Enjoy).where(
            self._city_filter(query.city),
            Enjoy.date >= day_start,
            Enjoy.date < day_start + timedelta(days=1),
            or_(Enjoy.max_attendees.is_(None), Enjoy.max_attendees >= attendees),
        )
        if query.min_price is not None:
            stmt = stmt.where(Enjoy.price >= query.min_price)
        if query.max_price is not None:
            stmt = stmt.where(Enjoy.price <= query.max_price)
        return await self._run(db, stmt.order_by(Enjoy.price, Enjoy.id))


# ── Singleton Instances ───────────────────────────────────────────────────
sleep_service = SleepService()
eat_service = VenueService(Eat, "restaurant")
drink_service = VenueService(Drink, "bar")
enjoy_service = EnjoyService()
