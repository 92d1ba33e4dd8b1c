"""
Voyage Backend - ORM Models
============================

Importing this package registers every table on `Base.metadata`, which is
what Alembic autogenerate and `create_all_tables()` rely on.
"""

from voyage.models.drink import Drink
from voyage.models.eat import Eat
from voyage.models.enjoy import Enjoy
from voyage.models.sleep import Sleep
from voyage.models.travel import Travel
from voyage.models.trip import Trip, TripShare, TripStep
from voyage.models.user import User

__all__ = [
    "Drink",
    "Eat",
    "Enjoy",
    "Sleep",
    "Travel",
    "Trip",
    "TripShare",
    "TripStep",
    "User",
]
