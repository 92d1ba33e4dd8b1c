"""Voyage Backend - Drink (bar) SQLAlchemy Model."""

from voyage.database import Base
from voyage.models.venue import VenueMixin


class Drink(VenueMixin, Base):
    """A bar offer."""

    __tablename__ = "drinks"

    def __repr__(self) -> str:
        return f"<Drink(id={self.id}, title='{self.title}', city='{self.city}')>"
