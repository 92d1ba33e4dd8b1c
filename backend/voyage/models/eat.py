"""Voyage Backend - Eat (restaurant) SQLAlchemy Model."""

from voyage.database import Base
from voyage.models.venue import VenueMixin


class Eat(VenueMixin, Base):
    """A restaurant offer."""

    __tablename__ = "eats"

    def __repr__(self) -> str:
        return f"<Eat(id={self.id}, title='{self.title}', city='{self.city}')>"
