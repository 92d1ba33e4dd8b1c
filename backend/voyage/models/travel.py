"""
Voyage Backend - Travel SQLAlchemy Model
=========================================

What:  A transport booking stored by the travel service after the user picked
       an offer from a provider search.

The pair (travel_id, service) identifies the offer at its provider and is
unique; PUT /verify/{id} uses it to ask the provider for the current data.
"""

from datetime import datetime
from typing import Optional

from sqlalchemy import DateTime, Float, Index, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from voyage.database import Base, utcnow

# Fields a provider may change after booking; compared by verification.
PROVIDER_FIELDS = (
    "from_city",
    "from_airport",
    "to_city",
    "to_airport",
    "departure",
    "arrival",
    "price",
    "avis",
    "travel_url",
)


class Travel(Base):
    """A stored transport booking."""

    __tablename__ = "travels"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    from_city: Mapped[str] = mapped_column(String(120), nullable=False)
    from_airport: Mapped[str] = mapped_column(String(10), nullable=False)
    to_city: Mapped[str] = mapped_column(String(120), nullable=False)
    to_airport: Mapped[str] = mapped_column(String(10), nullable=False)

    departure: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    arrival: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    price: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    avis: Mapped[float] = mapped_column(Float, nullable=False)

    travel_id: Mapped[str] = mapped_column(String(64), nullable=False, comment="Offer id at the provider")
    travel_url: Mapped[str] = mapped_column(String(500), nullable=False)
    service: Mapped[str] = mapped_column(String(64), nullable=False, comment="Provider name")

    created_by: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )
    verified_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)

    __table_args__ = (
        Index("uq_travels_travel_id_service", "travel_id", "service", unique=True),
    )

    def __repr__(self) -> str:
        return f"<Travel(id={self.id}, service='{self.service}', travel_id='{self.travel_id}')>"
