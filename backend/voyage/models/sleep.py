"""
Voyage Backend - Sleep SQLAlchemy Model
========================================

What:  A place to sleep offered for a stay window [checkin, checkout].
Search matches a request when the window covers the requested stay and the
capacity covers the requested guests.
"""

from datetime import datetime

from sqlalchemy import DateTime, Float, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from voyage.database import Base, utcnow


class Sleep(Base):
    """A lodging offer."""

    __tablename__ = "sleeps"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    title: Mapped[str] = mapped_column(String(200), nullable=False)
    type: Mapped[str] = mapped_column(String(50), nullable=False, comment="Hotel, apartment, ...")
    photo_url: Mapped[str] = mapped_column(String(500), nullable=False)
    city: Mapped[str] = mapped_column(String(120), nullable=False, index=True)
    zip: Mapped[str] = mapped_column(String(20), nullable=False)
    country: Mapped[str] = mapped_column(String(80), nullable=False)
    nb_adults: Mapped[int] = mapped_column(Integer, nullable=False)
    nb_children: Mapped[int] = mapped_column(Integer, nullable=False)
    avis: Mapped[float] = mapped_column(Float, nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    service: Mapped[str] = mapped_column(String(200), nullable=False)
    checkin: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    checkout: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    price: Mapped[float] = mapped_column(Float, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )

    def __repr__(self) -> str:
        return f"<Sleep(id={self.id}, title='{self.title}', city='{self.city}')>"
