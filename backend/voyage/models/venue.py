"""
Voyage Backend - Venue Columns
===============================

Columns shared by the eat (restaurants) and drink (bars) catalogs. Both
services expose the same record shape and the same search rules.
"""

import datetime as dt

from sqlalchemy import Date, DateTime, Float, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from voyage.database import utcnow


class VenueMixin:
    """A place with seating capacity that can be booked for a given day."""

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    title: Mapped[str] = mapped_column(String(200), nullable=False)
    photo_url: Mapped[str] = mapped_column(String(500), nullable=False)
    address: Mapped[str] = mapped_column(String(300), nullable=False)
    city: Mapped[str] = mapped_column(String(120), nullable=False, index=True)
    avis: Mapped[float] = mapped_column(Float, nullable=False, comment="Rating")
    nb_adults: Mapped[int] = mapped_column(Integer, nullable=False, comment="Adult seats")
    nb_children: Mapped[int] = mapped_column(Integer, nullable=False, comment="Child seats")
    description: Mapped[str] = mapped_column(Text, nullable=False)
    date: Mapped[dt.date] = mapped_column(Date, nullable=False, comment="Day the offer is valid")
    created_at: Mapped[dt.datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )
