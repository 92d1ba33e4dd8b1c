"""
Voyage Backend - User SQLAlchemy Model
=======================================

What:  ORM model for the `users` table owned by the user service.
Who:   Used by UserService for account CRUD and authentication.

Table notes:
    - email is stored lower-cased; the unique index therefore enforces
      case-insensitive uniqueness.
    - password_hash holds a bcrypt hash, never a plain password, and is never
      serialized into API responses.
    - role is one of voyage.security.ROLES ("user", "admin").
"""

from datetime import datetime

from sqlalchemy import DateTime, Index, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from voyage.database import Base, utcnow


class User(Base):
    """A platform account."""

    __tablename__ = "users"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    first_name: Mapped[str] = mapped_column(String(100), nullable=False)
    last_name: Mapped[str] = mapped_column(String(100), nullable=False)

    email: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        comment="Lower-cased login email, unique",
    )

    password_hash: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        comment="bcrypt hash of the password",
    )

    role: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default="user",
        comment="Account role: user, admin",
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
    )

    __table_args__ = (
        Index("uq_users_email", "email", unique=True),
    )

    @property
    def is_admin(self) -> bool:
        return self.role == "admin"

    def __repr__(self) -> str:
        return f"<User(id={self.id}, email='{self.email}', role='{self.role}')>"
