"""Create voyage tables

Revision ID: 001
Revises: None
Create Date: 2026-10-19 00:00:00.000000+00:00

What:  Creates the tables of every service: users (user), trips, trip_steps,
       trip_shares (trip), travels (travel), sleeps, eats, drinks, enjoys
       (catalogs).
How:   Column definitions mirror voyage/models; timestamps are TIMESTAMP WITH
       TIME ZONE and are always written by the application in UTC.

Rollback: downgrade() drops every table (destructive).
"""

from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa

revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamp(name: str, nullable: bool = False) -> sa.Column:
    return sa.Column(name, sa.TIMESTAMP(timezone=True), nullable=nullable)


def _venue_columns() -> list:
    """Columns shared by eats and drinks."""
    return [
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("title", sa.String(200), nullable=False),
        sa.Column("photo_url", sa.String(500), nullable=False),
        sa.Column("address", sa.String(300), nullable=False),
        sa.Column("city", sa.String(120), nullable=False),
        sa.Column("avis", sa.Float(), nullable=False, comment="Rating"),
        sa.Column("nb_adults", sa.Integer(), nullable=False, comment="Adult seats"),
        sa.Column("nb_children", sa.Integer(), nullable=False, comment="Child seats"),
        sa.Column("description", sa.Text(), nullable=False),
        sa.Column("date", sa.Date(), nullable=False, comment="Day the offer is valid"),
        _timestamp("created_at"),
        sa.PrimaryKeyConstraint("id"),
    ]


def upgrade() -> None:
    # ── user service ──────────────────────────────────────────────────────
    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("first_name", sa.String(100), nullable=False),
        sa.Column("last_name", sa.String(100), nullable=False),
        sa.Column("email", sa.String(255), nullable=False, comment="Lower-cased login email, unique"),
        sa.Column("password_hash", sa.String(255), nullable=False, comment="bcrypt hash of the password"),
        sa.Column("role", sa.String(20), nullable=False, comment="Account role: user, admin"),
        _timestamp("created_at"),
        _timestamp("updated_at"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("uq_users_email", "users", ["email"], unique=True)

    # ── trip service ──────────────────────────────────────────────────────
    op.create_table(
        "trips",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("name", sa.String(200), nullable=False),
        sa.Column("owner_id", sa.Integer(), nullable=False),
        sa.Column("is_snapshot", sa.Boolean(), nullable=False),
        sa.Column("imported_from", sa.Integer(), nullable=True),
        _timestamp("created_at"),
        _timestamp("updated_at"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("idx_trips_owner", "trips", ["owner_id"])

    op.create_table(
        "trip_steps",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("trip_id", sa.Integer(), nullable=False),
        sa.Column("position", sa.Integer(), nullable=False),
        sa.Column("kind", sa.String(20), nullable=False),
        sa.Column("reference_id", sa.Integer(), nullable=True),
        sa.Column("title", sa.String(200), nullable=False),
        _timestamp("starts_at", nullable=True),
        _timestamp("ends_at", nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.ForeignKeyConstraint(["trip_id"], ["trips.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("idx_trip_steps_trip_position", "trip_steps", ["trip_id", "position"])

    op.create_table(
        "trip_shares",
        sa.Column("code", sa.String(64), nullable=False),
        sa.Column("snapshot_trip_id", sa.Integer(), nullable=False),
        sa.Column("source_trip_id", sa.Integer(), nullable=False),
        sa.Column("created_by", sa.Integer(), nullable=False),
        _timestamp("created_at"),
        _timestamp("expires_at"),
        sa.ForeignKeyConstraint(["snapshot_trip_id"], ["trips.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("code"),
    )

    # ── travel service ────────────────────────────────────────────────────
    op.create_table(
        "travels",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("from_city", sa.String(120), nullable=False),
        sa.Column("from_airport", sa.String(10), nullable=False),
        sa.Column("to_city", sa.String(120), nullable=False),
        sa.Column("to_airport", sa.String(10), nullable=False),
        _timestamp("departure"),
        _timestamp("arrival"),
        sa.Column("price", sa.Float(), nullable=True),
        sa.Column("avis", sa.Float(), nullable=False),
        sa.Column("travel_id", sa.String(64), nullable=False, comment="Offer id at the provider"),
        sa.Column("travel_url", sa.String(500), nullable=False),
        sa.Column("service", sa.String(64), nullable=False, comment="Provider name"),
        sa.Column("created_by", sa.Integer(), nullable=True),
        _timestamp("created_at"),
        _timestamp("verified_at", nullable=True),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        "uq_travels_travel_id_service", "travels", ["travel_id", "service"], unique=True
    )

    # ── catalog services ──────────────────────────────────────────────────
    op.create_table(
        "sleeps",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("title", sa.String(200), nullable=False),
        sa.Column("type", sa.String(50), nullable=False, comment="Hotel, apartment, ..."),
        sa.Column("photo_url", sa.String(500), nullable=False),
        sa.Column("city", sa.String(120), nullable=False),
        sa.Column("zip", sa.String(20), nullable=False),
        sa.Column("country", sa.String(80), nullable=False),
        sa.Column("nb_adults", sa.Integer(), nullable=False),
        sa.Column("nb_children", sa.Integer(), nullable=False),
        sa.Column("avis", sa.Float(), nullable=False),
        sa.Column("description", sa.Text(), nullable=False),
        sa.Column("service", sa.String(200), nullable=False),
        _timestamp("checkin"),
        _timestamp("checkout"),
        sa.Column("price", sa.Float(), nullable=False),
        _timestamp("created_at"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_sleeps_city", "sleeps", ["city"])

    op.create_table("eats", *_venue_columns())
    op.create_index("ix_eats_city", "eats", ["city"])

    op.create_table("drinks", *_venue_columns())
    op.create_index("ix_drinks_city", "drinks", ["city"])

    op.create_table(
        "enjoys",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("title", sa.String(200), nullable=False),
        sa.Column("address", sa.String(300), nullable=False),
        sa.Column("city", sa.String(120), nullable=False),
        sa.Column("url", sa.String(500), nullable=False),
        sa.Column("photo_url", sa.String(500), nullable=False),
        _timestamp("date"),
        sa.Column("duration", sa.String(50), nullable=False),
        sa.Column("price", sa.Float(), nullable=False),
        sa.Column("service", sa.String(200), nullable=False),
        sa.Column("description", sa.Text(), nullable=False),
        sa.Column("max_attendees", sa.Integer(), nullable=True),
        _timestamp("created_at"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_enjoys_city", "enjoys", ["city"])


def downgrade() -> None:
    for table, index in (
        ("enjoys", "ix_enjoys_city"),
        ("drinks", "ix_drinks_city"),
        ("eats", "ix_eats_city"),
        ("sleeps", "ix_sleeps_city"),
        ("travels", "uq_travels_travel_id_service"),
    ):
        op.drop_index(index, table_name=table)
        op.drop_table(table)
    op.drop_table("trip_shares")
    op.drop_index("idx_trip_steps_trip_position", table_name="trip_steps")
    op.drop_table("trip_steps")
    op.drop_index("idx_trips_owner", table_name="trips")
    op.drop_table("trips")
    op.drop_index("uq_users_email", table_name="users")
    op.drop_table("users")
