"""
Voyage Backend - Application Package
=====================================

What: The `voyage` package holds every travel-planning service (user, trip,
      travel, sleep, eat, drink, enjoy) plus the core they share.
Who:  Imported by uvicorn (`voyage.main:app`), the `python -m voyage` runner,
      Alembic and pytest.

Layering:

    ┌─────────────────────────────────────┐
    │           Routes (API Layer)        │  ← HTTP concerns only
    ├─────────────────────────────────────┤
    │         Services (Business Logic)   │  ← rules, orchestration
    ├─────────────────────────────────────┤
    │       Models & Schemas (Data)       │  ← SQLAlchemy ORM + Pydantic
    ├─────────────────────────────────────┤
    │        Database (Persistence)       │  ← async SQLAlchemy sessions
    └─────────────────────────────────────┘

Each service is a FastAPI application assembled from a subset of the routers
by `voyage.main.create_app(service)`.
"""

__version__ = "1.0.0"
