"""
Voyage Backend - Pydantic Request/Response Schemas
===================================================

API contracts, kept separate from the ORM models so the wire format can
differ from storage (camelCase users, no password hashes, computed fields).
"""
