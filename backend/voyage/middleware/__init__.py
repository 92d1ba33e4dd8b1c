"""
Voyage Backend - Middleware Package
====================================

Cross-cutting concerns applied to every request of every service.

Middleware Chain (outermost first):
    Request → [Request ID] → [Security Headers] → [Rate Limit] → [Logging]
            → [GZip] → [CORS] → Route Handler

    1. Request ID: correlation id for every response, 429 and 500 included
    2. Security headers: added to every response, errors included
    3. Rate Limit: abusive clients are rejected before any route work
    4. Logging: one access line per request with status and duration
"""
