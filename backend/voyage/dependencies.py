"""
Voyage Backend - Authentication Dependencies
=============================================

FastAPI dependencies shared by every service for route protection.

    get_token_claims  → any valid bearer token (401 otherwise)
    require_admin     → valid token with role "admin" (403 otherwise)

Both work from the signed claims alone, so services other than the user
service authenticate without calling it.
"""

from typing import Optional

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from voyage.exceptions import AuthenticationError, PermissionDeniedError
from voyage.security import TokenClaims, decode_access_token

bearer_scheme = HTTPBearer(auto_error=False, description="JWT issued by POST /api/auth/login")


async def get_token_claims(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
) -> TokenClaims:
    """Returns the caller's claims from the `Authorization: Bearer` header."""
    if credentials is None or not credentials.credentials:
        raise AuthenticationError("Missing bearer token")
    return decode_access_token(credentials.credentials)


async def require_admin(claims: TokenClaims = Depends(get_token_claims)) -> TokenClaims:
    if not claims.is_admin:
        raise PermissionDeniedError("Administrator role required")
    return claims
