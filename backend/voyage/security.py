"""
Voyage Backend - Passwords and Access Tokens
=============================================

What:  bcrypt password hashing, the password policy, and HS256 JWT issue/verify.
Who:   UserService issues tokens; voyage.dependencies verifies them in every
       service with the shared JWT_SECRET.

Token claims:
    sub    user id (string, per RFC 7519)
    role   "user" | "admin"
    email  login email at issue time
    iat    issued at
    exp    expiry (JWT_EXPIRATION_MINUTES after issue)
"""

import logging
import re
from dataclasses import dataclass
from datetime import timedelta
from typing import List, Optional

import bcrypt
import jwt

from voyage.config import settings
from voyage.database import utcnow
from voyage.exceptions import AuthenticationError

logger = logging.getLogger(__name__)

# Role catalogue served by GET /api/users/roles; ids are stable.
ROLES = {1: "user", 2: "admin"}
ROLE_USER = "user"
ROLE_ADMIN = "admin"

# bcrypt only looks at the first 72 bytes; longer passwords are rejected.
PASSWORD_MIN_LENGTH = 8
PASSWORD_MAX_BYTES = 72


# ── Password Policy ───────────────────────────────────────────────────────

def password_policy_errors(password: str) -> List[str]:
    """
    Returns every rule the password breaks (empty list when it is acceptable).

    Rules: 8+ characters, at most 72 UTF-8 bytes, at least one lowercase
    letter, one uppercase letter, one digit and one special character.
    """
    errors = []
    if len(password) < PASSWORD_MIN_LENGTH:
        errors.append(f"at least {PASSWORD_MIN_LENGTH} characters")
    if len(password.encode("utf-8")) > PASSWORD_MAX_BYTES:
        errors.append(f"at most {PASSWORD_MAX_BYTES} bytes")
    if not re.search(r"[a-z]", password):
        errors.append("a lowercase letter")
    if not re.search(r"[A-Z]", password):
        errors.append("an uppercase letter")
    if not re.search(r"\d", password):
        errors.append("a digit")
    if not re.search(r"[^A-Za-z0-9]", password):
        errors.append("a special character")
    return errors


def check_password_policy(password: str) -> str:
    """Pydantic-friendly validator: raises ValueError naming the missing rules."""
    errors = password_policy_errors(password)
    if errors:
        raise ValueError("Password must contain " + ", ".join(errors))
    return password


# ── Hashing ───────────────────────────────────────────────────────────────

def hash_password(password: str) -> str:
    return bcrypt.hashpw(
        password.encode("utf-8"), bcrypt.gensalt(rounds=settings.bcrypt_rounds)
    ).decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    try:
        return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))
    except ValueError:
        # Malformed hash or a password bcrypt refuses (over 72 bytes)
        logger.warning("Password verification failed on malformed input")
        return False


# ── Tokens ────────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class TokenClaims:
    """The authenticated caller as seen by any service."""

    user_id: int
    role: str
    email: Optional[str] = None

    @property
    def is_admin(self) -> bool:
        return self.role == ROLE_ADMIN


def create_access_token(user_id: int, role: str, email: Optional[str] = None) -> str:
    now = utcnow()
    payload = {
        "sub": str(user_id),
        "role": role,
        "iat": now,
        "exp": now + timedelta(minutes=settings.jwt_expiration_minutes),
    }
    if email:
        payload["email"] = email
    return jwt.encode(payload, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def decode_access_token(token: str) -> TokenClaims:
    """
    Verifies signature and expiry and returns the claims.

    Raises:
        AuthenticationError: expired, tampered, or missing required claims
    """
    try:
        payload = jwt.decode(
            token,
            settings.jwt_secret,
            algorithms=[settings.jwt_algorithm],
            options={"require": ["exp", "sub"]},
        )
    except jwt.ExpiredSignatureError:
        raise AuthenticationError("Token has expired")
    except jwt.InvalidTokenError:
        raise AuthenticationError("Invalid token")

    role = payload.get("role")
    try:
        user_id = int(payload["sub"])
    except (TypeError, ValueError):
        raise AuthenticationError("Invalid token payload")
    if role not in ROLES.values():
        raise AuthenticationError("Invalid token payload")

    return TokenClaims(user_id=user_id, role=role, email=payload.get("email"))
