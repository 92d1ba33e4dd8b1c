"""
Voyage Backend - User Service (Accounts and Authentication)
============================================================

What:  Registration, login, profile management and roles.
How:   Stateless service; every method receives the request's AsyncSession.
       Route handlers never touch the ORM directly.
Who:   Called by voyage.routes.auth and voyage.routes.users.

Emails are stored lower-cased so uniqueness is case-insensitive. Passwords
only ever exist here as bcrypt hashes.
"""

import logging
from typing import List, Optional, Tuple

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from voyage.config import settings
from voyage.database import utcnow
from voyage.exceptions import (
    AuthenticationError,
    ConflictError,
    DatabaseError,
    NotFoundError,
    ValidationError,
)
from voyage.models.user import User
from voyage.schemas.user import UserCreate, UserRegister, UserUpdate
from voyage.security import (
    ROLE_USER,
    TokenClaims,
    create_access_token,
    hash_password,
    verify_password,
)

logger = logging.getLogger(__name__)

# Same message for unknown email and wrong password
INVALID_CREDENTIALS = "Invalid email or password"


class UserService:
    """
    Business logic for user accounts.

    Error Handling Strategy:
        Rule violations raise the matching VoyageError (409 duplicate email,
        404 unknown id, 401 bad credentials). Driver failures are wrapped in
        DatabaseError so nothing internal reaches the client.
    """

    async def _find_by_email(self, db: AsyncSession, email: str) -> Optional[User]:
        result = await db.execute(select(User).where(User.email == email.strip().lower()))
        return result.scalar_one_or_none()

    async def _ensure_email_free(
        self, db: AsyncSession, email: str, exclude_id: Optional[int] = None
    ) -> None:
        existing = await self._find_by_email(db, email)
        if existing is not None and existing.id != exclude_id:
            raise ConflictError(
                message=f"Email '{email}' is already registered",
                context={"field": "email"},
            )

    async def _flush(self, db: AsyncSession, action: str) -> None:
        """Flushes pending changes, translating driver errors."""
        try:
            await db.flush()
        except IntegrityError:
            # Concurrent registration with the same email
            raise ConflictError(message="Email is already registered", context={"field": "email"})
        except SQLAlchemyError as e:
            logger.error("Database error while %s: %s", action, str(e), exc_info=True)
            raise DatabaseError(context={"action": action})

    # ── Registration & Login ──────────────────────────────────────────────

    async def register(self, db: AsyncSession, data: UserRegister) -> User:
        """
        Creates an account.

        UserCreate (admin endpoint) may carry a role; self-registration
        always gets the "user" role.

        Raises:
            ConflictError: email already registered (→ 409)
        """
        await self._ensure_email_free(db, data.email)

        role = data.role if isinstance(data, UserCreate) else ROLE_USER
        user = User(
            first_name=data.first_name,
            last_name=data.last_name,
            email=data.email.lower(),
            password_hash=hash_password(data.password),
            role=role,
        )
        db.add(user)
        await self._flush(db, "registering user")
        logger.info("User %d registered (role=%s)", user.id, user.role)
        return user

    async def authenticate(self, db: AsyncSession, email: str, password: str) -> Tuple[User, str]:
        """
        Checks credentials and issues an access token.

        Returns:
            (user, token)

        Raises:
            AuthenticationError: unknown email or wrong password (→ 401)
        """
        user = await self._find_by_email(db, email)
        if user is None or not verify_password(password, user.password_hash):
            logger.info("Failed login attempt for %s", email.strip().lower())
            raise AuthenticationError(INVALID_CREDENTIALS)

        token = create_access_token(user.id, user.role, user.email)
        logger.info("User %d logged in", user.id)
        return user, token

    @property
    def token_lifetime_seconds(self) -> int:
        return settings.jwt_expiration_minutes * 60

    # ── Lookups ───────────────────────────────────────────────────────────

    async def get_user(self, db: AsyncSession, user_id: int) -> User:
        user = await db.get(User, user_id)
        if user is None:
            raise NotFoundError(resource="user", resource_id=user_id)
        return user

    async def get_authenticated_user(self, db: AsyncSession, claims: TokenClaims) -> User:
        """
        Loads the account behind a valid token.

        A token that outlives its account is rejected as a 401, not a 404.
        """
        user = await db.get(User, claims.user_id)
        if user is None:
            raise AuthenticationError("User no longer exists")
        return user

    async def list_users(self, db: AsyncSession) -> List[User]:
        result = await db.execute(select(User).order_by(User.id))
        return list(result.scalars().all())

    # ── Updates ───────────────────────────────────────────────────────────

    async def update_user(
        self,
        db: AsyncSession,
        user: User,
        data: UserUpdate,
        require_old_password: bool = True,
    ) -> User:
        """
        Applies a partial update.

        Self-service updates (require_old_password=True) must send password
        and oldPassword together, and oldPassword must match. Administrators
        may set a password without it.

        Raises:
            ValidationError: password without oldPassword or vice versa (→ 400)
            AuthenticationError: oldPassword is wrong (→ 401)
            ConflictError: new email belongs to another account (→ 409)
        """
        changes = data.model_dump(exclude_unset=True)

        if require_old_password:
            has_new = changes.get("password") is not None
            has_old = changes.get("old_password") is not None
            if has_new != has_old:
                raise ValidationError(
                    "Both password and oldPassword are required to change the password",
                    field="oldPassword" if has_new else "password",
                )
            if has_new and not verify_password(changes["old_password"], user.password_hash):
                raise AuthenticationError("Old password is incorrect")

        if changes.get("email") is not None:
            await self._ensure_email_free(db, changes["email"], exclude_id=user.id)
            user.email = changes["email"].lower()
        if changes.get("first_name") is not None:
            user.first_name = changes["first_name"]
        if changes.get("last_name") is not None:
            user.last_name = changes["last_name"]
        if changes.get("password") is not None:
            user.password_hash = hash_password(changes["password"])

        user.updated_at = utcnow()
        await self._flush(db, "updating user")
        logger.info("User %d updated (%s)", user.id, ", ".join(sorted(changes)) or "no fields")
        return user

    async def set_role(self, db: AsyncSession, user_id: int, role: str) -> User:
        user = await self.get_user(db, user_id)
        if user.role != role:
            logger.info("User %d role changed: %s → %s", user.id, user.role, role)
        user.role = role
        user.updated_at = utcnow()
        await self._flush(db, "changing role")
        return user

    async def delete_user(self, db: AsyncSession, user: User) -> None:
        await db.delete(user)
        await self._flush(db, "deleting user")
        logger.info("User %d deleted", user.id)


# ── Singleton Instance ────────────────────────────────────────────────────
user_service = UserService()
