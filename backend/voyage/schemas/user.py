"""
Voyage Backend - User Service Schemas
======================================

What:  Request/response models of the user service.
How:   JSON fields are camelCase (firstName, oldPassword, isAdmin); Python
       attributes stay snake_case. Both spellings are accepted on input.

Password rules are checked here so a bad password is a 400 before any
service code runs. Pairing rules (password needs oldPassword for self
updates) depend on who is calling and live in UserService.
"""

from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator
from pydantic.alias_generators import to_camel

from voyage.schemas.common import UTCDateTime
from voyage.security import check_password_policy

RoleName = Literal["user", "admin"]


class CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
        str_strip_whitespace=True,
    )


# ══════════════════════════════════════════════════════════════════════════
# Request Models
# ══════════════════════════════════════════════════════════════════════════


class UserRegister(CamelModel):
    """Body of POST /api/auth/register."""
    first_name: str = Field(min_length=1, max_length=100, examples=["Jane"])
    last_name: str = Field(min_length=1, max_length=100, examples=["Doe"])
    email: EmailStr = Field(examples=["jane.doe@mail.com"])
    password: str = Field(examples=["SecretP@ssword1337"])

    @field_validator("password")
    @classmethod
    def validate_password(cls, v: str) -> str:
        return check_password_policy(v)


class UserCreate(UserRegister):
    """Body of POST /api/users (admin); may set the role directly."""
    role: RoleName = "user"


class LoginRequest(CamelModel):
    """Body of POST /api/auth/login. Format is not checked; bad input is a 401."""
    email: str = Field(min_length=1, max_length=255)
    password: str = Field(min_length=1)


class UserUpdate(CamelModel):
    """
    Body of PATCH /api/users/me and PATCH|PUT /api/users/{userId}.

    Every field is optional; only the fields sent are changed.
    """
    first_name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    last_name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    email: Optional[EmailStr] = None
    password: Optional[str] = None
    old_password: Optional[str] = None

    @field_validator("password")
    @classmethod
    def validate_password(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return v
        return check_password_policy(v)


class RoleUpdate(BaseModel):
    """Body of PUT /api/users/{userId}/role."""
    role: RoleName


# ══════════════════════════════════════════════════════════════════════════
# Response Models
# ══════════════════════════════════════════════════════════════════════════


class UserResponse(CamelModel):
    id: int
    first_name: str
    last_name: str
    email: str
    role: RoleName
    is_admin: bool
    created_at: UTCDateTime


class TokenResponse(CamelModel):
    """Login result; the token is also sent in the Authorization header."""
    token: str
    token_type: str = "Bearer"
    expires_in: int = Field(description="Token lifetime in seconds")
    user: UserResponse


class RoleResponse(BaseModel):
    id: int
    name: str


class UserRoleResponse(BaseModel):
    id: int
    role: RoleName
