"""Request/response schemas for auth and user endpoints."""

from datetime import datetime
from typing import Literal

from pydantic import EmailStr, Field, field_validator

from authapi.models.user import EMAIL_MAX_LEN, USERNAME_MAX_LEN, USERNAME_MIN_LEN, Role
from authapi.schemas.common import CamelModel


class RegisterRequest(CamelModel):
    """New account details; confirm_password must repeat password."""

    username: str = Field(
        ...,
        min_length=USERNAME_MIN_LEN,
        max_length=USERNAME_MAX_LEN,
        pattern=r"^[A-Za-z0-9_.-]+$",
        description="Username (letters, digits, '_', '.', '-')",
    )
    email: EmailStr = Field(..., description="Email address")
    password: str = Field(..., min_length=1, max_length=128, description="Password")
    confirm_password: str = Field(..., min_length=1, max_length=128)

    @field_validator("email")
    @classmethod
    def validate_email_length(cls, v: str) -> str:
        if len(v) > EMAIL_MAX_LEN:
            raise ValueError(f"Email must be at most {EMAIL_MAX_LEN} characters")
        return v


class LoginRequest(CamelModel):
    """Credentials for login. username may also be the account email."""

    username: str = Field(..., min_length=1, max_length=EMAIL_MAX_LEN, description="Username or email")
    password: str = Field(..., min_length=1, max_length=128, description="Password")


class ChangePasswordRequest(CamelModel):
    old_password: str = Field(..., min_length=1, max_length=128)
    new_password: str = Field(..., min_length=1, max_length=128)


class UserInfo(CamelModel):
    """Public view of a user returned with a token (no password hash)."""

    id: int
    username: str
    email: str
    role: Role


class AuthResponse(CamelModel):
    """Bearer token plus the user it was issued for."""

    token: str = Field(..., description="JWT access token")
    type: Literal["Bearer"] = Field(default="Bearer", description="Token type")
    user: UserInfo


class UserProfile(CamelModel):
    """Full profile of the authenticated user (no password hash)."""

    id: int
    username: str
    email: str
    role: Role
    created_at: datetime
    updated_at: datetime
    enabled: bool


class CurrentUser(UserProfile):
    """Authenticated identity attached to the request by the auth gate."""

    @property
    def roles(self) -> frozenset[Role]:
        return frozenset({self.role})


class UserStats(CamelModel):
    user_id: int
    username: str
    role: Role
    account_age: int = Field(..., description="Whole days since the account was created")
    is_enabled: bool
