"""Request/response schemas for authentication endpoints."""

from __future__ import annotations

import uuid
from datetime import datetime

from pydantic import Field, field_validator

from vidtube.responses import CamelModel


class UserResponse(CamelModel):
    """Public user profile. Never carries the password hash or token digest."""

    id: uuid.UUID
    username: str
    email: str
    full_name: str
    avatar_url: str
    cover_image_url: str | None = None
    created_at: datetime
    updated_at: datetime


class LoginRequest(CamelModel):
    """Login with username or email + password."""

    username: str | None = None
    email: str | None = None
    password: str = Field(..., min_length=1, max_length=128)

    @field_validator("username", "email")
    @classmethod
    def normalize_identifier(cls, v: str | None) -> str | None:
        """Lower-case and trim identifiers."""
        return v.strip().lower() if v else v


class RefreshRequest(CamelModel):
    """Refresh token, when not sent as a cookie."""

    refresh_token: str | None = None


class ChangePasswordRequest(CamelModel):
    old_password: str = Field(..., min_length=1, max_length=128)
    new_password: str = Field(..., min_length=1, max_length=128)


class TokenResponse(CamelModel):
    """Login/refresh result. Tokens are also set as http-only cookies."""

    access_token: str
    refresh_token: str
    token_type: str = "bearer"
    expires_in: int


class LoginResponse(TokenResponse):
    user: UserResponse
