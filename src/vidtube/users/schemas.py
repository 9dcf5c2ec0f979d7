"""Request schemas for account management."""

from __future__ import annotations

from pydantic import EmailStr, Field, field_validator

from vidtube.responses import CamelModel


class UpdateAccountRequest(CamelModel):
    """Both fields are required, matching the account form."""

    full_name: str = Field(..., min_length=1, max_length=128)
    email: EmailStr

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v: str) -> str:
        """Normalize email to lowercase."""
        return v.lower().strip()
