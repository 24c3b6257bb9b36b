"""Identity Pydantic schemas.

Request models for registration, login and password change, and the
public user representation. password_hash never leaves the service layer.
"""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator


class UserOut(BaseModel):
    """Public user profile."""

    id: UUID
    name: str
    email: str
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class UserSummary(BaseModel):
    """Compact user reference embedded in messages, contacts and groups."""

    id: UUID
    name: str

    model_config = ConfigDict(from_attributes=True)


class AuthTokenOut(BaseModel):
    """Token issuance response. The token is shown once and never again."""

    token: str
    user: UserOut


def _normalize_email(value: str) -> str:
    value = value.strip().lower()
    local, sep, domain = value.partition("@")
    if not sep or not local or "." not in domain or " " in value:
        raise ValueError("must be a valid email address")
    return value


class RegisterRequest(BaseModel):
    """Request body for POST /register."""

    name: str = Field(..., min_length=1, max_length=255)
    email: str = Field(..., max_length=255)
    password: str = Field(..., min_length=1)
    device_name: str = Field(..., min_length=1, max_length=255)

    @field_validator("email")
    @classmethod
    def normalize_email(cls, value: str) -> str:
        return _normalize_email(value)


class LoginRequest(BaseModel):
    """Request body for POST /login."""

    email: str = Field(..., max_length=255)
    password: str = Field(..., min_length=1)
    device_name: str = Field(..., min_length=1, max_length=255)

    @field_validator("email")
    @classmethod
    def normalize_email(cls, value: str) -> str:
        return _normalize_email(value)


class ChangePasswordRequest(BaseModel):
    """Request body for POST /change-password."""

    current_password: str = Field(..., min_length=1)
    new_password: str = Field(..., min_length=1)
    new_password_confirmation: str = Field(..., min_length=1)
