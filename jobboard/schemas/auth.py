"""Pydantic schemas for authentication API."""

import re
from datetime import datetime
from typing import Literal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator

from jobboard.services.credential_store import EMAIL_PATTERN, normalize_email

# At least one letter and one digit
_PASSWORD_PATTERN = re.compile(r"^(?=.*[A-Za-z])(?=.*\d).+$")

Role = Literal["job_seeker", "recruiter"]


def _validate_email(v: str) -> str:
    v = normalize_email(v)
    if not EMAIL_PATTERN.match(v):
        raise ValueError("Invalid email format")
    return v


def _validate_password_strength(v: str) -> str:
    if not _PASSWORD_PATTERN.match(v):
        raise ValueError("Password must include letters and numbers")
    return v


class RegisterRequest(BaseModel):
    """Request to create an account."""

    email: str = Field(..., max_length=320)
    password: str = Field(
        ...,
        min_length=8,
        max_length=128,
        description="Password (8-128 chars, letters and numbers)",
    )
    name: str = Field(..., min_length=2, max_length=120)
    role: Role

    @field_validator("email")
    @classmethod
    def validate_email(cls, v: str) -> str:
        return _validate_email(v)

    @field_validator("password")
    @classmethod
    def validate_password(cls, v: str) -> str:
        return _validate_password_strength(v)

    @field_validator("name")
    @classmethod
    def strip_name(cls, v: str) -> str:
        v = v.strip()
        if len(v) < 2:
            raise ValueError("Name must be at least 2 characters")
        return v


class LoginRequest(BaseModel):
    """Request for login."""

    email: str = Field(..., min_length=1, max_length=320)
    password: str = Field(..., min_length=1, max_length=128)


class TokenResponse(BaseModel):
    """Response with JWT tokens."""

    access_token: str
    refresh_token: str
    token_type: str = "bearer"
    expires_in: int = Field(description="Access token expiry in seconds")


class AccessTokenResponse(BaseModel):
    """Response from redeeming a refresh token."""

    access_token: str
    token_type: str = "bearer"
    expires_in: int = Field(description="Access token expiry in seconds")


class ForgotPasswordRequest(BaseModel):
    email: str = Field(..., max_length=320)

    @field_validator("email")
    @classmethod
    def validate_email(cls, v: str) -> str:
        return _validate_email(v)


class ResetPasswordRequest(BaseModel):
    token: str = Field(..., min_length=1, max_length=128)
    password: str = Field(..., min_length=8, max_length=128)

    @field_validator("password")
    @classmethod
    def validate_password(cls, v: str) -> str:
        return _validate_password_strength(v)


class ChangePasswordRequest(BaseModel):
    """Request for password change."""

    current_password: str = Field(..., min_length=1)
    new_password: str = Field(..., min_length=8, max_length=128)

    @field_validator("new_password")
    @classmethod
    def validate_new_password(cls, v: str) -> str:
        return _validate_password_strength(v)


class MessageResponse(BaseModel):
    """Generic message response."""

    message: str


class UserResponse(BaseModel):
    """Public profile. Never includes secret columns."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    email: str
    name: str
    role: Role
    created_at: datetime
