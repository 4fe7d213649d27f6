"""Pydantic schemas for API requests and responses."""

from jobboard.schemas.auth import (
    AccessTokenResponse,
    ChangePasswordRequest,
    ForgotPasswordRequest,
    LoginRequest,
    MessageResponse,
    RegisterRequest,
    ResetPasswordRequest,
    TokenResponse,
    UserResponse,
)
from jobboard.schemas.job import JobCreate, JobListResponse, JobResponse

__all__ = [
    "AccessTokenResponse",
    "ChangePasswordRequest",
    "ForgotPasswordRequest",
    "JobCreate",
    "JobListResponse",
    "JobResponse",
    "LoginRequest",
    "MessageResponse",
    "RegisterRequest",
    "ResetPasswordRequest",
    "TokenResponse",
    "UserResponse",
]
