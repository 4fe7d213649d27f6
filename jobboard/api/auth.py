"""Authentication API endpoints."""

import logging

from fastapi import APIRouter, Depends, HTTPException, Request, status

from jobboard.api.dependencies import get_auth_service, get_identity
from jobboard.core.request_utils import get_bearer_token, get_client_ip
from jobboard.middleware.auth_gate import Identity
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
from jobboard.services.auth import AuthService
from jobboard.services.errors import (
    DuplicateEmailError,
    InvalidCredentialsError,
    NotificationError,
    ResetTokenError,
    TokenError,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])

# Token failures share one message whatever the cause
INVALID_REFRESH_DETAIL = "Invalid or expired refresh token"
RESET_REQUESTED_MESSAGE = "If that email exists, a reset link was sent"


@router.post(
    "/register",
    response_model=MessageResponse,
    status_code=status.HTTP_201_CREATED,
)
async def register(
    request: RegisterRequest,
    auth_service: AuthService = Depends(get_auth_service),
) -> MessageResponse:
    """Create a job seeker or recruiter account.

    Returns 409 Conflict if the email is already registered, in any case.
    """
    try:
        await auth_service.register(
            email=request.email,
            password=request.password,
            name=request.name,
            role=request.role,
        )
    except DuplicateEmailError as e:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Email already in use",
        ) from e
    return MessageResponse(message="Registration successful. Please log in.")


@router.post("/login", response_model=TokenResponse)
async def login(
    request: LoginRequest,
    http_request: Request,
    auth_service: AuthService = Depends(get_auth_service),
) -> TokenResponse:
    """Authenticate and get JWT tokens.

    Unknown email and wrong password produce the same response.
    """
    try:
        tokens = await auth_service.login(email=request.email, password=request.password)
    except InvalidCredentialsError as e:
        logger.info("Failed login from %s", get_client_ip(http_request))
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid credentials",
        ) from e

    return TokenResponse(
        access_token=tokens.access_token,
        refresh_token=tokens.refresh_token,
        expires_in=auth_service.tokens.access_expires_in,
    )


@router.post("/refresh-token", response_model=AccessTokenResponse)
async def refresh_token(
    http_request: Request,
    auth_service: AuthService = Depends(get_auth_service),
) -> AccessTokenResponse:
    """Exchange the bearer refresh token for a new access token.

    The refresh token itself is not rotated.
    """
    token = get_bearer_token(http_request)
    if not token:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=INVALID_REFRESH_DETAIL,
            headers={"WWW-Authenticate": "Bearer"},
        )

    try:
        access_token = await auth_service.refresh(token)
    except TokenError as e:
        logger.debug(f"Refresh rejected: {e}")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=INVALID_REFRESH_DETAIL,
            headers={"WWW-Authenticate": "Bearer"},
        ) from e

    return AccessTokenResponse(
        access_token=access_token,
        expires_in=auth_service.tokens.access_expires_in,
    )


@router.post("/logout", response_model=MessageResponse)
async def logout(
    http_request: Request,
    auth_service: AuthService = Depends(get_auth_service),
) -> MessageResponse:
    """End the refresh session named by the bearer refresh token.

    Every refresh token issued for the user stops working, including
    unexpired ones.
    """
    token = get_bearer_token(http_request)
    if not token:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Missing token",
        )

    try:
        await auth_service.logout(token)
    except TokenError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Invalid token",
        ) from e

    return MessageResponse(message="Logged out")


@router.get("/me", response_model=UserResponse)
async def get_current_user_info(
    identity: Identity = Depends(get_identity),
    auth_service: AuthService = Depends(get_auth_service),
) -> UserResponse:
    """Get the current user's profile."""
    user = await auth_service.get_profile(identity.subject)
    if user is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
    return UserResponse.model_validate(user)


@router.post("/forgot-password", response_model=MessageResponse)
async def forgot_password(
    request: ForgotPasswordRequest,
    auth_service: AuthService = Depends(get_auth_service),
) -> MessageResponse:
    """Email a password reset link if the account exists."""
    try:
        await auth_service.request_password_reset(request.email)
    except NotificationError as e:
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail="Failed to send reset email",
        ) from e
    return MessageResponse(message=RESET_REQUESTED_MESSAGE)


@router.post("/reset-password", response_model=MessageResponse)
async def reset_password(
    request: ResetPasswordRequest,
    auth_service: AuthService = Depends(get_auth_service),
) -> MessageResponse:
    """Set a new password with a reset token. Logs out every device."""
    try:
        await auth_service.reset_password(request.token, request.password)
    except ResetTokenError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Invalid or expired token",
        ) from e
    return MessageResponse(message="Password has been reset")


@router.post("/change-password", response_model=MessageResponse)
async def change_password(
    request: ChangePasswordRequest,
    identity: Identity = Depends(get_identity),
    auth_service: AuthService = Depends(get_auth_service),
) -> MessageResponse:
    """Change the current user's password.

    Revokes the refresh session; the user must log in again.
    """
    try:
        await auth_service.change_password(
            subject=identity.subject,
            current_password=request.current_password,
            new_password=request.new_password,
        )
    except InvalidCredentialsError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Current password is incorrect",
        ) from e
    return MessageResponse(message="Password changed successfully")
