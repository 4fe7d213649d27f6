"""Shared FastAPI dependencies: services, caller identity and role guards."""

import logging
from collections.abc import Callable, Coroutine
from typing import Any

from fastapi import Depends, HTTPException, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from jobboard.core import get_db
from jobboard.core.logging import subject_var
from jobboard.middleware.auth_gate import (
    UNAUTHENTICATED_DETAIL,
    Identity,
    NotAuthenticatedError,
    authenticate_request,
)
from jobboard.services.auth import AuthService
from jobboard.services.tokens import TokenService, get_token_service

logger = logging.getLogger(__name__)


def get_tokens() -> TokenService:
    """Dependency to get the process-wide token service."""
    return get_token_service()


def get_auth_service(
    db: AsyncSession = Depends(get_db),
    tokens: TokenService = Depends(get_tokens),
) -> AuthService:
    """Dependency to get auth service."""
    return AuthService(db, tokens=tokens)


async def get_identity(
    request: Request,
    tokens: TokenService = Depends(get_tokens),
) -> Identity:
    """Dependency returning the authenticated caller.

    Reuses the identity the gate middleware attached for /api routes and
    verifies the bearer token itself everywhere else.
    """
    identity = getattr(request.state, "identity", None)
    if isinstance(identity, Identity):
        return identity

    try:
        identity = authenticate_request(request, tokens)
    except NotAuthenticatedError as e:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=UNAUTHENTICATED_DETAIL,
            headers={"WWW-Authenticate": "Bearer"},
        ) from e

    request.state.identity = identity
    subject_var.set(identity.subject)
    return identity


def require_role(role: str) -> Callable[..., Coroutine[Any, Any, Identity]]:
    """Build a dependency that admits only callers holding ``role``.

    Authentication always runs first since the guard depends on
    get_identity.
    """

    async def role_guard(identity: Identity = Depends(get_identity)) -> Identity:
        if identity.role != role:
            logger.info(f"Forbidden: {identity.subject} ({identity.role}) needs {role}")
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Forbidden")
        return identity

    return role_guard
