"""Bearer-token authorization gate for the /api surface.

Every /api/* request except the public paths must carry a valid access
token in ``Authorization: Bearer <token>``. Verification is purely by
signature: no database lookup is made per request, so a deleted account
stays authenticated until its access token expires.

On success the caller's identity is attached as ``request.state.identity``
for downstream handlers and role guards.
"""

import logging
from dataclasses import dataclass
from uuid import UUID

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.responses import JSONResponse

from jobboard.core.logging import subject_var
from jobboard.core.request_utils import get_bearer_token
from jobboard.services.errors import TokenError, TokenExpiredError
from jobboard.services.tokens import TokenService, get_token_service

logger = logging.getLogger(__name__)

PROTECTED_PREFIX = "/api"

# (method, exact path) pairs under /api that do not require a token
PUBLIC_ROUTES = {
    ("GET", "/api/jobs"),
}

UNAUTHENTICATED_DETAIL = "Not authenticated"


@dataclass(frozen=True)
class Identity:
    """The authenticated caller, as asserted by a verified access token."""

    subject: str
    role: str


class NotAuthenticatedError(Exception):
    """No usable access token on the request."""

    pass


def authenticate_request(request: Request, tokens: TokenService | None = None) -> Identity:
    """Verify the request's bearer token and return the caller's identity.

    Raises NotAuthenticatedError when the token is missing, malformed,
    badly signed or expired, or when its subject is not a user id.
    """
    token = get_bearer_token(request)
    if not token:
        raise NotAuthenticatedError("Missing bearer token")

    tokens = tokens or get_token_service()
    try:
        claims = tokens.verify_access(token)
    except TokenExpiredError as e:
        logger.debug(f"Expired token for: {request.method} {request.url.path}")
        raise NotAuthenticatedError("Token has expired") from e
    except TokenError as e:
        logger.warning(f"Invalid token for: {request.method} {request.url.path} - {e}")
        raise NotAuthenticatedError("Invalid token") from e

    try:
        subject = str(UUID(str(claims["sub"])))
    except ValueError as e:
        logger.warning(f"Malformed token subject for: {request.method} {request.url.path}")
        raise NotAuthenticatedError("Invalid token") from e

    return Identity(subject=subject, role=str(claims["role"]))


def unauthenticated_response() -> JSONResponse:
    return JSONResponse(
        status_code=401,
        content={"detail": UNAUTHENTICATED_DETAIL},
        headers={"WWW-Authenticate": "Bearer"},
    )


class AuthGateMiddleware(BaseHTTPMiddleware):
    """Reject unauthenticated /api requests and attach identity to the rest."""

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        path = request.url.path

        # CORS preflight is answered by CORSMiddleware
        if request.method == "OPTIONS":
            return await call_next(request)

        if not (path == PROTECTED_PREFIX or path.startswith(PROTECTED_PREFIX + "/")):
            return await call_next(request)

        if (request.method, path.rstrip("/")) in PUBLIC_ROUTES:
            return await call_next(request)

        try:
            identity = authenticate_request(request)
        except NotAuthenticatedError:
            return unauthenticated_response()

        request.state.identity = identity
        subject_var.set(identity.subject)

        return await call_next(request)
