"""Security headers middleware.

The API serves JSON only, so the content policy denies everything. The
interactive docs (mounted in debug mode) load scripts and styles from a
CDN and are left without a content policy.
"""

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

API_CSP = "default-src 'none'; frame-ancestors 'none'"
DOCS_PATHS = ("/docs", "/redoc")

# Responses from these paths carry bearer tokens in the body
TOKEN_ISSUING_PATHS = ("/auth/login", "/auth/refresh-token")


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Middleware to add security headers to all responses."""

    async def dispatch(self, request: Request, call_next) -> Response:
        response = await call_next(request)
        path = request.url.path

        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-Frame-Options"] = "DENY"
        response.headers["Cache-Control"] = "no-store"
        response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
        response.headers["Cross-Origin-Opener-Policy"] = "same-origin"

        if not path.startswith(DOCS_PATHS):
            response.headers["Content-Security-Policy"] = API_CSP

        if path in TOKEN_ISSUING_PATHS:
            # HTTP/1.0 caches ignore Cache-Control
            response.headers["Pragma"] = "no-cache"

        forwarded_proto = request.headers.get("x-forwarded-proto", "")
        if forwarded_proto == "https" or request.url.scheme == "https":
            response.headers["Strict-Transport-Security"] = "max-age=31536000; includeSubDomains"

        return response
