"""Middleware module for the JobBoard backend."""

from jobboard.middleware.auth_gate import AuthGateMiddleware
from jobboard.middleware.request_context import RequestContextMiddleware
from jobboard.middleware.security_headers import SecurityHeadersMiddleware

__all__ = [
    "AuthGateMiddleware",
    "RequestContextMiddleware",
    "SecurityHeadersMiddleware",
]
