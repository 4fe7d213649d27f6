"""JobBoard HTTP API."""

from jobboard.api.router import api_router

__all__ = ["api_router"]
