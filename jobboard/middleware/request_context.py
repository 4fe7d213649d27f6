"""Request id middleware.

Binds an id to each request for log correlation. A well-formed incoming
``X-Request-ID`` (from a proxy or the frontend) is kept; anything else is
replaced. The id is echoed on the response.
"""

import re
import uuid

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint

from jobboard.core.logging import request_id_var, subject_var

REQUEST_ID_HEADER = "X-Request-ID"

_REQUEST_ID_PATTERN = re.compile(r"^[A-Za-z0-9._-]{1,64}$")


def resolve_request_id(incoming: str | None) -> str:
    if incoming and _REQUEST_ID_PATTERN.match(incoming):
        return incoming
    return uuid.uuid4().hex


class RequestContextMiddleware(BaseHTTPMiddleware):
    """Attach a request id to the logging context and the response."""

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        request_id = resolve_request_id(request.headers.get(REQUEST_ID_HEADER))
        request.state.request_id = request_id

        request_token = request_id_var.set(request_id)
        subject_token = subject_var.set(None)
        try:
            response = await call_next(request)
        finally:
            subject_var.reset(subject_token)
            request_id_var.reset(request_token)

        response.headers[REQUEST_ID_HEADER] = request_id
        return response
