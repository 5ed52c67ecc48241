"""Correlation ID middleware for request tracing."""

import uuid
from typing import Callable

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response
from starlette.types import ASGIApp

from voicecanvas_shared.logging import bind_context, set_correlation_id, unbind_context

# Header name for correlation ID (following common conventions)
CORRELATION_ID_HEADER = "X-Correlation-ID"


def generate_correlation_id() -> str:
    """Generate a new correlation ID."""
    return str(uuid.uuid4())


class CorrelationIdMiddleware(BaseHTTPMiddleware):
    """Middleware to handle correlation IDs for request tracing.

    Takes the correlation ID from the incoming header, or generates one,
    exposes it on ``request.state`` and in the logging context, and echoes it
    back on the response.
    """

    def __init__(
        self,
        app: ASGIApp,
        header_name: str = CORRELATION_ID_HEADER,
        generator: Callable[[], str] = generate_correlation_id,
    ):
        super().__init__(app)
        self.header_name = header_name
        self.generator = generator

    async def dispatch(
        self,
        request: Request,
        call_next: Callable,
    ) -> Response:
        correlation_id = request.headers.get(self.header_name) or self.generator()
        request.state.correlation_id = correlation_id

        set_correlation_id(correlation_id)
        bind_context(correlation_id=correlation_id)

        try:
            response = await call_next(request)
            response.headers[self.header_name] = correlation_id
            return response
        finally:
            set_correlation_id(None)
            unbind_context("correlation_id")


def get_correlation_id(request: Request) -> str | None:
    """Get the correlation ID from the request, if the middleware set one."""
    return getattr(request.state, "correlation_id", None)
