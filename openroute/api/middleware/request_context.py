"""Request context middleware for correlation and deadlines.

This module implements middleware that manages request correlation IDs and
the per-request deadline read by the validation middleware.

Key features:
- **Correlation ID propagation**: Extracts or generates unique IDs per request
- **Context variables**: Uses Python contextvars for async-safe propagation
- **Loguru integration**: Automatically binds correlation IDs to all logs
- **Response headers**: Includes correlation ID in responses for client tracing
- **Deadline**: Stores ``request.state.deadline`` (monotonic seconds) when a
  request timeout is configured
"""

import time

from loguru import logger
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response
from starlette.types import ASGIApp

from openroute.core.context import RequestContext, generate_correlation_id

CORRELATION_ID_HEADER = "X-Correlation-ID"


class RequestContextMiddleware(BaseHTTPMiddleware):
    """Middleware to manage request context and correlation IDs.

    This middleware:
    - Generates or extracts correlation IDs
    - Sets them in contextvars for propagation
    - Binds them to Loguru for structured logging
    - Starts the request deadline clock

    Args:
        app: The wrapped ASGI application.
        request_timeout: Seconds until ``request.state.deadline``; no deadline
            is set when omitted.
    """

    def __init__(self, app: ASGIApp, request_timeout: float | None = None) -> None:
        super().__init__(app)
        self.request_timeout = request_timeout

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        """Process the request with context management.

        Args:
            request: The incoming request.
            call_next: The next middleware/endpoint.

        Returns:
            Response: Response with correlation ID header.
        """
        correlation_id = (
            request.headers.get(CORRELATION_ID_HEADER) or generate_correlation_id()
        )
        RequestContext.set_correlation_id(correlation_id)

        if self.request_timeout is not None:
            request.state.deadline = time.monotonic() + self.request_timeout

        with logger.contextualize(correlation_id=correlation_id):
            response = await call_next(request)
            response.headers[CORRELATION_ID_HEADER] = correlation_id
            return response
