"""Per-request context carried across async boundaries.

The correlation ID is set by ``RequestContextMiddleware`` and the operation
ID by the route endpoint once a route matched; error handlers read
both to annotate their log records.
"""

import uuid
from contextvars import ContextVar

_correlation_id: ContextVar[str | None] = ContextVar("correlation_id", default=None)
_operation_id: ContextVar[str | None] = ContextVar("operation_id", default=None)


class RequestContext:
    """Accessors over the request context variables."""

    @staticmethod
    def set_correlation_id(correlation_id: str) -> None:
        """Set the correlation ID of the current request."""
        _correlation_id.set(correlation_id)

    @staticmethod
    def get_correlation_id() -> str | None:
        """Correlation ID of the current request, if any."""
        return _correlation_id.get()

    @staticmethod
    def set_operation_id(operation_id: str) -> None:
        """Record the operation the current request was routed to."""
        _operation_id.set(operation_id)

    @staticmethod
    def get_operation_id() -> str | None:
        """Operation ID of the current request, if a route matched."""
        return _operation_id.get()

    @staticmethod
    def clear() -> None:
        """Reset every context variable."""
        _correlation_id.set(None)
        _operation_id.set(None)


def generate_correlation_id() -> str:
    """A UUID4 string identifying a request chain."""
    return str(uuid.uuid4())


def generate_request_id() -> str:
    """A ``req-`` prefixed UUID4 identifying one error response."""
    return f"req-{uuid.uuid4()}"
