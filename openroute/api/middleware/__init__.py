"""Request pipeline components.

- **validation**: Per-route validation and extraction, first in every chain
- **request_context**: Correlation IDs and request deadlines (ASGI middleware)
- **error_handler**: Exception handlers producing ``ErrorResponse`` bodies

Route middleware are plain functions taking the next handler and returning a
handler with the same ``(request, extraction)`` signature. The request context
middleware wraps the whole application instead.
"""
