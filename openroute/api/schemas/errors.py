"""Standardized error response schema.

Every failed request, whether it failed validation, raised an HTTP exception
in a handler or crashed, is answered with an ``ErrorResponse`` body. The model
is a plain pydantic model, so an API can publish it in its own document with
``api.add_response("ErrorResponse", "Error response", ErrorResponse)``.

The error schema supports:
- Machine-readable error codes for programmatic handling
- Human-readable messages for user display
- The offending parameter, location and violated constraint in ``details``
- Correlation IDs for tracing
- Debug information when debug mode is enabled
"""

from datetime import UTC, datetime
from typing import Any

from pydantic import BaseModel, Field


class ErrorResponse(BaseModel):
    """Standardized error response model for API errors."""

    error_code: str = Field(
        ...,
        description="Unique error code identifying the error type",
        examples=["VALIDATION_FAILED", "SECURITY_REQUIREMENTS_NOT_MET"],
    )

    message: str = Field(
        ...,
        description="Human-readable error message",
        examples=["'path.id' must be of type integer, got string"],
    )

    details: dict[str, Any] | None = Field(
        default=None,
        description="Offending parameter or field, its location and the violated constraint",
        examples=[{"field": "query.limit", "constraint": "maximum"}],
    )

    correlation_id: str | None = Field(
        default=None,
        description="Request correlation ID for tracing and debugging",
        examples=["550e8400-e29b-41d4-a716-446655440000"],
    )

    timestamp: datetime = Field(
        default_factory=lambda: datetime.now(UTC),
        description="Timestamp when the error occurred (with timezone)",
        examples=["2024-06-14T12:00:00+00:00"],
    )

    severity: str | None = Field(
        default=None,
        description="Error severity level (LOW, MEDIUM, HIGH, CRITICAL)",
        examples=["LOW", "HIGH"],
    )

    request_id: str | None = Field(
        default=None,
        description="Unique identifier of this request",
        examples=["req-550e8400-e29b-41d4-a716-446655440000"],
    )

    debug_info: dict[str, Any] | None = Field(
        default=None,
        description="Debug information (only populated in debug mode)",
        examples=[
            {
                "stack_trace": ["File 'main.py', line 123, in function_name"],
                "exception_type": "ValidationFailedError",
            }
        ],
    )
