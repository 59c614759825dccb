"""Structured exception hierarchy for registration and request validation.

This module defines the complete exception system of the wrapper. Errors fall
into two phases:

- **Build-time errors** (``BuildError``): raised while routes, groups and
  schemas are registered. They are programmer errors, fatal to startup, and
  are never translated into HTTP responses.
- **Request-time errors** (``RequestError``): raised by the validation
  middleware before a handler runs. They are caught at the boundary between
  the middleware and the response layer and rendered as a structured error
  body (see ``openroute.api.middleware.error_handler``).

Key components:
- **ErrorCode enum**: Standardized error identifiers for programmatic handling
- **Severity enum**: Error classification for logging
- **OpenRouteError**: Base exception with rich context and stack capture
"""

import traceback
from enum import Enum

from openroute.core.types import ErrorContext


class ErrorCode(Enum):
    """Standardized error codes for the wrapper."""

    # System errors
    INTERNAL_ERROR = "INTERNAL_ERROR"
    """An unexpected internal error occurred."""

    # Request-time errors
    SECURITY_REQUIREMENTS_NOT_MET = "SECURITY_REQUIREMENTS_NOT_MET"
    """No alternative security requirement was satisfied."""

    REQUIRED_PARAMETER_MISSING = "REQUIRED_PARAMETER_MISSING"
    """A required path, query, header, cookie or body value is absent."""

    CONTENT_TYPE_NOT_SUPPORTED = "CONTENT_TYPE_NOT_SUPPORTED"
    """The request body content type is not declared for the operation."""

    VALIDATION_FAILED = "VALIDATION_FAILED"
    """A value is present but fails a type, enum or bound check."""

    PAYLOAD_TOO_LARGE = "PAYLOAD_TOO_LARGE"
    """The request body exceeds the configured limit."""

    REQUEST_ABORTED = "REQUEST_ABORTED"
    """The request deadline passed before the body was decoded."""

    # Build-time errors
    DUPLICATE_OPERATION_ID = "DUPLICATE_OPERATION_ID"
    """Two operations share the same operation identifier."""

    AMBIGUOUS_PATH_PARAMETER = "AMBIGUOUS_PATH_PARAMETER"
    """Path placeholders and declared path parameters do not match one-to-one."""

    DUPLICATE_ROUTE = "DUPLICATE_ROUTE"
    """The same method and path were registered twice."""

    DUPLICATE_COMPONENT = "DUPLICATE_COMPONENT"
    """A reusable component name is already taken."""

    UNRESOLVED_REFERENCE = "UNRESOLVED_REFERENCE"
    """A reference points at a component that was never registered."""

    UNSUPPORTED_TYPE = "UNSUPPORTED_TYPE"
    """A type cannot be described as a schema."""

    INVALID_ROUTE_CONFIG = "INVALID_ROUTE_CONFIG"
    """A route or group was configured inconsistently."""


class Severity(Enum):
    """Severity levels for errors raised by the wrapper."""

    LOW = "LOW"
    """Expected errors caused by client input."""

    MEDIUM = "MEDIUM"
    """Errors that affect a single request but are not client mistakes."""

    HIGH = "HIGH"
    """Authentication failures and similar security-relevant errors."""

    CRITICAL = "CRITICAL"
    """Startup-fatal programmer errors."""


class OpenRouteError(Exception):
    """Base exception class for all wrapper exceptions.

    Args:
        error_code: Unique identifier for the error type (string or ErrorCode enum)
        message: Human-readable error message
        severity: Severity level of the error (defaults to MEDIUM)
        context: Additional context information about the error
        cause: The original exception that caused this error
    """

    def __init__(
        self,
        error_code: str | ErrorCode,
        message: str,
        severity: Severity = Severity.MEDIUM,
        context: ErrorContext | None = None,
        cause: Exception | None = None,
    ) -> None:
        self.error_code = (
            error_code.value if isinstance(error_code, ErrorCode) else error_code
        )
        self.message = message
        self.severity = severity
        self.context = context or {}
        self.cause = cause

        # Capture stack trace at creation time
        self.stack_trace = traceback.format_stack()[:-1]  # Exclude this frame

        super().__init__(message)
        if cause:
            self.__cause__ = cause

    @property
    def is_expected(self) -> bool:
        """Determine if this is an expected error based on severity.

        Returns:
            bool: True if the error is expected (LOW or MEDIUM severity)
        """
        return self.severity in (Severity.LOW, Severity.MEDIUM)

    def __str__(self) -> str:
        """Return a string representation of the exception.

        Returns:
            str: A formatted string containing the error code and message
        """
        return f"[{self.error_code}] {self.message}"

    def __repr__(self) -> str:
        """Return a detailed representation of the exception.

        Returns:
            str: A string showing the class name, error code, message, severity,
                and context
        """
        class_name = self.__class__.__name__
        context_str = f", context={self.context}" if self.context else ""
        return (
            f"{class_name}(error_code='{self.error_code}', "
            f"message='{self.message}', severity={self.severity.value}{context_str})"
        )


class RequestError(OpenRouteError):
    """Base class for errors raised while validating an incoming request."""


class BuildError(OpenRouteError):
    """Base class for errors raised while assembling the document.

    Build errors are always CRITICAL: they halt startup and never produce a
    partial document.
    """

    def __init__(
        self,
        error_code: str | ErrorCode,
        message: str,
        context: ErrorContext | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(error_code, message, Severity.CRITICAL, context, cause)


# Request-time errors


class SecurityRequirementsNotMetError(RequestError):
    """No alternative security requirement set was satisfied.

    Args:
        message: Description of the failure
        context: Additional context, typically the attempted schemes
    """

    def __init__(
        self,
        message: str = "Security requirements not met",
        context: ErrorContext | None = None,
    ) -> None:
        super().__init__(
            ErrorCode.SECURITY_REQUIREMENTS_NOT_MET, message, Severity.HIGH, context
        )


class RequiredParameterMissingError(RequestError):
    """A required parameter or request body is absent.

    Args:
        name: Name of the missing parameter (``body`` for the request body)
        location: Where the value was expected (path, query, header, cookie, body)
    """

    def __init__(self, name: str, location: str) -> None:
        self.name = name
        self.location = location
        super().__init__(
            ErrorCode.REQUIRED_PARAMETER_MISSING,
            f"Required {location} parameter '{name}' is missing",
            Severity.LOW,
            {"parameter": name, "location": location},
        )


class ContentTypeNotSupportedError(RequestError):
    """The request content type is not one of the declared body content types.

    Args:
        content_type: The content type sent by the client (may be empty)
        supported: The content types declared for the operation
    """

    def __init__(self, content_type: str, supported: list[str]) -> None:
        self.content_type = content_type
        self.supported = supported
        super().__init__(
            ErrorCode.CONTENT_TYPE_NOT_SUPPORTED,
            f"Content type '{content_type}' is not supported",
            Severity.LOW,
            {"content_type": content_type, "supported": supported},
        )


class ValidationFailedError(RequestError):
    """A value is present but violates its schema.

    Args:
        field: Dotted path of the offending value (``query.limit``, ``body.tags.0``)
        constraint: The violated constraint (type, enum, minimum, required, ...)
        message: Human-readable description
        cause: The original exception, when coercion raised one
    """

    def __init__(
        self,
        field: str,
        constraint: str,
        message: str | None = None,
        cause: Exception | None = None,
    ) -> None:
        self.field = field
        self.constraint = constraint
        super().__init__(
            ErrorCode.VALIDATION_FAILED,
            message or f"Value of '{field}' violates constraint '{constraint}'",
            Severity.LOW,
            {"field": field, "constraint": constraint},
            cause,
        )


class PayloadTooLargeError(RequestError):
    """The request body is larger than the configured maximum."""

    def __init__(self, limit: int, size: int | None = None) -> None:
        super().__init__(
            ErrorCode.PAYLOAD_TOO_LARGE,
            f"Request body exceeds {limit} bytes",
            Severity.LOW,
            {"limit": limit, "size": size},
        )


class RequestAbortedError(RequestError):
    """The request deadline elapsed before the body was decoded."""

    def __init__(self, message: str = "Request deadline exceeded") -> None:
        super().__init__(ErrorCode.REQUEST_ABORTED, message, Severity.MEDIUM)


# Build-time errors


class DuplicateOperationIdError(BuildError):
    """Two operations in one document share an operation identifier."""

    def __init__(self, operation_id: str, method: str, path: str) -> None:
        super().__init__(
            ErrorCode.DUPLICATE_OPERATION_ID,
            f"Operation id '{operation_id}' for {method} {path} is already in use",
            {"operation_id": operation_id, "method": method, "path": path},
        )


class AmbiguousPathParameterError(BuildError):
    """Path template placeholders and path parameters do not match one-to-one."""

    def __init__(self, path: str, message: str, names: list[str]) -> None:
        super().__init__(
            ErrorCode.AMBIGUOUS_PATH_PARAMETER,
            f"{path}: {message}",
            {"path": path, "parameters": names},
        )


class DuplicateRouteError(BuildError):
    """The same method and path template were registered twice."""

    def __init__(self, method: str, path: str) -> None:
        super().__init__(
            ErrorCode.DUPLICATE_ROUTE,
            f"Route {method} {path} is already registered",
            {"method": method, "path": path},
        )


class DuplicateComponentError(BuildError):
    """A reusable component with this name already exists."""

    def __init__(self, kind: str, name: str) -> None:
        super().__init__(
            ErrorCode.DUPLICATE_COMPONENT,
            f"Component {kind} '{name}' is already registered",
            {"kind": kind, "name": name},
        )


class UnresolvedReferenceError(BuildError):
    """A reference does not resolve to a registered component."""

    def __init__(self, ref: str, where: str | None = None) -> None:
        location = f" (in {where})" if where else ""
        super().__init__(
            ErrorCode.UNRESOLVED_REFERENCE,
            f"Reference '{ref}' does not resolve to a component{location}",
            {"ref": ref, "where": where},
        )


class UnsupportedTypeError(BuildError):
    """A type cannot be turned into a schema."""

    def __init__(self, annotation: object, reason: str | None = None) -> None:
        detail = f": {reason}" if reason else ""
        super().__init__(
            ErrorCode.UNSUPPORTED_TYPE,
            f"Unsupported type {annotation!r}{detail}",
            {"type": repr(annotation)},
        )


class RouteConfigurationError(BuildError):
    """A route or group was configured inconsistently."""

    def __init__(self, message: str, context: ErrorContext | None = None) -> None:
        super().__init__(ErrorCode.INVALID_ROUTE_CONFIG, message, context)
