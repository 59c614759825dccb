"""Exception handlers that turn errors into ``ErrorResponse`` bodies.

Request-time errors raised by the validation middleware are mapped to HTTP
statuses by ``status_for``, a pure lookup on the error code. Errors the
router raises itself (``HTTPException``: unknown path, wrong method) keep
their status and are rendered in the same format. Anything else is a 500
whose detail is only revealed when ``Settings.debug`` is enabled.
"""

import traceback
from http import HTTPStatus

from loguru import logger
from starlette.applications import Starlette
from starlette.exceptions import HTTPException
from starlette.requests import Request
from starlette.responses import Response

from openroute.api.schemas.errors import ErrorResponse
from openroute.api.utils.responses import ORJSONResponse
from openroute.core.config import Settings, get_settings
from openroute.core.context import RequestContext, generate_request_id
from openroute.core.error_context import sanitize_error_context
from openroute.core.exceptions import ErrorCode, OpenRouteError, Severity

STATUS_BY_ERROR_CODE: dict[str, int] = {
    ErrorCode.SECURITY_REQUIREMENTS_NOT_MET.value: HTTPStatus.UNAUTHORIZED,
    ErrorCode.REQUIRED_PARAMETER_MISSING.value: HTTPStatus.BAD_REQUEST,
    ErrorCode.CONTENT_TYPE_NOT_SUPPORTED.value: HTTPStatus.UNSUPPORTED_MEDIA_TYPE,
    ErrorCode.VALIDATION_FAILED.value: HTTPStatus.BAD_REQUEST,
    ErrorCode.PAYLOAD_TOO_LARGE.value: HTTPStatus.REQUEST_ENTITY_TOO_LARGE,
    ErrorCode.REQUEST_ABORTED.value: HTTPStatus.REQUEST_TIMEOUT,
}

ERROR_CODE_BY_STATUS: dict[int, str] = {
    HTTPStatus.BAD_REQUEST: ErrorCode.VALIDATION_FAILED.value,
    HTTPStatus.UNAUTHORIZED: ErrorCode.SECURITY_REQUIREMENTS_NOT_MET.value,
    HTTPStatus.NOT_FOUND: "NOT_FOUND",
    HTTPStatus.METHOD_NOT_ALLOWED: "METHOD_NOT_ALLOWED",
}


def status_for(error: OpenRouteError) -> int:
    """Return the HTTP status for an error.

    Args:
        error: Any wrapper error.

    Returns:
        int: The mapped status; 500 for build-time and unknown errors.
    """
    return int(
        STATUS_BY_ERROR_CODE.get(error.error_code, HTTPStatus.INTERNAL_SERVER_ERROR)
    )


def _settings(request: Request) -> Settings:
    """Settings of the wrapper serving the request."""
    return getattr(request.app.state, "settings", None) or get_settings()


async def openroute_error_handler(request: Request, exc: Exception) -> Response:
    """Handle OpenRouteError exceptions.

    Args:
        request: The request that caused the exception
        exc: The OpenRouteError exception to handle

    Returns:
        Response: ORJSONResponse with error details

    Raises:
        TypeError: If exc is not an OpenRouteError instance
    """
    if not isinstance(exc, OpenRouteError):
        raise TypeError(f"Expected OpenRouteError, got {type(exc).__name__}")

    settings = _settings(request)
    correlation_id = RequestContext.get_correlation_id()
    status_code = status_for(exc)

    error_context = sanitize_error_context(
        exc,
        {
            "request_method": request.method,
            "request_path": str(request.url.path),
            "operation_id": RequestContext.get_operation_id(),
            "error_code": exc.error_code,
        },
    )

    if exc.is_expected:
        logger.warning(
            "Request rejected with {exception_type}: {message}",
            exception_type=type(exc).__name__,
            message=exc.message,
            status_code=status_code,
            correlation_id=correlation_id,
            **error_context,
        )
    else:
        logger.error(
            "Handling {exception_type}: {message}",
            exception_type=type(exc).__name__,
            message=exc.message,
            correlation_id=correlation_id,
            **error_context,
        )

    debug_info = None
    if settings.debug:
        debug_info = {
            "stack_trace": exc.stack_trace,
            "exception_type": type(exc).__name__,
        }
        if exc.cause:
            debug_info["cause"] = {
                "type": type(exc.cause).__name__,
                "message": str(exc.cause),
            }

    error_response = ErrorResponse(
        error_code=exc.error_code,
        message=exc.message,
        details=exc.context or None,
        correlation_id=correlation_id,
        request_id=generate_request_id(),
        severity=exc.severity.value,
        debug_info=debug_info,
    )

    return ORJSONResponse(
        status_code=status_code,
        content=error_response.model_dump(mode="json"),
    )


async def http_exception_handler(request: Request, exc: Exception) -> Response:
    """Handle Starlette HTTPException.

    Args:
        request: The request that caused the exception
        exc: The HTTPException to handle

    Returns:
        Response: ORJSONResponse with error details

    Raises:
        TypeError: If exc is not an HTTPException instance
    """
    if not isinstance(exc, HTTPException):
        raise TypeError(f"Expected HTTPException, got {type(exc).__name__}")

    correlation_id = RequestContext.get_correlation_id()
    error_code = ERROR_CODE_BY_STATUS.get(exc.status_code, ErrorCode.INTERNAL_ERROR.value)
    severity = (
        Severity.HIGH if exc.status_code >= HTTPStatus.INTERNAL_SERVER_ERROR else Severity.LOW
    )

    error_context = sanitize_error_context(
        exc,
        {
            "status": exc.status_code,
            "method": request.method,
            "path": str(request.url.path),
            "detail": exc.detail,
        },
    )
    logger.warning("HTTP exception", correlation_id=correlation_id, **error_context)

    error_response = ErrorResponse(
        error_code=error_code,
        message=str(exc.detail),
        correlation_id=correlation_id,
        request_id=generate_request_id(),
        severity=severity.value,
    )

    return ORJSONResponse(
        status_code=exc.status_code,
        content=error_response.model_dump(mode="json"),
        headers=exc.headers,
    )


async def generic_exception_handler(request: Request, exc: Exception) -> Response:
    """Handle generic exceptions.

    Catches all unhandled exceptions and converts them to a safe error response.
    Internal details are only included in debug mode.

    Args:
        request: The request that caused the exception
        exc: The unhandled exception

    Returns:
        Response: ORJSONResponse with generic error message
    """
    settings = _settings(request)
    correlation_id = RequestContext.get_correlation_id()

    error_context = sanitize_error_context(
        exc,
        {
            "request_method": request.method,
            "request_path": str(request.url.path),
            "operation_id": RequestContext.get_operation_id(),
        },
    )
    logger.opt(exception=exc).error(
        "Unhandled exception: {exception_type}",
        exception_type=type(exc).__name__,
        correlation_id=correlation_id,
        **error_context,
    )

    if settings.debug:
        message = f"Internal server error: {type(exc).__name__}"
        details = {"error": str(exc), "type": type(exc).__name__}
        debug_info = {
            "stack_trace": traceback.format_tb(exc.__traceback__),
            "exception_type": type(exc).__name__,
        }
    else:
        message = "An internal server error occurred"
        details = None
        debug_info = None

    error_response = ErrorResponse(
        error_code=ErrorCode.INTERNAL_ERROR.value,
        message=message,
        details=details,
        correlation_id=correlation_id,
        request_id=generate_request_id(),
        severity=Severity.CRITICAL.value,
        debug_info=debug_info,
    )

    return ORJSONResponse(
        status_code=HTTPStatus.INTERNAL_SERVER_ERROR,
        content=error_response.model_dump(mode="json"),
    )


def register_exception_handlers(app: Starlette) -> None:
    """Register all exception handlers with the Starlette application.

    Args:
        app: The Starlette application instance
    """
    app.add_exception_handler(OpenRouteError, openroute_error_handler)
    app.add_exception_handler(HTTPException, http_exception_handler)
    app.add_exception_handler(Exception, generic_exception_handler)

    logger.debug("Exception handlers registered")
