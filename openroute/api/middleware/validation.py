"""Request validation and extraction middleware.

Every route gets one ``ValidationPlan`` at registration time, built from its
declared parameters, body and security requirements. At request time the
middleware walks the plan in a fixed order and stops at the first failure:

1. Security: alternatives are evaluated, matched schemes become grants
2. Path parameters: coerced and validated
3. Query, header and cookie parameters: required values checked, present
   values coerced and validated, schema defaults applied to absent ones
4. Body: deadline, size and content type checked, then decoded, validated
   and bound to the declared shape

On success the ``Extraction`` is passed to the next handler and stored on
``request.state.extraction``. On failure the classified ``RequestError``
propagates to the exception handlers; the handler never runs.

Query sequences are read from repeated keys only (``?tag=a&tag=b``). A single
value is one element and is never split on delimiters.
"""

import time
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any

import orjson
from loguru import logger
from starlette.requests import ClientDisconnect, Request
from starlette.responses import Response

from openroute.api.extraction import Extraction
from openroute.api.security import SecurityEvaluator
from openroute.core.exceptions import (
    ContentTypeNotSupportedError,
    PayloadTooLargeError,
    RequestAbortedError,
    RequiredParameterMissingError,
    ValidationFailedError,
)
from openroute.openapi.models import SchemaOrRef
from openroute.schema.binder import bind
from openroute.schema.descriptor import MISSING
from openroute.schema.validator import SchemaValidator

type Handler = Callable[[Request, Extraction], Awaitable[Response]]
type Middleware = Callable[[Handler], Handler]

JSON_CONTENT_TYPE = "application/json"


def media_type(content_type: str | None) -> str:
    """Strip parameters (``charset``, ``boundary``) from a content type."""
    return (content_type or "").split(";", 1)[0].strip().lower()


def charset(content_type: str | None, default: str = "utf-8") -> str:
    """Return the ``charset`` parameter of a content type."""
    for parameter in (content_type or "").split(";")[1:]:
        key, _, value = parameter.partition("=")
        if key.strip().lower() == "charset" and value.strip():
            return value.strip().strip('"')
    return default


def _check_deadline(deadline: float | None) -> None:
    if deadline is not None and time.monotonic() >= deadline:
        raise RequestAbortedError()


def is_json(content_type: str) -> bool:
    """Whether a media type carries JSON (``application/json`` or ``*+json``)."""
    return content_type == JSON_CONTENT_TYPE or content_type.endswith("+json")


@dataclass(frozen=True)
class BoundParameter:
    """A declared parameter and how to extract it.

    Attributes:
        name: Name on the wire (query key, header name, cookie name).
        location: ``path``, ``query``, ``header`` or ``cookie``.
        schema: Schema the value must satisfy.
        shape: Python type the validated value is bound to.
        required: Whether absence is an error.
        default: Value used when absent, or ``MISSING``.
        description: Description in the document.
        example: Example in the document.
        deprecated: Whether the parameter is deprecated.
    """

    name: str
    location: str
    schema: SchemaOrRef
    shape: Any = str
    required: bool = False
    default: Any = MISSING
    description: str | None = None
    example: Any = None
    deprecated: bool = False


@dataclass(frozen=True)
class LocationPlan:
    """Parameters of one location, optionally bound to a shape."""

    location: str
    parameters: tuple[BoundParameter, ...] = ()
    shape: Any = None


@dataclass(frozen=True)
class BodyPlan:
    """The declared request body."""

    schema: SchemaOrRef
    shape: Any
    content_types: tuple[str, ...]
    required: bool = True


@dataclass(frozen=True)
class ValidationPlan:
    """Everything the middleware checks for one operation."""

    operation_id: str
    security: SecurityEvaluator
    path: LocationPlan
    query: LocationPlan
    headers: LocationPlan
    cookies: LocationPlan
    body: BodyPlan | None
    max_body_size: int


class RequestValidator:
    """Runs a ``ValidationPlan`` against requests.

    Args:
        plan: The plan of the route.
        validator: Schema validator of the document the route belongs to.
    """

    def __init__(self, plan: ValidationPlan, validator: SchemaValidator) -> None:
        self.plan = plan
        self._validator = validator

    async def extract(self, request: Request) -> Extraction:
        """Validate a request and return what was extracted.

        Raises:
            RequestError: The first failure, classified.
        """
        plan = self.plan
        extraction = Extraction()

        if plan.security.enabled:
            extraction.security = await plan.security.evaluate(request)

        extraction.path = self._extract_location(plan.path, request)
        extraction.query = self._extract_location(plan.query, request)
        extraction.headers = self._extract_location(plan.headers, request)
        extraction.cookies = self._extract_location(plan.cookies, request)

        if plan.body is not None:
            extraction.body = await self._extract_body(plan.body, request)

        logger.debug("Validated request for {}", plan.operation_id)
        return extraction

    @staticmethod
    def _raw_value(parameter: BoundParameter, request: Request) -> Any:  # noqa: ANN401
        match parameter.location:
            case "path":
                return request.path_params.get(parameter.name)
            case "query":
                return request.query_params.getlist(parameter.name) or None
            case "header":
                return request.headers.getlist(parameter.name) or None
            case "cookie":
                return request.cookies.get(parameter.name)
        return None

    def _extract_location(self, plan: LocationPlan, request: Request) -> Any:  # noqa: ANN401
        values: dict[str, Any] = {}
        for parameter in plan.parameters:
            field = f"{parameter.location}.{parameter.name}"
            raw = self._raw_value(parameter, request)

            if raw is None:
                if parameter.required:
                    raise RequiredParameterMissingError(
                        parameter.name, parameter.location
                    )
                if parameter.default is not MISSING:
                    values[parameter.name] = parameter.default
                continue

            value = self._validator.coerce(raw, parameter.schema, field)
            values[parameter.name] = (
                value
                if plan.shape is not None
                else bind(value, parameter.shape, field, self._validator.matches)
            )

        if plan.shape is None:
            return values
        return bind(values, plan.shape, plan.location, self._validator.matches)

    async def _read_body(self, request: Request) -> bytes:
        """Read the body chunk by chunk, stopping as soon as a limit is hit.

        Raises:
            PayloadTooLargeError: As soon as the declared length or the bytes
                received so far exceed ``max_body_size``.
            RequestAbortedError: If the deadline passes before the body is
                complete, or the client disconnects.
        """
        limit = self.plan.max_body_size
        deadline = getattr(request.state, "deadline", None)
        _check_deadline(deadline)

        declared = request.headers.get("content-length")
        if declared is not None and declared.isdigit() and int(declared) > limit:
            raise PayloadTooLargeError(limit, int(declared))

        chunks: list[bytes] = []
        received = 0
        try:
            async for chunk in request.stream():
                received += len(chunk)
                if received > limit:
                    raise PayloadTooLargeError(limit)
                chunks.append(chunk)
                _check_deadline(deadline)
        except ClientDisconnect as e:
            raise RequestAbortedError("Client disconnected before the body was read") from e

        body = b"".join(chunks)
        # Handlers may still call request.body() on the consumed stream
        request._body = body  # noqa: SLF001
        return body

    async def _extract_body(self, plan: BodyPlan, request: Request) -> Any:  # noqa: ANN401
        body = await self._read_body(request)
        if not body:
            if plan.required:
                raise RequiredParameterMissingError("body", "body")
            return None

        content_type = media_type(request.headers.get("content-type"))
        if content_type not in plan.content_types:
            raise ContentTypeNotSupportedError(content_type, list(plan.content_types))

        if is_json(content_type):
            try:
                data = orjson.loads(body)
            except orjson.JSONDecodeError as e:
                raise ValidationFailedError(
                    "body", "json", "Request body is not valid JSON", cause=e
                ) from e
            value = self._validator.validate(data, plan.schema, "body")
            return bind(value, plan.shape, "body", self._validator.matches)

        if content_type.startswith("text/"):
            try:
                text = body.decode(charset(request.headers.get("content-type")))
            except (LookupError, UnicodeDecodeError) as e:
                raise ValidationFailedError(
                    "body", "encoding", "Request body is not valid text", cause=e
                ) from e
            return self._validator.validate(text, plan.schema, "body")

        return body


def validation_middleware(request_validator: RequestValidator) -> Middleware:
    """Build the middleware that validates requests before the handler runs."""

    def middleware(next_handler: Handler) -> Handler:
        async def handler(request: Request, _: Extraction) -> Response:
            extraction = await request_validator.extract(request)
            request.state.extraction = extraction
            return await next_handler(request, extraction)

        return handler

    return middleware
