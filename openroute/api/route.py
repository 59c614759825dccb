"""Route declarations and the operation builder.

A route is declared once with keyword configuration::

    api.get(
        "/items/{id:int}",
        get_item,
        tags=["items"],
        path_parameters=[PathParameter("id", int, description="Item id")],
        parameters=[QueryParameter("limit", int, default=20)],
        responses={200: response_body("The item", Item), "default": response_ref("Error")},
        security=[{"api_key": []}],
    )

``OperationBuilder`` turns that configuration into the ``Operation`` written
to the document and the ``ValidationPlan`` the validation middleware runs,
both from the same resolved schemas.
"""

from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field, replace
from typing import Any, ClassVar

from starlette.routing import Route

from openroute.api.middleware.validation import (
    BodyPlan,
    BoundParameter,
    Handler,
    LocationPlan,
    Middleware,
    ValidationPlan,
    media_type,
)
from openroute.api.paths import placeholders
from openroute.api.security import RegisteredScheme, SecurityEvaluator
from openroute.core.constants import RESPONSE_REF_PREFIX
from openroute.core.exceptions import (
    AmbiguousPathParameterError,
    RouteConfigurationError,
)
from openroute.core.types import SecurityRequirement
from openroute.openapi.models import (
    MediaType,
    Operation,
    Parameter,
    Reference,
    RequestBody as RequestBodyObject,
    Response,
    Schema,
    SchemaOrRef,
)
from openroute.schema.descriptor import MISSING, Kind, describe, split_optional
from openroute.schema.registry import SchemaRegistry
from openroute.schema.walker import to_jsonable

_SCALAR_TYPES = frozenset({"string", "integer", "number", "boolean"})


@dataclass(frozen=True)
class _ParameterSpec:
    """Common attributes of individually declared parameters."""

    location: ClassVar[str]

    name: str
    shape: Any = str
    description: str | None = None
    required: bool = False
    default: Any = MISSING
    example: Any = None
    deprecated: bool = False


@dataclass(frozen=True)
class PathParameter(_ParameterSpec):
    """A path placeholder. Path parameters are always required."""

    location: ClassVar[str] = "path"
    required: bool = True


@dataclass(frozen=True)
class QueryParameter(_ParameterSpec):
    """A query string parameter; ``list[...]`` shapes read repeated keys."""

    location: ClassVar[str] = "query"


@dataclass(frozen=True)
class HeaderParameter(_ParameterSpec):
    """A request header, matched case-insensitively."""

    location: ClassVar[str] = "header"


@dataclass(frozen=True)
class CookieParameter(_ParameterSpec):
    """A cookie."""

    location: ClassVar[str] = "cookie"


@dataclass(frozen=True)
class RequestBody:
    """The declared request body.

    Attributes:
        shape: Type the body is validated against and bound to.
        description: Description in the document.
        content_types: Accepted media types; the first is the preferred one.
        required: Whether an empty body is rejected.
    """

    shape: Any
    description: str | None = None
    content_types: tuple[str, ...] = ("application/json",)
    required: bool = True


@dataclass(frozen=True)
class ResponseSpec:
    """A documented response: inline (with optional body) or a component ref."""

    description: str
    shape: Any = None
    content_type: str = "application/json"
    ref: str | None = None


def response(description: str) -> ResponseSpec:
    """A response without a body."""
    return ResponseSpec(description)


def response_body(
    description: str, shape: Any, content_type: str = "application/json"  # noqa: ANN401
) -> ResponseSpec:
    """A response whose body has the given shape."""
    return ResponseSpec(description, shape=shape, content_type=content_type)


def response_ref(name: str, description: str | None = None) -> ResponseSpec:
    """A response pointing at a registered response component."""
    return ResponseSpec(description or "", ref=name)


@dataclass
class RouteConfig:
    """Everything a route may declare. See ``ApiWrapper.add``."""

    tags: Sequence[str] = ()
    summary: str | None = None
    description: str | None = None
    operation_id: str | None = None
    deprecated: bool = False
    path_parameters: Sequence[PathParameter] = ()
    path: Any = None
    query: Any = None
    headers: Any = None
    parameters: Sequence[QueryParameter | HeaderParameter | CookieParameter] = ()
    request_body: RequestBody | None = None
    responses: Mapping[int | str, ResponseSpec] = field(default_factory=dict)
    security: Sequence[SecurityRequirement] = ()
    optional_security: bool = False
    middleware: Sequence[Middleware] = ()
    validate: bool = True


@dataclass
class RouteWrapper:
    """A registered route.

    Attributes:
        method: Upper-case HTTP method.
        path: Path template in document syntax.
        router_path: Template registered on the router, base URL included.
        operation: The operation in the document.
        handler: The route handler.
        chain: Handler wrapped by validation and every middleware.
        plan: What the validation middleware checks, ``None`` when disabled.
        route: The Starlette route.
    """

    method: str
    path: str
    router_path: str
    operation: Operation
    handler: Handler
    chain: Handler
    plan: ValidationPlan | None = None
    route: Route | None = None

    @property
    def operation_id(self) -> str:
        """The operation id, also the name of the Starlette route."""
        return self.operation.operation_id or ""


def _unique(items: Sequence[str]) -> list[str]:
    return list(dict.fromkeys(items))


class OperationBuilder:
    """Builds the operation and validation plan of one route.

    Args:
        registry: Schema registry of the document.
        schemes: Security schemes registered so far.
        max_body_size: Body limit copied into the validation plan.
    """

    def __init__(
        self,
        registry: SchemaRegistry,
        schemes: Mapping[str, RegisteredScheme],
        max_body_size: int,
    ) -> None:
        self._registry = registry
        self._schemes = schemes
        self._max_body_size = max_body_size

    def build(
        self, path: str, operation_id: str, config: RouteConfig
    ) -> tuple[Operation, ValidationPlan]:
        """Resolve the configuration of one route.

        Args:
            path: Path template in document syntax.
            operation_id: Final operation id.
            config: The merged route configuration.

        Returns:
            tuple[Operation, ValidationPlan]: The document entry and the
                request plan.

        Raises:
            AmbiguousPathParameterError: If placeholders and path parameters
                do not match one to one.
            RouteConfigurationError: If a location is declared both as a shape
                and as individual parameters.
        """
        path_plan = self._path_plan(path, config)
        query_plan = self._location_plan("query", config.query, config.parameters)
        header_plan = self._location_plan("header", config.headers, config.parameters)
        cookie_plan = self._location_plan("cookie", None, config.parameters)
        body_plan, request_body = self._body(config.request_body)

        parameters = [
            self._parameter_object(parameter)
            for plan in (path_plan, query_plan, header_plan, cookie_plan)
            for parameter in plan.parameters
        ]

        security = list(config.security)
        document_security = list(security)
        if config.optional_security and {} not in document_security:
            document_security.append({})

        operation = Operation(
            tags=_unique(config.tags) or None,
            summary=config.summary,
            description=config.description,
            operation_id=operation_id,
            parameters=parameters or None,
            request_body=request_body,
            responses={
                str(status): self._response(spec)
                for status, spec in config.responses.items()
            },
            security=document_security or None,
            deprecated=config.deprecated or None,
        )
        plan = ValidationPlan(
            operation_id=operation_id,
            security=SecurityEvaluator(
                self._schemes, security, optional=config.optional_security
            ),
            path=path_plan,
            query=query_plan,
            headers=header_plan,
            cookies=cookie_plan,
            body=body_plan,
            max_body_size=self._max_body_size,
        )
        return operation, plan

    # Parameters

    def _path_plan(self, path: str, config: RouteConfig) -> LocationPlan:
        if config.path is not None and config.path_parameters:
            raise RouteConfigurationError(
                "Declare path parameters either as a shape or individually, not both",
                {"path": path},
            )

        if config.path is not None:
            bound = self._shape_parameters("path", config.path)
        else:
            bound = tuple(self._bind_spec(spec) for spec in config.path_parameters)
        bound = tuple(replace(p, required=True, default=MISSING) for p in bound)

        declared = [parameter.name for parameter in bound]
        repeated = sorted({name for name in declared if declared.count(name) > 1})
        if repeated:
            raise AmbiguousPathParameterError(
                path, "Path parameter declared more than once", repeated
            )

        names = placeholders(path)
        unmatched = sorted(set(names) - set(declared))
        if unmatched:
            raise AmbiguousPathParameterError(
                path, "Placeholder without a path parameter", unmatched
            )
        undeclared = sorted(set(declared) - set(names))
        if undeclared:
            raise AmbiguousPathParameterError(
                path, "Path parameter without a placeholder", undeclared
            )

        # Document order follows the template
        ordered = sorted(bound, key=lambda parameter: names.index(parameter.name))
        return LocationPlan("path", tuple(ordered), config.path)

    def _location_plan(
        self,
        location: str,
        shape: Any,  # noqa: ANN401
        specs: Sequence[_ParameterSpec],
    ) -> LocationPlan:
        individual = [spec for spec in specs if spec.location == location]
        if shape is not None and individual:
            raise RouteConfigurationError(
                f"Declare {location} parameters either as a shape or individually, "
                "not both",
                {"location": location},
            )
        if shape is not None:
            return LocationPlan(
                location, self._shape_parameters(location, shape), shape
            )

        names = [spec.name.lower() if location == "header" else spec.name for spec in individual]
        repeated = sorted({name for name in names if names.count(name) > 1})
        if repeated:
            raise RouteConfigurationError(
                f"Duplicate {location} parameter", {"names": repeated}
            )
        return LocationPlan(
            location, tuple(self._bind_spec(spec) for spec in individual)
        )

    def _bind_spec(self, spec: _ParameterSpec) -> BoundParameter:
        # Absent parameters are expressed by ``required``, not by a null type
        schema = self._registry.resolve(split_optional(spec.shape)[0])
        default = spec.default
        if default is not MISSING and isinstance(schema, Schema):
            jsonable = to_jsonable(default)
            if jsonable is not None:
                schema = schema.model_copy(update={"default": jsonable})
        self._check_parameter_schema(spec.location, spec.name, schema)
        return BoundParameter(
            name=spec.name,
            location=spec.location,
            schema=schema,
            shape=spec.shape,
            required=spec.required,
            default=default,
            description=spec.description,
            example=to_jsonable(spec.example),
            deprecated=spec.deprecated,
        )

    def _shape_parameters(
        self, location: str, shape: Any  # noqa: ANN401
    ) -> tuple[BoundParameter, ...]:
        descriptor = describe(shape)
        if descriptor.kind is not Kind.OBJECT:
            raise RouteConfigurationError(
                f"The {location} shape must be an object type",
                {"shape": descriptor.name},
            )
        result = []
        for field_descriptor in descriptor.fields:
            schema = self._registry.field_schema(field_descriptor)
            self._check_parameter_schema(location, field_descriptor.name, schema)
            result.append(
                BoundParameter(
                    name=field_descriptor.name,
                    location=location,
                    schema=schema,
                    shape=field_descriptor.annotation,
                    required=field_descriptor.required,
                    default=field_descriptor.default,
                    description=field_descriptor.meta.description,
                    example=to_jsonable(field_descriptor.meta.example),
                    deprecated=bool(field_descriptor.meta.deprecated),
                )
            )
        return tuple(result)

    def _check_parameter_schema(
        self, location: str, name: str, schema: SchemaOrRef
    ) -> None:
        """Parameters must be scalars, or arrays of scalars outside the path."""
        resolved = self._registry.deref(schema)
        if self._is_scalar(resolved):
            return
        if location != "path" and resolved.type == "array" and resolved.items is not None:
            if self._is_scalar(self._registry.deref(resolved.items)):
                return
        raise RouteConfigurationError(
            f"The {location} parameter '{name}' must be a primitive"
            + (" or an array of primitives" if location != "path" else ""),
            {"location": location, "parameter": name},
        )

    def _is_scalar(self, schema: Schema) -> bool:
        if schema.any_of:
            return all(self._is_scalar(self._registry.deref(m)) for m in schema.any_of)
        schema_type = schema.type
        if isinstance(schema_type, list):
            return all(t in _SCALAR_TYPES or t == "null" for t in schema_type)
        return schema_type in _SCALAR_TYPES or (
            schema_type is None and schema.enum is not None
        )

    def _parameter_object(self, parameter: BoundParameter) -> Parameter:
        explode = None
        if parameter.location == "query":
            resolved = self._registry.deref(parameter.schema)
            if resolved.type == "array":
                explode = True

        return Parameter(
            name=parameter.name,
            in_=parameter.location,
            description=parameter.description,
            required=True if parameter.location == "path" else (parameter.required or None),
            deprecated=parameter.deprecated or None,
            schema_=parameter.schema,
            example=parameter.example,
            explode=explode,
        )

    # Bodies

    def _body(
        self, spec: RequestBody | None
    ) -> tuple[BodyPlan | None, RequestBodyObject | None]:
        if spec is None:
            return None, None
        if not spec.content_types:
            raise RouteConfigurationError("A request body needs a content type")

        schema = self._registry.resolve(spec.shape)
        content_types = tuple(media_type(ct) for ct in spec.content_types)

        request_body = RequestBodyObject(
            description=spec.description,
            content={ct: MediaType(schema_=schema) for ct in content_types},
            required=spec.required or None,
        )
        plan = BodyPlan(
            schema=schema,
            shape=spec.shape,
            content_types=content_types,
            required=spec.required,
        )
        return plan, request_body

    def _response(self, spec: ResponseSpec) -> Response | Reference:
        if spec.ref is not None:
            return Reference(
                ref=f"{RESPONSE_REF_PREFIX}{spec.ref}", description=spec.description or None
            )
        content = None
        if spec.shape is not None:
            content = {
                spec.content_type: MediaType(schema_=self._registry.resolve(spec.shape))
            }
        return Response(description=spec.description, content=content)

