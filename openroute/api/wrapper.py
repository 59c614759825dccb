"""The API wrapper: one declaration, a document and a validated router.

``ApiWrapper`` owns a ``Document`` and a Starlette application. Every route
registered through it is written to the document and mounted on the
application behind the validation middleware, so the published contract and
the enforced one come from the same declaration::

    api = ApiWrapper("Petstore", "1.0.0")
    api.add_security_scheme("api_key", SecurityScheme(type="apiKey", in_="header", name="X-API-Key"))
    api.get("/pets/{id:int}", get_pet, path_parameters=[PathParameter("id", int)])
    api.serve_yaml("/openapi.yml")

The wrapper is itself an ASGI application. The document is finalized when the
application receives its first event, or explicitly with ``finalize``; after
that nothing can be registered.
"""

from collections.abc import Callable, Sequence
from pathlib import Path
from typing import Any

from loguru import logger
from starlette.applications import Starlette
from starlette.requests import Request
from starlette.responses import Response
from starlette.routing import Route
from starlette.types import Receive, Scope, Send

from openroute.api.extraction import Extraction
from openroute.api.group import GroupWrapper, RouteRegistrar
from openroute.api.middleware.error_handler import register_exception_handlers
from openroute.api.middleware.request_context import RequestContextMiddleware
from openroute.api.middleware.validation import (
    Handler,
    Middleware,
    RequestValidator,
    validation_middleware,
)
from openroute.api.paths import derive_operation_id, join_paths, route_to_openapi
from openroute.api.route import OperationBuilder, RouteConfig, RouteWrapper
from openroute.api.security import CredentialValidator, RegisteredScheme
from openroute.core.config import Settings, get_settings
from openroute.core.constants import HTTP_METHODS, RESPONSE_REF_PREFIX
from openroute.core.context import RequestContext
from openroute.core.error_context import register_sensitive_field
from openroute.core.exceptions import RouteConfigurationError
from openroute.core.types import SecurityRequirement
from openroute.openapi.document import Document, DocumentFilter
from openroute.openapi.models import (
    MediaType,
    Reference,
    Response as ResponseObject,
    Schema,
    SchemaOrRef,
    SecurityScheme,
    Server,
    Tag,
)
from openroute.schema.validator import SchemaValidator

YAML_CONTENT_TYPE = "application/yaml"


class ApiWrapper(RouteRegistrar):
    """Declares routes once for both the document and the router.

    Args:
        title: API title.
        version: API version.
        description: Long description of the API.
        settings: Wrapper settings; defaults to ``get_settings()``.
    """

    def __init__(
        self,
        title: str,
        version: str,
        *,
        description: str | None = None,
        settings: Settings | None = None,
    ) -> None:
        self.settings = settings or get_settings()
        self.document = Document(
            title,
            version,
            openapi_version=self.settings.openapi_version,
            description=description,
        )
        self.routes: list[RouteWrapper] = []

        self._schemes: dict[str, RegisteredScheme] = {}
        self._validator = SchemaValidator(self.document.registry)
        self._builder = OperationBuilder(
            self.document.registry, self._schemes, self.settings.max_body_size
        )

        # Starlette's debug page would bypass the error handlers
        self.engine = Starlette(debug=False)
        self.engine.state.settings = self.settings
        register_exception_handlers(self.engine)
        if not self.settings.disable_default_middleware:
            self.engine.add_middleware(
                RequestContextMiddleware, request_timeout=self.settings.request_timeout
            )

    # Document metadata

    def set_description(self, description: str) -> None:
        """Set the long description of the API."""
        self.document.set_description(description)

    def set_terms_of_service(self, url: str) -> None:
        """Set the terms of service URL."""
        self.document.set_terms_of_service(url)

    def set_contact(
        self, name: str | None = None, url: str | None = None, email: str | None = None
    ) -> None:
        """Set the contact information of the API."""
        self.document.set_contact(name=name, url=url, email=email)

    def set_license(
        self, name: str, url: str | None = None, identifier: str | None = None
    ) -> None:
        """Set the license of the API."""
        self.document.set_license(name, url=url, identifier=identifier)

    def add_server(self, url: str, description: str | None = None) -> Server:
        """Add a server to the document."""
        return self.document.add_server(url, description)

    def add_tag(self, name: str, description: str | None = None) -> Tag:
        """Declare a tag with a description."""
        return self.document.add_tag(name, description)

    # Components

    def add_security_scheme(
        self,
        name: str,
        scheme: SecurityScheme,
        validator: CredentialValidator | None = None,
    ) -> None:
        """Register a security scheme.

        Args:
            name: Component name used in security requirements.
            scheme: The scheme as published in the document.
            validator: Called with the credential and the required scopes;
                a falsy result rejects the request. Without a validator any
                present credential is accepted.

        Raises:
            DuplicateComponentError: If the name is already registered.
        """
        self.document.add_security_scheme(name, scheme)
        self._schemes[name] = RegisteredScheme(name, scheme, validator)
        if scheme.type == "apiKey" and scheme.name:
            register_sensitive_field(scheme.name)

    def add_response(
        self,
        name: str,
        description: str,
        shape: Any = None,  # noqa: ANN401
        content_type: str = "application/json",
    ) -> Reference:
        """Register a reusable response, optionally with a body shape.

        Returns:
            Reference: Reference to the registered response.

        Raises:
            RouteConfigurationError: If the document is finalized.
        """
        self.document.ensure_mutable()
        content = None
        if shape is not None:
            content = {content_type: MediaType(schema_=self.to_schema(shape))}
        self.document.add_response(
            name, ResponseObject(description=description, content=content)
        )
        return Reference(ref=f"{RESPONSE_REF_PREFIX}{name}")

    def add_schema(self, name: str, schema: Schema) -> Reference:
        """Register a hand-written schema component."""
        self.document.add_schema(name, schema)
        return Reference.to_schema(name)

    def to_schema(self, shape: Any) -> SchemaOrRef:  # noqa: ANN401
        """Resolve a type to a schema, registering named object types.

        Raises:
            RouteConfigurationError: If the document is finalized.
        """
        self.document.ensure_mutable()
        return self.document.registry.resolve(shape)

    # Routes

    def group(
        self,
        prefix: str,
        *,
        tags: Sequence[str] = (),
        security: Sequence[SecurityRequirement] = (),
        middleware: Sequence[Middleware] = (),
    ) -> GroupWrapper:
        """Create a group whose routes share a prefix and defaults."""
        return GroupWrapper(
            self, prefix, tags=tags, security=security, middleware=middleware
        )

    def add(
        self, method: str, path: str, handler: Handler, **config: Any  # noqa: ANN401
    ) -> RouteWrapper:
        """Register a route.

        Args:
            method: HTTP method.
            path: Starlette path template, e.g. ``/items/{id:int}``.
            handler: ``async (request, extraction) -> Response``.
            **config: Route configuration: ``tags``, ``summary``,
                ``description``, ``operation_id``, ``deprecated``,
                ``path_parameters``, ``path``, ``query``, ``headers``,
                ``parameters``, ``request_body``, ``responses``, ``security``,
                ``optional_security``, ``middleware`` and ``validate``.

        Returns:
            RouteWrapper: The registered route.

        Raises:
            BuildError: If the configuration is inconsistent with itself or
                with the document.
        """
        return self.register(method, path, handler, config)

    def register(
        self,
        method: str,
        path: str,
        handler: Handler,
        config: dict[str, Any],
        group: GroupWrapper | None = None,
    ) -> RouteWrapper:
        """Merge group defaults into a route configuration and register it.

        Nothing reaches the document, its schema registry or the router once
        the document is finalized.
        """
        self.document.ensure_mutable()
        method = method.upper()
        if method.lower() not in HTTP_METHODS:
            raise RouteConfigurationError(
                f"Unsupported HTTP method {method}", {"method": method}
            )
        try:
            route_config = RouteConfig(**config)
        except TypeError as e:
            raise RouteConfigurationError(
                f"Invalid route configuration for {method} {path}: {e}",
                {"method": method, "path": path},
            ) from e

        if group is not None:
            route_config.tags = [*group.tags, *route_config.tags]
            route_config.security = [*group.security, *route_config.security]
            route_config.middleware = [*group.middleware, *route_config.middleware]

        document_path, _ = route_to_openapi(path)
        operation_id = route_config.operation_id or derive_operation_id(
            method, document_path
        )
        operation, plan = self._builder.build(document_path, operation_id, route_config)
        self.document.add_operation(document_path, method.lower(), operation)

        middleware: list[Middleware] = []
        validated = route_config.validate and not self.settings.disable_default_middleware
        if validated:
            middleware.append(
                validation_middleware(RequestValidator(plan, self._validator))
            )
        middleware.extend(route_config.middleware)

        chain = handler
        for wrap in reversed(middleware):
            chain = wrap(chain)

        router_path = join_paths(self.settings.base_url, path)
        route = Route(
            router_path,
            endpoint=self._endpoint(chain, operation_id),
            methods=[method],
            name=operation_id,
        )
        self._mount(route, method)

        wrapper = RouteWrapper(
            method=method,
            path=document_path,
            router_path=router_path,
            operation=operation,
            handler=handler,
            chain=chain,
            plan=plan if validated else None,
            route=route,
        )
        self.routes.append(wrapper)
        logger.debug(
            "Registered route {} {} as {}",
            method,
            router_path,
            operation_id,
            validated=validated,
        )
        return wrapper

    def _mount(self, route: Route, method: str) -> None:
        """Add a route to the router.

        Starlette lets a GET route answer HEAD as well, so an explicit HEAD
        route is placed ahead of the GET route of the same path.
        """
        routes = self.engine.router.routes
        if method == "HEAD":
            for index, existing in enumerate(routes):
                if (
                    isinstance(existing, Route)
                    and existing.path == route.path
                    and "GET" in (existing.methods or ())
                ):
                    routes.insert(index, route)
                    return
        routes.append(route)

    @staticmethod
    def _endpoint(chain: Handler, operation_id: str) -> Callable[[Request], Any]:
        async def endpoint(request: Request) -> Response:
            RequestContext.set_operation_id(operation_id)
            return await chain(request, Extraction())

        return endpoint

    def url_path_for(self, operation_id: str, **path_params: Any) -> str:  # noqa: ANN401
        """Build the URL path of a route from its operation id."""
        return str(self.engine.url_path_for(operation_id, **path_params))

    # Document lifecycle and export

    def finalize(self) -> None:
        """Check references and freeze the document."""
        self.document.finalize()

    def to_dict(self, *filters: DocumentFilter) -> dict[str, Any]:
        """Return the document as plain data."""
        return self.document.to_dict(*filters)

    def to_json(self, *filters: DocumentFilter) -> str:
        """Return the document as JSON."""
        return self.document.to_json(*filters)

    def to_yaml(self, *filters: DocumentFilter) -> str:
        """Return the document as YAML."""
        return self.document.to_yaml(*filters)

    def write_json(self, path: str | Path, *filters: DocumentFilter) -> None:
        """Write the document to a JSON file."""
        self.document.write_json(path, *filters)

    def write_yaml(self, path: str | Path, *filters: DocumentFilter) -> None:
        """Write the document to a YAML file."""
        self.document.write_yaml(path, *filters)

    def serve_json(self, path: str, *filters: DocumentFilter) -> Route:
        """Serve the document as JSON at ``path``.

        The document is finalized and rendered once, here. The serving route
        is mounted on the router only, so it never appears in the document.
        """
        self.finalize()
        return self._serve(path, self.document.to_json_bytes(*filters), "application/json")

    def serve_yaml(self, path: str, *filters: DocumentFilter) -> Route:
        """Serve the document as YAML at ``path``; see ``serve_json``."""
        self.finalize()
        return self._serve(
            path, self.document.to_yaml(*filters).encode(), YAML_CONTENT_TYPE
        )

    def _serve(self, path: str, content: bytes, media_type: str) -> Route:
        async def serve_document(_: Request) -> Response:
            return Response(content, media_type=media_type)

        route = Route(
            join_paths(self.settings.base_url, path),
            endpoint=serve_document,
            methods=["GET"],
            include_in_schema=False,
        )
        self.engine.router.routes.append(route)
        logger.debug("Serving document at {} as {}", route.path, media_type)
        return route

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        """Run the application, finalizing the document on first use."""
        if not self.document.finalized:
            self.finalize()
        await self.engine(scope, receive, send)
