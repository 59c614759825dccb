"""The OpenAPI document under construction.

A ``Document`` owns the ``OpenAPI`` model and the ``SchemaRegistry`` that
writes into its components. It is mutated while routes are registered and
frozen by ``finalize``, which also checks that every ``$ref`` and every
security requirement resolves to a registered component.

Export never touches the canonical model: filters receive a deep copy, and the
JSON and YAML renditions are produced from the same plain dict so that loading
either one back yields the same data.
"""

from collections.abc import Callable, Iterator
from pathlib import Path
from typing import Any

import orjson
import yaml
from loguru import logger

from openroute.core.constants import (
    DEFAULT_OPENAPI_VERSION,
    RESPONSE_REF_PREFIX,
    SCHEMA_REF_PREFIX,
    YAML_HEADER,
)
from openroute.core.exceptions import (
    DuplicateComponentError,
    DuplicateOperationIdError,
    DuplicateRouteError,
    RouteConfigurationError,
    UnresolvedReferenceError,
)
from openroute.core.types import SecurityRequirement
from openroute.openapi.models import (
    Contact,
    Info,
    License,
    OpenAPI,
    Operation,
    PathItem,
    Response,
    Schema,
    SecurityScheme,
    Server,
    Tag,
)
from openroute.schema.registry import SchemaRegistry

# A filter edits the copy it receives, or returns a replacement for it
type DocumentFilter = Callable[[OpenAPI], OpenAPI | None]


def _iter_refs(node: Any, pointer: str = "#") -> Iterator[tuple[str, str]]:  # noqa: ANN401
    """Yield ``(ref, location)`` for every ``$ref`` in a dumped document."""
    if isinstance(node, dict):
        ref = node.get("$ref")
        if isinstance(ref, str):
            yield ref, pointer
        for key, value in node.items():
            yield from _iter_refs(value, f"{pointer}/{key}")
    elif isinstance(node, list):
        for index, value in enumerate(node):
            yield from _iter_refs(value, f"{pointer}/{index}")


class Document:
    """An OpenAPI document and its schema registry.

    Args:
        title: API title.
        version: API version.
        openapi_version: Version of the OpenAPI format.
        description: Long description of the API.
    """

    def __init__(
        self,
        title: str,
        version: str,
        openapi_version: str = DEFAULT_OPENAPI_VERSION,
        description: str | None = None,
    ) -> None:
        self.model = OpenAPI(
            openapi=openapi_version,
            info=Info(title=title, version=version, description=description),
        )
        self.registry = SchemaRegistry(self.model.components)
        self._operation_ids: dict[str, tuple[str, str]] = {}
        self._finalized = False

    @property
    def finalized(self) -> bool:
        """Whether ``finalize`` has run."""
        return self._finalized

    def ensure_mutable(self) -> None:
        """Raise if the document is finalized.

        Raises:
            RouteConfigurationError: Once ``finalize`` has run.
        """
        if self._finalized:
            raise RouteConfigurationError("The document is finalized and read-only")

    # Info metadata

    def set_description(self, description: str) -> None:
        """Set the long description of the API."""
        self.ensure_mutable()
        self.model.info.description = description

    def set_terms_of_service(self, url: str) -> None:
        """Set the terms of service URL."""
        self.ensure_mutable()
        self.model.info.terms_of_service = url

    def set_contact(
        self, name: str | None = None, url: str | None = None, email: str | None = None
    ) -> None:
        """Set the contact information of the API."""
        self.ensure_mutable()
        self.model.info.contact = Contact(name=name, url=url, email=email)

    def set_license(
        self, name: str, url: str | None = None, identifier: str | None = None
    ) -> None:
        """Set the license of the API."""
        self.ensure_mutable()
        self.model.info.license = License(name=name, url=url, identifier=identifier)

    def add_server(self, url: str, description: str | None = None) -> Server:
        """Append a server to the document."""
        self.ensure_mutable()
        server = Server(url=url, description=description)
        self.model.servers = [*(self.model.servers or []), server]
        return server

    def add_tag(self, name: str, description: str | None = None) -> Tag:
        """Declare a tag with a description.

        Raises:
            DuplicateComponentError: If the tag is already declared.
        """
        self.ensure_mutable()
        tags = self.model.tags or []
        if any(tag.name == name for tag in tags):
            raise DuplicateComponentError("tag", name)
        tag = Tag(name=name, description=description)
        self.model.tags = [*tags, tag]
        return tag

    # Components

    def add_security_scheme(self, name: str, scheme: SecurityScheme) -> None:
        """Register a security scheme component.

        Raises:
            DuplicateComponentError: If the name is already registered.
        """
        self.ensure_mutable()
        schemes = self.model.components.security_schemes
        if name in schemes:
            raise DuplicateComponentError("securityScheme", name)
        schemes[name] = scheme

    def add_response(self, name: str, response: Response) -> None:
        """Register a response component.

        Raises:
            DuplicateComponentError: If the name is already registered.
        """
        self.ensure_mutable()
        responses = self.model.components.responses
        if name in responses:
            raise DuplicateComponentError("response", name)
        responses[name] = response

    def add_schema(self, name: str, schema: Schema) -> None:
        """Register a hand-written schema component."""
        self.ensure_mutable()
        self.registry.add(name, schema)

    # Paths

    def add_operation(self, path: str, method: str, operation: Operation) -> None:
        """Place an operation in the slot for ``method`` under ``path``.

        Args:
            path: Path template in document syntax (``/items/{id}``).
            method: Lower-case HTTP method.
            operation: The operation; its id must be unique in the document.

        Raises:
            DuplicateRouteError: If the slot is already taken.
            DuplicateOperationIdError: If the operation id is already used.
        """
        self.ensure_mutable()
        item = self.model.paths.get(path)
        if item is not None and getattr(item, method) is not None:
            raise DuplicateRouteError(method.upper(), path)

        operation_id = operation.operation_id
        if operation_id is not None:
            if operation_id in self._operation_ids:
                raise DuplicateOperationIdError(operation_id, method.upper(), path)
            self._operation_ids[operation_id] = (method, path)

        if item is None:
            item = self.model.paths[path] = PathItem()
        setattr(item, method, operation)

    def get_operation(self, path: str, method: str) -> Operation | None:
        """Return the operation registered for ``method`` and ``path``."""
        item = self.model.paths.get(path)
        return getattr(item, method) if item is not None else None

    # Finalization

    def finalize(self) -> None:
        """Check cross references and freeze the document.

        Idempotent. Every ``$ref`` must resolve to a registered schema or
        response, and every scheme named in a security requirement must be a
        registered security scheme.

        Raises:
            UnresolvedReferenceError: On the first dangling reference.
        """
        if self._finalized:
            return

        components = self.model.components
        for ref, location in _iter_refs(self._dump(self.model)):
            if ref.startswith(SCHEMA_REF_PREFIX):
                known = ref.removeprefix(SCHEMA_REF_PREFIX) in components.schemas
            elif ref.startswith(RESPONSE_REF_PREFIX):
                known = ref.removeprefix(RESPONSE_REF_PREFIX) in components.responses
            else:
                known = False
            if not known:
                raise UnresolvedReferenceError(ref, location)

        self._check_security(self.model.security, "#/security")
        for path, item in self.model.paths.items():
            for method, operation in item.operations().items():
                self._check_security(operation.security, f"{method.upper()} {path}")

        self._finalized = True
        self.registry.freeze()
        logger.info(
            "Finalized document {} with {} paths and {} schemas",
            self.model.info.title,
            len(self.model.paths),
            len(components.schemas),
        )

    def _check_security(
        self, requirements: list[SecurityRequirement] | None, where: str
    ) -> None:
        schemes = self.model.components.security_schemes
        for requirement in requirements or ():
            for name in requirement:
                if name not in schemes:
                    raise UnresolvedReferenceError(
                        f"#/components/securitySchemes/{name}", where
                    )

    # Export

    def render(self, *filters: DocumentFilter) -> OpenAPI:
        """Return a deep copy of the model with ``filters`` applied in order."""
        model = self.model.model_copy(deep=True)
        for apply in filters:
            result = apply(model)
            if result is not None:
                model = result
        return model

    @staticmethod
    def _dump(model: OpenAPI) -> dict[str, Any]:
        data = model.model_dump(mode="json", by_alias=True, exclude_none=True)
        components = {
            key: value for key, value in data.get("components", {}).items() if value
        }
        if components:
            data["components"] = components
        else:
            data.pop("components", None)
        return data

    def to_dict(self, *filters: DocumentFilter) -> dict[str, Any]:
        """Return the document as plain JSON-compatible data."""
        return self._dump(self.render(*filters))

    def to_json_bytes(self, *filters: DocumentFilter) -> bytes:
        """Return the document as indented JSON bytes."""
        return orjson.dumps(self.to_dict(*filters), option=orjson.OPT_INDENT_2)

    def to_json(self, *filters: DocumentFilter) -> str:
        """Return the document as indented JSON text."""
        return self.to_json_bytes(*filters).decode()

    def to_yaml(self, *filters: DocumentFilter) -> str:
        """Return the document as YAML, preceded by a generated-file comment."""
        body = yaml.safe_dump(
            self.to_dict(*filters), sort_keys=False, allow_unicode=True
        )
        return f"{YAML_HEADER}{body}"

    def write_json(self, path: str | Path, *filters: DocumentFilter) -> None:
        """Write the JSON rendition to ``path``."""
        Path(path).write_bytes(self.to_json_bytes(*filters))
        logger.info("Wrote OpenAPI document to {}", path)

    def write_yaml(self, path: str | Path, *filters: DocumentFilter) -> None:
        """Write the YAML rendition to ``path``."""
        Path(path).write_text(self.to_yaml(*filters), encoding="utf-8")
        logger.info("Wrote OpenAPI document to {}", path)
