"""Pydantic models of the OpenAPI 3.1 document.

Python attribute names are snake_case; the camelCase names of the OpenAPI
format are produced by the alias generator, and the few names that clash with
Python keywords or pydantic internals (``in``, ``schema``, ``$ref``) carry
explicit aliases. Serialize with ``model_dump(by_alias=True, exclude_none=True)``.
"""

from typing import Any, Union

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from openroute.core.constants import HTTP_METHODS, SCHEMA_REF_PREFIX
from openroute.core.types import SecurityRequirement


class OpenAPIModel(BaseModel):
    """Base model for all document objects."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="allow",
        validate_assignment=False,
    )


class Reference(OpenAPIModel):
    """Reference to a reusable component.

    ``description`` may sit next to ``$ref`` in OpenAPI 3.1, so field level
    descriptions survive when a field refers to a registered schema.
    """

    ref: str = Field(alias="$ref")
    summary: str | None = None
    description: str | None = None

    @classmethod
    def to_schema(cls, name: str, description: str | None = None) -> "Reference":
        """Build a reference to ``#/components/schemas/<name>``."""
        return cls(ref=f"{SCHEMA_REF_PREFIX}{name}", description=description)

    @property
    def name(self) -> str:
        """Component name, the last segment of the reference."""
        return self.ref.rsplit("/", 1)[-1]


class Schema(OpenAPIModel):
    """Schema Object (the subset needed for HTTP-bound data)."""

    title: str | None = None
    description: str | None = None
    type: str | list[str] | None = None
    format: str | None = None
    enum: list[Any] | None = None
    const: Any = None
    default: Any = None
    example: Any = None
    deprecated: bool | None = None

    minimum: int | float | None = None
    maximum: int | float | None = None
    exclusive_minimum: int | float | None = None
    exclusive_maximum: int | float | None = None
    multiple_of: int | float | None = None
    min_length: int | None = None
    max_length: int | None = None
    pattern: str | None = None
    min_items: int | None = None
    max_items: int | None = None
    unique_items: bool | None = None

    properties: dict[str, Union["Schema", Reference]] | None = None
    required: list[str] | None = None
    additional_properties: Union[bool, "Schema", Reference, None] = None
    items: Union["Schema", Reference, None] = None
    any_of: list[Union["Schema", Reference]] | None = None


type SchemaOrRef = Schema | Reference


class Contact(OpenAPIModel):
    """Contact Object."""

    name: str | None = None
    url: str | None = None
    email: str | None = None


class License(OpenAPIModel):
    """License Object."""

    name: str
    identifier: str | None = None
    url: str | None = None


class Info(OpenAPIModel):
    """Info Object."""

    title: str
    version: str
    summary: str | None = None
    description: str | None = None
    terms_of_service: str | None = None
    contact: Contact | None = None
    license: License | None = None


class Server(OpenAPIModel):
    """Server Object."""

    url: str
    description: str | None = None


class Tag(OpenAPIModel):
    """Tag Object."""

    name: str
    description: str | None = None


class MediaType(OpenAPIModel):
    """Media Type Object."""

    schema_: Schema | Reference | None = Field(default=None, alias="schema")
    example: Any = None


class Parameter(OpenAPIModel):
    """Parameter Object."""

    name: str
    in_: str = Field(alias="in")
    description: str | None = None
    required: bool | None = None
    deprecated: bool | None = None
    schema_: Schema | Reference | None = Field(default=None, alias="schema")
    example: Any = None
    style: str | None = None
    explode: bool | None = None


class RequestBody(OpenAPIModel):
    """Request Body Object."""

    description: str | None = None
    content: dict[str, MediaType] = Field(default_factory=dict)
    required: bool | None = None


class Response(OpenAPIModel):
    """Response Object."""

    description: str
    content: dict[str, MediaType] | None = None


class OAuthFlow(OpenAPIModel):
    """OAuth Flow Object."""

    authorization_url: str | None = None
    token_url: str | None = None
    refresh_url: str | None = None
    scopes: dict[str, str] = Field(default_factory=dict)


class OAuthFlows(OpenAPIModel):
    """OAuth Flows Object."""

    implicit: OAuthFlow | None = None
    password: OAuthFlow | None = None
    client_credentials: OAuthFlow | None = None
    authorization_code: OAuthFlow | None = None


class SecurityScheme(OpenAPIModel):
    """Security Scheme Object.

    ``type`` is one of ``apiKey``, ``http``, ``oauth2`` or ``openIdConnect``;
    ``in_``/``name`` apply to ``apiKey``, ``scheme``/``bearer_format`` to ``http``.
    """

    type: str
    description: str | None = None
    name: str | None = None
    in_: str | None = Field(default=None, alias="in")
    scheme: str | None = None
    bearer_format: str | None = None
    flows: OAuthFlows | None = None
    open_id_connect_url: str | None = None


class Components(OpenAPIModel):
    """Components Object."""

    schemas: dict[str, Schema] = Field(default_factory=dict)
    responses: dict[str, Response] = Field(default_factory=dict)
    security_schemes: dict[str, SecurityScheme] = Field(default_factory=dict)


class Operation(OpenAPIModel):
    """Operation Object."""

    tags: list[str] | None = None
    summary: str | None = None
    description: str | None = None
    operation_id: str | None = None
    parameters: list[Parameter] | None = None
    request_body: RequestBody | None = None
    responses: dict[str, Response | Reference] = Field(default_factory=dict)
    security: list[SecurityRequirement] | None = None
    deprecated: bool | None = None


class PathItem(OpenAPIModel):
    """Path Item Object."""

    summary: str | None = None
    description: str | None = None
    get: Operation | None = None
    put: Operation | None = None
    post: Operation | None = None
    delete: Operation | None = None
    options: Operation | None = None
    head: Operation | None = None
    patch: Operation | None = None
    trace: Operation | None = None

    def operations(self) -> dict[str, Operation]:
        """Return the populated method slots, in document order."""
        return {
            method: operation
            for method in HTTP_METHODS
            if (operation := getattr(self, method)) is not None
        }


class OpenAPI(OpenAPIModel):
    """OpenAPI Object, the document root."""

    openapi: str
    info: Info
    servers: list[Server] | None = None
    paths: dict[str, PathItem] = Field(default_factory=dict)
    components: Components = Field(default_factory=Components)
    security: list[SecurityRequirement] | None = None
    tags: list[Tag] | None = None


Schema.model_rebuild()
