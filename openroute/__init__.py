"""openroute: declare an HTTP API once, publish and enforce it.

Routes, parameters, bodies, responses and security requirements are declared
through ``ApiWrapper``. The same declaration produces an OpenAPI 3.1 document
and a Starlette application that validates every request against it before
the handler runs.

Architecture Overview:
- **schema**: Python types to schemas, validation and binding
- **openapi**: Document model and export
- **api**: Registration API, validation middleware and error responses
- **core**: Configuration, logging, exceptions and request context
"""

from openroute.api.extraction import Extraction, SecurityGrant
from openroute.api.group import GroupWrapper
from openroute.api.route import (
    CookieParameter,
    HeaderParameter,
    PathParameter,
    QueryParameter,
    RequestBody,
    ResponseSpec,
    RouteWrapper,
    response,
    response_body,
    response_ref,
)
from openroute.api.utils.responses import ORJSONResponse
from openroute.api.wrapper import ApiWrapper
from openroute.openapi.models import SecurityScheme
from openroute.schema.meta import Meta

__all__ = [
    "ApiWrapper",
    "CookieParameter",
    "Extraction",
    "GroupWrapper",
    "HeaderParameter",
    "Meta",
    "ORJSONResponse",
    "PathParameter",
    "QueryParameter",
    "RequestBody",
    "ResponseSpec",
    "RouteWrapper",
    "SecurityGrant",
    "SecurityScheme",
    "response",
    "response_body",
    "response_ref",
]
