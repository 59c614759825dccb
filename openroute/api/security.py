"""Security requirement evaluation.

An operation lists alternative requirements; each alternative names one or
more schemes that must all be satisfied. Alternatives are tried in order and
the first one fully satisfied authorizes the request.

A scheme is satisfied when its credential is present where the scheme says it
travels and, if a validator was registered with the scheme, the validator
accepts it. Credentials are read from:

- ``apiKey``: the named header, query parameter or cookie
- ``http``: the ``Authorization`` header with the scheme's prefix
  (``Bearer`` or ``Basic``; basic credentials are decoded to ``user:password``)
- ``oauth2`` and ``openIdConnect``: a bearer token in ``Authorization``

An empty requirement (``{}``) or the optional flag makes authentication
optional: a request without any credential passes, but one carrying a
credential that fails its check, or that cannot be decoded, is still rejected.
"""

import base64
import binascii
import inspect
from collections.abc import Awaitable, Callable, Mapping, Sequence
from dataclasses import dataclass

from loguru import logger
from starlette.requests import Request

from openroute.api.extraction import SecurityGrant
from openroute.core.exceptions import SecurityRequirementsNotMetError
from openroute.core.types import SecurityRequirement
from openroute.openapi.models import SecurityScheme

# Receives the credential and the scopes of the requirement being checked
type CredentialValidator = Callable[[str, Sequence[str]], bool | Awaitable[bool]]


@dataclass(frozen=True)
class RegisteredScheme:
    """A security scheme component and its optional credential validator."""

    name: str
    scheme: SecurityScheme
    validator: CredentialValidator | None = None


def _authorization(request: Request, prefix: str) -> str | None:
    header = request.headers.get("authorization")
    if not header:
        return None
    kind, _, value = header.partition(" ")
    if kind.lower() != prefix.lower() or not value.strip():
        return None
    return value.strip()


class MalformedCredentialError(ValueError):
    """A credential is present but cannot be decoded."""


def _basic_credential(token: str) -> str:
    try:
        decoded = base64.b64decode(token, validate=True).decode("utf-8")
    except (binascii.Error, UnicodeDecodeError) as e:
        raise MalformedCredentialError("Basic credential is not valid base64") from e
    if ":" not in decoded:
        raise MalformedCredentialError("Basic credential has no ':' separator")
    return decoded


def read_credential(request: Request, scheme: SecurityScheme) -> str | None:
    """Read the credential a scheme expects from a request.

    Returns:
        str | None: The credential, or ``None`` when it is absent.

    Raises:
        MalformedCredentialError: If a basic credential is present but cannot
            be decoded to ``user:password``.
    """
    match scheme.type:
        case "apiKey":
            if scheme.name is None:
                return None
            match scheme.in_:
                case "header":
                    return request.headers.get(scheme.name)
                case "query":
                    return request.query_params.get(scheme.name)
                case "cookie":
                    return request.cookies.get(scheme.name)
            return None
        case "http":
            prefix = (scheme.scheme or "bearer").lower()
            token = _authorization(request, prefix)
            if token is not None and prefix == "basic":
                return _basic_credential(token)
            return token
        case "oauth2" | "openIdConnect":
            return _authorization(request, "bearer")
    return None


class SecurityEvaluator:
    """Evaluates the security requirements of one operation.

    Args:
        schemes: Registered schemes by component name.
        requirements: Alternatives in evaluation order.
        optional: Whether anonymous access is allowed.
    """

    def __init__(
        self,
        schemes: Mapping[str, RegisteredScheme],
        requirements: Sequence[SecurityRequirement],
        optional: bool = False,
    ) -> None:
        self._schemes = schemes
        self._alternatives = [req for req in requirements if req]
        self._optional = optional or any(not req for req in requirements)

    @property
    def enabled(self) -> bool:
        """Whether there is anything to check."""
        return bool(self._alternatives)

    async def _check(
        self, registered: RegisteredScheme, credential: str, scopes: Sequence[str]
    ) -> bool:
        if registered.validator is None:
            return True
        result = registered.validator(credential, scopes)
        if inspect.isawaitable(result):
            result = await result
        return bool(result)

    async def evaluate(self, request: Request) -> dict[str, SecurityGrant]:
        """Find the first satisfied alternative.

        Returns:
            dict[str, SecurityGrant]: Grants of the satisfied alternative, or an
                empty dict for anonymous access to optional security.

        Raises:
            SecurityRequirementsNotMetError: If no alternative is satisfied and
                either access is mandatory or a presented credential was
                rejected.
        """
        presented: set[str] = set()
        rejected: set[str] = set()

        for requirement in self._alternatives:
            grants: dict[str, SecurityGrant] = {}
            for name, scopes in requirement.items():
                registered = self._schemes.get(name)
                if registered is None:
                    break
                try:
                    credential = read_credential(request, registered.scheme)
                except MalformedCredentialError:
                    presented.add(name)
                    rejected.add(name)
                    break
                if credential is None:
                    break
                presented.add(name)
                if not await self._check(registered, credential, scopes):
                    rejected.add(name)
                    break
                grants[name] = SecurityGrant(credential, tuple(scopes))
            else:
                return grants

        if self._optional and not rejected:
            return {}

        logger.warning(
            "Security requirements not met for {} {}",
            request.method,
            request.url.path,
            presented=sorted(presented),
            rejected=sorted(rejected),
        )
        raise SecurityRequirementsNotMetError(
            context={
                "alternatives": [sorted(req) for req in self._alternatives],
                "rejected": sorted(rejected),
            }
        )
