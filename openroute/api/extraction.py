"""Typed result of request validation, handed to route handlers."""

from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True)
class SecurityGrant:
    """A security scheme that authorized the request.

    Attributes:
        credential: The credential read from the request (API key, bearer
            token, or ``user:password`` for HTTP basic).
        scopes: Scopes required by the matched requirement.
    """

    credential: str
    scopes: tuple[str, ...] = ()


@dataclass
class Extraction:
    """Values extracted and validated from one request.

    ``path``, ``query`` and ``headers`` hold the declared shape instance when
    a shape was declared for the location, otherwise a dict keyed by parameter
    name. ``body`` is the bound request body, or ``None`` when none was
    declared or sent. ``security`` maps each scheme of the satisfied
    requirement to its grant; it is empty for anonymous access to routes with
    optional security.
    """

    path: Any = field(default_factory=dict)
    query: Any = field(default_factory=dict)
    headers: Any = field(default_factory=dict)
    cookies: dict[str, Any] = field(default_factory=dict)
    body: Any = None
    security: dict[str, SecurityGrant] = field(default_factory=dict)

    @property
    def authenticated(self) -> bool:
        """Whether any security scheme matched."""
        return bool(self.security)
