"""Redaction of credentials in error contexts and log records.

Validation failures are logged with the parameter names and dotted field
paths of the request that failed (``body.user.password``), and security
checks handle credentials directly. Everything keyed by a name that looks
like a credential is replaced with ``[REDACTED]`` before it reaches a log
record or an error body.

A name is sensitive when its last dotted segment matches the built-in
pattern, one of ``LogConfig.sensitive_fields``, or the parameter name of a
registered ``apiKey`` security scheme (see ``register_sensitive_field``).
"""

import re
from functools import lru_cache
from re import Pattern
from typing import Any, Final

from openroute.core.config import get_settings
from openroute.core.constants import REDACTED
from openroute.core.types import ErrorContext

type Redactable = (
    str | int | float | bool | None | dict[str, Any] | list[Any] | tuple[Any, ...]
)

CREDENTIAL_PATTERN: Final[Pattern[str]] = re.compile(
    r"(password|passwd|pwd|secret|token|api[_-]?key|apikey|authorization|"
    r"credential|private[_-]?key|access[_-]?key|session|cookie)",
    re.IGNORECASE,
)

# Attributes of OpenRouteError already rendered elsewhere or too large to log
_SKIPPED_ERROR_ATTRIBUTES = frozenset({"stack_trace", "cause", "context"})

MAX_DEPTH: Final[int] = 10

_registered_fields: set[str] = set()


@lru_cache(maxsize=1)
def _get_sensitive_fields() -> list[str]:
    """Field names configured in ``LogConfig.sensitive_fields``."""
    return get_settings().log_config.sensitive_fields


def register_sensitive_field(name: str) -> None:
    """Treat ``name`` as sensitive from now on.

    Called for the header, query or cookie name of every registered
    ``apiKey`` scheme, whose name may not look like a credential.
    """
    _registered_fields.add(name.lower())


def clear_registered_fields() -> None:
    """Forget names added with ``register_sensitive_field``."""
    _registered_fields.clear()


def is_sensitive_field(name: str) -> bool:
    """Whether a key or dotted field path names a credential.

    Args:
        name: A key (``api_key``) or a dotted path (``body.user.password``).
    """
    leaf = name.rsplit(".", 1)[-1].lower()
    if not leaf:
        return False
    if CREDENTIAL_PATTERN.search(leaf) or leaf in _registered_fields:
        return True
    return any(field.lower() in leaf for field in _get_sensitive_fields())


def redact_value(value: Redactable, key: str = "", depth: int = 0) -> Redactable:
    """Redact ``value`` if ``key`` is sensitive, recursing into containers."""
    if depth > MAX_DEPTH:
        return REDACTED
    if key and is_sensitive_field(key):
        return REDACTED

    match value:
        case dict():
            return {k: redact_value(v, k, depth + 1) for k, v in value.items()}
        case list():
            return [redact_value(item, "", depth + 1) for item in value]
        case tuple():
            return tuple(redact_value(item, "", depth + 1) for item in value)
    return value


def sanitize_dict(data: dict[str, Any]) -> dict[str, Any]:
    """Return a copy of ``data`` with sensitive values redacted."""
    return {key: redact_value(value, key) for key, value in data.items()}


def sanitize_error_context(
    error: Exception, context: ErrorContext | None = None
) -> ErrorContext:
    """Build the log context of an error.

    Public attributes of the exception (``field``, ``constraint``,
    ``location``...) are collected under ``error_attributes``. A field path
    naming a credential is kept, but its attribute value is redacted when the
    attribute itself is sensitive.

    Args:
        error: The exception being logged.
        context: Extra request context, sanitized as well.

    Returns:
        dict[str, Any]: Context safe to pass to the logger.
    """
    error_context: dict[str, Any] = {
        "error_type": type(error).__name__,
        "error_message": str(error),
    }
    if context:
        error_context.update(sanitize_dict(context))

    attributes = {
        key: value
        for key, value in vars(error).items()
        if not key.startswith("_") and key not in _SKIPPED_ERROR_ATTRIBUTES
    }
    if attributes:
        error_context["error_attributes"] = sanitize_dict(attributes)
    return error_context
