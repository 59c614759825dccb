"""Path template translation between the router and the document.

Routes are registered with Starlette templates, where a placeholder may carry
a convertor (``/items/{id:int}``). The document only knows ``{id}``. The
translation returns the convertor map alongside the document path so the
reverse direction loses nothing.
"""

import re

from openroute.core.exceptions import AmbiguousPathParameterError

_PLACEHOLDER = re.compile(r"{([a-zA-Z_][a-zA-Z0-9_]*)(?::([a-zA-Z_][a-zA-Z0-9_]*))?}")
_WORD_SPLIT = re.compile(r"[^A-Za-z0-9]+")


def route_to_openapi(path: str) -> tuple[str, dict[str, str]]:
    """Translate a router template to document syntax.

    Args:
        path: Starlette path template, e.g. ``/items/{id:int}``.

    Returns:
        tuple[str, dict[str, str]]: The document path (``/items/{id}``) and the
            convertor of every placeholder that declared one.

    Raises:
        AmbiguousPathParameterError: If a placeholder name appears twice.
    """
    placeholders(path)
    convertors: dict[str, str] = {}
    for match in _PLACEHOLDER.finditer(path):
        name, convertor = match.group(1), match.group(2)
        if convertor:
            convertors[name] = convertor
    return _PLACEHOLDER.sub(r"{\1}", path), convertors


def openapi_to_route(path: str, convertors: dict[str, str] | None = None) -> str:
    """Translate a document path back to a router template.

    Args:
        path: Document path, e.g. ``/items/{id}``.
        convertors: Convertors returned by ``route_to_openapi``.

    Returns:
        str: The router template.
    """
    convertors = convertors or {}

    def _restore(match: re.Match[str]) -> str:
        name = match.group(1)
        convertor = convertors.get(name)
        return f"{{{name}:{convertor}}}" if convertor else f"{{{name}}}"

    return _PLACEHOLDER.sub(_restore, path)


def placeholders(path: str) -> list[str]:
    """Return the placeholder names of a template, in order.

    Raises:
        AmbiguousPathParameterError: If a name appears more than once.
    """
    names = [match.group(1) for match in _PLACEHOLDER.finditer(path)]
    duplicates = sorted({name for name in names if names.count(name) > 1})
    if duplicates:
        raise AmbiguousPathParameterError(
            path, f"Placeholder repeated in path: {', '.join(duplicates)}", duplicates
        )
    return names


def join_paths(prefix: str, path: str) -> str:
    """Join a group prefix and a route path without doubling slashes."""
    if not prefix:
        return path or "/"
    if not path or path == "/":
        return prefix.rstrip("/") or "/"
    return f"{prefix.rstrip('/')}/{path.lstrip('/')}"


def _camel(word: str) -> str:
    return word[:1].upper() + word[1:]


def derive_operation_id(method: str, path: str) -> str:
    """Derive an operation id from a method and a document path.

    Static segments are appended in CamelCase, placeholders as ``By<Name>``:
    ``GET /items/{id}`` becomes ``getItemsById``.
    """
    parts = [method.lower()]
    for segment in path.strip("/").split("/"):
        if not segment:
            continue
        match = _PLACEHOLDER.fullmatch(segment)
        if match:
            words = _WORD_SPLIT.split(match.group(1))
            parts.append("By" + "".join(_camel(word) for word in words if word))
        else:
            parts.extend(_camel(word) for word in _WORD_SPLIT.split(segment) if word)
    if len(parts) == 1:
        parts.append("Root")
    return "".join(parts)
