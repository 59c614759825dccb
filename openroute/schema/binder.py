"""Binding of validated data to declared shapes.

``bind`` turns a value that already passed schema validation into an instance
of the annotation it was declared with: dataclasses are constructed, pydantic
models go through ``model_validate``, TypedDicts become plain dicts keyed by
attribute name, and strings carrying dates, times, UUIDs or decimals are
parsed. Wire names are mapped back to attribute names on the way.

Union values are bound to the first member they match. The request validator
matches members against their schemas; without a matcher a structural check
on the descriptor is used.
"""

import datetime
import decimal
import uuid
from collections.abc import Callable
from typing import Any, is_typeddict

import pydantic
from pydantic import BaseModel

from openroute.core.exceptions import ValidationFailedError
from openroute.schema.descriptor import MISSING, Kind, TypeDescriptor, describe

# Receives a value and a union member annotation
type MemberMatcher = Callable[[Any, Any], bool]

_PARSERS: dict[type, Callable[[Any], Any]] = {
    datetime.datetime: datetime.datetime.fromisoformat,
    datetime.date: datetime.date.fromisoformat,
    datetime.time: datetime.time.fromisoformat,
    uuid.UUID: uuid.UUID,
    decimal.Decimal: lambda value: decimal.Decimal(str(value)),
    float: float,
    bytes: lambda value: value.encode() if isinstance(value, str) else value,
}

_JSON_TYPES: dict[str, tuple[type, ...]] = {
    "string": (str,),
    "integer": (int,),
    "number": (int, float),
    "boolean": (bool,),
}


def bind(
    value: Any,  # noqa: ANN401
    annotation: Any,  # noqa: ANN401
    path: str = "body",
    matches: MemberMatcher | None = None,
) -> Any:  # noqa: ANN401
    """Build an instance of ``annotation`` from validated data.

    Args:
        value: JSON-compatible data that satisfies the schema of ``annotation``.
        annotation: The declared shape.
        path: Location of the value, used when construction fails.
        matches: Decides which union member a value belongs to; defaults to
            ``fits``.

    Returns:
        Any: The bound value.

    Raises:
        ValidationFailedError: If the shape rejects the data (a pydantic
            validator or a ``__post_init__`` check, for instance).
    """
    return _bind(value, describe(annotation), path, matches or fits)


def fits(value: Any, annotation: Any) -> bool:  # noqa: ANN401
    """Whether ``value`` has the structure of ``annotation``.

    Checks JSON types, enum members and the presence of required object
    fields; bounds and formats are left to the schema validator.
    """
    return _fits(value, describe(annotation))


def _fits(value: Any, descriptor: TypeDescriptor) -> bool:  # noqa: ANN401, PLR0911
    match descriptor.kind:
        case Kind.ANY:
            return True
        case Kind.NULL:
            return value is None
        case Kind.OPTIONAL:
            return value is None or _fits(value, descriptor.element_descriptor)
        case Kind.UNION:
            return any(_fits(value, describe(member)) for member in descriptor.members)
        case Kind.ENUM:
            return value in descriptor.members
        case Kind.ARRAY:
            return isinstance(value, list)
        case Kind.MAP:
            return isinstance(value, dict)
        case Kind.OBJECT:
            return isinstance(value, dict) and all(
                field.name in value for field in descriptor.fields if field.required
            )
        case Kind.PRIMITIVE:
            if isinstance(value, bool) and descriptor.schema_type != "boolean":
                return False
            return isinstance(value, _JSON_TYPES.get(descriptor.schema_type or "", ()))
    return False


def _bind(  # noqa: PLR0911
    value: Any,  # noqa: ANN401
    descriptor: TypeDescriptor,
    path: str,
    matches: MemberMatcher,
) -> Any:  # noqa: ANN401
    if value is None:
        return None

    match descriptor.kind:
        case Kind.OBJECT:
            return _bind_object(value, descriptor, path, matches)
        case Kind.ARRAY:
            element = descriptor.element_descriptor
            items = [
                _bind(item, element, f"{path}.{index}", matches)
                for index, item in enumerate(value)
            ]
            return descriptor.container(items) if descriptor.container else items
        case Kind.MAP:
            element = descriptor.element_descriptor
            return {
                key: _bind(item, element, f"{path}.{key}", matches)
                for key, item in value.items()
            }
        case Kind.OPTIONAL:
            return _bind(value, descriptor.element_descriptor, path, matches)
        case Kind.UNION:
            for member in descriptor.members:
                if matches(value, member):
                    return _bind(value, describe(member), path, matches)
            return value
        case Kind.ENUM if descriptor.python_type is not None:
            return descriptor.python_type(value)
        case Kind.PRIMITIVE:
            parser = _PARSERS.get(descriptor.python_type)
            if parser is None or isinstance(value, descriptor.python_type):
                return value
            try:
                return parser(value)
            except (ValueError, decimal.InvalidOperation) as e:
                raise ValidationFailedError(
                    path, "format", f"'{path}' cannot be read as {descriptor.name}", cause=e
                ) from e
    return value


def _bind_object(
    value: dict[str, Any],
    descriptor: TypeDescriptor,
    path: str,
    matches: MemberMatcher,
) -> Any:  # noqa: ANN401
    cls = descriptor.python_type

    if isinstance(cls, type) and issubclass(cls, BaseModel):
        # Defaults given only through metadata are unknown to pydantic
        missing = {
            field.name: field.default
            for field in descriptor.fields
            if field.name not in value
            and field.default is not MISSING
            and cls.model_fields[field.attribute].is_required()
        }
        try:
            return cls.model_validate({**missing, **value})
        except pydantic.ValidationError as e:
            location = ".".join(str(part) for part in e.errors()[0]["loc"])
            field = f"{path}.{location}" if location else path
            raise ValidationFailedError(
                field, "model", e.errors()[0]["msg"], cause=e
            ) from e

    kwargs: dict[str, Any] = {}
    for field in descriptor.fields:
        if field.name in value:
            kwargs[field.attribute] = _bind(
                value[field.name], field.descriptor, f"{path}.{field.name}", matches
            )
        elif (
            not field.required
            and field.default is MISSING
            and field.default_factory is MISSING
            and not is_typeddict(cls)
        ):
            # Optional field without a default: absent means None
            kwargs[field.attribute] = None
        elif field.default is not MISSING:
            kwargs[field.attribute] = field.default

    if cls is None or is_typeddict(cls):
        return kwargs
    try:
        return cls(**kwargs)
    except (TypeError, ValueError) as e:
        raise ValidationFailedError(path, "model", str(e), cause=e) from e
