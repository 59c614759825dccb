"""Value validation against generated schemas.

The validator checks decoded request data against the same schema fragments
that appear in the document, so the runtime contract and the published one
cannot drift apart. It understands exactly the keywords the walker emits:
``type``, ``format``, ``enum``, numeric and length bounds, ``pattern``, array
bounds, ``properties``/``required``/``additionalProperties`` and ``anyOf``.
References are followed through the schema registry.

String values from the path, query string, headers and cookies are coerced to
the schema type first with ``coerce``. Every failure raises
``ValidationFailedError`` naming the dotted path of the offending value and
the violated constraint; the first failure wins.
"""

import datetime
import math
import re
import uuid
from typing import Any

from openroute.core.exceptions import ValidationFailedError
from openroute.openapi.models import Reference, Schema, SchemaOrRef
from openroute.schema.registry import SchemaRegistry

_INTEGER_PATTERN = re.compile(r"^[+-]?\d+$")
_TRUE_VALUES = frozenset({"true", "1"})
_FALSE_VALUES = frozenset({"false", "0"})
_NULL_SCHEMA = Schema(type="null")


def _is_integer(value: object) -> bool:
    if isinstance(value, bool):
        return False
    if isinstance(value, int):
        return True
    return isinstance(value, float) and value.is_integer()


def _is_number(value: object) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _check_format(value: str, schema_format: str) -> bool:
    """Check the string formats that map to Python types."""
    try:
        match schema_format:
            case "date-time":
                datetime.datetime.fromisoformat(value)
            case "date":
                datetime.date.fromisoformat(value)
            case "time":
                datetime.time.fromisoformat(value)
            case "uuid":
                uuid.UUID(value)
    except ValueError:
        return False
    return True


def _type_name(value: object) -> str:
    match value:
        case None:
            return "null"
        case bool():
            return "boolean"
        case int():
            return "integer"
        case float():
            return "number"
        case str():
            return "string"
        case list():
            return "array"
        case dict():
            return "object"
    return type(value).__name__


class SchemaValidator:
    """Validates and coerces values against schemas of one registry.

    Args:
        registry: Registry used to follow ``$ref`` references.
    """

    def __init__(self, registry: SchemaRegistry) -> None:
        self._registry = registry

    def validate(self, value: Any, schema: SchemaOrRef, path: str) -> Any:  # noqa: ANN401
        """Validate a decoded JSON value.

        Args:
            value: The decoded value.
            schema: Schema or reference it must satisfy.
            path: Dotted location of the value, used in error reports.

        Returns:
            Any: The value, with integral floats normalized to ``int`` where
                the schema asks for integers.

        Raises:
            ValidationFailedError: On the first violated constraint.
        """
        resolved = self._registry.deref(schema)

        if resolved.any_of:
            return self._validate_any_of(value, resolved, path)

        if value is None:
            if resolved.type is None or self._allows_type(resolved, "null"):
                return None
            raise ValidationFailedError(path, "type", f"'{path}' must not be null")

        value = self._validate_type(value, resolved, path)
        self._validate_enum(value, resolved, path)

        if isinstance(value, str):
            self._validate_string(value, resolved, path)
        elif _is_number(value):
            self._validate_number(value, resolved, path)
        elif isinstance(value, list):
            value = self._validate_array(value, resolved, path)
        elif isinstance(value, dict):
            value = self._validate_object(value, resolved, path)
        return value

    def matches(self, value: Any, annotation: Any) -> bool:  # noqa: ANN401
        """Whether ``value`` satisfies the schema of ``annotation``.

        Used to pick the union member a validated value is bound to.
        """
        try:
            self.validate(value, self._registry.resolve(annotation), "")
        except ValidationFailedError:
            return False
        return True

    def coerce(self, raw: str | list[str], schema: SchemaOrRef, path: str) -> Any:  # noqa: ANN401
        """Coerce string input from the request line or headers, then validate.

        Array schemas take every repeated value as one element. Scalar schemas
        take the last value when a key was repeated. A single value is never
        split on delimiters.

        Args:
            raw: One raw string, or every value of a repeated key.
            schema: Schema of the parameter.
            path: Dotted location of the parameter (``query.limit``).

        Returns:
            Any: The typed, validated value.

        Raises:
            ValidationFailedError: If the value cannot be coerced or violates
                the schema.
        """
        resolved = self._registry.deref(schema)
        if resolved.type == "array":
            values = raw if isinstance(raw, list) else [raw]
            items = resolved.items if resolved.items is not None else Schema()
            coerced: Any = [
                self.coerce_scalar(item, items, f"{path}.{index}")
                for index, item in enumerate(values)
            ]
        else:
            value = raw[-1] if isinstance(raw, list) else raw
            coerced = self.coerce_scalar(value, resolved, path)
        return self.validate(coerced, resolved, path)

    def coerce_scalar(self, raw: Any, schema: SchemaOrRef, path: str) -> Any:  # noqa: ANN401
        """Convert one string to the scalar type named by the schema.

        Values that are not strings (already converted by the router) pass
        through unchanged.
        """
        if not isinstance(raw, str):
            return raw
        resolved = self._registry.deref(schema)

        if resolved.any_of:
            for member in resolved.any_of:
                try:
                    return self.validate(self.coerce_scalar(raw, member, path), member, path)
                except ValidationFailedError:
                    continue
            raise ValidationFailedError(
                path, "anyOf", f"'{path}' does not match any allowed type"
            )

        match self._primary_type(resolved):
            case "integer":
                if not _INTEGER_PATTERN.match(raw.strip()):
                    raise ValidationFailedError(
                        path, "type", f"'{path}' must be an integer"
                    )
                return int(raw)
            case "number":
                try:
                    number = float(raw)
                except ValueError as e:
                    raise ValidationFailedError(
                        path, "type", f"'{path}' must be a number", cause=e
                    ) from e
                if not math.isfinite(number):
                    raise ValidationFailedError(
                        path, "type", f"'{path}' must be a finite number"
                    )
                return int(number) if _INTEGER_PATTERN.match(raw.strip()) else number
            case "boolean":
                lowered = raw.strip().lower()
                if lowered in _TRUE_VALUES:
                    return True
                if lowered in _FALSE_VALUES:
                    return False
                raise ValidationFailedError(path, "type", f"'{path}' must be a boolean")
            case "null":
                if raw in ("", "null"):
                    return None
                raise ValidationFailedError(path, "type", f"'{path}' must be null")
        return raw

    @staticmethod
    def _primary_type(schema: Schema) -> str | None:
        if isinstance(schema.type, list):
            return next((t for t in schema.type if t != "null"), None)
        return schema.type

    @staticmethod
    def _allows_type(schema: Schema, name: str) -> bool:
        if isinstance(schema.type, list):
            return name in schema.type
        return schema.type == name

    def _validate_any_of(self, value: Any, schema: Schema, path: str) -> Any:  # noqa: ANN401
        members = schema.any_of or []
        if value is not None:
            members = [m for m in members if m != _NULL_SCHEMA] or members
        if len(members) == 1:
            # Single member wrappers (nullable references) report the inner failure
            return self.validate(value, members[0], path)
        for member in members:
            try:
                return self.validate(value, member, path)
            except ValidationFailedError:
                continue
        raise ValidationFailedError(
            path, "anyOf", f"'{path}' does not match any allowed schema"
        )

    def _validate_type(self, value: Any, schema: Schema, path: str) -> Any:  # noqa: ANN401, C901
        expected = schema.type
        if expected is None:
            return value
        candidates = expected if isinstance(expected, list) else [expected]
        for candidate in candidates:
            match candidate:
                case "integer" if _is_integer(value):
                    return int(value)
                case "number" if _is_number(value):
                    return value
                case "string" if isinstance(value, str):
                    return value
                case "boolean" if isinstance(value, bool):
                    return value
                case "array" if isinstance(value, list):
                    return value
                case "object" if isinstance(value, dict):
                    return value
        raise ValidationFailedError(
            path,
            "type",
            f"'{path}' must be of type {' or '.join(candidates)}, "
            f"got {_type_name(value)}",
        )

    @staticmethod
    def _validate_enum(value: Any, schema: Schema, path: str) -> None:  # noqa: ANN401
        if schema.enum is not None and value not in schema.enum:
            allowed = ", ".join(repr(item) for item in schema.enum)
            raise ValidationFailedError(
                path, "enum", f"'{path}' must be one of {allowed}"
            )

    @staticmethod
    def _validate_string(value: str, schema: Schema, path: str) -> None:
        if schema.min_length is not None and len(value) < schema.min_length:
            raise ValidationFailedError(
                path,
                "minLength",
                f"'{path}' must be at least {schema.min_length} characters",
            )
        if schema.max_length is not None and len(value) > schema.max_length:
            raise ValidationFailedError(
                path,
                "maxLength",
                f"'{path}' must be at most {schema.max_length} characters",
            )
        if schema.pattern is not None and not re.search(schema.pattern, value):
            raise ValidationFailedError(
                path, "pattern", f"'{path}' must match pattern {schema.pattern}"
            )
        if schema.format is not None and not _check_format(value, schema.format):
            raise ValidationFailedError(
                path, "format", f"'{path}' is not a valid {schema.format}"
            )

    @staticmethod
    def _validate_number(value: float, schema: Schema, path: str) -> None:
        checks = (
            ("minimum", schema.minimum, lambda bound: value < bound, ">="),
            ("maximum", schema.maximum, lambda bound: value > bound, "<="),
            ("exclusiveMinimum", schema.exclusive_minimum, lambda bound: value <= bound, ">"),
            ("exclusiveMaximum", schema.exclusive_maximum, lambda bound: value >= bound, "<"),
        )
        for constraint, bound, violated, operator in checks:
            if bound is not None and violated(bound):
                raise ValidationFailedError(
                    path, constraint, f"'{path}' must be {operator} {bound:g}"
                )
        if schema.multiple_of:
            quotient = value / schema.multiple_of
            if not math.isclose(quotient, round(quotient)):
                raise ValidationFailedError(
                    path,
                    "multipleOf",
                    f"'{path}' must be a multiple of {schema.multiple_of:g}",
                )

    def _validate_array(self, value: list[Any], schema: Schema, path: str) -> list[Any]:
        if schema.min_items is not None and len(value) < schema.min_items:
            raise ValidationFailedError(
                path, "minItems", f"'{path}' must have at least {schema.min_items} items"
            )
        if schema.max_items is not None and len(value) > schema.max_items:
            raise ValidationFailedError(
                path, "maxItems", f"'{path}' must have at most {schema.max_items} items"
            )
        if schema.items is not None:
            value = [
                self.validate(item, schema.items, f"{path}.{index}")
                for index, item in enumerate(value)
            ]
        if schema.unique_items:
            seen: list[Any] = []
            for item in value:
                if item in seen:
                    raise ValidationFailedError(
                        path, "uniqueItems", f"'{path}' must not contain duplicates"
                    )
                seen.append(item)
        return value

    def _validate_object(
        self, value: dict[str, Any], schema: Schema, path: str
    ) -> dict[str, Any]:
        properties = schema.properties or {}
        required = set(schema.required or ())
        result: dict[str, Any] = {}

        for name, property_schema in properties.items():
            field_path = f"{path}.{name}"
            if name not in value:
                if name in required:
                    raise ValidationFailedError(
                        field_path, "required", f"'{field_path}' is required"
                    )
                continue
            item = value[name]
            if item is None and name not in required:
                result[name] = None
                continue
            result[name] = self.validate(item, property_schema, field_path)

        extra = schema.additional_properties
        for name, item in value.items():
            if name in properties:
                continue
            field_path = f"{path}.{name}"
            if extra is False:
                raise ValidationFailedError(
                    field_path,
                    "additionalProperties",
                    f"'{field_path}' is not an allowed property",
                )
            if isinstance(extra, (Schema, Reference)):
                result[name] = self.validate(item, extra, field_path)
            else:
                result[name] = item
        return result
