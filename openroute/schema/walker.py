"""Type descriptor walker: descriptors to schema fragments.

The walker is deterministic: the same descriptor always yields an equal
schema. Object types are handed to a ``NamedSchemaResolver`` (the schema
registry) when one is configured, so that they become references to shared
components. Without a resolver objects are expanded inline, and re-entering a
type that is still being expanded emits a reference instead of recursing.
"""

import datetime
import decimal
import enum
import uuid
from collections.abc import Hashable
from typing import Any, Protocol

from openroute.openapi.models import Reference, Schema, SchemaOrRef
from openroute.schema.descriptor import (
    FieldDescriptor,
    Kind,
    TypeDescriptor,
    describe,
)
from openroute.schema.meta import Meta


class NamedSchemaResolver(Protocol):
    """Turns object descriptors into shared schemas or references."""

    def resolve_named(self, descriptor: TypeDescriptor) -> SchemaOrRef:
        """Return the schema or reference used wherever ``descriptor`` appears."""
        ...


def to_jsonable(value: Any) -> Any:  # noqa: ANN401 - defaults and examples are arbitrary
    """Convert a default or example into a JSON-compatible value.

    Returns:
        Any: The converted value, or ``None`` when it has no JSON form.
    """
    if isinstance(value, enum.Enum):
        return to_jsonable(value.value)
    if value is None or isinstance(value, (str, bool, int, float)):
        return value
    if isinstance(value, (datetime.date, datetime.time)):
        return value.isoformat()
    if isinstance(value, (uuid.UUID, decimal.Decimal)):
        return str(value)
    if isinstance(value, (list, tuple, set, frozenset)):
        return [to_jsonable(item) for item in value]
    if isinstance(value, dict):
        return {str(k): to_jsonable(v) for k, v in value.items()}
    return None


def apply_meta(schema: SchemaOrRef, meta: Meta) -> SchemaOrRef:
    """Return a copy of ``schema`` carrying the annotations in ``meta``.

    References only take a description. On arrays, length bounds become item
    bounds and an enumeration constrains the items.
    """
    if meta.is_empty():
        return schema

    if isinstance(schema, Reference):
        if meta.description is None:
            return schema
        return schema.model_copy(update={"description": meta.description})

    updates: dict[str, Any] = {
        "description": meta.description,
        "title": meta.title,
        "example": to_jsonable(meta.example),
        "default": to_jsonable(meta.default),
        "format": meta.format,
        "minimum": meta.minimum,
        "maximum": meta.maximum,
        "exclusive_minimum": meta.exclusive_minimum,
        "exclusive_maximum": meta.exclusive_maximum,
        "multiple_of": meta.multiple_of,
        "pattern": meta.pattern,
        "deprecated": meta.deprecated,
    }
    if schema.type == "array" or (
        isinstance(schema.type, list) and "array" in schema.type
    ):
        updates["min_items"] = meta.min_items or meta.min_length
        updates["max_items"] = meta.max_items or meta.max_length
        if meta.enum is not None and isinstance(schema.items, Schema):
            updates["items"] = schema.items.model_copy(
                update={"enum": to_jsonable(list(meta.enum))}
            )
    else:
        updates["min_length"] = meta.min_length
        updates["max_length"] = meta.max_length
        updates["min_items"] = meta.min_items
        updates["max_items"] = meta.max_items
        if meta.enum is not None:
            updates["enum"] = to_jsonable(list(meta.enum))

    return schema.model_copy(
        update={key: value for key, value in updates.items() if value is not None}
    )


def nullable(schema: SchemaOrRef) -> Schema:
    """Return a schema that also accepts ``null``.

    Single typed schemas get ``null`` added to their ``type``; references,
    untyped schemas and unions get a ``{"type": "null"}`` member.
    """
    if isinstance(schema, Schema) and schema.any_of:
        if Schema(type="null") in schema.any_of:
            return schema
        return schema.model_copy(update={"any_of": [*schema.any_of, Schema(type="null")]})
    if isinstance(schema, Schema) and schema.type is not None:
        types = schema.type if isinstance(schema.type, list) else [schema.type]
        if "null" in types:
            return schema
        updates: dict[str, Any] = {"type": [*types, "null"]}
        if schema.enum is not None:
            updates["enum"] = [*schema.enum, None]
        return schema.model_copy(update=updates)
    if isinstance(schema, Schema) and schema == Schema():
        return schema
    return Schema(any_of=[schema, Schema(type="null")])


class SchemaWalker:
    """Produces schema fragments from annotations or descriptors.

    Args:
        resolver: Receives every object descriptor; when omitted objects are
            expanded inline.
    """

    def __init__(self, resolver: NamedSchemaResolver | None = None) -> None:
        self._resolver = resolver
        self._expanding: set[Hashable] = set()

    def walk(self, annotation: Any) -> SchemaOrRef:  # noqa: ANN401
        """Walk any supported annotation."""
        return self.walk_descriptor(describe(annotation))

    def walk_descriptor(self, descriptor: TypeDescriptor) -> SchemaOrRef:
        """Walk a descriptor, applying the metadata attached to it."""
        if descriptor.kind is Kind.OBJECT:
            if self._resolver is not None:
                result = self._resolver.resolve_named(descriptor)
            elif descriptor.key in self._expanding:
                result = Reference.to_schema(descriptor.name)
            else:
                result = self.expand_object(descriptor)
        else:
            result = self._walk_inline(descriptor)
        return apply_meta(result, descriptor.meta)

    def walk_field(self, field: FieldDescriptor) -> SchemaOrRef:
        """Walk a field: its type, then its annotations and default."""
        schema = apply_meta(self.walk_descriptor(field.descriptor), field.meta)
        if field.has_default and isinstance(schema, Schema):
            default = to_jsonable(field.default)
            if default is not None:
                schema = schema.model_copy(update={"default": default})
        return schema

    def expand_object(self, descriptor: TypeDescriptor) -> Schema:
        """Expand the fields of an object descriptor into an object schema."""
        self._expanding.add(descriptor.key)
        try:
            properties = {f.name: self.walk_field(f) for f in descriptor.fields}
        finally:
            self._expanding.discard(descriptor.key)

        required = [f.name for f in descriptor.fields if f.required]
        return Schema(
            type="object",
            description=descriptor.description,
            properties=properties,
            required=required or None,
        )

    def _walk_inline(self, descriptor: TypeDescriptor) -> Schema:
        match descriptor.kind:
            case Kind.PRIMITIVE | Kind.NULL:
                return Schema(type=descriptor.schema_type, format=descriptor.format)
            case Kind.ENUM:
                return Schema(
                    type=descriptor.schema_type,
                    enum=to_jsonable(list(descriptor.members)),
                )
            case Kind.ARRAY:
                return Schema(
                    type="array",
                    items=self.walk(descriptor.element),
                    unique_items=descriptor.unique_items or None,
                )
            case Kind.MAP:
                value = describe(descriptor.element)
                return Schema(
                    type="object",
                    additional_properties=(
                        True if value.kind is Kind.ANY else self.walk_descriptor(value)
                    ),
                )
            case Kind.OPTIONAL:
                return nullable(self.walk_descriptor(descriptor.element_descriptor))
            case Kind.UNION:
                return Schema(any_of=[self.walk(member) for member in descriptor.members])
            case _:
                return Schema()
