"""Type descriptors: a normalized view of runtime types.

``describe`` turns any supported annotation into a ``TypeDescriptor``: its
kind, its fields (for objects), its element type (for arrays, maps and
optionals) and the metadata attached with ``Annotated``. The schema walker and
the request binder only ever look at descriptors, never at the typing
machinery directly.

Descriptors are immutable and memoized for the lifetime of the process.
Nested types are not expanded eagerly: a field keeps its annotation and
resolves its own descriptor on access, so self-referential types produce a
finite descriptor.

Any class can bypass introspection by exposing a ``__type_descriptor__``
classmethod that returns a ``TypeDescriptor``.
"""

import dataclasses
import datetime
import decimal
import enum
import inspect
import types
import uuid
from collections.abc import Hashable, Mapping, Sequence
from collections.abc import Set as AbstractSet
from dataclasses import dataclass, field
from typing import (
    Annotated,
    Any,
    Literal,
    NotRequired,
    Required,
    Union,
    get_args,
    get_origin,
    get_type_hints,
    is_typeddict,
)

from loguru import logger
from pydantic import BaseModel
from pydantic_core import PydanticUndefined

from openroute.core.exceptions import UnsupportedTypeError
from openroute.schema.meta import EMPTY_META, Meta, collect_meta, from_field_info


class _Missing:
    """Marker for "no default"; falsy and distinct from ``None``."""

    def __repr__(self) -> str:
        return "MISSING"

    def __bool__(self) -> bool:
        return False


MISSING: Any = _Missing()


class Kind(enum.Enum):
    """Shape of a described type."""

    PRIMITIVE = "primitive"
    OBJECT = "object"
    ARRAY = "array"
    OPTIONAL = "optional"
    MAP = "map"
    UNION = "union"
    ENUM = "enum"
    ANY = "any"
    NULL = "null"


# (python type, schema type, schema format); order matters for subclasses
PRIMITIVES: tuple[tuple[type, str, str | None], ...] = (
    (bool, "boolean", None),
    (int, "integer", None),
    (float, "number", None),
    (decimal.Decimal, "number", None),
    (str, "string", None),
    (bytes, "string", "binary"),
    (datetime.datetime, "string", "date-time"),
    (datetime.date, "string", "date"),
    (datetime.time, "string", "time"),
    (datetime.timedelta, "string", "duration"),
    (uuid.UUID, "string", "uuid"),
)

_ARRAY_ORIGINS = (list, tuple, set, frozenset, Sequence, AbstractSet)
_MAP_ORIGINS = (dict, Mapping)


@dataclass(frozen=True)
class FieldDescriptor:
    """One field of an object type.

    Attributes:
        name: Name on the wire (after ``rename``/alias).
        attribute: Attribute or key name on the Python side.
        annotation: Field type with ``Annotated`` and ``Optional`` stripped.
        required: Whether the field must be present.
        meta: Annotations attached to the field.
        default: Default value, or ``MISSING``.
        default_factory: Factory producing the default, or ``MISSING``.
    """

    name: str
    attribute: str
    annotation: Any
    required: bool = True
    meta: Meta = EMPTY_META
    default: Any = MISSING
    default_factory: Any = MISSING

    @property
    def descriptor(self) -> "TypeDescriptor":
        """Descriptor of the field type, resolved on access."""
        return describe(self.annotation)

    @property
    def has_default(self) -> bool:
        """Whether a schema default is known for the field."""
        return self.default is not MISSING


@dataclass(frozen=True)
class TypeDescriptor:
    """Normalized description of one runtime type.

    Attributes:
        kind: The shape of the type.
        name: Display name, used to derive component names.
        key: Identity used to deduplicate registered schemas.
        python_type: Class used to rebuild values (objects, enums, primitives).
        schema_type: JSON schema ``type`` for primitives and enums.
        format: JSON schema ``format`` for primitives.
        fields: Fields of object types, in declaration order.
        element: Annotation of array items, map values or the optional inner type.
        members: Union member annotations, or enum values.
        meta: Annotations attached to the type itself.
        description: Docstring of object types.
        unique_items: Arrays built from sets.
    """

    kind: Kind
    name: str
    key: Hashable
    python_type: Any = None
    schema_type: str | None = None
    format: str | None = None
    fields: tuple[FieldDescriptor, ...] = ()
    element: Any = None
    members: tuple[Any, ...] = ()
    meta: Meta = EMPTY_META
    description: str | None = None
    unique_items: bool = False
    container: type | None = field(default=None, compare=False)

    @property
    def element_descriptor(self) -> "TypeDescriptor":
        """Descriptor of ``element``."""
        return describe(self.element)

    @property
    def is_named_object(self) -> bool:
        """Whether the type is registered as a reusable component."""
        return self.kind is Kind.OBJECT


_cache: dict[Any, TypeDescriptor] = {}


def describe(annotation: Any) -> TypeDescriptor:
    """Return the memoized descriptor for an annotation.

    Args:
        annotation: Any supported type or typing construct.

    Returns:
        TypeDescriptor: The descriptor.

    Raises:
        UnsupportedTypeError: If the annotation cannot be described.
    """
    try:
        cached = _cache.get(annotation)
    except TypeError:
        # Unhashable metadata inside Annotated; describe without caching
        return _build(annotation)
    if cached is None:
        cached = _build(annotation)
        _cache[annotation] = cached
    return cached


def _annotation_name(annotation: Any) -> str:
    return getattr(annotation, "__name__", None) or repr(annotation)


def _docstring(cls: type) -> str | None:
    doc = cls.__dict__.get("__doc__")
    if not doc:
        return None
    # dataclasses synthesize "Name(field: type, ...)" when no docstring exists
    if dataclasses.is_dataclass(cls) and doc.startswith(f"{cls.__name__}("):
        return None
    return inspect.cleandoc(doc)


def split_optional(annotation: Any) -> tuple[Any, bool]:
    """Strip ``None`` from a union.

    Returns:
        tuple[Any, bool]: The remaining annotation and whether ``None`` was
            part of the union.
    """
    if get_origin(annotation) is Annotated:
        inner, *extra = get_args(annotation)
        stripped, optional = split_optional(inner)
        if optional:
            return Annotated[(stripped, *extra)], True  # type: ignore[valid-type]
        return annotation, False

    if get_origin(annotation) not in (Union, types.UnionType):
        return annotation, False

    args = get_args(annotation)
    remaining = tuple(arg for arg in args if arg is not type(None))
    if len(remaining) == len(args):
        return annotation, False
    if len(remaining) == 1:
        return remaining[0], True
    return Union[remaining], True  # type: ignore[return-value]  # noqa: UP007


def _split_annotated(annotation: Any) -> tuple[Any, Meta]:
    if get_origin(annotation) is Annotated:
        inner, *extra = get_args(annotation)
        inner, meta = _split_annotated(inner)
        return inner, meta.merge(collect_meta(tuple(extra)))
    return annotation, EMPTY_META


def _build(annotation: Any) -> TypeDescriptor:  # noqa: C901, PLR0911, PLR0912
    if annotation is Any or annotation is object:
        return TypeDescriptor(Kind.ANY, "Any", key=annotation)

    if annotation is None or annotation is type(None):
        return TypeDescriptor(Kind.NULL, "None", key=type(None), schema_type="null")

    custom = getattr(annotation, "__type_descriptor__", None)
    if custom is not None and inspect.isclass(annotation):
        descriptor = custom()
        if not isinstance(descriptor, TypeDescriptor):
            raise UnsupportedTypeError(
                annotation, "__type_descriptor__ must return a TypeDescriptor"
            )
        return descriptor

    origin = get_origin(annotation)

    if origin is Annotated:
        inner, meta = _split_annotated(annotation)
        base = describe(inner)
        return dataclasses.replace(base, meta=base.meta.merge(meta))

    if origin in (Union, types.UnionType):
        inner, optional = split_optional(annotation)
        if optional:
            return TypeDescriptor(
                Kind.OPTIONAL,
                _annotation_name(inner),
                key=annotation,
                element=inner,
            )
        return TypeDescriptor(
            Kind.UNION, repr(annotation), key=annotation, members=get_args(annotation)
        )

    if origin is Literal:
        return _enum_descriptor(annotation, repr(annotation), get_args(annotation))

    if annotation in _ARRAY_ORIGINS or origin in _ARRAY_ORIGINS:
        return _array_descriptor(annotation, origin or annotation)

    if annotation in _MAP_ORIGINS or origin in _MAP_ORIGINS:
        args = get_args(annotation)
        if args and split_optional(args[0])[0] not in (str, Any):
            key_kind = describe(args[0])
            if key_kind.schema_type != "string":
                raise UnsupportedTypeError(annotation, "map keys must be strings")
        return TypeDescriptor(
            Kind.MAP,
            _annotation_name(annotation),
            key=annotation,
            element=args[1] if len(args) == 2 else Any,  # noqa: PLR2004
        )

    if not inspect.isclass(annotation):
        raise UnsupportedTypeError(annotation)

    if issubclass(annotation, enum.Enum):
        return _enum_descriptor(
            annotation,
            annotation.__name__,
            tuple(member.value for member in annotation),
            python_type=annotation,
        )

    for python_type, schema_type, schema_format in PRIMITIVES:
        if issubclass(annotation, python_type):
            return TypeDescriptor(
                Kind.PRIMITIVE,
                python_type.__name__,
                key=annotation,
                python_type=python_type,
                schema_type=schema_type,
                format=schema_format,
            )

    if issubclass(annotation, BaseModel):
        return _object_descriptor(annotation, _pydantic_fields(annotation))
    if dataclasses.is_dataclass(annotation):
        return _object_descriptor(annotation, _dataclass_fields(annotation))
    if is_typeddict(annotation):
        return _object_descriptor(annotation, _typeddict_fields(annotation))

    raise UnsupportedTypeError(annotation)


def _enum_descriptor(
    annotation: Any,
    name: str,
    values: tuple[Any, ...],
    python_type: type | None = None,
) -> TypeDescriptor:
    value_types = {type(value) for value in values}
    schema_type = None
    if len(value_types) == 1:
        schema_type = describe(value_types.pop()).schema_type
    return TypeDescriptor(
        Kind.ENUM,
        name,
        key=annotation,
        python_type=python_type,
        schema_type=schema_type,
        members=values,
    )


def _array_descriptor(annotation: Any, origin: Any) -> TypeDescriptor:
    args = get_args(annotation)
    if not args:
        element: Any = Any
    elif origin is tuple and len(args) == 2 and args[1] is Ellipsis:  # noqa: PLR2004
        element = args[0]
    elif origin is tuple and len(set(args)) > 1:
        element = Union[args]  # noqa: UP007
    else:
        element = args[0]

    container = origin if origin in (list, tuple, set, frozenset) else list
    if origin is AbstractSet:
        container = set
    return TypeDescriptor(
        Kind.ARRAY,
        _annotation_name(annotation),
        key=annotation,
        element=element,
        unique_items=container in (set, frozenset),
        container=container,
    )


def _object_descriptor(
    cls: type, object_fields: tuple[FieldDescriptor, ...]
) -> TypeDescriptor:
    logger.debug("Described {} with {} fields", cls.__qualname__, len(object_fields))
    return TypeDescriptor(
        Kind.OBJECT,
        cls.__name__,
        key=cls,
        python_type=cls,
        schema_type="object",
        fields=object_fields,
        description=_docstring(cls),
    )


def _resolve_hints(cls: type) -> dict[str, Any]:
    try:
        return get_type_hints(cls, include_extras=True)
    except NameError as e:
        raise UnsupportedTypeError(cls, f"unresolvable annotation: {e}") from e


def _make_field(
    attribute: str,
    annotation: Any,
    *,
    has_default: bool,
    default: Any = MISSING,
    default_factory: Any = MISSING,
    extra_meta: Meta = EMPTY_META,
) -> FieldDescriptor | None:
    stripped, optional = split_optional(annotation)
    inner, meta = _split_annotated(stripped)
    meta = meta.merge(extra_meta)
    if meta.omit:
        return None
    if default is MISSING and meta.default is not None:
        default = meta.default
    return FieldDescriptor(
        name=meta.rename or attribute,
        attribute=attribute,
        annotation=inner,
        required=not optional and not has_default and default is MISSING,
        meta=meta,
        default=default,
        default_factory=default_factory,
    )


def _dataclass_fields(cls: type) -> tuple[FieldDescriptor, ...]:
    hints = _resolve_hints(cls)
    result = []
    for f in dataclasses.fields(cls):
        default = MISSING if f.default is dataclasses.MISSING else f.default
        factory = (
            MISSING if f.default_factory is dataclasses.MISSING else f.default_factory
        )
        descriptor = _make_field(
            f.name,
            hints.get(f.name, Any),
            has_default=default is not MISSING or factory is not MISSING,
            default=default,
            default_factory=factory,
        )
        if descriptor is not None:
            result.append(descriptor)
    return tuple(result)


def _typeddict_fields(cls: type) -> tuple[FieldDescriptor, ...]:
    hints = _resolve_hints(cls)
    required_keys = getattr(cls, "__required_keys__", frozenset(hints))
    result = []
    for name, annotation in hints.items():
        while get_origin(annotation) in (Required, NotRequired):
            annotation = get_args(annotation)[0]
        descriptor = _make_field(
            name, annotation, has_default=name not in required_keys
        )
        if descriptor is not None:
            result.append(descriptor)
    return tuple(result)


def _pydantic_fields(cls: type[BaseModel]) -> tuple[FieldDescriptor, ...]:
    result = []
    for name, info in cls.model_fields.items():
        has_default = not info.is_required()
        default = MISSING if info.default is PydanticUndefined else info.default
        factory = MISSING if info.default_factory is None else info.default_factory
        descriptor = _make_field(
            name,
            info.annotation,
            has_default=has_default,
            default=default,
            default_factory=factory,
            extra_meta=from_field_info(info),
        )
        if descriptor is not None:
            result.append(descriptor)
    return tuple(result)
