"""Field metadata annotations.

Metadata is attached to a type with ``typing.Annotated``::

    @dataclass
    class Pet:
        name: Annotated[str, Meta(description="Pet name", example="doggie")]
        status: Annotated[str, Meta(enum=("available", "pending", "sold"))]
        photo_urls: Annotated[list[str], Meta(rename="photoUrls")]
        age: Annotated[int, Ge(0)] = 0

Besides ``Meta``, plain strings (taken as the description), the constraint
objects of ``annotated_types`` and pydantic ``Field(...)`` infos are understood,
so models written for pydantic describe themselves the same way.
"""

from __future__ import annotations

from dataclasses import dataclass, fields, replace
from typing import Any

import annotated_types
from pydantic.fields import FieldInfo


@dataclass(frozen=True, eq=False)
class Meta:
    """Schema annotations for one field or type.

    ``None`` means "not set" for every attribute, so an explicit ``None``
    default or example cannot be expressed; use ``Optional`` instead. The
    flags are tri-state: ``Meta(deprecated=False)`` clears a ``deprecated``
    inherited from the annotated type.
    """

    description: str | None = None
    title: str | None = None
    example: Any = None
    default: Any = None
    enum: tuple[Any, ...] | list[Any] | None = None
    format: str | None = None
    minimum: float | None = None
    maximum: float | None = None
    exclusive_minimum: float | None = None
    exclusive_maximum: float | None = None
    multiple_of: float | None = None
    min_length: int | None = None
    max_length: int | None = None
    pattern: str | None = None
    min_items: int | None = None
    max_items: int | None = None
    deprecated: bool | None = None
    rename: str | None = None
    omit: bool | None = None

    def merge(self, other: Meta) -> Meta:
        """Return a copy where every attribute set on ``other`` wins."""
        changes = {
            f.name: getattr(other, f.name)
            for f in fields(other)
            if _is_set(getattr(other, f.name))
        }
        return replace(self, **changes) if changes else self

    def is_empty(self) -> bool:
        """Whether no attribute is set."""
        return not any(_is_set(getattr(self, f.name)) for f in fields(self))


def _is_set(value: object) -> bool:
    return value is not None


EMPTY_META = Meta()


def _from_constraint(item: object) -> Meta | None:
    """Translate one ``annotated_types`` constraint."""
    if isinstance(item, annotated_types.Ge):
        return Meta(minimum=item.ge)  # type: ignore[arg-type]
    if isinstance(item, annotated_types.Gt):
        return Meta(exclusive_minimum=item.gt)  # type: ignore[arg-type]
    if isinstance(item, annotated_types.Le):
        return Meta(maximum=item.le)  # type: ignore[arg-type]
    if isinstance(item, annotated_types.Lt):
        return Meta(exclusive_maximum=item.lt)  # type: ignore[arg-type]
    if isinstance(item, annotated_types.MultipleOf):
        return Meta(multiple_of=item.multiple_of)  # type: ignore[arg-type]
    if isinstance(item, annotated_types.MinLen):
        return Meta(min_length=item.min_length)
    if isinstance(item, annotated_types.MaxLen):
        return Meta(max_length=item.max_length)
    pattern = getattr(item, "pattern", None)
    if isinstance(pattern, str):
        return Meta(pattern=pattern)
    return None


def from_field_info(info: FieldInfo) -> Meta:
    """Translate a pydantic ``FieldInfo`` into a ``Meta``."""
    meta = Meta(
        description=info.description,
        title=info.title,
        example=info.examples[0] if info.examples else None,
        deprecated=bool(info.deprecated) or None,
        rename=info.alias,
        omit=bool(info.exclude) or None,
    )
    return meta.merge(collect_meta(tuple(info.metadata)))


def collect_meta(metadata: tuple[Any, ...]) -> Meta:
    """Fold the extra arguments of an ``Annotated`` type into one ``Meta``.

    Args:
        metadata: Everything after the first argument of ``Annotated[...]``.

    Returns:
        Meta: The combined annotations; later items win over earlier ones.
    """
    result = EMPTY_META
    for item in metadata:
        if isinstance(item, Meta):
            result = result.merge(item)
        elif isinstance(item, str):
            result = result.merge(Meta(description=item))
        elif isinstance(item, FieldInfo):
            result = result.merge(from_field_info(item))
        elif isinstance(item, annotated_types.GroupedMetadata):
            result = result.merge(collect_meta(tuple(item)))
        elif (constraint := _from_constraint(item)) is not None:
            result = result.merge(constraint)
    return result
