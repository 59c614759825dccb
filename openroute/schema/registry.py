"""Schema registry: deduplicated, named schema components.

One registry belongs to one document and writes into that document's
``components.schemas``. The first resolution of an object type walks it and
registers the result under a name derived from the type name; every later
resolution of the same type returns an equal reference without walking again.
Names are reserved before the walk starts, which is what turns recursive types
into reference cycles instead of infinite expansion.

The registry is append-only. Nothing is ever evicted or overwritten, and once
the owning document is finalized the registry is frozen: types registered
before still resolve, new ones are refused.
"""

import re
from collections.abc import Hashable
from typing import Any

from loguru import logger

from openroute.core.constants import SCHEMA_REF_PREFIX
from openroute.core.exceptions import (
    DuplicateComponentError,
    RouteConfigurationError,
    UnresolvedReferenceError,
)
from openroute.openapi.models import Components, Reference, Schema, SchemaOrRef
from openroute.schema.descriptor import FieldDescriptor, TypeDescriptor, describe
from openroute.schema.walker import SchemaWalker

_INVALID_NAME_CHARS = re.compile(r"[^A-Za-z0-9._-]+")


def component_name(name: str) -> str:
    """Sanitize a type name into a valid component name.

    Args:
        name: Type name, possibly with brackets (``Page[Item]``).

    Returns:
        str: A name matching ``^[A-Za-z0-9._-]+$``.
    """
    return _INVALID_NAME_CHARS.sub("_", name).strip("_") or "Schema"


class SchemaRegistry:
    """Resolves types to schemas and owns the named schema components.

    Args:
        components: Components object of the owning document.
    """

    def __init__(self, components: Components) -> None:
        self._components = components
        self._names: dict[Hashable, str] = {}
        self._walker = SchemaWalker(resolver=self)
        self._frozen = False

    @property
    def schemas(self) -> dict[str, Schema]:
        """Registered schemas by component name."""
        return self._components.schemas

    @property
    def frozen(self) -> bool:
        """Whether new components are refused."""
        return self._frozen

    def freeze(self) -> None:
        """Refuse new components from now on; known types still resolve."""
        self._frozen = True

    def _ensure_writable(self, name: str) -> None:
        if self._frozen:
            raise RouteConfigurationError(
                "The schema registry is frozen", {"schema_name": name}
            )

    def resolve(self, annotation: Any) -> SchemaOrRef:  # noqa: ANN401
        """Resolve a type to a reference (objects) or an inline schema.

        Args:
            annotation: Any supported type.

        Returns:
            SchemaOrRef: A reference for registered object types, otherwise an
                inline schema whose nested object types are references.
        """
        return self._walker.walk(annotation)

    def field_schema(self, field: FieldDescriptor) -> SchemaOrRef:
        """Schema of one object field, including its annotations and default.

        Parameter shapes use this: their fields become individual parameters
        rather than one referenced object schema.
        """
        return self._walker.walk_field(field)

    def resolve_named(self, descriptor: TypeDescriptor) -> SchemaOrRef:
        """Register an object descriptor on first use; return its reference."""
        name = self._names.get(descriptor.key)
        if name is not None:
            return Reference.to_schema(name)

        self._ensure_writable(descriptor.name)
        name = self._allocate_name(descriptor.name)
        # Reserve before walking so recursive fields resolve to this name
        self._names[descriptor.key] = name
        self._components.schemas[name] = Schema()
        self._components.schemas[name] = self._walker.expand_object(descriptor)

        logger.debug(
            "Registered schema {} for {}", name, descriptor.name, schema_name=name
        )
        return Reference.to_schema(name)

    def name_for(self, annotation: Any) -> str | None:  # noqa: ANN401
        """Component name registered for a type, if any."""
        return self._names.get(describe(annotation).key)

    def add(self, name: str, schema: Schema) -> Reference:
        """Register a hand-written schema under an explicit name.

        Raises:
            DuplicateComponentError: If the name is already taken.
            RouteConfigurationError: If the registry is frozen.
        """
        self._ensure_writable(name)
        if name in self._components.schemas:
            raise DuplicateComponentError("schema", name)
        self._components.schemas[name] = schema
        return Reference.to_schema(name)

    def lookup(self, name: str) -> Schema:
        """Return the schema registered under ``name``.

        Raises:
            UnresolvedReferenceError: If nothing is registered under ``name``.
        """
        try:
            return self._components.schemas[name]
        except KeyError as e:
            raise UnresolvedReferenceError(f"{SCHEMA_REF_PREFIX}{name}") from e

    def deref(self, schema: SchemaOrRef) -> Schema:
        """Follow a reference to its schema; plain schemas pass through."""
        if isinstance(schema, Reference):
            if not schema.ref.startswith(SCHEMA_REF_PREFIX):
                raise UnresolvedReferenceError(schema.ref)
            return self.lookup(schema.name)
        return schema

    def _allocate_name(self, type_name: str) -> str:
        base = component_name(type_name)
        name = base
        suffix = 2
        while name in self._components.schemas:
            name = f"{base}_{suffix}"
            suffix += 1
        return name
