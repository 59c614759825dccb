"""Unit tests for openroute/schema/descriptor.py."""

import datetime
import enum
import uuid
from dataclasses import dataclass, field
from typing import Annotated, Any, Literal, NotRequired, TypedDict

import pytest
import pytest_check
from pydantic import BaseModel, Field

from openroute.core.exceptions import UnsupportedTypeError
from openroute.schema.descriptor import (
    MISSING,
    Kind,
    TypeDescriptor,
    describe,
    split_optional,
)
from openroute.schema.meta import Meta


class Color(enum.Enum):
    RED = "red"
    GREEN = "green"


class Movie(TypedDict):
    title: str
    year: NotRequired[int]


class Page(TypedDict):
    limit: Annotated[int, Meta(default=20, minimum=1)]
    cursor: Annotated[str, Meta(deprecated=True), Meta(deprecated=False)]


class Account(BaseModel):
    """An account."""

    login: str = Field(description="Login name")
    balance: float = 0.0
    tags: list[str] = Field(default_factory=list)
    secret: str | None = Field(default=None, exclude=True)


@dataclass
class Config:
    name: str
    flags: list[str] = field(default_factory=list)
    retries: int = 3


class Custom:
    @classmethod
    def __type_descriptor__(cls) -> TypeDescriptor:
        return TypeDescriptor(Kind.PRIMITIVE, "Custom", key=cls, schema_type="string")


@pytest.mark.unit
class TestDescribePrimitives:
    """Tests for primitive and enum descriptors."""

    @pytest.mark.parametrize(
        ("annotation", "schema_type", "schema_format"),
        [
            (bool, "boolean", None),
            (int, "integer", None),
            (float, "number", None),
            (str, "string", None),
            (bytes, "string", "binary"),
            (datetime.datetime, "string", "date-time"),
            (datetime.date, "string", "date"),
            (uuid.UUID, "string", "uuid"),
        ],
    )
    def test_primitive(
        self, annotation: type, schema_type: str, schema_format: str | None
    ) -> None:
        """Verify primitives map to schema types and formats."""
        descriptor = describe(annotation)

        assert descriptor.kind is Kind.PRIMITIVE
        assert descriptor.schema_type == schema_type
        assert descriptor.format == schema_format

    def test_memoized(self) -> None:
        """Verify descriptors are cached per annotation."""
        assert describe(list[int]) is describe(list[int])

    def test_enum_class(self) -> None:
        """Verify Enum classes keep their values and class."""
        descriptor = describe(Color)

        assert descriptor.kind is Kind.ENUM
        assert descriptor.members == ("red", "green")
        assert descriptor.schema_type == "string"
        assert descriptor.python_type is Color

    def test_literal(self) -> None:
        """Verify Literal types are enumerations without a class."""
        descriptor = describe(Literal[1, 2, 3])

        assert descriptor.kind is Kind.ENUM
        assert descriptor.members == (1, 2, 3)
        assert descriptor.schema_type == "integer"
        assert descriptor.python_type is None

    def test_any_and_none(self) -> None:
        """Verify Any and None have their own kinds."""
        assert describe(Any).kind is Kind.ANY
        assert describe(None).kind is Kind.NULL


@pytest.mark.unit
class TestDescribeContainers:
    """Tests for arrays, maps, optionals and unions."""

    def test_list(self) -> None:
        """Verify lists describe their element."""
        descriptor = describe(list[int])

        assert descriptor.kind is Kind.ARRAY
        assert descriptor.element is int
        assert descriptor.container is list
        assert not descriptor.unique_items

    def test_set_is_unique(self) -> None:
        """Verify sets produce unique-item arrays."""
        descriptor = describe(set[str])

        assert descriptor.unique_items
        assert descriptor.container is set

    def test_homogeneous_tuple(self) -> None:
        """Verify ``tuple[int, ...]`` is an array of int."""
        descriptor = describe(tuple[int, ...])

        assert descriptor.element is int
        assert descriptor.container is tuple

    def test_map(self) -> None:
        """Verify dicts with string keys are maps."""
        descriptor = describe(dict[str, float])

        assert descriptor.kind is Kind.MAP
        assert descriptor.element is float

    def test_map_rejects_non_string_keys(self) -> None:
        """Verify integer-keyed maps cannot be described."""
        with pytest.raises(UnsupportedTypeError):
            describe(dict[int, str])

    def test_optional(self) -> None:
        """Verify ``X | None`` is an optional of X."""
        descriptor = describe(int | None)

        assert descriptor.kind is Kind.OPTIONAL
        assert descriptor.element is int

    def test_union(self) -> None:
        """Verify unions without None keep their members."""
        descriptor = describe(int | str)

        assert descriptor.kind is Kind.UNION
        assert descriptor.members == (int, str)

    def test_split_optional(self) -> None:
        """Verify None is stripped, also through Annotated."""
        assert split_optional(int | None) == (int, True)
        assert split_optional(int) == (int, False)
        inner, optional = split_optional(Annotated[str | None, "doc"])
        assert optional
        assert inner == Annotated[str, "doc"]

    def test_annotated_meta(self) -> None:
        """Verify Annotated metadata is attached to the descriptor."""
        descriptor = describe(Annotated[int, Meta(minimum=1), "Count"])

        assert descriptor.kind is Kind.PRIMITIVE
        assert descriptor.meta.minimum == 1
        assert descriptor.meta.description == "Count"


@pytest.mark.unit
class TestDescribeObjects:
    """Tests for object descriptors."""

    def test_dataclass_fields(self, address_type: type) -> None:
        """Verify dataclass fields keep order, renames and requiredness."""
        descriptor = describe(address_type)

        assert descriptor.kind is Kind.OBJECT
        assert descriptor.name == "Address"
        assert descriptor.description == "A postal address."
        names = [f.name for f in descriptor.fields]
        assert names == ["street", "city", "zipCode"]
        zip_field = descriptor.fields[2]
        with pytest_check.check:
            assert zip_field.attribute == "zip_code"
        with pytest_check.check:
            assert zip_field.required is False
        with pytest_check.check:
            assert zip_field.annotation is str
        with pytest_check.check:
            assert descriptor.fields[1].meta.description == "City name"

    def test_dataclass_defaults(self) -> None:
        """Verify defaults and factories are recorded separately."""
        name, flags, retries = describe(Config).fields

        assert name.required
        assert name.default is MISSING
        assert not flags.required
        assert flags.default is MISSING
        assert flags.default_factory is list
        assert retries.default == 3
        assert retries.has_default

    def test_generated_docstring_ignored(self) -> None:
        """Verify the dataclass-synthesized signature is not a description."""
        assert describe(Config).description is None

    def test_typeddict(self) -> None:
        """Verify TypedDict keys honor NotRequired."""
        title, year = describe(Movie).fields

        assert title.required
        assert not year.required
        assert year.annotation is int

    def test_metadata_default_makes_field_optional(self) -> None:
        """Verify a default given only through Meta drops the field from required."""
        limit, cursor = describe(Page).fields

        assert not limit.required
        assert limit.default == 20
        assert cursor.required

    def test_false_flag_overrides_earlier_meta(self) -> None:
        """Verify a later Meta can clear a flag set by an earlier one."""
        cursor = describe(Page).fields[1]

        assert cursor.meta.deprecated is False

    def test_pydantic_model(self) -> None:
        """Verify pydantic fields, defaults and excluded fields."""
        descriptor = describe(Account)
        fields = {f.name: f for f in descriptor.fields}

        assert list(fields) == ["login", "balance", "tags"]
        assert fields["login"].required
        assert fields["login"].meta.description == "Login name"
        assert fields["balance"].default == 0.0
        assert fields["tags"].default_factory is list
        assert descriptor.description == "An account."

    def test_self_reference_is_finite(self, tree_type: type) -> None:
        """Verify recursive types describe without expanding."""
        descriptor = describe(tree_type)
        children = descriptor.fields[1]

        assert children.descriptor.kind is Kind.ARRAY
        assert children.descriptor.element_descriptor is descriptor

    def test_custom_descriptor_hook(self) -> None:
        """Verify ``__type_descriptor__`` bypasses introspection."""
        assert describe(Custom).name == "Custom"

    def test_unsupported(self) -> None:
        """Verify arbitrary classes are rejected."""
        with pytest.raises(UnsupportedTypeError):
            describe(complex)
