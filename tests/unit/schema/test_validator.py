"""Unit tests for openroute/schema/validator.py."""

from typing import Any

import pytest

from openroute.core.exceptions import ValidationFailedError
from openroute.openapi.models import Schema
from openroute.schema.registry import SchemaRegistry
from openroute.schema.validator import SchemaValidator


def _constraint(validator: SchemaValidator, value: Any, schema: Schema) -> str:  # noqa: ANN401
    with pytest.raises(ValidationFailedError) as exc_info:
        validator.validate(value, schema, "value")
    return exc_info.value.constraint


@pytest.mark.unit
class TestValidate:
    """Tests for validating decoded values."""

    @pytest.mark.parametrize(
        ("value", "schema", "constraint"),
        [
            ("x", Schema(type="integer"), "type"),
            (True, Schema(type="integer"), "type"),
            (1.5, Schema(type="integer"), "type"),
            (None, Schema(type="string"), "type"),
            ("c", Schema(type="string", enum=["a", "b"]), "enum"),
            ("a", Schema(type="string", min_length=2), "minLength"),
            ("abc", Schema(type="string", max_length=2), "maxLength"),
            ("abc", Schema(type="string", pattern="^[0-9]+$"), "pattern"),
            ("nope", Schema(type="string", format="date"), "format"),
            ("nope", Schema(type="string", format="uuid"), "format"),
            (0, Schema(type="integer", minimum=1), "minimum"),
            (11, Schema(type="integer", maximum=10), "maximum"),
            (1, Schema(type="integer", exclusive_minimum=1), "exclusiveMinimum"),
            (10, Schema(type="integer", exclusive_maximum=10), "exclusiveMaximum"),
            (7, Schema(type="integer", multiple_of=2), "multipleOf"),
            ([], Schema(type="array", min_items=1), "minItems"),
            ([1, 2], Schema(type="array", max_items=1), "maxItems"),
            ([1, 1], Schema(type="array", unique_items=True), "uniqueItems"),
            ({}, Schema(type="object", properties={"a": Schema()}, required=["a"]), "required"),
            (
                {"b": 1},
                Schema(type="object", properties={}, additional_properties=False),
                "additionalProperties",
            ),
            (1.5, Schema(any_of=[Schema(type="integer"), Schema(type="string")]), "anyOf"),
        ],
    )
    def test_violations(
        self,
        validator: SchemaValidator,
        value: Any,  # noqa: ANN401
        schema: Schema,
        constraint: str,
    ) -> None:
        """Verify each violated keyword is reported by name."""
        assert _constraint(validator, value, schema) == constraint

    @pytest.mark.parametrize(
        ("value", "schema"),
        [
            (5, Schema(type="integer", minimum=1, maximum=10)),
            ("2024-01-02", Schema(type="string", format="date")),
            ("2024-01-02T03:04:05+00:00", Schema(type="string", format="date-time")),
            (0.5, Schema(type="number", multiple_of=0.25)),
            ("b", Schema(type="string", enum=["a", "b"])),
            (None, Schema()),
            ("x", Schema(type=["string", "null"])),
            (None, Schema(type=["string", "null"])),
        ],
    )
    def test_valid_values(
        self,
        validator: SchemaValidator,
        value: Any,  # noqa: ANN401
        schema: Schema,
    ) -> None:
        """Verify valid values are returned unchanged."""
        assert validator.validate(value, schema, "value") == value

    def test_integral_float_normalized(self, validator: SchemaValidator) -> None:
        """Verify JSON numbers like ``2.0`` become ints for integer schemas."""
        result = validator.validate(2.0, Schema(type="integer"), "value")

        assert result == 2
        assert isinstance(result, int)

    def test_nested_path_reported(self, validator: SchemaValidator) -> None:
        """Verify the dotted path names the offending element."""
        schema = Schema(
            type="object",
            properties={"tags": Schema(type="array", items=Schema(type="string"))},
        )

        with pytest.raises(ValidationFailedError) as exc_info:
            validator.validate({"tags": ["a", 3]}, schema, "body")

        assert exc_info.value.field == "body.tags.1"
        assert exc_info.value.constraint == "type"

    def test_optional_property_accepts_null(self, validator: SchemaValidator) -> None:
        """Verify explicit nulls are accepted for properties that are not required."""
        schema = Schema(
            type="object",
            properties={"tag": Schema(type="string")},
            required=[],
        )

        assert validator.validate({"tag": None}, schema, "body") == {"tag": None}

    def test_additional_properties_schema(self, validator: SchemaValidator) -> None:
        """Verify map values are validated against ``additionalProperties``."""
        schema = Schema(type="object", additional_properties=Schema(type="integer"))

        assert validator.validate({"a": 1}, schema, "body") == {"a": 1}
        with pytest.raises(ValidationFailedError) as exc_info:
            validator.validate({"a": "x"}, schema, "body")
        assert exc_info.value.field == "body.a"

    def test_references_followed(
        self, registry: SchemaRegistry, validator: SchemaValidator, person_type: type
    ) -> None:
        """Verify references resolve through the registry."""
        ref = registry.resolve(person_type)

        valid = {"name": "Ann", "address": {"street": "Main", "city": "Oslo"}}
        assert validator.validate(valid, ref, "body") == valid

        with pytest.raises(ValidationFailedError) as exc_info:
            validator.validate({"name": "Ann", "address": {"street": "Main"}}, ref, "body")
        assert exc_info.value.field == "body.address.city"
        assert exc_info.value.constraint == "required"

    def test_nullable_items(
        self, registry: SchemaRegistry, validator: SchemaValidator, address_type: type
    ) -> None:
        """Verify optional element types accept null and still check non-null items."""
        numbers = registry.resolve(list[int | None])
        addresses = registry.resolve(list[address_type | None])  # type: ignore[operator]

        assert validator.validate([1, None], numbers, "body") == [1, None]
        assert validator.validate([None], addresses, "body") == [None]
        with pytest.raises(ValidationFailedError) as exc_info:
            validator.validate([{"street": "Main"}], addresses, "body")
        assert exc_info.value.field == "body.0.city"

    def test_matches(
        self, validator: SchemaValidator, address_type: type, person_type: type
    ) -> None:
        """Verify values are matched against the schema of a type."""
        assert validator.matches({"street": "Main", "city": "Oslo"}, address_type)
        assert not validator.matches({"street": "Main"}, address_type)
        assert not validator.matches({"name": ""}, person_type)
        assert validator.matches(3, int)


@pytest.mark.unit
class TestCoerce:
    """Tests for coercing string parameters."""

    @pytest.mark.parametrize(
        ("raw", "schema", "expected"),
        [
            ("42", Schema(type="integer"), 42),
            ("-7", Schema(type="integer"), -7),
            ("1.5", Schema(type="number"), 1.5),
            ("3", Schema(type="number"), 3),
            ("true", Schema(type="boolean"), True),
            ("0", Schema(type="boolean"), False),
            ("abc", Schema(type="string"), "abc"),
            (5, Schema(type="integer"), 5),
        ],
    )
    def test_scalars(
        self,
        validator: SchemaValidator,
        raw: Any,  # noqa: ANN401
        schema: Schema,
        expected: Any,  # noqa: ANN401
    ) -> None:
        """Verify strings are converted to the schema type."""
        assert validator.coerce(raw, schema, "query.value") == expected

    @pytest.mark.parametrize(
        ("raw", "schema"),
        [
            ("abc", Schema(type="integer")),
            ("1.5", Schema(type="integer")),
            ("inf", Schema(type="number")),
            ("yes", Schema(type="boolean")),
        ],
    )
    def test_scalar_type_errors(
        self, validator: SchemaValidator, raw: str, schema: Schema
    ) -> None:
        """Verify malformed scalars fail with the type constraint."""
        with pytest.raises(ValidationFailedError) as exc_info:
            validator.coerce(raw, schema, "query.value")

        assert exc_info.value.field == "query.value"
        assert exc_info.value.constraint == "type"

    def test_coerced_value_is_validated(self, validator: SchemaValidator) -> None:
        """Verify bounds apply after coercion."""
        with pytest.raises(ValidationFailedError) as exc_info:
            validator.coerce("500", Schema(type="integer", maximum=100), "query.limit")

        assert exc_info.value.constraint == "maximum"

    def test_repeated_keys_build_array(self, validator: SchemaValidator) -> None:
        """Verify every repeated value becomes one element."""
        schema = Schema(type="array", items=Schema(type="integer"))

        assert validator.coerce(["1", "2", "3"], schema, "query.ids") == [1, 2, 3]

    def test_single_value_is_not_split(self, validator: SchemaValidator) -> None:
        """Verify a delimited single value stays one element."""
        schema = Schema(type="array", items=Schema(type="string"))

        assert validator.coerce("a,b", schema, "query.tags") == ["a,b"]

    def test_delimited_value_fails_for_typed_items(
        self, validator: SchemaValidator
    ) -> None:
        """Verify ``1,2`` is one malformed integer, not two integers."""
        schema = Schema(type="array", items=Schema(type="integer"))

        with pytest.raises(ValidationFailedError) as exc_info:
            validator.coerce(["1,2"], schema, "query.ids")

        assert exc_info.value.field == "query.ids.0"

    def test_repeated_key_for_scalar_takes_last(
        self, validator: SchemaValidator
    ) -> None:
        """Verify the last value wins when a scalar key is repeated."""
        assert validator.coerce(["1", "2"], Schema(type="integer"), "query.limit") == 2

    def test_any_of_tries_members(self, validator: SchemaValidator) -> None:
        """Verify coercion picks the first member that accepts the value."""
        schema = Schema(any_of=[Schema(type="integer"), Schema(type="string")])

        assert validator.coerce("12", schema, "query.key") == 12
        assert validator.coerce("ab", schema, "query.key") == "ab"
