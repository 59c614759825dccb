"""Unit tests for openroute/core/error_context.py."""

import pytest
from pytest_mock import MockType

from openroute.core.constants import REDACTED
from openroute.core.error_context import (
    MAX_DEPTH,
    _get_sensitive_fields,
    is_sensitive_field,
    redact_value,
    register_sensitive_field,
    sanitize_dict,
    sanitize_error_context,
)
from openroute.core.exceptions import RequiredParameterMissingError


@pytest.mark.unit
class TestSensitiveFields:
    """Tests for sensitive name detection."""

    def test_sensitive_fields_cached(self, mock_get_settings: MockType) -> None:
        """Verify configured fields are read from settings once."""
        assert _get_sensitive_fields() == ["password", "ssn"]
        assert _get_sensitive_fields() == ["password", "ssn"]
        assert mock_get_settings.call_count == 1

    @pytest.mark.parametrize(
        ("field", "expected"),
        [
            ("password", True),
            ("X-Api-Key", True),
            ("access_token", True),
            ("Authorization", True),
            ("user_ssn", True),
            ("body.user.password", True),
            ("body.password.length", False),
            ("limit", False),
            ("query.name", False),
        ],
    )
    def test_is_sensitive_field(
        self, mock_get_settings: MockType, field: str, expected: bool
    ) -> None:
        """Verify the last segment is matched by pattern and configuration."""
        _ = mock_get_settings
        assert is_sensitive_field(field) is expected

    def test_registered_field(self, mock_get_settings: MockType) -> None:
        """Verify scheme parameter names can be registered."""
        _ = mock_get_settings
        assert not is_sensitive_field("X-Pet-Pass")

        register_sensitive_field("X-Pet-Pass")

        assert is_sensitive_field("x-pet-pass")


@pytest.mark.unit
class TestRedaction:
    """Tests for value redaction."""

    def test_sanitize_nested(self, mock_get_settings: MockType) -> None:
        """Verify nested dicts, lists and tuples are redacted recursively."""
        _ = mock_get_settings
        data = {
            "user": {"name": "ann", "password": "hunter2"},
            "items": [{"token": "t"}, 3],
            "pair": ({"secret": 1}, "x"),
        }

        result = sanitize_dict(data)

        assert result == {
            "user": {"name": "ann", "password": REDACTED},
            "items": [{"token": REDACTED}, 3],
            "pair": ({"secret": REDACTED}, "x"),
        }

    def test_depth_limit(self, mock_get_settings: MockType) -> None:
        """Verify values nested beyond the limit are redacted."""
        _ = mock_get_settings
        value: object = "leaf"
        for _ in range(MAX_DEPTH + 2):
            value = [value]

        result = redact_value(value)  # type: ignore[arg-type]
        for _ in range(MAX_DEPTH + 1):
            assert isinstance(result, list)
            result = result[0]
        assert result == REDACTED

    def test_sanitize_error_context(self, mock_get_settings: MockType) -> None:
        """Verify error attributes are collected and the context sanitized."""
        _ = mock_get_settings
        error = RequiredParameterMissingError("X-Request-Count", "header")

        result = sanitize_error_context(
            error, {"request_path": "/pets", "api_key": "secret"}
        )

        assert result["error_type"] == "RequiredParameterMissingError"
        assert result["request_path"] == "/pets"
        assert result["api_key"] == REDACTED
        attributes = result["error_attributes"]
        assert attributes["name"] == "X-Request-Count"
        assert attributes["location"] == "header"
        assert "stack_trace" not in attributes
        assert "context" not in attributes

    def test_sanitize_plain_exception(self) -> None:
        """Verify exceptions without attributes omit ``error_attributes``."""
        result = sanitize_error_context(ValueError("bad value"))

        assert result == {"error_type": "ValueError", "error_message": "bad value"}
