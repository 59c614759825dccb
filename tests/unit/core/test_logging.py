"""Unit tests for openroute/core/logging.py."""

import json
import logging
from collections.abc import Generator
from datetime import UTC, datetime
from types import SimpleNamespace
from typing import Any

import pytest
from loguru import logger
from pytest_mock import MockerFixture

from openroute.core import logging as openroute_logging
from openroute.core.config import LogConfig, Settings
from openroute.core.logging import (
    CORRELATION_ID_DISPLAY_LENGTH,
    InterceptHandler,
    format_console_with_context,
    serialize_for_json,
    setup_logging,
)


@pytest.fixture
def reset_logging_state() -> Generator[None]:
    """Allow setup_logging to run again and restore a default sink after."""
    openroute_logging._state.configured = False
    yield
    openroute_logging._state.configured = False
    logger.remove()
    logger.add(lambda _: None)


def _record(**extra: Any) -> dict[str, Any]:  # noqa: ANN401
    return {
        "time": datetime(2024, 1, 1, tzinfo=UTC),
        "level": SimpleNamespace(name="INFO"),
        "message": "hello",
        "name": "tests",
        "function": "fn",
        "line": 1,
        "extra": extra,
        "exception": None,
    }


@pytest.mark.unit
class TestConsoleFormatter:
    """Tests for the console format builder."""

    def test_priority_fields_first(self) -> None:
        """Verify priority fields precede the rest and are highlighted."""
        line = format_console_with_context(
            _record(extra_field="x", method="GET", correlation_id="1234567890abcdef")
        )

        assert line.index("method=GET") < line.index("extra_field=x")
        assert f"correlation_id={'1234567890abcdef'[:CORRELATION_ID_DISPLAY_LENGTH]}" in line
        assert "1234567890abcdef" not in line
        assert line.endswith("{message}\n")

    def test_sensitive_and_long_values(self) -> None:
        """Verify sensitive values are redacted and long ones shortened."""
        line = format_console_with_context(_record(password="p", blob="y" * 500))

        assert "password=[REDACTED]" in line
        assert "y" * 101 not in line
        assert "..." in line

    def test_braces_escaped(self) -> None:
        """Verify values cannot inject format fields."""
        line = format_console_with_context(_record(payload="{time}"))

        assert "payload={{time}}" in line


@pytest.mark.unit
class TestJsonSerializer:
    """Tests for the JSON line serializer."""

    def test_serialize(self) -> None:
        """Verify the record and its extras become one JSON object."""
        output = serialize_for_json(_record(status_code=200, token="t", _hidden=1))

        assert output.endswith("\n")
        data = json.loads(output)
        assert data["message"] == "hello"
        assert data["level"] == "INFO"
        assert data["status_code"] == 200
        assert data["token"] == "[REDACTED]"
        assert "_hidden" not in data

    def test_serialize_exception(self) -> None:
        """Verify exceptions are reduced to type and value."""
        record = _record()
        record["exception"] = SimpleNamespace(type=ValueError, value=ValueError("bad"))

        data = json.loads(serialize_for_json(record))

        assert data["exception"] == {"type": "ValueError", "value": "bad"}


@pytest.mark.unit
class TestSetupLogging:
    """Tests for logging configuration."""

    def test_configures_once(
        self, mocker: MockerFixture, reset_logging_state: None
    ) -> None:
        """Verify a second call is a no-op."""
        _ = reset_logging_state
        mock_logger = mocker.patch("openroute.core.logging.logger")
        settings = Settings(log_config=LogConfig(log_formatter_type="json"))

        setup_logging(settings)
        setup_logging(settings)

        assert mock_logger.add.call_count == 1
        assert mock_logger.remove.call_count == 1
        assert openroute_logging._state.configured is True

    def test_intercepts_server_loggers(self, reset_logging_state: None) -> None:
        """Verify the ASGI server loggers are routed through loguru."""
        _ = reset_logging_state
        setup_logging(Settings(log_config=LogConfig(log_formatter_type="console")))

        uvicorn_logger = logging.getLogger("uvicorn.error")
        assert uvicorn_logger.propagate is False
        assert isinstance(uvicorn_logger.handlers[0], InterceptHandler)

    def test_intercept_handler_forwards(self) -> None:
        """Verify standard library records reach loguru."""
        messages: list[str] = []
        sink_id = logger.add(lambda message: messages.append(message.record["message"]))
        try:
            std_logger = logging.getLogger("openroute.tests.intercept")
            std_logger.handlers = [InterceptHandler()]
            std_logger.propagate = False
            std_logger.setLevel(logging.INFO)

            std_logger.warning("forwarded %s", "record")
        finally:
            logger.remove(sink_id)

        assert "forwarded record" in messages
