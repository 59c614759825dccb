"""Unit tests for openroute/core/config.py."""

import pytest
import pytest_check
from pydantic import ValidationError

from openroute.core.config import LogConfig, Settings, get_settings


@pytest.mark.unit
class TestLogConfig:
    """Tests for the LogConfig model."""

    def test_default_values(self) -> None:
        """Verify LogConfig initializes with correct default values."""
        config = LogConfig()

        assert config.log_level == "INFO"
        assert config.log_formatter_type is None
        assert "password" in config.sensitive_fields
        assert "api_key" in config.sensitive_fields

    def test_invalid_log_level(self) -> None:
        """Verify unknown log levels are rejected."""
        with pytest.raises(ValidationError):
            LogConfig(log_level="VERBOSE")  # type: ignore[arg-type]


@pytest.mark.unit
class TestSettings:
    """Tests for the Settings class."""

    def test_defaults(self) -> None:
        """Verify the wrapper defaults."""
        settings = Settings()

        with pytest_check.check:
            assert settings.app_name == "openroute"
        with pytest_check.check:
            assert settings.api_port == 3030
        with pytest_check.check:
            assert settings.base_url == ""
        with pytest_check.check:
            assert settings.openapi_version == "3.1.0"
        with pytest_check.check:
            assert settings.disable_default_middleware is False
        with pytest_check.check:
            assert settings.max_body_size == 1024 * 1024
        with pytest_check.check:
            assert settings.request_timeout is None
        with pytest_check.check:
            assert settings.debug is False

    def test_environment_overrides(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Verify prefixed environment variables override defaults."""
        monkeypatch.setenv("OPENROUTE_BASE_URL", "/api/v1/")
        monkeypatch.setenv("OPENROUTE_MAX_BODY_SIZE", "64")
        monkeypatch.setenv("OPENROUTE_REQUEST_TIMEOUT", "2.5")
        monkeypatch.setenv("OPENROUTE_DISABLE_DEFAULT_MIDDLEWARE", "true")
        monkeypatch.setenv("OPENROUTE_LOG_CONFIG__LOG_LEVEL", "DEBUG")

        settings = Settings()

        with pytest_check.check:
            assert settings.base_url == "/api/v1"
        with pytest_check.check:
            assert settings.max_body_size == 64
        with pytest_check.check:
            assert settings.request_timeout == 2.5
        with pytest_check.check:
            assert settings.disable_default_middleware is True
        with pytest_check.check:
            assert settings.log_config.log_level == "DEBUG"

    def test_empty_request_timeout_is_none(
        self, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        """Verify an empty timeout variable means no deadline."""
        monkeypatch.setenv("OPENROUTE_REQUEST_TIMEOUT", "")

        assert Settings().request_timeout is None

    @pytest.mark.parametrize(
        ("field", "value"),
        [("max_body_size", 0), ("max_body_size", -1), ("request_timeout", 0)],
    )
    def test_field_validation(self, field: str, value: int) -> None:
        """Verify limits must be positive."""
        with pytest.raises(ValidationError, match="greater than 0"):
            Settings(**{field: value})

    def test_formatter_detection(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Verify the formatter follows the environment."""
        monkeypatch.delenv("K_SERVICE", raising=False)
        monkeypatch.delenv("AWS_EXECUTION_ENV", raising=False)

        assert Settings().log_config.log_formatter_type == "console"
        assert (
            Settings(environment="production").log_config.log_formatter_type == "json"
        )

        monkeypatch.setenv("K_SERVICE", "svc")
        assert Settings().log_config.log_formatter_type == "json"

    def test_explicit_formatter_kept(self) -> None:
        """Verify an explicit formatter is not overridden."""
        settings = Settings(
            environment="production", log_config=LogConfig(log_formatter_type="console")
        )

        assert settings.log_config.log_formatter_type == "console"


@pytest.mark.unit
class TestGetSettings:
    """Tests for the cached settings accessor."""

    def test_cached(self) -> None:
        """Verify the same instance is returned until the cache is cleared."""
        first = get_settings()

        assert get_settings() is first

        get_settings.cache_clear()
        assert get_settings() is not first
