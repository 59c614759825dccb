"""Centralized configuration management with environment-aware defaults.

This module implements the configuration system using Pydantic Settings,
providing type-safe configuration with validation and environment variable
support for everything the wrapper decides at startup: logging, the router
base URL, the document version, body limits and whether the validation
middleware is installed by default.

Configuration sources (in order of precedence):
1. Environment variables (prefixed with ``OPENROUTE_``)
2. .env file in project root
3. Default values in model definitions
"""

import os
from functools import lru_cache
from typing import Literal

from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class LogConfig(BaseModel):
    """Simplified logging configuration."""

    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO",
        description="Logging level",
    )
    log_formatter_type: Literal["console", "json"] | None = Field(
        default=None,
        description="Log output formatter. Auto-detected if not specified.",
    )
    sensitive_fields: list[str] = Field(
        default_factory=lambda: [
            "password",
            "token",
            "secret",
            "api_key",
            "authorization",
            "credential",
        ],
        description="Field names to redact",
    )


class Settings(BaseSettings):
    """Main settings class for the API wrapper."""

    model_config = SettingsConfigDict(
        env_prefix="OPENROUTE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        case_sensitive=False,
        validate_default=True,
        env_nested_delimiter="__",
    )

    # Application settings
    app_name: str = Field(default="openroute", description="Application name")
    app_version: str = Field(default="0.1.0", description="Application version")
    environment: Literal["development", "staging", "production"] = Field(
        default="development",
        description="Environment the application is running in",
    )
    debug: bool = Field(
        default=False,
        description="Expose internal error details in error responses",
    )

    # Server settings (used by the example entry point)
    api_host: str = Field(default="127.0.0.1", description="API host")
    api_port: int = Field(default=3030, description="API port")

    # Wrapper settings
    base_url: str = Field(
        default="",
        description="Prefix applied to router paths but not to document paths",
    )
    openapi_version: str = Field(
        default="3.1.0", description="OpenAPI version written to the document"
    )
    disable_default_middleware: bool = Field(
        default=False,
        description="Skip the request validation middleware on every route",
    )
    max_body_size: int = Field(
        default=1024 * 1024,
        gt=0,
        description="Largest request body (bytes) the validator will buffer",
    )
    request_timeout: float | None = Field(
        default=None,
        gt=0,
        description="Seconds a request may take before body reading is aborted",
    )

    # Logging configuration
    log_config: LogConfig = Field(
        default_factory=LogConfig, description="Logging configuration"
    )

    def model_post_init(self, __context: object) -> None:
        """Post initialization to set environment-based defaults."""
        super().model_post_init(__context)

        if self.log_config.log_formatter_type is None:
            self.log_config.log_formatter_type = self._detect_formatter()

    def _detect_formatter(self) -> Literal["console", "json"]:
        """Auto-detect log formatter based on environment."""
        if os.getenv("K_SERVICE") or os.getenv("AWS_EXECUTION_ENV"):
            return "json"
        if self.environment == "development":
            return "console"
        return "json"

    @field_validator("base_url", mode="after")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        """Normalize the base URL so it can be joined with route paths."""
        return v.rstrip("/")

    @field_validator("request_timeout", mode="before")
    @classmethod
    def empty_str_to_none(cls, v: object) -> object:
        """Convert empty strings from the environment to None."""
        if v == "":
            return None
        return v


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
