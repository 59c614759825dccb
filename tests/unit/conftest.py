"""Shared fixtures for unit tests."""

from dataclasses import dataclass
from typing import Annotated

import pytest
from pytest_mock import MockerFixture, MockType

from openroute.core.config import LogConfig, Settings
from openroute.openapi.models import Components
from openroute.schema.meta import Meta
from openroute.schema.registry import SchemaRegistry
from openroute.schema.validator import SchemaValidator


@pytest.fixture
def mock_settings(monkeypatch: pytest.MonkeyPatch) -> Settings:
    """Provide a Settings object built from test environment variables.

    Returns:
        Settings: Real settings object with test values.
    """
    monkeypatch.setenv("OPENROUTE_APP_NAME", "TestApp")
    monkeypatch.setenv("OPENROUTE_APP_VERSION", "1.0.0")
    monkeypatch.setenv("OPENROUTE_ENVIRONMENT", "development")
    monkeypatch.setenv("OPENROUTE_DEBUG", "false")
    monkeypatch.setenv("OPENROUTE_API_PORT", "3000")
    return Settings()


@pytest.fixture
def mock_get_settings(mocker: MockerFixture) -> MockType:
    """Patch the settings lookup of the sanitization module.

    Returns:
        MockType: The patched ``get_settings``.
    """
    settings = mocker.Mock(spec=Settings)
    settings.log_config = LogConfig(sensitive_fields=["password", "ssn"])
    return mocker.patch(
        "openroute.core.error_context.get_settings", return_value=settings
    )


@pytest.fixture
def registry() -> SchemaRegistry:
    """A schema registry writing into fresh components."""
    return SchemaRegistry(Components())


@pytest.fixture
def validator(registry: SchemaRegistry) -> SchemaValidator:
    """A schema validator following references through ``registry``."""
    return SchemaValidator(registry)


@dataclass
class Address:
    """A postal address."""

    street: str
    city: Annotated[str, Meta(description="City name", example="Paris")]
    zip_code: Annotated[str | None, Meta(rename="zipCode")] = None


@dataclass
class Person:
    name: Annotated[str, Meta(min_length=1)]
    age: Annotated[int, Meta(minimum=0)] = 0
    address: Address | None = None


@dataclass
class TreeNode:
    """A node that contains nodes."""

    value: int
    children: list["TreeNode"]


@pytest.fixture
def address_type() -> type[Address]:
    """Dataclass with metadata, a rename and an optional field."""
    return Address


@pytest.fixture
def person_type() -> type[Person]:
    """Dataclass nesting ``Address``."""
    return Person


@pytest.fixture
def tree_type() -> type[TreeNode]:
    """Self-referential dataclass."""
    return TreeNode
