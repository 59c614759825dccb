"""Shared fixtures for integration tests.

Integration tests drive a real ``ApiWrapper`` through httpx's ASGI transport,
so requests pass through the whole pipeline: request context middleware,
routing, the validation chain and the exception handlers.
"""

from collections.abc import AsyncGenerator, Awaitable, Callable
from dataclasses import dataclass
from typing import Annotated

import pytest
from httpx import ASGITransport, AsyncClient

from openroute import ApiWrapper, Meta
from openroute.core.config import Settings

ClientFactoryType = Callable[..., Awaitable[AsyncClient]]


@dataclass
class Item:
    """An item in the catalogue."""

    id: int
    name: str
    limit: int


@dataclass
class ItemQuery:
    limit: Annotated[int, Meta(description="Page size", minimum=1, maximum=100)] = 20


@pytest.fixture
def settings() -> Settings:
    """Settings with deterministic defaults for integration tests."""
    return Settings(environment="development", debug=False)


@pytest.fixture
def api(settings: Settings) -> ApiWrapper:
    """An empty API wrapper."""
    return ApiWrapper("Integration API", "1.0.0", settings=settings)


@pytest.fixture
async def client_factory() -> AsyncGenerator[ClientFactoryType]:
    """Factory fixture creating clients for wrapper instances.

    Usage:
        async def test_something(client_factory, api):
            client = await client_factory(api)
    """
    clients: list[AsyncClient] = []

    async def _create_client(
        app: ApiWrapper, *, raise_app_exceptions: bool = True
    ) -> AsyncClient:
        transport = ASGITransport(app=app, raise_app_exceptions=raise_app_exceptions)
        client = AsyncClient(transport=transport, base_url="http://test")
        clients.append(client)
        return client

    yield _create_client

    for client in clients:
        await client.aclose()


@pytest.fixture
def item_type() -> type[Item]:
    """Response shape of the item routes."""
    return Item


@pytest.fixture
def item_query_type() -> type[ItemQuery]:
    """Query shape with a bounded, defaulted ``limit``."""
    return ItemQuery
