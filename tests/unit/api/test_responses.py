"""Unit tests for openroute/api/utils/responses.py."""

import datetime
import uuid
from dataclasses import dataclass

import orjson
import pytest

from openroute.api.schemas.errors import ErrorResponse
from openroute.api.utils.responses import ORJSONResponse


@dataclass
class Pet:
    id: int
    name: str


@pytest.mark.unit
class TestORJSONResponse:
    """Tests for orjson-backed JSON responses."""

    def test_dataclasses_and_rich_types(self) -> None:
        """Verify dataclasses, datetimes and UUIDs serialize natively."""
        response = ORJSONResponse(
            {
                "pet": Pet(1, "Rex"),
                "at": datetime.datetime(2024, 1, 1, tzinfo=datetime.UTC),
                "id": uuid.UUID(int=0),
            }
        )

        assert response.media_type == "application/json"
        assert orjson.loads(response.body) == {
            "at": "2024-01-01T00:00:00+00:00",
            "id": "00000000-0000-0000-0000-000000000000",
            "pet": {"id": 1, "name": "Rex"},
        }

    def test_sorted_keys(self) -> None:
        """Verify keys are emitted in sorted order."""
        assert ORJSONResponse({"b": 1, "a": 2}).body == b'{"a":2,"b":1}'

    def test_pydantic_models(self) -> None:
        """Verify models and lists of models are dumped first."""
        error = ErrorResponse(error_code="X", message="m")

        single = orjson.loads(ORJSONResponse(error).body)
        many = orjson.loads(ORJSONResponse([error, {"plain": True}]).body)

        assert single["error_code"] == "X"
        assert many[0]["message"] == "m"
        assert many[1] == {"plain": True}

    def test_status_code(self) -> None:
        """Verify the status code is passed through."""
        assert ORJSONResponse(Pet(1, "Rex"), status_code=201).status_code == 201
