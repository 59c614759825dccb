"""JSON response class using orjson serialization.

Handlers return the shapes they declared in their responses; orjson renders
dataclasses, datetimes, UUIDs and enums natively, and pydantic models are
dumped first. Error responses and the served JSON document go through the
same class.
"""

from typing import Any

import orjson
from pydantic import BaseModel
from starlette.responses import JSONResponse


class ORJSONResponse(JSONResponse):
    """Starlette Response class using orjson for JSON serialization.

    Attributes:
        media_type: The media type for the response.
    """

    media_type = "application/json"

    def render(self, content: Any) -> bytes:  # noqa: ANN401 - accepts any JSON-serializable content
        """Render the content as JSON using orjson.

        Args:
            content: The content to serialize to JSON.

        Returns:
            bytes: The JSON-encoded bytes.
        """
        if isinstance(content, BaseModel):
            content = content.model_dump(mode="json", by_alias=True)
        elif isinstance(content, list):
            content = [
                item.model_dump(mode="json", by_alias=True)
                if isinstance(item, BaseModel)
                else item
                for item in content
            ]

        return orjson.dumps(content, option=orjson.OPT_SORT_KEYS)
