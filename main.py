"""Petstore example application, run with Uvicorn."""

import itertools
import os
from dataclasses import dataclass, field
from typing import Annotated

import uvicorn
from loguru import logger
from starlette.requests import Request
from starlette.responses import Response

from openroute import (
    ApiWrapper,
    Extraction,
    Meta,
    ORJSONResponse,
    PathParameter,
    RequestBody,
    SecurityScheme,
    response,
    response_body,
    response_ref,
)
from openroute.api.schemas.errors import ErrorResponse
from openroute.core.config import get_settings
from openroute.core.logging import setup_logging


@dataclass
class NewPet:
    """A pet to add to the store."""

    name: Annotated[str, Meta(description="Name of the pet", example="doggie", min_length=1)]
    tag: Annotated[str | None, Meta(description="Type of the pet")] = None


@dataclass
class Pet:
    """A pet in the store."""

    id: Annotated[int, Meta(description="Unique id of the pet", minimum=1)]
    name: str
    tag: str | None = None


@dataclass
class FindPetsQuery:
    tags: Annotated[list[str], Meta(description="Tags to filter by")] = field(
        default_factory=list
    )
    limit: Annotated[int, Meta(description="Maximum number of results", minimum=1, maximum=100)] = 20


_pets: dict[int, Pet] = {}
_ids = itertools.count(1)


async def find_pets(_: Request, extraction: Extraction) -> Response:
    query: FindPetsQuery = extraction.query
    pets = [pet for pet in _pets.values() if not query.tags or pet.tag in query.tags]
    return ORJSONResponse(pets[: query.limit])


async def add_pet(_: Request, extraction: Extraction) -> Response:
    new_pet: NewPet = extraction.body
    pet = Pet(id=next(_ids), name=new_pet.name, tag=new_pet.tag)
    _pets[pet.id] = pet
    return ORJSONResponse(pet, status_code=201)


async def find_pet_by_id(_: Request, extraction: Extraction) -> Response:
    pet = _pets.get(extraction.path["id"])
    if pet is None:
        return ORJSONResponse({"message": "Pet not found"}, status_code=404)
    return ORJSONResponse(pet)


async def delete_pet(_: Request, extraction: Extraction) -> Response:
    _pets.pop(extraction.path["id"], None)
    return Response(status_code=204)


def create_app() -> ApiWrapper:
    """Declare the petstore API."""
    api = ApiWrapper(
        "Swagger Petstore",
        "1.0.0",
        description="A sample API that uses a petstore as an example",
    )
    api.set_license("Apache 2.0", url="https://www.apache.org/licenses/LICENSE-2.0.html")
    api.set_terms_of_service("http://swagger.io/terms/")
    api.set_contact(name="Swagger API Team", email="apiteam@swagger.io", url="http://swagger.io")
    api.add_server("http://localhost:3030")
    api.add_tag("pets", "Everything about the pets")

    api.add_response("ErrorResponse", "Unexpected error", ErrorResponse)
    api.add_security_scheme(
        "api_key",
        SecurityScheme(type="apiKey", in_="header", name="X-API-Key"),
        validator=lambda key, _scopes: key == os.environ.get("PETSTORE_API_KEY", "secret"),
    )

    pets = api.group("/pets", tags=["pets"])
    pet_id = PathParameter("id", int, description="ID of the pet")

    pets.get(
        "",
        find_pets,
        operation_id="findPets",
        description="Returns all pets from the system that the user has access to",
        query=FindPetsQuery,
        responses={
            200: response_body("pet response", list[Pet]),
            "default": response_ref("ErrorResponse"),
        },
    )
    pets.post(
        "",
        add_pet,
        operation_id="addPet",
        description="Creates a new pet in the store. Duplicates are allowed",
        request_body=RequestBody(NewPet, description="Pet to add to the store"),
        responses={
            201: response_body("pet response", Pet),
            "default": response_ref("ErrorResponse"),
        },
        security=[{"api_key": []}],
    )
    pets.get(
        "/{id:int}",
        find_pet_by_id,
        operation_id="findPetById",
        description="Returns a pet based on a single ID",
        path_parameters=[pet_id],
        responses={
            200: response_body("pet response", Pet),
            "default": response_ref("ErrorResponse"),
        },
    )
    pets.delete(
        "/{id:int}",
        delete_pet,
        operation_id="deletePet",
        description="Deletes a single pet based on the ID supplied",
        path_parameters=[pet_id],
        responses={
            204: response("pet deleted"),
            "default": response_ref("ErrorResponse"),
        },
        security=[{"api_key": []}],
    )

    api.serve_yaml("/openapi.yml")
    api.serve_json("/openapi.json")
    return api


app = create_app()


def main() -> None:
    """Run the petstore example."""
    settings = get_settings()
    setup_logging(settings)

    port = int(os.environ.get("PORT", settings.api_port))

    # Route uvicorn's own loggers through loguru
    log_config = {
        "version": 1,
        "disable_existing_loggers": False,
        "handlers": {
            "default": {"class": "openroute.core.logging.InterceptHandler"},
        },
        "loggers": {
            "uvicorn": {"handlers": ["default"], "level": "INFO", "propagate": False},
            "uvicorn.error": {
                "handlers": ["default"],
                "level": "INFO",
                "propagate": False,
            },
            "uvicorn.access": {
                "handlers": ["default"],
                "level": "INFO",
                "propagate": False,
            },
        },
    }

    logger.info(f"Starting Uvicorn on http://{settings.api_host}:{port}")
    if settings.debug:
        uvicorn.run(
            "main:app",
            host=settings.api_host,
            port=port,
            reload=True,
            log_config=log_config,
        )
    else:
        uvicorn.run(
            app, host=settings.api_host, port=port, reload=False, log_config=log_config
        )


if __name__ == "__main__":
    main()
