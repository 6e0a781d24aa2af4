import pytest
from pydantic import BaseModel

from openapi_assembler.builder.openapi import ApiDoc
from openapi_assembler.descriptor.base import HandlerDescriptor, NamedRef, ObjectType
from openapi_assembler.descriptor.declare import handler_of, param, path, response
from openapi_assembler.openapi.document import HttpMethod, Info, ParameterLocation
from openapi_assembler.openapi.schema import Ref


class Pet(BaseModel):
    id: int
    name: str
    age: int | None = None


@path(
    "get",
    "/pets/{id}",
    params=[param("id", int, "path", description="Pet database id to get Pet for")],
    responses=[
        response(200, "Pet found successfully", Pet),
        response(404, "Pet was not found"),
    ],
)
def get_pet_by_id(pet_id: int) -> Pet:
    """Get pet by id

    Get pet from database by pet database id
    """
    return Pet(id=pet_id, name="lightning")


@path("post", "/pets", request_body=Pet, tags=["pets"], operation_id="createPet", summary="Add a pet")
def create_pet(pet: Pet) -> Pet:
    return pet


class TestParamHelpers:
    def test_path_param_required_by_default(self):
        p = param("id", int, "path")
        assert p.location is ParameterLocation.PATH
        assert p.required is True

    def test_query_param_optional_by_default(self):
        p = param("limit", int)
        assert p.location is ParameterLocation.QUERY
        assert p.required is False

    def test_response_with_named_body(self):
        r = response(201, "Created", "Pet", content_type="application/xml")
        assert r.status == "201"
        assert r.body == NamedRef(name="Pet")
        assert r.content_type == "application/xml"


class TestPathDecorator:
    def test_function_still_callable(self):
        assert get_pet_by_id(3).name == "lightning"

    def test_metadata_from_function(self):
        handler = handler_of(get_pet_by_id)
        assert handler.method is HttpMethod.GET
        assert handler.path == "/pets/{id}"
        assert handler.operation_id == "get_pet_by_id"
        assert handler.summary == "Get pet by id"
        assert handler.description == "Get pet by id\n\nGet pet from database by pet database id"
        assert handler.tags == [__name__.rsplit(".", 1)[-1]]

    def test_explicit_metadata_wins(self):
        handler = handler_of(create_pet)
        assert handler.operation_id == "createPet"
        assert handler.summary == "Add a pet"
        assert handler.tags == ["pets"]
        assert isinstance(handler.request_body, ObjectType)
        assert handler.description is None

    def test_handler_of_descriptor_passes_through(self):
        descriptor = HandlerDescriptor(method="get", path="/health")
        assert handler_of(descriptor) is descriptor

    def test_handler_of_undecorated_function(self):
        def plain():
            pass

        with pytest.raises(TypeError):
            handler_of(plain)


class PetApiDoc(ApiDoc):
    info = Info(title="Petstore", version="1.0.0")
    handlers = [get_pet_by_id, create_pet]


class TestApiDocWithDecoratedHandlers:
    def test_document(self):
        document = PetApiDoc.openapi()
        assert list(document.paths) == ["/pets/{id}", "/pets"]
        get = document.paths["/pets/{id}"].operations[HttpMethod.GET]
        assert get.responses["200"].content["application/json"].schema_node == Ref(name="Pet")
        assert get.parameters[0].description == "Pet database id to get Pet for"
        pet = document.components.schemas["Pet"]
        assert list(pet.properties) == ["id", "name", "age"]
        assert pet.required == ["id", "name"]
