"""Normalized descriptors consumed by the document builder.

Reflection, the ``@path`` decorator and YAML manifests all convert their
input into these models; the builder never looks at anything else.
"""

from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, Field, field_validator

from openapi_assembler.openapi.document import HttpMethod, ParameterLocation
from openapi_assembler.openapi.schema import ComposeMode, SchemaType


class PrimitiveType(BaseModel):
    kind: Literal["primitive"] = "primitive"
    type: SchemaType
    format: str | None = None


class FieldDescriptor(BaseModel):
    """One named member of an object type."""

    name: str
    type: "TypeDescriptor"
    optional: bool = False
    description: str | None = None


class ObjectType(BaseModel):
    kind: Literal["object"] = "object"
    name: str
    fields: list[FieldDescriptor] = []
    description: str | None = None
    example: Any = None


class ArrayType(BaseModel):
    kind: Literal["array"] = "array"
    items: "TypeDescriptor"


class EnumType(BaseModel):
    kind: Literal["enum"] = "enum"
    name: str
    variants: list[str]
    description: str | None = None
    example: Any = None


class ComposedType(BaseModel):
    kind: Literal["composed"] = "composed"
    mode: ComposeMode = ComposeMode.ONE_OF
    variants: list["TypeDescriptor"]
    name: str | None = None
    description: str | None = None
    example: Any = None


class NamedRef(BaseModel):
    """A shape known only by its component name."""

    kind: Literal["ref"] = "ref"
    name: str


TypeDescriptor = Annotated[
    Union[PrimitiveType, ObjectType, ArrayType, EnumType, ComposedType, NamedRef],
    Field(discriminator="kind"),
]

FieldDescriptor.model_rebuild()
ArrayType.model_rebuild()
ComposedType.model_rebuild()

DESCRIPTOR_CLASSES = (PrimitiveType, ObjectType, ArrayType, EnumType, ComposedType, NamedRef)


def component_name(descriptor: TypeDescriptor) -> str | None:
    """Name under which a descriptor is registered, or None if it is inlined."""
    if isinstance(descriptor, (ObjectType, EnumType, ComposedType)):
        return descriptor.name
    return None


class ParameterDescriptor(BaseModel):
    name: str
    location: ParameterLocation = ParameterLocation.QUERY
    required: bool = False
    type: TypeDescriptor = PrimitiveType(type=SchemaType.STRING)
    description: str | None = None
    deprecated: bool = False


class ResponseDescriptor(BaseModel):
    status: str
    description: str = ""
    body: TypeDescriptor | None = None
    content_type: str | None = None  # None -> configured default

    @field_validator("status", mode="before")
    @classmethod
    def _status_to_str(cls, value):
        return str(value)


class HandlerDescriptor(BaseModel):
    """A single HTTP handler: one method on one path template."""

    method: HttpMethod
    path: str
    parameters: list[ParameterDescriptor] = []
    request_body: TypeDescriptor | None = None
    request_content_type: str | None = None
    responses: list[ResponseDescriptor] = []
    tags: list[str] = []
    operation_id: str | None = None
    deprecated: bool = False
    summary: str | None = None
    description: str | None = None

    @field_validator("method", mode="before")
    @classmethod
    def _lower_method(cls, value):
        if isinstance(value, str):
            return value.lower()
        return value

    @property
    def route(self) -> str:
        return f"{self.method.value.upper()} {self.path}"
