"""Schema nodes of an OpenAPI document.

A schema is either inline structure (primitive, object, array, composed)
or a named reference into the document's components.
"""

from collections.abc import Iterator
from enum import Enum
from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, Field

COMPONENTS_SCHEMAS_PREFIX = "#/components/schemas/"


class SchemaType(str, Enum):
    STRING = "string"
    INTEGER = "integer"
    NUMBER = "number"
    BOOLEAN = "boolean"


class ComposeMode(str, Enum):
    ONE_OF = "oneOf"
    ALL_OF = "allOf"


class PrimitiveSchema(BaseModel):
    kind: Literal["primitive"] = "primitive"
    type: SchemaType
    format: str | None = None
    enum: list[str] | None = None
    description: str | None = None
    example: Any = None


class ObjectSchema(BaseModel):
    """Object with ordered properties. Property order is significant."""

    kind: Literal["object"] = "object"
    properties: dict[str, "Schema"] = {}
    required: list[str] = []
    description: str | None = None
    example: Any = None

    def add_property(self, name: str, schema: "Schema", required: bool = True) -> "ObjectSchema":
        self.properties[name] = schema
        if required and name not in self.required:
            self.required.append(name)
        return self


class ArraySchema(BaseModel):
    kind: Literal["array"] = "array"
    items: "Schema"
    description: str | None = None


class ComposedSchema(BaseModel):
    kind: Literal["composed"] = "composed"
    mode: ComposeMode
    variants: list["Schema"]
    description: str | None = None
    example: Any = None


class Ref(BaseModel):
    """Reference to a schema registered in components by name."""

    kind: Literal["ref"] = "ref"
    name: str

    @property
    def ref_path(self) -> str:
        return COMPONENTS_SCHEMAS_PREFIX + self.name


Schema = Annotated[
    Union[PrimitiveSchema, ObjectSchema, ArraySchema, ComposedSchema, Ref],
    Field(discriminator="kind"),
]

ObjectSchema.model_rebuild()
ArraySchema.model_rebuild()
ComposedSchema.model_rebuild()


def same_shape(first: Schema, second: Schema) -> bool:
    """Structural equality that also treats property order as significant."""
    return first.model_dump_json() == second.model_dump_json()


def iter_refs(schema: Schema) -> Iterator[str]:
    """Yield the name of every reference reachable inside a schema tree."""
    if isinstance(schema, Ref):
        yield schema.name
    elif isinstance(schema, ObjectSchema):
        for prop in schema.properties.values():
            yield from iter_refs(prop)
    elif isinstance(schema, ArraySchema):
        yield from iter_refs(schema.items)
    elif isinstance(schema, ComposedSchema):
        for variant in schema.variants:
            yield from iter_refs(variant)
