"""Document models: the assembled OpenAPI description of an HTTP API.

Paths, operations, responses and components all keep insertion order;
the builder relies on that order being preserved through rendering.
"""

from enum import Enum
from importlib import metadata

from pydantic import BaseModel, Field

from openapi_assembler.openapi.schema import Schema
from openapi_assembler.openapi.security import SecurityScheme

OPENAPI_VERSION = "3.0.3"


class HttpMethod(str, Enum):
    GET = "get"
    PUT = "put"
    POST = "post"
    DELETE = "delete"
    OPTIONS = "options"
    HEAD = "head"
    PATCH = "patch"
    TRACE = "trace"


class ParameterLocation(str, Enum):
    PATH = "path"
    QUERY = "query"
    HEADER = "header"
    COOKIE = "cookie"


class Contact(BaseModel):
    name: str | None = None
    email: str | None = None
    url: str | None = None


class License(BaseModel):
    name: str
    url: str | None = None


class Info(BaseModel):
    """Application metadata, passed through to the document verbatim."""

    title: str
    version: str
    description: str | None = None
    terms_of_service: str | None = None
    contact: Contact | None = None
    license: License | None = None

    @classmethod
    def from_distribution(cls, distribution: str) -> "Info":
        """Build the info block from an installed distribution's metadata."""
        meta = metadata.metadata(distribution)
        contact = None
        if meta.get("Author") or meta.get("Author-email"):
            contact = Contact(name=meta.get("Author"), email=meta.get("Author-email"))
        license_name = meta.get("License-Expression") or meta.get("License")
        return cls(
            title=meta["Name"],
            version=meta["Version"],
            description=meta.get("Summary"),
            contact=contact,
            license=License(name=license_name) if license_name else None,
        )


class Server(BaseModel):
    url: str
    description: str | None = None


class Tag(BaseModel):
    name: str
    description: str | None = None


class Parameter(BaseModel):
    name: str
    location: ParameterLocation
    required: bool = False
    deprecated: bool = False
    description: str | None = None
    schema_node: Schema


class MediaType(BaseModel):
    schema_node: Schema


class RequestBody(BaseModel):
    content: dict[str, MediaType]
    required: bool = True
    description: str | None = None


class Response(BaseModel):
    description: str
    content: dict[str, MediaType] = {}


class Operation(BaseModel):
    tags: list[str] = []
    summary: str | None = None
    description: str | None = None
    operation_id: str | None = None
    parameters: list[Parameter] = []
    request_body: RequestBody | None = None
    responses: dict[str, Response] = {}
    deprecated: bool = False
    # security requirement objects: scheme name -> scopes
    security: list[dict[str, list[str]]] | None = None


class PathItem(BaseModel):
    operations: dict[HttpMethod, Operation] = {}


class Components(BaseModel):
    schemas: dict[str, Schema] = {}
    security_schemes: dict[str, SecurityScheme] = {}

    def add_security_scheme(self, name: str, scheme: SecurityScheme) -> None:
        self.security_schemes[name] = scheme


class OpenApi(BaseModel):
    openapi: str = OPENAPI_VERSION
    info: Info
    servers: list[Server] = []
    paths: dict[str, PathItem] = {}
    components: Components = Field(default_factory=Components)
    tags: list[Tag] = []
    security: list[dict[str, list[str]]] = []

    def operations(self):
        """Iterate ``(template, method, operation)`` in document order."""
        for template, item in self.paths.items():
            for method, operation in item.operations.items():
                yield template, method, operation
