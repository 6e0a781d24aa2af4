"""Security scheme definitions stored under components.securitySchemes."""

from enum import Enum
from typing import Annotated, Literal, Union

from pydantic import BaseModel, Field


class HttpAuthScheme(str, Enum):
    BASIC = "basic"
    BEARER = "bearer"
    DIGEST = "digest"


class ApiKeyLocation(str, Enum):
    HEADER = "header"
    QUERY = "query"
    COOKIE = "cookie"


class HttpScheme(BaseModel):
    type: Literal["http"] = "http"
    scheme: HttpAuthScheme
    bearer_format: str | None = None
    description: str | None = None


class ApiKeyScheme(BaseModel):
    type: Literal["apiKey"] = "apiKey"
    name: str
    location: ApiKeyLocation = ApiKeyLocation.HEADER
    description: str | None = None


class OpenIdConnectScheme(BaseModel):
    type: Literal["openIdConnect"] = "openIdConnect"
    open_id_connect_url: str
    description: str | None = None


SecurityScheme = Annotated[
    Union[HttpScheme, ApiKeyScheme, OpenIdConnectScheme],
    Field(discriminator="type"),
]
