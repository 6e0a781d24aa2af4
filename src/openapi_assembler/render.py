"""Render a document as an OpenAPI 3 mapping, JSON or YAML text."""

import json

import yaml

from openapi_assembler.openapi.document import (
    Info,
    MediaType,
    OpenApi,
    Operation,
    Parameter,
)
from openapi_assembler.openapi.schema import (
    ArraySchema,
    ComposedSchema,
    ObjectSchema,
    PrimitiveSchema,
    Ref,
    Schema,
)
from openapi_assembler.openapi.security import ApiKeyScheme, HttpScheme, SecurityScheme


def _drop_none(data: dict) -> dict:
    return {k: v for k, v in data.items() if v is not None}


def schema_to_dict(schema: Schema) -> dict:
    if isinstance(schema, Ref):
        return {"$ref": schema.ref_path}
    if isinstance(schema, PrimitiveSchema):
        return _drop_none({
            "type": schema.type.value,
            "format": schema.format,
            "enum": schema.enum,
            "description": schema.description,
            "example": schema.example,
        })
    if isinstance(schema, ArraySchema):
        return _drop_none({
            "type": "array",
            "items": schema_to_dict(schema.items),
            "description": schema.description,
        })
    if isinstance(schema, ComposedSchema):
        return _drop_none({
            schema.mode.value: [schema_to_dict(v) for v in schema.variants],
            "description": schema.description,
            "example": schema.example,
        })
    if isinstance(schema, ObjectSchema):
        data = {
            "type": "object",
            "properties": {name: schema_to_dict(prop) for name, prop in schema.properties.items()},
        }
        if schema.required:
            data["required"] = list(schema.required)
        if schema.description:
            data["description"] = schema.description
        if schema.example is not None:
            data["example"] = schema.example
        return data
    raise TypeError(f"unsupported schema node: {type(schema).__name__}")


def _security_scheme_to_dict(scheme: SecurityScheme) -> dict:
    if isinstance(scheme, HttpScheme):
        return _drop_none({
            "type": "http",
            "scheme": scheme.scheme.value,
            "bearerFormat": scheme.bearer_format,
            "description": scheme.description,
        })
    if isinstance(scheme, ApiKeyScheme):
        return _drop_none({
            "type": "apiKey",
            "name": scheme.name,
            "in": scheme.location.value,
            "description": scheme.description,
        })
    return _drop_none({
        "type": "openIdConnect",
        "openIdConnectUrl": scheme.open_id_connect_url,
        "description": scheme.description,
    })


def _info_to_dict(info: Info) -> dict:
    data = _drop_none({
        "title": info.title,
        "version": info.version,
        "description": info.description,
        "termsOfService": info.terms_of_service,
    })
    if info.contact is not None:
        data["contact"] = info.contact.model_dump(exclude_none=True)
    if info.license is not None:
        data["license"] = info.license.model_dump(exclude_none=True)
    return data


def _content_to_dict(content: dict[str, MediaType]) -> dict:
    return {media: {"schema": schema_to_dict(m.schema_node)} for media, m in content.items()}


def _parameter_to_dict(param: Parameter) -> dict:
    data = _drop_none({
        "name": param.name,
        "in": param.location.value,
        "description": param.description,
        "required": param.required,
    })
    if param.deprecated:
        data["deprecated"] = True
    data["schema"] = schema_to_dict(param.schema_node)
    return data


def _operation_to_dict(operation: Operation) -> dict:
    data = _drop_none({
        "tags": operation.tags or None,
        "summary": operation.summary,
        "description": operation.description,
        "operationId": operation.operation_id,
    })
    if operation.parameters:
        data["parameters"] = [_parameter_to_dict(p) for p in operation.parameters]
    if operation.request_body is not None:
        data["requestBody"] = _drop_none({
            "description": operation.request_body.description,
            "content": _content_to_dict(operation.request_body.content),
            "required": operation.request_body.required,
        })
    responses = {}
    for status, resp in operation.responses.items():
        responses[status] = {"description": resp.description}
        if resp.content:
            responses[status]["content"] = _content_to_dict(resp.content)
    data["responses"] = responses
    if operation.deprecated:
        data["deprecated"] = True
    if operation.security is not None:
        data["security"] = operation.security
    return data


def to_dict(document: OpenApi) -> dict:
    """Convert a document to a JSON-compatible OpenAPI mapping."""
    data = {
        "openapi": document.openapi,
        "info": _info_to_dict(document.info),
    }
    if document.servers:
        data["servers"] = [s.model_dump(exclude_none=True) for s in document.servers]
    data["paths"] = {
        template: {method.value: _operation_to_dict(op) for method, op in item.operations.items()}
        for template, item in document.paths.items()
    }
    components = {}
    if document.components.schemas:
        components["schemas"] = {
            name: schema_to_dict(schema) for name, schema in document.components.schemas.items()
        }
    if document.components.security_schemes:
        components["securitySchemes"] = {
            name: _security_scheme_to_dict(s) for name, s in document.components.security_schemes.items()
        }
    if components:
        data["components"] = components
    if document.security:
        data["security"] = document.security
    if document.tags:
        data["tags"] = [t.model_dump(exclude_none=True) for t in document.tags]
    return data


def to_json(document: OpenApi, indent: int | None = 2) -> str:
    return json.dumps(to_dict(document), indent=indent, ensure_ascii=False)


def to_yaml(document: OpenApi) -> str:
    return yaml.safe_dump(to_dict(document), sort_keys=False, allow_unicode=True)


def render(document: OpenApi, fmt: str) -> str:
    if fmt == "json":
        return to_json(document)
    if fmt == "yaml":
        return to_yaml(document)
    raise ValueError(f"unknown output format: {fmt!r}")
