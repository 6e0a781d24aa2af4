"""YAML manifest loader.

A manifest describes an API as data::

    info: {title: Petstore, version: 1.0.0}
    components:
      Pet:
        object:
          id: integer:int64
          name: string
          tag?: string          # trailing '?' marks an optional field
        example: {id: 1, name: Rex}
    handlers:
      - method: get
        path: /pets/{id}
        parameters:
          - {name: id, in: path, type: integer:int64}
        responses:
          - {status: 200, description: Pet found, body: Pet}
          - {status: 404, description: Pet not found}

Type specs are a primitive name (optionally ``type:format``), a component
name, or a single-key mapping: ``array``, ``enum``, ``object``, ``oneOf``,
``allOf``. A component may also carry an ``example`` key next to its
type. Optional ``servers``, ``tags`` and ``security_schemes`` sections
become modifiers.
"""

from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, ValidationError

from openapi_assembler.builder.modifier import Modifier, SecuritySchemeModifier, add_servers, add_tags
from openapi_assembler.descriptor.base import (
    ArrayType,
    ComposedType,
    EnumType,
    FieldDescriptor,
    HandlerDescriptor,
    NamedRef,
    ObjectType,
    ParameterDescriptor,
    PrimitiveType,
    ResponseDescriptor,
    TypeDescriptor,
)
from openapi_assembler.openapi.document import Info, Server, Tag
from openapi_assembler.openapi.schema import ComposeMode, SchemaType
from openapi_assembler.openapi.security import SecurityScheme

PRIMITIVE_NAMES = {t.value for t in SchemaType}


class ManifestError(ValueError):
    """Raised for manifests that do not follow the expected layout."""


class Manifest(BaseModel):
    info: Info
    components: list[TypeDescriptor] = []
    handlers: list[HandlerDescriptor] = []
    servers: list[Server] = []
    tags: list[Tag] = []
    security_schemes: dict[str, SecurityScheme] = {}
    security: list[str] = []  # scheme names required document-wide

    def modifiers(self) -> list[Modifier]:
        modifiers: list[Modifier] = []
        if self.servers:
            modifiers.append(add_servers(*self.servers))
        if self.tags:
            modifiers.append(add_tags(*self.tags))
        for name, scheme in self.security_schemes.items():
            modifiers.append(SecuritySchemeModifier(name, scheme, required=name in self.security))
        return modifiers


def load_manifest(file_path: Path) -> Manifest:
    """Parse a manifest file."""
    text = file_path.read_text(encoding="utf-8")
    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError as e:
        raise ManifestError(f"{file_path}: invalid YAML: {e}") from e
    return parse_manifest(data)


def parse_manifest(data: Any) -> Manifest:
    if not isinstance(data, dict):
        raise ManifestError("manifest must be a mapping")
    if "info" not in data:
        raise ManifestError("manifest has no 'info' section")

    components = [
        _parse_component(name, spec)
        for name, spec in (data.get("components") or {}).items()
    ]
    handlers = [_parse_handler(h) for h in data.get("handlers") or []]

    try:
        return Manifest(
            info=data["info"],
            components=components,
            handlers=handlers,
            servers=data.get("servers") or [],
            tags=data.get("tags") or [],
            security_schemes=data.get("security_schemes") or {},
            security=data.get("security") or [],
        )
    except ValidationError as e:
        raise ManifestError(str(e)) from e


def parse_type(spec: Any, name: str | None = None) -> TypeDescriptor:
    """Parse a type spec; ``name`` names an object/enum/composition."""
    if isinstance(spec, str):
        base, _, fmt = spec.partition(":")
        if base in PRIMITIVE_NAMES:
            return PrimitiveType(type=SchemaType(base), format=fmt or None)
        return NamedRef(name=spec)

    if not isinstance(spec, dict) or len(spec) != 1:
        raise ManifestError(f"invalid type spec: {spec!r}")

    key, value = next(iter(spec.items()))
    if key == "array":
        return ArrayType(items=parse_type(value))
    if key in ("oneOf", "allOf"):
        return ComposedType(
            mode=ComposeMode(key),
            variants=[parse_type(v) for v in value],
            name=name,
        )
    if name is None:
        raise ManifestError(f"'{key}' types must be declared under components")
    if key == "enum":
        return EnumType(name=name, variants=[str(v) for v in value])
    if key == "object":
        return ObjectType(name=name, fields=[_parse_field(k, v) for k, v in (value or {}).items()])
    raise ManifestError(f"unknown type spec key: {key!r}")


def _parse_component(name: str, spec: Any) -> TypeDescriptor:
    example = None
    if isinstance(spec, dict) and "example" in spec:
        spec = dict(spec)
        example = spec.pop("example")
    descriptor = parse_type(spec, name=name)
    if isinstance(descriptor, (PrimitiveType, ArrayType, NamedRef)):
        raise ManifestError(f"component '{name}' must be an object, enum, oneOf or allOf")
    descriptor.example = example
    return descriptor


def _parse_field(key: str, spec: Any) -> FieldDescriptor:
    optional = key.endswith("?")
    description = None
    if isinstance(spec, dict) and "type" in spec:
        description = spec.get("description")
        spec = spec["type"]
    return FieldDescriptor(
        name=key.rstrip("?"),
        type=parse_type(spec),
        optional=optional,
        description=description,
    )


def _parse_handler(data: dict) -> HandlerDescriptor:
    try:
        parameters = [
            ParameterDescriptor(
                name=p["name"],
                location=p.get("in", "query"),
                required=p.get("required", p.get("in") == "path"),
                type=parse_type(p.get("type", "string")),
                description=p.get("description"),
                deprecated=p.get("deprecated", False),
            )
            for p in data.get("parameters") or []
        ]
        responses = [
            ResponseDescriptor(
                status=r["status"],
                description=r.get("description", ""),
                body=parse_type(r["body"]) if r.get("body") is not None else None,
                content_type=r.get("content_type"),
            )
            for r in data.get("responses") or []
        ]
        body = data.get("request_body")
        return HandlerDescriptor(
            method=data["method"],
            path=data["path"],
            parameters=parameters,
            request_body=parse_type(body) if body is not None else None,
            request_content_type=data.get("request_content_type"),
            responses=responses,
            tags=data.get("tags") or [],
            operation_id=data.get("operation_id"),
            deprecated=data.get("deprecated", False),
            summary=data.get("summary"),
            description=data.get("description"),
        )
    except KeyError as e:
        raise ManifestError(f"handler is missing required key {e}") from e
    except ValidationError as e:
        raise ManifestError(str(e)) from e
