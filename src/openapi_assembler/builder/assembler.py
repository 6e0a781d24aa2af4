"""Path assembler — merges handler descriptors into the document's paths.

Handlers are processed in input order. Conflicts (mismatched path
parameters, duplicate routes, duplicate operation ids) are recorded as
diagnostics and the first registration wins.
"""

import re
from collections.abc import Iterable

import structlog
from pydantic import BaseModel

from openapi_assembler.builder.diagnostics import Diagnostic, DiagnosticKind
from openapi_assembler.builder.resolver import SchemaResolver
from openapi_assembler.descriptor.base import HandlerDescriptor, ParameterDescriptor
from openapi_assembler.openapi.document import (
    MediaType,
    Operation,
    Parameter,
    ParameterLocation,
    PathItem,
    RequestBody,
    Response,
)
from openapi_assembler.openapi.schema import Schema

logger = structlog.get_logger()

PLACEHOLDER_RE = re.compile(r"\{([^{}]+)\}")

DEFAULT_CONTENT_TYPE = "application/json"


def path_placeholders(template: str) -> list[str]:
    """Placeholder names of a path template, in order, duplicates kept."""
    return PLACEHOLDER_RE.findall(template)


class Assembly(BaseModel):
    paths: dict[str, PathItem]
    schemas: dict[str, Schema]
    diagnostics: list[Diagnostic]


class PathAssembler:
    """Builds operations from handlers and files them under their templates."""

    def __init__(
        self,
        resolver: SchemaResolver | None = None,
        default_content_type: str = DEFAULT_CONTENT_TYPE,
        default_tag: str | None = None,
    ):
        self.resolver = resolver or SchemaResolver()
        self.diagnostics = self.resolver.diagnostics
        self.default_content_type = default_content_type
        self.default_tag = default_tag

    def assemble(self, handlers: Iterable[HandlerDescriptor]) -> Assembly:
        paths: dict[str, PathItem] = {}
        operation_ids: dict[str, str] = {}

        for handler in handlers:
            self._check_path_parameters(handler)
            operation = self._build_operation(handler)

            item = paths.setdefault(handler.path, PathItem())
            if handler.method in item.operations:
                self.diagnostics.report(
                    DiagnosticKind.DUPLICATE_ROUTE,
                    f"{handler.route} is already registered; keeping the first handler",
                    identifiers=[handler.path, handler.method.value],
                )
                continue

            op_id = operation.operation_id
            if op_id is not None and op_id in operation_ids:
                self.diagnostics.report(
                    DiagnosticKind.DUPLICATE_OPERATION_ID,
                    f"operation id '{op_id}' of {handler.route} is already used by {operation_ids[op_id]}",
                    identifiers=[op_id, operation_ids[op_id], handler.route],
                )
                operation.operation_id = None

            item.operations[handler.method] = operation
            if operation.operation_id is not None:
                operation_ids[operation.operation_id] = handler.route
            logger.debug("route.added", route=handler.route, operation_id=operation.operation_id)

        return Assembly(
            paths=paths,
            schemas=self.resolver.registry.commit(),
            diagnostics=list(self.diagnostics),
        )

    def _check_path_parameters(self, handler: HandlerDescriptor) -> None:
        placeholders = path_placeholders(handler.path)
        declared = [p.name for p in handler.parameters if p.location == ParameterLocation.PATH]

        reported: set[str] = set()
        for name in placeholders:
            if name not in declared and name not in reported:
                reported.add(name)
                self.diagnostics.report(
                    DiagnosticKind.UNBOUND_PATH_PARAMETER,
                    f"placeholder '{{{name}}}' in {handler.route} has no declared path parameter",
                    identifiers=[handler.path, handler.method.value, name],
                )

        seen: set[str] = set()
        for name in declared:
            if name in seen:
                self.diagnostics.report(
                    DiagnosticKind.UNUSED_DECLARED_PARAMETER,
                    f"path parameter '{name}' is declared more than once on {handler.route}",
                    identifiers=[handler.path, handler.method.value, name],
                )
            elif name not in placeholders:
                self.diagnostics.report(
                    DiagnosticKind.UNUSED_DECLARED_PARAMETER,
                    f"path parameter '{name}' does not appear in {handler.route}",
                    identifiers=[handler.path, handler.method.value, name],
                )
            seen.add(name)

    def _build_operation(self, handler: HandlerDescriptor) -> Operation:
        request_body = None
        if handler.request_body is not None:
            content_type = handler.request_content_type or self.default_content_type
            request_body = RequestBody(
                content={content_type: MediaType(schema_node=self.resolver.resolve(handler.request_body))},
            )

        responses: dict[str, Response] = {}
        for resp in handler.responses:
            if resp.status in responses:
                logger.warning("response.duplicate_status", route=handler.route, status=resp.status)
                continue
            content = {}
            if resp.body is not None:
                content_type = resp.content_type or self.default_content_type
                content[content_type] = MediaType(schema_node=self.resolver.resolve(resp.body))
            responses[resp.status] = Response(description=resp.description, content=content)

        tags = list(handler.tags)
        if not tags and self.default_tag:
            tags = [self.default_tag]

        return Operation(
            tags=tags,
            summary=handler.summary,
            description=handler.description,
            operation_id=handler.operation_id,
            parameters=[self._build_parameter(p) for p in handler.parameters],
            request_body=request_body,
            responses=responses,
            deprecated=handler.deprecated,
        )

    def _build_parameter(self, param: ParameterDescriptor) -> Parameter:
        return Parameter(
            name=param.name,
            location=param.location,
            # path parameters are always required in OpenAPI
            required=param.required or param.location == ParameterLocation.PATH,
            deprecated=param.deprecated,
            description=param.description,
            schema_node=self.resolver.resolve(param.type),
        )
