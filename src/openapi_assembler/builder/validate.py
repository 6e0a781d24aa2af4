"""Invariant checks run on an assembled document."""

from collections.abc import Iterator

from openapi_assembler.builder.diagnostics import Diagnostic, DiagnosticKind
from openapi_assembler.openapi.document import OpenApi
from openapi_assembler.openapi.schema import COMPONENTS_SCHEMAS_PREFIX, iter_refs


def document_refs(document: OpenApi) -> Iterator[tuple[str, str]]:
    """Yield ``(location, referenced name)`` for every ref in the document."""
    for name, schema in document.components.schemas.items():
        for ref in iter_refs(schema):
            yield COMPONENTS_SCHEMAS_PREFIX + name, ref

    for template, method, operation in document.operations():
        route = f"{method.value.upper()} {template}"
        for param in operation.parameters:
            for ref in iter_refs(param.schema_node):
                yield f"{route} parameter {param.name}", ref
        if operation.request_body is not None:
            for media in operation.request_body.content.values():
                for ref in iter_refs(media.schema_node):
                    yield f"{route} request body", ref
        for status, response in operation.responses.items():
            for media in response.content.values():
                for ref in iter_refs(media.schema_node):
                    yield f"{route} response {status}", ref


def check_references(document: OpenApi) -> list[Diagnostic]:
    known = document.components.schemas
    diagnostics = []
    seen = set()
    for location, name in document_refs(document):
        if name in known or (location, name) in seen:
            continue
        seen.add((location, name))
        diagnostics.append(Diagnostic(
            kind=DiagnosticKind.DANGLING_REFERENCE,
            message=f"{location} references unknown schema '{name}'",
            identifiers=[location, name],
        ))
    return diagnostics


def check_operation_ids(document: OpenApi) -> list[Diagnostic]:
    owners: dict[str, str] = {}
    diagnostics = []
    for template, method, operation in document.operations():
        op_id = operation.operation_id
        if op_id is None:
            continue
        route = f"{method.value.upper()} {template}"
        if op_id in owners:
            diagnostics.append(Diagnostic(
                kind=DiagnosticKind.DUPLICATE_OPERATION_ID,
                message=f"operation id '{op_id}' of {route} is already used by {owners[op_id]}",
                identifiers=[op_id, owners[op_id], route],
            ))
        else:
            owners[op_id] = route
    return diagnostics


def check_document(document: OpenApi) -> list[Diagnostic]:
    return check_references(document) + check_operation_ids(document)


def label_violations(before: list[Diagnostic], after: list[Diagnostic]) -> list[Diagnostic]:
    """Return the post-modifier violations, blaming modifiers for new ones.

    Only ``after`` decides what is reported: a violation a modifier repaired
    is gone, one present all along keeps its own kind, and one that only
    appeared after modifiers ran becomes ``ModifierInducedInconsistency``.
    """
    known = {d.key for d in before}
    labeled = []
    for d in after:
        if d.key in known:
            labeled.append(d)
            continue
        labeled.append(Diagnostic(
            kind=DiagnosticKind.MODIFIER_INDUCED_INCONSISTENCY,
            message=f"after modifiers: {d.message}",
            identifiers=d.identifiers,
            detail={"violation": d.kind.value},
        ))
    return labeled
