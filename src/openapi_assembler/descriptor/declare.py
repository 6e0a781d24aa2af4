"""Declare handlers in code with the ``@path`` decorator.

    @path("get", "/pets/{id}",
          params=[param("id", int, "path", description="Pet database id")],
          responses=[response(200, "Pet found", Pet), response(404, "Pet not found")])
    def get_pet_by_id(pet_id: int) -> Pet:
        \"\"\"Get pet by id

        Get pet from database by pet database id
        \"\"\"

The decorated function is returned unchanged apart from the attached
``HandlerDescriptor``. Operation id defaults to the function name, summary
to the first docstring line, description to the whole docstring and the tag
to the last component of the defining module's name.
"""

import inspect
from collections.abc import Iterable
from typing import Any

from openapi_assembler.descriptor.base import HandlerDescriptor, ParameterDescriptor, ResponseDescriptor
from openapi_assembler.descriptor.reflect import describe
from openapi_assembler.openapi.document import ParameterLocation

HANDLER_ATTR = "__openapi_handler__"


def param(
    name: str,
    type: Any = str,
    location: str | ParameterLocation = ParameterLocation.QUERY,
    *,
    required: bool | None = None,
    description: str | None = None,
    deprecated: bool = False,
) -> ParameterDescriptor:
    location = ParameterLocation(location)
    if required is None:
        required = location == ParameterLocation.PATH
    return ParameterDescriptor(
        name=name,
        location=location,
        required=required,
        type=describe(type),
        description=description,
        deprecated=deprecated,
    )


def response(status: int | str, description: str = "", body: Any = None, *, content_type: str | None = None) -> ResponseDescriptor:
    return ResponseDescriptor(
        status=str(status),
        description=description,
        body=describe(body) if body is not None else None,
        content_type=content_type,
    )


def path(
    method: str,
    template: str,
    *,
    params: Iterable[ParameterDescriptor] = (),
    request_body: Any = None,
    request_content_type: str | None = None,
    responses: Iterable[ResponseDescriptor] = (),
    tags: Iterable[str] | None = None,
    operation_id: str | None = None,
    deprecated: bool = False,
    summary: str | None = None,
    description: str | None = None,
):
    def decorator(func):
        doc = inspect.getdoc(func)
        handler = HandlerDescriptor(
            method=method,
            path=template,
            parameters=list(params),
            request_body=describe(request_body) if request_body is not None else None,
            request_content_type=request_content_type,
            responses=list(responses),
            tags=list(tags) if tags is not None else [_default_tag(func)],
            operation_id=operation_id or func.__name__,
            deprecated=deprecated,
            summary=summary or _first_line(doc),
            description=description or doc,
        )
        setattr(func, HANDLER_ATTR, handler)
        return func

    return decorator


def handler_of(obj: Any) -> HandlerDescriptor:
    """Return the descriptor of a decorated function (descriptors pass through)."""
    if isinstance(obj, HandlerDescriptor):
        return obj
    handler = getattr(obj, HANDLER_ATTR, None)
    if handler is None:
        raise TypeError(f"{obj!r} is not declared with @path")
    return handler


def _default_tag(func) -> str:
    return func.__module__.rsplit(".", 1)[-1]


def _first_line(doc: str | None) -> str | None:
    if not doc:
        return None
    return doc.splitlines()[0].strip()
