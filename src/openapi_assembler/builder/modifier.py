"""Post-build modifiers.

A modifier is a plain callable taking the document, or any object with a
``modify(document)`` method. Modifiers run in registration order with full
mutable access to the document; nothing is isolated or rolled back.
"""

from collections.abc import Callable, Iterable
from typing import Protocol, Union

import structlog

from openapi_assembler.openapi.document import OpenApi, Server, Tag
from openapi_assembler.openapi.security import SecurityScheme

logger = structlog.get_logger()


class Modify(Protocol):
    def modify(self, openapi: OpenApi) -> None: ...


Modifier = Union[Modify, Callable[[OpenApi], None]]


def apply_modifiers(document: OpenApi, modifiers: Iterable[Modifier]) -> OpenApi:
    """Run each modifier against the document in order; returns the same document."""
    for index, modifier in enumerate(modifiers):
        hook = getattr(modifier, "modify", None)
        if hook is None:
            hook = modifier
        hook(document)
        logger.debug("modifier.applied", index=index, modifier=_modifier_name(modifier))
    return document


def _modifier_name(modifier) -> str:
    name = getattr(modifier, "__qualname__", None)
    if name is None:
        name = type(modifier).__qualname__
    return name


class SecuritySchemeModifier:
    """Registers a security scheme and optionally requires it document-wide."""

    def __init__(self, name: str, scheme: SecurityScheme, required: bool = False, scopes: list[str] | None = None):
        self.name = name
        self.scheme = scheme
        self.required = required
        self.scopes = list(scopes or [])

    def modify(self, openapi: OpenApi) -> None:
        openapi.components.add_security_scheme(self.name, self.scheme)
        if self.required:
            requirement = {self.name: self.scopes}
            if requirement not in openapi.security:
                openapi.security.append(requirement)


def add_servers(*servers: Server) -> Callable[[OpenApi], None]:
    def modifier(openapi: OpenApi) -> None:
        openapi.servers.extend(servers)

    return modifier


def add_tags(*tags: Tag) -> Callable[[OpenApi], None]:
    """Append tag metadata. Not idempotent: applying twice lists tags twice."""

    def modifier(openapi: OpenApi) -> None:
        openapi.tags.extend(tags)

    return modifier
