"""Document build entry points.

``build_openapi`` runs one full build: resolve the declared components,
assemble every handler, check invariants, run modifiers, check again.
``ApiDoc`` wraps that in a declarative class whose ``openapi()`` builds at
most once, however many threads ask for it.
"""

import threading
from collections.abc import Callable, Iterable
from typing import Any

import structlog
from pydantic import BaseModel

from openapi_assembler.builder.assembler import PathAssembler
from openapi_assembler.builder.diagnostics import Diagnostic, DocumentBuildError
from openapi_assembler.builder.modifier import Modifier, apply_modifiers
from openapi_assembler.builder.resolver import SchemaResolver
from openapi_assembler.builder.validate import check_document, label_violations
from openapi_assembler.config import AssemblerConfig
from openapi_assembler.descriptor.declare import handler_of
from openapi_assembler.descriptor.reflect import describe
from openapi_assembler.openapi.document import Components, Info, OpenApi

logger = structlog.get_logger()


class BuildResult(BaseModel):
    document: OpenApi
    diagnostics: list[Diagnostic] = []

    @property
    def ok(self) -> bool:
        return not self.diagnostics

    @property
    def errors(self) -> list[Diagnostic]:
        return [d for d in self.diagnostics if d.fatal]

    def finalize(self, strict: bool = False) -> OpenApi:
        """Return the document, or raise if it is not ready for rendering."""
        failing = self.diagnostics if strict else self.errors
        if failing:
            raise DocumentBuildError(failing)
        return self.document


def build_openapi(
    info: Info,
    handlers: Iterable[Any],
    *,
    components: Iterable[Any] = (),
    modifiers: Iterable[Modifier] = (),
    config: AssemblerConfig | None = None,
) -> BuildResult:
    """Build a document from handlers, extra components and modifiers.

    ``handlers`` are ``HandlerDescriptor``s or functions declared with
    ``@path``; ``components`` are type descriptors or anything ``describe``
    accepts. Declared components are registered first, in order, and also
    serve as the targets of ``NamedRef``s found anywhere in the build.
    """
    config = config or AssemblerConfig()
    declared = [describe(c) for c in components]

    resolver = SchemaResolver(catalog=declared)
    for descriptor in declared:
        resolver.resolve(descriptor)

    assembler = PathAssembler(
        resolver,
        default_content_type=config.default_content_type,
        default_tag=config.default_tag,
    )
    assembly = assembler.assemble(handler_of(h) for h in handlers)

    document = OpenApi(
        openapi=config.openapi_version,
        info=info,
        paths=assembly.paths,
        components=Components(schemas=assembly.schemas),
    )
    diagnostics = list(assembly.diagnostics)

    before = check_document(document)
    apply_modifiers(document, modifiers)
    diagnostics.extend(label_violations(before, check_document(document)))

    logger.info(
        "build.completed",
        paths=len(document.paths),
        schemas=len(document.components.schemas),
        diagnostics=len(diagnostics),
    )
    return BuildResult(document=document, diagnostics=diagnostics)


class LazyOpenApi:
    """Compute-once holder: the factory runs at most once, on first ``get()``."""

    def __init__(self, factory: Callable[[], OpenApi]):
        self._factory = factory
        self._lock = threading.Lock()
        self._document: OpenApi | None = None

    @property
    def built(self) -> bool:
        return self._document is not None

    def get(self) -> OpenApi:
        if self._document is None:
            with self._lock:
                if self._document is None:
                    self._document = self._factory()
        return self._document


class ApiDoc:
    """Declarative document definition.

    Subclass and set ``info``, ``handlers``, ``components`` and
    ``modifiers``; ``openapi()`` returns the finalized document, built on
    first call and cached for the lifetime of the class.
    """

    info: Info | None = None
    handlers: Iterable[Any] = ()
    components: Iterable[Any] = ()
    modifiers: Iterable[Modifier] = ()
    config: AssemblerConfig | None = None

    def __init_subclass__(cls, **kwargs):
        super().__init_subclass__(**kwargs)
        cls._lazy = LazyOpenApi(cls._build_final)

    @classmethod
    def build(cls) -> BuildResult:
        if cls.info is None:
            raise TypeError(f"{cls.__name__}.info is not set")
        return build_openapi(
            cls.info,
            cls.handlers,
            components=cls.components,
            modifiers=cls.modifiers,
            config=cls.config,
        )

    @classmethod
    def _build_final(cls) -> OpenApi:
        strict = cls.config.strict if cls.config is not None else False
        return cls.build().finalize(strict=strict)

    @classmethod
    def openapi(cls) -> OpenApi:
        # Also guards the base class, which has no cache.
        if cls.info is None:
            raise TypeError(f"{cls.__name__}.info is not set")
        return cls._lazy.get()
