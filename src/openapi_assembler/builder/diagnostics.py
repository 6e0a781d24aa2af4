"""Diagnostics recorded while building a document."""

from enum import Enum

import structlog
from pydantic import BaseModel

logger = structlog.get_logger()


class DiagnosticKind(str, Enum):
    SCHEMA_NAME_CONFLICT = "SchemaNameConflict"
    DANGLING_REFERENCE = "DanglingReference"
    UNBOUND_PATH_PARAMETER = "UnboundPathParameter"
    UNUSED_DECLARED_PARAMETER = "UnusedDeclaredParameter"
    DUPLICATE_ROUTE = "DuplicateRoute"
    DUPLICATE_OPERATION_ID = "DuplicateOperationId"
    MODIFIER_INDUCED_INCONSISTENCY = "ModifierInducedInconsistency"


# Kinds that block finalize(); everything else is best-effort.
FATAL_KINDS = frozenset({
    DiagnosticKind.DANGLING_REFERENCE,
    DiagnosticKind.MODIFIER_INDUCED_INCONSISTENCY,
})


class Diagnostic(BaseModel):
    kind: DiagnosticKind
    message: str
    identifiers: list[str] = []
    detail: dict = {}

    @property
    def fatal(self) -> bool:
        return self.kind in FATAL_KINDS

    @property
    def key(self) -> tuple:
        return (self.kind, tuple(self.identifiers))

    def __str__(self) -> str:
        return f"{self.kind.value}: {self.message}"


class DocumentBuildError(Exception):
    """Raised when a document cannot be finalized."""

    def __init__(self, diagnostics: list[Diagnostic]):
        self.diagnostics = list(diagnostics)
        super().__init__("; ".join(str(d) for d in self.diagnostics))


class DiagnosticLog:
    """Ordered collector shared by the resolver and assembler of one build."""

    def __init__(self):
        self._items: list[Diagnostic] = []

    def report(self, kind: DiagnosticKind, message: str, identifiers: list[str], **detail) -> Diagnostic:
        diagnostic = Diagnostic(kind=kind, message=message, identifiers=identifiers, detail=detail)
        self._items.append(diagnostic)
        logger.warning("diagnostic.reported", kind=kind.value, identifiers=identifiers, message=message)
        return diagnostic

    def __iter__(self):
        return iter(self._items)

    def __len__(self) -> int:
        return len(self._items)
