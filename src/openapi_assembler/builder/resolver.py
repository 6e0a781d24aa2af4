"""Schema resolver — turns type descriptors into schema nodes.

Named descriptors (objects, enums, named compositions) are registered once
in a per-build ``SchemaRegistry`` and replaced by a ``Ref`` wherever they
are used. A name is reserved with a pending marker *before* its fields are
expanded, so any recursive encounter of the same name resolves to a ``Ref``
instead of expanding again. This keeps cyclic descriptor graphs finite.
"""

from collections.abc import Callable, Iterable

import structlog

from openapi_assembler.builder.diagnostics import DiagnosticKind, DiagnosticLog
from openapi_assembler.descriptor.base import (
    ArrayType,
    ComposedType,
    EnumType,
    NamedRef,
    ObjectType,
    PrimitiveType,
    TypeDescriptor,
    component_name,
)
from openapi_assembler.openapi.schema import (
    ArraySchema,
    ComposedSchema,
    ObjectSchema,
    PrimitiveSchema,
    Ref,
    Schema,
    SchemaType,
    same_shape,
)

logger = structlog.get_logger()

_PENDING = object()


class SchemaRegistry:
    """Ordered component name -> schema map owned by a single build."""

    def __init__(self):
        self._entries: dict[str, object] = {}
        self._origins: dict[str, TypeDescriptor] = {}

    def __contains__(self, name: str) -> bool:
        return name in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def reserve(self, name: str, origin: TypeDescriptor) -> None:
        self._entries[name] = _PENDING
        self._origins[name] = origin

    def fill(self, name: str, schema: Schema) -> None:
        self._entries[name] = schema

    def is_pending(self, name: str) -> bool:
        return self._entries.get(name) is _PENDING

    def origin(self, name: str) -> TypeDescriptor:
        return self._origins[name]

    def get(self, name: str) -> Schema | None:
        entry = self._entries.get(name)
        if entry is _PENDING:
            return None
        return entry

    def names(self) -> list[str]:
        return list(self._entries)

    def commit(self) -> dict[str, Schema]:
        pending = [name for name, entry in self._entries.items() if entry is _PENDING]
        if pending:
            raise RuntimeError(f"schemas still pending after resolution: {', '.join(pending)}")
        return dict(self._entries)


class SchemaResolver:
    """Resolves descriptors against a shared registry.

    ``catalog`` holds descriptors known by name up front (the declared
    components); a ``NamedRef`` to one of them registers it on first use.
    """

    def __init__(
        self,
        registry: SchemaRegistry | None = None,
        diagnostics: DiagnosticLog | None = None,
        catalog: Iterable[TypeDescriptor] = (),
    ):
        self.registry = registry if registry is not None else SchemaRegistry()
        self.diagnostics = diagnostics if diagnostics is not None else DiagnosticLog()
        self.catalog: dict[str, TypeDescriptor] = {}
        for descriptor in catalog:
            name = component_name(descriptor)
            if name is not None:
                self.catalog.setdefault(name, descriptor)
        self._conflicts: set[tuple[str, str]] = set()
        # Holds the descriptors themselves so their ids stay unique.
        self._checked: dict[tuple[str, int], TypeDescriptor] = {}

    def resolve(self, descriptor: TypeDescriptor) -> Schema:
        """Resolve a descriptor, registering any named shapes it contains."""
        if isinstance(descriptor, NamedRef):
            return self._resolve_named_ref(descriptor.name)

        name = component_name(descriptor)
        if name is None:
            return self._expand(descriptor, self.resolve)

        if name in self.registry:
            self._check_conflict(name, descriptor)
            return Ref(name=name)

        self.registry.reserve(name, descriptor)
        schema = self._expand(descriptor, self.resolve)
        self.registry.fill(name, schema)
        logger.debug("schema.registered", name=name)
        return Ref(name=name)

    def _resolve_named_ref(self, name: str) -> Schema:
        if name not in self.registry and name in self.catalog:
            self.resolve(self.catalog[name])
        return Ref(name=name)

    def _shallow(self, descriptor: TypeDescriptor) -> Schema:
        # Same structure as resolve() but never touches the registry.
        if isinstance(descriptor, NamedRef):
            return Ref(name=descriptor.name)
        name = component_name(descriptor)
        if name is not None:
            return Ref(name=name)
        return self._expand(descriptor, self._shallow)

    def _check_conflict(self, name: str, descriptor: TypeDescriptor) -> None:
        origin = self.registry.origin(name)
        if descriptor is origin:
            return
        visit = (name, id(descriptor))
        if visit in self._checked:
            return
        self._checked[visit] = descriptor

        first = self.registry.get(name)
        if first is None:
            first = self._expand(origin, self._shallow)
        candidate = self._expand(descriptor, self._shallow)
        if same_shape(first, candidate):
            # Named children only compared as refs so far.
            for child in _children(descriptor):
                self.resolve(child)
            return

        fingerprint = (name, candidate.model_dump_json())
        if fingerprint in self._conflicts:
            return
        self._conflicts.add(fingerprint)
        self.diagnostics.report(
            DiagnosticKind.SCHEMA_NAME_CONFLICT,
            f"schema name '{name}' is claimed by two different shapes; keeping the first",
            identifiers=[name],
            first=first.model_dump(mode="json"),
            second=candidate.model_dump(mode="json"),
        )

    def _expand(self, descriptor: TypeDescriptor, child: Callable[[TypeDescriptor], Schema]) -> Schema:
        if isinstance(descriptor, PrimitiveType):
            return PrimitiveSchema(type=descriptor.type, format=descriptor.format)

        if isinstance(descriptor, ArrayType):
            return ArraySchema(items=child(descriptor.items))

        if isinstance(descriptor, EnumType):
            return PrimitiveSchema(
                type=SchemaType.STRING,
                enum=list(descriptor.variants),
                description=descriptor.description,
                example=descriptor.example,
            )

        if isinstance(descriptor, ComposedType):
            return ComposedSchema(
                mode=descriptor.mode,
                variants=[child(variant) for variant in descriptor.variants],
                description=descriptor.description,
                example=descriptor.example,
            )

        if isinstance(descriptor, ObjectType):
            obj = ObjectSchema(description=descriptor.description, example=descriptor.example)
            for field in descriptor.fields:
                prop = child(field.type)
                if field.description and not isinstance(prop, Ref):
                    prop = prop.model_copy(update={"description": field.description})
                obj.add_property(field.name, prop, required=not field.optional)
            return obj

        raise TypeError(f"unsupported type descriptor: {type(descriptor).__name__}")


def _children(descriptor: TypeDescriptor) -> list[TypeDescriptor]:
    if isinstance(descriptor, ObjectType):
        return [field.type for field in descriptor.fields]
    if isinstance(descriptor, ArrayType):
        return [descriptor.items]
    if isinstance(descriptor, ComposedType):
        return list(descriptor.variants)
    return []
