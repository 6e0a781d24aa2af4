"""Reflect Python types into type descriptors.

Supported: builtin scalars, ``datetime``/``date``/``UUID``/``Decimal``,
``list``/``set``/``tuple`` of a type, ``Optional``/unions, ``Annotated``,
``enum.Enum`` subclasses and pydantic models. A model that refers back to
itself (directly or through other models) is emitted as a ``NamedRef`` at
the point of recursion.
"""

import inspect
import types
from collections.abc import Sequence
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Annotated, Any, Union, get_args, get_origin
from uuid import UUID

from pydantic import BaseModel

from openapi_assembler.descriptor.base import (
    DESCRIPTOR_CLASSES,
    ArrayType,
    ComposedType,
    EnumType,
    FieldDescriptor,
    NamedRef,
    ObjectType,
    PrimitiveType,
    TypeDescriptor,
)
from openapi_assembler.openapi.schema import ComposeMode, SchemaType

PRIMITIVES: dict[type, tuple[SchemaType, str | None]] = {
    str: (SchemaType.STRING, None),
    int: (SchemaType.INTEGER, "int64"),
    float: (SchemaType.NUMBER, "double"),
    bool: (SchemaType.BOOLEAN, None),
    bytes: (SchemaType.STRING, "binary"),
    datetime: (SchemaType.STRING, "date-time"),
    date: (SchemaType.STRING, "date"),
    UUID: (SchemaType.STRING, "uuid"),
    Decimal: (SchemaType.NUMBER, None),
}

_SEQUENCE_ORIGINS = (list, set, frozenset, tuple, Sequence)


def describe(tp: Any) -> TypeDescriptor:
    """Return the descriptor for a Python type (descriptors pass through)."""
    return _Reflector().describe(tp)


def schema_name(tp: type) -> str:
    if issubclass(tp, BaseModel):
        title = tp.model_config.get("title")
        if title:
            return title
    return tp.__name__


def _own_doc(tp: type) -> str | None:
    # Only a docstring written on the class itself, not an inherited one.
    doc = tp.__dict__.get("__doc__")
    return inspect.cleandoc(doc) if doc else None


def _model_example(model: type[BaseModel]) -> Any:
    """Example declared through ``json_schema_extra``, if any."""
    extra = model.model_config.get("json_schema_extra")
    if not isinstance(extra, dict):
        return None
    if "example" in extra:
        return extra["example"]
    examples = extra.get("examples")
    if isinstance(examples, list) and examples:
        return examples[0]
    return None


def _is_union(origin) -> bool:
    return origin is Union or origin is types.UnionType


def _split_optional(annotation) -> tuple[Any, bool]:
    """Strip ``None`` from a union; report whether it was there."""
    if not _is_union(get_origin(annotation)):
        return annotation, False
    args = [a for a in get_args(annotation) if a is not type(None)]
    if len(args) == len(get_args(annotation)):
        return annotation, False
    if len(args) == 1:
        return args[0], True
    return Union[tuple(args)], True


class _Reflector:
    def __init__(self):
        self._active: set[type[BaseModel]] = set()

    def describe(self, tp: Any) -> TypeDescriptor:
        if isinstance(tp, DESCRIPTOR_CLASSES):
            return tp
        if isinstance(tp, str):
            return NamedRef(name=tp)
        if tp in PRIMITIVES:
            kind, fmt = PRIMITIVES[tp]
            return PrimitiveType(type=kind, format=fmt)

        origin = get_origin(tp)
        if origin is Annotated:
            return self.describe(get_args(tp)[0])
        if origin in _SEQUENCE_ORIGINS:
            args = [a for a in get_args(tp) if a is not Ellipsis]
            if not args:
                raise TypeError(f"cannot describe {tp!r}: item type is missing")
            return ArrayType(items=self.describe(args[0]))
        if _is_union(origin):
            inner, _ = _split_optional(tp)
            if not _is_union(get_origin(inner)):
                return self.describe(inner)
            return ComposedType(mode=ComposeMode.ONE_OF, variants=[self.describe(a) for a in get_args(inner)])

        if inspect.isclass(tp) and issubclass(tp, Enum):
            return EnumType(
                name=schema_name(tp),
                variants=[str(member.value) for member in tp],
                description=_own_doc(tp),
            )
        if inspect.isclass(tp) and issubclass(tp, BaseModel):
            return self._describe_model(tp)

        raise TypeError(f"cannot describe {tp!r}")

    def _describe_model(self, model: type[BaseModel]) -> TypeDescriptor:
        name = schema_name(model)
        if model in self._active:
            return NamedRef(name=name)

        self._active.add(model)
        try:
            fields = []
            for field_name, info in model.model_fields.items():
                annotation, nullable = _split_optional(info.annotation)
                fields.append(FieldDescriptor(
                    name=info.alias or field_name,
                    type=self.describe(annotation),
                    optional=nullable or not info.is_required(),
                    description=info.description,
                ))
        finally:
            self._active.discard(model)

        return ObjectType(
            name=name,
            fields=fields,
            description=_own_doc(model),
            example=_model_example(model),
        )
