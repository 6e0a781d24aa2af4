import pytest

from openapi_assembler.builder.diagnostics import DiagnosticKind
from openapi_assembler.builder.resolver import SchemaRegistry, SchemaResolver
from openapi_assembler.descriptor.base import (
    ArrayType,
    ComposedType,
    EnumType,
    FieldDescriptor,
    NamedRef,
    ObjectType,
    PrimitiveType,
)
from openapi_assembler.openapi.schema import (
    ArraySchema,
    ComposedSchema,
    ComposeMode,
    ObjectSchema,
    PrimitiveSchema,
    Ref,
)

INT64 = PrimitiveType(type="integer", format="int64")
STRING = PrimitiveType(type="string")


def _pet(*fields):
    return ObjectType(name="Pet", fields=list(fields))


def _field(name, tp, optional=False):
    return FieldDescriptor(name=name, type=tp, optional=optional)


class TestInlineResolution:
    def test_primitive_is_inlined(self):
        resolver = SchemaResolver()
        schema = resolver.resolve(INT64)
        assert schema == PrimitiveSchema(type="integer", format="int64")
        assert len(resolver.registry) == 0

    def test_array_of_primitive_is_not_registered(self):
        resolver = SchemaResolver()
        schema = resolver.resolve(ArrayType(items=STRING))
        assert isinstance(schema, ArraySchema)
        assert schema.items == PrimitiveSchema(type="string")
        assert resolver.registry.names() == []

    def test_unnamed_composition_is_inlined(self):
        resolver = SchemaResolver()
        schema = resolver.resolve(ComposedType(variants=[STRING, INT64]))
        assert isinstance(schema, ComposedSchema)
        assert schema.mode is ComposeMode.ONE_OF
        assert len(schema.variants) == 2


class TestNamedResolution:
    def test_object_registered_and_referenced(self):
        resolver = SchemaResolver()
        pet = _pet(_field("id", INT64), _field("name", STRING), _field("age", INT64, optional=True))

        schema = resolver.resolve(pet)

        assert schema == Ref(name="Pet")
        registered = resolver.registry.commit()["Pet"]
        assert isinstance(registered, ObjectSchema)
        assert list(registered.properties) == ["id", "name", "age"]
        assert registered.required == ["id", "name"]

    def test_one_entry_per_distinct_named_shape(self):
        resolver = SchemaResolver()
        category = ObjectType(name="Category", fields=[_field("name", STRING)])
        pet = _pet(_field("category", category), _field("previous", ArrayType(items=category)))

        resolver.resolve(pet)
        resolver.resolve(pet)

        schemas = resolver.registry.commit()
        assert list(schemas) == ["Pet", "Category"]
        assert schemas["Pet"].properties["category"] == Ref(name="Category")
        assert schemas["Pet"].properties["previous"] == ArraySchema(items=Ref(name="Category"))
        assert len(resolver.diagnostics) == 0

    def test_enum_registered_as_string_enum(self):
        resolver = SchemaResolver()
        status = EnumType(name="Status", variants=["available", "sold"])
        assert resolver.resolve(status) == Ref(name="Status")
        registered = resolver.registry.get("Status")
        assert registered.type.value == "string"
        assert registered.enum == ["available", "sold"]

    def test_field_description_on_inline_property(self):
        resolver = SchemaResolver()
        pet = _pet(FieldDescriptor(name="name", type=STRING, description="Pet name"))
        resolver.resolve(pet)
        assert resolver.registry.get("Pet").properties["name"].description == "Pet name"


class TestCycles:
    def test_self_reference_through_named_ref(self):
        resolver = SchemaResolver()
        node = ObjectType(name="Node", fields=[
            _field("name", STRING),
            _field("children", ArrayType(items=NamedRef(name="Node"))),
        ])

        assert resolver.resolve(node) == Ref(name="Node")

        schemas = resolver.registry.commit()
        assert list(schemas) == ["Node"]
        assert schemas["Node"].properties["children"] == ArraySchema(items=Ref(name="Node"))

    def test_self_reference_through_object_identity(self):
        resolver = SchemaResolver()
        node = ObjectType(name="Node", fields=[_field("name", STRING)])
        node.fields.append(_field("parent", node, optional=True))

        resolver.resolve(node)

        schemas = resolver.registry.commit()
        assert schemas["Node"].properties["parent"] == Ref(name="Node")
        assert schemas["Node"].required == ["name"]
        assert len(resolver.diagnostics) == 0

    def test_mutual_recursion_through_catalog(self):
        owner = ObjectType(name="Owner", fields=[_field("pets", ArrayType(items=NamedRef(name="Pet")))])
        pet = _pet(_field("owner", NamedRef(name="Owner")))
        resolver = SchemaResolver(catalog=[owner, pet])

        resolver.resolve(NamedRef(name="Owner"))

        schemas = resolver.registry.commit()
        assert list(schemas) == ["Owner", "Pet"]
        assert schemas["Owner"].properties["pets"] == ArraySchema(items=Ref(name="Pet"))
        assert schemas["Pet"].properties["owner"] == Ref(name="Owner")

    def test_unknown_named_ref_left_as_reference(self):
        resolver = SchemaResolver()
        assert resolver.resolve(NamedRef(name="Missing")) == Ref(name="Missing")
        assert "Missing" not in resolver.registry


class TestNameConflicts:
    def test_distinct_shapes_with_same_name(self):
        resolver = SchemaResolver()
        first = _pet(_field("id", INT64))
        second = _pet(_field("id", INT64), _field("name", STRING))

        resolver.resolve(first)
        resolver.resolve(second)

        diagnostics = list(resolver.diagnostics)
        assert len(diagnostics) == 1
        assert diagnostics[0].kind is DiagnosticKind.SCHEMA_NAME_CONFLICT
        assert diagnostics[0].identifiers == ["Pet"]
        assert list(resolver.registry.get("Pet").properties) == ["id"]
        assert "first" in diagnostics[0].detail and "second" in diagnostics[0].detail

    def test_conflict_reported_once_per_shape(self):
        resolver = SchemaResolver()
        resolver.resolve(_pet(_field("id", INT64)))
        other = _pet(_field("name", STRING))
        resolver.resolve(other)
        resolver.resolve(other)
        assert len(resolver.diagnostics) == 1

    def test_equal_shapes_from_different_instances_do_not_conflict(self):
        resolver = SchemaResolver()
        resolver.resolve(_pet(_field("id", INT64)))
        resolver.resolve(_pet(_field("id", INT64)))
        assert len(resolver.diagnostics) == 0

    def test_field_order_difference_is_a_conflict(self):
        resolver = SchemaResolver()
        resolver.resolve(_pet(_field("id", INT64), _field("name", STRING)))
        resolver.resolve(_pet(_field("name", STRING), _field("id", INT64)))
        assert len(resolver.diagnostics) == 1

    def test_conflict_while_first_definition_is_pending(self):
        resolver = SchemaResolver()
        inner = _pet(_field("name", STRING))
        outer = _pet(_field("id", INT64), _field("inner", inner))

        resolver.resolve(outer)

        assert len(resolver.diagnostics) == 1
        assert list(resolver.registry.get("Pet").properties) == ["id", "inner"]

    def test_conflict_nested_below_matching_shape(self):
        resolver = SchemaResolver()
        first_tag = ObjectType(name="Tag", fields=[_field("a", STRING)])
        second_tag = ObjectType(name="Tag", fields=[_field("b", INT64)])

        resolver.resolve(_pet(_field("tag", first_tag)))
        resolver.resolve(_pet(_field("tag", second_tag)))

        diagnostics = list(resolver.diagnostics)
        assert [d.kind for d in diagnostics] == [DiagnosticKind.SCHEMA_NAME_CONFLICT]
        assert diagnostics[0].identifiers == ["Tag"]
        assert list(resolver.registry.get("Tag").properties) == ["a"]

    def test_conflict_nested_inside_array_and_composition(self):
        resolver = SchemaResolver()
        first_tag = ObjectType(name="Tag", fields=[_field("a", STRING)])
        second_tag = ObjectType(name="Tag", fields=[_field("b", INT64)])

        resolver.resolve(_pet(_field("tags", ArrayType(items=ComposedType(variants=[first_tag, STRING])))))
        resolver.resolve(_pet(_field("tags", ArrayType(items=ComposedType(variants=[second_tag, STRING])))))

        assert [d.identifiers for d in resolver.diagnostics] == [["Tag"]]

    def test_matching_nested_shapes_do_not_conflict(self):
        resolver = SchemaResolver()
        for _ in range(2):
            tag = ObjectType(name="Tag", fields=[_field("a", STRING)])
            resolver.resolve(_pet(_field("tag", tag)))
        assert len(resolver.diagnostics) == 0
        assert resolver.registry.names() == ["Pet", "Tag"]

    def test_separate_identity_cycles_terminate(self):
        resolver = SchemaResolver()
        for _ in range(2):
            node = ObjectType(name="Node", fields=[_field("name", STRING)])
            node.fields.append(_field("parent", node, optional=True))
            resolver.resolve(node)
        assert len(resolver.diagnostics) == 0
        assert resolver.registry.names() == ["Node"]


class TestRegistry:
    def test_commit_rejects_pending_entries(self):
        registry = SchemaRegistry()
        registry.reserve("Pet", _pet())
        assert registry.is_pending("Pet")
        with pytest.raises(RuntimeError):
            registry.commit()
