"""
tests/test_references.py
Unit tests for zodgen.references.

Tests cover:
- Classification of enum / composite / model-operation alternatives
- Lazy binding for self references and host-namespace composites
- Raw-operation remapping (mongodb only)
- Type availability oracle rules
"""

from __future__ import annotations

from typing import Any

import pytest

from zodgen.ir import ArrayOf, Lazy, OptionalOf, ReferenceKind, SchemaRef
from zodgen.models import (
    DatabaseProvider,
    GenerationContext,
    GeneratorConfig,
    InputObjectType,
    InputTypeAlternative,
    MetadataDocument,
    OperationKind,
    SchemaArg,
    TypeLocation,
)
from zodgen.references import (
    ReferenceResolver,
    TypeAvailabilityOracle,
    operation_unit_name,
    parse_model_query_type,
)


def _obj_alt(type_name: str, **kwargs: Any) -> InputTypeAlternative:
    return InputTypeAlternative(
        type=type_name, location=TypeLocation.INPUT_OBJECT_TYPES, **kwargs
    )


def _required(*alternatives: InputTypeAlternative) -> SchemaArg:
    return SchemaArg(name="field", is_required=True, input_types=list(alternatives))


# ===========================================================================
# Model-operation types
# ===========================================================================


class TestModelQueryTypes:

    def test_parse_find_many_args(self) -> None:
        parsed = parse_model_query_type("PostFindManyArgs")
        assert parsed is not None
        assert parsed.model_name == "Post"
        assert parsed.operation == OperationKind.FIND_MANY
        assert parsed.unit_name == "PostFindMany"

    def test_bare_suffix_is_not_a_model_query(self) -> None:
        assert parse_model_query_type("FindManyArgs") is None

    def test_other_names(self) -> None:
        assert parse_model_query_type("PostWhereInput") is None

    @pytest.mark.parametrize(
        "model, operation, expected",
        [
            ("User", OperationKind.FIND_UNIQUE, "UserFindUnique"),
            ("user", OperationKind.FIND_MANY, "UserFindMany"),
            ("Post", OperationKind.UPSERT_ONE, "PostUpsert"),
            ("Post", OperationKind.GROUP_BY, "PostGroupBy"),
        ],
    )
    def test_operation_unit_name(self, model: str, operation: OperationKind, expected: str) -> None:
        assert operation_unit_name(model, operation) == expected


# ===========================================================================
# ReferenceResolver
# ===========================================================================


class TestReferenceResolver:

    def test_enum_location(self, plain_context: GenerationContext) -> None:
        alt = InputTypeAlternative(type="Role", location=TypeLocation.ENUM_TYPES)
        result = ReferenceResolver(plain_context).resolve(alt, _required(alt), "UserWhereInput")
        assert result == SchemaRef("Role", ReferenceKind.ENUM)

    def test_enum_registry_wins_over_location(self) -> None:
        context = GenerationContext(enum_names=frozenset({"SortOrder"}))
        alt = _obj_alt("SortOrder")
        assert ReferenceResolver(context).classify(alt) == ReferenceKind.ENUM

    def test_field_ref_types_are_dropped(self, plain_context: GenerationContext) -> None:
        alt = InputTypeAlternative(type="IntFieldRefInput", location=TypeLocation.FIELD_REF_TYPES)
        assert ReferenceResolver(plain_context).resolve(alt, _required(alt), "X") is None

    def test_find_many_args_is_eager_operation_ref(self, plain_context: GenerationContext) -> None:
        alt = _obj_alt("PostFindManyArgs", namespace="prisma")
        result = ReferenceResolver(plain_context).resolve(alt, _required(alt), "UserInclude")
        assert result == SchemaRef("PostFindMany", ReferenceKind.OPERATION)

    def test_self_reference_is_lazy(self, plain_context: GenerationContext) -> None:
        alt = _obj_alt("UserWhereInput")
        result = ReferenceResolver(plain_context).resolve(alt, _required(alt), "UserWhereInput")
        assert result == Lazy(SchemaRef("UserWhereInput", ReferenceKind.OBJECT))

    def test_host_namespace_is_lazy(self, plain_context: GenerationContext) -> None:
        alt = _obj_alt("IntFilter", namespace="prisma")
        result = ReferenceResolver(plain_context).resolve(alt, _required(alt), "UserWhereInput")
        assert result == Lazy(SchemaRef("IntFilter", ReferenceKind.OBJECT))

    def test_other_composites_are_eager(self, plain_context: GenerationContext) -> None:
        alt = _obj_alt("PostWhereInput", namespace="model")
        result = ReferenceResolver(plain_context).resolve(alt, _required(alt), "UserWhereInput")
        assert result == SchemaRef("PostWhereInput", ReferenceKind.OBJECT)

    def test_wrappers_outside_lazy(self, plain_context: GenerationContext) -> None:
        alt = _obj_alt("UserWhereInput", is_list=True)
        field = SchemaArg(name="AND", is_required=False, input_types=[alt])
        result = ReferenceResolver(plain_context).resolve(alt, field, "UserWhereInput")
        assert result == OptionalOf(ArrayOf(Lazy(SchemaRef("UserWhereInput", ReferenceKind.OBJECT))))


class TestRawOperationRemap:

    @staticmethod
    def _context(provider: DatabaseProvider) -> GenerationContext:
        metadata = MetadataDocument.model_validate(
            {
                "provider": provider.value,
                "models": [{"name": "User", "fields": []}],
                "modelOperations": [
                    {"model": "User", "operations": [], "rawOperations": ["findRaw", "aggregateRaw"]}
                ],
            }
        )
        return GenerationContext.build(GeneratorConfig(), metadata)

    def test_mongodb_remaps_raw_shapes(self) -> None:
        resolver = ReferenceResolver(self._context(DatabaseProvider.MONGODB))
        assert resolver.object_name("findUserRaw") == "UserFindRaw"
        assert resolver.object_name("aggregateUserRaw") == "UserAggregateRaw"

    def test_other_providers_keep_name(self) -> None:
        resolver = ReferenceResolver(self._context(DatabaseProvider.POSTGRESQL))
        assert resolver.object_name("findUserRaw") == "findUserRaw"

    def test_non_raw_names_untouched(self) -> None:
        resolver = ReferenceResolver(self._context(DatabaseProvider.MONGODB))
        assert resolver.object_name("UserWhereInput") == "UserWhereInput"


# ===========================================================================
# TypeAvailabilityOracle
# ===========================================================================


class TestTypeAvailabilityOracle:

    @pytest.mark.parametrize(
        "name",
        [
            "UserScalarFieldEnum",
            "PostOrderByRelevanceFieldEnum",
            "SortOrder",
            "QueryMode",
            "JsonNullValueFilter",
            "UserWhereInput",
            "IntFilter",
            "UserInclude",
            "UserSelect",
            "UserCreateInput",
            "UserUncheckedUpdateInput",
            "PostCreateManyAuthorInputEnvelope",
            "PostCountAggregateInputType",
            "MongoDBStringFilter",
        ],
    )
    def test_available(self, name: str) -> None:
        assert TypeAvailabilityOracle().is_available(name)

    @pytest.mark.parametrize("name", ["UserDefaultArgs", "PostCreateManyInput", "Whatever"])
    def test_unavailable(self, name: str) -> None:
        assert not TypeAvailabilityOracle().is_available(name)

    def test_complex_relations_force_annotation(self) -> None:
        composite = InputObjectType(
            name="PostCreateNestedManyWithoutAuthorInput",
            fields=[
                SchemaArg(
                    name="connect",
                    input_types=[_obj_alt("PostWhereUniqueInput", namespace="prisma")],
                )
            ],
        )
        oracle = TypeAvailabilityOracle()
        assert not oracle.is_available(composite.name)
        assert oracle.has_complex_relations(composite)
        assert oracle.annotation_for(composite, composite.name) == composite.name

    def test_self_reference_is_not_a_relation(self) -> None:
        composite = InputObjectType(
            name="ThingCreateWithoutOwnerInput",
            fields=[
                SchemaArg(
                    name="self",
                    input_types=[_obj_alt("ThingCreateWithoutOwnerInput", namespace="prisma")],
                )
            ],
        )
        assert not TypeAvailabilityOracle().has_complex_relations(composite)

    def test_no_annotation(self) -> None:
        composite = InputObjectType(name="UserDefaultArgs", fields=[])
        assert TypeAvailabilityOracle().annotation_for(composite, composite.name) is None
