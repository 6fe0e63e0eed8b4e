"""
tests/test_operations.py
Unit tests for zodgen.operations (model-operation argument schemas).

Tests cover:
- Field composition of all twelve operations
- select / include gating by configuration and relations
- Lazy, annotated projections in findMany
- skipDuplicates gating by provider
- Relevance orderBy with fullTextSearch
- Aggregate flags and groupBy
- Missing models
"""

from __future__ import annotations

from typing import List

import pytest

from zodgen.ir import (
    ArrayOf,
    Lazy,
    ObjectOf,
    OptionalOf,
    Primitive,
    ReferenceKind,
    SchemaRef,
    UnionOf,
    UnitKind,
)
from zodgen.models import (
    AggregateSupport,
    DatabaseProvider,
    GenerationContext,
    MetadataDocument,
    ModelNotFoundError,
    OperationKind,
)
from zodgen.operations import OperationSchemaAssembler


def _fields(
    context: GenerationContext, metadata: MetadataDocument, model: str, op: OperationKind
) -> List[str]:
    unit = OperationSchemaAssembler(context, metadata).assemble(model, op)
    assert isinstance(unit.expression, ObjectOf)
    return unit.expression.field_names()


def _ref(name: str) -> SchemaRef:
    return SchemaRef(name, ReferenceKind.OBJECT)


# ===========================================================================
# Field composition
# ===========================================================================


class TestOperationFields:
    """select and include are both enabled in the example configuration."""

    @pytest.mark.parametrize(
        "op, expected",
        [
            (OperationKind.FIND_UNIQUE, ["select", "include", "where"]),
            (
                OperationKind.FIND_FIRST,
                ["select", "include", "orderBy", "where", "cursor", "take", "skip", "distinct"],
            ),
            (
                OperationKind.FIND_MANY,
                ["select", "include", "orderBy", "where", "cursor", "take", "skip", "distinct"],
            ),
            (OperationKind.CREATE_ONE, ["select", "include", "data"]),
            (OperationKind.CREATE_MANY, ["data", "skipDuplicates"]),
            (OperationKind.DELETE_ONE, ["select", "include", "where"]),
            (OperationKind.DELETE_MANY, ["where"]),
            (OperationKind.UPDATE_ONE, ["select", "include", "data", "where"]),
            (OperationKind.UPDATE_MANY, ["data", "where"]),
            (OperationKind.UPSERT_ONE, ["select", "include", "where", "create", "update"]),
            (OperationKind.GROUP_BY, ["where", "orderBy", "having", "take", "skip", "by"]),
        ],
    )
    def test_field_order(
        self,
        example_context: GenerationContext,
        example_metadata: MetadataDocument,
        op: OperationKind,
        expected: List[str],
    ) -> None:
        assert _fields(example_context, example_metadata, "User", op) == expected

    def test_unit_naming(
        self, example_context: GenerationContext, example_metadata: MetadataDocument
    ) -> None:
        unit = OperationSchemaAssembler(example_context, example_metadata).assemble(
            "Post", OperationKind.UPSERT_ONE
        )
        assert unit.kind == UnitKind.OPERATION
        assert unit.name == "PostUpsert"
        assert unit.export_name == "PostUpsertSchema"
        assert unit.relative_path == "PostUpsert.schema.ts"
        assert not unit.expression.strict

    def test_no_projection_without_toggles(
        self, plain_context: GenerationContext, example_metadata: MetadataDocument
    ) -> None:
        assert _fields(plain_context, example_metadata, "User", OperationKind.FIND_UNIQUE) == [
            "where"
        ]

    def test_include_requires_relation(self, example_context: GenerationContext) -> None:
        metadata = MetadataDocument.model_validate(
            {"models": [{"name": "Tag", "fields": [{"name": "id", "type": "Int"}]}]}
        )
        fields = _fields(example_context, metadata, "Tag", OperationKind.FIND_UNIQUE)
        assert fields == ["select", "where"]

    def test_find_many_projection_is_lazy_and_annotated(
        self, example_context: GenerationContext, example_metadata: MetadataDocument
    ) -> None:
        unit = OperationSchemaAssembler(example_context, example_metadata).assemble(
            "User", OperationKind.FIND_MANY
        )
        assert unit.expression.get("select") == OptionalOf(
            Lazy(_ref("UserSelect"), annotation="UserSelect")
        )
        assert unit.expression.get("include") == OptionalOf(
            Lazy(_ref("UserInclude"), annotation="UserInclude")
        )
        assert unit.needs_host_types

    def test_find_first_projection_is_eager(
        self, example_context: GenerationContext, example_metadata: MetadataDocument
    ) -> None:
        unit = OperationSchemaAssembler(example_context, example_metadata).assemble(
            "User", OperationKind.FIND_FIRST
        )
        assert unit.expression.get("select") == OptionalOf(_ref("UserSelect"))
        assert not unit.needs_host_types

    def test_where_unique_is_required(
        self, example_context: GenerationContext, example_metadata: MetadataDocument
    ) -> None:
        unit = OperationSchemaAssembler(example_context, example_metadata).assemble(
            "User", OperationKind.FIND_UNIQUE
        )
        assert unit.expression.get("where") == _ref("UserWhereUniqueInput")

    def test_search_fields(
        self, example_context: GenerationContext, example_metadata: MetadataDocument
    ) -> None:
        expr = OperationSchemaAssembler(example_context, example_metadata).assemble(
            "User", OperationKind.FIND_FIRST
        ).expression
        order_by = _ref("UserOrderByWithRelationInput")
        assert expr.get("orderBy") == OptionalOf(UnionOf((order_by, ArrayOf(order_by))))
        assert expr.get("where") == OptionalOf(_ref("UserWhereInput"))
        assert expr.get("take") == OptionalOf(Primitive("z.number()"))
        assert expr.get("distinct") == OptionalOf(
            ArrayOf(SchemaRef("UserScalarFieldEnum", ReferenceKind.ENUM))
        )

    def test_create_one_data_union(
        self, example_context: GenerationContext, example_metadata: MetadataDocument
    ) -> None:
        expr = OperationSchemaAssembler(example_context, example_metadata).assemble(
            "User", OperationKind.CREATE_ONE
        ).expression
        assert expr.get("data") == UnionOf(
            (_ref("UserCreateInput"), _ref("UserUncheckedCreateInput"))
        )

    def test_upsert_accepts_unchecked_payloads(
        self, example_context: GenerationContext, example_metadata: MetadataDocument
    ) -> None:
        expr = OperationSchemaAssembler(example_context, example_metadata).assemble(
            "Post", OperationKind.UPSERT_ONE
        ).expression
        assert expr.get("where") == _ref("PostWhereUniqueInput")
        assert expr.get("create") == UnionOf(
            (_ref("PostCreateInput"), _ref("PostUncheckedCreateInput"))
        )
        assert expr.get("update") == UnionOf(
            (_ref("PostUpdateInput"), _ref("PostUncheckedUpdateInput"))
        )


# ===========================================================================
# Provider and preview-feature gating
# ===========================================================================


class TestProviderGating:

    @pytest.mark.parametrize(
        "provider, expected",
        [
            (DatabaseProvider.POSTGRESQL, True),
            (DatabaseProvider.COCKROACHDB, True),
            (DatabaseProvider.MYSQL, False),
            (DatabaseProvider.SQLITE, False),
            (DatabaseProvider.SQLSERVER, False),
            (DatabaseProvider.MONGODB, False),
        ],
    )
    def test_skip_duplicates(
        self, example_metadata: MetadataDocument, provider: DatabaseProvider, expected: bool
    ) -> None:
        context = GenerationContext(provider=provider)
        fields = _fields(context, example_metadata, "Post", OperationKind.CREATE_MANY)
        assert ("skipDuplicates" in fields) is expected
        assert fields[0] == "data"

    @pytest.mark.parametrize(
        "provider, expected",
        [
            (DatabaseProvider.POSTGRESQL, "PostOrderByWithRelationAndSearchRelevanceInput"),
            (DatabaseProvider.MYSQL, "PostOrderByWithRelationAndSearchRelevanceInput"),
            (DatabaseProvider.SQLITE, "PostOrderByWithRelationInput"),
        ],
    )
    def test_relevance_order_by(
        self, example_metadata: MetadataDocument, provider: DatabaseProvider, expected: str
    ) -> None:
        context = GenerationContext(
            provider=provider, preview_features=frozenset({"fullTextSearch"})
        )
        expr = OperationSchemaAssembler(context, example_metadata).assemble(
            "Post", OperationKind.FIND_MANY
        ).expression
        assert expr.get("orderBy") == OptionalOf(UnionOf((_ref(expected), ArrayOf(_ref(expected)))))

    def test_no_relevance_without_preview_feature(
        self, plain_context: GenerationContext, example_metadata: MetadataDocument
    ) -> None:
        expr = OperationSchemaAssembler(plain_context, example_metadata).assemble(
            "Post", OperationKind.FIND_MANY
        ).expression
        assert expr.get("orderBy").inner.members[0] == _ref("PostOrderByWithRelationInput")


# ===========================================================================
# Aggregates
# ===========================================================================


class TestAggregate:

    def test_flags_derived_from_input_types(
        self, example_context: GenerationContext, example_metadata: MetadataDocument
    ) -> None:
        unit = OperationSchemaAssembler(example_context, example_metadata).assemble(
            "Post", OperationKind.AGGREGATE
        )
        assert unit.expression.field_names() == [
            "orderBy", "where", "cursor", "take", "skip", "_count", "_max",
        ]
        assert unit.expression.get("_count") == OptionalOf(_ref("PostCountAggregateInput"))
        assert unit.expression.get("_max") == OptionalOf(_ref("PostMaxAggregateInput"))

    def test_explicit_support_section(self, example_metadata: MetadataDocument) -> None:
        metadata = example_metadata.model_copy(
            update={"aggregate_support": {"Post": AggregateSupport(avg=True, sum=True)}}
        )
        fields = _fields(GenerationContext(), metadata, "Post", OperationKind.AGGREGATE)
        assert fields[-2:] == ["_avg", "_sum"]
        assert "_count" not in fields

    def test_model_without_aggregate_inputs(
        self, example_context: GenerationContext, example_metadata: MetadataDocument
    ) -> None:
        fields = _fields(example_context, example_metadata, "User", OperationKind.AGGREGATE)
        assert fields == ["orderBy", "where", "cursor", "take", "skip"]

    def test_group_by(
        self, example_context: GenerationContext, example_metadata: MetadataDocument
    ) -> None:
        expr = OperationSchemaAssembler(example_context, example_metadata).assemble(
            "Post", OperationKind.GROUP_BY
        ).expression
        order_by = _ref("PostOrderByWithAggregationInput")
        assert expr.get("orderBy") == UnionOf((order_by, ArrayOf(order_by)))
        assert expr.get("having") == OptionalOf(_ref("PostScalarWhereWithAggregatesInput"))
        assert expr.get("by") == ArrayOf(SchemaRef("PostScalarFieldEnum", ReferenceKind.ENUM))


# ===========================================================================
# Model mapping
# ===========================================================================


class TestAssembleModel:

    def test_units_follow_operation_order(
        self, example_context: GenerationContext, example_metadata: MetadataDocument
    ) -> None:
        mapping = example_metadata.get_operations("User")
        assert mapping is not None
        units = OperationSchemaAssembler(example_context, example_metadata).assemble_model(mapping)
        assert [u.name for u in units] == [
            "UserFindUnique",
            "UserFindFirst",
            "UserFindMany",
            "UserCreateOne",
            "UserDeleteOne",
        ]

    def test_missing_model_raises(
        self, example_context: GenerationContext, example_metadata: MetadataDocument
    ) -> None:
        with pytest.raises(ModelNotFoundError) as exc_info:
            OperationSchemaAssembler(example_context, example_metadata).assemble(
                "Ghost", OperationKind.FIND_MANY
            )
        assert exc_info.value.model_name == "Ghost"
