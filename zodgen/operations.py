"""
zodgen - Operation Schema Assembly
==================================
One argument-object validator per (model, operation) pair present in the
model's operation mapping, e.g. ``UserFindMany.schema.ts`` exporting
``UserFindManySchema``.

Field composition per operation::

    findUnique   select? include? where
    findFirst    select? include? orderBy? where? cursor? take? skip? distinct?
    findMany     as findFirst, select/include bound lazily
    createOne    select? include? data
    createMany   data skipDuplicates? (postgresql / cockroachdb only)
    deleteOne    select? include? where
    deleteMany   where?
    updateOne    select? include? data where
    updateMany   data where?
    upsertOne    select? include? where create update (checked or unchecked)
    aggregate    orderBy? where? cursor? take? skip? _count? _min? _max? _avg? _sum?
    groupBy      where? orderBy having? take? skip? by

Operation objects are not strict; composite objects are.
"""

from __future__ import annotations

import logging
from typing import Callable, Dict, List

from zodgen.ir import (
    ArrayOf,
    Expr,
    GeneratedUnit,
    Lazy,
    ObjectField,
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
    GenerationContext,
    MetadataDocument,
    Model,
    ModelOperationMapping,
    OperationKind,
)
from zodgen.references import operation_unit_name

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("zodgen.operations")

_NUMBER: Primitive = Primitive("z.number()")
_BOOLEAN: Primitive = Primitive("z.boolean()")


def _obj(name: str) -> SchemaRef:
    return SchemaRef(name, ReferenceKind.OBJECT)


def _one_or_many(name: str) -> UnionOf:
    ref: SchemaRef = _obj(name)
    return UnionOf((ref, ArrayOf(ref)))


class OperationSchemaAssembler:
    """Builds operation units for every model in the operation mappings."""

    def __init__(self, context: GenerationContext, metadata: MetadataDocument) -> None:
        self._context: GenerationContext = context
        self._metadata: MetadataDocument = metadata
        self._aggregate_support: Dict[str, AggregateSupport] = (
            metadata.resolved_aggregate_support()
        )
        self._builders: Dict[OperationKind, Callable[[Model], List[ObjectField]]] = {
            OperationKind.FIND_UNIQUE: self._find_unique,
            OperationKind.FIND_FIRST: self._find_first,
            OperationKind.FIND_MANY: self._find_many,
            OperationKind.CREATE_ONE: self._create_one,
            OperationKind.CREATE_MANY: self._create_many,
            OperationKind.DELETE_ONE: self._delete_one,
            OperationKind.DELETE_MANY: self._delete_many,
            OperationKind.UPDATE_ONE: self._update_one,
            OperationKind.UPDATE_MANY: self._update_many,
            OperationKind.UPSERT_ONE: self._upsert_one,
            OperationKind.AGGREGATE: self._aggregate,
            OperationKind.GROUP_BY: self._group_by,
        }

    # ------------------------------------------------------------------ #
    # Public API
    # ------------------------------------------------------------------ #

    def assemble_model(self, mapping: ModelOperationMapping) -> List[GeneratedUnit]:
        """All units for one mapping, in ``OperationKind`` declaration order."""
        return [
            self.assemble(mapping.model, operation)
            for operation in OperationKind
            if mapping.supports(operation)
        ]

    def assemble(self, model_name: str, operation: OperationKind) -> GeneratedUnit:
        """
        Build the unit for one operation.

        Raises:
            ModelNotFoundError: If *model_name* is not in the metadata.
        """
        model: Model = self._metadata.require_model(model_name)
        fields: List[ObjectField] = self._builders[operation](model)
        unit: GeneratedUnit = GeneratedUnit(
            kind=UnitKind.OPERATION,
            name=operation_unit_name(model.name, operation),
            expression=ObjectOf(tuple(fields), strict=False),
        )
        logger.debug("Assembled %r with fields %s", unit, [f.name for f in fields])
        return unit

    # ------------------------------------------------------------------ #
    # Shared fragments
    # ------------------------------------------------------------------ #

    def _projection(self, model: Model, lazy: bool = False) -> List[ObjectField]:
        """``select`` / ``include`` fields, each only when enabled."""
        names: List[str] = []
        if self._context.is_generate_select:
            names.append("select")
        if self._context.is_generate_include and model.has_relation:
            names.append("include")

        fields: List[ObjectField] = []
        for key in names:
            type_name: str = f"{model.name}{key.capitalize()}"
            target: Expr = _obj(type_name)
            if lazy:
                target = Lazy(target, annotation=type_name)
            fields.append(ObjectField(key, OptionalOf(target)))
        return fields

    def _order_by(self, model: Model) -> Expr:
        suffix: str = (
            "OrderByWithRelationAndSearchRelevanceInput"
            if self._context.uses_relevance_ordering
            else "OrderByWithRelationInput"
        )
        return _one_or_many(f"{model.name}{suffix}")

    def _where(self, model: Model) -> ObjectField:
        return ObjectField("where", OptionalOf(_obj(f"{model.name}WhereInput")))

    def _where_unique(self, model: Model) -> ObjectField:
        return ObjectField("where", _obj(f"{model.name}WhereUniqueInput"))

    def _pagination(self, model: Model) -> List[ObjectField]:
        return [
            ObjectField("cursor", OptionalOf(_obj(f"{model.name}WhereUniqueInput"))),
            ObjectField("take", OptionalOf(_NUMBER)),
            ObjectField("skip", OptionalOf(_NUMBER)),
        ]

    def _create_data(self, model: Model) -> UnionOf:
        return UnionOf(
            (_obj(f"{model.name}CreateInput"), _obj(f"{model.name}UncheckedCreateInput"))
        )

    def _update_data(self, model: Model) -> UnionOf:
        return UnionOf(
            (_obj(f"{model.name}UpdateInput"), _obj(f"{model.name}UncheckedUpdateInput"))
        )

    def _scalar_field_enum(self, model: Model) -> SchemaRef:
        return SchemaRef(f"{model.name}ScalarFieldEnum", ReferenceKind.ENUM)

    def _search_fields(self, model: Model) -> List[ObjectField]:
        return [
            ObjectField("orderBy", OptionalOf(self._order_by(model))),
            self._where(model),
            *self._pagination(model),
            ObjectField("distinct", OptionalOf(ArrayOf(self._scalar_field_enum(model)))),
        ]

    # ------------------------------------------------------------------ #
    # Per-operation builders
    # ------------------------------------------------------------------ #

    def _find_unique(self, model: Model) -> List[ObjectField]:
        return [*self._projection(model), self._where_unique(model)]

    def _find_first(self, model: Model) -> List[ObjectField]:
        return [*self._projection(model), *self._search_fields(model)]

    def _find_many(self, model: Model) -> List[ObjectField]:
        return [*self._projection(model, lazy=True), *self._search_fields(model)]

    def _create_one(self, model: Model) -> List[ObjectField]:
        return [*self._projection(model), ObjectField("data", self._create_data(model))]

    def _create_many(self, model: Model) -> List[ObjectField]:
        fields: List[ObjectField] = [
            ObjectField("data", _one_or_many(f"{model.name}CreateManyInput"))
        ]
        if self._context.supports_skip_duplicates:
            fields.append(ObjectField("skipDuplicates", OptionalOf(_BOOLEAN)))
        return fields

    def _delete_one(self, model: Model) -> List[ObjectField]:
        return [*self._projection(model), self._where_unique(model)]

    def _delete_many(self, model: Model) -> List[ObjectField]:
        return [self._where(model)]

    def _update_one(self, model: Model) -> List[ObjectField]:
        return [
            *self._projection(model),
            ObjectField("data", self._update_data(model)),
            self._where_unique(model),
        ]

    def _update_many(self, model: Model) -> List[ObjectField]:
        return [
            ObjectField("data", _obj(f"{model.name}UpdateManyMutationInput")),
            self._where(model),
        ]

    def _upsert_one(self, model: Model) -> List[ObjectField]:
        return [
            *self._projection(model),
            self._where_unique(model),
            ObjectField("create", self._create_data(model)),
            ObjectField("update", self._update_data(model)),
        ]

    def _aggregate(self, model: Model) -> List[ObjectField]:
        support: AggregateSupport = self._aggregate_support.get(model.name, AggregateSupport())
        fields: List[ObjectField] = [
            ObjectField("orderBy", OptionalOf(self._order_by(model))),
            self._where(model),
            *self._pagination(model),
        ]
        if support.count:
            count: SchemaRef = _obj(f"{model.name}CountAggregateInput")
            fields.append(ObjectField("_count", OptionalOf(count)))
        for flag, key in (("min", "Min"), ("max", "Max"), ("avg", "Avg"), ("sum", "Sum")):
            if getattr(support, flag):
                ref: SchemaRef = _obj(f"{model.name}{key}AggregateInput")
                fields.append(ObjectField(f"_{flag}", OptionalOf(ref)))
        return fields

    def _group_by(self, model: Model) -> List[ObjectField]:
        return [
            self._where(model),
            ObjectField("orderBy", _one_or_many(f"{model.name}OrderByWithAggregationInput")),
            ObjectField(
                "having", OptionalOf(_obj(f"{model.name}ScalarWhereWithAggregatesInput"))
            ),
            ObjectField("take", OptionalOf(_NUMBER)),
            ObjectField("skip", OptionalOf(_NUMBER)),
            ObjectField("by", ArrayOf(self._scalar_field_enum(model))),
        ]


__all__: List[str] = [
    "OperationSchemaAssembler",
]

logger.debug("zodgen.operations loaded — %d public symbols.", len(__all__))
