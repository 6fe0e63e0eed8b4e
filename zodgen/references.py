"""
zodgen - Reference Resolution & Type Availability
=================================================
Handles every non-scalar alternative.

``ReferenceResolver`` decides what a reference points at (enum, composite,
or a derived model-operation schema) and whether it must be deferred with a
lazy binding so that mutually recursive composites never hit an unresolved
symbol at module evaluation time.

``TypeAvailabilityOracle`` is a best-effort, name-based guess of whether the
host client exports a type of the same name.  It only controls the optional
``z.ZodType<Prisma.X>`` annotation and never the validator itself.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Dict, FrozenSet, List, Optional, Tuple

from zodgen.ir import Expr, Lazy, ReferenceKind, SchemaRef
from zodgen.mapping import apply_modifiers
from zodgen.models import (
    HOST_NAMESPACE,
    GenerationContext,
    InputObjectType,
    InputTypeAlternative,
    OperationKind,
    SchemaArg,
    TypeLocation,
)
from zodgen.utils import capitalize_first

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("zodgen.references")

# ---------------------------------------------------------------------------
# Model-operation types
# ---------------------------------------------------------------------------

# Argument-shape suffix → operation whose schema stands in for it
_MODEL_QUERY_SUFFIXES: Dict[str, OperationKind] = {
    "FindManyArgs": OperationKind.FIND_MANY,
}


@dataclass(frozen=True, slots=True)
class ModelQueryType:
    model_name: str
    operation: OperationKind

    @property
    def unit_name(self) -> str:
        return operation_unit_name(self.model_name, self.operation)


def parse_model_query_type(type_name: str) -> Optional[ModelQueryType]:
    """``PostFindManyArgs`` → ``ModelQueryType("Post", findMany)``."""
    for suffix, operation in _MODEL_QUERY_SUFFIXES.items():
        index: int = type_name.find(suffix)
        if index > 0:
            return ModelQueryType(type_name[:index], operation)
    return None


def operation_unit_name(model_name: str, operation: OperationKind) -> str:
    """Deterministic unit name: ``Capitalize(model) + verb``."""
    return f"{capitalize_first(model_name)}{operation.verb}"


# ---------------------------------------------------------------------------
# ReferenceResolver
# ---------------------------------------------------------------------------


class ReferenceResolver:
    """Resolves enum / composite / model-operation alternatives to IR."""

    def __init__(self, context: GenerationContext) -> None:
        self._context: GenerationContext = context

    def object_name(self, type_name: str) -> str:
        """Exported base name of a composite, after the raw-operation remap."""
        raw_args: Optional[str] = self._context.resolve_raw_operation(type_name)
        if raw_args is not None:
            return raw_args.replace("Args", "")
        return type_name

    def classify(self, alternative: InputTypeAlternative) -> Optional[ReferenceKind]:
        if alternative.location == TypeLocation.ENUM_TYPES:
            return ReferenceKind.ENUM
        if alternative.location != TypeLocation.INPUT_OBJECT_TYPES:
            return None
        if self._context.is_enum(alternative.type):
            return ReferenceKind.ENUM
        if parse_model_query_type(alternative.type) is not None:
            return ReferenceKind.OPERATION
        return ReferenceKind.OBJECT

    def needs_deferral(self, alternative: InputTypeAlternative, owner_name: str) -> bool:
        """Self references and host-namespace composites bind lazily."""
        return alternative.type == owner_name or alternative.namespace == HOST_NAMESPACE

    def resolve(
        self,
        alternative: InputTypeAlternative,
        field: SchemaArg,
        owner_name: str,
    ) -> Optional[Expr]:
        kind: Optional[ReferenceKind] = self.classify(alternative)
        if kind is None:
            logger.debug(
                "Dropping alternative '%s' (%s) on %s.%s.",
                alternative.type,
                alternative.location.value,
                owner_name,
                field.name,
            )
            return None

        base: Expr
        if kind == ReferenceKind.ENUM:
            base = SchemaRef(alternative.type, ReferenceKind.ENUM)
        elif kind == ReferenceKind.OPERATION:
            query: Optional[ModelQueryType] = parse_model_query_type(alternative.type)
            assert query is not None
            base = SchemaRef(query.unit_name, ReferenceKind.OPERATION)
        else:
            ref: SchemaRef = SchemaRef(self.object_name(alternative.type), ReferenceKind.OBJECT)
            base = Lazy(ref) if self.needs_deferral(alternative, owner_name) else ref

        return apply_modifiers(base, alternative, field)


# ---------------------------------------------------------------------------
# TypeAvailabilityOracle
# ---------------------------------------------------------------------------

_ALWAYS_AVAILABLE: FrozenSet[str] = frozenset(
    {
        "JsonNullValueFilter",
        "JsonNullValueInput",
        "NullableJsonNullValueInput",
        "SortOrder",
        "NullsOrder",
        "QueryMode",
        "TransactionIsolationLevel",
    }
)

_AVAILABLE_ENUM_SUFFIXES: Tuple[str, ...] = (
    "ScalarFieldEnum",
    "OrderByRelevanceFieldEnum",
)

_PROVIDER_PREFIX_RE: re.Pattern[str] = re.compile(r"^(MySQL|PostgreSQL|MongoDB|SQLite|SQLServer)")

_OPERATION_INPUT_SUFFIXES: Tuple[str, ...] = (
    "Filter",
    "Select",
    "Include",
    "WhereInput",
    "OrderByWithRelationInput",
    "WhereUniqueInput",
    "CreateInput",
    "UpdateInput",
    "UncheckedCreateInput",
    "UncheckedUpdateInput",
    "InputEnvelope",
    "OperationsInput",
    "AggregatesInput",
    "WithAggregationInput",
    "InputType",
)

_RELATION_INPUT_MARKERS: Tuple[str, ...] = (
    "CreateNestedOneWithout",
    "CreateNestedManyWithout",
    "WhereUniqueInput",
    "CreateWithout",
    "UncheckedCreateWithout",
)


class TypeAvailabilityOracle:
    """
    Guesses whether ``Prisma.<name>`` exists in the host client.

    Known limitation: names outside the listed patterns are reported as
    unavailable even when the client exports them; the annotation is then
    simply omitted.
    """

    def is_available(self, name: str) -> bool:
        if name.endswith(_AVAILABLE_ENUM_SUFFIXES):
            return True
        if name in _ALWAYS_AVAILABLE:
            return True
        bare: str = _PROVIDER_PREFIX_RE.sub("", name)
        return bare.endswith(_OPERATION_INPUT_SUFFIXES)

    def has_complex_relations(self, composite: InputObjectType) -> bool:
        for field in composite.fields:
            for alt in field.input_types:
                if (
                    alt.location != TypeLocation.ENUM_TYPES
                    and alt.namespace == HOST_NAMESPACE
                    and alt.type != composite.name
                    and any(marker in alt.type for marker in _RELATION_INPUT_MARKERS)
                ):
                    return True
        return False

    def annotation_for(self, composite: InputObjectType, host_name: str) -> Optional[str]:
        """Host type name to annotate with, or ``None``."""
        if self.is_available(host_name) or self.has_complex_relations(composite):
            return host_name
        return None


__all__: List[str] = [
    "ModelQueryType",
    "parse_model_query_type",
    "operation_unit_name",
    "ReferenceResolver",
    "TypeAvailabilityOracle",
]

logger.debug("zodgen.references loaded — %d public symbols.", len(__all__))
