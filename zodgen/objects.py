"""
zodgen - Object & Enum Schema Assembly
======================================
Builds one ``GeneratedUnit`` per composite input type and per enumeration.

A composite becomes a strict object validator::

    const Schema: z.ZodType<Prisma.UserWhereInput> = z.object({...}).strict();
    export const UserWhereInputObjectSchema = Schema;

The annotation is attached only when ``TypeAvailabilityOracle`` believes the
host client exports a type of that name.
"""

from __future__ import annotations

import logging
from typing import List, Optional, Tuple

from zodgen.ir import EnumOf, Expr, GeneratedUnit, ObjectField, ObjectOf, UnitKind
from zodgen.mapping import AlternativeCombinator, TypeMapper
from zodgen.models import (
    EnumType,
    GenerationContext,
    InputObjectType,
    SchemaArg,
    is_aggregate_input_type,
)
from zodgen.references import ReferenceResolver, TypeAvailabilityOracle

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("zodgen.objects")


class ObjectSchemaAssembler:
    """
    Per-composite object assembly.

    Stateless apart from the shared, frozen context; safe to call from
    several worker threads at once.
    """

    def __init__(self, context: GenerationContext) -> None:
        self._context: GenerationContext = context
        self._mapper: TypeMapper = TypeMapper()
        self._combinator: AlternativeCombinator = AlternativeCombinator()
        self._resolver: ReferenceResolver = ReferenceResolver(context)
        self._oracle: TypeAvailabilityOracle = TypeAvailabilityOracle()

    # ------------------------------------------------------------------ #
    # Naming
    # ------------------------------------------------------------------ #

    def resolve_names(self, name: str) -> Tuple[str, str]:
        """
        Return ``(export_name, host_type_name)`` for composite *name*.

        Raw-operation shapes are renamed through the remap table
        (``findUserRaw`` → ``UserFindRaw`` / ``UserFindRawArgs``); aggregate
        inputs keep their name but annotate with the ``...Type`` host type.
        """
        raw_args: Optional[str] = self._context.resolve_raw_operation(name)
        if raw_args is not None:
            return raw_args.replace("Args", ""), raw_args
        if is_aggregate_input_type(name):
            return name, f"{name}Type"
        return name, name

    # ------------------------------------------------------------------ #
    # Fields
    # ------------------------------------------------------------------ #

    def compile_field(self, field: SchemaArg, owner_name: str) -> Optional[ObjectField]:
        """Resolve every alternative of *field* and combine them."""
        resolved: List[Expr] = []
        for alternative in field.input_types:
            expr: Optional[Expr]
            if alternative.is_scalar:
                expr = self._mapper.map_scalar(alternative, field)
            else:
                expr = self._resolver.resolve(alternative, field, owner_name)
            if expr is not None:
                resolved.append(expr)

        combined: Optional[Expr] = self._combinator.combine(field, resolved)
        if combined is None:
            logger.debug("Field %s.%s has no usable alternative; omitted.", owner_name, field.name)
            return None
        return ObjectField(field.name, combined)

    # ------------------------------------------------------------------ #
    # Units
    # ------------------------------------------------------------------ #

    def assemble(self, composite: InputObjectType) -> GeneratedUnit:
        export_name, host_name = self.resolve_names(composite.name)

        fields: List[ObjectField] = []
        for schema_arg in composite.fields:
            compiled: Optional[ObjectField] = self.compile_field(schema_arg, composite.name)
            if compiled is not None:
                fields.append(compiled)

        annotation: Optional[str] = self._oracle.annotation_for(composite, host_name)
        unit: GeneratedUnit = GeneratedUnit(
            kind=UnitKind.OBJECT,
            name=export_name,
            expression=ObjectOf(tuple(fields), strict=True),
            type_annotation=annotation,
        )
        logger.debug(
            "Assembled %r (%d/%d fields, annotation=%s)",
            unit,
            len(fields),
            len(composite.fields),
            annotation,
        )
        return unit


def assemble_enum(enum_type: EnumType) -> GeneratedUnit:
    """``export const RoleSchema = z.enum(["USER", "ADMIN"])``"""
    return GeneratedUnit(
        kind=UnitKind.ENUM,
        name=enum_type.name,
        expression=EnumOf(tuple(enum_type.values)),
    )


__all__: List[str] = [
    "ObjectSchemaAssembler",
    "assemble_enum",
]

logger.debug("zodgen.objects loaded — %d public symbols.", len(__all__))
