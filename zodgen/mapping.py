"""
zodgen - Type Mapping & Alternative Combination
===============================================
Leaf stage of the transformation engine.

``TypeMapper`` turns one scalar input-type alternative into a validator
primitive; ``AlternativeCombinator`` merges all alternatives of a field into
the single expression bound to that field.

Wrapper order is fixed and shared with ``ReferenceResolver``::

    base → .array() (list) → .optional() (not required)

and, at field level, ``.nullable()`` is always outermost.
"""

from __future__ import annotations

import logging
from typing import Dict, List, Optional, Sequence

from zodgen.ir import ArrayOf, Expr, JsonValue, NullableOf, OptionalOf, Primitive, UnionOf, strip_optional
from zodgen.models import InputTypeAlternative, SchemaArg

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("zodgen.mapping")

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

JSON_TYPE: str = "Json"

# Scalar type name → validator primitive
SCALAR_PRIMITIVES: Dict[str, str] = {
    "String": "z.string()",
    "Int": "z.number().int()",
    "Float": "z.number()",
    "Decimal": "z.number()",
    "BigInt": "z.bigint()",
    "Boolean": "z.boolean()",
    "DateTime": "z.coerce.date()",
    "True": "z.literal(true)",
    "Bytes": "z.instanceof(Uint8Array)",
}


def apply_modifiers(
    base: Expr, alternative: InputTypeAlternative, field: SchemaArg
) -> Expr:
    """Append the list wrapper, then the optional wrapper."""
    expr: Expr = base
    if alternative.is_list:
        expr = ArrayOf(expr)
    if not field.is_required:
        expr = OptionalOf(expr)
    return expr


class TypeMapper:
    """Maps scalar alternatives to validator primitives."""

    def is_supported(self, type_name: str) -> bool:
        return type_name == JSON_TYPE or type_name in SCALAR_PRIMITIVES

    def map_scalar(
        self, alternative: InputTypeAlternative, field: SchemaArg
    ) -> Optional[Expr]:
        """
        Return the wrapped primitive for *alternative*, or ``None`` when the
        scalar type is not supported (the alternative is then discarded).
        """
        base: Expr
        if alternative.type == JSON_TYPE:
            base = JsonValue()
        else:
            code: Optional[str] = SCALAR_PRIMITIVES.get(alternative.type)
            if code is None:
                logger.debug(
                    "Dropping unsupported scalar '%s' on field '%s'.",
                    alternative.type,
                    field.name,
                )
                return None
            base = Primitive(code)
        return apply_modifiers(base, alternative, field)


class AlternativeCombinator:
    """Combines a field's resolved alternatives into one expression."""

    def combine(self, field: SchemaArg, alternatives: Sequence[Expr]) -> Optional[Expr]:
        """
        Single alternative: returned as-is.  Several: each loses its own
        optional wrapper, they are joined as a union in metadata order and
        one optional wrapper is applied to the union if the field is not
        required.  Nullable is appended last in both cases.  No alternatives
        → ``None`` (the field is dropped).
        """
        if not alternatives:
            return None

        expr: Expr
        if len(alternatives) == 1:
            expr = alternatives[0]
        else:
            members: List[Expr] = [strip_optional(alt) for alt in alternatives]
            expr = UnionOf(tuple(members))
            if not field.is_required:
                expr = OptionalOf(expr)

        if field.is_nullable:
            expr = NullableOf(expr)
        return expr


__all__: List[str] = [
    "JSON_TYPE",
    "SCALAR_PRIMITIVES",
    "apply_modifiers",
    "TypeMapper",
    "AlternativeCombinator",
]

logger.debug("zodgen.mapping loaded — %d public symbols.", len(__all__))
