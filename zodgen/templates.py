"""
zodgen - Schema Renderer
========================
Turns ``GeneratedUnit`` expression trees plus their import lists into
TypeScript module text.

**Performance contract:**
    - All string assembly uses ``List[str]`` + ``"\\n".join()``.
    - The renderer holds no mutable state and is safe for concurrent use.

**Output contract:**
    - Two-space indentation, single-quoted module specifiers, double-quoted
      string literals.
    - Every module ends with exactly one newline.
    - Identical units always render to identical text.
"""

from __future__ import annotations

import logging
from typing import List, Sequence

from zodgen.imports import ImportGraphBuilder, ImportSpec
from zodgen.ir import (
    ArrayOf,
    EnumOf,
    Expr,
    GeneratedUnit,
    JsonValue,
    Lazy,
    NullableOf,
    ObjectOf,
    OptionalOf,
    Primitive,
    SchemaRef,
    UnionOf,
    UnitKind,
)
from zodgen.models import GeneratedFile, GenerationContext
from zodgen.utils import object_key, quote_ts_string

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("zodgen.templates")

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

_INDENT: str = "  "

JSON_SCHEMA_SYMBOL: str = "jsonSchema"

# Recursive JSON validator shared by every field of a unit that accepts Json
JSON_HELPER: str = "\n".join(
    [
        "const literalSchema = z.union([z.string(), z.number(), z.boolean()]);",
        f"const {JSON_SCHEMA_SYMBOL}: z.ZodType<Prisma.InputJsonValue> = z.lazy(() =>",
        f"{_INDENT}z.union([",
        f"{_INDENT}{_INDENT}literalSchema,",
        f"{_INDENT}{_INDENT}z.array({JSON_SCHEMA_SYMBOL}.nullable()),",
        f"{_INDENT}{_INDENT}z.record(z.string(), {JSON_SCHEMA_SYMBOL}.nullable()),",
        f"{_INDENT}]),",
        ");",
    ]
)


class SchemaRenderer:
    """
    Stateless rendering engine.

    ``render_unit`` returns a complete module for one unit; ``render_index``
    returns the re-export module from the index unit.
    """

    def __init__(self, context: GenerationContext) -> None:
        self._context: GenerationContext = context
        self._imports: ImportGraphBuilder = ImportGraphBuilder(context)

    # ===================================================================
    # Expressions
    # ===================================================================

    def render_expression(self, expr: Expr, level: int = 0) -> str:
        if isinstance(expr, Primitive):
            return expr.code
        if isinstance(expr, JsonValue):
            return JSON_SCHEMA_SYMBOL
        if isinstance(expr, SchemaRef):
            return expr.symbol
        if isinstance(expr, Lazy):
            inner: str = self.render_expression(expr.inner, level)
            if expr.annotation:
                return f"z.lazy((): z.ZodType<Prisma.{expr.annotation}> => {inner})"
            return f"z.lazy(() => {inner})"
        if isinstance(expr, ArrayOf):
            return f"{self.render_expression(expr.inner, level)}.array()"
        if isinstance(expr, OptionalOf):
            return f"{self.render_expression(expr.inner, level)}.optional()"
        if isinstance(expr, NullableOf):
            return f"{self.render_expression(expr.inner, level)}.nullable()"
        if isinstance(expr, UnionOf):
            members: str = ", ".join(self.render_expression(m, level) for m in expr.members)
            return f"z.union([{members}])"
        if isinstance(expr, ObjectOf):
            return self._render_object(expr, level)
        if isinstance(expr, EnumOf):
            values: str = ", ".join(quote_ts_string(v) for v in expr.values)
            return f"z.enum([{values}])"
        raise TypeError(f"Unsupported expression node: {type(expr).__name__}")

    def _render_object(self, expr: ObjectOf, level: int) -> str:
        suffix: str = ".strict()" if expr.strict else ""
        if not expr.fields:
            return f"z.object({{}}){suffix}"

        pad: str = _INDENT * (level + 1)
        lines: List[str] = ["z.object({"]
        for field in expr.fields:
            value: str = self.render_expression(field.expr, level + 1)
            lines.append(f"{pad}{object_key(field.name)}: {value},")
        lines.append(f"{_INDENT * level}}}){suffix}")
        return "\n".join(lines)

    # ===================================================================
    # Imports
    # ===================================================================

    def render_imports(self, imports: Sequence[ImportSpec]) -> List[str]:
        lines: List[str] = []
        for spec in imports:
            keyword: str = "import type" if spec.type_only else "import"
            lines.append(f"{keyword} {{ {spec.symbol} }} from '{spec.module}';")
        return lines

    # ===================================================================
    # Units
    # ===================================================================

    def render_unit(self, unit: GeneratedUnit) -> GeneratedFile:
        if unit.kind == UnitKind.INDEX:
            raise ValueError("Index units are rendered with render_index().")
        if unit.expression is None:
            raise ValueError(f"Unit {unit.name!r} has no expression to render.")

        lines: List[str] = self.render_imports(self._imports.build(unit))
        lines.append("")

        if unit.uses_json:
            lines.append(JSON_HELPER)
            lines.append("")

        body: str = self.render_expression(unit.expression)
        if unit.kind == UnitKind.OBJECT:
            annotation: str = (
                f": z.ZodType<Prisma.{unit.type_annotation}>" if unit.type_annotation else ""
            )
            lines.append(f"const Schema{annotation} = {body};")
            lines.append("")
            lines.append(f"export const {unit.export_name} = Schema;")
        else:
            lines.append(f"export const {unit.export_name} = {body};")

        content: str = "\n".join(lines) + "\n"
        return GeneratedFile(path=unit.relative_path, content=content)

    def render(self, unit: GeneratedUnit) -> GeneratedFile:
        if unit.kind == UnitKind.INDEX:
            return self.render_index(unit)
        return self.render_unit(unit)

    def render_index(self, unit: GeneratedUnit) -> GeneratedFile:
        """``export * from './...'`` for every member of the index unit, in order."""
        if unit.kind != UnitKind.INDEX:
            raise ValueError(f"{unit!r} is not an index unit.")
        lines: List[str] = [
            f"export * from '{self._imports.index_module_path(stem)}';"
            for stem in unit.members
        ]
        content: str = "\n".join(lines) + "\n" if lines else ""
        return GeneratedFile(path="index.ts", content=content)


__all__: List[str] = [
    "JSON_SCHEMA_SYMBOL",
    "JSON_HELPER",
    "SchemaRenderer",
]

logger.debug("zodgen.templates loaded — %d public symbols.", len(__all__))
