"""
zodgen - Validator Expression IR
================================
Typed, immutable expression nodes produced by the assemblers and consumed by
the renderer (``zodgen.templates``).  Keeping the transformation output
structured means wrapper order, optional-stripping inside unions and
reference collection are tree operations rather than string surgery.

Node vocabulary::

    Primitive   z.string(), z.number().int(), ...
    JsonValue   the shared recursive JSON validator
    SchemaRef   a named schema in this or another unit
    Lazy        deferred binding, resolved at the point of use
    ArrayOf     .array()
    OptionalOf  .optional()
    NullableOf  .nullable()
    UnionOf     z.union([...])
    ObjectOf    z.object({...}) (optionally .strict())
    EnumOf      z.enum([...])

``GeneratedUnit`` wraps one root expression with its naming and path
information; it is the artefact handed from assembly to rendering.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Iterator, List, Optional, Tuple, Union

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("zodgen.ir")


class ReferenceKind(str, Enum):
    """What a ``SchemaRef`` points at; each kind has its own path convention."""

    OBJECT = "object"
    ENUM = "enum"
    OPERATION = "operation"


class UnitKind(str, Enum):
    """Kinds of generated units."""

    OBJECT = "object"
    ENUM = "enum"
    OPERATION = "operation"
    INDEX = "index"


# ---------------------------------------------------------------------------
# Expression nodes
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class Primitive:
    """A leaf validator call, e.g. ``z.string()``."""

    code: str


@dataclass(frozen=True, slots=True)
class JsonValue:
    """Reference to the per-unit recursive JSON validator."""


@dataclass(frozen=True, slots=True)
class SchemaRef:
    """A named schema exported by some generated unit."""

    name: str
    kind: ReferenceKind

    @property
    def symbol(self) -> str:
        """Exported identifier: ``XObjectSchema`` for objects, ``XSchema`` otherwise."""
        if self.kind == ReferenceKind.OBJECT:
            return f"{self.name}ObjectSchema"
        return f"{self.name}Schema"


@dataclass(frozen=True, slots=True)
class Lazy:
    """Deferred binding; ``annotation`` optionally names the host type."""

    inner: "Expr"
    annotation: Optional[str] = None


@dataclass(frozen=True, slots=True)
class ArrayOf:
    inner: "Expr"


@dataclass(frozen=True, slots=True)
class OptionalOf:
    inner: "Expr"


@dataclass(frozen=True, slots=True)
class NullableOf:
    inner: "Expr"


@dataclass(frozen=True, slots=True)
class UnionOf:
    members: Tuple["Expr", ...]


@dataclass(frozen=True, slots=True)
class ObjectField:
    name: str
    expr: "Expr"


@dataclass(frozen=True, slots=True)
class ObjectOf:
    fields: Tuple[ObjectField, ...]
    strict: bool = False

    def field_names(self) -> List[str]:
        return [f.name for f in self.fields]

    def get(self, name: str) -> Optional["Expr"]:
        return next((f.expr for f in self.fields if f.name == name), None)


@dataclass(frozen=True, slots=True)
class EnumOf:
    values: Tuple[str, ...]


Expr = Union[
    Primitive,
    JsonValue,
    SchemaRef,
    Lazy,
    ArrayOf,
    OptionalOf,
    NullableOf,
    UnionOf,
    ObjectOf,
    EnumOf,
]


# ---------------------------------------------------------------------------
# Tree helpers
# ---------------------------------------------------------------------------


def children(expr: Expr) -> Tuple[Expr, ...]:
    """Direct sub-expressions of *expr*."""
    if isinstance(expr, (Lazy, ArrayOf, OptionalOf, NullableOf)):
        return (expr.inner,)
    if isinstance(expr, UnionOf):
        return expr.members
    if isinstance(expr, ObjectOf):
        return tuple(f.expr for f in expr.fields)
    return ()


def walk(expr: Expr) -> Iterator[Expr]:
    """Depth-first, pre-order traversal (deterministic)."""
    stack: List[Expr] = [expr]
    while stack:
        node: Expr = stack.pop()
        yield node
        stack.extend(reversed(children(node)))


def strip_optional(expr: Expr) -> Expr:
    """Remove outer optional wrappers so a union member carries none."""
    while isinstance(expr, OptionalOf):
        expr = expr.inner
    return expr


def collect_references(expr: Expr) -> List[SchemaRef]:
    """All schema references in *expr*, first-seen order, de-duplicated."""
    seen: dict = {}
    for node in walk(expr):
        if isinstance(node, SchemaRef):
            seen.setdefault(node, None)
    return list(seen)


def uses_json(expr: Expr) -> bool:
    return any(isinstance(node, JsonValue) for node in walk(expr))


def has_annotated_lazy(expr: Expr) -> bool:
    return any(isinstance(n, Lazy) and n.annotation for n in walk(expr))


def is_deferred(expr: Expr, name: str) -> bool:
    """True if every reference to *name* inside *expr* sits under a ``Lazy``."""
    found: bool = False
    stack: List[Tuple[Expr, bool]] = [(expr, False)]
    while stack:
        node, under_lazy = stack.pop()
        if isinstance(node, SchemaRef) and node.name == name:
            found = True
            if not under_lazy:
                return False
        lazy_here: bool = under_lazy or isinstance(node, Lazy)
        stack.extend((child, lazy_here) for child in children(node))
    return found


# ---------------------------------------------------------------------------
# Generated unit
# ---------------------------------------------------------------------------

_UNIT_DIRECTORIES = {
    UnitKind.OBJECT: "objects",
    UnitKind.ENUM: "enums",
    UnitKind.OPERATION: "",
    UnitKind.INDEX: "",
}


@dataclass(frozen=True, slots=True)
class GeneratedUnit:
    """
    One generated module: a single exported validator definition.

    ``name`` is the file stem and the base of the exported symbol; both are
    derived by the same rule, so ``objects/UserWhereInput.schema.ts`` exports
    ``UserWhereInputObjectSchema`` and ``UserFindMany.schema.ts`` exports
    ``UserFindManySchema``.
    """

    kind: UnitKind
    name: str
    expression: Optional[Expr] = None
    type_annotation: Optional[str] = None
    members: Tuple[str, ...] = ()

    @property
    def directory(self) -> str:
        return _UNIT_DIRECTORIES[self.kind]

    @property
    def export_name(self) -> str:
        if self.kind == UnitKind.OBJECT:
            return f"{self.name}ObjectSchema"
        return f"{self.name}Schema"

    @property
    def module_stem(self) -> str:
        """Path without extension, relative to the schemas root."""
        if self.kind == UnitKind.INDEX:
            return "index"
        stem: str = f"{self.name}.schema"
        return f"{self.directory}/{stem}" if self.directory else stem

    @property
    def relative_path(self) -> str:
        return f"{self.module_stem}.ts"

    @property
    def self_reference(self) -> Optional[SchemaRef]:
        if self.kind == UnitKind.OBJECT:
            return SchemaRef(self.name, ReferenceKind.OBJECT)
        return None

    @property
    def uses_json(self) -> bool:
        return self.expression is not None and uses_json(self.expression)

    @property
    def needs_host_types(self) -> bool:
        """True if the rendered module refers to the host ``Prisma`` namespace."""
        if self.type_annotation is not None or self.uses_json:
            return True
        return self.expression is not None and has_annotated_lazy(self.expression)

    def __repr__(self) -> str:
        return f"<GeneratedUnit {self.kind.value} {self.relative_path}>"


# ---------------------------------------------------------------------------
# Module-level exports
# ---------------------------------------------------------------------------

__all__: List[str] = [
    "ReferenceKind",
    "UnitKind",
    "Primitive",
    "JsonValue",
    "SchemaRef",
    "Lazy",
    "ArrayOf",
    "OptionalOf",
    "NullableOf",
    "UnionOf",
    "ObjectField",
    "ObjectOf",
    "EnumOf",
    "Expr",
    "children",
    "walk",
    "strip_optional",
    "collect_references",
    "uses_json",
    "has_annotated_lazy",
    "is_deferred",
    "GeneratedUnit",
]

logger.debug("zodgen.ir loaded — %d public symbols.", len(__all__))
