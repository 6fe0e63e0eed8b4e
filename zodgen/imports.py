"""
zodgen - Import Graph
=====================
Computes the import block of every generated unit from its expression tree.

Path conventions (schemas root = ``<output>/schemas``)::

    from objects/           from the schemas root
    ./X.schema              ./objects/X.schema          composite
    ../enums/X.schema       ./enums/X.schema            enum
    ../UserFindMany.schema  ./UserFindMany.schema       operation

The host-type import defaults to ``@prisma/client``.  A custom client output
is imported by relative path; the new client generator exposes its types
under a ``/client`` entry point which is appended when missing.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import List

from zodgen.ir import GeneratedUnit, ReferenceKind, SchemaRef, UnitKind, collect_references
from zodgen.models import DEFAULT_CLIENT_OUTPUT, GenerationContext
from zodgen.utils import relative_module_path

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("zodgen.imports")

ZOD_MODULE: str = "zod"
HOST_TYPES_SYMBOL: str = "Prisma"
_CLIENT_ENTRY: str = "/client"


@dataclass(frozen=True, slots=True)
class ImportSpec:
    """One named import: ``import [type] { symbol } from 'module'``."""

    symbol: str
    module: str
    type_only: bool = False


def target_stem(ref: SchemaRef) -> str:
    """Module path of *ref*'s unit, relative to the schemas root."""
    if ref.kind == ReferenceKind.OBJECT:
        return f"objects/{ref.name}.schema"
    if ref.kind == ReferenceKind.ENUM:
        return f"enums/{ref.name}.schema"
    return f"{ref.name}.schema"


class ImportGraphBuilder:
    """Per-unit import resolution; pure with respect to the context."""

    def __init__(self, context: GenerationContext) -> None:
        self._context: GenerationContext = context

    def collect(self, unit: GeneratedUnit) -> List[SchemaRef]:
        """References of *unit*, self reference removed, first-seen order."""
        if unit.expression is None:
            return []
        own = unit.self_reference
        return [ref for ref in collect_references(unit.expression) if ref != own]

    def module_path(self, unit: GeneratedUnit, ref: SchemaRef) -> str:
        from_dir: str = unit.directory or "."
        path: str = relative_module_path(from_dir, target_stem(ref))
        return f"{path}{self._context.import_file_extension}"

    def index_module_path(self, module_stem: str) -> str:
        """Re-export path of a unit from ``index.ts``."""
        return f"./{module_stem}{self._context.import_file_extension}"

    def host_types_module(self, unit: GeneratedUnit) -> str:
        """Module the ``Prisma`` type namespace is imported from."""
        if not self._context.is_custom_client_output:
            return DEFAULT_CLIENT_OUTPUT

        output: str = self._context.client.output or DEFAULT_CLIENT_OUTPUT
        from_dir: str = os.path.join(self._context.schemas_path, unit.directory)
        module: str = relative_module_path(from_dir, output)

        if (
            self._context.is_new_client_generator
            and not module.endswith(_CLIENT_ENTRY)
            and DEFAULT_CLIENT_OUTPUT not in module
        ):
            module = f"{module}{_CLIENT_ENTRY}"
        return module

    def build(self, unit: GeneratedUnit) -> List[ImportSpec]:
        """Full import list for *unit*: zod, host types, then schema refs."""
        if unit.kind == UnitKind.INDEX:
            return []

        imports: List[ImportSpec] = [ImportSpec("z", ZOD_MODULE)]
        if unit.needs_host_types:
            imports.append(
                ImportSpec(HOST_TYPES_SYMBOL, self.host_types_module(unit), type_only=True)
            )
        for ref in self.collect(unit):
            imports.append(ImportSpec(ref.symbol, self.module_path(unit, ref)))
        return imports


__all__: List[str] = [
    "ZOD_MODULE",
    "HOST_TYPES_SYMBOL",
    "ImportSpec",
    "target_stem",
    "ImportGraphBuilder",
]

logger.debug("zodgen.imports loaded — %d public symbols.", len(__all__))
