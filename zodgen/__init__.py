"""
zodgen — zod Schema Generator
=============================

Transforms ORM model metadata (models, enums, input object types and the
operations each model supports) into zod validation-schema modules: one per
composite input type, one per enum, one per (model, operation) and an
``index.ts`` re-exporting them all.

Architecture overview::

    ┌──────────────┐     ┌─────────────────┐     ┌──────────────────┐
    │  CLI / Entry │────▶│ SchemaGenerator │────▶│  SchemaRenderer  │
    │   (cli.py)   │     │ (generator.py)  │     │  (templates.py)  │
    └──────────────┘     └────────┬────────┘     └──────────────────┘
                                  │
              ┌──────────────┬────┴─────────┬──────────────┐
              ▼              ▼              ▼              ▼
        ┌──────────┐  ┌────────────┐  ┌──────────┐  ┌───────────┐
        │validators│  │ assemblers │  │  models  │  │ exporters │
        │  (.py)   │  │ objects/   │  │  ir      │  │  (.py)    │
        └──────────┘  │ operations │  └──────────┘  └───────────┘
                      └────────────┘

Usage::

    # As a library
    from zodgen import MetadataDocument, GeneratorConfig, compile_schemas
    files = compile_schemas(MetadataDocument.model_validate(data), GeneratorConfig())

    # From the command line
    python -m zodgen --metadata metadata.yaml --output ./src/generated -v
"""

from __future__ import annotations

__version__: str = "0.1.0"
__license__: str = "MIT"

from zodgen.models import (
    ClientGeneratorConfig,
    DatabaseProvider,
    EnumType,
    GeneratedFile,
    GenerationContext,
    GeneratorConfig,
    InputObjectType,
    MetadataDocument,
    Model,
    ModelNotFoundError,
    ModelOperationMapping,
    OperationKind,
)
from zodgen.ir import GeneratedUnit
from zodgen.validators import validate_full, ValidationResult
from zodgen.objects import ObjectSchemaAssembler
from zodgen.operations import OperationSchemaAssembler
from zodgen.include_select import IncludeSelectGenerator
from zodgen.templates import SchemaRenderer
from zodgen.exporters import SchemaExporter, ExportManifest, ExportResult
from zodgen.generator import (
    GenerationError,
    GenerationReport,
    SchemaGenerator,
    compile_schemas,
)

# ---------------------------------------------------------------------------
# Public API surface
# ---------------------------------------------------------------------------

__all__: list[str] = [
    "__version__",
    "__license__",
    # Core orchestrator
    "SchemaGenerator",
    "GenerationReport",
    "GenerationError",
    "compile_schemas",
    # Models
    "ClientGeneratorConfig",
    "DatabaseProvider",
    "EnumType",
    "GeneratedFile",
    "GenerationContext",
    "GeneratorConfig",
    "InputObjectType",
    "MetadataDocument",
    "Model",
    "ModelNotFoundError",
    "ModelOperationMapping",
    "OperationKind",
    "GeneratedUnit",
    # Engine
    "ObjectSchemaAssembler",
    "OperationSchemaAssembler",
    "IncludeSelectGenerator",
    "SchemaRenderer",
    # Validation
    "validate_full",
    "ValidationResult",
    # Exporters
    "SchemaExporter",
    "ExportManifest",
    "ExportResult",
]
