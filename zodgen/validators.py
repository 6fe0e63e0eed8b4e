"""
zodgen - Metadata & Configuration Validators
============================================
A **pure-function validation pipeline** over the models in
``zodgen.models``.

Pydantic handles per-field structural correctness.  This module adds
**cross-entity semantic checks**: relation targets, enum usage, operation
mappings naming unknown models, references that would compile to an import
of a module that is never generated, and configuration sanity.

Usage::

    from zodgen.validators import validate_full
    result = validate_full(metadata, config)
    if not result:
        raise SystemExit(result.format_report())
"""

from __future__ import annotations

import logging
import re
from typing import Any, Callable, Dict, FrozenSet, List, Optional, Set

from zodgen.include_select import IncludeSelectGenerator, merge_input_types
from zodgen.ir import GeneratedUnit, ReferenceKind, collect_references
from zodgen.models import (
    DatabaseProvider,
    FieldKind,
    GenerationContext,
    GeneratorConfig,
    InputObjectType,
    MetadataDocument,
    TypeLocation,
)
from zodgen.objects import ObjectSchemaAssembler
from zodgen.operations import OperationSchemaAssembler

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("zodgen.validators")

# ---------------------------------------------------------------------------
# Validation result container
# ---------------------------------------------------------------------------


class ValidationError:
    """Lightweight error descriptor (no Pydantic overhead)."""

    __slots__ = ("level", "code", "message", "context")

    def __init__(
        self,
        level: str,
        code: str,
        message: str,
        context: Optional[Dict[str, Any]] = None,
    ) -> None:
        self.level: str = level  # "error" | "warning" | "info"
        self.code: str = code
        self.message: str = message
        self.context: Dict[str, Any] = context or {}

    @property
    def is_error(self) -> bool:
        return self.level == "error"

    @property
    def is_warning(self) -> bool:
        return self.level == "warning"

    def __repr__(self) -> str:
        return f"[{self.level.upper()}] {self.code}: {self.message}"

    def __str__(self) -> str:
        return self.__repr__()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "level": self.level,
            "code": self.code,
            "message": self.message,
            "context": self.context,
        }


class ValidationResult:
    """Accumulates ``ValidationError`` instances produced by the pipeline."""

    __slots__ = ("_items",)

    def __init__(self) -> None:
        self._items: List[ValidationError] = []

    # -- Mutation -----------------------------------------------------------

    def add_error(self, code: str, message: str, context: Optional[Dict[str, Any]] = None) -> None:
        self._items.append(ValidationError("error", code, message, context))

    def add_warning(self, code: str, message: str, context: Optional[Dict[str, Any]] = None) -> None:
        self._items.append(ValidationError("warning", code, message, context))

    def add_info(self, code: str, message: str, context: Optional[Dict[str, Any]] = None) -> None:
        self._items.append(ValidationError("info", code, message, context))

    def merge(self, other: "ValidationResult") -> None:
        self._items.extend(other._items)

    # -- Query --------------------------------------------------------------

    @property
    def errors(self) -> List[ValidationError]:
        return [e for e in self._items if e.is_error]

    @property
    def warnings(self) -> List[ValidationError]:
        return [e for e in self._items if e.is_warning]

    @property
    def has_errors(self) -> bool:
        return any(e.is_error for e in self._items)

    @property
    def has_warnings(self) -> bool:
        return any(e.is_warning for e in self._items)

    @property
    def error_count(self) -> int:
        return sum(1 for e in self._items if e.is_error)

    @property
    def warning_count(self) -> int:
        return sum(1 for e in self._items if e.is_warning)

    @property
    def is_valid(self) -> bool:
        return not self.has_errors

    def codes(self) -> List[str]:
        return [e.code for e in self._items]

    def summary(self) -> str:
        return (
            f"Validation: {self.error_count} error(s), "
            f"{self.warning_count} warning(s), "
            f"{len(self._items)} total item(s)."
        )

    def __repr__(self) -> str:
        return f"<ValidationResult {self.summary()}>"

    def __bool__(self) -> bool:
        """Truthy when there are NO errors (i.e. valid)."""
        return self.is_valid

    def __len__(self) -> int:
        return len(self._items)

    def format_report(self, include_info: bool = False) -> str:
        lines: List[str] = [self.summary(), ""]
        for item in self._items:
            if not include_info and item.level == "info":
                continue
            prefix: str = {
                "error": "❌",
                "warning": "⚠️",
                "info": "ℹ️",
            }.get(item.level, "•")
            lines.append(f"  {prefix} [{item.code}] {item.message}")
            for k, v in item.context.items():
                lines.append(f"       {k}: {v}")
        return "\n".join(lines)


# ---------------------------------------------------------------------------
# Patterns
# ---------------------------------------------------------------------------

_TS_IDENTIFIER_RE: re.Pattern[str] = re.compile(r"^[A-Za-z_$][A-Za-z0-9_$]*$")

_MODULE_FORMATS: FrozenSet[str] = frozenset({"esm", "cjs"})

_FULL_TEXT_SEARCH_PROVIDERS: FrozenSet[DatabaseProvider] = frozenset(
    {DatabaseProvider.POSTGRESQL, DatabaseProvider.MYSQL}
)


# ---------------------------------------------------------------------------
# Individual validation functions
# ---------------------------------------------------------------------------


def validate_model_names(metadata: MetadataDocument) -> ValidationResult:
    """Model names become file names and identifiers."""
    result: ValidationResult = ValidationResult()
    for model in metadata.models:
        if not _TS_IDENTIFIER_RE.match(model.name):
            result.add_error(
                "MODEL_NAME_INVALID",
                f"Model name '{model.name}' is not a valid identifier.",
                {"model": model.name},
            )
        seen: Set[str] = set()
        for model_field in model.fields:
            if model_field.name in seen:
                result.add_error(
                    "FIELD_NAME_DUPLICATE",
                    f"Field '{model_field.name}' appears more than once in '{model.name}'.",
                    {"model": model.name, "field": model_field.name},
                )
            seen.add(model_field.name)
    return result


def validate_relations(metadata: MetadataDocument) -> ValidationResult:
    """Every relation field must point at a known model."""
    result: ValidationResult = ValidationResult()
    model_names: Set[str] = {m.name for m in metadata.models}
    for model in metadata.models:
        for relation in model.relation_fields:
            if relation.type not in model_names:
                result.add_error(
                    "RELATION_TARGET_UNKNOWN",
                    f"Relation '{model.name}.{relation.name}' targets unknown model "
                    f"'{relation.type}'.",
                    {"model": model.name, "field": relation.name, "target": relation.type},
                )
    return result


def validate_enum_definitions(metadata: MetadataDocument) -> ValidationResult:
    result: ValidationResult = ValidationResult()
    names: List[str] = [e.name for e in metadata.enums]
    for dupe in sorted({n for n in names if names.count(n) > 1}):
        result.add_error(
            "ENUM_NAME_DUPLICATE",
            f"Enum '{dupe}' is declared more than once.",
            {"enum": dupe},
        )

    known: Set[str] = set(names)
    model_names: Set[str] = {m.name for m in metadata.models}
    for enum_name in sorted(known & model_names):
        result.add_warning(
            "ENUM_MODEL_NAME_CLASH",
            f"Enum '{enum_name}' has the same name as a model.",
            {"enum": enum_name},
        )

    for model in metadata.models:
        for model_field in model.fields:
            if model_field.kind == FieldKind.ENUM and model_field.type not in known:
                result.add_warning(
                    "ENUM_UNKNOWN",
                    f"Field '{model.name}.{model_field.name}' uses undeclared enum "
                    f"'{model_field.type}'.",
                    {"model": model.name, "field": model_field.name},
                )
    return result


def validate_input_types(metadata: MetadataDocument) -> ValidationResult:
    """Duplicate composites and fields that cannot produce any alternative."""
    result: ValidationResult = ValidationResult()
    names: List[str] = [t.name for t in metadata.input_object_types]
    for dupe in sorted({n for n in names if names.count(n) > 1}):
        result.add_error(
            "INPUT_TYPE_DUPLICATE",
            f"Input object type '{dupe}' is declared more than once.",
            {"type": dupe},
        )

    for input_type in metadata.input_object_types:
        for schema_arg in input_type.fields:
            if not schema_arg.input_types:
                result.add_info(
                    "FIELD_WITHOUT_ALTERNATIVES",
                    f"Field '{input_type.name}.{schema_arg.name}' has no input types "
                    f"and will be omitted.",
                    {"type": input_type.name, "field": schema_arg.name},
                )
            elif all(
                alt.location == TypeLocation.FIELD_REF_TYPES for alt in schema_arg.input_types
            ):
                result.add_info(
                    "FIELD_REF_ONLY",
                    f"Field '{input_type.name}.{schema_arg.name}' only accepts field "
                    f"references and will be omitted.",
                    {"type": input_type.name, "field": schema_arg.name},
                )
    return result


def validate_operation_mappings(metadata: MetadataDocument) -> ValidationResult:
    result: ValidationResult = ValidationResult()
    model_names: Set[str] = {m.name for m in metadata.models}
    seen: Set[str] = set()
    for mapping in metadata.model_operations:
        if mapping.model not in model_names:
            result.add_error(
                "MODEL_NOT_FOUND",
                f"Operation mapping names unknown model '{mapping.model}'.",
                {"model": mapping.model},
            )
        if mapping.model in seen:
            result.add_warning(
                "OPERATION_MAPPING_DUPLICATE",
                f"Model '{mapping.model}' has more than one operation mapping; "
                f"only the first is used.",
                {"model": mapping.model},
            )
        seen.add(mapping.model)
        if mapping.raw_operations and metadata.provider != DatabaseProvider.MONGODB:
            result.add_warning(
                "RAW_OPERATIONS_IGNORED",
                f"Raw operations of '{mapping.model}' are only remapped for mongodb.",
                {"model": mapping.model, "provider": metadata.provider.value},
            )
    return result


def validate_generator_config(
    metadata: MetadataDocument, config: GeneratorConfig
) -> ValidationResult:
    result: ValidationResult = ValidationResult()
    client = config.client

    if client.module_format is not None and client.module_format not in _MODULE_FORMATS:
        result.add_error(
            "MODULE_FORMAT_INVALID",
            f"Client module format '{client.module_format}' is not one of "
            f"{sorted(_MODULE_FORMATS)}.",
            {"module_format": client.module_format},
        )
    if client.import_file_extension and client.module_format != "esm":
        result.add_info(
            "IMPORT_EXTENSION_UNUSED",
            "importFileExtension only applies to the esm module format.",
            {"import_file_extension": client.import_file_extension},
        )
    if (
        "fullTextSearch" in metadata.preview_features
        and metadata.provider not in _FULL_TEXT_SEARCH_PROVIDERS
    ):
        result.add_info(
            "FULL_TEXT_SEARCH_UNUSED",
            f"fullTextSearch has no effect on orderBy for provider "
            f"'{metadata.provider.value}'.",
        )
    if config.is_generate_include and not any(m.has_relation for m in metadata.models):
        result.add_info(
            "INCLUDE_WITHOUT_RELATIONS",
            "Include emission is on but no model has a relation.",
        )
    return result


def validate_references(
    metadata: MetadataDocument, config: GeneratorConfig
) -> ValidationResult:
    """
    Dry-run assembly and report references to units that will not exist.

    Each such reference would compile to an import of a missing module.
    """
    result: ValidationResult = ValidationResult()
    context: GenerationContext = GenerationContext.build(config, metadata)
    object_assembler: ObjectSchemaAssembler = ObjectSchemaAssembler(context)
    operation_assembler: OperationSchemaAssembler = OperationSchemaAssembler(context, metadata)

    composites: List[InputObjectType] = merge_input_types(
        metadata.input_object_types,
        IncludeSelectGenerator(context).generate(metadata.models),
    )
    units: List[GeneratedUnit] = [object_assembler.assemble(c) for c in composites]
    model_names: Set[str] = {m.name for m in metadata.models}
    for mapping in metadata.model_operations:
        if mapping.model in model_names:
            units.extend(operation_assembler.assemble_model(mapping))

    available: Dict[ReferenceKind, Set[str]] = {
        ReferenceKind.OBJECT: {u.name for u in units if u.self_reference is not None},
        ReferenceKind.ENUM: {e.name for e in metadata.enums},
        ReferenceKind.OPERATION: {u.name for u in units if u.self_reference is None},
    }

    reported: Set[str] = set()
    for unit in units:
        if unit.expression is None:
            continue
        for ref in collect_references(unit.expression):
            if ref.name in available[ref.kind] or ref.symbol in reported:
                continue
            reported.add(ref.symbol)
            result.add_warning(
                "UNRESOLVED_REFERENCE",
                f"'{unit.name}' references '{ref.symbol}', which is not generated.",
                {"unit": unit.relative_path, "reference": ref.symbol},
            )
    return result


# ---------------------------------------------------------------------------
# Aggregate entry points
# ---------------------------------------------------------------------------


def validate_metadata(metadata: MetadataDocument) -> ValidationResult:
    result: ValidationResult = ValidationResult()
    validators: List[Callable[[MetadataDocument], ValidationResult]] = [
        validate_model_names,
        validate_relations,
        validate_enum_definitions,
        validate_input_types,
        validate_operation_mappings,
    ]
    for validator_fn in validators:
        logger.debug("Running validator: %s", validator_fn.__name__)
        result.merge(validator_fn(metadata))

    logger.info("Metadata validation complete: %s", result.summary())
    return result


def validate_full(
    metadata: MetadataDocument,
    config: GeneratorConfig,
) -> ValidationResult:
    """
    **Master validation entry point**, called by the generator and the CLI
    before any unit is assembled.

    Reference checks only run once the structural checks pass, since they
    assemble units from the metadata.
    """
    logger.info(
        "Starting full validation — %d models, provider=%s",
        len(metadata.models),
        metadata.provider.value,
    )

    result: ValidationResult = ValidationResult()
    result.merge(validate_metadata(metadata))
    result.merge(validate_generator_config(metadata, config))
    if not result.has_errors:
        result.merge(validate_references(metadata, config))

    if result.has_errors:
        logger.error("Validation FAILED with %d error(s). %s", result.error_count, result.summary())
    else:
        logger.info("Validation PASSED. %s", result.summary())
    return result


# ---------------------------------------------------------------------------
# Module-level exports
# ---------------------------------------------------------------------------

__all__: List[str] = [
    "ValidationError",
    "ValidationResult",
    "validate_model_names",
    "validate_relations",
    "validate_enum_definitions",
    "validate_input_types",
    "validate_operation_mappings",
    "validate_generator_config",
    "validate_references",
    "validate_metadata",
    "validate_full",
]

logger.debug("zodgen.validators loaded — %d public symbols.", len(__all__))
